"""
FastAPI application main module.
"""
from contextlib import asynccontextmanager
from typing import Optional
import asyncio
import logging

from fastapi import FastAPI, APIRouter
from fastapi.middleware.cors import CORSMiddleware

from mintscan.config import Config, RPC_MAX_RETRIES, RPC_RETRY_DELAY, RPC_TIMEOUT
from mintscan.routers import routers
from mintscan.tasks.mint_scanner import MintScanner
from mintscan.utils.block_fetcher import BlockFetcher, RpcBlockFetcher
from mintscan.utils.cursor_store import CursorStore
from mintscan.utils.logging_config import configure_package_logging
from mintscan.utils.mint_ledger import MintLedger
from mintscan.utils.solana_rpc import SolanaClient

# Configure logging
configure_package_logging('DEBUG' if Config.DEBUG else Config.LOG_LEVEL)
logger = logging.getLogger(__name__)

SHUTDOWN_GRACE_SECONDS = 30.0


def build_scanner(fetcher: Optional[BlockFetcher] = None, ledger: Optional[MintLedger] = None) -> MintScanner:
    """Wire a MintScanner from the configuration."""
    if fetcher is None:
        client = SolanaClient(Config.RPC_URL, timeout=RPC_TIMEOUT, commitment=Config.COMMITMENT)
        fetcher = RpcBlockFetcher(client, max_retries=RPC_MAX_RETRIES, retry_min_wait=RPC_RETRY_DELAY)
    if ledger is None:
        ledger = MintLedger(Config.MINTS_FILE)
    scanner_config = Config.SCANNER_CONFIG
    return MintScanner(
        fetcher=fetcher,
        ledger=ledger,
        cursor=CursorStore(Config.CURSOR_FILE or None),
        program_id=Config.TARGET_PROGRAM_ID,
        slot_lag=scanner_config['slot_lag'],
        poll_interval=scanner_config['poll_interval'],
        failure_policy=scanner_config['failure_policy'],
        max_slots_per_cycle=scanner_config['max_slots_per_cycle'],
        include_inner=scanner_config['include_inner'],
        reset_cursor=scanner_config['reset_cursor'],
    )


async def _shutdown_scanner(scanner: MintScanner, task: asyncio.Task) -> None:
    """Let the current block finish, then cancel if it takes too long."""
    scanner.stop()
    try:
        await asyncio.wait_for(asyncio.shield(task), timeout=SHUTDOWN_GRACE_SECONDS)
    except asyncio.TimeoutError:
        logger.warning("Scanner did not stop in time, cancelling")
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
    except Exception as e:
        logger.error(f"Scanner task ended with an error: {e}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for FastAPI app.
    Loads the ledger, establishes the cursor and runs the scanner task.
    """
    logger.info(f"Starting Mintscan on {Config.SOLANA_NETWORK} ({Config.RPC_URL})")

    scanner: MintScanner = getattr(app.state, 'scanner', None) or build_scanner()
    ledger = scanner.ledger
    ledger.load()
    app.state.ledger = ledger
    app.state.scanner = scanner

    try:
        await scanner.initialize()
    except Exception as e:
        logger.error(f"Failed to initialize scanner: {e}")
        await _close_fetcher(scanner)
        raise

    task = asyncio.create_task(scanner.run_forever(), name="mint_scanner")
    logger.info(f"Mint indexer is running on http://{Config.HOST}:{Config.PORT}")
    try:
        yield
    finally:
        await _shutdown_scanner(scanner, task)
        await _close_fetcher(scanner)
        logger.info("Application shutdown complete")


async def _close_fetcher(scanner: MintScanner) -> None:
    close = getattr(scanner.fetcher, 'close', None)
    if close is not None:
        try:
            await close()
        except Exception as e:
            logger.warning(f"Error closing block fetcher: {e}")


def create_app(scanner: Optional[MintScanner] = None) -> FastAPI:
    """Create the FastAPI application, optionally around a pre-built scanner."""
    application = FastAPI(
        title=Config.API_TITLE,
        description=Config.API_DESCRIPTION,
        version=Config.API_VERSION,
        lifespan=lifespan,
    )
    if scanner is not None:
        application.state.scanner = scanner

    application.add_middleware(
        CORSMiddleware,
        allow_origins=Config.CORS_ORIGINS,
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["*"],
    )

    api_router = APIRouter(prefix="/api")
    for router in routers:
        api_router.include_router(router)
    application.include_router(api_router)

    @application.get("/health")
    async def health():
        return {"status": "ok"}

    return application


app = create_app()
