"""
Background task that scans new Solana blocks for InitializeMint instructions.

One cycle polls the chain height, computes the safe bound
``height - slot_lag`` and processes every slot after the cursor and below
that bound in increasing order. The slot at the bound itself waits for a
later cycle. The cursor only advances once a block has been fully processed.
"""
import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Dict, List, Optional, TypeVar

from ..utils.block_fetcher import BLOCK_UNAVAILABLE, BlockFetcher
from ..utils.cursor_store import CursorStore
from ..utils.handlers.instruction_extractor import TransactionProcessor
from ..utils.mint_ledger import MintLedger
from ..utils.models import TransactionStats
from ..utils.solana_constants import TOKEN_PROGRAMS
from ..utils.solana_error import PersistenceError, ScannerStartupError

logger = logging.getLogger(__name__)

T = TypeVar('T')


class ScannerState(str, Enum):
    IDLE = "idle"
    POLLING = "polling"
    DETERMINING_RANGE = "determining_range"
    ITERATING = "iterating"
    ADVANCING = "advancing"
    SLEEPING = "sleeping"
    STOPPED = "stopped"


class BlockFailurePolicy(str, Enum):
    """What to do with a slot whose processing raised."""
    RETRY = "retry"  # hold the cursor before the slot and retry it next cycle
    SKIP = "skip"    # log it and advance past it


class BlockOutcome(str, Enum):
    PROCESSED = "processed"
    UNAVAILABLE = "unavailable"


class _ScanStopped(Exception):
    """Raised internally when stop() interrupts a remote call."""


@dataclass
class CycleResult:
    """Summary of one scan cycle."""
    height: Optional[int] = None
    safe_slot: Optional[int] = None
    start_slot: Optional[int] = None
    end_slot: Optional[int] = None
    processed_slots: List[int] = field(default_factory=list)
    unavailable_slots: List[int] = field(default_factory=list)
    failed_slots: List[int] = field(default_factory=list)
    new_mints: List[str] = field(default_factory=list)
    cursor: Optional[int] = None
    error: Optional[str] = None

    @property
    def idle(self) -> bool:
        return self.start_slot is None


@dataclass
class ScanStats:
    """Running totals across cycles."""
    cycles: int = 0
    idle_cycles: int = 0
    poll_failures: int = 0
    blocks_processed: int = 0
    blocks_unavailable: int = 0
    blocks_failed: int = 0
    blocks_skipped_after_failure: int = 0
    mints_discovered: int = 0
    last_height: Optional[int] = None
    last_cycle_at: Optional[datetime] = None
    last_error: Optional[str] = None
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    transactions: TransactionStats = field(default_factory=TransactionStats)

    def get_current(self) -> Dict[str, Any]:
        """Get current statistics."""
        return {
            "cycles": self.cycles,
            "idle_cycles": self.idle_cycles,
            "poll_failures": self.poll_failures,
            "blocks_processed": self.blocks_processed,
            "blocks_unavailable": self.blocks_unavailable,
            "blocks_failed": self.blocks_failed,
            "blocks_skipped_after_failure": self.blocks_skipped_after_failure,
            "mints_discovered": self.mints_discovered,
            "last_height": self.last_height,
            "last_cycle_at": self.last_cycle_at.isoformat() if self.last_cycle_at else None,
            "last_error": self.last_error,
            "started_at": self.started_at.isoformat(),
            "transactions": self.transactions.to_dict(),
        }


class MintScanner:
    """
    Scan loop over the ledger.

    Owns the cursor; shares the ledger with the read-only query surface,
    which only ever takes snapshots of it.
    """

    def __init__(
        self,
        fetcher: BlockFetcher,
        ledger: MintLedger,
        cursor: CursorStore,
        program_id: str,
        slot_lag: int = 2,
        poll_interval: float = 5.0,
        failure_policy: str = BlockFailurePolicy.RETRY,
        max_slots_per_cycle: int = 0,
        include_inner: bool = True,
        reset_cursor: Optional[int] = None,
    ):
        if slot_lag < 0:
            raise ValueError("slot_lag must be >= 0")
        self.fetcher = fetcher
        self.ledger = ledger
        self.cursor = cursor
        self.program_id = program_id
        self.slot_lag = slot_lag
        self.poll_interval = poll_interval
        self.failure_policy = BlockFailurePolicy(failure_policy)
        self.max_slots_per_cycle = max(0, max_slots_per_cycle)
        self.reset_cursor = reset_cursor
        self.processor = TransactionProcessor(program_id, include_inner=include_inner)
        self.state = ScannerState.IDLE
        self.stats = ScanStats()
        self._stop_event = asyncio.Event()
        self._new_mints: List[str] = []

    @property
    def last_processed_slot(self) -> Optional[int]:
        return self.cursor.last_processed_slot

    @property
    def stopping(self) -> bool:
        return self._stop_event.is_set()

    async def initialize(self) -> int:
        """
        Establish the starting cursor.

        Resumes a persisted cursor when one exists, otherwise starts at
        ``height - slot_lag``. A configured ``reset_cursor`` overrides both.

        Raises:
            ScannerStartupError: The ledger height cannot be read
        """
        try:
            height = await self.fetcher.current_height()
        except Exception as e:
            raise ScannerStartupError(f"Failed to fetch initial slot: {e}") from e

        if self.program_id not in TOKEN_PROGRAMS:
            logger.warning(f"Program {self.program_id} is not a known token program, InitializeMint decoding may not apply")

        self.stats.last_height = height
        safe_slot = max(height - self.slot_lag, 0)

        resumed = self.cursor.load()
        if self.reset_cursor is not None:
            self.cursor.reset(self.reset_cursor)
            await self._persist_cursor()
        elif resumed is None:
            self.cursor.initialize(safe_slot)
            await self._persist_cursor()
            logger.info(f"Starting block scanning from slot {safe_slot} (height {height}, lag {self.slot_lag})")
        elif resumed > height:
            logger.warning(
                f"Persisted cursor {resumed} is ahead of the ledger height {height}; "
                f"check SOLANA_NETWORK or reset the cursor"
            )
        else:
            logger.info(f"Resuming block scanning after slot {resumed} ({safe_slot - resumed} slots behind)")

        return self.cursor.last_processed_slot

    async def _await_or_stop(self, awaitable: Awaitable[T]) -> T:
        """Await a remote call, abandoning it if stop() is requested meanwhile."""
        call = asyncio.ensure_future(awaitable)
        stop_waiter = asyncio.ensure_future(self._stop_event.wait())
        try:
            await asyncio.wait({call, stop_waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            call.cancel()
            raise
        finally:
            stop_waiter.cancel()

        if call.done():
            return call.result()

        call.cancel()
        try:
            await call
        except asyncio.CancelledError:
            pass
        raise _ScanStopped()

    async def process_slot(self, slot: int, stats: Optional[TransactionStats] = None) -> BlockOutcome:
        """
        Fetch and process one block.

        Every newly discovered mint is inserted into the ledger, and persisted,
        before the next transaction is examined.

        Returns:
            BlockOutcome.PROCESSED or BlockOutcome.UNAVAILABLE
        """
        stats = stats if stats is not None else TransactionStats()
        block = await self._await_or_stop(self.fetcher.fetch_block(slot))

        if block is BLOCK_UNAVAILABLE:
            logger.debug(f"Slot {slot} has no block data. Skipping...")
            return BlockOutcome.UNAVAILABLE

        logger.debug(f"Processing slot {slot} with {len(block.get('transactions') or [])} transactions")
        for record in self.processor.iter_block_mints(block, slot, stats):
            if await self.ledger.insert_if_absent(record):
                self.stats.mints_discovered += 1
                self._new_mints.append(record.mint_address)
                logger.info(
                    f"New mint {record.mint_address} (decimals={record.decimals}, "
                    f"authority={record.mint_authority}) in slot {slot}"
                )
        return BlockOutcome.PROCESSED

    async def run_cycle(self) -> CycleResult:
        """Run one poll / range / iterate / advance cycle."""
        if not self.cursor.is_initialized:
            await self.initialize()

        result = CycleResult(cursor=self.cursor.last_processed_slot)
        self._new_mints = result.new_mints
        self.stats.cycles += 1
        self.stats.last_cycle_at = datetime.now(timezone.utc)

        self.state = ScannerState.POLLING
        try:
            height = await self._await_or_stop(self.fetcher.current_height())
        except _ScanStopped:
            return result
        except Exception as e:
            self.stats.poll_failures += 1
            self.stats.last_error = f"poll: {e}"
            result.error = str(e)
            logger.error(f"Error polling ledger height: {e}")
            return result

        self.state = ScannerState.DETERMINING_RANGE
        self.stats.last_height = height
        result.height = height
        # Exclusive bound: the slot at height - lag waits for the next cycle
        safe_slot = height - self.slot_lag
        result.safe_slot = safe_slot
        cursor = self.cursor.last_processed_slot

        if safe_slot - 1 <= cursor:
            self.stats.idle_cycles += 1
            logger.debug(f"No new slots to process. Current slot: {height}, last processed: {cursor}")
            return result

        start = cursor + 1
        end = safe_slot - 1
        if self.max_slots_per_cycle:
            end = min(end, cursor + self.max_slots_per_cycle)
        result.start_slot, result.end_slot = start, end

        self.state = ScannerState.ITERATING
        started = time.time()
        for slot in range(start, end + 1):
            if self.stopping:
                break

            block_stats = TransactionStats()
            try:
                outcome = await self.process_slot(slot, block_stats)
            except _ScanStopped:
                break
            except Exception as e:
                self.stats.blocks_failed += 1
                self.stats.last_error = f"slot {slot}: {e}"
                self.stats.transactions.update_error_count(type(e).__name__)
                result.failed_slots.append(slot)
                if self.failure_policy is BlockFailurePolicy.RETRY:
                    logger.error(f"Error processing slot {slot}, will retry next cycle: {e}")
                    break
                logger.error(f"Error processing slot {slot}, skipping it: {e}")
                self.stats.blocks_skipped_after_failure += 1
                self.cursor.advance(slot)
                continue
            finally:
                self.stats.transactions.merge(block_stats)

            self.state = ScannerState.ADVANCING
            if outcome is BlockOutcome.UNAVAILABLE:
                self.stats.blocks_unavailable += 1
                result.unavailable_slots.append(slot)
            else:
                self.stats.blocks_processed += 1
                result.processed_slots.append(slot)
            self.cursor.advance(slot)
            self.state = ScannerState.ITERATING

        await self._persist_cursor()
        result.cursor = self.cursor.last_processed_slot

        logger.info(
            f"Scanned slots {start}-{end} in {time.time() - started:.2f}s, cursor at {result.cursor}: "
            f"{len(result.processed_slots)} processed, {len(result.unavailable_slots)} unavailable, "
            f"{len(result.failed_slots)} failed, {len(result.new_mints)} new mints"
        )
        return result

    async def _persist_cursor(self) -> None:
        try:
            await asyncio.to_thread(self.cursor.persist)
        except PersistenceError as e:
            self.stats.last_error = str(e)
            logger.error(str(e))

    async def _sleep(self) -> None:
        self.state = ScannerState.SLEEPING
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=self.poll_interval)
        except asyncio.TimeoutError:
            pass

    async def run_forever(self) -> None:
        """Run scan cycles until stop() is called or the task is cancelled."""
        if not self.cursor.is_initialized:
            await self.initialize()

        logger.info(f"Mint scanner running for program {self.program_id} every {self.poll_interval}s")
        try:
            while not self.stopping:
                try:
                    await self.run_cycle()
                except Exception as e:
                    self.stats.last_error = str(e)
                    logger.error(f"Error in scan loop: {e}", exc_info=True)
                if self.stopping:
                    break
                await self._sleep()
        finally:
            await self._persist_cursor()
            self.state = ScannerState.STOPPED
            logger.info(f"Mint scanner stopped at slot {self.cursor.last_processed_slot}")

    def stop(self) -> None:
        """Ask the loop to exit after the block it is currently processing."""
        self._stop_event.set()

    def status(self, include_errors: bool = False) -> Dict[str, Any]:
        """Snapshot of scanner state for the query surface."""
        stats = self.stats.get_current()
        if not include_errors:
            stats.pop("last_error")
            stats["transactions"].pop("error_counts")
        latency = getattr(self.fetcher, 'average_latency', None)
        if isinstance(latency, float):
            stats["rpc_average_latency"] = round(latency, 4)
        return {
            "state": self.state.value,
            "program_id": self.program_id,
            "last_processed_slot": self.cursor.last_processed_slot,
            "slot_lag": self.slot_lag,
            "poll_interval": self.poll_interval,
            "failure_policy": self.failure_policy.value,
            "known_mints": len(self.ledger),
            "stats": stats,
        }
