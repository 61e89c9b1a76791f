"""
Block fetcher: the boundary between the scanner and the remote ledger.
"""

import logging
from typing import Any, Dict, Optional, Protocol, Union

from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from .solana_error import RetryableError, SlotSkippedError
from .solana_rpc import SolanaClient

logger = logging.getLogger(__name__)


class _Unavailable:
    """Sentinel returned when the node has no block for a slot."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "BLOCK_UNAVAILABLE"

    def __bool__(self) -> bool:
        return False


BLOCK_UNAVAILABLE = _Unavailable()

Block = Dict[str, Any]
BlockOrUnavailable = Union[Block, _Unavailable]


class BlockFetcher(Protocol):
    """What the scanner needs from the ledger."""

    async def current_height(self) -> int:
        ...

    async def fetch_block(self, slot: int) -> BlockOrUnavailable:
        ...


class RpcBlockFetcher:
    """BlockFetcher backed by a Solana JSON-RPC node."""

    def __init__(
        self,
        client: SolanaClient,
        max_retries: int = 3,
        retry_min_wait: float = 1.0,
        retry_max_wait: float = 10.0,
    ):
        self.client = client
        self.max_retries = max(1, max_retries)
        self.retry_min_wait = retry_min_wait
        self.retry_max_wait = retry_max_wait

    @property
    def average_latency(self) -> float:
        return self.client.average_latency

    def _retrying(self) -> AsyncRetrying:
        return AsyncRetrying(
            stop=stop_after_attempt(self.max_retries),
            wait=wait_exponential(multiplier=1, min=self.retry_min_wait, max=self.retry_max_wait),
            retry=retry_if_exception_type(RetryableError),
            before_sleep=before_sleep_log(logger, logging.INFO),
            reraise=True,
        )

    async def current_height(self) -> int:
        """Get the current slot, retrying transient failures."""
        async for attempt in self._retrying():
            with attempt:
                return await self.client.get_slot()

    async def fetch_block(self, slot: int) -> BlockOrUnavailable:
        """
        Fetch one block with full transaction detail.

        Returns:
            The block, or BLOCK_UNAVAILABLE when the slot was skipped, pruned,
            or is not yet available on the node
        """
        try:
            block: Optional[Block] = None
            async for attempt in self._retrying():
                with attempt:
                    block = await self.client.get_block(slot)
        except SlotSkippedError as e:
            logger.debug(f"Slot {slot} unavailable: {e}")
            return BLOCK_UNAVAILABLE

        if block is None:
            return BLOCK_UNAVAILABLE
        return block

    async def close(self):
        await self.client.close()
