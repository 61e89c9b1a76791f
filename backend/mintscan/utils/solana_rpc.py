"""
Solana JSON-RPC client built on aiohttp.
"""

import asyncio
import logging
import time
import uuid
from typing import Any, Dict, List, Optional

import aiohttp

from .solana_constants import (
    BLOCK_UNAVAILABLE_ERROR_CODES,
    MAX_SUPPORTED_TRANSACTION_VERSION,
    NODE_UNHEALTHY_ERROR_CODE,
    RETRYABLE_ERROR_CODES,
)
from .solana_error import (
    ConnectionError,
    NodeUnhealthyError,
    RateLimitError,
    RetryableError,
    RPCError,
    SlotSkippedError,
    TimeoutError,
)

logger = logging.getLogger(__name__)


class SolanaClient:
    """
    Solana RPC client for making RPC calls to a Solana node.

    The client owns one aiohttp session, applies a bounded timeout to every
    call and maps JSON-RPC error codes onto the error hierarchy.
    """

    def __init__(
        self,
        endpoint: str,
        timeout: float = 30.0,
        commitment: str = "confirmed",
        session: Optional[aiohttp.ClientSession] = None,
    ):
        """Initialize the Solana RPC client"""
        self.endpoint = endpoint
        self.timeout = timeout
        self.commitment = commitment
        self._client = session
        self._owns_session = session is None
        self._latencies: List[float] = []
        self._max_latencies = 100

        logger.debug(f"Initialized SolanaClient for endpoint: {endpoint}")

    async def connect(self):
        """Open the HTTP session if needed"""
        if self._client is None or self._client.closed:
            self._client = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(
                    total=self.timeout,
                    connect=min(5.0, self.timeout / 2),  # Shorter connect timeout
                    sock_read=self.timeout
                )
            )
            self._owns_session = True
        return True

    async def close(self):
        """Close the client connection"""
        if self._client is not None and self._owns_session:
            try:
                await self._client.close()
                logger.debug(f"Closed client for {self.endpoint}")
            except Exception as e:
                logger.warning(f"Error closing client for {self.endpoint}: {str(e)}")
        self._client = None

    def _record_latency(self, latency: float):
        """Record latency for this endpoint"""
        self._latencies.append(latency)
        if len(self._latencies) > self._max_latencies:
            self._latencies.pop(0)

    @property
    def average_latency(self) -> float:
        if not self._latencies:
            return 0.0
        return sum(self._latencies) / len(self._latencies)

    async def _make_rpc_call(self, method: str, params: Optional[List[Any]] = None) -> Dict[str, Any]:
        """
        Make an RPC call to the Solana node.

        Args:
            method: The RPC method to call
            params: The parameters to pass to the method

        Returns:
            The decoded JSON-RPC response

        Raises:
            RPCError: If the RPC call fails
            RetryableError: If the RPC call fails but can be retried
        """
        payload = {
            "jsonrpc": "2.0",
            "id": str(uuid.uuid4()),
            "method": method,
            "params": params or []
        }

        if self._client is None or self._client.closed:
            await self.connect()

        start_time = time.time()
        try:
            async with asyncio.timeout(self.timeout):
                async with self._client.post(self.endpoint, json=payload) as response:
                    self._record_latency(time.time() - start_time)

                    if response.status == 429:
                        raise RateLimitError(f"Rate limited on {method}", code=429)
                    if response.status >= 400:
                        raise RetryableError(f"HTTP error {response.status} for {method}", code=response.status)

                    try:
                        result = await response.json(content_type=None)
                    except ValueError as e:
                        raise RetryableError(f"Failed to parse JSON response for {method}: {e}")

        except asyncio.TimeoutError:
            elapsed = time.time() - start_time
            logger.warning(f"Timeout after {elapsed:.2f}s for {method} on {self.endpoint}")
            raise TimeoutError(f"Timeout after {elapsed:.2f}s for {method}")

        except aiohttp.ClientError as e:
            logger.warning(f"Client error in {method}: {str(e)}")
            raise ConnectionError(f"Connection error in {method}: {str(e)}")

        if not isinstance(result, dict):
            raise RPCError(f"Invalid response format for {method}")

        error = result.get("error")
        if error:
            error_msg = str(error.get("message", error)) if isinstance(error, dict) else str(error)
            error_code = error.get("code", 0) if isinstance(error, dict) else 0

            if error_code == NODE_UNHEALTHY_ERROR_CODE:
                raise NodeUnhealthyError(f"Node unhealthy: {error_msg}", code=error_code)
            if "rate limit" in error_msg.lower():
                raise RateLimitError(f"Rate limited: {error_msg}", code=error_code)
            if error_code in RETRYABLE_ERROR_CODES:
                raise RetryableError(f"Retryable RPC error: {error_msg}", code=error_code)
            raise RPCError(f"RPC error in {method}: {error_msg}", code=error_code)

        return result

    async def get_slot(self) -> int:
        """
        Get the current slot at the configured commitment.

        Returns:
            int: The current slot

        Raises:
            RPCError: If the RPC call fails
        """
        result = await self._make_rpc_call("getSlot", [{"commitment": self.commitment}])
        slot = result.get("result")
        if not isinstance(slot, int):
            raise RPCError("Invalid response format for getSlot")
        return slot

    async def get_block(self, slot: int, options: Optional[Dict[str, Any]] = None) -> Optional[Dict[str, Any]]:
        """
        Get block information for the given slot.

        Args:
            slot: Block slot number
            options: Additional parameters for getBlock

        Returns:
            Dict: Block information, None when the node returned a null block

        Raises:
            SlotSkippedError: If the slot was skipped or the block is not available
            RPCError: If the RPC call fails
        """
        params = {
            "encoding": "json",
            "transactionDetails": "full",
            "maxSupportedTransactionVersion": MAX_SUPPORTED_TRANSACTION_VERSION,
            "rewards": False,
            "commitment": self.commitment,
        }
        params.update(options or {})

        try:
            result = await self._make_rpc_call("getBlock", [slot, params])
        except RPCError as e:
            if e.code in BLOCK_UNAVAILABLE_ERROR_CODES:
                raise SlotSkippedError(slot, str(e), code=e.code)
            raise

        block = result.get("result")
        if block is not None and not isinstance(block, dict):
            raise RPCError(f"Invalid response format for getBlock({slot})")
        return block

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
