"""
Dedup ledger of discovered mint addresses with whole-file JSON persistence.
"""

import asyncio
import logging
from collections import OrderedDict
from pathlib import Path
from typing import List, Optional, Union

from .common import Utils
from .models import MintInitRecord
from .solana_error import PersistenceError

logger = logging.getLogger(__name__)


class MintLedger:
    """
    Insertion-ordered set of mint addresses already reported.

    The scan loop is the only writer. Readers call ``snapshot()`` or
    ``addresses()`` which return copies, so a request never holds anything
    the scanner is mutating.

    Every new address rewrites the whole file before ``insert_if_absent``
    returns. The file write runs in a worker thread, so the event loop keeps
    serving readers while it is in progress. A failed write is logged and the in-memory ledger stays
    authoritative until the next successful write.
    """

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self.path = Path(path) if path else None
        self._records: "OrderedDict[str, MintInitRecord]" = OrderedDict()
        self.write_failures = 0
        self.last_write_error: Optional[str] = None

    def load(self) -> int:
        """
        Load persisted addresses. Must run before the first scan cycle.

        A missing file means a fresh start. A corrupt or partially written file
        is logged and the ledger starts empty.

        Returns:
            Number of addresses loaded
        """
        self._records.clear()
        if self.path is None:
            return 0
        if not self.path.exists():
            logger.info(f"No mints file at {self.path}, starting with an empty ledger")
            return 0

        try:
            data = Utils.read_json(self.path)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to load mints from {self.path}, starting empty: {e}")
            return 0

        if not isinstance(data, list):
            logger.error(f"Mints file {self.path} does not hold a JSON array, starting empty")
            return 0

        for address in data:
            if not isinstance(address, str) or not address:
                logger.warning(f"Ignoring invalid entry in {self.path}: {address!r}")
                continue
            if address not in self._records:
                self._records[address] = MintInitRecord(mint_address=address)

        logger.info(f"Loaded {len(self._records)} mints from {self.path}")
        return len(self._records)

    def contains(self, mint_address: str) -> bool:
        return mint_address in self._records

    __contains__ = contains

    def __len__(self) -> int:
        return len(self._records)

    async def insert_if_absent(self, record: Union[MintInitRecord, str]) -> bool:
        """
        Add a mint if it has not been seen before.

        Args:
            record: MintInitRecord or bare mint address

        Returns:
            True if the address was newly added
        """
        if isinstance(record, str):
            record = MintInitRecord(mint_address=record)

        if record.mint_address in self._records:
            return False

        self._records[record.mint_address] = record
        try:
            await self.persist()
        except PersistenceError as e:
            self.write_failures += 1
            self.last_write_error = str(e)
            logger.error(str(e))
        return True

    async def persist(self) -> None:
        """
        Rewrite the mints file with the full current set.

        The address list is copied on the event loop and written off it.

        Raises:
            PersistenceError: If the file cannot be written
        """
        if self.path is None:
            return
        addresses = list(self._records)
        try:
            await asyncio.to_thread(Utils.write_json_atomic, self.path, addresses)
        except (OSError, TypeError) as e:
            raise PersistenceError(f"Error saving mints to {self.path}: {e}") from e
        self.last_write_error = None
        logger.debug(f"Persisted {len(addresses)} mints to {self.path}")

    def addresses(self, limit: Optional[int] = None) -> List[str]:
        """Mint addresses in insertion order, optionally only the most recent ``limit``."""
        addresses = list(self._records)
        if limit is not None:
            addresses = addresses[-limit:] if limit > 0 else []
        return addresses

    def snapshot(self, limit: Optional[int] = None, newest_first: bool = True) -> List[MintInitRecord]:
        """
        Point-in-time copy of the known records.

        Args:
            limit: Keep only the most recent ``limit`` records
            newest_first: Most recently discovered first

        Returns:
            List of MintInitRecord
        """
        records = list(self._records.values())
        if limit is not None:
            records = records[-limit:] if limit > 0 else []
        if newest_first:
            records.reverse()
        return records
