"""
Cursor store: the last fully processed slot.
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union

from .common import Utils
from .solana_error import PersistenceError

logger = logging.getLogger(__name__)


class CursorStore:
    """
    Holds ``last_processed_slot`` and optionally mirrors it to a JSON file.

    The cursor only moves forward through ``advance``; ``reset`` is the
    explicit operator escape hatch and the only way to move it back.
    """

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self.path = Path(path) if path else None
        self._slot: Optional[int] = None
        self.updated_at: Optional[datetime] = None

    @property
    def last_processed_slot(self) -> Optional[int]:
        return self._slot

    @property
    def is_initialized(self) -> bool:
        return self._slot is not None

    def load(self) -> Optional[int]:
        """
        Read the persisted cursor.

        Returns:
            The persisted slot, or None when there is nothing usable on disk
        """
        if self.path is None or not self.path.exists():
            return None
        try:
            data = Utils.read_json(self.path)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to read cursor from {self.path}: {e}")
            return None

        slot = data.get('last_processed_slot') if isinstance(data, dict) else None
        if not isinstance(slot, int) or isinstance(slot, bool) or slot < 0:
            logger.error(f"Cursor file {self.path} has no valid last_processed_slot")
            return None

        self._slot = slot
        logger.info(f"Resuming from persisted cursor {slot}")
        return slot

    def initialize(self, slot: int) -> None:
        """Set the starting cursor when nothing was persisted."""
        if slot < 0:
            raise ValueError(f"Cursor cannot be negative: {slot}")
        self._slot = slot
        self.updated_at = datetime.now(timezone.utc)

    def advance(self, slot: int) -> bool:
        """
        Move the cursor forward to ``slot``.

        Returns:
            True if the cursor moved, False if ``slot`` is not ahead of it
        """
        if self._slot is not None and slot <= self._slot:
            return False
        self._slot = slot
        self.updated_at = datetime.now(timezone.utc)
        return True

    def reset(self, slot: int) -> None:
        """Operator reset: set the cursor to any slot, including backwards. Call ``persist`` to keep it."""
        if slot < 0:
            raise ValueError(f"Cursor cannot be negative: {slot}")
        logger.warning(f"Cursor reset from {self._slot} to {slot}")
        self._slot = slot
        self.updated_at = datetime.now(timezone.utc)

    def persist(self) -> None:
        """
        Write the cursor to disk.

        Raises:
            PersistenceError: If the file cannot be written
        """
        if self.path is None or self._slot is None:
            return
        payload = {
            'last_processed_slot': self._slot,
            'updated_at': (self.updated_at or datetime.now(timezone.utc)).isoformat(),
        }
        try:
            Utils.write_json_atomic(self.path, payload)
        except OSError as e:
            raise PersistenceError(f"Error saving cursor to {self.path}: {e}") from e
