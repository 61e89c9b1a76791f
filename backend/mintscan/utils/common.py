"""
Common utility functions for the Mintscan application.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Union

logger = logging.getLogger(__name__)


class Utils:
    """
    Utility class with static methods for common operations.
    """

    @staticmethod
    def write_json_atomic(path: Union[str, Path], data: Any, indent: int = 2) -> None:
        """
        Write JSON to ``path`` so readers only ever see the old or the new file.

        The payload goes to a temporary file in the same directory, is fsynced,
        and then renamed over the destination.

        Args:
            path: Destination file
            data: JSON serializable payload
            indent: JSON indentation

        Raises:
            OSError: If the file cannot be written
        """
        path = Path(path)
        directory = path.parent
        directory.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=directory)
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as fh:
                json.dump(data, fh, indent=indent)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except OSError:
                pass
            raise

    @staticmethod
    def read_json(path: Union[str, Path]) -> Any:
        """
        Read a JSON file.

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If the content is not valid JSON
        """
        with open(path, 'r', encoding='utf-8') as fh:
            return json.load(fh)
