"""
Logging configuration for the Mintscan project
"""
import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Optional

LOG_DIR = os.getenv('LOG_DIR', 'logs')
LOG_FILE_MAX_BYTES = 50 * 1024 * 1024
LOG_FILE_BACKUPS = 10

CONSOLE_FORMAT = '%(levelname)s: %(message)s'
FILE_FORMAT = '%(asctime)s %(levelname)-8s %(name)s: %(message)s'

# Third-party loggers that are chatty at INFO
NOISY_LOGGERS = ('aiohttp', 'httpx', 'httpcore', 'uvicorn.access')


def _file_handler(name: str, level: int, log_dir: str) -> Optional[logging.Handler]:
    path = Path(log_dir)
    try:
        path.mkdir(parents=True, exist_ok=True)
        handler = logging.handlers.RotatingFileHandler(
            path / f"{name.replace('.', '_')}.log",
            maxBytes=LOG_FILE_MAX_BYTES,
            backupCount=LOG_FILE_BACKUPS,
            encoding='utf-8',
        )
    except OSError as e:
        logging.getLogger(name).warning(f"File logging disabled, cannot use {log_dir}: {e}")
        return None
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(FILE_FORMAT))
    return handler


def setup_logging(name: str, level: int = logging.INFO, log_dir: Optional[str] = None) -> logging.Logger:
    """
    Attach a console handler, and a rotating file handler when ``log_dir`` is
    set, to the ``name`` logger. Calling it again replaces the handlers.

    Args:
        name: Logger to configure, normally the package name
        level: Logging level for the logger and its handlers
        log_dir: Directory for the log file, defaults to ``LOG_DIR``.
            An empty value keeps logging on the console only.
    """
    log_dir = LOG_DIR if log_dir is None else log_dir
    logger = logging.getLogger(name)
    logger.setLevel(level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    # Module loggers propagate up to this one, not to root
    logger.propagate = False

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    console.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    logger.addHandler(console)

    if log_dir:
        file_handler = _file_handler(name, level, log_dir)
        if file_handler is not None:
            logger.addHandler(file_handler)

    return logger


def configure_package_logging(level: str = 'INFO') -> logging.Logger:
    """Configure the ``mintscan`` logger tree and quiet noisy HTTP libraries."""
    logger = setup_logging('mintscan', getattr(logging, level.upper(), logging.INFO))
    for noisy in NOISY_LOGGERS:
        logging.getLogger(noisy).setLevel(logging.WARNING)
    return logger
