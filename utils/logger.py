"""
utils/logger.py
---------------
Process-wide logging setup for the library records core.
Every module obtains its logger through `get_logger(__name__)`;
the root handler is attached exactly once, on first use.
"""

import logging
import sys

from config import LOG_LEVEL

_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# httpx logs every storage request at INFO
_NOISY_LOGGERS = ("httpx", "httpcore")

_initialized = False


def _init_logging() -> None:
    """Attach a stdout handler to the root logger and set levels."""
    global _initialized
    if _initialized:
        return
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(_LOG_FORMAT, _DATE_FORMAT))

    root = logging.getLogger()
    root.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))
    root.addHandler(handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    _initialized = True


def get_logger(name: str) -> logging.Logger:
    """
    Return the named logger, configuring logging on first call.

    Args:
        name: Usually ``__name__`` of the calling module.
    """
    _init_logging()
    return logging.getLogger(name)
