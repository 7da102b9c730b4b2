"""
utils/logger.py
---------------
Logging setup shared by every layer.
Modules call `get_logger(__name__)`; the root logger is configured lazily
on first use, with the level taken from the LOG_LEVEL environment variable.
"""

import logging
import os
import sys

_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
_configured = False


def _resolve_level(raw: str | None) -> int:
    """Map a level name like 'debug' to its logging constant (INFO if unknown)."""
    if not raw:
        return logging.INFO
    level = logging.getLevelName(raw.strip().upper())
    return level if isinstance(level, int) else logging.INFO


def configure_logging(level: str | None = None) -> None:
    """
    Attach the stdout handler to the root logger.

    Args:
        level: Level name overriding LOG_LEVEL. Calling again only
            changes the level, it never adds a second handler.
    """
    global _configured
    root = logging.getLogger()
    root.setLevel(_resolve_level(level or os.getenv("LOG_LEVEL")))
    if _configured:
        return
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(_LOG_FORMAT, _DATE_FORMAT))
    root.addHandler(handler)
    _configured = True


def get_logger(name: str) -> logging.Logger:
    """
    Get a named logger instance.

    Args:
        name: Usually ``__name__`` of the calling module.

    Returns:
        A logging.Logger attached to the configured root.
    """
    if not _configured:
        configure_logging()
    return logging.getLogger(name)
