"""
Centralized logging setup for resultbook.

``get_logger`` hands out module loggers that share one console handler and,
when ``LOG_FILE`` is configured, one rotating file handler.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import List

from resultbook.config.settings import settings

_MAX_BYTES = 5 * 1024 * 1024
_BACKUP_COUNT = 3
_FMT = "%(asctime)s | %(levelname)-8s | %(name)-30s | %(message)s"
_DATE_FMT = "%Y-%m-%d %H:%M:%S"

_formatter = logging.Formatter(_FMT, datefmt=_DATE_FMT)

_console_handler = logging.StreamHandler(sys.stderr)
_console_handler.setFormatter(_formatter)
_console_handler.setLevel(getattr(logging, settings.log_level, logging.INFO))

_handlers: List[logging.Handler] = [_console_handler]

if settings.log_file:
    Path(settings.log_file).parent.mkdir(parents=True, exist_ok=True)
    _file_handler = RotatingFileHandler(
        settings.log_file, maxBytes=_MAX_BYTES, backupCount=_BACKUP_COUNT, encoding="utf-8"
    )
    _file_handler.setFormatter(_formatter)
    _file_handler.setLevel(logging.DEBUG)
    _handlers.append(_file_handler)


def get_logger(name: str) -> logging.Logger:
    """
    Return a logger identified by *name*.

    Args:
        name: Typically ``__name__`` of the calling module.

    Returns:
        A :class:`logging.Logger` wired to the shared handlers.
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        logger.setLevel(logging.DEBUG)
        for handler in _handlers:
            logger.addHandler(handler)
        logger.propagate = False
    return logger
