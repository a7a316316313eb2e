"""Logging setup for the CLI and long-running watch loop.

Library modules only call ``logging.getLogger(__name__)``; handlers are
attached here, once, on the ``vellum`` logger.
"""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOGGER_NAME = "vellum"
CONSOLE_FORMAT = "%(levelname)s | %(message)s"
FILE_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_MAX_BYTES = 2 * 1024 * 1024
LOG_FILE_BACKUPS = 3

_LEVEL_MAP: dict[str, int] = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}
_HANDLER_TAG = "_vellum_handler"


def parse_level(level: str | int) -> int:
    """Map a level name or number to a ``logging`` constant, defaulting to INFO."""
    if isinstance(level, int):
        return level
    return _LEVEL_MAP.get(str(level).strip().upper(), logging.INFO)


def _remove_our_handlers(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        if getattr(handler, _HANDLER_TAG, False):
            logger.removeHandler(handler)
            handler.close()


def configure_logging(
    level: str | int = "INFO",
    log_file: Path | None = None,
    *,
    force: bool = False,
) -> logging.Logger:
    """Attach console (and optional rotating file) handlers to the package logger.

    Repeated calls are no-ops unless ``force`` is set, so tests and the CLI
    can both call this without stacking handlers.
    """
    logger = logging.getLogger(LOGGER_NAME)
    already_configured = any(getattr(handler, _HANDLER_TAG, False) for handler in logger.handlers)
    if already_configured and not force:
        return logger

    _remove_our_handlers(logger)
    level_int = parse_level(level)
    logger.setLevel(level_int)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level_int)
    console.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    setattr(console, _HANDLER_TAG, True)
    logger.addHandler(console)

    if log_file is not None:
        try:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                log_file,
                maxBytes=LOG_FILE_MAX_BYTES,
                backupCount=LOG_FILE_BACKUPS,
                encoding="utf-8",
            )
        except OSError:
            logger.warning("cannot open log file %s; logging to stderr only", log_file)
        else:
            file_handler.setLevel(level_int)
            file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
            setattr(file_handler, _HANDLER_TAG, True)
            logger.addHandler(file_handler)

    return logger


__all__ = [
    "configure_logging",
    "parse_level",
]
