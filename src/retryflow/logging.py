"""Logging setup for the retryflow command line.

Library modules only call ``logging.getLogger(__name__)``; handlers are
attached here, on the ``retryflow`` logger, when the CLI starts. Console
output always goes to stderr because stdout carries the retried command's
output.
"""

from __future__ import annotations

import logging as py_logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING, TextIO

if TYPE_CHECKING:
    from .config import RetrySettings

LOG_LEVELS = {
    "DEBUG": py_logging.DEBUG,
    "INFO": py_logging.INFO,
    "WARN": py_logging.WARNING,
    "WARNING": py_logging.WARNING,
    "ERROR": py_logging.ERROR,
}
LOGGER_NAME = "retryflow"
CONSOLE_FORMAT = "retryflow %(levelname)s %(message)s"
FILE_FORMAT = "%(asctime)s %(levelname)s [%(threadName)s] %(name)s:%(lineno)d %(message)s"

logger = py_logging.getLogger(LOGGER_NAME)


def normalize_level(level: str) -> str:
    normalized = level.strip().upper()
    if normalized == "WARNING":
        normalized = "WARN"
    return normalized


def resolve_level(level: str) -> int:
    return LOG_LEVELS.get(normalize_level(level), py_logging.INFO)


def reset_logging() -> None:
    """Detach and close every handler installed by :func:`configure_logging`."""
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(py_logging.NOTSET)
    logger.propagate = True


def _attempt_log_file(path: str | Path) -> py_logging.Handler | None:
    log_path = Path(path).expanduser()
    if not log_path.is_absolute():
        log_path = log_path.resolve()
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handler = py_logging.FileHandler(log_path, encoding="utf-8")
    except OSError as exc:
        logger.warning("Cannot open log file %s (%s); logging to stderr only", log_path, exc)
        return None
    # retry history is kept in full regardless of the console level
    handler.setLevel(py_logging.DEBUG)
    handler.setFormatter(py_logging.Formatter(FILE_FORMAT))
    return handler


def configure_logging(
    level: str = "INFO",
    stream: TextIO | None = None,
    *,
    log_file: str | Path | None = None,
) -> py_logging.Logger:
    reset_logging()
    console_level = resolve_level(level)

    console = py_logging.StreamHandler(stream or sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(py_logging.Formatter(CONSOLE_FORMAT))
    logger.addHandler(console)
    logger.propagate = False

    if not log_file:
        logger.setLevel(console_level)
        return logger

    file_handler = _attempt_log_file(log_file)
    if file_handler is None:
        logger.setLevel(console_level)
    else:
        logger.addHandler(file_handler)
        logger.setLevel(py_logging.DEBUG)
    return logger


def configure_from_settings(
    settings: RetrySettings,
    *,
    level: str | None = None,
    log_file: str | Path | None = None,
    stream: TextIO | None = None,
) -> py_logging.Logger:
    """Configure logging from loaded settings; explicit arguments win over the file."""
    resolved_file: str | Path | None = log_file or settings.log_file or None
    return configure_logging(level or settings.log_level, stream, log_file=resolved_file)
