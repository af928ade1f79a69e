"""Logging setup for the slightly namespace."""

from __future__ import annotations

import logging
from pathlib import Path

LOGGER_NAME = "slightly"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(level: int = logging.WARNING, *, log_path: str | Path | None = None) -> logging.Logger:
    """
    Configure the package logger.

    Every module logs through ``logging.getLogger(__name__)``, so one handler on
    the ``slightly`` logger catches everything. Calling this again replaces the
    handler instead of stacking a new one.

    Args:
        level: Logging level for the package logger.
        log_path: Append to this file instead of writing to stderr.
    """
    if log_path is not None:
        path = Path(log_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = logging.FileHandler(path, encoding="utf-8")
    else:
        handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    for old in logger.handlers:
        old.close()
    logger.handlers = [handler]
    logger.propagate = False
    return logger
