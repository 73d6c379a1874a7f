"""Application-wide logging setup.

The TUI owns the terminal, so records go to a rotating file in the user log
directory instead of the console.
"""

from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path

from .store.paths import LOG_FILENAME

LOG_LEVEL_ENV = "TROOPER_LOG_LEVEL"
DEFAULT_LOG_LEVEL = "WARNING"
MAX_LOG_BYTES = 1_000_000
LOG_BACKUP_COUNT = 3
LOG_FORMAT = "%(asctime)s [%(process)d] %(levelname)s %(name)s: %(message)s"


def resolve_log_level(name: str | None) -> int:
    """Map a level name (CLI flag or env var) to a ``logging`` level."""
    candidate = (name or os.environ.get(LOG_LEVEL_ENV) or DEFAULT_LOG_LEVEL).upper()
    level = logging.getLevelName(candidate)
    return level if isinstance(level, int) else logging.WARNING


def configure_logging(log_dir: Path, level: int = logging.WARNING) -> Path | None:
    """Attach a rotating file handler to the ``trooper`` logger.

    Returns the log file path, or ``None`` when the directory is not writable;
    the app still runs in that case, just without a log.
    """
    logger = logging.getLogger("trooper")
    logger.setLevel(level)
    logger.propagate = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    log_path = log_dir / LOG_FILENAME
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(
            log_path,
            maxBytes=MAX_LOG_BYTES,
            backupCount=LOG_BACKUP_COUNT,
            encoding="utf-8",
        )
    except OSError:
        logger.addHandler(logging.NullHandler())
        return None
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.setLevel(level)
    logger.addHandler(handler)
    return log_path
