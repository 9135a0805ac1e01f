# src/config/logging_config.py

"""Logging for tracker runs.

A run writes everything to ``<logs_dir>/run_<YYYYmmdd_HHMMSS>.log`` and
echoes INFO and above to stderr, which is where cooldown notices show
up while the process sits out a block.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path

from src.config.settings import Settings

LOGGER_NAME = "backmarket_tracker"

_FILE_FORMAT = (
    "%(asctime)s | %(levelname)-8s | %(name)s | %(module)s:%(funcName)s:%(lineno)d | "
    "%(message)s"
)
_CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _handler(
    handler: logging.Handler, level: int, fmt: str,
) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt, datefmt=_DATE_FORMAT))
    return handler


def run_log_path(logs_dir: Path, started: datetime | None = None) -> Path:
    """Log file path for a run started at *started* (default: now)."""
    stamp = (started or datetime.now()).strftime("%Y%m%d_%H%M%S")
    return logs_dir / f"run_{stamp}.log"


def setup_logging(logs_dir: Path | None = None) -> Path:
    """Attach the run's file and console handlers, returning the log path.

    Calling it again in the same process keeps the handlers already
    installed, so a ``--repeat`` loop or a test suite does not log twice.
    """
    target_dir = logs_dir or Settings.LOGS_DIR
    target_dir.mkdir(parents=True, exist_ok=True)
    log_file = run_log_path(target_dir)

    tracker_logger = logging.getLogger(LOGGER_NAME)
    tracker_logger.setLevel(logging.DEBUG)
    if tracker_logger.handlers:
        return log_file

    tracker_logger.addHandler(
        _handler(
            logging.FileHandler(log_file, encoding="utf-8"),
            logging.DEBUG,
            _FILE_FORMAT,
        )
    )
    tracker_logger.addHandler(
        _handler(
            logging.StreamHandler(sys.stderr), logging.INFO, _CONSOLE_FORMAT
        )
    )
    tracker_logger.info("Logging to %s", log_file)
    return log_file
