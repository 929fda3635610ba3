"""Logging initialization utilities using loguru."""

from __future__ import annotations

import sys
from pathlib import Path

from loguru import logger

PACKAGE = "photo_events"


def init_logging(log_dir: str | Path | None = None, level: str = "INFO") -> None:
    """Enable package logging to stderr and, optionally, rotating log files."""
    logger.remove()
    logger.enable(PACKAGE)
    logger.add(sys.stderr, level=level, backtrace=False, diagnose=False)
    if log_dir is None:
        return
    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)
    logger.add(
        str(log_path / "photo_events_{time:YYYYMMDD}.log"),
        rotation="10 MB",
        retention="10 days",
        compression="zip",
        enqueue=True,
        backtrace=False,
        diagnose=False,
        level=level,
    )


def find_latest_log_file(log_dir: str | Path) -> Path | None:
    """Find the latest log file in the specified directory."""
    try:
        log_path = Path(log_dir)
        if not log_path.exists():
            return None
        log_files = list(log_path.glob("photo_events_*.log"))
        if not log_files:
            return None
        return max(log_files, key=lambda p: p.stat().st_mtime)
    except OSError:
        return None
