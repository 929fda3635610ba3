"""
Command-line entry point for photo event detection.

This module parses command line arguments, constructs a :class:`RunConfig`
object, sets up logging and dispatches to the pipeline runner.
"""

from __future__ import annotations

import sys

from loguru import logger

from .config import parse_args
from .errors import PhotoEventsError
from .log import init_logging
from .pipeline import run_pipeline


def format_event(event) -> str:
    """One-line human readable summary of an event."""
    return (
        f"{event.start_time:%Y-%m-%d %H:%M} - {event.end_time:%H:%M}  "
        f"{event.name:<18} {event.photo_count:>5} photos  "
        f"{event.duration:>4} min  {event.photo_density:6.1f}/h  "
        f"[{event.event_type.value}, {event.confidence:.2f}]"
    )


def main(argv: list[str] | None = None) -> int:
    """Entry point called by the ``photo-events`` script."""
    cfg = parse_args(argv)
    init_logging(cfg.log_dir, cfg.log_level)
    try:
        events = run_pipeline(cfg)
    except PhotoEventsError as exc:
        logger.error("{}", exc)
        return 2
    for event in events:
        print(format_event(event))
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
