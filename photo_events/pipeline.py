"""
High-level orchestration of an event detection run.

This module ties together the lower-level components: scanning photos,
choosing the clustering epsilon, detecting events, recording the run and the
photo-to-event assignments in SQLite, and exporting the events to Parquet.
"""

from __future__ import annotations

from typing import List

from loguru import logger

from .config import RunConfig
from .db import (
    init_db, record_run_start, record_run_end, update_run_status,
    insert_photos, insert_events, assign_photos_to_event,
)
from .errors import ConfigurationError
from .events import cluster_photos_by_time, detect_events_by_gap, suggest_epsilon
from .export import write_events_parquet
from .images import scan_photos
from .models import Event, Photo


def detect_events(config: RunConfig, photos: List[Photo]) -> List[Event]:
    """Run the configured detection method over already scanned photos."""
    if config.method == "gaps":
        return detect_events_by_gap(photos, config.min_gap_hours)
    if config.method != "dbscan":
        raise ConfigurationError(f"Unknown detection method: {config.method!r}")
    suggested = None
    if config.epsilon_minutes is None:
        suggested = suggest_epsilon(photos)
        logger.info("Using suggested epsilon of {} minutes", suggested)
    options = config.cluster_options(suggested)
    return cluster_photos_by_time(photos, options)


def run_pipeline(config: RunConfig) -> List[Event]:
    """Scan ``config.input_dir``, detect events and persist/export the results.

    When ``config.db_path`` is set the run, its photos and its events are
    recorded and each clustered photo gets its event ID written back.  A
    failure marks the run as ``"interrupted"`` and is re-raised.

    Parameters
    ----------
    config: RunConfig
        Configuration settings for this run.

    Returns
    -------
    list of Event
        Detected events sorted by start time.
    """
    photos = list(scan_photos(config.input_dir, use_phash=config.use_phash,
                              mtime_fallback=config.mtime_fallback))
    logger.info("Scanned {} photos under {}", len(photos), config.input_dir)

    if config.db_path is None:
        events = detect_events(config, photos)
    else:
        engine = init_db(config.db_path)
        try:
            with engine.connect() as conn:
                run_id = record_run_start(
                    conn,
                    input_dir=config.input_dir,
                    method=config.method,
                    parameters=config.parameters(),
                    command_line=config.command_line,
                )
                try:
                    events = detect_events(config, photos)
                    insert_photos(conn, run_id, photos)
                    event_ids = insert_events(conn, run_id, events)
                    for event_id, event in zip(event_ids, events):
                        assign_photos_to_event(conn, run_id, event_id, event.photo_ids)
                except Exception as exc:
                    if conn.in_transaction():
                        conn.rollback()
                    update_run_status(conn, run_id, "interrupted", notes=str(exc))
                    logger.error("Run {} interrupted: {}", run_id, exc)
                    raise
                status = "done" if photos else "no_photos"
                record_run_end(conn, run_id, status=status, n_photos=len(photos), n_events=len(events))
                logger.info("Recorded run {} with {} events", run_id, len(events))
        finally:
            engine.dispose()

    if config.export_path is not None:
        n_rows = write_events_parquet(config.export_path, events)
        logger.info("Exported {} events to {}", n_rows, config.export_path)
    return events
