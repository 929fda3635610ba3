"""
Database layer recording detection runs and event assignments.

We maintain a SQLite database with three tables: ``runs`` (one row per
invocation with its parameters and status), ``events`` (the detected events
of a run) and ``photos`` (every scanned photo, with ``event_id`` written back
once the photo has been assigned to an event; noise photos keep ``NULL``).

The tables are created automatically if they do not exist when connecting.
All interactions are implemented using SQLAlchemy Core.
"""

from __future__ import annotations

import datetime as _dt
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import (
    Table, Column, Integer, String, Float, DateTime, JSON, MetaData,
    ForeignKey, create_engine, select, insert, update
)
from sqlalchemy.engine import Engine, Connection
from sqlalchemy.exc import SQLAlchemyError, OperationalError

from .models import Event, Photo


def _make_metadata() -> MetaData:
    """Define and return SQLAlchemy metadata with our table definitions."""
    metadata = MetaData()
    Table(
        "runs", metadata,
        Column("id", Integer, primary_key=True, autoincrement=True),
        Column("input_dir", String, nullable=False),
        Column("method", String, nullable=False),
        Column("parameters", JSON, nullable=False),
        Column("status", String, nullable=False, default="running"),
        Column("start_time", DateTime, nullable=False),
        Column("end_time", DateTime, nullable=True),
        Column("n_photos", Integer, nullable=True),
        Column("n_events", Integer, nullable=True),
        Column("command_line", String, nullable=True),
        Column("notes", String, nullable=True),
    )
    Table(
        "events", metadata,
        Column("id", Integer, primary_key=True, autoincrement=True),
        Column("run_id", Integer, ForeignKey("runs.id"), nullable=False),
        Column("name", String, nullable=False),
        Column("event_type", String, nullable=False),
        Column("start_time", String, nullable=False),  # ISO 8601, timezone kept as given
        Column("end_time", String, nullable=False),
        Column("photo_count", Integer, nullable=False),
        Column("duration", Integer, nullable=False),
        Column("photo_density", Float, nullable=False),
        Column("confidence", Float, nullable=False),
        Column("suggested_color", String, nullable=False),
        Column("devices", JSON, nullable=False),
    )
    Table(
        "photos", metadata,
        Column("id", Integer, primary_key=True, autoincrement=True),
        Column("run_id", Integer, ForeignKey("runs.id"), nullable=False),
        Column("photo_key", String, nullable=False),
        Column("captured_at", String, nullable=True),
        Column("device_make", String, nullable=True),
        Column("device_model", String, nullable=True),
        Column("event_id", Integer, ForeignKey("events.id"), nullable=True),
    )
    return metadata


METADATA = _make_metadata()
RUNS = METADATA.tables["runs"]
EVENTS = METADATA.tables["events"]
PHOTOS = METADATA.tables["photos"]


def _utcnow() -> _dt.datetime:
    return _dt.datetime.now(_dt.timezone.utc).replace(tzinfo=None)


def init_db(db_path: Path) -> Engine:
    """Initialize the database and create tables if they do not exist."""
    engine = create_engine(f"sqlite:///{db_path}")
    METADATA.create_all(engine)
    return engine


def _bulk_insert_with_ids(conn: Connection, table: Table, rows: List[Dict[str, Any]]) -> List[int]:
    """Insert many rows and return their primary keys.

    Uses ``INSERT ... RETURNING`` when available, otherwise falls back to
    row-by-row inserts to remain compatible with older SQLite versions.
    """
    if not rows:
        return []
    try:
        result = conn.execute(insert(table).returning(table.c.id), rows)
        ids = [int(pk) for pk in result.scalars()]
        conn.commit()
        return ids
    except OperationalError as exc:
        if conn.in_transaction():
            conn.rollback()
        if "RETURNING" not in str(exc).upper():
            raise
    except SQLAlchemyError:
        if conn.in_transaction():
            conn.rollback()
        raise

    inserted_ids: List[int] = []
    for row in rows:
        single_result = conn.execute(insert(table).values(**row))
        inserted_ids.append(int(single_result.inserted_primary_key[0]))
    conn.commit()
    return inserted_ids


def record_run_start(conn: Connection, input_dir: Path, method: str,
                     parameters: Dict[str, Any], command_line: Optional[str] = None) -> int:
    """Insert a new run row and return its ID."""
    result = conn.execute(
        insert(RUNS).values(
            input_dir=str(input_dir),
            method=method,
            parameters=parameters,
            status="running",
            start_time=_utcnow(),
            command_line=command_line,
        )
    )
    conn.commit()
    return int(result.inserted_primary_key[0])


def record_run_end(conn: Connection, run_id: int, status: str, n_photos: int, n_events: int,
                   notes: Optional[str] = None) -> None:
    """Mark a run as finished with its final status and counts.

    ``status`` is ``"done"``, ``"no_photos"`` or ``"interrupted"``.
    """
    conn.execute(
        update(RUNS)
        .where(RUNS.c.id == run_id)
        .values(status=status, end_time=_utcnow(), n_photos=n_photos, n_events=n_events, notes=notes)
    )
    conn.commit()


def update_run_status(conn: Connection, run_id: int, status: str, notes: Optional[str] = None) -> None:
    """Update the status (and optionally notes) for a run."""
    conn.execute(update(RUNS).where(RUNS.c.id == run_id).values(status=status, notes=notes))
    conn.commit()


def _iso(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (_dt.datetime, _dt.date)):
        return value.isoformat()
    return str(value)


def insert_photos(conn: Connection, run_id: int, photos: Iterable[Photo]) -> List[int]:
    """Bulk insert scanned photos and return their primary keys."""
    rows = [
        dict(
            run_id=run_id,
            photo_key=str(p.id),
            captured_at=_iso(p.captured_at),
            device_make=p.device_make,
            device_model=p.device_model,
            event_id=None,
        )
        for p in photos
    ]
    return _bulk_insert_with_ids(conn, PHOTOS, rows)


def insert_events(conn: Connection, run_id: int, events: Iterable[Event]) -> List[int]:
    """Bulk insert detected events and return their primary keys in order."""
    rows = [
        dict(
            run_id=run_id,
            name=e.name,
            event_type=e.event_type.value,
            start_time=e.start_time.isoformat(),
            end_time=e.end_time.isoformat(),
            photo_count=e.photo_count,
            duration=e.duration,
            photo_density=float(e.photo_density),
            confidence=float(e.confidence),
            suggested_color=e.suggested_color,
            devices=[{"model": d.model, "count": d.count} for d in e.devices],
        )
        for e in events
    ]
    return _bulk_insert_with_ids(conn, EVENTS, rows)


def assign_photos_to_event(conn: Connection, run_id: int, event_id: Optional[int],
                           photo_keys: Iterable[Any]) -> int:
    """Write ``event_id`` onto the given photos of a run (``None`` unassigns).

    Returns the number of photo rows updated.
    """
    keys = [str(k) for k in photo_keys]
    if not keys:
        return 0
    result = conn.execute(
        update(PHOTOS)
        .where(PHOTOS.c.run_id == run_id)
        .where(PHOTOS.c.photo_key.in_(keys))
        .values(event_id=event_id)
    )
    conn.commit()
    return int(result.rowcount)


def get_run(conn: Connection, run_id: int) -> Optional[Dict[str, Any]]:
    """Retrieve a single run by ID as a dictionary, or ``None`` if not found."""
    row = conn.execute(select(RUNS).where(RUNS.c.id == run_id)).mappings().first()
    return dict(row) if row else None


def list_runs(conn: Connection, status: Optional[str] = None) -> List[Dict[str, Any]]:
    """Return a list of run records, newest first, optionally filtered by status."""
    query = select(RUNS)
    if status:
        query = query.where(RUNS.c.status == status)
    rows = conn.execute(query.order_by(RUNS.c.start_time.desc(), RUNS.c.id.desc())).mappings().all()
    return [dict(row) for row in rows]


def list_events(conn: Connection, run_id: int) -> List[Dict[str, Any]]:
    """Return the events of a run in chronological order."""
    rows = conn.execute(
        select(EVENTS).where(EVENTS.c.run_id == run_id).order_by(EVENTS.c.start_time, EVENTS.c.id)
    ).mappings().all()
    return [dict(row) for row in rows]


def photo_assignments(conn: Connection, run_id: int) -> Dict[str, Optional[int]]:
    """Map each photo key of a run to its assigned event ID (``None`` for noise)."""
    rows = conn.execute(
        select(PHOTOS.c.photo_key, PHOTOS.c.event_id).where(PHOTOS.c.run_id == run_id)
    ).all()
    return {key: event_id for key, event_id in rows}
