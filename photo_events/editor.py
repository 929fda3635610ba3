"""
Manual corrections of detected events.

Splitting and merging rebuild events from scratch with
:func:`photo_events.events.build_event`, so duration, density, device tally
and classification always reflect the photos an event ends up with.
"""

from __future__ import annotations

from typing import Any, Iterable, List, Optional

from loguru import logger

from .errors import DataError
from .events import build_event
from .models import Event, PhotoLike, as_photo
from .timeseries import capture_time, parse_timestamp


def split_event_at(photos: Optional[Iterable[PhotoLike]], split_time: Any) -> List[Event]:
    """Split an event's photos at ``split_time``.

    Photos captured at or before ``split_time`` form the first event, later
    photos the second.  Empty sides produce no event, so 0, 1 or 2 events
    are returned.
    """
    items = [as_photo(p) for p in (photos or [])]
    if not items:
        return []
    boundary = parse_timestamp(split_time)
    if boundary is None:
        raise DataError(f"Unparsable split time: {split_time!r}")
    before, after = [], []
    for photo in items:
        try:
            is_before = capture_time(photo) <= boundary
        except TypeError as exc:
            raise DataError("Split time and capture times must both be timezone-aware or both naive") from exc
        (before if is_before else after).append(photo)
    events = [build_event(part) for part in (before, after) if part]
    logger.debug("Split {} photos at {} into {} events", len(items), boundary.isoformat(), len(events))
    return events


def merge_events(photo_groups: Optional[Iterable[Iterable[PhotoLike]]]) -> Optional[Event]:
    """Merge several photo groups into a single event.

    Returns ``None`` when all groups are empty.
    """
    merged = [photo for group in (photo_groups or []) for photo in (group or [])]
    event = build_event(merged)
    if event is not None:
        logger.debug("Merged {} photos into one event", event.photo_count)
    return event
