"""
Domain records shared by the clustering, classification and editing code.

:class:`Photo` is the read-only input supplied by a photo source,
:class:`Event` is the immutable output built for each detected cluster.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple, Union

Timestamp = Union[datetime, date, str]


class EventType(str, Enum):
    """Closed set of event types produced by the classifier."""

    CEREMONY = "ceremony"
    COCKTAILS = "cocktails"
    DINNER = "dinner"
    FIRST_DANCE = "first_dance"
    PARTY = "party"
    PREP = "prep"
    UNKNOWN = "unknown"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Photo:
    """A photo as handed over by the photo source.

    ``captured_at`` is kept as given; parsing and validation happen in
    :mod:`photo_events.timeseries` so that bad timestamps surface as
    :class:`~photo_events.errors.DataError` at clustering time.
    """

    id: Any
    captured_at: Optional[Timestamp]
    device_make: Optional[str] = None
    device_model: Optional[str] = None

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Photo":
        """Build a photo from a mapping using camelCase or snake_case keys."""
        def pick(*keys: str) -> Any:
            for key in keys:
                if key in record:
                    return record[key]
            return None

        return cls(
            id=pick("id"),
            captured_at=pick("capturedAt", "captured_at"),
            device_make=pick("deviceMake", "device_make"),
            device_model=pick("deviceModel", "device_model"),
        )


PhotoLike = Union[Photo, Mapping[str, Any]]


def as_photo(item: PhotoLike) -> Photo:
    """Return ``item`` as a :class:`Photo`, converting mappings."""
    if isinstance(item, Photo):
        return item
    if isinstance(item, Mapping):
        return Photo.from_record(item)
    raise TypeError(f"Expected Photo or mapping, got {type(item).__name__}")


@dataclass(frozen=True)
class DeviceCount:
    """Number of photos in an event taken with one camera model."""

    model: str
    count: int


@dataclass(frozen=True)
class Event:
    """A detected (or manually edited) event.

    Attributes
    ----------
    name: str
        Display name chosen by the classifier, e.g. ``"Ceremony"``.
    start_time, end_time: datetime
        Capture times of the first and last photo.
    photo_count: int
        Number of photos; always equal to ``len(photo_ids)``.
    photo_ids: tuple
        Photo identifiers in chronological order.
    duration: int
        Elapsed minutes between first and last photo, rounded half up.
    photo_density: float
        Photos per hour; the hour denominator never drops below 0.1.
    devices: tuple of DeviceCount
        Camera model tally in order of first appearance.
    event_type: EventType
        Classifier label.
    suggested_color: str
        Hex display color keyed by ``event_type``.
    confidence: float
        Heuristic match strength in [0, 1].
    """

    name: str
    start_time: datetime
    end_time: datetime
    photo_count: int
    photo_ids: Tuple[Any, ...]
    duration: int
    photo_density: float
    devices: Tuple[DeviceCount, ...] = field(default_factory=tuple)
    event_type: EventType = EventType.UNKNOWN
    suggested_color: str = "#6B7280"
    confidence: float = 0.4

    def to_record(self) -> Dict[str, Any]:
        """Return a JSON friendly dictionary (ISO timestamps, plain lists)."""
        return {
            "name": self.name,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat(),
            "photo_count": self.photo_count,
            "photo_ids": list(self.photo_ids),
            "duration": self.duration,
            "photo_density": self.photo_density,
            "devices": [{"model": d.model, "count": d.count} for d in self.devices],
            "event_type": self.event_type.value,
            "suggested_color": self.suggested_color,
            "confidence": self.confidence,
        }


