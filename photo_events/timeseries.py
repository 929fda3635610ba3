"""
Temporal projection of photo collections.

Photos are sorted chronologically and each one is mapped to the number of
minutes elapsed since the earliest capture.  The resulting one dimensional
array is the axis used by :mod:`photo_events.clustering`.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Any, Iterable, Iterator, List, NamedTuple, Optional, Tuple

import numpy as np

from .errors import DataError
from .models import Photo, PhotoLike, as_photo

_EXIF_FORMAT = "%Y:%m:%d %H:%M:%S"


class TemporalPoint(NamedTuple):
    """A photo index paired with its minutes since the first photo."""

    index: int
    minutes: float


@dataclass(frozen=True, eq=False)
class TimeSeries:
    """Chronologically sorted photos with their parsed times and projection."""

    photos: Tuple[Photo, ...]
    times: Tuple[datetime, ...]
    projection: np.ndarray

    def __len__(self) -> int:
        return len(self.photos)

    def points(self) -> Iterator[TemporalPoint]:
        for idx, minutes in enumerate(self.projection):
            yield TemporalPoint(idx, float(minutes))


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse a capture timestamp, returning ``None`` when it cannot be read.

    Accepts :class:`datetime`, :class:`date` (midnight), ISO 8601 strings
    (a trailing ``Z`` is read as UTC) and EXIF ``YYYY:MM:DD HH:MM:SS`` strings.
    """
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time())
    if isinstance(value, bytes):
        value = value.decode("ascii", errors="ignore")
    if not isinstance(value, str):
        return None
    text = value.strip().strip("\x00")
    if not text:
        return None
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.strptime(text, _EXIF_FORMAT)
    except ValueError:
        return None


def capture_time(photo: Photo) -> datetime:
    """Return the parsed capture time of ``photo`` or raise :class:`DataError`."""
    if photo.captured_at is None:
        raise DataError(f"Photo {photo.id!r} has no capture timestamp")
    parsed = parse_timestamp(photo.captured_at)
    if parsed is None:
        raise DataError(f"Photo {photo.id!r} has an unparsable capture timestamp: {photo.captured_at!r}")
    return parsed


def sort_by_capture_time(photos: Iterable[PhotoLike]) -> List[Tuple[datetime, Photo]]:
    """Return ``(time, photo)`` pairs in stable chronological order."""
    pairs = []
    for item in photos:
        photo = as_photo(item)
        pairs.append((capture_time(photo), photo))
    aware = {ts.tzinfo is not None and ts.utcoffset() is not None for ts, _ in pairs}
    if len(aware) > 1:
        raise DataError("Cannot mix timezone-aware and naive capture timestamps")
    # sorted() is stable, so equal timestamps keep their input order
    return sorted(pairs, key=lambda pair: pair[0])


def extract_time_series(photos: Optional[Iterable[PhotoLike]]) -> TimeSeries:
    """Sort ``photos`` and project them onto minutes since the first capture."""
    pairs = sort_by_capture_time(photos or [])
    if not pairs:
        return TimeSeries(photos=(), times=(), projection=np.zeros(0, dtype=np.float64))
    first = pairs[0][0]
    projection = np.array(
        [(ts - first).total_seconds() / 60.0 for ts, _ in pairs],
        dtype=np.float64,
    )
    return TimeSeries(
        photos=tuple(p for _, p in pairs),
        times=tuple(ts for ts, _ in pairs),
        projection=projection,
    )


def consecutive_gaps(projection: np.ndarray) -> np.ndarray:
    """Minutes between each pair of adjacent photos (length ``N - 1``)."""
    return np.diff(projection)
