"""
Event detection: from a photo collection to classified :class:`Event` records.

All functions here are pure.  They take photos (``Photo`` objects or
mappings with ``id``/``capturedAt``/``deviceMake``/``deviceModel`` keys),
build everything they need per call and keep no state between calls, so
they may be used concurrently from threads or processes.
"""

from __future__ import annotations

import math
import numbers
from datetime import datetime
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Union

import numpy as np
from loguru import logger

from .classifier import classify_event, tally_devices
from .clustering import density_clusters, gap_clusters
from .config import ClusterOptions, DEFAULT_EPSILON_MINUTES
from .errors import ConfigurationError
from .models import Event, Photo, PhotoLike
from .timeseries import TimeSeries, consecutive_gaps, extract_time_series

MIN_DENSITY_HOURS = 0.1
EPSILON_PERCENTILE = 0.75
EPSILON_MIN = 30
EPSILON_MAX = 180


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _event_from_sorted(times: Sequence[datetime], photos: Sequence[Photo]) -> Event:
    """Build an event from photos already in chronological order."""
    start_time, end_time = times[0], times[-1]
    minutes = (end_time - start_time).total_seconds() / 60.0
    density = len(photos) / max(minutes / 60.0, MIN_DENSITY_HOURS)
    label = classify_event(minutes, density, start_time.hour)
    return Event(
        name=label.name,
        start_time=start_time,
        end_time=end_time,
        photo_count=len(photos),
        photo_ids=tuple(p.id for p in photos),
        duration=round_half_up(minutes),
        photo_density=density,
        devices=tuple(tally_devices(photos)),
        event_type=label.event_type,
        suggested_color=label.color,
        confidence=label.confidence,
    )


def _events_from_clusters(series: TimeSeries, clusters: List[List[int]]) -> List[Event]:
    events = [
        _event_from_sorted([series.times[i] for i in cluster], [series.photos[i] for i in cluster])
        for cluster in clusters
    ]
    return sorted(events, key=lambda e: e.start_time)


def build_event(photos: Iterable[PhotoLike]) -> Optional[Event]:
    """Build one event from ``photos`` (any order), or ``None`` if there are none.

    Duration, density, classification, device tally and color are all
    computed from the photos; this is the construction used for clustering
    output as well as for manual splits and merges.
    """
    series = extract_time_series(photos)
    if not len(series):
        return None
    return _event_from_sorted(series.times, series.photos)


def _resolve_options(options: Union[ClusterOptions, Mapping[str, Any], None]) -> ClusterOptions:
    if options is None:
        return ClusterOptions()
    if isinstance(options, ClusterOptions):
        options.validate()
        return options
    if isinstance(options, Mapping):
        return ClusterOptions.from_mapping(dict(options))
    raise ConfigurationError(f"Unsupported options type: {type(options).__name__}")


def cluster_photos_by_time(photos: Optional[Iterable[PhotoLike]],
                           options: Union[ClusterOptions, Mapping[str, Any], None] = None) -> List[Event]:
    """Partition photos into events with density clustering on capture time.

    Parameters
    ----------
    photos: iterable of Photo or mapping
        Photos with capture timestamps, in any order.  ``None`` or an empty
        collection yields no events.
    options: ClusterOptions or mapping, optional
        ``epsilon_minutes`` and ``min_points``; defaults to 60 minutes and
        3 photos.  Mappings may use ``epsilonMinutes``/``minPoints`` keys.

    Returns
    -------
    list of Event
        Events sorted by start time.  Photos that belong to no dense cluster
        (noise) are not part of any event.

    Raises
    ------
    ConfigurationError
        If ``epsilon_minutes <= 0`` or ``min_points < 1``.
    DataError
        If any photo lacks a readable capture timestamp.
    """
    opts = _resolve_options(options)
    series = extract_time_series(photos)
    if not len(series):
        return []
    clusters = density_clusters(series.projection, opts.epsilon_minutes, opts.min_points)
    events = _events_from_clusters(series, clusters)
    logger.debug("Built {} events from {} photos", len(events), len(series))
    return events


def detect_events_by_gap(photos: Optional[Iterable[PhotoLike]], min_gap_hours: float = 2.0) -> List[Event]:
    """Split the timeline into events at every gap of at least ``min_gap_hours``.

    Unlike :func:`cluster_photos_by_time` no photo is discarded: every
    photo belongs to exactly one returned event.
    """
    if isinstance(min_gap_hours, bool) or not isinstance(min_gap_hours, numbers.Real) or not min_gap_hours > 0:
        raise ConfigurationError(f"min_gap_hours must be positive, got {min_gap_hours!r}")
    series = extract_time_series(photos)
    if not len(series):
        return []
    clusters = gap_clusters(series.projection, min_gap_hours * 60.0)
    events = _events_from_clusters(series, clusters)
    logger.debug("Auto-detected {} events with {}h gap threshold", len(events), min_gap_hours)
    return events


def suggest_epsilon(photos: Optional[Sequence[PhotoLike]]) -> int:
    """Suggest a clustering epsilon (minutes) from the gaps between photos.

    The 75th percentile gap (index ``floor(0.75 * n_gaps)`` of the sorted
    gaps) is rounded and clamped to [30, 180].  Fewer than two photos give
    the default of 60.
    """
    photos = list(photos or [])
    if len(photos) < 2:
        return DEFAULT_EPSILON_MINUTES
    series = extract_time_series(photos)
    gaps = np.sort(consecutive_gaps(series.projection))
    idx = int(math.floor(gaps.size * EPSILON_PERCENTILE))
    suggested = round_half_up(float(gaps[idx]))
    logger.debug("Suggested epsilon: {} minutes (from {} gaps)", suggested, gaps.size)
    return max(EPSILON_MIN, min(suggested, EPSILON_MAX))
