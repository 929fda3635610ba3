"""
Top-level package for photo event detection.

Groups a photo collection into events (ceremony, dinner, party, ...) by
density clustering of capture times, then names each event with a fixed set
of heuristics.

The functionality is organised into smaller modules:

- :mod:`photo_events.models` – ``Photo`` input records and ``Event`` output records.
- :mod:`photo_events.timeseries` – timestamp parsing and the minutes-since-first-photo projection.
- :mod:`photo_events.clustering` – sorted-sweep DBSCAN and gap splitting over the projection.
- :mod:`photo_events.classifier` – ordered heuristic rules, colors and device tallies.
- :mod:`photo_events.events` – clustering, gap detection and epsilon suggestion entry points.
- :mod:`photo_events.editor` – manual split and merge of events.
- :mod:`photo_events.config` – option dataclasses and command line parsing.
- :mod:`photo_events.images` – scanning folders and reading EXIF capture metadata.
- :mod:`photo_events.db` – SQLite records of runs and photo-to-event assignments.
- :mod:`photo_events.export` – Parquet export of events.
- :mod:`photo_events.pipeline` – orchestrates a full run.

You can run a detection from the command line using the ``photo-events``
script installed by this package.
"""

from loguru import logger

from .config import ClusterOptions
from .editor import merge_events, split_event_at
from .errors import ConfigurationError, DataError, PhotoEventsError
from .events import build_event, cluster_photos_by_time, detect_events_by_gap, suggest_epsilon
from .models import DeviceCount, Event, EventType, Photo

# Silent unless the application opts in (see photo_events.log.init_logging).
logger.disable(__name__)

__all__ = [
    "ClusterOptions",
    "ConfigurationError",
    "DataError",
    "DeviceCount",
    "Event",
    "EventType",
    "Photo",
    "PhotoEventsError",
    "build_event",
    "cluster_photos_by_time",
    "detect_events_by_gap",
    "merge_events",
    "split_event_at",
    "suggest_epsilon",
]
