"""
Exception hierarchy for photo event detection.

All errors raised on purpose by this package derive from
:class:`PhotoEventsError` so callers can catch them in one place.
"""

from __future__ import annotations


class PhotoEventsError(Exception):
    """Base class for errors raised by :mod:`photo_events`."""


class DataError(PhotoEventsError):
    """A photo record is missing data required for clustering (e.g. a capture time)."""


class ConfigurationError(PhotoEventsError):
    """Clustering parameters are outside their valid range."""
