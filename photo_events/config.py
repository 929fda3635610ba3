"""
Configuration structures for photo event detection.

:class:`ClusterOptions` carries the two density parameters used by
:func:`photo_events.events.cluster_photos_by_time`.  It is passed explicitly
by callers instead of relying on keyword defaults buried in the clustering
functions.

:class:`RunConfig` describes a full command line run (scan a folder, detect
events, optionally record them in SQLite and export them to Parquet).  The
:func:`parse_args` function converts command line arguments into a
:class:`RunConfig` instance.
"""

from __future__ import annotations

import argparse
import numbers
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Dict, Any

from .errors import ConfigurationError

DEFAULT_EPSILON_MINUTES = 60
DEFAULT_MIN_POINTS = 3
DEFAULT_MIN_GAP_HOURS = 2.0
METHODS = ("dbscan", "gaps")


@dataclass(frozen=True)
class ClusterOptions:
    """Density clustering parameters.

    Attributes
    ----------
    epsilon_minutes: float
        Maximum time gap (minutes) for two photos to count as neighbours.
        Drives the cluster density threshold; must be positive.
    min_points: int
        Minimum neighbour count (self included) for a photo to seed a
        cluster, and the minimum size of an emitted cluster.  Must be >= 1.
    """
    epsilon_minutes: float = DEFAULT_EPSILON_MINUTES
    min_points: int = DEFAULT_MIN_POINTS

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """Raise :class:`ConfigurationError` if a parameter is out of range."""
        eps = self.epsilon_minutes
        if isinstance(eps, bool) or not isinstance(eps, numbers.Real) or not eps > 0:
            raise ConfigurationError(f"epsilon_minutes must be a positive number, got {eps!r}")
        mp = self.min_points
        if isinstance(mp, bool) or not isinstance(mp, numbers.Integral) or mp < 1:
            raise ConfigurationError(f"min_points must be an integer >= 1, got {mp!r}")

    @classmethod
    def from_mapping(cls, options: Optional[Dict[str, Any]]) -> "ClusterOptions":
        """Build options from ``{"epsilonMinutes": .., "minPoints": ..}`` style mappings."""
        options = options or {}
        known = {"epsilonMinutes", "epsilon_minutes", "epsilon", "minPoints", "min_points"}
        unknown = set(options) - known
        if unknown:
            raise ConfigurationError("Unknown clustering options: " + ", ".join(sorted(unknown)))
        eps = options.get("epsilonMinutes", options.get("epsilon_minutes", options.get("epsilon")))
        mp = options.get("minPoints", options.get("min_points"))
        return cls(
            epsilon_minutes=DEFAULT_EPSILON_MINUTES if eps is None else eps,
            min_points=DEFAULT_MIN_POINTS if mp is None else mp,
        )


@dataclass
class RunConfig:
    """Parameters controlling a single command line run.

    Attributes
    ----------
    input_dir: Path
        Directory containing photos to scan (searched recursively).
    db_path: Optional[Path]
        SQLite database recording runs, photos and detected events.  When
        omitted nothing is persisted.
    export_path: Optional[Path]
        Parquet file receiving one row per detected event.
    method: str
        ``"dbscan"`` for density clustering or ``"gaps"`` to split the
        timeline wherever the gap between photos reaches ``min_gap_hours``.
    epsilon_minutes: Optional[float]
        Neighbourhood size for density clustering.  ``None`` asks
        :func:`photo_events.events.suggest_epsilon` for a value.
    min_points: int
        Minimum cluster size for density clustering.
    min_gap_hours: float
        Gap threshold used by the ``"gaps"`` method.
    use_phash: bool
        Skip photos whose perceptual hash was already seen.
    mtime_fallback: bool
        Use the file modification time when EXIF has no capture time.  When
        ``False`` such photos make the run fail with a data error.
    log_dir: Optional[Path]
        Directory for rotating log files; stderr only when omitted.
    log_level: str
        Minimum level for log output.
    command_line: Optional[str]
        Full original command line invocation, recorded for reproducibility.
    """
    input_dir: Path
    db_path: Optional[Path] = None
    export_path: Optional[Path] = None
    method: str = "dbscan"
    epsilon_minutes: Optional[float] = None
    min_points: int = DEFAULT_MIN_POINTS
    min_gap_hours: float = DEFAULT_MIN_GAP_HOURS
    use_phash: bool = False
    mtime_fallback: bool = True
    log_dir: Optional[Path] = None
    log_level: str = "INFO"
    command_line: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def cluster_options(self, suggested_epsilon: Optional[float] = None) -> ClusterOptions:
        """Resolve the density options, preferring an explicit epsilon."""
        eps = self.epsilon_minutes
        if eps is None:
            eps = suggested_epsilon if suggested_epsilon is not None else DEFAULT_EPSILON_MINUTES
        return ClusterOptions(epsilon_minutes=eps, min_points=self.min_points)

    def parameters(self) -> Dict[str, Any]:
        """JSON-serialisable snapshot of the tuning parameters."""
        return {
            "method": self.method,
            "epsilon_minutes": self.epsilon_minutes,
            "min_points": self.min_points,
            "min_gap_hours": self.min_gap_hours,
            "use_phash": self.use_phash,
            "mtime_fallback": self.mtime_fallback,
        }


def parse_args(argv: Optional[list[str]] = None) -> RunConfig:
    """Parse command line arguments and return a :class:`RunConfig` instance.

    Parameters
    ----------
    argv: list of str, optional
        List of command line arguments.  If omitted, :mod:`sys.argv` will be
        used.  This parameter facilitates testing.
    """
    parser = argparse.ArgumentParser(
        description="Detect events in a photo collection from capture times",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--input", dest="input_dir", type=Path, required=True,
                        help="Folder containing photos")
    parser.add_argument("--db", dest="db_path", type=Path, default=None,
                        help="SQLite database recording runs and event assignments")
    parser.add_argument("--export", dest="export_path", type=Path, default=None,
                        help="Write detected events to this Parquet file")
    parser.add_argument("--method", dest="method", choices=METHODS, default="dbscan",
                        help="Event detection method")
    parser.add_argument("--epsilon", dest="epsilon_minutes", type=float, default=None,
                        help="Max minutes between neighbouring photos (suggested automatically when omitted)")
    parser.add_argument("--min-points", dest="min_points", type=int, default=DEFAULT_MIN_POINTS,
                        help="Minimum photos per event")
    parser.add_argument("--min-gap-hours", dest="min_gap_hours", type=float, default=DEFAULT_MIN_GAP_HOURS,
                        help="Gap that starts a new event with --method gaps")
    parser.add_argument("--use-phash", dest="use_phash", action="store_true",
                        help="Compute perceptual hashes of images to skip duplicates")
    parser.add_argument("--no-mtime-fallback", dest="mtime_fallback", action="store_false",
                        help="Fail instead of using file times when EXIF has no capture time")
    parser.add_argument("--log-dir", dest="log_dir", type=Path, default=None,
                        help="Directory for rotating log files")
    parser.add_argument("--log-level", dest="log_level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="Minimum log level")
    args = parser.parse_args(argv)

    if args.epsilon_minutes is not None and args.epsilon_minutes <= 0:
        parser.error("--epsilon must be positive")
    if args.min_points < 1:
        parser.error("--min-points must be at least 1")
    if args.min_gap_hours <= 0:
        parser.error("--min-gap-hours must be positive")

    return RunConfig(
        input_dir=args.input_dir,
        db_path=args.db_path,
        export_path=args.export_path,
        method=args.method,
        epsilon_minutes=args.epsilon_minutes,
        min_points=args.min_points,
        min_gap_hours=args.min_gap_hours,
        use_phash=args.use_phash,
        mtime_fallback=args.mtime_fallback,
        log_dir=args.log_dir,
        log_level=args.log_level,
        command_line=" ".join([parser.prog] + list(argv or [])),
    )
