"""
Density clustering of photos along the time axis.

The input is the one dimensional projection produced by
:func:`photo_events.timeseries.extract_time_series` (minutes since the first
photo, sorted ascending).  Because the axis is sorted, DBSCAN neighbourhoods
are contiguous index windows: the window bounds come from a single
``searchsorted`` sweep and core photos are chained with a union-find over
adjacent core pairs.  No pairwise distance matrix is ever built.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Dict, List, Iterable, Tuple

import numpy as np
from loguru import logger

from .errors import ConfigurationError


def neighbour_windows(projection: np.ndarray, epsilon: float) -> Tuple[np.ndarray, np.ndarray]:
    """Return the ``[left, right)`` index window of each point's neighbourhood.

    Parameters
    ----------
    projection: ndarray, shape (n_samples,)
        Minutes since the first photo, sorted ascending.
    epsilon: float
        Neighbourhood radius in minutes (inclusive).

    Returns
    -------
    tuple of ndarray
        ``left[i]`` is the first index with ``t >= t[i] - epsilon`` and
        ``right[i]`` is one past the last index with ``t <= t[i] + epsilon``.
        The neighbour count (self included) is ``right - left``.
    """
    left = np.searchsorted(projection, projection - epsilon, side="left")
    right = np.searchsorted(projection, projection + epsilon, side="right")
    return left, right


def connected_components(n_nodes: int, edges: Iterable[Tuple[int, int]]) -> Dict[int, List[int]]:
    """Group nodes connected by ``edges`` using a union-find structure.

    Returns a mapping from component root to its members in ascending order.
    """
    parent = list(range(n_nodes))

    def find(x: int) -> int:
        while parent[x] != x:
            parent[x] = parent[parent[x]]
            x = parent[x]
        return x

    def union(a: int, b: int) -> None:
        ra, rb = find(a), find(b)
        if ra != rb:
            # keep the smaller index as root so roots follow time order
            if rb < ra:
                ra, rb = rb, ra
            parent[rb] = ra

    for a, b in edges:
        union(a, b)
    comp: Dict[int, List[int]] = defaultdict(list)
    for i in range(n_nodes):
        comp[find(i)].append(i)
    return comp


def density_clusters(projection: np.ndarray, epsilon: float, min_points: int) -> List[List[int]]:
    """Cluster a sorted 1-D projection with DBSCAN semantics.

    Parameters
    ----------
    projection: ndarray, shape (n_samples,)
        Minutes since the first photo, sorted ascending.
    epsilon: float
        Two photos are neighbours when their times differ by at most
        ``epsilon`` minutes.
    min_points: int
        Neighbour count (self included) needed for a photo to be a core
        point.  Clusters smaller than this are dropped afterwards as well.

    Returns
    -------
    list of list of int
        Clusters of indices into ``projection``, each sorted ascending, the
        list ordered by earliest member.  Noise indices are omitted.
    """
    if not epsilon > 0:
        raise ConfigurationError(f"epsilon must be positive, got {epsilon!r}")
    if min_points < 1:
        raise ConfigurationError(f"min_points must be >= 1, got {min_points!r}")
    projection = np.asarray(projection, dtype=np.float64)
    n = projection.shape[0]
    if n == 0:
        return []

    left, right = neighbour_windows(projection, epsilon)
    core = (right - left) >= min_points
    core_idx = np.flatnonzero(core)
    if core_idx.size == 0:
        logger.debug("No core photos with epsilon={}min, minPoints={}", epsilon, min_points)
        return []

    # Cores reachable through a chain are reachable through adjacent cores,
    # so linking consecutive core pairs is enough.
    core_times = projection[core_idx]
    linked = np.flatnonzero(np.diff(core_times) <= epsilon)
    edges = [(int(a), int(a) + 1) for a in linked]
    components = connected_components(core_idx.size, edges)

    labels = np.full(n, -1, dtype=np.int64)
    for cluster_no, members in enumerate(components.values()):
        labels[core_idx[members]] = cluster_no

    # Border points join the cluster of the nearest core before them when it
    # is in range (the earlier cluster claims it first), else the one after.
    for i in np.flatnonzero(~core):
        pos = int(np.searchsorted(core_times, projection[i], side="right"))
        if pos > 0 and projection[i] - core_times[pos - 1] <= epsilon:
            labels[i] = labels[core_idx[pos - 1]]
        elif pos < core_idx.size and core_times[pos] - projection[i] <= epsilon:
            labels[i] = labels[core_idx[pos]]

    clusters: Dict[int, List[int]] = defaultdict(list)
    for i, lab in enumerate(labels):
        if lab >= 0:
            clusters[int(lab)].append(i)
    cluster_list = sorted(clusters.values(), key=lambda c: c[0])
    n_noise = int(np.count_nonzero(labels < 0))
    logger.debug(
        "DBSCAN found {} clusters with epsilon={}min, minPoints={} ({} noise photos)",
        len(cluster_list), epsilon, min_points, n_noise,
    )
    return filter_small_clusters(cluster_list, min_points)


def filter_small_clusters(clusters: List[List[int]], min_points: int) -> List[List[int]]:
    """Drop clusters with fewer than ``min_points`` members.

    DBSCAN already guarantees the minimum through its core points; the
    filter keeps that guarantee independent of how clusters were formed.
    """
    kept = [c for c in clusters if len(c) >= min_points]
    if len(kept) != len(clusters):
        logger.debug("Dropped {} clusters below {} photos", len(clusters) - len(kept), min_points)
    return kept


def gap_clusters(projection: np.ndarray, min_gap: float) -> List[List[int]]:
    """Split a sorted projection wherever the gap to the previous point is at least ``min_gap``.

    Every index lands in exactly one group; there is no noise.
    """
    if not min_gap > 0:
        raise ConfigurationError(f"min_gap must be positive, got {min_gap!r}")
    projection = np.asarray(projection, dtype=np.float64)
    n = projection.shape[0]
    if n == 0:
        return []
    breaks = np.flatnonzero(np.diff(projection) >= min_gap) + 1
    bounds = [0] + breaks.tolist() + [n]
    return [list(range(a, b)) for a, b in zip(bounds[:-1], bounds[1:])]
