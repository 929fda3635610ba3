import random

import numpy as np
import pytest

from photo_events.clustering import (
    connected_components, density_clusters, filter_small_clusters, gap_clusters, neighbour_windows,
)
from photo_events.errors import ConfigurationError


def reference_dbscan(points, eps, min_points):
    """Textbook DBSCAN with a full pairwise neighbour search, visiting points in order."""
    n = len(points)
    neighbours = [[j for j in range(n) if abs(points[i] - points[j]) <= eps] for i in range(n)]
    labels = [None] * n
    cluster = -1
    for i in range(n):
        if labels[i] is not None:
            continue
        if len(neighbours[i]) < min_points:
            labels[i] = -1
            continue
        cluster += 1
        labels[i] = cluster
        queue = list(neighbours[i])
        while queue:
            j = queue.pop(0)
            if labels[j] == -1:
                labels[j] = cluster
            if labels[j] is not None:
                continue
            labels[j] = cluster
            if len(neighbours[j]) >= min_points:
                queue.extend(neighbours[j])
    groups = {}
    for i, lab in enumerate(labels):
        if lab is not None and lab >= 0:
            groups.setdefault(lab, []).append(i)
    return sorted(groups.values(), key=lambda g: g[0])


def test_two_separate_dense_groups():
    projection = np.array([0, 1, 2, 100, 101, 102], dtype=float)
    assert density_clusters(projection, 5, 3) == [[0, 1, 2], [3, 4, 5]]


def test_border_points_on_both_sides_join_the_cluster():
    projection = np.array([0, 10, 11, 12, 22], dtype=float)
    assert density_clusters(projection, 10, 3) == [[0, 1, 2, 3, 4]]


def test_gap_equal_to_epsilon_is_reachable():
    projection = np.array([0, 60, 120], dtype=float)
    assert density_clusters(projection, 60, 3) == [[0, 1, 2]]


def test_sparse_points_are_noise():
    projection = np.array([0, 100, 200], dtype=float)
    assert density_clusters(projection, 10, 2) == []


def test_shared_border_goes_to_earlier_cluster_and_small_clusters_are_dropped():
    # 6 is within reach of the cores at 2 and at 10; the earlier cluster claims
    # it, which leaves the later cluster below min_points.
    projection = np.array([0, 1, 2, 6, 10, 11, 12], dtype=float)
    assert density_clusters(projection, 4, 4) == [[0, 1, 2, 3]]


def test_min_points_one_makes_every_photo_an_event():
    projection = np.array([0, 1440], dtype=float)
    assert density_clusters(projection, 60, 1) == [[0], [1]]


def test_identical_timestamps_form_one_cluster():
    projection = np.zeros(5)
    assert density_clusters(projection, 1, 3) == [[0, 1, 2, 3, 4]]


def test_empty_projection():
    assert density_clusters(np.zeros(0), 60, 3) == []


@pytest.mark.parametrize("eps, min_points", [(0, 3), (-5, 3), (60, 0), (60, -1)])
def test_invalid_parameters_raise(eps, min_points):
    with pytest.raises(ConfigurationError):
        density_clusters(np.array([0.0, 1.0]), eps, min_points)


@pytest.mark.parametrize("seed", range(20))
def test_matches_pairwise_dbscan(seed):
    rng = random.Random(seed)
    points = sorted(rng.randint(0, 600) for _ in range(rng.randint(1, 60)))
    eps = rng.randint(1, 40)
    min_points = rng.randint(1, 5)
    expected = [c for c in reference_dbscan(points, eps, min_points) if len(c) >= min_points]
    assert density_clusters(np.array(points, dtype=float), eps, min_points) == expected


def test_neighbour_windows_count_self():
    left, right = neighbour_windows(np.array([0.0, 1.0, 5.0]), 1.0)
    assert (right - left).tolist() == [2, 2, 1]


def test_connected_components_roots_follow_order():
    comps = connected_components(5, [(3, 4), (0, 1)])
    assert list(comps.values()) == [[0, 1], [2], [3, 4]]


def test_filter_small_clusters():
    assert filter_small_clusters([[0, 1], [2, 3, 4]], 3) == [[2, 3, 4]]


def test_gap_clusters_split_at_threshold():
    projection = np.array([0, 30, 150, 160, 400], dtype=float)
    assert gap_clusters(projection, 120) == [[0, 1], [2, 3], [4]]
    assert gap_clusters(np.zeros(0), 120) == []
    with pytest.raises(ConfigurationError):
        gap_clusters(projection, 0)
