import numpy as np
import pytest

from Posture_Engine.core.clustering import SpatialClusterer
from Posture_Engine.core.landmarks import PixelCandidate as P, Cluster


def _brute_force(candidates, radius, min_size):
    visited = [False] * len(candidates)
    out = []
    for i, seed in enumerate(candidates):
        if visited[i]:
            continue
        members = []
        for j, other in enumerate(candidates):
            if not visited[j] and np.hypot(seed.x - other.x, seed.y - other.y) < radius:
                visited[j] = True
                members.append(other)
        if len(members) > min_size:
            out.append((np.mean([m.x for m in members]), np.mean([m.y for m in members]), len(members)))
    return out


def test_centroid_is_mean_of_members():
    pts = [P(10, 10), P(12, 10), P(14, 10), P(10, 12), P(12, 12), P(14, 16)]

    clusters = SpatialClusterer().cluster(pts)

    assert len(clusters) == 1
    assert clusters[0].member_count == 6
    assert clusters[0].centroid_x == pytest.approx(12.0)
    assert clusters[0].centroid_y == pytest.approx(70 / 6)


def test_five_members_is_noise_six_is_a_marker():
    five = [P(100 + 2 * i, 100) for i in range(5)]
    six = [P(100 + 2 * i, 100) for i in range(6)]

    assert SpatialClusterer().cluster(five) == []
    assert SpatialClusterer().cluster(six) == [Cluster(105.0, 100.0, 6)]


def test_grouping_is_one_hop_not_transitive():
    # 10 px spacing, radius 20: each seed only reaches its next neighbour
    line = [P(10 * i, 0) for i in range(10)]

    clusters = SpatialClusterer(radius=20, min_size=1).cluster(line)

    assert [c.member_count for c in clusters] == [2] * 5
    assert [c.centroid_x for c in clusters] == [5.0, 25.0, 45.0, 65.0, 85.0]


def test_output_depends_on_candidate_order():
    a, b, c = P(0, 0), P(15, 0), P(30, 0)
    clusterer = SpatialClusterer(radius=20, min_size=0)

    assert clusterer.cluster([a, b, c]) == [Cluster(7.5, 0.0, 2), Cluster(30.0, 0.0, 1)]
    assert clusterer.cluster([c, b, a]) == [Cluster(22.5, 0.0, 2), Cluster(0.0, 0.0, 1)]


def test_distance_equal_to_radius_is_outside():
    clusters = SpatialClusterer(radius=20, min_size=0).cluster([P(0, 0), P(20, 0)])

    assert [c.member_count for c in clusters] == [1, 1]


def test_duplicate_candidates_count_once():
    pts = [P(0, 0)] * 10 + [P(2, 0)]

    assert SpatialClusterer(min_size=1).cluster(pts) == [Cluster(1.0, 0.0, 2)]


def test_empty_input():
    assert SpatialClusterer().cluster([]) == []


def test_grid_index_matches_brute_force_scan():
    rng = np.random.default_rng(7)
    pts = [P(int(x), int(y)) for x, y in rng.integers(0, 150, size=(400, 2))]
    pts = list(dict.fromkeys(pts))

    clusters = SpatialClusterer(radius=20, min_size=5).cluster(pts)
    expected = _brute_force(pts, 20, 5)

    assert len(clusters) == len(expected)
    for got, (ex, ey, n) in zip(clusters, expected):
        assert got.member_count == n
        assert got.centroid_x == pytest.approx(ex)
        assert got.centroid_y == pytest.approx(ey)


def test_negative_coordinates_use_the_right_cells():
    pts = [P(-1, -1), P(1, 1), P(-3, 2), P(2, -3), P(0, 0), P(-2, 0)]

    clusters = SpatialClusterer().cluster(pts)

    assert len(clusters) == 1
    assert clusters[0].member_count == 6
