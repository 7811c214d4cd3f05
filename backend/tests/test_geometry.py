from __future__ import annotations

import pytest

from riskmap.geometry import bounding_box, haversine_m, path_length_km, point_in_polygon, polygon_center
from riskmap.regions import REGIONS

SQUARE = [(0.0, 0.0), (10.0, 0.0), (10.0, 10.0), (0.0, 10.0)]
CONCAVE = [(0.0, 0.0), (10.0, 0.0), (10.0, 2.0), (2.0, 2.0), (2.0, 10.0), (0.0, 10.0)]


def _rotations(ring: list[tuple[float, float]]) -> list[list[tuple[float, float]]]:
    return [ring[k:] + ring[:k] for k in range(len(ring))]


@pytest.mark.parametrize("point", [(5.0, 5.0), (0.5, 9.5), (9.5, 0.5), (1.0, 1.0)])
def test_points_strictly_inside_square(point: tuple[float, float]) -> None:
    assert point_in_polygon(point, SQUARE)


@pytest.mark.parametrize("point", [(-50.0, 5.0), (5.0, 50.0), (100.0, -100.0), (11.0, 11.0)])
def test_points_far_outside_square(point: tuple[float, float]) -> None:
    assert not point_in_polygon(point, SQUARE)


def test_concave_notch_is_outside() -> None:
    assert point_in_polygon((1.0, 5.0), CONCAVE)
    assert point_in_polygon((5.0, 1.0), CONCAVE)
    assert not point_in_polygon((5.0, 5.0), CONCAVE)


@pytest.mark.parametrize("point", [(5.0, 5.0), (1.0, 5.0), (5.0, 1.0), (-1.0, 1.0), (12.0, 3.0)])
def test_result_invariant_under_ring_rotation(point: tuple[float, float]) -> None:
    for ring in (SQUARE, CONCAVE):
        expected = point_in_polygon(point, ring)
        assert all(point_in_polygon(point, rotated) == expected for rotated in _rotations(ring))


def test_explicitly_closed_ring_matches_implicit_closure() -> None:
    closed = SQUARE + [SQUARE[0]]
    for point in [(5.0, 5.0), (-1.0, 5.0), (3.0, 9.0)]:
        assert point_in_polygon(point, closed) == point_in_polygon(point, SQUARE)


def test_degenerate_rings_are_never_inside() -> None:
    assert not point_in_polygon((0.0, 0.0), [])
    assert not point_in_polygon((0.0, 0.0), [(0.0, 0.0)])
    assert not point_in_polygon((0.5, 0.5), [(0.0, 0.0), (1.0, 1.0)])


def test_vertex_and_horizontal_edge_ties_are_consistent() -> None:
    # The ray through a vertex shared by two edges crosses only one of them
    # under the half-open (yi > y) != (yj > y) rule.
    assert point_in_polygon((5.0, 10.0 - 1e-9), SQUARE)
    first = point_in_polygon((0.0, 5.0), SQUARE)
    assert first == point_in_polygon((0.0, 5.0), list(reversed(SQUARE)))


def test_downtown_polygon_membership() -> None:
    ring = REGIONS["downtown"].polygon
    assert ring is not None
    assert point_in_polygon((35.69, 51.39), ring)
    assert not point_in_polygon((35.815, 51.44), ring)


def test_bounding_box_and_center() -> None:
    assert bounding_box([]) is None
    assert bounding_box([(1.0, 5.0), (3.0, 2.0), (2.0, 4.0)]) == (1.0, 3.0, 2.0, 5.0)
    assert polygon_center(SQUARE) == (5.0, 5.0)
    assert polygon_center([(2.0, 4.0)]) == (2.0, 4.0)


def test_haversine_and_path_length() -> None:
    assert haversine_m(35.7, 51.4, 35.7, 51.4) == 0.0
    one_degree_lat = haversine_m(35.0, 51.0, 36.0, 51.0)
    assert 110_000 < one_degree_lat < 112_500

    assert path_length_km(None) == 0.0
    assert path_length_km([(35.0, 51.0)]) == 0.0
    loop = [(35.0, 51.0), (36.0, 51.0), (35.0, 51.0)]
    assert path_length_km(loop) == pytest.approx(2 * one_degree_lat / 1000.0)
