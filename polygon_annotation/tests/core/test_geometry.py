"""
Tests for pure geometry functions.

These tests validate hit-testing helpers that have no side effects.
"""

import math

import pytest

from polygon_annotation.core.editor.geometry import (
    closest_edge,
    distance_to_segment,
    find_insertion_target,
    find_point_at,
    find_polygon_at,
    is_inside,
    is_near_start,
)
from polygon_annotation.core.editor.state import Point, Polygon
from polygon_annotation.tests.conftest import make_points


def square(polygon_id="sq", closed=True):
    return Polygon(
        id=polygon_id,
        points=make_points([(0, 0), (10, 0), (10, 10), (0, 10)]),
        closed=closed,
    )


def triangle(polygon_id="tri"):
    return Polygon(
        id=polygon_id, points=make_points([(0, 0), (10, 0), (5, 10)]), closed=True
    )


class TestIsInside:
    """Tests for the even-odd point-in-polygon test."""

    def test_square(self):
        assert is_inside(Point(5, 5), square())
        assert not is_inside(Point(15, 5), square())

    def test_open_polygon_contains_nothing(self):
        assert not is_inside(Point(5, 5), square(closed=False))

    def test_degenerate_polygon_contains_nothing(self):
        line = Polygon(id="l", points=make_points([(0, 0), (10, 10)]), closed=True)
        assert not is_inside(Point(5, 5), line)

    def test_concave_polygon(self):
        # U shape opening upwards
        u_shape = Polygon(
            id="u",
            points=make_points(
                [(0, 0), (4, 0), (4, 8), (6, 8), (6, 0), (10, 0), (10, 10), (0, 10)]
            ),
            closed=True,
        )
        assert is_inside(Point(2, 5), u_shape)
        assert not is_inside(Point(5, 4), u_shape)
        assert is_inside(Point(5, 9), u_shape)

    def test_drag_offset_is_applied(self):
        polygon = square()
        polygon.offset = Point(100, 0)
        assert not is_inside(Point(5, 5), polygon)
        assert is_inside(Point(105, 5), polygon)


class TestDistanceToSegment:
    """Tests for point-to-segment distance."""

    def test_projection_inside_segment(self):
        assert distance_to_segment(Point(5, 3), Point(0, 0), Point(10, 0)) == pytest.approx(3)

    def test_projection_clamped_to_endpoints(self):
        assert distance_to_segment(Point(-3, 4), Point(0, 0), Point(10, 0)) == pytest.approx(5)
        assert distance_to_segment(Point(13, 4), Point(0, 0), Point(10, 0)) == pytest.approx(5)

    def test_degenerate_segment(self):
        assert distance_to_segment(Point(3, 4), Point(0, 0), Point(0, 0)) == pytest.approx(5)


class TestClosestEdge:
    """Tests for the closest-edge search."""

    def test_midpoint_of_first_edge(self):
        hit = closest_edge(Point(5, 0), triangle())
        assert hit.edge_index == 0
        assert hit.distance == pytest.approx(0)

    def test_wrapping_edge(self):
        # Edge 2 runs from the last point (5, 10) back to (0, 0)
        hit = closest_edge(Point(1, 6), triangle())
        assert hit.edge_index == 2
        expected = abs(10 * 1 - 5 * 6) / math.hypot(5, 10)
        assert hit.distance == pytest.approx(expected)

    def test_open_or_degenerate_polygons(self):
        assert closest_edge(Point(5, 0), square(closed=False)) is None
        line = Polygon(id="l", points=make_points([(0, 0), (10, 0)]), closed=True)
        assert closest_edge(Point(5, 0), line) is None

    def test_tie_resolves_to_lowest_index(self):
        # Corner (10, 0) is equally close to edges 0 and 1
        hit = closest_edge(Point(12, -2), square())
        assert hit.edge_index == 0


class TestNearStart:
    def test_threshold_is_exclusive(self):
        start = Point(0, 0)
        assert is_near_start(Point(3, 4), start, threshold=10)
        assert not is_near_start(Point(6, 8), start, threshold=10)
        assert not is_near_start(Point(20, 0), start, threshold=10)


class TestHitTesting:
    """Tests for hit-testing across several polygons."""

    def test_find_point_prefers_top_polygon(self):
        bottom = square("bottom")
        top = square("top")
        hit = find_point_at(Point(1, 1), [bottom, top], radius=3)
        assert hit.polygon_id == "top"
        assert hit.point_index == 0

    def test_find_point_misses(self):
        assert find_point_at(Point(5, 5), [square()], radius=3) is None

    def test_find_polygon_prefers_top_polygon(self):
        bottom = square("bottom")
        top = square("top")
        assert find_polygon_at(Point(5, 5), [bottom, top]).id == "top"
        assert find_polygon_at(Point(50, 50), [bottom, top]) is None

    def test_insertion_target_threshold(self):
        polygons = [triangle()]
        target = find_insertion_target(Point(5, -4), polygons, threshold=5)
        assert target.polygon_id == "tri"
        assert target.edge_index == 0
        assert target.distance == pytest.approx(4)

        assert find_insertion_target(Point(5, -6), polygons, threshold=5) is None

    def test_insertion_target_picks_nearest_polygon(self):
        near = triangle("near")
        far = Polygon(
            id="far", points=make_points([(0, 20), (10, 20), (5, 30)]), closed=True
        )
        target = find_insertion_target(Point(5, 13), [far, near], threshold=50)
        assert target.polygon_id == "near"
