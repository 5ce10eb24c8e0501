"""
Pure geometry functions for hit-testing polygons.

These functions have no side effects and can be tested in isolation.
All inputs are in content space.
"""

import math
from typing import Iterable, NamedTuple, Optional, Sequence

import numpy as np

from .state import Point, Polygon

MIN_POLYGON_POINTS = 3


class EdgeHit(NamedTuple):
    """Closest edge of a polygon: edge ``i`` runs from point i to point i+1."""

    edge_index: int
    distance: float


class PointHit(NamedTuple):
    polygon_id: str
    point_index: int


class InsertionTarget(NamedTuple):
    polygon_id: str
    edge_index: int
    distance: float


def is_closed_shape(polygon: Polygon) -> bool:
    return polygon.closed and len(polygon.points) >= MIN_POLYGON_POINTS


def distance(p1: Point, p2: Point) -> float:
    """Euclidean distance between two points."""
    return math.hypot(p1.x - p2.x, p1.y - p2.y)


def is_near_start(point: Point, start_point: Point, threshold: float = 10.0) -> bool:
    """
    Check whether a click lands close enough to the first point to close
    the polygon.

    The threshold is in content units and does not follow the zoom level.
    """
    return distance(point, start_point) < threshold


def is_inside(point: Point, polygon: Polygon) -> bool:
    """
    Even-odd ray casting test.

    Only closed polygons with at least three points contain anything.
    """
    if not is_closed_shape(polygon):
        return False

    inside = False
    x, y = point.x, point.y
    points = polygon.effective_points
    j = len(points) - 1
    for i in range(len(points)):
        xi, yi = points[i].x, points[i].y
        xj, yj = points[j].x, points[j].y
        if (yi > y) != (yj > y) and x < (xj - xi) * (y - yi) / (yj - yi) + xi:
            inside = not inside
        j = i
    return inside


def distance_to_segment(point: Point, a: Point, b: Point) -> float:
    """
    Distance from a point to the segment ``a``-``b``.

    The projection parameter is clamped to [0, 1]; a degenerate segment
    falls back to the distance to ``a``.
    """
    dx = b.x - a.x
    dy = b.y - a.y
    length_sq = dx * dx + dy * dy
    if length_sq == 0:
        return distance(point, a)

    t = ((point.x - a.x) * dx + (point.y - a.y) * dy) / length_sq
    t = min(1.0, max(0.0, t))
    return math.hypot(point.x - (a.x + t * dx), point.y - (a.y + t * dy))


def closest_edge(point: Point, polygon: Polygon) -> Optional[EdgeHit]:
    """
    Find the edge of a closed polygon nearest to ``point``.

    Edges wrap from the last point back to the first. Ties resolve to the
    lowest edge index.

    Returns:
        EdgeHit or None for open or degenerate polygons
    """
    if not is_closed_shape(polygon):
        return None

    pts = np.array([p.as_tuple() for p in polygon.effective_points], dtype=np.float64)
    starts = pts
    ends = np.roll(pts, -1, axis=0)
    seg = ends - starts
    rel = np.array([point.x, point.y], dtype=np.float64) - starts

    length_sq = np.einsum("ij,ij->i", seg, seg)
    with np.errstate(divide="ignore", invalid="ignore"):
        t = np.where(length_sq > 0, np.einsum("ij,ij->i", rel, seg) / length_sq, 0.0)
    t = np.clip(t, 0.0, 1.0)

    nearest = starts + seg * t[:, None]
    distances = np.hypot(point.x - nearest[:, 0], point.y - nearest[:, 1])
    index = int(np.argmin(distances))
    return EdgeHit(edge_index=index, distance=float(distances[index]))


def find_point_at(
    point: Point, polygons: Sequence[Polygon], radius: float
) -> Optional[PointHit]:
    """
    Find the top-most control point within ``radius`` of ``point``.

    Later polygons are drawn above earlier ones, so they are tested first.
    """
    for polygon in reversed(polygons):
        if not polygon.closed:
            continue
        points = polygon.effective_points
        for index in reversed(range(len(points))):
            if distance(point, points[index]) <= radius:
                return PointHit(polygon.id, index)
    return None


def find_polygon_at(point: Point, polygons: Sequence[Polygon]) -> Optional[Polygon]:
    """Find the top-most closed polygon whose fill contains ``point``."""
    for polygon in reversed(polygons):
        if is_inside(point, polygon):
            return polygon
    return None


def find_insertion_target(
    point: Point, polygons: Iterable[Polygon], threshold: float
) -> Optional[InsertionTarget]:
    """
    Pick the closed polygon whose closest edge is nearest to ``point``.

    Returns:
        InsertionTarget when that edge is closer than ``threshold``
    """
    best: Optional[InsertionTarget] = None
    for polygon in polygons:
        hit = closest_edge(point, polygon)
        if hit is None:
            continue
        if best is None or hit.distance < best.distance:
            best = InsertionTarget(polygon.id, hit.edge_index, hit.distance)

    if best is not None and best.distance < threshold:
        return best
    return None

