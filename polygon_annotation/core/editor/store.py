"""
In-memory polygon store and its mutation API.

The store keeps the committed (closed) polygons plus at most one open
polygon being drawn. Every mutation returns True when it was applied and
False when it was rejected; rejected mutations leave the store untouched.
History snapshots are taken by the session, not here.
"""

import logging
from typing import List, Optional

from polygon_annotation.utils.misc import incrf

from . import geometry
from .state import ORIGIN, Point, Polygon

logger = logging.getLogger(__name__)


class PolygonStore:
    """Committed polygons and the optional in-progress polygon."""

    def __init__(
        self,
        close_threshold: float = 10.0,
        insert_point_threshold: float = 50.0,
        min_polygon_points: int = geometry.MIN_POLYGON_POINTS,
    ):
        self.close_threshold = close_threshold
        self.insert_point_threshold = insert_point_threshold
        self.min_polygon_points = min_polygon_points

        self.polygons: List[Polygon] = []
        self.open_polygon: Optional[Polygon] = None
        self._ids = incrf()

    def get(self, polygon_id: str) -> Optional[Polygon]:
        for polygon in self.polygons:
            if polygon.id == polygon_id:
                return polygon
        return None

    def __len__(self):
        return len(self.polygons)

    def __iter__(self):
        return iter(self.polygons)

    def replace_all(self, polygons: List[Polygon]):
        """Swap in a history snapshot; the open polygon is discarded."""
        self.polygons = list(polygons)
        self.open_polygon = None

    def is_inside_any(self, point: Point) -> bool:
        return any(geometry.is_inside(point, polygon) for polygon in self.polygons)

    # Drawing

    def start_polygon(self, point: Point, fill_color: str) -> bool:
        """Begin a new open polygon unless ``point`` lies in a closed one."""
        if self.open_polygon is not None or self.is_inside_any(point):
            return False
        self.open_polygon = Polygon(
            id=str(next(self._ids)), points=[point], fill_color=fill_color
        )
        return True

    def append_point(self, point: Point) -> bool:
        if self.open_polygon is None:
            return False
        self.open_polygon.points.append(point)
        return True

    def can_close(self, point: Optional[Point] = None) -> bool:
        """
        Whether the open polygon may be closed.

        With ``point`` given, it must also land near the first point.
        """
        polygon = self.open_polygon
        if polygon is None or len(polygon.points) < self.min_polygon_points:
            return False
        if point is None:
            return True
        return geometry.is_near_start(point, polygon.points[0], self.close_threshold)

    def close_polygon(self, point: Optional[Point] = None) -> bool:
        """Move the open polygon into the committed list as closed."""
        if not self.can_close(point):
            return False
        polygon = self.open_polygon
        polygon.closed = True
        self.polygons.append(polygon)
        self.open_polygon = None
        logger.debug("Closed polygon %s with %d points", polygon.id, len(polygon.points))
        return True

    def abandon_polygon(self) -> bool:
        if self.open_polygon is None:
            return False
        self.open_polygon = None
        return True

    # Point edits

    def insert_point_on_edge(self, polygon_id: str, edge_index: int, point: Point) -> bool:
        """Insert ``point`` after ``edge_index`` (between its two endpoints)."""
        polygon = self.get(polygon_id)
        if polygon is None or not 0 <= edge_index < len(polygon.points):
            return False
        polygon.points.insert(edge_index + 1, point)
        return True

    def find_insertion_target(self, point: Point) -> Optional[geometry.InsertionTarget]:
        return geometry.find_insertion_target(
            point, self.polygons, self.insert_point_threshold
        )

    def move_point(self, polygon_id: str, index: int, new_pos: Point) -> bool:
        polygon = self.get(polygon_id)
        if polygon is None or not 0 <= index < len(polygon.points):
            return False
        polygon.points[index] = new_pos
        return True

    def delete_point(self, polygon_id: str, index: int) -> bool:
        """
        Remove one point. If fewer than the minimum would remain, the whole
        polygon is deleted instead.
        """
        polygon = self.get(polygon_id)
        if polygon is None or not 0 <= index < len(polygon.points):
            return False
        if len(polygon.points) - 1 < self.min_polygon_points:
            logger.debug("Deleting polygon %s: too few points left", polygon_id)
            return self.delete_polygon(polygon_id)
        del polygon.points[index]
        return True

    # Polygon edits

    def move_polygon(self, polygon_id: str, delta: Point) -> bool:
        """
        Live drag: set the polygon's offset to the total drag delta.

        The delta is measured from drag start, not from the previous move.
        """
        polygon = self.get(polygon_id)
        if polygon is None:
            return False
        polygon.offset = delta
        return True

    def finish_polygon_move(self, polygon_id: str, original_points: List[Point]) -> bool:
        """Bake the drag offset into the points and reset the offset."""
        polygon = self.get(polygon_id)
        if polygon is None:
            return False
        delta = polygon.offset
        polygon.points = [p.translate(delta.x, delta.y) for p in original_points]
        polygon.offset = ORIGIN
        return delta != ORIGIN

    def delete_polygon(self, polygon_id: str) -> bool:
        before = len(self.polygons)
        self.polygons = [p for p in self.polygons if p.id != polygon_id]
        return len(self.polygons) != before

    def clear_all(self) -> bool:
        """Empty the committed list. The open polygon is discarded too."""
        self.polygons = []
        self.open_polygon = None
        return True
