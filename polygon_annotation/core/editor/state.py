"""
State for polygon editing sessions.

Contains data classes representing points, polygons and the current
selection. All coordinates are in content space (image pixels).
"""

import math
from dataclasses import dataclass, field, replace
from typing import List, Optional, Tuple


@dataclass(frozen=True)
class Point:
    """A single vertex in content space."""

    x: float
    y: float

    def translate(self, dx: float, dy: float) -> "Point":
        return Point(self.x + dx, self.y + dy)

    def distance_to(self, other: "Point") -> float:
        return math.hypot(self.x - other.x, self.y - other.y)

    def as_tuple(self) -> Tuple[float, float]:
        return (self.x, self.y)

    def to_dict(self):
        """Convert to dictionary for serialization."""
        return {"x": self.x, "y": self.y}

    @classmethod
    def from_dict(cls, data: dict):
        """Create from dictionary."""
        return cls(x=float(data["x"]), y=float(data["y"]))


ORIGIN = Point(0.0, 0.0)


@dataclass
class Polygon:
    """
    A polygonal region drawn over the image.

    ``offset`` is only non-zero while the whole polygon is being dragged;
    it is folded into ``points`` when the drag is released.
    """

    id: str
    points: List[Point] = field(default_factory=list)
    fill_color: str = "#ff0000"
    closed: bool = False
    offset: Point = ORIGIN

    @property
    def effective_points(self) -> List[Point]:
        """Points with the live drag offset applied."""
        if self.offset == ORIGIN:
            return list(self.points)
        return [p.translate(self.offset.x, self.offset.y) for p in self.points]

    @property
    def is_valid(self) -> bool:
        return not self.closed or len(self.points) >= 3

    def copy(self) -> "Polygon":
        return replace(self, points=list(self.points))

    def to_dict(self):
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "points": [p.to_dict() for p in self.points],
            "fill_color": self.fill_color,
            "closed": self.closed,
        }

    @classmethod
    def from_dict(cls, data: dict):
        """Create from dictionary."""
        return cls(
            id=str(data["id"]),
            points=[Point.from_dict(p) for p in data.get("points", [])],
            fill_color=data.get("fill_color", "#ff0000"),
            closed=data.get("closed", False),
        )


@dataclass
class Selection:
    """
    Currently selected polygon and, optionally, one of its points.

    Selecting a point implies selecting its polygon; selecting a polygon
    alone clears the point selection.
    """

    polygon_id: Optional[str] = None
    point_index: Optional[int] = None

    def select_point(self, polygon_id: str, point_index: int):
        self.polygon_id = polygon_id
        self.point_index = point_index

    def select_polygon(self, polygon_id: str):
        self.polygon_id = polygon_id
        self.point_index = None

    def clear(self):
        self.polygon_id = None
        self.point_index = None

    @property
    def has_point(self) -> bool:
        return self.polygon_id is not None and self.point_index is not None

    @property
    def has_polygon(self) -> bool:
        return self.polygon_id is not None

    def to_dict(self):
        return {"polygon_id": self.polygon_id, "point_index": self.point_index}
