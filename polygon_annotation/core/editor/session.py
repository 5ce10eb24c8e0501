"""
Polygon editing session.

Core logic for an interactive polygon-annotation session over one image.
UI-agnostic - can be used with any interface (GUI, Web, CLI).
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

import cv2
import numpy as np

from polygon_annotation.config import FILL_COLOR_PREFERENCE, get_config
from polygon_annotation.utils.preferences import PreferenceStore

from . import geometry
from .events import EditorEvent, EventEmitter, EventType
from .gestures import GestureController
from .history import History
from .render import ExportRenderer, SceneRenderer, normalize_color, validate_image
from .state import Point, Polygon, Selection
from .store import PolygonStore
from .viewport import Viewport

logger = logging.getLogger(__name__)


class EditorSession:
    """
    Manages the state and logic of a polygon editing session.

    This class handles:
    - The polygon store (committed polygons and the one being drawn)
    - Selection of polygons and points
    - Snapshot history for undo/redo
    - Viewport (fit, zoom) and overlay visibility
    - Export of the flattened raster
    - Event emission for UI updates

    Discrete commands record one history snapshot when they change the
    committed polygons. Live drag updates (``move_point``,
    ``move_polygon``) do not; the matching ``finish_*`` call does.
    """

    def __init__(self, cfg=None, preferences: Optional[PreferenceStore] = None):
        """
        Initialize editing session.

        Args:
            cfg: Configuration (defaults to ``get_config()``)
            preferences: Key-value store holding the default fill color
        """
        self.cfg = cfg if cfg is not None else get_config()
        self.preferences = preferences if preferences is not None else PreferenceStore()

        editor_cfg = self.cfg.editor
        self.store = PolygonStore(
            close_threshold=editor_cfg.close_threshold,
            insert_point_threshold=editor_cfg.insert_point_threshold,
            min_polygon_points=editor_cfg.min_polygon_points,
        )
        self.history = History(limit=editor_cfg.history_limit)
        self.selection = Selection()
        self.viewport = Viewport.from_config(self.cfg.viewport)
        self.renderer = SceneRenderer(self.cfg.render, editor_cfg)
        self.exporter = ExportRenderer(self.renderer)
        self.events = EventEmitter()
        self.gestures = GestureController(self)

        self.image: Optional[np.ndarray] = None
        self.container_size: Tuple[int, int] = (0, 0)
        self.overlays_hidden = False
        self.fill_color = self._load_fill_color()

    def _load_fill_color(self) -> str:
        stored = self.preferences.get(FILL_COLOR_PREFERENCE, self.cfg.fill_color.default)
        try:
            return normalize_color(stored)
        except ValueError:
            logger.warning("Ignoring invalid stored fill color %r", stored)
            return normalize_color(self.cfg.fill_color.default)

    # Image and view

    def load_image(self, image: np.ndarray):
        """
        Load a new image for editing, discarding all polygons and history.

        Args:
            image: RGB image as uint8 numpy array
        """
        validate_image(image)
        self.image = image
        self.store.clear_all()
        self.selection.clear()
        self.history.reset()
        self._fit()

        self.events.emit(
            EditorEvent(EventType.IMAGE_LOADED, {"image_shape": image.shape})
        )

    @property
    def has_image(self) -> bool:
        return self.image is not None

    @property
    def image_size(self) -> Tuple[int, int]:
        """(width, height) of the loaded image, or (0, 0)."""
        if self.image is None:
            return (0, 0)
        return (self.image.shape[1], self.image.shape[0])

    def is_in_bounds(self, point: Point) -> bool:
        width, height = self.image_size
        return 0 <= point.x <= width and 0 <= point.y <= height

    def set_container_size(self, width: int, height: int):
        """Record a new container size and re-fit the image into it."""
        self.container_size = (int(width), int(height))
        self._fit()

    def _fit(self):
        if all(self.container_size):
            width, height = self.image_size
            self.viewport.fit_to_container(*self.container_size, width, height)
        else:
            # No container yet: show the image at native size
            self.viewport.reset()
        self._emit_viewport()

    def zoom_at(self, px: float, py: float, delta_y: float, ctrl: bool = False) -> float:
        scale = self.viewport.zoom_at(px, py, delta_y, ctrl)
        self._emit_viewport()
        return scale

    def screen_to_content(self, px: float, py: float) -> Point:
        return self.viewport.screen_to_content(px, py)

    def set_overlays_hidden(self, hidden: bool):
        if hidden == self.overlays_hidden:
            return
        self.overlays_hidden = hidden
        self.events.emit(EditorEvent(EventType.OVERLAYS_TOGGLED, {"hidden": hidden}))

    def set_fill_color(self, color: str) -> str:
        """
        Change the fill color used for new polygons and persist it.

        Raises:
            ValueError: If the color cannot be parsed
        """
        self.fill_color = normalize_color(color)
        self.preferences.set(FILL_COLOR_PREFERENCE, self.fill_color)
        self.events.emit(
            EditorEvent(EventType.FILL_COLOR_CHANGED, {"color": self.fill_color})
        )
        return self.fill_color

    # Hit testing

    def find_point_at(self, point: Point) -> Optional[geometry.PointHit]:
        return geometry.find_point_at(point, self.store.polygons, self.cfg.editor.point_radius)

    def find_polygon_at(self, point: Point) -> Optional[Polygon]:
        return geometry.find_polygon_at(point, self.store.polygons)

    # Selection

    def select_point(self, polygon_id: str, point_index: int):
        self.selection.select_point(polygon_id, point_index)
        self._emit_selection()

    def select_polygon(self, polygon_id: str):
        self.selection.select_polygon(polygon_id)
        self._emit_selection()

    def clear_selection(self):
        self.selection.clear()
        self._emit_selection()

    # Drawing commands

    def start_polygon(self, point: Point) -> bool:
        """Begin a new polygon; ignored inside an existing closed polygon."""
        if not self.store.start_polygon(point, self.fill_color):
            return False
        self.selection.clear()
        self._emit(EventType.POLYGON_STARTED, polygon_id=self.store.open_polygon.id)
        self._emit_selection()
        return True

    def append_point(self, point: Point) -> bool:
        if not self.store.append_point(point):
            return False
        self._emit(EventType.POINT_ADDED, num_points=len(self.store.open_polygon.points))
        return True

    def close_polygon(self, point: Optional[Point] = None) -> bool:
        """
        Commit the open polygon.

        Args:
            point: Click position that must land near the start point;
                None closes explicitly
        """
        polygon = self.store.open_polygon
        if not self.store.close_polygon(point):
            return False
        self._commit(EventType.POLYGON_CLOSED, polygon_id=polygon.id)
        return True

    def abandon_polygon(self) -> bool:
        """Discard the open polygon without a snapshot."""
        polygon = self.store.open_polygon
        if not self.store.abandon_polygon():
            return False
        self._emit(EventType.POLYGON_ABANDONED, polygon_id=polygon.id)
        return True

    # Point commands

    def insert_point_on_edge(self, polygon_id: str, edge_index: int, point: Point) -> bool:
        if not self.store.insert_point_on_edge(polygon_id, edge_index, point):
            return False
        self.selection.select_point(polygon_id, edge_index + 1)
        self._commit(
            EventType.POINT_INSERTED, polygon_id=polygon_id, point_index=edge_index + 1
        )
        self._emit_selection()
        return True

    def insert_point_near(self, point: Point) -> bool:
        """Insert ``point`` into the closest edge within the insertion threshold."""
        target = self.store.find_insertion_target(point)
        if target is None:
            return False
        return self.insert_point_on_edge(target.polygon_id, target.edge_index, point)

    def move_point(self, polygon_id: str, index: int, new_pos: Point) -> bool:
        """Live update while dragging; no snapshot."""
        return self.store.move_point(polygon_id, index, new_pos)

    def finish_point_move(
        self, polygon_id: str, index: int, original: Optional[Point] = None
    ) -> bool:
        """
        Commit a point drag.

        Args:
            original: Position before the drag; a drag that ends there
                records no snapshot
        """
        polygon = self.store.get(polygon_id)
        if polygon is None or not 0 <= index < len(polygon.points):
            return False
        if original is not None and polygon.points[index] == original:
            return False
        self._commit(EventType.POINT_MOVED, polygon_id=polygon_id, point_index=index)
        return True

    def delete_point(self, polygon_id: str, index: int) -> bool:
        """Delete a point, or the whole polygon if it would drop below 3 points."""
        if not self.store.delete_point(polygon_id, index):
            return False
        self.selection.clear()
        if self.store.get(polygon_id) is None:
            self._commit(EventType.POLYGON_DELETED, polygon_id=polygon_id)
        else:
            self._commit(EventType.POINT_DELETED, polygon_id=polygon_id, point_index=index)
        self._emit_selection()
        return True

    # Polygon commands

    def move_polygon(self, polygon_id: str, delta: Point) -> bool:
        """Live update while dragging; ``delta`` is the total drag so far."""
        return self.store.move_polygon(polygon_id, delta)

    def finish_polygon_move(self, polygon_id: str, original_points: List[Point]) -> bool:
        if not self.store.finish_polygon_move(polygon_id, original_points):
            return False
        self._commit(EventType.POLYGON_MOVED, polygon_id=polygon_id)
        return True

    def delete_polygon(self, polygon_id: str) -> bool:
        if not self.store.delete_polygon(polygon_id):
            return False
        self.selection.clear()
        self._commit(EventType.POLYGON_DELETED, polygon_id=polygon_id)
        self._emit_selection()
        return True

    def delete_selection(self) -> bool:
        """Delete the selected point if any, else the selected polygon."""
        if self.selection.has_point:
            return self.delete_point(self.selection.polygon_id, self.selection.point_index)
        if self.selection.has_polygon:
            return self.delete_polygon(self.selection.polygon_id)
        return False

    def clear_all(self) -> bool:
        self.store.clear_all()
        self.selection.clear()
        self._commit(EventType.POLYGONS_CLEARED)
        self._emit_selection()
        return True

    # History

    def undo(self) -> bool:
        """
        Restore the previous snapshot.

        Returns:
            True if undo was applied, False if there is no earlier snapshot
        """
        previous = self.history.undo()
        if previous is None:
            return False
        self._restore(previous)
        self.events.emit(EditorEvent(EventType.UNDONE, {"cursor": self.history.cursor}))
        return True

    def redo(self) -> bool:
        following = self.history.redo()
        if following is None:
            return False
        self._restore(following)
        self.events.emit(EditorEvent(EventType.REDONE, {"cursor": self.history.cursor}))
        return True

    @property
    def can_undo(self) -> bool:
        return self.history.can_undo

    @property
    def can_redo(self) -> bool:
        return self.history.can_redo

    def _restore(self, polygons: List[Polygon]):
        self.store.replace_all(polygons)
        self.selection.clear()
        logger.debug("Restored snapshot with %d polygons", len(polygons))

    # Output

    def render_view(self) -> Optional[np.ndarray]:
        """Frame for display at the container size, with editor overlays."""
        if self.image is None:
            return None
        size = self.container_size
        if not all(size):
            size = self.image_size
        return self.renderer.render(
            self.image,
            self.store.polygons,
            self.viewport,
            size,
            selection=self.selection,
            open_polygon=self.store.open_polygon,
            include_overlay=not self.overlays_hidden,
        )

    def export_array(self) -> Optional[np.ndarray]:
        """Flattened RGB raster at native size, or None without an image."""
        return self.exporter.export_array(self)

    def export_image(self) -> Optional[bytes]:
        """
        Flattened image + polygon fills as PNG bytes.

        Returns None when no image is loaded or encoding fails; never raises.
        """
        try:
            blob = self.exporter.export_png(self)
        except cv2.error:
            logger.exception("Export failed")
            return None
        if blob is not None:
            self.events.emit(EditorEvent(EventType.EXPORT_COMPLETED, {"size": len(blob)}))
        return blob

    def close(self):
        """End the session: drop any live drag and the open polygon."""
        self.gestures.pointer_cancel()
        self.abandon_polygon()
        self.events.emit(EditorEvent(EventType.SESSION_CLOSED))
        self.events.clear()

    def get_visualization_data(self) -> Dict[str, Any]:
        """
        Get data needed by a custom UI to draw the scene itself.

        Returns:
            Dictionary with visualization data
        """
        return {
            "image": self.image,
            "polygons": [p.to_dict() for p in self.store.polygons],
            "open_polygon": (
                self.store.open_polygon.to_dict() if self.store.open_polygon else None
            ),
            "selection": self.selection.to_dict(),
            "viewport": self.viewport.transform._asdict(),
            "overlays_hidden": self.overlays_hidden,
            "fill_color": self.fill_color,
            "state": self.gestures.state.value,
            "can_undo": self.can_undo,
            "can_redo": self.can_redo,
        }

    # Internals

    def _commit(self, event_type: EventType, **data):
        self.history.commit(self.store.polygons)
        self._emit(event_type, **data)
        self.events.emit(
            EditorEvent(EventType.HISTORY_COMMITTED, {"cursor": self.history.cursor})
        )

    def _emit(self, event_type: EventType, **data):
        self.events.emit(EditorEvent(event_type, data))

    def _emit_selection(self):
        self.events.emit(EditorEvent(EventType.SELECTION_CHANGED, self.selection.to_dict()))

    def _emit_viewport(self):
        self.events.emit(
            EditorEvent(EventType.VIEWPORT_CHANGED, self.viewport.transform._asdict())
        )
