"""
Selection and gesture handling.

Turns raw pointer and keyboard input (in screen coordinates) into
EditorSession commands. Drags are tracked by listeners registered on a
global input scope for the lifetime of one gesture only.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, TYPE_CHECKING

from .state import ORIGIN, Point

if TYPE_CHECKING:
    from .session import EditorSession

logger = logging.getLogger(__name__)


class GestureState(Enum):
    IDLE = "idle"
    DRAWING = "drawing"
    POINT_SELECTED = "point_selected"
    POLYGON_SELECTED = "polygon_selected"
    DRAGGING_POINT = "dragging_point"
    DRAGGING_POLYGON = "dragging_polygon"


class MouseButton(Enum):
    LEFT = "left"
    MIDDLE = "middle"
    RIGHT = "right"


class DragKind(Enum):
    POINT = "point"
    POLYGON = "polygon"


PointerCallback = Callable[[float, float], None]


class InputScope:
    """
    Window-level pointer listeners.

    Drag tracking lives here rather than on the drawing surface so a drag
    keeps receiving moves and the release even when the pointer leaves
    the surface.
    """

    MOVE = "move"
    UP = "up"

    def __init__(self):
        self._listeners: Dict[str, List[PointerCallback]] = {self.MOVE: [], self.UP: []}

    def add(self, kind: str, callback: PointerCallback):
        self._listeners[kind].append(callback)

    def remove(self, kind: str, callback: PointerCallback):
        if callback in self._listeners[kind]:
            self._listeners[kind].remove(callback)

    def dispatch(self, kind: str, x: float, y: float):
        for callback in list(self._listeners[kind]):
            callback(x, y)

    def listener_count(self) -> int:
        return sum(len(callbacks) for callbacks in self._listeners.values())


class DragSession:
    """
    Move/up listeners acquired for exactly one gesture.

    ``release`` is idempotent; using the session as a context manager
    guarantees release when the block exits.
    """

    def __init__(self, scope: InputScope, on_move: PointerCallback, on_up: PointerCallback):
        self._scope = scope
        self._on_move = on_move
        self._on_up = on_up
        self._scope.add(InputScope.MOVE, on_move)
        self._scope.add(InputScope.UP, on_up)
        self.released = False

    def release(self):
        if self.released:
            return
        self._scope.remove(InputScope.MOVE, self._on_move)
        self._scope.remove(InputScope.UP, self._on_up)
        self.released = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()
        return False


@dataclass
class DragContext:
    """What is being dragged and where it started."""

    kind: DragKind
    polygon_id: str
    start: Point
    original_points: List[Point] = field(default_factory=list)
    point_index: Optional[int] = None
    moved: bool = False


class GestureController:
    """
    Interprets input against the session state.

    All coordinates passed in are screen coordinates; they are converted to
    content space through the session viewport.
    """

    def __init__(self, session: "EditorSession"):
        self.session = session
        self.scope = InputScope()
        self._drag: Optional[DragSession] = None
        self._context: Optional[DragContext] = None

    @property
    def state(self) -> GestureState:
        if self._context is not None and self._context.moved:
            if self._context.kind is DragKind.POINT:
                return GestureState.DRAGGING_POINT
            return GestureState.DRAGGING_POLYGON
        if self.session.store.open_polygon is not None:
            return GestureState.DRAWING
        if self.session.selection.has_point:
            return GestureState.POINT_SELECTED
        if self.session.selection.has_polygon:
            return GestureState.POLYGON_SELECTED
        return GestureState.IDLE

    @property
    def is_dragging(self) -> bool:
        return self._drag is not None

    # Pointer input

    def pointer_down(
        self,
        x: float,
        y: float,
        button: MouseButton = MouseButton.LEFT,
        shift: bool = False,
    ):
        if not self.session.has_image:
            return
        if self._drag is not None:
            # Release was never seen; end the stale gesture first
            self.pointer_cancel()

        point = self.session.screen_to_content(x, y)
        if not self.session.is_in_bounds(point):
            return
        if button is MouseButton.RIGHT:
            self._context_click(point)
        elif button is MouseButton.LEFT:
            self._primary_click(point, shift)

    def pointer_move(self, x: float, y: float):
        self.scope.dispatch(InputScope.MOVE, x, y)

    def pointer_up(self, x: float, y: float):
        self.scope.dispatch(InputScope.UP, x, y)

    def pointer_cancel(self):
        """Abort a live drag and revert its uncommitted changes."""
        context = self._context
        try:
            if context is not None:
                self._revert(context)
        finally:
            self._end_drag()

    def wheel(self, x: float, y: float, delta_y: float, ctrl: bool = False):
        if not self.session.has_image:
            return
        self.session.zoom_at(x, y, delta_y, ctrl)

    # Keyboard input

    def key_down(self, key: str, ctrl: bool = False, shift: bool = False, meta: bool = False):
        key = key.lower()
        command = ctrl or meta

        if command and key == "z" and not shift:
            self._run_history(self.session.undo)
        elif command and (key == "y" or (key == "z" and shift)):
            self._run_history(self.session.redo)
        elif key in ("delete", "backspace"):
            if self._drag is None:
                self.session.delete_selection()
        elif key == "tab":
            self.session.set_overlays_hidden(True)

    def key_up(self, key: str):
        if key.lower() == "tab":
            self.session.set_overlays_hidden(False)

    # Click handling

    def _primary_click(self, point: Point, shift: bool):
        session = self.session
        store = session.store

        if store.open_polygon is not None:
            if not session.close_polygon(point):
                session.append_point(point)
            return

        # Shift-click inserts even over a control point
        if shift:
            session.insert_point_near(point)
            return

        if not session.overlays_hidden:
            hit = session.find_point_at(point)
            if hit is not None:
                session.select_point(hit.polygon_id, hit.point_index)
                self._begin_drag(DragKind.POINT, hit.polygon_id, point, hit.point_index)
                return

        polygon = session.find_polygon_at(point)
        if polygon is not None:
            session.select_polygon(polygon.id)
            self._begin_drag(DragKind.POLYGON, polygon.id, point)
            return

        session.start_polygon(point)

    def _context_click(self, point: Point):
        session = self.session
        if not session.overlays_hidden:
            hit = session.find_point_at(point)
            if hit is not None:
                session.delete_point(hit.polygon_id, hit.point_index)
                return
        polygon = session.find_polygon_at(point)
        if polygon is not None:
            session.delete_polygon(polygon.id)

    # Drag sessions

    def _begin_drag(
        self, kind: DragKind, polygon_id: str, start: Point, point_index: Optional[int] = None
    ):
        polygon = self.session.store.get(polygon_id)
        self._context = DragContext(
            kind=kind,
            polygon_id=polygon_id,
            start=start,
            original_points=list(polygon.points),
            point_index=point_index,
        )
        self._drag = DragSession(self.scope, self._on_drag_move, self._on_drag_up)
        logger.debug("Drag session started: %s %s", kind.value, polygon_id)

    def _on_drag_move(self, x: float, y: float):
        context = self._context
        current = self.session.screen_to_content(x, y)
        delta = Point(current.x - context.start.x, current.y - context.start.y)
        if delta == ORIGIN and not context.moved:
            return
        context.moved = True

        if context.kind is DragKind.POINT:
            origin = context.original_points[context.point_index]
            self.session.move_point(
                context.polygon_id, context.point_index, origin.translate(delta.x, delta.y)
            )
        else:
            self.session.move_polygon(context.polygon_id, delta)

    def _on_drag_up(self, x: float, y: float):
        context = self._context
        try:
            self._on_drag_move(x, y)
            if context.moved:
                if context.kind is DragKind.POINT:
                    self.session.finish_point_move(
                        context.polygon_id,
                        context.point_index,
                        context.original_points[context.point_index],
                    )
                else:
                    self.session.finish_polygon_move(
                        context.polygon_id, context.original_points
                    )
        finally:
            self._end_drag()

    def _revert(self, context: DragContext):
        if not context.moved:
            return
        if context.kind is DragKind.POINT:
            self.session.move_point(
                context.polygon_id,
                context.point_index,
                context.original_points[context.point_index],
            )
        else:
            self.session.move_polygon(context.polygon_id, ORIGIN)

    def _end_drag(self):
        if self._drag is not None:
            self._drag.release()
            logger.debug("Drag session released")
        self._drag = None
        self._context = None

    def _run_history(self, action: Callable[[], bool]):
        # Undo/redo replaces the polygons a live drag refers to
        if self._drag is not None:
            self.pointer_cancel()
        action()
