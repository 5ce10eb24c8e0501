"""
Core polygon editor module - UI-agnostic editing logic.

This module provides the base abstractions for interactive polygon
annotation that can be used with any UI framework (OpenCV, Qt, Web, etc).
"""

from .session import EditorSession
from .events import EditorEvent, EventType, EventEmitter
from .gestures import DragSession, GestureController, GestureState, InputScope, MouseButton
from .history import History
from .state import Point, Polygon, Selection
from .store import PolygonStore
from .viewport import Viewport, ViewportTransform

__all__ = [
    "EditorSession",
    "EditorEvent",
    "EventType",
    "EventEmitter",
    "DragSession",
    "GestureController",
    "GestureState",
    "InputScope",
    "MouseButton",
    "History",
    "Point",
    "Polygon",
    "Selection",
    "PolygonStore",
    "Viewport",
    "ViewportTransform",
]
