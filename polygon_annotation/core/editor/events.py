"""
Event system for the polygon editor.

Provides a decoupled way for the editing core to notify UI components
about state changes without depending on specific UI frameworks.
"""

import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional
from dataclasses import dataclass

logger = logging.getLogger(__name__)


class EventType(Enum):
    """Types of events that can occur while editing."""

    # Image events
    IMAGE_LOADED = "image_loaded"

    # Polygon events
    POLYGON_STARTED = "polygon_started"
    POINT_ADDED = "point_added"
    POLYGON_CLOSED = "polygon_closed"
    POLYGON_ABANDONED = "polygon_abandoned"
    POINT_INSERTED = "point_inserted"
    POINT_MOVED = "point_moved"
    POINT_DELETED = "point_deleted"
    POLYGON_MOVED = "polygon_moved"
    POLYGON_DELETED = "polygon_deleted"
    POLYGONS_CLEARED = "polygons_cleared"

    # Selection events
    SELECTION_CHANGED = "selection_changed"

    # History events
    HISTORY_COMMITTED = "history_committed"
    UNDONE = "undone"
    REDONE = "redone"

    # View events
    VIEWPORT_CHANGED = "viewport_changed"
    OVERLAYS_TOGGLED = "overlays_toggled"
    FILL_COLOR_CHANGED = "fill_color_changed"

    # Session events
    EXPORT_COMPLETED = "export_completed"
    SESSION_CLOSED = "session_closed"


@dataclass
class EditorEvent:
    """Event that occurs while editing."""

    event_type: EventType
    data: Optional[Dict[str, Any]] = None

    def __post_init__(self):
        if self.data is None:
            self.data = {}


class EventEmitter:
    """
    Simple event emitter for pub/sub pattern.

    Allows components to subscribe to events without tight coupling.
    """

    def __init__(self):
        self._listeners: Dict[EventType, List[Callable]] = {}

    def on(self, event_type: EventType, callback: Callable[[EditorEvent], None]):
        """Subscribe to an event type."""
        if event_type not in self._listeners:
            self._listeners[event_type] = []
        self._listeners[event_type].append(callback)

    def off(self, event_type: EventType, callback: Callable[[EditorEvent], None]):
        """Unsubscribe from an event type."""
        if event_type in self._listeners:
            self._listeners[event_type].remove(callback)

    def on_any(self, callback: Callable[[EditorEvent], None]):
        """Subscribe to every event type."""
        for event_type in EventType:
            self.on(event_type, callback)

    def emit(self, event: EditorEvent):
        """Emit an event to all subscribers."""
        for callback in list(self._listeners.get(event.event_type, ())):
            try:
                callback(event)
            except Exception:
                # Listener errors must not break the editing flow
                logger.exception("Error in listener for %s", event.event_type.value)

    def clear(self):
        """Clear all event listeners."""
        self._listeners.clear()
