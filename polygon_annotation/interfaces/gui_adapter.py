"""
GUI adapter for polygon editing sessions.

Bridges the EditorSession with an OpenCV HighGUI window.
"""

from typing import Callable, Optional

import cv2
import numpy as np

from ..core.editor import EditorEvent, EditorSession, MouseButton

# waitKeyEx codes; Delete differs between HighGUI backends
KEY_BACKSPACE = 8
KEY_TAB = 9
KEY_ESCAPE = 27
KEY_CTRL_Y = 25
KEY_CTRL_Z = 26
KEY_DELETE = (0xFFFF, 0x2E0000)

SAVE = "save"
QUIT = "quit"


class GUIEditorAdapter:
    """
    Adapter connecting EditorSession to an OpenCV window.

    Provides a compatibility layer that:
    - Translates HighGUI mouse callbacks into gesture controller calls
    - Translates ``waitKeyEx`` codes into editor shortcuts
    - Requests a redraw whenever the session changes
    """

    def __init__(
        self,
        session: EditorSession,
        update_image_callback: Optional[Callable] = None,
    ):
        """
        Initialize adapter.

        Args:
            session: Core editing session
            update_image_callback: Callback to redraw the window
        """
        self.session = session
        self.update_image_callback = update_image_callback
        self.needs_redraw = True

        # Subscribe to session events
        self.session.events.on_any(self._on_session_changed)

    def _on_session_changed(self, event: EditorEvent):
        """Handle any session change."""
        self.needs_redraw = True
        if self.update_image_callback:
            self.update_image_callback()

    def on_mouse(self, event: int, x: int, y: int, flags: int, param=None):
        """Callback for ``cv2.setMouseCallback``."""
        gestures = self.session.gestures
        shift = bool(flags & cv2.EVENT_FLAG_SHIFTKEY)
        ctrl = bool(flags & cv2.EVENT_FLAG_CTRLKEY)

        if event == cv2.EVENT_LBUTTONDOWN:
            gestures.pointer_down(x, y, MouseButton.LEFT, shift=shift)
        elif event == cv2.EVENT_RBUTTONDOWN:
            gestures.pointer_down(x, y, MouseButton.RIGHT, shift=shift)
        elif event == cv2.EVENT_MOUSEMOVE:
            gestures.pointer_move(x, y)
            if gestures.is_dragging:
                self.needs_redraw = True
        elif event == cv2.EVENT_LBUTTONUP:
            gestures.pointer_up(x, y)
        elif event == cv2.EVENT_MOUSEWHEEL:
            # Positive HighGUI delta means scrolling up, i.e. zooming in
            gestures.wheel(x, y, -cv2.getMouseWheelDelta(flags), ctrl=ctrl)

    def on_key(self, code: int) -> Optional[str]:
        """
        Handle a ``cv2.waitKeyEx`` code.

        Returns:
            SAVE or QUIT for host-level actions, otherwise None
        """
        if code < 0:
            return None
        gestures = self.session.gestures

        if code == KEY_CTRL_Z:
            gestures.key_down("z", ctrl=True)
        elif code == KEY_CTRL_Y:
            gestures.key_down("y", ctrl=True)
        elif code == KEY_BACKSPACE:
            gestures.key_down("backspace")
        elif code in KEY_DELETE:
            gestures.key_down("delete")
        elif code == KEY_TAB:
            # HighGUI reports no key releases, so Tab toggles
            if self.session.overlays_hidden:
                gestures.key_up("tab")
            else:
                gestures.key_down("tab")
        elif code == KEY_ESCAPE or code == ord("q"):
            return QUIT
        elif code == ord("s"):
            return SAVE
        elif code == ord("c"):
            self.session.clear_all()
        elif code == ord("f"):
            self.session.set_container_size(*self.session.container_size)
        return None

    def get_visualization(self) -> Optional[np.ndarray]:
        """
        Get the current frame for display.

        Returns:
            BGR frame ready for ``cv2.imshow``, or None without an image
        """
        frame = self.session.render_view()
        self.needs_redraw = False
        if frame is None:
            return None
        return cv2.cvtColor(frame, cv2.COLOR_RGB2BGR)
