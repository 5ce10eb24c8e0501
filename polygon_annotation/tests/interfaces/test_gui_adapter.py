"""Tests for the OpenCV window adapter."""

import cv2
import pytest
from unittest.mock import Mock

from polygon_annotation.core.editor import EditorSession
from polygon_annotation.interfaces import GUIEditorAdapter
from polygon_annotation.interfaces.gui_adapter import (
    KEY_BACKSPACE,
    KEY_CTRL_Y,
    KEY_CTRL_Z,
    KEY_DELETE,
    KEY_ESCAPE,
    KEY_TAB,
    QUIT,
    SAVE,
)
from polygon_annotation.tests.conftest import SQUARE, point_list


@pytest.fixture
def adapter(session):
    return GUIEditorAdapter(session)


def mouse_click(adapter, x, y, flags=0, button="left"):
    if button == "left":
        adapter.on_mouse(cv2.EVENT_LBUTTONDOWN, x, y, flags)
        adapter.on_mouse(cv2.EVENT_LBUTTONUP, x, y, flags)
    else:
        adapter.on_mouse(cv2.EVENT_RBUTTONDOWN, x, y, flags)


def mouse_draw(adapter, points):
    for x, y in points + points[:1]:
        mouse_click(adapter, x, y)
    return adapter.session.store.polygons[-1]


class TestMouse:
    def test_draw(self, adapter):
        polygon = mouse_draw(adapter, SQUARE)
        assert point_list(polygon) == SQUARE

    def test_drag_requests_redraw(self, adapter):
        polygon = mouse_draw(adapter, SQUARE)
        adapter.get_visualization()
        assert not adapter.needs_redraw

        adapter.on_mouse(cv2.EVENT_LBUTTONDOWN, 35, 35, 0)
        adapter.needs_redraw = False
        adapter.on_mouse(cv2.EVENT_MOUSEMOVE, 45, 35, 0)
        assert adapter.needs_redraw
        adapter.on_mouse(cv2.EVENT_LBUTTONUP, 45, 35, 0)

        assert point_list(adapter.session.store.get(polygon.id))[0] == (20, 10)

    def test_shift_click_inserts(self, adapter):
        polygon = mouse_draw(adapter, SQUARE)
        mouse_click(adapter, 35, 12, flags=cv2.EVENT_FLAG_SHIFTKEY)
        assert len(adapter.session.store.get(polygon.id).points) == 5

    def test_right_click_deletes(self, adapter):
        mouse_draw(adapter, SQUARE)
        mouse_click(adapter, 35, 35, button="right")
        assert len(adapter.session.store) == 0

    def test_wheel_zooms(self, adapter):
        adapter.on_mouse(cv2.EVENT_MOUSEWHEEL, 50, 50, 120 << 16)
        assert adapter.session.viewport.scale > 1.0


class TestKeys:
    def test_undo_redo(self, adapter):
        mouse_draw(adapter, SQUARE)
        assert adapter.on_key(KEY_CTRL_Z) is None
        assert len(adapter.session.store) == 0
        adapter.on_key(KEY_CTRL_Y)
        assert len(adapter.session.store) == 1

    @pytest.mark.parametrize("code", [KEY_BACKSPACE, *KEY_DELETE])
    def test_delete(self, adapter, code):
        mouse_draw(adapter, SQUARE)
        mouse_click(adapter, 35, 35)
        adapter.on_key(code)
        assert len(adapter.session.store) == 0

    def test_tab_toggles_overlays(self, adapter):
        adapter.on_key(KEY_TAB)
        assert adapter.session.overlays_hidden
        adapter.on_key(KEY_TAB)
        assert not adapter.session.overlays_hidden

    @pytest.mark.parametrize(
        "code, action",
        [
            (KEY_ESCAPE, QUIT),
            (ord("q"), QUIT),
            (ord("s"), SAVE),
            (-1, None),
        ],
    )
    def test_host_actions(self, adapter, code, action):
        assert adapter.on_key(code) == action

    def test_clear(self, adapter):
        mouse_draw(adapter, SQUARE)
        adapter.on_key(ord("c"))
        assert len(adapter.session.store) == 0
        assert adapter.session.can_undo

    def test_refit(self, adapter):
        session = adapter.session
        session.set_container_size(432, 232)
        session.zoom_at(10, 10, delta_y=-1)
        adapter.on_key(ord("f"))
        assert session.viewport.scale == pytest.approx(2.0)


class TestRedraw:
    def test_callback_on_change(self, session):
        callback = Mock()
        adapter = GUIEditorAdapter(session, update_image_callback=callback)
        mouse_click(adapter, 10, 10)
        callback.assert_called()
        assert adapter.needs_redraw

    def test_visualization_is_bgr(self, adapter):
        mouse_draw(adapter, SQUARE)
        frame = adapter.get_visualization()
        assert frame.shape == (100, 200, 3)
        # Red control point marker
        assert frame[5, 5].tolist() == [0, 0, 255]

    def test_visualization_without_image(self, cfg, preferences):
        adapter = GUIEditorAdapter(EditorSession(cfg, preferences))
        assert adapter.get_visualization() is None
