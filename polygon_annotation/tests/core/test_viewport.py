"""Tests for the viewport transform."""

import numpy as np
import pytest

from polygon_annotation.core.editor.state import Point
from polygon_annotation.core.editor.viewport import (
    IDENTITY,
    Viewport,
    ViewportTransform,
    compute_fit_scale,
)


@pytest.fixture
def viewport():
    return Viewport(zoom_scale_by=1.02, min_zoom=0.1, max_zoom=10.0, margin=16)


class TestFit:
    def test_compute_fit_scale(self):
        assert compute_fit_scale(232, 132, 100, 50, margin=16) == pytest.approx(2.0)
        assert compute_fit_scale(432, 132, 100, 50, margin=16) == pytest.approx(2.0)

    def test_zero_dimensions_give_unit_scale(self):
        assert compute_fit_scale(0, 100, 100, 100) == 1.0
        assert compute_fit_scale(100, 100, 0, 100) == 1.0
        assert compute_fit_scale(20, 20, 100, 100, margin=16) == 1.0

    def test_fit_centers_content(self, viewport):
        scale = viewport.fit_to_container(432, 132, 100, 50)
        assert scale == pytest.approx(2.0)
        # 200x100 content centered in 432x132
        assert viewport.offset_x == pytest.approx(116)
        assert viewport.offset_y == pytest.approx(16)
        assert viewport.content_to_screen(Point(100, 50)) == pytest.approx((316, 116))

    def test_fit_respects_zoom_bounds(self, viewport):
        # A tiny image would fit at 38.4x
        assert viewport.fit_to_container(1280, 800, 20, 20) == 10.0
        assert viewport.offset_x == pytest.approx(540)
        assert viewport.offset_y == pytest.approx(300)

        viewport.zoom_at(640, 400, delta_y=-1)
        assert viewport.scale == 10.0
        viewport.zoom_at(640, 400, delta_y=1)
        assert viewport.scale == pytest.approx(10.0 / 1.02)

        assert viewport.fit_to_container(232, 232, 100000, 100000) == 0.1


class TestTransforms:
    def test_screen_to_content(self, viewport):
        viewport.restore(ViewportTransform(2.0, 10.0, 20.0))
        point = viewport.screen_to_content(30, 40)
        assert (point.x, point.y) == pytest.approx((10, 10))

    def test_round_trip(self, viewport):
        viewport.restore(ViewportTransform(0.5, -7.0, 3.0))
        screen = viewport.content_to_screen(Point(12.5, 40))
        point = viewport.screen_to_content(*screen)
        assert (point.x, point.y) == pytest.approx((12.5, 40))

    def test_reset(self, viewport):
        viewport.restore(ViewportTransform(3.0, 1.0, 2.0))
        viewport.reset()
        assert viewport.transform == IDENTITY

    def test_affine_matrix(self, viewport):
        viewport.restore(ViewportTransform(2.0, 5.0, 6.0))
        np.testing.assert_array_equal(
            viewport.affine_matrix(), np.array([[2.0, 0.0, 5.0], [0.0, 2.0, 6.0]])
        )


class TestZoom:
    def test_zoom_in_and_out(self, viewport):
        assert viewport.zoom_at(0, 0, delta_y=-1) == pytest.approx(1.02)
        assert viewport.zoom_at(0, 0, delta_y=1) == pytest.approx(1.0)

    def test_modifier_inverts_direction(self, viewport):
        assert viewport.zoom_at(0, 0, delta_y=-1, ctrl_pressed=True) == pytest.approx(1 / 1.02)

    def test_zoom_is_clamped(self, viewport):
        for _ in range(500):
            viewport.zoom_at(50, 50, delta_y=-1)
        assert viewport.scale == 10

        for _ in range(1000):
            viewport.zoom_at(50, 50, delta_y=1)
        assert viewport.scale == 0.1

    def test_zoom_keeps_anchor_fixed(self, viewport):
        viewport.restore(ViewportTransform(1.3, 12.0, -4.0))
        before = viewport.screen_to_content(80, 45)
        viewport.zoom_at(80, 45, delta_y=-1)
        viewport.zoom_at(80, 45, delta_y=-1)
        viewport.zoom_at(80, 45, delta_y=1, ctrl_pressed=True)
        after = viewport.screen_to_content(80, 45)
        assert (after.x, after.y) == pytest.approx((before.x, before.y))
