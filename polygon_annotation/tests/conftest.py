"""
Test fixtures and utilities for polygon_annotation tests.

Provides reusable fixtures for images, sessions and drawn polygons.
"""

import pytest
import numpy as np
from unittest.mock import Mock

from polygon_annotation.config import get_config
from polygon_annotation.core.editor import EditorSession, Point
from polygon_annotation.utils.preferences import PreferenceStore


@pytest.fixture
def cfg():
    """Default configuration, unaffected by the test environment."""
    return get_config(env={})


@pytest.fixture
def test_image():
    """Create a flat gray RGB image."""
    return np.full((100, 200, 3), 128, dtype=np.uint8)


@pytest.fixture
def preferences():
    """In-memory preference store."""
    return PreferenceStore()


@pytest.fixture
def session(cfg, preferences, test_image):
    """Session with an image loaded and an identity viewport."""
    session = EditorSession(cfg, preferences)
    session.load_image(test_image)
    session.viewport.reset()
    return session


@pytest.fixture
def listener():
    """Mock event listener."""
    return Mock()


def draw_polygon(session, points):
    """
    Draw and close a polygon through the gesture controller.

    Points are in screen coordinates; the polygon is closed by clicking
    its first point again.
    """
    gestures = session.gestures
    for x, y in points:
        gestures.pointer_down(x, y)
        gestures.pointer_up(x, y)
    gestures.pointer_down(*points[0])
    gestures.pointer_up(*points[0])
    return session.store.polygons[-1]


def point_list(polygon):
    """Polygon points as plain tuples."""
    return [(p.x, p.y) for p in polygon.points]


SQUARE = [(10, 10), (60, 10), (60, 60), (10, 60)]
TRIANGLE = [(100, 20), (150, 20), (125, 80)]


def make_points(coords):
    return [Point(float(x), float(y)) for x, y in coords]
