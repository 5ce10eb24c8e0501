"""
Viewport transform between screen space and content space.

Screen coordinates come from the pointer device; content coordinates are
image pixels. ``screen = content * scale + offset``.
"""

import logging
from typing import NamedTuple

import numpy as np

from .state import Point

logger = logging.getLogger(__name__)


class ViewportTransform(NamedTuple):
    scale: float = 1.0
    offset_x: float = 0.0
    offset_y: float = 0.0


IDENTITY = ViewportTransform()


def compute_fit_scale(
    container_width: float,
    container_height: float,
    content_width: float,
    content_height: float,
    margin: float = 16.0,
) -> float:
    """
    Scale that fits the content inside the container, keeping aspect ratio.

    A symmetric margin is subtracted from the container size. Returns 1
    when any dimension (or the available area) is zero.
    """
    if not container_width or not container_height or not content_width or not content_height:
        return 1.0
    avail_w = max(0.0, container_width - margin * 2)
    avail_h = max(0.0, container_height - margin * 2)
    if not avail_w or not avail_h:
        return 1.0
    return min(avail_w / content_width, avail_h / content_height)


class Viewport:
    """
    Owns scale and pan offset for one editing surface.

    Zoom is multiplicative and clamped to ``[min_zoom, max_zoom]``.
    """

    def __init__(
        self,
        zoom_scale_by: float = 1.02,
        min_zoom: float = 0.1,
        max_zoom: float = 10.0,
        margin: float = 16.0,
    ):
        self.zoom_scale_by = zoom_scale_by
        self.min_zoom = min_zoom
        self.max_zoom = max_zoom
        self.margin = margin

        self.scale = 1.0
        self.offset_x = 0.0
        self.offset_y = 0.0

    @classmethod
    def from_config(cls, cfg):
        return cls(
            zoom_scale_by=cfg.zoom_scale_by,
            min_zoom=cfg.min_zoom,
            max_zoom=cfg.max_zoom,
            margin=cfg.margin,
        )

    @property
    def transform(self) -> ViewportTransform:
        return ViewportTransform(self.scale, self.offset_x, self.offset_y)

    def restore(self, transform: ViewportTransform):
        self.scale, self.offset_x, self.offset_y = transform

    def reset(self):
        """Identity transform: content pixels map one-to-one onto screen."""
        self.restore(IDENTITY)

    def fit_to_container(
        self,
        container_width: float,
        container_height: float,
        content_width: float,
        content_height: float,
        margin: float = None,
    ) -> float:
        """
        Fit and center the content in the container. The fitted scale is
        clamped to the zoom bounds.

        Returns:
            The new scale
        """
        if margin is None:
            margin = self.margin
        scale = compute_fit_scale(
            container_width, container_height, content_width, content_height, margin
        )
        scale = max(self.min_zoom, min(self.max_zoom, scale))
        self.scale = scale
        self.offset_x = (container_width - content_width * scale) / 2
        self.offset_y = (container_height - content_height * scale) / 2
        logger.debug(
            "Fitted %sx%s content into %sx%s container at scale %.4f",
            content_width, content_height, container_width, container_height, scale,
        )
        return scale

    def screen_to_content(self, px: float, py: float) -> Point:
        return Point((px - self.offset_x) / self.scale, (py - self.offset_y) / self.scale)

    def content_to_screen(self, point: Point):
        return (
            point.x * self.scale + self.offset_x,
            point.y * self.scale + self.offset_y,
        )

    def zoom_at(self, px: float, py: float, delta_y: float, ctrl_pressed: bool = False) -> float:
        """
        Zoom one wheel tick around the screen point ``(px, py)``.

        Scrolling down zooms out; holding Ctrl inverts the direction (pinch
        gestures on trackpads arrive as Ctrl+wheel). The content point under
        the cursor stays under the cursor.

        Returns:
            The new scale
        """
        old_scale = self.scale
        anchor = self.screen_to_content(px, py)

        direction = -1 if delta_y > 0 else 1
        if ctrl_pressed:
            direction = -direction

        if direction > 0:
            next_scale = old_scale * self.zoom_scale_by
        else:
            next_scale = old_scale / self.zoom_scale_by
        new_scale = max(self.min_zoom, min(self.max_zoom, next_scale))

        self.scale = new_scale
        self.offset_x = px - anchor.x * new_scale
        self.offset_y = py - anchor.y * new_scale
        return new_scale

    def affine_matrix(self) -> np.ndarray:
        """2x3 content-to-screen matrix suitable for ``cv2.warpAffine``."""
        return np.array(
            [[self.scale, 0.0, self.offset_x], [0.0, self.scale, self.offset_y]],
            dtype=np.float64,
        )
