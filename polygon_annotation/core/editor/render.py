"""
Rasterization of the editing scene.

Rendering happens in two passes: the content pass (base image plus
polygon fills, in content space) and the overlay pass (outlines, control
points and the polygon being drawn, in screen space). Exports use the
content pass only, at the image's native resolution.
"""

import logging
from typing import TYPE_CHECKING, List, Optional, Sequence, Tuple

import cv2
import numpy as np
from matplotlib import colors

from .state import Point, Polygon, Selection
from .viewport import IDENTITY, Viewport

if TYPE_CHECKING:
    from .session import EditorSession

logger = logging.getLogger(__name__)

# Sub-pixel precision for cv2 drawing calls (coordinates scaled by 2**SHIFT)
SHIFT = 4
_FIXED = 1 << SHIFT

RGB = Tuple[int, int, int]


def parse_color(color: str) -> RGB:
    """Convert any matplotlib color spec to an RGB uint8 tuple."""
    r, g, b = colors.to_rgb(color)
    return (int(round(r * 255)), int(round(g * 255)), int(round(b * 255)))


def normalize_color(color: str) -> str:
    """
    Normalize a color spec to ``#rrggbb``.

    Raises:
        ValueError: If the color cannot be parsed
    """
    if not colors.is_color_like(color):
        raise ValueError(f"Invalid color: {color!r}")
    return colors.to_hex(color, keep_alpha=False)


def validate_image(image: np.ndarray) -> None:
    """
    Validate that image is an RGB uint8 array.

    Raises:
        ValueError: If image is invalid
    """
    if image is None:
        raise ValueError("Image is None")

    if not isinstance(image, np.ndarray):
        raise ValueError(f"Image must be numpy array, got {type(image)}")

    if image.ndim != 3:
        raise ValueError(f"Image must be 3D (H, W, C), got shape {image.shape}")

    if image.shape[2] != 3:
        raise ValueError(f"Image must have 3 channels, got {image.shape[2]}")

    if image.dtype != np.uint8:
        raise ValueError(f"Invalid image dtype: {image.dtype}")

    if image.shape[0] == 0 or image.shape[1] == 0:
        raise ValueError(f"Image is empty: {image.shape}")


def to_fixed(points: Sequence[Tuple[float, float]]) -> np.ndarray:
    """Float coordinates to the int32 fixed-point layout cv2 expects."""
    return np.round(np.asarray(points, dtype=np.float64) * _FIXED).astype(np.int32)


def fill_polygon(canvas: np.ndarray, points: Sequence[Point], color: RGB, alpha: float = 1.0):
    """Fill a polygon onto ``canvas`` in place, blended with ``alpha``."""
    pts = to_fixed([p.as_tuple() for p in points])
    if alpha >= 1.0:
        cv2.fillPoly(canvas, [pts], color, lineType=cv2.LINE_AA, shift=SHIFT)
        return canvas

    layer = canvas.copy()
    cv2.fillPoly(layer, [pts], color, lineType=cv2.LINE_AA, shift=SHIFT)
    cv2.addWeighted(layer, alpha, canvas, 1.0 - alpha, 0.0, dst=canvas)
    return canvas


def image_rect(
    viewport: Viewport, width: int, height: int, size: Tuple[int, int]
) -> Tuple[int, int, int, int]:
    """Screen-space pixel bounds (x0, y0, x1, y1) of the image, cut to ``size``."""
    left, top = viewport.content_to_screen(Point(0.0, 0.0))
    right, bottom = viewport.content_to_screen(Point(float(width), float(height)))
    frame_width, frame_height = size
    x0 = min(max(int(np.floor(left)), 0), frame_width)
    y0 = min(max(int(np.floor(top)), 0), frame_height)
    x1 = min(max(int(np.ceil(right)), 0), frame_width)
    y1 = min(max(int(np.ceil(bottom)), 0), frame_height)
    return x0, y0, x1, y1


def encode_png(frame: np.ndarray) -> Optional[bytes]:
    """Encode an RGB frame as PNG bytes, or None if encoding fails."""
    ok, buffer = cv2.imencode(".png", cv2.cvtColor(frame, cv2.COLOR_RGB2BGR))
    if not ok:
        logger.error("PNG encoding failed for frame of shape %s", frame.shape)
        return None
    return buffer.tobytes()


class SceneRenderer:
    """Draws polygons over the base image for display or export."""

    def __init__(self, render_cfg, editor_cfg):
        self.fill_opacity = render_cfg.fill_opacity
        self.selected_fill_opacity = render_cfg.selected_fill_opacity
        self.export_fill_opacity = render_cfg.export_fill_opacity
        self.stroke_width = render_cfg.stroke_width
        self.selected_stroke_width = render_cfg.selected_stroke_width
        self.control_point_stroke = parse_color(render_cfg.control_point_stroke)
        self.selected_point_fill = parse_color(render_cfg.selected_point_fill)
        self.background = parse_color(render_cfg.background)
        self.point_radius = editor_cfg.point_radius
        self.start_point_radius = editor_cfg.start_point_radius
        self.min_polygon_points = editor_cfg.min_polygon_points

    def render_content(
        self,
        image: np.ndarray,
        polygons: List[Polygon],
        selection: Optional[Selection] = None,
        export: bool = False,
    ) -> np.ndarray:
        """Base image with closed polygon fills, at native resolution."""
        canvas = image.copy()
        for polygon in polygons:
            if not polygon.closed:
                continue
            if export:
                alpha = self.export_fill_opacity
            elif selection is not None and selection.polygon_id == polygon.id:
                alpha = self.selected_fill_opacity
            else:
                alpha = self.fill_opacity
            fill_polygon(canvas, polygon.effective_points, parse_color(polygon.fill_color), alpha)
        return canvas

    def render(
        self,
        image: np.ndarray,
        polygons: List[Polygon],
        viewport: Viewport,
        size: Tuple[int, int],
        selection: Optional[Selection] = None,
        open_polygon: Optional[Polygon] = None,
        include_overlay: bool = True,
        export: bool = False,
    ) -> np.ndarray:
        """
        Render the scene into a ``size`` = (width, height) frame.

        Args:
            include_overlay: Draw outlines, control points and the open polygon
            export: Use export opacity and ignore selection highlighting
        """
        content = self.render_content(image, polygons, selection, export)
        width, height = size
        if viewport.transform == IDENTITY and content.shape[:2] == (height, width):
            frame = content
        else:
            frame = np.empty((height, width, 3), dtype=np.uint8)
            frame[:] = self.background
            cv2.warpAffine(
                content,
                viewport.affine_matrix(),
                (width, height),
                dst=frame,
                flags=cv2.INTER_LINEAR,
                borderMode=cv2.BORDER_TRANSPARENT,
            )

        if include_overlay:
            x0, y0, x1, y1 = image_rect(viewport, image.shape[1], image.shape[0], size)
            if x1 > x0 and y1 > y0:
                # Markers are clipped to the image, like the fills
                overlay = self.render_overlay(
                    frame.copy(), polygons, viewport, selection, open_polygon
                )
                frame[y0:y1, x0:x1] = overlay[y0:y1, x0:x1]
        return frame

    def render_overlay(
        self,
        frame: np.ndarray,
        polygons: List[Polygon],
        viewport: Viewport,
        selection: Optional[Selection] = None,
        open_polygon: Optional[Polygon] = None,
    ) -> np.ndarray:
        """Draw editor-only markers onto a screen-space frame in place."""
        scale = viewport.scale

        for polygon in polygons:
            is_selected = selection is not None and selection.polygon_id == polygon.id
            color = parse_color(polygon.fill_color)
            screen = [viewport.content_to_screen(p) for p in polygon.effective_points]

            width = self.selected_stroke_width if is_selected else self.stroke_width
            cv2.polylines(
                frame, [to_fixed(screen)], polygon.closed, color,
                self._thickness(width * scale), cv2.LINE_AA, SHIFT,
            )

            for index, center in enumerate(screen):
                fill = color
                if is_selected and selection.point_index == index:
                    fill = self.selected_point_fill
                self._draw_marker(
                    frame, center, self.point_radius * scale, fill,
                    self.control_point_stroke, 2 * scale,
                )

        if open_polygon is not None and open_polygon.points:
            self._draw_open_polygon(frame, open_polygon, viewport)
        return frame

    def _draw_open_polygon(self, frame: np.ndarray, polygon: Polygon, viewport: Viewport):
        scale = viewport.scale
        color = parse_color(polygon.fill_color)
        screen = [viewport.content_to_screen(p) for p in polygon.points]

        if len(screen) > 1:
            cv2.polylines(
                frame, [to_fixed(screen)], False, color,
                self._thickness(self.stroke_width * scale), cv2.LINE_AA, SHIFT,
            )

        for index, center in enumerate(screen):
            if index == 0:
                self._draw_marker(
                    frame, center, self.start_point_radius * scale,
                    self.selected_point_fill, color, 3 * scale,
                )
            else:
                self._draw_marker(
                    frame, center, self.point_radius * scale, color, color, 2 * scale
                )

        # Close hint around the start point
        if len(screen) >= self.min_polygon_points:
            hint = frame.copy()
            self._draw_ring(hint, screen[0], self.start_point_radius * scale, color, 2 * scale)
            cv2.addWeighted(hint, 0.5, frame, 0.5, 0.0, dst=frame)

    def _draw_marker(self, frame, center, radius, fill: RGB, stroke: RGB, stroke_width):
        fixed_center = tuple(int(v) for v in to_fixed([center])[0])
        fixed_radius = max(1, int(round(radius * _FIXED)))
        cv2.circle(frame, fixed_center, fixed_radius, fill, -1, cv2.LINE_AA, SHIFT)
        cv2.circle(
            frame, fixed_center, fixed_radius, stroke,
            self._thickness(stroke_width), cv2.LINE_AA, SHIFT,
        )

    def _draw_ring(self, frame, center, radius, color: RGB, stroke_width):
        fixed_center = tuple(int(v) for v in to_fixed([center])[0])
        fixed_radius = max(1, int(round(radius * _FIXED)))
        cv2.circle(
            frame, fixed_center, fixed_radius, color,
            self._thickness(stroke_width), cv2.LINE_AA, SHIFT,
        )

    @staticmethod
    def _thickness(width: float) -> int:
        return max(1, int(round(width)))


class ExportRenderer:
    """
    Produces the flattened image + polygon fill raster.

    The result depends only on the polygons and the base image: overlays
    are switched off and the viewport is reset to identity for the
    duration of the capture, then restored.
    """

    def __init__(self, renderer: SceneRenderer):
        self.renderer = renderer

    def export_array(self, session: "EditorSession") -> Optional[np.ndarray]:
        image = session.image
        if image is None:
            return None

        height, width = image.shape[:2]
        hidden = session.overlays_hidden
        saved = session.viewport.transform
        session.overlays_hidden = True
        try:
            session.viewport.reset()
            return self.renderer.render(
                image,
                session.store.polygons,
                session.viewport,
                (width, height),
                include_overlay=False,
                export=True,
            )
        finally:
            session.viewport.restore(saved)
            session.overlays_hidden = hidden

    def export_png(self, session: "EditorSession") -> Optional[bytes]:
        frame = self.export_array(session)
        if frame is None:
            return None
        return encode_png(frame)
