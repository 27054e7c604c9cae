# ==============================================================================
# Heatmap Rasterizer
# ==============================================================================
"""
Renders weighted point clouds into an RGBA pixel buffer.

Each point paints a radial Gaussian-like spot whose color comes from a
five-band ramp (blue -> cyan -> green -> yellow -> red) chosen by the point's
relative weight. Spots are alpha-composited over each other in input order,
so overlapping hot spots accumulate toward saturation.

The buffer is a float64 numpy array of shape (height, width, 4): RGB channels
in [0, 255] and alpha in [0, 1]. ``to_rgba8`` and ``save_png`` adapt it to
8-bit image data.
"""

import logging
import math
from collections.abc import Sequence
from pathlib import Path

import numpy as np
from PIL import Image

from uxinsights.core.models import HeatPoint

logger = logging.getLogger(__name__)

DEFAULT_RADIUS = 50
DEFAULT_BLUR = 0.75
MAX_BASE_ALPHA = 0.8


def clamp_intensity(intensity: float) -> float:
    return min(1.0, max(0.0, intensity))


def heat_color(intensity: float) -> tuple[float, float, float]:
    """
    Map a relative intensity to an RGB color.

    Bands:
        [0, 0.4)    blue
        [0.4, 0.6)  blue -> cyan
        [0.6, 0.7)  cyan -> green
        [0.7, 0.8)  yellow
        [0.8, 1]    yellow -> red

    Intensities outside [0, 1] are clamped first.
    """
    intensity = clamp_intensity(intensity)
    if intensity < 0.4:
        return 0.0, 0.0, 255.0
    if intensity < 0.6:
        return 0.0, 255 * (intensity - 0.4) / 0.2, 255.0
    if intensity < 0.7:
        return 0.0, 255.0, 255 * (1 - (intensity - 0.6) / 0.1)
    if intensity < 0.8:
        return 255.0, 255.0, 0.0
    return 255.0, 255 * (1.0 - intensity) / 0.2, 0.0


def base_alpha(intensity: float) -> float:
    return min(MAX_BASE_ALPHA, 0.1 + intensity * 0.7)


def resolve_max_weight(points: Sequence[HeatPoint], max_weight: float | None = None) -> float:
    """Use the given max weight, else the observed one; never zero."""
    if max_weight is None or max_weight <= 0:
        max_weight = max((p.weight for p in points), default=0.0)
    return max_weight if max_weight > 0 else 1.0


class HeatmapRasterizer:
    """
    Radial-kernel heatmap renderer.

    Args:
        radius: Kernel radius in raster pixels
        blur: Falloff blur factor; larger values spread the spot wider
    """

    def __init__(self, radius: int = DEFAULT_RADIUS, blur: float = DEFAULT_BLUR):
        if radius <= 0:
            raise ValueError(f"radius must be positive, got {radius}")
        if blur <= 0:
            raise ValueError(f"blur must be positive, got {blur}")
        self.radius = radius
        self.blur = blur

    def rasterize(
        self,
        points: Sequence[HeatPoint],
        width: int,
        height: int,
        max_weight: float | None = None,
    ) -> np.ndarray:
        """
        Render points into a new buffer.

        Args:
            points: Heat points in raster coordinates
            width: Raster width in pixels
            height: Raster height in pixels
            max_weight: Weight that maps to intensity 1. Defaults to the
                        largest point weight. Heavier points render
                        at intensity 1.

        Returns:
            float64 array of shape (height, width, 4)
        """
        buffer = np.zeros((height, width, 4), dtype=np.float64)
        if not points or width <= 0 or height <= 0:
            return buffer

        max_weight = resolve_max_weight(points, max_weight)
        for point in points:
            self._composite_point(buffer, point, clamp_intensity(point.weight / max_weight))

        logger.debug("Rasterized %d points into %dx%d buffer", len(points), width, height)
        return buffer

    def _composite_point(self, buffer: np.ndarray, point: HeatPoint, intensity: float) -> None:
        height, width = buffer.shape[:2]
        r = self.radius

        x0 = max(0, math.ceil(point.x - r))
        x1 = min(width - 1, math.floor(point.x + r))
        y0 = max(0, math.ceil(point.y - r))
        y1 = min(height - 1, math.floor(point.y + r))
        if x0 > x1 or y0 > y1:
            return

        xs = np.arange(x0, x1 + 1, dtype=np.float64)
        ys = np.arange(y0, y1 + 1, dtype=np.float64)
        dx = xs[np.newaxis, :] - point.x
        dy = ys[:, np.newaxis] - point.y
        dist_sq = dx * dx + dy * dy
        inside = dist_sq <= r * r

        falloff = np.exp(-dist_sq / (2 * r * r * self.blur * self.blur))
        pixel_alpha = np.where(inside, base_alpha(intensity) * falloff, 0.0)

        patch = buffer[y0 : y1 + 1, x0 : x1 + 1]
        old_alpha = patch[..., 3]
        new_alpha = np.minimum(1.0, old_alpha + pixel_alpha)
        write = inside & (new_alpha > 0)
        safe_alpha = np.where(write, new_alpha, 1.0)

        color = heat_color(intensity)
        for channel in range(3):
            mixed = (patch[..., channel] * old_alpha + color[channel] * pixel_alpha) / safe_alpha
            patch[..., channel] = np.where(write, np.clip(mixed, 0.0, 255.0), patch[..., channel])
        patch[..., 3] = np.where(write, new_alpha, old_alpha)


def raster_size(logical_width: int, logical_height: int, scale: float = 1.0) -> tuple[int, int]:
    """Raster dimensions for a screen at a uniform scale (never smaller than scaled size)."""
    if logical_width <= 0 or logical_height <= 0:
        raise ValueError(f"invalid screen size {logical_width}x{logical_height}")
    if scale <= 0:
        raise ValueError(f"scale must be positive, got {scale}")
    return math.ceil(logical_width * scale), math.ceil(logical_height * scale)


def scale_points(
    points: Sequence[HeatPoint],
    logical_width: int,
    logical_height: int,
    raster_width: int,
    raster_height: int,
) -> list[HeatPoint]:
    """Map points from logical screen space into raster space."""
    scale_x = raster_width / logical_width
    scale_y = raster_height / logical_height
    return [p.model_copy(update={"x": p.x * scale_x, "y": p.y * scale_y}) for p in points]


def render_screen_heatmap(
    points: Sequence[HeatPoint],
    logical_width: int,
    logical_height: int,
    scale: float = 1.0,
    max_weight: float | None = None,
    rasterizer: HeatmapRasterizer | None = None,
) -> np.ndarray:
    """
    Render points given in logical screen pixels at a uniform scale.

    The raster is sized with ``raster_size`` (each side rounded up), and points
    are mapped with the ratios of that rounded size to the screen size, so the
    effective x and y ratios can differ slightly from ``scale``.

    Args:
        points: Heat points in the screen's own pixel space
        logical_width: Screen width in pixels
        logical_height: Screen height in pixels
        scale: Raster size relative to the screen
        max_weight: Weight that maps to intensity 1 (defaults to observed max)
        rasterizer: Renderer to use (default radius/blur when omitted)

    Returns:
        float64 RGBA buffer of the scaled size
    """
    width, height = raster_size(logical_width, logical_height, scale)
    scaled = scale_points(points, logical_width, logical_height, width, height)
    rasterizer = rasterizer or HeatmapRasterizer()
    return rasterizer.rasterize(scaled, width, height, max_weight=max_weight)


def to_rgba8(buffer: np.ndarray) -> np.ndarray:
    """Convert a float buffer to uint8 RGBA image data."""
    out = np.empty(buffer.shape, dtype=np.uint8)
    out[..., :3] = np.clip(np.rint(buffer[..., :3]), 0, 255)
    out[..., 3] = np.clip(np.rint(buffer[..., 3] * 255), 0, 255)
    return out


def save_png(buffer: np.ndarray, path: str | Path) -> Path:
    """Write a float buffer as a transparent PNG overlay."""
    path = Path(path)
    Image.fromarray(to_rgba8(buffer)).save(path, format="PNG")
    logger.info("Heatmap written: %s", path)
    return path
