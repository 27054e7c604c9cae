# ==============================================================================
# Tests for Heatmap Rasterization - heatmap.py
# ==============================================================================
"""
Tests for the heat color ramp, radial-kernel compositing, raster scaling and
PNG export.
"""

import math

import numpy as np
import pytest
from PIL import Image

from uxinsights.core.heatmap import (
    HeatmapRasterizer,
    base_alpha,
    clamp_intensity,
    heat_color,
    raster_size,
    render_screen_heatmap,
    resolve_max_weight,
    save_png,
    scale_points,
    to_rgba8,
)
from uxinsights.core.models import HeatPoint

# ==============================================================================
# Color ramp
# ==============================================================================


class TestHeatColor:
    def test_low_band_blue(self):
        assert heat_color(0.0) == (0.0, 0.0, 255.0)
        assert heat_color(0.39) == (0.0, 0.0, 255.0)

    def test_blue_to_cyan(self):
        r, g, b = heat_color(0.5)
        assert (r, b) == (0.0, 255.0)
        assert g == pytest.approx(127.5)

    def test_cyan_to_green(self):
        r, g, b = heat_color(0.65)
        assert (r, g) == (0.0, 255.0)
        assert b == pytest.approx(127.5)

    def test_yellow_band(self):
        assert heat_color(0.75) == (255.0, 255.0, 0.0)

    def test_yellow_to_red(self):
        r, g, b = heat_color(0.9)
        assert (r, b) == (255.0, 0.0)
        assert g == pytest.approx(127.5)
        assert heat_color(1.0) == (255.0, 0.0, 0.0)

    def test_out_of_range_clamped(self):
        assert clamp_intensity(3.0) == 1.0
        assert clamp_intensity(-0.5) == 0.0
        assert heat_color(1.5) == (255.0, 0.0, 0.0)
        assert heat_color(-1.0) == (0.0, 0.0, 255.0)

    def test_base_alpha_capped(self):
        assert base_alpha(0.0) == pytest.approx(0.1)
        assert base_alpha(1.0) == pytest.approx(0.8)


class TestResolveMaxWeight:
    def test_explicit(self):
        assert resolve_max_weight([HeatPoint(x=0, y=0, weight=3)], 5) == 5

    def test_observed(self):
        points = [HeatPoint(x=0, y=0, weight=3), HeatPoint(x=0, y=0, weight=7)]
        assert resolve_max_weight(points) == 7

    def test_all_zero_treated_as_one(self):
        assert resolve_max_weight([HeatPoint(x=0, y=0, weight=0)], 0) == 1.0
        assert resolve_max_weight([]) == 1.0


# ==============================================================================
# HeatmapRasterizer
# ==============================================================================


class TestRasterize:
    def test_buffer_shape_and_empty(self):
        buffer = HeatmapRasterizer(radius=10).rasterize([], width=40, height=30)
        assert buffer.shape == (30, 40, 4)
        assert not buffer.any()

    def test_single_point_center(self):
        buffer = HeatmapRasterizer(radius=10).rasterize(
            [HeatPoint(x=50, y=50)], width=101, height=101
        )
        r, g, b, a = buffer[50, 50]
        assert r == pytest.approx(255.0)
        assert g == pytest.approx(0.0)
        assert b == pytest.approx(0.0)
        assert a == pytest.approx(0.8)

    def test_alpha_falls_off_with_distance(self):
        buffer = HeatmapRasterizer(radius=10).rasterize(
            [HeatPoint(x=50, y=50)], width=101, height=101
        )
        assert buffer[50, 50, 3] > buffer[50, 55, 3] > buffer[50, 60, 3] > 0
        assert buffer[50, 61, 3] == 0
        assert buffer[0, 0, 3] == 0

    def test_off_center_alpha_exact(self):
        buffer = HeatmapRasterizer(radius=10, blur=0.75).rasterize(
            [HeatPoint(x=50, y=50)], width=101, height=101
        )
        expected = 0.8 * math.exp(-25 / (2 * 100 * 0.5625))
        assert buffer[50, 55, 3] == pytest.approx(expected, rel=1e-12)
        assert buffer[55, 50, 3] == pytest.approx(expected, rel=1e-12)
        assert tuple(buffer[50, 55, :3]) == pytest.approx((255.0, 0.0, 0.0))

    def test_default_kernel(self):
        rasterizer = HeatmapRasterizer()
        assert (rasterizer.radius, rasterizer.blur) == (50, 0.75)

        buffer = rasterizer.rasterize([HeatPoint(x=60, y=60)], width=121, height=121)
        assert buffer[60, 60, 3] == pytest.approx(0.8)
        assert buffer[60, 90, 3] == pytest.approx(0.8 * math.exp(-900 / 2812.5), rel=1e-12)
        assert buffer[60, 110, 3] == pytest.approx(0.8 * math.exp(-2500 / 2812.5), rel=1e-12)
        assert buffer[60, 111, 3] == 0

    def test_overlap_mixes_colors_by_alpha(self):
        # weight 1 of 4 is blue at base alpha 0.275, weight 4 is red at 0.8
        points = [HeatPoint(x=10, y=10, weight=1), HeatPoint(x=10, y=10, weight=4)]
        buffer = HeatmapRasterizer(radius=5).rasterize(points, width=21, height=21)

        r, g, b, a = buffer[10, 10]
        assert a == pytest.approx(1.0)
        assert r == pytest.approx(255 * 0.8)
        assert g == pytest.approx(0.0)
        assert b == pytest.approx(255 * 0.275)

        falloff = math.exp(-9 / (2 * 25 * 0.5625))
        r, g, b, a = buffer[13, 10]
        assert a == pytest.approx(1.075 * falloff)
        assert r == pytest.approx(255 * 0.8 / 1.075)
        assert g == pytest.approx(0.0)
        assert b == pytest.approx(255 * 0.275 / 1.075)

    def test_overweight_point_stays_in_range(self):
        buffer = HeatmapRasterizer(radius=10).rasterize(
            [HeatPoint(x=10, y=10, weight=3)], width=21, height=21, max_weight=1
        )
        assert buffer[..., :3].min() >= 0.0
        assert buffer[..., :3].max() <= 255.0
        assert buffer[..., 3].max() <= 1.0
        assert tuple(buffer[10, 10]) == pytest.approx((255.0, 0.0, 0.0, 0.8))

    def test_negative_weight_renders_minimum_intensity(self):
        buffer = HeatmapRasterizer(radius=5).rasterize(
            [HeatPoint(x=10, y=10, weight=-2)], width=21, height=21, max_weight=1
        )
        assert buffer[..., 3].min() >= 0.0
        assert tuple(buffer[10, 10]) == pytest.approx((0.0, 0.0, 255.0, 0.1))

    def test_overlap_saturates(self):
        points = [HeatPoint(x=20, y=20), HeatPoint(x=20, y=20)]
        buffer = HeatmapRasterizer(radius=10).rasterize(points, width=41, height=41)
        r, _, _, a = buffer[20, 20]
        assert a == pytest.approx(1.0)
        assert r == pytest.approx(255.0)
        assert buffer[..., :3].max() <= 255.0

    def test_zero_max_weight_renders_minimum_intensity(self):
        buffer = HeatmapRasterizer(radius=5).rasterize(
            [HeatPoint(x=10, y=10, weight=0)], width=21, height=21, max_weight=0
        )
        assert tuple(buffer[10, 10, :3]) == pytest.approx((0.0, 0.0, 255.0))
        assert buffer[10, 10, 3] == pytest.approx(0.1)

    def test_relative_weight_picks_color(self):
        points = [HeatPoint(x=10, y=10, weight=1), HeatPoint(x=60, y=10, weight=4)]
        buffer = HeatmapRasterizer(radius=5).rasterize(points, width=80, height=21)
        # weight 1 of 4 is in the blue band, weight 4 is full red
        assert tuple(buffer[10, 10, :3]) == pytest.approx((0.0, 0.0, 255.0))
        assert tuple(buffer[10, 60, :3]) == pytest.approx((255.0, 0.0, 0.0))

    def test_point_outside_raster_ignored(self):
        buffer = HeatmapRasterizer(radius=10).rasterize(
            [HeatPoint(x=500, y=500)], width=100, height=100
        )
        assert not buffer.any()

    def test_point_near_edge_clipped(self):
        buffer = HeatmapRasterizer(radius=10).rasterize(
            [HeatPoint(x=0, y=0)], width=20, height=20
        )
        assert buffer[0, 0, 3] == pytest.approx(0.8)

    def test_invalid_parameters(self):
        with pytest.raises(ValueError):
            HeatmapRasterizer(radius=0)
        with pytest.raises(ValueError):
            HeatmapRasterizer(radius=10, blur=0)


# ==============================================================================
# Scaling
# ==============================================================================


class TestScaling:
    def test_raster_size(self):
        assert raster_size(390, 844, 1.0) == (390, 844)
        assert raster_size(390, 844, 2.0) == (780, 1688)
        assert raster_size(3, 3, 2.5) == (8, 8)

    def test_raster_size_invalid(self):
        with pytest.raises(ValueError):
            raster_size(0, 10)
        with pytest.raises(ValueError):
            raster_size(10, 10, scale=0)

    def test_render_scales_points(self):
        buffer = render_screen_heatmap(
            [HeatPoint(x=10, y=20)], 40, 40, scale=2.0, rasterizer=HeatmapRasterizer(radius=4)
        )
        assert buffer.shape == (80, 80, 4)
        assert buffer[40, 20, 3] == pytest.approx(0.8)

    def test_points_mapped_with_rounded_raster_ratio(self):
        # 3px at 2.5x rounds up to 8px, so x maps by 8/3 rather than 2.5
        (mapped,) = scale_points([HeatPoint(x=1.5, y=1.5)], 3, 3, 8, 8)
        assert (mapped.x, mapped.y) == (pytest.approx(4.0), pytest.approx(4.0))

        buffer = render_screen_heatmap(
            [HeatPoint(x=1.5, y=1.5)], 3, 3, scale=2.5, rasterizer=HeatmapRasterizer(radius=2)
        )
        assert buffer.shape == (8, 8, 4)
        assert buffer[4, 4, 3] == pytest.approx(0.8)

    def test_double_resolution_downsampled_matches(self):
        """Rendering at 2x then averaging 2x2 blocks gives an equivalent distribution."""
        points = [HeatPoint(x=50, y=50)]
        single = render_screen_heatmap(
            points, 100, 100, scale=1.0, rasterizer=HeatmapRasterizer(radius=10)
        )
        double = render_screen_heatmap(
            points, 100, 100, scale=2.0, rasterizer=HeatmapRasterizer(radius=20)
        )
        down = double.reshape(100, 2, 100, 2, 4).mean(axis=(1, 3))

        alpha_1x = single[..., 3]
        alpha_2x = down[..., 3]
        assert np.unravel_index(np.argmax(alpha_1x), alpha_1x.shape) == (50, 50)
        assert np.unravel_index(np.argmax(alpha_2x), alpha_2x.shape) == (50, 50)
        assert np.abs(alpha_1x - alpha_2x).mean() < 0.01
        assert tuple(down[50, 50, :3]) == pytest.approx(tuple(single[50, 50, :3]))

        ys, xs = np.mgrid[0:100, 0:100]
        for alpha in (alpha_1x, alpha_2x):
            cx = (alpha * xs).sum() / alpha.sum()
            cy = (alpha * ys).sum() / alpha.sum()
            assert cx == pytest.approx(50, abs=0.5)
            assert cy == pytest.approx(50, abs=0.5)


# ==============================================================================
# Export
# ==============================================================================


class TestExport:
    def test_to_rgba8(self):
        buffer = np.zeros((1, 2, 4))
        buffer[0, 0] = (255.0, 0.0, 0.0, 0.8)
        out = to_rgba8(buffer)
        assert out.dtype == np.uint8
        assert tuple(out[0, 0]) == (255, 0, 0, 204)
        assert tuple(out[0, 1]) == (0, 0, 0, 0)

    def test_save_png(self, tmp_path):
        buffer = HeatmapRasterizer(radius=5).rasterize(
            [HeatPoint(x=10, y=10)], width=30, height=20
        )
        path = save_png(buffer, tmp_path / "heat.png")
        with Image.open(path) as image:
            assert image.size == (30, 20)
            assert image.mode == "RGBA"
            assert image.getpixel((10, 10)) == (255, 0, 0, 204)
