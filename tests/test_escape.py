"""Tests for Mandelbrot / Julia rendering and their overlay filters."""

import os
import sys

import numpy as np
import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from pixelfx.escape import (
    COLOR_SCHEMES, color_for_iterations, generate_julia, generate_mandelbrot,
    julia_set, mandelbrot, resolve_color_scheme,
)
from conftest import _make_test_frame


class TestGenerateMandelbrot:
    def test_shape(self):
        img = generate_mandelbrot(64, 48)
        assert img.shape == (48, 64, 4)
        assert img.dtype == np.uint8

    def test_origin_is_in_set(self):
        img = generate_mandelbrot(64, 64, 0.0, 0.0, 0.5, 100)
        assert tuple(img[32, 32]) == (0, 0, 0, 255)

    def test_far_point_escapes(self):
        img = generate_mandelbrot(64, 64, 2.0, 0.0, 1.0, 100)
        assert img[32, 32, :3].any()

    def test_zoom_changes_image(self):
        a = generate_mandelbrot(32, 32, -0.5, 0.0, 1.0, 50)
        b = generate_mandelbrot(32, 32, -0.5, 0.0, 4.0, 50)
        assert not np.array_equal(a, b)

    def test_iterations_capped(self):
        img = generate_mandelbrot(8, 8, max_iterations=10 ** 9)
        assert img.shape == (8, 8, 4)


class TestGenerateJulia:
    def test_shape_and_opaque(self):
        img = generate_julia(64, 48)
        assert img.shape == (48, 64, 4)
        assert (img[..., 3] == 255).all()

    def test_constant_changes_image(self):
        a = generate_julia(32, 32, -0.7, 0.27, max_iterations=50)
        b = generate_julia(32, 32, 0.285, 0.01, max_iterations=50)
        assert not np.array_equal(a, b)


class TestPalettes:
    @pytest.mark.parametrize("scheme", COLOR_SCHEMES)
    def test_in_set_is_black(self, scheme):
        count = np.array([[0, 50, 100]])
        img = color_for_iterations(count, 100, scheme)
        assert tuple(img[0, 2]) == (0, 0, 0, 255)
        assert (img[..., 3] == 255).all()

    def test_fire_ramps_up(self):
        img = color_for_iterations(np.array([[10, 90]]), 100, "fire")
        assert img[0, 1, 0] >= img[0, 0, 0]

    @pytest.mark.parametrize("scheme,expected", [
        (0, "rainbow"), (1, "fire"), (2, "ocean"), (3, "psychedelic"),
        (7, "rainbow"), ("ocean", "ocean"), ("bogus", "rainbow"), (None, "rainbow"),
    ])
    def test_resolve(self, scheme, expected):
        assert resolve_color_scheme(scheme) == expected


class TestOverlayFilters:
    def test_zero_opacity_leaves_frame(self):
        frame = _make_test_frame(40, 30)
        before = frame.copy()
        mandelbrot(frame, opacity=0.0)
        np.testing.assert_array_equal(frame, before)

    def test_alpha_preserved(self):
        frame = _make_test_frame(40, 30, alpha=100)
        julia_set(frame, opacity=1.0, blend_mode=5)
        assert (frame[..., 3] == 100).all()

    def test_full_normal_is_fractal(self):
        frame = _make_test_frame(40, 30)
        mandelbrot(frame, opacity=1.0, blend_mode=5, iterations=50)
        np.testing.assert_array_equal(frame[..., :3], generate_mandelbrot(40, 30, max_iterations=50)[..., :3])
