"""Tests for the Gray-Scott reaction-diffusion simulation."""

import os
import sys

import numpy as np
import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from pixelfx.reaction_diffusion import (
    PATTERNS, RD_PRESET_ORDER, RD_PRESETS, colorize, reaction_diffusion,
    resolve_pattern, seed_pattern, simulate,
)
from conftest import _make_test_frame


class TestSeedPattern:
    def test_center(self):
        b = seed_pattern(32, 32, "center")
        assert b[16, 16] == 1.0
        assert b[0, 0] == 0.0

    def test_stripes(self):
        b = seed_pattern(40, 8, "stripes")
        assert (b[:, 0] == 1.0).all()
        assert (b[:, 10] == 0.0).all()
        assert (b[:, 20] == 1.0).all()

    def test_random_density(self):
        b = seed_pattern(50, 40, "random", np.random.default_rng(1))
        assert 0 < b.sum() <= 200

    def test_spots_seeded(self):
        b = seed_pattern(60, 60, "spots", np.random.default_rng(1))
        assert b.any()
        assert set(np.unique(b)) <= {0.0, 1.0}

    @pytest.mark.parametrize("width,height", [(95, 70), (31, 29), (7, 64)])
    def test_spots_are_radius_five_discs(self, width, height):
        b = seed_pattern(width, height, "spots", np.random.default_rng(4))
        rng = np.random.default_rng(4)
        ys, xs = np.mgrid[0:height, 0:width]
        expected = np.zeros((height, width), dtype=np.float32)
        for y in range(0, height, 30):
            for x in range(0, width, 30):
                cx = int(np.floor(x + rng.random() * 30))
                cy = int(np.floor(y + rng.random() * 30))
                expected[(xs - cx) ** 2 + (ys - cy) ** 2 <= 25] = 1.0
        np.testing.assert_array_equal(b, expected)

    def test_spots_on_a_large_frame(self):
        b = seed_pattern(900, 900, "spots", np.random.default_rng(2))
        assert b.shape == (900, 900)
        # 30 x 30 grid cells, each disc covers at most 81 pixels
        assert 0 < b.sum() <= 900 * 81

    @pytest.mark.parametrize("value,expected", [
        (0, "random"), (1, "center"), (3, "spots"), (9, "random"), ("stripes", "stripes"),
        ("bogus", "random"),
    ])
    def test_resolve_pattern(self, value, expected):
        assert resolve_pattern(value) == expected


class TestSimulate:
    @pytest.mark.parametrize("pattern", PATTERNS)
    def test_concentrations_stay_in_unit_range(self, pattern):
        a, b = simulate(32, 24, iterations=20, initial_pattern=pattern, seed=1)
        assert a.shape == b.shape == (24, 32)
        assert a.dtype == np.float32
        for grid in (a, b):
            assert grid.min() >= 0.0
            assert grid.max() <= 1.0

    def test_extreme_rates_are_clamped(self):
        a, b = simulate(24, 24, feed_rate=0.1, kill_rate=0.04, diffusion_a=1.0,
                        diffusion_b=1.0, iterations=50, seed=3)
        assert np.isfinite(a).all() and np.isfinite(b).all()
        assert a.min() >= 0.0 and b.max() <= 1.0

    def test_deterministic_with_seed(self):
        a1, b1 = simulate(24, 24, iterations=10, seed=5)
        a2, b2 = simulate(24, 24, iterations=10, seed=5)
        np.testing.assert_array_equal(a1, a2)
        np.testing.assert_array_equal(b1, b2)

    def test_zero_iterations_returns_seed_state(self):
        a, b = simulate(32, 32, iterations=0, initial_pattern="center")
        assert (a == 1.0).all()
        np.testing.assert_array_equal(b, seed_pattern(32, 32, "center"))

    def test_pattern_evolves(self):
        _, b0 = simulate(32, 32, iterations=0, initial_pattern="center")
        _, b1 = simulate(32, 32, iterations=30, initial_pattern="center")
        assert not np.array_equal(b0, b1)


class TestPresets:
    def test_eight_presets(self):
        assert len(RD_PRESET_ORDER) == 8
        assert RD_PRESETS["coral"] == {"feed_rate": 0.0545, "kill_rate": 0.062}

    def test_preset_overrides_rates(self):
        custom = reaction_diffusion(_make_test_frame(24, 24), preset=1, feed_rate=0.01,
                                    kill_rate=0.08, iterations=30)
        coral = reaction_diffusion(_make_test_frame(24, 24), preset=0, feed_rate=0.0545,
                                   kill_rate=0.062, iterations=30)
        np.testing.assert_array_equal(custom, coral)


class TestColorize:
    def test_zebra_is_binary(self):
        a, b = simulate(24, 24, iterations=10, seed=2)
        rgb = colorize(a, b, 2)
        assert set(np.unique(rgb)) <= {0, 255}

    @pytest.mark.parametrize("scheme", [0, 1, 2, 3, "organic", "psychedelic"])
    def test_shape(self, scheme):
        a = np.full((4, 5), 0.5, dtype=np.float32)
        rgb = colorize(a, a, scheme)
        assert rgb.shape == (4, 5, 3)
        assert rgb.dtype == np.uint8


class TestReactionDiffusionFilter:
    def test_alpha_preserved(self, pool):
        frame = _make_test_frame(24, 24, alpha=60)
        out = reaction_diffusion(frame, pool=pool, iterations=10)
        assert out.shape == (24, 24, 4)
        assert (out[..., 3] == 60).all()

    def test_zero_opacity_leaves_frame(self):
        frame = _make_test_frame(24, 24)
        before = frame.copy()
        reaction_diffusion(frame, iterations=5, opacity=0.0)
        np.testing.assert_array_equal(frame, before)
