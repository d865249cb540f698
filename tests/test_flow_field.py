"""Tests for flow-field particles and the vector-field arrow plot."""

import os
import sys

import numpy as np
import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from pixelfx.flow_field import FIELD_TYPES, ParticleSet, build_field, flow_field, vector_field
from pixelfx.noise import PerlinNoise
from conftest import _make_test_frame


class TestBuildField:
    def test_grid_shape_rounds_up(self):
        angle, magnitude = build_field(95, 41)
        assert angle.shape == magnitude.shape == (5, 10)

    @pytest.mark.parametrize("field_type", range(len(FIELD_TYPES)))
    def test_all_types_finite(self, field_type):
        angle, magnitude = build_field(60, 40, field_type, 0.02, PerlinNoise(3))
        assert np.isfinite(angle).all()
        assert np.isfinite(magnitude).all()

    def test_radial_magnitude_grows_outward(self):
        _, magnitude = build_field(100, 100, 3)
        assert magnitude[5, 5] < magnitude[0, 0]

    def test_wave_magnitude_constant(self):
        _, magnitude = build_field(60, 40, 2)
        assert (magnitude == 0.8).all()


class TestParticleSet:
    def _spawn(self, n=100, w=60, h=40, seed=1):
        source = _make_test_frame(w, h)
        return ParticleSet.spawn(n, w, h, source, np.random.default_rng(seed)), source

    def test_spawn_ranges(self):
        ps, _ = self._spawn()
        assert len(ps) == 100
        assert (ps.x >= 0).all() and (ps.x < 60).all()
        assert (ps.y >= 0).all() and (ps.y < 40).all()
        assert (ps.max_age >= 50).all() and (ps.max_age < 150).all()
        assert ps.color.shape == (100, 3)

    def test_step_wraps_inside_frame(self):
        ps, _ = self._spawn()
        angle, magnitude = build_field(60, 40)
        for _ in range(20):
            ps.step(angle, magnitude, 50.0, 60, 40)
            assert (ps.x >= 0).all() and (ps.x <= 60).all()
            assert (ps.y >= 0).all() and (ps.y <= 40).all()

    def test_deposit_saturates(self):
        ps, _ = self._spawn(n=500)
        ps.color[:] = 255.0
        canvas = np.full((40, 60, 3), 250.0, dtype=np.float32)
        ps.deposit(canvas)
        assert canvas.max() <= 255.0

    def test_respawn_resets_age(self):
        ps, source = self._spawn(n=10)
        ps.age[:] = 1000
        ps.age_and_respawn(60, 40, source, np.random.default_rng(2))
        assert (ps.age == 0).all()
        assert (ps.vx == 0).all()


class TestFlowField:
    def test_deterministic_with_seed(self):
        a = flow_field(_make_test_frame(48, 32), particles=200, seed=7, steps=10)
        b = flow_field(_make_test_frame(48, 32), particles=200, seed=7, steps=10)
        np.testing.assert_array_equal(a, b)

    def test_seed_changes_output(self):
        a = flow_field(_make_test_frame(48, 32), particles=200, seed=7, steps=10)
        b = flow_field(_make_test_frame(48, 32), particles=200, seed=8, steps=10)
        assert not np.array_equal(a, b)

    def test_zero_blend_is_identity(self):
        frame = _make_test_frame(48, 32)
        before = frame.copy()
        flow_field(frame, blend=0.0, particles=100)
        np.testing.assert_array_equal(frame, before)

    @pytest.mark.parametrize("field_type", range(len(FIELD_TYPES)))
    def test_alpha_untouched(self, field_type, pool):
        frame = _make_test_frame(48, 32, alpha=42)
        flow_field(frame, pool=pool, field_type=field_type, particles=100, steps=5)
        assert (frame[..., 3] == 42).all()

    def test_particles_capped(self):
        frame = _make_test_frame(16, 16)
        flow_field(frame, particles=10 ** 9, steps=1)
        assert frame.shape == (16, 16, 4)


class TestVectorField:
    @pytest.mark.parametrize("color_mode", [0, 1, 2])
    def test_darkens_and_draws(self, color_mode):
        frame = np.full((60, 80, 4), 200, dtype=np.uint8)
        frame[..., 3] = 255
        vector_field(frame, color_mode=color_mode)
        assert frame[..., :3].min() == 60
        assert frame[..., :3].max() > 60
        assert (frame[..., 3] == 255).all()

    def test_thick_arrows_cover_more(self):
        thin = np.full((60, 80, 4), 100, dtype=np.uint8)
        thick = thin.copy()
        vector_field(thin, thickness=1)
        vector_field(thick, thickness=4)
        assert (thick[..., :3] > 30).sum() > (thin[..., :3] > 30).sum()
