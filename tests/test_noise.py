"""Tests for seeded Perlin noise and fBm."""

import os
import sys

import numpy as np
import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from pixelfx.noise import PerlinNoise


class TestPerlinNoise:
    def test_same_seed_same_value(self):
        assert PerlinNoise(7).noise(1.3, 2.7) == PerlinNoise(7).noise(1.3, 2.7)

    def test_different_seeds_differ(self):
        xs = np.linspace(0.1, 20.3, 50)
        a = PerlinNoise(1).noise(xs, xs * 0.7)
        b = PerlinNoise(2).noise(xs, xs * 0.7)
        assert not np.allclose(a, b)

    def test_zero_seed_uses_default(self):
        np.testing.assert_array_equal(PerlinNoise(0).permutation, PerlinNoise().permutation)

    def test_permutation_is_a_permutation(self):
        assert sorted(PerlinNoise(99).permutation.tolist()) == list(range(256))

    def test_range(self):
        rng = np.random.RandomState(3)
        xs = rng.uniform(-100, 100, 1000)
        ys = rng.uniform(-100, 100, 1000)
        values = PerlinNoise(42).noise(xs, ys)
        assert values.shape == (1000,)
        assert values.min() >= -1.0
        assert values.max() <= 1.0

    def test_zero_on_lattice(self):
        noise = PerlinNoise(5)
        for x, y in [(0.0, 0.0), (3.0, 5.0), (-2.0, 7.0)]:
            assert noise.noise(x, y) == pytest.approx(0.0)

    def test_scalar_returns_float(self):
        assert isinstance(PerlinNoise().noise(0.5, 0.25), float)

    def test_array_matches_scalar(self):
        noise = PerlinNoise(11)
        xs = np.array([0.15, 3.7, -8.2, 120.9])
        ys = np.array([1.5, -0.3, 4.4, 64.1])
        grid = noise.noise(xs, ys)
        for i in range(len(xs)):
            assert grid[i] == pytest.approx(noise.noise(float(xs[i]), float(ys[i])))

    def test_continuous(self):
        noise = PerlinNoise(8)
        assert abs(noise.noise(4.3, 1.2) - noise.noise(4.3001, 1.2)) < 0.01

    @pytest.mark.parametrize("x,y", [(4.3, 1.2), (0.37, 0.61), (-7.85, 12.15)])
    @pytest.mark.parametrize("eps", [1e-3, 0.05, 0.25])
    def test_small_step_changes_value(self, x, y, eps):
        noise = PerlinNoise(8)
        assert noise.noise(x, y) != noise.noise(x + eps, y)


class TestFbm:
    def test_range(self):
        xs, ys = np.meshgrid(np.linspace(-10, 10, 40), np.linspace(-10, 10, 30))
        values = PerlinNoise(3).fbm(xs, ys, octaves=5)
        assert values.shape == (30, 40)
        assert np.abs(values).max() <= 1.0

    def test_single_octave_equals_noise(self):
        noise = PerlinNoise(4)
        assert noise.fbm(2.5, 1.75, octaves=1) == pytest.approx(noise.noise(2.5, 1.75))

    def test_octaves_floor_at_one(self):
        noise = PerlinNoise(4)
        assert noise.fbm(2.5, 1.75, octaves=0) == pytest.approx(noise.noise(2.5, 1.75))

    @pytest.mark.parametrize("x,y", [(2.37, 1.61), (-5.13, 8.42), (0.71, 0.29)])
    def test_octaves_are_distinguishable(self, x, y):
        noise = PerlinNoise(6)
        values = [noise.fbm(x, y, octaves=n) for n in (1, 2, 4, 6)]
        assert len(set(values)) == len(values)

    @pytest.mark.parametrize("x,y", [(2.37, 1.61), (-5.13, 8.42), (0.71, 0.29)])
    def test_persistence_is_distinguishable(self, x, y):
        noise = PerlinNoise(6)
        assert noise.fbm(x, y, octaves=4, persistence=0.3) != noise.fbm(x, y, octaves=4, persistence=0.8)
