"""
Pixel FX — Coherent Noise
Seeded 2D Perlin noise and fractional Brownian motion.

Both noise() and fbm() accept scalars (returning float) or numpy arrays
(returning arrays of the same shape), so the flow field can evaluate a
whole grid in one call.
"""

import numpy as np


class PerlinNoise:
    """2D gradient noise with a permutation table derived once from `seed`."""

    def __init__(self, seed: int = 12345):
        self.seed = int(seed) if seed else 12345
        self.permutation = self._generate_permutation(self.seed)
        self.p = np.concatenate([self.permutation, self.permutation])

    @staticmethod
    def _generate_permutation(seed: int) -> np.ndarray:
        perm = list(range(256))
        rng = seed
        # LCG shuffle: deterministic across platforms for a given seed
        for i in range(len(perm) - 1, 0, -1):
            rng = (rng * 1664525 + 1013904223) % 4294967296
            j = int((rng / 4294967296) * (i + 1))
            perm[i], perm[j] = perm[j], perm[i]
        return np.array(perm, dtype=np.int64)

    @staticmethod
    def _fade(t):
        return t * t * t * (t * (t * 6 - 15) + 10)

    @staticmethod
    def _lerp(t, a, b):
        return a + t * (b - a)

    @staticmethod
    def _grad(h, x, y):
        h = h & 3
        u = np.where(h < 2, x, y)
        v = np.where(h < 2, y, x)
        return np.where((h & 1) == 0, u, -u) + np.where((h & 2) == 0, v, -v)

    def noise(self, x, y):
        """Noise value in [-1, 1] at (x, y)."""
        scalar = np.isscalar(x) and np.isscalar(y)
        x = np.asarray(x, dtype=np.float64)
        y = np.asarray(y, dtype=np.float64)

        fx = np.floor(x)
        fy = np.floor(y)
        xi = fx.astype(np.int64) & 255
        yi = fy.astype(np.int64) & 255
        x = x - fx
        y = y - fy

        u = self._fade(x)
        v = self._fade(y)

        p = self.p
        a = p[xi] + yi
        aa = p[a]
        ab = p[a + 1]
        b = p[xi + 1] + yi
        ba = p[b]
        bb = p[b + 1]

        value = self._lerp(
            v,
            self._lerp(u, self._grad(p[aa], x, y), self._grad(p[ba], x - 1, y)),
            self._lerp(u, self._grad(p[ab], x, y - 1), self._grad(p[bb], x - 1, y - 1)),
        )
        return float(value) if scalar else value

    def fbm(self, x, y, octaves: int = 4, persistence: float = 0.5):
        """Sum of `octaves` noise layers at doubling frequency, normalised by total amplitude."""
        octaves = max(1, int(octaves))
        value = 0.0
        amplitude = 1.0
        frequency = 1.0
        max_value = 0.0
        x = np.asarray(x, dtype=np.float64) if not np.isscalar(x) else float(x)
        y = np.asarray(y, dtype=np.float64) if not np.isscalar(y) else float(y)

        for _ in range(octaves):
            value = value + amplitude * self.noise(x * frequency, y * frequency)
            max_value += amplitude
            amplitude *= persistence
            frequency *= 2

        if max_value == 0:
            return value
        return value / max_value
