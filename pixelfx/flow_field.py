"""
Pixel FX — Flow Fields
Noise-driven vector fields: particle trails smeared along the field, and
an arrow-plot visualisation of the field itself.
"""

import numpy as np

from engine.buffers import draw_line, snapshot
from engine.color import hsl_to_rgb
from engine.safety import MAX_PARTICLES, clamp_count
from pixelfx.noise import PerlinNoise

FIELD_CELL = 10
FIELD_TYPES = ("swirl", "turbulence", "wave", "radial")
FRICTION = 0.95


def build_field(width: int, height: int, field_type=0, scale=0.01, noise=None):
    """Angle and magnitude grids, one cell per FIELD_CELL pixels.

    Returns two (ceil(H/10), ceil(W/10)) float arrays.
    """
    noise = noise or PerlinNoise(42)
    fw = int(np.ceil(width / FIELD_CELL))
    fh = int(np.ceil(height / FIELD_CELL))
    gy, gx = np.mgrid[0:fh, 0:fw].astype(np.float64)
    fx = gx * FIELD_CELL
    fy = gy * FIELD_CELL
    kind = int(field_type)

    if kind == 1:
        angle = np.abs(noise.fbm(fx * scale, fy * scale, 6, 0.65)) * np.pi * 2
        magnitude = np.abs(noise.fbm(fx * scale + 50, fy * scale + 50, 4, 0.5))
    elif kind == 2:
        angle = np.sin(fx * scale * 2) * np.cos(fy * scale * 2) * np.pi
        angle = angle + noise.noise(fx * scale, fy * scale) * np.pi * 0.5
        magnitude = np.full_like(angle, 0.8)
    elif kind == 3:
        dx = fx - width / 2
        dy = fy - height / 2
        angle = np.arctan2(dy, dx) + np.pi / 2
        angle = angle + noise.noise(fx * scale, fy * scale) * np.pi * 0.3
        magnitude = np.sqrt(dx * dx + dy * dy) / max(width, height)
    else:
        angle = noise.fbm(fx * scale, fy * scale, 4, 0.5) * np.pi * 4
        magnitude = 0.5 + noise.fbm(fx * scale + 100, fy * scale + 100, 2, 0.5) * 0.5
    return angle, magnitude


class ParticleSet:
    """Structure-of-arrays particle system, local to one flow-field render."""

    def __init__(self, x, y, max_age, color):
        self.x = x
        self.y = y
        self.vx = np.zeros_like(x)
        self.vy = np.zeros_like(y)
        self.age = np.zeros_like(x)
        self.max_age = max_age
        self.color = color

    @classmethod
    def spawn(cls, n: int, width: int, height: int, source: np.ndarray, rng) -> "ParticleSet":
        x = rng.random(n) * width
        y = rng.random(n) * height
        max_age = 50 + rng.random(n) * 100
        return cls(x, y, max_age, cls._sample(source, x, y))

    @staticmethod
    def _sample(source, x, y):
        h, w = source.shape[:2]
        px = np.minimum(np.floor(x).astype(np.int64), w - 1)
        py = np.minimum(np.floor(y).astype(np.int64), h - 1)
        return source[py, px, :3].astype(np.float32)

    def __len__(self):
        return self.x.size

    def step(self, angle, magnitude, strength, width, height):
        """Advance every particle one step through the field, wrapping at edges."""
        fh, fw = angle.shape
        cx = np.minimum((self.x // FIELD_CELL).astype(np.int64), fw - 1)
        cy = np.minimum((self.y // FIELD_CELL).astype(np.int64), fh - 1)
        theta = angle[cy, cx]
        force = magnitude[cy, cx] * strength * 0.1

        self.vx = (self.vx + np.cos(theta) * force) * FRICTION
        self.vy = (self.vy + np.sin(theta) * force) * FRICTION
        self.x = np.mod(self.x + self.vx, width)
        self.y = np.mod(self.y + self.vy, height)

    def deposit(self, canvas: np.ndarray):
        """Additively draw each particle's colour, fading with age."""
        h, w = canvas.shape[:2]
        px = np.minimum(np.floor(self.x).astype(np.int64), w - 1)
        py = np.minimum(np.floor(self.y).astype(np.int64), h - 1)
        weight = ((1 - self.age / self.max_age) * 0.1)[:, np.newaxis]
        np.add.at(canvas, (py, px), self.color * weight)
        np.minimum(canvas, 255, out=canvas)

    def age_and_respawn(self, width, height, source, rng):
        self.age += 1
        expired = self.age > self.max_age
        n = int(expired.sum())
        if not n:
            return
        x = rng.random(n) * width
        y = rng.random(n) * height
        self.x[expired] = x
        self.y[expired] = y
        self.vx[expired] = 0
        self.vy[expired] = 0
        self.age[expired] = 0
        self.color[expired] = self._sample(source, x, y)


def flow_field(frame, pool=None, scale=0.01, strength=10.0, particles=1000, field_type=0,
               blend=0.7, seed=42, steps=20):
    """Particles advected through a noise field leave additive trails.

    The trail canvas starts as a 95% copy of the source and is mixed back
    over it by `blend`. Alpha is untouched.
    """
    h, w = frame.shape[:2]
    seed = int(seed)
    count = clamp_count(particles, MAX_PARTICLES, "particles")
    rng = np.random.default_rng(seed)
    angle, magnitude = build_field(w, h, field_type, scale, PerlinNoise(seed))

    with snapshot(frame, pool) as original:
        src = original[..., :3].astype(np.float32)
        canvas = src * 0.95
        if count:
            ps = ParticleSet.spawn(count, w, h, original, rng)
            for _ in range(int(steps)):
                ps.step(angle, magnitude, strength, w, h)
                ps.deposit(canvas)
                ps.age_and_respawn(w, h, original, rng)

    result = src * (1 - blend) + canvas * blend
    frame[..., :3] = np.clip(np.round(result), 0, 255).astype(np.uint8)
    return frame


ARROW_SIZE = 5
ARROW_ANGLE = np.pi / 6


def vector_field(frame, pool=None, scale=0.02, spacing=20, length=15, thickness=2, color_mode=0):
    """Plot the swirl field as arrows over a darkened copy of the frame.

    Color modes: 0 direction hue, 1 magnitude ramp, 2 source colour.
    """
    h, w = frame.shape[:2]
    spacing = max(2, int(spacing))
    half = int(thickness) // 2
    mode = int(color_mode)
    noise = PerlinNoise()

    ys = np.arange(spacing / 2, h, spacing)
    xs = np.arange(spacing / 2, w, spacing)
    gx, gy = np.meshgrid(xs, ys)
    angle = noise.fbm(gx * scale, gy * scale, 4, 0.5) * np.pi * 2
    magnitude = 0.5 + noise.fbm(gx * scale + 100, gy * scale + 100, 2, 0.5) * 0.5

    if mode == 1:
        colors = np.stack([np.floor(255 * magnitude), np.floor(255 * (1 - magnitude)),
                           np.full_like(magnitude, 128)], axis=-1)
    elif mode == 2:
        colors = frame[np.floor(gy).astype(np.int64), np.floor(gx).astype(np.int64), :3].astype(np.float64)
    else:
        colors = hsl_to_rgb(np.mod(angle / (np.pi * 2) + 1, 1), 0.8, 0.6)

    frame[..., :3] = np.round(frame[..., :3] * 0.3).astype(np.uint8)
    data = np.ascontiguousarray(frame).reshape(-1)

    for (x, y), theta, mag, color in zip(
            zip(gx.ravel(), gy.ravel()), angle.ravel(), magnitude.ravel(), colors.reshape(-1, 3)):
        end_x = x + np.cos(theta) * length * mag
        end_y = y + np.sin(theta) * length * mag
        for oy in range(-half, half + 1):
            for ox in range(-half, half + 1):
                draw_line(data, w, h, x + ox, y + oy, end_x + ox, end_y + oy, color)
        for side in (-ARROW_ANGLE, ARROW_ANGLE):
            tip_x = end_x - np.cos(theta + side) * ARROW_SIZE
            tip_y = end_y - np.sin(theta + side) * ARROW_SIZE
            draw_line(data, w, h, end_x, end_y, tip_x, tip_y, color)
    frame[...] = data.reshape(frame.shape)
    return frame
