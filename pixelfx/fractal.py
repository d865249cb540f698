"""
Pixel FX — Fractal Displacement

Four escape-time / root-finding generators that map a point of the complex
plane to a displacement (dx, dy) and a normalised value in [0, 1]:

    newton        Newton's method on z^3 - 1
    burning_ship  z <- (|Re z|, |Im z|)^2 + c
    tricorn       z <- conj(z)^2 + c
    phoenix       z <- z^2 + c + (p * Re z_prev, q * Im z_prev)

Each generator is pure and takes scalars (returns floats) or numpy arrays
(evaluates a whole frame at once, element-wise identical to the scalar
loop). The filters below resample the source through those fields.

Out-of-bounds policy is per filter: fractal_displacement wraps,
psychedelic_kaleidoscope paints a computed edge colour.
"""

from dataclasses import dataclass
from typing import Any, NamedTuple

import numpy as np

from engine.buffers import snapshot
from engine.color import hsl_to_rgb, rgb_to_hsl
from engine.safety import MAX_ITERATIONS, clamp_count


@dataclass(frozen=True)
class Complex:
    """Immutable complex value. Components may be floats or numpy arrays."""
    real: Any
    imag: Any

    def add(self, c: "Complex") -> "Complex":
        return Complex(self.real + c.real, self.imag + c.imag)

    def multiply(self, c: "Complex") -> "Complex":
        return Complex(
            self.real * c.real - self.imag * c.imag,
            self.real * c.imag + self.imag * c.real,
        )

    def power(self, n: float) -> "Complex":
        r = np.sqrt(self.real * self.real + self.imag * self.imag)
        theta = np.arctan2(self.imag, self.real)
        new_r = r ** n
        return Complex(new_r * np.cos(theta * n), new_r * np.sin(theta * n))

    def magnitude(self):
        return np.sqrt(self.real * self.real + self.imag * self.imag)


class DisplacementResult(NamedTuple):
    dx: Any
    dy: Any
    value: Any


def _prepare(x, y):
    scalar = np.isscalar(x) and np.isscalar(y)
    x, y = np.broadcast_arrays(np.asarray(x, dtype=np.float64), np.asarray(y, dtype=np.float64))
    return scalar, x, y


def _result(scalar, dx, dy, value):
    if scalar:
        return DisplacementResult(float(dx), float(dy), float(value))
    return DisplacementResult(dx, dy, value)


def newton(x, y, iterations: int = 10) -> DisplacementResult:
    """Newton's method on f(z) = z^3 - 1 starting at z = x + iy.

    Stops early where |f'(z)| < 0.001 (before stepping) or the step
    magnitude falls below 0.001 (after stepping). value is the fraction of
    the iteration budget actually used.
    """
    scalar, x, y = _prepare(x, y)
    iterations = max(0, int(iterations))
    z = Complex(x.copy(), y.copy())
    active = np.ones(x.shape, dtype=bool)
    used = np.zeros(x.shape, dtype=np.int64)

    with np.errstate(over="ignore", invalid="ignore", divide="ignore"):
        for i in range(iterations):
            z3 = z.power(3)
            f = Complex(z3.real - 1, z3.imag)
            z2 = z.power(2)
            df = Complex(3 * z2.real, 3 * z2.imag)

            active &= df.magnitude() >= 0.001
            if not active.any():
                break

            denom = df.real * df.real + df.imag * df.imag
            denom = np.where(active, denom, 1.0)
            ratio = Complex(
                (f.real * df.real + f.imag * df.imag) / denom,
                (f.imag * df.real - f.real * df.imag) / denom,
            )
            z = Complex(
                np.where(active, z.real - ratio.real, z.real),
                np.where(active, z.imag - ratio.imag, z.imag),
            )
            used = np.where(active, i + 1, used)
            active &= ratio.magnitude() >= 0.001

    convergence = used / max(iterations, 1)
    return _result(scalar, z.real - x, z.imag - y, convergence)


def burning_ship(x, y, iterations: int = 20) -> DisplacementResult:
    """Burning Ship escape-time iteration with c = x + iy.

    At the origin the orbit stays at 0 and never escapes: value 1, zero
    displacement.
    """
    scalar, x, y = _prepare(x, y)
    iterations = max(0, int(iterations))
    zx = np.zeros_like(x)
    zy = np.zeros_like(y)
    count = np.zeros(x.shape, dtype=np.int64)

    for _ in range(iterations):
        active = zx * zx + zy * zy < 4
        if not active.any():
            break
        xtemp = zx * zx - zy * zy + x
        new_zy = np.abs(2 * zx * zy) + y
        zx = np.where(active, np.abs(xtemp), zx)
        zy = np.where(active, new_zy, zy)
        count += active

    return _result(scalar, zx - x, zy - y, count / max(iterations, 1))


def tricorn(x, y, iterations: int = 20) -> DisplacementResult:
    """Tricorn (Mandelbar): iterate the conjugate, symmetric about the real axis."""
    scalar, x, y = _prepare(x, y)
    iterations = max(0, int(iterations))
    zx = np.zeros_like(x)
    zy = np.zeros_like(y)
    count = np.zeros(x.shape, dtype=np.int64)

    for _ in range(iterations):
        active = zx * zx + zy * zy < 4
        if not active.any():
            break
        xtemp = zx * zx - zy * zy + x
        new_zy = -2 * zx * zy + y
        zx = np.where(active, xtemp, zx)
        zy = np.where(active, new_zy, zy)
        count += active

    return _result(scalar, zx - x, zy - y, count / max(iterations, 1))


def phoenix(x, y, p: float, q: float, iterations: int = 20) -> DisplacementResult:
    """Phoenix fractal: z feeds back the previous iterate scaled by (p, q)."""
    scalar, x, y = _prepare(x, y)
    iterations = max(0, int(iterations))
    zx = np.zeros_like(x)
    zy = np.zeros_like(y)
    zxp = np.zeros_like(x)
    zyp = np.zeros_like(y)
    count = np.zeros(x.shape, dtype=np.int64)

    for _ in range(iterations):
        active = zx * zx + zy * zy < 4
        if not active.any():
            break
        xtemp = zx * zx - zy * zy + x + p * zxp
        ytemp = 2 * zx * zy + y + q * zyp
        zxp = np.where(active, zx, zxp)
        zyp = np.where(active, zy, zyp)
        zx = np.where(active, xtemp, zx)
        zy = np.where(active, ytemp, zy)
        count += active

    return _result(scalar, zx - x, zy - y, count / max(iterations, 1))


FRACTAL_TYPES = ("newton", "burningShip", "tricorn", "phoenix")

# Largest displacement (px) carried into index arithmetic
_MAX_SHIFT = 1e6


def _js_round(v):
    return np.floor(v + 0.5)


def fractal_displacement(frame, pool=None, fractal_type=0, scale=0.002, strength=50.0,
                         iterations=20, center_x=0.0, center_y=0.0, color_mode=0,
                         phoenix_p=0.5626, phoenix_q=-0.5):
    """Resample the frame through a fractal displacement field.

    Color modes:
        0 — displacement only
        1 — 70/30 blend with the fractal value as grey
        2 — psychedelic HSL colouring, 30/70 with the source

    Samples that land outside the frame wrap around and copy the raw
    source pixel (no colour mode).
    """
    h, w = frame.shape[:2]
    iterations = clamp_count(iterations, MAX_ITERATIONS, "iterations")
    kind = int(fractal_type)

    ys, xs = np.mgrid[0:h, 0:w].astype(np.float64)
    fx = (xs - w / 2) * scale + center_x
    fy = (ys - h / 2) * scale + center_y

    if kind == 1:
        res = burning_ship(fx, fy, iterations)
    elif kind == 2:
        res = tricorn(fx, fy, iterations)
    elif kind == 3:
        res = phoenix(fx, fy, phoenix_p, phoenix_q, iterations)
    else:
        res = newton(fx, fy, iterations)

    dx = np.clip(np.nan_to_num(res.dx * strength), -_MAX_SHIFT, _MAX_SHIFT)
    dy = np.clip(np.nan_to_num(res.dy * strength), -_MAX_SHIFT, _MAX_SHIFT)
    value = np.nan_to_num(res.value)

    src_x = _js_round(xs + dx).astype(np.int64)
    src_y = _js_round(ys + dy).astype(np.int64)
    inside = (src_x >= 0) & (src_x < w) & (src_y >= 0) & (src_y < h)

    with snapshot(frame, pool) as original:
        sampled = original[np.mod(src_y, h), np.mod(src_x, w)]

    out = sampled.astype(np.float32)
    mode = int(color_mode)
    if mode == 1:
        grey = (value * 255.0)[..., np.newaxis]
        colored = out[..., :3] * 0.7 + grey * 0.3
        out[..., :3] = np.where(inside[..., np.newaxis], colored, out[..., :3])
    elif mode == 2:
        raw_dx = dx / strength if strength else res.dx
        hue = np.mod(value * 6 + raw_dx, 1.0)
        sat = 0.8 + 0.2 * np.sin(value * np.pi * 4)
        light = 0.4 + 0.3 * np.cos(value * np.pi * 6)
        rgb = hsl_to_rgb(hue, sat, light)
        colored = out[..., :3] * 0.3 + rgb * 0.7
        out[..., :3] = np.where(inside[..., np.newaxis], colored, out[..., :3])

    frame[...] = np.clip(np.round(out), 0, 255).astype(np.uint8)
    return frame


def psychedelic_kaleidoscope(frame, pool=None, segments=6, twist=1.0, zoom=1.5,
                             time=0.0, color_shift=0.5):
    """Kaleidoscope fold with a fractal perturbation and per-segment hue rotation.

    Samples outside the frame take a computed edge colour instead of
    source pixels.
    """
    h, w = frame.shape[:2]
    segments = max(2, int(segments))
    zoom = zoom if zoom > 0 else 1.5
    cx, cy = w / 2, h / 2
    seg = 2 * np.pi / segments

    ys, xs = np.mgrid[0:h, 0:w].astype(np.float64)
    dx = xs - cx
    dy = ys - cy
    angle = np.arctan2(dy, dx)
    zoomed = np.sqrt(dx * dx + dy * dy) / zoom

    angle = angle + twist * zoomed / max(w, h) + time
    seg_angle = np.mod(angle, seg)
    seg_angle = np.where(seg_angle > seg / 2, seg - seg_angle, seg_angle)

    fx = zoomed * 0.01 * np.cos(seg_angle)
    fy = zoomed * 0.01 * np.sin(seg_angle)
    perturbation = np.sin(fx * 5) * np.cos(fy * 5) * 20
    src_angle = seg_angle + perturbation * 0.01

    src_x = _js_round(cx + np.cos(src_angle) * zoomed).astype(np.int64)
    src_y = _js_round(cy + np.sin(src_angle) * zoomed).astype(np.int64)
    inside = (src_x >= 0) & (src_x < w) & (src_y >= 0) & (src_y < h)

    with snapshot(frame, pool) as original:
        sampled = original[np.clip(src_y, 0, h - 1), np.clip(src_x, 0, w - 1)]

    hue, sat, light = rgb_to_hsl(sampled)
    hue = np.mod(hue + color_shift * (seg_angle / seg) + time * 0.1, 1.0)
    sat = np.minimum(1.0, sat * 1.5)
    rgb = hsl_to_rgb(hue, sat, light)

    edge = np.sin(angle * segments + time) * 127 + 128
    edge_rgb = np.stack([edge, edge * 0.7, edge * 1.3], axis=-1)

    out = np.empty((h, w, 4), dtype=np.float64)
    out[..., :3] = np.where(inside[..., np.newaxis], rgb, edge_rgb)
    out[..., 3] = np.where(inside, sampled[..., 3], 255)

    frame[...] = np.clip(np.round(out), 0, 255).astype(np.uint8)
    return frame


def fractal_mirror(frame, pool=None, divisions=4, offset=0.1, recursion=3, blend=0.5):
    """Recursive block mirroring; each level halves the block size.

    Mirror direction per block comes from sin(3 * bx * offset) * cos(5 * by * offset):
    positive flips horizontally, below -0.5 flips vertically.
    """
    h, w = frame.shape[:2]
    divisions = max(1, int(divisions))
    recursion = max(1, int(recursion))

    ys, xs = np.mgrid[0:h, 0:w]
    result = frame[..., :3].astype(np.float32)

    with snapshot(frame, pool) as original:
        src_rgb = original[..., :3].astype(np.float32)
        for level in range(recursion):
            scale = 2 ** level
            block = max(1, int(min(w, h) // (divisions * scale)))
            bx = xs // block
            by = ys // block
            pattern = np.sin(bx * offset * 3) * np.cos(by * offset * 5)

            src_x = np.where(pattern > 0, bx * block + (block - 1 - xs % block), xs)
            src_y = np.where(pattern < -0.5, by * block + (block - 1 - ys % block), ys)
            valid = (src_x < w) & (src_y < h)

            factor = blend * (1 - level / recursion)
            mirrored = src_rgb[np.minimum(src_y, h - 1), np.minimum(src_x, w - 1)]
            blended = result * (1 - factor) + mirrored * factor
            result = np.where(valid[..., np.newaxis], blended, result)

    frame[..., :3] = np.clip(np.round(result), 0, 255).astype(np.uint8)
    return frame
