"""
Pixel FX — Mandelbrot & Julia
Escape-time region fractals rendered to RGBA, composited over the source.
"""

import numpy as np

from engine.blend import composite, resolve_blend_mode
from engine.color import hsl_degrees_to_rgb
from engine.safety import MAX_ITERATIONS, clamp_count

COLOR_SCHEMES = ("rainbow", "fire", "ocean", "psychedelic")


def resolve_color_scheme(scheme) -> str:
    """Numeric code (0-3) or name to a palette name. Unknown → rainbow."""
    if isinstance(scheme, str):
        return scheme if scheme in COLOR_SCHEMES else "rainbow"
    try:
        idx = int(scheme)
    except (TypeError, ValueError):
        return "rainbow"
    return COLOR_SCHEMES[idx] if 0 <= idx < len(COLOR_SCHEMES) else "rainbow"


def _plane(width, height, zoom):
    ys, xs = np.mgrid[0:height, 0:width].astype(np.float64)
    x = (xs - width / 2) / (zoom * width / 4)
    y = (ys - height / 2) / (zoom * height / 4)
    return x, y


def _escape_counts(zx, zy, cx, cy, max_iterations):
    count = np.zeros(zx.shape, dtype=np.int64)
    for _ in range(max_iterations):
        active = zx * zx + zy * zy <= 4
        if not active.any():
            break
        xtemp = zx * zx - zy * zy + cx
        zy = np.where(active, 2 * zx * zy + cy, zy)
        zx = np.where(active, xtemp, zx)
        count += active
    return count


def color_for_iterations(count: np.ndarray, max_iterations: int, scheme="rainbow") -> np.ndarray:
    """Map escape counts to an (H, W, 4) uint8 palette image.

    Points that never escaped (count == max_iterations) are opaque black.
    """
    scheme = resolve_color_scheme(scheme)
    t = count / max(max_iterations, 1)

    if scheme == "fire":
        rgb = np.stack([
            np.minimum(1, t * 3),
            np.clip((t - 0.33) * 3, 0, 1),
            np.maximum(0, (t - 0.66) * 3),
        ], axis=-1)
        rgb = np.floor(255 * rgb)
    elif scheme == "ocean":
        rgb = np.floor(255 * np.stack([t * t, t, np.sqrt(t)], axis=-1))
    elif scheme == "psychedelic":
        hue = t * 360 + count * 10
        sat = 0.7 + 0.3 * np.sin(count * 0.1)
        light = 0.5 + 0.3 * np.sin(count * 0.05)
        rgb = hsl_degrees_to_rgb(hue, sat, light)
    else:
        phase = t * np.pi * 2
        rgb = np.floor(255 * np.stack([
            np.sin(phase) * 0.5 + 0.5,
            np.sin(phase + np.pi * 2 / 3) * 0.5 + 0.5,
            np.sin(phase + np.pi * 4 / 3) * 0.5 + 0.5,
        ], axis=-1))

    rgb = np.where((count == max_iterations)[..., np.newaxis], 0, rgb)
    out = np.empty(count.shape + (4,), dtype=np.uint8)
    out[..., :3] = np.clip(rgb, 0, 255).astype(np.uint8)
    out[..., 3] = 255
    return out


def generate_mandelbrot(width: int, height: int, center_x=0.0, center_y=0.0, zoom=1.0,
                        max_iterations=100, color_scheme="rainbow") -> np.ndarray:
    """Mandelbrot set as an (H, W, 4) uint8 image."""
    max_iterations = clamp_count(max_iterations, MAX_ITERATIONS, "max_iterations")
    x, y = _plane(width, height, zoom)
    cx = x + center_x
    cy = y + center_y
    count = _escape_counts(np.zeros_like(cx), np.zeros_like(cy), cx, cy, max_iterations)
    return color_for_iterations(count, max_iterations, color_scheme)


def generate_julia(width: int, height: int, c_real=-0.7, c_imag=0.27, zoom=1.0,
                   max_iterations=100, color_scheme="psychedelic") -> np.ndarray:
    """Julia set for constant c as an (H, W, 4) uint8 image."""
    max_iterations = clamp_count(max_iterations, MAX_ITERATIONS, "max_iterations")
    x, y = _plane(width, height, zoom)
    count = _escape_counts(x, y, c_real, c_imag, max_iterations)
    return color_for_iterations(count, max_iterations, color_scheme)


def mandelbrot(frame, pool=None, center_x=0.0, center_y=0.0, zoom=1.0, iterations=100,
               color_scheme=0, blend_mode=0, opacity=0.5):
    """Mandelbrot overlay blended over the frame."""
    h, w = frame.shape[:2]
    field = generate_mandelbrot(w, h, center_x, center_y, zoom, int(iterations), color_scheme)
    frame[...] = composite(frame, field, resolve_blend_mode(blend_mode), opacity)
    return frame


def julia_set(frame, pool=None, c_real=-0.7, c_imag=0.27, zoom=1.0, iterations=100,
              color_scheme=3, blend_mode=0, opacity=0.5):
    """Julia set overlay blended over the frame."""
    h, w = frame.shape[:2]
    field = generate_julia(w, h, c_real, c_imag, zoom, int(iterations), color_scheme)
    frame[...] = composite(frame, field, resolve_blend_mode(blend_mode), opacity)
    return frame
