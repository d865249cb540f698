"""
Pixel FX — Color & Math Helpers
Vectorised HSL conversion, luminance, clamping.
"""

import numpy as np


def clamp(value: float, lo: float, hi: float) -> float:
    """Clamp to [lo, hi]. NaN clamps to lo."""
    if value != value:
        return lo
    return min(hi, max(lo, value))


def clamp_byte(value: float) -> int:
    return 0 if value < 0 else 255 if value > 255 else int(value)


def lerp(a, b, t):
    return a + (b - a) * t


def luminance(rgb: np.ndarray) -> np.ndarray:
    """ITU-R BT.601 luma of an (..., 3+) array, same scale as the input."""
    rgb = rgb.astype(np.float32)
    return rgb[..., 0] * 0.299 + rgb[..., 1] * 0.587 + rgb[..., 2] * 0.114


def _hue_to_rgb(p, q, t):
    t = np.where(t < 0, t + 1, t)
    t = np.where(t > 1, t - 1, t)
    return np.where(
        t < 1 / 6, p + (q - p) * 6 * t,
        np.where(t < 1 / 2, q,
                 np.where(t < 2 / 3, p + (q - p) * (2 / 3 - t) * 6, p)),
    )


def hsl_to_rgb(h, s, l):
    """HSL (all components 0-1) to RGB 0-255.

    Accepts scalars or arrays; returns an (..., 3) float array of
    rounded channel values.
    """
    h = np.asarray(h, dtype=np.float64)
    s = np.asarray(s, dtype=np.float64)
    l = np.asarray(l, dtype=np.float64)
    q = np.where(l < 0.5, l * (1 + s), l + s - l * s)
    p = 2 * l - q
    r = _hue_to_rgb(p, q, h + 1 / 3)
    g = _hue_to_rgb(p, q, h)
    b = _hue_to_rgb(p, q, h - 1 / 3)
    grey = s == 0
    r = np.where(grey, l, r)
    g = np.where(grey, l, g)
    b = np.where(grey, l, b)
    return np.round(np.stack([r, g, b], axis=-1) * 255)


def rgb_to_hsl(rgb: np.ndarray):
    """RGB 0-255 (..., 3) to (h, s, l) arrays in 0-1."""
    f = rgb[..., :3].astype(np.float64) / 255.0
    r, g, b = f[..., 0], f[..., 1], f[..., 2]
    mx = f.max(axis=-1)
    mn = f.min(axis=-1)
    l = (mx + mn) / 2
    d = mx - mn
    chroma = d > 0
    safe_d = np.where(chroma, d, 1.0)

    denom = np.where(l > 0.5, 2 - mx - mn, mx + mn)
    s = np.where(chroma, d / np.where(denom == 0, 1.0, denom), 0.0)

    h = np.where(
        mx == r, (g - b) / safe_d + np.where(g < b, 6, 0),
        np.where(mx == g, (b - r) / safe_d + 2, (r - g) / safe_d + 4),
    )
    h = np.where(chroma, h / 6, 0.0)
    return h, s, l


def hsl_degrees_to_rgb(hue_deg, s, l):
    """Sector-based HSL with hue in degrees (wraps at 360).

    Returns an (..., 3) float array of floored channel values, 0-255.
    """
    h = np.mod(np.asarray(hue_deg, dtype=np.float64), 360)
    s = np.asarray(s, dtype=np.float64)
    l = np.asarray(l, dtype=np.float64)
    c = (1 - np.abs(2 * l - 1)) * s
    x = c * (1 - np.abs(np.mod(h / 60, 2) - 1))
    m = l - c / 2
    zero = np.zeros_like(h)
    sector = np.minimum(np.floor(h / 60), 5).astype(np.int64)
    r = np.choose(sector, [c, x, zero, zero, x, c])
    g = np.choose(sector, [x, c, c, x, zero, zero])
    b = np.choose(sector, [zero, zero, x, c, c, x])
    return np.floor(np.stack([r + m, g + m, b + m], axis=-1) * 255)
