"""
Pixel FX — Graphic Studios
Sketch (pencil, crosshatch, etched, ink wash, bold outline), Pattern
(halftone, dot screen, line screen, stipple, dither) and Advanced
Dithering with retro palettes.
"""

import numpy as np
import cv2
from PIL import Image, ImageFilter

from engine.color import luminance

SKETCH_PRESETS = ("pencil", "crosshatch", "etched", "inkWash", "boldOutline")
PATTERN_PRESETS = ("halftone", "dotScreen", "lineScreen", "stipple", "dither")
DITHER_PRESETS = ("floydSteinberg", "atkinson", "ordered", "sierraLite", "jarvis", "blueNoise")

# (dx, dy, weight) taps; weights already divided by the kernel sum
DIFFUSION_KERNELS = {
    "floydSteinberg": ((1, 0, 7 / 16), (-1, 1, 3 / 16), (0, 1, 5 / 16), (1, 1, 1 / 16)),
    "atkinson": ((1, 0, 1 / 8), (2, 0, 1 / 8), (-1, 1, 1 / 8), (0, 1, 1 / 8),
                 (1, 1, 1 / 8), (0, 2, 1 / 8)),
    "sierraLite": ((1, 0, 2 / 4), (-1, 1, 1 / 4), (0, 1, 1 / 4)),
    "jarvis": ((1, 0, 7 / 48), (2, 0, 5 / 48),
               (-2, 1, 3 / 48), (-1, 1, 5 / 48), (0, 1, 7 / 48), (1, 1, 5 / 48), (2, 1, 3 / 48),
               (-2, 2, 1 / 48), (-1, 2, 3 / 48), (0, 2, 5 / 48), (1, 2, 3 / 48), (2, 2, 1 / 48)),
}

RETRO_PALETTES = {
    "gameboy": ((15, 56, 15), (48, 98, 48), (139, 172, 15), (155, 188, 15)),
    "cga": ((0, 0, 0), (85, 255, 255), (255, 85, 255), (255, 255, 255)),
}
PALETTE_MODES = ("levels", "gameboy", "cga", "greyRamp")


def bayer_matrix(n: int = 8) -> np.ndarray:
    """Normalised (n x n) Bayer threshold map in [0, 1). n must be a power of two."""
    m = np.array([[0]], dtype=np.float32)
    while m.shape[0] < n:
        m = np.block([[4 * m, 4 * m + 2], [4 * m + 3, 4 * m + 1]])
    return (m + 0.5) / (n * n)


# === SKETCH STUDIO ===

def _dodge_sketch(gray: np.ndarray, sigma: float) -> np.ndarray:
    inverted = 255 - gray
    blurred = cv2.GaussianBlur(inverted, (0, 0), sigmaX=max(0.5, sigma))
    return cv2.divide(gray, 255 - blurred, scale=256)


def unified_sketch(frame: np.ndarray, preset: int = 0, intensity: float = 1.0,
                   line_weight: float = 1, detail: float = 0.5) -> np.ndarray:
    """Sketch studio.

    Presets:
        0 pencil — colour-dodge pencil drawing
        1 crosshatch — luminance bands hatched at three angles
        2 etched — embossed engraving on paper tone
        3 inkWash — soft posterised greys with dark contours
        4 boldOutline — flat colour regions with thick black edges
    """
    preset = int(preset)
    h, w = frame.shape[:2]
    weight = max(1, int(line_weight))
    gray = cv2.cvtColor(frame, cv2.COLOR_RGB2GRAY)

    if preset == 1:
        lum = gray.astype(np.float32) / 255.0
        ys, xs = np.mgrid[0:h, 0:w]
        spacing = max(3, int(10 - detail * 6))
        ink = np.zeros((h, w), dtype=bool)
        ink |= (lum < 0.75) & ((xs + ys) % spacing < weight)
        ink |= (lum < 0.5) & ((xs - ys) % spacing < weight)
        ink |= (lum < 0.25) & (ys % spacing < weight)
        sheet = np.where(ink, 30, 245).astype(np.uint8)
        result = np.stack([sheet] * 3, axis=2)
    elif preset == 2:
        embossed = np.array(Image.fromarray(gray).filter(ImageFilter.EMBOSS)).astype(np.float32)
        stretched = np.clip((embossed - 128) * (2 + detail * 4) + 200, 0, 255)
        paper = np.array([245, 235, 215], dtype=np.float32) / 255.0
        result = (stretched[:, :, np.newaxis] * paper).astype(np.uint8)
    elif preset == 3:
        soft = cv2.GaussianBlur(gray, (0, 0), sigmaX=2).astype(np.float32)
        tones = np.floor(soft / 64) * 64 + 32
        edges = cv2.Canny(gray, 60, 160) > 0
        wash = np.where(edges, 20, tones).astype(np.uint8)
        result = np.stack([wash] * 3, axis=2)
    elif preset == 4:
        flat = cv2.bilateralFilter(frame, 9, 75, 75)
        flat = (np.floor(flat / 48.0) * 48 + 24).astype(np.uint8)
        edges = cv2.Canny(gray, 80, 200)
        edges = cv2.dilate(edges, np.ones((weight + 1, weight + 1), np.uint8))
        result = flat.copy()
        result[edges > 0] = 0
    else:
        sketch = _dodge_sketch(gray, 4 + detail * 16)
        result = np.stack([sketch] * 3, axis=2)

    intensity = max(0.0, min(1.0, float(intensity)))
    mixed = frame.astype(np.float32) * (1 - intensity) + result.astype(np.float32) * intensity
    return np.clip(np.round(mixed), 0, 255).astype(np.uint8)


# === PATTERN STUDIO ===

def _rotated_grid(h, w, size, angle):
    """Pixel coordinates in a grid rotated by `angle` degrees: cell index and in-cell offset."""
    ys, xs = np.mgrid[0:h, 0:w].astype(np.float32)
    a = np.radians(angle)
    u = xs * np.cos(a) + ys * np.sin(a)
    v = -xs * np.sin(a) + ys * np.cos(a)
    cu = np.floor(u / size)
    cv_ = np.floor(v / size)
    fu = u - (cu + 0.5) * size
    fv = v - (cv_ + 0.5) * size
    return cu, cv_, fu, fv


def _cell_centres(cu, cv_, size, angle):
    a = np.radians(angle)
    u = (cu + 0.5) * size
    v = (cv_ + 0.5) * size
    return u * np.cos(a) - v * np.sin(a), u * np.sin(a) + v * np.cos(a)


def unified_pattern(frame: np.ndarray, preset: int = 0, size: float = 8, angle: float = 45,
                    intensity: float = 1.0, seed: int = 42) -> np.ndarray:
    """Print-pattern studio.

    Presets:
        0 halftone — black dots sized by darkness on a rotated grid
        1 dotScreen — dots coloured by the cell's source colour on black
        2 lineScreen — parallel lines whose width follows darkness
        3 stipple — random ink dots with density following darkness
        4 dither — 8x8 ordered dither to black and white
    """
    preset = int(preset)
    h, w = frame.shape[:2]
    size = max(2.0, float(size))
    lum = luminance(frame) / 255.0

    if preset in (0, 1):
        cu, cv_, fu, fv = _rotated_grid(h, w, size, angle)
        sx, sy = _cell_centres(cu, cv_, size, angle)
        sx = np.clip(np.round(sx), 0, w - 1).astype(np.int64)
        sy = np.clip(np.round(sy), 0, h - 1).astype(np.int64)
        dist = np.sqrt(fu * fu + fv * fv)
        if preset == 0:
            radius = (1.0 - lum[sy, sx]) * size * 0.7
            dots = dist <= radius
            tone = np.where(dots, 0, 255).astype(np.uint8)
            result = np.stack([tone] * 3, axis=2)
        else:
            radius = size * 0.45
            dots = (dist <= radius)[:, :, np.newaxis]
            result = np.where(dots, frame[sy, sx], 0).astype(np.uint8)
    elif preset == 2:
        _, cv_, _, fv = _rotated_grid(h, w, size, angle)
        width = (1.0 - lum) * size * 0.5
        tone = np.where(np.abs(fv) <= width, 0, 255).astype(np.uint8)
        result = np.stack([tone] * 3, axis=2)
    elif preset == 3:
        rng = np.random.RandomState(int(seed))
        density = (1.0 - lum) ** 1.5 * (4.0 / size)
        ink = rng.random_sample((h, w)) < density
        tone = np.where(ink, 0, 255).astype(np.uint8)
        result = np.stack([tone] * 3, axis=2)
    else:
        threshold = np.tile(bayer_matrix(8), (h // 8 + 1, w // 8 + 1))[:h, :w]
        tone = np.where(lum > threshold, 255, 0).astype(np.uint8)
        result = np.stack([tone] * 3, axis=2)

    intensity = max(0.0, min(1.0, float(intensity)))
    mixed = frame.astype(np.float32) * (1 - intensity) + result.astype(np.float32) * intensity
    return np.clip(np.round(mixed), 0, 255).astype(np.uint8)


# === ADVANCED DITHERING ===

def _palette_for(mode: int, levels: int):
    """Explicit palette (k, 3) or None for per-channel level quantisation."""
    name = PALETTE_MODES[mode] if 0 <= mode < len(PALETTE_MODES) else "levels"
    if name in RETRO_PALETTES:
        return np.array(RETRO_PALETTES[name], dtype=np.float32)
    if name == "greyRamp":
        ramp = np.linspace(0, 255, max(2, levels), dtype=np.float32)
        return np.stack([ramp] * 3, axis=1)
    return None


def _quantizer(palette, levels: int):
    if palette is None:
        step = 255.0 / (max(2, levels) - 1)

        def quantize(values):
            return np.clip(np.round(values / step) * step, 0, 255)
        return quantize

    def quantize(values):
        flat = values.reshape(-1, 3)
        d = ((flat[:, np.newaxis, :] - palette[np.newaxis, :, :]) ** 2).sum(axis=2)
        return palette[np.argmin(d, axis=1)].reshape(values.shape)
    return quantize


def _wavefront_lag(kernel) -> int:
    """Smallest k such that no tap carries error between pixels on one line x + k*y = t."""
    lag = 1
    for dx, dy, _ in kernel:
        if dy > 0:
            lag = max(lag, -dx // dy + 1)
    return lag


def error_diffusion(frame: np.ndarray, kernel, quantize) -> np.ndarray:
    """Error diffusion in raster order (left to right, top to bottom).

    Pixels on one wavefront x + lag*y = t never feed each other, so each
    front is gathered and quantised in a single vectorised step. Incoming
    error is summed in the order a raster scan would add it, which keeps
    the output identical to the pixel-by-pixel loop.
    """
    h, w = frame.shape[:2]
    src = frame.astype(np.float32)
    out = np.zeros_like(src)
    err = np.zeros_like(src)
    lag = _wavefront_lag(kernel)
    taps = sorted(kernel, key=lambda tap: (-tap[1], -tap[0]))

    for t in range(w + lag * (h - 1)):
        ys = np.arange(max(0, -((w - 1 - t) // lag)), min(h - 1, t // lag) + 1)
        if ys.size == 0:
            continue
        xs = t - lag * ys
        acc = src[ys, xs]
        for dx, dy, weight in taps:
            sx = xs - dx
            sy = ys - dy
            ok = (sx >= 0) & (sx < w) & (sy >= 0)
            if ok.any():
                acc[ok] += err[sy[ok], sx[ok]] * weight
        new = quantize(acc)
        out[ys, xs] = new
        err[ys, xs] = acc - new
    return out


def blue_noise_map(h: int, w: int, seed: int = 42) -> np.ndarray:
    """Approximate blue-noise thresholds: high-passed white noise, rank-normalised."""
    rng = np.random.RandomState(seed)
    white = rng.random_sample((h, w)).astype(np.float32)
    high = white - cv2.GaussianBlur(white, (0, 0), sigmaX=1.5)
    ranks = np.argsort(np.argsort(high.ravel()))
    return (ranks.reshape(h, w) + 0.5) / (h * w)


def advanced_dithering(frame: np.ndarray, preset: int = 0, levels: float = 2,
                       palette: float = 0, scale: float = 1, seed: int = 42) -> np.ndarray:
    """Dithering studio with retro palettes.

    Presets: 0 Floyd-Steinberg, 1 Atkinson, 2 ordered (Bayer 8x8),
    3 Sierra Lite, 4 Jarvis-Judice-Ninke, 5 blue noise.
    Palettes: 0 per-channel levels, 1 Game Boy, 2 CGA, 3 grey ramp.
    `scale` > 1 dithers a downscaled copy for chunky retro pixels.
    """
    preset = int(preset)
    levels = max(2, int(levels))
    scale = max(1, int(scale))
    h, w = frame.shape[:2]

    work = frame
    if scale > 1:
        work = np.array(Image.fromarray(frame).resize(
            (max(1, w // scale), max(1, h // scale)), Image.Resampling.BOX))

    pal = _palette_for(int(palette), levels)
    quantize = _quantizer(pal, levels)
    wh, ww = work.shape[:2]

    if preset in (2, 5):
        if preset == 2:
            thresholds = np.tile(bayer_matrix(8), (wh // 8 + 1, ww // 8 + 1))[:wh, :ww]
        else:
            thresholds = blue_noise_map(wh, ww, int(seed))
        spread = 255.0 / (levels - 1) if pal is None else 255.0 / max(1, len(pal) - 1)
        biased = work.astype(np.float32) + (thresholds[:, :, np.newaxis] - 0.5) * spread
        result = quantize(np.clip(biased, 0, 255))
    else:
        name = {0: "floydSteinberg", 1: "atkinson", 3: "sierraLite", 4: "jarvis"}.get(preset, "floydSteinberg")
        result = error_diffusion(work, DIFFUSION_KERNELS[name], quantize)

    result = np.clip(np.round(result), 0, 255).astype(np.uint8)
    if scale > 1:
        result = np.array(Image.fromarray(result).resize((w, h), Image.Resampling.NEAREST))
    return result
