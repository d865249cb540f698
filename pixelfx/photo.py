"""
Pixel FX — Photo Finishing
Orton glow, light leaks, smart sharpen and clarity.
"""

import numpy as np
import cv2

from engine.blend import overlay, screen, soft_light
from engine.buffers import SOBEL_X, SOBEL_Y
from engine.color import hsl_to_rgb, luminance, rgb_to_hsl

LIGHT_LEAK_PRESETS = (
    {"name": "warmSunset", "intensity": 0.7, "color": (255, 180, 80), "position": (0.9, 0.1),
     "size": 0.5, "spread": 0.8, "softness": 0.8, "angle": np.pi / 3, "opacity": 0.7,
     "blend": "screen"},
    {"name": "coolMorning", "intensity": 0.5, "color": (120, 180, 255), "position": (0.1, 0.2),
     "size": 0.3, "spread": 0.6, "softness": 0.9, "angle": -np.pi / 4, "opacity": 0.6,
     "blend": "soft-light"},
    {"name": "vintageFilm", "intensity": 0.8, "color": (255, 220, 150), "position": (0.8, 0.8),
     "size": 0.6, "spread": 0.4, "softness": 0.6, "angle": np.pi, "opacity": 0.5,
     "blend": "overlay"},
    {"name": "neonGlow", "intensity": 0.9, "color": (255, 100, 200), "position": (0.5, 0.1),
     "size": 0.4, "spread": 0.9, "softness": 0.7, "angle": np.pi / 2, "opacity": 0.8,
     "blend": "color-dodge"},
)

SMART_SHARPEN_PRESETS = (
    {"name": "subtle", "amount": 0.5, "radius": 0.8, "threshold": 15, "noise_reduction": 0.4,
     "edge_mode": "sobel", "preserve_details": True},
    {"name": "moderate", "amount": 1.0, "radius": 1.0, "threshold": 10, "noise_reduction": 0.3,
     "edge_mode": "sobel", "preserve_details": True},
    {"name": "strong", "amount": 1.5, "radius": 1.2, "threshold": 8, "noise_reduction": 0.2,
     "edge_mode": "laplacian", "preserve_details": True},
    {"name": "portrait", "amount": 0.8, "radius": 0.6, "threshold": 20, "noise_reduction": 0.5,
     "edge_mode": "sobel", "preserve_details": True},
    {"name": "landscape", "amount": 1.2, "radius": 1.5, "threshold": 5, "noise_reduction": 0.1,
     "edge_mode": "laplacian", "preserve_details": False},
    {"name": "unsharpMask", "amount": 1.0, "radius": 1.0, "threshold": 0, "noise_reduction": 0.0,
     "edge_mode": "unsharp", "preserve_details": False},
)

_LAPLACIAN = np.array([[0, -1, 0], [-1, 4, -1], [0, -1, 0]], dtype=np.float32)


def _pick(presets, preset: int) -> dict:
    return presets[max(0, min(len(presets) - 1, int(preset)))]


def _to_uint8(values: np.ndarray) -> np.ndarray:
    return np.clip(np.round(values), 0, 255).astype(np.uint8)


# === ORTON ===

def orton(frame: np.ndarray, intensity: float = 0.7, radius: float = 15, contrast: float = 1.3,
          saturation: float = 1.2, exposure: float = 1.4, blend: float = 0.6) -> np.ndarray:
    """Orton glow: a punchy sharp layer screened with a blurred, overexposed copy.

    Args:
        frame: (H, W, 3) uint8 RGB array.
        intensity: Mix of the finished look over the original (0-1).
        radius: Glow blur radius in pixels (0-50).
        contrast: Contrast gain of the sharp layer around mid-grey (0-2).
        saturation: HSL saturation gain of the sharp layer (0-2).
        exposure: Brightness gain of the glow layer (0-2).
        blend: Share of the screened glow in the finished look (0-1).

    Returns:
        Glowing frame.
    """
    intensity = max(0.0, min(1.0, float(intensity)))
    radius = max(0, min(50, int(radius)))
    blend = max(0.0, min(1.0, float(blend)))
    f = frame.astype(np.float32)

    sharp = np.clip((f - 128.0) * float(contrast) + 128.0, 0, 255)
    h, s, l = rgb_to_hsl(sharp)
    sharp = hsl_to_rgb(h, np.clip(s * float(saturation), 0.0, 1.0), l).astype(np.float32)

    if radius > 0:
        ksize = radius * 2 + 1
        glow = cv2.GaussianBlur(frame, (ksize, ksize), radius / 3, borderType=cv2.BORDER_REPLICATE)
    else:
        glow = frame
    glow = np.clip(glow.astype(np.float32) * float(exposure), 0, 255)

    finished = sharp * (1 - blend) + screen(sharp, glow) * blend
    return _to_uint8(f * (1 - intensity) + finished * intensity)


# === LIGHT LEAK ===

def _color_dodge(base, top):
    dodged = np.minimum(255.0, top * 255.0 / np.maximum(255.0 - base, 1e-6))
    return np.where(base >= 255.0, 255.0, dodged)


_LEAK_BLENDS = {
    "screen": screen,
    "overlay": overlay,
    "soft-light": soft_light,
    "color-dodge": _color_dodge,
}


def _leak_grain(h: int, w: int) -> np.ndarray:
    """Deterministic hash noise in [0.7, 1.0) that breaks up the gradients."""
    ys, xs = np.mgrid[0:h, 0:w].astype(np.float64)
    v = np.sin((xs * 12.9898 + ys * 78.233) * 0.01) * 43758.5453
    return (v - np.floor(v)) * 0.3 + 0.7


def light_leak_mask(h: int, w: int, preset: int = 0, angle: float = 0.0) -> np.ndarray:
    """Per-pixel leak strength (0-1) before intensity and opacity.

    The brighter of a radial hot spot and a directional streak, both
    anchored at the preset's position.
    """
    cfg = _pick(LIGHT_LEAK_PRESETS, preset)
    ys, xs = np.mgrid[0:h, 0:w].astype(np.float64)
    px, py = cfg["position"]
    dx = xs - px * w
    dy = ys - py * h
    extent = max(w, h)
    softness = cfg["softness"]

    outer = cfg["size"] * extent
    inner = outer * (1 - softness)
    dist = np.sqrt(dx * dx + dy * dy)
    t = (dist - inner) / max(outer - inner, 1e-6)
    radial = np.where(dist <= inner, 1.0, np.where(dist <= outer, 1.0 - t * t, 0.0))

    theta = cfg["angle"] + np.radians(float(angle))
    along = dx * np.cos(theta) + dy * np.sin(theta)
    across = np.abs(-dx * np.sin(theta) + dy * np.cos(theta))
    spread = max(cfg["spread"] * extent, 1e-6)
    core = spread * softness
    falloff = np.where(across <= core, 1.0,
                       np.exp(-(across - core) / max(spread * (1 - softness), 1e-6)))
    streak = np.where((along > 0) & (across <= spread),
                      np.exp(-np.maximum(along, 0.0) / (spread * 2)) * falloff, 0.0)

    return np.clip(np.maximum(radial, streak * 0.7), 0.0, 1.0)


def light_leak(frame: np.ndarray, preset: int = 0, strength: float = 1.0,
               angle: float = 0.0) -> np.ndarray:
    """Analog light leak: coloured light bleeding in from an edge or corner.

    Presets:
        0 warmSunset: amber screen from the top right
        1 coolMorning: blue soft light from the top left
        2 vintageFilm: cream overlay from the bottom right
        3 neonGlow: magenta colour dodge from the top

    Args:
        frame: (H, W, 3) uint8 RGB array.
        strength: Multiplier on the preset intensity (0-2).
        angle: Extra streak rotation in degrees.
    """
    cfg = _pick(LIGHT_LEAK_PRESETS, preset)
    strength = max(0.0, min(2.0, float(strength)))
    h, w = frame.shape[:2]

    amount = (light_leak_mask(h, w, preset, angle) * _leak_grain(h, w)
              * cfg["intensity"] * cfg["opacity"] * strength)
    leak = amount[:, :, np.newaxis] * np.array(cfg["color"], dtype=np.float64)
    base = frame.astype(np.float64)
    lit = _LEAK_BLENDS[cfg["blend"]](base, leak)
    # Pixels under 1% leak are left untouched
    result = np.where(amount[:, :, np.newaxis] > 0.01, lit, base)
    return _to_uint8(result)


# === SMART SHARPEN ===

def _unsharp(work: np.ndarray, radius: float, amount: float) -> np.ndarray:
    size = int(np.ceil(radius * 2)) * 2 + 1
    f = work.astype(np.float32)
    blurred = cv2.GaussianBlur(f, (size, size), radius / 3, borderType=cv2.BORDER_REPLICATE)
    return np.clip(f + amount * (f - blurred), 0, 255)


def _edge_map(work: np.ndarray, mode: str) -> np.ndarray:
    gray = luminance(work)
    if mode == "laplacian":
        return np.abs(cv2.filter2D(gray, -1, _LAPLACIAN, borderType=cv2.BORDER_REPLICATE)) * 8.0
    gx = cv2.filter2D(gray, -1, np.array(SOBEL_X, dtype=np.float32), borderType=cv2.BORDER_REPLICATE)
    gy = cv2.filter2D(gray, -1, np.array(SOBEL_Y, dtype=np.float32), borderType=cv2.BORDER_REPLICATE)
    return np.sqrt(gx * gx + gy * gy)


def smart_sharpen(frame: np.ndarray, preset: int = 1, strength: float = 1.0) -> np.ndarray:
    """Edge-aware sharpening with noise reduction.

    A bilateral pass suppresses noise first. An unsharp mask is then
    blended in only where the Sobel or Laplacian edge map clears the
    preset threshold, so flat areas and grain are left alone. The
    `unsharpMask` preset sharpens everywhere.

    Presets:
        0 subtle     3 portrait
        1 moderate   4 landscape
        2 strong     5 unsharpMask

    Args:
        frame: (H, W, 3) uint8 RGB array.
        strength: Multiplier on the preset amount (0-3).
    """
    cfg = _pick(SMART_SHARPEN_PRESETS, preset)
    strength = max(0.0, min(3.0, float(strength)))
    amount = cfg["amount"] * strength
    mode = cfg["edge_mode"]
    noise_reduction = cfg["noise_reduction"]
    damping = 0.5 + 0.5 * max(0.0, 1.0 - noise_reduction) ** 4

    work = np.ascontiguousarray(frame)
    if noise_reduction > 0:
        r = int(np.ceil(noise_reduction * 3))
        work = cv2.bilateralFilter(work, r * 2 + 1, 30, r)

    if mode == "unsharp":
        return _to_uint8(_unsharp(work, cfg["radius"], amount * damping))

    boost = 9.0 if mode == "laplacian" else 0.6
    sharpened = _unsharp(work, cfg["radius"], amount * boost * damping)

    edges = _edge_map(work, mode)
    peak = edges.max()
    if peak > 0:
        edges = np.minimum(1.0, edges / peak) ** (0.5 if mode == "laplacian" else 2.0)

    cut = cfg["threshold"] * (0.2 if mode == "laplacian" else 2.0)
    on_edge = edges * 255 > cut
    if cfg["preserve_details"]:
        weight = np.minimum(1.0, edges * boost)
    else:
        weight = np.ones_like(edges)
    weight = np.where(on_edge, np.minimum(1.0, weight * damping), 0.0)[:, :, np.newaxis]

    f = frame.astype(np.float32)
    return _to_uint8(f * (1 - weight) + sharpened * weight)


# === CLARITY ===

def clarity(frame: np.ndarray, amount: float = 50, radius: float = 1.0,
            preserve_highlights: float = 50, preserve_shadows: float = 50) -> np.ndarray:
    """Midtone contrast driven by a high-pass of the luminance.

    Args:
        frame: (H, W, 3) uint8 RGB array.
        amount: Strength (-100 to 100). Negative values flatten.
        radius: Blur sigma of the high-pass in pixels (0.1-5).
        preserve_highlights: How strongly pixels above 70% luminance keep
            their original value (0-100).
        preserve_shadows: Same for pixels below 30% luminance (0-100).

    Returns:
        Enhanced frame.
    """
    amount = max(-100.0, min(100.0, float(amount))) / 100.0
    radius = max(0.1, min(5.0, float(radius)))
    highlights = max(0.0, min(100.0, float(preserve_highlights))) / 100.0
    shadows = max(0.0, min(100.0, float(preserve_shadows))) / 100.0

    f = frame.astype(np.float32)
    blurred = cv2.GaussianBlur(f, (0, 0), radius, borderType=cv2.BORDER_REPLICATE)
    lum = luminance(f)
    high_pass = np.clip(lum - luminance(blurred) + 128.0, 0, 255) / 255.0

    v = f / 255.0
    lift = (high_pass * amount)[:, :, np.newaxis]
    enhanced = np.clip((v + (v - 0.5) * lift) * 255.0, 0, 255)

    lum = lum / 255.0
    keep = np.maximum(np.maximum(0.0, (lum - 0.7) / 0.3) * highlights,
                      np.maximum(0.0, (0.3 - lum) / 0.3) * shadows)[:, :, np.newaxis]
    return _to_uint8(f * keep + enhanced * (1 - keep))
