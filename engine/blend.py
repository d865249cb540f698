"""
Pixel FX — Compositing & Blend Modes

Per-channel blend functions (work on scalars or float arrays, 0-255 scale)
and the opacity compositor every full-frame generator goes through:

    final = base * (1 - opacity) + blend(base, layer) * opacity
"""

import numpy as np


def screen(base, overlay):
    return 255.0 - (255.0 - base) * (255.0 - overlay) / 255.0


def overlay(base, top):
    return np.where(base < 128.0, 2.0 * base * top / 255.0,
                    255.0 - 2.0 * (255.0 - base) * (255.0 - top) / 255.0)


def multiply(base, overlay):
    return base * overlay / 255.0


def add(base, overlay):
    """Linear dodge, clamped at 255."""
    return np.minimum(255.0, base + overlay)


def soft_light(base, overlay):
    """W3C soft light; a mid-grey layer leaves the base unchanged."""
    cb = np.asarray(base, dtype=np.float32) / 255.0
    cs = np.asarray(overlay, dtype=np.float32) / 255.0
    d = np.where(cb <= 0.25, ((16.0 * cb - 12.0) * cb + 4.0) * cb, np.sqrt(cb))
    darker = cb - (1.0 - 2.0 * cs) * cb * (1.0 - cb)
    lighter = cb + (2.0 * cs - 1.0) * (d - cb)
    return np.round(np.where(cs <= 0.5, darker, lighter) * 255.0)


def normal(base, overlay):
    return overlay


# Ordered: numeric blend codes from the UI index into this table.
BLEND_MODES = {
    "overlay": overlay,
    "multiply": multiply,
    "screen": screen,
    "add": add,
    "softLight": soft_light,
    "normal": normal,
}
BLEND_MODE_ORDER = list(BLEND_MODES.keys())


def resolve_blend_mode(mode) -> str:
    """Map a numeric code or name to a blend mode name. Unknown → overlay."""
    if isinstance(mode, str):
        return mode if mode in BLEND_MODES else "overlay"
    try:
        idx = int(mode)
    except (TypeError, ValueError):
        return "overlay"
    if 0 <= idx < len(BLEND_MODE_ORDER):
        return BLEND_MODE_ORDER[idx]
    return "overlay"


def composite(base: np.ndarray, layer: np.ndarray, mode="normal", opacity: float = 1.0) -> np.ndarray:
    """Blend `layer` over `base` at `opacity`.

    Both are (H, W, C) uint8 with C >= 3. Only RGB is blended; the base
    alpha (if any) is kept. Returns a new uint8 array shaped like base.
    """
    opacity = max(0.0, min(1.0, float(opacity)))
    blend_fn = BLEND_MODES[resolve_blend_mode(mode)]

    b = base[..., :3].astype(np.float32)
    t = layer[..., :3].astype(np.float32)
    blended = blend_fn(b, t)
    mixed = b * (1.0 - opacity) + blended * opacity

    result = base.copy()
    result[..., :3] = np.clip(np.round(mixed), 0, 255).astype(np.uint8)
    return result


def mix(base: np.ndarray, layer: np.ndarray, amount: float) -> np.ndarray:
    """Plain linear mix of RGB (alpha from base)."""
    return composite(base, layer, "normal", amount)
