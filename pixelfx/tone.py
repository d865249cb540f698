"""
Pixel FX — Tone & Color
Basic adjustments (brightness, contrast, saturation, hue, invert) plus the
Mono and Vintage studios.
"""

import numpy as np
import cv2
from PIL import Image, ImageOps

from engine.color import hsl_to_rgb, luminance
from pixelfx.utility import vignette_mask


# === ADJUST ===

def brightness(frame: np.ndarray, amount: float = 0.0) -> np.ndarray:
    """Shift all channels by amount * 255 (amount in -1..1)."""
    amount = max(-1.0, min(1.0, float(amount)))
    return np.clip(frame.astype(np.float32) + amount * 255, 0, 255).astype(np.uint8)


def contrast(frame: np.ndarray, amount: float = 0.0) -> np.ndarray:
    """Linear contrast around mid-grey.

    Args:
        frame: (H, W, 3) uint8 RGB array.
        amount: -100 (flatten) to 100 (extreme contrast).

    Returns:
        Contrast-modified frame.
    """
    amount = max(-100.0, min(100.0, float(amount)))
    f = frame.astype(np.float32) / 255.0
    factor = (259 * (amount + 255)) / (255 * (259 - amount))
    f = factor * (f - 0.5) + 0.5
    return np.clip(f * 255, 0, 255).astype(np.uint8)


def saturation(frame: np.ndarray, amount: float = 1.0) -> np.ndarray:
    """Scale HSV saturation. 0.0 = grayscale, 1.0 = unchanged, 5.0 = hypersaturated."""
    amount = max(0.0, min(5.0, float(amount)))
    hsv = cv2.cvtColor(frame, cv2.COLOR_RGB2HSV).astype(np.float32)
    hsv[:, :, 1] = np.clip(hsv[:, :, 1] * amount, 0, 255)
    return cv2.cvtColor(hsv.astype(np.uint8), cv2.COLOR_HSV2RGB)


def hue(frame: np.ndarray, degrees: float = 0.0) -> np.ndarray:
    """Rotate the hue wheel by N degrees."""
    hsv = cv2.cvtColor(frame, cv2.COLOR_RGB2HSV).astype(np.float32)
    # OpenCV hue is 0-179 (half-degrees)
    hsv[:, :, 0] = (hsv[:, :, 0] + degrees / 2) % 180
    return cv2.cvtColor(hsv.astype(np.uint8), cv2.COLOR_HSV2RGB)


def invert(frame: np.ndarray, amount: float = 1.0) -> np.ndarray:
    """Full or partial color inversion (amount 0-1)."""
    amount = max(0.0, min(1.0, float(amount)))
    f = frame.astype(np.float32)
    result = f * (1 - amount) + (255.0 - f) * amount
    return np.clip(np.round(result), 0, 255).astype(np.uint8)


# === MONO STUDIO ===

MONO_PRESETS = ("grayscale", "blackAndWhite", "duotone", "splitTone", "gradientMap")


def _hue_color(degrees: float, s: float = 0.7, l: float = 0.5) -> tuple:
    rgb = hsl_to_rgb((degrees % 360) / 360.0, s, l)
    return tuple(int(c) for c in rgb)


def _mix(original: np.ndarray, processed: np.ndarray, intensity: float) -> np.ndarray:
    intensity = max(0.0, min(1.0, float(intensity)))
    if intensity >= 1.0:
        return processed
    mixed = original.astype(np.float32) * (1 - intensity) + processed.astype(np.float32) * intensity
    return np.clip(np.round(mixed), 0, 255).astype(np.uint8)


def unified_mono(frame: np.ndarray, preset: int = 0, intensity: float = 1.0,
                 threshold: float = 128, shadow_hue: float = 220,
                 highlight_hue: float = 40) -> np.ndarray:
    """Monochrome studio.

    Presets:
        0 grayscale — BT.601 luminance
        1 blackAndWhite — hard threshold on luminance
        2 duotone — shadows/highlights mapped to two hues
        3 splitTone — grayscale with tinted shadows and highlights
        4 gradientMap — three-stop map: black → shadow hue → highlight hue
    """
    preset = int(preset)
    gray = np.clip(np.round(luminance(frame)), 0, 255).astype(np.uint8)
    shadow = _hue_color(shadow_hue, 0.7, 0.25)
    highlight = _hue_color(highlight_hue, 0.8, 0.75)

    if preset == 1:
        bw = np.where(gray >= threshold, 255, 0).astype(np.uint8)
        result = np.stack([bw] * 3, axis=2)
    elif preset == 2:
        result = np.array(ImageOps.colorize(Image.fromarray(gray), black=shadow, white=highlight))
    elif preset == 3:
        g = gray.astype(np.float32)[:, :, np.newaxis]
        t = g / 255.0
        shadow_tint = (np.array(shadow, dtype=np.float32) - 128) * (1 - t) * 0.5
        highlight_tint = (np.array(highlight, dtype=np.float32) - 128) * t * 0.5
        result = np.clip(g + shadow_tint + highlight_tint, 0, 255).astype(np.uint8)
    elif preset == 4:
        result = np.array(ImageOps.colorize(
            Image.fromarray(gray), black=(0, 0, 0), white=highlight, mid=shadow,
        ))
    else:
        result = np.stack([gray] * 3, axis=2)

    return _mix(frame, result, intensity)


# === VINTAGE STUDIO ===

VINTAGE_PRESETS = ("sepia", "oldPhoto", "faded", "crossProcess", "scratched", "polaroid")

SEPIA_MATRIX = np.array([
    [0.393, 0.769, 0.189],
    [0.349, 0.686, 0.168],
    [0.272, 0.534, 0.131],
], dtype=np.float32)


def _sepia(f: np.ndarray) -> np.ndarray:
    return f @ SEPIA_MATRIX.T


def _grain(shape, amount: float, rng) -> np.ndarray:
    return rng.normal(0, 40 * amount, shape[:2])[:, :, np.newaxis].astype(np.float32)


def _scratches(h: int, w: int, rng, count: int) -> np.ndarray:
    """Bright vertical scratch lines and dust specks as an additive mask."""
    mask = np.zeros((h, w), dtype=np.float32)
    for _ in range(count):
        x = rng.randint(0, w)
        y0 = rng.randint(0, max(1, h // 2))
        y1 = min(h, y0 + rng.randint(h // 4 + 1, h + 1))
        mask[y0:y1, x] = rng.uniform(60, 140)
    specks = rng.random_sample((h, w)) < 0.0015
    mask[specks] = 180
    return mask[:, :, np.newaxis]


def unified_vintage(frame: np.ndarray, preset: int = 0, intensity: float = 1.0,
                    grain: float = 0.2, vignette: float = 0.4, seed: int = 42) -> np.ndarray:
    """Vintage film studio.

    Presets:
        0 sepia
        1 oldPhoto — sepia, softened, grain and vignette
        2 faded — lifted blacks, low contrast, muted colour
        3 crossProcess — per-channel curves (cyan shadows, yellow highlights)
        4 scratched — sepia film with scratches and dust
        5 polaroid — warm, lifted shadows, soft vignette
    """
    preset = int(preset)
    h, w = frame.shape[:2]
    rng = np.random.RandomState(int(seed))
    f = frame.astype(np.float32)
    vig = 1.0 - max(0.0, min(1.0, vignette)) * (1.0 - vignette_mask(h, w, 0.5, 0.6))
    vig = vig[:, :, np.newaxis]

    if preset == 1:
        soft = cv2.GaussianBlur(f, (3, 3), 0)
        result = _sepia(soft) * 0.9 + 20
        result = result + _grain(f.shape, grain, rng)
        result = result * vig
    elif preset == 2:
        gray = luminance(f)[:, :, np.newaxis]
        muted = gray + (f - gray) * 0.6
        result = muted * 0.75 + 40
    elif preset == 3:
        n = f / 255.0
        r = 1 / (1 + np.exp(-(n[:, :, 0] - 0.5) * 8))
        g = n[:, :, 1] ** 0.85
        b = n[:, :, 2] * 0.7 + 0.15
        result = np.stack([r, g, b], axis=2) * 255
    elif preset == 4:
        result = _sepia(f) * 0.85 + 15
        result = result + _grain(f.shape, grain, rng) + _scratches(h, w, rng, max(1, w // 40))
        result = result * vig
    elif preset == 5:
        warm = f * np.array([1.08, 1.02, 0.88], dtype=np.float32)
        result = warm * 0.85 + 30
        result = result * (1.0 - (1.0 - vig) * 0.5)
    else:
        result = _sepia(f)

    result = np.clip(result, 0, 255).astype(np.uint8)
    return _mix(frame, result, intensity)
