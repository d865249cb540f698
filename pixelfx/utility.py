"""
Pixel FX — Utility Effects
Threshold, posterize, sharpen, edge detection, vignette.
"""

import numpy as np
import cv2

from engine.buffers import SHARPEN_KERNEL, SOBEL_X, SOBEL_Y
from engine.color import luminance


def _filter(f: np.ndarray, kernel) -> np.ndarray:
    return cv2.filter2D(f, -1, np.asarray(kernel, dtype=np.float32), borderType=cv2.BORDER_REPLICATE)


def threshold(frame: np.ndarray, level: float = 128) -> np.ndarray:
    """Hard black/white split on luminance.

    Args:
        frame: (H, W, 3) uint8 RGB array.
        level: Luminance cut (0-255). Pixels at or above become white.

    Returns:
        Two-tone frame.
    """
    level = max(0.0, min(255.0, float(level)))
    mask = luminance(frame) >= level
    out = np.where(mask, 255, 0).astype(np.uint8)
    return np.stack([out] * 3, axis=2)


def posterize(frame: np.ndarray, levels: int = 4) -> np.ndarray:
    """Reduce color levels for a poster/screen print effect.

    Args:
        frame: (H, W, 3) uint8 RGB array.
        levels: Number of color levels per channel (2-32).

    Returns:
        Posterized frame.
    """
    levels = max(2, min(32, int(levels)))
    step = 256 / levels
    result = np.floor(frame / step) * step + step // 2
    return np.clip(result, 0, 255).astype(np.uint8)


def sharpen(frame: np.ndarray, amount: float = 1.0) -> np.ndarray:
    """3x3 sharpen kernel, mixed with the original by `amount` (0-3)."""
    amount = max(0.0, min(3.0, float(amount)))
    f = frame.astype(np.float32)
    sharp = _filter(f, SHARPEN_KERNEL)
    return np.clip(f + (sharp - f) * amount, 0, 255).astype(np.uint8)


def edge_detection(frame: np.ndarray, threshold: float = 0.3, mode: int = 0) -> np.ndarray:
    """Sobel edge detection.

    Args:
        frame: (H, W, 3) uint8 RGB array.
        threshold: Edge sensitivity (0.0-1.0, lower = more edges).
        mode: 0 white edges on black, 1 edges over the original,
              2 neon edges coloured by gradient direction.

    Returns:
        Edge-detected frame.
    """
    gray = luminance(frame)
    threshold = max(0.01, min(1.0, float(threshold)))
    gx = _filter(gray, SOBEL_X)
    gy = _filter(gray, SOBEL_Y)
    magnitude = np.sqrt(gx ** 2 + gy ** 2)
    peak = magnitude.max()
    if peak > 0:
        magnitude = magnitude / peak
    edges = (magnitude > threshold).astype(np.float32)

    mode = int(mode)
    if mode == 1:
        edge_mask = edges[:, :, np.newaxis]
        result = frame.astype(np.float32) * (1 - edge_mask * 0.5) + edge_mask * 128
    elif mode == 2:
        angle = np.arctan2(gy, gx + 1e-7)
        result = np.stack([
            (np.sin(angle) + 1) / 2 * 255 * edges,
            (np.sin(angle + 2.094) + 1) / 2 * 255 * edges,
            (np.sin(angle + 4.189) + 1) / 2 * 255 * edges,
        ], axis=2)
    else:
        result = np.stack([edges * 255] * 3, axis=2)

    return np.clip(result, 0, 255).astype(np.uint8)


def vignette_mask(h: int, w: int, radius: float = 0.75, softness: float = 0.5) -> np.ndarray:
    """Radial falloff: 1.0 inside `radius`, fading to 0 over `softness`.

    Distances are normalised so the frame corner sits at 1.0.
    """
    ys, xs = np.mgrid[0:h, 0:w].astype(np.float32)
    dx = (xs - (w - 1) / 2) / max((w - 1) / 2, 1)
    dy = (ys - (h - 1) / 2) / max((h - 1) / 2, 1)
    dist = np.sqrt(dx * dx + dy * dy) / np.sqrt(2)
    softness = max(softness, 1e-3)
    return 1.0 - np.clip((dist - radius) / softness, 0.0, 1.0)


def vignette(frame: np.ndarray, strength: float = 0.5, radius: float = 0.75,
             softness: float = 0.5) -> np.ndarray:
    """Darken toward the corners."""
    strength = max(0.0, min(1.0, float(strength)))
    mask = vignette_mask(frame.shape[0], frame.shape[1], radius, softness)
    factor = 1.0 - strength * (1.0 - mask)
    return np.clip(frame.astype(np.float32) * factor[:, :, np.newaxis], 0, 255).astype(np.uint8)
