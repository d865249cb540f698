"""
Pixel FX — Optics
Blur and Glow studios: lens-style softening and light bleeding.
"""

import numpy as np
import cv2
from PIL import Image, ImageFilter

BLUR_PRESETS = ("gaussian", "bokeh", "tiltShift", "motion", "radial")
GLOW_PRESETS = ("bloom", "dreamy", "neon", "bioluminescence", "halation")


def _odd(n: int) -> int:
    n = max(1, int(n))
    return n if n % 2 else n + 1


def _disc_kernel(radius: int) -> np.ndarray:
    size = radius * 2 + 1
    kernel = np.zeros((size, size), dtype=np.float32)
    cv2.circle(kernel, (radius, radius), radius, 1.0, -1)
    return kernel / kernel.sum()


def _motion_kernel(length: int, angle: float) -> np.ndarray:
    size = _odd(length)
    kernel = np.zeros((size, size), dtype=np.float32)
    kernel[size // 2, :] = 1.0
    rot = cv2.getRotationMatrix2D((size / 2 - 0.5, size / 2 - 0.5), angle, 1.0)
    kernel = cv2.warpAffine(kernel, rot, (size, size))
    total = kernel.sum()
    return kernel / total if total > 0 else kernel


def _radial_blur(frame: np.ndarray, strength: float, cx: float, cy: float, samples: int = 8) -> np.ndarray:
    """Average of frames scaled toward (cx, cy) — zoom blur."""
    h, w = frame.shape[:2]
    y_coords, x_coords = np.mgrid[0:h, 0:w].astype(np.float32)
    dx = x_coords - cx
    dy = y_coords - cy
    acc = np.zeros(frame.shape, dtype=np.float32)
    for i in range(samples):
        scale = 1.0 - strength * i / max(samples - 1, 1)
        map_x = (cx + dx * scale).astype(np.float32)
        map_y = (cy + dy * scale).astype(np.float32)
        acc += cv2.remap(frame, map_x, map_y, cv2.INTER_LINEAR, borderMode=cv2.BORDER_REPLICATE)
    return acc / samples


def unified_blur(frame: np.ndarray, preset: int = 0, radius: float = 5, angle: float = 0,
                 focus: float = 0.5, focus_width: float = 0.2) -> np.ndarray:
    """Blur studio.

    Presets:
        0 gaussian
        1 bokeh — disc kernel with highlight boost
        2 tiltShift — sharp horizontal band at `focus`, blur and saturation outside
        3 motion — line kernel along `angle` degrees
        4 radial — zoom blur from the centre

    Args:
        frame: (H, W, 3) uint8 RGB array.
        radius: Blur radius in pixels (0-50).

    Returns:
        Blurred frame.
    """
    preset = int(preset)
    radius = max(0, min(50, int(radius)))
    if radius == 0:
        return frame.copy()
    h, w = frame.shape[:2]

    if preset == 1:
        # Gamma-boost highlights before the disc so bright spots bloom into circles
        lin = (frame.astype(np.float32) / 255.0) ** 2.2
        blurred = cv2.filter2D(lin, -1, _disc_kernel(radius), borderType=cv2.BORDER_REPLICATE)
        return np.clip((blurred ** (1 / 2.2)) * 255, 0, 255).astype(np.uint8)

    if preset == 2:
        ksize = _odd(radius * 2 + 1)
        blurred = cv2.GaussianBlur(frame, (ksize, ksize), 0).astype(np.float32)
        rows = np.arange(h, dtype=np.float32) / max(h - 1, 1)
        dist = np.abs(rows - focus) - focus_width / 2
        weight = np.clip(dist / max(focus_width, 0.05), 0.0, 1.0)[:, np.newaxis, np.newaxis]
        mixed = frame.astype(np.float32) * (1 - weight) + blurred * weight
        hsv = cv2.cvtColor(np.clip(mixed, 0, 255).astype(np.uint8), cv2.COLOR_RGB2HSV).astype(np.float32)
        hsv[:, :, 1] = np.clip(hsv[:, :, 1] * 1.3, 0, 255)
        return cv2.cvtColor(hsv.astype(np.uint8), cv2.COLOR_HSV2RGB)

    if preset == 3:
        return cv2.filter2D(frame, -1, _motion_kernel(radius * 2 + 1, angle),
                            borderType=cv2.BORDER_REPLICATE)

    if preset == 4:
        blurred = _radial_blur(frame, min(0.5, radius * 0.01), w / 2, h / 2)
        return np.clip(blurred, 0, 255).astype(np.uint8)

    ksize = radius * 2 + 1
    return cv2.GaussianBlur(frame, (ksize, ksize), 0)


def _bright_pass(frame: np.ndarray, threshold: float) -> np.ndarray:
    gray = cv2.cvtColor(frame, cv2.COLOR_RGB2GRAY)
    _, bright_mask = cv2.threshold(gray, threshold, 255, cv2.THRESH_BINARY)
    return cv2.bitwise_and(frame, cv2.merge([bright_mask] * 3))


def unified_glow(frame: np.ndarray, preset: int = 0, radius: float = 15, intensity: float = 0.6,
                 threshold: float = 180) -> np.ndarray:
    """Glow studio — bright areas bleed soft light outward.

    Presets:
        0 bloom — neutral additive bloom
        1 dreamy — warm bloom plus an overall soft-focus mix
        2 neon — edges recoloured by hue, blurred and added
        3 bioluminescence — darkened scene, cyan-green glow from highlights
        4 halation — red-orange film halation around highlights
    """
    preset = int(preset)
    intensity = max(0.0, min(2.0, float(intensity)))
    threshold = max(0.0, min(255.0, float(threshold)))
    ksize = _odd(max(3, int(radius) * 2 + 1))
    f = frame.astype(np.float32)

    if preset == 2:
        gray = cv2.cvtColor(frame, cv2.COLOR_RGB2GRAY)
        edges = cv2.Canny(gray, 50, 150)
        hsv = cv2.cvtColor(frame, cv2.COLOR_RGB2HSV)
        hsv[:, :, 1] = 255
        hsv[:, :, 2] = edges
        neon = cv2.cvtColor(hsv, cv2.COLOR_HSV2RGB).astype(np.float32)
        glow = cv2.GaussianBlur(neon, (ksize, ksize), 0)
        result = f * 0.6 + neon + glow * intensity * 2
        return np.clip(result, 0, 255).astype(np.uint8)

    bloom = cv2.GaussianBlur(_bright_pass(frame, threshold), (ksize, ksize), 0).astype(np.float32)

    if preset == 1:
        bloom = bloom * (np.array([255, 240, 220], dtype=np.float32) / 255.0)
        soft = np.array(Image.fromarray(frame).filter(ImageFilter.GaussianBlur(max(1, int(radius) // 3))))
        base = f * 0.7 + soft.astype(np.float32) * 0.3
        result = base + bloom * intensity
    elif preset == 3:
        luma = cv2.cvtColor(bloom.astype(np.uint8), cv2.COLOR_RGB2GRAY).astype(np.float32)
        glow = luma[:, :, np.newaxis] * np.array([0.1, 0.9, 0.8], dtype=np.float32)
        result = f * 0.45 + glow * intensity * 1.5
    elif preset == 4:
        luma = cv2.cvtColor(bloom.astype(np.uint8), cv2.COLOR_RGB2GRAY).astype(np.float32)
        glow = luma[:, :, np.newaxis] * np.array([1.0, 0.35, 0.15], dtype=np.float32)
        result = f + glow * intensity
    else:
        result = f + bloom * intensity

    return np.clip(result, 0, 255).astype(np.uint8)
