"""
Pixel FX — Glitch Studio
Channel shifting, scan lines, VHS degradation, block displacement,
databending and pixel sorting.
"""

import numpy as np
import cv2
from PIL import Image

GLITCH_PRESETS = ("rgbShift", "chromatic", "scanlines", "vhs", "glitchArt", "databend", "pixelSort")


def channel_shift(frame: np.ndarray, r_offset: tuple = (10, 0),
                  g_offset: tuple = (0, 0), b_offset: tuple = (-10, 0)) -> np.ndarray:
    """Shift R, G, B channels by independent (x, y) pixel offsets, wrapping."""
    result = np.zeros_like(frame)
    for ch_idx, (dx, dy) in enumerate([r_offset, g_offset, b_offset]):
        channel = frame[:, :, ch_idx]
        result[:, :, ch_idx] = np.roll(np.roll(channel, int(dx), axis=1), int(dy), axis=0)
    return result


def radial_aberration(frame: np.ndarray, offset: int = 5) -> np.ndarray:
    """Lens-style chromatic aberration: R scaled outward, B inward, G fixed."""
    h, w = frame.shape[:2]
    result = frame.copy()
    for ch_idx, mult in ((0, 1), (2, -1)):
        scale = 1.0 + mult * offset * 0.004
        new_w, new_h = max(1, int(round(w * scale))), max(1, int(round(h * scale)))
        scaled = np.array(Image.fromarray(frame[:, :, ch_idx]).resize((new_w, new_h), Image.BILINEAR))
        if scale >= 1.0:
            sy = (new_h - h) // 2
            sx = (new_w - w) // 2
            result[:, :, ch_idx] = scaled[sy:sy + h, sx:sx + w]
        else:
            py = (h - new_h) // 2
            px = (w - new_w) // 2
            padded = np.pad(scaled, ((py, h - new_h - py), (px, w - new_w - px)), mode="edge")
            result[:, :, ch_idx] = padded
    return result


def scanlines(frame: np.ndarray, line_width: int = 2, opacity: float = 0.3,
              flicker: bool = False, seed: int = 42) -> np.ndarray:
    """Overlay dark horizontal scan lines, optionally with per-line flicker."""
    result = frame.astype(np.float32)
    h = result.shape[0]
    line_width = max(1, int(line_width))
    opacity = max(0.0, min(1.0, float(opacity)))
    rng = np.random.RandomState(seed)

    spacing = line_width * 2
    for y in range(0, h, spacing):
        end_y = min(y + line_width, h)
        line_opacity = opacity * (0.5 + 0.5 * rng.random_sample()) if flicker else opacity
        result[y:end_y] *= (1 - line_opacity)

    return np.clip(result, 0, 255).astype(np.uint8)


def vhs(frame: np.ndarray, tracking: float = 0.5, noise_amount: float = 0.2,
        color_bleed: int = 3, seed: int = 42) -> np.ndarray:
    """Simulate VHS tape degradation.

    Args:
        frame: (H, W, 3) uint8 RGB array.
        tracking: Tracking error intensity (0.0-1.0). Higher = more horizontal offset.
        noise_amount: Amount of noise overlay (0.0-1.0).
        color_bleed: Horizontal color bleed in pixels.
        seed: Random seed for reproducibility.

    Returns:
        VHS-degraded frame.
    """
    h, w, c = frame.shape
    rng = np.random.RandomState(seed)
    result = frame.astype(np.float32)
    tracking = max(0.0, min(1.0, tracking))
    noise_amount = max(0.0, min(1.0, noise_amount))
    color_bleed = max(0, min(int(color_bleed), w // 4))

    if tracking > 0:
        num_glitch_rows = int(h * tracking * 0.1)
        max_shift = int(w * tracking * 0.1)
        for _ in range(num_glitch_rows):
            row = rng.randint(0, h)
            band_h = rng.randint(1, max(2, int(h * 0.02)))
            shift = rng.randint(-max_shift, max_shift + 1)
            end_row = min(row + band_h, h)
            result[row:end_row] = np.roll(result[row:end_row], shift, axis=1)

    if color_bleed > 0:
        # Bleed R and B, leave G sharp
        k = color_bleed * 2 + 1
        for ch in (0, 2):
            result[:, :, ch] = cv2.blur(np.ascontiguousarray(result[:, :, ch]), (k, 1),
                                        borderType=cv2.BORDER_REPLICATE)

    if noise_amount > 0:
        result = result + rng.normal(0, 25 * noise_amount, (h, w, c)).astype(np.float32)

    return np.clip(result, 0, 255).astype(np.uint8)


def block_displace(frame: np.ndarray, block_size: int = 16, intensity: float = 10.0,
                   seed: int = 42) -> np.ndarray:
    """Randomly displace blocks of the image and tear a few RGB bands."""
    h, w, _ = frame.shape
    block_size = max(4, min(int(block_size), min(h, w)))
    intensity = max(0, min(int(intensity), max(h, w) // 2))
    rng = np.random.RandomState(seed)
    result = frame.copy()

    for y in range(0, h, block_size):
        for x in range(0, w, block_size):
            if rng.random_sample() > 0.6:
                dy = rng.randint(-intensity, intensity + 1)
                dx = rng.randint(-intensity, intensity + 1)
                bh = min(block_size, h - y)
                bw = min(block_size, w - x)
                sy = max(0, min(y + dy, h - bh))
                sx = max(0, min(x + dx, w - bw))
                result[y:y + bh, x:x + bw] = frame[sy:sy + bh, sx:sx + bw]

    for _ in range(max(1, h // 40)):
        row = rng.randint(0, h)
        end = min(h, row + rng.randint(1, max(2, h // 20)))
        ch = rng.randint(0, 3)
        result[row:end, :, ch] = np.roll(result[row:end, :, ch], rng.randint(-intensity, intensity + 1), axis=1)

    return result


def databend(frame: np.ndarray, amount: float = 0.5, seed: int = 42) -> np.ndarray:
    """Corrupt the raw byte stream: repeated, reversed and XOR'd runs."""
    h, w, c = frame.shape
    rng = np.random.RandomState(seed)
    data = frame.reshape(-1).copy()
    n = data.size
    amount = max(0.0, min(1.0, float(amount)))
    runs = int(4 + amount * 28)

    for _ in range(runs):
        length = rng.randint(w * c // 4 + 1, w * c * 2 + 2)
        start = rng.randint(0, max(1, n - length))
        end = min(n, start + length)
        op = rng.randint(0, 3)
        if op == 0:
            src = rng.randint(0, max(1, n - (end - start)))
            data[start:end] = data[src:src + (end - start)]
        elif op == 1:
            data[start:end] = data[start:end][::-1]
        else:
            data[start:end] ^= np.uint8(rng.randint(1, 256))

    return data.reshape(h, w, c)


def _brightness(pixels):
    return 0.299 * pixels[:, 0] + 0.587 * pixels[:, 1] + 0.114 * pixels[:, 2]


def pixel_sort(frame: np.ndarray, threshold: float = 0.5, vertical: bool = False) -> np.ndarray:
    """Sort runs of pixels brighter than `threshold` (0-1) by brightness."""
    result = frame.copy()
    if vertical:
        result = result.transpose(1, 0, 2)

    h, w, _ = result.shape
    threshold_val = threshold * 255

    for row_idx in range(h):
        row = result[row_idx]
        keys = _brightness(row.astype(np.float32))
        mask = keys > threshold_val

        changes = np.diff(mask.astype(int))
        starts = np.where(changes == 1)[0] + 1
        ends = np.where(changes == -1)[0] + 1
        if mask[0]:
            starts = np.concatenate([[0], starts])
        if mask[-1]:
            ends = np.concatenate([ends, [w]])

        for start, end in zip(starts, ends):
            if end - start < 2:
                continue
            order = np.argsort(keys[start:end], kind="stable")
            result[row_idx, start:end] = row[start:end][order]

    if vertical:
        result = result.transpose(1, 0, 2)
    return np.ascontiguousarray(result)


def unified_glitch(frame: np.ndarray, preset: int = 0, amount: float = 10,
                   intensity: float = 0.5, seed: int = 42) -> np.ndarray:
    """Glitch studio.

    Presets:
        0 rgbShift — R right, B left by `amount` px
        1 chromatic — radial lens aberration
        2 scanlines — CRT lines, `intensity` as opacity
        3 vhs — tracking errors, colour bleed, noise
        4 glitchArt — block displacement with torn RGB bands
        5 databend — raw byte corruption
        6 pixelSort — brightness-threshold sorting, `intensity` as threshold
    """
    preset = int(preset)
    amount = int(amount)
    seed = int(seed)

    if preset == 1:
        return radial_aberration(frame, amount)
    if preset == 2:
        return scanlines(frame, line_width=max(1, amount // 5), opacity=intensity)
    if preset == 3:
        return vhs(frame, tracking=intensity, noise_amount=intensity * 0.4,
                   color_bleed=max(1, amount // 3), seed=seed)
    if preset == 4:
        return block_displace(frame, block_size=16, intensity=amount, seed=seed)
    if preset == 5:
        return databend(frame, amount=intensity, seed=seed)
    if preset == 6:
        return pixel_sort(frame, threshold=intensity)
    return channel_shift(frame, (amount, 0), (0, 0), (-amount, 0))
