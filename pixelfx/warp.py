"""
Pixel FX — Warp Studio
Coordinate-remapping distortions: pixelate, swirl, kaleidoscope, fisheye,
spherize, wave, geometric mosaic, shatter, plus the square-tile mosaic.

Every warp builds a sampling map and resamples through cv2.remap.
"""

import numpy as np
import cv2
from PIL import Image

WARP_PRESETS = ("pixelate", "swirl", "kaleidoscope", "fisheye", "spherize", "wave", "geometric", "shatter")


def remap_frame(frame, map_x, map_y, boundary="clamp"):
    """Resample frame at (map_x, map_y).

    Args:
        boundary: What happens when a sample leaves the frame.
            "clamp"  — edge pixel stretches
            "wrap"   — tiles around
            "mirror" — reflects at edges
            "black"  — out-of-bounds reveals black
    """
    h, w = frame.shape[:2]
    map_x = map_x.astype(np.float32)
    map_y = map_y.astype(np.float32)
    if boundary == "wrap":
        return cv2.remap(frame, map_x % w, map_y % h, cv2.INTER_LINEAR,
                         borderMode=cv2.BORDER_WRAP)
    if boundary == "mirror":
        return cv2.remap(frame, map_x, map_y, cv2.INTER_LINEAR,
                         borderMode=cv2.BORDER_REFLECT)
    if boundary == "black":
        return cv2.remap(frame, map_x, map_y, cv2.INTER_LINEAR,
                         borderMode=cv2.BORDER_CONSTANT, borderValue=0)
    return cv2.remap(frame, map_x, map_y, cv2.INTER_LINEAR, borderMode=cv2.BORDER_REPLICATE)


def _polar(h, w, center_x, center_y):
    ys, xs = np.mgrid[0:h, 0:w].astype(np.float32)
    cx, cy = center_x * w, center_y * h
    dx = xs - cx
    dy = ys - cy
    return xs, ys, cx, cy, dx, dy


def pixelate(frame: np.ndarray, size: int = 10) -> np.ndarray:
    """Nearest-neighbour mosaic with `size`-pixel blocks."""
    h, w = frame.shape[:2]
    size = max(1, int(size))
    new_w, new_h = max(1, w // size), max(1, h // size)
    img = Image.fromarray(frame)
    small = img.resize((new_w, new_h), Image.Resampling.BOX)
    return np.array(small.resize((w, h), Image.Resampling.NEAREST))


def mosaic(frame: np.ndarray, size: int = 12, grout: int = 1, grout_shade: float = 0.35) -> np.ndarray:
    """Square tiles: a pixelate pass with darkened grout lines between tiles.

    Args:
        frame: (H, W, 3) uint8 RGB array.
        size: Tile edge in pixels (2-64).
        grout: Grout line width in pixels (0 for none), at most size - 1.
        grout_shade: Brightness kept on grout pixels (0 black, 1 unchanged).
    """
    size = max(2, min(64, int(size)))
    grout = max(0, min(size - 1, int(grout)))
    grout_shade = max(0.0, min(1.0, float(grout_shade)))
    tiles = pixelate(frame, size)
    if grout == 0:
        return tiles
    h, w = frame.shape[:2]
    ys, xs = np.ogrid[0:h, 0:w]
    edge = (xs % size < grout) | (ys % size < grout)
    out = tiles.astype(np.float32)
    out[edge] *= grout_shade
    return np.round(out).astype(np.uint8)


def swirl(frame, amount=0.5, radius=0.5, center_x=0.5, center_y=0.5):
    """Twist pixels around the centre, strongest at the middle."""
    h, w = frame.shape[:2]
    xs, ys, cx, cy, dx, dy = _polar(h, w, center_x, center_y)
    dist = np.sqrt(dx * dx + dy * dy)
    max_r = max(1.0, radius * min(h, w))
    falloff = np.clip(1.0 - dist / max_r, 0.0, 1.0)
    theta = np.arctan2(dy, dx) + amount * np.pi * 2 * falloff ** 2
    return remap_frame(frame, cx + dist * np.cos(theta), cy + dist * np.sin(theta))


def kaleidoscope(frame, segments=6, rotation=0.0, center_x=0.5, center_y=0.5, zoom=1.0):
    """Mirror segments radiating from center."""
    h, w = frame.shape[:2]
    segments = max(2, int(segments))
    xs, ys, cx, cy, dx, dy = _polar(h, w, center_x, center_y)
    angle = np.arctan2(dy, dx) + np.radians(rotation)
    radius = np.sqrt(dx * dx + dy * dy)

    seg_angle = 2 * np.pi / segments
    folded = np.abs(np.mod(angle, seg_angle) - seg_angle / 2)

    zoom = zoom if zoom > 0 else 1.0
    map_x = np.clip(cx + radius * np.cos(folded) / zoom, 0, w - 1)
    map_y = np.clip(cy + radius * np.sin(folded) / zoom, 0, h - 1)
    return remap_frame(frame, map_x, map_y)


def fisheye(frame, amount=0.5, center_x=0.5, center_y=0.5):
    """Barrel distortion: r_src = r^(1 + amount) on normalised radius."""
    h, w = frame.shape[:2]
    xs, ys, cx, cy, dx, dy = _polar(h, w, center_x, center_y)
    norm = max(1.0, min(w, h) / 2)
    r = np.sqrt(dx * dx + dy * dy) / norm
    scale = np.where(r > 0, np.power(r, 1.0 + amount) / np.maximum(r, 1e-6), 1.0)
    scale = np.where(r < 1.0, scale, 1.0)
    return remap_frame(frame, cx + dx * scale, cy + dy * scale)


def spherize(frame, amount=0.5, center_x=0.5, center_y=0.5):
    """Bulge the central disc as if projected onto a sphere."""
    h, w = frame.shape[:2]
    xs, ys, cx, cy, dx, dy = _polar(h, w, center_x, center_y)
    norm = max(1.0, min(w, h) / 2)
    r = np.clip(np.sqrt(dx * dx + dy * dy) / norm, 0.0, 1.0)
    sphere = np.arcsin(r) / (np.pi / 2)
    mapped_r = r * (1 - amount) + sphere * amount
    scale = np.where(r > 0, mapped_r / np.maximum(r, 1e-6), 1.0)
    inside = (dx * dx + dy * dy) < norm * norm
    scale = np.where(inside, scale, 1.0)
    return remap_frame(frame, cx + dx * scale, cy + dy * scale)


def wave(frame, amplitude=10.0, frequency=0.05):
    """Sine displacement on both axes, wrapping at the edges."""
    h, w = frame.shape[:2]
    ys, xs = np.mgrid[0:h, 0:w].astype(np.float32)
    map_x = xs + amplitude * np.sin(2 * np.pi * frequency * ys)
    map_y = ys + amplitude * 0.5 * np.sin(2 * np.pi * frequency * xs)
    return remap_frame(frame, map_x, map_y, boundary="wrap")


def geometric(frame, size=16):
    """Low-poly mosaic: each cell is split on its diagonal into two flat triangles."""
    h, w = frame.shape[:2]
    size = max(2, int(size))
    ys, xs = np.mgrid[0:h, 0:w]
    cells_x = (w + size - 1) // size
    cell = (ys // size) * cells_x + (xs // size)
    upper = (xs % size) > (ys % size)
    labels = (cell * 2 + upper).ravel()

    n = int(labels.max()) + 1
    counts = np.bincount(labels, minlength=n).astype(np.float64)
    counts[counts == 0] = 1
    flat = frame.reshape(-1, 3).astype(np.float64)
    means = np.stack([np.bincount(labels, weights=flat[:, ch], minlength=n) / counts
                      for ch in range(3)], axis=1)
    return np.round(means[labels]).reshape(h, w, 3).astype(np.uint8)


def shatter(frame, amount=0.5, pieces=24, seed=42):
    """Voronoi shards pushed outward from the centre; gaps are black."""
    h, w = frame.shape[:2]
    rng = np.random.RandomState(seed)
    pieces = max(2, int(pieces))
    px = rng.uniform(0, w, pieces).astype(np.float32)
    py = rng.uniform(0, h, pieces).astype(np.float32)

    ys, xs = np.mgrid[0:h, 0:w].astype(np.float32)
    best = np.full((h, w), np.inf, dtype=np.float32)
    shard = np.zeros((h, w), dtype=np.int64)
    for i in range(pieces):
        d = (xs - px[i]) ** 2 + (ys - py[i]) ** 2
        closer = d < best
        best = np.where(closer, d, best)
        shard = np.where(closer, i, shard)

    push = amount * min(h, w) * 0.15
    dir_x = px - w / 2
    dir_y = py - h / 2
    length = np.maximum(np.sqrt(dir_x ** 2 + dir_y ** 2), 1e-3)
    off_x = dir_x / length * push * rng.uniform(0.5, 1.0, pieces)
    off_y = dir_y / length * push * rng.uniform(0.5, 1.0, pieces)
    return remap_frame(frame, xs - off_x[shard], ys - off_y[shard], boundary="black")


def unified_warp(frame: np.ndarray, preset: int = 0, amount: float = 0.5, size: float = 10,
                 segments: float = 6, center_x: float = 0.5, center_y: float = 0.5,
                 seed: int = 42) -> np.ndarray:
    """Warp studio.

    Presets:
        0 pixelate     4 spherize
        1 swirl        5 wave
        2 kaleidoscope 6 geometric
        3 fisheye      7 shatter
    """
    preset = int(preset)
    if preset == 1:
        return swirl(frame, amount, 0.5, center_x, center_y)
    if preset == 2:
        return kaleidoscope(frame, int(segments), 0.0, center_x, center_y)
    if preset == 3:
        return fisheye(frame, amount, center_x, center_y)
    if preset == 4:
        return spherize(frame, amount, center_x, center_y)
    if preset == 5:
        return wave(frame, amplitude=size, frequency=0.01 + amount * 0.05)
    if preset == 6:
        return geometric(frame, int(size) * 2)
    if preset == 7:
        return shatter(frame, amount, seed=int(seed))
    return pixelate(frame, int(size))
