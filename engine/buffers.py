"""
Pixel FX — Buffer Pool & Pixel Helpers

Reusable uint8 buffers for effect processing plus the small set of
index/bounds/convolution helpers every generator shares.

A BufferPool is an explicit object owned by a render session, not a
process-wide singleton. It is not thread-safe: one pool per worker.

Usage invariant: a buffer handed to release() must not be read or written
by its previous owner afterwards, and must not be released twice.
"""

import logging
import math
import time
from contextlib import contextmanager
from fractions import Fraction
from typing import NamedTuple

import numpy as np

from engine.safety import POOL_MAX_IDLE_SEC, POOL_MAX_PER_SIZE

logger = logging.getLogger(__name__)


class PoolStats(NamedTuple):
    allocations: int
    reuses: int
    releases: int
    pooled_buffers: int
    pooled_bytes: int


class BufferPool:
    """Size-keyed pool of flat uint8 buffers."""

    def __init__(self, max_per_size: int = POOL_MAX_PER_SIZE,
                 max_idle: float = POOL_MAX_IDLE_SEC):
        self.max_per_size = max(0, int(max_per_size))
        self.max_idle = float(max_idle)
        self._pools: dict[int, list[tuple[np.ndarray, float]]] = {}
        self._allocations = 0
        self._reuses = 0
        self._releases = 0

    def acquire(self, size: int) -> np.ndarray:
        """Return a zero-filled buffer of `size` bytes. Never fails."""
        size = int(size)
        pool = self._pools.get(size)
        if pool:
            buffer, _ = pool.pop()
            buffer.fill(0)
            self._reuses += 1
            return buffer

        self._allocations += 1
        logger.debug("BufferPool: allocating %d bytes", size)
        return np.zeros(size, dtype=np.uint8)

    def release(self, buffer: np.ndarray) -> None:
        """Return a buffer for later reuse. Extras beyond max_per_size are dropped."""
        self._releases += 1
        pool = self._pools.setdefault(buffer.size, [])
        if len(pool) < self.max_per_size:
            pool.append((buffer.reshape(-1), time.monotonic()))

    def acquire_copy(self, source) -> np.ndarray:
        """Acquire a buffer of len(source) and copy source into it."""
        src = np.asarray(source, dtype=np.uint8).reshape(-1)
        buffer = self.acquire(src.size)
        buffer[:] = src
        return buffer

    @contextmanager
    def borrowed(self, size: int):
        """Acquire a scratch buffer for the duration of a with-block."""
        buffer = self.acquire(size)
        try:
            yield buffer
        finally:
            self.release(buffer)

    def cleanup(self, now: float | None = None) -> int:
        """Drop buffers idle longer than max_idle. Returns how many were dropped."""
        now = time.monotonic() if now is None else now
        dropped = 0
        for size in list(self._pools):
            kept = [(buf, ts) for buf, ts in self._pools[size] if now - ts < self.max_idle]
            dropped += len(self._pools[size]) - len(kept)
            if kept:
                self._pools[size] = kept
            else:
                del self._pools[size]
        return dropped

    def clear(self) -> None:
        self._pools.clear()

    def stats(self) -> PoolStats:
        pooled = sum(len(p) for p in self._pools.values())
        pooled_bytes = sum(size * len(p) for size, p in self._pools.items())
        return PoolStats(self._allocations, self._reuses, self._releases, pooled, pooled_bytes)


def acquire_buffer_copy(pool: BufferPool, source) -> np.ndarray:
    """Snapshot `source` into a pooled buffer (same shape as source)."""
    src = np.asarray(source, dtype=np.uint8)
    return pool.acquire_copy(src).reshape(src.shape)


@contextmanager
def snapshot(frame: np.ndarray, pool: BufferPool | None = None):
    """Read-only copy of `frame` for generators that overwrite it in place.

    Pooled when a pool is given; the copy goes back to the pool on exit.
    """
    if pool is None:
        yield frame.copy()
        return
    copy = acquire_buffer_copy(pool, frame)
    try:
        yield copy
    finally:
        pool.release(copy)


# ─── Index helpers ───

def pixel_index(x: int, y: int, width: int) -> int:
    return (y * width + x) * 4


def as_frame(buffer: np.ndarray, width: int, height: int) -> np.ndarray:
    """View a flat RGBA buffer as (H, W, 4)."""
    return buffer.reshape(height, width, 4)


def get_pixel_safe(data, x: int, y: int, width: int, height: int):
    """Bounds-checked RGBA read from a flat buffer. None when out of range."""
    if x < 0 or x >= width or y < 0 or y >= height:
        return None
    i = pixel_index(x, y, width)
    return int(data[i]), int(data[i + 1]), int(data[i + 2]), int(data[i + 3])


# ─── Convolution ───

SOBEL_X = ((-1, 0, 1), (-2, 0, 2), (-1, 0, 1))
SOBEL_Y = ((-1, -2, -1), (0, 0, 0), (1, 2, 1))
SHARPEN_KERNEL = ((0, -1, 0), (-1, 5, -1), (0, -1, 0))
EDGE_DETECT_KERNEL = ((-1, -1, -1), (-1, 8, -1), (-1, -1, -1))
EMBOSS_KERNEL = ((-2, -1, 0), (-1, 1, 1), (0, 1, 2))


def apply_kernel_3x3(data, x: int, y: int, width: int, height: int, kernel):
    """Apply a 3x3 kernel at one pixel of a flat RGBA buffer.

    Neighbours outside the frame clamp to the nearest edge pixel.
    Returns unclamped (r, g, b) sums.
    """
    r = g = b = 0.0
    for ky in range(-1, 2):
        py = min(height - 1, max(0, y + ky))
        for kx in range(-1, 2):
            px = min(width - 1, max(0, x + kx))
            i = pixel_index(px, py, width)
            weight = kernel[ky + 1][kx + 1]
            r += float(data[i]) * weight
            g += float(data[i + 1]) * weight
            b += float(data[i + 2]) * weight
    return r, g, b


def convolve_3x3(field: np.ndarray, kernel) -> np.ndarray:
    """Whole-array 3x3 convolution with clamp-to-edge borders.

    Works on (H, W) or (H, W, C) arrays; returns float32 of the same shape.
    """
    k = np.asarray(kernel, dtype=np.float32)
    f = field.astype(np.float32)
    h, w = f.shape[:2]
    pad = ((1, 1), (1, 1)) + ((0, 0),) * (f.ndim - 2)
    padded = np.pad(f, pad, mode="edge")
    out = np.zeros_like(f)
    for ky in range(3):
        for kx in range(3):
            weight = k[ky, kx]
            if weight != 0.0:
                out += weight * padded[ky:ky + h, kx:kx + w]
    return out


# ─── Drawing ───

def _clip_segment(x0, y0, x1, y1, x_max, y_max):
    """Liang-Barsky clip of an integer segment to [0, x_max] x [0, y_max].

    Exact rational arithmetic, so endpoints of any magnitude are safe.

    Returns the clipped endpoints, or None when the segment misses the box.
    """
    dx = x1 - x0
    dy = y1 - y0
    t0, t1 = Fraction(0), Fraction(1)
    for p, q in ((-dx, x0), (dx, x_max - x0), (-dy, y0), (dy, y_max - y0)):
        if p == 0:
            if q < 0:
                return None
            continue
        t = Fraction(q, p)
        if p < 0:
            if t > t1:
                return None
            t0 = max(t0, t)
        else:
            if t < t0:
                return None
            t1 = min(t1, t)
    return x0 + t0 * dx, y0 + t0 * dy, x0 + t1 * dx, y0 + t1 * dy


def draw_line(data, width: int, height: int, x0, y0, x1, y1, color, weight: float = 0.8) -> None:
    """Additively draw a Bresenham line into a flat RGBA buffer.

    The segment is clipped to the frame before it is walked, so the walk
    never exceeds width + height steps. A line entirely outside the frame,
    or one with a non-finite endpoint, leaves the buffer untouched.
    """
    if width <= 0 or height <= 0:
        return
    coords = (float(x0), float(y0), float(x1), float(y1))
    if not all(math.isfinite(c) for c in coords):
        return
    xa, ya, xb, yb = (math.floor(c) for c in coords)
    clipped = _clip_segment(xa, ya, xb, yb, width - 1, height - 1)
    if clipped is None:
        return

    r, g, b = (float(c) * weight for c in color[:3])
    x, y, xe, ye = (int(round(c)) for c in clipped)
    dx = abs(xe - x)
    dy = abs(ye - y)
    sx = 1 if x < xe else -1
    sy = 1 if y < ye else -1
    err = dx - dy

    for _ in range(dx + dy + 1):
        if 0 <= x < width and 0 <= y < height:
            i = pixel_index(x, y, width)
            data[i] = min(255, int(data[i] + r))
            data[i + 1] = min(255, int(data[i + 1] + g))
            data[i + 2] = min(255, int(data[i + 2] + b))
        if x == xe and y == ye:
            break
        e2 = 2 * err
        if e2 > -dy:
            err -= dy
            x += sx
        if e2 < dx:
            err += dx
            y += sy
