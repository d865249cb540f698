"""
Pixel FX — Safety & Resource Guards
Preflight checks run before any transform touches pixel data.
Prevents runaway allocations and malformed buffers from reaching generators.
"""

import logging

import numpy as np

logger = logging.getLogger(__name__)

# --- Configurable Limits ---
MAX_PIXELS = 4096 * 4096     # Largest frame area a transform accepts
MAX_ITERATIONS = 1000        # Hard cap for escape-time / Newton iterations
MAX_RD_ITERATIONS = 2000     # Hard cap for reaction-diffusion steps
MAX_PARTICLES = 20000        # Hard cap for flow-field particle count
POOL_MAX_PER_SIZE = 4        # Buffers kept per size class in a BufferPool
POOL_MAX_IDLE_SEC = 30.0     # Idle time before a pooled buffer is dropped


class EngineError(Exception):
    """Base class for every error raised by the effects engine."""
    pass


class UnknownEffectError(EngineError, ValueError):
    """Raised when an effect id is neither a legacy alias nor a registered effect."""

    def __init__(self, effect_id, suggestions=()):
        self.effect_id = effect_id
        self.suggestions = tuple(suggestions)
        msg = f"Unknown effect: {effect_id!r}."
        if self.suggestions:
            msg += f" Did you mean: {', '.join(self.suggestions)}?"
        super().__init__(msg)


class PixelBufferError(EngineError, ValueError):
    """Raised when a pixel buffer does not match its declared dimensions."""
    pass


def validate_dimensions(width, height) -> tuple[int, int]:
    """Check frame dimensions.

    Raises:
        PixelBufferError: If either side is non-positive or the area exceeds MAX_PIXELS.
    """
    try:
        w, h = int(width), int(height)
    except (TypeError, ValueError):
        raise PixelBufferError(f"Dimensions must be integers. Got {width!r}x{height!r}")
    if w <= 0 or h <= 0:
        raise PixelBufferError(f"Dimensions must be positive. Got {w}x{h}")
    if w * h > MAX_PIXELS:
        raise PixelBufferError(
            f"Frame is {w}x{h} ({w * h} px), exceeds {MAX_PIXELS} px limit. "
            f"Downscale before applying effects."
        )
    return w, h


def validate_buffer(buffer, width, height) -> np.ndarray:
    """Normalize a caller buffer to a flat uint8 array and check its length.

    Accepts bytes, bytearray, memoryview, a flat array, or an (H, W, 4) array.
    The returned array may share memory with the input; callers that write
    must copy first.

    Raises:
        PixelBufferError: If the length is not width * height * 4.
    """
    w, h = validate_dimensions(width, height)

    if isinstance(buffer, (bytes, bytearray, memoryview)):
        flat = np.frombuffer(buffer, dtype=np.uint8)
    else:
        arr = np.asarray(buffer)
        if arr.dtype != np.uint8:
            arr = np.clip(arr, 0, 255).astype(np.uint8)
        flat = arr.reshape(-1)

    expected = w * h * 4
    if flat.size != expected:
        raise PixelBufferError(
            f"Buffer has {flat.size} bytes, expected {expected} for a {w}x{h} RGBA frame."
        )
    return flat


def clamp_count(value, limit: int, name: str) -> int:
    """Clamp an iteration/particle count to a configured hard limit."""
    count = max(0, int(value))
    if count > limit:
        logger.warning("%s=%d exceeds limit %d, clamping", name, count, limit)
        return limit
    return count
