"""
Pixel FX — Engine
Buffers, compositing, parameter schemas, colour helpers, limits and the
render session shared by every effect in pixelfx.
"""

from engine.buffers import BufferPool, PoolStats, acquire_buffer_copy
from engine.safety import EngineError, PixelBufferError, UnknownEffectError
from engine.session import RenderSession

__all__ = [
    "BufferPool", "PoolStats", "acquire_buffer_copy",
    "EngineError", "PixelBufferError", "UnknownEffectError",
    "RenderSession",
]
