"""
Pixel FX — Render Session
Owns the buffer pool used by a run of transforms. One session per worker;
sessions are not thread-safe.
"""

import logging

from engine.buffers import BufferPool
from engine.safety import POOL_MAX_IDLE_SEC, POOL_MAX_PER_SIZE

logger = logging.getLogger(__name__)


class RenderSession:
    """Apply effects to frames, recycling result buffers between calls.

    Usage:
        with RenderSession() as session:
            out = session.render("unifiedBlur", {"radius": 4}, pixels, w, h)
            ...
            session.release(out)
    """

    def __init__(self, max_per_size: int = POOL_MAX_PER_SIZE, max_idle: float = POOL_MAX_IDLE_SEC):
        self.pool = BufferPool(max_per_size=max_per_size, max_idle=max_idle)
        self.renders = 0

    def apply_effect(self, effect_id, parameters=None):
        from pixelfx import apply_effect
        return apply_effect(effect_id, parameters)

    def transform(self, source, width, height, generator_fn, resolved_params):
        from pixelfx import transform
        result = transform(source, width, height, generator_fn, resolved_params, pool=self.pool)
        self.renders += 1
        return result

    def render(self, effect_id, parameters, source, width, height):
        fn, params = self.apply_effect(effect_id, parameters)
        return self.transform(source, width, height, fn, params)

    def release(self, buffer) -> None:
        """Return a result buffer; the caller must not touch it afterwards."""
        self.pool.release(buffer)

    def cleanup(self) -> int:
        return self.pool.cleanup()

    def close(self) -> None:
        stats = self.pool.stats()
        logger.debug(
            "RenderSession closed: %d renders, %d allocations, %d reuses",
            self.renders, stats.allocations, stats.reuses,
        )
        self.pool.clear()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
