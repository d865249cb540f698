"""Tests for the buffer pool and flat-buffer pixel helpers."""

import os
import sys
import time

import numpy as np
import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from engine.buffers import (
    SHARPEN_KERNEL, BufferPool, acquire_buffer_copy, apply_kernel_3x3, as_frame,
    convolve_3x3, draw_line, get_pixel_safe, pixel_index, snapshot,
)
from pixelfx.reaction_diffusion import LAPLACIAN_KERNEL


class TestBufferPool:
    def test_acquire_is_zero_filled(self, pool):
        buf = pool.acquire(64)
        assert buf.dtype == np.uint8
        assert buf.size == 64
        assert not buf.any()

    def test_released_buffer_is_reused_and_cleared(self, pool):
        buf = pool.acquire(64)
        buf[:] = 123
        pool.release(buf)
        again = pool.acquire(64)
        assert np.shares_memory(again, buf)
        assert not again.any()
        stats = pool.stats()
        assert stats.allocations == 1
        assert stats.reuses == 1
        assert stats.releases == 1

    def test_sizes_are_pooled_separately(self, pool):
        pool.release(pool.acquire(16))
        pool.acquire(32)
        assert pool.stats().reuses == 0
        assert pool.stats().allocations == 2

    def test_extras_beyond_max_per_size_are_dropped(self):
        pool = BufferPool(max_per_size=4)
        buffers = [pool.acquire(8) for _ in range(6)]
        for buf in buffers:
            pool.release(buf)
        stats = pool.stats()
        assert stats.pooled_buffers == 4
        assert stats.pooled_bytes == 32
        assert stats.releases == 6

    def test_cleanup_drops_idle_buffers(self):
        pool = BufferPool(max_idle=1.0)
        pool.release(pool.acquire(8))
        assert pool.cleanup(now=time.monotonic()) == 0
        assert pool.cleanup(now=time.monotonic() + 100) == 1
        assert pool.stats().pooled_buffers == 0

    def test_clear(self, pool):
        pool.release(pool.acquire(8))
        pool.clear()
        assert pool.stats().pooled_buffers == 0

    def test_borrowed_returns_to_pool(self, pool):
        with pool.borrowed(16) as buf:
            buf[:] = 9
        assert pool.stats().pooled_buffers == 1
        assert not pool.acquire(16).any()

    def test_acquire_copy_is_independent(self, pool):
        src = np.arange(16, dtype=np.uint8)
        copy = pool.acquire_copy(src)
        np.testing.assert_array_equal(copy, src)
        assert not np.shares_memory(copy, src)

    def test_acquire_buffer_copy_keeps_shape(self, pool, rgba_frame):
        copy = acquire_buffer_copy(pool, rgba_frame)
        assert copy.shape == rgba_frame.shape
        np.testing.assert_array_equal(copy, rgba_frame)


class TestSnapshot:
    def test_pooled_snapshot_goes_back(self, pool, rgba_frame):
        with snapshot(rgba_frame, pool) as snap:
            np.testing.assert_array_equal(snap, rgba_frame)
            assert not np.shares_memory(snap, rgba_frame)
        assert pool.stats().pooled_buffers == 1

    def test_unpooled_snapshot(self, rgba_frame):
        with snapshot(rgba_frame) as snap:
            snap[...] = 0
        assert rgba_frame.any()


class TestIndexHelpers:
    def test_pixel_index(self):
        assert pixel_index(0, 0, 10) == 0
        assert pixel_index(2, 3, 10) == 128

    def test_as_frame_is_a_view(self):
        buf = np.zeros(3 * 2 * 4, dtype=np.uint8)
        frame = as_frame(buf, 3, 2)
        frame[1, 2, 0] = 7
        assert buf[pixel_index(2, 1, 3)] == 7

    @pytest.mark.parametrize("x,y", [(-1, 0), (0, -1), (4, 0), (0, 3)])
    def test_get_pixel_safe_out_of_range(self, x, y):
        data = np.zeros(4 * 3 * 4, dtype=np.uint8)
        assert get_pixel_safe(data, x, y, 4, 3) is None

    def test_get_pixel_safe_reads_rgba(self):
        data = np.zeros(4 * 3 * 4, dtype=np.uint8)
        i = pixel_index(1, 2, 4)
        data[i:i + 4] = (1, 2, 3, 4)
        assert get_pixel_safe(data, 1, 2, 4, 3) == (1, 2, 3, 4)


class TestConvolution:
    def test_kernel_at_corner_clamps_to_edge(self):
        data = np.full(5 * 5 * 4, 100, dtype=np.uint8)
        r, g, b = apply_kernel_3x3(data, 0, 0, 5, 5, SHARPEN_KERNEL)
        assert (r, g, b) == (100.0, 100.0, 100.0)

    def test_laplacian_of_uniform_field_is_zero(self):
        field = np.full((8, 8), 0.7, dtype=np.float32)
        out = convolve_3x3(field, LAPLACIAN_KERNEL)
        assert out.dtype == np.float32
        np.testing.assert_allclose(out, 0.0, atol=1e-6)

    def test_convolve_matches_pointwise_kernel(self):
        rng = np.random.RandomState(0)
        frame = rng.randint(0, 256, (6, 7, 4), dtype=np.uint8)
        out = convolve_3x3(frame[..., :3], SHARPEN_KERNEL)
        flat = frame.reshape(-1)
        for x, y in [(0, 0), (3, 2), (6, 5)]:
            expected = apply_kernel_3x3(flat, x, y, 7, 6, SHARPEN_KERNEL)
            np.testing.assert_allclose(out[y, x], expected, atol=1e-3)


class TestDrawLine:
    def test_horizontal_line(self):
        data = np.zeros(10 * 10 * 4, dtype=np.uint8)
        draw_line(data, 10, 10, 0, 0, 9, 0, (100, 0, 0), weight=0.8)
        frame = as_frame(data, 10, 10)
        assert (frame[0, :, 0] == 80).all()
        assert not frame[1:].any()
        assert not frame[..., 1:].any()

    def test_additive_and_saturating(self):
        data = np.zeros(4 * 4 * 4, dtype=np.uint8)
        for _ in range(3):
            draw_line(data, 4, 4, 0, 0, 3, 3, (200, 200, 200), weight=1.0)
        frame = as_frame(data, 4, 4)
        assert frame[2, 2, 0] == 255

    def test_line_outside_frame_is_noop(self):
        data = np.zeros(10 * 10 * 4, dtype=np.uint8)
        draw_line(data, 10, 10, -50, -50, -40, -45, (255, 255, 255))
        draw_line(data, 10, 10, 20, 3, 30, 8, (255, 255, 255))
        assert not data.any()

    def test_partially_outside_line_is_clipped(self):
        data = np.zeros(10 * 10 * 4, dtype=np.uint8)
        draw_line(data, 10, 10, -5, 5, 15, 5, (100, 100, 100), weight=1.0)
        frame = as_frame(data, 10, 10)
        assert (frame[5, :, 0] == 100).all()
        assert frame[5, :, 3].sum() == 0

    def test_far_away_line_is_noop(self):
        data = np.zeros(10 * 10 * 4, dtype=np.uint8)
        draw_line(data, 10, 10, -2e7, -2e7, -1e7, -3e7, (255, 255, 255))
        assert not data.any()

    def test_far_endpoints_crossing_the_frame(self):
        data = np.zeros(10 * 10 * 4, dtype=np.uint8)
        draw_line(data, 10, 10, -1e308, 4, 1e308, 4, (50, 0, 0), weight=1.0)
        frame = as_frame(data, 10, 10)
        assert (frame[4, :, 0] == 50).all()
        assert frame[..., 0].sum() == 50 * 10

    @pytest.mark.parametrize("coords", [
        (float("inf"), 0, float("inf"), 5),
        (0, 0, float("nan"), 5),
        (-float("inf"), 3, float("inf"), 3),
    ])
    def test_non_finite_endpoints_are_ignored(self, coords):
        data = np.zeros(10 * 10 * 4, dtype=np.uint8)
        draw_line(data, 10, 10, *coords, (255, 255, 255))
        assert not data.any()

    def test_clipped_diagonal_stays_inside(self):
        data = np.zeros(8 * 8 * 4, dtype=np.uint8)
        draw_line(data, 8, 8, -20, -20, 30, 30, (10, 10, 10), weight=1.0)
        frame = as_frame(data, 8, 8)
        for i in range(8):
            assert frame[i, i, 0] == 10
        assert frame[..., 0].sum() == 80
