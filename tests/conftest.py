"""
Conftest: shared fixtures for all Pixel FX test modules.

1. Synthetic RGBA frames (gradient + bright rectangle, not blank)
2. A fresh BufferPool per test
"""

import os
import sys

import numpy as np
import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from engine.buffers import BufferPool


def _make_test_frame(width=64, height=48, alpha=255):
    """Generate a synthetic (H, W, 4) RGBA frame."""
    frame = np.zeros((height, width, 4), dtype=np.uint8)
    frame[:, :, 0] = np.linspace(0, 255, width, dtype=np.uint8)  # R gradient
    frame[:, :, 1] = np.linspace(0, 255, height, dtype=np.uint8)[:, np.newaxis]  # G gradient
    frame[:, :, 2] = np.linspace(255, 0, width, dtype=np.uint8)  # B inverse
    frame[height // 4:3 * height // 4, width // 4:3 * width // 4, :3] = 200
    frame[:, :, 3] = alpha
    return frame


@pytest.fixture
def rgba_frame():
    return _make_test_frame()


@pytest.fixture
def pool():
    return BufferPool()
