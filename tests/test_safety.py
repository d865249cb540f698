"""Tests for preflight guards and parameter clamping."""

import logging
import math
import os
import sys

import numpy as np
import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from engine.params import Param, clamp_param, resolve_params, schema_defaults
from engine.safety import (
    MAX_PIXELS, EngineError, PixelBufferError, UnknownEffectError,
    clamp_count, validate_buffer, validate_dimensions,
)


class TestValidateDimensions:
    @pytest.mark.parametrize("w,h", [(0, 10), (10, 0), (-1, 5), ("a", 5)])
    def test_rejects_bad_sizes(self, w, h):
        with pytest.raises(PixelBufferError):
            validate_dimensions(w, h)

    def test_rejects_oversized_frame(self):
        with pytest.raises(PixelBufferError, match="exceeds"):
            validate_dimensions(MAX_PIXELS + 1, 1)

    def test_accepts_normal_frame(self):
        assert validate_dimensions(640, 480) == (640, 480)


class TestValidateBuffer:
    def test_accepts_bytes(self):
        flat = validate_buffer(bytes(2 * 3 * 4), 2, 3)
        assert flat.dtype == np.uint8
        assert flat.size == 24

    def test_accepts_frame_shaped_array(self, rgba_frame):
        h, w = rgba_frame.shape[:2]
        assert validate_buffer(rgba_frame, w, h).size == w * h * 4

    def test_wrong_length(self):
        with pytest.raises(PixelBufferError, match="expected 24"):
            validate_buffer(bytes(23), 2, 3)

    def test_errors_share_a_base(self):
        assert issubclass(PixelBufferError, EngineError)
        assert issubclass(UnknownEffectError, ValueError)


class TestClampCount:
    def test_within_limit(self):
        assert clamp_count(50, 100, "iterations") == 50

    def test_negative_becomes_zero(self):
        assert clamp_count(-5, 100, "iterations") == 0

    def test_over_limit_warns(self, caplog):
        with caplog.at_level(logging.WARNING):
            assert clamp_count(500, 100, "iterations") == 100
        assert "exceeds limit" in caplog.text


SPEC = Param("Radius", 0, 50, 5, 1)


class TestClampParam:
    @pytest.mark.parametrize("value,expected", [
        (10, 10),
        (-3, 0),
        (1e9, 50),
        (math.inf, 50),
        (-math.inf, 0),
        (math.nan, 0),
        (None, 5),
        ("abc", 5),
        ("12", 12),
    ])
    def test_clamp(self, value, expected):
        assert clamp_param(SPEC, value) == expected

    def test_missing_value_is_default_not_zero(self):
        spec = Param("Opacity", 0, 1, 0.8)
        assert clamp_param(spec, None) == 0.8


class TestResolveParams:
    def test_fills_defaults(self):
        schema = {"radius": SPEC, "angle": Param("Angle", 0, 360, 90, 1)}
        assert resolve_params(schema) == schema_defaults(schema) == {"radius": 5, "angle": 90}

    def test_unknown_keys_are_ignored(self):
        params = resolve_params({"radius": SPEC}, {"radius": 7, "bogus": 1})
        assert params == {"radius": 7}

    def test_values_are_clamped(self):
        assert resolve_params({"radius": SPEC}, {"radius": 999})["radius"] == 50
