"""Tests for the photo-finishing effects and the tile mosaic."""

import os
import sys

import numpy as np
import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from pixelfx.photo import (
    LIGHT_LEAK_PRESETS, SMART_SHARPEN_PRESETS, clarity, light_leak, light_leak_mask,
    orton, smart_sharpen,
)
from pixelfx.warp import mosaic, pixelate
from conftest import _make_test_frame


def _rgb(w=48, h=40):
    return _make_test_frame(w, h)[..., :3].copy()


def _flat(value, w=24, h=20):
    return np.full((h, w, 3), value, dtype=np.uint8)


def _step(w=24, h=16, left=60, right=180):
    frame = np.full((h, w, 3), left, dtype=np.uint8)
    frame[:, w // 2:] = right
    return frame


class TestOrton:
    def test_zero_intensity_is_identity(self):
        frame = _rgb()
        np.testing.assert_array_equal(orton(frame, intensity=0.0), frame)

    def test_default_changes_frame(self):
        frame = _rgb()
        out = orton(frame)
        assert out.shape == frame.shape
        assert out.dtype == np.uint8
        assert not np.array_equal(out, frame)

    def test_glow_brightens_on_average(self):
        frame = _rgb()
        out = orton(frame, intensity=1.0, contrast=1.0, saturation=1.0, blend=1.0)
        assert out.astype(np.float64).mean() > frame.astype(np.float64).mean()

    def test_zero_radius(self):
        out = orton(_rgb(), radius=0)
        assert out.shape == (40, 48, 3)


class TestLightLeak:
    def test_four_presets(self):
        names = [p["name"] for p in LIGHT_LEAK_PRESETS]
        assert names == ["warmSunset", "coolMorning", "vintageFilm", "neonGlow"]

    def test_zero_strength_is_identity(self):
        frame = _rgb()
        np.testing.assert_array_equal(light_leak(frame, strength=0.0), frame)

    @pytest.mark.parametrize("preset", range(len(LIGHT_LEAK_PRESETS)))
    def test_mask_range(self, preset):
        mask = light_leak_mask(40, 48, preset)
        assert mask.shape == (40, 48)
        assert mask.min() >= 0.0
        assert mask.max() <= 1.0

    @pytest.mark.parametrize("preset", range(len(LIGHT_LEAK_PRESETS)))
    def test_mask_peaks_at_preset_position(self, preset):
        px, py = LIGHT_LEAK_PRESETS[preset]["position"]
        mask = light_leak_mask(64, 64, preset)
        assert mask[int(py * 64), int(px * 64)] == 1.0

    def test_far_corner_is_dark(self):
        # warmSunset sits top right; bottom left is outside both spot and streak
        assert light_leak_mask(64, 64, 0)[63, 0] == 0.0

    @pytest.mark.parametrize("preset", [0, 3])
    def test_screen_and_dodge_brighten(self, preset):
        frame = _flat(100, 64, 64)
        px, py = LIGHT_LEAK_PRESETS[preset]["position"]
        y, x = int(py * 64), int(px * 64)
        out = light_leak(frame, preset=preset)
        assert (out[y, x].astype(int) > 100).all()

    @pytest.mark.parametrize("preset", range(len(LIGHT_LEAK_PRESETS)))
    def test_every_preset_changes_its_corner(self, preset):
        frame = _flat(100, 64, 64)
        px, py = LIGHT_LEAK_PRESETS[preset]["position"]
        out = light_leak(frame, preset=preset)
        assert not np.array_equal(out[int(py * 64), int(px * 64)], frame[0, 0])

    def test_angle_rotates_streak(self):
        assert not np.array_equal(light_leak_mask(40, 48, 0, 0.0),
                                  light_leak_mask(40, 48, 0, 90.0))

    def test_out_of_range_preset_clamps(self):
        frame = _rgb()
        np.testing.assert_array_equal(light_leak(frame, preset=42), light_leak(frame, preset=3))


class TestSmartSharpen:
    def test_six_presets(self):
        assert [p["name"] for p in SMART_SHARPEN_PRESETS] == [
            "subtle", "moderate", "strong", "portrait", "landscape", "unsharpMask",
        ]

    @pytest.mark.parametrize("preset", range(len(SMART_SHARPEN_PRESETS)))
    def test_flat_frame_unchanged(self, preset):
        frame = _flat(128)
        np.testing.assert_array_equal(smart_sharpen(frame, preset=preset), frame)

    def test_unsharp_zero_strength_is_identity(self):
        frame = _rgb()
        np.testing.assert_array_equal(smart_sharpen(frame, preset=5, strength=0.0), frame)

    def test_unsharp_overshoots_edge(self):
        out = smart_sharpen(_step(), preset=5, strength=2.0)
        assert out.min() < 60
        assert out.max() > 180

    @pytest.mark.parametrize("preset", [1, 2, 4])
    def test_edge_presets_touch_only_the_edge(self, preset):
        frame = _step(w=40)
        out = smart_sharpen(frame, preset=preset, strength=3.0)
        # columns well away from the step stay flat
        np.testing.assert_array_equal(out[:, :12], frame[:, :12])
        np.testing.assert_array_equal(out[:, 28:], frame[:, 28:])

    def test_output_shape(self):
        out = smart_sharpen(_rgb(), preset=0)
        assert out.shape == (40, 48, 3)
        assert out.dtype == np.uint8


class TestClarity:
    def test_zero_amount_is_identity(self):
        frame = _rgb()
        np.testing.assert_array_equal(clarity(frame, amount=0), frame)

    def test_positive_amount_spreads_tones(self):
        frame = _rgb()
        out = clarity(frame, amount=100, preserve_highlights=0, preserve_shadows=0)
        assert out.astype(np.float64).std() > frame.astype(np.float64).std()

    def test_negative_amount_flattens(self):
        frame = _rgb()
        out = clarity(frame, amount=-100, preserve_highlights=0, preserve_shadows=0)
        assert out.astype(np.float64).std() < frame.astype(np.float64).std()

    def test_highlight_protection(self):
        frame = _step(left=20, right=240)
        free = clarity(frame, amount=100, preserve_highlights=0, preserve_shadows=0)
        kept = clarity(frame, amount=100, preserve_highlights=100, preserve_shadows=0)
        f = frame.astype(int)
        assert np.abs(kept.astype(int) - f).sum() < np.abs(free.astype(int) - f).sum()

    def test_black_and_white_survive(self):
        frame = _step(left=0, right=255)
        np.testing.assert_array_equal(clarity(frame, amount=100), frame)


class TestMosaic:
    def test_no_grout_is_pixelate(self):
        frame = _rgb(32, 32)
        np.testing.assert_array_equal(mosaic(frame, size=8, grout=0), pixelate(frame, 8))

    def test_grout_is_darkened(self):
        frame = _flat(200, 32, 32)
        out = mosaic(frame, size=8, grout=1, grout_shade=0.5)
        assert (out[0, :] == 100).all()
        assert (out[:, 8] == 100).all()
        assert (out[1:8, 1:8] == 200).all()

    def test_tiles_are_uniform(self):
        out = mosaic(_rgb(32, 32), size=8, grout=1)
        for ty in range(4):
            for tx in range(4):
                block = out[ty * 8 + 1:ty * 8 + 8, tx * 8 + 1:tx * 8 + 8]
                assert (block == block[0, 0]).all()

    def test_grout_never_fills_tile(self):
        frame = _flat(200, 16, 16)
        out = mosaic(frame, size=4, grout=50, grout_shade=0.0)
        # grout clamps to size - 1, leaving one lit pixel per tile
        assert (out == 200).any(axis=-1).sum() == 16
