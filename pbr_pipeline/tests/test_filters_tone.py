"""Tests for rank filters, tone curves and colour tools."""
from __future__ import annotations

import pytest

pytest.importorskip("numpy")
pytest.importorskip("scipy")
import numpy as np

from pbr_pipeline.modules.pbr import color_tools, filters, tone
from pbr_pipeline.modules.pbr.raster import Raster


def test_bilateral_keeps_flat_regions_flat() -> None:
    data = np.full((10, 10), 140.0, dtype=np.float32)
    np.testing.assert_allclose(filters.bilateral_filter(data, 2.0, 20.0), data, atol=1e-3)


def test_bilateral_preserves_strong_step() -> None:
    data = np.zeros((12, 12), dtype=np.float32)
    data[:, 6:] = 255.0
    result = filters.bilateral_filter(data, 2.0, 10.0)
    assert result[:, :5].max() < 5.0
    assert result[:, 7:].min() > 250.0


def test_median_filter_removes_isolated_speck() -> None:
    data = np.full((7, 7), 40.0, dtype=np.float32)
    data[3, 3] = 255.0
    assert filters.median_filter(data, 1)[3, 3] == pytest.approx(40.0)


def test_morphological_open_removes_bright_pixel_close_fills_dark_pixel() -> None:
    bright = np.zeros((7, 7), dtype=np.float32)
    bright[3, 3] = 255.0
    assert filters.morphological_open(bright, 1).max() == 0.0

    dark = np.full((7, 7), 255.0, dtype=np.float32)
    dark[3, 3] = 0.0
    assert filters.morphological_close(dark, 1).min() == 255.0


def test_median_filter_color_keeps_alpha() -> None:
    pixels = np.full((5, 5, 4), 90, dtype=np.uint8)
    pixels[..., 3] = 128
    result = filters.median_filter_color(Raster(pixels), 1)
    assert np.all(result.pixels[..., 3] == 128)


def test_histogram_equalization_is_monotone_and_spans_range() -> None:
    data = np.repeat(np.array([10, 20, 20, 30, 200], dtype=np.float32), 4).reshape(4, 5)
    result = tone.histogram_equalization(data)
    assert result.min() == pytest.approx(0.0)
    assert result.max() == pytest.approx(255.0)
    order = np.argsort(data.ravel(), kind="stable")
    assert np.all(np.diff(result.ravel()[order]) >= 0)


def test_histogram_equalization_of_constant_is_zero() -> None:
    assert np.all(tone.histogram_equalization(np.full((4, 4), 80.0)) == 0)


def test_clahe_stays_in_range_and_keeps_shape() -> None:
    data = np.random.default_rng(7).uniform(0, 255, (40, 56)).astype(np.float32)
    result = tone.clahe(data, tile_size=16, clip_limit=2.0)
    assert result.shape == data.shape
    assert result.min() >= 0.0
    assert result.max() <= 255.0 + 1e-3


def test_clahe_constant_image_is_uniform() -> None:
    result = tone.clahe(np.full((20, 20), 100.0), tile_size=8)
    assert np.ptp(result) == pytest.approx(0.0, abs=1e-4)


def test_desaturate_luminance_gives_grey_channels() -> None:
    raster = Raster.from_rgb(np.dstack([np.full((3, 3), 200.0), np.full((3, 3), 40.0), np.full((3, 3), 90.0)]))
    grey = color_tools.desaturate(raster, "luminance").pixels
    assert np.all(grey[..., 0] == grey[..., 1])
    assert np.all(grey[..., 1] == grey[..., 2])


def test_desaturate_rejects_unknown_method() -> None:
    with pytest.raises(ValueError):
        color_tools.desaturate(Raster.blank(2, 2), "sepia")


def test_posterize_two_levels_is_binary(gradient_raster: Raster) -> None:
    values = np.unique(color_tools.posterize(gradient_raster, 2).pixels[..., :3])
    assert set(values.tolist()).issubset({0, 255})


def test_gradient_map_maps_black_to_first_stop() -> None:
    result = color_tools.gradient_map(Raster.blank(2, 2, 0), [(0.0, "#ff0000"), (1.0, (0, 0, 255))])
    assert tuple(result.pixels[0, 0, :3]) == (255, 0, 0)


def test_hsl_adjust_identity_preserves_colours(gradient_raster: Raster) -> None:
    result = color_tools.hsl_adjust(gradient_raster)
    diff = np.abs(result.pixels.astype(int) - gradient_raster.pixels.astype(int))
    assert diff.max() <= 1


def test_unsharp_mask_boosts_step_contrast_and_keeps_alpha() -> None:
    pixels = np.zeros((8, 12, 4), dtype=np.uint8)
    pixels[..., :3] = 50
    pixels[:, 6:, :3] = 150
    pixels[..., 3] = 90
    sharpened = filters.unsharp_mask(Raster(pixels), radius=1.5, amount=1.0)
    assert np.all(sharpened.pixels[:, 5, 0] < 50)
    assert np.all(sharpened.pixels[:, 6, 0] > 150)
    assert np.all(sharpened.pixels[..., 3] == 90)


def test_unsharp_mask_threshold_leaves_small_differences() -> None:
    rng = np.random.default_rng(4)
    pixels = np.full((10, 10, 4), 255, dtype=np.uint8)
    pixels[..., :3] = rng.integers(120, 124, size=(10, 10, 3))
    raster = Raster(pixels)
    assert filters.unsharp_mask(raster, amount=2.0, threshold=10.0) == raster


def test_channel_mix_identity_and_swap(gradient_raster: Raster) -> None:
    identity = color_tools.channel_mix(gradient_raster, (1, 0, 0), (0, 1, 0), (0, 0, 1))
    assert identity == gradient_raster
    swapped = color_tools.channel_mix(gradient_raster, (0, 0, 1), (0, 1, 0), (1, 0, 0))
    np.testing.assert_array_equal(swapped.pixels[..., 0], gradient_raster.pixels[..., 2])
    np.testing.assert_array_equal(swapped.pixels[..., 2], gradient_raster.pixels[..., 0])


def test_auto_white_balance_neutralises_colour_cast() -> None:
    cast = Raster.from_rgb(np.tile(np.array([200.0, 100.0, 100.0]), (6, 6, 1)))
    balanced = color_tools.auto_white_balance(cast).pixels
    assert np.all(balanced[..., 0] == balanced[..., 1])
    assert np.all(balanced[..., 1] == balanced[..., 2])
    assert np.all(balanced[..., 0] == 133)


def test_vignette_darkens_corners_only() -> None:
    grey = Raster.from_rgb(np.full((20, 20, 3), 200.0))
    result = color_tools.vignette(grey, amount=0.5, radius=0.8).pixels
    assert result[10, 10, 0] == 200
    assert result[0, 0, 0] == 100
    assert result[0, 0, 0] < result[0, 10, 0] <= 200


def test_vignette_with_full_radius_is_identity() -> None:
    grey = Raster.from_rgb(np.full((9, 9, 3), 180.0))
    assert color_tools.vignette(grey, amount=1.0, radius=1.0) == grey


def test_lab_channels_of_reference_colours() -> None:
    pixels = np.zeros((1, 3, 4), dtype=np.uint8)
    pixels[0, 0] = (255, 255, 255, 255)
    pixels[0, 1] = (0, 0, 0, 255)
    pixels[0, 2] = (255, 0, 0, 255)
    lab = color_tools.lab_channels(Raster(pixels))
    np.testing.assert_allclose(lab[0, 0], (100.0, 0.0, 0.0), atol=0.1)
    np.testing.assert_allclose(lab[0, 1], (0.0, 0.0, 0.0), atol=0.1)
    np.testing.assert_allclose(lab[0, 2], (53.24, 80.09, 67.20), atol=0.5)
