"""Unit tests for the numeric pixel kernels."""
from __future__ import annotations

import pytest

pytest.importorskip("numpy")
pytest.importorskip("scipy")
import numpy as np

from pbr_pipeline.core.utils_image import linear_to_srgb, srgb_to_linear
from pbr_pipeline.modules.pbr import kernels
from pbr_pipeline.modules.pbr._image_features import saturation, to_grayscale
from pbr_pipeline.modules.pbr.raster import Raster


def test_grayscale_uses_bt709_weights() -> None:
    pixels = np.zeros((1, 3, 4), dtype=np.uint8)
    pixels[0, 0] = (255, 0, 0, 255)
    pixels[0, 1] = (0, 255, 0, 255)
    pixels[0, 2] = (0, 0, 255, 0)
    gray = to_grayscale(Raster(pixels))
    assert gray[0, 0] == pytest.approx(0.2126 * 255, abs=1e-3)
    assert gray[0, 1] == pytest.approx(0.7152 * 255, abs=1e-3)
    assert gray[0, 2] == pytest.approx(0.0722 * 255, abs=1e-3)


def test_saturation_is_zero_for_black() -> None:
    rgb = np.zeros((2, 2, 3), dtype=np.float32)
    assert np.all(saturation(rgb) == 0)


def test_blur_with_zero_sigma_is_identity() -> None:
    data = np.random.default_rng(3).uniform(0, 255, (12, 9)).astype(np.float32)
    blurred = kernels.gaussian_blur(data, 0)
    np.testing.assert_array_equal(blurred, data)
    assert blurred is not data


def test_blur_preserves_constant_field() -> None:
    data = np.full((10, 10), 77.0, dtype=np.float32)
    np.testing.assert_allclose(kernels.gaussian_blur(data, 2.5), data, atol=1e-3)


def test_normalize_spans_full_range() -> None:
    data = np.array([[10.0, 20.0], [30.0, 40.0]], dtype=np.float32)
    result = kernels.normalize(data)
    assert result.min() == pytest.approx(0.0)
    assert result.max() == pytest.approx(255.0)


def test_normalize_constant_input_maps_to_zero() -> None:
    assert np.all(kernels.normalize(np.full((4, 4), 99.0)) == 0)


def test_sobel_flat_field_has_no_gradient() -> None:
    gx, gy, magnitude = kernels.sobel(np.full((8, 8), 50.0))
    assert np.all(gx == 0) and np.all(gy == 0) and np.all(magnitude == 0)


def test_sobel_horizontal_ramp_points_along_x() -> None:
    ramp = np.tile(np.arange(16, dtype=np.float32) * 4, (16, 1))
    gx, gy, _ = kernels.sobel(ramp)
    assert np.all(gx[:, 1:-1] > 0)
    np.testing.assert_allclose(gy, 0.0, atol=1e-4)


def test_canny_output_is_binary(gradient_raster: Raster) -> None:
    edges = kernels.canny(to_grayscale(gradient_raster), 20, 60)
    assert set(np.unique(edges)).issubset({0.0, 255.0})


def test_canny_checkerboard_edges_lie_on_cell_boundaries(checker_raster: Raster) -> None:
    edges = kernels.canny(to_grayscale(checker_raster), 30, 120)
    ys, xs = np.nonzero(edges)
    assert ys.size > 0
    cell = 8
    dist_x = np.minimum(xs % cell, cell - xs % cell)
    dist_y = np.minimum(ys % cell, cell - ys % cell)
    assert np.all((dist_x <= 2) | (dist_y <= 2))


def test_hysteresis_drops_weak_components_without_strong_seed() -> None:
    suppressed = np.zeros((7, 7), dtype=np.float32)
    suppressed[1, 1:4] = 60
    suppressed[5, 2:6] = 60
    suppressed[5, 6] = 200
    edges = kernels.hysteresis(suppressed, 50, 150)
    assert np.all(edges[1] == 0)
    assert np.all(edges[5, 2:7] == 255)


def test_laplacian_leaves_border_at_zero() -> None:
    data = np.random.default_rng(1).uniform(0, 255, (6, 6))
    lap = kernels.laplacian(data)
    assert np.all(lap[0] == 0) and np.all(lap[-1] == 0)
    assert np.all(lap[:, 0] == 0) and np.all(lap[:, -1] == 0)


def test_local_std_of_constant_is_zero() -> None:
    std = kernels.local_std(np.full((9, 9), 123.0), 5)
    assert np.all(np.isfinite(std))
    np.testing.assert_allclose(std, 0.0, atol=1e-3)


def test_levels_and_contrast_are_neutral_at_defaults() -> None:
    data = np.linspace(0, 255, 64, dtype=np.float32).reshape(8, 8)
    np.testing.assert_allclose(kernels.apply_levels(data, 0, 255, 1.0), data, atol=1e-3)
    np.testing.assert_allclose(kernels.apply_brightness_contrast(data, 0, 100), data, atol=1e-3)


def test_srgb_round_trip_is_stable() -> None:
    values = np.arange(256, dtype=np.float32)
    round_trip = linear_to_srgb(srgb_to_linear(values))
    np.testing.assert_allclose(round_trip, values, atol=0.5)


def test_frequency_separation_recombines_to_input() -> None:
    data = np.random.default_rng(3).uniform(0, 255, (20, 20)).astype(np.float32)
    low, high = kernels.frequency_separation(data, sigma=3.0)
    np.testing.assert_allclose(low, kernels.gaussian_blur(data, 3.0), atol=1e-4)
    np.testing.assert_allclose(high, data - low + 128.0, atol=1e-4)


def test_emboss_is_mid_grey_on_flat_and_signed_on_step() -> None:
    step = np.zeros((6, 16), dtype=np.float32)
    step[:, 8:] = 200.0
    lit = kernels.emboss(step, strength=1.0, angle=0.0)
    shaded = kernels.emboss(step, strength=1.0, angle=180.0)
    assert np.all(lit[:, 2:5] == 128.0)
    assert np.all(lit[:, 7:9] == 255.0)
    assert np.all(shaded[:, 7:9] == 0.0)


def test_adaptive_threshold_isolates_dark_spot() -> None:
    data = np.full((31, 31), 200.0, dtype=np.float32)
    data[15, 15] = 0.0
    mask = kernels.adaptive_threshold(data, block_size=15, offset=5.0)
    assert set(np.unique(mask)).issubset({0.0, 255.0})
    assert mask[15, 15] == 0.0
    assert np.count_nonzero(mask == 0.0) == 1
