"""Tests for seamless tiling helpers and palette extraction."""
from __future__ import annotations

import pytest

pytest.importorskip("numpy")
import numpy as np

from pbr_pipeline.modules.pbr.palette import _samples, extract_palette
from pbr_pipeline.modules.pbr.raster import Raster
from pbr_pipeline.modules.pbr.tiling import blend_weights, compute_seam_heatmap, compute_seam_score, make_seamless


def _edge_gap(raster: Raster) -> tuple[float, float]:
    rgb = raster.rgb
    horizontal = float(np.abs(rgb[:, 0] - rgb[:, -1]).mean())
    vertical = float(np.abs(rgb[0] - rgb[-1]).mean())
    return horizontal, vertical


def test_blend_weights_start_at_half_and_decay() -> None:
    weights = blend_weights(8)
    assert weights[0] == pytest.approx(0.5)
    assert np.all(np.diff(weights) < 0)


def test_make_seamless_brings_opposite_edges_closer(gradient_raster: Raster) -> None:
    before = _edge_gap(gradient_raster)
    after = _edge_gap(make_seamless(gradient_raster, 0.25))
    assert after[0] < before[0]
    assert after[1] < before[1]


def test_make_seamless_keeps_alpha_and_size() -> None:
    pixels = np.random.default_rng(5).integers(0, 256, (16, 20, 4), dtype=np.uint8)
    source = Raster(pixels)
    result = make_seamless(source, 0.3)
    assert result.size == source.size
    np.testing.assert_array_equal(result.alpha, source.alpha)


def test_seam_score_is_perfect_for_uniform_image() -> None:
    score = compute_seam_score(Raster.blank(8, 8, 120))
    assert (score.score, score.horizontal, score.vertical) == (100, 100, 100)


def test_seam_score_improves_after_make_seamless(gradient_raster: Raster) -> None:
    assert compute_seam_score(make_seamless(gradient_raster)).score >= compute_seam_score(gradient_raster).score


def test_seam_heatmap_matches_size(gradient_raster: Raster) -> None:
    assert compute_seam_heatmap(gradient_raster).size == gradient_raster.size


def test_palette_entries_come_from_the_image_colours() -> None:
    pixels = np.zeros((10, 10, 4), dtype=np.uint8)
    pixels[..., 3] = 255
    pixels[:, :6, :3] = (250, 10, 10)
    pixels[:, 6:, :3] = (10, 10, 250)
    palette = extract_palette(Raster(pixels), num_colors=2, seed=11)
    assert {entry.hex for entry in palette} <= {"#fa0a0a", "#0a0afa"}
    assert sum(entry.percentage for entry in palette) == 100
    percentages = [entry.percentage for entry in palette]
    assert percentages == sorted(percentages, reverse=True)


def test_palette_is_reproducible_with_seed(gradient_raster: Raster) -> None:
    first = extract_palette(gradient_raster, 4, seed=42)
    second = extract_palette(gradient_raster, 4, seed=42)
    assert first == second
    assert 1 <= len(first) <= 4


def test_palette_sampling_respects_sample_cap() -> None:
    raster = Raster.from_rgb(np.random.default_rng(9).uniform(0, 255, (100, 150, 3)))
    assert _samples(raster, 10000).shape[0] <= 10000
    assert _samples(raster, 20000).shape[0] == 15000
