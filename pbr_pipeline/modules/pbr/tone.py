"""Histogram based tone mapping: global equalization and CLAHE."""
from __future__ import annotations

import math

import numpy as np


def _bins(array: np.ndarray) -> np.ndarray:
    return np.clip(np.rint(np.asarray(array, dtype=np.float32)), 0, 255).astype(np.intp)


def histogram_equalization(array: np.ndarray) -> np.ndarray:
    """Spread the cumulative histogram of *array* evenly over 0-255."""

    bins = _bins(array)
    total = bins.size
    histogram = np.bincount(bins.ravel(), minlength=256)
    cdf = np.cumsum(histogram)
    cdf_min = int(cdf[np.flatnonzero(histogram)[0]])
    denominator = total - cdf_min
    if denominator <= 0:
        return np.zeros(bins.shape, dtype=np.float32)
    return ((cdf[bins] - cdf_min) / denominator * 255.0).astype(np.float32)


def _tile_mapping(tile: np.ndarray, clip_limit: float) -> np.ndarray:
    pixels = tile.size
    histogram = np.bincount(tile.ravel(), minlength=256).astype(np.float64)
    clip_count = math.floor(clip_limit * pixels / 256)
    excess = float(np.sum(np.maximum(histogram - clip_count, 0.0)))
    histogram = np.minimum(histogram, clip_count) + excess / 256.0
    cdf = np.cumsum(histogram)
    return cdf / pixels * 255.0


def clahe(array: np.ndarray, tile_size: int = 32, clip_limit: float = 3.0) -> np.ndarray:
    """Contrast-limited adaptive histogram equalization.

    Each ``tile_size`` square gets its own clipped equalization curve and every
    pixel blends the curves of the four tiles whose centres surround it.
    Interpolation weights are clamped at the image rim so edge pixels use the
    nearest tile curve rather than extrapolating.
    """

    bins = _bins(array)
    height, width = bins.shape
    tile_size = max(1, int(tile_size))
    tiles_x = int(math.ceil(width / tile_size))
    tiles_y = int(math.ceil(height / tile_size))

    mappings = np.zeros((tiles_y, tiles_x, 256), dtype=np.float64)
    for ty in range(tiles_y):
        for tx in range(tiles_x):
            tile = bins[ty * tile_size : (ty + 1) * tile_size, tx * tile_size : (tx + 1) * tile_size]
            mappings[ty, tx] = _tile_mapping(tile, clip_limit)

    fx_pos = np.arange(width, dtype=np.float64) / tile_size - 0.5
    fy_pos = np.arange(height, dtype=np.float64) / tile_size - 0.5
    tx0 = np.clip(np.floor(fx_pos), 0, tiles_x - 1).astype(np.intp)
    ty0 = np.clip(np.floor(fy_pos), 0, tiles_y - 1).astype(np.intp)
    tx1 = np.minimum(tx0 + 1, tiles_x - 1)
    ty1 = np.minimum(ty0 + 1, tiles_y - 1)
    fx = np.clip(fx_pos - tx0, 0.0, 1.0)
    fy = np.clip(fy_pos - ty0, 0.0, 1.0)

    ty0g, tx0g = np.meshgrid(ty0, tx0, indexing="ij")
    ty1g, tx1g = np.meshgrid(ty1, tx1, indexing="ij")
    fyg, fxg = np.meshgrid(fy, fx, indexing="ij")

    v00 = mappings[ty0g, tx0g, bins]
    v10 = mappings[ty0g, tx1g, bins]
    v01 = mappings[ty1g, tx0g, bins]
    v11 = mappings[ty1g, tx1g, bins]
    top = v00 * (1 - fxg) + v10 * fxg
    bottom = v01 * (1 - fxg) + v11 * fxg
    return (top * (1 - fyg) + bottom * fyg).astype(np.float32)


__all__ = ["clahe", "histogram_equalization"]
