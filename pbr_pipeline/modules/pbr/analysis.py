"""Texture statistics reported alongside generated maps."""
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Dict, Tuple

import numpy as np

from . import kernels
from ._image_features import to_grayscale
from .raster import Raster

GLCM_MAX_SAMPLES = 50000

_COMPLEXITY_LABELS = (
    (15, "Very smooth / uniform texture"),
    (30, "Low complexity: subtle gradients"),
    (50, "Medium complexity: moderate detail"),
    (70, "High complexity: rich detail"),
)


@dataclass(frozen=True)
class TextureStats:
    entropy: float
    energy: float
    contrast: float
    homogeneity: float
    mean_luminance: float
    std_luminance: float
    dynamic_range: int

    def as_dict(self) -> Dict[str, float]:
        return asdict(self)


def calculate_entropy(values: np.ndarray) -> float:
    """Shannon entropy (bits) of the 256-bin histogram of *values*."""

    histogram = _histogram(values)
    probabilities = histogram[histogram > 0] / histogram.sum()
    return float(-(probabilities * np.log2(probabilities)).sum())


def _histogram(values: np.ndarray) -> np.ndarray:
    bins = np.clip(np.rint(values), 0, 255).astype(np.int64).ravel()
    return np.bincount(bins, minlength=256).astype(np.float64)


def compute_texture_complexity(source: Raster) -> Tuple[int, str]:
    """Score how busy a texture is on a 0-100 scale, with a short description."""

    gray = to_grayscale(source)
    _, _, magnitude = kernels.sobel(gray)
    variance = kernels.local_variance(gray, 5)
    detail = np.abs(kernels.laplacian(gray))

    energy = magnitude.mean() * 0.3 + variance.mean() * 0.4 + detail.mean() * 0.3
    complexity = min(100.0, float(energy) / 2.55)
    for limit, label in _COMPLEXITY_LABELS:
        if complexity < limit:
            break
    else:
        label = "Very high complexity: dense texture"
    return int(np.floor(complexity + 0.5)), label


def compute_texture_stats(source: Raster) -> TextureStats:
    gray = to_grayscale(source)
    flat = gray.ravel().astype(np.float64)
    total = flat.size

    histogram = _histogram(flat)
    probabilities = histogram / total
    entropy = calculate_entropy(flat)
    energy = float((probabilities**2).sum())
    occupied = np.nonzero(histogram)[0]

    # Neighbour differences in scan order, subsampled on large images.
    step = max(1, total // GLCM_MAX_SAMPLES)
    if total > 1:
        idx = np.arange(0, total - 1, step)
        diff = np.abs(flat[idx] - flat[idx + 1])
        contrast = float((diff**2).mean())
        homogeneity = float((1.0 / (1.0 + diff)).mean())
    else:
        contrast, homogeneity = 0.0, 1.0

    return TextureStats(
        entropy=round(entropy, 2),
        energy=round(energy, 4),
        contrast=round(contrast, 2),
        homogeneity=round(homogeneity, 2),
        mean_luminance=round(float(flat.mean()), 2),
        std_luminance=round(float(flat.std()), 2),
        dynamic_range=int(occupied[-1] - occupied[0]),
    )


__all__ = ["TextureStats", "calculate_entropy", "compute_texture_complexity", "compute_texture_stats"]
