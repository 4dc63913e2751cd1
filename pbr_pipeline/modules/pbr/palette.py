"""Dominant colour extraction with a small k-means."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from ...core.config import KMEANS_ITERATIONS, PALETTE_SAMPLE_SIZE
from ...core.utils_color import rgb_to_hex
from .raster import Raster


@dataclass(frozen=True)
class PaletteEntry:
    r: int
    g: int
    b: int
    hex: str
    percentage: int


def _samples(source: Raster, sample_size: int) -> np.ndarray:
    pixels = source.pixels[..., :3].reshape(-1, 3).astype(np.float64)
    count = pixels.shape[0]
    step = max(1, math.ceil(count / max(1, sample_size)))
    return pixels[::step]


def extract_palette(
    source: Raster,
    num_colors: int = 8,
    *,
    seed: Optional[int] = None,
    sample_size: int = PALETTE_SAMPLE_SIZE,
    iterations: int = KMEANS_ITERATIONS,
) -> List[PaletteEntry]:
    """Cluster the raster colours and return the dominant ones.

    Centroids start as random draws from an evenly strided sample; pass *seed*
    for reproducible output. Entries are sorted by share of the sample,
    largest first, and clusters that end up empty are dropped.
    """

    samples = _samples(source, sample_size)
    rng = np.random.default_rng(seed)
    k = max(1, int(num_colors))
    centroids = samples[rng.integers(0, samples.shape[0], size=k)].copy()

    assignments = np.zeros(samples.shape[0], dtype=np.intp)
    for _ in range(iterations):
        distances = np.sum((samples[:, None, :] - centroids[None, :, :]) ** 2, axis=-1)
        assignments = np.argmin(distances, axis=1)
        for cluster in range(k):
            members = samples[assignments == cluster]
            if members.size:
                centroids[cluster] = members.mean(axis=0)

    counts = np.bincount(assignments, minlength=k)
    palette: List[PaletteEntry] = []
    for cluster in range(k):
        if counts[cluster] == 0:
            continue
        r, g, b = (int(round(value)) for value in centroids[cluster])
        palette.append(
            PaletteEntry(
                r=r,
                g=g,
                b=b,
                hex=rgb_to_hex((r, g, b)),
                percentage=int(round(counts[cluster] / samples.shape[0] * 100)),
            )
        )
    palette.sort(key=lambda entry: entry.percentage, reverse=True)
    return palette


__all__ = ["PaletteEntry", "extract_palette"]
