"""Edge-preserving and rank filters for grey and RGBA rasters."""
from __future__ import annotations

import math

import numpy as np
from scipy import ndimage

from .kernels import gaussian_blur
from .raster import Raster


def _window_offsets(radius: int):
    for dy in range(-radius, radius + 1):
        for dx in range(-radius, radius + 1):
            yield dy, dx


def _shifted(padded: np.ndarray, radius: int, dy: int, dx: int, height: int, width: int) -> np.ndarray:
    return padded[radius + dy : radius + dy + height, radius + dx : radius + dx + width]


def bilateral_filter(gray: np.ndarray, spatial_sigma: float = 3.0, range_sigma: float = 30.0) -> np.ndarray:
    """Edge-preserving smoothing of a single-channel raster.

    Window radius is ``ceil(2 * spatial_sigma)``; each neighbour is weighted by
    its spatial distance and its value difference from the centre pixel.
    """

    data = np.asarray(gray, dtype=np.float32)
    radius = int(math.ceil(spatial_sigma * 2))
    if radius <= 0:
        return data.copy()
    height, width = data.shape
    padded = np.pad(data, radius, mode="edge")
    spatial_denom = 2.0 * spatial_sigma * spatial_sigma
    range_denom = 2.0 * range_sigma * range_sigma

    total = np.zeros_like(data, dtype=np.float64)
    weights = np.zeros_like(data, dtype=np.float64)
    for dy, dx in _window_offsets(radius):
        neighbour = _shifted(padded, radius, dy, dx, height, width)
        diff = neighbour - data
        weight = math.exp(-(dx * dx + dy * dy) / spatial_denom) * np.exp(-(diff * diff) / range_denom)
        total += neighbour * weight
        weights += weight
    return (total / weights).astype(np.float32)


def bilateral_filter_color(source: Raster, spatial_sigma: float = 3.0, range_sigma: float = 30.0) -> Raster:
    """Bilateral filter on RGB using the summed squared colour distance."""

    rgb = source.rgb
    radius = int(math.ceil(spatial_sigma * 2))
    if radius <= 0:
        return source.copy()
    height, width = rgb.shape[:2]
    padded = np.pad(rgb, ((radius, radius), (radius, radius), (0, 0)), mode="edge")
    spatial_denom = 2.0 * spatial_sigma * spatial_sigma
    range_denom = 2.0 * range_sigma * range_sigma * 3.0

    total = np.zeros_like(rgb, dtype=np.float64)
    weights = np.zeros((height, width), dtype=np.float64)
    for dy, dx in _window_offsets(radius):
        neighbour = _shifted(padded, radius, dy, dx, height, width)
        distance = np.sum((neighbour - rgb) ** 2, axis=-1)
        weight = math.exp(-(dx * dx + dy * dy) / spatial_denom) * np.exp(-distance / range_denom)
        total += neighbour * weight[..., None]
        weights += weight
    return Raster.from_rgb(total / weights[..., None], source.alpha)


def median_filter(gray: np.ndarray, radius: int = 1) -> np.ndarray:
    """Median over a ``(2r + 1)`` square window with clamped borders."""

    data = np.asarray(gray, dtype=np.float32)
    if radius <= 0:
        return data.copy()
    return ndimage.median_filter(data, size=2 * radius + 1, mode="nearest").astype(np.float32)


def median_filter_color(source: Raster, radius: int = 1) -> Raster:
    if radius <= 0:
        return source.copy()
    channels = [median_filter(source.rgb[..., c], radius) for c in range(3)]
    return Raster.from_rgb(np.dstack(channels), source.alpha)


def dilate(gray: np.ndarray, radius: int = 1) -> np.ndarray:
    """Grey-level maximum over a square window."""

    data = np.asarray(gray, dtype=np.float32)
    size = 2 * max(0, radius) + 1
    return ndimage.grey_dilation(data, size=(size, size), mode="nearest").astype(np.float32)


def erode(gray: np.ndarray, radius: int = 1) -> np.ndarray:
    """Grey-level minimum over a square window."""

    data = np.asarray(gray, dtype=np.float32)
    size = 2 * max(0, radius) + 1
    return ndimage.grey_erosion(data, size=(size, size), mode="nearest").astype(np.float32)


def morphological_open(gray: np.ndarray, radius: int = 1) -> np.ndarray:
    """Erode then dilate; removes bright specks smaller than the window."""

    return dilate(erode(gray, radius), radius)


def morphological_close(gray: np.ndarray, radius: int = 1) -> np.ndarray:
    """Dilate then erode; fills dark gaps smaller than the window."""

    return erode(dilate(gray, radius), radius)


def unsharp_mask(source: Raster, radius: float = 2.0, amount: float = 1.5, threshold: float = 0.0) -> Raster:
    """Per-channel unsharp mask that only touches differences above *threshold*."""

    rgb = source.rgb
    channels = []
    for c in range(3):
        channel = rgb[..., c]
        diff = channel - gaussian_blur(channel, radius)
        sharpened = np.where(np.abs(diff) >= threshold, channel + diff * amount, channel)
        channels.append(sharpened)
    return Raster.from_rgb(np.dstack(channels), source.alpha)


__all__ = [
    "bilateral_filter",
    "bilateral_filter_color",
    "dilate",
    "erode",
    "median_filter",
    "median_filter_color",
    "morphological_close",
    "morphological_open",
    "unsharp_mask",
]
