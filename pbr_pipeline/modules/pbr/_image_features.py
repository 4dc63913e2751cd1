"""Per-pixel feature helpers shared by the map synthesizers."""
from __future__ import annotations

import numpy as np

from .raster import Raster

LUMA_WEIGHTS = np.array([0.2126, 0.7152, 0.0722], dtype=np.float32)


def to_grayscale(source: Raster | np.ndarray) -> np.ndarray:
    """Return BT.709 luminance of an RGBA raster in 0-255 (alpha is ignored)."""

    pixels = source.pixels if isinstance(source, Raster) else np.asarray(source)
    rgb = pixels[..., :3].astype(np.float32)
    return (rgb @ LUMA_WEIGHTS).astype(np.float32)


def luminance(rgb: np.ndarray) -> np.ndarray:
    """Compute luminance from normalized RGB values."""

    return (0.2126 * rgb[..., 0] + 0.7152 * rgb[..., 1] + 0.0722 * rgb[..., 2]).astype(np.float32)


def saturation(rgb: np.ndarray) -> np.ndarray:
    """Compute HSV-like saturation ``(max - min) / max`` from normalized RGB values."""

    maxc = rgb.max(axis=-1)
    minc = rgb.min(axis=-1)
    delta = maxc - minc
    sat = np.zeros_like(maxc, dtype=np.float32)
    valid = maxc > 0
    sat[valid] = delta[valid] / maxc[valid]
    return sat


def normalized_rgb(source: Raster) -> np.ndarray:
    return source.rgb / 255.0


def normalize01(channel: np.ndarray) -> np.ndarray:
    """Normalize arbitrary data to the [0, 1] range; constant data maps to 0."""

    min_val = float(channel.min())
    max_val = float(channel.max())
    if max_val - min_val <= 0:
        return np.zeros_like(channel, dtype=np.float32)
    return ((channel - min_val) / (max_val - min_val)).astype(np.float32)


__all__ = [
    "LUMA_WEIGHTS",
    "luminance",
    "normalize01",
    "normalized_rgb",
    "saturation",
    "to_grayscale",
]
