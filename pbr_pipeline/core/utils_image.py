"""Image utility helpers for color space conversions and resampling."""
from __future__ import annotations

import math

import numpy as np
from PIL import Image


def _srgb_channel_to_linear(channel: np.ndarray) -> np.ndarray:
    threshold = 0.04045
    return np.where(
        channel <= threshold,
        channel / 12.92,
        ((channel + 0.055) / 1.055) ** 2.4,
    )


def srgb_to_linear(values: np.ndarray) -> np.ndarray:
    """Convert 8-bit sRGB values (0-255) to linear light in [0, 1]."""

    array = np.asarray(values, dtype=np.float32) / 255.0
    return _srgb_channel_to_linear(array).astype(np.float32)


def _linear_channel_to_srgb(channel: np.ndarray) -> np.ndarray:
    return np.where(
        channel <= 0.0031308,
        channel * 12.92,
        1.055 * np.power(channel, 1 / 2.4) - 0.055,
    )


def linear_to_srgb(values: np.ndarray) -> np.ndarray:
    """Convert linear light to sRGB values in 0-255; input is clamped to [0, 1]."""

    array = np.clip(np.asarray(values, dtype=np.float32), 0.0, 1.0)
    return (_linear_channel_to_srgb(array) * 255.0).astype(np.float32)


_RGB_TO_XYZ = np.array(
    [
        [0.4124564, 0.3575761, 0.1804375],
        [0.2126729, 0.7151522, 0.0721750],
        [0.0193339, 0.1191920, 0.9503041],
    ],
    dtype=np.float32,
)
_D65 = (0.95047, 1.0, 1.08883)


def _rgb_to_xyz(rgb: np.ndarray) -> np.ndarray:
    return np.dot(rgb, _RGB_TO_XYZ.T)


def rgb_to_lab(values: np.ndarray) -> np.ndarray:
    """Convert 8-bit sRGB triples (``(..., 3)``) to CIE L*a*b* under D65.

    L* is in [0, 100]; a* and b* are unbounded but stay within about +-128
    for sRGB input.
    """

    xyz = _rgb_to_xyz(srgb_to_linear(values))
    xyz /= np.array(_D65, dtype=np.float32)

    def f(t: np.ndarray) -> np.ndarray:
        return np.where(t > 0.008856, np.cbrt(t), 7.787 * t + 16 / 116)

    fx, fy, fz = f(xyz[..., 0]), f(xyz[..., 1]), f(xyz[..., 2])
    return np.stack([116 * fy - 16, 500 * (fx - fy), 200 * (fy - fz)], axis=-1).astype(np.float32)


def preview_factor(width: int, height: int, threshold: int) -> int:
    """Return the integer downscale factor used for progressive previews."""

    max_dim = max(width, height)
    if max_dim <= threshold:
        return 1
    return int(math.ceil(max_dim / threshold))


def downscale(image: Image.Image, factor: int) -> Image.Image:
    """Shrink *image* by an integer *factor* using area averaging."""

    if factor <= 1:
        return image.copy()
    width, height = image.size
    target = (max(1, int(round(width / factor))), max(1, int(round(height / factor))))
    return image.resize(target, resample=Image.BOX)


def upscale(image: Image.Image, width: int, height: int) -> Image.Image:
    """Stretch *image* back to ``(width, height)`` with bilinear filtering."""

    if image.size == (width, height):
        return image.copy()
    return image.resize((width, height), resample=Image.BILINEAR)


def fit_within(image: Image.Image, max_dim: int) -> Image.Image:
    """Downscale *image* so its larger side does not exceed *max_dim*."""

    width, height = image.size
    largest = max(width, height)
    if largest <= max_dim:
        return image
    scale = max_dim / largest
    target = (max(1, int(round(width * scale))), max(1, int(round(height * scale))))
    return image.resize(target, resample=Image.LANCZOS)
