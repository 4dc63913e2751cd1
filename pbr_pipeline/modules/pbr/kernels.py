"""Numeric kernels operating on single-channel float rasters.

Every kernel takes an ``(height, width)`` array with values nominally in
0-255, never modifies it, and returns a freshly allocated ``float32`` array of
the same shape. Neighbourhood lookups clamp coordinates to the image edge
(``mode="nearest"``) unless documented otherwise.
"""
from __future__ import annotations

import math
from typing import Tuple

import numpy as np
from scipy import ndimage

_BORDER_MODE = "nearest"
_SOBEL_SMOOTH = np.array([1.0, 2.0, 1.0], dtype=np.float32)
_SCHARR_SMOOTH = np.array([3.0, 10.0, 3.0], dtype=np.float32)
_DERIVATIVE = np.array([-1.0, 0.0, 1.0], dtype=np.float32)


def _as_float(array: np.ndarray) -> np.ndarray:
    return np.asarray(array, dtype=np.float32)


def gaussian_kernel(sigma: float) -> np.ndarray:
    """Return a normalized 1-D Gaussian of radius ``ceil(3 * sigma)``."""

    radius = int(math.ceil(sigma * 3))
    offsets = np.arange(-radius, radius + 1, dtype=np.float64)
    kernel = np.exp(-(offsets**2) / (2.0 * sigma * sigma))
    return (kernel / kernel.sum()).astype(np.float32)


def gaussian_blur(array: np.ndarray, sigma: float) -> np.ndarray:
    """Separable Gaussian blur; ``sigma <= 0`` returns an unmodified copy."""

    data = _as_float(array)
    if sigma <= 0:
        return data.copy()
    kernel = gaussian_kernel(sigma)
    horizontal = ndimage.convolve1d(data, kernel, axis=1, mode=_BORDER_MODE)
    return ndimage.convolve1d(horizontal, kernel, axis=0, mode=_BORDER_MODE)


def _gradients(array: np.ndarray, smooth: np.ndarray, scale: float) -> Tuple[np.ndarray, np.ndarray]:
    data = _as_float(array)
    gx = ndimage.correlate1d(data, _DERIVATIVE, axis=1, mode=_BORDER_MODE)
    gx = ndimage.correlate1d(gx, smooth, axis=0, mode=_BORDER_MODE)
    gy = ndimage.correlate1d(data, _DERIVATIVE, axis=0, mode=_BORDER_MODE)
    gy = ndimage.correlate1d(gy, smooth, axis=1, mode=_BORDER_MODE)
    if scale != 1.0:
        gx = gx / scale
        gy = gy / scale
    return gx.astype(np.float32), gy.astype(np.float32)


def sobel(array: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Return ``(gx, gy, magnitude)`` using the 3x3 Sobel operator.

    ``gx`` grows to the right and ``gy`` grows downwards.
    """

    gx, gy = _gradients(array, _SOBEL_SMOOTH, 1.0)
    return gx, gy, np.hypot(gx, gy).astype(np.float32)


def scharr(array: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Return ``(gx, gy, magnitude)`` using the (3, 10, 3) / 32 Scharr operator."""

    gx, gy = _gradients(array, _SCHARR_SMOOTH, 32.0)
    return gx, gy, np.hypot(gx, gy).astype(np.float32)


def _shift(array: np.ndarray, dy: int, dx: int) -> np.ndarray:
    """Return ``array[y + dy, x + dx]`` with clamped coordinates."""

    padded = np.pad(array, 1, mode="edge")
    height, width = array.shape
    return padded[1 + dy : 1 + dy + height, 1 + dx : 1 + dx + width]


def non_maximum_suppression(gx: np.ndarray, gy: np.ndarray, magnitude: np.ndarray) -> np.ndarray:
    """Keep only magnitudes that are local maxima along the gradient direction."""

    angle = np.degrees(np.arctan2(gy, gx)) % 180.0
    horizontal = (angle < 22.5) | (angle >= 157.5)
    diagonal_down = (angle >= 22.5) & (angle < 67.5)
    vertical = (angle >= 67.5) & (angle < 112.5)
    diagonal_up = (angle >= 112.5) & (angle < 157.5)

    neighbours = (
        (horizontal, (0, -1), (0, 1)),
        (diagonal_down, (-1, -1), (1, 1)),
        (vertical, (-1, 0), (1, 0)),
        (diagonal_up, (-1, 1), (1, -1)),
    )
    keep = np.zeros(magnitude.shape, dtype=bool)
    for mask, first, second in neighbours:
        n1 = _shift(magnitude, *first)
        n2 = _shift(magnitude, *second)
        keep |= mask & (magnitude >= n1) & (magnitude >= n2)
    return np.where(keep, magnitude, 0.0).astype(np.float32)


def hysteresis(suppressed: np.ndarray, low_threshold: float, high_threshold: float) -> np.ndarray:
    """Trace edge chains from strong pixels through 8-connected weak pixels.

    A pixel is an edge when it reaches ``low_threshold`` and its 8-connected
    component of such pixels contains at least one pixel reaching
    ``high_threshold``. Output is exactly 0 or 255.
    """

    strong = suppressed >= high_threshold
    if not strong.any():
        return np.zeros(suppressed.shape, dtype=np.float32)
    candidates = (suppressed >= low_threshold) | strong
    labels, count = ndimage.label(candidates, structure=np.ones((3, 3), dtype=bool))
    if count == 0:
        return np.zeros(suppressed.shape, dtype=np.float32)
    seeded = np.zeros(count + 1, dtype=bool)
    seeded[np.unique(labels[strong])] = True
    seeded[0] = False
    return np.where(seeded[labels], 255.0, 0.0).astype(np.float32)


def canny(
    gray: np.ndarray,
    low_threshold: float = 50.0,
    high_threshold: float = 150.0,
    sigma: float = 1.4,
) -> np.ndarray:
    """Canny edge detector returning a binary 0/255 edge mask."""

    blurred = gaussian_blur(gray, sigma)
    gx, gy, magnitude = sobel(blurred)
    suppressed = non_maximum_suppression(gx, gy, magnitude)
    return hysteresis(suppressed, low_threshold, high_threshold)


def normalize(array: np.ndarray) -> np.ndarray:
    """Stretch ``[min, max]`` linearly onto ``[0, 255]``; constant input maps to 0."""

    data = _as_float(array)
    min_val = float(data.min())
    max_val = float(data.max())
    value_range = max_val - min_val
    if value_range <= 0:
        value_range = 1.0
    return ((data - min_val) / value_range * 255.0).astype(np.float32)


def apply_levels(array: np.ndarray, black_point: float, white_point: float, gamma: float) -> np.ndarray:
    """Remap ``[black, white]`` to ``[0, 255]`` with a gamma curve."""

    safe_white = max(float(white_point), float(black_point) + 1.0)
    safe_gamma = max(0.01, float(gamma))
    scaled = np.clip((_as_float(array) - black_point) / (safe_white - black_point), 0.0, 1.0)
    return (np.power(scaled, 1.0 / safe_gamma) * 255.0).astype(np.float32)


def apply_brightness_contrast(array: np.ndarray, brightness: float, contrast: float) -> np.ndarray:
    """Contrast around mid-grey 128 (100 is neutral) plus a brightness offset."""

    adjusted = (_as_float(array) - 128.0) * (contrast / 100.0) + 128.0 + brightness
    return np.clip(adjusted, 0.0, 255.0).astype(np.float32)


def invert(array: np.ndarray) -> np.ndarray:
    return (255.0 - _as_float(array)).astype(np.float32)


def local_variance(array: np.ndarray, window_size: int = 7) -> np.ndarray:
    """Variance ``E[x^2] - E[x]^2`` over a square sliding window."""

    half = max(0, int(window_size) // 2)
    size = 2 * half + 1
    data = np.asarray(array, dtype=np.float64)
    mean = ndimage.uniform_filter(data, size=size, mode=_BORDER_MODE)
    mean_sq = ndimage.uniform_filter(data * data, size=size, mode=_BORDER_MODE)
    return np.maximum(mean_sq - mean * mean, 0.0).astype(np.float32)


def local_std(array: np.ndarray, window_size: int = 7) -> np.ndarray:
    """Square root of :func:`local_variance`."""

    return np.sqrt(local_variance(array, window_size)).astype(np.float32)


def laplacian(array: np.ndarray) -> np.ndarray:
    """Discrete Laplacian ``4c - (up + down + left + right)``; border pixels stay 0."""

    data = _as_float(array)
    result = np.zeros_like(data)
    if data.shape[0] < 3 or data.shape[1] < 3:
        return result
    result[1:-1, 1:-1] = (
        4.0 * data[1:-1, 1:-1]
        - data[:-2, 1:-1]
        - data[2:, 1:-1]
        - data[1:-1, :-2]
        - data[1:-1, 2:]
    )
    return result


def sharpen(array: np.ndarray, amount: float) -> np.ndarray:
    """Unsharp mask with a fixed 1.5 sigma blur; *amount* is 0-100."""

    data = _as_float(array)
    if amount <= 0:
        return data.copy()
    detail = data - gaussian_blur(data, 1.5)
    return np.clip(data + detail * (amount / 100.0) * 2.0, 0.0, 255.0).astype(np.float32)


def frequency_separation(array: np.ndarray, sigma: float = 5.0) -> Tuple[np.ndarray, np.ndarray]:
    """Split into low frequencies and high-frequency detail centred on 128."""

    data = _as_float(array)
    low = gaussian_blur(data, sigma)
    high = (data - low + 128.0).astype(np.float32)
    return low, high


def emboss(array: np.ndarray, strength: float = 1.0, angle: float = 135.0) -> np.ndarray:
    """Directional relief ``128 + (next - prev) * strength`` along *angle* degrees."""

    data = _as_float(array)
    radians = math.radians(angle)
    dx = int(round(math.cos(radians)))
    dy = int(round(math.sin(radians)))
    relief = (_shift(data, dy, dx) - _shift(data, -dy, -dx)) * strength
    return np.clip(128.0 + relief, 0.0, 255.0).astype(np.float32)


def adaptive_threshold(array: np.ndarray, block_size: int = 15, offset: float = 5.0) -> np.ndarray:
    """Binary threshold against a local Gaussian mean of ``block_size / 3`` sigma."""

    data = _as_float(array)
    local_mean = gaussian_blur(data, block_size / 3.0)
    return np.where(data > local_mean - offset, 255.0, 0.0).astype(np.float32)


__all__ = [
    "adaptive_threshold",
    "apply_brightness_contrast",
    "apply_levels",
    "canny",
    "emboss",
    "frequency_separation",
    "gaussian_blur",
    "gaussian_kernel",
    "hysteresis",
    "invert",
    "laplacian",
    "local_std",
    "local_variance",
    "non_maximum_suppression",
    "normalize",
    "scharr",
    "sharpen",
    "sobel",
]
