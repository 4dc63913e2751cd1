"""Shared post-processing stage applied at the end of every synthesizer."""
from __future__ import annotations

import numpy as np

from . import kernels
from .parameters import CommonParams
from .raster import Raster


def apply_common_adjustments(array: np.ndarray, common: CommonParams) -> np.ndarray:
    """Run the fixed adjustment chain on a single-channel buffer.

    Order: intensity, levels, brightness/contrast, blur, sharpen, invert. Each
    step is skipped when its controls are at their neutral values.
    """

    result = np.asarray(array, dtype=np.float32)

    if common.intensity != 100:
        result = np.clip(result * (common.intensity / 100.0), 0.0, 255.0).astype(np.float32)

    if common.black_point != 0 or common.white_point != 255 or common.gamma != 1.0:
        result = kernels.apply_levels(result, common.black_point, common.white_point, common.gamma)

    if common.brightness != 0 or common.contrast != 100:
        result = kernels.apply_brightness_contrast(result, common.brightness, common.contrast)

    if common.blur > 0:
        result = kernels.gaussian_blur(result, common.blur)

    if common.sharpen > 0:
        result = kernels.sharpen(result, common.sharpen)

    if common.invert:
        result = kernels.invert(result)

    return result


def apply_common_adjustments_color(rgb: np.ndarray, common: CommonParams) -> Raster:
    """Adjust the R, G and B channels independently and return an opaque raster."""

    channels = [apply_common_adjustments(rgb[..., c], common) for c in range(3)]
    return Raster.from_rgb(np.dstack(channels))


__all__ = ["apply_common_adjustments", "apply_common_adjustments_color"]
