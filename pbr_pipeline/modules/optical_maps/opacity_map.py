"""Opacity from the source alpha, or a luminance cutoff for opaque pixels."""
from __future__ import annotations

from typing import Any, Mapping

import numpy as np

from ..pbr._image_features import to_grayscale
from ..pbr.adjustments import apply_common_adjustments
from ..pbr.parameters import MapType, OpacityParams, resolve_params
from ..pbr.raster import Raster


def generate(source: Raster, params: OpacityParams | Mapping[str, Any] | None = None) -> Raster:
    params = resolve_params(MapType.OPACITY, params)
    alpha = source.alpha
    cutoff = np.where(to_grayscale(source) > params.opacity_threshold, 255.0, 0.0)
    opacity = np.where(alpha < 255, alpha, cutoff).astype(np.float32)
    return Raster.from_gray(apply_common_adjustments(opacity, params.common))


if __name__ == "__main__":  # pragma: no cover
    demo = Raster.blank(8, 8, 0)
    print(generate(demo).pixels[..., 0].max())
