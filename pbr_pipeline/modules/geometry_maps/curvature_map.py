"""Curvature from the Laplacian of the height field, centred on mid-grey."""
from __future__ import annotations

from typing import Any, Mapping

import numpy as np

from ..pbr import kernels
from ..pbr.adjustments import apply_common_adjustments
from ..pbr.parameters import CurvatureParams, MapType, resolve_params
from ..pbr.raster import Raster
from .height_map import height_field


def generate(source: Raster, params: CurvatureParams | Mapping[str, Any] | None = None) -> Raster:
    """Convex areas read brighter than 128 and concave areas darker."""

    params = resolve_params(MapType.CURVATURE, params)
    height = height_field(source, params.curvature_pre_blur)
    curvature = np.clip(128.0 + kernels.laplacian(height) * params.curvature_multiplier, 0.0, 255.0)
    return Raster.from_gray(apply_common_adjustments(curvature, params.common))


if __name__ == "__main__":  # pragma: no cover
    sample = Raster.blank(16, 16, 90)
    print(generate(sample).pixels[..., 0].mean())
