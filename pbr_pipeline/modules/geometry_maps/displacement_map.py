"""Displacement: a height variant balancing micro detail against broad shapes."""
from __future__ import annotations

from typing import Any, Mapping

from ..pbr import kernels
from ..pbr._image_features import to_grayscale
from ..pbr.adjustments import apply_common_adjustments
from ..pbr.parameters import DisplacementParams, MapType, resolve_params
from ..pbr.raster import Raster

MACRO_SIGMA = 3.0


def generate(source: Raster, params: DisplacementParams | Mapping[str, Any] | None = None) -> Raster:
    params = resolve_params(MapType.DISPLACEMENT, params)
    gray = to_grayscale(source)
    detail = params.displacement_detail / 100.0
    macro = kernels.gaussian_blur(gray, MACRO_SIGMA)
    mixed = gray * (1.0 - detail) + macro * detail
    return Raster.from_gray(apply_common_adjustments(kernels.normalize(mixed), params.common))
