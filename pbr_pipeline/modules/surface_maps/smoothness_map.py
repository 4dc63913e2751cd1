"""Smoothness is the inverse of surface irregularity."""
from __future__ import annotations

from typing import Any, Mapping

from ..pbr import kernels
from ..pbr.adjustments import apply_common_adjustments
from ..pbr.parameters import MapType, SmoothnessParams, resolve_params
from ..pbr.raster import Raster
from .roughness_map import surface_irregularity


def generate(source: Raster, params: SmoothnessParams | Mapping[str, Any] | None = None) -> Raster:
    params = resolve_params(MapType.SMOOTHNESS, params)
    smoothness = kernels.invert(surface_irregularity(source, params.texture_scale))
    return Raster.from_gray(apply_common_adjustments(smoothness, params.common))
