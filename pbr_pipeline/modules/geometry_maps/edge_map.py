"""Binary edge map from the Canny detector."""
from __future__ import annotations

from typing import Any, Mapping

from ..pbr import kernels
from ..pbr._image_features import to_grayscale
from ..pbr.adjustments import apply_common_adjustments
from ..pbr.parameters import EdgeParams, MapType, resolve_params
from ..pbr.raster import Raster


def generate(source: Raster, params: EdgeParams | Mapping[str, Any] | None = None) -> Raster:
    params = resolve_params(MapType.EDGE, params)
    edges = kernels.canny(to_grayscale(source), params.edge_low_threshold, params.edge_high_threshold)
    return Raster.from_gray(apply_common_adjustments(edges, params.common))
