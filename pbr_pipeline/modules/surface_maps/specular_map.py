"""Coloured F0 reflectance: dielectrics sit at 4%, metals take the albedo."""
from __future__ import annotations

from typing import Any, Mapping

import numpy as np

from ..pbr._image_features import luminance, normalized_rgb, saturation
from ..pbr.adjustments import apply_common_adjustments_color
from ..pbr.parameters import MapType, SpecularParams, resolve_params
from ..pbr.raster import Raster

DIELECTRIC_F0 = 0.04


def generate(source: Raster, params: SpecularParams | Mapping[str, Any] | None = None) -> Raster:
    params = resolve_params(MapType.SPECULAR, params)
    rgb = normalized_rgb(source)
    metal = np.maximum(0.0, luminance(rgb) - 0.4) * (1.0 - saturation(rgb) * 0.5)
    metal = metal[..., None]
    reflectance = np.rint((DIELECTRIC_F0 * (1.0 - metal) + rgb * metal) * 255.0)
    return apply_common_adjustments_color(reflectance, params.common)
