"""Emissive mask keeping the colour of bright, saturated regions."""
from __future__ import annotations

from typing import Any, Mapping

import numpy as np

from ..pbr._image_features import luminance, normalized_rgb, saturation
from ..pbr.adjustments import apply_common_adjustments_color
from ..pbr.parameters import EmissiveParams, MapType, resolve_params
from ..pbr.raster import Raster


def generate(source: Raster, params: EmissiveParams | Mapping[str, Any] | None = None) -> Raster:
    params = resolve_params(MapType.EMISSIVE, params)
    rgb = normalized_rgb(source)
    lum = luminance(rgb)
    sat = saturation(rgb)
    threshold = params.emissive_threshold / 100.0
    sat_min = params.emissive_sat_min / 100.0

    glowing = (lum > threshold) & (sat > sat_min)
    span = 1.0 - threshold
    strength = np.zeros_like(lum)
    if span > 0:
        strength = np.where(glowing, np.minimum(1.0, (lum - threshold) / span), 0.0)
    emissive = np.rint(source.rgb * strength[..., None])
    return apply_common_adjustments_color(emissive, params.common)
