"""Heuristic metallic mask: bright, desaturated regions score as metal."""
from __future__ import annotations

from typing import Any, Mapping

import numpy as np

from ..pbr._image_features import luminance, normalized_rgb, saturation
from ..pbr.adjustments import apply_common_adjustments
from ..pbr.parameters import MapType, MetallicParams, resolve_params
from ..pbr.raster import Raster


def metallic_score(source: Raster) -> np.ndarray:
    rgb = normalized_rgb(source)
    lum = luminance(rgb)
    sat = saturation(rgb)
    return 0.6 * lum + 0.2 * (1.0 - sat) + 0.2 * (lum > 0.5)


def generate(source: Raster, params: MetallicParams | Mapping[str, Any] | None = None) -> Raster:
    params = resolve_params(MapType.METALLIC, params)
    score = metallic_score(source)
    threshold = params.metallic_threshold / 100.0
    span = 1.0 - threshold
    if span <= 0:
        metal = np.zeros_like(score)
    else:
        metal = np.where(score > threshold, (score - threshold) / span * 255.0, 0.0)
    metal = np.clip(metal, 0.0, 255.0).astype(np.float32)
    return Raster.from_gray(apply_common_adjustments(metal, params.common))
