"""Albedo estimate with baked lighting divided out in linear light."""
from __future__ import annotations

from typing import Any, Mapping

import numpy as np

from ...core.utils_image import linear_to_srgb, srgb_to_linear
from ..pbr import kernels
from ..pbr._image_features import to_grayscale
from ..pbr.adjustments import apply_common_adjustments_color
from ..pbr.parameters import DiffuseParams, MapType, resolve_params
from ..pbr.raster import Raster

ILLUMINATION_SCALE = 0.05
MIN_ILLUMINATION = 0.01


def estimate_illumination(source: Raster) -> np.ndarray:
    """Low-frequency lighting as a broad blur of luminance, in 0-1."""

    sigma = max(source.width, source.height) * ILLUMINATION_SCALE
    illumination = kernels.gaussian_blur(to_grayscale(source), sigma) / 255.0
    return np.maximum(illumination, MIN_ILLUMINATION)


def generate(source: Raster, params: DiffuseParams | Mapping[str, Any] | None = None) -> Raster:
    params = resolve_params(MapType.DIFFUSE, params)
    strength = params.de_light_strength / 100.0
    rgb = source.rgb
    if strength > 0:
        illumination = estimate_illumination(source)
        gain = (1.0 - strength) + strength / illumination
        rgb = np.rint(linear_to_srgb(srgb_to_linear(rgb) * gain[..., None]))
    return apply_common_adjustments_color(rgb, params.common)
