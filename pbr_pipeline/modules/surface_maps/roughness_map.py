"""Roughness from local variance, gradient magnitude and Laplacian response."""
from __future__ import annotations

from typing import Any, Mapping

import numpy as np

from ..pbr import kernels
from ..pbr._image_features import normalize01, to_grayscale
from ..pbr.adjustments import apply_common_adjustments
from ..pbr.parameters import MapType, RoughnessParams, resolve_params
from ..pbr.raster import Raster

IRREGULARITY_WEIGHTS = (0.4, 0.3, 0.3)


def surface_irregularity(source: Raster, texture_scale: int) -> np.ndarray:
    """Blend of micro-surface cues, normalized to 0-255.

    Busy, high-frequency areas score high; flat areas score low.
    """

    gray = to_grayscale(source)
    deviation = kernels.local_std(gray, texture_scale)
    _, _, gradient = kernels.sobel(gray)
    detail = np.abs(kernels.laplacian(gray))
    w_dev, w_grad, w_detail = IRREGULARITY_WEIGHTS
    combined = w_dev * normalize01(deviation) + w_grad * normalize01(gradient) + w_detail * normalize01(detail)
    return kernels.normalize(combined)


def generate(source: Raster, params: RoughnessParams | Mapping[str, Any] | None = None) -> Raster:
    params = resolve_params(MapType.ROUGHNESS, params)
    roughness = surface_irregularity(source, params.texture_scale)
    floor = params.roughness_floor / 100.0 * 255.0
    if floor > 0:
        roughness = floor + roughness / 255.0 * (255.0 - floor)
    return Raster.from_gray(apply_common_adjustments(roughness, params.common))
