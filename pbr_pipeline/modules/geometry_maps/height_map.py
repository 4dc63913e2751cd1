"""Derive a grayscale height map from source luminance."""
from __future__ import annotations

from typing import Any, Mapping

import numpy as np

from ..pbr import kernels
from ..pbr._image_features import to_grayscale
from ..pbr.adjustments import apply_common_adjustments
from ..pbr.parameters import HeightParams, MapType, resolve_params
from ..pbr.raster import Raster


def height_field(source: Raster, pre_blur: float) -> np.ndarray:
    """Luminance, optionally pre-blurred, stretched to the full 0-255 range."""

    gray = to_grayscale(source)
    if pre_blur > 0:
        gray = kernels.gaussian_blur(gray, pre_blur)
    return kernels.normalize(gray)


def generate(source: Raster, params: HeightParams | Mapping[str, Any] | None = None) -> Raster:
    """Bright areas read as raised, dark areas as recessed."""

    params = resolve_params(MapType.HEIGHT, params)
    height = height_field(source, params.height_pre_blur)
    return Raster.from_gray(apply_common_adjustments(height, params.common))


if __name__ == "__main__":  # pragma: no cover - manual smoke test
    from PIL import Image

    sample = Image.linear_gradient("L").convert("RGBA").resize((64, 64))
    generate(Raster.from_image(sample)).to_image().show()
