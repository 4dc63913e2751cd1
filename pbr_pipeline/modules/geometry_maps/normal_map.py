"""Generate tangent-space normal maps from the derived height field."""
from __future__ import annotations

from typing import Any, Mapping

import numpy as np

from ..pbr import kernels
from ..pbr.adjustments import apply_common_adjustments
from ..pbr.parameters import MapType, NormalParams, resolve_params
from ..pbr.raster import Raster
from .height_map import height_field


def encode_normals(gx: np.ndarray, gy: np.ndarray, strength: float) -> np.ndarray:
    """Pack height gradients into RGB normals ``(n * 0.5 + 0.5) * 255``."""

    nx = -gx * strength / 255.0
    ny = -gy * strength / 255.0
    nz = np.ones_like(nx)
    length = np.sqrt(nx * nx + ny * ny + nz * nz)
    normal = np.stack([nx / length, ny / length, nz / length], axis=-1)
    return (normal * 0.5 + 0.5) * 255.0


def generate(source: Raster, params: NormalParams | Mapping[str, Any] | None = None) -> Raster:
    """Create a tangent-space normal map.

    The common adjustments shape the height field *before* differentiation,
    so blur, sharpen, contrast, levels and invert all change the normals
    rather than the encoded colours.
    """

    params = resolve_params(MapType.NORMAL, params)
    height = height_field(source, params.normal_pre_blur)
    height = apply_common_adjustments(height, params.common)

    if params.normal_method == "scharr":
        gx, gy, _ = kernels.scharr(height)
    else:
        gx, gy, _ = kernels.sobel(height)

    raster = Raster.from_rgb(encode_normals(gx, gy, params.normal_strength))
    if params.normal_convention == "directx":
        raster = flip_normal_y(raster)
    return raster


def flip_normal_y(normal_map: Raster) -> Raster:
    """Convert between OpenGL (Y+) and DirectX (Y-) conventions."""

    pixels = np.array(normal_map.pixels)
    pixels[..., 1] = 255 - pixels[..., 1]
    pixels[..., 3] = 255
    return Raster(pixels)


def renormalize_normal_map(normal_map: Raster) -> Raster:
    """Rescale every encoded vector back to unit length."""

    vectors = normal_map.rgb / 255.0 * 2.0 - 1.0
    length = np.linalg.norm(vectors, axis=-1, keepdims=True)
    length[length == 0] = 1.0
    return Raster.from_rgb((vectors / length * 0.5 + 0.5) * 255.0)


def decode_normals(normal_map: Raster) -> np.ndarray:
    """Unpack RGB back into ``[-1, 1]`` vectors."""

    return normal_map.rgb / 255.0 * 2.0 - 1.0


if __name__ == "__main__":  # pragma: no cover - manual smoke test
    from PIL import Image

    sample = Image.radial_gradient("L").convert("RGBA").resize((64, 64))
    generate(Raster.from_image(sample)).to_image().show()
