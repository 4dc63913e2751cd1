"""Multi-scale horizon-sampling ambient occlusion."""
from __future__ import annotations

import logging
import math
from typing import Any, Mapping, Sequence, Tuple

import numpy as np

from ..pbr import kernels
from ..pbr._image_features import to_grayscale
from ..pbr.adjustments import apply_common_adjustments
from ..pbr.parameters import AOParams, MapType, resolve_params
from ..pbr.raster import Raster

LOGGER = logging.getLogger("pbr_pipeline.geometry.ao")

SAMPLE_COUNT = 16
SCALE_WEIGHTS: Tuple[float, ...] = (0.5, 0.3, 0.2)


def sample_offsets(radius: float, samples: int = SAMPLE_COUNT) -> Sequence[Tuple[int, int]]:
    """Integer ``(dy, dx)`` offsets evenly spaced on a circle."""

    offsets = []
    for step in range(samples):
        angle = step / samples * 2.0 * math.pi
        offsets.append((int(round(math.sin(angle) * radius)), int(round(math.cos(angle) * radius))))
    return offsets


def occlusion_at_scale(height: np.ndarray, radius: float, samples: int = SAMPLE_COUNT) -> np.ndarray:
    """Average positive height difference toward neighbours on a ring of *radius*.

    Samples falling outside the image contribute nothing.
    """

    rows, cols = height.shape
    occlusion = np.zeros_like(height, dtype=np.float32)
    for dy, dx in sample_offsets(radius, samples):
        if abs(dy) >= rows or abs(dx) >= cols:
            continue
        dst_y = slice(max(0, -dy), rows - max(0, dy))
        dst_x = slice(max(0, -dx), cols - max(0, dx))
        src_y = slice(max(0, dy), rows - max(0, -dy))
        src_x = slice(max(0, dx), cols - max(0, -dx))
        diff = height[src_y, src_x] - height[dst_y, dst_x]
        occlusion[dst_y, dst_x] += np.maximum(diff, 0.0) / 255.0
    return occlusion / samples


def generate(source: Raster, params: AOParams | Mapping[str, Any] | None = None) -> Raster:
    """Crevices surrounded by higher ground darken; flat input stays white."""

    params = resolve_params(MapType.AO, params)
    height = kernels.normalize(kernels.gaussian_blur(to_grayscale(source), 1.0))
    radius = float(params.ao_radius)
    strength = params.ao_intensity / 100.0

    accumulated = np.zeros_like(height, dtype=np.float32)
    for scale_radius, weight in zip((2.0, radius, radius * 4.0), SCALE_WEIGHTS):
        accumulated += occlusion_at_scale(height, scale_radius) * weight * strength * 255.0

    peak = float(accumulated.max())
    scale = 255.0 / peak if peak > 0 else 1.0
    LOGGER.debug("AO radius=%s peak=%.3f", params.ao_radius, peak)
    ao = np.maximum(0.0, 255.0 - accumulated * scale)
    return Raster.from_gray(apply_common_adjustments(ao, params.common))
