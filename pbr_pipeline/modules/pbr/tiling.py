"""Seamless tiling helpers: edge cross-blending and seam diagnostics."""
from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

from ._image_features import LUMA_WEIGHTS
from .raster import Raster, to_uint8


@dataclass(frozen=True)
class SeamScore:
    score: int
    horizontal: int
    vertical: int


def blend_weights(border: int) -> np.ndarray:
    """Cosine mix weights for distances ``0 .. border - 1`` from an edge.

    The weight is 0.5 on the edge itself (both sides averaged) and decays to
    zero at ``border`` pixels.
    """

    distances = np.arange(border, dtype=np.float32)
    return (0.25 * (1.0 + np.cos(np.pi * distances / border))).astype(np.float32)


def _blend_axis(rgb: np.ndarray, border: int, axis: int) -> np.ndarray:
    result = rgb.copy()
    length = rgb.shape[axis]
    near = np.arange(border)
    far = length - 1 - near
    weights = blend_weights(border)
    if axis == 1:
        weights = weights[None, :, None]
        near_values = rgb[:, near]
        far_values = rgb[:, far]
        result[:, near] = near_values * (1 - weights) + far_values * weights
        result[:, far] = far_values * (1 - weights) + near_values * weights
    else:
        weights = weights[:, None, None]
        near_values = rgb[near]
        far_values = rgb[far]
        result[near] = near_values * (1 - weights) + far_values * weights
        result[far] = far_values * (1 - weights) + near_values * weights
    return np.rint(result)


def make_seamless(source: Raster, blend_width: float = 0.25) -> Raster:
    """Cross-blend opposite edges so the raster tiles without visible seams.

    *blend_width* is a fraction of the smaller dimension, capped at 0.5. The
    left/right pass runs first; the top/bottom pass works on its output.
    """

    border = max(1, int(math.floor(min(blend_width, 0.5) * min(source.width, source.height))))
    rgb = source.rgb
    blended = _blend_axis(rgb, border, axis=1)
    blended = _blend_axis(blended, border, axis=0)
    return Raster(np.dstack([to_uint8(blended), source.pixels[..., 3]]))


def compute_seam_score(source: Raster) -> SeamScore:
    """Score 0-100 describing how well opposite edges match (100 = identical)."""

    rgb = source.rgb
    horizontal_diff = float(np.sum(np.abs(rgb[:, 0] - rgb[:, -1]) * LUMA_WEIGHTS)) / source.height
    vertical_diff = float(np.sum(np.abs(rgb[0] - rgb[-1]) * LUMA_WEIGHTS)) / source.width
    horizontal = max(0.0, 100.0 - horizontal_diff * 2)
    vertical = max(0.0, 100.0 - vertical_diff * 2)
    return SeamScore(
        score=int(round((horizontal + vertical) / 2)),
        horizontal=int(round(horizontal)),
        vertical=int(round(vertical)),
    )


def compute_seam_heatmap(source: Raster) -> Raster:
    """Red/green overlay of edge discontinuity; the interior stays transparent."""

    rgb = source.rgb
    height, width = rgb.shape[:2]
    band = min(32.0, min(width, height) / 4)
    ys, xs = np.mgrid[0:height, 0:width]
    mirror_x = rgb[:, ::-1]
    mirror_y = rgb[::-1, :]
    horizontal_diff = np.sum(np.abs(rgb - mirror_x), axis=-1)
    vertical_diff = np.sum(np.abs(rgb - mirror_y), axis=-1)

    in_left = xs < band
    in_right = xs >= width - band
    in_top = ys < band
    in_bottom = ys >= height - band
    diff = horizontal_diff * in_left + horizontal_diff * in_right
    diff = diff + vertical_diff * in_top + vertical_diff * in_bottom
    count = 3 * (in_left.astype(int) + in_right + in_top + in_bottom)

    intensity = np.minimum(255.0, np.divide(diff, count, out=np.zeros_like(diff), where=count > 0) * 3)
    covered = count > 0
    pixels = np.zeros((height, width, 4), dtype=np.float32)
    pixels[..., 0] = np.where(covered, intensity, 0)
    pixels[..., 1] = np.where(covered, 255 - intensity, 0)
    pixels[..., 3] = np.where(covered, 128 + intensity / 255 * 127, 0)
    return Raster(to_uint8(pixels))


__all__ = ["SeamScore", "blend_weights", "compute_seam_heatmap", "compute_seam_score", "make_seamless"]
