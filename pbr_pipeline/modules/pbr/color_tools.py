"""Colour grading tools applied to the source before or after map synthesis."""
from __future__ import annotations

import math
from typing import Sequence, Tuple

import numpy as np

from ...core.utils_color import hsl_to_rgb_array, parse_color, rgb_to_hsl_array
from ...core.utils_image import rgb_to_lab
from ._image_features import LUMA_WEIGHTS
from .raster import Raster

GradientStop = Tuple[float, Sequence[int] | str]

_DESATURATE_METHODS = ("luminance", "average", "lightness", "max")


def desaturate(source: Raster, method: str = "luminance", amount: float = 1.0) -> Raster:
    """Blend toward a grey value computed with *method*."""

    rgb = source.rgb
    if method == "luminance":
        gray = rgb @ LUMA_WEIGHTS
    elif method == "average":
        gray = rgb.mean(axis=-1)
    elif method == "lightness":
        gray = (rgb.max(axis=-1) + rgb.min(axis=-1)) / 2.0
    elif method == "max":
        gray = rgb.max(axis=-1)
    else:
        raise ValueError(f"Unknown desaturation method {method!r}; expected one of {_DESATURATE_METHODS}")
    return Raster.from_rgb(rgb * (1 - amount) + gray[..., None] * amount)


def hsl_adjust(source: Raster, hue_shift: float = 0.0, sat_scale: float = 1.0, light_scale: float = 1.0) -> Raster:
    """Rotate hue by *hue_shift* degrees and scale saturation and lightness."""

    hue, sat, lightness = rgb_to_hsl_array(source.rgb / 255.0)
    hue = np.mod(hue * 360.0 + hue_shift, 360.0) / 360.0
    sat = np.clip(sat * sat_scale, 0.0, 1.0)
    lightness = np.clip(lightness * light_scale, 0.0, 1.0)
    return Raster.from_rgb(hsl_to_rgb_array(hue, sat, lightness) * 255.0)


def auto_white_balance(source: Raster) -> Raster:
    """Grey-world white balance: scale each channel toward the common mean."""

    rgb = source.rgb
    averages = rgb.reshape(-1, 3).mean(axis=0)
    grey = float(averages.mean())
    scales = np.array([grey / (avg if avg else 1.0) for avg in averages], dtype=np.float32)
    return Raster.from_rgb(rgb * scales)


def posterize(source: Raster, levels: int = 4) -> Raster:
    """Quantise every channel to *levels* evenly spaced values."""

    levels = max(2, int(levels))
    step = 255.0 / (levels - 1)
    return Raster.from_rgb(np.rint(source.rgb / step) * step)


def invert_colors(source: Raster) -> Raster:
    return Raster.from_rgb(255.0 - source.rgb)


def channel_mix(
    source: Raster,
    r_weights: Sequence[float],
    g_weights: Sequence[float],
    b_weights: Sequence[float],
) -> Raster:
    """Rebuild each output channel as a weighted sum of the input channels."""

    matrix = np.array([r_weights, g_weights, b_weights], dtype=np.float32)
    return Raster.from_rgb(source.rgb @ matrix.T)


def gradient_map(source: Raster, stops: Sequence[GradientStop]) -> Raster:
    """Recolour by luminance through a piecewise linear colour ramp.

    *stops* are ``(position, colour)`` pairs with positions in [0, 1]; colours
    may be RGB triples or any string Pillow understands.
    """

    if not stops:
        raise ValueError("gradient_map needs at least one colour stop")
    ordered = sorted(((float(pos), parse_color(colour)) for pos, colour in stops), key=lambda item: item[0])
    positions = np.array([pos for pos, _ in ordered], dtype=np.float32)
    colours = np.array([colour for _, colour in ordered], dtype=np.float32)
    lum = (source.rgb @ LUMA_WEIGHTS) / 255.0
    channels = [np.interp(lum, positions, colours[:, c]) for c in range(3)]
    return Raster.from_rgb(np.dstack(channels))


def vignette(source: Raster, amount: float = 0.5, radius: float = 0.8) -> Raster:
    """Darken toward the corners.

    Distance is measured from the image centre and normalised by the
    half-diagonal; pixels beyond *radius* fade linearly, reaching
    ``1 - amount`` at the corners.
    """

    height, width = source.height, source.width
    cx, cy = width / 2.0, height / 2.0
    max_dist = math.hypot(cx, cy)
    ys, xs = np.mgrid[0:height, 0:width].astype(np.float32)
    dist = np.hypot(xs - cx, ys - cy) / max_dist
    if radius >= 1.0:
        factor = np.ones_like(dist)
    else:
        factor = 1.0 - np.maximum(0.0, (dist - radius) / (1.0 - radius)) * amount
    factor = np.maximum(factor, 0.0)
    return Raster.from_rgb(source.rgb * factor[..., None], source.alpha)


def lab_channels(source: Raster) -> np.ndarray:
    """Per-pixel CIE L*a*b* values of the raster colours, shape ``(h, w, 3)``."""

    return rgb_to_lab(source.rgb)


__all__ = [
    "auto_white_balance",
    "channel_mix",
    "desaturate",
    "gradient_map",
    "hsl_adjust",
    "invert_colors",
    "lab_channels",
    "posterize",
    "vignette",
]
