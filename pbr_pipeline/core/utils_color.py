"""Color utility helpers used across the pipeline."""
from __future__ import annotations

from typing import Sequence, Tuple

import numpy as np
from PIL import ImageColor

ColorTuple = Tuple[int, int, int]


def clamp(value: float, min_value: float, max_value: float) -> float:
    """Clamp *value* between *min_value* and *max_value*."""

    return max(min_value, min(max_value, value))


def rgb_to_hex(color: Sequence[int]) -> str:
    """Format an RGB triple as ``#rrggbb``."""

    r, g, b = (int(clamp(channel, 0, 255)) for channel in color[:3])
    return f"#{r:02x}{g:02x}{b:02x}"


def parse_color(value: str | Sequence[int]) -> ColorTuple:
    """Parse arbitrary color input into an RGB tuple."""

    if isinstance(value, str):
        rgb = ImageColor.getrgb(value)
        return rgb[:3]  # type: ignore[return-value]
    return tuple(value[:3])  # type: ignore[return-value]


def rgb_to_hsl_array(rgb: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Vectorised RGB (0-1) to HSL with every component in [0, 1]."""

    r, g, b = rgb[..., 0], rgb[..., 1], rgb[..., 2]
    maxc = rgb.max(axis=-1)
    minc = rgb.min(axis=-1)
    lightness = (maxc + minc) / 2.0
    delta = maxc - minc
    chromatic = delta > 0
    safe_delta = np.where(chromatic, delta, 1.0)

    denom = np.where(lightness > 0.5, 2.0 - maxc - minc, maxc + minc)
    sat = np.where(chromatic, delta / np.where(denom > 0, denom, 1.0), 0.0)

    hue = np.where(
        maxc == r,
        (g - b) / safe_delta + np.where(g < b, 6.0, 0.0),
        np.where(maxc == g, (b - r) / safe_delta + 2.0, (r - g) / safe_delta + 4.0),
    )
    hue = np.where(chromatic, hue / 6.0, 0.0)
    return hue.astype(np.float32), sat.astype(np.float32), lightness.astype(np.float32)


def _hue_to_rgb(p: np.ndarray, q: np.ndarray, t: np.ndarray) -> np.ndarray:
    t = np.mod(t, 1.0)
    return np.select(
        [t < 1 / 6, t < 1 / 2, t < 2 / 3],
        [p + (q - p) * 6 * t, q, p + (q - p) * (2 / 3 - t) * 6],
        default=p,
    )


def hsl_to_rgb_array(hue: np.ndarray, sat: np.ndarray, lightness: np.ndarray) -> np.ndarray:
    """Inverse of :func:`rgb_to_hsl_array`, returning RGB in [0, 1]."""

    q = np.where(lightness < 0.5, lightness * (1 + sat), lightness + sat - lightness * sat)
    p = 2 * lightness - q
    rgb = np.stack(
        [_hue_to_rgb(p, q, hue + 1 / 3), _hue_to_rgb(p, q, hue), _hue_to_rgb(p, q, hue - 1 / 3)],
        axis=-1,
    )
    grey = np.repeat(lightness[..., None], 3, axis=-1)
    return np.where((sat == 0)[..., None], grey, rgb).astype(np.float32)
