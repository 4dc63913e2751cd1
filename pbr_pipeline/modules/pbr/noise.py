"""Seeded noise fields and grain."""
from __future__ import annotations

import math
from typing import Optional

import numpy as np

from .raster import Raster

NOISE_KINDS = ("white", "value")
# Gradient-noise names render as value noise.
_VALUE_ALIASES = {"value", "perlin", "simplex"}


def _value_noise(width: int, height: int, scale: float, rng: np.random.Generator) -> np.ndarray:
    grid_size = max(2, int(round(scale)))
    grid_w = int(math.ceil(width / grid_size)) + 2
    grid_h = int(math.ceil(height / grid_size)) + 2
    grid = rng.random((grid_h, grid_w))

    gx = np.arange(width, dtype=np.float64) / grid_size
    gy = np.arange(height, dtype=np.float64) / grid_size
    x0 = np.floor(gx).astype(np.intp)
    y0 = np.floor(gy).astype(np.intp)
    fx = gx - x0
    fy = gy - y0
    sx = (fx * fx * (3 - 2 * fx))[None, :]
    sy = (fy * fy * (3 - 2 * fy))[:, None]

    v00 = grid[y0[:, None], x0[None, :]]
    v10 = grid[y0[:, None], x0[None, :] + 1]
    v01 = grid[y0[:, None] + 1, x0[None, :]]
    v11 = grid[y0[:, None] + 1, x0[None, :] + 1]
    top = v00 * (1 - sx) + v10 * sx
    bottom = v01 * (1 - sx) + v11 * sx
    return top * (1 - sy) + bottom * sy


def generate_noise(
    width: int,
    height: int,
    kind: str = "white",
    scale: float = 50.0,
    seed: Optional[int] = 42,
) -> np.ndarray:
    """Return a ``(height, width)`` float32 noise field in 0-255.

    ``"white"`` draws every pixel independently. ``"value"`` interpolates a
    random lattice with cell size *scale* using smoothstep weights.
    """

    if width <= 0 or height <= 0:
        raise ValueError(f"Noise dimensions must be positive, got {width}x{height}")
    rng = np.random.default_rng(seed)
    if kind == "white":
        field = rng.random((height, width))
    elif kind in _VALUE_ALIASES:
        field = _value_noise(width, height, scale, rng)
    else:
        raise ValueError(f"Unknown noise kind {kind!r}; expected one of {NOISE_KINDS}")
    return (field * 255.0).astype(np.float32)


def add_noise(
    source: Raster,
    amount: float = 20.0,
    *,
    monochrome: bool = True,
    seed: Optional[int] = None,
) -> Raster:
    """Add uniform grain of peak-to-peak size ``amount * 2.55`` to the colour channels.

    Monochrome grain shifts all three channels of a pixel by the same value.
    Alpha is kept.
    """

    rng = np.random.default_rng(seed)
    strength = float(amount) * 2.55
    shape = (source.height, source.width, 1 if monochrome else 3)
    grain = (rng.random(shape) - 0.5) * strength
    return Raster.from_rgb(source.rgb + grain, source.alpha)


__all__ = ["NOISE_KINDS", "add_noise", "generate_noise"]
