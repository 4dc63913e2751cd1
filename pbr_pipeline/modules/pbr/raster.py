"""Raster containers shared by the kernels, synthesizers and scheduler."""
from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from PIL import Image


def to_uint8(array: np.ndarray) -> np.ndarray:
    """Round and clamp float data into the 0-255 byte range."""

    return np.clip(np.rint(np.asarray(array, dtype=np.float32)), 0, 255).astype(np.uint8)


@dataclass(frozen=True, eq=False)
class Raster:
    """Interleaved RGBA 8-bit raster.

    The wrapped array has shape ``(height, width, 4)`` and dtype ``uint8``. It is
    marked read-only so a raster shared between the scheduler, listeners and
    synthesizers can never be modified in place.
    """

    pixels: np.ndarray

    def __post_init__(self) -> None:
        pixels = np.asarray(self.pixels)
        if pixels.ndim != 3 or pixels.shape[2] != 4:
            raise ValueError(f"Raster expects a (height, width, 4) array, got shape {pixels.shape}")
        if pixels.dtype != np.uint8:
            raise ValueError(f"Raster expects uint8 pixels, got {pixels.dtype}")
        if pixels.shape[0] == 0 or pixels.shape[1] == 0:
            raise ValueError("Raster dimensions must be positive")
        pixels = np.array(pixels, copy=True)
        pixels.setflags(write=False)
        object.__setattr__(self, "pixels", pixels)

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height

    @property
    def rgb(self) -> np.ndarray:
        """RGB channels as ``float32`` in 0-255."""

        return self.pixels[..., :3].astype(np.float32)

    @property
    def alpha(self) -> np.ndarray:
        return self.pixels[..., 3].astype(np.float32)

    @classmethod
    def from_image(cls, image: Image.Image) -> "Raster":
        return cls(np.asarray(image.convert("RGBA"), dtype=np.uint8))

    @classmethod
    def from_gray(cls, gray: np.ndarray) -> "Raster":
        """Build an opaque grey raster from a single-channel float buffer."""

        channel = to_uint8(gray)
        alpha = np.full_like(channel, 255)
        return cls(np.dstack([channel, channel, channel, alpha]))

    @classmethod
    def from_rgb(cls, rgb: np.ndarray, alpha: np.ndarray | None = None) -> "Raster":
        """Build a raster from float RGB data, opaque unless *alpha* is given."""

        colour = to_uint8(rgb)
        if alpha is None:
            alpha_channel = np.full(colour.shape[:2], 255, dtype=np.uint8)
        else:
            alpha_channel = to_uint8(alpha)
        return cls(np.dstack([colour, alpha_channel]))

    @classmethod
    def blank(cls, width: int, height: int, value: int = 0) -> "Raster":
        pixels = np.full((height, width, 4), value, dtype=np.uint8)
        pixels[..., 3] = 255
        return cls(pixels)

    def to_image(self) -> Image.Image:
        return Image.fromarray(np.array(self.pixels), mode="RGBA")

    def copy(self) -> "Raster":
        return Raster(self.pixels)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Raster):
            return NotImplemented
        return self.pixels.shape == other.pixels.shape and bool(np.array_equal(self.pixels, other.pixels))


__all__ = ["Raster", "to_uint8"]
