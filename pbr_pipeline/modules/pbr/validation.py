"""Plausibility checks for generated PBR maps."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Mapping, Optional

import numpy as np

from ._image_features import to_grayscale
from .parameters import MapType
from .raster import Raster

LOGGER = logging.getLogger("pbr_pipeline.pbr.validation")

ALBEDO_BRIGHT_LIMIT = 243
ALBEDO_DARK_LIMIT = 10
ALBEDO_MAX_FRACTION = 0.05
METALLIC_MID_RANGE = (25, 230)
METALLIC_MAX_FRACTION = 0.15
ROUGHNESS_MIRROR_LIMIT = 5
ROUGHNESS_MAX_FRACTION = 0.10
NORMAL_MIN_BLUE = 180


@dataclass(frozen=True)
class PBRValidationIssue:
    level: str
    map_type: MapType
    message: str


def _pct(fraction: float) -> int:
    return int(np.floor(fraction * 100 + 0.5))


def _check_diffuse(raster: Raster) -> List[PBRValidationIssue]:
    lum = to_grayscale(raster)
    issues = []
    bright = float((lum > ALBEDO_BRIGHT_LIMIT).mean())
    dark = float((lum < ALBEDO_DARK_LIMIT).mean())
    if bright > ALBEDO_MAX_FRACTION:
        issues.append(
            PBRValidationIssue(
                "warning",
                MapType.DIFFUSE,
                f"{_pct(bright)}% of pixels are too bright (>{ALBEDO_BRIGHT_LIMIT}). PBR albedo should be 30-240.",
            )
        )
    if dark > ALBEDO_MAX_FRACTION:
        issues.append(
            PBRValidationIssue(
                "warning",
                MapType.DIFFUSE,
                f"{_pct(dark)}% of pixels are too dark (<{ALBEDO_DARK_LIMIT}). Pure black is unrealistic for most materials.",
            )
        )
    return issues


def _check_metallic(raster: Raster) -> List[PBRValidationIssue]:
    values = raster.pixels[..., 0]
    low, high = METALLIC_MID_RANGE
    mid = float(((values > low) & (values < high)).mean())
    if mid > METALLIC_MAX_FRACTION:
        return [
            PBRValidationIssue(
                "warning",
                MapType.METALLIC,
                f"{_pct(mid)}% of metallic pixels are mid-range. Metallic should be mostly 0 (dielectric) or 255 (metal).",
            )
        ]
    return []


def _check_roughness(raster: Raster) -> List[PBRValidationIssue]:
    mirror = float((raster.pixels[..., 0] < ROUGHNESS_MIRROR_LIMIT).mean())
    if mirror > ROUGHNESS_MAX_FRACTION:
        return [
            PBRValidationIssue(
                "warning",
                MapType.ROUGHNESS,
                f"{_pct(mirror)}% of pixels are near-zero roughness (mirror smooth). This causes visible specular artifacts.",
            )
        ]
    return []


def _check_normal(raster: Raster) -> List[PBRValidationIssue]:
    blue = float(raster.pixels[..., 2].mean())
    if blue < NORMAL_MIN_BLUE:
        return [
            PBRValidationIssue(
                "warning",
                MapType.NORMAL,
                f"Normal map blue channel average is {int(np.floor(blue + 0.5))} (expected ~230+). Normal strength may be too high.",
            )
        ]
    return []


_CHECKS = {
    MapType.DIFFUSE: _check_diffuse,
    MapType.METALLIC: _check_metallic,
    MapType.ROUGHNESS: _check_roughness,
    MapType.NORMAL: _check_normal,
}


def validate_pbr(maps: Mapping[MapType, Optional[Raster]]) -> List[PBRValidationIssue]:
    """Check final maps for values outside physically plausible ranges.

    Only map types present with a raster are checked; all findings are
    warnings.
    """

    issues: List[PBRValidationIssue] = []
    for map_type, check in _CHECKS.items():
        raster = maps.get(map_type)
        if raster is None:
            continue
        found = check(raster)
        for issue in found:
            LOGGER.warning("%s: %s", map_type.value, issue.message)
        issues.extend(found)
    return issues


__all__ = ["PBRValidationIssue", "validate_pbr"]
