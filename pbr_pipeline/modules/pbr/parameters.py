"""Map types, per-map parameter sets and the map dependency graph.

Every map type owns a frozen dataclass of parameters. The shared
post-processing controls live in :class:`CommonParams`, embedded by
composition as ``params.common``. Field metadata carries the control range,
label and hint so callers can build editors or validate input from a single
source. Updates never mutate: :func:`merge_params` returns a new object with
values clamped into range.
"""
from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple, Type

LOGGER = logging.getLogger("pbr_pipeline.pbr.parameters")

_TRUE_VALUES = {"1", "y", "yes", "t", "true", "on"}
_FALSE_VALUES = {"0", "n", "no", "f", "false", "off"}


class InvalidParameterError(ValueError):
    """Raised when a parameter value cannot be interpreted safely."""


class MapType(str, Enum):
    HEIGHT = "height"
    NORMAL = "normal"
    DIFFUSE = "diffuse"
    METALLIC = "metallic"
    SMOOTHNESS = "smoothness"
    AO = "ao"
    EDGE = "edge"
    ROUGHNESS = "roughness"
    DISPLACEMENT = "displacement"
    SPECULAR = "specular"
    EMISSIVE = "emissive"
    OPACITY = "opacity"
    CURVATURE = "curvature"

    @property
    def label(self) -> str:
        return MAP_INFO[self].label

    @property
    def description(self) -> str:
        return MAP_INFO[self].description

    @property
    def color(self) -> str:
        return MAP_INFO[self].color

    @classmethod
    def parse(cls, value: "MapType | str") -> "MapType":
        """Accept a member, its value (``"ao"``) or its name (``"AO"``)."""

        if isinstance(value, cls):
            return value
        text = str(value).strip()
        try:
            return cls(text.lower())
        except ValueError:
            try:
                return cls[text.upper()]
            except KeyError:
                raise ValueError(f"Unknown map type {value!r}") from None


@dataclass(frozen=True)
class MapInfo:
    label: str
    description: str
    color: str


MAP_INFO: Dict[MapType, MapInfo] = {
    MapType.HEIGHT: MapInfo("Height Map", "Grayscale depth/elevation data", "#9CA3AF"),
    MapType.NORMAL: MapInfo("Normal Map", "Surface orientation for lighting", "#818CF8"),
    MapType.DIFFUSE: MapInfo("Diffuse Map", "Base color without lighting", "#F59E0B"),
    MapType.METALLIC: MapInfo("Metallic Map", "Metal vs dielectric regions", "#67E8F9"),
    MapType.SMOOTHNESS: MapInfo("Smoothness Map", "Inverse roughness values", "#A78BFA"),
    MapType.AO: MapInfo("AO Map", "Ambient occlusion contact shadows", "#6B7280"),
    MapType.EDGE: MapInfo("Edge Map", "Edge detection for details", "#34D399"),
    MapType.ROUGHNESS: MapInfo("Roughness Map", "Micro-surface irregularity", "#FB923C"),
    MapType.DISPLACEMENT: MapInfo("Displacement Map", "Geometric surface offset", "#F472B6"),
    MapType.SPECULAR: MapInfo("Specular Map", "Reflectance at normal incidence", "#38BDF8"),
    MapType.EMISSIVE: MapInfo("Emissive Map", "Self-illuminated regions", "#FACC15"),
    MapType.OPACITY: MapInfo("Opacity Map", "Transparency/alpha mask", "#E879F9"),
    MapType.CURVATURE: MapInfo("Curvature Map", "Convexity and concavity", "#FB7185"),
}

# Regenerating a key map schedules a refresh of the listed maps.
MAP_DEPENDENCIES: Dict[MapType, Tuple[MapType, ...]] = {
    MapType.HEIGHT: (MapType.NORMAL, MapType.DISPLACEMENT, MapType.CURVATURE, MapType.AO),
    MapType.ROUGHNESS: (MapType.SMOOTHNESS,),
    MapType.SMOOTHNESS: (MapType.ROUGHNESS,),
}


def dependent_maps(map_type: MapType) -> Tuple[MapType, ...]:
    """Direct dependents of *map_type* (not transitive)."""

    return MAP_DEPENDENCIES.get(MapType.parse(map_type), ())


def _param(
    default: Any,
    minimum: Optional[float] = None,
    maximum: Optional[float] = None,
    step: Optional[float] = None,
    *,
    label: str = "",
    hint: str = "",
    kind: Optional[str] = None,
    choices: Tuple[str, ...] = (),
):
    if kind is None:
        if isinstance(default, bool):
            kind = "bool"
        elif isinstance(default, int):
            kind = "int"
        elif isinstance(default, str):
            kind = "choice"
        else:
            kind = "float"
    metadata = {
        "kind": kind,
        "min": minimum,
        "max": maximum,
        "step": step,
        "label": label,
        "hint": hint,
        "choices": choices,
    }
    return field(default=default, metadata=metadata)


@dataclass(frozen=True)
class CommonParams:
    """Post-processing controls shared by every map type."""

    intensity: float = _param(100.0, 0, 200, 1, label="Intensity", hint="Scale values; 100% leaves them unchanged")
    contrast: float = _param(100.0, 0, 200, 1, label="Contrast", hint="Contrast around mid-grey; 100% is neutral")
    brightness: float = _param(0.0, -100, 100, 1, label="Brightness", hint="Offset added after contrast")
    blur: float = _param(0.0, 0, 15, 0.5, label="Blur", hint="Gaussian sigma applied after tone adjustments")
    sharpen: float = _param(0.0, 0, 50, 1, label="Sharpen", hint="Unsharp mask amount")
    invert: bool = _param(False, label="Invert")
    black_point: float = _param(0.0, 0, 255, 1, label="Black Point", hint="Values below become fully black")
    white_point: float = _param(255.0, 0, 255, 1, label="White Point", hint="Values above become fully white")
    gamma: float = _param(1.0, 0.1, 5.0, 0.1, label="Gamma", hint="Midtone curve; <1 brightens, >1 darkens")

    def is_neutral(self) -> bool:
        return self == CommonParams()


def _common(**overrides: Any):
    return field(default_factory=lambda: CommonParams(**overrides))


@dataclass(frozen=True)
class HeightParams:
    common: CommonParams = _common(sharpen=10.0)
    height_pre_blur: float = _param(
        1.0, 0, 5, 0.1, label="Smoothing", hint="Smooth out source noise before extracting height"
    )


@dataclass(frozen=True)
class NormalParams:
    common: CommonParams = _common()
    normal_strength: float = _param(
        1.5, 0.1, 20, 0.1, label="Strength", hint="How pronounced surface bumps appear"
    )
    normal_pre_blur: float = _param(
        1.0, 0, 5, 0.1, label="Height Smoothing", hint="Smooth the height data before computing normals"
    )
    normal_method: str = _param(
        "sobel", label="Gradient Operator", hint="Scharr is more rotation-accurate", choices=("sobel", "scharr")
    )
    normal_convention: str = _param(
        "opengl", label="Convention", hint="DirectX flips the green channel", choices=("opengl", "directx")
    )


@dataclass(frozen=True)
class DiffuseParams:
    common: CommonParams = _common()
    de_light_strength: float = _param(
        40.0, 0, 100, 1, label="De-Light Strength", hint="Remove baked-in lighting and shadows from the source"
    )


@dataclass(frozen=True)
class MetallicParams:
    common: CommonParams = _common(contrast=115.0)
    metallic_threshold: float = _param(
        60.0, 0, 100, 1, label="Threshold", hint="Score cutoff for metallic areas; higher marks fewer areas"
    )


@dataclass(frozen=True)
class SmoothnessParams:
    common: CommonParams = _common(contrast=110.0)
    texture_scale: int = _param(7, 3, 15, 2, label="Texture Scale", hint="Window size for surface analysis")


@dataclass(frozen=True)
class AOParams:
    common: CommonParams = _common()
    ao_radius: int = _param(12, 1, 64, 1, label="Radius", hint="Size of the shadow sampling area in pixels")
    ao_intensity: float = _param(160.0, 0, 300, 1, label="Shadow Depth", hint="Darkness of occlusion shadows")


@dataclass(frozen=True)
class EdgeParams:
    common: CommonParams = _common()
    edge_low_threshold: float = _param(
        30.0, 0, 255, 1, label="Sensitivity", hint="Minimum strength for a pixel to continue an edge"
    )
    edge_high_threshold: float = _param(
        120.0, 0, 255, 1, label="Confirmation", hint="Strength needed to start an edge"
    )


@dataclass(frozen=True)
class RoughnessParams:
    common: CommonParams = _common(contrast=110.0)
    texture_scale: int = _param(7, 3, 15, 2, label="Texture Scale", hint="Window size for surface analysis")
    roughness_floor: float = _param(
        20.0, 0, 100, 1, label="Min Roughness", hint="Minimum roughness so no area becomes mirror-smooth"
    )


@dataclass(frozen=True)
class DisplacementParams:
    common: CommonParams = _common(blur=0.5)
    displacement_detail: float = _param(
        50.0, 0, 100, 1, label="Detail Blend", hint="Balance micro detail (0%) against broad shapes (100%)"
    )


@dataclass(frozen=True)
class SpecularParams:
    common: CommonParams = _common(intensity=90.0, contrast=105.0)


@dataclass(frozen=True)
class EmissiveParams:
    common: CommonParams = _common()
    emissive_threshold: float = _param(
        90.0, 0, 100, 1, label="Brightness Threshold", hint="Only areas brighter than this glow"
    )
    emissive_sat_min: float = _param(
        10.0, 0, 100, 1, label="Min Saturation", hint="Blocks white and grey areas from glowing"
    )


@dataclass(frozen=True)
class OpacityParams:
    common: CommonParams = _common(contrast=120.0)
    opacity_threshold: float = _param(
        2.0, 0, 128, 1, label="Cutoff Threshold", hint="Luminance at or below this becomes transparent"
    )


@dataclass(frozen=True)
class CurvatureParams:
    common: CommonParams = _common(intensity=120.0)
    curvature_pre_blur: float = _param(
        1.5, 0, 5, 0.1, label="Input Smoothing", hint="Smooth the source before curvature analysis"
    )
    curvature_multiplier: float = _param(
        2.0, 0.5, 10, 0.5, label="Amplification", hint="How much to amplify curvature values"
    )


PARAMS_CLASSES: Dict[MapType, Type[Any]] = {
    MapType.HEIGHT: HeightParams,
    MapType.NORMAL: NormalParams,
    MapType.DIFFUSE: DiffuseParams,
    MapType.METALLIC: MetallicParams,
    MapType.SMOOTHNESS: SmoothnessParams,
    MapType.AO: AOParams,
    MapType.EDGE: EdgeParams,
    MapType.ROUGHNESS: RoughnessParams,
    MapType.DISPLACEMENT: DisplacementParams,
    MapType.SPECULAR: SpecularParams,
    MapType.EMISSIVE: EmissiveParams,
    MapType.OPACITY: OpacityParams,
    MapType.CURVATURE: CurvatureParams,
}

COMMON_PARAM_NAMES = tuple(f.name for f in fields(CommonParams))


@dataclass(frozen=True)
class ParamSpec:
    name: str
    kind: str
    default: Any
    minimum: Optional[float]
    maximum: Optional[float]
    step: Optional[float]
    label: str
    hint: str
    choices: Tuple[str, ...]
    common: bool


def canonical_key(key: str) -> str:
    """Translate ``camelCase`` control keys to the snake_case field names."""

    return re.sub(r"(?<!^)(?=[A-Z])", "_", str(key).strip()).lower()


def _coerce(name: str, metadata: Mapping[str, Any], value: Any) -> Any:
    kind = metadata["kind"]
    if kind == "bool":
        if isinstance(value, bool):
            return value
        if isinstance(value, (int, float)) and value in (0, 1):
            return bool(value)
        if isinstance(value, str) and value.strip().lower() in _TRUE_VALUES | _FALSE_VALUES:
            return value.strip().lower() in _TRUE_VALUES
        raise InvalidParameterError(f"{name} expects a boolean, got {value!r}")

    if kind == "choice":
        choices = metadata["choices"]
        normalized = str(value).strip().lower()
        if normalized not in choices:
            raise InvalidParameterError(f"{name} must be one of {choices}, got {value!r}")
        return normalized

    if isinstance(value, bool):
        raise InvalidParameterError(f"{name} expects a number, got {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidParameterError(f"{name} expects a number, got {value!r}") from None
    if math.isnan(number):
        raise InvalidParameterError(f"{name} must not be NaN")

    minimum, maximum = metadata["min"], metadata["max"]
    if minimum is not None:
        number = max(float(minimum), number)
    if maximum is not None:
        number = min(float(maximum), number)
    if kind == "int":
        step = metadata["step"] or 1
        base = minimum or 0
        snapped = base + round((number - base) / step) * step
        if maximum is not None and snapped > maximum:
            snapped -= step
        return int(snapped)
    return number


def default_params(map_type: MapType | str):
    """Return the default parameter set for *map_type*."""

    return PARAMS_CLASSES[MapType.parse(map_type)]()


def merge_params(params: Any, partial: Optional[Mapping[str, Any]]) -> Any:
    """Return a copy of *params* with the values from *partial* applied.

    Keys may use snake_case field names or the camelCase control keys, and a
    nested ``"common"`` mapping is accepted as well. Unknown keys are ignored;
    numeric values are clamped into their declared range.
    """

    if not partial:
        return params
    specific = {f.name: f for f in fields(params) if f.name != "common"}
    common_fields = {f.name: f for f in fields(CommonParams)}
    common_updates: Dict[str, Any] = {}
    specific_updates: Dict[str, Any] = {}

    items: List[Tuple[str, Any]] = []
    for key, value in partial.items():
        if canonical_key(key) == "common" and isinstance(value, Mapping):
            items.extend(value.items())
        elif canonical_key(key) == "common" and isinstance(value, CommonParams):
            items.extend((f.name, getattr(value, f.name)) for f in fields(CommonParams))
        else:
            items.append((key, value))

    for key, value in items:
        name = canonical_key(key)
        if name in common_fields:
            common_updates[name] = _coerce(name, common_fields[name].metadata, value)
        elif name in specific:
            specific_updates[name] = _coerce(name, specific[name].metadata, value)
        else:
            LOGGER.debug("Ignoring unknown parameter %r for %s", key, type(params).__name__)

    if common_updates:
        specific_updates["common"] = replace(params.common, **common_updates)
    if not specific_updates:
        return params
    return replace(params, **specific_updates)


def resolve_params(map_type: MapType | str, partial: Any = None) -> Any:
    """Defaults for *map_type* overlaid with *partial* (a mapping or a params object)."""

    map_type = MapType.parse(map_type)
    cls = PARAMS_CLASSES[map_type]
    if isinstance(partial, cls):
        return partial
    if partial is not None and not isinstance(partial, Mapping):
        raise InvalidParameterError(
            f"Parameters for {map_type.value} must be a mapping or {cls.__name__}, got {type(partial).__name__}"
        )
    return merge_params(cls(), partial)


def common_params_dict(params: Any) -> Dict[str, Any]:
    return {name: getattr(params.common, name) for name in COMMON_PARAM_NAMES}


def params_to_dict(params: Any) -> Dict[str, Any]:
    """Flatten a parameter set into a single snake_case dictionary."""

    values = common_params_dict(params)
    for f in fields(params):
        if f.name != "common":
            values[f.name] = getattr(params, f.name)
    return values


def param_specs(map_type: MapType | str) -> List[ParamSpec]:
    """Describe every control of *map_type*; map-specific controls come first."""

    cls = PARAMS_CLASSES[MapType.parse(map_type)]
    defaults = cls()
    specs: List[ParamSpec] = []
    for f in fields(cls):
        if f.name == "common":
            continue
        specs.append(_spec(f, getattr(defaults, f.name), common=False))
    for f in fields(CommonParams):
        specs.append(_spec(f, getattr(defaults.common, f.name), common=True))
    return specs


def _spec(f, default: Any, *, common: bool) -> ParamSpec:
    meta = f.metadata
    return ParamSpec(
        name=f.name,
        kind=meta["kind"],
        default=default,
        minimum=meta["min"],
        maximum=meta["max"],
        step=meta["step"],
        label=meta["label"],
        hint=meta["hint"],
        choices=meta["choices"],
        common=common,
    )


__all__ = [
    "AOParams",
    "COMMON_PARAM_NAMES",
    "CommonParams",
    "CurvatureParams",
    "DiffuseParams",
    "DisplacementParams",
    "EdgeParams",
    "EmissiveParams",
    "HeightParams",
    "InvalidParameterError",
    "MAP_DEPENDENCIES",
    "MAP_INFO",
    "MapType",
    "MetallicParams",
    "NormalParams",
    "OpacityParams",
    "PARAMS_CLASSES",
    "ParamSpec",
    "RoughnessParams",
    "SmoothnessParams",
    "SpecularParams",
    "canonical_key",
    "common_params_dict",
    "default_params",
    "dependent_maps",
    "merge_params",
    "param_specs",
    "params_to_dict",
    "resolve_params",
]
