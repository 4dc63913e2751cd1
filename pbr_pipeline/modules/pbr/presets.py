"""Built-in material presets that configure every map for a surface type."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping

from .parameters import MapType, resolve_params

H, N, D, M, R = MapType.HEIGHT, MapType.NORMAL, MapType.DIFFUSE, MapType.METALLIC, MapType.ROUGHNESS
AO, DISP, CURV, SPEC = MapType.AO, MapType.DISPLACEMENT, MapType.CURVATURE, MapType.SPECULAR
OPAC, EMIS = MapType.OPACITY, MapType.EMISSIVE


@dataclass(frozen=True)
class TexturePreset:
    id: str
    name: str
    description: str
    category: str
    params: Mapping[MapType, Mapping[str, Any]] = field(default_factory=dict)

    def params_for(self, map_type: MapType) -> Any:
        """Defaults for *map_type* with this preset's overrides applied."""

        return resolve_params(map_type, dict(self.params.get(map_type, {})))


TEXTURE_PRESETS: List[TexturePreset] = [
    TexturePreset(
        "stone", "Stone", "Rough natural rock", "hard",
        {
            H: {"intensity": 120, "height_pre_blur": 0.8, "contrast": 115, "sharpen": 12},
            N: {"normal_strength": 3.0, "normal_pre_blur": 0.6},
            D: {"de_light_strength": 50, "contrast": 105},
            M: {"metallic_threshold": 98, "intensity": 15},
            R: {"texture_scale": 9, "roughness_floor": 55, "intensity": 95, "contrast": 100, "brightness": 5},
            AO: {"ao_radius": 16, "ao_intensity": 180},
            DISP: {"displacement_detail": 40, "intensity": 120},
            CURV: {"curvature_multiplier": 2.5, "intensity": 120},
        },
    ),
    TexturePreset(
        "concrete", "Concrete", "Uniform rough surface", "hard",
        {
            H: {"intensity": 75, "height_pre_blur": 1.5, "contrast": 95},
            N: {"normal_strength": 1.8, "normal_pre_blur": 1.0},
            D: {"de_light_strength": 40, "contrast": 100},
            M: {"metallic_threshold": 99, "intensity": 10},
            R: {"texture_scale": 9, "roughness_floor": 60, "intensity": 95, "contrast": 100, "brightness": 5},
            AO: {"ao_radius": 12, "ao_intensity": 130},
        },
    ),
    TexturePreset(
        "brick", "Brick", "Regular pattern with grout", "hard",
        {
            H: {"intensity": 130, "height_pre_blur": 0.3, "contrast": 130, "sharpen": 15},
            N: {"normal_strength": 3.5, "normal_pre_blur": 0.4},
            D: {"de_light_strength": 55, "contrast": 110},
            M: {"metallic_threshold": 99, "intensity": 10},
            R: {"texture_scale": 9, "roughness_floor": 50, "intensity": 95, "contrast": 105, "brightness": 5},
            AO: {"ao_radius": 18, "ao_intensity": 200},
            DISP: {"displacement_detail": 30, "intensity": 140},
        },
    ),
    TexturePreset(
        "metal", "Metal", "Metallic reflective surface", "reflective",
        {
            H: {"intensity": 45, "height_pre_blur": 2.0, "contrast": 80},
            N: {"normal_strength": 0.8, "normal_pre_blur": 1.5},
            D: {"de_light_strength": 15, "contrast": 95},
            M: {"metallic_threshold": 30, "contrast": 120, "intensity": 140},
            R: {"texture_scale": 5, "roughness_floor": 5, "intensity": 60, "contrast": 90, "brightness": -10},
            AO: {"ao_radius": 6, "ao_intensity": 80},
            SPEC: {"intensity": 140, "contrast": 110},
        },
    ),
    TexturePreset(
        "glass", "Glass", "Smooth transparent surface", "reflective",
        {
            H: {"intensity": 10, "height_pre_blur": 3.0, "contrast": 50},
            N: {"normal_strength": 0.3, "normal_pre_blur": 2.5},
            D: {"de_light_strength": 10, "contrast": 80, "brightness": 10},
            M: {"metallic_threshold": 80, "intensity": 50},
            R: {"texture_scale": 3, "roughness_floor": 0, "intensity": 20, "contrast": 80, "brightness": -20},
            SPEC: {"intensity": 160, "contrast": 120},
            OPAC: {"opacity_threshold": 0, "intensity": 60},
        },
    ),
    TexturePreset(
        "marble", "Marble", "Polished stone with veins", "reflective",
        {
            H: {"intensity": 50, "height_pre_blur": 2.0, "contrast": 85},
            N: {"normal_strength": 0.8, "normal_pre_blur": 1.5},
            D: {"de_light_strength": 25, "intensity": 105, "contrast": 105},
            M: {"metallic_threshold": 98, "intensity": 15},
            R: {"texture_scale": 5, "roughness_floor": 8, "intensity": 40, "contrast": 90, "brightness": -10},
            SPEC: {"intensity": 130, "contrast": 108},
            AO: {"ao_radius": 8, "ao_intensity": 100},
        },
    ),
    TexturePreset(
        "wood", "Wood", "Natural grain pattern", "organic",
        {
            H: {"intensity": 85, "height_pre_blur": 1.0, "contrast": 105},
            N: {"normal_strength": 1.5, "normal_pre_blur": 0.8},
            D: {"de_light_strength": 35, "intensity": 105},
            M: {"metallic_threshold": 99, "intensity": 10},
            R: {"texture_scale": 7, "roughness_floor": 40, "intensity": 90, "contrast": 100, "brightness": 0},
            AO: {"ao_radius": 10, "ao_intensity": 130},
            DISP: {"displacement_detail": 55, "intensity": 75},
        },
    ),
    TexturePreset(
        "leather", "Leather", "Textured organic hide", "organic",
        {
            H: {"intensity": 80, "height_pre_blur": 0.8, "contrast": 105, "sharpen": 8},
            N: {"normal_strength": 1.8, "normal_pre_blur": 0.8},
            D: {"de_light_strength": 35},
            M: {"metallic_threshold": 99, "intensity": 10},
            R: {"texture_scale": 7, "roughness_floor": 40, "intensity": 90, "contrast": 100, "brightness": 0},
            AO: {"ao_radius": 8, "ao_intensity": 120},
        },
    ),
    TexturePreset(
        "foliage", "Foliage", "Leaves and vegetation", "organic",
        {
            H: {"intensity": 95, "height_pre_blur": 0.8, "contrast": 105},
            N: {"normal_strength": 2.0, "normal_pre_blur": 0.8},
            D: {"de_light_strength": 45, "intensity": 110},
            M: {"metallic_threshold": 99, "intensity": 5},
            R: {"texture_scale": 7, "roughness_floor": 35, "intensity": 85, "contrast": 100, "brightness": 0},
            AO: {"ao_radius": 10, "ao_intensity": 150},
            OPAC: {"opacity_threshold": 10, "intensity": 110, "contrast": 130},
            EMIS: {"emissive_threshold": 96},
        },
    ),
    TexturePreset(
        "fabric", "Fabric", "Woven cloth or textile", "soft",
        {
            H: {"intensity": 55, "height_pre_blur": 1.5, "contrast": 85},
            N: {"normal_strength": 1.0, "normal_pre_blur": 1.5},
            D: {"de_light_strength": 30, "intensity": 105},
            M: {"metallic_threshold": 99, "intensity": 5},
            R: {"texture_scale": 5, "roughness_floor": 50, "intensity": 100, "contrast": 95, "brightness": 5},
            AO: {"ao_radius": 6, "ao_intensity": 100},
            DISP: {"displacement_detail": 30, "intensity": 45},
        },
    ),
    TexturePreset(
        "plastic", "Plastic", "Smooth synthetic material", "soft",
        {
            H: {"intensity": 30, "height_pre_blur": 2.0, "contrast": 80},
            N: {"normal_strength": 0.6, "normal_pre_blur": 1.5},
            D: {"de_light_strength": 20},
            M: {"metallic_threshold": 98, "intensity": 10},
            R: {"texture_scale": 5, "roughness_floor": 10, "intensity": 55, "contrast": 85, "brightness": -5},
            AO: {"ao_radius": 6, "ao_intensity": 80},
            SPEC: {"intensity": 115, "contrast": 105},
        },
    ),
    TexturePreset(
        "skin", "Skin", "Human or animal skin", "soft",
        {
            H: {"intensity": 50, "height_pre_blur": 1.5, "contrast": 85},
            N: {"normal_strength": 1.0, "normal_pre_blur": 1.2},
            D: {"de_light_strength": 50, "intensity": 100},
            M: {"metallic_threshold": 99, "intensity": 5},
            R: {"texture_scale": 5, "roughness_floor": 35, "intensity": 75, "contrast": 95, "brightness": 0},
            AO: {"ao_radius": 6, "ao_intensity": 90},
            SPEC: {"intensity": 95, "contrast": 95},
        },
    ),
]

PRESETS_BY_ID: Dict[str, TexturePreset] = {preset.id: preset for preset in TEXTURE_PRESETS}


def get_preset(preset_id: str) -> TexturePreset:
    try:
        return PRESETS_BY_ID[preset_id.strip().lower()]
    except KeyError:
        raise KeyError(f"Unknown texture preset {preset_id!r}; available: {sorted(PRESETS_BY_ID)}") from None


def presets_by_category() -> Dict[str, List[TexturePreset]]:
    grouped: Dict[str, List[TexturePreset]] = {}
    for preset in TEXTURE_PRESETS:
        grouped.setdefault(preset.category, []).append(preset)
    return grouped


__all__ = ["PRESETS_BY_ID", "TEXTURE_PRESETS", "TexturePreset", "get_preset", "presets_by_category"]
