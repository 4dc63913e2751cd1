"""Tests for map types, parameter coercion and presets."""
from __future__ import annotations

from dataclasses import fields

import pytest

from pbr_pipeline.modules.pbr.parameters import (
    MAP_DEPENDENCIES,
    CommonParams,
    InvalidParameterError,
    MapType,
    RoughnessParams,
    canonical_key,
    default_params,
    dependent_maps,
    merge_params,
    param_specs,
    params_to_dict,
    resolve_params,
)
from pbr_pipeline.modules.pbr.presets import TEXTURE_PRESETS, get_preset, presets_by_category


def test_map_type_parse_accepts_value_and_name() -> None:
    assert MapType.parse("ao") is MapType.AO
    assert MapType.parse("AO") is MapType.AO
    assert MapType.parse(" Normal ") is MapType.NORMAL
    with pytest.raises(ValueError):
        MapType.parse("gloss")


def test_every_map_type_has_display_info() -> None:
    for map_type in MapType:
        assert map_type.label.endswith("Map")
        assert map_type.color.startswith("#")


def test_dependency_graph_is_direct_only() -> None:
    assert set(dependent_maps(MapType.HEIGHT)) == {
        MapType.NORMAL,
        MapType.DISPLACEMENT,
        MapType.CURVATURE,
        MapType.AO,
    }
    assert dependent_maps(MapType.ROUGHNESS) == (MapType.SMOOTHNESS,)
    assert dependent_maps(MapType.SMOOTHNESS) == (MapType.ROUGHNESS,)
    assert dependent_maps(MapType.EDGE) == ()
    assert MapType.NORMAL not in MAP_DEPENDENCIES


def test_canonical_key_translates_camel_case() -> None:
    assert canonical_key("aoRadius") == "ao_radius"
    assert canonical_key("deLightStrength") == "de_light_strength"
    assert canonical_key("intensity") == "intensity"


def test_map_specific_defaults_override_common() -> None:
    assert default_params(MapType.HEIGHT).common.sharpen == 10
    assert default_params(MapType.METALLIC).common.contrast == 115
    assert default_params(MapType.CURVATURE).common.intensity == 120
    assert default_params(MapType.NORMAL).common == CommonParams()


def test_merge_params_clamps_and_returns_new_object() -> None:
    params = default_params(MapType.AO)
    merged = merge_params(params, {"aoRadius": 500, "intensity": -20})
    assert merged is not params
    assert merged.ao_radius == 64
    assert merged.common.intensity == 0
    assert params.ao_radius == 12


def test_int_parameters_snap_to_step() -> None:
    assert resolve_params(MapType.ROUGHNESS, {"texture_scale": 100}).texture_scale == 15
    assert resolve_params(MapType.ROUGHNESS, {"texture_scale": 4}).texture_scale in (3, 5)
    assert resolve_params(MapType.ROUGHNESS, {"texture_scale": "9"}).texture_scale == 9


def test_nested_common_mapping_is_accepted() -> None:
    params = resolve_params(MapType.HEIGHT, {"common": {"invert": "yes", "gamma": 2}})
    assert params.common.invert is True
    assert params.common.gamma == 2.0


def test_invalid_values_raise() -> None:
    with pytest.raises(InvalidParameterError):
        resolve_params(MapType.HEIGHT, {"intensity": "loud"})
    with pytest.raises(InvalidParameterError):
        resolve_params(MapType.HEIGHT, {"intensity": float("nan")})
    with pytest.raises(InvalidParameterError):
        resolve_params(MapType.NORMAL, {"normal_method": "prewitt"})
    with pytest.raises(InvalidParameterError):
        resolve_params(MapType.HEIGHT, {"invert": "maybe"})
    with pytest.raises(InvalidParameterError):
        resolve_params(MapType.HEIGHT, [("intensity", 10)])


def test_unknown_keys_are_ignored() -> None:
    assert resolve_params(MapType.EDGE, {"bogus": 1}) == default_params(MapType.EDGE)


def test_resolve_params_passes_through_matching_instance() -> None:
    params = RoughnessParams()
    assert resolve_params(MapType.ROUGHNESS, params) is params


def test_param_specs_list_specific_controls_first() -> None:
    specs = param_specs(MapType.AO)
    assert [spec.name for spec in specs[:2]] == ["ao_radius", "ao_intensity"]
    assert all(spec.common for spec in specs[2:])
    assert len(specs) == 2 + len(fields(CommonParams))


def test_presets_cover_expected_materials() -> None:
    ids = {preset.id for preset in TEXTURE_PRESETS}
    assert {"stone", "metal", "glass", "wood", "skin"} <= ids
    assert set(presets_by_category()) == {"hard", "reflective", "organic", "soft"}


def test_preset_params_overlay_defaults() -> None:
    metal = get_preset("Metal")
    metallic = metal.params_for(MapType.METALLIC)
    assert metallic.metallic_threshold == 30
    assert metallic.common.intensity == 140
    assert metal.params_for(MapType.EDGE) == default_params(MapType.EDGE)


def test_unknown_preset_raises_key_error() -> None:
    with pytest.raises(KeyError):
        get_preset("lava")


def test_params_to_dict_flattens_common_and_specific_fields() -> None:
    params = resolve_params(MapType.ROUGHNESS, {"textureScale": 9, "intensity": 150})
    flat = params_to_dict(params)
    assert "common" not in flat
    assert flat["texture_scale"] == 9
    assert flat["intensity"] == 150
    assert flat["contrast"] == 110
    assert set(flat) == {f.name for f in fields(CommonParams)} | {"texture_scale", "roughness_floor"}
