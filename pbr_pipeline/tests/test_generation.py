"""Tests for the thirteen map synthesizers and the generation registry."""
from __future__ import annotations

import pytest

pytest.importorskip("numpy")
pytest.importorskip("scipy")
pytest.importorskip("PIL")
import numpy as np

from pbr_pipeline.modules.geometry_maps import ambient_occlusion, normal_map
from pbr_pipeline.modules.pbr.generation import generate_map, generate_preview, synthesizer_for
from pbr_pipeline.modules.pbr.parameters import MapType
from pbr_pipeline.modules.pbr.raster import Raster


@pytest.fixture(scope="module")
def bumpy_raster() -> Raster:
    yy, xx = np.mgrid[0:48, 0:48].astype(np.float32)
    gray = 128 + 60 * np.sin(xx / 4.0) * np.cos(yy / 5.0)
    gray[20:28, 20:28] = 20.0
    return Raster.from_rgb(np.dstack([gray, gray * 0.9, gray * 0.7]))


@pytest.fixture(scope="module")
def flat_raster() -> Raster:
    return Raster.blank(64, 64, 128)


@pytest.mark.parametrize("map_type", list(MapType))
def test_every_map_matches_source_size_and_is_opaque(map_type: MapType, bumpy_raster: Raster) -> None:
    result = generate_map(map_type, bumpy_raster)
    assert result.size == bumpy_raster.size
    assert result is not bumpy_raster
    assert np.all(result.pixels[..., 3] == 255)


def test_registry_covers_every_map_type() -> None:
    for map_type in MapType:
        assert callable(synthesizer_for(map_type))


def test_normals_have_unit_length(bumpy_raster: Raster) -> None:
    vectors = normal_map.decode_normals(generate_map(MapType.NORMAL, bumpy_raster, {"normal_strength": 4}))
    lengths = np.linalg.norm(vectors, axis=-1)
    np.testing.assert_allclose(lengths, 1.0, atol=0.03)


def test_flat_source_gives_straight_up_normals(flat_raster: Raster) -> None:
    pixels = generate_map(MapType.NORMAL, flat_raster).pixels
    assert np.all(pixels[..., 0] == 128)
    assert np.all(pixels[..., 1] == 128)
    assert np.all(pixels[..., 2] == 255)


def test_directx_convention_flips_green(bumpy_raster: Raster) -> None:
    gl = generate_map(MapType.NORMAL, bumpy_raster, {"normal_convention": "opengl"}).pixels
    dx = generate_map(MapType.NORMAL, bumpy_raster, {"normal_convention": "directx"}).pixels
    np.testing.assert_array_equal(dx[..., 1], 255 - gl[..., 1])
    np.testing.assert_array_equal(dx[..., 0], gl[..., 0])


def test_scharr_method_still_produces_unit_normals(bumpy_raster: Raster) -> None:
    vectors = normal_map.decode_normals(generate_map(MapType.NORMAL, bumpy_raster, {"normalMethod": "scharr"}))
    np.testing.assert_allclose(np.linalg.norm(vectors, axis=-1), 1.0, atol=0.03)


def test_flat_source_has_no_occlusion(flat_raster: Raster) -> None:
    assert np.all(generate_map(MapType.AO, flat_raster).pixels[..., 0] == 255)


def test_ao_never_brightens_with_more_intensity(bumpy_raster: Raster) -> None:
    previous = None
    for intensity in (0, 50, 150, 300):
        current = generate_map(MapType.AO, bumpy_raster, {"ao_intensity": intensity}).pixels[..., 0].astype(int)
        if previous is not None:
            assert np.all(current <= previous + 1)
        previous = current
    assert previous.min() < 255


def test_ao_darkens_the_pit(bumpy_raster: Raster) -> None:
    ao = generate_map(MapType.AO, bumpy_raster).pixels[..., 0].astype(float)
    assert ao[22:26, 22:26].mean() < ao.mean()


def test_occlusion_skips_samples_outside_the_image() -> None:
    height = np.zeros((4, 4), dtype=np.float32)
    height[0, 0] = 255.0
    occlusion = ambient_occlusion.occlusion_at_scale(height, 10.0)
    assert np.all(occlusion == 0)


def test_height_spans_full_range(bumpy_raster: Raster) -> None:
    height = generate_map(MapType.HEIGHT, bumpy_raster, {"sharpen": 0}).pixels[..., 0]
    assert height.min() == 0
    assert height.max() == 255


def test_curvature_of_flat_source_is_mid_grey(flat_raster: Raster) -> None:
    curvature = generate_map(MapType.CURVATURE, flat_raster, {"intensity": 100}).pixels[..., 0]
    assert np.all(curvature == 128)


def test_roughness_floor_is_respected(bumpy_raster: Raster) -> None:
    roughness = generate_map(MapType.ROUGHNESS, bumpy_raster, {"roughness_floor": 40, "contrast": 100}).pixels[..., 0]
    assert roughness.min() >= int(0.4 * 255) - 1


def test_smoothness_is_inverse_of_irregularity(bumpy_raster: Raster) -> None:
    neutral = {"contrast": 100}
    smooth = generate_map(MapType.SMOOTHNESS, bumpy_raster, neutral).pixels[..., 0].astype(int)
    rough = generate_map(MapType.ROUGHNESS, bumpy_raster, {**neutral, "roughness_floor": 0}).pixels[..., 0].astype(int)
    assert np.all(np.abs(smooth + rough - 255) <= 1)


def test_metallic_threshold_at_maximum_gives_black(bumpy_raster: Raster) -> None:
    metallic = generate_map(MapType.METALLIC, bumpy_raster, {"metallic_threshold": 100, "contrast": 100})
    assert np.all(metallic.pixels[..., 0] == 0)


def test_emissive_ignores_grey_pixels() -> None:
    emissive = generate_map(MapType.EMISSIVE, Raster.blank(8, 8, 250))
    assert np.all(emissive.pixels[..., :3] == 0)


def test_emissive_keeps_bright_saturated_colour() -> None:
    pixels = np.zeros((4, 4, 4), dtype=np.uint8)
    pixels[...] = (255, 255, 40, 255)
    emissive = generate_map(MapType.EMISSIVE, Raster(pixels), {"emissive_threshold": 50})
    assert emissive.pixels[..., 0].min() > 0


def test_opacity_uses_source_alpha_when_translucent() -> None:
    pixels = np.full((4, 4, 4), 200, dtype=np.uint8)
    pixels[..., 3] = 255
    pixels[0, 0, 3] = 0
    pixels[1, 1, 3] = 100
    opacity = generate_map(MapType.OPACITY, Raster(pixels), {"contrast": 100}).pixels[..., 0]
    assert opacity[0, 0] == 0
    assert opacity[1, 1] == 100
    assert opacity[3, 3] == 255


def test_edge_map_is_binary(bumpy_raster: Raster) -> None:
    values = np.unique(generate_map(MapType.EDGE, bumpy_raster).pixels[..., 0])
    assert set(values.tolist()).issubset({0, 255})


def test_diffuse_without_delighting_keeps_colours(bumpy_raster: Raster) -> None:
    diffuse = generate_map(MapType.DIFFUSE, bumpy_raster, {"de_light_strength": 0})
    np.testing.assert_array_equal(diffuse.pixels[..., :3], bumpy_raster.pixels[..., :3])


def test_specular_dielectric_floor_for_dark_source() -> None:
    specular = generate_map(MapType.SPECULAR, Raster.blank(4, 4, 30), {"intensity": 100, "contrast": 100})
    assert np.all(specular.pixels[..., :3] == 10)


def test_preview_is_upscaled_to_source_size() -> None:
    source = Raster.from_rgb(np.random.default_rng(2).uniform(0, 255, (20, 600, 3)))
    preview = generate_preview(MapType.HEIGHT, source)
    assert preview.size == source.size


def test_unknown_map_type_is_rejected(bumpy_raster: Raster) -> None:
    with pytest.raises(ValueError):
        generate_map("glossiness", bumpy_raster)


def test_edge_map_traces_every_checkerboard_boundary() -> None:
    size, cell = 64, 8
    yy, xx = np.mgrid[0:size, 0:size]
    board = Raster.from_gray(np.where(((yy // cell) + (xx // cell)) % 2 == 0, 255.0, 0.0))
    edges = generate_map(MapType.EDGE, board).pixels[..., 0] > 0

    for boundary in range(cell, size, cell):
        band = slice(boundary - 2, boundary + 2)
        for start in range(0, size, cell):
            inner = slice(start + 2, start + cell - 2)
            assert edges[inner, band].any(), f"vertical boundary x={boundary} rows {start}-{start + cell}"
            assert edges[band, inner].any(), f"horizontal boundary y={boundary} cols {start}-{start + cell}"

    ys, xs = np.nonzero(edges)
    dist_x = np.minimum(xs % cell, cell - xs % cell)
    dist_y = np.minimum(ys % cell, cell - ys % cell)
    assert np.all((dist_x <= 2) | (dist_y <= 2))


def test_renormalize_normal_map_restores_unit_length() -> None:
    rng = np.random.default_rng(5)
    pixels = rng.integers(0, 256, size=(12, 12, 4), dtype=np.uint8)
    pixels[..., 3] = 255
    fixed = normal_map.renormalize_normal_map(Raster(pixels))
    lengths = np.linalg.norm(normal_map.decode_normals(fixed), axis=-1)
    np.testing.assert_allclose(lengths, 1.0, atol=0.02)


def test_renormalize_keeps_straight_up_normal() -> None:
    flat = Raster.from_rgb(np.tile(np.array([128.0, 128.0, 255.0]), (4, 4, 1)))
    np.testing.assert_array_equal(normal_map.renormalize_normal_map(flat).pixels, flat.pixels)
