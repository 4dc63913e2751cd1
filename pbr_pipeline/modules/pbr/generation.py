"""Map synthesizer registry plus full-resolution and preview generation."""
from __future__ import annotations

import importlib
import logging
from typing import Any, Callable, Dict, Mapping

from ...core.config import GENERATION_CONFIG, PREVIEW_THRESHOLD
from ...core.utils_image import downscale, preview_factor, upscale
from .parameters import MapType, resolve_params
from .raster import Raster

LOGGER = logging.getLogger("pbr_pipeline.pbr.generation")

Synthesizer = Callable[[Raster, Any], Raster]


def _load_generators(module_paths: Mapping[str, str]) -> Dict[MapType, Synthesizer]:
    generators: Dict[MapType, Synthesizer] = {}
    for key, module_path in module_paths.items():
        module = importlib.import_module(module_path)
        generators[MapType.parse(key)] = getattr(module, "generate")
    missing = set(MapType) - set(generators)
    if missing:
        raise RuntimeError(f"No synthesizer registered for: {sorted(m.value for m in missing)}")
    return generators


# Populated on first lookup.
MAP_GENERATORS: Dict[MapType, Synthesizer] = {}


def synthesizer_for(map_type: MapType | str) -> Synthesizer:
    if not MAP_GENERATORS:
        MAP_GENERATORS.update(_load_generators(GENERATION_CONFIG["generator_modules"]))  # type: ignore[arg-type]
    return MAP_GENERATORS[MapType.parse(map_type)]


def generate_map(map_type: MapType | str, source: Raster, params: Any = None) -> Raster:
    """Synthesize *map_type* from *source* at full resolution.

    The result always has the source dimensions and is never the source
    object itself.
    """

    map_type = MapType.parse(map_type)
    resolved = resolve_params(map_type, params)
    LOGGER.debug("Generating %s map at %dx%d", map_type.value, source.width, source.height)
    result = synthesizer_for(map_type)(source, resolved)
    if result.size != source.size:
        raise RuntimeError(
            f"{map_type.value} synthesizer returned {result.size}, expected {source.size}"
        )
    return result


def needs_preview(source: Raster, threshold: int = PREVIEW_THRESHOLD) -> bool:
    return max(source.width, source.height) > threshold


def generate_preview(
    map_type: MapType | str,
    source: Raster,
    params: Any = None,
    *,
    threshold: int = PREVIEW_THRESHOLD,
    synthesize: Callable[..., Raster] | None = None,
) -> Raster:
    """Synthesize at reduced resolution and scale back up to the source size.

    Sources that already fit within *threshold* are generated directly.
    """

    synthesize = synthesize or generate_map
    factor = preview_factor(source.width, source.height, threshold)
    if factor <= 1:
        return synthesize(map_type, source, params)
    small = Raster.from_image(downscale(source.to_image(), factor))
    LOGGER.debug("Preview of %s at 1/%d scale (%dx%d)", MapType.parse(map_type).value, factor, small.width, small.height)
    preview = synthesize(map_type, small, params)
    return Raster.from_image(upscale(preview.to_image(), source.width, source.height))


def generate_maps(source: Raster, params_by_type: Mapping[MapType, Any] | None = None, types=None) -> Dict[MapType, Raster]:
    """Generate several maps sequentially, keyed by map type."""

    params_by_type = params_by_type or {}
    selected = [MapType.parse(t) for t in types] if types is not None else list(MapType)
    return {map_type: generate_map(map_type, source, params_by_type.get(map_type)) for map_type in selected}


__all__ = ["MAP_GENERATORS", "synthesizer_for", "generate_map", "generate_maps", "generate_preview", "needs_preview"]
