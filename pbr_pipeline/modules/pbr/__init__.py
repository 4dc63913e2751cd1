"""PBR map generation engine."""
from __future__ import annotations

from .generation import generate_map, generate_maps, generate_preview
from .parameters import MapType, resolve_params
from .raster import Raster
from .scheduler import GenerationEvent, GenerationScheduler
from .state import EngineState, GenerationStatus

__all__ = [
    "EngineState",
    "GenerationEvent",
    "GenerationScheduler",
    "GenerationStatus",
    "MapType",
    "Raster",
    "generate_map",
    "generate_maps",
    "generate_preview",
    "resolve_params",
]
