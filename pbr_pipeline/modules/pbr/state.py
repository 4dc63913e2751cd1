"""Engine state: the source image plus one record per map type."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from .parameters import MapType, default_params
from .raster import Raster


class GenerationStatus(str, Enum):
    IDLE = "idle"
    PREVIEWING = "previewing"
    REFINING = "refining"
    FAILED = "failed"


@dataclass(frozen=True)
class SourceImage:
    raster: Raster
    file_name: str = ""
    file_size: int = 0

    @property
    def width(self) -> int:
        return self.raster.width

    @property
    def height(self) -> int:
        return self.raster.height


@dataclass
class GeneratedMap:
    """Current parameters and output of one map type.

    ``preview`` is True while *raster* holds a reduced-resolution result
    awaiting refinement; ``generated`` only turns True on a final result.
    """

    map_type: MapType
    params: Any
    raster: Optional[Raster] = None
    preview: bool = False
    generated: bool = False
    generating: bool = False
    enabled: bool = True
    status: GenerationStatus = GenerationStatus.IDLE
    error: Optional[str] = None

    @classmethod
    def fresh(cls, map_type: MapType, *, enabled: bool = True) -> "GeneratedMap":
        return cls(map_type=map_type, params=default_params(map_type), enabled=enabled)

    def reset_output(self) -> None:
        self.raster = None
        self.preview = False
        self.generated = False
        self.generating = False
        self.status = GenerationStatus.IDLE
        self.error = None


def _initial_maps() -> Dict[MapType, GeneratedMap]:
    return {map_type: GeneratedMap.fresh(map_type) for map_type in MapType}


@dataclass
class EngineState:
    source: Optional[SourceImage] = None
    maps: Dict[MapType, GeneratedMap] = field(default_factory=_initial_maps)
    generating: bool = False
    progress: int = 0
    current_map: Optional[MapType] = None

    def __getitem__(self, map_type: MapType | str) -> GeneratedMap:
        return self.maps[MapType.parse(map_type)]

    @property
    def has_source(self) -> bool:
        return self.source is not None

    def enabled_maps(self) -> list[MapType]:
        return [map_type for map_type in MapType if self.maps[map_type].enabled]

    def generated_maps(self) -> Dict[MapType, Raster]:
        """Final rasters keyed by type; previews are excluded."""

        return {
            map_type: record.raster
            for map_type, record in self.maps.items()
            if record.generated and not record.preview and record.raster is not None
        }


__all__ = ["EngineState", "GeneratedMap", "GenerationStatus", "SourceImage"]
