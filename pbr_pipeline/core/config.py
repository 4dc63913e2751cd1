"""Configuration module for the PBR map generation engine."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Mapping, MutableMapping, Optional


BASE_DIR = Path(__file__).resolve().parent.parent

PATH_OUTPUT = BASE_DIR / "generated_maps"

PREVIEW_THRESHOLD = 512
REFINE_DELAY = 0.05
CASCADE_DELAY = 0.2
MAX_SOURCE_DIM = 2048
PALETTE_SAMPLE_SIZE = 10000
KMEANS_ITERATIONS = 10


GENERATION_CONFIG: Dict[str, object] = {
    "generation_module": "pbr_pipeline.modules.pbr.generation",
    "total_pbr_maps": 13,
    "generator_modules": {
        "height": "pbr_pipeline.modules.geometry_maps.height_map",
        "normal": "pbr_pipeline.modules.geometry_maps.normal_map",
        "diffuse": "pbr_pipeline.modules.surface_maps.diffuse_map",
        "metallic": "pbr_pipeline.modules.surface_maps.metallic_map",
        "smoothness": "pbr_pipeline.modules.surface_maps.smoothness_map",
        "ao": "pbr_pipeline.modules.geometry_maps.ambient_occlusion",
        "edge": "pbr_pipeline.modules.geometry_maps.edge_map",
        "roughness": "pbr_pipeline.modules.surface_maps.roughness_map",
        "displacement": "pbr_pipeline.modules.geometry_maps.displacement_map",
        "specular": "pbr_pipeline.modules.surface_maps.specular_map",
        "emissive": "pbr_pipeline.modules.optical_maps.emissive_map",
        "opacity": "pbr_pipeline.modules.optical_maps.opacity_map",
        "curvature": "pbr_pipeline.modules.geometry_maps.curvature_map",
    },
}


@dataclass
class EngineConfig:
    """Runtime configuration for the generation engine."""

    preview_threshold: int = PREVIEW_THRESHOLD
    refine_delay: float = REFINE_DELAY
    cascade_delay: float = CASCADE_DELAY
    max_source_dim: int = MAX_SOURCE_DIM
    palette_sample_size: int = PALETTE_SAMPLE_SIZE
    kmeans_iterations: int = KMEANS_ITERATIONS
    output_path: Path = PATH_OUTPUT
    log_file: Path = BASE_DIR / "generation.log"
    generation: Dict[str, object] = field(default_factory=lambda: dict(GENERATION_CONFIG))

    def as_dict(self) -> Dict[str, object]:
        """Return the configuration as a plain dictionary."""

        return {
            "PREVIEW_THRESHOLD": self.preview_threshold,
            "REFINE_DELAY": self.refine_delay,
            "CASCADE_DELAY": self.cascade_delay,
            "MAX_SOURCE_DIM": self.max_source_dim,
            "PALETTE_SAMPLE_SIZE": self.palette_sample_size,
            "KMEANS_ITERATIONS": self.kmeans_iterations,
            "PATH_OUTPUT": self.output_path,
            "LOG_FILE": self.log_file,
            "GENERATION": self.generation,
        }

    @classmethod
    def from_dict(cls, values: Mapping[str, object]) -> "EngineConfig":
        """Build a config from a dictionary produced by :func:`build_config`."""

        defaults = cls()
        return cls(
            preview_threshold=int(values.get("PREVIEW_THRESHOLD", defaults.preview_threshold)),
            refine_delay=float(values.get("REFINE_DELAY", defaults.refine_delay)),
            cascade_delay=float(values.get("CASCADE_DELAY", defaults.cascade_delay)),
            max_source_dim=int(values.get("MAX_SOURCE_DIM", defaults.max_source_dim)),
            palette_sample_size=int(values.get("PALETTE_SAMPLE_SIZE", defaults.palette_sample_size)),
            kmeans_iterations=int(values.get("KMEANS_ITERATIONS", defaults.kmeans_iterations)),
            output_path=Path(values.get("PATH_OUTPUT", defaults.output_path)),
            log_file=Path(values.get("LOG_FILE", defaults.log_file)),
            generation=dict(values.get("GENERATION", defaults.generation)),  # type: ignore[arg-type]
        )


def build_config(overrides: Optional[Mapping[str, object]] = None) -> Dict[str, object]:
    """Create a configuration dictionary with optional overrides."""

    config = EngineConfig()
    if overrides:
        mutable: MutableMapping[str, object] = config.as_dict()
        for key, value in overrides.items():
            if key in mutable:
                mutable[key] = value
        return dict(mutable)
    return config.as_dict()
