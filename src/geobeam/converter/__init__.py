"""Generation pipeline from OSM and elevation data to BeamNG mods."""

from .pipeline import (
    GenerationPipeline,
    GenerationProgress,
    GenerationResult,
    ProgressCallback,
    generate_map,
)

__all__ = [
    "GenerationPipeline",
    "GenerationProgress",
    "GenerationResult",
    "ProgressCallback",
    "generate_map",
]
