"""RectSight rectangle decomposition engine."""

from rectsight.engine.config import (
    AlphaMode,
    DecomposerConfig,
    MapperConfig,
    PipelineConfig,
    QuantizerConfig,
)
from rectsight.engine.context import PipelineContext
from rectsight.engine.decomposer import RectangleDecomposer, decompose
from rectsight.engine.grid import BACKGROUND, TRANSPARENT, Rectangle, as_grid
from rectsight.engine.mapper import ConstraintRecord, CoordinateMapper, map_rectangles
from rectsight.engine.pipeline import Pipeline, create_pipeline
from rectsight.engine.quantizer import PixelQuantizer, quantize
from rectsight.engine.registry import Layer, get_registry, transform

__all__ = [
    "AlphaMode",
    "BACKGROUND",
    "ConstraintRecord",
    "CoordinateMapper",
    "DecomposerConfig",
    "Layer",
    "MapperConfig",
    "Pipeline",
    "PipelineConfig",
    "PipelineContext",
    "PixelQuantizer",
    "QuantizerConfig",
    "Rectangle",
    "RectangleDecomposer",
    "TRANSPARENT",
    "as_grid",
    "create_pipeline",
    "decompose",
    "get_registry",
    "map_rectangles",
    "quantize",
    "transform",
]
