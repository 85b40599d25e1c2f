"""PipelineContext: the single mutable state object flowing through all stages.

Quantization fills ``quantized``, decomposition fills ``rectangles``, mapping
fills ``records``; rendering stages add ``expressions`` and ``svg``.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import numpy as np

from rectsight.engine.config import PipelineConfig
from rectsight.engine.grid import Grid, Rectangle, empty_grid, grid_size
from rectsight.engine.mapper import ConstraintRecord


@dataclass
class PipelineContext:
    """Shared state flowing through the entire pipeline."""

    # Input grid, (H, W, 4) int16
    grid: Grid = field(default_factory=empty_grid)
    config: PipelineConfig = field(default_factory=PipelineConfig)

    # --- Stage outputs ---
    quantized: Grid | None = None
    rectangles: list[Rectangle] = field(default_factory=list)
    records: list[ConstraintRecord] = field(default_factory=list)
    expressions: list[dict[str, Any]] = field(default_factory=list)
    svg: str = ""

    # --- Pipeline metadata ---
    completed_transforms: set[str] = field(default_factory=set)
    errors: dict[str, str] = field(default_factory=dict)
    timings_ms: dict[str, float] = field(default_factory=dict)
    # Set by Pipeline.run_streaming() while a stage runs; receives a 0-1 fraction
    progress_callback: Callable[[float], None] | None = None

    @property
    def width(self) -> int:
        return grid_size(self.grid)[0]

    @property
    def height(self) -> int:
        return grid_size(self.grid)[1]

    @property
    def working_grid(self) -> Grid:
        """The quantized grid if quantization ran, else the raw input."""
        return self.quantized if self.quantized is not None else self.grid

    @property
    def num_rectangles(self) -> int:
        return len(self.rectangles)

    @property
    def compression_ratio(self) -> float:
        """Cells per emitted rectangle; 0 for an empty grid."""
        if not self.rectangles:
            return 0.0
        return float(np.prod(self.grid.shape[:2])) / len(self.rectangles)
