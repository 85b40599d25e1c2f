"""T1.01 Decompose: greedy rectangle partition of the working grid.

Runs on the quantized grid when T0.01 ran, otherwise on the raw input.
"""

from __future__ import annotations

from rectsight.engine.context import PipelineContext
from rectsight.engine.decomposer import RectangleDecomposer
from rectsight.engine.registry import Layer, transform


@transform(
    id="T1.01",
    layer=Layer.DECOMPOSITION,
    description="Partition the grid into monochrome rectangles",
)
def decompose(ctx: PipelineContext) -> None:
    decomposer = RectangleDecomposer(ctx.config.decomposer)
    ctx.rectangles = decomposer.decompose(ctx.working_grid, progress=ctx.progress_callback)
