"""T2.01 Coordinate map: flip y, scale and snap every rectangle."""

from __future__ import annotations

from rectsight.engine.context import PipelineContext
from rectsight.engine.mapper import CoordinateMapper
from rectsight.engine.registry import Layer, transform


@transform(
    id="T2.01",
    layer=Layer.MAPPING,
    dependencies=["T1.01"],
    description="Map rectangles to y-up constraint records",
)
def coordinate_map(ctx: PipelineContext) -> None:
    ctx.records = CoordinateMapper(ctx.config.mapper).map(ctx.rectangles, ctx.height)
