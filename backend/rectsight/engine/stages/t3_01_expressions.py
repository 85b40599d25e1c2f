"""T3.01 Expressions: palette definitions followed by one region per record."""

from __future__ import annotations

from rectsight.engine.context import PipelineContext
from rectsight.engine.registry import Layer, transform
from rectsight.render.expressions import ColorPalette, to_expressions


@transform(
    id="T3.01",
    layer=Layer.RENDERING,
    dependencies=["T2.01"],
    tags={"optional", "expressions"},
    description="Render constraint records as latex expressions",
)
def expressions(ctx: PipelineContext) -> None:
    palette = ColorPalette()
    regions = to_expressions(ctx.records, palette)
    definitions = palette.expressions(start_id=1)
    # Region ids follow the color definitions
    for i, expr in enumerate(regions):
        expr["id"] = len(definitions) + 1 + i
    ctx.expressions = definitions + regions
