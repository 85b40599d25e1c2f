"""T3.02 SVG preview of the rectangle partition."""

from __future__ import annotations

from rectsight.engine.context import PipelineContext
from rectsight.engine.registry import Layer, transform
from rectsight.render.svg import rectangles_to_svg


@transform(
    id="T3.02",
    layer=Layer.RENDERING,
    dependencies=["T1.01"],
    tags={"optional", "svg"},
    description="Render the partition as SVG",
)
def svg_preview(ctx: PipelineContext) -> None:
    ctx.svg = rectangles_to_svg(ctx.rectangles, ctx.width, ctx.height)
