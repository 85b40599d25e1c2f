"""T0.01 Quantize: snap channels to the configured step and apply the alpha mode."""

from __future__ import annotations

from rectsight.engine.context import PipelineContext
from rectsight.engine.quantizer import PixelQuantizer
from rectsight.engine.registry import Layer, transform


@transform(
    id="T0.01",
    layer=Layer.QUANTIZATION,
    tags={"optional", "quantize"},
    description="Quantize pixel channels",
)
def quantize(ctx: PipelineContext) -> None:
    ctx.quantized = PixelQuantizer(ctx.config.quantizer).quantize(ctx.grid)
