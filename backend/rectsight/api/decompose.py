"""POST /api/decompose: grid or image in, rectangles and constraint records out."""

from __future__ import annotations

import asyncio
import json
import time
from collections.abc import AsyncGenerator

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from rectsight.config import Settings
from rectsight.dependencies import get_settings
from rectsight.engine.config import (
    AlphaMode,
    DecomposerConfig,
    MapperConfig,
    PipelineConfig,
    QuantizerConfig,
)
from rectsight.engine.context import PipelineContext
from rectsight.engine.grid import as_grid
from rectsight.engine.pipeline import create_pipeline
from rectsight.models.requests import DecomposeRequest
from rectsight.models.responses import DecomposeResponse, ErrorResponse, RecordModel, RectangleModel
from rectsight.utils.image_io import decode_data_url, load_grid

router = APIRouter()

_SENTINEL = object()  # marks end of queue


def build_config(req: DecomposeRequest, settings: Settings) -> PipelineConfig:
    """Request overrides on top of the environment defaults."""
    mode = req.alpha_mode or AlphaMode(settings.alpha_mode)
    exclude = req.exclude_background
    if exclude is None:
        exclude = mode is AlphaMode.BACKGROUND
    return PipelineConfig(
        quantize=req.quantize,
        quantizer=QuantizerConfig(
            step=req.step if req.step is not None else settings.quantize_step,
            alpha_mode=mode,
            alpha_threshold=req.alpha_threshold,
        ),
        decomposer=DecomposerConfig(
            exclude_background=exclude,
            max_width=settings.max_grid_side,
            max_height=settings.max_grid_side,
        ),
        mapper=MapperConfig(scale=req.scale if req.scale is not None else settings.scale),
        render_expressions=req.expressions,
        render_svg=req.svg,
    )


def build_context(req: DecomposeRequest, settings: Settings) -> PipelineContext:
    if req.image is not None:
        size = req.image_size or settings.image_size
        grid = load_grid(decode_data_url(req.image), size=size)
    else:
        grid = as_grid(req.grid)
    return PipelineContext(grid=grid, config=build_config(req, settings))


def to_response(ctx: PipelineContext, elapsed_ms: float) -> DecomposeResponse:
    return DecomposeResponse(
        width=ctx.width,
        height=ctx.height,
        rectangles=[RectangleModel(**r.to_dict()) for r in ctx.rectangles],
        records=[RecordModel(**r.to_dict()) for r in ctx.records],
        expressions=ctx.expressions,
        svg=ctx.svg,
        processing_time_ms=round(elapsed_ms, 1),
        timings_ms=ctx.timings_ms,
    )


@router.post(
    "/decompose",
    response_model=DecomposeResponse,
    responses={413: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def decompose(
    req: DecomposeRequest, settings: Settings = Depends(get_settings),
) -> DecomposeResponse:
    start = time.perf_counter()
    ctx = build_context(req, settings)
    # CPU-bound; keep the event loop free
    ctx = await asyncio.to_thread(create_pipeline().run, ctx)
    return to_response(ctx, (time.perf_counter() - start) * 1000)


async def _stream_decompose(ctx: PipelineContext) -> AsyncGenerator[str, None]:
    """Drive pipeline.run_streaming() in a thread, yielding SSE events as they arrive."""
    start = time.perf_counter()
    pipeline = create_pipeline()
    loop = asyncio.get_running_loop()
    queue: asyncio.Queue = asyncio.Queue()

    def _run_pipeline() -> None:
        try:
            for progress in pipeline.run_streaming(ctx):
                loop.call_soon_threadsafe(queue.put_nowait, progress)
        except Exception as e:
            loop.call_soon_threadsafe(queue.put_nowait, {"status": "error", "error": str(e)})
        finally:
            loop.call_soon_threadsafe(queue.put_nowait, _SENTINEL)

    loop.run_in_executor(None, _run_pipeline)

    errors: list[str] = []
    while True:
        item = await queue.get()
        if item is _SENTINEL:
            break
        if item.get("status") == "error":
            errors.append(item["error"])
        yield f"event: progress\ndata: {json.dumps(item)}\n\n"

    if errors:
        data = json.dumps({"type": "error", "message": "; ".join(errors)})
        yield f"event: error\ndata: {data}\n\n"
        return

    response = to_response(ctx, (time.perf_counter() - start) * 1000)
    yield f"event: result\ndata: {response.model_dump_json()}\n\n"
    yield f"event: done\ndata: {json.dumps({'type': 'done'})}\n\n"


@router.post("/decompose/stream")
async def decompose_stream(
    req: DecomposeRequest, settings: Settings = Depends(get_settings),
) -> StreamingResponse:
    ctx = build_context(req, settings)
    ctx.config.validate()
    return StreamingResponse(
        _stream_decompose(ctx),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )
