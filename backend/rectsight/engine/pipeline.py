"""Pipeline orchestrator: runs stages in dependency order with config gating."""

from __future__ import annotations

import logging
import time
from collections.abc import Generator
from typing import Any

from rectsight.engine.config import PipelineConfig
from rectsight.engine.context import PipelineContext
from rectsight.engine.registry import TransformRegistry, TransformSpec, get_registry
from rectsight.engine.stages import register_stages

logger = logging.getLogger(__name__)


class Pipeline:
    """Orchestrates quantize -> decompose -> map (-> render).

    Unlike a best-effort analysis pipeline, every stage here feeds the next,
    so the first failure is recorded on the context and re-raised.
    """

    def __init__(
        self,
        registry: TransformRegistry | None = None,
        config: PipelineConfig | None = None,
    ) -> None:
        if registry is None:
            register_stages()
            registry = get_registry()
        self.registry = registry
        self.config = config

    def _prepare(self, ctx: PipelineContext) -> list[TransformSpec]:
        if self.config is not None:
            ctx.config = self.config
        ctx.config.validate()
        skip_ids = self._adaptive_gate(ctx)
        return [s for s in self.registry.resolve_order() if s.id not in skip_ids]

    def run(self, ctx: PipelineContext) -> PipelineContext:
        """Run every enabled stage on ``ctx``; errors propagate after being recorded."""
        start = time.perf_counter()
        ordered = self._prepare(ctx)
        logger.info("Pipeline: %d stages queued for %dx%d grid", len(ordered), ctx.width, ctx.height)

        for spec in ordered:
            self._run_stage(spec, ctx)

        logger.info(
            "Pipeline complete: %d rectangles from %d cells in %.0fms",
            ctx.num_rectangles,
            ctx.width * ctx.height,
            (time.perf_counter() - start) * 1000,
        )
        return ctx

    def _run_stage(self, spec: TransformSpec, ctx: PipelineContext) -> None:
        t0 = time.perf_counter()
        try:
            spec.fn(ctx)
        except Exception as e:
            ctx.errors[spec.id] = str(e)
            logger.warning("  %s FAILED: %s", spec.id, e)
            raise
        ctx.completed_transforms.add(spec.id)
        ctx.timings_ms[spec.id] = round((time.perf_counter() - t0) * 1000, 1)
        logger.debug("  %s completed in %.1fms", spec.id, ctx.timings_ms[spec.id])

    def run_streaming(self, ctx: PipelineContext) -> Generator[dict[str, Any], None, None]:
        """Run the pipeline, yielding a progress dict before and after each stage.

        Row progress reported by the decomposer is yielded as ``sub_progress``
        events once its stage finishes. On failure an ``error`` event is yielded
        and the generator stops; ``ctx.errors`` holds the message.
        """
        ordered = self._prepare(ctx)
        total = len(ordered)

        for i, spec in enumerate(ordered):
            base = {
                "transform_id": spec.id,
                "description": spec.description,
                "layer": spec.layer.name,
                "index": i,
                "total": total,
            }
            yield {**base, "elapsed_ms": 0.0, "status": "running", "error": ""}

            sub_events: list[dict[str, Any]] = []

            def _on_sub_progress(pct: float, _base=base) -> None:
                sub_events.append({
                    **_base, "elapsed_ms": 0.0, "status": "running", "error": "",
                    "sub_progress": round(pct, 2),
                })

            ctx.progress_callback = _on_sub_progress
            error = ""
            try:
                self._run_stage(spec, ctx)
            except Exception as e:
                error = str(e)
            finally:
                ctx.progress_callback = None

            yield from sub_events
            yield {
                **base,
                "elapsed_ms": ctx.timings_ms.get(spec.id, 0.0),
                "status": "error" if error else "ok",
                "error": error,
            }
            if error:
                return

    def _adaptive_gate(self, ctx: PipelineContext) -> set[str]:
        """IDs of "optional" stages whose feature tags the PipelineConfig leaves off."""
        cfg = ctx.config
        enabled = {
            "quantize": cfg.quantize,
            "expressions": cfg.render_expressions,
            "svg": cfg.render_svg,
        }
        return {
            spec.id
            for spec in self.registry.all()
            if "optional" in spec.tags and not any(enabled.get(tag, False) for tag in spec.tags)
        }


def create_pipeline(config: PipelineConfig | None = None) -> Pipeline:
    """Factory function for creating a pipeline instance."""
    return Pipeline(config=config)
