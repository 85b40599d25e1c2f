"""Stage registry: every stage is a standalone function registered via decorator.

Usage:
    @transform(id="T2.01", layer=Layer.MAPPING, dependencies=["T1.01"])
    def coordinate_map(ctx: PipelineContext) -> None:
        ctx.records = CoordinateMapper(ctx.config.mapper).map(ctx.rectangles, ctx.height)

Adding a stage = creating one module under engine/stages with the decorator.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from rectsight.engine.context import PipelineContext

logger = logging.getLogger(__name__)


class Layer(enum.IntEnum):
    QUANTIZATION = 0
    DECOMPOSITION = 1
    MAPPING = 2
    RENDERING = 3


@dataclass
class TransformSpec:
    id: str
    layer: Layer
    fn: Callable[["PipelineContext"], None]
    dependencies: list[str] = field(default_factory=list)
    # "optional" stages run only when PipelineConfig enables one of their other tags
    tags: set[str] = field(default_factory=set)
    description: str = ""


class TransformRegistry:
    def __init__(self) -> None:
        self._transforms: dict[str, TransformSpec] = {}

    def register(self, spec: TransformSpec) -> None:
        if spec.id in self._transforms:
            raise ValueError(f"Duplicate transform ID: {spec.id}")
        self._transforms[spec.id] = spec
        logger.debug("Registered stage %s (%s)", spec.id, spec.layer.name)

    def get(self, transform_id: str) -> TransformSpec:
        return self._transforms[transform_id]

    def get_layer(self, layer: Layer) -> list[TransformSpec]:
        return sorted(
            (s for s in self._transforms.values() if s.layer == layer),
            key=lambda s: s.id,
        )

    def all(self) -> list[TransformSpec]:
        return sorted(self._transforms.values(), key=lambda s: (s.layer, s.id))

    def resolve_order(self, requested_ids: set[str] | None = None) -> list[TransformSpec]:
        """Dependency-respecting order, ties broken by (layer, id).

        Requested stages pull in their transitive dependencies. None means all.

        Raises:
            KeyError: a requested stage or one of its dependencies is unknown.
            ValueError: the dependencies form a cycle.
        """
        if requested_ids is None:
            wanted = set(self._transforms)
        else:
            wanted = set()
            stack = list(requested_ids)
            while stack:
                tid = stack.pop()
                if tid in wanted:
                    continue
                if tid not in self._transforms:
                    raise KeyError(f"Unknown stage: {tid}")
                wanted.add(tid)
                stack.extend(self._transforms[tid].dependencies)

        ordered: list[TransformSpec] = []
        done: set[str] = set()
        pending = sorted((self._transforms[t] for t in wanted), key=lambda s: (s.layer, s.id))

        # Repeatedly take the first stage whose in-pool dependencies are done
        while pending:
            for i, spec in enumerate(pending):
                if all(dep in done or dep not in wanted for dep in spec.dependencies):
                    ordered.append(pending.pop(i))
                    done.add(spec.id)
                    break
            else:
                raise ValueError(f"Circular dependency detected among: {sorted(s.id for s in pending)}")

        return ordered

    @property
    def count(self) -> int:
        return len(self._transforms)


_registry = TransformRegistry()


def get_registry() -> TransformRegistry:
    return _registry


def transform(
    *,
    id: str,
    layer: Layer,
    dependencies: list[str] | None = None,
    tags: set[str] | None = None,
    description: str = "",
):
    """Decorator to register a stage function in the module-level registry."""

    def decorator(fn: Callable[["PipelineContext"], None]):
        _registry.register(TransformSpec(
            id=id,
            layer=layer,
            fn=fn,
            dependencies=dependencies or [],
            tags=tags or set(),
            description=description,
        ))
        return fn

    return decorator
