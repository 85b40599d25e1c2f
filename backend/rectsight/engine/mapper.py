"""CoordinateMapper: raster rectangles to y-up, scaled constraint records.

Raster y grows downward, output y grows upward, so a rectangle at row ``y``
with height ``h`` on a canvas of height ``H`` spans ``[(H - y - h) * s, (H - y) * s]``.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from rectsight.engine.config import MapperConfig
from rectsight.engine.grid import BACKGROUND, Pixel, Rectangle
from rectsight.errors import ConfigError, ShapeError


@dataclass(frozen=True)
class ConstraintRecord:
    x_min: float
    x_max: float
    y_min: float
    y_max: float
    color: Pixel
    opacity: float

    @property
    def is_background(self) -> bool:
        return tuple(self.color) == BACKGROUND

    @property
    def css_color(self) -> str:
        r, g, b, _ = self.color
        return f"rgb({r}, {g}, {b})"

    def to_dict(self) -> dict[str, Any]:
        return {
            "x_min": self.x_min,
            "x_max": self.x_max,
            "y_min": self.y_min,
            "y_max": self.y_max,
            "color": list(self.color),
            "opacity": self.opacity,
        }


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def snap(value: float, scale: float) -> float:
    """Snap to the nearest multiple of ``scale``.

    Divides by ``1 / scale`` rather than multiplying by ``scale`` so that
    e.g. ``3 * 0.1`` comes out as ``0.3``.
    """
    inverse = 1 / scale
    return _round_half_up(value * inverse) / inverse


def opacity_of(alpha: int) -> float:
    """Alpha in [0, 255] to an opacity in [0, 1] with two decimals."""
    return _round_half_up(alpha / 255 * 100) / 100


class CoordinateMapper:
    def __init__(self, config: MapperConfig | None = None) -> None:
        self.config = config or MapperConfig()
        self.config.validate()

    def map(self, rectangles: Sequence[Rectangle], height: int) -> list[ConstraintRecord]:
        """One record per rectangle, in input order.

        Raises:
            ConfigError: negative canvas height.
            ShapeError: a rectangle is empty or extends past the canvas height.
        """
        if height < 0:
            raise ConfigError(f"Canvas height must be non-negative, got {height}")
        for rect in rectangles:
            if rect.width < 1 or rect.height < 1:
                raise ShapeError(f"Degenerate rectangle {rect}")
            if rect.y < 0 or rect.y + rect.height > height:
                raise ShapeError(f"Rectangle {rect} extends past canvas height {height}")

        s = self.config.scale
        records: list[ConstraintRecord] = []
        for rect in rectangles:
            records.append(ConstraintRecord(
                x_min=snap(rect.x * s, s),
                x_max=snap((rect.x + rect.width) * s, s),
                y_min=snap((height - rect.y - rect.height) * s, s),
                y_max=snap((height - rect.y) * s, s),
                color=rect.color,
                opacity=opacity_of(rect.color[3]),
            ))
        return records


def map_rectangles(
    rectangles: Sequence[Rectangle], height: int, scale: float = 0.1,
) -> list[ConstraintRecord]:
    return CoordinateMapper(MapperConfig(scale=scale)).map(rectangles, height)
