"""Latex inequality expressions for graphing-calculator style renderers.

Each constraint record becomes a filled region
``x_min\\le x\\le x_max\\left\\{y_min\\le y\\le y_max\\right\\}``. Colors can be
shared through a palette of ``c_{n}`` variables so repeated colors are
defined once.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from rectsight.engine.mapper import ConstraintRecord

LINE_OPACITY = "1"
LINE_WIDTH = "2"


def format_number(value: float) -> str:
    """Shortest text for a bound: ``3.0`` -> ``"3"``, ``2.5`` -> ``"2.5"``."""
    text = repr(float(value))
    if text.endswith(".0"):
        text = text[:-2]
    return "0" if text == "-0" else text


def region_latex(record: ConstraintRecord) -> str:
    x_min, x_max = format_number(record.x_min), format_number(record.x_max)
    y_min, y_max = format_number(record.y_min), format_number(record.y_max)
    return (
        f"{x_min}\\le x\\le{x_max}"
        f"\\left\\{{{y_min}\\le y\\le{y_max}\\right\\}}"
    )


class ColorPalette:
    """Assigns each distinct RGB color a ``c_{n}`` variable, in first-seen order."""

    def __init__(self) -> None:
        self._names: dict[tuple[int, int, int], str] = {}

    def __len__(self) -> int:
        return len(self._names)

    def name(self, rgb: tuple[int, int, int]) -> str:
        rgb = (int(rgb[0]), int(rgb[1]), int(rgb[2]))
        if rgb not in self._names:
            self._names[rgb] = f"c_{{{len(self._names) + 1}}}"
        return self._names[rgb]

    def expressions(self, start_id: int = 1) -> list[dict[str, Any]]:
        """Definition expressions, one per color, e.g. ``c_{1}=\\operatorname{rgb}\\left(0,0,0\\right)``."""
        return [
            {
                "type": "expression",
                "id": start_id + i,
                "color": "",
                "latex": f"{name}=\\operatorname{{rgb}}\\left({r},{g},{b}\\right)",
            }
            for i, ((r, g, b), name) in enumerate(self._names.items())
        ]


def to_expressions(
    records: Sequence[ConstraintRecord],
    palette: ColorPalette | None = None,
    start_id: int = 0,
) -> list[dict[str, Any]]:
    """One expression per drawable record, ids counting up from ``start_id``.

    Background-sentinel records are not real colors and are left out, as is
    their color from the palette. Without a palette each expression carries
    its literal ``rgb(r, g, b)`` color.
    """
    result: list[dict[str, Any]] = []
    drawable = [r for r in records if not r.is_background]
    for i, record in enumerate(drawable):
        color = palette.name(record.color[:3]) if palette is not None else record.css_color
        result.append({
            "type": "expression",
            "id": start_id + i,
            "color": color,
            "latex": region_latex(record),
            "fillOpacity": format_number(record.opacity),
            "lineOpacity": LINE_OPACITY,
            "lineWidth": LINE_WIDTH,
        })
    return result
