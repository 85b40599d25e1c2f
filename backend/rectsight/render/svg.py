"""Write an SVG preview of a rectangle partition."""

from __future__ import annotations

from collections.abc import Sequence

from rectsight.engine.grid import Rectangle


def _rect_element(rect: Rectangle) -> str:
    r, g, b, a = rect.color
    attrs = (
        f'x="{rect.x}" y="{rect.y}" width="{rect.width}" height="{rect.height}"'
        f' fill="#{r:02x}{g:02x}{b:02x}"'
    )
    if a < 255:
        attrs += f' fill-opacity="{round(a / 255, 3)}"'
    return f"  <rect {attrs} />"


def rectangles_to_svg(
    rectangles: Sequence[Rectangle],
    width: int,
    height: int,
    title: str = "",
) -> str:
    """Render rectangles in raster coordinates, one ``<rect>`` each, in order.

    Background-sentinel rectangles are left out so the canvas shows through.
    ``shape-rendering="crispEdges"`` keeps adjacent cells from showing seams.
    """
    lines = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        f'<svg viewBox="0 0 {width} {height}" width="{width}" height="{height}"'
        ' xmlns="http://www.w3.org/2000/svg" shape-rendering="crispEdges">',
    ]
    if title:
        lines.append(f"  <title>{title}</title>")

    for rect in rectangles:
        if rect.is_background:
            continue
        if rect.color[3] == 0:
            continue
        lines.append(_rect_element(rect))

    lines.append("</svg>")
    return "\n".join(lines)
