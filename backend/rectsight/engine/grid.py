"""Grid and pixel primitives shared by the quantizer, decomposer and mapper.

A grid is an ``(H, W, 4)`` int16 numpy array of RGBA pixels, row-major with the
origin at the top-left. int16 leaves room for sentinels outside [0, 255].
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from typing import Any

import numpy as np
from numpy.typing import NDArray

from rectsight.errors import ShapeError

Pixel = tuple[int, int, int, int]
Grid = NDArray[np.int16]

CHANNELS = 4
GRID_DTYPE = np.int16

# Binary alpha mode collapses every non-opaque pixel onto this color.
TRANSPARENT: Pixel = (0, 0, 0, 0)

# 256 is outside the channel range, so no quantized color can alias it.
BACKGROUND: Pixel = (256, 256, 256, 255)


@dataclass(frozen=True)
class Rectangle:
    """A monochrome block of cells, parametrized from its top-left cell."""

    x: int
    y: int
    width: int
    height: int
    color: Pixel

    @property
    def area(self) -> int:
        return self.width * self.height

    @property
    def is_background(self) -> bool:
        return self.color == BACKGROUND

    def cells(self) -> Iterator[tuple[int, int]]:
        """Yield every ``(x, y)`` cell covered, in raster order."""
        for row in range(self.y, self.y + self.height):
            for col in range(self.x, self.x + self.width):
                yield (col, row)

    def to_dict(self) -> dict[str, Any]:
        return {
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
            "color": list(self.color),
        }


def empty_grid() -> Grid:
    return np.zeros((0, 0, CHANNELS), dtype=GRID_DTYPE)


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (Sequence, np.ndarray)) and not isinstance(value, (str, bytes))


def as_grid(data: Grid | Sequence[Sequence[Sequence[int]]]) -> Grid:
    """Validate ``data`` and return it as an int16 ``(H, W, 4)`` array.

    Accepts a numpy array or nested lists of 4-channel pixels. The result
    is always a fresh array; the input is never aliased.

    Raises:
        ShapeError: rows of different lengths, pixels without exactly four
            channels, non-integer values, or a wrong number of dimensions.
    """
    if isinstance(data, np.ndarray):
        arr = data
        # np.array([]) / np.array([[]]) carry no cells
        if arr.ndim == 1 and arr.size == 0:
            return empty_grid()
        if arr.ndim == 2 and arr.shape[1] == 0:
            return np.zeros((arr.shape[0], 0, CHANNELS), dtype=GRID_DTYPE)
    else:
        if not _is_sequence(data):
            raise ShapeError(f"Malformed grid: {type(data).__name__} is not a sequence of rows")
        rows = list(data)
        if not rows:
            return empty_grid()
        for y, row in enumerate(rows):
            if not _is_sequence(row):
                raise ShapeError(f"Malformed grid: row {y} is {type(row).__name__}, not a sequence")
        widths = {len(row) for row in rows}
        if len(widths) > 1:
            raise ShapeError(f"Jagged grid: row widths {sorted(widths)}")
        width = widths.pop()
        if width == 0:
            return np.zeros((len(rows), 0, CHANNELS), dtype=GRID_DTYPE)
        for y, row in enumerate(rows):
            for x, pixel in enumerate(row):
                if not _is_sequence(pixel):
                    raise ShapeError(
                        f"Malformed grid: pixel at ({x}, {y}) is {type(pixel).__name__}, not a sequence"
                    )
                if len(pixel) != CHANNELS:
                    raise ShapeError(
                        f"Pixel at ({x}, {y}) has {len(pixel)} channels, expected {CHANNELS}"
                    )
        try:
            arr = np.asarray(rows)
        except (TypeError, ValueError) as e:
            raise ShapeError(f"Malformed grid: {e}") from e

    if arr.ndim != 3 or arr.shape[2] != CHANNELS:
        raise ShapeError(f"Expected an (H, W, {CHANNELS}) grid, got shape {arr.shape}")
    if arr.dtype.kind not in "iu":
        if arr.dtype.kind == "f" and np.all(np.mod(arr, 1) == 0):
            arr = arr.astype(np.int64)
        else:
            raise ShapeError(f"Grid values must be integers, got dtype {arr.dtype}")
    if arr.size and (arr.min() < np.iinfo(GRID_DTYPE).min or arr.max() > np.iinfo(GRID_DTYPE).max):
        raise ShapeError("Grid values out of range")
    return np.array(arr, dtype=GRID_DTYPE, copy=True)


def pixel_at(grid: Grid, x: int, y: int) -> Pixel:
    r, g, b, a = (int(v) for v in grid[y, x])
    return (r, g, b, a)


def grid_size(grid: Grid) -> tuple[int, int]:
    """Return ``(width, height)``."""
    return int(grid.shape[1]), int(grid.shape[0])


def paint(rectangles: Sequence[Rectangle], width: int, height: int) -> Grid:
    """Rasterize rectangles back onto a grid, later entries painting over earlier ones.

    Cells no rectangle touches are left as ``-1`` on every channel.
    """
    canvas = np.full((height, width, CHANNELS), -1, dtype=GRID_DTYPE)
    for rect in rectangles:
        canvas[rect.y:rect.y + rect.height, rect.x:rect.x + rect.width] = rect.color
    return canvas
