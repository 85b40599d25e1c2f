"""RectangleDecomposer: greedy partition of a quantized grid into monochrome rectangles.

Algorithm (maximal-square-then-widen), applied at every unconsumed cell in
raster order:

1. Seed width: the run of cells equal to the seed color along the seed row.
2. Vertical extent: how many consecutive rows, starting at the seed row,
   match the seed color across the whole seed width.
3. Width refinement: the per-row runs over that vertical extent; the
   rectangle takes the minimum, so it is valid on every row it spans.
   The seed row is part of the extent, so the result never exceeds the seed.
4. Emit, mark every covered cell consumed, and jump the cursor past it.

Consumed cells live in a boolean occupancy array next to the colors and
never compare equal to anything, so the emitted rectangles cover every cell
exactly once.

Complexity is O(W²·H²) on adversarial grids (each seed may probe the rest
of the grid), which is why grid sides are bounded by ``DecomposerConfig``.
The result is a heuristic, not a minimum rectangle cover.
"""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from collections.abc import Callable

import numpy as np
from numpy.typing import NDArray

from rectsight.engine.config import DecomposerConfig
from rectsight.engine.grid import Grid, Pixel, Rectangle, as_grid, grid_size, pixel_at
from rectsight.errors import DecompositionCancelled, ResourceLimitError

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]


def _leading_run(mask: NDArray[np.bool_]) -> int:
    """Length of the leading run of True values in a 1-D mask."""
    misses = np.flatnonzero(~mask)
    return int(misses[0]) if misses.size else int(mask.size)


class _Scan:
    """Working state of one decomposition call. Never shared between calls."""

    def __init__(self, grid: Grid, config: DecomposerConfig) -> None:
        self.grid = grid
        self.config = config
        self.width, self.height = grid_size(grid)
        self.consumed = np.zeros((self.height, self.width), dtype=bool)
        self.rectangles: list[Rectangle] = []
        self.background = tuple(int(c) for c in config.background)

    def _matches(self, rows: slice, cols: slice, color: Pixel) -> NDArray[np.bool_]:
        block = self.grid[rows, cols]
        return np.all(block == np.asarray(color), axis=-1) & ~self.consumed[rows, cols]

    def find_seed_width(self, x: int, y: int, color: Pixel) -> int:
        return _leading_run(self._matches(slice(y, y + 1), slice(x, self.width), color)[0])

    def find_vertical_extent(self, x: int, y: int, width: int, color: Pixel) -> int:
        """Consecutive rows from ``y`` whose cells ``[x, x + width)`` all match."""
        rows_ok = self._matches(slice(y, self.height), slice(x, x + width), color).all(axis=1)
        return _leading_run(rows_ok)

    def find_horizontal_extent(self, x: int, y: int, height: int, color: Pixel) -> int:
        """Widest run from ``x`` valid on every row of ``[y, y + height)``."""
        block = self._matches(slice(y, y + height), slice(x, self.width), color)
        runs = np.cumprod(block, axis=1).sum(axis=1)
        return int(runs.min()) if runs.size else 0

    def grow(self, x: int, y: int) -> Rectangle | None:
        color = pixel_at(self.grid, x, y)
        width = self.find_seed_width(x, y, color)
        height = self.find_vertical_extent(x, y, width, color) if width else 0
        if height:
            width = min(width, self.find_horizontal_extent(x, y, height, color))
        if width == 0 or height == 0:
            return None
        return Rectangle(x=x, y=y, width=width, height=height, color=color)

    def scan_rows(
        self,
        start: int,
        stop: int,
        progress: ProgressCallback | None = None,
        cancel: threading.Event | None = None,
    ) -> None:
        for y in range(start, stop):
            x = 0
            while x < self.width:
                if cancel is not None and cancel.is_set():
                    raise DecompositionCancelled(f"Cancelled at cell ({x}, {y})")
                if self.consumed[y, x]:
                    x += 1
                    continue
                rect = self.grow(x, y)
                if rect is None:
                    x += 1
                    continue
                self.consumed[y:y + rect.height, x:x + rect.width] = True
                if not (self.config.exclude_background and rect.color == self.background):
                    self.rectangles.append(rect)
                x += rect.width
            if progress is not None:
                progress((y + 1) / self.height)

    def result(self) -> list[Rectangle]:
        if self.config.exclude_background and self.width and self.height:
            canvas = Rectangle(0, 0, self.width, self.height, self.background)
            return [canvas, *self.rectangles]
        return list(self.rectangles)


class RectangleDecomposer:
    """Deterministic, single-threaded rectangle decomposition."""

    def __init__(self, config: DecomposerConfig | None = None) -> None:
        self.config = config or DecomposerConfig()
        self.config.validate()

    def _prepare(self, grid) -> _Scan:
        work = as_grid(grid)
        width, height = grid_size(work)
        cfg = self.config
        if cfg.max_width is not None and width > cfg.max_width:
            raise ResourceLimitError(f"Grid width {width} exceeds maximum {cfg.max_width}")
        if cfg.max_height is not None and height > cfg.max_height:
            raise ResourceLimitError(f"Grid height {height} exceeds maximum {cfg.max_height}")
        return _Scan(work, cfg)

    def decompose(
        self,
        grid,
        *,
        progress: ProgressCallback | None = None,
        cancel: threading.Event | None = None,
    ) -> list[Rectangle]:
        """Partition ``grid`` into rectangles, in emission (raster) order.

        Args:
            grid: quantized ``(H, W, 4)`` grid or nested pixel lists.
            progress: called with the fraction of rows scanned after each row.
            cancel: checked between cells; when set, ``DecompositionCancelled``
                is raised and nothing is returned.

        Raises:
            ShapeError: jagged or non-RGBA grid.
            ResourceLimitError: a grid side exceeds the configured maximum.
        """
        t0 = time.perf_counter()
        scan = self._prepare(grid)
        scan.scan_rows(0, scan.height, progress, cancel)
        rects = scan.result()
        logger.debug(
            "Decomposed %dx%d grid into %d rectangles in %.1fms",
            scan.width, scan.height, len(rects), (time.perf_counter() - t0) * 1000,
        )
        return rects

    async def decompose_async(
        self,
        grid,
        *,
        progress: ProgressCallback | None = None,
        cancel: threading.Event | None = None,
    ) -> list[Rectangle]:
        """Same output as ``decompose()``, yielding to the event loop between row batches."""
        scan = self._prepare(grid)
        batch = self.config.rows_per_batch
        for start in range(0, scan.height, batch):
            scan.scan_rows(start, min(start + batch, scan.height), progress, cancel)
            await asyncio.sleep(0)
        return scan.result()


def decompose(grid, config: DecomposerConfig | None = None, **kwargs) -> list[Rectangle]:
    """Convenience wrapper around ``RectangleDecomposer(config).decompose(grid)``."""
    return RectangleDecomposer(config).decompose(grid, **kwargs)
