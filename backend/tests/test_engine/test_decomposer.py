"""Tests for RectangleDecomposer: partition, heuristic shape, limits and hooks."""

from __future__ import annotations

import asyncio
import threading

import numpy as np
import pytest

from rectsight.engine.config import DecomposerConfig
from rectsight.engine.decomposer import RectangleDecomposer, decompose
from rectsight.engine.grid import BACKGROUND, Rectangle
from rectsight.errors import ConfigError, DecompositionCancelled, ResourceLimitError, ShapeError
from tests.conftest import BLUE, GREEN, RED, assert_partition, checkerboard, random_grid, solid


class TestPartition:
    def test_solid_grid_is_one_rectangle(self):
        assert decompose(solid(7, 4)) == [Rectangle(0, 0, 7, 4, RED)]

    def test_single_cell(self):
        assert decompose(solid(1, 1, GREEN)) == [Rectangle(0, 0, 1, 1, GREEN)]

    def test_checkerboard_is_all_unit_cells(self):
        rects = decompose(checkerboard(5, 4))
        assert len(rects) == 20
        assert all(r.width == 1 and r.height == 1 for r in rects)
        assert_partition(rects, checkerboard(5, 4))

    def test_random_grids(self):
        for seed in range(5):
            grid = random_grid(15, 12, n_colors=3, seed=seed)
            assert_partition(decompose(grid), grid)

    def test_two_color_stripes(self):
        grid = [[RED, RED, BLUE, BLUE]] * 3
        assert decompose(grid) == [
            Rectangle(0, 0, 2, 3, RED),
            Rectangle(2, 0, 2, 3, BLUE),
        ]

    def test_empty_grid(self):
        assert decompose([]) == []
        assert decompose([[], []]) == []


class TestHeuristic:
    def test_width_bounded_by_seed_row(self, l_shape):
        # The wider bottom row is not merged into the first rectangle
        assert decompose(l_shape) == [
            Rectangle(0, 0, 2, 3, RED),
            Rectangle(2, 0, 1, 2, BLUE),
            Rectangle(2, 2, 1, 1, RED),
        ]

    def test_vertical_growth_stops_at_consumed_cells(self):
        grid = [
            [RED, BLUE],
            [RED, RED],
        ]
        assert decompose(grid) == [
            Rectangle(0, 0, 1, 2, RED),
            Rectangle(1, 0, 1, 1, BLUE),
            Rectangle(1, 1, 1, 1, RED),
        ]

    def test_raster_emission_order(self):
        grid = random_grid(9, 9, seed=42)
        starts = [(r.y, r.x) for r in decompose(grid)]
        assert starts == sorted(starts)

    def test_deterministic(self):
        grid = random_grid(20, 20, n_colors=2, seed=1)
        assert decompose(grid) == decompose(grid.copy())

    def test_input_not_mutated(self):
        grid = random_grid(6, 6, seed=2)
        before = grid.copy()
        decompose(grid)
        assert np.array_equal(grid, before)


class TestBackgroundExclusion:
    GRID = [
        [BACKGROUND, RED],
        [BACKGROUND, BACKGROUND],
    ]

    def test_background_kept_without_exclusion(self):
        rects = decompose(self.GRID)
        assert rects == [
            Rectangle(0, 0, 1, 2, BACKGROUND),
            Rectangle(1, 0, 1, 1, RED),
            Rectangle(1, 1, 1, 1, BACKGROUND),
        ]

    def test_canvas_prepended_and_background_omitted(self):
        rects = decompose(self.GRID, DecomposerConfig(exclude_background=True))
        assert rects == [
            Rectangle(0, 0, 2, 2, BACKGROUND),
            Rectangle(1, 0, 1, 1, RED),
        ]

    def test_custom_background_color(self):
        grid = [[GREEN, RED, GREEN]]
        rects = decompose(grid, DecomposerConfig(exclude_background=True, background=GREEN))
        assert rects == [Rectangle(0, 0, 3, 1, GREEN), Rectangle(1, 0, 1, 1, RED)]

    def test_empty_grid_gets_no_canvas(self):
        assert decompose([], DecomposerConfig(exclude_background=True)) == []


class TestLimitsAndErrors:
    def test_width_limit(self):
        with pytest.raises(ResourceLimitError, match="width"):
            decompose(solid(5, 1), DecomposerConfig(max_width=4))

    def test_height_limit(self):
        with pytest.raises(ResourceLimitError, match="height"):
            decompose(solid(1, 5), DecomposerConfig(max_height=4))

    def test_unbounded(self):
        rects = decompose(solid(600, 1), DecomposerConfig(max_width=None))
        assert rects == [Rectangle(0, 0, 600, 1, RED)]

    def test_invalid_limits(self):
        with pytest.raises(ConfigError):
            RectangleDecomposer(DecomposerConfig(max_width=0))
        with pytest.raises(ConfigError):
            RectangleDecomposer(DecomposerConfig(rows_per_batch=0))

    def test_jagged(self):
        with pytest.raises(ShapeError):
            decompose([[RED, RED], [RED]])


class TestHooks:
    def test_progress_reports_each_row(self):
        seen: list[float] = []
        decompose(checkerboard(2, 4), progress=seen.append)
        assert seen == [0.25, 0.5, 0.75, 1.0]

    def test_no_progress_by_default(self):
        # No callback, no side effects: just the result
        assert len(decompose(checkerboard(3, 3))) == 9

    def test_cancel_before_start(self):
        cancel = threading.Event()
        cancel.set()
        with pytest.raises(DecompositionCancelled):
            decompose(solid(2, 2), cancel=cancel)

    def test_cancel_between_rows(self):
        cancel = threading.Event()
        with pytest.raises(DecompositionCancelled):
            decompose(checkerboard(3, 3), progress=lambda _: cancel.set(), cancel=cancel)

    def test_async_matches_sync(self):
        grid = random_grid(11, 13, seed=9)
        decomposer = RectangleDecomposer(DecomposerConfig(rows_per_batch=3))
        assert asyncio.run(decomposer.decompose_async(grid)) == decomposer.decompose(grid)

    def test_async_yields_between_batches(self):
        ticks: list[int] = []

        async def ticker() -> None:
            for i in range(100):
                ticks.append(i)
                await asyncio.sleep(0)

        async def main() -> list[Rectangle]:
            task = asyncio.create_task(ticker())
            decomposer = RectangleDecomposer(DecomposerConfig(rows_per_batch=1))
            rects = await decomposer.decompose_async(checkerboard(4, 8))
            observed = len(ticks)
            task.cancel()
            assert observed > 0
            return rects

        assert len(asyncio.run(main())) == 32
