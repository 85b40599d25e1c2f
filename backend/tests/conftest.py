"""Shared test fixtures."""

from __future__ import annotations

import io

import numpy as np
import pytest
from PIL import Image

RED = (255, 0, 0, 255)
GREEN = (0, 255, 0, 255)
BLUE = (0, 0, 255, 255)
WHITE = (255, 255, 255, 255)


def solid(width: int, height: int, color=RED) -> list:
    return [[color] * width for _ in range(height)]


def checkerboard(width: int, height: int, a=RED, b=BLUE) -> list:
    return [[a if (x + y) % 2 == 0 else b for x in range(width)] for y in range(height)]


def random_grid(width: int, height: int, n_colors: int = 3, seed: int = 7) -> np.ndarray:
    """Blocky random grid drawn from a small palette."""
    palette = np.array([RED, GREEN, BLUE, WHITE][:n_colors], dtype=np.int16)
    rng = np.random.default_rng(seed)
    return palette[rng.integers(0, n_colors, size=(height, width))]


def assert_partition(rectangles, grid) -> None:
    """Every cell covered exactly once, and by a rectangle of its own color."""
    grid = np.asarray(grid)
    height, width = grid.shape[:2]
    coverage = np.zeros((height, width), dtype=int)
    for rect in rectangles:
        assert rect.width >= 1 and rect.height >= 1
        assert rect.x + rect.width <= width and rect.y + rect.height <= height
        block = grid[rect.y:rect.y + rect.height, rect.x:rect.x + rect.width]
        assert np.all(block == np.asarray(rect.color)), f"{rect} is not monochrome"
        coverage[rect.y:rect.y + rect.height, rect.x:rect.x + rect.width] += 1
    assert np.all(coverage == 1), f"coverage:\n{coverage}"


def png_bytes(pixels) -> bytes:
    img = Image.fromarray(np.asarray(pixels, dtype=np.uint8))
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


# Three columns: an L of red around a blue notch
L_SHAPE = [
    [RED, RED, BLUE],
    [RED, RED, BLUE],
    [RED, RED, RED],
]


@pytest.fixture
def l_shape() -> list:
    return L_SHAPE


@pytest.fixture
def checker_png() -> bytes:
    return png_bytes(checkerboard(4, 4, RED, WHITE))
