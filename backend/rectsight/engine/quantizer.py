"""PixelQuantizer: reduce channel precision so near-identical colors merge.

Each channel v becomes ``round(v / step) * step`` (half-up), clamped to
[0, 255]. Clamping keeps the result idempotent: a value already on the
lattice, or already clamped to 255, maps onto itself.
"""

from __future__ import annotations

import logging

import numpy as np

from rectsight.engine.config import AlphaMode, QuantizerConfig
from rectsight.engine.grid import BACKGROUND, GRID_DTYPE, TRANSPARENT, Grid, as_grid

logger = logging.getLogger(__name__)

_CHANNEL_MAX = 255
_OPAQUE = 255


def quantize_channels(values: Grid, step: int) -> Grid:
    """Half-up rounding to the nearest multiple of ``step``, clamped to [0, 255]."""
    snapped = np.floor(values.astype(np.float64) / step + 0.5) * step
    return np.clip(snapped, 0, _CHANNEL_MAX).astype(GRID_DTYPE)


class PixelQuantizer:
    """Stateless: one instance can quantize any number of grids concurrently."""

    def __init__(self, config: QuantizerConfig | None = None) -> None:
        self.config = config or QuantizerConfig()
        self.config.validate()

    def quantize(self, grid) -> Grid:
        """Return a new quantized grid with the same dimensions as ``grid``.

        Raises:
            ShapeError: if ``grid`` is jagged or not RGBA.
        """
        src = as_grid(grid)
        if src.size == 0:
            return src

        cfg = self.config
        out = src.copy()
        mode = cfg.alpha_mode

        if mode is AlphaMode.CONTINUOUS:
            out = quantize_channels(src, cfg.step)
        elif mode is AlphaMode.NONE:
            out[..., :3] = quantize_channels(src[..., :3], cfg.step)
            out[..., 3] = np.clip(src[..., 3], 0, _CHANNEL_MAX)
        elif mode is AlphaMode.BINARY:
            out[..., :3] = quantize_channels(src[..., :3], cfg.step)
            opaque = src[..., 3] > cfg.alpha_threshold
            out[..., 3] = np.where(opaque, _OPAQUE, 0)
            out[~opaque] = TRANSPARENT
        elif mode is AlphaMode.BACKGROUND:
            out = quantize_channels(src, cfg.step)
            # Already-marked background survives a second pass unchanged
            background = (src[..., 3] <= cfg.alpha_threshold) | np.all(src == BACKGROUND, axis=-1)
            out[background] = BACKGROUND

        logger.debug(
            "Quantized %dx%d grid (step=%d, alpha=%s)",
            src.shape[1], src.shape[0], cfg.step, mode.value,
        )
        return out


def quantize(grid, config: QuantizerConfig | None = None) -> Grid:
    """Convenience wrapper around ``PixelQuantizer(config).quantize(grid)``."""
    return PixelQuantizer(config).quantize(grid)
