"""Image decoding: PNG/JPEG/WebP bytes or files into an RGBA Grid."""

from __future__ import annotations

import base64
import binascii
import io
import logging
from pathlib import Path
from typing import BinaryIO

import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

from rectsight.engine.grid import GRID_DTYPE, Grid
from rectsight.errors import ConfigError, ShapeError

logger = logging.getLogger(__name__)

ImageSource = str | Path | bytes | BinaryIO

PAD_COLOR = (255, 255, 255, 0)


def decode_data_url(text: str) -> bytes:
    """Bytes from ``data:image/png;base64,...`` or a bare base64 string."""
    payload = text.split(",", 1)[1] if text.startswith("data:") else text
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ShapeError(f"Invalid base64 image payload: {e}") from e


def to_data_url(data: bytes, mime: str = "image/png") -> str:
    return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"


def load_grid(
    source: ImageSource,
    size: int | None = None,
    flatten: tuple[int, int, int] | None = None,
) -> Grid:
    """Decode an image into an ``(H, W, 4)`` int16 grid.

    Args:
        source: path, raw bytes or a binary file object.
        size: fit the image inside a ``size x size`` box, keeping aspect ratio,
            anchored bottom-left on a transparent white canvas.
        flatten: composite onto this opaque RGB color, leaving alpha at 255.
    """
    if size is not None and size < 1:
        raise ConfigError(f"Image size must be positive, got {size}")

    fp = io.BytesIO(source) if isinstance(source, bytes) else source
    try:
        with Image.open(fp) as im:
            img = im.convert("RGBA")
    except (UnidentifiedImageError, OSError) as e:
        raise ShapeError(f"Cannot decode image: {e}") from e

    if size is not None:
        img = ImageOps.pad(img, (size, size), color=PAD_COLOR, centering=(0, 1))
    if flatten is not None:
        base = Image.new("RGBA", img.size, (*flatten, 255))
        img = Image.alpha_composite(base, img)

    logger.debug("Decoded image to %dx%d grid", img.width, img.height)
    return np.asarray(img).astype(GRID_DTYPE)


def grid_to_image(grid: Grid) -> Image.Image:
    """Inverse of ``load_grid`` for grids whose values fit in 8 bits."""
    return Image.fromarray(np.clip(grid, 0, 255).astype(np.uint8))
