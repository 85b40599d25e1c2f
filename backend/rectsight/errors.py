"""Error taxonomy for the rectangle engine.

All errors are raised eagerly at the start of the operation that detects them
and propagate unchanged to the caller. Nothing here is retried.
"""

from __future__ import annotations


class RectSightError(Exception):
    """Base class for every error raised by the engine."""


class ShapeError(RectSightError):
    """Grid is jagged, not RGBA, or a rectangle does not fit its canvas."""


class ResourceLimitError(RectSightError):
    """Grid dimensions exceed the configured maximum."""


class ConfigError(RectSightError, ValueError):
    """Invalid quantization step, threshold, scale factor or limit."""


class DecompositionCancelled(RectSightError):
    """The caller's cancel event was set between two raster-scan cells."""
