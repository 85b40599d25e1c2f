"""RectSight: partition pixel grids into monochrome rectangles."""

__version__ = "0.1.0"
