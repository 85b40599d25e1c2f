"""API request models."""

from __future__ import annotations

from pydantic import BaseModel, Field, model_validator

from rectsight.engine.config import AlphaMode


class DecomposeRequest(BaseModel):
    grid: list[list[list[int]]] | None = Field(
        default=None, description="Rows of [r, g, b, a] pixels, top row first",
    )
    image: str | None = Field(
        default=None, description="PNG/JPEG as a data URL or bare base64",
    )
    image_size: int | None = Field(
        default=None, description="Fit decoded images inside size x size (defaults to settings)",
    )

    quantize: bool = Field(default=True, description="Run the quantization stage")
    step: int | None = Field(default=None, description="Quantization step (defaults to settings)")
    alpha_mode: AlphaMode | None = Field(default=None, description="Alpha handling (defaults to settings)")
    alpha_threshold: int = Field(default=127, description="Alpha cut-off for binary/background modes")
    exclude_background: bool | None = Field(
        default=None, description="Omit background rectangles (defaults to alpha_mode == background)",
    )
    scale: float | None = Field(default=None, description="Output units per cell (defaults to settings)")

    expressions: bool = Field(default=False, description="Include latex expressions")
    svg: bool = Field(default=False, description="Include an SVG preview")

    @model_validator(mode="after")
    def _one_source(self) -> DecomposeRequest:
        if (self.grid is None) == (self.image is None):
            raise ValueError("Provide exactly one of 'grid' or 'image'")
        return self
