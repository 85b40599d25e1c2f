"""API response models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str = "0.1.0"
    transforms_registered: int = 0


class RectangleModel(BaseModel):
    x: int
    y: int
    width: int
    height: int
    color: list[int]


class RecordModel(BaseModel):
    x_min: float
    x_max: float
    y_min: float
    y_max: float
    color: list[int]
    opacity: float


class DecomposeResponse(BaseModel):
    width: int
    height: int
    rectangles: list[RectangleModel] = Field(default_factory=list)
    records: list[RecordModel] = Field(default_factory=list)
    expressions: list[dict[str, Any]] = Field(default_factory=list)
    svg: str = ""
    processing_time_ms: float = 0.0
    timings_ms: dict[str, float] = Field(default_factory=dict)


class ErrorResponse(BaseModel):
    error: str
    detail: str
