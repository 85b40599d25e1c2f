"""Tests for the HTTP endpoints."""

from __future__ import annotations

import json

from fastapi.testclient import TestClient

from rectsight.main import app
from rectsight.utils.image_io import to_data_url
from tests.conftest import RED, checkerboard, png_bytes, solid

client = TestClient(app)


def _grid_json(grid) -> list:
    return [[list(p) for p in row] for row in grid]


def test_health():
    response = client.get("/api/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["transforms_registered"] == 5


def test_decompose_solid_grid():
    response = client.post("/api/decompose", json={
        "grid": _grid_json(solid(3, 2)),
        "alpha_mode": "continuous",
    })
    assert response.status_code == 200
    data = response.json()
    assert (data["width"], data["height"]) == (3, 2)
    assert data["rectangles"] == [{"x": 0, "y": 0, "width": 3, "height": 2, "color": list(RED)}]
    assert data["records"][0]["x_max"] == 0.3
    assert data["expressions"] == []
    assert data["svg"] == ""


def test_default_background_mode():
    grid = [[(0, 0, 0, 0), RED]]
    data = client.post("/api/decompose", json={"grid": _grid_json(grid)}).json()
    assert data["rectangles"][0] == {"x": 0, "y": 0, "width": 2, "height": 1, "color": [256, 256, 256, 255]}
    assert data["rectangles"][1]["color"] == list(RED)
    assert len(data["records"]) == 2


def test_default_background_mode_expressions():
    grid = [[(0, 0, 0, 0), RED]]
    data = client.post("/api/decompose", json={"grid": _grid_json(grid), "expressions": True}).json()
    assert len(data["expressions"]) == 2
    assert all("256" not in e["latex"] for e in data["expressions"])


def test_decompose_with_rendering():
    data = client.post("/api/decompose", json={
        "grid": _grid_json(checkerboard(2, 2)),
        "alpha_mode": "continuous",
        "scale": 1,
        "expressions": True,
        "svg": True,
    }).json()
    assert len(data["rectangles"]) == 4
    assert len(data["expressions"]) == 2 + 4
    assert data["svg"].startswith("<?xml")


def test_decompose_image():
    image = to_data_url(png_bytes(checkerboard(4, 4)))
    data = client.post("/api/decompose", json={"image": image, "alpha_mode": "none"}).json()
    assert (data["width"], data["height"]) == (100, 100)
    assert len(data["rectangles"]) > 16


def test_decompose_image_native_size():
    image = to_data_url(png_bytes(checkerboard(4, 4)))
    data = client.post("/api/decompose", json={"image": image, "image_size": 4, "alpha_mode": "none"}).json()
    assert len(data["rectangles"]) == 16


def test_jagged_grid_rejected():
    response = client.post("/api/decompose", json={"grid": [[list(RED), list(RED)], [list(RED)]]})
    assert response.status_code == 422
    assert response.json()["error"] == "ShapeError"


def test_bad_step_rejected():
    response = client.post("/api/decompose", json={"grid": _grid_json(solid(1, 1)), "step": 0})
    assert response.status_code == 422
    assert response.json()["error"] == "ConfigError"


def test_oversized_grid_rejected():
    response = client.post("/api/decompose", json={"grid": _grid_json(solid(513, 1))})
    assert response.status_code == 413
    assert response.json() == {
        "error": "ResourceLimitError",
        "detail": "Grid width 513 exceeds maximum 512",
    }


def test_error_schema_documented():
    schema = client.get("/openapi.json").json()
    responses = schema["paths"]["/api/decompose"]["post"]["responses"]
    assert responses["413"]["content"]["application/json"]["schema"]["$ref"].endswith("/ErrorResponse")


def test_needs_exactly_one_source():
    assert client.post("/api/decompose", json={}).status_code == 422
    both = {"grid": _grid_json(solid(1, 1)), "image": to_data_url(png_bytes(solid(1, 1)))}
    assert client.post("/api/decompose", json=both).status_code == 422


def test_stream():
    response = client.post("/api/decompose/stream", json={
        "grid": _grid_json(checkerboard(3, 2)),
        "alpha_mode": "continuous",
    })
    assert response.status_code == 200
    body = response.text
    assert "event: progress" in body
    assert "event: done" in body
    result = next(
        line for line in body.splitlines()
        if line.startswith("data: ") and '"rectangles"' in line
    )
    assert len(json.loads(result[len("data: "):])["rectangles"]) == 6


def test_stream_reports_errors():
    response = client.post("/api/decompose/stream", json={"grid": _grid_json(solid(513, 1))})
    assert "event: error" in response.text
    assert "exceeds" in response.text
