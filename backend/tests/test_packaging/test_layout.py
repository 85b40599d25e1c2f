"""Package discovery for the wheel: subpackages without __init__.py must ship."""

from __future__ import annotations

from pathlib import Path

from setuptools import find_namespace_packages

BACKEND = Path(__file__).resolve().parents[2]


def test_namespace_subpackages_discovered():
    found = set(find_namespace_packages(where=str(BACKEND), include=["rectsight*"]))
    assert {
        "rectsight",
        "rectsight.api",
        "rectsight.engine",
        "rectsight.engine.stages",
        "rectsight.models",
        "rectsight.render",
        "rectsight.utils",
    } <= found
    assert not any(name.startswith("tests") for name in found)
