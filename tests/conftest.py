"""Pytest configuration for canvas-tools tests."""

from typing import Any

import pytest
from PIL import features


def pytest_configure(config: Any) -> None:
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "freetype: mark test as requiring Pillow built with FreeType support",
    )


HAS_FREETYPE = features.check("freetype2")


def pytest_collection_modifyitems(config: Any, items: list) -> None:
    """Skip text rendering tests when Pillow lacks FreeType."""
    if HAS_FREETYPE:
        return
    skip_without_freetype = pytest.mark.skip(
        reason="Requires Pillow with FreeType support"
    )
    for item in items:
        if "freetype" in item.keywords:
            item.add_marker(skip_without_freetype)
