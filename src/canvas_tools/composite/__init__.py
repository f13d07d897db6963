"""
Rendering of layers and documents.

This subpackage renders the visible bitmap of each layer and composites
documents at full resolution. It builds on the model in
:py:mod:`canvas_tools.api` and the numpy-backed
:py:class:`~canvas_tools.surface.Surface`.

Key modules:

- :py:mod:`canvas_tools.composite.render`: Layer effect pipeline
- :py:mod:`canvas_tools.composite.composite`: Document snapshots and selection extraction
- :py:mod:`canvas_tools.composite.effects`: Rotation, mirroring and masking
- :py:mod:`canvas_tools.composite.filters`: Levels and contrast filters
- :py:mod:`canvas_tools.composite.text`: Text rasterization

Example usage::

    from canvas_tools.composite import LayerRenderer, create_document_snapshot

    renderer = LayerRenderer(sprites)
    await renderer.render_effects_for_layer(layer)
    png = await create_document_snapshot(renderer, document)

Polygon clipping and selection outlines are rasterized with
``scikit-image``.
"""

from canvas_tools.composite.composite import copy_selection, create_document_snapshot
from canvas_tools.composite.render import LayerRenderer

__all__ = [
    "LayerRenderer",
    "copy_selection",
    "create_document_snapshot",
]
