"""
canvas-tools: layered image editor core.

This package renders the layers of an image document (rotation, mirroring,
masks, levels and contrast filters, text), composites documents at full
resolution and provides a zoomable, scrollable on-screen canvas that maps
pointer, touch and wheel input to document coordinates.

Basic usage::

    import asyncio
    import math
    from canvas_tools import BitmapLayer, Document, Surface
    from canvas_tools.api.sprites import SpriteRegistry
    from canvas_tools.composite import LayerRenderer, create_document_snapshot

    document = Document(640, 480)
    layer = BitmapLayer(Surface.frompil(image))
    document.append(layer)

    sprites = SpriteRegistry()
    sprites.create_sprite_for_layer(layer)
    renderer = LayerRenderer(sprites)

    layer.update_effects(rotation=math.pi / 2)
    png = asyncio.run(create_document_snapshot(renderer, document))

Architecture:

- :py:mod:`canvas_tools.surface`: Pixel surfaces and their drawing context
- :py:mod:`canvas_tools.api`: Document model, sprites and the zoomable canvas
- :py:mod:`canvas_tools.composite`: Layer pipeline and document compositing
"""

from canvas_tools.api.document import Document
from canvas_tools.api.layers import BitmapLayer, TextLayer
from canvas_tools.surface import Surface
from canvas_tools.version import __version__

__all__ = ["BitmapLayer", "Document", "Surface", "TextLayer", "__version__"]
