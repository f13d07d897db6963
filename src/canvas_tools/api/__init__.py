"""
Editor model and on-screen view.

This subpackage provides the document model and its on-screen
representation. It never depends on :py:mod:`canvas_tools.composite`.

Key modules:

- :py:mod:`canvas_tools.api.document`: Document holding ordered layers
- :py:mod:`canvas_tools.api.layers`: Layer types (bitmap, text)
- :py:mod:`canvas_tools.api.effects`: Effects and filters with serialized forms
- :py:mod:`canvas_tools.api.typesetting`: Text descriptor and font loading
- :py:mod:`canvas_tools.api.sprites`: On-screen sprites and the sprite registry
- :py:mod:`canvas_tools.api.canvas`: Zoomable, scrollable canvas
- :py:mod:`canvas_tools.api.events`: Pointer, touch and wheel events
- :py:mod:`canvas_tools.api.pil_io`: Encoding and data URI utilities
"""
