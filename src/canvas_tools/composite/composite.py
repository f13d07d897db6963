"""
Document compositing.

Full resolution renders of a document, independent of the on-screen zoom:
:py:func:`create_document_snapshot` encodes all layers, and
:py:func:`copy_selection` extracts the selected region of one layer.
Both draw onto a transient surface that is disposed on every exit path.
"""

import contextlib
import logging
from typing import Iterator, Optional, Union

from PIL import Image

from canvas_tools.api import pil_io
from canvas_tools.api.document import Document
from canvas_tools.api.layers import Layer
from canvas_tools.composite.render import LayerRenderer
from canvas_tools.constants import (
    DEFAULT_QUALITY,
    SNAPSHOT_VIEWPORT_SCALE,
    ImageType,
)
from canvas_tools.geometry import Viewport, get_rectangle_for_selection, to_pixels
from canvas_tools.surface import Surface

logger = logging.getLogger(__name__)


@contextlib.contextmanager
def full_size_surface(
    document: Document, pixel_ratio: float = 1.0
) -> Iterator[tuple[Surface, Viewport]]:
    """
    Transient surface at the document size times `pixel_ratio`, with its
    context scaled so drawing happens in document units.

    The yielded viewport is oversized so no layer is culled.
    """
    if pixel_ratio <= 0:
        raise ValueError("Invalid pixel ratio: %r" % pixel_ratio)
    width, height = document.size
    with Surface(
        to_pixels(width * pixel_ratio), to_pixels(height * pixel_ratio)
    ) as surface:
        surface.get_context().scale(pixel_ratio, pixel_ratio)
        yield surface, Viewport(
            0,
            0,
            width * SNAPSHOT_VIEWPORT_SCALE,
            height * SNAPSHOT_VIEWPORT_SCALE,
        )


async def create_document_snapshot(
    renderer: LayerRenderer,
    document: Document,
    image_type: Union[str, ImageType] = ImageType.PNG,
    quality: float = DEFAULT_QUALITY,
    pixel_ratio: float = 1.0,
) -> bytes:
    """
    Render all layers of `document` and encode the result.

    :param quality: Encoding quality in the 0 - 100 range.
    :param pixel_ratio: Density the layers are composited at; the result is
        scaled back to the document size.
    :return: Encoded image bytes at the document size.
    """
    if not 0 <= quality <= 100:
        raise ValueError("Quality must be in [0, 100], got %r" % quality)
    quality = round(quality / 100, 2)

    with full_size_surface(document, pixel_ratio) as (surface, viewport):
        ctx = surface.get_context()
        for layer in document:
            await renderer.render_effects_for_layer(layer)
            sprite = renderer.sprites.get_sprite_for_layer(layer)
            if sprite is None:
                logger.debug("Skipping %r without sprite", layer)
                continue
            sprite.draw(ctx, viewport)
        data = pil_io.encode(surface, image_type, quality)

    resized = pil_io.resize_to_base64(
        data, document.width, document.height, image_type, quality
    )
    return pil_io.from_data_uri(resized)


async def copy_selection(
    renderer: LayerRenderer,
    document: Document,
    layer: Layer,
    pixel_ratio: float = 1.0,
) -> Optional[Image.Image]:
    """
    Extract the selected region of `layer`.

    The layer is drawn clipped to its selection polygon and the bounding
    rectangle of the selection is copied into a new image.

    :return: PIL Image of the selection size, or None for an empty
        selection or a layer without sprite.
    """
    await renderer.wait_until_idle(layer)

    rectangle = get_rectangle_for_selection(layer.selection or [])
    sprite = renderer.sprites.get_sprite_for_layer(layer)
    if rectangle.is_empty() or sprite is None:
        logger.debug("Nothing to copy for %r", layer)
        return None

    width, height = to_pixels(rectangle.width), to_pixels(rectangle.height)
    with full_size_surface(document, pixel_ratio) as (surface, viewport):
        ctx = surface.get_context()
        ctx.begin_path()
        for index, (x, y) in enumerate(layer.selection or []):
            if index == 0:
                ctx.move_to(x, y)
            else:
                ctx.line_to(x, y)
        ctx.close_path()
        with ctx.state():
            ctx.clip()
            with sprite.hide_selection_outline():
                sprite.draw(ctx, viewport)

        with Surface(width, height) as selection:
            selection.get_context().draw_image(
                surface,
                0,
                0,
                width,
                height,
                source=(
                    rectangle.left * pixel_ratio,
                    rectangle.top * pixel_ratio,
                    rectangle.width * pixel_ratio,
                    rectangle.height * pixel_ratio,
                ),
            )
            data = pil_io.encode(selection, ImageType.PNG)
    return pil_io.load_image(data)
