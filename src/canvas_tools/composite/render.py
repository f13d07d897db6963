"""
Layer effect pipeline.

:py:class:`LayerRenderer` renders the visible bitmap of a layer: text is
rasterized into the source first, the source is drawn transformed and masked
and finally filtered. The result is published to the layer's sprite::

    renderer = LayerRenderer(sprites)
    layer.update_effects(rotation=math.pi / 2)
    await renderer.render_effects_for_layer(layer)

Runs for the same layer are serialized by a per-layer lock owned by the
renderer. While a run is in flight the layer refuses changes.
"""

import asyncio
import logging
from typing import Optional

from canvas_tools.api.layers import BitmapLayer, Layer, TextLayer
from canvas_tools.api.protocols import SpriteLookup
from canvas_tools.api.typesetting import FontLoader
from canvas_tools.composite.effects import has_effects, render_transformed_source
from canvas_tools.composite.filters import has_filters, render_filters
from canvas_tools.composite.text import render_text
from canvas_tools.geometry import get_rotated_size

logger = logging.getLogger(__name__)


class LayerRenderer(object):
    """
    Renders layers into the surfaces of their sprites.

    :param sprites: Layer to sprite lookup, e.g. a
        :py:class:`~canvas_tools.api.sprites.SpriteRegistry`.
    :param font_loader: Loader used for text layers.
    """

    def __init__(self, sprites: SpriteLookup, font_loader: Optional[FontLoader] = None):
        self._sprites = sprites
        self._font_loader = font_loader or FontLoader()
        self._locks: dict[int, asyncio.Lock] = {}

    @property
    def sprites(self) -> SpriteLookup:
        return self._sprites

    @property
    def font_loader(self) -> FontLoader:
        return self._font_loader

    def is_rendering(self, layer: Layer) -> bool:
        """True while a pipeline run for `layer` is in flight."""
        lock = self._locks.get(layer.layer_id)
        return lock is not None and lock.locked()

    async def wait_until_idle(self, layer: Layer) -> None:
        """Wait for the in-flight pipeline run of `layer`, if any."""
        lock = self._locks.get(layer.layer_id)
        if lock is None:
            return
        async with lock:
            pass

    def forget(self, layer: Layer) -> None:
        """Drop the state kept for `layer`."""
        self._locks.pop(layer.layer_id, None)

    async def render_effects_for_layer(self, layer: Layer) -> None:
        """
        Render the visible bitmap of `layer`.

        Does nothing when the layer has no sprite or no source.

        :raises TypeError: For unsupported layer types.
        """
        lock = self._locks.setdefault(layer.layer_id, asyncio.Lock())
        async with lock:
            layer._rendering = True
            try:
                await self._render(layer)
            finally:
                layer._rendering = False

    async def _render(self, layer: Layer) -> None:
        sprite = self._sprites.get_sprite_for_layer(layer)
        if sprite is None or layer.source is None:
            logger.debug("Skipping %r without sprite or source", layer)
            return

        generation = layer.generation
        effects = layer.effects
        width, height = get_rotated_size(layer.width, layer.height, effects.rotation)
        surface = sprite.render_surface
        surface.ensure_capacity(width, height)
        ctx = surface.get_context()

        if isinstance(layer, TextLayer):
            await render_text(layer, self._font_loader)
        elif isinstance(layer, BitmapLayer):
            pass
        else:
            raise TypeError("Unsupported layer type: %s" % type(layer).__name__)

        if has_effects(layer):
            render_transformed_source(layer, ctx, layer.source, width, height, effects)
        else:
            ctx.draw_image(layer.source, 0, 0)

        if has_filters(layer.filters):
            render_filters(surface, layer.filters)

        # The layer keeps its size; only the sprite follows the rotated bounds.
        sprite.set_bitmap(surface, width, height)
        sprite.rendered_generation = generation
        sprite.invalidate()
