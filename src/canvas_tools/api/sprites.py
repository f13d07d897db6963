"""
Sprites module.

Sprites are the on-screen counterparts of layers. A
:py:class:`LayerSprite` shows the visible bitmap produced by the layer
pipeline, supports dragging the layer around and outlines the layer's
selection. The :py:class:`SpriteRegistry` maps layers to their sprites::

    registry = SpriteRegistry()
    for layer in document:
        registry.create_sprite_for_layer(layer, canvas)

    renderer = LayerRenderer(registry)
"""

import contextlib
import logging
from typing import TYPE_CHECKING, Any, Iterator, Optional

from canvas_tools.api.layers import Layer
from canvas_tools.constants import EventType
from canvas_tools.geometry import Rectangle, Viewport
from canvas_tools.surface import DrawingContext, Surface

if TYPE_CHECKING:
    from canvas_tools.api.canvas import ZoomableCanvas

logger = logging.getLogger(__name__)


class Sprite(object):
    """
    Drawable with rectangular bounds and press / drag / release handling.

    :param bounds: Bounds in document coordinates.
    :param bitmap: Optional bitmap drawn stretched into the bounds.
    :param interactive: Whether the sprite reacts to input.
    """

    def __init__(
        self,
        bounds: Optional[Rectangle] = None,
        bitmap: Optional[Surface] = None,
        interactive: bool = False,
    ):
        self._bounds = bounds or Rectangle()
        self._bitmap = bitmap
        self.interactive = interactive
        self.canvas: Optional["ZoomableCanvas"] = None
        self._dragging = False
        self._drag_offset = (0.0, 0.0)

    @property
    def bounds(self) -> Rectangle:
        return self._bounds

    @property
    def bitmap(self) -> Optional[Surface]:
        return self._bitmap

    @property
    def dragging(self) -> bool:
        return self._dragging

    def set_bitmap(
        self,
        bitmap: Optional[Surface],
        width: Optional[int] = None,
        height: Optional[int] = None,
    ) -> None:
        """Replace the bitmap, resizing the bounds when a size is given."""
        self._bitmap = bitmap
        if width is not None:
            self._bounds.width = width
        if height is not None:
            self._bounds.height = height

    def invalidate(self) -> None:
        """Request a redraw of the owning canvas."""
        if self.canvas is not None:
            self.canvas.invalidate()

    def update(self, timestamp: float) -> None:
        pass

    def draw(self, ctx: DrawingContext, viewport: Optional[Viewport] = None) -> None:
        bitmap = self._bitmap
        if bitmap is None or bitmap.disposed or self._bounds.is_empty():
            return
        left, top = self._bounds.left, self._bounds.top
        if viewport is not None:
            if not self._bounds.intersects(viewport):
                return
            left -= viewport.left
            top -= viewport.top
        ctx.draw_image(bitmap, left, top, self._bounds.width, self._bounds.height)

    def handle_interaction(self, x: float, y: float, event: Any) -> bool:
        if not self.interactive:
            return False
        event_type = EventType(event.type)
        if event_type in (EventType.MOUSE_DOWN, EventType.TOUCH_START):
            if not self._bounds.contains(x, y):
                return False
            self._dragging = True
            self._drag_offset = (x - self._bounds.left, y - self._bounds.top)
            self.handle_press(x, y)
            return True
        if not self._dragging:
            return False
        if event_type in (EventType.MOUSE_MOVE, EventType.TOUCH_MOVE):
            self._bounds.left = x - self._drag_offset[0]
            self._bounds.top = y - self._drag_offset[1]
            self.handle_move(x, y)
            self.invalidate()
            return True
        if event_type in (
            EventType.MOUSE_UP,
            EventType.TOUCH_END,
            EventType.TOUCH_CANCEL,
        ):
            self._dragging = False
            self.handle_release(x, y)
            return True
        return False

    def handle_press(self, x: float, y: float) -> None:
        pass

    def handle_move(self, x: float, y: float) -> None:
        pass

    def handle_release(self, x: float, y: float) -> None:
        pass

    def __repr__(self) -> str:
        return "%s(bounds=%r)" % (self.__class__.__name__, self._bounds)


class LayerSprite(Sprite):
    """
    On-screen counterpart of a layer.

    The bitmap is the layer source until the layer pipeline publishes the
    contents of :py:attr:`render_surface`. Positions follow the layer's
    ``x`` / ``y``; dragging the sprite moves the layer.
    """

    def __init__(self, layer: Layer, interactive: bool = True):
        super(LayerSprite, self).__init__(
            Rectangle(layer.x, layer.y, layer.width, layer.height),
            layer.source,
            interactive,
        )
        self._layer = layer
        self._render_surface: Optional[Surface] = None
        self.select_mode = False
        self.outline_color = "#00ffff"
        self.rendered_generation = -1

    @property
    def layer(self) -> Layer:
        return self._layer

    @property
    def render_surface(self) -> Surface:
        """Surface owned by this sprite that the layer pipeline renders into."""
        if self._render_surface is None or self._render_surface.disposed:
            self._render_surface = Surface(0, 0)
        return self._render_surface

    def is_stale(self) -> bool:
        """True when the layer changed since the bitmap was rendered."""
        return self.rendered_generation != self._layer.generation

    @contextlib.contextmanager
    def hide_selection_outline(self) -> Iterator[None]:
        """Suppress the selection outline within the block."""
        select_mode = self.select_mode
        self.select_mode = False
        try:
            yield
        finally:
            self.select_mode = select_mode

    def draw(self, ctx: DrawingContext, viewport: Optional[Viewport] = None) -> None:
        self._bounds.left = self._layer.x
        self._bounds.top = self._layer.y
        super(LayerSprite, self).draw(ctx, viewport)
        if self.select_mode and self._layer.has_selection():
            self._draw_selection_outline(ctx, viewport)

    def _draw_selection_outline(
        self, ctx: DrawingContext, viewport: Optional[Viewport]
    ) -> None:
        offset_x = viewport.left if viewport is not None else 0
        offset_y = viewport.top if viewport is not None else 0
        with ctx.state():
            ctx.stroke_style = self.outline_color
            ctx.begin_path()
            for index, (x, y) in enumerate(self._layer.selection or []):
                if index == 0:
                    ctx.move_to(x - offset_x, y - offset_y)
                else:
                    ctx.line_to(x - offset_x, y - offset_y)
            ctx.close_path()
            ctx.stroke()

    def handle_move(self, x: float, y: float) -> None:
        self._layer.x = self._bounds.left
        self._layer.y = self._bounds.top

    def dispose(self) -> None:
        if self._render_surface is not None:
            self._render_surface.dispose()
            self._render_surface = None
        self._bitmap = None


class SpriteRegistry(object):
    """
    Registry of layer sprites, keyed by layer id.
    """

    def __init__(self) -> None:
        self._sprites: dict[int, LayerSprite] = {}

    def create_sprite_for_layer(
        self, layer: Layer, canvas: Optional["ZoomableCanvas"] = None
    ) -> LayerSprite:
        """
        Create the sprite of `layer`, replacing an existing one, and add it
        to `canvas` when given.
        """
        self.remove_sprite_for_layer(layer)
        sprite = LayerSprite(layer)
        self._sprites[layer.layer_id] = sprite
        if canvas is not None:
            canvas.add_child(sprite)
        logger.debug("Created sprite for %r", layer)
        return sprite

    def get_sprite_for_layer(self, layer: Layer) -> Optional[LayerSprite]:
        return self._sprites.get(layer.layer_id)

    def remove_sprite_for_layer(self, layer: Layer) -> None:
        sprite = self._sprites.pop(layer.layer_id, None)
        if sprite is None:
            return
        if sprite.canvas is not None:
            sprite.canvas.remove_child(sprite)
        sprite.dispose()

    def flush(self) -> None:
        """Remove all sprites."""
        for sprite in list(self._sprites.values()):
            self.remove_sprite_for_layer(sprite.layer)

    def __len__(self) -> int:
        return len(self._sprites)

    def __contains__(self, layer: object) -> bool:
        return isinstance(layer, Layer) and layer.layer_id in self._sprites
