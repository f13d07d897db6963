"""
Protocol definitions for type hints to avoid circular imports.

This module defines Protocol classes for the scene graph collaborators of the
layer pipeline. The pipeline and the compositor only rely on these
interfaces, so any sprite implementation can be plugged in.
"""

from typing import Any, ContextManager, Optional, Protocol

from canvas_tools.geometry import Rectangle, Viewport
from canvas_tools.surface import DrawingContext, Surface


class Drawable(Protocol):
    """
    Protocol of the children of a
    :py:class:`~canvas_tools.api.canvas.ZoomableCanvas`.
    """

    def update(self, timestamp: float) -> None:
        """Advance the state of the drawable to `timestamp` (milliseconds)."""
        ...

    def draw(self, ctx: DrawingContext, viewport: Optional[Viewport] = None) -> None:
        """Draw onto `ctx`; `viewport` is in unscaled units."""
        ...

    def handle_interaction(self, x: float, y: float, event: Any) -> bool:
        """
        Handle an input event at document coordinates.

        :return: True when the event was handled.
        """
        ...


class LayerSpriteProtocol(Drawable, Protocol):
    """
    Protocol of the on-screen counterpart of a layer, as used by the layer
    pipeline and the document compositor.
    """

    rendered_generation: int

    @property
    def bounds(self) -> Rectangle:
        ...

    @property
    def render_surface(self) -> Surface:
        """Owned surface the layer pipeline renders into."""
        ...

    def set_bitmap(self, bitmap: Surface, width: int, height: int) -> None:
        ...

    def invalidate(self) -> None:
        ...

    def hide_selection_outline(self) -> ContextManager[None]:
        ...


class SpriteLookup(Protocol):
    """
    Protocol of the layer to sprite lookup.
    """

    def get_sprite_for_layer(self, layer: Any) -> Optional[LayerSpriteProtocol]:
        """Return the sprite of `layer`, or None."""
        ...
