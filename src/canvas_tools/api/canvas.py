"""
Zoomable canvas.

:py:class:`ZoomableCanvas` is the on-screen view of a document. It owns a
:py:class:`~canvas_tools.surface.Surface` the size of the visible viewport
and an ordered list of :py:class:`~canvas_tools.api.protocols.Drawable`
children (first child is drawn first, i.e. bottom-most).

The canvas extent and the viewport are expressed in scaled units. The
drawing context is scaled by :py:attr:`~ZoomableCanvas.zoom_factor` once,
when the zoom is set, so children receive an *unscaled* viewport and draw in
document units::

    canvas = ZoomableCanvas(1600, 1200, viewport=(800, 600))
    canvas.add_child(sprite)
    canvas.set_zoom_factor(2)
    canvas.pan_viewport(400, 300)
    canvas.render()
    image = canvas.topil()

Input events are translated to document coordinates before they are
dispatched to the children, see :py:meth:`ZoomableCanvas.handle_interaction`.
"""

import asyncio
import logging
import time
from typing import Any, Callable, Optional, Union

from attrs import evolve

from canvas_tools.api.events import PointerEvent, TouchEvent, WheelEvent
from canvas_tools.api.protocols import Drawable
from canvas_tools.api.sprites import Sprite
from canvas_tools.constants import DEFAULT_FPS, HALF, WHEEL_SPEED, EventType
from canvas_tools.geometry import Viewport
from canvas_tools.surface import Surface

logger = logging.getLogger(__name__)

FrameCallback = Callable[[], None]
RequestFrame = Callable[[FrameCallback], Any]


def _monotonic_ms() -> float:
    return time.monotonic() * 1000.0


def _sign(value: float) -> int:
    return (value > 0) - (value < 0)


class ZoomableCanvas(object):
    """
    Zoom and scroll aware canvas.

    :param width: Width of the canvas extent, in scaled units.
    :param height: Height of the canvas extent, in scaled units.
    :param viewport: Optional ``(width, height)`` of the visible window.
        Without it the whole canvas is visible.
    :param fps: Target frame rate of the render loop.
    :param background_color: Fill color, the canvas is cleared when None.
    :param animate: Keep rendering frames instead of rendering on demand.
    :param request_frame: Scheduler, called with the render callback and
        returning a handle; a handle with a ``cancel()`` method is cancelled
        on dispose. Defaults to the running asyncio loop when animating.
    :param clock: Returns the current time in milliseconds.
    :param update_handler: Called with the frame timestamp instead of the
        children's ``update``.
    :param wheel_speed: Pan distance per wheel event and axis.
    :param offset: Position of the canvas element on the page.
    """

    def __init__(
        self,
        width: int,
        height: int,
        viewport: Optional[tuple[int, int]] = None,
        fps: float = DEFAULT_FPS,
        background_color: Optional[str] = None,
        animate: bool = False,
        request_frame: Optional[RequestFrame] = None,
        clock: Optional[Callable[[], float]] = None,
        update_handler: Optional[Callable[[float], None]] = None,
        wheel_speed: float = WHEEL_SPEED,
        offset: tuple[float, float] = (0.0, 0.0),
    ):
        if width < 0 or height < 0:
            raise ValueError("Invalid canvas size: %sx%s" % (width, height))
        if fps <= 0:
            raise ValueError("Invalid frame rate: %r" % fps)
        self._width = width
        self._height = height
        self._has_viewport = viewport is not None
        viewport_width, viewport_height = viewport or (width, height)
        self._viewport = Viewport(0, 0, viewport_width, viewport_height)
        self._surface = Surface(viewport_width, viewport_height)
        self._children: list[Drawable] = []
        self._background_color = background_color
        self._animate = animate
        self._request_frame = request_frame
        self._clock = clock or _monotonic_ms
        self._update_handler = update_handler
        self._render_interval = 1000.0 / fps
        self._last_render = 0.0
        self._render_pending = False
        self._frame_handle: Any = None
        self._enqueued_size: Optional[tuple[int, int]] = None
        self._disposed = False
        self.wheel_speed = wheel_speed
        self.offset = offset
        self.zoom_factor = 1.0
        self.document_scale = 1.0
        self.set_zoom_factor(1.0)
        if animate:
            self.render()

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def viewport(self) -> Viewport:
        """Copy of the visible window, in scaled units."""
        return evolve(self._viewport)

    @property
    def surface(self) -> Surface:
        return self._surface

    @property
    def children(self) -> list[Drawable]:
        """Copy of the child list, bottom to top."""
        return list(self._children)

    @property
    def animate(self) -> bool:
        return self._animate

    @property
    def render_pending(self) -> bool:
        return self._render_pending

    @property
    def last_render(self) -> float:
        """Time of the last frame, aligned to the render interval."""
        return self._last_render

    @property
    def disposed(self) -> bool:
        return self._disposed

    def add_child(self, child: Drawable) -> None:
        if child in self._children:
            raise ValueError("%r is already a child of this canvas" % (child,))
        self._children.append(child)
        if isinstance(child, Sprite):
            child.canvas = self
        self.invalidate()

    def remove_child(self, child: Drawable) -> None:
        self._children.remove(child)
        if isinstance(child, Sprite):
            child.canvas = None
        self.invalidate()

    def contains(self, child: Drawable) -> bool:
        return child in self._children

    def set_animatable(self, animate: bool) -> None:
        was_animating = self._animate
        self._animate = animate
        if animate and not was_animating and not self._render_pending:
            self.render()

    def set_dimensions(self, width: int, height: int, immediate: bool = True) -> None:
        """
        Resize the canvas extent. Unless `immediate`, the resize is applied
        at the start of the next frame.
        """
        if width < 0 or height < 0:
            raise ValueError("Invalid canvas size: %sx%s" % (width, height))
        self._enqueued_size = (width, height)
        if immediate:
            self._update_canvas_size()
        self.invalidate()

    def set_viewport(self, width: int, height: int) -> None:
        """Set the size of the visible window."""
        if width < 0 or height < 0:
            raise ValueError("Invalid viewport size: %sx%s" % (width, height))
        self._has_viewport = True
        self._viewport.width = width
        self._viewport.height = height
        self._resize_surface(width, height)
        self.pan_viewport(self._viewport.left, self._viewport.top)

    def pan_viewport(self, x: float, y: float) -> None:
        """Scroll the viewport to `x`, `y`, clamped to the canvas extent."""
        viewport = self._viewport
        viewport.left = max(0, min(x, self._width - viewport.width))
        viewport.top = max(0, min(y, self._height - viewport.height))
        self.invalidate()

    def set_zoom_factor(self, scale: float) -> None:
        """Set the uniform scale of the drawing context."""
        if scale <= 0:
            raise ValueError("Invalid zoom factor: %r" % scale)
        self.zoom_factor = scale
        self._surface.get_context().set_transform(scale, 0, 0, scale, 0, 0)
        self.invalidate()

    def set_document_scale(
        self,
        target_width: int,
        target_height: int,
        scale: float,
        zoom: float,
        document: Any = None,
    ) -> None:
        """
        Resize the canvas for a new scale while keeping the relative scroll
        position. Without a scroll range the view is centered.

        :param document: Optional document bound to this canvas, used to
            recompute :py:attr:`document_scale`.
        """
        viewport = self._viewport
        scroll_width = self._width - viewport.width
        scroll_height = self._height - viewport.height
        ratio_x = viewport.left / scroll_width if scroll_width > 0 else HALF
        ratio_y = viewport.top / scroll_height if scroll_height > 0 else HALF

        self.set_dimensions(target_width, target_height, immediate=True)
        self.set_zoom_factor(scale * zoom)

        scroll_width = self._width - viewport.width
        scroll_height = self._height - viewport.height
        self.pan_viewport(scroll_width * ratio_x, scroll_height * ratio_y)

        if document is not None:
            self.document_scale = document.width / self._width
        logger.debug(
            "Document scale %s, zoom factor %s", self.document_scale, self.zoom_factor
        )

    def invalidate(self) -> None:
        """Request a redraw."""
        if self._animate or self._render_pending or self._disposed:
            return
        if self._request_frame is None:
            self.render()
            return
        self._schedule()

    def render(self) -> None:
        """Render one frame."""
        now = self._clock()
        delta = now - self._last_render
        self._render_pending = False
        self._frame_handle = None
        self._last_render = now - (delta % self._render_interval)

        if self._disposed:
            return

        if self._enqueued_size is not None:
            self._update_canvas_size()

        zoom_factor = self.zoom_factor
        width = self._width / zoom_factor
        height = self._height / zoom_factor
        viewport = self._viewport.unscaled(zoom_factor)

        ctx = self._surface.get_context()
        if self._background_color:
            ctx.fill_style = self._background_color
            ctx.fill_rect(0, 0, width, height)
        else:
            ctx.clear_rect(0, 0, width, height)

        update_handler = self._update_handler
        if update_handler is not None:
            update_handler(now)

        for child in list(self._children):
            if update_handler is None:
                child.update(now)
            child.draw(ctx, viewport)

        if self._animate and not self._render_pending:
            self._schedule()

    def handle_interaction(
        self, event: Union[PointerEvent, TouchEvent, WheelEvent]
    ) -> None:
        """
        Translate an input event to document coordinates and dispatch it.

        Pointer events go to the children from top to bottom until one
        handles them. Touch events use the primary touch and go to all
        children. Wheel events pan the viewport by :py:attr:`wheel_speed`
        per axis in the direction of the delta.
        """
        zoom_factor = self.zoom_factor
        viewport = self.viewport
        event_type = EventType(event.type)

        if isinstance(event, WheelEvent):
            self.pan_viewport(
                viewport.left + _sign(event.delta_x) * self.wheel_speed,
                viewport.top + _sign(event.delta_y) * self.wheel_speed,
            )
        elif event_type.is_pointer():
            x = (event.offset_x + viewport.left) / zoom_factor
            y = (event.offset_y + viewport.top) / zoom_factor
            for child in reversed(self._children):
                if child.handle_interaction(x, y, event):
                    break
        elif event_type.is_touch():
            x = y = 0.0
            touch = event.primary
            if touch is not None:
                offset_x = self.offset[0] - viewport.left
                offset_y = self.offset[1] - viewport.top
                x = (touch.page_x - offset_x) / zoom_factor
                y = (touch.page_y - offset_y) / zoom_factor
            for child in reversed(self._children):
                child.handle_interaction(x, y, event)
        self.invalidate()

    def to_document_coordinates(
        self, offset_x: float, offset_y: float
    ) -> tuple[float, float]:
        """Translate element-local coordinates to document coordinates."""
        return (
            (offset_x + self._viewport.left) / self.zoom_factor,
            (offset_y + self._viewport.top) / self.zoom_factor,
        )

    def topil(self):
        """Return the visible pixels as a PIL Image."""
        return self._surface.topil()

    def dispose(self) -> None:
        """Cancel a pending frame, release the surface and drop the children."""
        if self._disposed:
            return
        self._disposed = True
        handle = self._frame_handle
        if handle is not None and hasattr(handle, "cancel"):
            handle.cancel()
        self._frame_handle = None
        self._render_pending = False
        for child in self._children:
            if isinstance(child, Sprite):
                child.canvas = None
        self._children = []
        self._surface.dispose()

    def _schedule(self) -> None:
        request_frame = self._request_frame or self._request_loop_frame
        self._render_pending = True
        self._frame_handle = request_frame(self.render)

    def _request_loop_frame(self, callback: FrameCallback) -> Any:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop, frame not scheduled")
            self._render_pending = False
            return None
        return loop.call_later(self._render_interval / 1000.0, callback)

    def _update_canvas_size(self) -> None:
        if self._enqueued_size is None:
            return
        self._width, self._height = self._enqueued_size
        self._enqueued_size = None
        if not self._has_viewport:
            self._viewport.width = self._width
            self._viewport.height = self._height
        self._resize_surface(self._viewport.width, self._viewport.height)
        # Re-clamp the scroll position to the new extent.
        viewport = self._viewport
        viewport.left = max(0, min(viewport.left, self._width - viewport.width))
        viewport.top = max(0, min(viewport.top, self._height - viewport.height))

    def _resize_surface(self, width: int, height: int) -> None:
        self._surface.ensure_capacity(int(width), int(height))
        # Resizing resets the context state, the zoom is applied again.
        scale = self.zoom_factor
        self._surface.get_context().set_transform(scale, 0, 0, scale, 0, 0)

    def __repr__(self) -> str:
        return "%s(size=%sx%s zoom=%s viewport=%r)" % (
            self.__class__.__name__,
            self._width,
            self._height,
            self.zoom_factor,
            self._viewport,
        )
