"""
Interaction events.

Events are plain value objects handed to
:py:meth:`ZoomableCanvas.handle_interaction
<canvas_tools.api.canvas.ZoomableCanvas.handle_interaction>` by the UI layer.
Pointer events carry coordinates local to the canvas element, touches carry
page coordinates.
"""

from typing import Optional, Sequence

from attrs import define, field

from canvas_tools.constants import EventType


def _to_tuple(value: Sequence["Touch"]) -> tuple["Touch", ...]:
    return tuple(value)


@define(frozen=True)
class PointerEvent:
    """Mouse event with coordinates relative to the canvas element."""

    type: EventType = field(converter=EventType)
    offset_x: float = 0.0
    offset_y: float = 0.0

    @classmethod
    def from_page(
        cls,
        type: EventType,
        page_x: float,
        page_y: float,
        canvas_offset: tuple[float, float] = (0.0, 0.0),
    ) -> "PointerEvent":
        """Create an event from page coordinates and the element position."""
        return cls(type, page_x - canvas_offset[0], page_y - canvas_offset[1])


@define(frozen=True)
class Touch:
    page_x: float
    page_y: float
    identifier: int = 0


@define(frozen=True)
class TouchEvent:
    """
    Touch event.

    `touches` lists the active touches, `changed_touches` the ones that
    changed; the latter is used when a touch ended and no touch is active.
    """

    type: EventType = field(converter=EventType)
    touches: tuple[Touch, ...] = field(default=(), converter=_to_tuple)
    changed_touches: tuple[Touch, ...] = field(default=(), converter=_to_tuple)

    @property
    def primary(self) -> Optional[Touch]:
        touches = self.touches or self.changed_touches
        return touches[0] if touches else None


@define(frozen=True)
class WheelEvent:
    delta_x: float = 0.0
    delta_y: float = 0.0

    @property
    def type(self) -> EventType:
        return EventType.WHEEL
