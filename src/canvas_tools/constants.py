"""
Various constants for canvas_tools
"""

from enum import Enum

#: Frame rate the render loop aims for.
DEFAULT_FPS = 60

#: Viewport pan distance (in scaled pixels) per wheel event and axis.
WHEEL_SPEED = 20

#: Default encoding quality for snapshots, in the 0 - 100 range.
DEFAULT_QUALITY = 92

#: Snapshot surfaces get a viewport this many times the document size.
SNAPSHOT_VIEWPORT_SCALE = 10

MAX_8BIT = 255.0
HALF = 0.5


class LayerKind(str, Enum):
    """
    Layer kind.
    """

    BITMAP = "bitmap"
    TEXT = "text"


class CompositeOperation(str, Enum):
    """
    Composite operation of a drawing context.

    Only the operations used by the layer pipeline are supported.
    """

    SOURCE_OVER = "source-over"
    DESTINATION_IN = "destination-in"


class ImageType(str, Enum):
    """
    Encoded image type, keyed by mime type.
    """

    PNG = "image/png"
    JPEG = "image/jpeg"
    WEBP = "image/webp"


class EventType(str, Enum):
    """
    Interaction event types understood by the canvas.
    """

    MOUSE_DOWN = "mousedown"
    MOUSE_MOVE = "mousemove"
    MOUSE_UP = "mouseup"
    TOUCH_START = "touchstart"
    TOUCH_MOVE = "touchmove"
    TOUCH_END = "touchend"
    TOUCH_CANCEL = "touchcancel"
    WHEEL = "wheel"

    def is_pointer(self) -> bool:
        return self in (EventType.MOUSE_DOWN, EventType.MOUSE_MOVE, EventType.MOUSE_UP)

    def is_touch(self) -> bool:
        return self in (
            EventType.TOUCH_START,
            EventType.TOUCH_MOVE,
            EventType.TOUCH_END,
            EventType.TOUCH_CANCEL,
        )
