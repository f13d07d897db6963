"""
Geometry helpers shared by the rendering pipeline and the on-screen canvas.

All functions are pure; rectangles are expressed as ``(left, top, width,
height)`` in whatever unit the caller works in (document pixels for layers
and selections, scaled pixels for the on-screen viewport).
"""

import math
from typing import Iterable, Sequence

from attrs import define, field

FULL_TURN = 2 * math.pi

# Floating point noise below this is ignored when rounding sizes up to pixels.
_EPSILON = 1e-6


@define
class Rectangle:
    """Axis-aligned rectangle."""

    left: float = 0.0
    top: float = 0.0
    width: float = 0.0
    height: float = 0.0

    @property
    def right(self) -> float:
        return self.left + self.width

    @property
    def bottom(self) -> float:
        return self.top + self.height

    @property
    def bbox(self) -> tuple[float, float, float, float]:
        """(left, top, right, bottom) tuple."""
        return self.left, self.top, self.right, self.bottom

    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def contains(self, x: float, y: float) -> bool:
        return self.left <= x < self.right and self.top <= y < self.bottom

    def intersects(self, other: "Rectangle") -> bool:
        return (
            self.left < other.right
            and other.left < self.right
            and self.top < other.bottom
            and other.top < self.bottom
        )


@define
class Viewport(Rectangle):
    """
    Visible window of a canvas.

    For the on-screen canvas the values are in scaled pixels; the render loop
    hands children an unscaled copy, see :py:meth:`unscaled`.
    """

    def unscaled(self, zoom_factor: float) -> "Viewport":
        return Viewport(
            self.left / zoom_factor,
            self.top / zoom_factor,
            self.width / zoom_factor,
            self.height / zoom_factor,
        )


@define(frozen=True)
class Size:
    width: int = field(converter=int)
    height: int = field(converter=int)

    def __iter__(self):
        return iter((self.width, self.height))


def normalize_rotation(rotation: float) -> float:
    """Return the rotation (radians) reduced to the ``[0, 2π)`` range."""
    rotation = rotation % FULL_TURN
    # Tiny negative inputs wrap to exactly a full turn.
    return 0.0 if rotation >= FULL_TURN else rotation


def to_pixels(value: float) -> int:
    """Round a size up to whole pixels, ignoring floating point noise."""
    return max(0, int(math.ceil(round(value, 6) - _EPSILON)))


def get_rotated_size(width: float, height: float, rotation: float) -> Size:
    """
    Size of the bounding box of a `width` x `height` rectangle rotated by
    `rotation` radians.

    Example::

        >>> tuple(get_rotated_size(100, 50, math.pi / 2))
        (50, 100)
    """
    rotation = normalize_rotation(rotation)
    cos = abs(math.cos(rotation))
    sin = abs(math.sin(rotation))
    return Size(
        to_pixels(width * cos + height * sin),
        to_pixels(width * sin + height * cos),
    )


def get_rotation_center(
    left: float, top: float, width: float, height: float
) -> tuple[float, float]:
    """
    Pivot point for rotating a rectangle. Width and height may be negative
    (mirrored boxes), in which case the center lies left of / above the origin.
    """
    return left + width / 2, top + height / 2


def get_rectangle_for_selection(
    selection: Iterable[Sequence[float]],
) -> Rectangle:
    """
    Bounding rectangle of a selection polygon given as ``(x, y)`` points.

    An empty selection yields an empty rectangle at the origin.
    """
    points = list(selection)
    if not points:
        return Rectangle(0, 0, 0, 0)
    xs = [float(p[0]) for p in points]
    ys = [float(p[1]) for p in points]
    left, top = min(xs), min(ys)
    return Rectangle(left, top, max(xs) - left, max(ys) - top)
