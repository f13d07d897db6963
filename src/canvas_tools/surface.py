"""
Pixel surfaces and their 2D drawing context.

A :py:class:`Surface` owns a non-premultiplied RGBA pixel buffer stored as an
``uint8`` NumPy array of shape ``(height, width, 4)``. Drawing happens through
the surface's :py:class:`DrawingContext`, which keeps a stack of drawing
states (transform, composite operation, clip region, styles) in the manner of
an HTML canvas 2D context.

Example::

    from canvas_tools.surface import Surface

    with Surface(200, 100) as surface:
        ctx = surface.get_context()
        with ctx.state():
            ctx.translate(100, 50)
            ctx.rotate(math.pi / 4)
            ctx.draw_image(source, -25, -25)
        image = surface.topil()

Images are sampled nearest-neighbour at pixel centers, so right angle
rotations and mirroring map pixels exactly.
"""

import contextlib
import logging
import math
from typing import Any, Iterator, Optional, Sequence, Union

import numpy as np
from attrs import define, evolve, field
from PIL import Image, ImageColor
from skimage import draw as skdraw

from canvas_tools.constants import MAX_8BIT, CompositeOperation

logger = logging.getLogger(__name__)

# Added before flooring sampled coordinates to absorb matrix round-off.
_SAMPLE_EPSILON = 1e-7

Color = tuple[int, int, int, int]
ImageSource = Union["Surface", np.ndarray, Image.Image]


def parse_color(value: Union[str, Sequence[int]]) -> Color:
    """Convert a Pillow color string or an RGB(A) sequence to an RGBA tuple."""
    if isinstance(value, str):
        rgba = ImageColor.getcolor(value, "RGBA")
    else:
        rgba = tuple(int(v) for v in value)
    if len(rgba) == 3:
        rgba = rgba + (255,)
    if len(rgba) != 4:
        raise ValueError("Invalid color: %r" % (value,))
    return rgba  # type: ignore[return-value]


class Surface(object):
    """
    Owned RGBA pixel surface.

    The surface is a context manager; leaving the ``with`` block disposes
    the pixel buffer.
    """

    def __init__(self, width: int, height: int):
        width, height = int(width), int(height)
        if width < 0 or height < 0:
            raise ValueError("Invalid surface size: %dx%d" % (width, height))
        self._data = np.zeros((height, width, 4), dtype=np.uint8)
        self._context: Optional[DrawingContext] = None
        self._disposed = False

    @classmethod
    def fromarray(cls, array: np.ndarray) -> "Surface":
        """Create a surface from an ``(height, width, 4)`` array."""
        array = np.asarray(array)
        if array.ndim != 3 or array.shape[2] != 4:
            raise ValueError("Expected RGBA array, got shape %s" % (array.shape,))
        surface = cls(array.shape[1], array.shape[0])
        surface.put_image_data(array)
        return surface

    @classmethod
    def frompil(cls, image: Image.Image) -> "Surface":
        """Create a surface from a PIL Image."""
        return cls.fromarray(np.asarray(image.convert("RGBA")))

    @property
    def width(self) -> int:
        return self.data.shape[1]

    @property
    def height(self) -> int:
        return self.data.shape[0]

    @property
    def size(self) -> tuple[int, int]:
        """(width, height) tuple."""
        return self.width, self.height

    @property
    def data(self) -> np.ndarray:
        """Pixel buffer, ``uint8`` array of shape ``(height, width, 4)``."""
        if self._disposed:
            raise ValueError("Surface has been disposed")
        return self._data

    @property
    def disposed(self) -> bool:
        return self._disposed

    def get_context(self) -> "DrawingContext":
        """Return the drawing context of this surface."""
        if self._context is None:
            self._context = DrawingContext(self)
        return self._context

    def ensure_capacity(self, width: int, height: int) -> bool:
        """
        Make the surface `width` x `height` pixels large.

        Like assigning a canvas size, this always clears the pixel content
        and resets the drawing state.

        :return: True when the pixel buffer was reallocated.
        """
        width, height = int(width), int(height)
        if width < 0 or height < 0:
            raise ValueError("Invalid surface size: %dx%d" % (width, height))
        reallocated = (width, height) != self.size
        if reallocated:
            logger.debug("Reallocating surface %s -> %dx%d", self.size, width, height)
            self._data = np.zeros((height, width, 4), dtype=np.uint8)
        else:
            self._data[:] = 0
        if self._context is not None:
            self._context.reset()
        return reallocated

    def clear(self) -> None:
        self.data[:] = 0

    def get_image_data(self) -> np.ndarray:
        """Copy of the pixels as ``float32`` values in the 0 - 255 range."""
        return self.data.astype(np.float32)

    def put_image_data(self, data: np.ndarray, x: int = 0, y: int = 0) -> None:
        """
        Write pixel values at the given offset, clamping to [0, 255] and
        rounding half to even, as an 8-bit clamped pixel buffer does.
        """
        data = np.asarray(data)
        if data.ndim != 3 or data.shape[2] != 4:
            raise ValueError("Expected RGBA array, got shape %s" % (data.shape,))
        target = self.data
        x, y = int(x), int(y)
        left, top = max(0, x), max(0, y)
        right = min(target.shape[1], x + data.shape[1])
        bottom = min(target.shape[0], y + data.shape[0])
        if left >= right or top >= bottom:
            return
        values = data[top - y : bottom - y, left - x : right - x]
        if values.dtype != np.uint8:
            values = np.rint(np.clip(values, 0, MAX_8BIT)).astype(np.uint8)
        target[top:bottom, left:right] = values

    def copy(self) -> "Surface":
        return Surface.fromarray(self.data)

    def topil(self) -> Image.Image:
        """Return the pixels as an RGBA PIL Image."""
        return Image.fromarray(self.data.copy())

    def dispose(self) -> None:
        """Release the pixel buffer."""
        self._data = np.zeros((0, 0, 4), dtype=np.uint8)
        self._context = None
        self._disposed = True

    def __enter__(self) -> "Surface":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.dispose()

    def __repr__(self) -> str:
        if self._disposed:
            return "%s(disposed)" % self.__class__.__name__
        return "%s(size=%dx%d)" % (self.__class__.__name__, self.width, self.height)


def _translation(x: float, y: float) -> np.ndarray:
    return np.array([[1.0, 0.0, x], [0.0, 1.0, y], [0.0, 0.0, 1.0]])


def _scaling(x: float, y: float) -> np.ndarray:
    return np.array([[x, 0.0, 0.0], [0.0, y, 0.0], [0.0, 0.0, 1.0]])


def _rotation(angle: float) -> np.ndarray:
    cos, sin = math.cos(angle), math.sin(angle)
    return np.array([[cos, -sin, 0.0], [sin, cos, 0.0], [0.0, 0.0, 1.0]])


@define
class _DrawingState:
    transform: np.ndarray = field(factory=lambda: np.identity(3))
    composite_operation: CompositeOperation = CompositeOperation.SOURCE_OVER
    clip: Optional[np.ndarray] = None
    fill_style: Color = (0, 0, 0, 255)
    stroke_style: Color = (0, 0, 0, 255)


class DrawingContext(object):
    """
    2D drawing context of a :py:class:`Surface`.

    Transform operations post-multiply the current transformation matrix, so
    ``translate`` followed by ``rotate`` rotates around the translated origin.
    Use :py:meth:`state` to scope changes::

        with ctx.state():
            ctx.scale(-1, 1)
            ctx.draw_image(source, -source.width, 0)
    """

    def __init__(self, surface: Surface):
        self._surface = surface
        self._state = _DrawingState()
        self._stack: list[_DrawingState] = []
        self._path: list[list[tuple[float, float]]] = []

    @property
    def surface(self) -> Surface:
        return self._surface

    @property
    def transform(self) -> np.ndarray:
        """Copy of the current 3x3 transformation matrix."""
        return self._state.transform.copy()

    @property
    def composite_operation(self) -> CompositeOperation:
        return self._state.composite_operation

    @composite_operation.setter
    def composite_operation(self, value: Union[str, CompositeOperation]) -> None:
        self._state.composite_operation = CompositeOperation(value)

    @property
    def fill_style(self) -> Color:
        return self._state.fill_style

    @fill_style.setter
    def fill_style(self, value: Union[str, Sequence[int]]) -> None:
        self._state.fill_style = parse_color(value)

    @property
    def stroke_style(self) -> Color:
        return self._state.stroke_style

    @stroke_style.setter
    def stroke_style(self, value: Union[str, Sequence[int]]) -> None:
        self._state.stroke_style = parse_color(value)

    def reset(self) -> None:
        """Drop all saved states, the current path and the clip region."""
        self._state = _DrawingState()
        self._stack = []
        self._path = []

    def save(self) -> None:
        self._stack.append(evolve(self._state, transform=self._state.transform.copy()))

    def restore(self) -> None:
        if self._stack:
            self._state = self._stack.pop()

    @contextlib.contextmanager
    def state(self) -> Iterator["DrawingContext"]:
        """Save the drawing state and restore it on exit, also on errors."""
        self.save()
        try:
            yield self
        finally:
            self.restore()

    def translate(self, x: float, y: float) -> None:
        self._state.transform = self._state.transform @ _translation(x, y)

    def scale(self, x: float, y: float) -> None:
        self._state.transform = self._state.transform @ _scaling(x, y)

    def rotate(self, angle: float) -> None:
        self._state.transform = self._state.transform @ _rotation(angle)

    def set_transform(
        self, a: float, b: float, c: float, d: float, e: float, f: float
    ) -> None:
        self._state.transform = np.array([[a, c, e], [b, d, f], [0.0, 0.0, 1.0]])

    def reset_transform(self) -> None:
        self._state.transform = np.identity(3)

    def clear_rect(self, x: float, y: float, width: float, height: float) -> None:
        """Make the transformed rectangle fully transparent."""
        coverage = self._rect_coverage(self._state.transform, (x, y, width, height))
        if coverage is None:
            return
        if self._state.clip is not None:
            coverage = coverage * self._state.clip
        data = self._surface.data
        data[coverage > 0] = 0

    def fill_rect(self, x: float, y: float, width: float, height: float) -> None:
        """Fill the transformed rectangle with the fill style."""
        coverage = self._rect_coverage(self._state.transform, (x, y, width, height))
        if coverage is None:
            coverage = np.zeros(self._surface.data.shape[:2], dtype=np.float32)
        red, green, blue, alpha = self._state.fill_style
        color = np.empty(coverage.shape + (3,), dtype=np.float32)
        color[:] = (red / MAX_8BIT, green / MAX_8BIT, blue / MAX_8BIT)
        self._composite(color, coverage * (alpha / MAX_8BIT))

    def draw_image(
        self,
        image: ImageSource,
        dx: float,
        dy: float,
        dw: Optional[float] = None,
        dh: Optional[float] = None,
        source: Optional[tuple[float, float, float, float]] = None,
    ) -> None:
        """
        Draw an image at ``(dx, dy)`` in user space.

        :param image: :py:class:`Surface`, RGBA ``uint8`` array or PIL Image.
        :param dw: Destination width, defaults to the source width.
        :param dh: Destination height, defaults to the source height.
        :param source: Optional ``(sx, sy, sw, sh)`` rectangle of the image
            to draw, defaults to the whole image.
        """
        pixels = _as_array(image)
        sx, sy, sw, sh = source or (0, 0, pixels.shape[1], pixels.shape[0])
        dw = sw if dw is None else dw
        dh = sh if dh is None else dh
        if sw == 0 or sh == 0 or dw == 0 or dh == 0:
            logger.debug("Ignoring empty image draw")
            return
        matrix = (
            self._state.transform
            @ _translation(dx, dy)
            @ _scaling(dw / sw, dh / sh)
            @ _translation(-sx, -sy)
        )
        color, alpha = self._sample(pixels, matrix, (sx, sy, sw, sh))
        self._composite(color, alpha)

    def begin_path(self) -> None:
        self._path = []

    def move_to(self, x: float, y: float) -> None:
        self._path.append([self._apply(x, y)])

    def line_to(self, x: float, y: float) -> None:
        if not self._path:
            self._path.append([])
        self._path[-1].append(self._apply(x, y))

    def close_path(self) -> None:
        if self._path and self._path[-1]:
            self._path[-1].append(self._path[-1][0])

    def clip(self) -> None:
        """Intersect the clip region with the interior of the current path."""
        height, width = self._surface.data.shape[:2]
        mask = np.zeros((height, width), dtype=np.float32)
        for points in self._path:
            if len(points) < 3:
                continue
            # Pixel (row, col) is inside when its center is.
            rows = [y - 0.5 for _, y in points]
            cols = [x - 0.5 for x, _ in points]
            rr, cc = skdraw.polygon(rows, cols, shape=(height, width))
            mask[rr, cc] = 1.0
        if self._state.clip is not None:
            mask = mask * self._state.clip
        self._state.clip = mask

    def stroke(self) -> None:
        """Draw the current path as one pixel wide lines in the stroke style."""
        height, width = self._surface.data.shape[:2]
        coverage = np.zeros((height, width), dtype=np.float32)
        for points in self._path:
            for (x0, y0), (x1, y1) in zip(points, points[1:]):
                rr, cc = skdraw.line(
                    int(math.floor(y0)),
                    int(math.floor(x0)),
                    int(math.floor(y1)),
                    int(math.floor(x1)),
                )
                inside = (rr >= 0) & (rr < height) & (cc >= 0) & (cc < width)
                coverage[rr[inside], cc[inside]] = 1.0
        red, green, blue, alpha = self._state.stroke_style
        color = np.empty((height, width, 3), dtype=np.float32)
        color[:] = (red / MAX_8BIT, green / MAX_8BIT, blue / MAX_8BIT)
        self._composite(color, coverage * (alpha / MAX_8BIT))

    def _apply(self, x: float, y: float) -> tuple[float, float]:
        matrix = self._state.transform
        return (
            float(matrix[0, 0] * x + matrix[0, 1] * y + matrix[0, 2]),
            float(matrix[1, 0] * x + matrix[1, 1] * y + matrix[1, 2]),
        )

    def _device_box(
        self, matrix: np.ndarray, rect: tuple[float, float, float, float]
    ) -> Optional[tuple[int, int, int, int]]:
        """Pixel bounds of a transformed user space rectangle."""
        x, y, w, h = rect
        corners = matrix @ np.array(
            [[x, x + w, x, x + w], [y, y, y + h, y + h], [1.0, 1.0, 1.0, 1.0]]
        )
        height, width = self._surface.data.shape[:2]
        left = max(0, int(math.floor(corners[0].min())))
        top = max(0, int(math.floor(corners[1].min())))
        right = min(width, int(math.ceil(corners[0].max())))
        bottom = min(height, int(math.ceil(corners[1].max())))
        if left >= right or top >= bottom:
            return None
        return left, top, right, bottom

    def _inverse_map(
        self, matrix: np.ndarray, rect: tuple[float, float, float, float]
    ) -> Optional[tuple[tuple[int, int, int, int], np.ndarray, np.ndarray, np.ndarray]]:
        """
        Map the pixel centers covered by a transformed rectangle back into
        user space. Returns the pixel box, user coordinates and the inside test.
        """
        if abs(np.linalg.det(matrix[:2, :2])) < 1e-12:
            return None
        box = self._device_box(matrix, rect)
        if box is None:
            return None
        left, top, right, bottom = box
        inverse = np.linalg.inv(matrix)
        ys, xs = np.mgrid[top:bottom, left:right].astype(np.float64) + 0.5
        u = inverse[0, 0] * xs + inverse[0, 1] * ys + inverse[0, 2]
        v = inverse[1, 0] * xs + inverse[1, 1] * ys + inverse[1, 2]
        x, y, w, h = rect
        x0, x1 = sorted((x, x + w))
        y0, y1 = sorted((y, y + h))
        inside = (
            (u + _SAMPLE_EPSILON >= x0)
            & (u + _SAMPLE_EPSILON < x1)
            & (v + _SAMPLE_EPSILON >= y0)
            & (v + _SAMPLE_EPSILON < y1)
        )
        return box, u, v, inside

    def _rect_coverage(
        self, matrix: np.ndarray, rect: tuple[float, float, float, float]
    ) -> Optional[np.ndarray]:
        mapped = self._inverse_map(matrix, rect)
        if mapped is None:
            return None
        (left, top, right, bottom), _, _, inside = mapped
        coverage = np.zeros(self._surface.data.shape[:2], dtype=np.float32)
        coverage[top:bottom, left:right] = inside
        return coverage

    def _sample(
        self,
        pixels: np.ndarray,
        matrix: np.ndarray,
        rect: tuple[float, float, float, float],
    ) -> tuple[np.ndarray, np.ndarray]:
        height, width = self._surface.data.shape[:2]
        color = np.zeros((height, width, 3), dtype=np.float32)
        alpha = np.zeros((height, width), dtype=np.float32)
        mapped = self._inverse_map(matrix, rect)
        if mapped is None:
            return color, alpha
        (left, top, right, bottom), u, v, inside = mapped
        iu = np.floor(u + _SAMPLE_EPSILON).astype(np.int64)
        iv = np.floor(v + _SAMPLE_EPSILON).astype(np.int64)
        inside &= (iu >= 0) & (iu < pixels.shape[1]) & (iv >= 0) & (iv < pixels.shape[0])
        sampled = pixels[iv[inside], iu[inside]].astype(np.float32) / MAX_8BIT
        region_color = color[top:bottom, left:right]
        region_alpha = alpha[top:bottom, left:right]
        region_color[inside] = sampled[:, :3]
        region_alpha[inside] = sampled[:, 3]
        return color, alpha

    def _composite(self, color: np.ndarray, alpha: np.ndarray) -> None:
        """Composite source color / alpha over the whole surface."""
        data = self._surface.data
        dst = data.astype(np.float32) / MAX_8BIT
        dst_color, dst_alpha = dst[:, :, :3], dst[:, :, 3]
        operation = self._state.composite_operation

        if operation == CompositeOperation.DESTINATION_IN:
            out_alpha = dst_alpha * alpha
            out_color = dst_color
        else:
            out_alpha = alpha + dst_alpha * (1.0 - alpha)
            weighted = color * alpha[:, :, None] + dst_color * (
                dst_alpha * (1.0 - alpha)
            )[:, :, None]
            with np.errstate(divide="ignore", invalid="ignore"):
                out_color = np.where(
                    out_alpha[:, :, None] > 0, weighted / out_alpha[:, :, None], 0.0
                )

        result = np.concatenate((out_color, out_alpha[:, :, None]), axis=2)
        clip = self._state.clip
        if clip is not None:
            result = result * clip[:, :, None] + dst * (1.0 - clip[:, :, None])
        data[:] = np.rint(np.clip(result * MAX_8BIT, 0, MAX_8BIT)).astype(np.uint8)


def _as_array(image: ImageSource) -> np.ndarray:
    if isinstance(image, Surface):
        return image.data
    if isinstance(image, Image.Image):
        return np.asarray(image.convert("RGBA"))
    if isinstance(image, np.ndarray) and image.ndim == 3 and image.shape[2] == 4:
        return image
    raise TypeError("Expected Surface, PIL Image or RGBA array, got %s" % type(image).__name__)
