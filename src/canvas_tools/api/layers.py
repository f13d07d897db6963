"""
Layer module.

This module implements the layer model. A layer is one editable unit of a
:py:class:`~canvas_tools.api.document.Document`, with its own source bitmap,
optional mask, effects, filters and selection.

Key classes:

- :py:class:`Layer`: Base class for all layer types
- :py:class:`BitmapLayer`: Layer showing its source bitmap
- :py:class:`TextLayer`: Layer whose source is rasterized from a
  :py:class:`~canvas_tools.api.typesetting.Text` descriptor

The source bitmap is authoritative. The visible bitmap is derived by the
layer pipeline (:py:class:`~canvas_tools.composite.render.LayerRenderer`)
and owned by the layer's sprite. Effects, filters, text and mask are
replaced through the ``update_*`` methods, which bump :py:attr:`Layer.generation`
so that cached renders can be recognized as stale::

    layer = BitmapLayer(Surface.frompil(image), name="photo")
    layer.update_effects(rotation=math.pi / 2, mirror_x=True)
    layer.update_filters(levels=0.5)
    if layer.kind == "bitmap":
        ...
"""

import itertools
import logging
from typing import Any, Iterable, Optional, Sequence

from attrs import evolve

from canvas_tools.api.effects import Effects, Filters
from canvas_tools.api.typesetting import Text
from canvas_tools.geometry import Rectangle, get_rectangle_for_selection
from canvas_tools.surface import Surface

logger = logging.getLogger(__name__)

_layer_ids = itertools.count(1)


class Layer(object):
    """
    Common layer properties.

    :param source: Source bitmap, the layer size defaults to its size.
    :param width: Layer width, defaults to the source width.
    :param height: Layer height, defaults to the source height.
    """

    def __init__(
        self,
        source: Optional[Surface] = None,
        name: str = "",
        x: float = 0,
        y: float = 0,
        width: Optional[int] = None,
        height: Optional[int] = None,
        effects: Optional[Effects] = None,
        filters: Optional[Filters] = None,
    ):
        if width is None:
            width = source.width if source is not None else 0
        if height is None:
            height = source.height if source is not None else 0
        if width < 0 or height < 0:
            raise ValueError("Invalid layer size: %sx%s" % (width, height))
        self._layer_id = next(_layer_ids)
        self.name = name or "Layer %d" % self._layer_id
        self.x = x
        self.y = y
        self._width = int(width)
        self._height = int(height)
        self._source = source
        self._mask: Optional[Surface] = None
        self._mask_x = 0.0
        self._mask_y = 0.0
        self._effects = effects or Effects()
        self._filters = filters or Filters()
        self._selection: Optional[list[tuple[float, float]]] = None
        self._generation = 0
        self._rendering = False

    @property
    def layer_id(self) -> int:
        """Unique id of the layer."""
        return self._layer_id

    @property
    def kind(self) -> str:
        """
        Kind of this layer, either "bitmap" or "text".

        :return: `str`
        """
        return self.__class__.__name__.lower().replace("layer", "")

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def size(self) -> tuple[int, int]:
        """(width, height) tuple."""
        return self._width, self._height

    @property
    def bbox(self) -> tuple[float, float, float, float]:
        """(left, top, right, bottom) tuple in document coordinates."""
        return self.x, self.y, self.x + self._width, self.y + self._height

    @property
    def source(self) -> Optional[Surface]:
        """Source bitmap."""
        return self._source

    @property
    def mask(self) -> Optional[Surface]:
        """Mask bitmap, or None."""
        return self._mask

    @property
    def mask_x(self) -> float:
        return self._mask_x

    @property
    def mask_y(self) -> float:
        return self._mask_y

    @property
    def effects(self) -> Effects:
        return self._effects

    @property
    def filters(self) -> Filters:
        return self._filters

    @property
    def selection(self) -> Optional[list[tuple[float, float]]]:
        """Selection polygon as ``(x, y)`` points, or None."""
        return self._selection

    @selection.setter
    def selection(self, points: Optional[Iterable[Sequence[float]]]) -> None:
        if points is None:
            self._selection = None
        else:
            self._selection = [(float(p[0]), float(p[1])) for p in points]

    @property
    def generation(self) -> int:
        """Counter incremented by every change that invalidates the render."""
        return self._generation

    @property
    def rendering(self) -> bool:
        """True while the layer pipeline runs for this layer."""
        return self._rendering

    def has_mask(self) -> bool:
        return self._mask is not None

    def has_selection(self) -> bool:
        return bool(self._selection)

    def get_selection_rectangle(self) -> Rectangle:
        return get_rectangle_for_selection(self._selection or [])

    def update_effects(self, effects: Optional[Effects] = None, **changes: Any) -> None:
        """
        Replace the effects, either with `effects` or with a copy of the
        current effects updated by keyword arguments.

        :raises RuntimeError: While the layer is being rendered.
        """
        self._invalidate()
        self._effects = evolve(effects or self._effects, **changes)

    def update_filters(self, filters: Optional[Filters] = None, **changes: Any) -> None:
        """
        Replace the filters, see :py:meth:`update_effects`.

        :raises RuntimeError: While the layer is being rendered.
        """
        self._invalidate()
        self._filters = evolve(filters or self._filters, **changes)

    def set_mask(self, mask: Optional[Surface], x: float = 0, y: float = 0) -> None:
        """
        Set the mask bitmap and its offset, or remove the mask with None.

        :raises RuntimeError: While the layer is being rendered.
        """
        self._invalidate()
        self._mask = mask
        self._mask_x = x
        self._mask_y = y

    def set_source(self, source: Optional[Surface]) -> None:
        self._invalidate()
        self._source = source

    def _invalidate(self) -> None:
        if self._rendering:
            raise RuntimeError(
                "Layer %r cannot change while it is being rendered" % self.name
            )
        self._generation += 1

    def __repr__(self) -> str:
        return "%s(%r size=%dx%d%s)" % (
            self.__class__.__name__,
            self.name,
            self._width,
            self._height,
            " mask" if self.has_mask() else "",
        )


class BitmapLayer(Layer):
    """
    Layer showing its source bitmap.
    """


class TextLayer(Layer):
    """
    Layer rendering a text descriptor.

    The source surface is the text render target. It is created at the
    layer size when not given and redrawn on every pipeline run.
    """

    def __init__(
        self,
        text: Optional[Text] = None,
        width: Optional[int] = None,
        height: Optional[int] = None,
        source: Optional[Surface] = None,
        **kwargs: Any,
    ):
        if source is None:
            source = Surface(width or 0, height or 0)
        super(TextLayer, self).__init__(source, width=width, height=height, **kwargs)
        self._text = text or Text()

    @property
    def text(self) -> Text:
        return self._text

    def update_text(self, text: Optional[Text] = None, **changes: Any) -> None:
        """
        Replace the text descriptor, see :py:meth:`Layer.update_effects`.

        :raises RuntimeError: While the layer is being rendered.
        """
        self._invalidate()
        self._text = evolve(text or self._text, **changes)
