"""
Document module.
"""

import logging
from typing import Iterable, Iterator, Optional

from canvas_tools.api.layers import Layer

logger = logging.getLogger(__name__)


class Document(object):
    """
    Document holding an ordered list of layers.

    The list order is the z-order: the first layer is the bottom-most one.
    Documents behave like a list of layers::

        document = Document(800, 600, name="poster")
        document.append(background)
        document.append(title)
        for layer in document:
            print(layer.name, layer.kind)
    """

    def __init__(
        self,
        width: int,
        height: int,
        name: str = "",
        layers: Optional[Iterable[Layer]] = None,
    ):
        if width <= 0 or height <= 0:
            raise ValueError("Invalid document size: %sx%s" % (width, height))
        self.name = name
        self._width = int(width)
        self._height = int(height)
        self._layers: list[Layer] = []
        for layer in layers or ():
            self.append(layer)

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
    def layers(self) -> list[Layer]:
        """Copy of the layer list, bottom to top."""
        return list(self._layers)

    def append(self, layer: Layer) -> None:
        self._check(layer)
        self._layers.append(layer)

    def insert(self, index: int, layer: Layer) -> None:
        self._check(layer)
        self._layers.insert(index, layer)

    def remove(self, layer: Layer) -> None:
        self._layers.remove(layer)

    def index(self, layer: Layer) -> int:
        return self._layers.index(layer)

    def find(self, layer_id: int) -> Optional[Layer]:
        """Return the layer with the given id, or None."""
        for layer in self._layers:
            if layer.layer_id == layer_id:
                return layer
        return None

    def _check(self, layer: Layer) -> None:
        if not isinstance(layer, Layer):
            raise TypeError("Expected Layer, got %s" % type(layer).__name__)
        if layer in self._layers:
            raise ValueError("Layer %r is already in the document" % layer.name)

    def __len__(self) -> int:
        return len(self._layers)

    def __iter__(self) -> Iterator[Layer]:
        return iter(self._layers)

    def __getitem__(self, index: int) -> Layer:
        return self._layers[index]

    def __contains__(self, layer: object) -> bool:
        return layer in self._layers

    def __repr__(self) -> str:
        return "%s(%r size=%dx%d layers=%d)" % (
            self.__class__.__name__,
            self.name,
            self._width,
            self._height,
            len(self._layers),
        )
