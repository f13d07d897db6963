"""
Typesetting module.

This module provides the text descriptor of
:py:class:`~canvas_tools.api.layers.TextLayer` objects and the
:py:class:`FontLoader` that resolves font names to Pillow fonts.

Example::

    from canvas_tools.api.typesetting import FontLoader, Text

    text = Text("Hello\\nworld", font="DejaVuSans.ttf", size=24, color="#ff0000")
    loader = FontLoader()
    font = await loader.load(text.font, text.size)
"""

import asyncio
import logging
from typing import Any, Mapping, Optional, Union

from attrs import define, field
from PIL import ImageFont

logger = logging.getLogger(__name__)

PILFont = Union[ImageFont.FreeTypeFont, ImageFont.ImageFont]


@define(frozen=True)
class Text:
    """
    Text descriptor of a text layer.

    :param value: Text, lines are separated by ``\\n``.
    :param font: Font name or path understood by the font loader.
    :param size: Font size in pixels.
    :param color: Any Pillow color string.
    :param line_height: Distance between baselines, derived from the font
        when not given.
    :param spacing: Fixed advance per character; 0 keeps the font's natural
        spacing and kerning.
    """

    value: str = ""
    font: str = "DejaVuSans.ttf"
    size: float = field(default=16.0, converter=float)
    color: str = "#000000"
    line_height: Optional[float] = None
    spacing: float = field(default=0.0, converter=float)

    @property
    def lines(self) -> list[str]:
        return self.value.split("\n")

    def serialize(self) -> dict:
        return {
            "v": self.value,
            "f": self.font,
            "s": self.size,
            "c": self.color,
            "l": self.line_height,
            "sp": self.spacing,
        }

    @classmethod
    def deserialize(cls, data: Mapping[str, Any]) -> "Text":
        return cls(
            value=data.get("v", ""),
            font=data.get("f", "DejaVuSans.ttf"),
            size=data.get("s", 16.0),
            color=data.get("c", "#000000"),
            line_height=data.get("l"),
            spacing=data.get("sp", 0.0),
        )


class FontLoader:
    """
    Asynchronous font loader.

    Fonts are opened with :py:func:`PIL.ImageFont.truetype` in a worker
    thread and cached per ``(font, size)``. Failed loads are not cached and
    raise :py:class:`OSError` or :py:class:`ValueError` to the caller.
    """

    def __init__(self) -> None:
        self._cache: dict[tuple[str, float], PILFont] = {}

    def __contains__(self, key: tuple[str, float]) -> bool:
        return key in self._cache

    async def load(self, font: str, size: float) -> PILFont:
        key = (font, size)
        cached = self._cache.get(key)
        if cached is not None:
            return cached
        logger.debug("Loading font %r at size %s", font, size)
        loaded = await asyncio.to_thread(ImageFont.truetype, font, size)
        self._cache[key] = loaded
        return loaded

    def clear(self) -> None:
        self._cache.clear()
