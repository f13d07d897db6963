"""
Text rasterization.
"""

import logging
from typing import Any

import numpy as np
from PIL import Image, ImageColor, ImageDraw, ImageFont

from canvas_tools.api.layers import TextLayer
from canvas_tools.api.typesetting import PILFont, Text
from canvas_tools.constants import MAX_8BIT

logger = logging.getLogger(__name__)

# Reference glyphs for the descent of the default line height.
_METRICS_TEXT = "Wq"


async def load_font(font_loader: Any, text: Text) -> PILFont:
    """
    Load the font of `text`, falling back to Pillow's default font when the
    loader fails.
    """
    try:
        return await font_loader.load(text.font, text.size)
    except (OSError, ValueError) as e:
        logger.warning(
            "Failed to load font %r, falling back to the default font: %s",
            text.font,
            e,
        )
        return ImageFont.load_default(text.size)


def get_line_height(font: PILFont, size: float) -> float:
    """Font size plus the descent of the reference glyphs."""
    _, _, _, bottom = font.getbbox(_METRICS_TEXT, anchor="ls")
    return size + abs(bottom)


async def render_text(layer: TextLayer, font_loader: Any) -> None:
    """
    Rasterize the text of `layer` into its source surface.

    Every line is drawn on its baseline at ``line_height * (index + 1)``.
    With a letter spacing, characters are placed at fixed ``index * spacing``
    offsets instead of the font's own advances.
    """
    text = layer.text
    source = layer.source
    if not text.value or source is None:
        return
    font = await load_font(font_loader, text)

    width, height = source.size
    coverage = Image.new("L", (width, height), 0)
    draw = ImageDraw.Draw(coverage)
    line_height = text.line_height or get_line_height(font, text.size)

    for line_index, line in enumerate(text.lines):
        y = line_height * (line_index + 1)
        if not text.spacing:
            draw.text((0, y), line, fill=255, font=font, anchor="ls")
        else:
            for index, letter in enumerate(line):
                draw.text(
                    (index * text.spacing, y), letter, fill=255, font=font, anchor="ls"
                )

    color = ImageColor.getrgb(text.color)
    opacity = color[3] / MAX_8BIT if len(color) == 4 else 1.0
    pixels = np.zeros((height, width, 4), dtype=np.float32)
    pixels[:, :, :3] = color[:3]
    pixels[:, :, 3] = np.asarray(coverage, dtype=np.float32) * opacity

    source.clear()
    source.put_image_data(pixels)
