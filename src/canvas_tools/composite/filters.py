"""
Pixel filters.

Levels and contrast adjustments operating in place on float RGBA buffers
holding 0 - 255 values. The buffers are not clamped; clamping happens when
the pixels are written back to a surface.
"""

import logging

import numpy as np

from canvas_tools.api.effects import Filters
from canvas_tools.constants import HALF, MAX_8BIT
from canvas_tools.surface import Surface

logger = logging.getLogger(__name__)


def has_filters(filters: Filters) -> bool:
    return filters.levels != 0 or filters.contrast != 0


def get_levels_factor(levels: float) -> float:
    """Channel multiplier for a levels value, the doubled value squared."""
    level = levels * 2
    return level * level


def get_contrast_factor(contrast: float) -> float:
    return ((contrast * 100 + 100) / 100) ** 2


def apply_filters(
    pixels: np.ndarray, levels: float = 0.0, contrast: float = 0.0
) -> np.ndarray:
    """
    Apply levels, then contrast, to the RGB channels of `pixels` in place.

    :param pixels: Float array of shape ``(..., 4)``; alpha is untouched.
    :return: `pixels`.
    """
    if not np.issubdtype(pixels.dtype, np.floating):
        raise TypeError("Expected a float pixel buffer, got %s" % pixels.dtype)
    rgb = pixels[..., :3]
    if levels:
        rgb *= get_levels_factor(levels)
    if contrast:
        factor = get_contrast_factor(contrast)
        rgb[...] = ((rgb / MAX_8BIT - HALF) * factor + HALF) * MAX_8BIT
    return pixels


def render_filters(surface: Surface, filters: Filters) -> None:
    """Apply `filters` to all pixels of `surface`."""
    pixels = surface.get_image_data()
    apply_filters(pixels, filters.levels, filters.contrast)
    surface.clear()
    surface.put_image_data(pixels)
