"""
Geometric effects and masking of a layer.
"""

import logging

from canvas_tools.api.effects import Effects
from canvas_tools.api.layers import Layer
from canvas_tools.constants import HALF, CompositeOperation
from canvas_tools.geometry import get_rotation_center
from canvas_tools.surface import DrawingContext, ImageSource

logger = logging.getLogger(__name__)


def has_effects(layer: Layer) -> bool:
    """True when the layer needs the transformed render path."""
    if layer.has_mask():
        return True
    effects = layer.effects
    return effects.is_rotated() or effects.is_mirrored()


def render_transformed_source(
    layer: Layer,
    ctx: DrawingContext,
    source: ImageSource,
    width: int,
    height: int,
    effects: Effects,
) -> None:
    """
    Draw `source` rotated and mirrored into a `width` x `height` area.

    Mirroring scales the axis by -1 and shifts the draw origin by the
    dimension so the content stays in view. A rotation turns around the
    center of the (mirrored) area, with the unrotated source centered under
    it. The mask is applied in the same transformed space.
    """
    rotation = effects.normalized_rotation
    target_x: float = -width if effects.mirror_x else 0
    target_y: float = -height if effects.mirror_y else 0

    with ctx.state():
        ctx.scale(-1 if effects.mirror_x else 1, -1 if effects.mirror_y else 1)
        if rotation:
            x, y = get_rotation_center(
                0,
                0,
                -width if effects.mirror_x else width,
                -height if effects.mirror_y else height,
            )
            ctx.translate(x, y)
            ctx.rotate(rotation)
            ctx.translate(-x, -y)
            target_x = x - layer.width * HALF
            target_y = y - layer.height * HALF
        ctx.draw_image(source, target_x, target_y)
        render_mask(layer, ctx, target_x, target_y)


def render_mask(
    layer: Layer, ctx: DrawingContext, target_x: float = 0, target_y: float = 0
) -> None:
    """
    Keep the drawn content only where the layer mask is opaque.

    The mask is drawn at ``(mask_x, mask_y)`` relative to the target offset
    with ``destination-in`` compositing.
    """
    mask = layer.mask
    if mask is None:
        return
    with ctx.state():
        ctx.translate(target_x, target_y)
        ctx.composite_operation = CompositeOperation.DESTINATION_IN
        ctx.draw_image(mask, layer.mask_x, layer.mask_y)
