import logging
import math

import numpy as np
import pytest
from PIL import Image

from canvas_tools.constants import CompositeOperation
from canvas_tools.surface import Surface, parse_color

from .utils import find_pixel, indexed_surface, solid_surface

logger = logging.getLogger(__name__)


def test_surface_new():
    surface = Surface(4, 3)
    assert surface.size == (4, 3)
    assert surface.data.shape == (3, 4, 4)
    assert surface.data.dtype == np.uint8
    assert not surface.data.any()


def test_surface_invalid_size():
    with pytest.raises(ValueError):
        Surface(-1, 3)


def test_surface_fromarray_invalid_shape():
    with pytest.raises(ValueError):
        Surface.fromarray(np.zeros((2, 2, 3), dtype=np.uint8))


def test_surface_pil_roundtrip():
    image = Image.new("RGBA", (5, 2), (1, 2, 3, 4))
    surface = Surface.frompil(image)
    assert surface.size == (5, 2)
    assert surface.topil().getpixel((4, 1)) == (1, 2, 3, 4)


def test_surface_frompil_converts_mode():
    surface = Surface.frompil(Image.new("RGB", (2, 2), (9, 8, 7)))
    assert tuple(surface.data[0, 0]) == (9, 8, 7, 255)


def test_ensure_capacity():
    surface = solid_surface(4, 4)
    ctx = surface.get_context()
    ctx.translate(3, 3)

    assert surface.ensure_capacity(4, 4) is False
    assert not surface.data.any()
    assert np.array_equal(ctx.transform, np.identity(3))

    surface.data[:] = 1
    assert surface.ensure_capacity(6, 2) is True
    assert surface.size == (6, 2)
    assert not surface.data.any()
    assert surface.get_context() is ctx


def test_get_image_data_is_copy():
    surface = solid_surface(2, 2, (10, 20, 30, 40))
    pixels = surface.get_image_data()
    assert pixels.dtype == np.float32
    pixels[:] = 0
    assert tuple(surface.data[0, 0]) == (10, 20, 30, 40)


def test_put_image_data_clamps_and_rounds():
    surface = Surface(4, 1)
    data = np.array(
        [[[400, -20, 127.5, 255], [128.5, 0.4, 254.6, 255], [0, 0, 0, 0], [1, 2, 3, 4]]],
        dtype=np.float32,
    )
    surface.put_image_data(data)
    assert tuple(surface.data[0, 0]) == (255, 0, 128, 255)
    assert tuple(surface.data[0, 1]) == (128, 0, 255, 255)
    assert tuple(surface.data[0, 3]) == (1, 2, 3, 4)


def test_put_image_data_offset():
    surface = Surface(3, 3)
    surface.put_image_data(np.full((2, 2, 4), 9, dtype=np.uint8), 2, -1)
    assert surface.data[0, 2, 0] == 9
    assert surface.data[1, 2, 0] == 0
    assert surface.data[:, :2].sum() == 0


def test_dispose():
    with Surface(2, 2) as surface:
        assert not surface.disposed
    assert surface.disposed
    with pytest.raises(ValueError):
        surface.data
    with pytest.raises(ValueError):
        surface.get_image_data()


def test_parse_color():
    assert parse_color("#00ff00") == (0, 255, 0, 255)
    assert parse_color("red") == (255, 0, 0, 255)
    assert parse_color((1, 2, 3)) == (1, 2, 3, 255)
    assert parse_color((1, 2, 3, 4)) == (1, 2, 3, 4)
    with pytest.raises(ValueError):
        parse_color((1, 2))


def test_state_restores_transform():
    ctx = Surface(2, 2).get_context()
    ctx.translate(5, 5)
    expected = ctx.transform
    with ctx.state():
        ctx.scale(2, 2)
        ctx.composite_operation = CompositeOperation.DESTINATION_IN
    assert np.array_equal(ctx.transform, expected)
    assert ctx.composite_operation == CompositeOperation.SOURCE_OVER


def test_state_restores_on_error():
    ctx = Surface(2, 2).get_context()
    with pytest.raises(RuntimeError):
        with ctx.state():
            ctx.rotate(1.0)
            raise RuntimeError("boom")
    assert np.array_equal(ctx.transform, np.identity(3))


def test_restore_without_save():
    ctx = Surface(2, 2).get_context()
    ctx.translate(1, 1)
    ctx.restore()
    assert ctx.transform[0, 2] == 1


def test_set_transform():
    ctx = Surface(2, 2).get_context()
    ctx.set_transform(2, 0, 0, 3, 4, 5)
    assert np.array_equal(
        ctx.transform, np.array([[2, 0, 4], [0, 3, 5], [0, 0, 1]], dtype=float)
    )
    ctx.reset_transform()
    assert np.array_equal(ctx.transform, np.identity(3))


def test_draw_image_identity():
    source = indexed_surface(4, 3)
    target = Surface(4, 3)
    target.get_context().draw_image(source, 0, 0)
    assert np.array_equal(target.data, source.data)


def test_draw_image_translated():
    source = indexed_surface(2, 2)
    target = Surface(5, 5)
    target.get_context().draw_image(source, 1, 2)
    assert find_pixel(target, 0, 0) == (1, 2)
    assert find_pixel(target, 1, 1) == (2, 3)
    assert target.data[:2, :, 3].sum() == 0


def test_draw_image_pil_and_array_sources():
    image = Image.new("RGBA", (2, 2), (5, 6, 7, 255))
    target = Surface(2, 2)
    target.get_context().draw_image(image, 0, 0)
    assert tuple(target.data[1, 1]) == (5, 6, 7, 255)
    other = Surface(2, 2)
    other.get_context().draw_image(target.data, 0, 0)
    assert np.array_equal(other.data, target.data)
    with pytest.raises(TypeError):
        other.get_context().draw_image("image.png", 0, 0)


def test_draw_image_scaled():
    source = indexed_surface(2, 2)
    target = Surface(4, 4)
    target.get_context().draw_image(source, 0, 0, 4, 4)
    assert np.array_equal(target.data[:, :, 0], [[0, 0, 1, 1]] * 4)
    assert np.array_equal(target.data[:, :, 1].T, [[0, 0, 1, 1]] * 4)


def test_draw_image_source_rectangle():
    source = indexed_surface(6, 6)
    target = Surface(2, 2)
    target.get_context().draw_image(source, 0, 0, 2, 2, source=(3, 1, 2, 2))
    assert find_pixel(target, 3, 1) == (0, 0)
    assert find_pixel(target, 4, 2) == (1, 1)


def test_draw_image_rotated():
    source = indexed_surface(3, 2)
    target = Surface(2, 3)
    ctx = target.get_context()
    ctx.translate(2, 0)
    ctx.rotate(math.pi / 2)
    ctx.draw_image(source, 0, 0)
    assert find_pixel(target, 0, 0) == (1, 0)
    assert find_pixel(target, 2, 1) == (0, 2)
    assert target.data[:, :, 3].min() == 255


def test_draw_image_mirrored():
    source = indexed_surface(4, 2)
    target = Surface(4, 2)
    ctx = target.get_context()
    ctx.scale(-1, 1)
    ctx.draw_image(source, -4, 0)
    assert np.array_equal(target.data, source.data[:, ::-1])


def test_draw_image_source_over():
    target = solid_surface(1, 1, (255, 0, 0, 255))
    source = solid_surface(1, 1, (0, 0, 255, 128))
    target.get_context().draw_image(source, 0, 0)
    assert tuple(target.data[0, 0]) == (127, 0, 128, 255)


def test_draw_image_source_over_transparent_destination():
    target = Surface(1, 1)
    target.get_context().draw_image(solid_surface(1, 1, (10, 20, 30, 128)), 0, 0)
    assert tuple(target.data[0, 0]) == (10, 20, 30, 128)


def test_draw_image_destination_in():
    target = solid_surface(4, 4, (0, 255, 0, 255))
    ctx = target.get_context()
    ctx.composite_operation = "destination-in"
    ctx.draw_image(solid_surface(2, 2, (0, 0, 0, 255)), 1, 1)
    alpha = target.data[:, :, 3]
    assert alpha[1:3, 1:3].min() == 255
    assert alpha.sum() == 4 * 255


def test_invalid_composite_operation():
    ctx = Surface(1, 1).get_context()
    with pytest.raises(ValueError):
        ctx.composite_operation = "xor"


def test_fill_rect():
    target = Surface(4, 4)
    ctx = target.get_context()
    ctx.fill_style = "#0000ff"
    ctx.scale(2, 2)
    ctx.fill_rect(0, 0, 1, 1)
    assert target.data[:2, :2, 2].min() == 255
    assert target.data[:, :, 3].sum() == 4 * 255


def test_clear_rect():
    target = solid_surface(4, 4)
    target.get_context().clear_rect(1, 1, 2, 2)
    assert target.data[1:3, 1:3].sum() == 0
    assert target.data[0, 0, 3] == 255


def test_clip():
    target = Surface(4, 4)
    ctx = target.get_context()
    ctx.begin_path()
    ctx.move_to(1, 1)
    ctx.line_to(3, 1)
    ctx.line_to(3, 3)
    ctx.line_to(1, 3)
    ctx.close_path()
    with ctx.state():
        ctx.clip()
        ctx.fill_style = "red"
        ctx.fill_rect(0, 0, 4, 4)
    alpha = target.data[:, :, 3]
    assert alpha[1:3, 1:3].min() == 255
    assert alpha.sum() == 4 * 255

    # The clip region is part of the saved state.
    ctx.fill_rect(0, 0, 4, 4)
    assert alpha.min() == 255


def test_clip_intersects():
    target = Surface(4, 4)
    ctx = target.get_context()
    for left in (0, 2):
        ctx.begin_path()
        ctx.move_to(left, 0)
        ctx.line_to(left + 2, 0)
        ctx.line_to(left + 2, 4)
        ctx.line_to(left, 4)
        ctx.close_path()
        ctx.clip()
    ctx.fill_rect(0, 0, 4, 4)
    assert target.data[:, :, 3].sum() == 0


def test_stroke():
    target = Surface(4, 4)
    ctx = target.get_context()
    ctx.stroke_style = (0, 255, 255)
    ctx.begin_path()
    ctx.move_to(0.5, 0.5)
    ctx.line_to(3.5, 0.5)
    ctx.stroke()
    assert np.array_equal(target.data[0, :, 1], [255] * 4)
    assert target.data[1:].sum() == 0
