import logging
import math

import pytest

from canvas_tools.geometry import (
    FULL_TURN,
    Rectangle,
    Size,
    Viewport,
    get_rectangle_for_selection,
    get_rotated_size,
    get_rotation_center,
    normalize_rotation,
    to_pixels,
)

logger = logging.getLogger(__name__)


@pytest.mark.parametrize(
    "width, height, rotation, expected",
    [
        (100, 50, 0, (100, 50)),
        (100, 50, math.pi / 2, (50, 100)),
        (100, 50, math.pi, (100, 50)),
        (100, 100, math.pi / 2, (100, 100)),
        (100, 100, math.pi / 4, (142, 142)),
        (100, 50, -math.pi / 2, (50, 100)),
        (0, 0, 1.0, (0, 0)),
    ],
)
def test_get_rotated_size(width, height, rotation, expected):
    assert tuple(get_rotated_size(width, height, rotation)) == expected


@pytest.mark.parametrize("rotation", [0.3, 1.0, 2.5, -1.0, 7.0, 100.0, -42.0])
def test_get_rotated_size_normalizes(rotation):
    assert get_rotated_size(120, 80, rotation) == get_rotated_size(
        120, 80, rotation % FULL_TURN
    )


def test_get_rotated_size_full_turns():
    assert get_rotated_size(120, 80, 4 * math.pi) == Size(120, 80)


@pytest.mark.parametrize(
    "rotation, expected",
    [
        (0, 0),
        (FULL_TURN, 0),
        (-math.pi / 2, 1.5 * math.pi),
        (3 * math.pi, math.pi),
    ],
)
def test_normalize_rotation(rotation, expected):
    result = normalize_rotation(rotation)
    assert 0 <= result < FULL_TURN
    assert result == pytest.approx(expected)


@pytest.mark.parametrize(
    "value, expected",
    [(0, 0), (10.0, 10), (10.0000000001, 10), (10.2, 11), (-3, 0)],
)
def test_to_pixels(value, expected):
    assert to_pixels(value) == expected


def test_get_rotation_center():
    assert get_rotation_center(0, 0, 100, 50) == (50, 25)
    assert get_rotation_center(10, 20, 100, 50) == (60, 45)
    assert get_rotation_center(0, 0, -100, 50) == (-50, 25)


def test_get_rectangle_for_selection():
    rectangle = get_rectangle_for_selection([(10, 20), (30, 5), (15, 40)])
    assert rectangle == Rectangle(10, 5, 20, 35)
    assert rectangle.bbox == (10, 5, 30, 40)


@pytest.mark.parametrize(
    "points",
    [[], [(5, 5)], [(0, 3), (10, 3)], [(2, 0), (2, 8), (2, 4)]],
)
def test_get_rectangle_for_selection_degenerate(points):
    rectangle = get_rectangle_for_selection(points)
    assert rectangle.is_empty()
    assert rectangle.width >= 0
    assert rectangle.height >= 0


def test_get_rectangle_for_empty_selection():
    assert get_rectangle_for_selection([]) == Rectangle(0, 0, 0, 0)


def test_rectangle_contains():
    rectangle = Rectangle(10, 10, 20, 20)
    assert rectangle.contains(10, 10)
    assert rectangle.contains(29.9, 29.9)
    assert not rectangle.contains(30, 15)
    assert not rectangle.contains(9, 15)


def test_rectangle_intersects():
    rectangle = Rectangle(10, 10, 20, 20)
    assert rectangle.intersects(Rectangle(0, 0, 11, 11))
    assert rectangle.intersects(Rectangle(15, 15, 2, 2))
    assert not rectangle.intersects(Rectangle(30, 10, 5, 5))
    assert not rectangle.intersects(Rectangle(0, 0, 10, 10))


def test_viewport_unscaled():
    viewport = Viewport(10, 20, 100, 50)
    assert viewport.unscaled(2) == Viewport(5, 10, 50, 25)
    assert viewport.unscaled(2).right == 55


def test_size_iterates():
    width, height = Size(3.0, 4.0)
    assert (width, height) == (3, 4)
