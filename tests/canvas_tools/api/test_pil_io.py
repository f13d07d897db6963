import base64
import logging

import pytest
from PIL import Image, features

from canvas_tools.api import pil_io
from canvas_tools.constants import ImageType

from ..utils import solid_surface

logger = logging.getLogger(__name__)


@pytest.mark.parametrize(
    "image_type, magic",
    [
        (ImageType.PNG, b"\x89PNG"),
        (ImageType.JPEG, b"\xff\xd8"),
        ("image/png", b"\x89PNG"),
    ],
)
def test_encode(image_type, magic):
    data = pil_io.encode(solid_surface(4, 4), image_type)
    assert data.startswith(magic)


@pytest.mark.skipif(not features.check("webp"), reason="Requires WebP support")
def test_encode_webp():
    data = pil_io.encode(solid_surface(4, 4), ImageType.WEBP, 0.8)
    assert data[:4] == b"RIFF"
    assert pil_io.load_image(data).size == (4, 4)


def test_encode_pil_image():
    data = pil_io.encode(Image.new("RGBA", (3, 2)))
    assert pil_io.load_image(data).size == (3, 2)


def test_encode_unsupported():
    with pytest.raises(ValueError, match="image type"):
        pil_io.encode(solid_surface(1, 1), "image/gif")


@pytest.mark.parametrize("quality", [-0.1, 1.5])
def test_encode_invalid_quality(quality):
    with pytest.raises(ValueError):
        pil_io.encode(solid_surface(1, 1), ImageType.JPEG, quality)


def test_encode_empty():
    with pytest.raises(ValueError):
        pil_io.encode(solid_surface(0, 0))


def test_encode_jpeg_flattens_on_black():
    data = pil_io.encode(solid_surface(8, 8, (255, 255, 255, 0)), ImageType.JPEG)
    image = pil_io.load_image(data)
    assert image.mode == "RGB"
    assert max(image.getpixel((4, 4))) <= 2


def test_data_uri_roundtrip():
    uri = pil_io.to_data_uri(b"\x00\x01payload", ImageType.JPEG)
    assert uri.startswith("data:image/jpeg;base64,")
    assert pil_io.from_data_uri(uri) == b"\x00\x01payload"


def test_from_data_uri_plain():
    assert pil_io.from_data_uri("data:,hello%20world") == b"hello world"
    assert pil_io.from_data_uri("data:text/plain;charset=utf-8,abc") == b"abc"


@pytest.mark.parametrize(
    "uri",
    ["hello", "data:image/png;base64", "data:image/png;base64,@@@"],
)
def test_from_data_uri_invalid(uri):
    with pytest.raises(ValueError):
        pil_io.from_data_uri(uri)


def test_load_image_from_data_uri():
    data = pil_io.encode(solid_surface(2, 3, (1, 2, 3, 255)))
    uri = "data:image/png;base64," + base64.b64encode(data).decode("ascii")
    image = pil_io.load_image(uri)
    assert image.size == (2, 3)
    assert image.convert("RGBA").getpixel((1, 1)) == (1, 2, 3, 255)


def test_resize_to_base64():
    data = pil_io.encode(solid_surface(8, 6, (0, 128, 255, 255)))
    uri = pil_io.resize_to_base64(data, 4, 3)
    assert uri.startswith("data:image/png;base64,")
    image = pil_io.load_image(uri)
    assert image.size == (4, 3)
    assert image.convert("RGBA").getpixel((2, 1)) == (0, 128, 255, 255)


def test_resize_to_base64_same_size():
    data = pil_io.encode(solid_surface(4, 4, (9, 9, 9, 255)))
    image = pil_io.load_image(pil_io.resize_to_base64(data, 4, 4))
    assert image.size == (4, 4)


def test_resize_to_base64_invalid_size():
    data = pil_io.encode(solid_surface(4, 4))
    with pytest.raises(ValueError):
        pil_io.resize_to_base64(data, 0, 4)
