"""
PIL IO module.

Encoding of surfaces to PNG / JPEG / WebP, data URI conversion and
resizing of encoded images.
"""

import base64
import io
import logging
import re
from typing import IO, Union
from urllib.parse import unquote_to_bytes

from PIL import Image

from canvas_tools.constants import ImageType
from canvas_tools.registry import lookup, new_registry
from canvas_tools.surface import Surface

logger = logging.getLogger(__name__)

ENCODERS, register = new_registry(attribute="image_type")

_DATA_URI = re.compile(
    r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?P<params>(;[^,;]*)*?),(?P<data>.*)$",
    re.S,
)


def _to_percent(quality: float) -> int:
    """Convert a 0 - 1 quality fraction to Pillow's 1 - 100 scale."""
    return max(1, min(100, int(round(quality * 100))))


@register(ImageType.PNG)
def _save_png(image: Image.Image, fp: IO[bytes], quality: float) -> None:
    image.save(fp, format="PNG")


@register(ImageType.JPEG)
def _save_jpeg(image: Image.Image, fp: IO[bytes], quality: float) -> None:
    # JPEG has no alpha, transparent pixels become black.
    flattened = Image.new("RGB", image.size, (0, 0, 0))
    if image.mode == "RGBA":
        flattened.paste(image, mask=image.getchannel("A"))
    else:
        flattened.paste(image.convert("RGB"))
    flattened.save(fp, format="JPEG", quality=_to_percent(quality))


@register(ImageType.WEBP)
def _save_webp(image: Image.Image, fp: IO[bytes], quality: float) -> None:
    image.save(fp, format="WEBP", quality=_to_percent(quality))


def encode(
    image: Union[Surface, Image.Image],
    image_type: Union[str, ImageType] = ImageType.PNG,
    quality: float = 0.92,
) -> bytes:
    """
    Encode a surface or PIL Image.

    :param image_type: Mime type of the encoding.
    :param quality: Quality fraction in the 0 - 1 range, ignored by PNG.
    :return: Encoded bytes.
    """
    if not 0 <= quality <= 1:
        raise ValueError("Quality must be in [0, 1], got %r" % quality)
    encoder = lookup(ENCODERS, image_type, "image type")
    width, height = image.size
    if width == 0 or height == 0:
        raise ValueError("Cannot encode an empty image")
    if isinstance(image, Surface):
        image = image.topil()
    with io.BytesIO() as f:
        encoder(image, f, quality)
        return f.getvalue()


def to_data_uri(data: bytes, image_type: Union[str, ImageType] = ImageType.PNG) -> str:
    return "data:%s;base64,%s" % (
        ImageType(image_type).value,
        base64.b64encode(data).decode("ascii"),
    )


def from_data_uri(uri: str) -> bytes:
    """
    Decode the payload of a data URI.

    :raises ValueError: If `uri` is not a valid data URI.
    """
    match = _DATA_URI.match(uri)
    if match is None:
        raise ValueError("Invalid data URI: %r" % uri[:32])
    params = [p.strip().lower() for p in match.group("params").split(";") if p]
    payload = match.group("data")
    if "base64" in params:
        return base64.b64decode(payload, validate=True)
    return unquote_to_bytes(payload)


def load_image(data: Union[bytes, str]) -> Image.Image:
    """Load an encoded image from bytes or a data URI."""
    if isinstance(data, str):
        data = from_data_uri(data)
    image = Image.open(io.BytesIO(data))
    image.load()
    return image


def resize_to_base64(
    data: Union[bytes, str],
    width: int,
    height: int,
    image_type: Union[str, ImageType] = ImageType.PNG,
    quality: float = 0.92,
) -> str:
    """
    Resize an encoded image to `width` x `height` and return it as a data URI
    of the given type.
    """
    width, height = int(round(width)), int(round(height))
    if width <= 0 or height <= 0:
        raise ValueError("Invalid size: %sx%s" % (width, height))
    image = load_image(data)
    if image.size != (width, height):
        logger.debug("Resizing %s to %dx%d", image.size, width, height)
        image = image.convert("RGBA").resize(
            (width, height), Image.Resampling.BILINEAR
        )
    return to_data_uri(encode(image, image_type, quality), image_type)
