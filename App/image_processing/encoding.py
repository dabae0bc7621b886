"""Raster output encoding for rendered and source images.

AIDEV-NOTE: JPEG carries no alpha, so JPEG output is always flattened onto
the background color (white unless given). PNG and WebP keep alpha.
"""

import io
import logging
from enum import Enum

import numpy as np
from PIL import Image

from errors import EncodingFailed, InvalidInput
from models import PixelBuffer

logger = logging.getLogger(__name__)


class RasterFormat(Enum):
    """Supported raster output formats (values are Pillow format names)."""

    PNG = "PNG"
    JPEG = "JPEG"
    WEBP = "WEBP"


_EXTENSIONS = {
    RasterFormat.PNG: "png",
    RasterFormat.JPEG: "jpg",
    RasterFormat.WEBP: "webp",
}


def file_extension(fmt: RasterFormat) -> str:
    """File extension (without dot) for a raster format."""
    return _EXTENSIONS[fmt]


def format_for_extension(extension: str) -> "RasterFormat | None":
    """Raster format written for a file extension, or None."""
    extension = extension.lower().lstrip(".")
    if extension == "jpeg":
        return RasterFormat.JPEG
    for fmt, known in _EXTENSIONS.items():
        if known == extension:
            return fmt
    return None


def can_read_format(extension: str) -> bool:
    """True if Pillow has a decoder registered for the extension."""
    extension = extension.lower()
    if not extension.startswith("."):
        extension = "." + extension
    return extension in Image.registered_extensions()


def has_alpha(buffer: PixelBuffer) -> bool:
    """True if any pixel is not fully opaque."""
    return bool(np.any(buffer.alpha() < 255))


def flatten(
    buffer: PixelBuffer,
    background: "tuple[int, int, int]" = (255, 255, 255),
) -> Image.Image:
    """Composite the buffer over an opaque color, returning an RGB image."""
    canvas = Image.new("RGBA", buffer.size, tuple(background[:3]) + (255,))
    canvas.alpha_composite(buffer.to_image())
    return canvas.convert("RGB")


def encode_image(
    buffer: PixelBuffer,
    fmt: RasterFormat = RasterFormat.PNG,
    quality: int = 90,
    background: "tuple[int, int, int] | None" = None,
) -> bytes:
    """Encode a pixel buffer.

    Args:
        buffer: Pixels to encode
        fmt: Output format
        quality: 0-100 for JPEG/WebP, ignored for PNG
        background: RGB to flatten onto; JPEG defaults to white

    Returns:
        Encoded bytes

    Raises:
        InvalidInput: If the buffer is empty
        EncodingFailed: If Pillow cannot encode the image
    """
    if buffer.is_empty:
        raise InvalidInput(f"Cannot encode a {buffer.width}x{buffer.height} image")
    quality = max(0, min(100, int(quality)))

    if fmt is RasterFormat.JPEG:
        image = flatten(buffer, background or (255, 255, 255))
    elif background is not None:
        image = flatten(buffer, background)
    else:
        image = buffer.to_image()

    options = {} if fmt is RasterFormat.PNG else {"quality": quality}
    output = io.BytesIO()
    try:
        image.save(output, format=fmt.value, **options)
    except (OSError, ValueError, KeyError) as e:
        raise EncodingFailed(f"Failed to encode {fmt.value}: {e}") from e

    data = output.getvalue()
    logger.debug("Encoded %dx%d %s (%d bytes)", buffer.width, buffer.height, fmt.value, len(data))
    return data
