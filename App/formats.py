"""Vector format dispatch and source sniffing.

AIDEV-NOTE: The set of vector formats is closed: every format is one
entry in CODECS, and callers dispatch through the table instead of
branching on the format themselves.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable

from PIL import Image, UnidentifiedImageError

from errors import InvalidDocument
from vector.document import VectorDocument
from vector.svg_parser import export_svg_data, is_svg_data, parse_svg
from vector.vector_drawable import (
    SNIFF_BYTES,
    export_vector_drawable_data,
    is_vector_drawable_data,
    parse_vector_drawable,
)

logger = logging.getLogger(__name__)


class VectorFormat(Enum):
    VECTOR_DRAWABLE = "vector_drawable"
    SVG = "svg"


class SourceKind(Enum):
    """What a file on disk holds."""

    VECTOR_DRAWABLE = "vector_drawable"
    SVG = "svg"
    RASTER = "raster"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class FormatCodec:
    parse: "Callable[[bytes | str], VectorDocument]"
    export: "Callable[[VectorDocument], bytes]"
    sniff: "Callable[[bytes | str], bool]"
    extension: str


CODECS: "dict[VectorFormat, FormatCodec]" = {
    VectorFormat.VECTOR_DRAWABLE: FormatCodec(
        parse=parse_vector_drawable,
        export=export_vector_drawable_data,
        sniff=is_vector_drawable_data,
        extension="xml",
    ),
    VectorFormat.SVG: FormatCodec(
        parse=parse_svg,
        export=export_svg_data,
        sniff=is_svg_data,
        extension="svg",
    ),
}


def format_for_extension(extension: str) -> "VectorFormat | None":
    """Vector format for a file extension (with or without the dot)."""
    extension = extension.lower().lstrip(".")
    for fmt, codec in CODECS.items():
        if codec.extension == extension:
            return fmt
    return None


def detect_format(data: "bytes | str") -> "VectorFormat | None":
    """Sniff vector markup. Never raises."""
    for fmt, codec in CODECS.items():
        if codec.sniff(data):
            return fmt
    return None


def detect_file_format(file_path: "str | Path") -> SourceKind:
    """Classify a file as vector drawable, SVG, raster image or unknown."""
    try:
        with open(file_path, "rb") as f:
            head = f.read(SNIFF_BYTES)
    except OSError as e:
        logger.debug("Cannot read %s: %s", file_path, e)
        return SourceKind.UNKNOWN

    fmt = detect_format(head)
    if fmt is not None:
        return SourceKind(fmt.value)

    try:
        with Image.open(file_path) as image:
            image.verify()
    except (UnidentifiedImageError, OSError, ValueError):
        return SourceKind.UNKNOWN
    return SourceKind.RASTER


def parse_document(
    data: "bytes | str", fmt: "VectorFormat | None" = None
) -> VectorDocument:
    """Parse vector markup, sniffing the format when not given.

    Raises:
        InvalidDocument: If the format cannot be detected
    """
    fmt = fmt or detect_format(data)
    if fmt is None:
        raise InvalidDocument("Data is neither a vector drawable nor SVG")
    return CODECS[fmt].parse(data)


def export_document(document: VectorDocument, fmt: VectorFormat) -> bytes:
    """Serialize a document in the given format (UTF-8 bytes)."""
    return CODECS[fmt].export(document)
