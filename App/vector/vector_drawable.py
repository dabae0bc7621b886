"""Android vector-drawable XML import and export.

AIDEV-NOTE: Attributes live in the android namespace. Literal color alpha
(#AARRGGBB) is folded into fillAlpha/strokeAlpha on import, so the model
only ever stores RGB plus a separate alpha. Export writes the normalized
absolute path data, so arcs and relative commands come back as M/L/C/Q/Z.
"""

import logging
import re
import xml.etree.ElementTree as ET
from pathlib import Path

from errors import (
    InvalidDocument,
    InvalidInput,
    InvalidPathData,
    InvalidXML,
    UnsupportedElement,
)
from models import FillType

from .colors import format_hex_color, parse_hex_color
from .document import Container, VectorDocument, VectorGroup, VectorPath
from .path_data import format_number, serialize_path_data

logger = logging.getLogger(__name__)

ANDROID_NS = "http://schemas.android.com/apk/res/android"
SNIFF_BYTES = 4096
EXPORT_PRECISION = 4

ET.register_namespace("android", ANDROID_NS)

_DIMENSION = re.compile(r"^\s*([-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)\s*(dp|dip|px|sp)?\s*$")
_ROOT_TAG = re.compile(rb"<([A-Za-z_][\w.:-]*)")


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _attr(element: ET.Element, name: str) -> "str | None":
    value = element.get(f"{{{ANDROID_NS}}}{name}")
    if value is None:
        value = element.get(name)
    return value


def _float_attr(element: ET.Element, name: str, default: float) -> float:
    value = _attr(element, name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        raise InvalidDocument(
            f"Expected a number, got {value!r}",
            element=_local_name(element.tag),
            attribute=name,
        ) from None


def _dimension_attr(element: ET.Element, name: str) -> "float | None":
    value = _attr(element, name)
    if value is None:
        return None
    match = _DIMENSION.match(value)
    if not match:
        raise InvalidDocument(
            f"Invalid dimension {value!r}", element="vector", attribute=name
        )
    return float(match.group(1))


def _color_attr(
    element: ET.Element, name: str
) -> "tuple[tuple[int, int, int] | None, float]":
    value = _attr(element, name)
    if value is None:
        return None, 1.0
    if value.startswith(("@", "?")):
        raise InvalidDocument(
            f"Resource reference {value!r} cannot be resolved",
            element=_local_name(element.tag),
            attribute=name,
        )
    try:
        return parse_hex_color(value, alpha_first=True)
    except ValueError as e:
        raise InvalidDocument(
            str(e), element=_local_name(element.tag), attribute=name
        ) from None


def parse_vector_drawable(data: "bytes | str") -> VectorDocument:
    """Parse vector-drawable XML into a VectorDocument.

    Args:
        data: XML text or UTF-8 bytes

    Returns:
        Parsed document

    Raises:
        InvalidXML: If the data is not well-formed XML
        InvalidDocument: If the root is not <vector> or attributes are invalid
        UnsupportedElement: For elements outside vector/group/path
        InvalidPathData: If a pathData attribute does not parse
    """
    try:
        root = ET.fromstring(data)
    except ET.ParseError as e:
        raise InvalidXML(f"Malformed XML: {e}") from e

    if _local_name(root.tag) != "vector":
        raise InvalidDocument(
            f"Root element is <{_local_name(root.tag)}>, expected <vector>",
            element=_local_name(root.tag),
        )

    viewport_width = _float_attr(root, "viewportWidth", 0.0)
    viewport_height = _float_attr(root, "viewportHeight", 0.0)
    if viewport_width <= 0 or viewport_height <= 0:
        raise InvalidDocument(
            "viewportWidth and viewportHeight must be present and positive",
            element="vector",
            attribute="viewportWidth" if viewport_width <= 0 else "viewportHeight",
        )

    tint, tint_alpha = _color_attr(root, "tint")
    document = VectorDocument(
        viewport_width=viewport_width,
        viewport_height=viewport_height,
        output_width=_dimension_attr(root, "width"),
        output_height=_dimension_attr(root, "height"),
        tint_color=tint,
        alpha=_float_attr(root, "alpha", 1.0) * tint_alpha,
        name=_attr(root, "name"),
    )
    _parse_children(root, document)

    logger.debug(
        "Parsed vector drawable %sx%s with %d paths",
        format_number(viewport_width),
        format_number(viewport_height),
        len(document.all_paths()),
    )
    return document


def parse_vector_drawable_file(file_path: "str | Path") -> VectorDocument:
    """Read and parse a vector-drawable XML file.

    Raises:
        InvalidInput: If the file cannot be read
    """
    try:
        data = Path(file_path).read_bytes()
    except OSError as e:
        raise InvalidInput(f"Cannot read {file_path}: {e}") from e
    return parse_vector_drawable(data)


def _parse_children(element: ET.Element, container: Container) -> None:
    for child in element:
        name = _local_name(child.tag)
        if name == "group":
            container.add_group(_parse_group(child))
        elif name == "path":
            container.add_path(_parse_path(child))
        else:
            raise UnsupportedElement(
                f"Element <{name}> is not supported", element=name
            )


def _parse_group(element: ET.Element) -> VectorGroup:
    group = VectorGroup(
        name=_attr(element, "name"),
        rotation=_float_attr(element, "rotation", 0.0),
        pivot_x=_float_attr(element, "pivotX", 0.0),
        pivot_y=_float_attr(element, "pivotY", 0.0),
        scale_x=_float_attr(element, "scaleX", 1.0),
        scale_y=_float_attr(element, "scaleY", 1.0),
        translate_x=_float_attr(element, "translateX", 0.0),
        translate_y=_float_attr(element, "translateY", 0.0),
    )
    _parse_children(element, group)
    return group


def _parse_path(element: ET.Element) -> VectorPath:
    path_data = _attr(element, "pathData")
    if path_data is None:
        raise InvalidDocument(
            "Path is missing pathData", element="path", attribute="pathData"
        )

    fill_type_value = _attr(element, "fillType") or FillType.NON_ZERO.value
    try:
        fill_type = FillType(fill_type_value)
    except ValueError:
        raise InvalidDocument(
            f"Unknown fillType {fill_type_value!r}", element="path", attribute="fillType"
        ) from None

    fill_color, fill_literal_alpha = _color_attr(element, "fillColor")
    stroke_color, stroke_literal_alpha = _color_attr(element, "strokeColor")
    path = VectorPath(
        path_data=path_data,
        fill_color=fill_color,
        stroke_color=stroke_color,
        stroke_width=_float_attr(element, "strokeWidth", 0.0),
        fill_alpha=_float_attr(element, "fillAlpha", 1.0) * fill_literal_alpha,
        stroke_alpha=_float_attr(element, "strokeAlpha", 1.0) * stroke_literal_alpha,
        fill_type=fill_type,
        name=_attr(element, "name"),
    )
    try:
        path.segments()
    except InvalidPathData as e:
        e.element = "path"
        e.attribute = "pathData"
        raise
    return path


def _set(element: ET.Element, name: str, value: "str | float") -> None:
    if not isinstance(value, str):
        value = format_number(value, EXPORT_PRECISION)
    element.set(f"{{{ANDROID_NS}}}{name}", value)


def _build_path(path: VectorPath) -> ET.Element:
    element = ET.Element("path")
    if path.name:
        _set(element, "name", path.name)
    _set(element, "pathData", serialize_path_data(path.segments(), EXPORT_PRECISION))
    if path.fill_color is not None:
        _set(element, "fillColor", format_hex_color(path.fill_color))
    if path.fill_alpha != 1.0:
        _set(element, "fillAlpha", path.fill_alpha)
    if path.stroke_color is not None:
        _set(element, "strokeColor", format_hex_color(path.stroke_color))
    if path.stroke_width != 0.0:
        _set(element, "strokeWidth", path.stroke_width)
    if path.stroke_alpha != 1.0:
        _set(element, "strokeAlpha", path.stroke_alpha)
    if path.fill_type is not FillType.NON_ZERO:
        _set(element, "fillType", path.fill_type.value)
    return element


def _build_children(container: Container, element: ET.Element) -> None:
    for path in container.paths:
        element.append(_build_path(path))
    for group in container.groups:
        child = ET.SubElement(element, "group")
        if group.name:
            _set(child, "name", group.name)
        for name, value, default in (
            ("rotation", group.rotation, 0.0),
            ("pivotX", group.pivot_x, 0.0),
            ("pivotY", group.pivot_y, 0.0),
            ("scaleX", group.scale_x, 1.0),
            ("scaleY", group.scale_y, 1.0),
            ("translateX", group.translate_x, 0.0),
            ("translateY", group.translate_y, 0.0),
        ):
            if value != default:
                _set(child, name, value)
        _build_children(group, child)


def export_vector_drawable(document: VectorDocument) -> str:
    """Serialize a document as vector-drawable XML.

    Returns:
        Indented XML text
    """
    root = ET.Element("vector")
    if document.name:
        _set(root, "name", document.name)
    _set(root, "width", format_number(document.output_width, EXPORT_PRECISION) + "dp")
    _set(root, "height", format_number(document.output_height, EXPORT_PRECISION) + "dp")
    _set(root, "viewportWidth", document.viewport_width)
    _set(root, "viewportHeight", document.viewport_height)
    if document.tint_color is not None:
        _set(root, "tint", format_hex_color(document.tint_color))
    if document.alpha != 1.0:
        _set(root, "alpha", document.alpha)
    _build_children(document, root)

    ET.indent(root, space="    ")
    return ET.tostring(root, encoding="unicode") + "\n"


def export_vector_drawable_data(document: VectorDocument) -> bytes:
    """Serialize a document as UTF-8 vector-drawable bytes."""
    return export_vector_drawable(document).encode("utf-8")


def sniff_root_element(data: "bytes | str") -> "str | None":
    """Local name of the first element in the leading bytes, or None.

    Skips the XML declaration, comments, processing instructions and the
    doctype. Never raises.
    """
    if isinstance(data, str):
        data = data.encode("utf-8", errors="ignore")
    head = data[:SNIFF_BYTES]
    if head.startswith(b"\xef\xbb\xbf"):
        head = head[3:]

    pos = 0
    while True:
        start = head.find(b"<", pos)
        if start < 0 or start + 1 >= len(head):
            return None
        marker = head[start + 1:start + 2]
        if head.startswith(b"<!--", start):
            end = head.find(b"-->", start + 4)
            if end < 0:
                return None
            pos = end + 3
        elif marker in (b"?", b"!"):
            end = head.find(b">", start)
            if end < 0:
                return None
            pos = end + 1
        else:
            match = _ROOT_TAG.match(head, start)
            if not match:
                return None
            return match.group(1).decode("ascii", errors="ignore").rsplit(":", 1)[-1]


def is_vector_drawable_data(data: "bytes | str") -> bool:
    """True if the data looks like a vector drawable (<vector> root)."""
    return sniff_root_element(data) == "vector"


def is_vector_drawable_file(file_path: "str | Path") -> bool:
    """True if the file looks like a vector drawable. Unreadable files are not."""
    try:
        with open(file_path, "rb") as f:
            head = f.read(SNIFF_BYTES)
    except OSError:
        return False
    return is_vector_drawable_data(head)
