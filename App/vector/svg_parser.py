"""SVG import and export for vector documents.

AIDEV-NOTE: Import handles the static subset that maps onto the document
model: <svg>, <g> and <path>. Group transforms are composed into a matrix
and decomposed into rotate/scale/translate; skew cannot be represented and
is dropped with a warning. Presentation attributes on groups are inherited
by their paths, and group opacity is multiplied into the path alphas.
Export goes through svg.py element classes.
"""

import logging
import re
import xml.etree.ElementTree as ET
from pathlib import Path
from xml.sax.saxutils import escape

import svg

from errors import (
    InvalidDocument,
    InvalidInput,
    InvalidPathData,
    InvalidXML,
    UnsupportedElement,
)
from models import FillType

from .colors import format_hex_color, parse_css_color
from .document import Container, VectorDocument, VectorGroup, VectorPath
from .path_data import ClosePath, CubicTo, LineTo, MoveTo, QuadTo, Segment
from .transform import Transform
from .vector_drawable import SNIFF_BYTES, sniff_root_element

logger = logging.getLogger(__name__)

EXPORT_PRECISION = 4

_IGNORED_ELEMENTS = {"title", "desc", "metadata"}
_INHERITED = ("fill", "stroke", "stroke-width", "fill-opacity", "stroke-opacity", "fill-rule")
_LENGTH = re.compile(r"^\s*([-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)\s*(px)?\s*$")
_TRANSFORM = re.compile(r"(matrix|translate|scale|rotate|skewX|skewY)\s*\(([^)]*)\)")
_NUMBER_LIST = re.compile(r"[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _length(value: "str | None", attribute: str) -> "float | None":
    if value is None:
        return None
    match = _LENGTH.match(value)
    if not match:
        raise InvalidDocument(
            f"Unsupported length {value!r}", element="svg", attribute=attribute
        )
    return float(match.group(1))


def _root_length(root: ET.Element, attribute: str, has_view_box: bool) -> "float | None":
    """Root width/height in px. With a viewBox, other units fall back to its size."""
    try:
        return _length(root.get(attribute), attribute)
    except InvalidDocument:
        if not has_view_box:
            raise
        logger.debug(
            "Ignoring %s=%r, sizing from the viewBox", attribute, root.get(attribute)
        )
        return None


def _numbers(text: str) -> "list[float]":
    return [float(n) for n in _NUMBER_LIST.findall(text)]


def parse_transform(text: str) -> Transform:
    """Compose an SVG transform list (applied left to right as written).

    Raises:
        ValueError: If a transform function has the wrong argument count
    """
    result = Transform.identity()
    remainder = _TRANSFORM.sub("", text).replace(",", " ").strip()
    if remainder:
        raise ValueError(f"Unrecognized transform {text!r}")

    for name, args in _TRANSFORM.findall(text):
        values = _numbers(args)
        count = len(values)
        if name == "matrix" and count == 6:
            step = Transform.from_matrix(*values)
        elif name == "translate" and count in (1, 2):
            step = Transform.translation(values[0], values[1] if count == 2 else 0.0)
        elif name == "scale" and count in (1, 2):
            step = Transform.scaling(values[0], values[1] if count == 2 else None)
        elif name == "rotate" and count == 1:
            step = Transform.rotation(values[0])
        elif name == "rotate" and count == 3:
            angle, cx, cy = values
            step = (
                Transform.translation(cx, cy)
                @ Transform.rotation(angle)
                @ Transform.translation(-cx, -cy)
            )
        elif name == "skewX" and count == 1:
            step = Transform.skew(values[0], 0.0)
        elif name == "skewY" and count == 1:
            step = Transform.skew(0.0, values[0])
        else:
            raise ValueError(f"{name}() does not take {count} arguments")
        result = result @ step
    return result


def group_from_transform(transform: Transform, name: "str | None" = None) -> VectorGroup:
    """Build a group whose transform approximates the matrix."""
    parts = transform.decompose()
    if not parts.exact:
        logger.warning(
            "Transform %r has skew; approximating with rotate/scale/translate",
            transform,
        )
    return VectorGroup(
        name=name,
        rotation=parts.rotation,
        scale_x=parts.scale_x,
        scale_y=parts.scale_y,
        translate_x=parts.translate_x,
        translate_y=parts.translate_y,
    )


def _style(element: ET.Element, inherited: "dict[str, str]") -> "dict[str, str]":
    """Presentation values: inherited, then attributes, then the style attribute."""
    style = dict(inherited)
    for name in (*_INHERITED, "opacity"):
        value = element.get(name)
        if value is not None:
            style[name] = value.strip()
    for declaration in (element.get("style") or "").split(";"):
        if ":" in declaration:
            key, value = declaration.split(":", 1)
            style[key.strip()] = value.strip()
    return style


def parse_svg(data: "bytes | str") -> VectorDocument:
    """Parse SVG markup into a VectorDocument.

    Args:
        data: SVG text or UTF-8 bytes

    Returns:
        Parsed document

    Raises:
        InvalidXML: If the data is not well-formed XML
        InvalidDocument: If the root is not <svg> or it has no usable size
        UnsupportedElement: For elements other than g/path and ignorable metadata
        InvalidPathData: If a d attribute does not parse
    """
    try:
        root = ET.fromstring(data)
    except ET.ParseError as e:
        raise InvalidXML(f"Malformed XML: {e}") from e

    if _local_name(root.tag) != "svg":
        raise InvalidDocument(
            f"Root element is <{_local_name(root.tag)}>, expected <svg>",
            element=_local_name(root.tag),
        )

    view_box = root.get("viewBox")
    width = _root_length(root, "width", view_box is not None)
    height = _root_length(root, "height", view_box is not None)
    min_x = min_y = 0.0
    if view_box is not None:
        values = _numbers(view_box)
        if len(values) != 4:
            raise InvalidDocument(
                f"viewBox needs 4 numbers, got {view_box!r}",
                element="svg",
                attribute="viewBox",
            )
        min_x, min_y, viewport_width, viewport_height = values
    elif width is not None and height is not None:
        viewport_width, viewport_height = width, height
    else:
        raise InvalidDocument(
            "SVG needs a viewBox or both width and height", element="svg"
        )

    document = VectorDocument(
        viewport_width=viewport_width,
        viewport_height=viewport_height,
        output_width=width,
        output_height=height,
        name=root.get("id"),
    )

    container: Container = document
    if min_x or min_y:
        container = document.add_group(
            VectorGroup(translate_x=-min_x, translate_y=-min_y)
        )
    style = _style(root, {})
    # Root opacity is folded into descendants like a group's
    style["inherited-opacity"] = str(
        _opacity(style.pop("opacity", None), "svg", "opacity")
    )
    _parse_children(root, container, style)

    logger.debug(
        "Parsed SVG %gx%g with %d paths",
        viewport_width,
        viewport_height,
        len(document.all_paths()),
    )
    return document


def parse_svg_file(file_path: "str | Path") -> VectorDocument:
    """Read and parse an SVG file.

    Raises:
        InvalidInput: If the file cannot be read
    """
    try:
        data = Path(file_path).read_bytes()
    except OSError as e:
        raise InvalidInput(f"Cannot read {file_path}: {e}") from e
    return parse_svg(data)


def _parse_children(
    element: ET.Element, container: Container, inherited: "dict[str, str]"
) -> None:
    for child in element:
        name = _local_name(child.tag)
        if name in _IGNORED_ELEMENTS:
            continue
        if name == "defs" and len(child) == 0:
            continue
        if name == "g":
            _parse_group(child, container, inherited)
        elif name == "path":
            _parse_path(child, container, inherited)
        else:
            raise UnsupportedElement(f"Element <{name}> is not supported", element=name)


def _with_transform(
    element: ET.Element, container: Container, name: "str | None"
) -> "tuple[Container, bool]":
    """Container to append into, and whether a group was created for it."""
    text = element.get("transform")
    if not text:
        return container, False
    try:
        transform = parse_transform(text)
    except ValueError as e:
        raise InvalidDocument(
            str(e), element=_local_name(element.tag), attribute="transform"
        ) from None
    return container.add_group(group_from_transform(transform, name)), True


def _parse_group(
    element: ET.Element, container: Container, inherited: "dict[str, str]"
) -> None:
    style = _style(element, inherited)
    # Group opacity is folded into descendants
    opacity = _opacity(style.pop("opacity", None), "g", "opacity")
    style["inherited-opacity"] = str(
        _opacity(inherited.get("inherited-opacity"), "g", "opacity") * opacity
    )
    target, created = _with_transform(element, container, element.get("id"))
    if not created:
        target = container.add_group(VectorGroup(name=element.get("id")))
    _parse_children(element, target, style)


def _parse_path(
    element: ET.Element, container: Container, inherited: "dict[str, str]"
) -> None:
    d = element.get("d")
    if d is None:
        raise InvalidDocument("Path is missing d", element="path", attribute="d")

    style = _style(element, inherited)
    opacity = _opacity(style.get("opacity"), "path", "opacity") * _opacity(
        style.get("inherited-opacity"), "path", "opacity"
    )

    fill_color, fill_literal_alpha = _paint(style.get("fill", "black"), "fill")
    stroke_color, stroke_literal_alpha = _paint(style.get("stroke", "none"), "stroke")
    stroke_width = 0.0
    if stroke_color is not None:
        stroke_width = _length(style.get("stroke-width", "1"), "stroke-width")

    rule = style.get("fill-rule", "nonzero")
    if rule not in ("nonzero", "evenodd"):
        raise InvalidDocument(
            f"Unknown fill-rule {rule!r}", element="path", attribute="fill-rule"
        )

    path = VectorPath(
        path_data=d,
        fill_color=fill_color,
        stroke_color=stroke_color,
        stroke_width=stroke_width,
        fill_alpha=fill_literal_alpha
        * _opacity(style.get("fill-opacity"), "path", "fill-opacity")
        * opacity,
        stroke_alpha=stroke_literal_alpha
        * _opacity(style.get("stroke-opacity"), "path", "stroke-opacity")
        * opacity,
        fill_type=FillType.EVEN_ODD if rule == "evenodd" else FillType.NON_ZERO,
        name=element.get("id"),
    )
    try:
        path.segments()
    except InvalidPathData as e:
        e.element = "path"
        e.attribute = "d"
        raise

    target, _ = _with_transform(element, container, None)
    target.add_path(path)


def _paint(value: str, attribute: str) -> "tuple[tuple[int, int, int] | None, float]":
    try:
        return parse_css_color(value)
    except ValueError as e:
        raise InvalidDocument(str(e), element="path", attribute=attribute) from None


def _opacity(value: "str | None", element: str, attribute: str) -> float:
    if value is None:
        return 1.0
    try:
        if value.endswith("%"):
            return max(0.0, min(1.0, float(value[:-1]) / 100.0))
        return max(0.0, min(1.0, float(value)))
    except ValueError:
        raise InvalidDocument(
            f"Invalid opacity {value!r}", element=element, attribute=attribute
        ) from None


# --- Export ---


def _num(value: float) -> "int | float":
    """Round for output; integral values print without a decimal point."""
    rounded = round(float(value), EXPORT_PRECISION)
    if rounded == int(rounded):
        return int(rounded)
    return rounded


def _path_commands(segments: "list[Segment]") -> "list[svg.PathData]":
    commands: "list[svg.PathData]" = []
    for segment in segments:
        if isinstance(segment, MoveTo):
            commands.append(svg.MoveTo(_num(segment.x), _num(segment.y)))
        elif isinstance(segment, LineTo):
            commands.append(svg.LineTo(_num(segment.x), _num(segment.y)))
        elif isinstance(segment, CubicTo):
            commands.append(
                svg.CubicBezier(
                    _num(segment.x1), _num(segment.y1),
                    _num(segment.x2), _num(segment.y2),
                    _num(segment.x), _num(segment.y),
                )
            )
        elif isinstance(segment, QuadTo):
            commands.append(
                svg.QuadraticBezier(
                    _num(segment.x1), _num(segment.y1), _num(segment.x), _num(segment.y)
                )
            )
        elif isinstance(segment, ClosePath):
            commands.append(svg.ClosePath())
    return commands


def _paint_value(
    color: "tuple[int, int, int] | None", tint: "tuple[int, int, int] | None"
) -> str:
    if color is None:
        return "none"
    return format_hex_color(tint or color)


def _export_path(path: VectorPath, tint: "tuple[int, int, int] | None") -> svg.Path:
    has_stroke = path.stroke_color is not None and path.stroke_width > 0
    return svg.Path(
        id=escape(path.name, {'"': "&quot;"}) if path.name else None,
        d=_path_commands(path.segments()),
        fill=_paint_value(path.fill_color, tint),
        fill_opacity=_num(path.fill_alpha)
        if path.fill_color is not None and path.fill_alpha < 1
        else None,
        fill_rule="evenodd" if path.fill_type is FillType.EVEN_ODD else None,
        stroke=_paint_value(path.stroke_color, tint) if has_stroke else None,
        stroke_width=_num(path.stroke_width) if has_stroke else None,
        stroke_opacity=_num(path.stroke_alpha)
        if has_stroke and path.stroke_alpha < 1
        else None,
    )


def _export_children(
    container: Container, tint: "tuple[int, int, int] | None"
) -> "list[svg.Element]":
    elements: "list[svg.Element]" = [_export_path(p, tint) for p in container.paths]
    for group in container.groups:
        transform = group.transform()
        elements.append(
            svg.G(
                id=escape(group.name, {'"': "&quot;"}) if group.name else None,
                transform=None
                if transform.is_identity
                else [svg.Matrix(*(_num(v) for v in transform.as_svg_matrix()))],
                elements=_export_children(group, tint),
            )
        )
    return elements


def export_svg(document: VectorDocument) -> str:
    """Serialize a document as SVG markup.

    Tint replaces every path color, and document alpha becomes the opacity
    of a wrapping group.
    """
    elements = _export_children(document, document.tint_color)
    if document.alpha < 1.0:
        elements = [svg.G(opacity=_num(document.alpha), elements=elements)]

    canvas = svg.SVG(
        width=_num(document.output_width),
        height=_num(document.output_height),
        viewBox=svg.ViewBoxSpec(
            0, 0, _num(document.viewport_width), _num(document.viewport_height)
        ),
        elements=elements,
    )
    return canvas.as_str() + "\n"


def export_svg_data(document: VectorDocument) -> bytes:
    """Serialize a document as UTF-8 SVG bytes."""
    return export_svg(document).encode("utf-8")


def is_svg_data(data: "bytes | str") -> bool:
    """True if the data looks like SVG (<svg> root)."""
    return sniff_root_element(data) == "svg"


def is_svg_file(file_path: "str | Path") -> bool:
    """True if the file looks like SVG. Unreadable files are not."""
    try:
        with open(file_path, "rb") as f:
            head = f.read(SNIFF_BYTES)
    except OSError:
        return False
    return is_svg_data(head)
