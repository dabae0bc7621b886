"""Path-data mini-language: parse, serialize and flatten.

AIDEV-NOTE: The grammar is SVG's path data, which Android vector drawables
share. Geometry comes from svgpathtools: each subpath's drawing commands are
handed to ``svgpathtools.parse_path`` (complex numbers, real=x, imag=y) and
its Line / CubicBezier / QuadraticBezier / Arc segments are mapped to
absolute MoveTo / LineTo / CubicTo / QuadTo / ClosePath. Arcs become cubics.
The command grammar is checked here first because svgpathtools silently
skips unknown letters and cannot split run-together arc flags.
"""

import math
import re
from dataclasses import dataclass
from typing import Iterable, Sequence, Union

import numpy as np
import svgpathtools
from svgpathtools import Arc, CubicBezier, Line, QuadraticBezier

from errors import InvalidPathData


@dataclass(frozen=True)
class MoveTo:
    x: float
    y: float


@dataclass(frozen=True)
class LineTo:
    x: float
    y: float


@dataclass(frozen=True)
class CubicTo:
    x1: float
    y1: float
    x2: float
    y2: float
    x: float
    y: float


@dataclass(frozen=True)
class QuadTo:
    x1: float
    y1: float
    x: float
    y: float


@dataclass(frozen=True)
class ClosePath:
    pass


Segment = Union[MoveTo, LineTo, CubicTo, QuadTo, ClosePath]

# Arguments per command letter
ARITY = {"M": 2, "L": 2, "H": 1, "V": 1, "C": 6, "S": 4, "Q": 4, "T": 2, "A": 7, "Z": 0}

_COMMAND = re.compile(r"[\s,]*([A-Za-z])")
_NUMBER = re.compile(r"[\s,]*([-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)")
# Arc flags are a single 0 or 1 and may be written without separators
_FLAG = re.compile(r"[\s,]*([01])")
_END = re.compile(r"[\s,]*\Z")


def _read_arguments(
    text: str, pos: int, command: str, position: int
) -> "tuple[list[float], int]":
    upper = command.upper()
    arity = ARITY[upper]
    values: "list[float]" = []
    while arity:
        is_flag = upper == "A" and len(values) % arity in (3, 4)
        match = (_FLAG if is_flag else _NUMBER).match(text, pos)
        if match is None:
            break
        values.append(float(match.group(1)))
        pos = match.end()

    if arity and (not values or len(values) % arity):
        raise InvalidPathData(
            f"Command '{command}' expects arguments in groups of {arity}, "
            f"got {len(values)} at position {position}",
            command=command,
            position=position,
        )
    if not all(math.isfinite(value) for value in values):
        raise InvalidPathData(
            f"Command '{command}' has a non-finite argument at position {position}",
            command=command,
            position=position,
        )
    return values, pos


def tokenize_path_data(text: str) -> "list[tuple[str, list[float], int]]":
    """Split path data into (command, arguments, position) runs.

    Raises:
        InvalidPathData: On an unknown command letter, a missing initial
            move-to, stray characters, or an argument count that does not
            fit the command
    """
    commands: "list[tuple[str, list[float], int]]" = []
    pos = 0
    while not _END.match(text, pos):
        match = _COMMAND.match(text, pos)
        if match is None:
            previous = commands[-1][0] if commands else None
            position = len(text) - len(text[pos:].lstrip(" \t\r\n\f,"))
            raise InvalidPathData(
                f"Unexpected {text[position]!r} at position {position}",
                command=previous,
                position=position,
            )
        command, position = match.group(1), match.start(1)
        if command.upper() not in ARITY:
            raise InvalidPathData(
                f"Unknown path command '{command}' at position {position}",
                command=command,
                position=position,
            )
        if not commands and command not in "Mm":
            raise InvalidPathData(
                f"Path data must start with a move-to, got '{command}'",
                command=command,
                position=position,
            )
        values, pos = _read_arguments(text, match.end(), command, position)
        commands.append((command, values, position))
    return commands


def _end_point(command: str, args: "list[float]", relative: bool, current: complex) -> complex:
    origin = current if relative else 0j
    if command == "H":
        return complex(args[0] + origin.real, current.imag)
    if command == "V":
        return complex(current.real, args[0] + origin.imag)
    return complex(args[-2], args[-1]) + origin


def _canonical(command: str, args: "list[float]") -> str:
    """One command with separated arguments, as svgpathtools tokenizes them."""
    if command.upper() == "A":
        args = [abs(args[0]), abs(args[1]), args[2], *(int(flag) for flag in args[3:5]), *args[5:]]
    return " ".join([command, *(repr(value) for value in args)])


def arc_to_cubics(arc: Arc) -> "list[Segment]":
    """Approximate an svgpathtools Arc with cubics of at most 90 degrees each.

    AIDEV-NOTE: Arc.derivative is taken with respect to the arc parameter t,
    so it carries the full sweep angle; the usual 4/3*tan(phi/4) handle
    length is divided back out by that angle.
    """
    total = math.radians(abs(arc.delta))
    pieces = max(1, math.ceil(abs(arc.delta) / 90 - 1e-6))
    handle = 4.0 / 3.0 * math.tan(total / pieces / 4) / total

    segments: "list[Segment]" = []
    p0 = arc.start
    for i in range(pieces):
        t0, t1 = i / pieces, (i + 1) / pieces
        p3 = arc.end if i == pieces - 1 else arc.point(t1)
        c1 = p0 + handle * arc.derivative(t0)
        c2 = p3 - handle * arc.derivative(t1)
        segments.append(CubicTo(c1.real, c1.imag, c2.real, c2.imag, p3.real, p3.imag))
        p0 = p3
    return segments


def _from_svgpathtools(path: "svgpathtools.Path") -> "list[Segment]":
    segments: "list[Segment]" = []
    for segment in path:
        end = segment.end
        if isinstance(segment, Line):
            segments.append(LineTo(end.real, end.imag))
        elif isinstance(segment, CubicBezier):
            c1, c2 = segment.control1, segment.control2
            segments.append(CubicTo(c1.real, c1.imag, c2.real, c2.imag, end.real, end.imag))
        elif isinstance(segment, QuadraticBezier):
            control = segment.control
            segments.append(QuadTo(control.real, control.imag, end.real, end.imag))
        elif isinstance(segment, Arc):
            segments.extend(arc_to_cubics(segment))
    return segments


def _parse_subpath(commands: "list[str]", start: complex) -> "list[Segment]":
    # Anchor the run with an absolute move-to so smooth curves have a
    # previous command to look at
    text = " ".join([_canonical("M", [start.real, start.imag]), *commands])
    try:
        path = svgpathtools.parse_path(text)
    except (ValueError, IndexError) as e:
        raise InvalidPathData(f"Cannot parse path data {text!r}: {e}") from e
    return _from_svgpathtools(path)


def parse_path_data(text: str) -> "list[Segment]":
    """Parse a path-data string into absolute segments.

    Args:
        text: Path data, e.g. "M10,10 l5 0 0 5z"

    Returns:
        Ordered list of segments in absolute coordinates

    Raises:
        InvalidPathData: On an unknown command letter, a missing initial
            move-to, or an argument count that does not fit the command
    """
    segments: "list[Segment]" = []
    pending: "list[str]" = []
    current = start = 0j
    subpath_open = False

    def flush() -> None:
        if pending:
            segments.extend(_parse_subpath(pending, start))
            pending.clear()

    for command, values, _ in tokenize_path_data(text):
        upper = command.upper()
        relative = command != upper

        if upper == "Z":
            flush()
            segments.append(ClosePath())
            current = start
            subpath_open = False
            continue

        if upper == "M":
            flush()
            start = current = _end_point("M", values[:2], relative, current)
            segments.append(MoveTo(start.real, start.imag))
            subpath_open = True
            # Extra coordinate pairs after a move-to are implicit line-tos
            command, upper, values = ("l" if relative else "L"), "L", values[2:]
        elif not subpath_open:
            # Drawing after a close restarts at the subpath start
            segments.append(MoveTo(start.real, start.imag))
            subpath_open = True

        arity = ARITY[upper]
        for i in range(0, len(values), arity):
            args = values[i:i + arity]
            end = _end_point(upper, args, relative, current)
            if upper == "A" and (args[0] == 0 or args[1] == 0 or end == current):
                # Degenerate arcs are drawn as straight lines
                pending.append(_canonical("L", [end.real, end.imag]))
            else:
                pending.append(_canonical(command, args))
            current = end

    flush()
    return segments


def format_number(value: float, precision: int = 3) -> str:
    """Fixed precision with trailing zeros trimmed ("10", "0.5", "-2.125")."""
    text = f"{value:.{precision}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    if text in ("-0", ""):
        text = "0"
    return text


def serialize_path_data(segments: "Iterable[Segment]", precision: int = 3) -> str:
    """Write segments as absolute path data.

    Args:
        segments: Segments to serialize
        precision: Decimal places kept for every coordinate

    Returns:
        Compact path data such as "M0 0L10 0L10 10Z"
    """

    def fmt(*values: float) -> str:
        return " ".join(format_number(v, precision) for v in values)

    parts = []
    for segment in segments:
        if isinstance(segment, MoveTo):
            parts.append("M" + fmt(segment.x, segment.y))
        elif isinstance(segment, LineTo):
            parts.append("L" + fmt(segment.x, segment.y))
        elif isinstance(segment, CubicTo):
            parts.append(
                "C" + fmt(segment.x1, segment.y1, segment.x2, segment.y2, segment.x, segment.y)
            )
        elif isinstance(segment, QuadTo):
            parts.append("Q" + fmt(segment.x1, segment.y1, segment.x, segment.y))
        elif isinstance(segment, ClosePath):
            parts.append("Z")
        else:
            raise InvalidPathData(f"Cannot serialize segment {segment!r}")
    return "".join(parts)


def polygons_to_segments(
    polygons: "Iterable[Sequence[tuple[float, float]]]",
) -> "list[Segment]":
    """One closed subpath per polygon."""
    segments: "list[Segment]" = []
    for polygon in polygons:
        if len(polygon) < 2:
            continue
        segments.append(MoveTo(*polygon[0]))
        segments.extend(LineTo(x, y) for x, y in polygon[1:])
        segments.append(ClosePath())
    return segments


def polygons_to_path_data(
    polygons: "Iterable[Sequence[tuple[float, float]]]",
    precision: int = 3,
) -> str:
    """Compound path data for a set of polygons (outer plus holes)."""
    return serialize_path_data(polygons_to_segments(polygons), precision)


def segment_points(segments: "Iterable[Segment]") -> "list[tuple[float, float]]":
    """Every coordinate pair in the segments, controls included."""
    points: "list[tuple[float, float]]" = []
    for segment in segments:
        if isinstance(segment, (MoveTo, LineTo)):
            points.append((segment.x, segment.y))
        elif isinstance(segment, CubicTo):
            points.extend(
                [(segment.x1, segment.y1), (segment.x2, segment.y2), (segment.x, segment.y)]
            )
        elif isinstance(segment, QuadTo):
            points.extend([(segment.x1, segment.y1), (segment.x, segment.y)])
    return points


@dataclass
class Subpath:
    """A flattened subpath: polyline points plus whether it was closed."""

    points: np.ndarray  # (N, 2)
    closed: bool


def _subdivisions(curve: "CubicBezier | QuadraticBezier", tolerance: float) -> int:
    # Wang's formula bounds the subdivision count for a given flatness
    if isinstance(curve, CubicBezier):
        dd = max(
            abs(curve.start - 2 * curve.control1 + curve.control2),
            abs(curve.control1 - 2 * curve.control2 + curve.end),
        )
        factor = 0.75
    else:
        dd = abs(curve.start - 2 * curve.control + curve.end)
        factor = 0.25
    return int(min(512, max(1, math.ceil(math.sqrt(factor * dd / tolerance)))))


def _sample_curve(
    curve: "CubicBezier | QuadraticBezier", tolerance: float
) -> "list[tuple[float, float]]":
    """Points along the curve after its start, ending exactly on its end point."""
    count = _subdivisions(curve, tolerance)
    points = [curve.point(i / count) for i in range(1, count)]
    points.append(curve.end)
    return [(point.real, point.imag) for point in points]


def flatten_segments(
    segments: "Sequence[Segment]",
    tolerance: float = 0.25,
) -> "list[Subpath]":
    """Convert curves to polylines.

    Args:
        segments: Parsed absolute segments
        tolerance: Maximum distance between a curve and its polyline

    Returns:
        One Subpath per move-to (or per implicit restart after close)
    """
    tolerance = max(tolerance, 1e-6)
    subpaths: "list[Subpath]" = []
    points: "list[tuple[float, float]]" = []
    start = current = (0.0, 0.0)
    closed = False

    def finish() -> None:
        if len(points) > 1 or (points and closed):
            subpaths.append(Subpath(np.array(points, dtype=np.float64), closed))

    for segment in segments:
        if isinstance(segment, MoveTo):
            finish()
            start = current = (segment.x, segment.y)
            points = [current]
            closed = False
            continue
        if isinstance(segment, ClosePath):
            closed = bool(points)
            current = start
            continue
        if closed or not points:
            finish()
            points = [start]
            current = start
            closed = False
        if isinstance(segment, LineTo):
            current = (segment.x, segment.y)
            points.append(current)
            continue
        if isinstance(segment, CubicTo):
            curve = CubicBezier(
                complex(*current),
                complex(segment.x1, segment.y1),
                complex(segment.x2, segment.y2),
                complex(segment.x, segment.y),
            )
        else:
            curve = QuadraticBezier(
                complex(*current), complex(segment.x1, segment.y1), complex(segment.x, segment.y)
            )
        points.extend(_sample_curve(curve, tolerance))
        current = (segment.x, segment.y)
    finish()
    return subpaths
