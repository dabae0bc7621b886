"""Geometry and color helpers used throughout the tracing pipeline.

AIDEV-NOTE: Polygons here are sequences of (x, y) tuples in pixel-corner
coordinates with an implicit closing edge. Screen orientation (y down):
a positive signed area means clockwise on screen.
"""

import math
from typing import Sequence


def signed_area(points: "Sequence[tuple[float, float]]") -> float:
    """Shoelace signed area of a closed polygon.

    Args:
        points: Polygon vertices, closing edge implicit

    Returns:
        Signed area; positive for clockwise-on-screen polygons
    """
    count = len(points)
    if count < 3:
        return 0.0
    total = 0.0
    for i in range(count):
        x1, y1 = points[i]
        x2, y2 = points[(i + 1) % count]
        total += x1 * y2 - x2 * y1
    return total / 2.0


def polygon_area(points: "Sequence[tuple[float, float]]") -> float:
    """Absolute enclosed area of a closed polygon."""
    return abs(signed_area(points))


def polygon_perimeter(points: "Sequence[tuple[float, float]]") -> float:
    """Length of a closed polygon including the closing edge."""
    count = len(points)
    if count < 2:
        return 0.0
    total = 0.0
    for i in range(count):
        x1, y1 = points[i]
        x2, y2 = points[(i + 1) % count]
        total += math.hypot(x2 - x1, y2 - y1)
    return total


def perpendicular_distance(
    point: "tuple[float, float]",
    start: "tuple[float, float]",
    end: "tuple[float, float]",
) -> float:
    """Distance from point to the line through start and end.

    Falls back to the point-to-point distance when start == end.
    """
    px, py = point
    x1, y1 = start
    x2, y2 = end
    dx = x2 - x1
    dy = y2 - y1
    length = math.hypot(dx, dy)
    if length < 1e-12:
        return math.hypot(px - x1, py - y1)
    return abs(dy * px - dx * py + x2 * y1 - y2 * x1) / length


def dedupe_points(
    points: "Sequence[tuple[float, float]]",
) -> "list[tuple[float, float]]":
    """Drop consecutive duplicate points, including a repeated closing point."""
    result: "list[tuple[float, float]]" = []
    for point in points:
        if not result or point != result[-1]:
            result.append(point)
    while len(result) > 1 and result[0] == result[-1]:
        result.pop()
    return result


def drop_collinear(
    points: "Sequence[tuple[float, float]]",
) -> "list[tuple[float, float]]":
    """Keep only the corners of a closed rectilinear or general polygon.

    AIDEV-NOTE: The first point is kept when it is a corner so that loop
    start positions stay stable for a given mask.
    """
    count = len(points)
    if count < 3:
        return list(points)
    corners = []
    for i in range(count):
        x0, y0 = points[i - 1]
        x1, y1 = points[i]
        x2, y2 = points[(i + 1) % count]
        cross = (x1 - x0) * (y2 - y1) - (y1 - y0) * (x2 - x1)
        if abs(cross) > 1e-12:
            corners.append(points[i])
    return corners


def luminance(color: "tuple[int, int, int]") -> float:
    """Perceived brightness (0-255) of an RGB color."""
    r, g, b = color[:3]
    return 0.299 * r + 0.587 * g + 0.114 * b
