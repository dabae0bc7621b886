"""Polygon simplification (Douglas-Peucker) and speckle removal."""

import logging
from typing import Sequence

from models import TracedRegion

from .utils import dedupe_points, perpendicular_distance, polygon_area, signed_area

logger = logging.getLogger(__name__)


def simplify_polygon(
    polygon: "Sequence[tuple[float, float]]",
    tolerance: float,
    min_area: float = 0.0,
) -> "tuple[tuple[float, float], ...] | None":
    """Reduce the point count of a closed polygon.

    Args:
        polygon: Closed polygon (closing edge implicit)
        tolerance: Maximum perpendicular deviation of a removed point
        min_area: Polygons enclosing less than this are discarded

    Returns:
        Simplified polygon with the original orientation, or None when the
        polygon is discarded (too small, or fewer than 3 distinct points left)

    AIDEV-NOTE: The closed ring is split at point 0 and the point farthest
    from it; both anchors are always kept. Since anchors and recursion
    pivots are chosen among the surviving points, running the simplifier
    again with the same tolerance returns the same polygon.
    """
    if tolerance < 0:
        raise ValueError(f"tolerance must be >= 0, got {tolerance}")
    if min_area < 0:
        raise ValueError(f"min_area must be >= 0, got {min_area}")

    points = dedupe_points(polygon)
    if len(points) < 3 or polygon_area(points) < min_area:
        return None

    first = points[0]
    split = max(
        range(1, len(points)),
        key=lambda i: (_distance_sq(points[i], first), -i),
    )

    keep = [False] * len(points)
    keep[0] = keep[split] = True
    _douglas_peucker(points, 0, split, tolerance, keep)
    _douglas_peucker(points + [first], split, len(points), tolerance, keep)

    simplified = dedupe_points([p for p, k in zip(points, keep) if k])
    if len(simplified) < 3 or signed_area(simplified) == 0:
        return None
    return tuple(simplified)


def simplify_region(
    region: TracedRegion,
    tolerance: float,
    min_area: float = 0.0,
) -> "TracedRegion | None":
    """Simplify a region's outer boundary and holes.

    The whole region is dropped with its outer boundary; holes below the
    minimum area are filled in.
    """
    outer = simplify_polygon(region.outer, tolerance, min_area)
    if outer is None:
        return None
    holes = []
    for hole in region.holes:
        simplified = simplify_polygon(hole, tolerance, min_area)
        if simplified is not None:
            holes.append(simplified)
    return TracedRegion(outer, tuple(holes))


def _douglas_peucker(
    points: "Sequence[tuple[float, float]]",
    start: int,
    end: int,
    tolerance: float,
    keep: "list[bool]",
) -> None:
    """Mark points between start and end (exclusive) that must be kept.

    Iterative to stay clear of the recursion limit on long boundaries.
    Index len(keep) stands for the closing point and is never marked.
    """
    stack = [(start, end)]
    while stack:
        first, last = stack.pop()
        if last - first < 2:
            continue
        max_distance = -1.0
        index = first
        for i in range(first + 1, last):
            distance = perpendicular_distance(points[i], points[first], points[last])
            if distance > max_distance:
                max_distance = distance
                index = i
        if max_distance > tolerance:
            keep[index] = True
            stack.append((index, last))
            stack.append((first, index))


def _distance_sq(a: "tuple[float, float]", b: "tuple[float, float]") -> float:
    return (a[0] - b[0]) ** 2 + (a[1] - b[1]) ** 2
