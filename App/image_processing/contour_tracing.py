"""Contour extraction from a palette index map.

AIDEV-NOTE: Boundaries are traced along pixel edges ("crack following"),
not through pixel centers, so a traced polygon encloses exactly the pixels
of its region and adjacent regions share their borders without gaps.

Every foreground pixel side that faces a non-target cell (or the frame)
becomes a directed unit edge with the foreground on its right, i.e. each
pixel is walked clockwise on screen (y down). Chaining those edges yields
closed loops: outer boundaries come out clockwise (positive shoelace sum),
hole boundaries counter-clockwise. Foreground connectivity is 4-connected;
at a diagonal saddle vertex the walk turns right, which keeps the two
diagonal pixels in separate loops.
"""

import logging

import numpy as np
from scipy import ndimage

from errors import TracingFailed
from models import TracedRegion

from .utils import drop_collinear, signed_area

logger = logging.getLogger(__name__)

# Side indices, in seed scan order
TOP, RIGHT, BOTTOM, LEFT = 0, 1, 2, 3

# Screen directions (dx, dy), clockwise order: east, south, west, north
EAST, SOUTH, WEST, NORTH = 0, 1, 2, 3
_DIRECTION_STEP = {EAST: (1, 0), SOUTH: (0, 1), WEST: (-1, 0), NORTH: (0, -1)}

# Walking a pixel clockwise, each side is traversed in one direction
_SIDE_DIRECTION = {TOP: EAST, RIGHT: SOUTH, BOTTOM: WEST, LEFT: NORTH}


def _turn_preference(direction: int) -> "tuple[int, int, int]":
    """Right, straight, left - relative to the current heading."""
    return ((direction + 1) % 4, direction, (direction + 3) % 4)


def _edge_from_vertex(x: int, y: int, direction: int) -> "tuple[int, int, int]":
    """The (row, col, side) of the edge leaving vertex (x, y) in a direction.

    AIDEV-NOTE: With the foreground always on the right, the heading alone
    determines which pixel owns the edge.
    """
    if direction == EAST:
        return y, x, TOP
    if direction == SOUTH:
        return y, x - 1, RIGHT
    if direction == WEST:
        return y - 1, x - 1, BOTTOM
    return y - 1, x, LEFT


def _edge_start(row: int, col: int, side: int) -> "tuple[int, int]":
    if side == TOP:
        return col, row
    if side == RIGHT:
        return col + 1, row
    if side == BOTTOM:
        return col + 1, row + 1
    return col, row + 1


def _exposed_sides(mask: np.ndarray) -> np.ndarray:
    """Boolean (H, W, 4) array: which sides of each foreground pixel are boundary."""
    padded = np.pad(mask, 1, constant_values=False)
    center = padded[1:-1, 1:-1]
    exposed = np.zeros(mask.shape + (4,), dtype=bool)
    exposed[..., TOP] = center & ~padded[:-2, 1:-1]
    exposed[..., RIGHT] = center & ~padded[1:-1, 2:]
    exposed[..., BOTTOM] = center & ~padded[2:, 1:-1]
    exposed[..., LEFT] = center & ~padded[1:-1, :-2]
    return exposed


def _walk_loop(
    exposed: np.ndarray,
    visited: np.ndarray,
    start: "tuple[int, int, int]",
) -> "list[tuple[float, float]]":
    """Follow boundary edges from a seed edge until the loop closes.

    Returns:
        Corner points of the loop, starting at the seed edge's start vertex

    Raises:
        TracingFailed: If the chain breaks or revisits an edge
    """
    height, width = exposed.shape[:2]
    max_steps = int(exposed.sum())

    x, y = _edge_start(*start)
    points = [(x, y)]
    row, col, side = start

    for _ in range(max_steps):
        visited[row, col, side] = True
        direction = _SIDE_DIRECTION[side]
        dx, dy = _DIRECTION_STEP[direction]
        x, y = x + dx, y + dy

        for heading in _turn_preference(direction):
            next_row, next_col, next_side = _edge_from_vertex(x, y, heading)
            if (
                0 <= next_row < height
                and 0 <= next_col < width
                and exposed[next_row, next_col, next_side]
            ):
                break
        else:
            raise TracingFailed(f"Boundary chain broken at vertex ({x}, {y})")

        if (next_row, next_col, next_side) == start:
            return [(float(px), float(py)) for px, py in drop_collinear(points)]
        if visited[next_row, next_col, next_side]:
            raise TracingFailed(f"Boundary walk revisited an edge at ({x}, {y})")

        points.append((x, y))
        row, col, side = next_row, next_col, next_side

    raise TracingFailed("Boundary walk did not close")


def trace_regions(index_map: np.ndarray, target_index: int) -> "list[TracedRegion]":
    """Extract the closed boundaries of every region of one palette index.

    Args:
        index_map: (H, W) integer array of palette indices
        target_index: Palette index whose regions are traced

    Returns:
        One TracedRegion per 4-connected component, in row-major order of
        each component's first pixel. Holes follow in discovery order.

    Raises:
        TracingFailed: On a structurally impossible boundary
    """
    if index_map.ndim != 2:
        raise TracingFailed(f"Index map must be 2-D, got shape {index_map.shape}")

    mask = index_map == target_index
    if not mask.any():
        return []

    # Default structuring element is the 4-connected cross; labels follow
    # row-major order of each component's first pixel
    labels, component_count = ndimage.label(mask)

    exposed = _exposed_sides(mask)
    visited = np.zeros_like(exposed)

    outers: "dict[int, list]" = {}
    holes: "dict[int, list]" = {i: [] for i in range(1, component_count + 1)}

    for edge_id in np.flatnonzero(exposed):
        pixel, side = divmod(int(edge_id), 4)
        row, col = divmod(pixel, mask.shape[1])
        if visited[row, col, side]:
            continue

        points = _walk_loop(exposed, visited, (row, col, side))
        label = int(labels[row, col])
        area = signed_area(points)
        if area > 0:
            if label in outers:
                raise TracingFailed(f"Region {label} has more than one outer boundary")
            outers[label] = points
        elif area < 0:
            holes[label].append(tuple(points))
        else:
            raise TracingFailed(f"Degenerate boundary loop at ({col}, {row})")

    regions = []
    for label in range(1, component_count + 1):
        if label not in outers:
            raise TracingFailed(f"Region {label} has no outer boundary")
        regions.append(TracedRegion(tuple(outers[label]), tuple(holes[label])))

    logger.debug(
        "Traced index %d: %d regions, %d holes",
        target_index,
        len(regions),
        sum(len(region.holes) for region in regions),
    )
    return regions


def trace_polygons(
    index_map: np.ndarray,
    target_index: int,
) -> "list[tuple[tuple[float, float], ...]]":
    """Flat list of polygons: each outer followed by its holes."""
    polygons = []
    for region in trace_regions(index_map, target_index):
        polygons.extend(region.polygons)
    return polygons
