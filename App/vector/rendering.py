"""Rasterize vector documents into RGBA pixel buffers.

AIDEV-NOTE: Fills use scanline winding on a supersampled grid: every edge
adds +1/-1 at the first sample column right of its crossing and a cumulative
sum along the row yields the winding number per sample. Strokes are drawn
with Pillow on a supersampled mask. Both coverages are box-downsampled and
composited source-over in premultiplied float, then un-premultiplied to
straight-alpha RGBA8.
"""

import io
import logging

import numpy as np
from PIL import Image, ImageDraw

from errors import RenderingFailed
from models import FillType, PixelBuffer

from .document import VectorDocument, VectorPath
from .path_data import Subpath, flatten_segments
from .transform import Transform

logger = logging.getLogger(__name__)

MAX_DIMENSION = 8192  # px per axis
BAND_ROWS = 32  # output rows rasterized per fill band
BASE_TOLERANCE = 0.05  # max curve deviation in output pixels


def render_document(
    document: VectorDocument,
    width: "float | None" = None,
    height: "float | None" = None,
    scale: float = 1.0,
    supersample: int = 4,
    background: "tuple[int, int, int, int] | None" = None,
) -> PixelBuffer:
    """Render a document to pixels.

    Args:
        document: Document to render
        width: Target width in output units (defaults to the document's)
        height: Target height in output units (defaults to the document's)
        scale: Device scale factor applied on top of width/height
        supersample: Anti-aliasing samples per pixel axis
        background: Optional RGBA color behind the paths

    Returns:
        Straight-alpha RGBA PixelBuffer

    Raises:
        RenderingFailed: If the target size is below 1 pixel or too large
        InvalidPathData: If a path's data cannot be parsed
    """
    if width is None:
        width = document.output_width
    if height is None:
        height = document.output_height
    pixel_width = round(width * scale)
    pixel_height = round(height * scale)
    if pixel_width < 1 or pixel_height < 1:
        raise RenderingFailed(
            f"Render size {pixel_width}x{pixel_height} is below one pixel"
        )
    if pixel_width > MAX_DIMENSION or pixel_height > MAX_DIMENSION:
        raise RenderingFailed(
            f"Render size {pixel_width}x{pixel_height} exceeds {MAX_DIMENSION}px"
        )
    supersample = max(1, int(supersample))

    canvas = np.zeros((pixel_height, pixel_width, 4), dtype=np.float32)
    if background is not None:
        r, g, b, a = (c / 255.0 for c in background)
        canvas[:] = (r * a, g * a, b * a, a)

    base = Transform.scaling(
        pixel_width / document.viewport_width,
        pixel_height / document.viewport_height,
    )

    painted = 0
    for path, transform in document.walk(base):
        if path.is_visible and _render_path(
            canvas, path, transform, document, supersample
        ):
            painted += 1

    logger.debug(
        "Rendered %d/%d paths at %dx%d (x%d supersampling)",
        painted,
        len(document.all_paths()),
        pixel_width,
        pixel_height,
        supersample,
    )
    return PixelBuffer(_unpremultiply(canvas))


def render_to_image(document: VectorDocument, **kwargs) -> Image.Image:
    """Render a document to a Pillow RGBA image (same options as render_document)."""
    return render_document(document, **kwargs).to_image()


def render_to_png(document: VectorDocument, **kwargs) -> bytes:
    """Render a document and encode it as PNG bytes."""
    output = io.BytesIO()
    render_to_image(document, **kwargs).save(output, format="PNG")
    return output.getvalue()


def _render_path(
    canvas: np.ndarray,
    path: VectorPath,
    transform: Transform,
    document: VectorDocument,
    supersample: int,
) -> bool:
    """Composite one path onto the canvas. Returns False if nothing was drawn."""
    device_scale = transform.scale_factor()
    if device_scale <= 1e-12:
        return False

    subpaths = flatten_segments(path.segments(), BASE_TOLERANCE / device_scale)
    if not subpaths:
        return False
    device = [
        Subpath(transform.apply(subpath.points), subpath.closed) for subpath in subpaths
    ]
    height, width = canvas.shape[:2]
    drawn = False

    if path.fill_color is not None and path.fill_alpha > 0:
        coverage = fill_coverage(
            device, width, height, supersample, path.fill_type is FillType.EVEN_ODD
        )
        _composite(
            canvas,
            coverage,
            document.tint_color or path.fill_color,
            path.fill_alpha * document.alpha,
        )
        drawn = True

    if path.stroke_color is not None and path.stroke_alpha > 0 and path.stroke_width > 0:
        coverage = stroke_coverage(
            device, width, height, supersample, path.stroke_width * device_scale
        )
        _composite(
            canvas,
            coverage,
            document.tint_color or path.stroke_color,
            path.stroke_alpha * document.alpha,
        )
        drawn = True

    return drawn


def fill_coverage(
    subpaths: "list[Subpath]",
    width: int,
    height: int,
    supersample: int = 4,
    even_odd: bool = False,
) -> np.ndarray:
    """Fraction of each pixel inside the (implicitly closed) subpaths.

    Args:
        subpaths: Polylines in device pixel coordinates
        width: Output width in pixels
        height: Output height in pixels
        supersample: Samples per pixel axis
        even_odd: Use the even-odd rule instead of nonzero winding

    Returns:
        (height, width) float32 array of values in [0, 1]
    """
    coverage = np.zeros((height, width), dtype=np.float32)
    edges = [
        np.hstack([points[:-1], points[1:]])
        for points in (
            np.vstack([subpath.points, subpath.points[:1]])
            for subpath in subpaths
            if len(subpath.points) >= 2
        )
    ]
    if not edges:
        return coverage

    x0, y0, x1, y1 = np.concatenate(edges).T
    keep = (y0 != y1) & np.isfinite(x0 + y0 + x1 + y1)
    x0, y0, x1, y1 = x0[keep], y0[keep], x1[keep], y1[keep]
    if len(x0) == 0:
        return coverage

    ss = supersample
    sample_rows = height * ss
    sample_cols = width * ss
    direction = np.where(y1 > y0, 1, -1).astype(np.int32)

    # Sample row r has its center at y = (r + 0.5) / ss; an edge covers the
    # rows whose center lies in [ymin, ymax)
    first = np.clip(np.ceil(np.minimum(y0, y1) * ss - 0.5), 0, sample_rows).astype(np.int64)
    last = np.clip(np.ceil(np.maximum(y0, y1) * ss - 0.5), 0, sample_rows).astype(np.int64)
    counts = last - first
    total = int(counts.sum())
    if total == 0:
        return coverage

    edge = np.repeat(np.arange(len(counts)), counts)
    offsets = np.arange(total) - np.repeat(np.cumsum(counts) - counts, counts)
    rows = first[edge] + offsets
    sample_y = (rows + 0.5) / ss
    t = (sample_y - y0[edge]) / (y1[edge] - y0[edge])
    crossing_x = x0[edge] + t * (x1[edge] - x0[edge])
    cols = np.clip(np.floor(crossing_x * ss - 0.5).astype(np.int64) + 1, 0, sample_cols)
    deltas = direction[edge]

    order = np.argsort(rows, kind="stable")
    rows, cols, deltas = rows[order], cols[order], deltas[order]

    for top in range(0, height, BAND_ROWS):
        bottom = min(height, top + BAND_ROWS)
        lo = np.searchsorted(rows, top * ss)
        hi = np.searchsorted(rows, bottom * ss)
        if lo == hi:
            continue
        accumulator = np.zeros(((bottom - top) * ss, sample_cols + 1), dtype=np.int32)
        np.add.at(accumulator, (rows[lo:hi] - top * ss, cols[lo:hi]), deltas[lo:hi])
        winding = np.cumsum(accumulator, axis=1)[:, :sample_cols]
        inside = (winding % 2 != 0) if even_odd else (winding != 0)
        coverage[top:bottom] = inside.reshape(bottom - top, ss, width, ss).mean(axis=(1, 3))
    return coverage


def stroke_coverage(
    subpaths: "list[Subpath]",
    width: int,
    height: int,
    supersample: int,
    stroke_width: float,
) -> np.ndarray:
    """Fraction of each pixel covered by the stroked polylines.

    Args:
        stroke_width: Line width in device pixels
    """
    ss = supersample
    mask = Image.new("L", (width * ss, height * ss), 0)
    draw = ImageDraw.Draw(mask)
    line_width = max(1, round(stroke_width * ss))

    for subpath in subpaths:
        # Pillow puts pixel centers on integer coordinates
        points = subpath.points * ss - 0.5
        if subpath.closed and len(points) > 1:
            points = np.vstack([points, points[:1]])
        if len(points) < 2:
            continue
        draw.line([tuple(p) for p in points.tolist()], fill=255, width=line_width, joint="curve")

    samples = np.asarray(mask, dtype=np.float32) / 255.0
    return samples.reshape(height, ss, width, ss).mean(axis=(1, 3))


def _composite(
    canvas: np.ndarray,
    coverage: np.ndarray,
    color: "tuple[int, int, int]",
    alpha: float,
) -> None:
    """Source-over a solid color through a coverage mask (premultiplied)."""
    source_alpha = coverage * float(alpha)
    rgb = np.array(color[:3], dtype=np.float32) / 255.0
    inverse = 1.0 - source_alpha
    canvas[..., :3] = rgb * source_alpha[..., None] + canvas[..., :3] * inverse[..., None]
    canvas[..., 3] = source_alpha + canvas[..., 3] * inverse


def _unpremultiply(canvas: np.ndarray) -> np.ndarray:
    alpha = canvas[..., 3:4]
    rgb = np.divide(canvas[..., :3], alpha, out=np.zeros_like(canvas[..., :3]), where=alpha > 0)
    straight = np.concatenate([rgb, alpha], axis=2)
    return np.clip(np.rint(straight * 255.0), 0, 255).astype(np.uint8)
