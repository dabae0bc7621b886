"""Main image tracer orchestrating the raster-to-vector pipeline.

AIDEV-NOTE: This module handles the complete pipeline from raster image
to vector document: quantize once, then trace and simplify every palette
index, then assemble one compound path per region. Regions are appended
in ascending palette order no matter how the per-color work is scheduled,
so the output is reproducible.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import numpy as np

from errors import InvalidImage
from models import (
    FillType,
    PixelBuffer,
    QuantizedImage,
    TracedRegion,
    TraceStatistics,
    TracingConfig,
)
from vector.document import VectorDocument, VectorPath
from vector.path_data import polygons_to_path_data

from .contour_tracing import trace_regions
from .quantization import quantize, quantize_colors
from .simplification import simplify_region

logger = logging.getLogger(__name__)


class ImageTracer:
    """Traces raster images to multi-color vector documents."""

    def __init__(self, config: TracingConfig | None = None):
        self.config = (config or TracingConfig()).clamped()

    def quantize(self, buffer: PixelBuffer) -> QuantizedImage:
        """Reduce the buffer to the configured palette.

        Returns:
            QuantizedImage with palette and index map
        """
        return quantize(
            buffer,
            self.config.color_count,
            self.config.quantization_method,
            self.config.alpha_threshold,
        )

    def quantize_colors(
        self,
        buffer: PixelBuffer,
        color_count: int | None = None,
    ) -> "list[tuple[int, int, int]]":
        """Palette preview without tracing.

        Args:
            buffer: Source pixels
            color_count: Number of colors, uses config default if None
        """
        if buffer.is_empty:
            raise InvalidImage("Image is empty")
        color_count = color_count or self.config.color_count
        return quantize_colors(
            buffer,
            color_count,
            self.config.quantization_method,
            self.config.alpha_threshold,
        )

    def trace_index(
        self,
        quantized: QuantizedImage,
        index: int,
    ) -> "tuple[list[TracedRegion], int]":
        """Trace and simplify every region of one palette index.

        Returns:
            Tuple of (surviving regions, number of dropped regions)
        """
        regions = trace_regions(quantized.index_map, index)
        simplified = []
        for region in regions:
            result = simplify_region(region, self.config.tolerance, self.config.min_area)
            if result is not None:
                simplified.append(result)
        return simplified, len(regions) - len(simplified)

    def trace(
        self,
        buffer: PixelBuffer,
        output_size: "tuple[float, float] | None" = None,
    ) -> VectorDocument:
        """Execute the complete tracing pipeline.

        Args:
            buffer: Source pixels
            output_size: Document output size, defaults to the source size

        Returns:
            VectorDocument whose viewport matches the source pixels

        Raises:
            InvalidImage: If the buffer is empty
            QuantizationFailed: If the palette cannot be built
            TracingFailed: If a region boundary cannot be closed
        """
        if buffer.is_empty:
            raise InvalidImage(f"Cannot trace a {buffer.width}x{buffer.height} image")

        logger.info(
            "Tracing %dx%d image (%d colors, tolerance %.2f, min area %.1f)",
            buffer.width,
            buffer.height,
            self.config.color_count,
            self.config.tolerance,
            self.config.min_area,
        )
        quantized = self.quantize(buffer)
        indices = quantized.indices()
        logger.info("Quantized to %d colors", len(quantized.palette))

        if self.config.workers > 1 and len(indices) > 1:
            with ThreadPoolExecutor(max_workers=self.config.workers) as pool:
                futures = {
                    index: pool.submit(self.trace_index, quantized, index)
                    for index in indices
                }
                # Merge in palette order, not completion order
                traced = {index: futures[index].result() for index in indices}
        else:
            traced = {index: self.trace_index(quantized, index) for index in indices}

        width, height = output_size or (buffer.width, buffer.height)
        document = VectorDocument(
            viewport_width=buffer.width,
            viewport_height=buffer.height,
            output_width=width,
            output_height=height,
        )

        stats = TraceStatistics(palette=list(quantized.palette))
        for index in indices:
            regions, dropped = traced[index]
            stats.dropped_regions += dropped
            color = quantized.palette[index]
            for region in regions:
                document.add_path(
                    VectorPath(
                        path_data=polygons_to_path_data(region.polygons),
                        fill_color=color,
                        fill_alpha=1.0,
                        fill_type=FillType.NON_ZERO,
                    )
                )
                stats.region_count += 1
                stats.point_count += region.point_count

        logger.info(
            "Traced %d regions (%d dropped), %d points",
            stats.region_count,
            stats.dropped_regions,
            stats.point_count,
        )
        return document

    def trace_file(
        self,
        file_path: "str | Path",
        output_size: "tuple[float, float] | None" = None,
    ) -> VectorDocument:
        """Load an image file and trace it."""
        buffer = PixelBuffer.open(file_path)
        logger.debug("Loaded %s (%dx%d)", file_path, buffer.width, buffer.height)
        return self.trace(buffer, output_size)

    def trace_array(
        self,
        array: np.ndarray,
        output_size: "tuple[float, float] | None" = None,
    ) -> VectorDocument:
        """Trace a numpy image (grayscale, RGB or RGBA)."""
        return self.trace(PixelBuffer.from_array(array), output_size)
