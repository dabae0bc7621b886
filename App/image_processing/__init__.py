"""Raster side of the toolbox: raster image to vector document.

AIDEV-NOTE: This package handles the complete tracing pipeline.
Organized into modular components:
- processor: Main ImageTracer orchestrator
- quantization: Color palette reduction
- contour_tracing: Region boundary extraction
- simplification: Douglas-Peucker polygon reduction
- encoding: PNG/JPEG/WebP output
- utils: Polygon and color helpers
"""

from .encoding import RasterFormat, encode_image
from .processor import ImageTracer
from .quantization import quantize, quantize_colors

__all__ = ["ImageTracer", "RasterFormat", "encode_image", "quantize", "quantize_colors"]
