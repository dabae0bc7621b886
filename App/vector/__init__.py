"""Vector side of the toolbox: document model, codecs and renderer.

- document: VectorDocument / VectorGroup / VectorPath tree
- path_data: Path-data grammar, serialization and flattening
- transform: Affine transforms and decomposition
- vector_drawable: Android vector-drawable XML
- svg_parser: SVG import/export
- rendering: Rasterizer
"""

from .document import VectorDocument, VectorGroup, VectorPath
from .rendering import render_document, render_to_image, render_to_png
from .svg_parser import export_svg, parse_svg
from .transform import Transform
from .vector_drawable import export_vector_drawable, parse_vector_drawable

__all__ = [
    "Transform",
    "VectorDocument",
    "VectorGroup",
    "VectorPath",
    "export_svg",
    "export_vector_drawable",
    "parse_svg",
    "parse_vector_drawable",
    "render_document",
    "render_to_image",
    "render_to_png",
]
