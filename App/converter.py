"""Result-returning facade over the tracing, codec and rendering stages.

AIDEV-NOTE: This is the boundary for UI/CLI collaborators. Stages raise
ToolboxError subclasses internally; here those become Result values so no
toolbox error escapes as an exception. Anything else (a programming
error) still propagates.
"""

import logging
from dataclasses import dataclass
from functools import wraps
from pathlib import Path
from typing import Callable, Generic, TypeVar

from PIL import Image

from errors import ToolboxError
from image_processing import ImageTracer
from models import PixelBuffer, RenderConfig, TracingConfig
from vector.document import VectorDocument
from vector.rendering import render_document, render_to_png
from vector.svg_parser import export_svg, export_svg_data, parse_svg
from vector.vector_drawable import (
    export_vector_drawable,
    export_vector_drawable_data,
    is_vector_drawable_data,
    is_vector_drawable_file,
    parse_vector_drawable,
    parse_vector_drawable_file,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    """Either a value or the error that prevented it."""

    value: "T | None" = None
    error: "ToolboxError | None" = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Return the value, re-raising the stored error."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]


def _as_result(func: "Callable[..., T]") -> "Callable[..., Result[T]]":
    @wraps(func)
    def wrapper(*args, **kwargs) -> "Result[T]":
        try:
            return Result(value=func(*args, **kwargs))
        except ToolboxError as e:
            logger.warning("%s failed: %s", func.__name__, e)
            return Result(error=e)

    return wrapper


class VectorConverter:
    """Vector parsing, conversion, export and rendering."""

    def __init__(self, render_config: RenderConfig | None = None):
        self.render_config = (render_config or RenderConfig()).clamped()

    @_as_result
    def parse_vector_drawable(self, data: "bytes | str") -> VectorDocument:
        return parse_vector_drawable(data)

    @_as_result
    def parse_vector_drawable_file(self, file_path: "str | Path") -> VectorDocument:
        return parse_vector_drawable_file(file_path)

    @_as_result
    def parse_svg(self, data: "bytes | str") -> VectorDocument:
        return parse_svg(data)

    @_as_result
    def convert_to_svg(self, data: "bytes | str") -> str:
        """Vector-drawable XML to SVG text."""
        return export_svg(parse_vector_drawable(data))

    @_as_result
    def convert_to_svg_data(self, data: "bytes | str") -> bytes:
        """Vector-drawable XML to SVG bytes."""
        return export_svg_data(parse_vector_drawable(data))

    @_as_result
    def export_to_svg(self, document: VectorDocument) -> str:
        return export_svg(document)

    @_as_result
    def export_to_svg_data(self, document: VectorDocument) -> bytes:
        return export_svg_data(document)

    @_as_result
    def export_to_vector_drawable(self, document: VectorDocument) -> str:
        return export_vector_drawable(document)

    @_as_result
    def export_to_vector_drawable_data(self, document: VectorDocument) -> bytes:
        return export_vector_drawable_data(document)

    def _render_options(self, width, height, scale) -> dict:
        return {
            "width": width,
            "height": height,
            "scale": self.render_config.scale if scale is None else scale,
            "supersample": self.render_config.supersample,
            "background": self.render_config.background,
        }

    @_as_result
    def render_to_buffer(
        self,
        document: VectorDocument,
        width: "float | None" = None,
        height: "float | None" = None,
        scale: "float | None" = None,
    ) -> PixelBuffer:
        return render_document(document, **self._render_options(width, height, scale))

    @_as_result
    def render_to_image(
        self,
        document: VectorDocument,
        width: "float | None" = None,
        height: "float | None" = None,
        scale: "float | None" = None,
    ) -> Image.Image:
        return render_document(
            document, **self._render_options(width, height, scale)
        ).to_image()

    @_as_result
    def render_to_png(
        self,
        document: VectorDocument,
        width: "float | None" = None,
        height: "float | None" = None,
        scale: "float | None" = None,
    ) -> bytes:
        return render_to_png(document, **self._render_options(width, height, scale))

    @staticmethod
    def is_vector_drawable_data(data: "bytes | str") -> bool:
        return is_vector_drawable_data(data)

    @staticmethod
    def is_vector_drawable_file(file_path: "str | Path") -> bool:
        return is_vector_drawable_file(file_path)


class TracingService:
    """Raster tracing with Result-returning operations."""

    def __init__(self, config: TracingConfig | None = None):
        self.tracer = ImageTracer(config)

    @property
    def config(self) -> TracingConfig:
        return self.tracer.config

    @_as_result
    def trace_image(
        self,
        buffer: PixelBuffer,
        output_size: "tuple[float, float] | None" = None,
    ) -> VectorDocument:
        return self.tracer.trace(buffer, output_size)

    @_as_result
    def trace_file(
        self,
        file_path: "str | Path",
        output_size: "tuple[float, float] | None" = None,
    ) -> VectorDocument:
        return self.tracer.trace_file(file_path, output_size)

    @_as_result
    def quantize_colors(
        self,
        buffer: PixelBuffer,
        color_count: int | None = None,
    ) -> "list[tuple[int, int, int]]":
        return self.tracer.quantize_colors(buffer, color_count)
