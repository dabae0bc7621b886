"""Image Toolbox - command-line entry point."""

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path

from config_manager import ConfigManager
from errors import InvalidInput, ToolboxError
from formats import SourceKind, detect_file_format, export_document, format_for_extension
from image_processing import ImageTracer, encode_image
from image_processing.encoding import format_for_extension as raster_format_for_extension
from models import CONFIG_FILE, PixelBuffer, QuantizationMethod, RenderConfig
from vector.document import VectorDocument
from vector.rendering import render_document
from vector.svg_parser import parse_svg_file
from vector.vector_drawable import parse_vector_drawable_file

logger = logging.getLogger(__name__)


def _size(text: str) -> "tuple[float, float]":
    """Parse WxH."""
    try:
        width, height = (float(part) for part in text.lower().split("x"))
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected WIDTHxHEIGHT, got {text!r}") from None
    if width <= 0 or height <= 0:
        raise argparse.ArgumentTypeError("size must be positive")
    return width, height


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="image-toolbox",
        description="Trace raster images to vectors, convert and render vector drawables.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument(
        "--config", type=Path, default=CONFIG_FILE, help="Settings file (JSON)"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    trace = subparsers.add_parser("trace", help="Trace a raster image to SVG or vector drawable")
    trace.add_argument("image", type=Path)
    trace.add_argument("output", type=Path, help="Output .svg or .xml")
    trace.add_argument("--colors", type=int, help="Palette size (2-16)")
    trace.add_argument("--tolerance", type=float, help="Simplification tolerance in px")
    trace.add_argument("--min-area", type=float, help="Drop regions smaller than this (px^2)")
    trace.add_argument(
        "--method", choices=[m.value for m in QuantizationMethod], help="Quantization method"
    )
    trace.add_argument("--workers", type=int, help="Per-color tracing threads")
    trace.add_argument("--size", type=_size, help="Output size WxH")

    convert = subparsers.add_parser("convert", help="Convert between vector formats")
    convert.add_argument("input", type=Path)
    convert.add_argument("output", type=Path, help="Output .svg, .xml, .png, .jpg or .webp")

    render = subparsers.add_parser("render", help="Render a vector file to a raster image")
    render.add_argument("input", type=Path)
    render.add_argument("output", type=Path, help="Output .png, .jpg or .webp")
    render.add_argument("--size", type=_size, help="Render size WxH before scaling")
    render.add_argument("--scale", type=float, help="Device scale factor")

    palette = subparsers.add_parser("palette", help="Print the quantized palette of an image")
    palette.add_argument("image", type=Path)
    palette.add_argument("--colors", type=int, help="Palette size (2-16)")

    return parser


def _load_vector(path: Path) -> VectorDocument:
    kind = detect_file_format(path)
    if kind is SourceKind.VECTOR_DRAWABLE:
        return parse_vector_drawable_file(path)
    if kind is SourceKind.SVG:
        return parse_svg_file(path)
    raise InvalidInput(f"{path} is not a vector drawable or SVG file")


def _write_vector(document: VectorDocument, path: Path) -> None:
    fmt = format_for_extension(path.suffix)
    if fmt is None:
        raise InvalidInput(f"Unknown vector output extension {path.suffix!r}")
    path.write_bytes(export_document(document, fmt))


def _write_raster(document: VectorDocument, path: Path, render: RenderConfig, size=None) -> None:
    fmt = raster_format_for_extension(path.suffix)
    if fmt is None:
        raise InvalidInput(f"Unknown raster output extension {path.suffix!r}")
    width, height = size or (None, None)
    buffer = render_document(
        document,
        width=width,
        height=height,
        scale=render.scale,
        supersample=render.supersample,
        background=render.background,
    )
    path.write_bytes(encode_image(buffer, fmt))


def run(args: argparse.Namespace) -> None:
    tracing, render = ConfigManager(args.config).load()
    logger.debug("Running %s", args.command)

    if args.command == "trace":
        overrides = {
            "color_count": args.colors,
            "tolerance": args.tolerance,
            "min_area": args.min_area,
            "quantization_method": args.method,
            "workers": args.workers,
        }
        tracing = replace(tracing, **{k: v for k, v in overrides.items() if v is not None})
        document = ImageTracer(tracing).trace_file(args.image, args.size)
        _write_vector(document, args.output)
        print(f"Wrote {len(document.all_paths())} paths to {args.output}")

    elif args.command == "convert":
        document = _load_vector(args.input)
        if raster_format_for_extension(args.output.suffix) is not None:
            _write_raster(document, args.output, render)
        else:
            _write_vector(document, args.output)
        print(f"Wrote {args.output}")

    elif args.command == "render":
        if args.scale is not None:
            render = replace(render, scale=args.scale).clamped()
        _write_raster(_load_vector(args.input), args.output, render, args.size)
        print(f"Wrote {args.output}")

    elif args.command == "palette":
        if args.colors is not None:
            tracing = replace(tracing, color_count=args.colors)
        tracer = ImageTracer(tracing)
        for r, g, b in tracer.quantize_colors(PixelBuffer.open(args.image)):
            print(f"#{r:02X}{g:02X}{b:02X}")


def main(argv: "list[str] | None" = None) -> int:
    """Run the toolbox CLI. Returns the process exit code."""
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        run(args)
    except (ToolboxError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
