"""Integration tests for the raster tracing pipeline.

Tests:
    - Path output for flat images
    - Palette ordering and holes in the traced document
    - Parallel tracing determinism
    - Transparency, speckle removal and output sizing
    - Visual fidelity of trace -> render
"""

import numpy as np
import pytest

from errors import InvalidImage
from image_processing import ImageTracer
from models import PixelBuffer, TracingConfig
from vector.rendering import render_document

from conftest import BLACK, RED, WHITE, paint, solid


def test_solid_image_is_one_rectangle():
    document = ImageTracer().trace(solid(10, 10, RED))

    [path] = document.all_paths()
    assert path.path_data == "M0 0L10 0L10 10L0 10Z"
    assert path.fill_color == RED
    assert path.fill_alpha == 1.0
    assert document.viewport_size == (10.0, 10.0)


def test_ring_paths_follow_palette_order(ring_image):
    document = ImageTracer().trace(ring_image)

    paths = document.all_paths()
    assert [p.fill_color for p in paths] == [BLACK, BLACK, WHITE]
    # Frame with the white square cut out, then the inner block
    assert paths[0].path_data.count("M") == 2
    assert paths[1].path_data.count("M") == 1
    # White ring with the black block cut out
    assert paths[2].path_data.count("M") == 2


def test_parallel_tracing_matches_inline(blocks_image):
    inline = ImageTracer(TracingConfig(workers=1)).trace(blocks_image)
    parallel = ImageTracer(TracingConfig(workers=4)).trace(blocks_image)

    assert parallel.structure() == inline.structure()


def test_empty_image_is_rejected():
    empty = PixelBuffer(np.zeros((0, 0, 4), dtype=np.uint8))

    with pytest.raises(InvalidImage):
        ImageTracer().trace(empty)
    with pytest.raises(InvalidImage):
        ImageTracer().quantize_colors(empty)


def test_transparent_pixels_are_not_traced():
    pixels = np.zeros((10, 10, 4), dtype=np.uint8)
    paint(pixels, slice(None), slice(0, 5), RED)

    document = ImageTracer().trace(PixelBuffer(pixels))

    [path] = document.all_paths()
    assert path.path_data == "M0 0L5 0L5 10L0 10Z"


def test_palette_preview_uses_configured_alpha_threshold():
    pixels = np.zeros((4, 4, 4), dtype=np.uint8)
    paint(pixels, slice(None), slice(None), RED)
    pixels[0] = (0, 0, 200, 50)
    buffer = PixelBuffer(pixels)
    tracer = ImageTracer(TracingConfig(color_count=2, alpha_threshold=100))

    preview = tracer.quantize_colors(buffer)

    assert preview == list(tracer.quantize(buffer).palette)
    assert (0, 0, 200) not in preview


def test_fully_transparent_image_has_no_paths():
    document = ImageTracer().trace(PixelBuffer.blank(6, 4))

    assert document.all_paths() == []
    assert document.viewport_size == (6.0, 4.0)


def test_speckles_below_min_area_are_dropped():
    pixels = np.zeros((10, 10, 4), dtype=np.uint8)
    paint(pixels, slice(None), slice(None), WHITE)
    paint(pixels, 5, 5, BLACK)

    document = ImageTracer(TracingConfig(min_area=4.0)).trace(PixelBuffer(pixels))

    [path] = document.all_paths()
    assert path.fill_color == WHITE
    assert path.path_data.count("M") == 1


def test_output_size_is_separate_from_viewport():
    document = ImageTracer().trace(solid(10, 10, RED), output_size=(20, 30))

    assert document.viewport_size == (10.0, 10.0)
    assert document.output_size == (20.0, 30.0)


def test_config_is_clamped():
    tracer = ImageTracer(TracingConfig(color_count=100, tolerance=0.0, workers=0))

    assert tracer.config.color_count == 16
    assert tracer.config.tolerance == 0.5
    assert tracer.config.workers == 1


def test_trace_then_render_reproduces_flat_image(blocks_image):
    config = TracingConfig(color_count=3, tolerance=0.5, min_area=0.0)
    document = ImageTracer(config).trace(blocks_image)

    rendered = render_document(document)

    difference = np.abs(
        rendered.rgb().astype(np.int32) - blocks_image.rgb().astype(np.int32)
    )
    assert difference.mean() < 8
    assert (rendered.alpha() == 255).all()


def test_trace_file(tmp_path, ring_image):
    path = tmp_path / "ring.png"
    ring_image.to_image().save(path)

    document = ImageTracer().trace_file(path)

    assert len(document.all_paths()) == 3


def test_trace_missing_file(tmp_path):
    with pytest.raises(InvalidImage):
        ImageTracer().trace_file(tmp_path / "missing.png")


def test_trace_array_accepts_grayscale():
    array = np.zeros((4, 6), dtype=np.uint8)
    array[:, 3:] = 255

    document = ImageTracer().trace_array(array)

    assert [p.fill_color for p in document.all_paths()] == [BLACK, WHITE]
