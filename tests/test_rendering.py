"""Unit tests for vector document rasterization."""

import numpy as np
import pytest

from errors import RenderingFailed
from models import FillType
from vector.document import VectorDocument, VectorGroup, VectorPath
from vector.rendering import MAX_DIMENSION, render_document, render_to_image, render_to_png

from conftest import RED

SQUARE = "M0 0H10V10H0Z"


def _document(path_data, **path_options):
    document = VectorDocument(10, 10)
    path_options.setdefault("fill_color", RED)
    document.add_path(VectorPath(path_data, **path_options))
    return document


def test_full_square_is_opaque_everywhere():
    pixels = render_document(_document(SQUARE)).pixels

    assert pixels.shape == (10, 10, 4)
    assert (pixels == (255, 0, 0, 255)).all()


def test_half_square_has_exact_edges(square_document):
    pixels = render_document(square_document).pixels

    assert (pixels[:, :5] == (255, 0, 0, 255)).all()
    assert (pixels[:, 5:, 3] == 0).all()


def test_reversed_subpath_is_a_hole_under_nonzero():
    pixels = render_document(_document(SQUARE + "M3 3V7H7V3Z")).pixels

    assert pixels[5, 5, 3] == 0
    assert pixels[1, 1, 3] == 255


def test_same_direction_subpath_depends_on_fill_rule():
    data = SQUARE + "M3 3H7V7H3Z"

    nonzero = render_document(_document(data)).pixels
    even_odd = render_document(_document(data, fill_type=FillType.EVEN_ODD)).pixels

    assert nonzero[5, 5, 3] == 255
    assert even_odd[5, 5, 3] == 0
    assert even_odd[1, 1, 3] == 255


def test_partial_coverage_is_antialiased():
    pixels = render_document(_document("M0 0H4.5V10H0Z")).pixels

    assert pixels[5, 3, 3] == 255
    assert 0 < pixels[5, 4, 3] < 255
    assert pixels[5, 5, 3] == 0


def test_output_size_and_scale():
    document = VectorDocument(5, 5, output_width=10, output_height=10)
    document.add_path(VectorPath("M0 0H5V5H0Z", fill_color=RED))

    assert render_document(document).size == (10, 10)
    scaled = render_document(document, scale=2)
    assert scaled.size == (20, 20)
    assert (scaled.pixels[..., 3] == 255).all()


def test_explicit_width_and_height():
    buffer = render_document(_document(SQUARE), width=30, height=15)

    assert buffer.size == (30, 15)


@pytest.mark.parametrize(
    "options",
    [
        {"width": 0.2},
        {"scale": 0.01},
        {"width": MAX_DIMENSION + 1},
        {"width": 0},
        {"width": 0, "height": 0},
    ],
)
def test_unrenderable_sizes(options):
    with pytest.raises(RenderingFailed):
        render_document(_document(SQUARE), **options)


def test_tint_replaces_color_and_keeps_alpha():
    document = VectorDocument(10, 10, tint_color=(0, 0, 255))
    document.add_path(VectorPath(SQUARE, fill_color=RED, fill_alpha=0.5))

    pixels = render_document(document).pixels

    assert tuple(pixels[5, 5]) == (0, 0, 255, 128)


def test_document_alpha_multiplies_path_alpha():
    document = VectorDocument(10, 10, alpha=0.5)
    document.add_path(VectorPath(SQUARE, fill_color=RED))

    pixels = render_document(document).pixels

    assert tuple(pixels[5, 5]) == (255, 0, 0, 128)


def test_background_fills_uncovered_pixels(square_document):
    pixels = render_document(square_document, background=(255, 255, 255, 255)).pixels

    assert (pixels[:, 5:] == 255).all()
    assert tuple(pixels[0, 0]) == (255, 0, 0, 255)


def test_stroke_covers_line_width():
    document = _document("M0 5H10", fill_color=None, stroke_color=(0, 0, 0), stroke_width=2)

    pixels = render_document(document).pixels

    assert pixels[4, 5, 3] > 150
    assert pixels[5, 5, 3] > 150
    assert pixels[0, 5, 3] == 0
    assert pixels[9, 5, 3] == 0


def test_stroke_scales_with_group():
    document = VectorDocument(10, 10)
    group = document.add_group(VectorGroup(scale_x=2, scale_y=2))
    group.add_path(VectorPath("M0 2.5H5", stroke_color=(0, 0, 0), stroke_width=1))

    pixels = render_document(document).pixels

    assert pixels[4, 5, 3] > 150
    assert pixels[5, 5, 3] > 150
    assert pixels[2, 5, 3] == 0


def test_group_translation():
    document = VectorDocument(10, 10)
    group = document.add_group(VectorGroup(translate_x=5))
    group.add_path(VectorPath("M0 0H5V10H0Z", fill_color=RED))

    pixels = render_document(document).pixels

    assert (pixels[:, :5, 3] == 0).all()
    assert (pixels[:, 5:, 3] == 255).all()


def test_invisible_paths_draw_nothing():
    document = _document(SQUARE, fill_color=None)

    assert not render_document(document).pixels.any()


def test_curves_cover_their_interior():
    document = _document("M5 0A5 5 0 1 1 5 10A5 5 0 1 1 5 0Z")

    alpha = render_document(document).pixels[..., 3].astype(np.float64)

    assert alpha[5, 5] == 255
    assert alpha[0, 0] == 0
    # Circle of radius 5 covers pi * 25 of 100 pixels
    assert alpha.sum() / 255.0 == pytest.approx(np.pi * 25, rel=0.03)


def test_image_and_png_helpers(square_document):
    image = render_to_image(square_document)
    data = render_to_png(square_document, scale=3)

    assert image.mode == "RGBA"
    assert image.size == (10, 10)
    assert data.startswith(b"\x89PNG\r\n\x1a\n")
