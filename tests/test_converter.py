"""Unit tests for the Result-returning facade."""

import pytest

from converter import Result, TracingService, VectorConverter
from errors import (
    InvalidImage,
    InvalidPathData,
    InvalidXML,
    RenderingFailed,
    UnsupportedElement,
)
from models import RenderConfig, TracingConfig
from vector.document import VectorDocument, VectorPath

from conftest import RED, solid

VECTOR = (
    '<vector xmlns:android="http://schemas.android.com/apk/res/android" '
    'android:width="20dp" android:height="20dp" '
    'android:viewportWidth="10" android:viewportHeight="10">'
    '<path android:pathData="M0 0H10V10H0Z" android:fillColor="#FF0000"/></vector>'
)


@pytest.fixture
def converter():
    return VectorConverter()


def test_result_unwrap():
    assert Result(value=3).unwrap() == 3
    assert Result(value=3).ok

    failed = Result(error=InvalidXML("bad"))
    assert not failed.ok
    with pytest.raises(InvalidXML):
        failed.unwrap()


def test_parse_vector_drawable(converter):
    result = converter.parse_vector_drawable(VECTOR)

    assert result.ok
    assert result.value.output_size == (20.0, 20.0)


def test_errors_become_results(converter):
    malformed = converter.parse_vector_drawable("<vector")
    unsupported = converter.parse_svg(
        '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 1 1"><circle r="1"/></svg>'
    )

    assert isinstance(malformed.error, InvalidXML)
    assert isinstance(unsupported.error, UnsupportedElement)
    assert unsupported.error.element == "circle"


def test_missing_file_is_a_result(converter, tmp_path):
    result = converter.parse_vector_drawable_file(tmp_path / "missing.xml")

    assert not result.ok
    assert result.error.code == 1004


def test_convert_to_svg(converter):
    text = converter.convert_to_svg(VECTOR).unwrap()
    data = converter.convert_to_svg_data(VECTOR).unwrap()

    assert text.startswith("<svg")
    assert data == text.encode("utf-8")
    assert converter.parse_svg(text).unwrap().viewport_size == (10.0, 10.0)


def test_export_to_svg(converter):
    document = converter.parse_vector_drawable(VECTOR).unwrap()

    text = converter.export_to_svg(document).unwrap()

    assert converter.parse_svg(text).unwrap().viewport_size == (10.0, 10.0)
    assert converter.export_to_svg_data(document).unwrap() == text.encode("utf-8")


def test_export_to_svg_reports_bad_path_data(converter):
    document = VectorDocument(4, 4)
    document.add_path(VectorPath("M0 0L4", fill_color=RED))

    result = converter.export_to_svg(document)

    assert isinstance(result.error, InvalidPathData)
    assert result.error.command == "L"


def test_export_to_vector_drawable(converter):
    document = converter.parse_vector_drawable(VECTOR).unwrap()

    text = converter.export_to_vector_drawable(document).unwrap()

    assert converter.is_vector_drawable_data(text)
    assert converter.export_to_vector_drawable_data(document).unwrap() == text.encode("utf-8")


def test_render_uses_output_size_and_scale(converter):
    document = converter.parse_vector_drawable(VECTOR).unwrap()

    assert converter.render_to_buffer(document).unwrap().size == (20, 20)
    assert converter.render_to_buffer(document, scale=0.5).unwrap().size == (10, 10)
    assert converter.render_to_image(document, width=5, height=8).unwrap().size == (5, 8)
    assert converter.render_to_png(document).unwrap().startswith(b"\x89PNG")


def test_render_config_supplies_defaults():
    converter = VectorConverter(RenderConfig(scale=2.0, background=(0, 0, 0, 255)))
    document = converter.parse_vector_drawable(VECTOR).unwrap()

    buffer = converter.render_to_buffer(document).unwrap()

    assert buffer.size == (40, 40)
    assert tuple(buffer.pixels[0, 0]) == (255, 0, 0, 255)


def test_render_failure_is_a_result(converter):
    document = converter.parse_vector_drawable(VECTOR).unwrap()

    result = converter.render_to_buffer(document, width=0.1)

    assert isinstance(result.error, RenderingFailed)


def test_vector_drawable_file_sniffing(converter, tmp_path):
    path = tmp_path / "icon.xml"
    path.write_text(VECTOR, encoding="utf-8")

    assert converter.is_vector_drawable_file(path)
    assert converter.parse_vector_drawable_file(path).ok


def test_tracing_service(tmp_path):
    service = TracingService(TracingConfig(color_count=4))
    image_path = tmp_path / "red.png"
    solid(6, 6, RED).to_image().save(image_path)

    traced = service.trace_image(solid(6, 6, RED), output_size=(12, 12))
    from_file = service.trace_file(image_path)
    palette = service.quantize_colors(solid(6, 6, RED))

    assert service.config.color_count == 4
    assert traced.unwrap().output_size == (12.0, 12.0)
    assert len(from_file.unwrap().all_paths()) == 1
    assert palette.unwrap() == [RED]


def test_tracing_service_reports_bad_input(tmp_path):
    service = TracingService()

    result = service.trace_file(tmp_path / "missing.png")

    assert isinstance(result.error, InvalidImage)
