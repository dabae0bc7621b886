"""Unit tests for vector-drawable XML import/export."""

import pytest

from errors import InvalidDocument, InvalidPathData, InvalidXML, UnsupportedElement
from models import FillType
from vector.document import VectorDocument, VectorGroup, VectorPath
from vector.vector_drawable import (
    export_vector_drawable,
    export_vector_drawable_data,
    is_vector_drawable_data,
    is_vector_drawable_file,
    parse_vector_drawable,
    parse_vector_drawable_file,
)

ICON = """<?xml version="1.0" encoding="utf-8"?>
<!-- sample icon -->
<vector xmlns:android="http://schemas.android.com/apk/res/android"
    android:width="48dp"
    android:height="48dp"
    android:viewportWidth="24"
    android:viewportHeight="24">
    <group android:name="badge" android:rotation="45" android:pivotX="12" android:pivotY="12">
        <path
            android:name="square"
            android:pathData="M2,2h20v20h-20z"
            android:fillColor="#80FF0000"
            android:fillAlpha="0.5"
            android:fillType="evenOdd"/>
    </group>
    <path
        android:pathData="M0,0L4,4"
        android:strokeColor="#00F"
        android:strokeWidth="2"/>
</vector>
"""


def _vector(body, attributes='android:viewportWidth="24" android:viewportHeight="24"'):
    return (
        '<vector xmlns:android="http://schemas.android.com/apk/res/android" '
        f"{attributes}>{body}</vector>"
    )


def test_parse_icon():
    document = parse_vector_drawable(ICON)

    assert document.viewport_size == (24.0, 24.0)
    assert document.output_size == (48.0, 48.0)

    [group] = document.groups
    assert group.name == "badge"
    assert (group.rotation, group.pivot_x, group.pivot_y) == (45.0, 12.0, 12.0)

    square = group.paths[0]
    assert square.name == "square"
    assert square.fill_color == (255, 0, 0)
    assert square.fill_alpha == pytest.approx(0.5 * 0x80 / 255)
    assert square.fill_type is FillType.EVEN_ODD

    [line] = document.paths
    assert line.stroke_color == (0, 0, 255)
    assert line.stroke_width == 2.0
    assert line.fill_color is None


def test_parse_accepts_bytes():
    assert parse_vector_drawable(ICON.encode("utf-8")).viewport_width == 24.0


def test_width_defaults_to_viewport():
    document = parse_vector_drawable(_vector(""))

    assert document.output_size == (24.0, 24.0)


def test_tint_alpha_folds_into_document_alpha():
    document = parse_vector_drawable(
        _vector(
            "",
            'android:viewportWidth="24" android:viewportHeight="24" '
            'android:tint="#80FFFFFF" android:alpha="0.5"',
        )
    )

    assert document.tint_color == (255, 255, 255)
    assert document.alpha == pytest.approx(0.5 * 0x80 / 255)


def test_round_trip_preserves_structure():
    document = parse_vector_drawable(ICON)

    again = parse_vector_drawable(export_vector_drawable(document))

    assert again.structure() == document.structure()


def test_round_trip_of_built_document():
    document = VectorDocument(100, 50, output_width=200, output_height=100, tint_color=(9, 8, 7))
    group = document.add_group(
        VectorGroup(name="g", scale_x=2, translate_x=1.5, translate_y=-3)
    )
    group.add_path(VectorPath("M0 0Q5 5 10 0C12 2 14 2 16 0Z", fill_color=(10, 20, 30)))
    document.add_path(
        VectorPath("M1 1L9 9", stroke_color=(200, 100, 0), stroke_width=0.75, stroke_alpha=0.25)
    )

    again = parse_vector_drawable(export_vector_drawable_data(document))

    assert again.structure() == document.structure()


def test_export_omits_defaults():
    document = VectorDocument(24, 24)
    document.add_path(VectorPath("M0 0L1 0L1 1Z", fill_color=(0, 0, 0)))

    text = export_vector_drawable(document)

    assert 'android:fillColor="#000000"' in text
    assert "strokeWidth" not in text
    assert "fillAlpha" not in text
    assert "fillType" not in text
    assert 'android:width="24dp"' in text


def test_malformed_xml():
    with pytest.raises(InvalidXML):
        parse_vector_drawable("<vector><path></vector>")


def test_wrong_root():
    with pytest.raises(InvalidDocument):
        parse_vector_drawable('<svg xmlns="http://www.w3.org/2000/svg"/>')


def test_missing_viewport():
    with pytest.raises(InvalidDocument) as info:
        parse_vector_drawable(_vector("", 'android:viewportWidth="24"'))

    assert info.value.attribute == "viewportHeight"


def test_unsupported_element_is_named():
    with pytest.raises(UnsupportedElement) as info:
        parse_vector_drawable(_vector('<clip-path android:pathData="M0 0"/>'))

    assert info.value.element == "clip-path"


def test_resource_reference_is_rejected():
    with pytest.raises(InvalidDocument) as info:
        parse_vector_drawable(
            _vector('<path android:pathData="M0 0" android:fillColor="@color/primary"/>')
        )

    assert info.value.attribute == "fillColor"


def test_bad_path_data_carries_context():
    with pytest.raises(InvalidPathData) as info:
        parse_vector_drawable(_vector('<path android:pathData="M0 0 Q1"/>'))

    assert info.value.element == "path"
    assert info.value.attribute == "pathData"


def test_missing_path_data():
    with pytest.raises(InvalidDocument):
        parse_vector_drawable(_vector('<path android:fillColor="#000"/>'))


def test_sniffing():
    assert is_vector_drawable_data(ICON)
    assert is_vector_drawable_data(ICON.encode("utf-8"))
    assert not is_vector_drawable_data('<svg xmlns="http://www.w3.org/2000/svg"/>')
    assert not is_vector_drawable_data(b"\x89PNG\r\n\x1a\n")
    assert not is_vector_drawable_data(b"")


def test_file_helpers(tmp_path):
    path = tmp_path / "icon.xml"
    path.write_text(ICON, encoding="utf-8")

    assert is_vector_drawable_file(path)
    assert not is_vector_drawable_file(tmp_path / "missing.xml")
    assert parse_vector_drawable_file(path).output_width == 48.0
