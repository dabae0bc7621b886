"""Unit tests for the vector document tree."""

import pytest

from errors import InvalidDocument
from models import FillType
from vector.document import VectorDocument, VectorGroup, VectorPath


def test_document_sizes_default_to_viewport():
    document = VectorDocument(24, 12)

    assert document.viewport_size == (24.0, 12.0)
    assert document.output_size == (24.0, 12.0)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"viewport_width": 0, "viewport_height": 10},
        {"viewport_width": 10, "viewport_height": -1},
        {"viewport_width": 10, "viewport_height": 10, "output_width": 0},
    ],
)
def test_non_positive_sizes_are_rejected(kwargs):
    with pytest.raises(InvalidDocument):
        VectorDocument(**kwargs)


def test_negative_stroke_width_is_rejected():
    with pytest.raises(InvalidDocument):
        VectorPath("M0 0L1 1", stroke_color=(0, 0, 0), stroke_width=-1)


def test_alphas_are_clamped():
    path = VectorPath("M0 0", fill_color=(1, 2, 3), fill_alpha=1.5, stroke_alpha=-0.5)
    document = VectorDocument(1, 1, alpha=3)

    assert path.fill_alpha == 1.0
    assert path.stroke_alpha == 0.0
    assert document.alpha == 1.0


def test_visibility():
    assert VectorPath("M0 0", fill_color=(0, 0, 0)).is_visible
    assert not VectorPath("M0 0").is_visible
    assert not VectorPath("M0 0", stroke_color=(0, 0, 0)).is_visible
    assert VectorPath("M0 0", stroke_color=(0, 0, 0), stroke_width=1).is_visible


def test_all_paths_order_is_depth_first():
    document = VectorDocument(10, 10)
    outer = document.add_group(VectorGroup(name="outer"))
    inner = outer.add_group(VectorGroup(name="inner"))
    a = document.add_path(VectorPath("M0 0", name="a"))
    b = outer.add_path(VectorPath("M0 0", name="b"))
    c = inner.add_path(VectorPath("M0 0", name="c"))
    d = document.add_path(VectorPath("M0 0", name="d"))

    assert document.all_paths() == [a, d, b, c]


def test_adding_a_node_moves_it():
    first = VectorGroup()
    second = VectorGroup()
    path = first.add_path(VectorPath("M0 0"))

    second.add_path(path)

    assert first.paths == ()
    assert second.paths == (path,)
    assert path.parent is second


def test_cycles_are_rejected():
    parent = VectorGroup()
    child = parent.add_group(VectorGroup())

    with pytest.raises(InvalidDocument):
        child.add_group(parent)
    with pytest.raises(InvalidDocument):
        parent.add_group(parent)


def test_removing_a_stranger_fails():
    with pytest.raises(ValueError):
        VectorGroup().remove_path(VectorPath("M0 0"))
    with pytest.raises(ValueError):
        VectorGroup().remove_group(VectorGroup())


def test_walk_composes_group_transforms():
    document = VectorDocument(10, 10)
    outer = document.add_group(VectorGroup(translate_x=10))
    inner = outer.add_group(VectorGroup(scale_x=2, scale_y=2))
    inner.add_path(VectorPath("M0 0"))

    [(_, transform)] = list(document.walk())

    assert transform.apply_point(1, 1) == pytest.approx((12.0, 2.0))


def test_structure_compares_documents():
    def build():
        document = VectorDocument(24, 24, tint_color=(255, 0, 0))
        group = document.add_group(VectorGroup(name="g", rotation=45))
        group.add_path(
            VectorPath("M0,0 l10,0 0,10 z", fill_color=(1, 2, 3), fill_type=FillType.EVEN_ODD)
        )
        return document

    first = build()
    second = build()
    second.all_paths()[0].path_data = "M0 0L10 0L10 10Z"

    assert first.structure() == second.structure()
    assert first.structure()["groups"][0]["paths"][0]["fill_type"] == "evenOdd"
