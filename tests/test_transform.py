"""Unit tests for affine transforms and decomposition."""

import numpy as np
import pytest

from vector.transform import Transform


def test_matrix_translation_decomposes_exactly():
    parts = Transform.from_matrix(1, 0, 0, 1, 10, 20).decompose()

    assert parts.rotation == 0.0
    assert parts.scale_x == pytest.approx(1.0)
    assert parts.scale_y == pytest.approx(1.0)
    assert (parts.translate_x, parts.translate_y) == (10, 20)
    assert parts.exact


def test_composition_applies_right_operand_first():
    transform = Transform.translation(10, 0) @ Transform.scaling(2)

    assert transform.apply_point(1, 1) == pytest.approx((12.0, 2.0))


def test_rotation_is_clockwise_on_screen():
    assert Transform.rotation(90).apply_point(1, 0) == pytest.approx((0.0, 1.0))


def test_rotate_scale_translate_round_trips():
    transform = (
        Transform.translation(5, 6) @ Transform.rotation(30) @ Transform.scaling(2, 3)
    )

    parts = transform.decompose()

    assert parts.exact
    assert parts.rotation == pytest.approx(30.0)
    assert parts.scale_x == pytest.approx(2.0)
    assert parts.scale_y == pytest.approx(3.0)
    assert (parts.translate_x, parts.translate_y) == pytest.approx((5.0, 6.0))
    rebuilt = Transform.from_group_parameters(
        parts.rotation, 0, 0, parts.scale_x, parts.scale_y, parts.translate_x, parts.translate_y
    )
    assert rebuilt == transform


def test_reflection_becomes_negative_scale():
    parts = Transform.scaling(1, -1).decompose()

    assert parts.exact
    assert parts.scale_y == pytest.approx(-1.0)


def test_skew_is_not_exact():
    assert not Transform.skew(30, 0).decompose().exact


def test_group_parameters_rotate_about_pivot():
    transform = Transform.from_group_parameters(rotation=90, pivot_x=5, pivot_y=5)

    assert transform.apply_point(5, 5) == pytest.approx((5.0, 5.0))
    assert transform.apply_point(6, 5) == pytest.approx((5.0, 6.0))


def test_group_parameters_translate_after_scale():
    transform = Transform.from_group_parameters(scale_x=2, scale_y=2, translate_x=3)

    assert transform.apply_point(1, 1) == pytest.approx((5.0, 2.0))


def test_apply_maps_point_arrays():
    points = np.array([[0.0, 0.0], [1.0, 2.0]])

    mapped = Transform.translation(1, 1).apply(points)

    assert mapped.tolist() == [[1.0, 1.0], [2.0, 3.0]]
    assert Transform.identity().apply(np.empty((0, 2))).shape == (0, 2)


def test_svg_matrix_order():
    transform = Transform.from_matrix(1, 2, 3, 4, 5, 6)

    assert transform.as_svg_matrix() == (1, 2, 3, 4, 5, 6)


def test_equality_hash_and_identity():
    a = Transform.rotation(360)
    b = Transform.identity()

    assert a == b
    assert a.is_identity
    assert hash(Transform.translation(1, 2)) == hash(Transform.translation(1, 2))


def test_scale_factor_is_geometric_mean():
    assert Transform.scaling(2, 8).scale_factor() == pytest.approx(4.0)
