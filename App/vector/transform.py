"""2D affine transforms for group composition and rendering.

AIDEV-NOTE: Matrices are 3x3 numpy arrays acting on column vectors, so
`a @ b` applies b first. SVG's matrix(a b c d e f) maps to
[[a, c, e], [b, d, f], [0, 0, 1]].
"""

import math
from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class Decomposition:
    """Rotate-scale-translate parameters recovered from a matrix."""

    rotation: float  # degrees
    scale_x: float
    scale_y: float
    translate_x: float
    translate_y: float
    exact: bool  # False when the matrix carried skew that was dropped


class Transform:
    """Immutable 2D affine transform."""

    __slots__ = ("m",)

    def __init__(self, matrix: "np.ndarray | None" = None):
        if matrix is None:
            matrix = np.identity(3)
        self.m = np.array(matrix, dtype=np.float64)
        self.m.flags.writeable = False

    def __matmul__(self, other: "Transform") -> "Transform":
        return Transform(self.m @ other.m)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Transform):
            return NotImplemented
        return bool(np.allclose(self.m, other.m))

    def __hash__(self) -> int:
        return hash(tuple(np.round(self.m, 9).reshape(-1)))

    def __repr__(self) -> str:
        return f"Transform({np.around(self.m, 4).tolist()[:2]})"

    @classmethod
    def identity(cls) -> "Transform":
        return cls()

    @classmethod
    def translation(cls, tx: float, ty: float) -> "Transform":
        return cls(np.array([[1, 0, tx], [0, 1, ty], [0, 0, 1]]))

    @classmethod
    def scaling(cls, sx: float, sy: "float | None" = None) -> "Transform":
        sy = sx if sy is None else sy
        return cls(np.array([[sx, 0, 0], [0, sy, 0], [0, 0, 1]]))

    @classmethod
    def rotation(cls, degrees: float) -> "Transform":
        angle = math.radians(degrees)
        cos_a = math.cos(angle)
        sin_a = math.sin(angle)
        return cls(np.array([[cos_a, -sin_a, 0], [sin_a, cos_a, 0], [0, 0, 1]]))

    @classmethod
    def skew(cls, ax_degrees: float, ay_degrees: float) -> "Transform":
        return cls(
            np.array(
                [
                    [1, math.tan(math.radians(ax_degrees)), 0],
                    [math.tan(math.radians(ay_degrees)), 1, 0],
                    [0, 0, 1],
                ]
            )
        )

    @classmethod
    def from_matrix(
        cls, a: float, b: float, c: float, d: float, e: float, f: float
    ) -> "Transform":
        """Build from SVG matrix(a b c d e f) order."""
        return cls(np.array([[a, c, e], [b, d, f], [0, 0, 1]]))

    @classmethod
    def from_group_parameters(
        cls,
        rotation: float = 0.0,
        pivot_x: float = 0.0,
        pivot_y: float = 0.0,
        scale_x: float = 1.0,
        scale_y: float = 1.0,
        translate_x: float = 0.0,
        translate_y: float = 0.0,
    ) -> "Transform":
        """Scale and rotate about the pivot, then translate.

        Equivalent to T(tx, ty) . T(px, py) . R(rotation) . S(sx, sy) . T(-px, -py).
        """
        return (
            cls.translation(translate_x + pivot_x, translate_y + pivot_y)
            @ cls.rotation(rotation)
            @ cls.scaling(scale_x, scale_y)
            @ cls.translation(-pivot_x, -pivot_y)
        )

    def apply(self, points: np.ndarray) -> np.ndarray:
        """Map an (N, 2) array of points."""
        points = np.asarray(points, dtype=np.float64)
        if len(points) == 0:
            return points.reshape(0, 2)
        return points @ self.m[:2, :2].T + self.m[:2, 2]

    def apply_point(self, x: float, y: float) -> "tuple[float, float]":
        m = self.m
        return (
            float(m[0, 0] * x + m[0, 1] * y + m[0, 2]),
            float(m[1, 0] * x + m[1, 1] * y + m[1, 2]),
        )

    def as_svg_matrix(self) -> "tuple[float, float, float, float, float, float]":
        m = self.m
        return (
            float(m[0, 0]),
            float(m[1, 0]),
            float(m[0, 1]),
            float(m[1, 1]),
            float(m[0, 2]),
            float(m[1, 2]),
        )

    @property
    def is_identity(self) -> bool:
        return bool(np.allclose(self.m, np.identity(3)))

    def scale_factor(self) -> float:
        """Geometric mean of the axis scales, used to pick flattening tolerances."""
        return math.sqrt(abs(float(np.linalg.det(self.m[:2, :2]))))

    def decompose(self) -> Decomposition:
        """Split into rotation, axis scales and translation.

        AIDEV-NOTE: Uses the QR-style split M = R(theta) . [[sx, k], [0, sy]].
        With no skew (k == 0) the result reproduces the matrix exactly;
        otherwise k is dropped and exact is False. A reflection is folded
        into a negative scale_y.
        """
        a, b, c, d, e, f = self.as_svg_matrix()
        scale_x = math.hypot(a, b)
        if scale_x < 1e-12:
            # First column collapsed: recover what we can from the second
            scale_y = math.hypot(c, d)
            rotation = math.degrees(math.atan2(-c, d)) if scale_y > 1e-12 else 0.0
            return Decomposition(_clean(rotation), 0.0, scale_y, e, f, True)

        rotation = math.degrees(math.atan2(b, a))
        determinant = a * d - b * c
        scale_y = determinant / scale_x
        skew = (a * c + b * d) / scale_x
        exact = abs(skew) <= 1e-9 * max(1.0, abs(scale_x), abs(scale_y))
        return Decomposition(_clean(rotation), scale_x, scale_y, e, f, exact)


def _clean(degrees: float) -> float:
    """Normalize -0.0 and tiny float noise."""
    rounded = round(degrees, 9)
    return 0.0 if rounded == 0 else rounded
