"""In-memory vector document: paths, transform groups and the document root.

AIDEV-NOTE: The tree is owned top-down. Every node records its single
parent, and appending a node that already has a parent moves it (it is
removed from the old parent first), so a node can never appear twice.
Appending a group below itself or one of its descendants is rejected,
which keeps the tree acyclic. Children are exposed as tuples; mutate only
through the add/remove methods.
"""

from dataclasses import dataclass, field
from typing import Iterator

from errors import InvalidDocument
from models import FillType

from .path_data import Segment, format_number, parse_path_data, serialize_path_data
from .transform import Transform


def _clamp_unit(value: float) -> float:
    return max(0.0, min(1.0, float(value)))


@dataclass(eq=False)
class VectorPath:
    """A single styled path.

    At least one of fill_color / stroke_color must be set for the path to
    be visible; a path with neither is legal and renders nothing.
    """

    path_data: str
    fill_color: "tuple[int, int, int] | None" = None
    stroke_color: "tuple[int, int, int] | None" = None
    stroke_width: float = 0.0
    fill_alpha: float = 1.0
    stroke_alpha: float = 1.0
    fill_type: FillType = FillType.NON_ZERO
    name: "str | None" = None
    parent: "Container | None" = field(default=None, init=False, repr=False)

    def __post_init__(self):
        if self.stroke_width < 0:
            raise InvalidDocument(
                f"Stroke width must be >= 0, got {self.stroke_width}",
                element="path",
                attribute="strokeWidth",
            )
        self.fill_alpha = _clamp_unit(self.fill_alpha)
        self.stroke_alpha = _clamp_unit(self.stroke_alpha)
        if self.fill_color is not None:
            self.fill_color = tuple(int(c) for c in self.fill_color[:3])
        if self.stroke_color is not None:
            self.stroke_color = tuple(int(c) for c in self.stroke_color[:3])

    @property
    def is_visible(self) -> bool:
        has_fill = self.fill_color is not None and self.fill_alpha > 0
        has_stroke = (
            self.stroke_color is not None
            and self.stroke_alpha > 0
            and self.stroke_width > 0
        )
        return has_fill or has_stroke

    def segments(self) -> "list[Segment]":
        """Parse the path data (raises InvalidPathData)."""
        return parse_path_data(self.path_data)

    def structure(self, precision: int = 3) -> dict:
        return {
            "name": self.name,
            "path_data": serialize_path_data(self.segments(), precision),
            "fill_color": self.fill_color,
            "stroke_color": self.stroke_color,
            "stroke_width": _rounded(self.stroke_width, precision),
            "fill_alpha": _rounded(self.fill_alpha, precision),
            "stroke_alpha": _rounded(self.stroke_alpha, precision),
            "fill_type": self.fill_type.value,
        }


class Container:
    """Ordered child paths and child groups."""

    def __init__(self):
        self._paths: "list[VectorPath]" = []
        self._groups: "list[VectorGroup]" = []
        self.parent: "Container | None" = None

    @property
    def paths(self) -> "tuple[VectorPath, ...]":
        return tuple(self._paths)

    @property
    def groups(self) -> "tuple[VectorGroup, ...]":
        return tuple(self._groups)

    def add_path(self, path: VectorPath) -> VectorPath:
        """Append a path, moving it out of any previous parent."""
        if path.parent is not None:
            path.parent.remove_path(path)
        self._paths.append(path)
        path.parent = self
        return path

    def add_group(self, group: "VectorGroup") -> "VectorGroup":
        """Append a group, moving it out of any previous parent.

        Raises:
            InvalidDocument: If the group is this container or one of its
                ancestors (the append would create a cycle)
        """
        node: "Container | None" = self
        while node is not None:
            if node is group:
                raise InvalidDocument(
                    "A group cannot be appended to itself or its descendants",
                    element="group",
                )
            node = node.parent
        if group.parent is not None:
            group.parent.remove_group(group)
        self._groups.append(group)
        group.parent = self
        return group

    def remove_path(self, path: VectorPath) -> None:
        for i, child in enumerate(self._paths):
            if child is path:
                del self._paths[i]
                path.parent = None
                return
        raise ValueError("Path is not a child of this container")

    def remove_group(self, group: "VectorGroup") -> None:
        for i, child in enumerate(self._groups):
            if child is group:
                del self._groups[i]
                group.parent = None
                return
        raise ValueError("Group is not a child of this container")

    def all_paths(self) -> "list[VectorPath]":
        """Every reachable path: own paths first, then each group in order."""
        result = list(self._paths)
        for group in self._groups:
            result.extend(group.all_paths())
        return result

    def walk(self, transform: "Transform | None" = None) -> "Iterator[tuple[VectorPath, Transform]]":
        """Yield (path, document-space transform) in all_paths() order."""
        transform = transform or Transform.identity()
        for path in self._paths:
            yield path, transform
        for group in self._groups:
            yield from group.walk(transform @ group.transform())

    def _children_structure(self, precision: int) -> dict:
        return {
            "paths": [path.structure(precision) for path in self._paths],
            "groups": [group.structure(precision) for group in self._groups],
        }


class VectorGroup(Container):
    """A group of paths and groups sharing a transform."""

    def __init__(
        self,
        name: "str | None" = None,
        rotation: float = 0.0,
        pivot_x: float = 0.0,
        pivot_y: float = 0.0,
        scale_x: float = 1.0,
        scale_y: float = 1.0,
        translate_x: float = 0.0,
        translate_y: float = 0.0,
    ):
        super().__init__()
        self.name = name
        self.rotation = float(rotation)
        self.pivot_x = float(pivot_x)
        self.pivot_y = float(pivot_y)
        self.scale_x = float(scale_x)
        self.scale_y = float(scale_y)
        self.translate_x = float(translate_x)
        self.translate_y = float(translate_y)

    def __repr__(self) -> str:
        return (
            f"VectorGroup(name={self.name!r}, paths={len(self._paths)}, "
            f"groups={len(self._groups)})"
        )

    def transform(self) -> Transform:
        """Local transform: scale and rotate about the pivot, then translate."""
        return Transform.from_group_parameters(
            self.rotation,
            self.pivot_x,
            self.pivot_y,
            self.scale_x,
            self.scale_y,
            self.translate_x,
            self.translate_y,
        )

    @property
    def has_transform(self) -> bool:
        return not self.transform().is_identity

    def structure(self, precision: int = 3) -> dict:
        return {
            "name": self.name,
            "rotation": _rounded(self.rotation, precision),
            "pivot": (_rounded(self.pivot_x, precision), _rounded(self.pivot_y, precision)),
            "scale": (_rounded(self.scale_x, precision), _rounded(self.scale_y, precision)),
            "translate": (
                _rounded(self.translate_x, precision),
                _rounded(self.translate_y, precision),
            ),
            **self._children_structure(precision),
        }


class VectorDocument(Container):
    """Root of a vector image.

    Args:
        viewport_width: Width of the authoring coordinate space
        viewport_height: Height of the authoring coordinate space
        output_width: Intrinsic render width (defaults to viewport width)
        output_height: Intrinsic render height (defaults to viewport height)
        tint_color: Optional RGB tint applied over every path color
        alpha: Global opacity 0.0-1.0

    Raises:
        InvalidDocument: If any size is not positive
    """

    def __init__(
        self,
        viewport_width: float,
        viewport_height: float,
        output_width: "float | None" = None,
        output_height: "float | None" = None,
        tint_color: "tuple[int, int, int] | None" = None,
        alpha: float = 1.0,
        name: "str | None" = None,
    ):
        super().__init__()
        self.viewport_width = float(viewport_width)
        self.viewport_height = float(viewport_height)
        self.output_width = float(viewport_width if output_width is None else output_width)
        self.output_height = float(
            viewport_height if output_height is None else output_height
        )
        for attribute, value in (
            ("viewportWidth", self.viewport_width),
            ("viewportHeight", self.viewport_height),
            ("width", self.output_width),
            ("height", self.output_height),
        ):
            if not value > 0:
                raise InvalidDocument(
                    f"Document {attribute} must be positive, got {value}",
                    element="vector",
                    attribute=attribute,
                )
        self.tint_color = tuple(int(c) for c in tint_color[:3]) if tint_color else None
        self.alpha = _clamp_unit(alpha)
        self.name = name

    def __repr__(self) -> str:
        return (
            f"VectorDocument(viewport={format_number(self.viewport_width)}x"
            f"{format_number(self.viewport_height)}, paths={len(self.all_paths())})"
        )

    @property
    def viewport_size(self) -> "tuple[float, float]":
        return self.viewport_width, self.viewport_height

    @property
    def output_size(self) -> "tuple[float, float]":
        return self.output_width, self.output_height

    def structure(self, precision: int = 3) -> dict:
        """Nested, comparable description of the whole tree."""
        return {
            "viewport": (
                _rounded(self.viewport_width, precision),
                _rounded(self.viewport_height, precision),
            ),
            "output": (
                _rounded(self.output_width, precision),
                _rounded(self.output_height, precision),
            ),
            "tint_color": self.tint_color,
            "alpha": _rounded(self.alpha, precision),
            **self._children_structure(precision),
        }


def _rounded(value: float, precision: int) -> float:
    result = round(float(value), precision)
    return 0.0 if result == 0 else result
