"""Data models and constants shared by the tracing, codec and render stages."""

from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path

import numpy as np
from PIL import Image

from errors import InvalidImage

# AIDEV-NOTE: Ranges match the tracer settings sliders - keep in sync
MIN_COLORS = 2
MAX_COLORS = 16
MIN_TOLERANCE = 0.5  # px
MAX_TOLERANCE = 5.0  # px

# Index map value for pixels excluded from clustering (alpha below threshold)
TRANSPARENT_INDEX = -1

# Configuration file path
CONFIG_FILE = Path.home() / ".imagetoolbox_config.json"


class QuantizationMethod(Enum):
    """Color clustering strategies."""

    KMEANS = "kmeans"
    MEDIAN_CUT = "median_cut"


class FillType(Enum):
    """Winding rule used to fill compound paths.

    AIDEV-NOTE: Values are the vector-drawable spellings; SVG uses
    "nonzero"/"evenodd" and is mapped in the SVG codec.
    """

    NON_ZERO = "nonZero"
    EVEN_ODD = "evenOdd"


# --- Raster Models ---


@dataclass(frozen=True)
class PixelBuffer:
    """Immutable RGBA8 raster.

    AIDEV-NOTE: pixels is a read-only (height, width, 4) uint8 array.
    Stages never write into a buffer; they produce new ones.
    """

    pixels: np.ndarray

    def __post_init__(self):
        pixels = self.pixels
        if pixels.ndim != 3 or pixels.shape[2] != 4 or pixels.dtype != np.uint8:
            raise InvalidImage(
                f"Pixel buffer must be (height, width, 4) uint8, got "
                f"{pixels.shape} {pixels.dtype}"
            )
        if pixels.flags.writeable:
            pixels = pixels.copy()
            pixels.flags.writeable = False
            object.__setattr__(self, "pixels", pixels)

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def size(self) -> "tuple[int, int]":
        return self.width, self.height

    @property
    def is_empty(self) -> bool:
        return self.width == 0 or self.height == 0

    @classmethod
    def from_array(cls, array: np.ndarray) -> "PixelBuffer":
        """Build a buffer from a numpy array.

        Args:
            array: (H, W) grayscale, (H, W, 3) RGB or (H, W, 4) RGBA.
                Integer arrays are taken as 0-255, float arrays as 0.0-1.0.

        Returns:
            New PixelBuffer

        Raises:
            InvalidImage: If the array shape is not an image shape
        """
        array = np.asarray(array)
        if np.issubdtype(array.dtype, np.floating):
            array = np.rint(np.clip(array, 0.0, 1.0) * 255.0)
        array = np.clip(array, 0, 255).astype(np.uint8)

        if array.ndim == 2:
            array = np.stack([array, array, array], axis=-1)
        if array.ndim != 3 or array.shape[2] not in (3, 4):
            raise InvalidImage(f"Unsupported pixel array shape {array.shape}")
        if array.shape[2] == 3:
            alpha = np.full(array.shape[:2] + (1,), 255, dtype=np.uint8)
            array = np.concatenate([array, alpha], axis=-1)
        return cls(np.ascontiguousarray(array))

    @classmethod
    def from_image(cls, image: Image.Image) -> "PixelBuffer":
        """Build a buffer from a Pillow image of any mode."""
        if image.mode != "RGBA":
            image = image.convert("RGBA")
        return cls(np.array(image, dtype=np.uint8))

    @classmethod
    def open(cls, file_path: "str | Path") -> "PixelBuffer":
        """Load and decode an image file.

        Raises:
            InvalidImage: If file cannot be loaded or is invalid
        """
        try:
            with Image.open(file_path) as image:
                return cls.from_image(image)
        except (OSError, ValueError) as e:
            raise InvalidImage(f"Failed to load image: {e}") from e

    @classmethod
    def blank(
        cls,
        width: int,
        height: int,
        color: "tuple[int, int, int, int]" = (0, 0, 0, 0),
    ) -> "PixelBuffer":
        pixels = np.empty((height, width, 4), dtype=np.uint8)
        pixels[...] = color
        return cls(pixels)

    def to_image(self) -> Image.Image:
        """Return a Pillow RGBA copy of the buffer."""
        return Image.fromarray(np.array(self.pixels))

    def rgb(self) -> np.ndarray:
        return self.pixels[..., :3]

    def alpha(self) -> np.ndarray:
        return self.pixels[..., 3]


@dataclass(frozen=True)
class QuantizedImage:
    """Result of color quantization.

    AIDEV-NOTE: index_map holds a palette index for every opaque pixel and
    TRANSPARENT_INDEX for pixels excluded from clustering.
    """

    palette: "tuple[tuple[int, int, int], ...]"
    index_map: np.ndarray
    width: int
    height: int

    def indices(self) -> "list[int]":
        """Palette indices that occur in the index map, ascending."""
        present = np.unique(self.index_map)
        return [int(i) for i in present if i != TRANSPARENT_INDEX]


# --- Tracing Models ---


@dataclass(frozen=True)
class TracedRegion:
    """One 4-connected region of a palette index.

    AIDEV-NOTE: Points are pixel-corner coordinates. The outer polygon is
    clockwise on screen (positive shoelace sum with y down), holes are
    counter-clockwise, so nonzero filling leaves holes empty.
    """

    outer: "tuple[tuple[float, float], ...]"
    holes: "tuple[tuple[tuple[float, float], ...], ...]" = ()

    @property
    def polygons(self) -> "list[tuple[tuple[float, float], ...]]":
        return [self.outer, *self.holes]

    @property
    def point_count(self) -> int:
        return sum(len(polygon) for polygon in self.polygons)


@dataclass
class TracingConfig:
    """Configuration for raster tracing."""

    # Color quantization
    color_count: int = 8  # Number of palette colors (2-16)
    quantization_method: str = "kmeans"  # "kmeans" or "median_cut"
    alpha_threshold: int = 8  # Pixels below this alpha are transparent

    # Path simplification
    tolerance: float = 1.0  # px tolerance for Douglas-Peucker (0.5-5.0)
    min_area: float = 4.0  # Discard regions smaller than this many px^2

    # Per-color tracing threads (1 = run inline)
    workers: int = 1

    def clamped(self) -> "TracingConfig":
        """Return a copy with every value forced into its supported range."""
        method = self.quantization_method
        if method not in {m.value for m in QuantizationMethod}:
            method = QuantizationMethod.KMEANS.value
        return replace(
            self,
            color_count=max(MIN_COLORS, min(MAX_COLORS, int(self.color_count))),
            quantization_method=method,
            alpha_threshold=max(0, min(255, int(self.alpha_threshold))),
            tolerance=max(MIN_TOLERANCE, min(MAX_TOLERANCE, float(self.tolerance))),
            min_area=max(0.0, float(self.min_area)),
            workers=max(1, int(self.workers)),
        )


@dataclass
class RenderConfig:
    """Configuration for rasterizing vector documents."""

    scale: float = 1.0  # Device scale factor
    supersample: int = 4  # Anti-aliasing grid per pixel axis
    background: "tuple[int, int, int, int] | None" = None  # RGBA fill behind paths

    def clamped(self) -> "RenderConfig":
        return replace(
            self,
            scale=max(0.01, float(self.scale)),
            supersample=max(1, min(16, int(self.supersample))),
            background=tuple(self.background) if self.background else None,
        )


@dataclass
class TraceStatistics:
    """Summary of a tracing run, logged by the pipeline."""

    palette: "list[tuple[int, int, int]]" = field(default_factory=list)
    region_count: int = 0
    dropped_regions: int = 0
    point_count: int = 0
