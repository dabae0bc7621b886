"""Shared fixtures: small hand-built images and documents."""

import numpy as np
import pytest

from models import PixelBuffer
from vector.document import VectorDocument, VectorPath

BLACK = (0, 0, 0)
WHITE = (255, 255, 255)
RED = (255, 0, 0)


def solid(width, height, color, alpha=255):
    """RGBA buffer of one color."""
    return PixelBuffer.blank(width, height, tuple(color) + (alpha,))


def paint(pixels, rows, cols, color):
    """Write an opaque color into a region of an (H, W, 4) array."""
    pixels[rows, cols] = tuple(color) + (255,)


@pytest.fixture
def ring_image():
    """12x12 black image with a white square (2..10) holding a black 4x4 hole (4..8)."""
    pixels = np.zeros((12, 12, 4), dtype=np.uint8)
    paint(pixels, slice(None), slice(None), BLACK)
    paint(pixels, slice(2, 10), slice(2, 10), WHITE)
    paint(pixels, slice(4, 8), slice(4, 8), BLACK)
    return PixelBuffer(pixels)


@pytest.fixture
def blocks_image():
    """16x16 image made of three flat color blocks."""
    pixels = np.zeros((16, 16, 4), dtype=np.uint8)
    paint(pixels, slice(None), slice(None), (20, 40, 200))
    paint(pixels, slice(0, 8), slice(0, 10), (230, 200, 30))
    paint(pixels, slice(10, 16), slice(4, 12), (200, 30, 30))
    return PixelBuffer(pixels)


@pytest.fixture
def square_document():
    """10x10 document with a red square covering the left half."""
    document = VectorDocument(10, 10)
    document.add_path(VectorPath("M0 0H5V10H0Z", fill_color=RED))
    return document
