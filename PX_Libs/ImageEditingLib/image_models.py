"""
Image editing data models for Pixel Lab.

This module defines core data structures used throughout the processing core.

Classes:
    PixelBuffer: Row-major RGBA raster owned by the caller
    Swatch: One palette entry with its sample population

Type Aliases:
    RgbaColor: A tuple of 4 integers representing RGBA color values (0-255)
    Point: An (x, y) integer pixel position
    BrushStroke: Ordered positions of one pointer-drag gesture
    Palette: Ordered list of unique swatches
"""

from dataclasses import dataclass
from typing import Any, List, Tuple

import numpy as np
from PIL import Image

from PX_Libs.constants import CHANNELS, OPAQUE
from PX_Libs.errors import BoundsError, ParameterError

RgbaColor = Tuple[int, int, int, int]
Point = Tuple[int, int]
BrushStroke = List[Point]


@dataclass
class PixelBuffer:
    """
    In-memory RGBA raster, row-major, 4 bytes per pixel.

    Attributes:
        width: Width in pixels (>= 1)
        height: Height in pixels (>= 1)
        pixels: Exactly width * height * 4 bytes in R, G, B, A order
    """
    width: int
    height: int
    pixels: bytearray

    def __post_init__(self) -> None:
        if not isinstance(self.width, int) or not isinstance(self.height, int):
            raise ParameterError(
                f"width and height must be ints, got {type(self.width)} and {type(self.height)}"
            )
        if self.width < 1 or self.height < 1:
            raise ParameterError(f"buffer dimensions must be positive, got {self.width}x{self.height}")
        if not isinstance(self.pixels, (bytes, bytearray, memoryview)):
            raise ParameterError(f"pixels must be a byte sequence, got {type(self.pixels)}")

        self.pixels = bytearray(self.pixels)
        expected = self.width * self.height * CHANNELS
        if len(self.pixels) != expected:
            raise ParameterError(
                f"pixel data length {len(self.pixels)} does not match "
                f"{self.width}x{self.height}x{CHANNELS} = {expected}"
            )

    @classmethod
    def blank(cls, width: int, height: int, color: RgbaColor = (0, 0, 0, OPAQUE)) -> "PixelBuffer":
        """Create a buffer filled with a single color."""
        if width < 1 or height < 1:
            raise ParameterError(f"buffer dimensions must be positive, got {width}x{height}")
        return cls(width, height, bytearray(bytes(color) * (width * height)))

    @classmethod
    def from_array(cls, array: Any) -> "PixelBuffer":
        """
        Build a buffer from a numpy array of shape (height, width, 4).

        Values are clipped to 0-255 and converted to uint8.
        """
        arr = np.asarray(array)
        if arr.ndim != 3 or arr.shape[2] != CHANNELS:
            raise ParameterError(f"expected array of shape (height, width, 4), got {arr.shape}")
        data = np.clip(arr, 0, 255).astype(np.uint8)
        return cls(int(arr.shape[1]), int(arr.shape[0]), bytearray(data.tobytes()))

    @classmethod
    def from_image(cls, image: Any) -> "PixelBuffer":
        """
        Build a buffer from a PIL Image (converted to RGBA).

        Raises:
            TypeError: If image is not a PIL Image
        """
        if not hasattr(image, "convert"):
            raise TypeError(f"Expected PIL Image, got {type(image)}")
        rgba = image.convert("RGBA")
        return cls(rgba.width, rgba.height, bytearray(rgba.tobytes()))

    def to_image(self) -> Any:
        """Return an RGBA PIL Image sharing no memory with this buffer."""
        return Image.frombytes("RGBA", (self.width, self.height), bytes(self.pixels))

    def to_array(self) -> np.ndarray:
        """Return a writable uint8 copy of shape (height, width, 4)."""
        return np.frombuffer(bytes(self.pixels), dtype=np.uint8).reshape(
            self.height, self.width, CHANNELS
        ).copy()

    def copy(self) -> "PixelBuffer":
        return PixelBuffer(self.width, self.height, bytearray(self.pixels))

    @property
    def size(self) -> Tuple[int, int]:
        return (self.width, self.height)

    def contains(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def _offset(self, x: int, y: int) -> int:
        if not self.contains(x, y):
            raise BoundsError(f"pixel ({x}, {y}) outside {self.width}x{self.height} buffer")
        return (y * self.width + x) * CHANNELS

    def get_pixel(self, x: int, y: int) -> RgbaColor:
        i = self._offset(x, y)
        p = self.pixels
        return (p[i], p[i + 1], p[i + 2], p[i + 3])

    def set_pixel(self, x: int, y: int, color: RgbaColor) -> None:
        i = self._offset(x, y)
        if len(color) != CHANNELS or any(not 0 <= c <= 255 for c in color):
            raise ParameterError(f"color must be 4 components in 0-255, got {color}")
        self.pixels[i:i + CHANNELS] = bytes(color)


@dataclass(frozen=True)
class Swatch:
    r: int
    g: int
    b: int
    population: int = 0

    @property
    def rgb(self) -> Tuple[int, int, int]:
        return (self.r, self.g, self.b)

    @property
    def hex(self) -> str:
        return f"#{self.r:02X}{self.g:02X}{self.b:02X}"


Palette = List[Swatch]
