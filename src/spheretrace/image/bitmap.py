"""Bitmap pixel grid.

A Bitmap stores one RGB color per pixel as float32. Pixel (x, y) uses the
rendering convention: x grows to the right and y = 0 is the BOTTOM row.
File writers are responsible for emitting rows top to bottom.
"""

from __future__ import annotations

from collections.abc import Iterator

import numpy as np
import numpy.typing as npt


class Bitmap:
    """A width x height grid of RGB colors.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        pixels: Array of shape (height, width, 3); pixels[y, x] is pixel
            (x, y) with y = 0 at the bottom.
    """

    def __init__(self, width: int, height: int) -> None:
        """Create a black bitmap.

        Raises:
            ValueError: If a dimension is not positive.
        """
        if width <= 0 or height <= 0:
            raise ValueError(f"Bitmap dimensions ({width}x{height}) must be positive")
        self.pixels: npt.NDArray[np.float32] = np.zeros((height, width, 3), dtype=np.float32)

    @classmethod
    def from_array(cls, array: npt.ArrayLike) -> Bitmap:
        """Wrap a (height, width, 3) array whose row 0 is the bottom row.

        Raises:
            ValueError: If the array does not have shape (height, width, 3).
        """
        data = np.asarray(array, dtype=np.float32)
        if data.ndim != 3 or data.shape[2] != 3:
            raise ValueError(f"Expected an array of shape (height, width, 3), got {data.shape}")
        bitmap = cls(data.shape[1], data.shape[0])
        bitmap.pixels[...] = data
        return bitmap

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    def _check_bounds(self, x: int, y: int) -> None:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"Pixel ({x}, {y}) is outside {self.width}x{self.height} bitmap")

    def get(self, x: int, y: int) -> tuple[float, float, float]:
        """Get the color of pixel (x, y), y = 0 at the bottom."""
        self._check_bounds(x, y)
        r, g, b = self.pixels[y, x]
        return float(r), float(g), float(b)

    def set(self, x: int, y: int, color: tuple[float, float, float]) -> None:
        """Set the color of pixel (x, y), y = 0 at the bottom."""
        self._check_bounds(x, y)
        self.pixels[y, x] = color

    def rows_top_down(self) -> Iterator[npt.NDArray[np.float32]]:
        """Iterate over rows from the top of the image to the bottom."""
        for y in range(self.height - 1, -1, -1):
            yield self.pixels[y]

    def __repr__(self) -> str:
        return f"Bitmap(width={self.width}, height={self.height})"
