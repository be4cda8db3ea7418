"""Image module for pixel storage and file output.

Components:
    bitmap: Bitmap pixel grid with the bottom row at y = 0
    export: Channel quantization plus PPM and PNG writers
"""

from .bitmap import Bitmap
from .export import (
    bitmap_to_uint8,
    quantize,
    quantize_array,
    save_image,
    save_png,
    save_ppm,
    write_ppm,
)

__all__ = [
    "Bitmap",
    "quantize",
    "quantize_array",
    "bitmap_to_uint8",
    "write_ppm",
    "save_ppm",
    "save_png",
    "save_image",
]
