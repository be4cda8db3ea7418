"""Image export utilities for rendered bitmaps.

Colors arriving here are already gamma corrected; each channel is quantized
to 8 bits with

    quantize(c) = floor(256 * clamp(c, 0, 0.999))

so 1.0 maps to 255 and every byte value covers an equal slice of [0, 1).

Supported formats:
    - PPM (plain-text P3), to a path or any text stream
    - PNG (8-bit RGB via Pillow)

Example:
    >>> import sys
    >>> from spheretrace.image.bitmap import Bitmap
    >>> from spheretrace.image.export import save_ppm
    >>>
    >>> bitmap = Bitmap(2, 1)
    >>> bitmap.set(0, 0, (1.0, 0.5, 0.0))
    >>> save_ppm(bitmap, sys.stdout)
    P3
    2 1
    255
    255 128 0
    0 0 0
"""

from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import TextIO

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

from spheretrace.image.bitmap import Bitmap

logger = logging.getLogger(__name__)

# Upper clamp keeps 256 * c below 256
_MAX_CHANNEL = 0.999


def quantize(value: float) -> int:
    """Convert one color channel in [0, 1] to a byte value."""
    clamped = min(max(value, 0.0), _MAX_CHANNEL)
    return int(math.floor(256.0 * clamped))


def quantize_array(image: npt.ArrayLike) -> npt.NDArray[np.uint8]:
    """Vectorized quantize() over an image array of any shape."""
    data = np.asarray(image, dtype=np.float64)
    # NaN clamps to 0
    data = np.nan_to_num(data, nan=0.0)
    return np.floor(256.0 * np.clip(data, 0.0, _MAX_CHANNEL)).astype(np.uint8)


def bitmap_to_uint8(bitmap: Bitmap) -> npt.NDArray[np.uint8]:
    """Quantize a bitmap into a top-down (height, width, 3) uint8 array."""
    return quantize_array(np.flipud(bitmap.pixels))


def write_ppm(bitmap: Bitmap, stream: TextIO) -> None:
    """Write a bitmap as plain-text PPM to an open text stream.

    The header is "P3\\n{width} {height}\\n255\\n" followed by one pixel per
    line ("r g b"), rows from the top of the image to the bottom.
    """
    stream.write(f"P3\n{bitmap.width} {bitmap.height}\n255\n")
    for row in bitmap_to_uint8(bitmap):
        stream.write("".join(f"{r} {g} {b}\n" for r, g, b in row.tolist()))


def save_ppm(bitmap: Bitmap, target: str | Path | TextIO) -> None:
    """Save a bitmap as plain-text PPM.

    Args:
        bitmap: The image to save.
        target: A file path, or an open text stream such as sys.stdout.

    Raises:
        OSError: If the file cannot be written.
    """
    if isinstance(target, (str, Path)):
        with open(target, "w", encoding="ascii") as f:
            write_ppm(bitmap, f)
        logger.debug("Saved %dx%d PPM to %s", bitmap.width, bitmap.height, target)
    else:
        write_ppm(bitmap, target)


def save_png(bitmap: Bitmap, filepath: str | Path) -> None:
    """Save a bitmap as an 8-bit RGB PNG.

    Raises:
        OSError: If the file cannot be written.
    """
    pil_image = PILImage.fromarray(bitmap_to_uint8(bitmap))
    pil_image.save(filepath, format="PNG")
    logger.debug("Saved %dx%d PNG to %s", bitmap.width, bitmap.height, filepath)


def save_image(bitmap: Bitmap, filepath: str | Path) -> None:
    """Save a bitmap, choosing the format from the file extension.

    Raises:
        ValueError: If the extension is neither .ppm nor .png.
        OSError: If the file cannot be written.
    """
    suffix = Path(filepath).suffix.lower()
    if suffix == ".ppm":
        save_ppm(bitmap, filepath)
    elif suffix == ".png":
        save_png(bitmap, filepath)
    else:
        raise ValueError(f"Unsupported image format '{suffix}' (expected .ppm or .png)")
