"""Loading and saving 8-bit RGBA PNG images with a selectable row origin."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

import numpy as np
from PIL import Image, UnidentifiedImageError


class Origin(Enum):
    """Where the first row of pixel data lies in the image."""

    LOWER_LEFT = "lower_left"
    UPPER_LEFT = "upper_left"


def load_png(filename, origin: Origin = Origin.UPPER_LEFT) -> tuple[tuple[int, int], np.ndarray]:
    """Load a PNG as ((width, height), pixels) with pixels of shape (height, width, 4).

    Any colour type is converted to 8-bit RGBA; images without alpha get 0xff.
    With ``Origin.LOWER_LEFT`` the first row of the result is the image's bottom row.
    """
    path = Path(filename)
    if not path.is_file():
        raise OSError(f"Failed to open PNG image file '{filename}'.")
    try:
        with Image.open(path) as image:
            if image.format != "PNG":
                raise ValueError("not a PNG image")
            rgba = image.convert("RGBA")
            rgba.load()
    except (UnidentifiedImageError, ValueError, OSError, SyntaxError) as err:
        raise ValueError(f"Failed to read PNG image from '{filename}'.") from err

    pixels = np.array(rgba, dtype=np.uint8)
    if origin is Origin.LOWER_LEFT:
        pixels = pixels[::-1].copy()
    return (rgba.width, rgba.height), pixels


def save_png(filename, size, data, origin: Origin = Origin.UPPER_LEFT) -> None:
    """Write width*height RGBA pixels to a PNG file.

    ``data`` may be flat (width*height RGBA tuples) or shaped (height, width, 4);
    its first row is the top of the image for ``Origin.UPPER_LEFT`` and the
    bottom for ``Origin.LOWER_LEFT``.
    """
    width, height = (int(v) for v in size)
    pixels = np.asarray(data, dtype=np.uint8)
    if pixels.size != width * height * 4:
        raise ValueError(
            f"pixel data holds {pixels.size} bytes, expected {width * height * 4} for {width}x{height} RGBA"
        )
    pixels = pixels.reshape(height, width, 4)
    if origin is Origin.LOWER_LEFT:
        pixels = pixels[::-1]
    Image.fromarray(np.ascontiguousarray(pixels)).save(filename, format="PNG")