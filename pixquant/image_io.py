# pixquant/image_io.py
from __future__ import annotations

from pathlib import Path
from typing import Union

import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

from .core_types import PixelBuffer

"""
Image I/O helpers: Pillow decode to RGBA PixelBuffer and lossless PNG export.
No colour management; pixels stay in sRGB byte space.
"""


class ImageLoadError(OSError):
    """Raised when a source file is missing or cannot be decoded."""


def image_to_buffer(im: Image.Image) -> PixelBuffer:
    """Pillow image (any mode) -> RGBA PixelBuffer, honouring EXIF orientation."""
    im = ImageOps.exif_transpose(im)
    arr = np.array(im.convert("RGBA"), dtype=np.uint8)
    return PixelBuffer(int(arr.shape[1]), int(arr.shape[0]), arr)


def buffer_to_image(buffer: PixelBuffer) -> Image.Image:
    return Image.fromarray(np.ascontiguousarray(buffer.pixels))


def load_image_buffer(path: Union[str, Path]) -> PixelBuffer:
    """Load an image with Pillow and return it as an RGBA PixelBuffer."""
    path = Path(path)
    try:
        with Image.open(path) as im0:
            im0.load()
            return image_to_buffer(im0)
    except FileNotFoundError as e:
        raise ImageLoadError(f"not found: {path}") from e
    except (UnidentifiedImageError, OSError) as e:
        raise ImageLoadError(f"cannot decode {path.name}: {e}") from e


def save_buffer_png(path: Union[str, Path], buffer: PixelBuffer) -> Path:
    """Write buffer as an RGBA PNG. A non-.png suffix is replaced."""
    path = Path(path)
    if path.suffix.lower() != ".png":
        path = path.with_suffix(".png")
    buffer_to_image(buffer).save(path, format="PNG")
    return path


def is_image_file(path: Path) -> bool:
    try:
        with Image.open(path) as im:
            im.seek(0)
            im.load()
        return True
    except (UnidentifiedImageError, OSError):
        return False


__all__ = [
    "ImageLoadError",
    "image_to_buffer",
    "buffer_to_image",
    "load_image_buffer",
    "save_buffer_png",
    "is_image_file",
]
