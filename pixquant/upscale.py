# pixquant/upscale.py
from __future__ import annotations

"""
Nearest-neighbour resampling.

Exports:
  nearest_indices(src_size, dst_size) -> int64 index map
  upscale(buffer, target_width, target_height) -> PixelBuffer
  scale_by(buffer, factor) -> PixelBuffer
"""

import numpy as np

from .core_types import PixelBuffer


def nearest_indices(src_size: int, dst_size: int) -> np.ndarray:
    """Source index for each destination index: floor(i * src / dst)."""
    return (np.arange(dst_size, dtype=np.int64) * int(src_size)) // int(dst_size)


def upscale(buffer: PixelBuffer, target_width: int, target_height: int) -> PixelBuffer:
    """
    Resample buffer to target_width x target_height without interpolation.
    Works for shrinking too; the name follows its main use.
    """
    if target_width <= 0 or target_height <= 0:
        raise ValueError(f"target size must be positive, got {target_width}x{target_height}")
    ys = nearest_indices(buffer.height, target_height)
    xs = nearest_indices(buffer.width, target_width)
    out = buffer.pixels[ys[:, None], xs[None, :]].copy()
    return PixelBuffer(target_width, target_height, out)


def scale_by(buffer: PixelBuffer, factor: int) -> PixelBuffer:
    """Integer nearest-neighbour enlargement; each pixel becomes a factor x factor block."""
    if factor < 1:
        raise ValueError(f"scale factor must be >= 1, got {factor}")
    out = np.repeat(np.repeat(buffer.pixels, factor, axis=0), factor, axis=1)
    return PixelBuffer(buffer.width * factor, buffer.height * factor, out)


__all__ = ["nearest_indices", "upscale", "scale_by"]
