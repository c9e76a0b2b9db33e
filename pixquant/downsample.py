# pixquant/downsample.py
from __future__ import annotations

"""
Proportional block downsampling.

Exports:
  block_bounds(size, parts) -> list[(start, end)]
  downsample(buffer, target_width, target_height, method="nearest", thresholds=None) -> PixelBuffer
"""

from typing import List, Optional, Tuple

import numpy as np

from .block_colour import estimate_block_colour
from .core_types import PixelBuffer, Thresholds


def block_bounds(size: int, parts: int) -> List[Tuple[int, int]]:
    """
    Partition [0, size) into `parts` half-open spans by proportional division.

    start = floor(i * size / parts), end = min(floor((i + 1) * size / parts), size).
    Spans are uneven when size is not a multiple of parts; flooring makes the
    last span the largest. Spans can be empty when parts > size.
    """
    parts = int(parts)
    if parts <= 0:
        raise ValueError(f"parts must be positive, got {parts}")
    return [((i * size) // parts, min(((i + 1) * size) // parts, size)) for i in range(parts)]


def downsample(
    buffer: PixelBuffer,
    target_width: int,
    target_height: int,
    method: str = "nearest",
    thresholds: Optional[Thresholds] = None,
) -> PixelBuffer:
    """
    Reduce `buffer` to target_width x target_height, one estimated colour per block.

    Output alpha is always 255; source transparency only decides which pixels
    the estimator looks at.
    """
    if target_width <= 0 or target_height <= 0:
        raise ValueError(f"target size must be positive, got {target_width}x{target_height}")
    th = thresholds if thresholds is not None else Thresholds()

    xs = block_bounds(buffer.width, target_width)
    ys = block_bounds(buffer.height, target_height)

    out = np.empty((target_height, target_width, 4), dtype=np.uint8)
    out[..., 3] = 255
    for by, (y0, y1) in enumerate(ys):
        for bx, (x0, x1) in enumerate(xs):
            out[by, bx, :3] = estimate_block_colour(buffer, x0, x1, y0, y1, method, th)
    return PixelBuffer(target_width, target_height, out)


__all__ = ["block_bounds", "downsample"]
