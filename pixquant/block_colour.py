# pixquant/block_colour.py
from __future__ import annotations

"""
Block colour estimation.

Reduces a half-open region [x0, x1) x [y0, y1) of a PixelBuffer to one
representative colour.

Exports:
  estimate_block_colour(buffer, x0, x1, y0, y1, method="average", thresholds=None) -> RGBTuple
  STRATEGIES : method name -> strategy function
  FALLBACKS  : method name -> ordered strategy chain

Notes:
  - Strategies return None when they have no opinion (for example a fully
    transparent region). The chain for the requested method is walked until
    one answers; white closes every chain.
  - Transparent pixels (alpha == 0) are ignored by every strategy except
    "nearest", which always samples one physical pixel.
"""

from typing import Callable, Dict, Optional, Tuple

import numpy as np

from .colour_convert import luminance, saturation
from .core_types import (
    PixelBuffer,
    RGBTuple,
    Thresholds,
    WHITE,
    coerce_to_rgb_tuple,
    round_half_up,
)

Strategy = Callable[[PixelBuffer, int, int, int, int, Thresholds], Optional[RGBTuple]]


def _opaque_rgb(buffer: PixelBuffer, x0: int, x1: int, y0: int, y1: int) -> np.ndarray:
    """Opaque RGB rows of the region in raster order, shape (N,3) uint8."""
    region = buffer.pixels[max(0, y0) : max(0, y1), max(0, x0) : max(0, x1)].reshape(-1, 4)
    return region[region[:, 3] > 0, :3]


def nearest_colour(
    buffer: PixelBuffer, x0: int, x1: int, y0: int, y1: int, thresholds: Thresholds
) -> Optional[RGBTuple]:
    """Pixel at the region centre, clamped to the buffer. Ignores alpha."""
    cx = min(max((x0 + x1) // 2, 0), buffer.width - 1)
    cy = min(max((y0 + y1) // 2, 0), buffer.height - 1)
    return coerce_to_rgb_tuple(buffer.pixels[cy, cx, :3])


def average_colour(
    buffer: PixelBuffer, x0: int, x1: int, y0: int, y1: int, thresholds: Thresholds
) -> Optional[RGBTuple]:
    """Rounded per-channel mean of opaque pixels."""
    rows = _opaque_rgb(buffer, x0, x1, y0, y1)
    if rows.shape[0] == 0:
        return None
    mean = rows.astype(np.float64).mean(axis=0)
    return coerce_to_rgb_tuple(round_half_up(mean))


def mode_colour(
    buffer: PixelBuffer, x0: int, x1: int, y0: int, y1: int, thresholds: Thresholds
) -> Optional[RGBTuple]:
    """Most frequent exact RGB among opaque pixels; ties go to the first seen."""
    rows = _opaque_rgb(buffer, x0, x1, y0, y1)
    if rows.shape[0] == 0:
        return None
    keys = (
        (rows[:, 0].astype(np.int64) << 16)
        | (rows[:, 1].astype(np.int64) << 8)
        | rows[:, 2].astype(np.int64)
    )
    _uniq, first_idx, counts = np.unique(keys, return_index=True, return_counts=True)
    # lexsort: last key is primary -> highest count, then earliest position
    best = int(np.lexsort((first_idx, -counts))[0])
    return coerce_to_rgb_tuple(rows[first_idx[best]])


def salient_colour(
    buffer: PixelBuffer, x0: int, x1: int, y0: int, y1: int, thresholds: Thresholds
) -> Optional[RGBTuple]:
    """
    Brightest qualifying pixel, where qualifying means luminance above the
    luminance threshold or saturation above the saturation threshold.
    Luminance ties go to higher saturation, then to the first seen.
    """
    rows = _opaque_rgb(buffer, x0, x1, y0, y1)
    if rows.shape[0] == 0:
        return None
    lum = luminance(rows)
    sat = saturation(rows)
    qualify = (lum > float(thresholds.luminance)) | (sat > float(thresholds.saturation))
    if not np.any(qualify):
        return None
    idx = np.nonzero(qualify)[0]
    order = np.lexsort((idx, -sat[idx], -lum[idx]))
    return coerce_to_rgb_tuple(rows[idx[order[0]]])


STRATEGIES: Dict[str, Strategy] = {
    "nearest": nearest_colour,
    "average": average_colour,
    "mode": mode_colour,
    "salient": salient_colour,
}

FALLBACKS: Dict[str, Tuple[str, ...]] = {
    "nearest": ("nearest",),
    "average": ("average",),
    "mode": ("mode", "average"),
    "salient": ("salient", "mode", "average"),
}


def estimate_block_colour(
    buffer: PixelBuffer,
    x0: int,
    x1: int,
    y0: int,
    y1: int,
    method: str = "average",
    thresholds: Optional[Thresholds] = None,
) -> RGBTuple:
    """
    Representative colour of [x0, x1) x [y0, y1).

    Never raises for degenerate regions: empty or fully transparent blocks
    resolve through the fallback chain and finally to white.
    """
    chain = FALLBACKS.get(method)
    if chain is None:
        raise ValueError(
            f"unknown pixelation method {method!r}; expected one of {sorted(STRATEGIES)}"
        )
    th = thresholds if thresholds is not None else Thresholds()
    for name in chain:
        colour = STRATEGIES[name](buffer, x0, x1, y0, y1, th)
        if colour is not None:
            return colour
    return WHITE


__all__ = [
    "Strategy",
    "STRATEGIES",
    "FALLBACKS",
    "nearest_colour",
    "average_colour",
    "mode_colour",
    "salient_colour",
    "estimate_block_colour",
]
