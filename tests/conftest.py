from __future__ import annotations

from typing import Sequence, Tuple

import numpy as np
import pytest

from pixquant.core_types import PixelBuffer


def solid(width: int, height: int, rgb: Tuple[int, int, int], alpha: int = 255) -> PixelBuffer:
    return PixelBuffer.blank(width, height, (rgb[0], rgb[1], rgb[2], alpha))


def row_of(colours: Sequence[Tuple[int, ...]]) -> PixelBuffer:
    """1 x N buffer; 3-tuples are opaque, 4-tuples carry their own alpha."""
    arr = np.zeros((1, len(colours), 4), dtype=np.uint8)
    for i, c in enumerate(colours):
        arr[0, i, : len(c)] = c
        if len(c) == 3:
            arr[0, i, 3] = 255
    return PixelBuffer(len(colours), 1, arr)


@pytest.fixture
def gradient() -> PixelBuffer:
    """64x48 RGB gradient with plenty of distinct colours."""
    ys, xs = np.mgrid[0:48, 0:64]
    arr = np.zeros((48, 64, 4), dtype=np.uint8)
    arr[..., 0] = (xs * 4) % 256
    arr[..., 1] = (ys * 5) % 256
    arr[..., 2] = ((xs + ys) * 3) % 256
    arr[..., 3] = 255
    return PixelBuffer(64, 48, arr)


@pytest.fixture
def noisy() -> PixelBuffer:
    rng = np.random.default_rng(7)
    arr = rng.integers(0, 256, size=(20, 24, 4), dtype=np.uint8)
    arr[..., 3] = 255
    return PixelBuffer(24, 20, arr)
