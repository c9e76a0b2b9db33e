from __future__ import annotations

import numpy as np
import pytest

from pixquant.downsample import block_bounds, downsample

from conftest import solid


def test_block_bounds_uneven():
    assert block_bounds(100, 3) == [(0, 33), (33, 66), (66, 100)]


def test_block_bounds_more_parts_than_pixels():
    assert block_bounds(2, 4) == [(0, 0), (0, 1), (1, 1), (1, 2)]


def test_block_bounds_rejects_zero_parts():
    with pytest.raises(ValueError):
        block_bounds(10, 0)


def test_downsample_size_and_opaque(gradient):
    small = downsample(gradient, 8, 6, "average")
    assert small.size == (8, 6)
    assert np.all(small.alpha == 255)


def test_downsample_transparent_source_turns_white():
    src = solid(6, 6, (30, 40, 50), alpha=0)
    small = downsample(src, 3, 3, "average")
    assert np.all(small.rgb == 255)
    assert np.all(small.alpha == 255)


@pytest.mark.parametrize("method", ["nearest", "average", "mode", "salient"])
def test_downsample_uniform_image(method):
    src = solid(10, 7, (12, 34, 56))
    small = downsample(src, 4, 3, method)
    assert np.all(small.rgb == np.array([12, 34, 56], dtype=np.uint8))


def test_downsample_does_not_touch_source(gradient):
    before = gradient.pixels.copy()
    downsample(gradient, 5, 5, "mode")
    assert np.array_equal(gradient.pixels, before)


def test_downsample_rejects_bad_size(gradient):
    with pytest.raises(ValueError):
        downsample(gradient, 0, 4)
