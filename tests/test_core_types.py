from __future__ import annotations

import numpy as np
import pytest

from pixquant.core_types import (
    BufferShapeError,
    PixelBuffer,
    coerce_to_rgb_tuple,
    hex_to_rgb,
    rgb_to_hex,
    round_half_up,
)


def test_from_bytes_rgba_keeps_alpha():
    data = bytes([1, 2, 3, 4, 5, 6, 7, 0])
    buf = PixelBuffer.from_bytes(data, 2, 1)
    assert buf.size == (2, 1)
    assert buf.pixel(0, 0) == (1, 2, 3, 4)
    assert buf.pixel(1, 0) == (5, 6, 7, 0)
    assert buf.to_bytes() == data


def test_from_bytes_rgb_sets_opaque_alpha():
    buf = PixelBuffer.from_bytes(bytes([10, 20, 30, 40, 50, 60]), 2, 1)
    assert buf.pixel(0, 0) == (10, 20, 30, 255)
    assert buf.pixel(1, 0) == (40, 50, 60, 255)


def test_from_bytes_bad_length():
    with pytest.raises(BufferShapeError):
        PixelBuffer.from_bytes(bytes(5), 1, 1)


def test_from_bytes_rejects_out_of_range_ints():
    with pytest.raises(ValueError):
        PixelBuffer.from_bytes([0, 0, 300], 1, 1)


def test_constructor_checks_shape():
    with pytest.raises(BufferShapeError):
        PixelBuffer(2, 2, np.zeros((2, 3, 4), dtype=np.uint8))
    with pytest.raises(TypeError):
        PixelBuffer(1, 1, np.zeros((1, 1, 4), dtype=np.float32))


def test_copy_is_independent():
    buf = PixelBuffer.blank(2, 2, (1, 2, 3, 255))
    dup = buf.copy()
    dup.pixels[0, 0] = (9, 9, 9, 9)
    assert buf.pixel(0, 0) == (1, 2, 3, 255)


def test_hex_round_trip_and_short_form():
    assert hex_to_rgb("#0f8") == (0, 255, 136)
    assert hex_to_rgb("FF8000") == (255, 128, 0)
    assert rgb_to_hex((255, 128, 0)) == "#ff8000"
    with pytest.raises(ValueError):
        hex_to_rgb("#12345")
    with pytest.raises(ValueError):
        hex_to_rgb("#gggggg")


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(0.5) == 1
    assert round_half_up(1.49) == 1
    assert list(round_half_up(np.array([0.5, 1.5, 2.4]))) == [1, 2, 2]


def test_coerce_to_rgb_tuple():
    assert coerce_to_rgb_tuple(np.array([1, 2, 3, 4], dtype=np.uint8)) == (1, 2, 3)
    with pytest.raises(ValueError):
        coerce_to_rgb_tuple((1, 2, 256))
