from __future__ import annotations

import pytest

from pixquant.grid import grid_scale, render_grid

from conftest import solid

RED = (255, 0, 0, 255)
BLACK = (0, 0, 0, 255)


def test_grid_lines_and_cells():
    out = render_grid(solid(2, 2, (255, 0, 0)), 10, 10)
    assert out.size == (10, 10)
    for x in (0, 5, 9):
        assert out.pixel(x, 3) == BLACK
    for y in (0, 5, 9):
        assert out.pixel(3, y) == BLACK
    assert out.pixel(2, 2) == RED
    assert out.pixel(7, 7) == RED


def test_grid_is_centred():
    out = render_grid(solid(2, 2, (255, 0, 0)), 12, 10, include_image=False)
    assert out.pixel(0, 4)[3] == 0
    assert out.pixel(1, 4) == BLACK
    assert out.pixel(6, 4) == BLACK


def test_grid_only_is_transparent_between_lines():
    out = render_grid(solid(2, 2, (255, 0, 0)), 10, 10, include_image=False)
    assert out.pixel(2, 2)[3] == 0
    assert out.pixel(0, 2) == BLACK


def test_grid_colour_and_thickness():
    out = render_grid(solid(2, 2, (0, 0, 255)), 10, 10, thickness=2, colour="#0f0")
    assert out.pixel(1, 3) == (0, 255, 0, 255)
    assert out.pixel(8, 3) == (0, 255, 0, 255)
    assert out.pixel(2, 2) == (0, 0, 255, 255)


def test_grid_scale():
    assert grid_scale(4, 2, 17, 20) == 4
    with pytest.raises(ValueError):
        grid_scale(4, 4, 3, 3)


def test_grid_rejects_bad_thickness():
    with pytest.raises(ValueError):
        render_grid(solid(2, 2, (0, 0, 0)), 10, 10, thickness=0)
