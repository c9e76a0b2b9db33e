from __future__ import annotations

import numpy as np
import pytest

from pixquant.core_types import PixelBuffer
from pixquant.dither import (
    KERNEL_NAMES,
    KERNELS,
    DitherOptions,
    apply_palette,
    kernel_taps,
    normalise_kernel_name,
)
from pixquant.utils import unique_visible_rgb

from conftest import row_of, solid

BW = [(0, 0, 0), (255, 255, 255)]


def _colours(buf: PixelBuffer) -> set:
    uniques, _counts = unique_visible_rgb(buf)
    return {tuple(int(v) for v in row) for row in uniques}


def test_nearest_mapping_is_idempotent(noisy):
    palette = [(0, 0, 0), (255, 255, 255), (255, 0, 0), (0, 0, 255)]
    once = apply_palette(noisy, palette)
    twice = apply_palette(once, palette)
    assert np.array_equal(once.pixels, twice.pixels)
    assert _colours(once) <= set(palette)


def test_palette_of_own_colours_is_identity():
    buf = row_of([(1, 2, 3), (40, 50, 60), (200, 100, 0)])
    out = apply_palette(buf, [(1, 2, 3), (40, 50, 60), (200, 100, 0)])
    assert np.array_equal(out.pixels, buf.pixels)


@pytest.mark.parametrize("kernel", list(KERNELS))
def test_every_kernel_stays_in_palette(noisy, kernel):
    palette = [(0, 0, 0), (255, 255, 255), (255, 0, 0)]
    out = apply_palette(noisy, palette, DitherOptions(kernel=kernel, strength=1.0))
    assert out.size == noisy.size
    assert _colours(out) <= set(palette)


def test_diffusion_mixes_mid_grey():
    src = solid(8, 8, (128, 128, 128))
    out = apply_palette(src, BW, DitherOptions(kernel="FloydSteinberg", strength=1.0))
    assert _colours(out) == set(BW)


def test_zero_strength_matches_plain_mapping(noisy):
    plain = apply_palette(noisy, BW)
    zero = apply_palette(noisy, BW, DitherOptions(kernel="Stucki", strength=0.0))
    assert np.array_equal(plain.pixels, zero.pixels)


def test_forced_colour_wins_within_range():
    buf = row_of([(200, 10, 10), (190, 20, 20), (0, 0, 255)])
    opts = DitherOptions(forced_colours=((200, 10, 10),))
    out = apply_palette(buf, BW, opts)
    assert out.pixel(0, 0)[:3] == (200, 10, 10)
    assert out.pixel(1, 0)[:3] == (200, 10, 10)
    assert out.pixel(2, 0)[:3] in BW


def test_forced_colour_beats_closer_palette_entry():
    buf = row_of([(190, 20, 20), (200, 10, 10), (0, 0, 0)])
    palette = [(195, 15, 15), (0, 0, 0)]
    assert apply_palette(buf, palette).pixel(0, 0)[:3] == (195, 15, 15)

    opts = DitherOptions(forced_colours=((200, 10, 10),))
    out = apply_palette(buf, palette, opts)
    assert out.pixel(0, 0)[:3] == (200, 10, 10)
    assert out.pixel(1, 0)[:3] == (200, 10, 10)
    assert out.pixel(2, 0)[:3] == (0, 0, 0)


def test_forced_colour_survives_diffusion():
    buf = row_of([(128, 128, 128), (200, 10, 10), (128, 128, 128)])
    opts = DitherOptions(kernel="FloydSteinberg", strength=1.0, forced_colours=((200, 10, 10),))
    out = apply_palette(buf, BW, opts)
    assert out.pixel(1, 0)[:3] == (200, 10, 10)


def test_transparent_pixels_untouched():
    buf = row_of([(12, 34, 56, 0), (100, 100, 100), (30, 30, 30, 0)])
    out = apply_palette(buf, [(0, 0, 0)], DitherOptions(kernel="FloydSteinberg", strength=1.0))
    assert out.pixel(0, 0) == (12, 34, 56, 0)
    assert out.pixel(1, 0) == (0, 0, 0, 255)
    assert out.pixel(2, 0) == (30, 30, 30, 0)


def test_vibrant_bias_prefers_vivid_entry():
    buf = row_of([(150, 50, 50)])
    palette = [(128, 128, 128), (255, 0, 0)]
    assert apply_palette(buf, palette).pixel(0, 0)[:3] == (128, 128, 128)
    biased = apply_palette(buf, palette, DitherOptions(prefer_vibrant=True))
    assert biased.pixel(0, 0)[:3] == (255, 0, 0)


def test_source_is_not_modified(noisy):
    before = noisy.pixels.copy()
    apply_palette(noisy, BW, DitherOptions(kernel="Atkinson", strength=1.0))
    assert np.array_equal(noisy.pixels, before)


def test_empty_palette_rejected(noisy):
    with pytest.raises(ValueError):
        apply_palette(noisy, [])


@pytest.mark.parametrize("name", list(KERNELS))
def test_taps_are_normalised_and_forward(name):
    taps = kernel_taps(name)
    assert sum(w for _dx, _dy, w in taps) == pytest.approx(1.0)
    for dx, dy, _w in taps:
        assert dy > 0 or (dy == 0 and dx > 0)


def test_kernel_names():
    assert KERNEL_NAMES[0] == "None"
    assert kernel_taps("None") == ()
    assert kernel_taps(None) == ()
    assert normalise_kernel_name("floydsteinberg") == "FloydSteinberg"
    with pytest.raises(ValueError):
        normalise_kernel_name("Bayer")
