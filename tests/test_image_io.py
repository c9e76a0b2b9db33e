from __future__ import annotations

import numpy as np
import pytest
from PIL import Image

from pixquant.image_io import (
    ImageLoadError,
    is_image_file,
    load_image_buffer,
    save_buffer_png,
)

from conftest import row_of


def test_png_round_trip(tmp_path, gradient):
    path = save_buffer_png(tmp_path / "g.png", gradient)
    back = load_image_buffer(path)
    assert back.size == gradient.size
    assert np.array_equal(back.pixels, gradient.pixels)


def test_alpha_survives(tmp_path):
    buf = row_of([(1, 2, 3, 0), (4, 5, 6)])
    back = load_image_buffer(save_buffer_png(tmp_path / "a.png", buf))
    assert back.pixel(0, 0)[3] == 0
    assert back.pixel(1, 0) == (4, 5, 6, 255)


def test_suffix_forced_to_png(tmp_path, gradient):
    path = save_buffer_png(tmp_path / "g.jpg", gradient)
    assert path.suffix == ".png"
    assert path.exists()


def test_rgb_source_loads_opaque(tmp_path):
    Image.new("RGB", (3, 2), (10, 20, 30)).save(tmp_path / "rgb.png")
    buf = load_image_buffer(tmp_path / "rgb.png")
    assert buf.size == (3, 2)
    assert buf.pixel(2, 1) == (10, 20, 30, 255)


def test_bad_file_raises(tmp_path):
    bad = tmp_path / "bad.png"
    bad.write_bytes(b"not an image")
    with pytest.raises(ImageLoadError):
        load_image_buffer(bad)
    assert not is_image_file(bad)


def test_missing_file_raises(tmp_path):
    with pytest.raises(ImageLoadError):
        load_image_buffer(tmp_path / "nope.png")
