from __future__ import annotations

import numpy as np
import pytest

from pixquant.config import PipelineConfig, compute_match_size
from pixquant.core_types import BufferShapeError
from pixquant.pipeline import ensure_rgba, run_pipeline
from pixquant.utils import unique_visible_rgb


def _colours(buf) -> set:
    uniques, _counts = unique_visible_rgb(buf)
    return {tuple(int(v) for v in row) for row in uniques}


def test_run_pipeline_sizes_and_palette(gradient):
    cfg = PipelineConfig(result_width=8, result_height=6, colours_count=4)
    result = run_pipeline(gradient, cfg)
    assert result.small.size == (8, 6)
    assert result.display.size == gradient.size
    assert result.palette is not None and 1 <= len(result.palette) <= 4
    assert _colours(result.small) <= set(result.palette)
    assert _colours(result.display) == _colours(result.small)


def test_run_pipeline_with_dithering(gradient):
    cfg = PipelineConfig(
        result_width=16,
        result_height=12,
        colours_count=3,
        enable_dithering=True,
        dith_kern="Atkinson",
        dith_delta=1.0,
    )
    result = run_pipeline(gradient, cfg, display_size=(32, 24))
    assert result.display.size == (32, 24)
    assert _colours(result.small) <= set(result.palette)


def test_keep_size_quantises_at_source_size(noisy):
    cfg = PipelineConfig(change_dimensions=False, colours_count=2)
    result = run_pipeline(noisy, cfg)
    assert result.small.size == noisy.size
    assert len(_colours(result.small)) <= 2


def test_no_reduction_skips_palette(gradient):
    cfg = PipelineConfig(result_width=4, result_height=4, enable_reduce_colours=False)
    result = run_pipeline(gradient, cfg)
    assert result.palette is None
    assert result.small.size == (4, 4)


def test_zero_colours_skips_palette(gradient):
    result = run_pipeline(gradient, PipelineConfig(colours_count=0))
    assert result.palette is None


def test_source_left_alone(gradient):
    before = gradient.pixels.copy()
    run_pipeline(gradient, PipelineConfig(result_width=5, result_height=5, colours_count=3))
    assert np.array_equal(gradient.pixels, before)


def test_ensure_rgba_accepts_rgb_bytes():
    buf = ensure_rgba(bytes([1, 2, 3, 4, 5, 6]), 2, 1)
    assert buf.pixel(1, 0) == (4, 5, 6, 255)


def test_ensure_rgba_rejects_bad_shapes():
    with pytest.raises(BufferShapeError):
        ensure_rgba(bytes(7), 2, 1)
    with pytest.raises(BufferShapeError):
        ensure_rgba(np.zeros((2, 2, 4), dtype=np.uint8), 3, 2)


@pytest.mark.parametrize(
    "changes",
    [
        {"pixelation_method": "blur"},
        {"colours_count": -1},
        {"dith_delta": 1.5},
        {"result_width": 0},
        {"dith_kern": "Bayer"},
        {"saturation_threshold": 2.0},
    ],
)
def test_invalid_config(changes):
    with pytest.raises(ValueError):
        PipelineConfig().with_overrides(**changes).validate()


def test_kernel_only_when_dithering_enabled():
    cfg = PipelineConfig(dith_kern="Stucki")
    assert cfg.kernel is None
    assert cfg.with_overrides(enable_dithering=True).kernel == "Stucki"


def test_forced_colours_are_normalised():
    cfg = PipelineConfig(forced_colours=[[1, 2, 3]])
    assert cfg.forced_colours == ((1, 2, 3),)
    assert cfg.palette_options().forced_colours == ((1, 2, 3),)


def test_compute_match_size():
    assert compute_match_size(200, 100, width=50) == (50, 25)
    assert compute_match_size(200, 100, height=10) == (20, 10)
    assert compute_match_size(2, 3, width=1) == (1, 2)
    assert compute_match_size(1000, 1, width=10) == (10, 1)
    assert compute_match_size(30, 20) == (30, 20)
    with pytest.raises(ValueError):
        compute_match_size(0, 10, width=5)
