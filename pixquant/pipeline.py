# pixquant/pipeline.py
from __future__ import annotations

"""
One synchronous pipeline run.

    source -> downsample -> build_palette -> apply_palette -> upscale

Exports:
  PipelineResult(small, display, palette)
  ensure_rgba(mapped, width, height) -> PixelBuffer
  run_pipeline(source, config=None, *, display_size=None, debug=False) -> PipelineResult

Notes:
  - Every stage returns a fresh buffer; the source is never modified.
  - A quantised raster of the wrong shape raises BufferShapeError and nothing
    is returned, so callers keep whatever they displayed before.
"""

import time
from dataclasses import dataclass
from typing import Optional, Tuple, Union

import numpy as np

from .config import PipelineConfig
from .core_types import BufferShapeError, Palette, PixelBuffer
from .dither import apply_palette
from .downsample import downsample
from .palette_build import build_palette
from .upscale import upscale
from .utils import debug_log, format_seconds_compact, key_value_pairs_to_string, print_config_line


@dataclass(frozen=True)
class PipelineResult:
    """small: logical-size raster; display: upscaled raster; palette: colours used for reduction."""

    small: PixelBuffer
    display: PixelBuffer
    palette: Optional[Palette]


def ensure_rgba(
    mapped: Union[PixelBuffer, np.ndarray, bytes, bytearray], width: int, height: int
) -> PixelBuffer:
    """
    Accept a quantised raster as a PixelBuffer, an (H,W,3|4) array or flat
    RGB / RGBA bytes and return an RGBA PixelBuffer of width x height.
    Anything else raises BufferShapeError.
    """
    if isinstance(mapped, PixelBuffer):
        if mapped.size != (width, height):
            raise BufferShapeError(
                f"mapper output is {mapped.width}x{mapped.height}, expected {width}x{height}"
            )
        return mapped
    if isinstance(mapped, np.ndarray) and mapped.ndim == 3:
        if mapped.shape[:2] != (height, width) or mapped.shape[-1] not in (3, 4):
            raise BufferShapeError(f"invalid mapper output shape {mapped.shape}")
        return PixelBuffer.from_array(mapped.astype(np.uint8, copy=False))
    return PixelBuffer.from_bytes(mapped, width, height)


def _logical_size(source: PixelBuffer, config: PipelineConfig) -> Tuple[int, int]:
    if config.change_dimensions:
        return int(config.result_width), int(config.result_height)
    return source.width, source.height


def run_pipeline(
    source: PixelBuffer,
    config: Optional[PipelineConfig] = None,
    *,
    display_size: Optional[Tuple[int, int]] = None,
    debug: bool = False,
) -> PipelineResult:
    """
    Pixelate `source` according to `config`.

    display_size defaults to the source size. Raises ValueError for invalid
    settings and BufferShapeError for a malformed quantised raster.
    """
    cfg = (config if config is not None else PipelineConfig()).validate()
    width, height = _logical_size(source, cfg)
    thresholds = cfg.thresholds()

    if debug:
        print_config_line("pipeline", cfg.summary_pairs(), debug=True)

    t0 = time.perf_counter()
    small = downsample(source, width, height, cfg.pixelation_method, thresholds)
    t1 = time.perf_counter()

    palette: Optional[Palette] = None
    if cfg.enable_reduce_colours and cfg.colours_count > 0:
        palette = build_palette(small, cfg.colours_count, cfg.palette_options(), debug=debug)
        mapped = apply_palette(small, palette, cfg.dither_options(), debug=debug)
        small = ensure_rgba(mapped, width, height)
    t2 = time.perf_counter()

    disp_w, disp_h = display_size if display_size is not None else source.size
    display = upscale(small, disp_w, disp_h)
    t3 = time.perf_counter()

    if debug:
        debug_log(
            key_value_pairs_to_string(
                [
                    ("Logical", f"{width}x{height}"),
                    ("Display", f"{disp_w}x{disp_h}"),
                    ("Palette", len(palette) if palette is not None else "-"),
                    ("Downsample", format_seconds_compact(t1 - t0)),
                    ("Quantise", format_seconds_compact(t2 - t1)),
                    ("Upscale", format_seconds_compact(t3 - t2)),
                ]
            )
        )

    return PipelineResult(small=small, display=display, palette=palette)


__all__ = ["PipelineResult", "ensure_rgba", "run_pipeline"]
