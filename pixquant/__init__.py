# pixquant/__init__.py
"""
pixquant package.

Purpose:
  Pixelate images into small, reduced-palette rasters. See pixelate.py for CLI.

Public API:
  run_pipeline          : one full run (downsample, palette, dither, upscale).
  PipelineConfig        : every setting of a run.
  estimate_block_colour : one block -> one colour (nearest/average/mode/salient).
  downsample            : proportional block downsampling.
  build_palette         : median cut with salient / forced colour preservation.
  apply_palette         : palette remap with optional error diffusion.
  upscale               : nearest-neighbour resampling.
  render_grid           : pattern grid overlay.
  core_types            : PixelBuffer and shared aliases.

Quick start:
  from pixquant import PipelineConfig, run_pipeline
  from pixquant.image_io import load_image_buffer, save_buffer_png
"""

__version__ = "0.3.0"

# Re-export namespaces for convenience.
from . import colour_convert
from . import core_types
from . import dither
from . import utils

from .block_colour import estimate_block_colour  # noqa: E402,F401
from .config import PipelineConfig, compute_match_size  # noqa: E402,F401
from .core_types import BufferShapeError, PixelBuffer, Thresholds  # noqa: E402,F401
from .dither import DitherOptions, KERNEL_NAMES, apply_palette  # noqa: E402,F401
from .downsample import block_bounds, downsample  # noqa: E402,F401
from .grid import render_grid  # noqa: E402,F401
from .palette_build import PaletteOptions, build_palette  # noqa: E402,F401
from .pipeline import PipelineResult, run_pipeline  # noqa: E402,F401
from .upscale import upscale  # noqa: E402,F401

__all__ = [
    "__version__",
    "colour_convert",
    "core_types",
    "dither",
    "utils",
    "BufferShapeError",
    "PixelBuffer",
    "Thresholds",
    "estimate_block_colour",
    "block_bounds",
    "downsample",
    "PaletteOptions",
    "build_palette",
    "DitherOptions",
    "KERNEL_NAMES",
    "apply_palette",
    "upscale",
    "render_grid",
    "PipelineConfig",
    "compute_match_size",
    "PipelineResult",
    "run_pipeline",
]
