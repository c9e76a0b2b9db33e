# pixquant/grid.py
from __future__ import annotations

"""
Pattern grid overlay for cross-stitch / bead charts.

Exports:
  grid_scale(logical_w, logical_h, target_w, target_h) -> int
  render_grid(small, target_w, target_h, *, thickness=1, colour="#000000", include_image=True) -> PixelBuffer

Layout:
  - integer scale = floor(min(target_w / logical_w, target_h / logical_h))
  - the scaled image is centred; offsets are floored
  - a line at every logical boundary 0..W and 0..H, plus closing right and
    bottom lines inside the drawn area when scale > 1
"""

from typing import Tuple, Union

import numpy as np

from .constants import DEFAULT_GRID_COLOUR, DEFAULT_GRID_THICKNESS
from .core_types import PixelBuffer, RGBATuple, RGBTuple, hex_to_rgb
from .upscale import scale_by

ColourSpec = Union[str, RGBTuple, RGBATuple]


def _parse_colour(colour: ColourSpec) -> RGBATuple:
    if isinstance(colour, str):
        r, g, b = hex_to_rgb(colour)
        return (r, g, b, 255)
    if len(colour) == 3:
        return (int(colour[0]), int(colour[1]), int(colour[2]), 255)
    if len(colour) == 4:
        return (int(colour[0]), int(colour[1]), int(colour[2]), int(colour[3]))
    raise ValueError(f"grid colour must be hex, RGB or RGBA, got {colour!r}")


def grid_scale(logical_w: int, logical_h: int, target_w: int, target_h: int) -> int:
    """Largest integer factor that fits the logical grid inside the target."""
    scale = int(min(target_w // logical_w, target_h // logical_h))
    if scale < 1:
        raise ValueError(
            f"target {target_w}x{target_h} is smaller than the grid {logical_w}x{logical_h}"
        )
    return scale


def _fill(canvas: np.ndarray, x: int, y: int, w: int, h: int, rgba: np.ndarray) -> None:
    """fillRect clipped to the canvas."""
    height, width = canvas.shape[:2]
    x0, y0 = max(0, x), max(0, y)
    x1, y1 = min(width, x + w), min(height, y + h)
    if x1 > x0 and y1 > y0:
        canvas[y0:y1, x0:x1] = rgba


def _grid_origin(small: PixelBuffer, target_w: int, target_h: int) -> Tuple[int, int, int]:
    scale = grid_scale(small.width, small.height, target_w, target_h)
    offset_x = (target_w - small.width * scale) // 2
    offset_y = (target_h - small.height * scale) // 2
    return scale, offset_x, offset_y


def render_grid(
    small: PixelBuffer,
    target_w: int,
    target_h: int,
    *,
    thickness: int = DEFAULT_GRID_THICKNESS,
    colour: ColourSpec = DEFAULT_GRID_COLOUR,
    include_image: bool = True,
) -> PixelBuffer:
    """
    Draw the logical pixel grid of `small` on a transparent target_w x target_h
    canvas, optionally over the integer-scaled image.
    """
    if thickness < 1:
        raise ValueError(f"grid thickness must be >= 1, got {thickness}")
    scale, offset_x, offset_y = _grid_origin(small, target_w, target_h)
    rgba = np.array(_parse_colour(colour), dtype=np.uint8)

    canvas = np.zeros((target_h, target_w, 4), dtype=np.uint8)
    draw_w = small.width * scale
    draw_h = small.height * scale

    if include_image:
        scaled = scale_by(small, scale).pixels
        canvas[offset_y : offset_y + draw_h, offset_x : offset_x + draw_w] = scaled

    for i in range(small.width + 1):
        _fill(canvas, offset_x + i * scale, offset_y, thickness, draw_h, rgba)
    for j in range(small.height + 1):
        _fill(canvas, offset_x, offset_y + j * scale, draw_w, thickness, rgba)

    if scale > 1:
        _fill(canvas, offset_x + draw_w - thickness, offset_y, thickness, draw_h, rgba)
        _fill(canvas, offset_x, offset_y + draw_h - thickness, draw_w, thickness, rgba)

    return PixelBuffer(target_w, target_h, canvas)


__all__ = ["grid_scale", "render_grid"]
