# pixquant/dither/apply.py
from __future__ import annotations

"""
Palette remapping with optional error diffusion.

- Forced colours win outright for pixels within FORCED_DISTANCE of one.
- Otherwise nearest palette entry by RGB distance, with an optional bias that
  lets vibrant source pixels prefer vibrant palette entries.
- Error diffusion scans row-major; taps only reach unvisited pixels.

Transparent pixels are copied unchanged and neither receive nor spread error.
"""

from dataclasses import dataclass, field
from typing import Optional, Sequence, Tuple

import numpy as np

from pixquant.colour_convert import salient_mask
from pixquant.constants import (
    DEFAULT_DITHER_STRENGTH,
    FORCED_DISTANCE,
    VIBRANT_DISTANCE_BIAS,
)
from pixquant.core_types import (
    PixelBuffer,
    RGBTuple,
    Thresholds,
    clamp_value,
    palette_to_array,
)
from pixquant.dither.kernels import Taps, kernel_taps, normalise_kernel_name
from pixquant.utils import debug_log, key_value_pairs_to_string


@dataclass(frozen=True)
class DitherOptions:
    """Knobs for apply_palette. kernel=None (or "None") disables diffusion."""

    kernel: Optional[str] = None
    strength: float = DEFAULT_DITHER_STRENGTH
    forced_colours: Tuple[RGBTuple, ...] = ()
    prefer_vibrant: bool = False
    thresholds: Thresholds = field(default_factory=Thresholds)
    forced_distance: float = FORCED_DISTANCE
    vibrant_bias: float = VIBRANT_DISTANCE_BIAS


class _Matcher:
    """Nearest-colour lookups against one palette and one forced-colour list."""

    def __init__(self, palette: Sequence[RGBTuple], opts: DitherOptions) -> None:
        if len(palette) == 0:
            raise ValueError("palette must not be empty")
        self.pal = palette_to_array(palette)
        self.forced = palette_to_array(opts.forced_colours)
        self.forced_dist2 = float(opts.forced_distance) ** 2
        self.prefer_vibrant = bool(opts.prefer_vibrant)
        self.thresholds = opts.thresholds
        self.bias = float(opts.vibrant_bias)
        self.pal_vibrant = salient_mask(self.pal, opts.thresholds.luminance, opts.thresholds.saturation)

    def forced_index(self, src: np.ndarray) -> np.ndarray:
        """Per-row index of the nearest forced colour within range, -1 otherwise."""
        n = src.shape[0]
        if self.forced.shape[0] == 0:
            return np.full(n, -1, dtype=np.int64)
        diff = self.forced[None, :, :] - src[:, None, :]
        dist2 = np.sum(diff * diff, axis=2)
        idx = np.argmin(dist2, axis=1)
        hit = dist2[np.arange(n), idx] <= self.forced_dist2
        return np.where(hit, idx, -1)

    def nearest_index(self, colours: np.ndarray, src_vibrant: np.ndarray) -> np.ndarray:
        """
        Per-row nearest palette index for `colours` (N,3 float). Rows flagged in
        src_vibrant scale distances to vibrant entries by the bias factor.
        """
        diff = self.pal[None, :, :] - colours[:, None, :]
        dist = np.sqrt(np.sum(diff * diff, axis=2))
        if self.prefer_vibrant:
            scale = np.where(
                src_vibrant[:, None] & self.pal_vibrant[None, :], self.bias, 1.0
            )
            dist = dist * scale
        return np.argmin(dist, axis=1)

    def source_vibrant(self, src: np.ndarray) -> np.ndarray:
        if not self.prefer_vibrant:
            return np.zeros(src.shape[0], dtype=bool)
        return salient_mask(src, self.thresholds.luminance, self.thresholds.saturation)


def _map_nearest(rgb: np.ndarray, visible: np.ndarray, matcher: _Matcher) -> np.ndarray:
    """Vectorised path without diffusion. Returns the new (H,W,3) uint8 colours."""
    out = rgb.copy()
    src = rgb[visible].astype(np.float64)
    if src.shape[0] == 0:
        return out
    mapped = matcher.pal[matcher.nearest_index(src, matcher.source_vibrant(src))]
    forced_idx = matcher.forced_index(src)
    hit = forced_idx >= 0
    if np.any(hit):
        mapped[hit] = matcher.forced[forced_idx[hit]]
    out[visible] = mapped.astype(np.uint8)
    return out


def _diffuse(
    rgb: np.ndarray,
    visible: np.ndarray,
    matcher: _Matcher,
    taps: Taps,
    strength: float,
) -> np.ndarray:
    """Row-major error diffusion. Returns the new (H,W,3) uint8 colours."""
    height, width, _ = rgb.shape
    src = rgb.astype(np.float64)
    work = src.copy()
    out = rgb.copy()

    flat_src = src.reshape(-1, 3)
    forced_idx = matcher.forced_index(flat_src).reshape(height, width)
    vibrant = matcher.source_vibrant(flat_src).reshape(height, width)

    for y in range(height):
        for x in range(width):
            if not visible[y, x]:
                continue
            fi = int(forced_idx[y, x])
            if fi >= 0:
                out[y, x] = matcher.forced[fi].astype(np.uint8)
                continue
            colour = np.clip(work[y, x], 0.0, 255.0)
            j = int(matcher.nearest_index(colour[None, :], vibrant[y, x : x + 1])[0])
            chosen = matcher.pal[j]
            out[y, x] = chosen.astype(np.uint8)

            err = (colour - chosen) * strength
            for dx, dy, w in taps:
                nx, ny = x + dx, y + dy
                if 0 <= ny < height and 0 <= nx < width and visible[ny, nx]:
                    work[ny, nx] += err * w
    return out


def apply_palette(
    buffer: PixelBuffer,
    palette: Sequence[RGBTuple],
    options: Optional[DitherOptions] = None,
    *,
    debug: bool = False,
) -> PixelBuffer:
    """
    Map every opaque pixel of buffer onto palette (or a forced colour).

    Returns a new buffer of the same size. Alpha is copied; transparent pixels
    keep their original bytes.
    """
    opts = options if options is not None else DitherOptions()
    kernel = normalise_kernel_name(opts.kernel)
    strength = float(clamp_value(float(opts.strength), 0.0, 1.0))
    matcher = _Matcher(palette, opts)

    rgb = buffer.rgb
    visible = buffer.opaque_mask()
    taps = kernel_taps(kernel)

    if debug:
        debug_log(
            key_value_pairs_to_string(
                [
                    ("Palette", len(palette)),
                    ("Kernel", kernel or "None"),
                    ("Strength", strength),
                    ("Forced", len(opts.forced_colours)),
                    ("Vibrant bias", opts.prefer_vibrant),
                ]
            )
        )

    if not taps or strength <= 0.0:
        new_rgb = _map_nearest(rgb, visible, matcher)
    else:
        new_rgb = _diffuse(rgb, visible, matcher, taps, strength)

    out = np.empty_like(buffer.pixels)
    out[..., :3] = new_rgb
    out[..., 3] = buffer.alpha
    return PixelBuffer(buffer.width, buffer.height, out)


__all__ = ["DitherOptions", "apply_palette"]
