# pixquant/colour_convert.py
from __future__ import annotations

import numpy as np

from .constants import LUMA_R, LUMA_G, LUMA_B
from .core_types import RGBTuple, clamp_value, round_half_up

"""
Colour metrics and sRGB <-> HSL in byte space. Vectorized NumPy where it matters.

Exports:
- luminance(rgb)                     # scalar or (...,3) -> (...)
- saturation(rgb)                    # (max-min)/max, 0 for black
- salient_mask(rgb, lum_thr, sat_thr)
- distances_to(colours, target)      # Euclidean in RGB, (N,3) -> (N,)
- rgb_to_hsl(rgb) / hsl_to_rgb(h, s, l)
- boost_saturation(rgb, factor)
"""


def luminance(rgb: np.ndarray) -> np.ndarray:
    """
    Rec. 709 luminance in 0..255 for any (..., 3) input.
    Returns float64 with the trailing axis dropped.
    """
    arr = np.asarray(rgb, dtype=np.float64)
    return LUMA_R * arr[..., 0] + LUMA_G * arr[..., 1] + LUMA_B * arr[..., 2]


def saturation(rgb: np.ndarray) -> np.ndarray:
    """
    (max - min) / max per colour, 0 where max is 0.
    Accepts (..., 3); returns float64 with the trailing axis dropped.
    """
    arr = np.asarray(rgb, dtype=np.float64)
    hi = arr.max(axis=-1)
    lo = arr.min(axis=-1)
    out = np.zeros_like(hi)
    nz = hi > 0
    np.divide(hi - lo, hi, out=out, where=nz)
    return out


def salient_mask(rgb: np.ndarray, lum_thr: float, sat_thr: float) -> np.ndarray:
    """Boolean mask of colours brighter than lum_thr or more saturated than sat_thr."""
    return (luminance(rgb) > float(lum_thr)) | (saturation(rgb) > float(sat_thr))


def distances_to(colours: np.ndarray, target: np.ndarray) -> np.ndarray:
    """Euclidean distances from every (N,3) row to a single (3,) target."""
    diff = np.asarray(colours, dtype=np.float64) - np.asarray(target, dtype=np.float64)
    return np.sqrt(np.sum(diff * diff, axis=-1))


def rgb_to_hsl(rgb: RGBTuple) -> tuple[float, float, float]:
    """RGB bytes -> (hue 0..1, saturation 0..1, lightness 0..1)."""
    r, g, b = (float(c) / 255.0 for c in rgb)
    hi = max(r, g, b)
    lo = min(r, g, b)
    light = (hi + lo) / 2.0
    if hi == lo:
        return 0.0, 0.0, light
    d = hi - lo
    sat = d / (2.0 - hi - lo) if light > 0.5 else d / (hi + lo)
    if hi == r:
        hue = (g - b) / d + (6.0 if g < b else 0.0)
    elif hi == g:
        hue = (b - r) / d + 2.0
    else:
        hue = (r - g) / d + 4.0
    return hue / 6.0, sat, light


def _hue_to_channel(p: float, q: float, t: float) -> float:
    if t < 0.0:
        t += 1.0
    if t > 1.0:
        t -= 1.0
    if t < 1.0 / 6.0:
        return p + (q - p) * 6.0 * t
    if t < 0.5:
        return q
    if t < 2.0 / 3.0:
        return p + (q - p) * (2.0 / 3.0 - t) * 6.0
    return p


def hsl_to_rgb(hue: float, sat: float, light: float) -> RGBTuple:
    """(hue, saturation, lightness) in 0..1 -> RGB bytes (rounded half up)."""
    if sat == 0.0:
        v = round_half_up(light * 255.0)
        return (v, v, v)
    q = light * (1.0 + sat) if light < 0.5 else light + sat - light * sat
    p = 2.0 * light - q
    r = _hue_to_channel(p, q, hue + 1.0 / 3.0)
    g = _hue_to_channel(p, q, hue)
    b = _hue_to_channel(p, q, hue - 1.0 / 3.0)
    return (
        int(clamp_value(round_half_up(r * 255.0), 0, 255)),
        int(clamp_value(round_half_up(g * 255.0), 0, 255)),
        int(clamp_value(round_half_up(b * 255.0), 0, 255)),
    )


def boost_saturation(rgb: RGBTuple, factor: float) -> RGBTuple:
    """Scale HSL saturation by factor, clamped to [0, 1]. Greys stay grey."""
    hue, sat, light = rgb_to_hsl(rgb)
    return hsl_to_rgb(hue, clamp_value(sat * float(factor), 0.0, 1.0), light)


__all__ = [
    "luminance",
    "saturation",
    "salient_mask",
    "distances_to",
    "rgb_to_hsl",
    "hsl_to_rgb",
    "boost_saturation",
]
