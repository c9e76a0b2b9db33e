# pixquant/dither/kernels.py
from __future__ import annotations

"""
Error-diffusion kernel tables.

Each kernel is a tuple of (dx, dy, weight) taps relative to the current pixel,
listed with integer weights over a divisor. All taps point at pixels that a
row-major scan has not visited yet (dy > 0, or dy == 0 and dx > 0).

Exports:
  KERNEL_NAMES       : selectable names, "None" first
  KERNELS            : name -> (taps, divisor)
  kernel_taps(name)  -> normalised taps (weights sum to 1), () for "None"
"""

from typing import Dict, Optional, Tuple

Tap = Tuple[int, int, float]
Taps = Tuple[Tap, ...]

KERNELS: Dict[str, Tuple[Tuple[Tuple[int, int, int], ...], int]] = {
    "FloydSteinberg": (
        ((1, 0, 7), (-1, 1, 3), (0, 1, 5), (1, 1, 1)),
        16,
    ),
    "FalseFloydSteinberg": (
        ((1, 0, 3), (0, 1, 3), (1, 1, 2)),
        8,
    ),
    "Stucki": (
        (
            (1, 0, 8), (2, 0, 4),
            (-2, 1, 2), (-1, 1, 4), (0, 1, 8), (1, 1, 4), (2, 1, 2),
            (-2, 2, 1), (-1, 2, 2), (0, 2, 4), (1, 2, 2), (2, 2, 1),
        ),
        42,
    ),
    "Atkinson": (
        ((1, 0, 1), (2, 0, 1), (-1, 1, 1), (0, 1, 1), (1, 1, 1), (0, 2, 1)),
        8,
    ),
    "Jarvis": (
        (
            (1, 0, 7), (2, 0, 5),
            (-2, 1, 3), (-1, 1, 5), (0, 1, 7), (1, 1, 5), (2, 1, 3),
            (-2, 2, 1), (-1, 2, 3), (0, 2, 5), (1, 2, 3), (2, 2, 1),
        ),
        48,
    ),
    "Burkes": (
        (
            (1, 0, 8), (2, 0, 4),
            (-2, 1, 2), (-1, 1, 4), (0, 1, 8), (1, 1, 4), (2, 1, 2),
        ),
        32,
    ),
    "Sierra": (
        (
            (1, 0, 5), (2, 0, 3),
            (-2, 1, 2), (-1, 1, 4), (0, 1, 5), (1, 1, 4), (2, 1, 2),
            (-1, 2, 2), (0, 2, 3), (1, 2, 2),
        ),
        32,
    ),
    "TwoSierra": (
        (
            (1, 0, 4), (2, 0, 3),
            (-2, 1, 1), (-1, 1, 2), (0, 1, 3), (1, 1, 2), (2, 1, 1),
        ),
        16,
    ),
    "SierraLite": (
        ((1, 0, 2), (-1, 1, 1), (0, 1, 1)),
        4,
    ),
}

KERNEL_NAMES: Tuple[str, ...] = ("None",) + tuple(KERNELS)


def normalise_kernel_name(name: Optional[str]) -> Optional[str]:
    """Map None / "None" / "none" to None; validate anything else (case-insensitive)."""
    if name is None or str(name).lower() == "none":
        return None
    for known in KERNELS:
        if known.lower() == str(name).lower():
            return known
    raise ValueError(f"unknown dither kernel {name!r}; expected one of {list(KERNEL_NAMES)}")


def kernel_taps(name: Optional[str]) -> Taps:
    """
    Taps for a kernel with weights normalised to sum to 1.
    Atkinson's table only spreads 6/8 of the error; normalising spreads all of it.
    """
    key = normalise_kernel_name(name)
    if key is None:
        return ()
    taps, _divisor = KERNELS[key]
    total = float(sum(w for _dx, _dy, w in taps))
    return tuple((dx, dy, w / total) for dx, dy, w in taps)


__all__ = ["Tap", "Taps", "KERNELS", "KERNEL_NAMES", "normalise_kernel_name", "kernel_taps"]
