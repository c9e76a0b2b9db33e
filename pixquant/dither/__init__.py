"""
Dither API.

Provides:
  apply_palette(buffer, palette, options=None, *, debug=False) -> PixelBuffer
    Map an RGBA buffer onto a palette, optionally with error diffusion.

    Args:
      buffer  : PixelBuffer
      palette : list of RGB tuples (non-empty)
      options : DitherOptions
        kernel          : one of KERNEL_NAMES, or None
        strength        : float in [0,1], scales the diffused error
        forced_colours  : RGB tuples written exactly when within forced_distance
        prefer_vibrant  : bias vibrant sources toward vibrant palette entries
        thresholds      : salience cut-offs used by the bias

    Returns:
      PixelBuffer of the same size. Alpha is preserved; transparent pixels are untouched.

    Notes:
      - Row-major scan; kernels only reach pixels not yet visited.
      - Kernel weights are normalised to sum to 1 before scaling by strength.
"""

from .apply import DitherOptions, apply_palette
from .kernels import KERNEL_NAMES, KERNELS, kernel_taps, normalise_kernel_name

__all__ = [
    "DitherOptions",
    "apply_palette",
    "KERNEL_NAMES",
    "KERNELS",
    "kernel_taps",
    "normalise_kernel_name",
]
