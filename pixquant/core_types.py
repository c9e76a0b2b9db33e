# pixquant/core_types.py
from __future__ import annotations

"""
Core type aliases, the PixelBuffer value object, and lightweight helpers.
"""

from dataclasses import dataclass
from typing import List, Sequence, Tuple, Union

import numpy as np
from numpy.typing import NDArray

from .constants import DEFAULT_LUMINANCE_THRESHOLD, DEFAULT_SATURATION_THRESHOLD

# Basic aliases

RGBTuple = Tuple[int, int, int]
RGBATuple = Tuple[int, int, int, int]
HexStr = str
Palette = List[RGBTuple]

U8Image = NDArray[np.uint8]  # (H, W, 3) or (H, W, 4)
U8Mask = NDArray[np.uint8]  # (H, W)

WHITE: RGBTuple = (255, 255, 255)
BLACK: RGBTuple = (0, 0, 0)


class BufferShapeError(ValueError):
    """Raised when raw pixel data matches neither w*h*3 nor w*h*4 bytes."""


# Value objects


@dataclass(frozen=True)
class PixelBuffer:
    """
    width x height RGBA pixels.

    `pixels` is a uint8 array of shape (height, width, 4). Alpha 0 marks a
    fully transparent pixel. Buffers are never shared between pipeline stages;
    every operation hands back a fresh array.
    """

    width: int
    height: int
    pixels: U8Image

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"buffer size must be positive, got {self.width}x{self.height}")
        arr = self.pixels
        if not isinstance(arr, np.ndarray) or arr.dtype != np.uint8:
            raise TypeError("pixels must be a uint8 numpy array")
        if arr.shape != (self.height, self.width, 4):
            raise BufferShapeError(
                f"pixels shape {arr.shape} does not match {self.width}x{self.height}x4"
            )

    @classmethod
    def from_array(cls, arr: np.ndarray) -> "PixelBuffer":
        """Copy a (H,W,3) or (H,W,4) uint8 array into a new buffer."""
        arr = assert_u8_image_rgb(np.asarray(arr))
        height, width = int(arr.shape[0]), int(arr.shape[1])
        out = np.empty((height, width, 4), dtype=np.uint8)
        out[..., :3] = arr[..., :3]
        out[..., 3] = arr[..., 3] if arr.shape[-1] >= 4 else 255
        return cls(width, height, out)

    @classmethod
    def from_bytes(
        cls, data: Union[bytes, bytearray, Sequence[int], np.ndarray], width: int, height: int
    ) -> "PixelBuffer":
        """
        Build a buffer from a flat byte sequence.

        Accepts RGBA (w*h*4) or RGB (w*h*3, alpha set to 255). Anything else
        raises BufferShapeError.
        """
        if isinstance(data, (bytes, bytearray)):
            flat = np.frombuffer(bytes(data), dtype=np.uint8)
        else:
            flat = np.asarray(data).reshape(-1)
            if flat.size and (flat.min() < 0 or flat.max() > 255):
                raise ValueError("pixel values must be within 0..255")
            flat = flat.astype(np.uint8)
        pixel_count = int(width) * int(height)
        if flat.size == pixel_count * 4:
            return cls(width, height, flat.reshape(height, width, 4).copy())
        if flat.size == pixel_count * 3:
            return cls.from_array(flat.reshape(height, width, 3))
        raise BufferShapeError(
            f"unexpected data length {flat.size} for {width}x{height} "
            f"(want {pixel_count * 3} or {pixel_count * 4})"
        )

    @classmethod
    def blank(cls, width: int, height: int, rgba: RGBATuple = (0, 0, 0, 0)) -> "PixelBuffer":
        out = np.empty((height, width, 4), dtype=np.uint8)
        out[...] = np.array(rgba, dtype=np.uint8)
        return cls(width, height, out)

    @property
    def rgb(self) -> U8Image:
        return self.pixels[..., :3]

    @property
    def alpha(self) -> U8Mask:
        return self.pixels[..., 3]

    @property
    def size(self) -> Tuple[int, int]:
        return (self.width, self.height)

    def opaque_mask(self) -> np.ndarray:
        return self.pixels[..., 3] > 0

    def pixel(self, x: int, y: int) -> RGBATuple:
        p = self.pixels[y, x]
        return (int(p[0]), int(p[1]), int(p[2]), int(p[3]))

    def to_bytes(self) -> bytes:
        return self.pixels.tobytes()

    def copy(self) -> "PixelBuffer":
        return PixelBuffer(self.width, self.height, self.pixels.copy())


@dataclass(frozen=True)
class Thresholds:
    """Salience cut-offs: luminance in 0..255, saturation in 0..1."""

    luminance: float = DEFAULT_LUMINANCE_THRESHOLD
    saturation: float = DEFAULT_SATURATION_THRESHOLD


# Small helpers


def clamp_value(value: float, lo: float, hi: float) -> float:
    """Clamp value to [lo, hi]."""
    return lo if value < lo else hi if value > hi else value


def round_half_up(value: Union[float, np.ndarray]) -> Union[int, np.ndarray]:
    """Round .5 away from zero for non-negative inputs (Python's round() is banker's)."""
    if isinstance(value, np.ndarray):
        return np.floor(value + 0.5).astype(np.int64)
    return int(np.floor(float(value) + 0.5))


def rgb_to_hex(rgb: RGBTuple) -> HexStr:
    """RGB tuple to lowercase hex string '#rrggbb'."""
    return f"#{rgb[0]:02x}{rgb[1]:02x}{rgb[2]:02x}"


def hex_to_rgb(hex_str: str) -> RGBTuple:
    """Parse '#rgb' or '#rrggbb' (case-insensitive, '#' optional) into an RGB tuple."""
    s = hex_str.strip().lower()
    if not s.startswith("#"):
        s = f"#{s}"
    if len(s) == 4:
        r, g, b = s[1], s[2], s[3]
        s = f"#{r}{r}{g}{g}{b}{b}"
    if len(s) != 7:
        raise ValueError(f"hex must be '#rrggbb' or '#rgb', got {hex_str!r}")
    try:
        return (int(s[1:3], 16), int(s[3:5], 16), int(s[5:7], 16))
    except ValueError:
        raise ValueError(f"invalid hex colour {hex_str!r}") from None


def coerce_to_rgb_tuple(value: Union[Sequence[int], NDArray[np.generic]]) -> RGBTuple:
    """
    Coerce a 3-length sequence or array to an (int, int, int) RGB tuple.
    Helpful when extracting values from NumPy rows.
    """
    if isinstance(value, np.ndarray):
        if value.size < 3:
            raise ValueError("array too small for RGB")
        flat = value.reshape(-1)
        return (int(flat[0]), int(flat[1]), int(flat[2]))
    if len(value) < 3:
        raise ValueError("sequence too small for RGB")
    v = value
    for c in v[:3]:
        if not 0 <= int(c) <= 255:
            raise ValueError(f"RGB component out of range: {c}")
    return (int(v[0]), int(v[1]), int(v[2]))


def palette_to_array(palette: Sequence[RGBTuple]) -> NDArray[np.float64]:
    """Palette list to a float64 (P,3) array for distance maths."""
    if len(palette) == 0:
        return np.zeros((0, 3), dtype=np.float64)
    return np.asarray(palette, dtype=np.float64).reshape(-1, 3)


def assert_u8_image_rgb(image: np.ndarray) -> U8Image:
    """Validate a uint8 (H,W,3 or 4) image and return it typed as U8Image."""
    if image.dtype != np.uint8 or image.ndim != 3 or image.shape[-1] not in (3, 4):
        raise TypeError("expected uint8 (H,W,3/4) image")
    return image  # type: ignore[return-value]


__all__ = [
    # aliases / types
    "RGBTuple",
    "RGBATuple",
    "HexStr",
    "Palette",
    "U8Image",
    "U8Mask",
    "WHITE",
    "BLACK",
    # errors / value objects
    "BufferShapeError",
    "PixelBuffer",
    "Thresholds",
    # helpers
    "clamp_value",
    "round_half_up",
    "rgb_to_hex",
    "hex_to_rgb",
    "coerce_to_rgb_tuple",
    "palette_to_array",
    "assert_u8_image_rgb",
]
