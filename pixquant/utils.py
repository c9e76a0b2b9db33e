# pixquant/utils.py
from __future__ import annotations

"""
Shared utilities for pixquant.

Includes the visible-colour histogram, nearest-palette lookups, the colour
usage report, duration formatting, and tidy logging.
"""

import io
import sys
import threading
from contextlib import contextmanager
from typing import Any, Iterable, Iterator, List, Sequence, TextIO, Tuple

import numpy as np

from .colour_convert import distances_to
from .core_types import PixelBuffer, RGBTuple, U8Image, coerce_to_rgb_tuple, palette_to_array


#  Time formatting


def format_seconds_compact(seconds: float) -> str:
    """Human-friendly seconds: '<ms>ms', '<s>s', or 'Mm Ss'."""
    if seconds < 1.0:
        return f"{seconds * 1000.0:.1f}ms"
    if seconds < 60.0:
        return f"{seconds:.3f}s"
    minutes = int(seconds // 60)
    return f"{minutes}m {seconds - 60 * minutes:.1f}s"


def format_total_duration_compact(seconds: float) -> str:
    """Compact total duration: 'Mm Ss', 'Ss.s', or 'ms'."""
    if seconds >= 60.0:
        minutes = int(seconds // 60)
        rem = int(round(seconds - 60 * minutes))
        return f"{minutes}m {rem}s"
    if seconds >= 1.0:
        return f"{seconds:.1f}s"
    return f"{seconds * 1000.0:.1f}ms"


# Colour statistics


def unique_visible_rgb(buffer: PixelBuffer) -> Tuple[U8Image, np.ndarray]:
    """Return (unique RGB rows among alpha>0, counts). Rows come back sorted."""
    visible_mask = buffer.opaque_mask()
    if not np.any(visible_mask):
        return np.zeros((0, 3), dtype=np.uint8), np.zeros((0,), dtype=np.int64)
    flat_rgb = buffer.rgb[visible_mask].reshape(-1, 3)
    uniques, counts = np.unique(flat_rgb, axis=0, return_counts=True)
    return uniques.astype(np.uint8, copy=False), counts.astype(np.int64, copy=False)


def nearest_palette_indices(colours: np.ndarray, pal_rgb: np.ndarray) -> np.ndarray:
    """For each (N,3) colour row, index of the nearest palette row (Euclidean RGB)."""
    src = np.asarray(colours, dtype=np.float64).reshape(-1, 3)
    pal = np.asarray(pal_rgb, dtype=np.float64).reshape(-1, 3)
    if src.shape[0] == 0:
        return np.zeros((0,), dtype=np.int32)
    diff = pal[None, :, :] - src[:, None, :]
    dist2 = np.sum(diff * diff, axis=2)
    return np.argmin(dist2, axis=1).astype(np.int32)


def min_distance_to_palette(colour: RGBTuple, palette: Sequence[RGBTuple]) -> float:
    """Smallest Euclidean RGB distance from colour to any palette entry (inf if empty)."""
    pal = palette_to_array(palette)
    if pal.shape[0] == 0:
        return float("inf")
    return float(distances_to(pal, np.asarray(colour, dtype=np.float64)).min())


def colour_usage_report(buffer: PixelBuffer) -> List[Tuple[str, int]]:
    """
    Simple colour usage report for visible pixels.

    Returns a list of (hex, count) sorted by count descending.
    """
    uniques, counts = unique_visible_rgb(buffer)
    report: List[Tuple[str, int]] = []
    for rgb_row, count in sorted(zip(uniques, counts), key=lambda x: -int(x[1])):
        hex_str = f"#{int(rgb_row[0]):02x}{int(rgb_row[1]):02x}{int(rgb_row[2]):02x}"
        report.append((hex_str, int(count)))
    return report


def pick_colour(buffer: PixelBuffer, x: int, y: int) -> RGBTuple:
    """RGB of the pixel under a pointer position; raises IndexError when outside."""
    if not (0 <= x < buffer.width and 0 <= y < buffer.height):
        raise IndexError(f"({x}, {y}) is outside {buffer.width}x{buffer.height}")
    return coerce_to_rgb_tuple(buffer.pixels[y, x, :3])


#  CLI / progress logging


def enable_line_buffered_stdout() -> None:
    """
    Enable line-buffered stdout when supported.
    Helps live output in terminals that expose .reconfigure().
    """
    reconfig = getattr(sys.stdout, "reconfigure", None)
    if callable(reconfig):
        try:
            reconfig(line_buffering=True, write_through=True)
        except (OSError, ValueError):
            pass


# Pretty logging


def format_bool_on_off(value: Any) -> str:
    """Pretty boolean: 'on'/'off' for bools; str(value) otherwise."""
    if isinstance(value, bool):
        return "on" if value else "off"
    return str(value)


def format_number_compact(value: Any) -> str:
    """Pretty number: 1_234 style for ints; compact for floats; passthrough otherwise."""
    if isinstance(value, int):
        return f"{value:,}"
    if isinstance(value, float):
        text = f"{value:.3f}".rstrip("0").rstrip(".")
        return text
    return str(value)


def key_value_pairs_to_string(
    pairs: Iterable[Tuple[str, Any]], sep: str = "  ", eq: str = ": "
) -> str:
    """
    Format (name, value) pairs as 'Name: value' blocks separated by sep.
    Uses format_bool_on_off / format_number_compact for readability.
    """
    out: List[str] = []
    for name, value in pairs:
        display = (
            format_bool_on_off(value)
            if isinstance(value, bool)
            else format_number_compact(value)
        )
        out.append(f"{name}{eq}{display}")
    return sep.join(out)


def print_config_line(
    section: str, pairs: Iterable[Tuple[str, Any]], debug: bool
) -> None:
    """
    Emit a single human-readable config line, e.g.:
      [palette] Colours: 16  Vibrant: on  Kernel: FloydSteinberg
    Routes to debug_log() when debug=True, else to log().
    """
    line = f"[{section}] {key_value_pairs_to_string(pairs)}"
    (debug_log if debug else log)(line)


#  Per-thread output capture

_sinks = threading.local()


@contextmanager
def captured_output() -> Iterator[Tuple[io.StringIO, io.StringIO]]:
    """
    Route this thread's log helpers into fresh (out, err) buffers.

    Only the calling thread is affected; sys.stdout and sys.stderr are never
    swapped, so worker threads can capture concurrently and the caller
    replays the text in order afterwards.
    """
    out_buf = io.StringIO()
    err_buf = io.StringIO()
    previous = getattr(_sinks, "streams", None)
    _sinks.streams = (out_buf, err_buf)
    try:
        yield out_buf, err_buf
    finally:
        _sinks.streams = previous


def _out() -> TextIO:
    streams = getattr(_sinks, "streams", None)
    return streams[0] if streams is not None else sys.stdout


def _err() -> TextIO:
    streams = getattr(_sinks, "streams", None)
    return streams[1] if streams is not None else sys.stderr


def print_banner(title: str) -> None:
    """Section banner."""
    print(f"\n=== {title} ===", file=_out(), flush=True)


def log(message: str) -> None:
    """Plain log line."""
    print(message, file=_out(), flush=True)


def debug_log(message: str) -> None:
    """Debug log line."""
    print(f"[debug] {message}", file=_out(), flush=True)


def warn(message: str) -> None:
    """Warning log line."""
    print(f"[warn] {message}", file=_out(), flush=True)


def error(message: str) -> None:
    """Error log line to stderr."""
    print(f"[error] {message}", file=_err(), flush=True)


__all__ = [
    # formatting
    "format_seconds_compact",
    "format_total_duration_compact",
    "format_bool_on_off",
    "format_number_compact",
    # colour statistics
    "unique_visible_rgb",
    "nearest_palette_indices",
    "min_distance_to_palette",
    "colour_usage_report",
    "pick_colour",
    # logging
    "enable_line_buffered_stdout",
    "key_value_pairs_to_string",
    "print_config_line",
    "print_banner",
    "log",
    "debug_log",
    "warn",
    "error",
    "captured_output",
]
