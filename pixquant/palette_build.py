# pixquant/palette_build.py
from __future__ import annotations

"""
Palette construction: median cut with salience preservation.

Exports:
  PaletteOptions
  sample_colours(uniques, counts, cap) -> (S,3) int16 samples
  median_cut(samples, num_colours) -> list of boxes
  box_means(boxes) -> Palette
  salient_candidates(uniques, counts, thresholds, rare_share) -> [(rgb, count), ...]
  build_palette(buffer, num_colours, options=None, debug=False) -> Palette

Pipeline inside build_palette:
  1) histogram of opaque pixels (early outs for N <= 0, no pixels, few colours)
  2) frequency-proportional, capped sampling
  3) median cut over owned sample arrays
  4) preservation of forced and rare salient colours
  5) optional saturation boost
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Set, Tuple

import numpy as np

from .colour_convert import boost_saturation, luminance, salient_mask, saturation
from .constants import (
    DULL_SLOT_PENALTY,
    PRESERVE_DISTANCE,
    RARE_SHARE,
    SAMPLE_CAP,
    SATURATION_BOOST,
)
from .core_types import (
    BLACK,
    WHITE,
    Palette,
    PixelBuffer,
    RGBTuple,
    Thresholds,
    coerce_to_rgb_tuple,
    palette_to_array,
    round_half_up,
)
from .utils import (
    debug_log,
    key_value_pairs_to_string,
    min_distance_to_palette,
    nearest_palette_indices,
    unique_visible_rgb,
    warn,
)


@dataclass(frozen=True)
class PaletteOptions:
    """Knobs for build_palette. Defaults come from constants.py."""

    thresholds: Thresholds = field(default_factory=Thresholds)
    prefer_vibrant: bool = False
    preserve_salient_count: int = 0
    forced_colours: Tuple[RGBTuple, ...] = ()
    sample_cap: int = SAMPLE_CAP
    preserve_distance: float = PRESERVE_DISTANCE
    rare_share: float = RARE_SHARE
    saturation_boost: float = SATURATION_BOOST
    dull_slot_penalty: float = DULL_SLOT_PENALTY


# Sampling / median cut


def sample_colours(uniques: np.ndarray, counts: np.ndarray, cap: int = SAMPLE_CAP) -> np.ndarray:
    """
    Working sample set for median cut.

    Each distinct colour is repeated in proportion to its count relative to
    the most frequent colour: ceil(count * cap / max_count), at least once and
    at most `cap` times. Cost is therefore bounded by uniques * cap regardless
    of image size.

    Scaling by the most frequent colour rather than by the share of all
    opaque pixels keeps the same relative weights but gives the dominant
    colour the full cap; ceil and clip then round differently than a
    share-of-total scheme would.
    """
    if uniques.shape[0] == 0:
        return np.zeros((0, 3), dtype=np.int16)
    cap = max(1, int(cap))
    counts_f = counts.astype(np.float64)
    reps = np.ceil(counts_f * cap / float(counts_f.max()))
    reps = np.clip(reps, 1, cap).astype(np.int64)
    return np.repeat(uniques.astype(np.int16), reps, axis=0)


def _box_spread(box: np.ndarray) -> Tuple[int, int]:
    """(largest channel range, channel index) of a box."""
    spans = box.max(axis=0).astype(np.int64) - box.min(axis=0).astype(np.int64)
    channel = int(np.argmax(spans))
    return int(spans[channel]), channel


def median_cut(samples: np.ndarray, num_colours: int) -> List[np.ndarray]:
    """
    Split boxes until there are num_colours of them or none can be split.

    A box is splittable when it holds more than one sample and its colours are
    not all identical. The widest box is sorted (stable) along its widest
    channel and cut at the median index; the two halves replace the parent in
    place. An empty half ends the loop.
    """
    boxes: List[np.ndarray] = [np.array(samples, copy=True)]
    while len(boxes) < num_colours:
        best = -1
        best_range = 0
        best_channel = 0
        for i, box in enumerate(boxes):
            if box.shape[0] <= 1:
                continue
            spread, channel = _box_spread(box)
            if spread > best_range:
                best, best_range, best_channel = i, spread, channel
        if best < 0:
            break

        box = boxes[best]
        ordered = box[np.argsort(box[:, best_channel], kind="stable")]
        mid = ordered.shape[0] // 2
        lo = ordered[:mid].copy()
        hi = ordered[mid:].copy()
        if lo.shape[0] == 0 or hi.shape[0] == 0:
            break
        boxes[best : best + 1] = [lo, hi]
    return boxes


def _dedupe(colours: Sequence[RGBTuple]) -> Palette:
    seen: Set[RGBTuple] = set()
    out: Palette = []
    for c in colours:
        if c not in seen:
            seen.add(c)
            out.append(c)
    return out


def box_means(boxes: Sequence[np.ndarray]) -> Palette:
    """Rounded per-channel mean of each non-empty box, in box order, without duplicates."""
    means = [
        coerce_to_rgb_tuple(round_half_up(box.astype(np.float64).mean(axis=0)))
        for box in boxes
        if box.shape[0] > 0
    ]
    return _dedupe(means)


# Preservation


def salient_candidates(
    uniques: np.ndarray,
    counts: np.ndarray,
    thresholds: Thresholds,
    rare_share: float = RARE_SHARE,
) -> List[Tuple[RGBTuple, int]]:
    """
    Rare-and-salient colours: bright or saturated past the thresholds and
    covering at most `rare_share` of opaque pixels. Sorted by
    luminance + ln(1 + count), highest first.
    """
    if uniques.shape[0] == 0:
        return []
    total = float(counts.sum())
    keep = salient_mask(uniques, thresholds.luminance, thresholds.saturation)
    keep &= counts.astype(np.float64) <= rare_share * total
    idx = np.nonzero(keep)[0]
    if idx.size == 0:
        return []
    score = luminance(uniques[idx]) + np.log1p(counts[idx].astype(np.float64))
    order = idx[np.argsort(-score, kind="stable")]
    return [(coerce_to_rgb_tuple(uniques[i]), int(counts[i])) for i in order]


def _assigned_counts(palette: Sequence[RGBTuple], uniques: np.ndarray, counts: np.ndarray) -> np.ndarray:
    """Opaque pixels whose nearest palette entry is each slot."""
    pal = palette_to_array(palette)
    nearest = nearest_palette_indices(uniques, pal)
    return np.bincount(nearest, weights=counts.astype(np.float64), minlength=pal.shape[0])


def _slot_importance(
    palette: Sequence[RGBTuple],
    protected: Sequence[bool],
    uniques: np.ndarray,
    counts: np.ndarray,
    dull_penalty: float,
) -> np.ndarray:
    """
    Assigned pixel count per slot minus a penalty that grows as the slot gets
    darker and less saturated. Protected slots are +inf.
    """
    pal = palette_to_array(palette)
    importance = _assigned_counts(palette, uniques, counts)
    dullness = (1.0 - luminance(pal) / 255.0) * (1.0 - saturation(pal))
    importance = importance - float(dull_penalty) * float(counts.sum()) * dullness
    importance[np.asarray(protected, dtype=bool)] = np.inf
    return importance


def _preserve(
    palette: Palette,
    protected: List[bool],
    preserve_list: Sequence[RGBTuple],
    num_colours: int,
    uniques: np.ndarray,
    counts: np.ndarray,
    opts: PaletteOptions,
    debug: bool,
) -> None:
    """Place each preserve-list colour into the palette unless it is already represented."""
    for colour in preserve_list:
        if min_distance_to_palette(colour, palette) <= opts.preserve_distance:
            continue
        if len(palette) < num_colours:
            palette.append(colour)
            protected.append(True)
            continue
        importance = _slot_importance(palette, protected, uniques, counts, opts.dull_slot_penalty)
        slot = int(np.argmin(importance))
        if not np.isfinite(importance[slot]):
            warn(f"no free palette slot for preserved colour {colour}; dropped")
            continue
        if debug:
            debug_log(f"preserve {colour} -> slot {slot} (was {palette[slot]})")
        palette[slot] = colour
        protected[slot] = True


def _absorb_candidates(
    palette: Palette,
    protected: List[bool],
    candidates: Sequence[Tuple[RGBTuple, int]],
    uniques: np.ndarray,
    counts: np.ndarray,
    opts: PaletteOptions,
    debug: bool,
) -> None:
    """
    Every remaining rare salient colour not yet represented takes over the
    unprotected slot with the fewest assigned pixels. The slot then counts
    as standing for the candidate's own pixels.
    """
    if not candidates or not palette:
        return
    importance = _assigned_counts(palette, uniques, counts)
    importance[np.asarray(protected, dtype=bool)] = np.inf
    for colour, count in candidates:
        if min_distance_to_palette(colour, palette) <= opts.preserve_distance:
            continue
        slot = int(np.argmin(importance))
        if not np.isfinite(importance[slot]):
            break
        if debug:
            debug_log(f"salient {colour} ({count}px) -> slot {slot} (was {palette[slot]})")
        palette[slot] = colour
        importance[slot] = float(count)


def build_palette(
    buffer: PixelBuffer,
    num_colours: int,
    options: Optional[PaletteOptions] = None,
    *,
    debug: bool = False,
) -> Palette:
    """
    Build a palette of at most num_colours distinct colours for buffer.

    Returns [(0,0,0)] for num_colours <= 0 and [(255,255,255)] when no pixel
    is opaque. When the image already has few enough distinct colours they
    are returned as-is.
    """
    opts = options if options is not None else PaletteOptions()
    if num_colours <= 0:
        return [BLACK]

    uniques, counts = unique_visible_rgb(buffer)
    if uniques.shape[0] == 0:
        return [WHITE]
    if uniques.shape[0] <= num_colours:
        return [coerce_to_rgb_tuple(row) for row in uniques]

    samples = sample_colours(uniques, counts, opts.sample_cap)
    boxes = median_cut(samples, num_colours)
    palette = box_means(boxes)[:num_colours]
    protected = [False] * len(palette)

    if debug:
        debug_log(
            key_value_pairs_to_string(
                [
                    ("Uniques", int(uniques.shape[0])),
                    ("Samples", int(samples.shape[0])),
                    ("Boxes", len(boxes)),
                    ("Median-cut colours", len(palette)),
                ]
            )
        )

    forced = _dedupe([coerce_to_rgb_tuple(c) for c in opts.forced_colours])
    if forced or opts.prefer_vibrant:
        candidates = salient_candidates(uniques, counts, opts.thresholds, opts.rare_share)
        preserve_list: List[RGBTuple] = list(forced)
        top_n = max(0, int(opts.preserve_salient_count)) if opts.prefer_vibrant else 0
        preserve_list.extend(c for c, _n in candidates[:top_n])
        _preserve(palette, protected, preserve_list, num_colours, uniques, counts, opts, debug)

        _absorb_candidates(palette, protected, candidates[top_n:], uniques, counts, opts, debug)

        if opts.prefer_vibrant:
            forced_set = set(forced)
            palette = [
                c if c in forced_set else boost_saturation(c, opts.saturation_boost)
                for c in palette
            ]
        if debug:
            debug_log(
                key_value_pairs_to_string(
                    [
                        ("Candidates", len(candidates)),
                        ("Forced", len(forced)),
                        ("Protected", sum(protected)),
                    ]
                )
            )

    return _dedupe(palette)[:num_colours]


__all__ = [
    "PaletteOptions",
    "sample_colours",
    "median_cut",
    "box_means",
    "salient_candidates",
    "build_palette",
]
