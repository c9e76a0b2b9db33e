# pixquant/config.py
from __future__ import annotations

"""
Pipeline configuration.

Exports:
  PipelineConfig                          # every user-facing setting, with defaults
  compute_match_size(orig_w, orig_h, width=None, height=None) -> (w, h)
"""

from dataclasses import dataclass, field, replace
from typing import Any, Optional, Sequence, Tuple

from .constants import (
    DEFAULT_COLOURS,
    DEFAULT_DITHER_STRENGTH,
    DEFAULT_KERNEL,
    DEFAULT_LUMINANCE_THRESHOLD,
    DEFAULT_METHOD,
    DEFAULT_RESULT_HEIGHT,
    DEFAULT_RESULT_WIDTH,
    DEFAULT_SATURATION_THRESHOLD,
    DULL_SLOT_PENALTY,
    FORCED_DISTANCE,
    PIXELATION_METHODS,
    PRESERVE_DISTANCE,
    RARE_SHARE,
    SAMPLE_CAP,
    SATURATION_BOOST,
    VIBRANT_DISTANCE_BIAS,
)
from .core_types import RGBTuple, Thresholds, coerce_to_rgb_tuple, round_half_up
from .dither import DitherOptions, normalise_kernel_name
from .palette_build import PaletteOptions


@dataclass(frozen=True)
class PipelineConfig:
    """
    Settings for one pipeline run.

    The first block mirrors the interactive controls; the second block holds
    heuristic constants that rarely need changing.
    """

    result_width: int = DEFAULT_RESULT_WIDTH
    result_height: int = DEFAULT_RESULT_HEIGHT
    change_dimensions: bool = True
    colours_count: int = DEFAULT_COLOURS
    pixelation_method: str = DEFAULT_METHOD
    luminance_threshold: float = DEFAULT_LUMINANCE_THRESHOLD
    saturation_threshold: float = DEFAULT_SATURATION_THRESHOLD
    enable_reduce_colours: bool = True
    enable_dithering: bool = False
    dith_kern: Optional[str] = DEFAULT_KERNEL
    dith_delta: float = DEFAULT_DITHER_STRENGTH
    prefer_vibrant: bool = False
    preserve_salient_count: int = 0
    forced_colours: Tuple[RGBTuple, ...] = field(default_factory=tuple)

    sample_cap: int = SAMPLE_CAP
    preserve_distance: float = PRESERVE_DISTANCE
    forced_distance: float = FORCED_DISTANCE
    rare_share: float = RARE_SHARE
    saturation_boost: float = SATURATION_BOOST
    vibrant_bias: float = VIBRANT_DISTANCE_BIAS
    dull_slot_penalty: float = DULL_SLOT_PENALTY

    def __post_init__(self) -> None:
        # Normalise user-picked colours to plain int tuples.
        colours = tuple(coerce_to_rgb_tuple(c) for c in self.forced_colours)
        object.__setattr__(self, "forced_colours", colours)

    def validate(self) -> "PipelineConfig":
        """Raise ValueError on out-of-range settings; returns self for chaining."""
        if self.change_dimensions and (self.result_width < 1 or self.result_height < 1):
            raise ValueError(
                f"result size must be at least 1x1, got {self.result_width}x{self.result_height}"
            )
        if self.colours_count < 0:
            raise ValueError(f"colours_count must be >= 0, got {self.colours_count}")
        if self.pixelation_method not in PIXELATION_METHODS:
            raise ValueError(
                f"pixelation_method must be one of {list(PIXELATION_METHODS)}, "
                f"got {self.pixelation_method!r}"
            )
        if not 0.0 <= self.luminance_threshold <= 255.0:
            raise ValueError(f"luminance_threshold must be in 0..255, got {self.luminance_threshold}")
        if not 0.0 <= self.saturation_threshold <= 1.0:
            raise ValueError(f"saturation_threshold must be in 0..1, got {self.saturation_threshold}")
        if not 0.0 <= self.dith_delta <= 1.0:
            raise ValueError(f"dith_delta must be in 0..1, got {self.dith_delta}")
        if self.preserve_salient_count < 0:
            raise ValueError(
                f"preserve_salient_count must be >= 0, got {self.preserve_salient_count}"
            )
        if self.sample_cap < 1:
            raise ValueError(f"sample_cap must be >= 1, got {self.sample_cap}")
        normalise_kernel_name(self.dith_kern)
        return self

    def with_overrides(self, **changes: Any) -> "PipelineConfig":
        return replace(self, **changes)

    @property
    def kernel(self) -> Optional[str]:
        """Effective kernel: None unless dithering is enabled."""
        if not self.enable_dithering:
            return None
        return normalise_kernel_name(self.dith_kern)

    def thresholds(self) -> Thresholds:
        return Thresholds(float(self.luminance_threshold), float(self.saturation_threshold))

    def palette_options(self) -> PaletteOptions:
        return PaletteOptions(
            thresholds=self.thresholds(),
            prefer_vibrant=self.prefer_vibrant,
            preserve_salient_count=self.preserve_salient_count,
            forced_colours=self.forced_colours,
            sample_cap=self.sample_cap,
            preserve_distance=self.preserve_distance,
            rare_share=self.rare_share,
            saturation_boost=self.saturation_boost,
            dull_slot_penalty=self.dull_slot_penalty,
        )

    def dither_options(self) -> DitherOptions:
        return DitherOptions(
            kernel=self.kernel,
            strength=self.dith_delta,
            forced_colours=self.forced_colours,
            prefer_vibrant=self.prefer_vibrant,
            thresholds=self.thresholds(),
            forced_distance=self.forced_distance,
            vibrant_bias=self.vibrant_bias,
        )

    def summary_pairs(self) -> Sequence[Tuple[str, Any]]:
        """(name, value) pairs for print_config_line."""
        return [
            ("Size", f"{self.result_width}x{self.result_height}" if self.change_dimensions else "source"),
            ("Method", self.pixelation_method),
            ("Reduce", self.enable_reduce_colours),
            ("Colours", self.colours_count),
            ("Kernel", self.kernel or "None"),
            ("Strength", float(self.dith_delta)),
            ("Vibrant", self.prefer_vibrant),
            ("Forced", len(self.forced_colours)),
        ]


def compute_match_size(
    orig_w: int,
    orig_h: int,
    width: Optional[int] = None,
    height: Optional[int] = None,
) -> Tuple[int, int]:
    """
    Fill in the missing side so the result keeps the source aspect ratio.

    width wins when both are given. With neither, the source size is returned.
    """
    if orig_w <= 0 or orig_h <= 0:
        raise ValueError(f"source size must be positive, got {orig_w}x{orig_h}")
    aspect = orig_h / orig_w
    if width is not None:
        return int(width), max(1, round_half_up(width * aspect))
    if height is not None:
        return max(1, round_half_up(height / aspect)), int(height)
    return orig_w, orig_h


__all__ = ["PipelineConfig", "compute_match_size"]
