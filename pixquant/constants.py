# pixquant/constants.py
"""
Tunables used across the project.

- Pipeline defaults (DEFAULT_*)
- Salience thresholds
- Palette builder heuristics (sample cap, preservation distances, rarity)
- Ditherer heuristics (forced-colour radius, vibrant bias)

All of these are defaults only. PipelineConfig / PaletteOptions /
DitherOptions accept overrides.
"""
from __future__ import annotations

from typing import Tuple

# =================
# Pipeline defaults
# =================
DEFAULT_RESULT_WIDTH: int = 32
DEFAULT_RESULT_HEIGHT: int = 32
DEFAULT_COLOURS: int = 16
DEFAULT_METHOD: str = "nearest"
DEFAULT_KERNEL: str = "None"
DEFAULT_DITHER_STRENGTH: float = 0.5

PIXELATION_METHODS: Tuple[str, ...] = ("nearest", "average", "mode", "salient")

# =========
# Salience
# =========
# Luminance is Rec. 709 weighted, 0..255.
LUMA_R: float = 0.2126
LUMA_G: float = 0.7152
LUMA_B: float = 0.0722

DEFAULT_LUMINANCE_THRESHOLD: float = 200.0
DEFAULT_SATURATION_THRESHOLD: float = 0.6

# ================
# Palette builder
# ================
# Max repetitions of one distinct colour in the median-cut sample set.
SAMPLE_CAP: int = 40

# A colour closer than this (RGB Euclidean) to a palette entry counts as represented.
PRESERVE_DISTANCE: float = 24.0

# Candidates for preservation must cover at most this share of opaque pixels.
RARE_SHARE: float = 0.05

# Saturation multiplier applied in HSL when prefer_vibrant is on.
SATURATION_BOOST: float = 1.25

# Dark / desaturated slots lose up to this share of the opaque pixel count
# from their importance, so they are replaced first.
DULL_SLOT_PENALTY: float = 0.05

# ========
# Ditherer
# ========
# Pixels this close to a forced colour are written as that colour.
FORCED_DISTANCE: float = 48.0

# Distance multiplier between a vibrant source pixel and a vibrant palette entry.
VIBRANT_DISTANCE_BIAS: float = 0.75

# ====
# Grid
# ====
DEFAULT_GRID_THICKNESS: int = 1
DEFAULT_GRID_COLOUR: str = "#000000"
