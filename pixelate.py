#!/usr/bin/env python3
"""
pixelate.py
Pixelate images into small, reduced-palette rasters with optional dithering and grids.

Usage:
  python pixelate.py INPUT [--outdir DIR] --width W [--height H] --colours K
                     [--method nearest|average|mode|salient] [--dither KERNEL] --debug

Pipeline:
  downsample : proportional blocks, one colour per block (--method)
  palette    : median cut, optionally keeping rare vivid colours and --force'd colours
  dither     : nearest mapping or error diffusion (--dither, --dither-strength)
  upscale    : nearest-neighbour back to the source size (or --display-scale)

Input:
  Any Pillow-readable image, or a folder of them. Fully transparent pixels are
  ignored when estimating colours.

Output:
  <stem>_pixel.png next to INPUT (or in --outdir). Optional <stem>_small.png,
  <stem>_grid.png and <stem>_gridonly.png.
"""

from __future__ import annotations

import argparse
import sys
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from pixquant.config import PipelineConfig, compute_match_size
from pixquant.constants import (
    DEFAULT_COLOURS,
    DEFAULT_DITHER_STRENGTH,
    DEFAULT_GRID_COLOUR,
    DEFAULT_GRID_THICKNESS,
    DEFAULT_LUMINANCE_THRESHOLD,
    DEFAULT_METHOD,
    DEFAULT_RESULT_WIDTH,
    DEFAULT_SATURATION_THRESHOLD,
    PIXELATION_METHODS,
)
from pixquant.core_types import BufferShapeError, PixelBuffer, RGBTuple, hex_to_rgb
from pixquant.dither import KERNEL_NAMES
from pixquant.grid import render_grid
from pixquant.image_io import ImageLoadError, load_image_buffer, save_buffer_png
from pixquant.pipeline import run_pipeline
from pixquant.utils import (
    captured_output,
    colour_usage_report,
    debug_log,
    enable_line_buffered_stdout,
    error,
    format_total_duration_compact,
    key_value_pairs_to_string,
    log,
    pick_colour,
    print_banner,
    print_config_line,
)

OUTPUT_SUFFIXES = ("_pixel", "_small", "_grid", "_gridonly")
IMAGE_EXTS = {".png", ".jpg", ".jpeg", ".webp", ".bmp", ".gif"}


# CLI args & small helpers


def _hex_colour(text: str) -> RGBTuple:
    try:
        return hex_to_rgb(text)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from None


def _unit_float(text: str) -> float:
    value = float(text)
    if not 0.0 <= value <= 1.0:
        raise argparse.ArgumentTypeError(f"expected a value in 0..1, got {text}")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pixelate",
        description="Pixelate image(s) into a small reduced-palette raster.",
    )
    parser.add_argument("src", type=Path, help="Input image or folder")
    parser.add_argument(
        "--outdir", type=Path, default=None, help="Output directory (optional)"
    )

    size = parser.add_argument_group("size")
    size.add_argument(
        "--width", type=int, default=None, help=f"Logical width (default {DEFAULT_RESULT_WIDTH})"
    )
    size.add_argument("--height", type=int, default=None, help="Logical height")
    size.add_argument(
        "--keep-aspect",
        action="store_true",
        help="Derive the missing side from the source aspect ratio.",
    )
    size.add_argument(
        "--keep-size",
        action="store_true",
        help="Do not change dimensions; quantise at the source size.",
    )
    size.add_argument(
        "--display-scale",
        type=int,
        default=None,
        help="Write the display raster at logical size x N instead of the source size.",
    )
    size.add_argument(
        "--method",
        choices=list(PIXELATION_METHODS),
        default=DEFAULT_METHOD,
        help="Block colour estimation.",
    )

    colour = parser.add_argument_group("colour")
    colour.add_argument(
        "--colours", type=int, default=DEFAULT_COLOURS, help="Palette size (0 = no reduction)"
    )
    colour.add_argument("--no-reduce", action="store_true", help="Skip palette reduction")
    colour.add_argument(
        "--dither",
        choices=list(KERNEL_NAMES),
        default="None",
        help="Error-diffusion kernel.",
    )
    colour.add_argument(
        "--dither-strength",
        type=_unit_float,
        default=DEFAULT_DITHER_STRENGTH,
        help="Share of quantisation error diffused (0..1).",
    )
    colour.add_argument(
        "--luminance-threshold",
        type=float,
        default=DEFAULT_LUMINANCE_THRESHOLD,
        help="Luminance (0..255) above which a colour counts as salient.",
    )
    colour.add_argument(
        "--saturation-threshold",
        type=_unit_float,
        default=DEFAULT_SATURATION_THRESHOLD,
        help="Saturation (0..1) above which a colour counts as salient.",
    )
    colour.add_argument(
        "--prefer-vibrant",
        action="store_true",
        help="Keep rare vivid colours, bias mapping toward them, boost saturation.",
    )
    colour.add_argument(
        "--preserve-salient",
        type=int,
        default=0,
        metavar="N",
        help="With --prefer-vibrant, force the top N rare salient colours into the palette.",
    )
    colour.add_argument(
        "--force",
        type=_hex_colour,
        action="append",
        default=[],
        metavar="HEX",
        help="Colour that must survive exactly (repeatable).",
    )
    colour.add_argument(
        "--pick",
        type=int,
        nargs=2,
        action="append",
        default=[],
        metavar=("X", "Y"),
        help="Force the source colour at pixel X Y (repeatable).",
    )

    grid = parser.add_argument_group("grid")
    grid.add_argument("--grid", action="store_true", help="Also write <stem>_grid.png")
    grid.add_argument(
        "--grid-only", action="store_true", help="Also write the bare grid layer"
    )
    grid.add_argument("--grid-thickness", type=int, default=DEFAULT_GRID_THICKNESS)
    grid.add_argument("--grid-colour", default=DEFAULT_GRID_COLOUR, help="Hex colour")
    grid.add_argument(
        "--grid-scale",
        type=int,
        default=None,
        help="Grid canvas = logical size x N (default: display size)",
    )

    parser.add_argument(
        "--save-small", action="store_true", help="Also write the logical-size raster"
    )
    parser.add_argument(
        "--jobs", type=int, default=1, help="Files processed in parallel"
    )
    parser.add_argument("--debug", action="store_true", help="Verbose pipeline details")
    return parser


def parse_cli_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)


def resolve_size(
    source: PixelBuffer, args: argparse.Namespace
) -> Tuple[int, int]:
    """Logical size from --width/--height/--keep-aspect, falling back to the default width."""
    width, height = args.width, args.height
    if width is not None and height is not None and not args.keep_aspect:
        return int(width), int(height)
    if width is None and height is not None:
        return compute_match_size(source.width, source.height, height=height)
    if width is None:
        width = DEFAULT_RESULT_WIDTH
    return compute_match_size(source.width, source.height, width=width)


def config_for(source: PixelBuffer, args: argparse.Namespace) -> PipelineConfig:
    """Map parsed CLI args onto a PipelineConfig for one source image."""
    forced: List[RGBTuple] = list(args.force)
    for x, y in args.pick:
        forced.append(pick_colour(source, int(x), int(y)))
    width, height = resolve_size(source, args)
    return PipelineConfig(
        result_width=width,
        result_height=height,
        change_dimensions=not args.keep_size,
        colours_count=int(args.colours),
        pixelation_method=args.method,
        luminance_threshold=float(args.luminance_threshold),
        saturation_threshold=float(args.saturation_threshold),
        enable_reduce_colours=not args.no_reduce,
        enable_dithering=args.dither != "None",
        dith_kern=args.dither,
        dith_delta=float(args.dither_strength),
        prefer_vibrant=bool(args.prefer_vibrant),
        preserve_salient_count=int(args.preserve_salient),
        forced_colours=tuple(forced),
    )


@dataclass(frozen=True)
class Outputs:
    display: Path
    small: Path
    grid: Path
    grid_only: Path


def output_paths(src_path: Path, outdir: Optional[Path]) -> Outputs:
    base = outdir if outdir is not None else src_path.parent
    stem = src_path.stem
    return Outputs(
        display=base / f"{stem}_pixel.png",
        small=base / f"{stem}_small.png",
        grid=base / f"{stem}_grid.png",
        grid_only=base / f"{stem}_gridonly.png",
    )


# Per-file processing


def process_single_image(src_path: Path, args: argparse.Namespace) -> bool:
    """
    Process a single image path end-to-end:
      load -> config -> pipeline -> save -> report.
    Returns False when the file was skipped; nothing is written in that case.
    """
    t_start = time.perf_counter()
    print_banner(src_path.name)

    try:
        source = load_image_buffer(src_path)
    except ImageLoadError as e:
        error(str(e))
        return False

    if args.debug:
        debug_log(
            key_value_pairs_to_string(
                [
                    ("Loaded", f"{source.width}x{source.height}"),
                    ("Opaque", int(source.opaque_mask().sum())),
                ]
            )
        )

    try:
        config = config_for(source, args).validate()
    except (ValueError, IndexError) as e:
        error(f"{src_path.name}: {e}")
        return False

    display_size = None
    if args.display_scale is not None:
        if args.display_scale < 1:
            error("--display-scale must be >= 1")
            return False
        if config.change_dimensions:
            display_size = (
                config.result_width * args.display_scale,
                config.result_height * args.display_scale,
            )
        else:
            display_size = (
                source.width * args.display_scale,
                source.height * args.display_scale,
            )

    print_config_line("pixelate", config.summary_pairs(), debug=args.debug)

    try:
        result = run_pipeline(source, config, display_size=display_size, debug=args.debug)
    except BufferShapeError as e:
        error(f"{src_path.name}: quantisation failed ({e}); output left untouched")
        return False

    outs = output_paths(src_path, args.outdir)
    grid_layers: List[Tuple[Path, PixelBuffer]] = []
    if args.grid or args.grid_only:
        small = result.small
        if args.grid_scale is not None:
            grid_w, grid_h = small.width * args.grid_scale, small.height * args.grid_scale
        else:
            grid_w, grid_h = result.display.size
        try:
            if args.grid:
                grid_layers.append(
                    (
                        outs.grid,
                        render_grid(
                            small,
                            grid_w,
                            grid_h,
                            thickness=args.grid_thickness,
                            colour=args.grid_colour,
                        ),
                    )
                )
            if args.grid_only:
                grid_layers.append(
                    (
                        outs.grid_only,
                        render_grid(
                            small,
                            grid_w,
                            grid_h,
                            thickness=args.grid_thickness,
                            colour=args.grid_colour,
                            include_image=False,
                        ),
                    )
                )
        except ValueError as e:
            error(f"{src_path.name}: grid skipped ({e})")
            grid_layers = []

    # Write only after every stage succeeded.
    written = [save_buffer_png(outs.display, result.display)]
    if args.save_small:
        written.append(save_buffer_png(outs.small, result.small))
    for path, layer in grid_layers:
        written.append(save_buffer_png(path, layer))

    log(
        f"Wrote {', '.join(p.name for p in written)} | "
        f"logical={result.small.width}x{result.small.height} | "
        f"palette_size={len(result.palette) if result.palette is not None else '-'}"
    )
    log("Colours used:")
    for hex_code, count in colour_usage_report(result.small):
        log(f"  {hex_code}: {count:,}")
    log(f"Total time {format_total_duration_compact(time.perf_counter() - t_start)}")
    return True


def _process_one_captured(path: Path, args: argparse.Namespace) -> Tuple[str, str, bool]:
    """
    Process a single file with its log output captured per thread.

    Useful for concurrent execution where output should be printed in order.
    """
    with captured_output() as (out_buf, err_buf):
        ok = process_single_image(path, args)
    return out_buf.getvalue(), err_buf.getvalue(), ok


def _is_output_artifact(path: Path) -> bool:
    return path.stem.endswith(OUTPUT_SUFFIXES)


def collect_inputs(src: Path) -> List[Path]:
    """Image files in a folder, sorted by name, skipping our own outputs."""
    files = [
        p
        for p in src.iterdir()
        if p.is_file() and p.suffix.lower() in IMAGE_EXTS and not _is_output_artifact(p)
    ]
    files.sort(key=lambda p: p.name.lower())
    return files


# Entry point


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    CLI entry point.

    Handles single file or folder. In folder mode supports --jobs parallelism
    while preserving readable output ordering. Returns the process exit code.
    """
    enable_line_buffered_stdout()
    args = parse_cli_args(argv)

    src: Path = args.src
    if not src.exists():
        error(f"not found: {src}")
        return 2
    if args.outdir is not None:
        args.outdir.mkdir(parents=True, exist_ok=True)

    if not src.is_dir():
        return 0 if process_single_image(src, args) else 1

    files = collect_inputs(src)
    if args.debug:
        debug_log(key_value_pairs_to_string([("Images", len(files)), ("Jobs", args.jobs)]))

    if args.jobs <= 1:
        results = [process_single_image(p, args) for p in files]
    else:
        with ThreadPoolExecutor(max_workers=args.jobs) as ex:
            captured = list(ex.map(lambda p: _process_one_captured(p, args), files))
        results = []
        for out_text, err_text, ok in captured:
            print(out_text, end="", flush=True)
            if err_text:
                print(err_text, end="", file=sys.stderr, flush=True)
            results.append(ok)
    return 0 if all(results) else 1


if __name__ == "__main__":
    sys.exit(main())
