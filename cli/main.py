"""CLI entry point for river terrain generation."""

from __future__ import annotations

import argparse
from dataclasses import replace
from datetime import datetime, timezone
import logging
from pathlib import Path
import platform
import shutil
import tempfile
import time

import numpy as np
import structlog

from riverscape.analysis import analyze_terrain
from riverscape.config import DEFAULT_HEIGHT, DEFAULT_WIDTH, DEFAULT_WORLD_EXTENT, ConfigError, GeneratorConfig
from riverscape.derive import (
    analysis_rgb,
    height_preview_u16,
    height_preview_u8,
    mask_u8,
    river_mask_rgb,
    terrain_type_map,
    terrain_type_rgb,
    unit_preview_u8,
    zones_rgb,
)
from riverscape.grid import evaluate_grid
from riverscape.io import OutputExistsError, prepare_run_dir, publish_staged, save_raster, write_height_npy, write_json
from riverscape.metrics import connected_components_metrics
from riverscape.placement import find_placement_zones, summarize_zones


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Deterministic river valley terrain generator")
    parser.add_argument("--seed", type=int, default=42, help="Root noise seed")
    parser.add_argument("--out", default="out", help="Output root directory")
    parser.add_argument("--w", type=int, default=DEFAULT_WIDTH, help="Grid width in cells")
    parser.add_argument("--h", type=int, default=DEFAULT_HEIGHT, help="Grid height in cells")
    parser.add_argument(
        "--extent",
        type=float,
        default=DEFAULT_WORLD_EXTENT,
        help="World units spanned by the grid width",
    )
    parser.add_argument("--river-width", type=float, default=None, help="Override river width")
    parser.add_argument("--river-depth", type=float, default=None, help="Override river depth")
    parser.add_argument(
        "--river-direction",
        type=float,
        nargs=2,
        metavar=("DX", "DZ"),
        default=None,
        help="Override river flow direction",
    )
    parser.add_argument("--top-zones", type=int, default=20, help="Number of best zones listed in metadata")
    parser.add_argument(
        "--placement",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Run terrain analysis and zone placement",
    )
    parser.add_argument("--overwrite", action="store_true", help="Overwrite files in existing output directory")
    parser.add_argument(
        "--json",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Write metadata JSON files",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        help="Structured log level",
    )
    return parser


def configure_logging(level: str) -> None:
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, level)),
        cache_logger_on_first_use=False,
    )


def build_config(args: argparse.Namespace) -> GeneratorConfig:
    config = GeneratorConfig(seed=args.seed)
    overrides = {}
    if args.river_width is not None:
        overrides["river_width"] = args.river_width
    if args.river_depth is not None:
        overrides["river_depth"] = args.river_depth
    if args.river_direction is not None:
        overrides["river_direction"] = tuple(args.river_direction)
    if overrides:
        config = replace(config, river=replace(config.river, **overrides))
    return config


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    if args.w <= 0 or args.h <= 0:
        parser.error("--w and --h must be positive")
    if args.extent <= 0:
        parser.error("--extent must be positive")

    try:
        config = build_config(args)
    except ConfigError as exc:
        parser.error(str(exc))

    generation_start = time.perf_counter()
    grid = evaluate_grid(config, args.w, args.h, args.extent)
    generation_seconds = time.perf_counter() - generation_start

    height = grid.height.values
    water_metrics = connected_components_metrics(grid.water_mask, connectivity=8)

    rasters: dict[str, np.ndarray] = {
        "height_16.png": height_preview_u16(height),
        "heightmap.png": height_preview_u8(height),
        "water_mask.png": mask_u8(grid.water_mask),
        "river_mask.png": river_mask_rgb(grid.carve, config.river.river_depth),
    }

    zones = []
    analysis_seconds = 0.0
    if args.placement:
        analysis_start = time.perf_counter()
        analysis = analyze_terrain(height, grid.water_mask, config.placement)
        zones = find_placement_zones(analysis, config.placement)
        analysis_seconds = time.perf_counter() - analysis_start

        classes = terrain_type_map(
            height,
            analysis.slope_map,
            grid.water_mask,
            amplitude=config.terrain.terrain_amplitude,
        )
        rasters["slope.png"] = unit_preview_u8(analysis.slope_map)
        rasters["analysis.png"] = analysis_rgb(analysis)
        rasters["analysis_zones.png"] = zones_rgb(height.shape, zones, config.placement)
        rasters["terrain_types.png"] = terrain_type_rgb(classes)

    try:
        out_dir = prepare_run_dir(args.out, config.seed, args.w, args.h, overwrite=args.overwrite)
    except OutputExistsError as exc:
        parser.error(str(exc))

    stage_dir = Path(tempfile.mkdtemp(prefix=".staging-", dir=str(out_dir.parent)))
    try:
        write_height_npy(stage_dir / "height.npy", height)
        for name, raster in rasters.items():
            save_raster(stage_dir / name, raster)
        if args.json:
            deterministic_meta = {
                "seed": config.seed,
                "width": args.w,
                "height": args.h,
                "world_extent": args.extent,
                "cell_size": grid.height.cell_size,
                "config": config.to_dict(),
                "height_range": [float(np.min(height)), float(np.max(height))],
                "water": {
                    "num_components": water_metrics.num_components,
                    "largest_component_area": water_metrics.largest_component_area,
                    "total_pixels": water_metrics.total_pixels,
                    "largest_ratio": water_metrics.largest_ratio,
                    "fraction": water_metrics.fraction,
                },
                "placement": {
                    "enabled": args.placement,
                    "zone_counts": summarize_zones(zones),
                    "top_zones": [
                        {
                            "row": zone.row,
                            "col": zone.col,
                            "zone_type": zone.zone_type.value,
                            "suitability_score": zone.suitability_score,
                        }
                        for zone in zones[: max(args.top_zones, 0)]
                    ],
                },
            }
            meta = {
                **deterministic_meta,
                "generated_at_utc": datetime.now(timezone.utc).isoformat(),
                "generation_seconds": generation_seconds,
                "analysis_seconds": analysis_seconds,
                "python_version": platform.python_version(),
                "numpy_version": np.__version__,
            }
            write_json(stage_dir / "deterministic_meta.json", deterministic_meta)
            write_json(stage_dir / "meta.json", meta)

        publish_staged(stage_dir, out_dir, out_root=Path(args.out))
    finally:
        shutil.rmtree(stage_dir, ignore_errors=True)

    print(f"Generated terrain: {out_dir}")
    print(
        f"Height range {float(np.min(height)):.2f} to {float(np.max(height)):.2f}; "
        f"water cells {water_metrics.total_pixels} in {water_metrics.num_components} component(s)"
    )
    if args.placement:
        counts = summarize_zones(zones)
        print(
            "Placement zones: "
            f"total={len(zones)}, "
            f"building={counts['building']}, tank={counts['tank']}, vehicle={counts['vehicle']}"
        )
    print(f"Generation time: {generation_seconds:.3f} s ({args.w}x{args.h}), analysis {analysis_seconds:.3f} s")
    file_count = sum(1 for child in out_dir.iterdir() if child.is_file())
    print(f"Output files: {file_count}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
