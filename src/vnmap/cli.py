"""Command-line entry points for the Vietnam map figures."""

from __future__ import annotations

import argparse
import logging
from dataclasses import replace
from pathlib import Path

from vnmap.config import MapConfig
from vnmap.datasets import fetch_boundary, load_boundary, site_table
from vnmap.layers import (
    background_frame,
    fetch_basemap,
    fetch_elevation_raster,
    mask_raster,
    terrain_frame,
)
from vnmap.plotting import plot_elevation_map, plot_terrain_map


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--data-dir", type=Path, default=Path("data"))
    common.add_argument("--out-dir", type=Path, default=Path(MapConfig.figures_dir))
    common.add_argument(
        "--boundary",
        type=Path,
        default=None,
        help="Country boundary shapefile. Downloaded from DIVA-GIS when omitted and missing.",
    )
    common.add_argument("--offline", action="store_true", help="Never download the boundary.")
    common.add_argument("-v", "--verbose", action="store_true")

    parser = argparse.ArgumentParser(description="Render terrain and elevation maps of Vietnam")
    sub = parser.add_subparsers(dest="figure", required=True)

    terrain = sub.add_parser("terrain", parents=[common], help="Terrain basemap with the country highlighted.")
    terrain.add_argument("--zoom", type=int, default=MapConfig.terrain_zoom)
    terrain.add_argument("--maptype", type=str, default=MapConfig.maptype)
    terrain.add_argument("--api-key", type=str, default=None, help="Stadia Maps key (or STADIA_API_KEY).")

    elevation = sub.add_parser("elevation", parents=[common], help="Coloured elevation inside the country outline.")
    elevation.add_argument("--zoom", type=int, default=MapConfig.elevation_zoom)

    return parser.parse_args(argv)


def _resolve_boundary(args: argparse.Namespace, config: MapConfig) -> Path:
    if args.boundary is not None:
        return args.boundary
    default = Path(config.boundary_path)
    if default.exists():
        return default
    return fetch_boundary(args.data_dir, offline=args.offline)


def run_terrain(args: argparse.Namespace, config: MapConfig) -> list[Path]:
    config = replace(config, terrain_zoom=args.zoom, maptype=args.maptype)
    basemap = fetch_basemap(config, api_key=args.api_key)
    boundary = load_boundary(_resolve_boundary(args, config))
    return plot_terrain_map(
        basemap=basemap,
        boundary=boundary,
        sites=site_table(),
        config=config,
        out_stem=Path(config.figures_dir) / "map_terrain",
    )


def run_elevation(args: argparse.Namespace, config: MapConfig) -> list[Path]:
    config = replace(config, elevation_zoom=args.zoom)
    raster = fetch_elevation_raster(config)
    boundary = load_boundary(_resolve_boundary(args, config))
    masked = mask_raster(raster, boundary)
    return plot_elevation_map(
        background=background_frame(raster),
        terrain=terrain_frame(masked),
        sites=site_table(),
        config=config,
        out_stem=Path(config.figures_dir) / "map_elevation",
    )


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    config = MapConfig(figures_dir=str(args.out_dir))
    runners = {"terrain": run_terrain, "elevation": run_elevation}
    saved = runners[args.figure](args, config)

    print(f"Figure: {args.figure}")
    for path in saved:
        print(f"Saved: {path}")


if __name__ == "__main__":
    main()
