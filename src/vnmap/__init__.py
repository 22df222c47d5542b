"""Top-level package for vnmap."""

__version__ = "0.1.0"

from vnmap.config import VIETNAM_BBOX, BoundingBox, MapConfig, figure_size_inches, resolve_api_key
from vnmap.datasets import (
    BOUNDARY_URL,
    SITES,
    fetch_boundary,
    island_sites,
    load_boundary,
    site_table,
)
from vnmap.layers import (
    background_frame,
    fetch_basemap,
    fetch_elevation_raster,
    frame_to_grid,
    mask_raster,
    raster_to_frame,
    rescale,
    terrain_frame,
)
from vnmap.plotting import plot_elevation_map, plot_terrain_map, save_figure, scale_alpha
from vnmap.tiles import (
    TILE_SOURCES,
    count_tiles,
    decode_terrarium,
    fetch_mosaic,
    resolve_provider,
    to_geographic_grid,
)

__all__ = [
    "BoundingBox",
    "MapConfig",
    "VIETNAM_BBOX",
    "figure_size_inches",
    "resolve_api_key",
    "BOUNDARY_URL",
    "SITES",
    "fetch_boundary",
    "load_boundary",
    "site_table",
    "island_sites",
    "TILE_SOURCES",
    "resolve_provider",
    "count_tiles",
    "fetch_mosaic",
    "to_geographic_grid",
    "decode_terrarium",
    "fetch_basemap",
    "fetch_elevation_raster",
    "mask_raster",
    "rescale",
    "raster_to_frame",
    "background_frame",
    "terrain_frame",
    "frame_to_grid",
    "plot_terrain_map",
    "plot_elevation_map",
    "save_figure",
    "scale_alpha",
]
