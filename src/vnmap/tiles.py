"""Slippy-map tile access for basemap imagery and elevation."""

from __future__ import annotations

import logging
from pathlib import Path

import contextily as ctx
import numpy as np
import xarray as xr
import xyzservices
from xyzservices import providers

from vnmap.config import BoundingBox

logger = logging.getLogger(__name__)

GEOGRAPHIC_CRS = "EPSG:4326"

TERRARIUM = xyzservices.TileProvider(
    name="AWS.Terrarium",
    url="https://s3.amazonaws.com/elevation-tiles-prod/terrarium/{z}/{x}/{y}.png",
    attribution="Terrain Tiles: Mapzen, AWS Open Data",
    max_zoom=15,
)

TILE_SOURCES: dict[str, xyzservices.TileProvider] = {
    "stamen_terrain_background": providers.Stadia.StamenTerrainBackground,
    "stamen_terrain": providers.Stadia.StamenTerrain,
    "stamen_toner_lite": providers.Stadia.StamenTonerLite,
    "stamen_watercolor": providers.Stadia.StamenWatercolor,
    "terrarium": TERRARIUM,
}


def resolve_provider(source: str, api_key: str | None = None) -> xyzservices.TileProvider:
    """Look up a tile provider, filling in the API key where one is required."""
    if source not in TILE_SOURCES:
        supported = ", ".join(sorted(TILE_SOURCES))
        raise ValueError(f"Unknown tile source '{source}'. Supported: {supported}.")
    provider = TILE_SOURCES[source]
    if provider.requires_token():
        if not api_key:
            raise ValueError(
                f"Tile source '{source}' requires an API key; pass --api-key or set STADIA_API_KEY."
            )
        provider = provider(api_key=api_key)
    return provider


def count_tiles(bbox: BoundingBox, zoom: int) -> int:
    """Number of tiles covering ``bbox`` at ``zoom``."""
    west, south, east, north = bbox.as_tuple()
    return ctx.howmany(west, south, east, north, zoom, verbose=False, ll=True)


def fetch_mosaic(
    source: str,
    bbox: BoundingBox,
    zoom: int,
    *,
    api_key: str | None = None,
    cache_dir: Path | str | None = None,
    max_tiles: int = 256,
) -> tuple[np.ndarray, tuple[float, float, float, float]]:
    """Stitch the tiles covering ``bbox`` into one image.

    Returns ``(image, extent)`` in Web Mercator, as :func:`contextily.bounds2img` does.
    """
    provider = resolve_provider(source, api_key)
    n_tiles = count_tiles(bbox, zoom)
    if n_tiles > max_tiles:
        raise ValueError(
            f"Request needs {n_tiles} tiles at zoom {zoom} (limit {max_tiles}); use a lower zoom level."
        )

    if cache_dir is not None:
        Path(cache_dir).mkdir(parents=True, exist_ok=True)
        ctx.set_cache_dir(str(cache_dir))
    logger.info("Fetching %d '%s' tiles at zoom %d", n_tiles, source, zoom)

    west, south, east, north = bbox.as_tuple()
    image, extent = ctx.bounds2img(
        west,
        south,
        east,
        north,
        zoom=zoom,
        source=provider,
        ll=True,
        use_cache=cache_dir is not None,
    )
    return image, extent


def to_geographic_grid(
    image: np.ndarray,
    extent: tuple[float, float, float, float],
    bbox: BoundingBox,
    name: str | None = None,
) -> xr.DataArray:
    """Warp a Web Mercator image to EPSG:4326 and crop it to ``bbox``.

    A single-band image becomes a ``(lat, lon)`` array, otherwise ``(lat, lon, band)``.
    """
    if image.ndim == 2:
        image = image[..., np.newaxis]
    warped, (left, right, bottom, top) = ctx.warp_tiles(image, extent, t_crs=GEOGRAPHIC_CRS)

    height, width = warped.shape[:2]
    dx = (right - left) / width
    dy = (top - bottom) / height
    lons = left + (np.arange(width) + 0.5) * dx
    lats = top - (np.arange(height) + 0.5) * dy

    if warped.shape[2] == 1:
        grid = xr.DataArray(warped[..., 0], dims=("lat", "lon"), coords={"lat": lats, "lon": lons}, name=name)
    else:
        grid = xr.DataArray(
            warped[..., :3],
            dims=("lat", "lon", "band"),
            coords={"lat": lats, "lon": lons, "band": ["r", "g", "b"]},
            name=name,
        )

    cropped = grid.sel(lon=slice(bbox.lon_min, bbox.lon_max), lat=slice(bbox.lat_max, bbox.lat_min))
    if cropped.sizes["lat"] < 2 or cropped.sizes["lon"] < 2:
        raise ValueError("Bounding box is smaller than two pixels at this zoom level.")
    return cropped


def decode_terrarium(rgb: np.ndarray) -> np.ndarray:
    """Decode terrarium-encoded RGB pixels to elevation in metres."""
    rgb = np.asarray(rgb, dtype=float)
    return rgb[..., 0] * 256.0 + rgb[..., 1] + rgb[..., 2] / 256.0 - 32768.0
