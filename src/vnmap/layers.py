"""Basemap and elevation layers prepared for plotting."""

from __future__ import annotations

import logging

import geopandas as gpd
import numpy as np
import pandas as pd
import shapely
import xarray as xr

from vnmap.config import MapConfig, resolve_api_key
from vnmap.tiles import decode_terrarium, fetch_mosaic, to_geographic_grid

logger = logging.getLogger(__name__)

ELEVATION_SOURCE = "terrarium"
# Terrain tiles are published up to z14; higher levels only upsample.
MAX_ELEVATION_ZOOM = 14


def fetch_basemap(config: MapConfig, api_key: str | None = None) -> xr.DataArray:
    """Fetch the terrain background tiles for ``config.bbox`` in EPSG:4326."""
    image, extent = fetch_mosaic(
        config.maptype,
        config.bbox,
        config.terrain_zoom,
        api_key=resolve_api_key(api_key),
        cache_dir=config.cache_dir,
        max_tiles=config.max_tiles,
    )
    return to_geographic_grid(image, extent, config.bbox, name=config.maptype)


def fetch_elevation_raster(config: MapConfig) -> xr.DataArray:
    """Fetch elevation in metres for ``config.bbox``, clipped to the box."""
    if not 1 <= config.elevation_zoom <= MAX_ELEVATION_ZOOM:
        raise ValueError(
            f"Elevation zoom {config.elevation_zoom} is outside the supported range 1..{MAX_ELEVATION_ZOOM}."
        )
    image, extent = fetch_mosaic(
        ELEVATION_SOURCE,
        config.bbox,
        config.elevation_zoom,
        cache_dir=config.cache_dir,
        max_tiles=config.max_tiles,
    )
    # Decode before warping; resampling encoded RGB channels is meaningless.
    elevation = decode_terrarium(image[..., :3])
    raster = to_geographic_grid(elevation, extent, config.bbox, name="layer")
    raster.attrs["units"] = "m"
    return raster


def mask_raster(raster: xr.DataArray, boundary: gpd.GeoDataFrame) -> xr.DataArray:
    """Set cells whose centre lies outside ``boundary`` to NaN."""
    polygon = shapely.union_all(boundary.geometry.to_numpy())
    lon2d, lat2d = np.meshgrid(raster["lon"].to_numpy(), raster["lat"].to_numpy())
    inside = shapely.contains_xy(polygon, lon2d, lat2d)
    logger.debug("Masked raster keeps %d of %d cells", int(inside.sum()), inside.size)
    mask = xr.DataArray(inside, dims=("lat", "lon"), coords={"lat": raster["lat"], "lon": raster["lon"]})
    return raster.where(mask)


def rescale(values, to: tuple[float, float] = (0.25, 0.75)) -> np.ndarray:
    """Linearly map finite values onto ``to``; NaN stays NaN."""
    values = np.asarray(values, dtype=float)
    low, high = to
    finite = np.isfinite(values)
    if not finite.any():
        return np.full(values.shape, np.nan)

    vmin = values[finite].min()
    vmax = values[finite].max()
    if vmax == vmin:
        out = np.full(values.shape, (low + high) / 2)
    else:
        out = low + (values - vmin) / (vmax - vmin) * (high - low)
    out[~finite] = np.nan
    return out


def raster_to_frame(raster: xr.DataArray) -> pd.DataFrame:
    """Flatten a ``(lat, lon)`` raster to one ``x, y, layer`` row per cell."""
    lon2d, lat2d = np.meshgrid(raster["lon"].to_numpy(), raster["lat"].to_numpy())
    return pd.DataFrame(
        {
            "x": lon2d.ravel(),
            "y": lat2d.ravel(),
            "layer": raster.to_numpy().astype(float).ravel(),
        }
    )


def background_frame(raster: xr.DataArray) -> pd.DataFrame:
    """Grey-scale background: opacity follows elevation within 0.25..0.75."""
    frame = raster_to_frame(raster)
    frame["alpha"] = rescale(frame["layer"], to=(0.25, 0.75))
    return frame


def terrain_frame(masked: xr.DataArray) -> pd.DataFrame:
    """Coloured terrain: opaque inside the boundary, transparent outside."""
    frame = raster_to_frame(masked)
    frame["alpha"] = np.where(frame["layer"].isna(), 0.0, 1.0)
    return frame


def frame_to_grid(frame: pd.DataFrame, column: str) -> xr.DataArray:
    """Pivot one column of a raster frame back to a ``(lat, lon)`` grid."""
    grid = frame.pivot(index="y", columns="x", values=column).sort_index(ascending=False)
    return xr.DataArray(
        grid.to_numpy(),
        dims=("lat", "lon"),
        coords={"lat": grid.index.to_numpy(), "lon": grid.columns.to_numpy()},
        name=column,
    )
