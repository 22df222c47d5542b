"""Plotting utilities for the terrain and elevation maps."""

from __future__ import annotations

import logging
import math
from pathlib import Path

import geopandas as gpd
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import xarray as xr
from matplotlib.axes import Axes
from matplotlib.cm import ScalarMappable
from matplotlib.colors import LinearSegmentedColormap, Normalize, to_rgb, to_rgba
from matplotlib.figure import Figure
from mpl_toolkits.axes_grid1 import make_axes_locatable

from vnmap.config import MapConfig, figure_size_inches
from vnmap.datasets import island_sites
from vnmap.layers import frame_to_grid

logger = logging.getLogger(__name__)

# Points per millimetre; ggplot2 geom sizes are expressed in millimetres.
PT_PER_MM = 72.27 / 25.4

# Anchors of R's terrain.colors(), reversed: pale at sea level, green on peaks.
TERRAIN_COLORS_R = LinearSegmentedColormap.from_list(
    "terrain_colors_r",
    ["#F2F2F2", "#EEB99F", "#EAB64E", "#E6E600", "#00A600"],
    N=100,
)

SITE_COLOR = "#FF7256"  # coral1
ISLAND_COLOR = "coral"
BOUNDARY_FILL = "#DEDEDE"  # gray87
RELIEF_FILL = "#333333"  # grey20, geom_raster's default fill
MISSING_FILL = "#7F7F7F"  # grey50, na.value of the continuous fill scales

# Output range of ggplot2's scale_alpha().
ALPHA_RANGE = (0.1, 1.0)


def ggplot_size_to_points(size: float) -> float:
    """Convert a ggplot2 geom size (mm) to typographic points."""
    return size * PT_PER_MM


def scale_alpha(
    values,
    domain: tuple[float, float],
    to: tuple[float, float] = ALPHA_RANGE,
) -> np.ndarray:
    """Map alpha data values from ``domain`` onto ``to`` like ggplot2's scale_alpha().

    A zero-width domain maps to the top of ``to``. NaN stays NaN.
    """
    values = np.asarray(values, dtype=float)
    low, high = to
    vmin, vmax = domain
    if vmax == vmin:
        out = np.full(values.shape, high)
    else:
        out = low + (values - vmin) / (vmax - vmin) * (high - low)
    out[~np.isfinite(values)] = np.nan
    return out


def _extent(raster: xr.DataArray) -> tuple[float, float, float, float]:
    """Edge extent ``(left, right, bottom, top)`` of a regular pixel-centre grid."""
    lons = raster["lon"].to_numpy()
    lats = raster["lat"].to_numpy()
    dx = abs(lons[1] - lons[0]) / 2 if len(lons) > 1 else 0.0
    dy = abs(lats[1] - lats[0]) / 2 if len(lats) > 1 else 0.0
    return lons.min() - dx, lons.max() + dx, lats.min() - dy, lats.max() + dy


def _quickmap_aspect(config: MapConfig) -> float:
    return 1.0 / math.cos(math.radians(config.bbox.center_latitude))


def add_sites(
    ax: Axes,
    sites: pd.DataFrame,
    *,
    island_size: float,
    point_size: float,
    text_size: float,
    label_offset: float = 0.5,
) -> None:
    """Draw island areas, site markers and their labels."""
    islands = island_sites(sites)
    ax.scatter(
        islands["site_longitude"],
        islands["site_latitude"],
        s=ggplot_size_to_points(island_size) ** 2,
        color=ISLAND_COLOR,
        alpha=0.3,
        linewidths=0,
        zorder=3,
    )
    ax.scatter(
        sites["site_longitude"],
        sites["site_latitude"],
        s=ggplot_size_to_points(point_size) ** 2,
        color=SITE_COLOR,
        linewidths=0,
        zorder=4,
    )
    for row in sites.itertuples(index=False):
        ax.text(
            row.site_longitude,
            row.site_latitude + label_offset,
            row.site_name,
            ha="center",
            va="center",
            fontsize=ggplot_size_to_points(text_size),
            zorder=5,
        )


def add_title(ax: Axes, config: MapConfig, *, color: str, size: float) -> None:
    ax.text(
        config.title_lon,
        config.title_lat,
        config.title,
        ha="center",
        va="center",
        color=color,
        fontsize=ggplot_size_to_points(size),
        zorder=5,
    )


def save_figure(fig: Figure, out_stem: Path | str, config: MapConfig) -> list[Path]:
    """Save ``<out_stem>.pdf`` and ``<out_stem>.png`` at the journal figure size."""
    out_stem = Path(out_stem)
    out_stem.parent.mkdir(parents=True, exist_ok=True)
    fig.set_size_inches(*figure_size_inches(config.width, config.height_mm))

    saved = []
    for suffix in (".pdf", ".png"):
        path = out_stem.with_suffix(suffix)
        fig.savefig(path, dpi=config.dpi)
        logger.info("Saved %s", path)
        saved.append(path)
    return saved


def _finish(
    fig: Figure,
    ax: Axes,
    config: MapConfig,
    out_stem: Path | str | None,
    return_handles: bool,
) -> list[Path] | tuple[Figure, Axes]:
    saved = save_figure(fig, out_stem, config) if out_stem is not None else []
    if return_handles:
        return fig, ax
    plt.close(fig)
    return saved


def plot_terrain_map(
    basemap: xr.DataArray,
    boundary: gpd.GeoDataFrame,
    sites: pd.DataFrame,
    config: MapConfig,
    out_stem: Path | str | None = None,
    return_handles: bool = False,
) -> list[Path] | tuple[Figure, Axes]:
    """Terrain basemap with the country outline highlighted.

    When ``return_handles=True``, returns ``(fig, ax)`` and leaves the figure
    open. Otherwise the figure is closed and the saved paths are returned.
    """
    figsize = figure_size_inches(config.width, config.height_mm)
    fig, ax = plt.subplots(figsize=figsize)

    ax.imshow(basemap.to_numpy(), extent=_extent(basemap), origin="upper", zorder=0)
    boundary.plot(
        ax=ax,
        facecolor=to_rgba(BOUNDARY_FILL, 0.65),
        edgecolor="white",
        linewidth=ggplot_size_to_points(0.5),
        zorder=2,
    )
    add_sites(ax, sites, island_size=16, point_size=4, text_size=5, label_offset=config.label_offset)
    add_title(ax, config, color="black", size=10)

    west, south, east, north = config.bbox.as_tuple()
    ax.set_xlim(west, east)
    ax.set_ylim(south, north)
    ax.set_aspect(_quickmap_aspect(config))
    ax.set_xticks([])
    ax.set_yticks([])
    ax.set_xlabel("")
    ax.set_ylabel("")

    margin = 0.1
    fig.subplots_adjust(
        left=margin / figsize[0],
        right=1 - margin / figsize[0],
        bottom=margin / figsize[1],
        top=1 - margin / figsize[1],
    )
    return _finish(fig, ax, config, out_stem, return_handles)


def plot_elevation_map(
    background: pd.DataFrame,
    terrain: pd.DataFrame,
    sites: pd.DataFrame,
    config: MapConfig,
    out_stem: Path | str | None = None,
    return_handles: bool = False,
) -> list[Path] | tuple[Figure, Axes]:
    """Coloured elevation inside the boundary over a grey-scale surrounding.

    ``background`` and ``terrain`` are raster frames with ``x, y, layer, alpha``
    columns, as built by :func:`vnmap.layers.background_frame` and
    :func:`vnmap.layers.terrain_frame`.
    """
    scale = config.scale_value
    fig, ax = plt.subplots(figsize=figure_size_inches(config.width, config.height_mm))

    # Both rasters share one alpha scale, as a single ggplot alpha aesthetic would.
    bg_alpha = frame_to_grid(background, "alpha")
    opacity = frame_to_grid(terrain, "alpha")
    domain = (
        float(np.nanmin([np.nanmin(bg_alpha.to_numpy()), np.nanmin(opacity.to_numpy())])),
        float(np.nanmax([np.nanmax(bg_alpha.to_numpy()), np.nanmax(opacity.to_numpy())])),
    )

    shade = np.empty(bg_alpha.shape + (4,))
    shade[..., :3] = to_rgb(RELIEF_FILL)
    shade[..., 3] = np.nan_to_num(scale_alpha(bg_alpha.to_numpy(), domain), nan=0.0)
    ax.imshow(shade, extent=_extent(bg_alpha), origin="upper", zorder=0)

    elevation = frame_to_grid(terrain, "layer")
    values = elevation.to_numpy()
    if np.isfinite(values).any():
        norm = Normalize(vmin=np.nanmin(values), vmax=np.nanmax(values))
    else:
        norm = Normalize(vmin=0.0, vmax=1.0)
    colors = TERRAIN_COLORS_R(norm(np.nan_to_num(values, nan=norm.vmin)))
    colors[~np.isfinite(values), :3] = to_rgb(MISSING_FILL)
    colors[..., 3] = np.nan_to_num(scale_alpha(opacity.to_numpy(), domain), nan=0.0)
    ax.imshow(colors, extent=_extent(elevation), origin="upper", interpolation="nearest", zorder=1)

    add_sites(
        ax,
        sites,
        island_size=8 * scale,
        point_size=2 * scale,
        text_size=2.5 * scale,
        label_offset=config.label_offset,
    )
    add_title(ax, config, color="white", size=4 * scale)

    west, south, east, north = config.bbox.as_tuple()
    ax.set_xlim(west, east)
    ax.set_ylim(south, north)
    ax.set_aspect(_quickmap_aspect(config))
    ax.set_xticks([102, 106, 110, 114], labels=["102°E", "106°E", "110°E", "114°E"])
    ax.set_yticks([10, 15, 20], labels=["10°N", "15°N", "20°N"])
    ax.tick_params(axis="both", length=0, labelsize=7 * scale, labelcolor="black")
    ax.set_xlabel("")
    ax.set_ylabel("")
    ax.grid(False)
    for spine in ax.spines.values():
        spine.set_visible(False)

    divider = make_axes_locatable(ax)
    cax = divider.append_axes("top", size="1.5%", pad=0.1)
    cbar = fig.colorbar(ScalarMappable(norm=norm, cmap=TERRAIN_COLORS_R), cax=cax, orientation="horizontal")
    cbar.outline.set_visible(False)
    cax.xaxis.set_ticks_position("top")
    cax.xaxis.set_label_position("top")
    cbar.set_label("Elevation (m)", fontsize=7 * scale)
    cbar.ax.tick_params(labelsize=6 * scale, length=0)

    return _finish(fig, ax, config, out_stem, return_handles)
