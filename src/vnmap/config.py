"""Configuration models for vnmap."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

# Latitude limit of the Web Mercator tile scheme.
MERCATOR_MAX_LAT = 85.0511

MM_PER_INCH = 25.4

ELSEVIER_WIDTHS_MM: dict[str, float] = {
    "one_column": 90.0,
    "one_half_column": 140.0,
    "full_page": 190.0,
}

API_KEY_ENV_VAR = "STADIA_API_KEY"


@dataclass(frozen=True)
class BoundingBox:
    """Rectangular map extent in geographic degrees."""

    lon_min: float
    lon_max: float
    lat_min: float
    lat_max: float

    def __post_init__(self) -> None:
        if self.lon_min >= self.lon_max:
            raise ValueError(f"lon_min ({self.lon_min}) must be smaller than lon_max ({self.lon_max}).")
        if self.lat_min >= self.lat_max:
            raise ValueError(f"lat_min ({self.lat_min}) must be smaller than lat_max ({self.lat_max}).")
        if self.lat_min < -MERCATOR_MAX_LAT or self.lat_max > MERCATOR_MAX_LAT:
            raise ValueError(f"Latitudes must lie within +/-{MERCATOR_MAX_LAT} degrees.")

    def as_tuple(self) -> tuple[float, float, float, float]:
        """Return ``(west, south, east, north)``."""
        return self.lon_min, self.lat_min, self.lon_max, self.lat_max

    @property
    def center_latitude(self) -> float:
        return (self.lat_min + self.lat_max) / 2


# bboxfinder.com extent around mainland Vietnam and the Paracel/Spratly islands.
VIETNAM_BBOX = BoundingBox(
    lon_min=100.854490,
    lon_max=116.147458,
    lat_min=6.945000,
    lat_max=23.812699,
)


@dataclass(frozen=True)
class MapConfig:
    """Parameters shared by the terrain and elevation map pipelines."""

    bbox: BoundingBox = field(default=VIETNAM_BBOX)

    boundary_path: str = "data/VNM_gis/VNM_adm0.shp"
    figures_dir: str = "figures"
    cache_dir: str = ".data/tiles"

    terrain_zoom: int = 7
    elevation_zoom: int = 6
    maptype: str = "stamen_terrain_background"
    max_tiles: int = 256

    scale_value: float = 2.0
    width: str | float = "full_page"
    height_mm: float = 210.0
    dpi: int = 300

    title: str = "MAP OF VIETNAM"
    title_lon: float = 112.1
    title_lat: float = 23.0
    label_offset: float = 0.5


def figure_size_inches(width: str | float, height_mm: float) -> tuple[float, float]:
    """Convert an Elsevier width key (or millimetres) and a height to a figsize."""
    if isinstance(width, str):
        if width not in ELSEVIER_WIDTHS_MM:
            supported = ", ".join(sorted(ELSEVIER_WIDTHS_MM))
            raise ValueError(f"Unknown figure width '{width}'. Supported: {supported}.")
        width_mm = ELSEVIER_WIDTHS_MM[width]
    else:
        width_mm = float(width)
    if width_mm <= 0 or height_mm <= 0:
        raise ValueError("Figure width and height must be positive.")
    return width_mm / MM_PER_INCH, height_mm / MM_PER_INCH


def resolve_api_key(explicit: str | None = None) -> str | None:
    """Return the Stadia Maps API key from the argument or the environment."""
    if explicit:
        return explicit
    return os.environ.get(API_KEY_ENV_VAR) or None
