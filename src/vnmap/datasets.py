"""Boundary and site data helpers for vnmap."""

from __future__ import annotations

import logging
import zipfile
from pathlib import Path

import geopandas as gpd
import pandas as pd
import requests

logger = logging.getLogger(__name__)

# DIVA-GIS administrative areas for Vietnam; level 0 is the country outline.
BOUNDARY_URL = "https://biogeo.ucdavis.edu/data/diva/adm/VNM_adm.zip"
BOUNDARY_LAYER = "VNM_adm0.shp"

GEOGRAPHIC_CRS = "EPSG:4326"

SITES = pd.DataFrame(
    {
        "site_name": [
            "Ha Noi",
            "Ho Chi Minh City",
            "Paracel Islands \n(Hoang Sa, VIETNAM)",
            "Spratly Islands \n(Truong Sa, VIETNAM)",
        ],
        "site_latitude": [21.028511, 10.823020, 16.83517, 8.64464],
        "site_longitude": [105.804817, 106.629650, 112.33873, 111.91969],
    }
)


def download_if_missing(
    url: str,
    destination: Path,
    *,
    refresh: bool = False,
    offline: bool = False,
    attempts: int = 3,
    timeout: float = 60,
) -> Path:
    """Download a file with cache-first behavior."""
    destination.parent.mkdir(parents=True, exist_ok=True)

    def _is_non_empty(path: Path) -> bool:
        return path.exists() and path.stat().st_size > 0

    def _cleanup_zero_byte(path: Path) -> None:
        if path.exists() and path.stat().st_size == 0:
            path.unlink()

    if _is_non_empty(destination) and not refresh:
        return destination

    if offline:
        raise RuntimeError(
            f"Offline mode is enabled and '{destination}' is unavailable or requires refresh."
        )

    for idx in range(attempts):
        try:
            logger.info("Downloading %s (attempt %d/%d)", url, idx + 1, attempts)
            response = requests.get(url, timeout=timeout)
            response.raise_for_status()
            destination.write_bytes(response.content)
            if _is_non_empty(destination):
                return destination
            raise RuntimeError(f"Downloaded file is empty: '{destination}'.")
        except (requests.RequestException, RuntimeError):
            _cleanup_zero_byte(destination)
            if idx == attempts - 1:
                raise

    return destination


def fetch_boundary(data_dir: Path | str, *, offline: bool = False) -> Path:
    """Fetch the DIVA-GIS archive and return the path of the country shapefile."""
    data_dir = Path(data_dir)
    shapefile = data_dir / "VNM_gis" / BOUNDARY_LAYER
    if shapefile.exists():
        return shapefile

    archive = download_if_missing(BOUNDARY_URL, data_dir / Path(BOUNDARY_URL).name, offline=offline)
    with zipfile.ZipFile(archive) as zf:
        zf.extractall(shapefile.parent)

    if not shapefile.exists():
        raise RuntimeError(f"Archive '{archive}' does not contain '{BOUNDARY_LAYER}'.")
    logger.info("Extracted boundary to %s", shapefile)
    return shapefile


def load_boundary(path: Path | str, crs: str = GEOGRAPHIC_CRS) -> gpd.GeoDataFrame:
    """Read a boundary shapefile and reproject it to a geographic CRS."""
    boundary = gpd.read_file(path)
    if boundary.empty:
        raise ValueError(f"Boundary file '{path}' contains no features.")
    if boundary.crs is None:
        # DIVA-GIS shapefiles ship unprojected WGS84 coordinates.
        boundary = boundary.set_crs(GEOGRAPHIC_CRS)
    return boundary.to_crs(crs)


def site_table() -> pd.DataFrame:
    """Return a copy of the annotated cities and islands."""
    return SITES.copy()


def island_sites(sites: pd.DataFrame) -> pd.DataFrame:
    """Select the island rows, which get a highlighted area circle."""
    return sites.loc[sites["site_name"].str.contains("Islands")]
