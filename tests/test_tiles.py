import math
from pathlib import Path

import numpy as np
import pytest

from vnmap.config import VIETNAM_BBOX, BoundingBox
from vnmap.tiles import (
    TERRARIUM,
    count_tiles,
    decode_terrarium,
    fetch_mosaic,
    resolve_provider,
    to_geographic_grid,
)

# Northern edge of the tile row y=1 at zoom 2.
LAT_Z2_ROW1 = math.degrees(math.atan(math.sinh(math.pi / 2)))


def test_tile_aligned_box_counts_one_tile():
    bbox = BoundingBox(lon_min=0.0, lon_max=90.0, lat_min=0.0, lat_max=LAT_Z2_ROW1)
    assert count_tiles(bbox, 2) == 1


def test_vietnam_tile_count_at_default_zoom():
    # x 99..105 and y 55..61 at zoom 7.
    assert count_tiles(VIETNAM_BBOX, 7) == 49


def test_resolve_provider_unknown_source():
    with pytest.raises(ValueError, match="Unknown tile source 'osm'"):
        resolve_provider("osm")


def test_resolve_provider_requires_key_for_stadia():
    with pytest.raises(ValueError, match="requires an API key"):
        resolve_provider("stamen_terrain_background")

    provider = resolve_provider("stamen_terrain_background", api_key="abc")
    assert "abc" in provider.build_url(x=1, y=2, z=3)


def test_resolve_provider_terrarium_needs_no_key():
    assert resolve_provider("terrarium") is TERRARIUM


def test_fetch_mosaic_refuses_oversized_request(monkeypatch):
    monkeypatch.setattr("vnmap.tiles.ctx.howmany", lambda *args, **kwargs: 300)

    def fail_bounds2img(*args, **kwargs):
        raise AssertionError("no tiles should be downloaded")

    monkeypatch.setattr("vnmap.tiles.ctx.bounds2img", fail_bounds2img)

    with pytest.raises(ValueError, match="lower zoom level"):
        fetch_mosaic("terrarium", VIETNAM_BBOX, 10, max_tiles=256)


def test_fetch_mosaic_passes_lonlat_bounds_and_cache(monkeypatch, tmp_path: Path):
    called: dict[str, object] = {}
    image = np.zeros((512, 256, 4), dtype=np.uint8)
    extent = (0.0, 1.0, 0.0, 2.0)

    def fake_bounds2img(w, s, e, n, **kwargs):
        called["bounds"] = (w, s, e, n)
        called.update(kwargs)
        return image, extent

    def fake_set_cache_dir(path):
        called["cache_dir"] = path

    monkeypatch.setattr("vnmap.tiles.ctx.howmany", lambda *args, **kwargs: 49)
    monkeypatch.setattr("vnmap.tiles.ctx.bounds2img", fake_bounds2img)
    monkeypatch.setattr("vnmap.tiles.ctx.set_cache_dir", fake_set_cache_dir)

    cache = tmp_path / "tiles"
    out_image, out_extent = fetch_mosaic(
        "stamen_terrain_background", VIETNAM_BBOX, 7, api_key="abc", cache_dir=cache
    )

    assert out_image is image
    assert out_extent == extent
    assert called["bounds"] == VIETNAM_BBOX.as_tuple()
    assert called["zoom"] == 7
    assert called["ll"] is True
    assert called["use_cache"] is True
    assert called["cache_dir"] == str(cache)
    assert cache.is_dir()
    assert "abc" in called["source"].build_url(x=1, y=2, z=3)


def test_fetch_mosaic_without_cache_dir(monkeypatch):
    called: dict[str, object] = {}

    def fake_bounds2img(w, s, e, n, **kwargs):
        called.update(kwargs)
        return np.zeros((256, 256, 4), dtype=np.uint8), (0.0, 1.0, 0.0, 1.0)

    monkeypatch.setattr("vnmap.tiles.ctx.howmany", lambda *args, **kwargs: 4)
    monkeypatch.setattr("vnmap.tiles.ctx.bounds2img", fake_bounds2img)

    fetch_mosaic("terrarium", VIETNAM_BBOX, 3)

    assert called["use_cache"] is False
    assert called["source"] is TERRARIUM


def _fake_warp(values: np.ndarray, extent):
    def fake_warp_tiles(image, src_extent, t_crs):
        assert t_crs == "EPSG:4326"
        return values, extent

    return fake_warp_tiles


def test_to_geographic_grid_single_band_crops_to_bbox(monkeypatch):
    # 1-degree pixels over 100..110 E and 5..25 N.
    values = np.arange(20 * 10, dtype=float).reshape(20, 10, 1)
    monkeypatch.setattr("vnmap.tiles.ctx.warp_tiles", _fake_warp(values, (100.0, 110.0, 5.0, 25.0)))
    bbox = BoundingBox(lon_min=102.0, lon_max=106.0, lat_min=10.0, lat_max=20.0)

    grid = to_geographic_grid(np.zeros((4, 4)), (0.0, 1.0, 0.0, 1.0), bbox, name="layer")

    assert grid.dims == ("lat", "lon")
    assert grid.name == "layer"
    assert grid["lon"].to_numpy().tolist() == [102.5, 103.5, 104.5, 105.5]
    lats = grid["lat"].to_numpy()
    assert lats[0] == pytest.approx(19.5)
    assert lats[-1] == pytest.approx(10.5)
    assert np.all(np.diff(lats) < 0)
    # Row 5 from the top is 19.5 N; column 2 is 102.5 E.
    assert float(grid.isel(lat=0, lon=0)) == values[5, 2, 0]


def test_to_geographic_grid_rgb_bands(monkeypatch):
    values = np.full((8, 8, 4), 200, dtype=np.uint8)
    monkeypatch.setattr("vnmap.tiles.ctx.warp_tiles", _fake_warp(values, (100.0, 108.0, 10.0, 18.0)))
    bbox = BoundingBox(lon_min=101.0, lon_max=107.0, lat_min=11.0, lat_max=17.0)

    grid = to_geographic_grid(values, (0.0, 1.0, 0.0, 1.0), bbox)

    assert grid.dims == ("lat", "lon", "band")
    assert grid["band"].to_numpy().tolist() == ["r", "g", "b"]
    assert grid.shape == (6, 6, 3)


def test_to_geographic_grid_rejects_tiny_box(monkeypatch):
    values = np.zeros((4, 4, 1))
    monkeypatch.setattr("vnmap.tiles.ctx.warp_tiles", _fake_warp(values, (100.0, 104.0, 10.0, 14.0)))
    bbox = BoundingBox(lon_min=100.1, lon_max=100.6, lat_min=10.1, lat_max=10.6)

    with pytest.raises(ValueError, match="smaller than two pixels"):
        to_geographic_grid(values, (0.0, 1.0, 0.0, 1.0), bbox)


def test_decode_terrarium():
    rgb = np.array([[[128, 0, 0], [128, 100, 128], [127, 255, 0]]], dtype=np.uint8)
    assert decode_terrarium(rgb).tolist() == [[0.0, 100.5, -1.0]]
