#!/usr/bin/env python3
"""area.py

Suitable area per zone.

Steps:
1. Per-cell area raster on the mask grid (km²)
2. Mask it by the suitability mask (unsuitable cells -> NaN)
3. Sum masked area per zone index
4. Left-join the sums onto the zone table and compute percent of zone area

On a geographic grid, cell area shrinks toward the poles, so it is computed
per row from the CRS ellipsoid instead of assuming square cells. Projected
grids that are not equal-area get a geodesic area per cell.

Required deps: numpy, pandas, pyproj
"""

from __future__ import annotations

from typing import Optional

import geopandas as gpd
import numpy as np
import pandas as pd
from pyproj import CRS as ProjCRS
from pyproj import Transformer

from mariculture.config import SpeciesTolerance
from mariculture.raster import AlignmentError, Raster
from mariculture.suitability.report import SuitabilityReport, ZoneSuitability
from mariculture.zones.rasterize import OUTSIDE, ZoneRaster


# Projection method names (lower-cased substrings) that preserve area
_EQUAL_AREA_METHODS = ("equal area", "mollweide", "sinusoidal", "eckert iv")


# -----------------------------------------------------------------------------
# Cell area
# -----------------------------------------------------------------------------

def _band_area_m2(lat_deg: np.ndarray, a: float, b: float) -> np.ndarray:
    """Ellipsoid surface area (m²) between the equator and `lat_deg`, all longitudes.

    Signed: negative for southern latitudes. Differences of this give the
    area of a latitude band.
    """
    sin_phi = np.sin(np.radians(lat_deg))
    e2 = 1.0 - (b * b) / (a * a)
    if e2 == 0.0:
        return 2.0 * np.pi * a * a * sin_phi
    e = np.sqrt(e2)
    return np.pi * b * b * (
        np.arctanh(e * sin_phi) / e + sin_phi / (1.0 - e2 * sin_phi * sin_phi)
    )


def _is_equal_area(crs: ProjCRS) -> bool:
    """True for projections whose planar pixel area is the true area."""
    op = crs.coordinate_operation
    if op is None:
        return False
    method = op.method_name.lower()
    return any(word in method for word in _EQUAL_AREA_METHODS)


def _geodesic_cell_area_m2(grid: Raster, crs: ProjCRS) -> np.ndarray:
    """Geodesic area (m²) of every cell of a projected grid, from its corners."""
    t = grid.transform
    rows, cols = np.mgrid[0 : grid.height + 1, 0 : grid.width + 1]
    xs = t.c + cols * t.a + rows * t.b
    ys = t.f + cols * t.d + rows * t.e

    to_lonlat = Transformer.from_crs(crs, crs.geodetic_crs, always_xy=True)
    lon, lat = to_lonlat.transform(xs, ys)
    if not (np.all(np.isfinite(lon)) and np.all(np.isfinite(lat))):
        raise AlignmentError(f"Grid {grid.name!r} reaches outside its projection's valid area")

    geod = crs.get_geod()
    area = np.empty(grid.shape, dtype=np.float64)
    for r in range(grid.height):
        for c in range(grid.width):
            ring_lon = [lon[r, c], lon[r, c + 1], lon[r + 1, c + 1], lon[r + 1, c]]
            ring_lat = [lat[r, c], lat[r, c + 1], lat[r + 1, c + 1], lat[r + 1, c]]
            cell, _ = geod.polygon_area_perimeter(ring_lon, ring_lat)
            area[r, c] = abs(cell)
    return area


def cell_area_km2(grid: Raster) -> Raster:
    """Area of every cell of `grid` in km²; NaN-free.

    Geographic grids use the exact ellipsoidal band area of each row.
    Equal-area projections use the planar pixel area. Any other projection
    (Web Mercator, UTM, ...) gets the geodesic area of each cell.
    """
    if grid.crs is None:
        raise AlignmentError(f"Grid {grid.name!r} has no CRS; cell area is undefined")

    t = grid.transform
    crs = ProjCRS.from_user_input(grid.crs.to_wkt())

    if not crs.is_geographic:
        if _is_equal_area(crs):
            pixel_km2 = abs(t.a * t.e - t.b * t.d) / 1_000_000.0
            return grid.with_data(np.full(grid.shape, pixel_km2), name="cell_area_km2")
        data = _geodesic_cell_area_m2(grid, crs) / 1_000_000.0
        return grid.with_data(data, name="cell_area_km2")

    if t.b != 0 or t.d != 0:
        raise AlignmentError("Rotated geographic grids are not supported for cell area")

    ellps = crs.ellipsoid
    a, b = ellps.semi_major_metre, ellps.semi_minor_metre

    rows = np.arange(grid.height + 1)
    edge_lats = np.clip(t.f + rows * t.e, -90.0, 90.0)
    band = np.abs(np.diff(_band_area_m2(edge_lats, a, b)))
    row_area = band * (abs(t.a) / 360.0) / 1_000_000.0

    data = np.repeat(row_area[:, None], grid.width, axis=1)
    return grid.with_data(data, name="cell_area_km2")


# -----------------------------------------------------------------------------
# Zonal sums
# -----------------------------------------------------------------------------

def masked_area(mask: Raster, cell_area: Raster) -> Raster:
    """Cell area where the mask is suitable, NaN elsewhere."""
    if not mask.same_grid(cell_area):
        raise AlignmentError("Cell-area raster is not on the mask grid")
    return mask.with_data(cell_area.data * mask.data, name="suitable_area_km2")


def suitable_area_by_zone(
    mask: Raster,
    zone_raster: ZoneRaster,
    cell_area: Optional[Raster] = None,
) -> pd.Series:
    """Suitable km² per zone key. Zones without suitable cells get 0."""
    if not zone_raster.matches(mask):
        raise AlignmentError("Zone raster is not on the mask grid")
    if cell_area is None:
        cell_area = cell_area_km2(mask)

    area = masked_area(mask, cell_area).data
    ids = zone_raster.ids
    use = ~np.isnan(area) & (ids != OUTSIDE)

    n = len(zone_raster.keys)
    sums = np.bincount(ids[use], weights=area[use], minlength=n + 1)[1:]
    return pd.Series(sums, index=pd.Index(zone_raster.keys, name="key"), name="suitable_area_km2")


def total_suitable_area(mask: Raster, cell_area: Optional[Raster] = None) -> float:
    """Suitable km² over the whole grid, in or out of any zone."""
    if cell_area is None:
        cell_area = cell_area_km2(mask)
    return float(np.nansum(masked_area(mask, cell_area).data))


# -----------------------------------------------------------------------------
# Report assembly
# -----------------------------------------------------------------------------

def build_report(
    zones: gpd.GeoDataFrame,
    suitable: pd.Series,
    tolerance: SpeciesTolerance,
    total_suitable_km2: float,
) -> SuitabilityReport:
    """Left-join per-zone sums onto the zone table; every zone gets one row."""
    table = pd.DataFrame(
        {
            "key": zones["key"].astype(str).to_numpy(),
            "name": zones["name"].astype(str).to_numpy(),
            "zone_area_km2": zones["area_km2"].astype(float).to_numpy(),
        }
    )
    sums = suitable.groupby(level=0).sum().rename("suitable_area_km2").reset_index()
    merged = table.merge(sums, on="key", how="left", validate="one_to_one")
    merged["suitable_area_km2"] = merged["suitable_area_km2"].fillna(0.0)
    merged["percent_suitable"] = merged["suitable_area_km2"] / merged["zone_area_km2"] * 100.0

    rows = tuple(
        ZoneSuitability(
            key=r.key,
            name=r.name,
            zone_area_km2=float(r.zone_area_km2),
            suitable_area_km2=float(r.suitable_area_km2),
            percent_suitable=float(r.percent_suitable),
        )
        for r in merged.itertuples(index=False)
    )
    return SuitabilityReport(species=tolerance, rows=rows, total_suitable_area_km2=total_suitable_km2)
