#!/usr/bin/env python3
"""prep_zones.py

Turn a zone shapefile (the West Coast EEZ regions) into a clean zone layer
with canonical columns:

    key       unique short code (e.g. "CA-N")
    name      display name
    area_km2  nominal area, independent of any raster resolution
    geometry

This module exposes two interfaces:
1. prepare_zones() - pure function over an in-memory GeoDataFrame
2. load_zones()    - read a shapefile, then prepare_zones()

Notes:
- Keys are normalized to trimmed strings, so 3 and " 3 " match.
- Rows sharing a key are dissolved into one zone (multipart regions).
- If no area field is given, area is computed in an equal-area CRS.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import geopandas as gpd


ZONE_COLUMNS = ["key", "name", "area_km2", "geometry"]

# NAD83 / Conus Albers is fine for the West Coast; pass something else elsewhere
DEFAULT_AREA_CRS = "EPSG:5070"


# -----------------------------------------------------------------------------
# Helper functions
# -----------------------------------------------------------------------------

def _normalize_key(x) -> str:
    """Zone key as a trimmed string. Returns empty string for missing input."""
    if x is None:
        return ""
    try:
        if x != x:  # NaN
            return ""
    except (TypeError, ValueError):
        pass
    return str(x).strip()


def _make_valid(gdf: gpd.GeoDataFrame) -> gpd.GeoDataFrame:
    """Repair invalid geometries (geopandas >= 0.13 / shapely 2)."""
    gdf = gdf.copy()
    gdf["geometry"] = gdf.geometry.make_valid()
    return gdf


def _compute_area_km2(gdf: gpd.GeoDataFrame, area_crs: str = DEFAULT_AREA_CRS) -> List[float]:
    """Compute polygon area in km² using an equal-area CRS."""
    if gdf.crs is None:
        raise ValueError("Input geometries have no CRS; can't compute area safely.")
    tmp = gdf.to_crs(area_crs)
    return (tmp.geometry.area / 1_000_000.0).astype(float).tolist()


# -----------------------------------------------------------------------------
# Core functions
# -----------------------------------------------------------------------------

def prepare_zones(
    gdf: gpd.GeoDataFrame,
    *,
    key_field: str,
    name_field: Optional[str] = None,
    area_field: Optional[str] = None,
    area_crs: str = DEFAULT_AREA_CRS,
) -> gpd.GeoDataFrame:
    """Normalize a raw zone GeoDataFrame into the canonical zone layer.

    Args:
        gdf: Raw zones with geometry and attribute columns
        key_field: Column holding the unique zone code
        name_field: Column holding the display name (defaults to the key)
        area_field: Column holding nominal area in km² (computed if None)
        area_crs: Equal-area CRS used when area must be computed

    Returns:
        GeoDataFrame with columns key, name, area_km2, geometry, sorted by key.

    Raises:
        SystemExit: On empty layer, missing CRS or missing columns.
        ValueError: On blank keys or non-positive areas.
    """
    if gdf.empty:
        raise SystemExit("Zone layer contains zero features. Wrong file?")
    if gdf.crs is None:
        raise SystemExit(
            "Zone layer has no CRS (.prj missing or unreadable). "
            "Fix that first; rasterization depends on CRS."
        )

    for field in (key_field, name_field, area_field):
        if field and field not in gdf.columns:
            raise SystemExit(f"Zone field '{field}' not found. Available columns: {list(gdf.columns)}")

    out = gdf.copy()
    out["key"] = out[key_field].apply(_normalize_key)
    blank = out["key"] == ""
    if blank.any():
        raise ValueError(f"{int(blank.sum())} zone(s) have a blank '{key_field}' value")

    out["name"] = out[name_field].astype(str) if name_field else out["key"]

    # --- Geometry cleanup ---
    out = _make_valid(out)
    out = out[~out.geometry.is_empty & out.geometry.notna()].copy()

    # --- Multipart zones ---
    if out["key"].duplicated().any():
        agg = {"name": "first"}
        if area_field:
            agg[area_field] = "sum"
        out = out[["key", "name"] + ([area_field] if area_field else []) + ["geometry"]].dissolve(
            by="key", as_index=False, aggfunc=agg
        )

    if area_field:
        out["area_km2"] = out[area_field].astype(float)
    else:
        out["area_km2"] = _compute_area_km2(out, area_crs=area_crs)

    bad = out["area_km2"] <= 0
    if bad.any():
        raise ValueError(f"Zones with non-positive area: {sorted(out.loc[bad, 'key'].tolist())}")

    return out[ZONE_COLUMNS].sort_values("key").reset_index(drop=True)


def load_zones(
    path: Path,
    *,
    key_field: str,
    name_field: Optional[str] = None,
    area_field: Optional[str] = None,
    area_crs: str = DEFAULT_AREA_CRS,
) -> gpd.GeoDataFrame:
    """Read a zone shapefile/GeoPackage and normalize it (see prepare_zones)."""
    path = Path(path)
    if not path.exists():
        raise SystemExit(f"Zone layer not found: {path}")

    gdf = gpd.read_file(path)
    zones = prepare_zones(
        gdf,
        key_field=key_field,
        name_field=name_field,
        area_field=area_field,
        area_crs=area_crs,
    )
    print(f"[LOAD] {path.name} zones={len(zones)} crs={zones.crs}")
    return zones
