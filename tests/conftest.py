#!/usr/bin/env python3

from __future__ import annotations

import sys
from pathlib import Path

import geopandas as gpd
import numpy as np
import pytest
from rasterio.crs import CRS
from rasterio.transform import from_origin

# Ensure we can import from src/ without installing the package
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
sys.path.insert(0, str(SRC))

from mariculture.raster import Raster  # noqa: E402

# 3x3 one-degree test grid off the California coast
WEST = -125.0
NORTH = 40.0


@pytest.fixture
def make_raster():
    def _make(values, *, west=WEST, north=NORTH, res=1.0, crs="EPSG:4326", name=""):
        data = np.asarray(values, dtype=np.float64)
        return Raster(
            data,
            from_origin(west, north, res, res),
            CRS.from_user_input(crs) if crs else None,
            name=name,
        )

    return _make


@pytest.fixture
def make_zones():
    def _make(rows, crs="EPSG:4326"):
        """rows: (key, name, area_km2, geometry) tuples -> canonical zone layer."""
        return gpd.GeoDataFrame(
            {
                "key": [r[0] for r in rows],
                "name": [r[1] for r in rows],
                "area_km2": [float(r[2]) for r in rows],
            },
            geometry=[r[3] for r in rows],
            crs=crs,
        )

    return _make
