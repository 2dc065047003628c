#!/usr/bin/env python3
"""rasterize.py

Burn zone polygons onto a raster grid.

Zones are burned as integer indices (1..N) rather than their keys; the
ZoneRaster carries the index -> key lookup, so any other zone attribute
(area, name) is a table join instead of another rasterization pass.

Cells touched by a zone boundary belong to that zone (all_touched=True).
Where zones overlap, the zone later in the layer wins.

Required deps: rasterio, geopandas
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import geopandas as gpd
import numpy as np
from rasterio.crs import CRS
from rasterio.features import rasterize
from rasterio.transform import Affine

from mariculture.raster import AlignmentError, Raster


OUTSIDE = 0


@dataclass(frozen=True, eq=False)
class ZoneRaster:
    """Zone index per cell (0 = outside every zone) plus the key lookup."""

    ids: np.ndarray
    keys: Tuple[str, ...]
    transform: Affine
    crs: CRS

    def __post_init__(self) -> None:
        ids = np.array(self.ids, dtype=np.int32, copy=True)
        ids.setflags(write=False)
        object.__setattr__(self, "ids", ids)
        object.__setattr__(self, "keys", tuple(self.keys))

    @property
    def shape(self) -> Tuple[int, int]:
        return self.ids.shape  # type: ignore[return-value]

    def matches(self, grid: Raster) -> bool:
        return self.shape == grid.shape and self.transform == grid.transform and self.crs == grid.crs


def rasterize_zones(
    zones: gpd.GeoDataFrame,
    grid: Raster,
    *,
    all_touched: bool = True,
) -> ZoneRaster:
    """Rasterize a canonical zone layer (see prep_zones) onto `grid`."""
    if grid.crs is None:
        raise AlignmentError(f"Grid {grid.name!r} has no CRS; can't place zones on it")
    if zones.crs is None:
        raise AlignmentError("Zone layer has no CRS")

    if zones.crs != grid.crs:
        zones = zones.to_crs(grid.crs)

    shapes = [
        (geom, idx + 1)
        for idx, geom in enumerate(zones.geometry)
        if geom is not None and not geom.is_empty
    ]

    if shapes:
        ids = rasterize(
            shapes,
            out_shape=grid.shape,
            transform=grid.transform,
            fill=OUTSIDE,
            all_touched=all_touched,
            dtype="int32",
        )
    else:
        ids = np.full(grid.shape, OUTSIDE, dtype=np.int32)

    return ZoneRaster(
        ids=ids,
        keys=tuple(zones["key"].astype(str)),
        transform=grid.transform,
        crs=grid.crs,
    )
