#!/usr/bin/env python3
"""align.py

Put one raster onto another raster's grid (reproject + crop + resample).

The reference grid wins: the output has the reference's CRS, transform and
shape. Resampling defaults to nearest neighbour because the typical target is
bathymetry, where an interpolated depth would be a value that exists nowhere
in the source data.

Required deps: rasterio, numpy
"""

from __future__ import annotations

import numpy as np
from rasterio.enums import Resampling
from rasterio.warp import reproject, transform_bounds

from mariculture.raster import AlignmentError, BBox, Raster


def _overlaps(a: BBox, b: BBox) -> bool:
    """Strict overlap; boxes that only share an edge do not overlap."""
    return a[0] < b[2] and b[0] < a[2] and a[1] < b[3] and b[1] < a[3]


def align_to(
    reference: Raster,
    target: Raster,
    *,
    resampling: Resampling = Resampling.nearest,
) -> Raster:
    """Warp `target` onto `reference`'s grid.

    Parameters
    ----------
    reference : Raster
        Grid to match (typically the SST mean or first SST layer).
    target : Raster
        Raster to reproject, crop and resample (typically depth).
    resampling : rasterio.enums.Resampling
        Defaults to nearest, which only ever copies source values.

    Returns
    -------
    Raster
        Same grid as `reference`; cells not covered by `target` are NaN.

    Raises
    ------
    AlignmentError
        If either raster lacks a CRS or the extents do not overlap.
    """
    if reference.crs is None:
        raise AlignmentError(f"Reference raster {reference.name!r} has no CRS")
    if target.crs is None:
        raise AlignmentError(f"Target raster {target.name!r} has no CRS")

    # Densify so curved edges in the reference CRS are not under-estimated
    target_bounds = transform_bounds(target.crs, reference.crs, *target.bounds, densify_pts=21)
    if not _overlaps(target_bounds, reference.bounds):
        raise AlignmentError(
            f"Extents do not overlap: {target.name!r} {tuple(round(v, 5) for v in target_bounds)} "
            f"vs {reference.name!r} {tuple(round(v, 5) for v in reference.bounds)}"
        )

    destination = np.full(reference.shape, np.nan, dtype=np.float64)
    reproject(
        source=np.array(target.data),  # writable copy for the MEM dataset
        destination=destination,
        src_transform=target.transform,
        src_crs=target.crs,
        src_nodata=np.nan,
        dst_transform=reference.transform,
        dst_crs=reference.crs,
        dst_nodata=np.nan,
        resampling=resampling,
    )
    return reference.with_data(destination, name=target.name)
