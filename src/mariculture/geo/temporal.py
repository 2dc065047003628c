#!/usr/bin/env python3
"""temporal.py

Collapse a stack of repeated observations into one mean raster.

Each cell's mean uses only the layers that have data at that cell. A cell
with no data in every layer stays NaN.
"""

from __future__ import annotations

import numpy as np

from mariculture.raster import Raster, RasterStack


KELVIN_OFFSET = 273.15

SUPPORTED_UNITS = ("kelvin", "celsius")


def mean_stack(stack: RasterStack, name: str = "mean") -> Raster:
    """Cell-wise mean across all layers, ignoring NaN."""
    cube = np.stack([layer.data for layer in stack])
    valid = ~np.isnan(cube)
    count = valid.sum(axis=0)
    total = np.where(valid, cube, 0.0).sum(axis=0)

    # Explicit divide avoids the all-NaN RuntimeWarning from np.nanmean
    mean = np.full(count.shape, np.nan, dtype=np.float64)
    np.divide(total, count, out=mean, where=count > 0)
    return stack.grid.with_data(mean, name=name)


def kelvin_to_celsius(raster: Raster) -> Raster:
    return raster.with_data(raster.data - KELVIN_OFFSET)


def temporal_mean(stack: RasterStack, units: str = "kelvin") -> Raster:
    """Mean of the stack, converted to degrees Celsius."""
    units = units.lower()
    if units not in SUPPORTED_UNITS:
        raise ValueError(f"Unsupported temperature units {units!r}; expected one of {SUPPORTED_UNITS}")

    mean = mean_stack(stack, name="sst_mean")
    if units == "kelvin":
        return kelvin_to_celsius(mean)
    return mean
