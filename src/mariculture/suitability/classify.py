#!/usr/bin/env python3
"""classify.py

Reclassify a continuous raster into a binary suitability mask.

Rules are evaluated in order and the first match wins. By default an interval
is lower-exclusive and upper-inclusive; either end can be flipped per rule.
Cells that match no rule (and NaN cells) become no-data.

A suitability mask only ever holds 1.0 or NaN.

Depth convention: bathymetry stores depth below sea level as NEGATIVE
elevation. Species depth tolerances are written as positive metres, so they
go through depth_bounds() before classifying. Passing bounds that are already
negative into depth_bounds() gives a range above sea level and an all-no-data
mask over the ocean. That is deliberately not auto-corrected.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, Tuple

import numpy as np

from mariculture.raster import Raster


SUITABLE = 1.0
NODATA = np.nan


@dataclass(frozen=True)
class ReclassRule:
    lower: float
    upper: float
    value: float
    include_lower: bool = False
    include_upper: bool = True

    def matches(self, data: np.ndarray) -> np.ndarray:
        lo = data >= self.lower if self.include_lower else data > self.lower
        hi = data <= self.upper if self.include_upper else data < self.upper
        return lo & hi


def reclassify(raster: Raster, rules: Sequence[ReclassRule], name: str = "") -> Raster:
    """Apply ordered reclassification rules; unmatched cells become NaN."""
    data = raster.data
    out = np.full(raster.shape, np.nan, dtype=np.float64)
    assigned = np.zeros(raster.shape, dtype=bool)

    # NaN compares False everywhere, so NaN cells are never assigned
    for rule in rules:
        hit = rule.matches(data) & ~assigned
        out[hit] = rule.value
        assigned |= hit

    return raster.with_data(out, name=name or raster.name)


def range_rules(min_value: float, max_value: float) -> List[ReclassRule]:
    """Rules for the closed interval [min_value, max_value] -> 1, else no-data."""
    if min_value > max_value:
        raise ValueError(f"min ({min_value}) must be <= max ({max_value})")
    return [
        ReclassRule(-np.inf, min_value, NODATA, include_upper=False),
        ReclassRule(min_value, max_value, SUITABLE, include_lower=True, include_upper=True),
        ReclassRule(max_value, np.inf, NODATA),
    ]


def classify_range(raster: Raster, min_value: float, max_value: float, name: str = "") -> Raster:
    """Suitability mask: 1 where min_value <= value <= max_value, NaN elsewhere."""
    return reclassify(raster, range_rules(min_value, max_value), name=name)


def depth_bounds(min_depth: float, max_depth: float) -> Tuple[float, float]:
    """Convert positive depths below sea level to (lower, upper) elevation bounds.

    depth_bounds(0, 70) -> (-70, 0)
    """
    return (-float(max_depth), -float(min_depth))


def is_suitability_mask(raster: Raster) -> bool:
    finite = raster.data[~np.isnan(raster.data)]
    return bool(np.all(finite == SUITABLE))
