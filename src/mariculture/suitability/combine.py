#!/usr/bin/env python3
"""combine.py

Intersect suitability masks. Multiplication is the logical AND here:
1 * 1 = 1, and NaN in any operand gives NaN.
"""

from __future__ import annotations

from functools import reduce

from mariculture.raster import Raster, require_same_grid
from mariculture.suitability.classify import is_suitability_mask


def combine_masks(*masks: Raster, name: str = "suitable") -> Raster:
    """Cell-wise AND of two or more masks on the same grid."""
    if len(masks) < 2:
        raise ValueError(f"combine_masks needs at least two masks, got {len(masks)}")

    first = masks[0]
    for m in masks:
        require_same_grid(first, m, what="suitability masks")
        if not is_suitability_mask(m):
            raise ValueError(f"{m.name or '<unnamed>'} is not a suitability mask (values other than 1/NaN)")

    data = reduce(lambda acc, m: acc * m.data, masks[1:], first.data)
    return first.with_data(data, name=name)
