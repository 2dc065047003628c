#!/usr/bin/env python3
"""pipeline.py

Fixed suitability pipeline for one species tolerance:

  1. align depth to the SST grid       (geo.align)
  2. mean SST across years, K -> degC  (geo.temporal)
  3. classify SST and depth            (suitability.classify)
  4. combine the two masks             (suitability.combine)
  5. rasterize zones on the mask grid  (zones.rasterize)
  6. suitable area + percent per zone  (zones.area)

This module exposes two interfaces:
1. evaluate() - one call, everything passed in, returns the report
2. SuitabilityPipeline - prepares steps 1, 2 and 5 (plus cell area) once and
   reuses them across species; results are identical to evaluate()

Nothing here reads files or keeps global state. Same inputs, same report.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable

import geopandas as gpd

from mariculture.config import SpeciesTolerance
from mariculture.geo.align import align_to
from mariculture.geo.temporal import temporal_mean
from mariculture.raster import Raster, RasterStack
from mariculture.suitability.classify import classify_range, depth_bounds
from mariculture.suitability.combine import combine_masks
from mariculture.suitability.report import SuitabilityReport
from mariculture.zones.area import (
    build_report,
    cell_area_km2,
    suitable_area_by_zone,
    total_suitable_area,
)
from mariculture.zones.prep_zones import ZONE_COLUMNS
from mariculture.zones.rasterize import ZoneRaster, rasterize_zones


@dataclass(frozen=True, eq=False)
class PreparedInputs:
    """Species-independent intermediate results."""

    sst_celsius: Raster
    depth: Raster
    zones: gpd.GeoDataFrame
    zone_raster: ZoneRaster
    cell_area: Raster


@dataclass(frozen=True, eq=False)
class SuitabilityResult:
    report: SuitabilityReport
    mask: Raster
    sst_mask: Raster
    depth_mask: Raster


def prepare_inputs(
    sst_layers: RasterStack,
    depth_layer: Raster,
    zone_layer: gpd.GeoDataFrame,
    *,
    sst_units: str = "kelvin",
) -> PreparedInputs:
    missing = [c for c in ZONE_COLUMNS if c not in zone_layer.columns]
    if missing:
        raise ValueError(
            f"Zone layer is missing columns {missing}; prepare it with prepare_zones/load_zones first"
        )

    depth = align_to(sst_layers.grid, depth_layer)
    sst = temporal_mean(sst_layers, units=sst_units)
    # SST and aligned depth share the SST grid, so the combined mask will too
    zone_raster = rasterize_zones(zone_layer, sst)
    return PreparedInputs(
        sst_celsius=sst,
        depth=depth,
        zones=zone_layer,
        zone_raster=zone_raster,
        cell_area=cell_area_km2(sst),
    )


def run_prepared(prepared: PreparedInputs, tolerance: SpeciesTolerance) -> SuitabilityResult:
    sst_mask = classify_range(
        prepared.sst_celsius, tolerance.min_temp, tolerance.max_temp, name="sst_suitable"
    )
    lo, hi = depth_bounds(tolerance.min_depth, tolerance.max_depth)
    depth_mask = classify_range(prepared.depth, lo, hi, name="depth_suitable")

    mask = combine_masks(sst_mask, depth_mask, name=f"{tolerance.slug}_suitable")

    suitable = suitable_area_by_zone(mask, prepared.zone_raster, prepared.cell_area)
    report = build_report(
        prepared.zones,
        suitable,
        tolerance,
        total_suitable_area(mask, prepared.cell_area),
    )
    return SuitabilityResult(report=report, mask=mask, sst_mask=sst_mask, depth_mask=depth_mask)


def evaluate(
    min_temp: float,
    max_temp: float,
    min_depth: float,
    max_depth: float,
    species_name: str,
    sst_layers: RasterStack,
    depth_layer: Raster,
    zone_layer: gpd.GeoDataFrame,
    *,
    sst_units: str = "kelvin",
) -> SuitabilityReport:
    """Suitable area per zone for one species.

    Temperatures are degC. Depths are positive metres below sea level
    (0-70 means between the surface and 70 m down); the depth raster itself
    stores them as negative elevations.
    """
    tolerance = SpeciesTolerance(
        name=species_name,
        min_temp=min_temp,
        max_temp=max_temp,
        min_depth=min_depth,
        max_depth=max_depth,
    )
    prepared = prepare_inputs(sst_layers, depth_layer, zone_layer, sst_units=sst_units)
    return run_prepared(prepared, tolerance).report


class SuitabilityPipeline:
    """Run the pipeline for many species over the same inputs."""

    def __init__(
        self,
        sst_layers: RasterStack,
        depth_layer: Raster,
        zone_layer: gpd.GeoDataFrame,
        *,
        sst_units: str = "kelvin",
    ) -> None:
        self.prepared = prepare_inputs(sst_layers, depth_layer, zone_layer, sst_units=sst_units)

    def run(self, tolerance: SpeciesTolerance) -> SuitabilityResult:
        return run_prepared(self.prepared, tolerance)

    def evaluate(self, tolerance: SpeciesTolerance) -> SuitabilityReport:
        return self.run(tolerance).report

    def evaluate_many(self, tolerances: Iterable[SpeciesTolerance]) -> Dict[str, SuitabilityReport]:
        return {t.name: self.evaluate(t) for t in tolerances}
