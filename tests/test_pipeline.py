#!/usr/bin/env python3

from __future__ import annotations

import numpy as np
import pytest
from shapely.geometry import box

from mariculture.config import SpeciesTolerance
from mariculture.raster import AlignmentError, RasterStack
from mariculture.suitability.pipeline import SuitabilityPipeline, evaluate
from mariculture.zones.area import cell_area_km2

OYSTER = SpeciesTolerance("oyster", 11, 30, 0, 70)
WHOLE_GRID = box(-125.0, 37.0, -122.0, 40.0)


def _sst_stack(make_raster, celsius=15.0, years=5):
    # Spread the yearly values around the target mean
    offsets = np.linspace(-1.0, 1.0, years)
    return RasterStack(
        tuple(
            make_raster(np.full((3, 3), celsius + 273.15 + off), name=f"sst_{2008 + i}")
            for i, off in enumerate(offsets)
        )
    )


def _grid_area(make_raster):
    return float(cell_area_km2(make_raster(np.zeros((3, 3)))).data.sum())


def _run(stack, depth, zones, tol=OYSTER):
    return evaluate(
        tol.min_temp, tol.max_temp, tol.min_depth, tol.max_depth, tol.name, stack, depth, zones
    )


def test_end_to_end_all_suitable(make_raster, make_zones):
    total = _grid_area(make_raster)
    zones = make_zones([("Z1", "Zone one", total, WHOLE_GRID)])
    depth = make_raster(np.full((3, 3), -30.0), name="depth")

    report = _run(_sst_stack(make_raster), depth, zones)

    z1 = report["Z1"]
    assert len(report) == 1
    assert z1.suitable_area_km2 == pytest.approx(total)
    assert z1.percent_suitable == pytest.approx(100.0)
    assert report.total_suitable_area_km2 == pytest.approx(total)


def test_boundary_cell_too_deep_is_excluded(make_raster, make_zones):
    total = _grid_area(make_raster)
    zones = make_zones([("Z1", "Zone one", total, WHOLE_GRID)])
    depth_values = np.full((3, 3), -30.0)
    depth_values[1, 2] = -80.0
    depth = make_raster(depth_values, name="depth")

    pipeline = SuitabilityPipeline(_sst_stack(make_raster), depth, zones)
    result = pipeline.run(OYSTER)

    assert np.isnan(result.mask.data[1, 2])
    assert result.mask.count_valid() == 8
    excluded = pipeline.prepared.cell_area.data[1, 2]
    assert result.report["Z1"].suitable_area_km2 == pytest.approx(total - excluded)
    assert result.report["Z1"].percent_suitable < 100.0


def test_repeat_runs_are_identical(make_raster, make_zones):
    zones = make_zones([("Z1", "Zone one", 40_000, WHOLE_GRID)])
    depth = make_raster(np.array([[-10.0, -60.0, -90.0]] * 3))
    stack = _sst_stack(make_raster)

    first = _run(stack, depth, zones)
    second = _run(stack, depth, zones)

    assert first == second
    assert first.to_frame().equals(second.to_frame())


def test_pipeline_matches_functional_evaluate(make_raster, make_zones):
    zones = make_zones(
        [("W", "West", 30_000, box(-125.0, 37.0, -124.1, 40.0)), ("E", "East", 60_000, box(-123.9, 37.0, -122.0, 40.0))]
    )
    depth = make_raster(np.array([[-10.0, -60.0, -90.0], [5.0, -20.0, -40.0], [-70.0, -71.0, 0.0]]))
    stack = _sst_stack(make_raster)
    crab = SpeciesTolerance("dungeness crab", 3, 19, 0, 360)

    pipeline = SuitabilityPipeline(stack, depth, zones)
    many = pipeline.evaluate_many([OYSTER, crab])

    assert many["oyster"] == _run(stack, depth, zones, OYSTER)
    assert many["dungeness crab"] == _run(stack, depth, zones, crab)


def test_species_outside_sst_range_has_zero_everywhere(make_raster, make_zones):
    zones = make_zones([("Z1", "Zone one", 40_000, WHOLE_GRID)])
    depth = make_raster(np.full((3, 3), -30.0))
    cold = SpeciesTolerance("cold", 0, 5, 0, 70)

    report = _run(_sst_stack(make_raster), depth, zones, cold)

    assert report["Z1"].suitable_area_km2 == 0.0
    assert report["Z1"].percent_suitable == 0.0


def test_sign_inconsistent_depth_bounds_report_zero(make_raster, make_zones):
    zones = make_zones([("Z1", "Zone one", 40_000, WHOLE_GRID)])
    depth = make_raster(np.full((3, 3), -30.0))

    report = evaluate(11, 30, -70, 0, "oyster", _sst_stack(make_raster), depth, zones)

    assert report["Z1"].suitable_area_km2 == 0.0


def test_depth_on_finer_grid_is_aligned(make_raster, make_zones):
    total = _grid_area(make_raster)
    zones = make_zones([("Z1", "Zone one", total, WHOLE_GRID)])
    fine = np.full((9, 9), -30.0)
    fine[3:6, 3:6] = -500.0  # centre cell block too deep
    depth = make_raster(fine, res=1.0 / 3.0)

    result = SuitabilityPipeline(_sst_stack(make_raster), depth, zones).run(OYSTER)

    assert result.mask.count_valid() == 8
    assert np.isnan(result.mask.data[1, 1])


def test_partial_sst_nodata_uses_remaining_years(make_raster, make_zones):
    zones = make_zones([("Z1", "Zone one", 40_000, WHOLE_GRID)])
    depth = make_raster(np.full((3, 3), -30.0))
    layers = list(_sst_stack(make_raster))
    gap = np.full((3, 3), 288.15)
    gap[0, 0] = np.nan
    layers[0] = make_raster(gap, name="sst_2008")
    all_missing = [make_raster(np.where(np.eye(3, dtype=bool), np.nan, layer.data)) for layer in layers]

    with_gap = SuitabilityPipeline(RasterStack(tuple(layers)), depth, zones).run(OYSTER)
    missing = SuitabilityPipeline(RasterStack(tuple(all_missing)), depth, zones).run(OYSTER)

    assert with_gap.mask.data[0, 0] == 1.0
    assert missing.mask.count_valid() == 6


def test_depth_without_crs_fails(make_raster, make_zones):
    zones = make_zones([("Z1", "Zone one", 40_000, WHOLE_GRID)])
    depth = make_raster(np.full((3, 3), -30.0), crs=None)
    with pytest.raises(AlignmentError):
        _run(_sst_stack(make_raster), depth, zones)


def test_raw_zone_layer_is_rejected_up_front(make_raster, make_zones):
    raw = make_zones([("Z1", "Zone one", 40_000, WHOLE_GRID)]).rename(columns={"key": "rgn_key"})
    depth = make_raster(np.full((3, 3), -30.0))
    with pytest.raises(ValueError, match="key"):
        _run(_sst_stack(make_raster), depth, raw)
