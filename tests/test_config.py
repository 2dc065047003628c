#!/usr/bin/env python3

from __future__ import annotations

from pathlib import Path

import pytest

from mariculture import config as cfg

ROOT = Path(__file__).resolve().parents[1]


def test_load_yaml_missing_file_exits(tmp_path):
    with pytest.raises(SystemExit):
        cfg.load_yaml(tmp_path / "nope.yaml")


def test_load_yaml_rejects_non_mapping(tmp_path):
    p = tmp_path / "list.yaml"
    p.write_text("- a\n- b\n")
    with pytest.raises(SystemExit):
        cfg.load_yaml(p)


def test_repo_species_presets_include_oyster():
    presets = cfg.load_species_yaml(ROOT / "config" / "species.yaml")
    oyster = presets["oyster"]
    assert (oyster.min_temp, oyster.max_temp) == (11.0, 30.0)
    assert (oyster.min_depth, oyster.max_depth) == (0.0, 70.0)


def test_species_yaml_duplicate_names(tmp_path):
    p = tmp_path / "species.yaml"
    p.write_text(
        "species:\n"
        "  - {name: a, min_temp: 1, max_temp: 2, min_depth: 0, max_depth: 5}\n"
        "  - {name: a, min_temp: 1, max_temp: 2, min_depth: 0, max_depth: 5}\n"
    )
    with pytest.raises(ValueError):
        cfg.load_species_yaml(p)


def test_species_entry_missing_keys():
    with pytest.raises(ValueError):
        cfg.species_from_dict({"name": "x", "min_temp": 1})


def test_tolerance_rejects_inverted_ranges():
    with pytest.raises(ValueError):
        cfg.SpeciesTolerance("x", min_temp=30, max_temp=11, min_depth=0, max_depth=70)
    with pytest.raises(ValueError):
        cfg.SpeciesTolerance("x", min_temp=11, max_temp=30, min_depth=70, max_depth=0)


def test_tolerance_does_not_check_depth_sign():
    tol = cfg.SpeciesTolerance("x", min_temp=11, max_temp=30, min_depth=-70, max_depth=0)
    assert tol.min_depth == -70


def test_slug():
    tol = cfg.SpeciesTolerance("Dungeness  Crab", 3, 19, 0, 360)
    assert tol.slug == "dungeness_crab"


def test_resolve_inputs_from_repo_sources():
    inputs = cfg.resolve_inputs(cfg.load_yaml(ROOT / "config" / "sources.yaml"))
    assert len(inputs.sst_paths) == 5
    assert inputs.sst_units == "kelvin"
    assert inputs.zone_key_field == "rgn_key"
    assert inputs.zone_area_field == "area_km2"
    assert len(inputs.all_paths()) == 7


def test_resolve_inputs_missing_section():
    with pytest.raises(SystemExit):
        cfg.resolve_inputs({"sources": {"sst": {"paths": ["a.tif"]}}})


def test_format_bbox():
    assert cfg.format_bbox((-125, 37, -122, 40), precision=1) == "[-125.0, 37.0, -122.0, 40.0]"
