#!/usr/bin/env python3

from __future__ import annotations

import pytest

from mariculture.config import SpeciesTolerance
from mariculture.suitability.report import SuitabilityReport, ZoneSuitability


def _report():
    rows = (
        ZoneSuitability("CA-C", "Central California", 202_738.0, 4_069.9, 2.0075),
        ZoneSuitability("WA", "Washington", 67_813.0, 0.0, 0.0),
    )
    return SuitabilityReport(
        species=SpeciesTolerance("oyster", 11, 30, 0, 70),
        rows=rows,
        total_suitable_area_km2=4_500.0,
    )


def test_lookup_by_key():
    report = _report()
    assert report["WA"].name == "Washington"
    assert report.keys() == ("CA-C", "WA")
    with pytest.raises(KeyError):
        report["OR"]


def test_zoned_area_not_above_total():
    report = _report()
    assert report.zoned_suitable_area_km2() <= report.total_suitable_area_km2


def test_to_frame_named_columns():
    df = _report().to_frame()
    assert list(df.columns) == [
        "species",
        "key",
        "name",
        "zone_area_km2",
        "suitable_area_km2",
        "percent_suitable",
    ]
    assert df["species"].unique().tolist() == ["oyster"]


def test_format_table_headers():
    text = _report().format_table()
    first, header = text.splitlines()[:2]
    assert "oyster" in first and "11-30 °C" in first and "0-70 m" in first
    for col in ("Region", "Total Suitable Area (km²)", "Percent Suitable Area"):
        assert col in header
    assert "4,069.90" in text
    assert "Washington" in text
