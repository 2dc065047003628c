#!/usr/bin/env python3
"""report.py

Suitability-by-zone report: one named record per zone, keyed by zone key.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Tuple

import pandas as pd

from mariculture.config import SpeciesTolerance


# Display headers for the text table
TABLE_COLUMNS = {
    "name": "Region",
    "suitable_area_km2": "Total Suitable Area (km²)",
    "percent_suitable": "Percent Suitable Area",
}


@dataclass(frozen=True)
class ZoneSuitability:
    key: str
    name: str
    zone_area_km2: float
    suitable_area_km2: float
    percent_suitable: float


@dataclass(frozen=True)
class SuitabilityReport:
    species: SpeciesTolerance
    rows: Tuple[ZoneSuitability, ...]
    total_suitable_area_km2: float

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self) -> Iterator[ZoneSuitability]:
        return iter(self.rows)

    def __getitem__(self, key: str) -> ZoneSuitability:
        for row in self.rows:
            if row.key == key:
                return row
        raise KeyError(f"No zone {key!r} in report. Zones: {self.keys()}")

    def keys(self) -> Tuple[str, ...]:
        return tuple(row.key for row in self.rows)

    def zoned_suitable_area_km2(self) -> float:
        return float(sum(row.suitable_area_km2 for row in self.rows))

    def to_frame(self) -> pd.DataFrame:
        """Report as a DataFrame (one row per zone, named columns)."""
        df = pd.DataFrame(
            [
                {
                    "key": r.key,
                    "name": r.name,
                    "zone_area_km2": r.zone_area_km2,
                    "suitable_area_km2": r.suitable_area_km2,
                    "percent_suitable": r.percent_suitable,
                }
                for r in self.rows
            ],
            columns=["key", "name", "zone_area_km2", "suitable_area_km2", "percent_suitable"],
        )
        df.insert(0, "species", self.species.name)
        return df

    def format_table(self, precision: int = 2) -> str:
        """Plain-text table: Region, Total Suitable Area (km²), Percent Suitable Area."""
        df = self.to_frame()[list(TABLE_COLUMNS)].rename(columns=TABLE_COLUMNS)
        body = df.to_string(index=False, float_format=lambda v: f"{v:,.{precision}f}")
        s = self.species
        header = (
            f"Suitable area for {s.name} "
            f"({s.min_temp:g}-{s.max_temp:g} °C, {s.min_depth:g}-{s.max_depth:g} m)"
        )
        return f"{header}\n{body}"
