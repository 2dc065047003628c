#!/usr/bin/env python3
"""render.py

Choropleth maps for a SuitabilityReport: percent of each zone that is
suitable, and suitable area in km².

Required deps: geopandas, matplotlib
"""

from __future__ import annotations

from pathlib import Path

import geopandas as gpd
import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402

from mariculture.suitability.report import SuitabilityReport  # noqa: E402


def join_report(zones: gpd.GeoDataFrame, report: SuitabilityReport) -> gpd.GeoDataFrame:
    """Zone geometries with the report columns attached (left join on key)."""
    df = report.to_frame().drop(columns=["name", "zone_area_km2"])
    return zones.merge(df, on="key", how="left")


def plot_suitability_maps(
    report: SuitabilityReport,
    zones: gpd.GeoDataFrame,
    out_png: Path,
    *,
    dpi: int = 150,
) -> Path:
    gdf = join_report(zones, report)

    fig, axes = plt.subplots(1, 2, figsize=(11, 7))
    panels = [
        ("percent_suitable", "Percent suitable area (%)", "YlGnBu"),
        ("suitable_area_km2", "Suitable area (km²)", "PuBuGn"),
    ]
    for ax, (column, title, cmap) in zip(axes, panels):
        gdf.plot(column=column, ax=ax, cmap=cmap, legend=True, edgecolor="grey", linewidth=0.5)
        for _, row in gdf.iterrows():
            pt = row.geometry.representative_point()
            ax.annotate(row["name"], xy=(pt.x, pt.y), ha="center", fontsize=7)
        ax.set_title(title)
        ax.set_axis_off()

    fig.suptitle(f"Suitable habitat for {report.species.name}, West Coast EEZ")
    fig.tight_layout()

    out_png.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(out_png, dpi=dpi)
    plt.close(fig)
    return out_png
