#!/usr/bin/env python3
"""mariculture.suitability

Species suitability CLI for the West Coast EEZ.

Reads the SST stack, bathymetry and EEZ regions listed in sources.yaml, runs
the suitability pipeline for one or more species, and prints a table of
suitable area per region.

Design notes:
- Inputs are loaded and prepared once, then shared across species
- Species come from species.yaml presets or explicit bounds on the command line
- Lazy-imports the raster stack so `species` and `--dry-run` stay fast
- All subcommands support --dry-run for safe exploration

Examples:
  # Oysters, using the preset in config/species.yaml
  python -m mariculture.suitability evaluate --species oyster

  # Several presets, writing CSV/GeoPackage/GeoTIFF/PNG outputs
  python -m mariculture.suitability evaluate --species oyster --species "dungeness crab" \
    --out-dir data/processed/suitability

  # Any species by explicit bounds (degC, positive metres below sea level)
  python -m mariculture.suitability evaluate --name "red abalone" \
    --min-temp 8 --max-temp 18 --min-depth 0 --max-depth 24

  # List presets / check inputs exist
  python -m mariculture.suitability species
  python -m mariculture.suitability verify
"""

from __future__ import annotations

import argparse
import contextlib
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from mariculture.config import (
    load_yaml,
    load_species_yaml,
    resolve_inputs,
    format_bbox,
    InputPaths,
    SpeciesTolerance,
    DEFAULT_SOURCES_YAML,
    DEFAULT_SPECIES_YAML,
)


# -----------------------------------------------------------------------------
# CLI structure
# -----------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for mariculture.suitability.

    Structure:
    - Global args: apply to all subcommands (--sources-yaml, --dry-run, etc.)
    - Subcommands: evaluate, species, verify
    """
    ap = argparse.ArgumentParser(
        prog="mariculture.suitability",
        description="Marine aquaculture suitability by EEZ region",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    # --- Global args ---
    ap.add_argument(
        "--sources-yaml",
        type=Path,
        default=DEFAULT_SOURCES_YAML,
        help=f"Path to sources YAML (default: {DEFAULT_SOURCES_YAML})",
    )
    ap.add_argument(
        "--species-yaml",
        type=Path,
        default=DEFAULT_SPECIES_YAML,
        help=f"Path to species presets YAML (default: {DEFAULT_SPECIES_YAML})",
    )
    ap.add_argument(
        "--dry-run",
        action="store_true",
        help="Print planned actions without reading rasters or writing files",
    )
    ap.add_argument(
        "--overwrite",
        action="store_true",
        help="Overwrite existing output files",
    )

    # --- Subcommands ---
    sub = ap.add_subparsers(dest="command", required=True)

    # --- evaluate ---
    ev = sub.add_parser(
        "evaluate",
        help="Compute suitable area per region for one or more species",
        description="""
Run the suitability pipeline:
1. Align bathymetry to the SST grid (nearest neighbour)
2. Average the SST years and convert Kelvin to Celsius
3. Classify SST and depth against the species range (inclusive)
4. Intersect the two masks
5. Sum suitable cell area per EEZ region

Depth bounds are positive metres below sea level (0-70 = surface to 70 m).
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    ev.add_argument(
        "--species",
        action="append",
        default=None,
        help="Species preset name from species YAML (repeatable)",
    )
    ev.add_argument("--name", default=None, help="Species name for explicit bounds")
    ev.add_argument("--min-temp", type=float, default=None, help="Minimum SST (degC)")
    ev.add_argument("--max-temp", type=float, default=None, help="Maximum SST (degC)")
    ev.add_argument("--min-depth", type=float, default=None, help="Minimum depth (m below sea level)")
    ev.add_argument("--max-depth", type=float, default=None, help="Maximum depth (m below sea level)")
    ev.add_argument(
        "--out-dir",
        type=Path,
        default=None,
        help="Write <species>_report.csv, _zones.gpkg, _mask.tif and _map.png here",
    )
    ev.add_argument("--json", action="store_true", help="Emit report rows as JSON to stdout")

    # --- species ---
    sub.add_parser("species", help="List species presets")

    # --- verify ---
    ver = sub.add_parser("verify", help="Check that configured input files exist")
    ver.add_argument("--json", action="store_true", help="Emit JSON to stdout")

    return ap


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------

def _explicit_tolerance(args: argparse.Namespace) -> Optional[SpeciesTolerance]:
    """Build a tolerance from --name/--min-*/--max-*, or None if none given."""
    values = [args.min_temp, args.max_temp, args.min_depth, args.max_depth]
    if args.name is None and all(v is None for v in values):
        return None
    if args.name is None or any(v is None for v in values):
        raise SystemExit(
            "Explicit bounds need all of --name --min-temp --max-temp --min-depth --max-depth"
        )
    try:
        return SpeciesTolerance(
            name=args.name,
            min_temp=args.min_temp,
            max_temp=args.max_temp,
            min_depth=args.min_depth,
            max_depth=args.max_depth,
        )
    except ValueError as e:
        raise SystemExit(str(e)) from e


def resolve_tolerances(args: argparse.Namespace) -> List[SpeciesTolerance]:
    """Species to evaluate: presets named by --species, then any explicit bounds."""
    tolerances: List[SpeciesTolerance] = []

    if args.species:
        presets = load_species_yaml(args.species_yaml)
        for name in args.species:
            if name not in presets:
                raise SystemExit(f"Unknown species {name!r}. Presets: {sorted(presets)}")
            tolerances.append(presets[name])

    explicit = _explicit_tolerance(args)
    if explicit is not None:
        tolerances.append(explicit)

    if not tolerances:
        raise SystemExit("Nothing to evaluate: pass --species NAME or explicit bounds")
    return tolerances


def _output_paths(out_dir: Path, tol: SpeciesTolerance) -> Dict[str, Path]:
    return {
        "csv": out_dir / f"{tol.slug}_report.csv",
        "gpkg": out_dir / f"{tol.slug}_zones.gpkg",
        "tif": out_dir / f"{tol.slug}_mask.tif",
        "png": out_dir / f"{tol.slug}_map.png",
    }


def _verify_inputs(sources_yaml: Dict[str, Any]) -> List[Dict[str, Any]]:
    inputs = resolve_inputs(sources_yaml)
    return [{"path": str(p), "ok": p.exists()} for p in inputs.all_paths()]


def _run_evaluate(
    args: argparse.Namespace,
    tolerances: List[SpeciesTolerance],
    inputs: InputPaths,
) -> List[Dict[str, Any]]:
    """Load inputs, run every species, print tables and write outputs.

    Returns the report rows of every species (for --json).
    """
    # Lazy import: keeps `species`/`verify` free of rasterio/geopandas startup cost
    from mariculture.raster import read_raster, read_raster_stack, write_raster
    from mariculture.suitability.pipeline import SuitabilityPipeline
    from mariculture.zones.prep_zones import load_zones

    sst = read_raster_stack(inputs.sst_paths)
    depth = read_raster(inputs.depth_path)
    zones = load_zones(
        inputs.zones_path,
        key_field=inputs.zone_key_field,
        name_field=inputs.zone_name_field,
        area_field=inputs.zone_area_field,
    )

    pipeline = SuitabilityPipeline(sst, depth, zones, sst_units=inputs.sst_units)
    grid = pipeline.prepared.sst_celsius
    print(f"[ALIGN] grid={grid.shape} res={grid.res} bounds={format_bbox(grid.bounds)}")

    json_rows: List[Dict[str, Any]] = []
    for tol in tolerances:
        result = pipeline.run(tol)
        report = result.report
        print(f"[EVAL] {tol.name}: {result.mask.count_valid()} suitable cells, "
              f"{report.total_suitable_area_km2:,.1f} km² total, "
              f"{report.zoned_suitable_area_km2():,.1f} km² inside regions")

        if args.json:
            json_rows.extend(report.to_frame().to_dict(orient="records"))
        else:
            print(report.format_table())
            print()

        if args.out_dir is None:
            continue

        from mariculture.render import join_report, plot_suitability_maps

        paths = _output_paths(args.out_dir, tol)
        args.out_dir.mkdir(parents=True, exist_ok=True)
        for kind, path in paths.items():
            if path.exists() and not args.overwrite:
                print(f"[SKIP] {path}")
                continue
            if kind == "csv":
                report.to_frame().to_csv(path, index=False)
            elif kind == "gpkg":
                join_report(zones, report).to_file(path, layer=tol.slug, driver="GPKG")
            elif kind == "tif":
                write_raster(result.mask, path)
            elif kind == "png":
                plot_suitability_maps(report, zones, path)
            print(f"[WRITE] {path}")

    return json_rows


# -----------------------------------------------------------------------------
# Command handlers
# -----------------------------------------------------------------------------

def _handle_evaluate(args: argparse.Namespace) -> int:
    """Handle the evaluate subcommand."""
    tolerances = resolve_tolerances(args)
    inputs = resolve_inputs(load_yaml(args.sources_yaml))

    if args.dry_run:
        print("[dry-run] Would evaluate:")
        for tol in tolerances:
            print(
                f"  - {tol.name}: {tol.min_temp:g}-{tol.max_temp:g} degC, "
                f"{tol.min_depth:g}-{tol.max_depth:g} m"
            )
        print(f"  SST layers ({inputs.sst_units}): {len(inputs.sst_paths)}")
        for p in inputs.sst_paths:
            print(f"    - {p}")
        print(f"  Depth: {inputs.depth_path}")
        print(f"  Zones: {inputs.zones_path} (key={inputs.zone_key_field})")
        if args.out_dir:
            print(f"  Output dir: {args.out_dir}")
        return 0

    if not args.json:
        _run_evaluate(args, tolerances, inputs)
        return 0

    # stdout carries only the JSON document; progress lines go to stderr
    with contextlib.redirect_stdout(sys.stderr):
        json_rows = _run_evaluate(args, tolerances, inputs)
    print(json.dumps(json_rows, indent=2))
    return 0


def _handle_species(args: argparse.Namespace) -> int:
    """Handle the species subcommand."""
    presets = load_species_yaml(args.species_yaml)
    for tol in presets.values():
        print(
            f"{tol.name:<20} temp {tol.min_temp:g}-{tol.max_temp:g} degC  "
            f"depth {tol.min_depth:g}-{tol.max_depth:g} m"
        )
    return 0


def _handle_verify(args: argparse.Namespace) -> int:
    """Handle the verify subcommand. Exit code 2 if anything is missing."""
    results = _verify_inputs(load_yaml(args.sources_yaml))
    ok = all(r["ok"] for r in results)
    if args.json:
        print(json.dumps({"ok": ok, "results": results}, indent=2))
    else:
        for r in results:
            status = "OK" if r["ok"] else "MISSING"
            print(f"[{status}] {r['path']}")
        print(f"Overall: {'OK' if ok else 'NOT OK'}")
    return 0 if ok else 2


# -----------------------------------------------------------------------------
# Main entrypoint
# -----------------------------------------------------------------------------

def main(argv: Optional[List[str]] = None) -> int:
    """Main entrypoint for mariculture.suitability CLI."""
    ap = build_parser()
    args = ap.parse_args(argv)

    handlers = {
        "evaluate": _handle_evaluate,
        "species": _handle_species,
        "verify": _handle_verify,
    }

    handler = handlers.get(args.command)
    if handler is None:
        raise SystemExit(f"Unknown command: {args.command}")

    return handler(args)


if __name__ == "__main__":
    raise SystemExit(main())
