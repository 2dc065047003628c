#!/usr/bin/env python3
"""mariculture.config

Shared configuration utilities for the mariculture CLI and pipeline.

This module holds the helpers that mariculture.suitability and the loaders
have in common: YAML loading, species presets and input path resolution.

Design notes:
- YAML loading is strict: files must exist and be valid mappings.
- Species bounds are validated for ordering only. Depth sign is NOT checked
  here (see mariculture.suitability.classify.depth_bounds).
- All functions are pure (no side effects on import).
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml


# -----------------------------------------------------------------------------
# YAML loading
# -----------------------------------------------------------------------------

def load_yaml(path: Path) -> Dict[str, Any]:
    """Load a YAML file and return as dict.

    Raises SystemExit on missing file or invalid format (non-mapping).
    Config errors should fail fast.
    """
    if not path.exists():
        raise SystemExit(f"Config not found: {path}")
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if not isinstance(data, dict):
        raise SystemExit(f"Expected YAML mapping at {path}")
    return data


# -----------------------------------------------------------------------------
# Species presets
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class SpeciesTolerance:
    """Temperature (degC) and depth (positive metres below sea level) range."""

    name: str
    min_temp: float
    max_temp: float
    min_depth: float
    max_depth: float

    def __post_init__(self) -> None:
        if self.min_temp > self.max_temp:
            raise ValueError(
                f"{self.name}: min_temp ({self.min_temp}) must be <= max_temp ({self.max_temp})"
            )
        if self.min_depth > self.max_depth:
            raise ValueError(
                f"{self.name}: min_depth ({self.min_depth}) must be <= max_depth ({self.max_depth})"
            )

    @property
    def slug(self) -> str:
        """Filesystem-friendly version of the name (used for output files)."""
        return "_".join(self.name.lower().split())


def species_from_dict(d: Dict[str, Any]) -> SpeciesTolerance:
    """Build a SpeciesTolerance from one YAML entry."""
    missing = [k for k in ("name", "min_temp", "max_temp", "min_depth", "max_depth") if k not in d]
    if missing:
        raise ValueError(f"Species entry missing keys {missing}: {d}")
    return SpeciesTolerance(
        name=str(d["name"]),
        min_temp=float(d["min_temp"]),
        max_temp=float(d["max_temp"]),
        min_depth=float(d["min_depth"]),
        max_depth=float(d["max_depth"]),
    )


def load_species_yaml(path: Path) -> Dict[str, SpeciesTolerance]:
    """Load species presets from a species YAML file.

    Expects structure like:
        species:
          - name: oyster
            min_temp: 11
            max_temp: 30
            min_depth: 0
            max_depth: 70

    Returns presets keyed by name, in file order.
    Raises ValueError if structure is invalid or names repeat.
    """
    data = load_yaml(path)
    if "species" not in data or not isinstance(data["species"], list):
        raise ValueError(f"{path} must have a top-level 'species:' list.")

    presets: Dict[str, SpeciesTolerance] = {}
    for entry in data["species"]:
        if not isinstance(entry, dict):
            raise ValueError(f"{path}: species entries must be mappings, got {entry!r}")
        tol = species_from_dict(entry)
        if tol.name in presets:
            raise ValueError(f"{path}: duplicate species name {tol.name!r}")
        presets[tol.name] = tol
    return presets


# -----------------------------------------------------------------------------
# Input paths
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class InputPaths:
    sst_paths: Tuple[Path, ...]
    sst_units: str
    depth_path: Path
    zones_path: Path
    zone_key_field: str
    zone_name_field: str
    zone_area_field: Optional[str]

    def all_paths(self) -> List[Path]:
        return [*self.sst_paths, self.depth_path, self.zones_path]


def resolve_inputs(sources_yaml: Dict[str, Any]) -> InputPaths:
    """Resolve raster/vector input paths from a parsed sources.yaml.

    Expects:
        sources:
          sst:   {paths: [...], units: kelvin}
          depth: {path: ...}
          zones: {path: ..., key_field: ..., name_field: ..., area_field: ...}
    """
    sources = sources_yaml.get("sources")
    if not isinstance(sources, dict):
        raise SystemExit("sources.yaml must contain top-level 'sources:' mapping")

    sst = sources.get("sst")
    if not isinstance(sst, dict) or not isinstance(sst.get("paths"), list) or not sst["paths"]:
        raise SystemExit("sources.yaml missing sources: -> sst -> paths (non-empty list)")

    depth = sources.get("depth")
    if not isinstance(depth, dict) or not depth.get("path"):
        raise SystemExit("sources.yaml missing sources: -> depth -> path")

    zones = sources.get("zones")
    if not isinstance(zones, dict) or not zones.get("path"):
        raise SystemExit("sources.yaml missing sources: -> zones -> path")

    return InputPaths(
        sst_paths=tuple(Path(p) for p in sst["paths"]),
        sst_units=str(sst.get("units", "kelvin")),
        depth_path=Path(depth["path"]),
        zones_path=Path(zones["path"]),
        zone_key_field=str(zones.get("key_field", "rgn_key")),
        zone_name_field=str(zones.get("name_field", "rgn")),
        zone_area_field=zones.get("area_field"),
    )


# -----------------------------------------------------------------------------
# Formatting
# -----------------------------------------------------------------------------

def format_bbox(b: Tuple[float, float, float, float], precision: int = 5) -> str:
    """Format a bbox tuple as a readable string."""
    return f"[{b[0]:.{precision}f}, {b[1]:.{precision}f}, {b[2]:.{precision}f}, {b[3]:.{precision}f}]"


# -----------------------------------------------------------------------------
# Default paths
# -----------------------------------------------------------------------------
# Centralized so the CLI and any notebook use the same defaults.

DEFAULT_SOURCES_YAML = Path("config/sources.yaml")
DEFAULT_SPECIES_YAML = Path("config/species.yaml")
