#!/usr/bin/env python3
"""mariculture.raster

In-memory raster types and GeoTIFF I/O.

A Raster is a single 2-D band with its grid geometry (transform + CRS).
No-data is always NaN in memory, whatever sentinel the source file used, so
that no-data propagates through arithmetic (mean, multiply) without
special-casing.

Rasters are immutable: the array is copied on construction and flagged
read-only. Every pipeline stage returns a new Raster.

Required deps: rasterio, numpy
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, Optional, Sequence, Tuple, Union

import numpy as np
import rasterio
from rasterio.errors import RasterioIOError
from rasterio.crs import CRS
from rasterio.transform import Affine, array_bounds


BBox = Tuple[float, float, float, float]


class AlignmentError(ValueError):
    """Raised when rasters cannot be put on (or are not on) a common grid."""


def _frozen(data) -> np.ndarray:
    arr = np.array(data, dtype=np.float64, copy=True)
    if arr.ndim != 2:
        raise ValueError(f"Raster data must be 2-D, got shape {arr.shape}")
    arr.setflags(write=False)
    return arr


@dataclass(frozen=True, eq=False)
class Raster:
    """One band on a defined grid. NaN marks no-data."""

    data: np.ndarray
    transform: Affine
    crs: Optional[CRS]
    name: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "data", _frozen(self.data))

    @property
    def shape(self) -> Tuple[int, int]:
        return self.data.shape  # type: ignore[return-value]

    @property
    def height(self) -> int:
        return self.data.shape[0]

    @property
    def width(self) -> int:
        return self.data.shape[1]

    @property
    def bounds(self) -> BBox:
        """(xmin, ymin, xmax, ymax) in the raster's CRS."""
        west, south, east, north = array_bounds(self.height, self.width, self.transform)
        return (west, south, east, north)

    @property
    def res(self) -> Tuple[float, float]:
        return (abs(self.transform.a), abs(self.transform.e))

    def same_grid(self, other: "Raster") -> bool:
        """True if the two rasters can be combined cell-by-cell."""
        return (
            self.shape == other.shape
            and self.transform == other.transform
            and self.crs == other.crs
        )

    def with_data(self, data, name: Optional[str] = None) -> "Raster":
        """New raster on the same grid with different values."""
        return Raster(data, self.transform, self.crs, name=self.name if name is None else name)

    def count_valid(self) -> int:
        return int(np.count_nonzero(~np.isnan(self.data)))


def require_same_grid(a: Raster, b: Raster, what: str = "rasters") -> None:
    if not a.same_grid(b):
        raise AlignmentError(
            f"{what} are not on the same grid: "
            f"{a.name or '<unnamed>'} shape={a.shape} crs={a.crs} vs "
            f"{b.name or '<unnamed>'} shape={b.shape} crs={b.crs}"
        )


@dataclass(frozen=True, eq=False)
class RasterStack:
    """Ordered layers sharing identical grid geometry."""

    layers: Tuple[Raster, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        layers = tuple(self.layers)
        if not layers:
            raise ValueError("RasterStack needs at least one layer")
        for layer in layers[1:]:
            require_same_grid(layers[0], layer, what="stack layers")
        object.__setattr__(self, "layers", layers)

    def __len__(self) -> int:
        return len(self.layers)

    def __iter__(self) -> Iterator[Raster]:
        return iter(self.layers)

    def __getitem__(self, key: Union[int, str]) -> Raster:
        if isinstance(key, str):
            for layer in self.layers:
                if layer.name == key:
                    return layer
            raise KeyError(f"No layer named {key!r}. Layers: {self.names}")
        return self.layers[key]

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple(layer.name for layer in self.layers)

    @property
    def grid(self) -> Raster:
        """First layer; all layers share its grid."""
        return self.layers[0]


# -----------------------------------------------------------------------------
# GeoTIFF I/O
# -----------------------------------------------------------------------------

def read_raster(path: Path, band: int = 1) -> Raster:
    """Read one band from a GeoTIFF into a Raster (nodata -> NaN)."""
    path = Path(path)
    if not path.exists():
        raise SystemExit(f"Raster not found: {path}")

    try:
        with rasterio.open(path) as src:
            data = src.read(band).astype(np.float64)
            nodata = src.nodata
            transform = src.transform
            crs = src.crs
    except RasterioIOError as e:
        raise SystemExit(f"Could not read raster {path}: {e}") from e

    # nodata may itself be NaN; isnan handles that case already
    if nodata is not None and not np.isnan(nodata):
        data[data == nodata] = np.nan

    print(f"[LOAD] {path.name} shape={data.shape} crs={crs}")
    return Raster(data, transform, crs, name=path.stem)


def read_raster_stack(paths: Sequence[Path]) -> RasterStack:
    """Read several single-band GeoTIFFs into a RasterStack."""
    if not paths:
        raise SystemExit("No raster paths given for stack")
    return RasterStack(tuple(read_raster(Path(p)) for p in paths))


def write_raster(raster: Raster, out_path: Path) -> None:
    """Write a Raster to a single-band float32 GeoTIFF with NaN nodata."""
    profile = {
        "driver": "GTiff",
        "height": raster.height,
        "width": raster.width,
        "count": 1,
        "dtype": "float32",
        "crs": raster.crs,
        "transform": raster.transform,
        "nodata": np.nan,
        "compress": "deflate",
    }
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with rasterio.open(out_path, "w", **profile) as dst:
        dst.write(raster.data.astype(np.float32), 1)
