"""Core type aliases for harmonize-core rasters and cubes."""

from __future__ import annotations

from typing import Sequence

import xarray as xr

# ---------------------------------------------------------------------------
# Public type aliases
# ---------------------------------------------------------------------------

Raster = xr.DataArray
"""A single acquisition – DataArray with ``(bands, y, x)`` dims and scene metadata in ``attrs``."""

RasterCube = xr.DataArray
"""A stacked collection – DataArray with ``(time, bands, y, x)`` dims (numpy or dask-backed)."""

RasterCollection = Sequence[Raster]
"""An ordered sequence of rasters, in catalog order."""

# ---------------------------------------------------------------------------
# Scene metadata keys
# ---------------------------------------------------------------------------

SATELLITE = "SATELLITE"
"""Attribute holding the sensor identifier, e.g. ``"LANDSAT_8"``."""

TIME_START = "system:time_start"
"""Attribute holding the acquisition timestamp."""

QA_BAND = "pixel_qa"
"""Label of the quality-assessment bitmask band."""
