"""Raster operations – xarray / dask implementations of the harmonization steps."""

from __future__ import annotations

import logging
import warnings
from typing import Any, Callable, Iterable

import numpy as np
import pandas as pd
import xarray as xr

from harmonize_core.coefficients import CoefficientSet, get_coefficients
from harmonize_core.exceptions import (
    BandExists,
    BandNotAvailable,
    DimensionAmbiguous,
    DimensionMismatchError,
    DimensionNotAvailable,
    EmptyGroupError,
    ReflectanceOverflowError,
)
from harmonize_core.sensors import SensorFamily, expand_satellites
from harmonize_core.types import QA_BAND, SATELLITE, TIME_START, RasterCube

logger = logging.getLogger(__name__)

INT16_MIN = int(np.iinfo(np.int16).min)
INT16_MAX = int(np.iinfo(np.int16).max)

# ---------------------------------------------------------------------------
# Shared validation
# ---------------------------------------------------------------------------


def _band_labels(data: RasterCube, bands_dim: str) -> list[str]:
    if bands_dim not in data.dims:
        raise DimensionAmbiguous(
            f"Dimension of type 'bands' ('{bands_dim}') is not available. "
            f"Available dimensions: {list(data.dims)}"
        )
    return [str(b) for b in data.coords[bands_dim].values]


def _require_bands(band_labels: list[str], *bands: str) -> None:
    for band in bands:
        if band not in band_labels:
            raise BandNotAvailable(
                f"The band '{band}' can't be resolved. "
                f"Available bands: {band_labels}."
            )


# ---------------------------------------------------------------------------
# Cloud / shadow mask
# ---------------------------------------------------------------------------


def qa_valid_mask(
    qa: xr.DataArray,
    *,
    cloud_bit: int = 5,
    shadow_bit: int = 3,
) -> xr.DataArray:
    """Return ``True`` where neither the cloud nor the cloud-shadow bit is set.

    *qa* is an integer bitmask.  Missing QA values (NaN) count as invalid.
    """
    if not isinstance(qa, xr.DataArray):
        qa = xr.DataArray(np.asarray(qa))
    for bit in (cloud_bit, shadow_bit):
        if not 0 <= bit < 16:
            raise ValueError(f"QA bit position must be within 0..15, got {bit}.")

    present = qa.notnull()
    bits = qa.fillna(0).astype(np.int64)
    clear = (bits & (1 << cloud_bit)) == 0
    unshadowed = (bits & (1 << shadow_bit)) == 0
    return clear & unshadowed & present


def mask_clouds(
    data: RasterCube,
    *,
    cloud_bit: int = 5,
    shadow_bit: int = 3,
    qa_band: str = QA_BAND,
    bands_dim: str = "bands",
) -> RasterCube:
    """Mark cloud and cloud-shadow pixels as no-data.

    The mask is derived from the *qa_band* bitmask (see
    :func:`qa_valid_mask`) and applied to every value band; masked pixels
    become NaN, never zero.  The QA band itself passes through unchanged.
    Integer input is promoted to ``float32`` so it can hold NaN.

    Raises
    ------
    DimensionAmbiguous
        If *bands_dim* is not present in the cube.
    BandNotAvailable
        If *qa_band* is not present.
    """
    band_labels = _band_labels(data, bands_dim)
    _require_bands(band_labels, qa_band)

    valid = qa_valid_mask(
        data.sel({bands_dim: qa_band}, drop=True),
        cloud_bit=cloud_bit,
        shadow_bit=shadow_bit,
    )
    is_qa = xr.DataArray(
        [b == qa_band for b in band_labels],
        dims=[bands_dim],
        coords={bands_dim: data.coords[bands_dim]},
    )

    if not np.issubdtype(data.dtype, np.floating):
        data = data.astype(np.float32)
    result = data.where(valid | is_qa).astype(data.dtype, copy=False)
    result.attrs.update(data.attrs)
    return result


# ---------------------------------------------------------------------------
# Reflectance harmonization
# ---------------------------------------------------------------------------


def _round_half_away(values: xr.DataArray) -> xr.DataArray:
    return np.sign(values) * np.floor(np.abs(values) + 0.5)


def harmonize(
    data: RasterCube,
    coefficients: str | CoefficientSet,
    *,
    sensors: Iterable[str | SensorFamily] | None = None,
    qa_band: str = QA_BAND,
    bands_dim: str = "bands",
) -> RasterCube:
    """Translate surface reflectance from one sensor's scale to another's.

    Applies ``round(x * slope + intercept)`` per band, or
    ``round((x - intercept) / slope)`` for an inverse coefficient set.
    Rounding is half away from zero.  Every band other than *qa_band*
    is transformed, in the order the bands appear on the cube; the QA
    band passes through unmodified.

    Parameters
    ----------
    data : RasterCube
        Normalized (and usually cloud-masked) raster or cube.
    coefficients : str | CoefficientSet
        A coefficient set or the name of a registered one.
    sensors : iterable of str | SensorFamily, optional
        Only transform time slices whose ``sensor`` coordinate is one of
        these satellites (families expand to their satellites).  Other
        slices keep their values, rounded the same way.  ``None``
        transforms everything.

    Returns
    -------
    RasterCube
        Integer input gives ``int16``.  A QA band whose values exceed the
        int16 range keeps its own dtype, and the cube is promoted to fit
        it.  Floating input, which may hold NaN no-data, gives
        ``float32`` integral values with NaN preserved.

    Raises
    ------
    DimensionMismatchError
        If the number of value bands differs from the coefficient count.
    ReflectanceOverflowError
        If a harmonized value falls outside the int16 range.
    """
    coeffs = get_coefficients(coefficients)
    band_labels = _band_labels(data, bands_dim)
    value_bands = [b for b in band_labels if b != qa_band]
    if len(value_bands) != len(coeffs.slopes):
        raise DimensionMismatchError(
            f"Coefficient set {coeffs.name!r} has {len(coeffs.slopes)} bands, "
            f"cube has {len(value_bands)} value bands: {value_bands}."
        )

    values = data.sel({bands_dim: value_bands})
    band_coord = {bands_dim: value_bands}
    slopes = xr.DataArray(np.asarray(coeffs.slopes), dims=[bands_dim], coords=band_coord)
    intercepts = xr.DataArray(np.asarray(coeffs.intercepts), dims=[bands_dim], coords=band_coord)

    as_float = values.astype(np.float64)
    if coeffs.inverse:
        transformed = (as_float - intercepts) / slopes
    else:
        transformed = as_float * slopes + intercepts

    if sensors is not None:
        if "sensor" not in data.coords:
            raise DimensionNotAvailable(
                "Selecting rasters by sensor requires a 'sensor' coordinate."
            )
        selected = data.coords["sensor"].isin(expand_satellites(sensors))
        transformed = xr.where(selected, transformed, as_float)
    transformed = _round_half_away(transformed)

    overflow = (transformed < INT16_MIN) | (transformed > INT16_MAX)
    if bool(overflow.any()):
        lo = float(transformed.min(skipna=True))
        hi = float(transformed.max(skipna=True))
        raise ReflectanceOverflowError(
            f"Harmonized values span [{lo:g}, {hi:g}], outside the int16 range "
            f"[{INT16_MIN}, {INT16_MAX}] (coefficient set {coeffs.name!r})."
        )

    if np.issubdtype(data.dtype, np.floating):
        out_dtype = np.float32
    else:
        out_dtype = np.int16
    transformed = transformed.astype(out_dtype)

    parts = [transformed]
    if qa_band in band_labels:
        qa = data.sel({bands_dim: [qa_band]})
        if out_dtype is np.float32:
            qa = qa.astype(np.float32)
        elif qa.dtype != np.int16 and INT16_MIN <= int(qa.min()) and int(qa.max()) <= INT16_MAX:
            qa = qa.astype(np.int16)
        parts.append(qa)
    result = xr.concat(parts, dim=bands_dim, coords="minimal", join="override")
    result = result.sel({bands_dim: band_labels}).transpose(*data.dims)
    result.attrs.update(data.attrs)
    result.attrs["harmonization"] = coeffs.name

    logger.debug("harmonized %s with %r", dict(data.sizes), coeffs.name)
    return result


# ---------------------------------------------------------------------------
# Normalized difference indices
# ---------------------------------------------------------------------------


def normalized_difference(
    data: RasterCube,
    *,
    band_a: str,
    band_b: str,
    target_band: str | None = None,
    name: str = "nd",
    bands_dim: str = "bands",
) -> RasterCube:
    """Compute ``(a - b) / (a + b)`` for two bands.

    Where ``a + b == 0`` the index is defined as 0; no division warning is
    raised.  NaN inputs stay NaN.

    Parameters
    ----------
    band_a, band_b : str
        Band labels of the two operands.
    target_band : str | None
        If given, the index is appended as a new band with this name and
        the *bands* dimension is kept.  If ``None`` (default) the *bands*
        dimension is dropped and the result is named *name*.

    Raises
    ------
    DimensionAmbiguous
        If *bands_dim* is not present in the data cube.
    BandNotAvailable
        If either operand band cannot be found.
    BandExists
        If *target_band* already exists as a label in the bands dimension.
    """
    band_labels = _band_labels(data, bands_dim)
    _require_bands(band_labels, band_a, band_b)
    if target_band is not None and target_band in band_labels:
        raise BandExists(f"A band with the name '{target_band}' already exists.")

    a = data.sel({bands_dim: band_a}, drop=True).astype(np.float32)
    b = data.sel({bands_dim: band_b}, drop=True).astype(np.float32)

    denominator = a + b
    nonzero = denominator != 0
    safe = xr.where(nonzero, denominator, 1)
    result = xr.where(nonzero, (a - b) / safe, 0).astype(np.float32)
    result.attrs.update(data.attrs)

    if target_band is not None:
        result = result.expand_dims({bands_dim: [target_band]})
        result = xr.concat(
            [data, result.transpose(*data.dims)],
            dim=bands_dim,
            coords="minimal",
            join="override",
        )
    else:
        result.name = name

    return result


def nbr(
    data: RasterCube,
    *,
    nir: str = "B5",
    swir: str = "B7",
    target_band: str | None = None,
    bands_dim: str = "bands",
) -> RasterCube:
    """Normalized Burn Ratio on the OLI band layout: ``(B5 - B7) / (B5 + B7)``."""
    return normalized_difference(
        data, band_a=nir, band_b=swir, target_band=target_band, name="nbr", bands_dim=bands_dim
    )


def ndvi(
    data: RasterCube,
    *,
    nir: str = "B5",
    red: str = "B4",
    target_band: str | None = None,
    bands_dim: str = "bands",
) -> RasterCube:
    """Normalized Difference Vegetation Index on the OLI band layout."""
    return normalized_difference(
        data, band_a=nir, band_b=red, target_band=target_band, name="ndvi", bands_dim=bands_dim
    )


# ---------------------------------------------------------------------------
# Reducers
# ---------------------------------------------------------------------------


def _count_valid(values: np.ndarray, axis: Any = None) -> np.ndarray:
    return np.isfinite(values).sum(axis=axis)


_REDUCERS: dict[str, Callable[..., Any]] = {
    "median": np.median,
    "mean": np.mean,
    "average": np.mean,
    "min": np.min,
    "max": np.max,
    "sum": np.sum,
    "std": np.std,
    "count": _count_valid,
}

# names with a NaN-aware xarray method
_SKIPNA_REDUCERS = ("median", "mean", "min", "max", "sum", "std")


def _resolve_reducer(reducer: str | Callable[..., Any]) -> Callable[..., Any]:
    """Turn a reducer name, dotted import path or callable into a callable."""
    if callable(reducer):
        return reducer
    if not isinstance(reducer, str):
        raise TypeError(f"reducer must be a callable or a string, got {type(reducer)!r}")

    if reducer in _REDUCERS:
        return _REDUCERS[reducer]

    module_name, _, attr = reducer.rpartition(".")
    if module_name:
        import importlib

        try:
            func = getattr(importlib.import_module(module_name), attr, None)
        except ImportError:
            func = None
        if callable(func):
            return func

    raise ValueError(
        f"Unknown reducer {reducer!r}. Expected a callable, one of "
        f"{sorted(_REDUCERS)}, or an import path such as 'numpy.nanmax'."
    )


def reduce_dimension(
    data: RasterCube,
    reducer: str | Callable[..., Any],
    *,
    dimension: str,
    skipna: bool = False,
) -> RasterCube:
    """Collapse *dimension* with *reducer*, dropping it from the result.

    *reducer* is a name from ``_REDUCERS``, an import path such as
    ``"numpy.nanmax"``, or a callable ``f(values, axis=...)``.  With
    *skipna*, the named reducers that xarray implements ignore NaN
    no-data; other reducers see NaN as-is.

    Raises
    ------
    DimensionNotAvailable
        If *dimension* does not exist.
    ValueError
        If a reducer string cannot be resolved.
    """
    if dimension not in data.dims:
        raise DimensionNotAvailable(
            f"A dimension with the specified name '{dimension}' does not exist. "
            f"Available dimensions: {list(data.dims)}"
        )

    if isinstance(reducer, str) and reducer in _SKIPNA_REDUCERS:
        with warnings.catch_warnings():
            # all-NaN pixels
            warnings.simplefilter("ignore", category=RuntimeWarning)
            return getattr(data, reducer)(dim=dimension, skipna=skipna)

    return data.reduce(_resolve_reducer(reducer), dim=dimension)


# ---------------------------------------------------------------------------
# Annual compositing
# ---------------------------------------------------------------------------


def composite_annual(
    data: RasterCube,
    *,
    month: int = 8,
    day: int = 1,
    reducer: str | Callable[..., Any] = "median",
    t_dim: str = "time",
) -> RasterCube:
    """Reduce each calendar year of a cube to a single composite.

    Time slices are grouped by the year of their timestamp and reduced
    per pixel and per band, ignoring no-data.  The result has exactly one
    slice per distinct year, in ascending order, stamped
    ``(year, month, day)``, with an ``observations`` coordinate holding
    the group sizes.  A year with one slice yields that slice unchanged.

    Raises
    ------
    DimensionNotAvailable
        If *t_dim* does not exist.
    EmptyGroupError
        If a year group turns out empty.
    """
    if t_dim not in data.dims:
        raise DimensionNotAvailable(
            f"A dimension with the specified name '{t_dim}' does not exist. "
            f"Available dimensions: {list(data.dims)}"
        )
    pd.Timestamp(year=2000, month=month, day=day)  # validates month/day

    years = pd.DatetimeIndex(data.coords[t_dim].values).year
    composites = []
    counts = []
    for year in sorted(set(years)):
        members = np.flatnonzero(years == year)
        if members.size == 0:
            raise EmptyGroupError(f"No rasters found for year {year}.")
        group = data.isel({t_dim: members})
        reduced = reduce_dimension(group, reducer, dimension=t_dim, skipna=True)
        stamp = pd.Timestamp(year=int(year), month=month, day=day)
        composites.append(reduced.expand_dims({t_dim: [stamp]}))
        counts.append(members.size)
        logger.debug("composited %d raster(s) for %d", members.size, year)

    if not composites:
        raise EmptyGroupError("Cannot composite an empty cube.")

    result = xr.concat(composites, dim=t_dim)
    result = result.transpose(*data.dims)
    result = result.assign_coords(observations=(t_dim, counts))
    result.name = data.name
    result.attrs.update(
        {k: v for k, v in data.attrs.items() if k not in (SATELLITE, TIME_START)}
    )
    return result
