"""Point time series – tabular outputs for chart rendering."""

from __future__ import annotations

import pandas as pd
import xarray as xr
from shapely.geometry import Point

from harmonize_core.exceptions import DimensionNotAvailable, UnsupportedSensorError
from harmonize_core.ops.collection import covers_point
from harmonize_core.sensors import resolve_sensor
from harmonize_core.types import RasterCube


def sample_point(
    data: RasterCube,
    point: Point,
    *,
    x_dim: str = "x",
    y_dim: str = "y",
) -> RasterCube:
    """Return the values of the pixel nearest to *point*.

    The spatial dimensions are dropped; every other dimension is kept.
    A point outside the pixel footprint of *data* yields all no-data.
    """
    for dim in (x_dim, y_dim):
        if dim not in data.dims:
            raise DimensionNotAvailable(
                f"A dimension with the specified name '{dim}' does not exist. "
                f"Available dimensions: {list(data.dims)}"
            )
    sampled = data.sel({x_dim: point.x, y_dim: point.y}, method="nearest", drop=True)
    if not covers_point(data, point, x_dim=x_dim, y_dim=y_dim):
        return sampled.where(xr.zeros_like(sampled, dtype=bool))
    return sampled


def _sensor_label(sensor: str) -> str:
    try:
        return resolve_sensor(sensor).label
    except UnsupportedSensorError:
        return str(sensor)


def _series_frame(
    data: RasterCube,
    point: Point | None,
    *,
    band: str | None,
    x_dim: str,
    y_dim: str,
    t_dim: str,
    bands_dim: str,
) -> tuple[pd.DataFrame, xr.DataArray]:
    if t_dim not in data.dims:
        raise DimensionNotAvailable(
            f"A dimension with the specified name '{t_dim}' does not exist. "
            f"Available dimensions: {list(data.dims)}"
        )
    if band is not None:
        data = data.sel({bands_dim: band}, drop=True)
    if point is not None:
        data = sample_point(data, point, x_dim=x_dim, y_dim=y_dim)

    extra = [d for d in data.dims if d != t_dim]
    if any(data.sizes[d] != 1 for d in extra):
        raise ValueError(
            f"Expected a single value per time step, got dims {dict(data.sizes)}. "
            f"Pass a point or select a band."
        )
    data = data.squeeze(extra, drop=True) if extra else data
    if hasattr(data.data, "compute"):
        data = data.compute()

    frame = pd.DataFrame(
        {
            "time": pd.DatetimeIndex(data.coords[t_dim].values),
            "value": data.values,
        }
    )
    return frame, data


def observation_series(
    data: RasterCube,
    point: Point | None = None,
    *,
    band: str | None = None,
    x_dim: str = "x",
    y_dim: str = "y",
    t_dim: str = "time",
    bands_dim: str = "bands",
) -> pd.DataFrame:
    """Tabulate every observation at *point* as ``(time, value, sensor)`` rows.

    *data* is an index cube (for example the output of
    :func:`~harmonize_core.ops.raster.nbr`) or a multi-band cube with
    *band* selecting one band.  Without a *point* the cube must already
    hold one value per time step.  Rows where the value is no-data are
    dropped; the frame is sorted by time.  ``sensor`` holds the family
    label (``"TM"``, ``"ETM+"``, ``"OLI"``) when the cube carries a
    ``sensor`` coordinate, and is omitted otherwise.
    """
    frame, sampled = _series_frame(
        data, point, band=band, x_dim=x_dim, y_dim=y_dim, t_dim=t_dim, bands_dim=bands_dim
    )
    if "sensor" in sampled.coords:
        frame["sensor"] = [_sensor_label(s) for s in sampled.coords["sensor"].values]
    frame = frame.dropna(subset=["value"])
    return frame.sort_values("time", kind="stable").reset_index(drop=True)


def composite_series(
    composites: RasterCube,
    point: Point | None = None,
    *,
    band: str | None = None,
    x_dim: str = "x",
    y_dim: str = "y",
    t_dim: str = "time",
    bands_dim: str = "bands",
) -> pd.DataFrame:
    """Tabulate annual composites at *point* as ``(time, value)`` rows.

    Years whose composite is no-data at *point* keep a NaN value so the
    series has one row per composite.
    """
    frame, _ = _series_frame(
        composites, point, band=band, x_dim=x_dim, y_dim=y_dim, t_dim=t_dim, bands_dim=bands_dim
    )
    return frame.sort_values("time", kind="stable").reset_index(drop=True)
