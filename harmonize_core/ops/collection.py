"""Collection operations – band normalization, metadata filtering and stacking.

A collection is an ordered sequence of single-acquisition rasters, each a
DataArray with ``(bands, y, x)`` dims and scene metadata in ``attrs``::

    rasters = filter_collection(rasters, point=Point(x, y))
    cube = stack_collection(rasters)          # (time, bands, y, x)
"""

from __future__ import annotations

import logging
from typing import Iterable

import numpy as np
import pandas as pd
import xarray as xr
from shapely.geometry import Point

from harmonize_core.exceptions import UnsupportedSensorError
from harmonize_core.ops.raster import _band_labels, _require_bands
from harmonize_core.sensors import SensorFamily, band_mapping, resolve_sensor
from harmonize_core.types import QA_BAND, SATELLITE, TIME_START, Raster, RasterCollection, RasterCube

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Scene metadata
# ---------------------------------------------------------------------------


def acquisition_time(raster: Raster) -> pd.Timestamp:
    """Return the acquisition timestamp of *raster*.

    Read from the ``system:time_start`` attribute (integers are
    milliseconds since the epoch) or from a scalar ``time`` coordinate.
    """
    if TIME_START in raster.attrs:
        value = raster.attrs[TIME_START]
    elif "time" in raster.coords and raster.coords["time"].ndim == 0:
        value = raster.coords["time"].values
    else:
        raise ValueError(
            f"Raster {raster.name!r} has no '{TIME_START}' attribute or scalar 'time' coordinate."
        )
    if isinstance(value, (int, np.integer)):
        return pd.Timestamp(int(value), unit="ms")
    return pd.Timestamp(value)


def raster_sensor(raster: Raster) -> str:
    """Return the sensor identifier of *raster*.

    Raises
    ------
    UnsupportedSensorError
        If the raster carries no sensor identifier.
    """
    try:
        return str(raster.attrs[SATELLITE])
    except KeyError:
        raise UnsupportedSensorError(
            f"Raster {raster.name!r} has no '{SATELLITE}' attribute."
        ) from None


# ---------------------------------------------------------------------------
# Band normalization
# ---------------------------------------------------------------------------


def normalize_bands(
    raster: Raster,
    *,
    layout: str | SensorFamily = SensorFamily.OLI,
    sensor: str | SensorFamily | None = None,
    qa_band: str = QA_BAND,
    bands_dim: str = "bands",
) -> Raster:
    """Select and rename the reflective bands to a canonical layout.

    The output holds the six canonical band labels of *layout* followed by
    *qa_band*, whatever sensor the raster came from.  *sensor* defaults to
    the raster's ``SATELLITE`` attribute.

    Raises
    ------
    UnsupportedSensorError
        If the sensor identifier is missing or not supported.
    BandNotAvailable
        If a native band required by the mapping is missing.
    """
    family = resolve_sensor(sensor if sensor is not None else raster_sensor(raster))
    mapping = band_mapping(family, layout)

    band_labels = _band_labels(raster, bands_dim)
    _require_bands(band_labels, *mapping, qa_band)

    selected = raster.sel({bands_dim: [*mapping, qa_band]})
    return selected.assign_coords({bands_dim: [*mapping.values(), qa_band]})


# ---------------------------------------------------------------------------
# Metadata filter
# ---------------------------------------------------------------------------


def _resolution(raster: Raster, axis: int) -> float | None:
    res = raster.attrs.get("res")
    if res is None:
        return None
    return abs(float(res if np.ndim(res) == 0 else res[axis]))


def covers_point(raster: Raster, point: Point, *, x_dim: str = "x", y_dim: str = "y") -> bool:
    """Whether the pixel footprint of *raster* covers *point*.

    Coordinates are pixel centres, so the footprint extends half a pixel
    beyond the outermost centres.  The pixel size comes from the
    coordinate spacing, or from the ``res`` attribute (``(x, y)``) along
    an axis with a single pixel.  A single-pixel axis without ``res`` is
    treated as unbounded.
    """
    for axis, (dim, value) in enumerate(((x_dim, point.x), (y_dim, point.y))):
        centres = np.asarray(raster.coords[dim].values, dtype=np.float64)
        if centres.size > 1:
            half = float(np.abs(np.diff(centres)).min()) / 2
        else:
            res = _resolution(raster, axis)
            half = np.inf if res is None else res / 2
        if not centres.min() - half <= value <= centres.max() + half:
            return False
    return True


def _rejection(
    raster: Raster,
    *,
    doy_range: tuple[int, int] | None,
    max_cloud_cover: float | None,
    max_geometric_rmse: float | None,
    image_quality: int | None,
    point: Point | None,
    x_dim: str,
    y_dim: str,
) -> str | None:
    """Return why *raster* fails the filter, or ``None`` if it passes."""
    attrs = raster.attrs
    if doy_range is not None:
        start, end = doy_range
        doy = acquisition_time(raster).dayofyear
        if not start <= doy <= end:
            return f"day of year {doy} outside [{start}, {end}]"
    if max_cloud_cover is not None:
        cloud = attrs.get("CLOUD_COVER")
        if cloud is None or not cloud < max_cloud_cover:
            return f"CLOUD_COVER={cloud}"
    if max_geometric_rmse is not None:
        rmse = attrs.get("GEOMETRIC_RMSE_MODEL")
        if rmse is None or not rmse < max_geometric_rmse:
            return f"GEOMETRIC_RMSE_MODEL={rmse}"
    if image_quality is not None:
        quality = (attrs.get("IMAGE_QUALITY"), attrs.get("IMAGE_QUALITY_OLI"))
        if image_quality not in quality:
            return f"IMAGE_QUALITY={quality[0]} IMAGE_QUALITY_OLI={quality[1]}"
    if point is not None and not covers_point(raster, point, x_dim=x_dim, y_dim=y_dim):
        return f"extent does not contain {point.wkt}"
    return None


def filter_collection(
    rasters: RasterCollection,
    *,
    doy_range: tuple[int, int] | None = (182, 244),
    max_cloud_cover: float | None = 50,
    max_geometric_rmse: float | None = 10,
    image_quality: int | None = 9,
    point: Point | None = None,
    x_dim: str = "x",
    y_dim: str = "y",
) -> list[Raster]:
    """Keep the rasters whose scene metadata passes every criterion.

    Parameters
    ----------
    doy_range : tuple[int, int] | None
        Inclusive day-of-year window of the acquisition date.
    max_cloud_cover : float | None
        ``CLOUD_COVER`` must be strictly below this percentage.
    max_geometric_rmse : float | None
        ``GEOMETRIC_RMSE_MODEL`` must be strictly below this value.
    image_quality : int | None
        ``IMAGE_QUALITY`` or ``IMAGE_QUALITY_OLI`` must equal this flag.
    point : shapely.geometry.Point | None
        The pixel footprint must cover this location (see :func:`covers_point`).

    ``None`` disables a criterion.  A raster missing a property that an
    enabled criterion reads is dropped.  Catalog order is preserved.
    """
    kept: list[Raster] = []
    for raster in rasters:
        reason = _rejection(
            raster,
            doy_range=doy_range,
            max_cloud_cover=max_cloud_cover,
            max_geometric_rmse=max_geometric_rmse,
            image_quality=image_quality,
            point=point,
            x_dim=x_dim,
            y_dim=y_dim,
        )
        if reason is None:
            kept.append(raster)
        else:
            logger.debug("dropping raster %r: %s", raster.name, reason)
    logger.info("filter kept %d of %d raster(s)", len(kept), len(rasters))
    return kept


# ---------------------------------------------------------------------------
# Stacking
# ---------------------------------------------------------------------------


def stack_collection(
    rasters: Iterable[Raster],
    *,
    layout: str | SensorFamily = SensorFamily.OLI,
    qa_band: str = QA_BAND,
    bands_dim: str = "bands",
    t_dim: str = "time",
) -> RasterCube:
    """Normalize every raster and stack them into a time-sorted cube.

    Rasters from unsupported sensors are skipped with a warning.  The
    result has a *t_dim* dimension of acquisition timestamps and a
    ``sensor`` coordinate along it.  All rasters must share one grid.

    Raises
    ------
    ValueError
        If no raster survives normalization, or the grids differ.
    """
    slices: list[xr.DataArray] = []
    for index, raster in enumerate(rasters):
        try:
            normalized = normalize_bands(
                raster, layout=layout, qa_band=qa_band, bands_dim=bands_dim
            )
        except UnsupportedSensorError as exc:
            logger.warning("skipping raster %d (%r): %s", index, raster.name, exc)
            continue
        stamp = acquisition_time(raster)
        if t_dim in normalized.coords:
            normalized = normalized.drop_vars(t_dim)
        normalized = normalized.expand_dims({t_dim: [stamp]}).assign_coords(
            sensor=(t_dim, [raster_sensor(raster)])
        )
        slices.append(normalized)

    if not slices:
        raise ValueError("No raster in the collection could be normalized.")

    cube = xr.concat(
        slices,
        dim=t_dim,
        coords="minimal",
        join="exact",
        combine_attrs="drop_conflicts",
    )
    cube = cube.sortby(t_dim)
    logger.info("stacked %d raster(s) into cube %s", len(slices), dict(cube.sizes))
    return cube
