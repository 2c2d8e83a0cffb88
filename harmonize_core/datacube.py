"""DataCube – fluent wrapper around the raster operations.

Usage::

    from harmonize_core import DataCube

    cube = DataCube.from_collection(rasters)
    annual = cube.mask_clouds() \
                 .harmonize("etm2oli_ols", sensors=["LANDSAT_5", "LANDSAT_7"]) \
                 .nbr() \
                 .composite_annual() \
                 .compute()
"""

from __future__ import annotations

from typing import Any, Callable, Iterable

import pandas as pd
import xarray as xr
from shapely.geometry import Point

from harmonize_core.coefficients import CoefficientSet
from harmonize_core.sensors import SensorFamily
from harmonize_core.types import QA_BAND, Raster, RasterCube


class DataCube:
    """Immutable wrapper around a raster cube.

    Methods return **new** ``DataCube`` instances so that the original is
    never mutated.
    """

    def __init__(self, data: RasterCube) -> None:
        if not isinstance(data, xr.DataArray):
            raise TypeError(f"DataCube requires an xarray.DataArray, got {type(data).__name__}")
        self._data = data

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def data(self) -> RasterCube:
        """Access the underlying xarray DataArray."""
        return self._data

    @property
    def bands(self) -> list[str]:
        if "bands" not in self._data.dims:
            return []
        return [str(b) for b in self._data.coords["bands"].values]

    # ------------------------------------------------------------------
    # Loaders (classmethods)
    # ------------------------------------------------------------------

    @classmethod
    def from_collection(
        cls,
        rasters: Iterable[Raster],
        *,
        layout: str | SensorFamily = SensorFamily.OLI,
        qa_band: str = QA_BAND,
    ) -> "DataCube":
        """Normalize and stack single-acquisition rasters into a cube.

        Rasters from unsupported sensors are skipped with a warning.
        """
        from harmonize_core.ops.collection import stack_collection

        return cls(stack_collection(rasters, layout=layout, qa_band=qa_band))

    # ------------------------------------------------------------------
    # Raster operations
    # ------------------------------------------------------------------

    def mask_clouds(
        self,
        *,
        cloud_bit: int = 5,
        shadow_bit: int = 3,
        qa_band: str = QA_BAND,
    ) -> "DataCube":
        """Mark cloud and cloud-shadow pixels as no-data."""
        from harmonize_core.ops.raster import mask_clouds as _mask

        return DataCube(
            _mask(self._data, cloud_bit=cloud_bit, shadow_bit=shadow_bit, qa_band=qa_band)
        )

    def harmonize(
        self,
        coefficients: str | CoefficientSet = "etm2oli_ols",
        *,
        sensors: Iterable[str | SensorFamily] | None = None,
        qa_band: str = QA_BAND,
    ) -> "DataCube":
        """Apply a cross-sensor reflectance transform."""
        from harmonize_core.ops.raster import harmonize as _harmonize

        return DataCube(_harmonize(self._data, coefficients, sensors=sensors, qa_band=qa_band))

    def normalized_difference(
        self,
        *,
        band_a: str,
        band_b: str,
        target_band: str | None = None,
        name: str = "nd",
    ) -> "DataCube":
        """Compute ``(a - b) / (a + b)`` for two bands."""
        from harmonize_core.ops.raster import normalized_difference as _nd

        return DataCube(
            _nd(self._data, band_a=band_a, band_b=band_b, target_band=target_band, name=name)
        )

    def nbr(self, *, nir: str = "B5", swir: str = "B7", target_band: str | None = None) -> "DataCube":
        """Compute the Normalized Burn Ratio."""
        from harmonize_core.ops.raster import nbr as _nbr

        return DataCube(_nbr(self._data, nir=nir, swir=swir, target_band=target_band))

    def ndvi(self, *, nir: str = "B5", red: str = "B4", target_band: str | None = None) -> "DataCube":
        """Compute the Normalized Difference Vegetation Index."""
        from harmonize_core.ops.raster import ndvi as _ndvi

        return DataCube(_ndvi(self._data, nir=nir, red=red, target_band=target_band))

    def reduce_dimension(
        self,
        reducer: str | Callable[..., Any],
        *,
        dimension: str,
        skipna: bool = False,
    ) -> "DataCube":
        """Collapse a dimension by applying a reducer."""
        from harmonize_core.ops.raster import reduce_dimension as _reduce

        return DataCube(_reduce(self._data, reducer, dimension=dimension, skipna=skipna))

    def composite_annual(
        self,
        *,
        month: int = 8,
        day: int = 1,
        reducer: str | Callable[..., Any] = "median",
        t_dim: str = "time",
    ) -> "DataCube":
        """Reduce each calendar year to one composite."""
        from harmonize_core.ops.raster import composite_annual as _composite

        return DataCube(_composite(self._data, month=month, day=day, reducer=reducer, t_dim=t_dim))

    def sample_point(self, point: Point, *, x_dim: str = "x", y_dim: str = "y") -> "DataCube":
        """Keep only the pixel nearest to *point*."""
        from harmonize_core.ops.series import sample_point as _sample

        return DataCube(_sample(self._data, point, x_dim=x_dim, y_dim=y_dim))

    # ------------------------------------------------------------------
    # Tabular output
    # ------------------------------------------------------------------

    def to_series(
        self,
        point: Point | None = None,
        *,
        band: str | None = None,
        x_dim: str = "x",
        y_dim: str = "y",
    ) -> pd.DataFrame:
        """Tabulate the cube at *point* as ``(time, value[, sensor])`` rows."""
        from harmonize_core.ops.series import observation_series

        return observation_series(self._data, point, band=band, x_dim=x_dim, y_dim=y_dim)

    # ------------------------------------------------------------------
    # Materialisation
    # ------------------------------------------------------------------

    def compute(self) -> "DataCube":
        """Materialise dask-backed data into memory.

        Returns a new ``DataCube`` wrapping the computed result.
        """
        return DataCube(self._data.compute())

    # ------------------------------------------------------------------
    # Plotting
    # ------------------------------------------------------------------

    def plot(self, *args: Any, **kwargs: Any) -> Any:
        """Delegate to :meth:`xarray.DataArray.plot`.

        All positional and keyword arguments are forwarded as-is.
        """
        return self._data.plot(*args, **kwargs)

    # ------------------------------------------------------------------
    # Dunder helpers
    # ------------------------------------------------------------------

    def __repr__(self) -> str:
        dims = ", ".join(f"{d}: {n}" for d, n in self._data.sizes.items())
        return f"<DataCube ({dims})>"
