"""Tests for the DataCube fluent wrapper."""

import importlib.util

import numpy as np
import pandas as pd
import pytest
import xarray as xr
from shapely.geometry import Point

from harmonize_core.coefficients import ETM2OLI_OLS
from harmonize_core.datacube import DataCube


def _make_scene(satellite: str, date: str, qa: int = 66) -> xr.DataArray:
    bands = (
        ["B2", "B3", "B4", "B5", "B6", "B7"]
        if satellite == "LANDSAT_8"
        else ["B1", "B2", "B3", "B4", "B5", "B7"]
    )
    values = [np.full((2, 2), v) for v in (400, 700, 500, 3500, 2000, 1100)]
    values.append(np.full((2, 2), qa))
    return xr.DataArray(
        np.stack(values).astype(np.int16),
        dims=["bands", "y", "x"],
        coords={
            "bands": bands + ["pixel_qa"],
            "y": [4_700_000.0, 4_699_970.0],
            "x": [600_000.0, 600_030.0],
        },
        attrs={"SATELLITE": satellite, "system:time_start": date},
    )


def _make_cube() -> DataCube:
    return DataCube.from_collection(
        [
            _make_scene("LANDSAT_7", "2016-07-12"),
            _make_scene("LANDSAT_8", "2016-08-13", qa=66 | (1 << 3)),
            _make_scene("LANDSAT_8", "2017-07-28"),
        ]
    )


class TestDataCube:
    def test_requires_dataarray(self):
        with pytest.raises(TypeError, match="xarray.DataArray"):
            DataCube(np.zeros((2, 2)))  # type: ignore[arg-type]

    def test_from_collection(self):
        cube = _make_cube()
        assert cube.data.dims == ("time", "bands", "y", "x")
        assert cube.bands == ["B2", "B3", "B4", "B5", "B6", "B7", "pixel_qa"]

    def test_bands_without_band_dim(self):
        cube = _make_cube().nbr()
        assert cube.bands == []

    def test_mask_clouds_fluent(self):
        cube = _make_cube()
        masked = cube.mask_clouds()
        assert isinstance(masked, DataCube)
        assert np.isnan(masked.data.sel(bands="B5").values[1]).all()
        # original untouched
        assert cube.data.dtype == np.int16

    def test_harmonize_fluent(self):
        result = _make_cube().harmonize(sensors=["ETM"])
        nir = result.data.sel(bands="B5").values
        expected = round(3500 * ETM2OLI_OLS.slopes[3] + ETM2OLI_OLS.intercepts[3])
        assert nir[0, 0, 0] == expected
        assert nir[2, 0, 0] == 3500
        assert result.data.attrs["harmonization"] == "etm2oli_ols"

    def test_nbr_and_ndvi(self):
        cube = _make_cube()
        np.testing.assert_allclose(
            cube.nbr().data.values[2, 0, 0], (3500 - 1100) / (3500 + 1100), rtol=1e-6
        )
        np.testing.assert_allclose(
            cube.ndvi().data.values[2, 0, 0], (3500 - 500) / (3500 + 500), rtol=1e-6
        )

    def test_normalized_difference_target_band(self):
        result = _make_cube().normalized_difference(band_a="B5", band_b="B6", target_band="ndmi")
        assert "ndmi" in result.bands

    def test_reduce_dimension(self):
        result = _make_cube().reduce_dimension("max", dimension="time")
        assert "time" not in result.data.dims

    def test_chain_to_annual_composites(self):
        composites = _make_cube().mask_clouds().harmonize(sensors=["ETM"]).nbr().composite_annual()
        stamps = list(pd.DatetimeIndex(composites.data.time.values))
        assert stamps == [pd.Timestamp("2016-08-01"), pd.Timestamp("2017-08-01")]
        assert list(composites.data.coords["observations"].values) == [2, 1]

    def test_sample_point_and_series(self):
        point = Point(600_029.0, 4_699_971.0)
        sampled = _make_cube().nbr().sample_point(point)
        assert sampled.data.dims == ("time",)
        frame = _make_cube().nbr().to_series(point)
        assert list(frame["sensor"]) == ["ETM+", "OLI", "OLI"]

    def test_repr(self):
        assert repr(_make_cube()) == "<DataCube (time: 3, bands: 7, y: 2, x: 2)>"


@pytest.mark.skipif(importlib.util.find_spec("dask") is None, reason="dask not installed")
class TestDataCubeLazy:
    def test_compute_materialises(self):
        cube = DataCube(_make_cube().data.chunk({"time": 1}))
        result = cube.mask_clouds().nbr()
        assert result.data.chunks is not None
        computed = result.compute()
        assert computed.data.chunks is None
        np.testing.assert_allclose(
            computed.data.values, _make_cube().mask_clouds().nbr().data.values
        )
