"""Tests for harmonize_core.types and harmonize_core.sensors."""

import numpy as np
import pytest
import xarray as xr

from harmonize_core.exceptions import UnsupportedSensorError
from harmonize_core.sensors import ETM_LAYOUT, OLI_LAYOUT, SensorFamily, band_mapping, resolve_sensor
from harmonize_core.types import QA_BAND, Raster, RasterCube


def test_raster_cube_is_dataarray():
    da = xr.DataArray(np.zeros((2, 3)), dims=["y", "x"])
    assert isinstance(da, RasterCube)
    assert isinstance(da, Raster)


def test_qa_band_label():
    assert QA_BAND == "pixel_qa"


class TestResolveSensor:
    @pytest.mark.parametrize(
        "satellite, family",
        [
            ("LANDSAT_5", SensorFamily.TM),
            ("LANDSAT_7", SensorFamily.ETM),
            ("LANDSAT_8", SensorFamily.OLI),
            ("landsat_8", SensorFamily.OLI),
            ("ETM+", SensorFamily.ETM),
            ("OLI", SensorFamily.OLI),
        ],
    )
    def test_known(self, satellite, family):
        assert resolve_sensor(satellite) is family

    def test_family_passthrough(self):
        assert resolve_sensor(SensorFamily.TM) is SensorFamily.TM

    def test_unknown_raises(self):
        with pytest.raises(UnsupportedSensorError, match="SENTINEL_2"):
            resolve_sensor("SENTINEL_2")

    def test_labels(self):
        assert [f.label for f in SensorFamily] == ["TM", "ETM+", "OLI"]


class TestBandMapping:
    def test_oli_native_is_identity(self):
        mapping = band_mapping("LANDSAT_8")
        assert mapping == dict(zip(OLI_LAYOUT, OLI_LAYOUT))

    def test_legacy_to_oli(self):
        mapping = band_mapping("LANDSAT_7")
        assert mapping == {"B1": "B2", "B2": "B3", "B3": "B4", "B4": "B5", "B5": "B6", "B7": "B7"}
        assert band_mapping("LANDSAT_5") == mapping

    def test_oli_to_etm_layout(self):
        mapping = band_mapping("LANDSAT_8", layout=SensorFamily.ETM)
        assert list(mapping) == list(OLI_LAYOUT)
        assert list(mapping.values()) == list(ETM_LAYOUT)

    def test_every_family_reaches_canonical_set(self):
        for family in SensorFamily:
            assert set(band_mapping(family).values()) == set(OLI_LAYOUT)
            assert set(band_mapping(family, layout="ETM").values()) == set(ETM_LAYOUT)
