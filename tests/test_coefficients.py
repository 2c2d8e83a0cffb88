"""Tests for harmonize_core.coefficients."""

import dataclasses

import numpy as np
import pytest

from harmonize_core.coefficients import (
    COEFFICIENTS,
    ETM2OLI_OLS,
    ETM2OLI_RMA,
    OLI2ETM_OLS,
    OLI2ETM_RMA,
    CoefficientSet,
    get_coefficients,
)
from harmonize_core.exceptions import DimensionMismatchError
from harmonize_core.sensors import SensorFamily


class TestRegistry:
    def test_registered_names(self):
        assert sorted(COEFFICIENTS) == ["etm2oli_ols", "etm2oli_rma", "oli2etm_ols", "oli2etm_rma"]

    def test_get_by_name(self):
        assert get_coefficients("oli2etm_ols") is OLI2ETM_OLS

    def test_instance_passthrough(self):
        assert get_coefficients(ETM2OLI_RMA) is ETM2OLI_RMA

    def test_unknown_name(self):
        with pytest.raises(KeyError, match="Available"):
            get_coefficients("etm2tm")

    def test_intercepts_in_dn_scale(self):
        np.testing.assert_allclose(ETM2OLI_OLS.intercepts, [3, 88, 61, 412, 254, 172])
        np.testing.assert_allclose(OLI2ETM_OLS.intercepts, [183, 123, 123, 448, 306, 116])
        np.testing.assert_allclose(ETM2OLI_RMA.intercepts, [-95, -16, -22, -21, -30, 29])

    def test_slopes(self):
        assert ETM2OLI_OLS.slopes == (0.8474, 0.8483, 0.9047, 0.8462, 0.8937, 0.9071)
        assert OLI2ETM_OLS.slopes == (0.885, 0.9317, 0.9372, 0.8339, 0.8639, 0.9165)

    def test_rma_pair_shares_constants(self):
        assert OLI2ETM_RMA.slopes == ETM2OLI_RMA.slopes
        assert OLI2ETM_RMA.intercepts == ETM2OLI_RMA.intercepts
        assert OLI2ETM_RMA.inverse and not ETM2OLI_RMA.inverse
        assert OLI2ETM_RMA.source is SensorFamily.OLI
        assert OLI2ETM_RMA.target is SensorFamily.ETM


class TestCoefficientSet:
    def test_immutable(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            ETM2OLI_OLS.slopes = (1,) * 6  # type: ignore[misc]

    def test_length_mismatch(self):
        with pytest.raises(DimensionMismatchError, match="6 intercepts"):
            CoefficientSet("short", intercepts=[0] * 5, slopes=[1] * 6)

    def test_slope_length_mismatch(self):
        with pytest.raises(DimensionMismatchError):
            CoefficientSet("long", intercepts=[0] * 6, slopes=[1] * 7)

    def test_zero_slope(self):
        with pytest.raises(ValueError, match="zero slope"):
            CoefficientSet("flat", intercepts=[0] * 6, slopes=[1, 1, 0, 1, 1, 1])

    def test_inverted(self):
        inverse = ETM2OLI_OLS.inverted()
        assert inverse.name == "etm2oli_ols_inverse"
        assert inverse.inverse
        assert inverse.source is SensorFamily.OLI
        assert inverse.inverted().inverse is False

    def test_source_sensors_cover_tm(self):
        assert set(ETM2OLI_OLS.source_sensors) >= {"LANDSAT_5", "LANDSAT_7"}
        assert "LANDSAT_8" not in ETM2OLI_OLS.source_sensors
        assert set(OLI2ETM_OLS.source_sensors) == {"LANDSAT_8", "LANDSAT_9"}

    def test_apply_forward_and_inverse(self):
        values = np.full((6, 2), 1000.0)
        forward = ETM2OLI_RMA.apply(values)
        back = OLI2ETM_RMA.apply(forward)
        np.testing.assert_allclose(back, values)

    def test_apply_along_axis(self):
        values = np.ones((3, 6))
        result = ETM2OLI_OLS.apply(values, axis=1)
        np.testing.assert_allclose(result[0], np.array(ETM2OLI_OLS.slopes) + ETM2OLI_OLS.intercepts)

    def test_apply_wrong_band_count(self):
        with pytest.raises(DimensionMismatchError):
            ETM2OLI_OLS.apply(np.ones((4, 2)))
