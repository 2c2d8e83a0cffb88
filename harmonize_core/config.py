"""Pipeline configuration."""

from __future__ import annotations

from dataclasses import dataclass

import pandas as pd

from harmonize_core.coefficients import CoefficientSet, get_coefficients
from harmonize_core.sensors import SensorFamily, resolve_sensor
from harmonize_core.types import QA_BAND


@dataclass(frozen=True)
class HarmonizeConfig:
    """Settings for :func:`harmonize_core.pipeline.run_pipeline`.

    Defaults reproduce the Landsat ETM+ to OLI harmonization tutorial:
    OLS coefficients, OLI band names, Landsat Collection 1 ``pixel_qa``
    bits, NBR, and August 1st composites of July/August scenes.

    Parameters
    ----------
    coefficients : str | CoefficientSet
        Coefficient set or registered name (``"etm2oli_ols"``,
        ``"oli2etm_ols"``, ``"etm2oli_rma"``, ``"oli2etm_rma"``).
    layout : str | SensorFamily
        Canonical band layout rasters are normalized to.
    harmonize_sensors : tuple[str, ...] | None
        Satellites or families whose rasters are transformed.  ``None``
        uses the source sensors of the coefficient set, so with
        ``"etm2oli_*"`` OLI scenes keep their values.  The Earth Engine
        tutorial transforms every scene, OLI included; pass all three
        families to reproduce that.
    cloud_bit, shadow_bit : int
        QA bit positions flagging cloud and cloud shadow.
    index_bands : tuple[str, str] | None
        ``(a, b)`` of the normalized difference.  ``None`` picks NIR and
        SWIR2 of *layout* (NBR).
    """

    coefficients: str | CoefficientSet = "etm2oli_ols"
    layout: str | SensorFamily = SensorFamily.OLI
    harmonize_sensors: tuple[str, ...] | None = None
    cloud_bit: int = 5
    shadow_bit: int = 3
    qa_band: str = QA_BAND
    index_name: str = "nbr"
    index_bands: tuple[str, str] | None = None
    composite_month: int = 8
    composite_day: int = 1
    reducer: str = "median"
    doy_range: tuple[int, int] | None = (182, 244)
    max_cloud_cover: float | None = 50
    max_geometric_rmse: float | None = 10
    image_quality: int | None = 9
    x_dim: str = "x"
    y_dim: str = "y"

    def __post_init__(self) -> None:
        object.__setattr__(self, "coefficients", get_coefficients(self.coefficients))
        object.__setattr__(self, "layout", resolve_sensor(self.layout))

        for field_name in ("cloud_bit", "shadow_bit"):
            bit = getattr(self, field_name)
            if not 0 <= bit < 16:
                raise ValueError(f"{field_name} must be within 0..15, got {bit}.")
        if self.cloud_bit == self.shadow_bit:
            raise ValueError("cloud_bit and shadow_bit must differ.")

        try:
            pd.Timestamp(year=2001, month=self.composite_month, day=self.composite_day)
        except ValueError as exc:
            raise ValueError(
                f"Invalid composite date {self.composite_month}/{self.composite_day}: {exc}"
            ) from None

        if self.doy_range is not None:
            start, end = self.doy_range
            if not 1 <= start <= end <= 366:
                raise ValueError(f"doy_range must satisfy 1 <= start <= end <= 366, got {self.doy_range}.")

    @property
    def coefficient_set(self) -> CoefficientSet:
        return self.coefficients  # type: ignore[return-value]

    @property
    def sensors_to_harmonize(self) -> tuple[str, ...]:
        if self.harmonize_sensors is not None:
            return tuple(self.harmonize_sensors)
        return self.coefficient_set.source_sensors

    @property
    def resolved_index_bands(self) -> tuple[str, str]:
        if self.index_bands is not None:
            return self.index_bands
        bands = self.layout.bands  # type: ignore[union-attr]
        return bands[3], bands[5]
