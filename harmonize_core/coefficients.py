"""Cross-sensor reflectance harmonization coefficients.

Regression coefficients from Roy et al. (2016), *Characterization of
Landsat-7 to Landsat-8 reflective wavelength and normalized difference
vegetation index continuity*, Table 2.  Intercepts are published in
reflectance units and stored here multiplied by 10000, the scale of the
surface-reflectance digital numbers they are added to.

Four transforms are registered::

    etm2oli_ols   ETM+ -> OLI, ordinary least squares
    oli2etm_ols   OLI -> ETM+, ordinary least squares
    etm2oli_rma   ETM+ -> OLI, reduced major axis
    oli2etm_rma   OLI -> ETM+, reduced major axis (inverse of etm2oli_rma)
"""

from __future__ import annotations

from dataclasses import dataclass, replace

import numpy as np

from harmonize_core.exceptions import DimensionMismatchError
from harmonize_core.sensors import SensorFamily

N_BANDS = 6
"""Number of reflective bands a coefficient set covers."""

_SCALE = 10000


@dataclass(frozen=True)
class CoefficientSet:
    """Per-band affine transform between two sensors' reflectance scales.

    The forward transform is ``x * slope + intercept``; when *inverse* is
    set the same constants are applied as ``(x - intercept) / slope``.
    """

    name: str
    intercepts: tuple[float, ...]
    slopes: tuple[float, ...]
    source: SensorFamily = SensorFamily.ETM
    target: SensorFamily = SensorFamily.OLI
    inverse: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "intercepts", tuple(float(v) for v in self.intercepts))
        object.__setattr__(self, "slopes", tuple(float(v) for v in self.slopes))
        if len(self.intercepts) != N_BANDS or len(self.slopes) != N_BANDS:
            raise DimensionMismatchError(
                f"Coefficient set {self.name!r} must have {N_BANDS} intercepts and "
                f"{N_BANDS} slopes, got {len(self.intercepts)} and {len(self.slopes)}."
            )
        if any(s == 0 for s in self.slopes):
            raise ValueError(f"Coefficient set {self.name!r} has a zero slope.")

    @property
    def source_sensors(self) -> tuple[str, ...]:
        """Satellite identifiers whose rasters this set should be applied to.

        ETM+-sourced sets also cover TM, which shares the ETM+ band layout
        and reflectance characteristics.
        """
        families = [self.source]
        if self.source is SensorFamily.ETM:
            families.append(SensorFamily.TM)
        return tuple(s for f in families for s in f.satellites)

    def inverted(self, name: str | None = None) -> "CoefficientSet":
        """Return the transform in the opposite direction."""
        return replace(
            self,
            name=name or f"{self.name}_inverse",
            source=self.target,
            target=self.source,
            inverse=not self.inverse,
        )

    def apply(self, values: np.ndarray, axis: int = 0) -> np.ndarray:
        """Apply the unrounded transform to *values* with bands along *axis*."""
        values = np.asarray(values, dtype=np.float64)
        if values.shape[axis] != N_BANDS:
            raise DimensionMismatchError(
                f"Coefficient set {self.name!r} has {N_BANDS} bands, "
                f"values have {values.shape[axis]} along axis {axis}."
            )
        shape = [1] * values.ndim
        shape[axis] = N_BANDS
        slopes = np.asarray(self.slopes).reshape(shape)
        intercepts = np.asarray(self.intercepts).reshape(shape)
        if self.inverse:
            return (values - intercepts) / slopes
        return values * slopes + intercepts


def _scaled(values: tuple[float, ...]) -> tuple[float, ...]:
    return tuple(round(v * _SCALE, 6) for v in values)


ETM2OLI_OLS = CoefficientSet(
    name="etm2oli_ols",
    intercepts=_scaled((0.0003, 0.0088, 0.0061, 0.0412, 0.0254, 0.0172)),
    slopes=(0.8474, 0.8483, 0.9047, 0.8462, 0.8937, 0.9071),
)

OLI2ETM_OLS = CoefficientSet(
    name="oli2etm_ols",
    intercepts=_scaled((0.0183, 0.0123, 0.0123, 0.0448, 0.0306, 0.0116)),
    slopes=(0.885, 0.9317, 0.9372, 0.8339, 0.8639, 0.9165),
    source=SensorFamily.OLI,
    target=SensorFamily.ETM,
)

ETM2OLI_RMA = CoefficientSet(
    name="etm2oli_rma",
    intercepts=_scaled((-0.0095, -0.0016, -0.0022, -0.0021, -0.0030, 0.0029)),
    slopes=(0.9785, 0.9542, 0.9825, 1.0073, 1.0171, 0.9949),
)

OLI2ETM_RMA = ETM2OLI_RMA.inverted(name="oli2etm_rma")

COEFFICIENTS: dict[str, CoefficientSet] = {
    c.name: c for c in (ETM2OLI_OLS, OLI2ETM_OLS, ETM2OLI_RMA, OLI2ETM_RMA)
}


def get_coefficients(name: str | CoefficientSet) -> CoefficientSet:
    """Look up a registered coefficient set by name.

    A :class:`CoefficientSet` instance is returned unchanged.

    Raises
    ------
    KeyError
        If *name* is not registered.
    """
    if isinstance(name, CoefficientSet):
        return name
    try:
        return COEFFICIENTS[name]
    except KeyError:
        raise KeyError(
            f"Coefficient set {name!r} not found. Available: {sorted(COEFFICIENTS)}"
        ) from None
