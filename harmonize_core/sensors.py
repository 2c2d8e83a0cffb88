"""Landsat sensor families and their band-label tables.

Each family lists its six reflective bands (blue, green, red, NIR,
SWIR1, SWIR2) in spectral order, so two families can be mapped onto each
other by position::

    >>> band_mapping(SensorFamily.ETM, layout=SensorFamily.OLI)
    {'B1': 'B2', 'B2': 'B3', 'B3': 'B4', 'B4': 'B5', 'B5': 'B6', 'B7': 'B7'}
"""

from __future__ import annotations

from enum import Enum
from typing import Iterable

from harmonize_core.exceptions import UnsupportedSensorError

_LEGACY_BANDS = ("B1", "B2", "B3", "B4", "B5", "B7")
_OLI_BANDS = ("B2", "B3", "B4", "B5", "B6", "B7")


class SensorFamily(Enum):
    """Supported Landsat surface-reflectance sensor families."""

    TM = ("TM", ("LANDSAT_4", "LANDSAT_5"), _LEGACY_BANDS)
    ETM = ("ETM+", ("LANDSAT_7",), _LEGACY_BANDS)
    OLI = ("OLI", ("LANDSAT_8", "LANDSAT_9"), _OLI_BANDS)

    def __init__(self, label: str, satellites: tuple[str, ...], bands: tuple[str, ...]) -> None:
        self.label = label
        self.satellites = satellites
        self.bands = bands

    def __repr__(self) -> str:
        return f"<SensorFamily.{self.name}>"


OLI_LAYOUT = SensorFamily.OLI.bands
"""Canonical band labels of the default (OLI) layout."""

ETM_LAYOUT = SensorFamily.ETM.bands
"""Canonical band labels of the ETM+ layout."""


def resolve_sensor(sensor: str | SensorFamily) -> SensorFamily:
    """Return the :class:`SensorFamily` for a satellite identifier.

    Accepts a satellite identifier (``"LANDSAT_7"``), a family name or
    label (``"ETM"``, ``"ETM+"``), or a family instance.

    Raises
    ------
    UnsupportedSensorError
        If *sensor* matches none of the supported families.
    """
    if isinstance(sensor, SensorFamily):
        return sensor
    key = str(sensor).strip().upper()
    for family in SensorFamily:
        if key in family.satellites or key in (family.name, family.label):
            return family
    supported = sorted(s for f in SensorFamily for s in f.satellites)
    raise UnsupportedSensorError(
        f"Sensor {sensor!r} is not supported. Supported satellites: {supported}"
    )


def band_mapping(
    sensor: str | SensorFamily,
    layout: str | SensorFamily = SensorFamily.OLI,
) -> dict[str, str]:
    """Map the native band labels of *sensor* to the labels of *layout*."""
    family = resolve_sensor(sensor)
    target = resolve_sensor(layout)
    return dict(zip(family.bands, target.bands))


def expand_satellites(sensors: Iterable[str | SensorFamily]) -> list[str]:
    """Expand family names and labels to their satellite identifiers.

    Satellite identifiers, supported or not, are kept as given.
    """
    satellites: list[str] = []
    for sensor in sensors:
        if isinstance(sensor, SensorFamily):
            satellites.extend(sensor.satellites)
        elif str(sensor).strip().upper() in {f.name for f in SensorFamily} | {f.label for f in SensorFamily}:
            satellites.extend(resolve_sensor(sensor).satellites)
        else:
            satellites.append(str(sensor))
    return satellites
