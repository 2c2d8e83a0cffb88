"""harmonize-core exceptions."""

from harmonize_core.exceptions.general import (
    BandExists,
    BandNotAvailable,
    DimensionAmbiguous,
    DimensionNotAvailable,
)
from harmonize_core.exceptions.harmonize import (
    DimensionMismatchError,
    EmptyGroupError,
    ReflectanceOverflowError,
    UnsupportedSensorError,
)

__all__ = [
    "BandExists",
    "BandNotAvailable",
    "DimensionAmbiguous",
    "DimensionMismatchError",
    "DimensionNotAvailable",
    "EmptyGroupError",
    "ReflectanceOverflowError",
    "UnsupportedSensorError",
]
