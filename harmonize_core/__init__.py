"""harmonize-core – local Landsat reflectance harmonization and annual compositing."""

from harmonize_core.coefficients import COEFFICIENTS, CoefficientSet, get_coefficients
from harmonize_core.config import HarmonizeConfig
from harmonize_core.datacube import DataCube
from harmonize_core.exceptions import (
    BandExists,
    BandNotAvailable,
    DimensionAmbiguous,
    DimensionMismatchError,
    DimensionNotAvailable,
    EmptyGroupError,
    ReflectanceOverflowError,
    UnsupportedSensorError,
)
from harmonize_core.pipeline import PipelineResult, run_pipeline
from harmonize_core.sensors import SensorFamily
from harmonize_core.types import Raster, RasterCollection, RasterCube

__all__ = [
    "COEFFICIENTS",
    "CoefficientSet",
    "DataCube",
    "HarmonizeConfig",
    "PipelineResult",
    "Raster",
    "RasterCollection",
    "RasterCube",
    "SensorFamily",
    "get_coefficients",
    "run_pipeline",
    # exceptions
    "BandExists",
    "BandNotAvailable",
    "DimensionAmbiguous",
    "DimensionMismatchError",
    "DimensionNotAvailable",
    "EmptyGroupError",
    "ReflectanceOverflowError",
    "UnsupportedSensorError",
]

__version__ = "0.1.0"
