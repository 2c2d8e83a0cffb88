"""End-to-end harmonization pipeline.

filter -> normalize -> mask -> harmonize -> index -> (series, composites)::

    result = run_pipeline(rasters, Point(x, y))
    result.observation_series   # time, value, sensor
    result.composite_series     # time, value
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import pandas as pd
from shapely.geometry import Point

from harmonize_core.config import HarmonizeConfig
from harmonize_core.ops.collection import filter_collection, stack_collection
from harmonize_core.ops.raster import (
    composite_annual,
    harmonize,
    mask_clouds,
    normalized_difference,
)
from harmonize_core.ops.series import composite_series, observation_series
from harmonize_core.sensors import expand_satellites
from harmonize_core.types import RasterCollection, RasterCube

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """Intermediate and final products of :func:`run_pipeline`."""

    cube: RasterCube
    """Normalized, masked and harmonized reflectance cube."""
    index: RasterCube
    """Per-observation index cube."""
    composites: RasterCube
    """Annual composites of the index."""
    observation_series: pd.DataFrame | None = None
    composite_series: pd.DataFrame | None = None


def _is_single_pixel(data: RasterCube, x_dim: str, y_dim: str) -> bool:
    return all(data.sizes.get(d, 1) == 1 for d in (x_dim, y_dim))


def run_pipeline(
    rasters: RasterCollection,
    point: Point | None = None,
    *,
    config: HarmonizeConfig | None = None,
) -> PipelineResult:
    """Run the full workflow over an in-memory collection.

    The point series are produced when *point* is given or the rasters
    are single pixels; otherwise they are ``None``.
    """
    config = config or HarmonizeConfig()
    coefficients = config.coefficient_set

    rasters = filter_collection(
        rasters,
        doy_range=config.doy_range,
        max_cloud_cover=config.max_cloud_cover,
        max_geometric_rmse=config.max_geometric_rmse,
        image_quality=config.image_quality,
        point=point,
        x_dim=config.x_dim,
        y_dim=config.y_dim,
    )
    cube = stack_collection(rasters, layout=config.layout, qa_band=config.qa_band)
    cube = mask_clouds(
        cube,
        cloud_bit=config.cloud_bit,
        shadow_bit=config.shadow_bit,
        qa_band=config.qa_band,
    )
    cube = harmonize(
        cube,
        coefficients,
        sensors=config.sensors_to_harmonize,
        qa_band=config.qa_band,
    )
    logger.info(
        "harmonized %d raster(s) from %s with %r",
        int(cube.coords["sensor"].isin(expand_satellites(config.sensors_to_harmonize)).sum()),
        ", ".join(str(s) for s in config.sensors_to_harmonize),
        coefficients.name,
    )

    band_a, band_b = config.resolved_index_bands
    index = normalized_difference(cube, band_a=band_a, band_b=band_b, name=config.index_name)
    composites = composite_annual(
        index,
        month=config.composite_month,
        day=config.composite_day,
        reducer=config.reducer,
    )
    logger.info("built %d annual composite(s)", composites.sizes["time"])

    result = PipelineResult(cube=cube, index=index, composites=composites)
    if point is not None or _is_single_pixel(index, config.x_dim, config.y_dim):
        kwargs = {"x_dim": config.x_dim, "y_dim": config.y_dim}
        result.observation_series = observation_series(index, point, **kwargs)
        result.composite_series = composite_series(composites, point, **kwargs)
    return result
