"""Slope and flatness analysis over height grids."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

import numpy as np
import structlog

from riverscape.config import PlacementConfig
from riverscape.distance import RiverAnalysis, analyze_river_exclusion


logger = structlog.get_logger()


class ZoneType(Enum):
    """Placeable object categories, in placement priority order."""

    BUILDING = "building"
    TANK = "tank"
    VEHICLE = "vehicle"


@dataclass(frozen=True)
class TerrainAnalysis:
    """Height, slope and per-footprint flatness maps plus the river analysis."""

    height_map: np.ndarray
    slope_map: np.ndarray
    flatness_maps: dict[ZoneType, np.ndarray]
    river_analysis: RiverAnalysis

    @property
    def shape(self) -> tuple[int, int]:
        return self.height_map.shape

    def flatness(self, zone_type: ZoneType) -> np.ndarray:
        return self.flatness_maps[zone_type]


def slope_map(height: np.ndarray, *, percentile: float = 95.0) -> np.ndarray:
    """Sobel gradient magnitude normalized by a high percentile, clamped to [0, 1].

    Border cells have no full 3x3 neighborhood and stay 0.
    """

    if height.ndim != 2:
        raise ValueError("height must be a 2D array")

    h, w = height.shape
    slope = np.zeros((h, w), dtype=np.float32)
    if h < 3 or w < 3:
        return slope

    z = height.astype(np.float64, copy=False)
    nw, n, ne = z[:-2, :-2], z[:-2, 1:-1], z[:-2, 2:]
    west, east = z[1:-1, :-2], z[1:-1, 2:]
    sw, s, se = z[2:, :-2], z[2:, 1:-1], z[2:, 2:]

    gx = ((ne + 2.0 * east + se) - (nw + 2.0 * west + sw)) / 8.0
    gy = ((sw + 2.0 * s + se) - (nw + 2.0 * n + ne)) / 8.0
    magnitude = np.hypot(gx, gy)

    scale = float(np.percentile(magnitude, percentile))
    logger.info(
        "Slope statistics",
        max_slope=round(float(magnitude.max()), 4),
        p95=round(scale, 4),
    )
    if scale <= 1e-12:
        return slope

    slope[1:-1, 1:-1] = np.clip(magnitude / scale, 0.0, 1.0)
    return slope


def flatness_map(slope: np.ndarray, radius: int, max_slope: float) -> np.ndarray:
    """Fraction of the ``(2r+1)^2`` window around each cell with slope <= max_slope.

    Window cells outside the grid are skipped rather than counted.
    """

    if slope.ndim != 2:
        raise ValueError("slope must be a 2D array")
    if radius < 0:
        raise ValueError("radius must be non-negative")

    flat = (slope <= max_slope).astype(np.float64)
    if radius == 0:
        return flat.astype(np.float32)

    flat_count = _window_sum(flat, radius)
    cell_count = _window_sum(np.ones_like(flat), radius)
    return np.clip(flat_count / cell_count, 0.0, 1.0).astype(np.float32)


def analyze_terrain(
    height: np.ndarray,
    river_mask: np.ndarray,
    config: PlacementConfig | None = None,
) -> TerrainAnalysis:
    """Build the full terrain analysis for one height grid and water/river mask."""

    cfg = config or PlacementConfig()
    if height.shape != river_mask.shape:
        raise ValueError("height and river_mask shape mismatch")

    river_analysis = analyze_river_exclusion(river_mask, cfg)
    slope = slope_map(height)
    flatness_maps = {
        zone_type: flatness_map(slope, cfg.flatness_radius(zone_type), cfg.max_slope)
        for zone_type in ZoneType
    }
    return TerrainAnalysis(
        height_map=height.astype(np.float32, copy=True),
        slope_map=slope,
        flatness_maps=flatness_maps,
        river_analysis=river_analysis,
    )


def _window_sum(values: np.ndarray, radius: int) -> np.ndarray:
    result = _window_sum_axis(values, radius, axis=1)
    return _window_sum_axis(result, radius, axis=0)


def _window_sum_axis(values: np.ndarray, radius: int, *, axis: int) -> np.ndarray:
    kernel = 2 * radius + 1
    if axis == 0:
        padded = np.pad(values, ((radius, radius), (0, 0)), mode="constant", constant_values=0.0)
        csum = np.cumsum(padded, axis=0)
        csum = np.pad(csum, ((1, 0), (0, 0)), mode="constant", constant_values=0.0)
        return csum[kernel:, :] - csum[:-kernel, :]

    padded = np.pad(values, ((0, 0), (radius, radius)), mode="constant", constant_values=0.0)
    csum = np.cumsum(padded, axis=1)
    csum = np.pad(csum, ((0, 0), (1, 0)), mode="constant", constant_values=0.0)
    return csum[:, kernel:] - csum[:, :-kernel]
