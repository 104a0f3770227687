"""Zone classification and suitability scoring for object placement."""

from __future__ import annotations

from dataclasses import dataclass
import math

import numpy as np
import structlog

from riverscape.analysis import TerrainAnalysis, ZoneType, analyze_terrain
from riverscape.config import PlacementConfig


logger = structlog.get_logger()

# Minimum river distance (cells) per zone type, checked on top of min_distance_from_river.
_ZONE_DISTANCE_FLOOR: dict[ZoneType, float] = {
    ZoneType.BUILDING: 20.0,
    ZoneType.TANK: 15.0,
    ZoneType.VEHICLE: -math.inf,
}

_RIVER_DISTANCE_SPAN = 20.0
_WEIGHT_RIVER = 0.25
_WEIGHT_SLOPE = 0.30
_WEIGHT_FLATNESS = 0.30
_WEIGHT_HEIGHT = 0.15


@dataclass(frozen=True)
class PlacementZone:
    """One candidate cell; plain values only, no views into the analysis grids."""

    row: int
    col: int
    zone_type: ZoneType
    suitability_score: float

    @property
    def position(self) -> tuple[int, int]:
        return self.col, self.row


def suitability_score(
    river_distance: float,
    slope: float,
    flatness: float,
    height: float,
    config: PlacementConfig,
) -> float:
    if math.isfinite(river_distance):
        river_score = (river_distance - config.min_distance_from_river) / _RIVER_DISTANCE_SPAN
    else:
        river_score = 1.0
    slope_score = 1.0 - slope
    height_score = min(max(height, 0.0), 1.0)
    return (
        river_score * _WEIGHT_RIVER
        + slope_score * _WEIGHT_SLOPE
        + flatness * _WEIGHT_FLATNESS
        + height_score * _WEIGHT_HEIGHT
    )


def classify_cell(
    river_distance: float,
    slope: float,
    flatness: dict[ZoneType, float],
    config: PlacementConfig,
) -> ZoneType | None:
    """First zone type, in priority order, whose flatness, slope and distance rules hold."""

    if slope > config.max_slope:
        return None
    for zone_type in ZoneType:
        if flatness[zone_type] >= config.min_flat_area and river_distance > _ZONE_DISTANCE_FLOOR[zone_type]:
            return zone_type
    return None


def find_placement_zones(analysis: TerrainAnalysis, config: PlacementConfig | None = None) -> list[PlacementZone]:
    """Classify and score interior cells, best first.

    Adjacent cells may both qualify; callers that need spaced-out placement
    must filter the result themselves.
    """

    cfg = config or PlacementConfig()
    h, w = analysis.shape
    margin = cfg.border_margin
    river = analysis.river_analysis

    candidates = (~river.exclusion_mask) & (river.distance_field >= cfg.min_distance_from_river)
    interior = np.zeros((h, w), dtype=bool)
    if h > 2 * margin and w > 2 * margin:
        interior[margin : h - margin, margin : w - margin] = True
    candidates &= interior

    zones: list[PlacementZone] = []
    for row, col in np.argwhere(candidates):
        r = int(row)
        c = int(col)
        distance = float(river.distance_field[r, c])
        slope = float(analysis.slope_map[r, c])
        flatness = {zone_type: float(grid[r, c]) for zone_type, grid in analysis.flatness_maps.items()}

        zone_type = classify_cell(distance, slope, flatness, cfg)
        if zone_type is None:
            continue
        score = suitability_score(distance, slope, flatness[zone_type], float(analysis.height_map[r, c]), cfg)
        zones.append(PlacementZone(row=r, col=c, zone_type=zone_type, suitability_score=score))

    zones.sort(key=lambda zone: zone.suitability_score, reverse=True)
    logger.info("Placement zones selected", total=len(zones), **summarize_zones(zones))
    return zones


def generate_placement_map(
    height: np.ndarray,
    river_mask: np.ndarray,
    config: PlacementConfig | None = None,
) -> tuple[list[PlacementZone], TerrainAnalysis]:
    analysis = analyze_terrain(height, river_mask, config)
    return find_placement_zones(analysis, config), analysis


def summarize_zones(zones: list[PlacementZone]) -> dict[str, int]:
    counts = {zone_type.value: 0 for zone_type in ZoneType}
    for zone in zones:
        counts[zone.zone_type.value] += 1
    return counts
