"""Preview rasters derived from grids, analyses and placement zones."""

from __future__ import annotations

from typing import Iterable

import numpy as np
from matplotlib.colors import ListedColormap

from riverscape.analysis import TerrainAnalysis, ZoneType
from riverscape.config import PlacementConfig
from riverscape.placement import PlacementZone


TERRAIN_WATER = np.uint8(0)
TERRAIN_VALLEY = np.uint8(1)
TERRAIN_PLAINS = np.uint8(2)
TERRAIN_HILL = np.uint8(3)
TERRAIN_MOUNTAIN = np.uint8(4)

_TERRAIN_PALETTE = [
    "#285ac8",  # 0 water
    "#6e965a",  # 1 valley
    "#96be64",  # 2 plains
    "#a08c5a",  # 3 hill
    "#c8c8c8",  # 4 mountain
]

ZONE_COLORS: dict[ZoneType, tuple[int, int, int]] = {
    ZoneType.BUILDING: (255, 0, 0),
    ZoneType.TANK: (255, 165, 0),
    ZoneType.VEHICLE: (255, 255, 0),
}


def height_preview_u8(height: np.ndarray) -> np.ndarray:
    """Min/max-normalized 8-bit grayscale heightmap."""

    lo = float(np.min(height))
    hi = float(np.max(height))
    scale = max(hi - lo, 1e-6)
    norm = np.clip((height - lo) / scale, 0.0, 1.0)
    return (norm * 255.0).astype(np.uint8)


def height_preview_u16(height: np.ndarray, *, robust_percentiles: tuple[float, float] = (1.0, 99.0)) -> np.ndarray:
    """Map float height values to 16-bit preview grayscale."""

    lo, hi = np.percentile(height, robust_percentiles)
    scale = max(hi - lo, 1e-6)
    norm = np.clip((height - lo) / scale, 0.0, 1.0)
    return np.round(norm * 65535.0).astype(np.uint16)


def unit_preview_u8(values: np.ndarray) -> np.ndarray:
    """Encode values already in [0, 1] (slope, flatness) to 8-bit grayscale."""

    return np.round(np.clip(values, 0.0, 1.0) * 255.0).astype(np.uint8)


def mask_u8(mask: np.ndarray) -> np.ndarray:
    return np.where(mask, 255, 0).astype(np.uint8)


def river_mask_rgb(carve: np.ndarray, river_depth: float) -> np.ndarray:
    """Channel in blue (by depth), banks in brown, untouched land in white."""

    h, w = carve.shape
    out = np.full((h, w, 3), 255, dtype=np.uint8)

    water = carve < -0.1
    intensity = (np.clip(-carve / max(river_depth, 1e-6), 0.0, 1.0) * 255.0).astype(np.uint8)
    out[water] = np.stack(
        (np.zeros_like(intensity), intensity // 2, intensity),
        axis=-1,
    )[water]

    bank = (carve >= -0.1) & (carve < 0.0)
    bank_intensity = (np.clip(-carve * 10.0, 0.0, 1.0) * 255.0).astype(np.uint8)
    out[bank] = np.stack(
        (bank_intensity, bank_intensity // 2, np.zeros_like(bank_intensity)),
        axis=-1,
    )[bank]
    return out


def analysis_rgb(analysis: TerrainAnalysis) -> np.ndarray:
    """Water blue, exclusion pink, otherwise slope (red) against building flatness (green)."""

    river = analysis.river_analysis
    slope_u8 = (np.clip(analysis.slope_map, 0.0, 1.0) * 255.0).astype(np.uint8)
    flat_u8 = (np.clip(analysis.flatness(ZoneType.BUILDING), 0.0, 1.0) * 255.0).astype(np.uint8)
    out = np.stack((slope_u8, flat_u8, np.full_like(slope_u8, 100)), axis=-1)
    out[river.exclusion_mask] = (255, 200, 200)
    out[river.water_mask] = (0, 0, 255)
    return out


def zones_rgb(
    shape: tuple[int, int],
    zones: Iterable[PlacementZone],
    config: PlacementConfig | None = None,
) -> np.ndarray:
    """Draw each zone as a filled disc of its object footprint radius."""

    cfg = config or PlacementConfig()
    h, w = shape
    out = np.zeros((h, w, 3), dtype=np.uint8)
    yy, xx = np.indices((h, w))

    for zone in zones:
        radius = cfg.object_radius(zone.zone_type)
        r = int(radius)
        y0, y1 = max(0, zone.row - r), min(h, zone.row + r + 1)
        x0, x1 = max(0, zone.col - r), min(w, zone.col + r + 1)
        if y0 >= y1 or x0 >= x1:
            continue
        dy = yy[y0:y1, x0:x1] - zone.row
        dx = xx[y0:y1, x0:x1] - zone.col
        disc = np.sqrt(dx * dx + dy * dy) <= radius
        out[y0:y1, x0:x1][disc] = ZONE_COLORS[zone.zone_type]
    return out


def terrain_type_map(
    height: np.ndarray,
    slope: np.ndarray,
    water_mask: np.ndarray,
    *,
    amplitude: float,
) -> np.ndarray:
    """Coarse terrain classes from amplitude-normalized height and slope."""

    if not (height.shape == slope.shape == water_mask.shape):
        raise ValueError("height, slope and water_mask shape mismatch")

    norm = height / amplitude if amplitude > 0.0 else np.zeros_like(height)
    classes = np.full(height.shape, TERRAIN_VALLEY, dtype=np.uint8)
    upland = (norm > 0.2) & (norm <= 0.6)
    classes[upland & (slope > 0.4)] = TERRAIN_HILL
    classes[upland & (slope <= 0.4)] = TERRAIN_PLAINS
    classes[norm > 0.6] = TERRAIN_MOUNTAIN
    classes[water_mask] = TERRAIN_WATER
    return classes


def terrain_type_rgb(classes: np.ndarray) -> np.ndarray:
    """Map terrain class IDs to a discrete RGB palette via ListedColormap."""

    cmap = ListedColormap(_TERRAIN_PALETTE, name="terrain_types")
    idx = np.clip(classes.astype(np.int32), 0, len(_TERRAIN_PALETTE) - 1)
    rgba = cmap(idx)
    return np.round(rgba[..., :3] * 255.0).astype(np.uint8)
