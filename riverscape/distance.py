"""Distance-to-water field and river exclusion masks."""

from __future__ import annotations

from dataclasses import dataclass
import heapq
import math

import numpy as np
import structlog

from riverscape.config import PlacementConfig


logger = structlog.get_logger()

_DIAGONAL_STEP = math.sqrt(2.0)

# (dy, dx, step cost)
_STEPS_8 = [
    (-1, 0, 1.0),
    (1, 0, 1.0),
    (0, 1, 1.0),
    (0, -1, 1.0),
    (-1, 1, _DIAGONAL_STEP),
    (-1, -1, _DIAGONAL_STEP),
    (1, 1, _DIAGONAL_STEP),
    (1, -1, _DIAGONAL_STEP),
]


@dataclass(frozen=True)
class RiverAnalysis:
    """Water cells, their distance field and the placement exclusion mask."""

    distance_field: np.ndarray
    water_mask: np.ndarray
    exclusion_mask: np.ndarray


def distance_field(water_mask: np.ndarray) -> np.ndarray:
    """Multi-source 8-connected grid distance from every cell to the nearest water cell.

    All water cells start at 0 and are expanded in distance order; a neighbor
    is relaxed only when the new distance is strictly smaller. Cells that no
    water reaches keep ``inf``.
    """

    if water_mask.ndim != 2:
        raise ValueError("water_mask must be a 2D array")

    h, w = water_mask.shape
    water_flat = water_mask.astype(bool, copy=False).ravel()
    dist = np.full(h * w, np.inf, dtype=np.float64)

    heap: list[tuple[float, int]] = []
    for idx in np.flatnonzero(water_flat):
        i = int(idx)
        dist[i] = 0.0
        heap.append((0.0, i))
    heapq.heapify(heap)

    while heap:
        cur_d, flat = heapq.heappop(heap)
        if cur_d > dist[flat]:
            continue
        y = flat // w
        x = flat - y * w
        for dy, dx, step in _STEPS_8:
            ny = y + dy
            nx = x + dx
            if ny < 0 or ny >= h or nx < 0 or nx >= w:
                continue
            nflat = ny * w + nx
            next_d = cur_d + step
            if next_d < dist[nflat]:
                dist[nflat] = next_d
                heapq.heappush(heap, (next_d, nflat))

    return dist.reshape(h, w).astype(np.float32)


def analyze_river_exclusion(river_mask: np.ndarray, config: PlacementConfig | None = None) -> RiverAnalysis:
    """Build the distance field and exclusion mask for a water or river-intensity mask.

    A boolean mask is taken as the water mask directly; a float mask (river
    intensity in ``[0, 1]``) is thresholded at ``river_threshold``.
    """

    cfg = config or PlacementConfig()
    if river_mask.ndim != 2:
        raise ValueError("river_mask must be a 2D array")

    if river_mask.dtype == np.bool_:
        water = river_mask.copy()
    else:
        water = river_mask >= cfg.river_threshold

    dist = distance_field(water)
    exclusion = water | (dist < cfg.bank_margin)

    logger.info(
        "Distance field computed",
        water_cells=int(water.sum()),
        unreachable_cells=int(np.isinf(dist).sum()),
        excluded_cells=int(exclusion.sum()),
    )
    return RiverAnalysis(distance_field=dist, water_mask=water, exclusion_mask=exclusion)
