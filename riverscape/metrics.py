"""Connectivity metrics for boolean masks."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from scipy.ndimage import generate_binary_structure, label


@dataclass(frozen=True)
class MaskMetrics:
    """Connected component and coverage summary for a boolean mask."""

    num_components: int
    largest_component_area: int
    total_pixels: int
    largest_ratio: float
    fraction: float


def connected_components_metrics(mask: np.ndarray, *, connectivity: int = 8) -> MaskMetrics:
    """Compute connected component statistics for a mask (e.g. the water mask)."""

    if mask.ndim != 2:
        raise ValueError("mask must be 2D")
    if connectivity not in (4, 8):
        raise ValueError("connectivity must be 4 or 8")

    mask_bool = mask.astype(bool, copy=False)
    total = int(mask_bool.sum())
    if total == 0:
        return MaskMetrics(0, 0, 0, 0.0, 0.0)

    structure = generate_binary_structure(2, 2 if connectivity == 8 else 1)
    labels, count = label(mask_bool, structure=structure)
    sizes = np.bincount(labels.ravel())[1:]
    largest = int(sizes.max())

    return MaskMetrics(
        num_components=int(count),
        largest_component_area=largest,
        total_pixels=total,
        largest_ratio=float(largest / total),
        fraction=float(total / mask_bool.size),
    )
