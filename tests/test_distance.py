from __future__ import annotations

import math

import numpy as np
import pytest

from riverscape.config import PlacementConfig
from riverscape.distance import analyze_river_exclusion, distance_field


def _octile_reference(water: np.ndarray) -> np.ndarray:
    h, w = water.shape
    sources = np.argwhere(water)
    out = np.full((h, w), np.inf)
    for y in range(h):
        for x in range(w):
            for sy, sx in sources:
                dy = abs(y - int(sy))
                dx = abs(x - int(sx))
                d = (max(dx, dy) - min(dx, dy)) + math.sqrt(2.0) * min(dx, dy)
                out[y, x] = min(out[y, x], d)
    return out


def test_single_source_distances() -> None:
    water = np.zeros((7, 7), dtype=bool)
    water[3, 3] = True
    dist = distance_field(water)

    assert dist.dtype == np.float32
    assert dist[3, 3] == 0.0
    assert dist[3, 4] == pytest.approx(1.0)
    assert dist[2, 2] == pytest.approx(math.sqrt(2.0))
    assert dist[0, 0] == pytest.approx(3.0 * math.sqrt(2.0))
    assert dist[3, 0] == pytest.approx(3.0)
    assert dist[0, 1] == pytest.approx(2.0 * math.sqrt(2.0) + 1.0)


def test_matches_octile_reference_on_random_mask() -> None:
    rng = np.random.default_rng(3)
    water = rng.random((12, 15)) < 0.06
    water[0, 0] = True

    dist = distance_field(water)
    np.testing.assert_allclose(dist, _octile_reference(water), rtol=0, atol=1e-4)


def test_no_water_is_unreachable_everywhere() -> None:
    water = np.zeros((5, 6), dtype=bool)
    analysis = analyze_river_exclusion(water)

    assert np.isinf(analysis.distance_field).all()
    assert not analysis.exclusion_mask.any()


def test_water_is_zero_and_land_is_positive() -> None:
    water = np.zeros((10, 10), dtype=bool)
    water[:, 4] = True
    dist = distance_field(water)

    assert (dist[water] == 0.0).all()
    assert (dist[~water] > 0.0).all()
    np.testing.assert_allclose(dist[0], np.abs(np.arange(10) - 4), atol=1e-6)


def test_exclusion_is_water_or_within_bank_margin() -> None:
    rng = np.random.default_rng(11)
    water = rng.random((20, 20)) < 0.03
    cfg = PlacementConfig(bank_margin=3.0)
    analysis = analyze_river_exclusion(water, cfg)

    expected = water | (analysis.distance_field < cfg.bank_margin)
    assert np.array_equal(analysis.exclusion_mask, expected)
    assert (analysis.exclusion_mask[water]).all()


def test_float_mask_is_thresholded() -> None:
    intensity = np.zeros((6, 6), dtype=np.float32)
    intensity[2, 2] = 0.29
    intensity[4, 4] = 0.3

    analysis = analyze_river_exclusion(intensity, PlacementConfig(river_threshold=0.3))
    assert analysis.water_mask.dtype == np.bool_
    assert analysis.water_mask.sum() == 1
    assert analysis.water_mask[4, 4]
    assert analysis.distance_field[4, 4] == 0.0


def test_bool_mask_is_used_as_is() -> None:
    water = np.zeros((4, 4), dtype=bool)
    water[1, 1] = True

    analysis = analyze_river_exclusion(water, PlacementConfig(river_threshold=1.0))
    assert np.array_equal(analysis.water_mask, water)
    assert analysis.water_mask is not water


def test_rejects_non_2d_masks() -> None:
    with pytest.raises(ValueError):
        distance_field(np.zeros(5, dtype=bool))
    with pytest.raises(ValueError):
        analyze_river_exclusion(np.zeros((2, 2, 2)))
