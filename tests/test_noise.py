from __future__ import annotations

import numpy as np
import pytest

from riverscape.noise import NoiseBank, NoiseField, field_names


def _grid_samples(field: NoiseField, scale: float = 37.0) -> np.ndarray:
    coords = np.linspace(-5.0, 5.0, 21) * scale
    return np.array([[field(x, z) for x in coords] for z in coords])


def test_field_is_deterministic_per_seed() -> None:
    a = NoiseField(11, frequency=0.01, octaves=3, lacunarity=2.5, persistence=0.4)
    b = NoiseField(11, frequency=0.01, octaves=3, lacunarity=2.5, persistence=0.4)
    c = NoiseField(12, frequency=0.01, octaves=3, lacunarity=2.5, persistence=0.4)

    samples_a = _grid_samples(a)
    assert np.array_equal(samples_a, _grid_samples(b))
    assert not np.array_equal(samples_a, _grid_samples(c))


def test_fbm_stays_roughly_in_unit_range() -> None:
    field = NoiseField(5, frequency=0.02, octaves=5, lacunarity=2.2, persistence=0.6)
    samples = _grid_samples(field)

    assert np.isfinite(samples).all()
    assert float(np.max(np.abs(samples))) <= 1.05
    assert float(np.std(samples)) > 0.01


def test_field_rejects_bad_parameters() -> None:
    with pytest.raises(ValueError):
        NoiseField(1, octaves=0)
    with pytest.raises(ValueError):
        NoiseField(1, frequency=0.0)


def test_bank_uses_fixed_seed_offsets() -> None:
    bank = NoiseBank.from_seed(100)

    assert bank.seed == 100
    assert bank.terrain_base.seed == 100
    assert bank.terrain_detail.seed == 101
    assert bank.river_chaos.seed == 106
    assert bank.river_width.seed == 109
    assert bank.flat_area.seed == 118
    assert bank.hill.seed == 120
    assert bank.terrain_base.octaves == 4
    assert bank.hill.octaves == 5
    assert bank.river_chaos.octaves == 3
    assert set(field_names()) == {
        "terrain_base",
        "terrain_detail",
        "warp_x",
        "warp_y",
        "river_meander",
        "river_chaos",
        "river_scale",
        "river_width",
        "flat_area",
        "hill",
    }


def test_regenerated_bank_reproduces_every_field() -> None:
    first = NoiseBank.from_seed(42)
    second = NoiseBank.from_seed(42)

    assert first == second
    for name in field_names():
        a = getattr(first, name)
        b = getattr(second, name)
        assert a(123.5, -87.25) == b(123.5, -87.25)


def test_array_sampling_matches_point_queries() -> None:
    field = NoiseField(7, frequency=0.013, octaves=3, lacunarity=2.5, persistence=0.4)
    xs = np.array([-120.0, -3.5, 0.0, 41.25, 300.0])
    zs = np.array([-60.0, 12.0, 95.5])

    grid = field.grid(xs, zs)
    assert grid.shape == (3, 5)
    for i, z in enumerate(zs):
        for j, x in enumerate(xs):
            assert grid[i, j] == pytest.approx(field(x, z), abs=1e-12)

    assert np.allclose(field.at(xs[None, :], zs[:, None]), grid, atol=1e-12)

    line = field.line(xs, 95.5)
    assert np.allclose(line, grid[2], atol=1e-12)

    px = np.array([[1.0, 2.0], [3.0, 4.0]])
    pz = np.array([[-1.0, 5.0], [0.5, 8.0]])
    paired = field.points(px, pz)
    assert paired.shape == (2, 2)
    assert paired[1, 0] == pytest.approx(field(3.0, 0.5), abs=1e-12)
    assert np.allclose(field.at(px, pz), paired, atol=1e-12)


def test_points_rejects_mismatched_shapes() -> None:
    field = NoiseField(1)

    with pytest.raises(ValueError):
        field.points(np.zeros(3), np.zeros(4))
