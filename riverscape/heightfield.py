"""Height composition: warped base terrain, flat areas, river erosion and carving.

The helpers take broadcast coordinates. A row of x against a column of z is
evaluated as a whole grid, so noise terms that only depend on the unwarped
position are sampled as outer products instead of cell by cell.
"""

from __future__ import annotations

from dataclasses import dataclass
import math

import numpy as np

from riverscape.config import GeneratorConfig
from riverscape.noise import NoiseBank
from riverscape.river import RiverModel


_FLAT_THRESHOLD = 0.6
_FLAT_RING = tuple(
    (math.cos(i / 8 * 2.0 * math.pi), math.sin(i / 8 * 2.0 * math.pi)) for i in range(8)
)
# Axis-aligned so that a row/column grid stays a row/column grid after the shift.
_SMOOTH_OFFSETS = ((2.0, 0.0), (0.0, 2.0), (-2.0, 0.0), (0.0, -2.0))
_VALLEY_FREQUENCY = 0.3
_VALLEY_SLOPE = 0.001


@dataclass(frozen=True)
class HeightSample:
    """Final height together with the river terms that produced it."""

    height: float
    carve_offset: float
    erosion_factor: float
    in_channel: bool


@dataclass(frozen=True)
class HeightSamples:
    """Array form of `HeightSample` for a whole grid, shaped (rows, cols)."""

    height: np.ndarray
    carve_offset: np.ndarray
    erosion_factor: np.ndarray
    in_channel: np.ndarray


class HeightSampler:
    """Deterministic height query for arbitrary world coordinates."""

    def __init__(self, config: GeneratorConfig | None = None, *, bank: NoiseBank | None = None) -> None:
        self.config = config or GeneratorConfig()
        self.bank = bank or NoiseBank.from_seed(self.config.seed)
        self.river = RiverModel(self.bank, self.config.river, self.config.erosion)

    def height(self, x: float, z: float) -> float:
        return self.sample(x, z).height

    def sample(self, x: float, z: float) -> HeightSample:
        grid = self.sample_grid(np.array([x], dtype=np.float64), np.array([z], dtype=np.float64))
        return HeightSample(
            height=float(grid.height[0, 0]),
            carve_offset=float(grid.carve_offset[0, 0]),
            erosion_factor=float(grid.erosion_factor[0, 0]),
            in_channel=bool(grid.in_channel[0, 0]),
        )

    def sample_grid(self, xs: np.ndarray, zs: np.ndarray) -> HeightSamples:
        """Evaluate every (x, z) pair of the grid spanned by `xs` (columns) and `zs` (rows)."""

        x = np.asarray(xs, dtype=np.float64).reshape(1, -1)
        z = np.asarray(zs, dtype=np.float64).reshape(-1, 1)
        shape = (z.shape[0], x.shape[1])

        strength = self.config.terrain.domain_warp_strength
        warped_x = x + self.bank.warp_x.at(x, z) * strength
        warped_z = z + self.bank.warp_y.at(x, z) * strength
        base = self.base_height(warped_x, warped_z)

        # River geometry is evaluated unwarped so the channel stays coherent.
        effects = self.river.effects_array(x, z)
        eroded = self.apply_erosion(base, x, z, effects.erosion_factor, effects.along)
        carve = np.broadcast_to(effects.carve_offset, shape)
        return HeightSamples(
            height=np.broadcast_to(eroded + carve, shape).copy(),
            carve_offset=carve.copy(),
            erosion_factor=np.broadcast_to(effects.erosion_factor, shape).copy(),
            in_channel=np.broadcast_to(effects.in_channel, shape).copy(),
        )

    def base_height(self, x, z):
        """Hill-shaped terrain at already-warped positions, before river effects."""

        cfg = self.config.terrain
        sx = np.asarray(x, dtype=np.float64) * cfg.scale
        sz = np.asarray(z, dtype=np.float64) * cfg.scale

        base = self.bank.terrain_base.at(sx, sz)
        base = np.copysign(np.abs(base) ** cfg.hill_steepness, base)
        hill = self.bank.hill.at(sx, sz) * 0.3 * cfg.terrain_roughness
        detail = self.bank.terrain_detail.at(x, z) * 0.1 * cfg.terrain_roughness

        terrain = (base + hill + detail) * cfg.terrain_amplitude
        mask = self.flat_area_mask(x, z)
        return terrain * (1.0 - mask) + terrain * 0.3 * mask

    def flat_area_mask(self, x, z):
        cfg = self.config.terrain
        freq = cfg.flat_area_frequency
        x, z = np.broadcast_arrays(np.asarray(x, dtype=np.float64), np.asarray(z, dtype=np.float64))
        center = self.bank.flat_area.points(x * freq, z * freq)
        mask = np.zeros_like(center)

        active = center > _FLAT_THRESHOLD
        if not np.any(active):
            return mask

        ring = cfg.flat_area_radius * 0.5
        ax = x[active]
        az = z[active]
        total = np.zeros_like(ax)
        for dx, dz in _FLAT_RING:
            total += self.bank.flat_area.points((ax + dx * ring) * freq, (az + dz * ring) * freq)

        average = total / len(_FLAT_RING)
        falloff = 1.0 - (center[active] - _FLAT_THRESHOLD) / (1.0 - _FLAT_THRESHOLD)
        mask[active] = np.clip(average * falloff * cfg.flat_area_strength, 0.0, 1.0)
        return mask

    def apply_erosion(self, height, x, z, erosion_factor, along):
        cfg = self.config.erosion
        erosion_factor = np.asarray(erosion_factor, dtype=np.float64)

        flatten = cfg.valley_flattening * erosion_factor
        valley = self.valley_floor_height(x, z, along)
        flattened = height * (1.0 - flatten) + valley * flatten

        smoothing = cfg.erosion_smoothing * erosion_factor
        total = flattened
        for dx, dz in _SMOOTH_OFFSETS:
            total = total + self.smooth_terrain_height(x + dx, z + dz)
        averaged = total / (len(_SMOOTH_OFFSETS) + 1)
        smoothed = flattened * (1.0 - smoothing) + averaged * smoothing

        return np.where(erosion_factor > 0.0, smoothed, height)

    def valley_floor_height(self, x, z, along):
        cfg = self.config.terrain
        freq = cfg.scale * _VALLEY_FREQUENCY
        valley_base = self.bank.terrain_base.at(np.asarray(x, dtype=np.float64) * freq, np.asarray(z, dtype=np.float64) * freq)
        return valley_base * cfg.terrain_amplitude * 0.3 + along * _VALLEY_SLOPE

    def smooth_terrain_height(self, x, z):
        cfg = self.config.terrain
        x = np.asarray(x, dtype=np.float64)
        z = np.asarray(z, dtype=np.float64)
        base = self.bank.terrain_base.at(x * cfg.scale, z * cfg.scale)
        detail = self.bank.terrain_detail.at(x, z) * 0.1
        return (base + detail) * cfg.terrain_amplitude
