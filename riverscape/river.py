"""Meandering river path, channel profile and erosion falloff.

Every method works on plain floats or on numpy arrays of any shape; the
along-flow noise terms are sampled for all positions at once.
"""

from __future__ import annotations

from dataclasses import dataclass
import math

import numpy as np

from riverscape.config import ErosionConfig, RiverConfig
from riverscape.noise import NoiseBank


TAU = 2.0 * math.pi


@dataclass(frozen=True)
class RiverEffects:
    """River influence at one world position, or at an array of them."""

    carve_offset: float | np.ndarray
    erosion_factor: float | np.ndarray
    distance: float | np.ndarray
    along: float | np.ndarray
    in_channel: bool | np.ndarray


class RiverModel:
    """Single parametric river flowing from ``river_start`` along ``river_direction``.

    Meander jitter, scale variation and width jitter are sampled along the flow
    axis only, so the channel stays coherent across its width.
    """

    def __init__(self, bank: NoiseBank, river: RiverConfig, erosion: ErosionConfig) -> None:
        self.bank = bank
        self.river = river
        self.erosion = erosion
        self.start = river.river_start
        self.direction = river.unit_direction
        self.perpendicular = (-self.direction[1], self.direction[0])

    def distance_along(self, x, z):
        return (x - self.start[0]) * self.direction[0] + (z - self.start[1]) * self.direction[1]

    def meander_offset(self, along):
        cfg = self.river
        along = np.asarray(along, dtype=np.float64)
        phase = along * cfg.meander_frequency

        primary = np.sin(phase * TAU)
        secondary = np.sin(phase * 1.7 * TAU) * 0.4
        chaos = self.bank.river_chaos.line(along)
        scale_factor = 1.0 + self.bank.river_scale.line(along) * cfg.meander_scale_variation
        asymmetry = self.bank.river_meander.line(phase * 0.8, 1000.0)

        base = primary * 0.7 + secondary * 0.3
        chaotic = chaos * cfg.meander_chaos * 0.5
        # flow_irregularity=0.3 gives the classic 0.2 asymmetric weight.
        asymmetric = asymmetry * cfg.flow_irregularity * (2.0 / 3.0)

        return (base + chaotic + asymmetric) * scale_factor * cfg.meander_amplitude

    def centerline(self, along):
        offset = self.meander_offset(along)
        return (
            self.start[0] + self.direction[0] * along + self.perpendicular[0] * offset,
            self.start[1] + self.direction[1] * along + self.perpendicular[1] * offset,
        )

    def width_at(self, along):
        return self.river.river_width * (1.0 + self.bank.river_width.line(np.asarray(along, dtype=np.float64)) * 0.3)

    def effects_array(self, x, z) -> RiverEffects:
        """Effects at broadcast coordinates, as arrays of the broadcast shape."""

        x, z = np.broadcast_arrays(np.asarray(x, dtype=np.float64), np.asarray(z, dtype=np.float64))
        along = self.distance_along(x, z)
        cx, cz = self.centerline(along)
        distance = np.hypot(x - cx, z - cz)
        width = self.width_at(along)
        return RiverEffects(
            carve_offset=self.carve_profile(distance, width),
            erosion_factor=self.erosion_factor(distance, width),
            distance=distance,
            along=along,
            in_channel=distance <= np.maximum(width, 0.0) * 0.5,
        )

    def effects(self, x: float, z: float) -> RiverEffects:
        fx = self.effects_array(x, z)
        return RiverEffects(
            carve_offset=float(fx.carve_offset),
            erosion_factor=float(fx.erosion_factor),
            distance=float(fx.distance),
            along=float(fx.along),
            in_channel=bool(fx.in_channel),
        )

    def carve_offset(self, x: float, z: float) -> float:
        return self.effects(x, z).carve_offset

    def carve_profile(self, distance, width):
        """Flat bed inside the water edge, blended easing curves across the bank."""

        depth = self.river.river_depth
        distance = np.asarray(distance, dtype=np.float64)
        water_edge = np.maximum(width, 0.0) * 0.5
        bank = self.river.bank_slope_distance

        t = np.clip((distance - water_edge) / bank, 0.0, 1.0)
        cubic = 1.0 - t**3
        sine = np.sin((1.0 - t) * math.pi * 0.5)
        cosine = (1.0 + np.cos(t * math.pi)) * 0.5
        blended = -depth * (cubic * 0.5 + sine * 0.3 + cosine * 0.2)

        return np.where(distance <= water_edge, -depth, np.where(distance > water_edge + bank, 0.0, blended))

    def erosion_factor(self, distance, width):
        strength = self.erosion.erosion_strength
        distance = np.asarray(distance, dtype=np.float64)
        water_edge = np.maximum(width, 0.0) * 0.5
        radius = self.erosion.erosion_radius

        t = np.clip((distance - water_edge) / radius, 0.0, 1.0)
        falloff = strength * (1.0 - t) ** 2

        return np.where(distance <= water_edge, strength, np.where(distance > water_edge + radius, 0.0, falloff))
