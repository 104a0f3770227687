"""Configuration models for river terrain generation."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
import math
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from riverscape.analysis import ZoneType


DEFAULT_WIDTH = 1024
DEFAULT_HEIGHT = 1024
DEFAULT_WORLD_EXTENT = 512.0


class ConfigError(ValueError):
    """Raised when a configuration value is invalid."""


def _require_positive(name: str, value: float) -> None:
    if not math.isfinite(value) or value <= 0.0:
        raise ConfigError(f"{name} must be positive, got {value!r}")


def _require_non_negative(name: str, value: float) -> None:
    if not math.isfinite(value) or value < 0.0:
        raise ConfigError(f"{name} must be non-negative, got {value!r}")


def _require_unit_interval(name: str, value: float) -> None:
    if not math.isfinite(value) or not 0.0 <= value <= 1.0:
        raise ConfigError(f"{name} must lie in [0, 1], got {value!r}")


@dataclass(frozen=True)
class TerrainConfig:
    """Controls base terrain shape, domain warp and flat areas."""

    scale: float = 0.005
    terrain_amplitude: float = 50.0
    hill_steepness: float = 1.2
    terrain_roughness: float = 0.5
    domain_warp_strength: float = 25.0
    flat_area_radius: float = 100.0
    flat_area_strength: float = 0.8
    flat_area_frequency: float = 0.002

    def __post_init__(self) -> None:
        _require_positive("scale", self.scale)
        _require_non_negative("terrain_amplitude", self.terrain_amplitude)
        _require_positive("hill_steepness", self.hill_steepness)
        _require_non_negative("terrain_roughness", self.terrain_roughness)
        _require_non_negative("domain_warp_strength", self.domain_warp_strength)
        _require_positive("flat_area_radius", self.flat_area_radius)
        _require_unit_interval("flat_area_strength", self.flat_area_strength)
        _require_positive("flat_area_frequency", self.flat_area_frequency)


@dataclass(frozen=True)
class RiverConfig:
    """Controls river path, channel profile and meandering."""

    river_width: float = 20.0
    river_depth: float = 8.0
    bank_slope_distance: float = 80.0
    meander_frequency: float = 0.008
    meander_amplitude: float = 40.0
    meander_chaos: float = 0.6
    meander_scale_variation: float = 0.4
    flow_irregularity: float = 0.3
    river_start: tuple[float, float] = (-256.0, 0.0)
    river_direction: tuple[float, float] = (1.0, 0.1)

    def __post_init__(self) -> None:
        _require_non_negative("river_width", self.river_width)
        _require_non_negative("river_depth", self.river_depth)
        _require_positive("bank_slope_distance", self.bank_slope_distance)
        _require_positive("meander_frequency", self.meander_frequency)
        _require_non_negative("meander_amplitude", self.meander_amplitude)
        _require_non_negative("meander_chaos", self.meander_chaos)
        _require_non_negative("meander_scale_variation", self.meander_scale_variation)
        _require_non_negative("flow_irregularity", self.flow_irregularity)

        if len(self.river_start) != 2 or not all(math.isfinite(v) for v in self.river_start):
            raise ConfigError(f"river_start must be a finite 2D point, got {self.river_start!r}")
        if len(self.river_direction) != 2 or not all(math.isfinite(v) for v in self.river_direction):
            raise ConfigError(f"river_direction must be a finite 2D vector, got {self.river_direction!r}")
        if math.hypot(*self.river_direction) < 1e-9:
            raise ConfigError("river_direction must have non-zero length")

        # Normalize tuple-likes so hashing and to_dict() stay stable.
        object.__setattr__(self, "river_start", (float(self.river_start[0]), float(self.river_start[1])))
        object.__setattr__(
            self, "river_direction", (float(self.river_direction[0]), float(self.river_direction[1]))
        )

    @property
    def unit_direction(self) -> tuple[float, float]:
        dx, dz = self.river_direction
        length = math.hypot(dx, dz)
        return dx / length, dz / length


@dataclass(frozen=True)
class ErosionConfig:
    """Controls valley flattening and smoothing around the river."""

    erosion_strength: float = 0.8
    erosion_radius: float = 120.0
    valley_flattening: float = 0.7
    erosion_smoothing: float = 0.6

    def __post_init__(self) -> None:
        _require_unit_interval("erosion_strength", self.erosion_strength)
        _require_positive("erosion_radius", self.erosion_radius)
        _require_unit_interval("valley_flattening", self.valley_flattening)
        _require_unit_interval("erosion_smoothing", self.erosion_smoothing)


@dataclass(frozen=True)
class PlacementConfig:
    """Controls river exclusion, flatness analysis and zone selection."""

    river_threshold: float = 0.3
    bank_margin: float = 8.0
    min_distance_from_river: float = 12.0
    building_radius: float = 4.0
    tank_radius: float = 3.0
    vehicle_radius: float = 2.0
    max_slope: float = 0.2
    min_flat_area: float = 0.7
    flatness_safety_margin: float = 1.5
    border_margin: int = 5

    def __post_init__(self) -> None:
        _require_unit_interval("river_threshold", self.river_threshold)
        _require_non_negative("bank_margin", self.bank_margin)
        _require_non_negative("min_distance_from_river", self.min_distance_from_river)
        _require_positive("building_radius", self.building_radius)
        _require_positive("tank_radius", self.tank_radius)
        _require_positive("vehicle_radius", self.vehicle_radius)
        _require_non_negative("max_slope", self.max_slope)
        _require_non_negative("min_flat_area", self.min_flat_area)
        _require_positive("flatness_safety_margin", self.flatness_safety_margin)
        if self.border_margin < 0:
            raise ConfigError(f"border_margin must be non-negative, got {self.border_margin!r}")

    def object_radius(self, zone_type: ZoneType | str) -> float:
        """Footprint radius in cells for a zone type (accepts enum or its value)."""

        key = getattr(zone_type, "value", zone_type)
        radii = {
            "building": self.building_radius,
            "tank": self.tank_radius,
            "vehicle": self.vehicle_radius,
        }
        if key not in radii:
            raise ValueError(f"unknown zone type: {zone_type!r}")
        return radii[key]

    def flatness_radius(self, zone_type: ZoneType | str) -> int:
        return int(self.object_radius(zone_type) * self.flatness_safety_margin)


@dataclass(frozen=True)
class GeneratorConfig:
    """Primary generation configuration."""

    seed: int = 42
    terrain: TerrainConfig = field(default_factory=TerrainConfig)
    river: RiverConfig = field(default_factory=RiverConfig)
    erosion: ErosionConfig = field(default_factory=ErosionConfig)
    placement: PlacementConfig = field(default_factory=PlacementConfig)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
