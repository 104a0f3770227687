"""Seeded noise fields used by the terrain and river samplers."""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np
from opensimplex import OpenSimplex


@dataclass(frozen=True)
class NoiseField:
    """Multi-octave OpenSimplex fBm returning values in approximately [-1, 1].

    Octave ``i`` is drawn from its own generator seeded with ``seed + i`` so a
    single-octave field is plain OpenSimplex noise scaled by ``frequency``.
    """

    seed: int
    frequency: float = 1.0
    octaves: int = 1
    lacunarity: float = 2.0
    persistence: float = 0.5
    _sources: tuple[OpenSimplex, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.octaves < 1:
            raise ValueError("octaves must be >= 1")
        if self.frequency <= 0.0:
            raise ValueError("frequency must be positive")
        sources = tuple(OpenSimplex(seed=self.seed + octave) for octave in range(self.octaves))
        object.__setattr__(self, "_sources", sources)

    def sample(self, x: float, z: float) -> float:
        if self.octaves == 1:
            return float(self._sources[0].noise2(x * self.frequency, z * self.frequency))

        total = 0.0
        amplitude = 1.0
        total_amplitude = 0.0
        freq = self.frequency
        for source in self._sources:
            total += source.noise2(x * freq, z * freq) * amplitude
            total_amplitude += amplitude
            amplitude *= self.persistence
            freq *= self.lacunarity

        if total_amplitude == 0:
            return total
        return float(total / total_amplitude)

    def __call__(self, x: float, z: float) -> float:
        return self.sample(x, z)

    def grid(self, xs: np.ndarray, zs: np.ndarray) -> np.ndarray:
        """Sample the outer product of `xs` and `zs`; result has shape (zs.size, xs.size)."""

        xs = np.ascontiguousarray(xs, dtype=np.float64).ravel()
        zs = np.ascontiguousarray(zs, dtype=np.float64).ravel()

        total = np.zeros((zs.size, xs.size), dtype=np.float64)
        amplitude = 1.0
        total_amplitude = 0.0
        freq = self.frequency
        for source in self._sources:
            total += source.noise2array(xs * freq, zs * freq) * amplitude
            total_amplitude += amplitude
            amplitude *= self.persistence
            freq *= self.lacunarity

        if self.octaves == 1:
            return total
        return total / total_amplitude

    def line(self, values: np.ndarray, z: float = 0.0) -> np.ndarray:
        """Sample at `(v, z)` for every `v` in `values`, keeping the input shape."""

        values = np.asarray(values, dtype=np.float64)
        return self.grid(values.ravel(), np.array([z]))[0].reshape(values.shape)

    def at(self, x: np.ndarray | float, z: np.ndarray | float) -> np.ndarray:
        """Sample at broadcast coordinates.

        A row vector `x` of shape (1, nx) against a column vector `z` of shape
        (nz, 1) is evaluated as one outer product; anything else is paired
        point by point.
        """

        x = np.asarray(x, dtype=np.float64)
        z = np.asarray(z, dtype=np.float64)
        if x.ndim == 2 and z.ndim == 2 and x.shape[0] == 1 and z.shape[1] == 1:
            return self.grid(x[0], z[:, 0])
        x, z = np.broadcast_arrays(x, z)
        return self.points(x, z)

    def points(self, xs: np.ndarray, zs: np.ndarray) -> np.ndarray:
        """Sample at paired coordinates `(xs[i], zs[i])` of any matching shape."""

        xs = np.asarray(xs, dtype=np.float64)
        zs = np.asarray(zs, dtype=np.float64)
        if xs.shape != zs.shape:
            raise ValueError("xs and zs shape mismatch")
        flat = np.fromiter(
            (self.sample(x, z) for x, z in zip(xs.ravel().tolist(), zs.ravel().tolist())),
            dtype=np.float64,
            count=xs.size,
        )
        return flat.reshape(xs.shape)


# (seed offset, frequency, octaves, lacunarity, persistence)
_FIELD_LAYOUT: dict[str, tuple[int, float, int, float, float]] = {
    "terrain_base": (0, 1.0, 4, 2.0, 0.5),
    "terrain_detail": (1, 0.05, 1, 2.0, 0.5),
    "warp_x": (2, 0.003, 1, 2.0, 0.5),
    "warp_y": (3, 0.003, 1, 2.0, 0.5),
    "river_meander": (4, 1.0, 1, 2.0, 0.5),
    "river_chaos": (6, 0.01, 3, 2.5, 0.4),
    "river_scale": (7, 0.0003, 1, 2.0, 0.5),
    "river_width": (9, 0.0005, 1, 2.0, 0.5),
    "flat_area": (18, 1.0, 1, 2.0, 0.5),
    "hill": (20, 2.0, 5, 2.2, 0.6),
}


@dataclass(frozen=True)
class NoiseBank:
    """Immutable set of named noise fields derived from one root seed."""

    seed: int
    terrain_base: NoiseField
    terrain_detail: NoiseField
    warp_x: NoiseField
    warp_y: NoiseField
    river_meander: NoiseField
    river_chaos: NoiseField
    river_scale: NoiseField
    river_width: NoiseField
    flat_area: NoiseField
    hill: NoiseField

    @classmethod
    def from_seed(cls, seed: int) -> "NoiseBank":
        root = int(seed)
        fields = {
            name: NoiseField(
                root + offset,
                frequency=frequency,
                octaves=octaves,
                lacunarity=lacunarity,
                persistence=persistence,
            )
            for name, (offset, frequency, octaves, lacunarity, persistence) in _FIELD_LAYOUT.items()
        }
        return cls(seed=root, **fields)


def field_names() -> tuple[str, ...]:
    return tuple(_FIELD_LAYOUT)
