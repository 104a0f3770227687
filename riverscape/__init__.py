"""River terrain synthesis and placement analysis package."""

from .config import (
    DEFAULT_HEIGHT,
    DEFAULT_WIDTH,
    DEFAULT_WORLD_EXTENT,
    ConfigError,
    GeneratorConfig,
)

__all__ = [
    "DEFAULT_WIDTH",
    "DEFAULT_HEIGHT",
    "DEFAULT_WORLD_EXTENT",
    "ConfigError",
    "GeneratorConfig",
]
