"""Preset scenario generators."""

from nbody_sim.errors import ConfigurationError
from nbody_sim.presets.base import Preset
from nbody_sim.presets.rotating_disc import (
    generate_rotating_disc,
    RotatingDisc,
    DoubleRotatingDisc
)
from nbody_sim.presets.simple import ThreeMasses, BodyGrid

PRESETS = {
    "rotating_disc": RotatingDisc,
    "double_disc": DoubleRotatingDisc,
    "three_masses": ThreeMasses,
    "grid": BodyGrid,
}


def get_preset(name: str, n_bodies: int, seed: int = 42, **kwargs) -> Preset:
    """Get preset by name."""
    preset_class = PRESETS.get(name.lower())
    if preset_class is None:
        raise ConfigurationError(f"Unknown preset: {name}. Available: {list(PRESETS.keys())}")
    try:
        return preset_class(n_bodies=n_bodies, seed=seed, **kwargs)
    except TypeError as e:
        raise ConfigurationError(f"Bad parameters for preset {name}: {e}") from e


__all__ = [
    "Preset",
    "generate_rotating_disc",
    "RotatingDisc",
    "DoubleRotatingDisc",
    "ThreeMasses",
    "BodyGrid",
    "PRESETS",
    "get_preset",
]
