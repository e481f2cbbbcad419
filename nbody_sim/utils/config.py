"""Configuration management."""

import json
import math
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Tuple

import yaml

from nbody_sim.errors import ConfigurationError
from nbody_sim.io.snapshot_format import SNAPSHOT_FORMATS
from nbody_sim.presets import PRESETS


@dataclass
class Config:
    """Simulation configuration."""
    # Simulation parameters
    n_workers: int = 16
    n_bodies: int = 10000
    sim_steps: int = 40
    dt: float = 0.2

    # Environment
    G: float = 0.000013
    min_dist: float = 0.01

    # Preset parameters
    preset: str = "rotating_disc"
    preset_params: Dict[str, Any] = field(default_factory=dict)
    seed: int = 42

    # Snapshot output
    output_dir: str = "output"
    snapshot_format: str = "bin"
    max_pending_snapshots: int = 8

    # Rendering parameters (x_start, x_end, y_start, y_end)
    render_bounds: Tuple[float, float, float, float] = (380.0, 420.0, 1480.0, 1520.0)
    image_width: int = 900
    image_height: int = 900

    # Logging
    log_every: int = 1
    render_log_every: int = 20

    def __post_init__(self):
        if self.preset_params is None:
            self.preset_params = {}
        self.render_bounds = tuple(self.render_bounds)

    @property
    def steps_dir(self) -> Path:
        return Path(self.output_dir) / "steps"

    @property
    def images_dir(self) -> Path:
        return Path(self.output_dir) / "imgs"


def validate_config(config: Config) -> Config:
    """Check a configuration before any simulation work starts.

    Raises:
        ConfigurationError: On the first invalid parameter
    """
    if config.n_bodies <= 0:
        raise ConfigurationError(f"n_bodies must be positive, got {config.n_bodies}")
    if config.n_workers <= 0:
        raise ConfigurationError(f"n_workers must be positive, got {config.n_workers}")
    if config.sim_steps < 0:
        raise ConfigurationError(f"sim_steps must be >= 0, got {config.sim_steps}")
    if not math.isfinite(config.dt) or config.dt <= 0:
        raise ConfigurationError(f"dt must be a positive finite number, got {config.dt}")
    if not math.isfinite(config.G):
        raise ConfigurationError(f"G must be finite, got {config.G}")
    if not math.isfinite(config.min_dist) or config.min_dist < 0:
        raise ConfigurationError(f"min_dist must be >= 0, got {config.min_dist}")
    if config.preset.lower() not in PRESETS:
        raise ConfigurationError(
            f"Unknown preset: {config.preset}. Available: {list(PRESETS.keys())}"
        )
    fixed_size = PRESETS[config.preset.lower()].fixed_size
    if fixed_size is not None and config.n_bodies != fixed_size:
        raise ConfigurationError(
            f"Preset {config.preset} has exactly {fixed_size} bodies, got n_bodies={config.n_bodies}; "
            f"set n_bodies={fixed_size} (--bodies {fixed_size})"
        )
    if config.snapshot_format not in SNAPSHOT_FORMATS:
        raise ConfigurationError(
            f"Unknown snapshot format: {config.snapshot_format}. Use one of {SNAPSHOT_FORMATS}"
        )
    if config.max_pending_snapshots < 0:
        raise ConfigurationError(
            f"max_pending_snapshots must be >= 0, got {config.max_pending_snapshots}"
        )
    if config.log_every < 1 or config.render_log_every < 1:
        raise ConfigurationError("log_every and render_log_every must be >= 1")
    validate_bounds(config.render_bounds)
    if config.image_width <= 0 or config.image_height <= 0:
        raise ConfigurationError(
            f"Image size must be positive, got {config.image_width}x{config.image_height}"
        )
    return config


def validate_bounds(bounds) -> Tuple[float, float, float, float]:
    """Check ``(x_start, x_end, y_start, y_end)`` axis bounds."""
    if len(bounds) != 4:
        raise ConfigurationError(f"Bounds need 4 values (x_start, x_end, y_start, y_end), got {bounds}")
    x_start, x_end, y_start, y_end = (float(v) for v in bounds)
    if x_start >= x_end or y_start >= y_end:
        raise ConfigurationError(f"Bad x,y references: {bounds}")
    return x_start, x_end, y_start, y_end


def load_config(config_path: str) -> Config:
    """Load configuration from file.

    Args:
        config_path: Path to config file (.json or .yaml)

    Returns:
        Config object
    """
    config_path = Path(config_path)

    with open(config_path, 'r') as f:
        if config_path.suffix in ('.yaml', '.yml'):
            data = yaml.safe_load(f) or {}
        else:
            data = json.load(f)

    known = {f.name for f in fields(Config)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigurationError(f"Unknown config keys in {config_path}: {unknown}")
    return Config(**data)


def save_config(config: Config, output_path: str):
    """Save configuration to file.

    Args:
        config: Config object
        output_path: Output file path (.json or .yaml)
    """
    output_path = Path(output_path)
    data = asdict(config)
    data['render_bounds'] = list(config.render_bounds)

    with open(output_path, 'w') as f:
        if output_path.suffix in ('.yaml', '.yml'):
            yaml.safe_dump(data, f, default_flow_style=False)
        else:
            json.dump(data, f, indent=2)
