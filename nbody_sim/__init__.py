"""
N-body simulator - parallel fixed-step gravity simulation with per-step snapshots.

Features:
- Double-buffered body store
- Pull-based parallel step scheduler over a reusable worker pool
- Background snapshot writer (binary or JSON) with a bounded queue
- Preset scenes (rotating disc, double disc, three masses, grid)
- Density frame renderer and CLI
"""

__version__ = "0.1.0"

from nbody_sim.physics.simulator import Simulator
from nbody_sim.presets import generate_rotating_disc, get_preset

__all__ = [
    "Simulator",
    "generate_rotating_disc",
    "get_preset",
]
