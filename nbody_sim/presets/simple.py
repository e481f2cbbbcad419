"""Small hand-placed scenes, mostly useful for checking the force law."""

import numpy as np

from nbody_sim.errors import ConfigurationError
from nbody_sim.physics.body import Body, BODY_DTYPE, make_body_array
from nbody_sim.presets.base import Preset


class ThreeMasses(Preset):
    """Two heavy bodies passing close to each other and a very heavy distant one."""

    BODIES = (
        Body(x=500.0, y=50.0, vx=3.0, mass=100000.0),
        Body(x=480.0, y=80.0, vx=4.0, mass=1000.0),
        Body(x=500.0, y=1800.0, mass=100000000.0),
    )
    fixed_size = len(BODIES)

    def __init__(self, n_bodies: int = 3, seed: int = 42):
        if n_bodies != self.fixed_size:
            raise ConfigurationError(f"three_masses has exactly 3 bodies, got n_bodies={n_bodies}")
        super().__init__(n_bodies, seed)

    @property
    def name(self) -> str:
        return "three_masses"

    def generate(self) -> np.ndarray:
        return make_body_array(self.BODIES)


class BodyGrid(Preset):
    """Unit masses laid out row by row on a regular grid, all drifting along x."""

    def __init__(
        self,
        n_bodies: int = 10000,
        seed: int = 42,
        origin_x: float = 320.0,
        origin_y: float = 20.0,
        spacing: float = 5.0,
        columns: int = 20,
        vx: float = 1.0,
        vy: float = 0.0,
    ):
        super().__init__(n_bodies, seed)
        if columns < 1:
            raise ConfigurationError(f"columns must be >= 1, got {columns}")
        self.origin_x = origin_x
        self.origin_y = origin_y
        self.spacing = spacing
        self.columns = columns
        self.vx = vx
        self.vy = vy

    @property
    def name(self) -> str:
        return "grid"

    def generate(self) -> np.ndarray:
        i = np.arange(self.n_bodies)
        bodies = np.zeros(self.n_bodies, dtype=BODY_DTYPE)
        bodies["x"] = self.origin_x + self.spacing * (i % self.columns)
        bodies["y"] = self.origin_y + self.spacing * (i // self.columns)
        bodies["vx"] = self.vx
        bodies["vy"] = self.vy
        bodies["mass"] = 1.0
        return bodies
