"""Uniform rotating disc scenes."""

import logging
import math

import numpy as np

from nbody_sim.errors import ConfigurationError
from nbody_sim.physics.body import BODY_DTYPE
from nbody_sim.presets.base import Preset

logger = logging.getLogger(__name__)


def generate_rotating_disc(
    radius: float,
    center_x: float,
    center_y: float,
    translate_vx: float,
    translate_vy: float,
    angular_velocity: float,
    count: int,
    seed: int = 42,
) -> np.ndarray:
    """Sample ``count`` unit-mass bodies uniformly over a rotating disc.

    For each body two uniforms are drawn in order, U1 then U2:
    ``r = sqrt(U1) * radius`` and ``theta = U2 * 2*pi``. The body moves
    tangentially with speed ``angular_velocity * r`` plus the disc translation.

    Args:
        radius: Disc radius
        center_x: Disc center x
        center_y: Disc center y
        translate_vx: Translation velocity x
        translate_vy: Translation velocity y
        angular_velocity: Angular velocity of the disc (rad per time unit)
        count: Number of bodies
        seed: Seed of the PCG64 generator

    Returns:
        ``BODY_DTYPE`` array of length ``count``
    """
    if count < 0:
        raise ConfigurationError(f"count must be >= 0, got {count}")
    logger.info("Generating rotating disc scene with %d bodies", count)
    rng = np.random.default_rng(seed)
    # Row-major draw keeps the per-body U1, U2 order.
    u = rng.random((count, 2))
    r = np.sqrt(u[:, 0]) * radius
    theta = u[:, 1] * 2 * math.pi

    v = angular_velocity * r
    bodies = np.zeros(count, dtype=BODY_DTYPE)
    bodies["x"] = center_x + r * np.cos(theta)
    bodies["y"] = center_y + r * np.sin(theta)
    bodies["vx"] = translate_vx - v * np.sin(theta)
    bodies["vy"] = translate_vy + v * np.cos(theta)
    bodies["mass"] = 1.0
    return bodies


class RotatingDisc(Preset):
    """Single disc of unit masses rotating as a rigid body."""

    def __init__(
        self,
        n_bodies: int = 10000,
        seed: int = 42,
        radius: float = 5.0,
        center_x: float = 400.0,
        center_y: float = 1500.0,
        translate_vx: float = 0.0,
        translate_vy: float = 0.0,
        angular_velocity: float = 0.015 * math.pi,
    ):
        super().__init__(n_bodies, seed)
        self.radius = radius
        self.center_x = center_x
        self.center_y = center_y
        self.translate_vx = translate_vx
        self.translate_vy = translate_vy
        self.angular_velocity = angular_velocity

    @property
    def name(self) -> str:
        return "rotating_disc"

    def generate(self) -> np.ndarray:
        return generate_rotating_disc(
            self.radius,
            self.center_x,
            self.center_y,
            self.translate_vx,
            self.translate_vy,
            self.angular_velocity,
            self.n_bodies,
            self.seed,
        )


class DoubleRotatingDisc(Preset):
    """Two discs with half the bodies each; the second one drifts into the first.

    Both discs are sampled with the same seed, so they share their layout.
    """

    def __init__(
        self,
        n_bodies: int = 10000,
        seed: int = 42,
        radius: float = 5.0,
        first_center=(400.0, 1500.0),
        second_center=(370.0, 1500.0),
        second_velocity=(0.6, 0.0),
        angular_velocity: float = 0.01 * math.pi,
    ):
        super().__init__(n_bodies, seed)
        if n_bodies % 2 != 0:
            raise ConfigurationError(f"double_disc needs an even number of bodies, got {n_bodies}")
        self.radius = radius
        self.first_center = tuple(first_center)
        self.second_center = tuple(second_center)
        self.second_velocity = tuple(second_velocity)
        self.angular_velocity = angular_velocity

    @property
    def name(self) -> str:
        return "double_disc"

    def generate(self) -> np.ndarray:
        half = self.n_bodies // 2
        first = generate_rotating_disc(
            self.radius, *self.first_center, 0.0, 0.0, self.angular_velocity, half, self.seed
        )
        second = generate_rotating_disc(
            self.radius, *self.second_center, *self.second_velocity,
            self.angular_velocity, half, self.seed
        )
        return np.concatenate([first, second])
