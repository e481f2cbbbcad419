"""Per-body gravity and integration kernel.

For body i the net force is summed over every other body j:

    F_i = sum_j -G * m_i * m_j / max(|dx|^3 + |dy|^3, min_dist) * (p_i - p_j)

The denominator is deliberately ``|dx|^3 + |dy|^3`` rather than the Euclidean
distance cubed. The state is then advanced with semi-implicit Euler: velocity
first, then position from the updated velocity.
"""

import numpy as np


class GravityKernel:
    """Advance one body by one fixed time step.

    The kernel only reads ``current`` and only writes ``next_[i]``, so any number
    of workers can run it concurrently on distinct indices.
    """

    def __init__(self, G: float = 0.000013, min_dist: float = 0.01, dt: float = 0.2):
        """Initialize kernel.

        Args:
            G: Gravitational constant
            min_dist: Floor applied to the pairwise denominator
            dt: Step duration
        """
        self.G = float(G)
        self.min_dist = float(min_dist)
        self.dt = float(dt)

    def compute_force(self, current: np.ndarray, i: int):
        """Net force on body ``i`` from all bodies in ``current``.

        Returns:
            Tuple (fx, fy)
        """
        x = current["x"]
        y = current["y"]
        mass = current["mass"]
        dx = x[i] - x
        dy = y[i] - y
        with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
            den = np.maximum(np.abs(dx) ** 3 + np.abs(dy) ** 3, self.min_dist)
            coef = (-self.G * mass[i]) * mass / den
            # Self term is dropped; with min_dist == 0 it would be 0/0.
            coef[i] = 0.0
            fx = np.sum(coef * dx)
            fy = np.sum(coef * dy)
        return float(fx), float(fy)

    def advance(self, current: np.ndarray, next_: np.ndarray, i: int):
        """Write the state of body ``i`` after one step into ``next_[i]``."""
        fx, fy = self.compute_force(current, i)
        b = current[i]
        m = float(b["mass"])
        ax = fx / m
        ay = fy / m
        vx = float(b["vx"]) + ax * self.dt
        vy = float(b["vy"]) + ay * self.dt
        x = float(b["x"]) + vx * self.dt
        y = float(b["y"]) + vy * self.dt
        next_[i] = (x, y, vx, vy, ax, ay, m)

    def __call__(self, current: np.ndarray, next_: np.ndarray, i: int):
        self.advance(current, next_, i)
