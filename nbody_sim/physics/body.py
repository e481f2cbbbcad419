"""Body records and the double-buffered body store."""

from dataclasses import dataclass
from typing import Iterable, Sequence, Union

import numpy as np

from nbody_sim.errors import ConfigurationError

# Field order is also the on-disk record order of a snapshot.
BODY_FIELDS = ("x", "y", "vx", "vy", "ax", "ay", "mass")

# Explicit little-endian float64 so that binary snapshots decode the same everywhere.
BODY_DTYPE = np.dtype([(name, "<f8") for name in BODY_FIELDS])


@dataclass(frozen=True)
class Body:
    """A single point mass.

    Only used to build scenes by hand; the engine works on ``BODY_DTYPE`` arrays.
    """
    x: float
    y: float
    vx: float = 0.0
    vy: float = 0.0
    mass: float = 1.0
    ax: float = 0.0
    ay: float = 0.0

    def to_record(self) -> tuple:
        """Return the body as a tuple in ``BODY_FIELDS`` order."""
        return (self.x, self.y, self.vx, self.vy, self.ax, self.ay, self.mass)


def empty_bodies(n: int) -> np.ndarray:
    """Allocate a zeroed body array of length ``n``."""
    return np.zeros(n, dtype=BODY_DTYPE)


def make_body_array(bodies: Union[np.ndarray, Iterable[Body]]) -> np.ndarray:
    """Convert a sequence of ``Body`` (or a body array) into a fresh ``BODY_DTYPE`` array.

    Args:
        bodies: ``Body`` instances or an existing structured array

    Returns:
        New array owned by the caller
    """
    if isinstance(bodies, np.ndarray):
        if bodies.dtype.names != BODY_FIELDS:
            raise ConfigurationError(
                f"Body array must have fields {BODY_FIELDS}, got {bodies.dtype.names}"
            )
        return np.array(bodies, dtype=BODY_DTYPE, copy=True)
    return np.array([b.to_record() for b in bodies], dtype=BODY_DTYPE)


def validate_bodies(bodies: np.ndarray):
    """Check that a body array can be simulated.

    Raises:
        ConfigurationError: If the array is empty or any mass is not strictly positive
    """
    if len(bodies) == 0:
        raise ConfigurationError("At least one body is required")
    masses = bodies["mass"]
    if not np.all(np.isfinite(masses)) or np.any(masses <= 0):
        bad = int(np.flatnonzero(~(masses > 0) | ~np.isfinite(masses))[0])
        raise ConfigurationError(f"Body {bad} has non-positive mass {masses[bad]!r}")


class BodyStore:
    """Two fixed-size body arrays, ``current`` and ``next``.

    During a step ``current`` is only read and each slot of ``next`` is written by
    exactly one worker. ``swap()`` exchanges the references once the step is done,
    so the old ``current`` is recycled as the next write buffer.
    """

    def __init__(self, bodies: Union[np.ndarray, Sequence[Body]]):
        self._current = make_body_array(bodies)
        validate_bodies(self._current)
        self._next = empty_bodies(len(self._current))
        self.swaps = 0

    def __len__(self) -> int:
        return len(self._current)

    @property
    def current(self) -> np.ndarray:
        return self._current

    @property
    def next(self) -> np.ndarray:
        return self._next

    def swap(self):
        """Promote ``next`` to ``current`` and recycle the old ``current``."""
        self._current, self._next = self._next, self._current
        self.swaps += 1

    def snapshot(self) -> np.ndarray:
        """Return a private copy of ``current``."""
        return self._current.copy()
