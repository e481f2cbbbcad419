"""Base class for preset scenarios."""

from abc import ABC, abstractmethod
from typing import Optional

import numpy as np


class Preset(ABC):
    """Abstract base class for preset scenarios."""

    # Scenes with a hand-placed body list only accept this many bodies.
    fixed_size: Optional[int] = None

    def __init__(self, n_bodies: int = 10000, seed: int = 42):
        """Initialize preset.

        Args:
            n_bodies: Number of bodies
            seed: Random seed for reproducibility
        """
        self.n_bodies = n_bodies
        self.seed = seed

    @abstractmethod
    def generate(self) -> np.ndarray:
        """Generate initial conditions.

        Returns:
            ``BODY_DTYPE`` array of length ``n_bodies``
        """
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the name of this preset."""
        pass
