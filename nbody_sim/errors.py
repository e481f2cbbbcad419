"""Exception types raised by the simulation engine.

Every fault is either prevented up front (configuration checks, the distance
floor in the force law) or fatal. Nothing here is meant to be retried.
"""

from typing import Optional


class NBodySimError(Exception):
    """Base class for all engine errors."""


class ConfigurationError(NBodySimError, ValueError):
    """Invalid run parameters, detected before any simulation work starts."""


class SnapshotError(NBodySimError, OSError):
    """A snapshot could not be encoded or written to disk."""

    def __init__(self, message: str, step: Optional[int] = None):
        super().__init__(message)
        self.step = step


class StepError(NBodySimError, RuntimeError):
    """A simulation step did not complete for every body."""

    def __init__(self, message: str, step: Optional[int] = None):
        super().__init__(message)
        self.step = step
