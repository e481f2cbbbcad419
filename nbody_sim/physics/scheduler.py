"""Parallel step scheduling over a fixed worker pool.

Body indices [0, N) are handed out on demand from a shared ``IndexSupply``.
Each worker keeps claiming the next unclaimed index and runs the kernel on it
until the supply is exhausted. ``run_step`` returns only after every worker
has finished its last body.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Callable, Optional

import numpy as np

from nbody_sim.errors import ConfigurationError, StepError
from nbody_sim.physics.kernel import GravityKernel

logger = logging.getLogger(__name__)

Kernel = Callable[[np.ndarray, np.ndarray, int], None]


class IndexSupply:
    """Thread-safe, exhaustible supply of the indices 0..n-1.

    Each index is issued at most once. ``exhaust()`` stops further claims, which
    is how a failing worker makes the others stand down.
    """

    def __init__(self, n: int):
        self.n = n
        self._next = 0
        self._lock = threading.Lock()
        self._aborted = False

    def claim(self) -> Optional[int]:
        """Return the next unclaimed index, or None once the supply is exhausted."""
        with self._lock:
            if self._aborted or self._next >= self.n:
                return None
            i = self._next
            self._next += 1
            return i

    def exhaust(self):
        with self._lock:
            self._aborted = True

    @property
    def aborted(self) -> bool:
        return self._aborted


class StepScheduler:
    """Drives one synchronized step of the kernel across all bodies.

    The thread pool is created once and reused for every step. NumPy releases
    the GIL inside the per-body reductions, so threads overlap for large N.
    """

    def __init__(self, kernel: Optional[Kernel] = None, n_workers: int = 16):
        """Initialize scheduler.

        Args:
            kernel: Callable ``kernel(current, next_, i)`` (default: ``GravityKernel()``)
            n_workers: Size of the worker pool
        """
        if n_workers < 1:
            raise ConfigurationError(f"n_workers must be >= 1, got {n_workers}")
        self.kernel = kernel if kernel is not None else GravityKernel()
        self.n_workers = n_workers
        self.step_count = 0
        self._executor = ThreadPoolExecutor(
            max_workers=n_workers, thread_name_prefix="nbody-worker"
        )
        self._closed = False
        logger.debug("Started worker pool with %d workers", n_workers)

    def _drain(self, supply: IndexSupply, current: np.ndarray, next_: np.ndarray) -> int:
        done = 0
        try:
            while True:
                i = supply.claim()
                if i is None:
                    return done
                self.kernel(current, next_, i)
                done += 1
        except BaseException:
            supply.exhaust()
            raise

    def run_step(self, current: np.ndarray, next_: np.ndarray) -> int:
        """Advance every body of ``current`` by one step, writing into ``next_``.

        Blocks until all workers have finished.

        Returns:
            Number of bodies processed (always ``len(current)``)

        Raises:
            StepError: If any worker failed or not every body was processed
        """
        if self._closed:
            raise StepError("Scheduler is closed", step=self.step_count)
        if len(next_) != len(current):
            raise StepError(
                f"Buffer size mismatch: current has {len(current)} bodies, next has {len(next_)}",
                step=self.step_count,
            )

        supply = IndexSupply(len(current))
        futures = [
            self._executor.submit(self._drain, supply, current, next_)
            for _ in range(self.n_workers)
        ]
        # Barrier: every worker must have returned, not just the supply be empty.
        wait(futures)

        processed = 0
        for future in futures:
            error = future.exception()
            if error is not None:
                raise StepError(
                    f"Worker failed during step {self.step_count}: {error!r}",
                    step=self.step_count,
                ) from error
            processed += future.result()

        if processed != len(current):
            raise StepError(
                f"Step {self.step_count} processed {processed} of {len(current)} bodies",
                step=self.step_count,
            )
        self.step_count += 1
        return processed

    def close(self):
        """Shut down the worker pool."""
        if not self._closed:
            self._closed = True
            self._executor.shutdown(wait=True)
            logger.debug("Worker pool shut down after %d steps", self.step_count)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


def run_step(
    current: np.ndarray,
    next_: np.ndarray,
    n_workers: int,
    kernel: Optional[Kernel] = None,
) -> int:
    """Run a single step with a temporary pool of ``n_workers`` workers.

    Use ``StepScheduler`` directly to keep the pool alive across steps.
    """
    with StepScheduler(kernel, n_workers) as scheduler:
        return scheduler.run_step(current, next_)
