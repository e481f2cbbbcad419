"""Main simulator controller."""

import logging
from typing import Callable, Optional, Sequence, Union

import numpy as np

from nbody_sim.errors import StepError
from nbody_sim.io.snapshot_writer import SnapshotWriter
from nbody_sim.physics.body import Body, BodyStore
from nbody_sim.physics.kernel import GravityKernel
from nbody_sim.physics.scheduler import StepScheduler

logger = logging.getLogger(__name__)


class Simulator:
    """Main simulation controller.

    Each step pins a snapshot of ``current`` for the writer, runs the kernel on
    every body through the worker pool, then swaps the buffers.
    """

    def __init__(
        self,
        bodies: Union[np.ndarray, Sequence[Body]],
        G: float = 0.000013,
        min_dist: float = 0.01,
        dt: float = 0.2,
        n_workers: int = 16,
        writer: Optional[SnapshotWriter] = None,
        log_every: int = 1,
    ):
        """Initialize simulator.

        Args:
            bodies: Initial bodies
            G: Gravitational constant
            min_dist: Floor of the pairwise force denominator
            dt: Step duration
            n_workers: Size of the worker pool
            writer: Optional snapshot writer, fed once per step
            log_every: Log progress every N steps
        """
        self.store = BodyStore(bodies)
        self.kernel = GravityKernel(G=G, min_dist=min_dist, dt=dt)
        self.scheduler = StepScheduler(self.kernel, n_workers)
        self.writer = writer
        self.log_every = log_every
        self.dt = dt

        self.time = 0.0
        self.step_count = 0
        self.on_step_callback: Optional[Callable] = None
        self._closed = False

    @classmethod
    def from_config(cls, config) -> "Simulator":
        """Build a simulator, its scene and its snapshot writer from a ``Config``."""
        from nbody_sim.presets import get_preset
        from nbody_sim.utils.config import validate_config

        validate_config(config)
        preset = get_preset(config.preset, config.n_bodies, config.seed, **config.preset_params)
        bodies = preset.generate()
        writer = SnapshotWriter(
            config.steps_dir,
            fmt=config.snapshot_format,
            max_pending=config.max_pending_snapshots,
            metadata={
                "preset": preset.name,
                "seed": config.seed,
                "dt": config.dt,
                "G": config.G,
                "min_dist": config.min_dist,
                "sim_steps": config.sim_steps,
            },
        )
        try:
            return cls(
                bodies,
                G=config.G,
                min_dist=config.min_dist,
                dt=config.dt,
                n_workers=config.n_workers,
                writer=writer,
                log_every=config.log_every,
            )
        except BaseException:
            writer.close()
            raise

    @property
    def n_bodies(self) -> int:
        return len(self.store)

    @property
    def state(self) -> np.ndarray:
        """Copy of the current body array."""
        return self.store.snapshot()

    def step(self):
        """Advance all bodies by one time step."""
        if self._closed:
            raise StepError("Simulator is closed", step=self.step_count)
        if self.step_count % self.log_every == 0:
            logger.info("Simulating step %d", self.step_count)

        if self.writer is not None:
            self.writer.write_snapshot(self.step_count, self.store.current)

        try:
            self.scheduler.run_step(self.store.current, self.store.next)
        except StepError as e:
            e.step = self.step_count
            raise
        self.store.swap()

        self.step_count += 1
        self.time += self.dt
        if self.on_step_callback:
            self.on_step_callback(self)

    def run(self, n_steps: int) -> np.ndarray:
        """Run ``n_steps`` steps, then close the simulator (draining pending snapshots).

        Returns:
            Copy of the final body array
        """
        logger.info("Simulating %d steps with %d bodies", n_steps, self.n_bodies)
        with self:
            for _ in range(n_steps):
                self.step()
        logger.info("Simulation finished")
        return self.state

    def close(self):
        """Stop the worker pool and wait for all snapshot writes."""
        if self._closed:
            return
        self._closed = True
        self.scheduler.close()
        if self.writer is not None:
            self.writer.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        if exc_type is None:
            self.close()
        else:
            self._closed = True
            self.scheduler.close()
            if self.writer is not None:
                self.writer.__exit__(exc_type, exc, tb)
