"""Physics engine for N-body simulations."""

from nbody_sim.physics.body import Body, BodyStore, BODY_DTYPE
from nbody_sim.physics.kernel import GravityKernel
from nbody_sim.physics.scheduler import StepScheduler, run_step
from nbody_sim.physics.simulator import Simulator

__all__ = ["Body", "BodyStore", "BODY_DTYPE", "GravityKernel", "StepScheduler", "run_step", "Simulator"]
