"""Basic example of using the N-body simulator."""

import logging

from nbody_sim import Simulator
from nbody_sim.io import SnapshotWriter
from nbody_sim.presets import RotatingDisc
from nbody_sim.render import render_all


def main():
    """Run a small rotating disc and render its frames."""
    logging.basicConfig(level=logging.INFO)

    # Generate initial conditions
    bodies = RotatingDisc(n_bodies=2000, seed=42).generate()

    # Snapshots go to output/steps, one file per step
    writer = SnapshotWriter("output/steps", fmt="bin")
    sim = Simulator(bodies, G=0.000013, min_dist=0.01, dt=0.2, n_workers=8, writer=writer)

    print("Running simulation...")
    sim.run(40)

    images = render_all("output/steps", "output/imgs", (380, 420, 1480, 1520))
    print(f"Rendered {len(images)} frames")
    print("Simulation complete!")


if __name__ == "__main__":
    main()
