"""CLI main entry point."""

import argparse
import logging
import sys
import time

from nbody_sim.errors import NBodySimError
from nbody_sim.physics.simulator import Simulator
from nbody_sim.presets import PRESETS
from nbody_sim.render.frames import render_all
from nbody_sim.utils.config import Config, load_config, save_config, validate_config


def build_config(args) -> Config:
    """Merge a config file (if any) with command-line overrides."""
    config = load_config(args.config) if args.config else Config()
    overrides = {
        'preset': args.preset,
        'n_bodies': args.bodies,
        'sim_steps': args.steps,
        'dt': args.dt,
        'n_workers': args.workers,
        'seed': args.seed,
        'output_dir': args.output,
        'snapshot_format': args.format,
    }
    for key, value in overrides.items():
        if value is not None:
            setattr(config, key, value)
    fixed_size = getattr(PRESETS.get(config.preset.lower()), "fixed_size", None)
    if args.bodies is None and fixed_size is not None:
        config.n_bodies = fixed_size
    return validate_config(config)


def run_simulation(args):
    """Run a simulation."""
    config = build_config(args)
    if args.save_config:
        save_config(config, args.save_config)

    print(f"Running simulation: {config.preset} with {config.n_bodies} bodies")
    print(f"Workers: {config.n_workers}, steps: {config.sim_steps}, dt: {config.dt}, "
          f"G: {config.G}, min_dist: {config.min_dist}")

    sim = Simulator.from_config(config)
    start = time.perf_counter()
    sim.run(config.sim_steps)
    elapsed = time.perf_counter() - start
    print(f"Simulated {sim.step_count} steps in {elapsed:.2f}s, "
          f"snapshots in {config.steps_dir}")

    if args.render:
        render_frames(config, args.workers)
    print("Simulation complete!")


def render_frames(config: Config, n_workers=None):
    """Render all snapshots of a run."""
    images = render_all(
        config.steps_dir,
        config.images_dir,
        config.render_bounds,
        width=config.image_width,
        height=config.image_height,
        n_workers=n_workers or config.n_workers,
        log_every=config.render_log_every,
    )
    print(f"Rendered {len(images)} frames to {config.images_dir}")


def main(argv=None):
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="N-body simulator - parallel gravity simulation")
    parser.add_argument('--log-level', type=str, default='INFO',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='Logging level')
    parser.add_argument('--list-presets', action='store_true',
                        help='List available presets and exit')
    subparsers = parser.add_subparsers(dest='command')

    run_parser = subparsers.add_parser('run', help='Run a simulation and write snapshots')
    run_parser.add_argument('--config', type=str, default=None,
                            help='Config file (.json or .yaml)')
    run_parser.add_argument('--save-config', type=str, default=None,
                            help='Write the effective config to this file')
    run_parser.add_argument('--preset', type=str, default=None,
                            choices=list(PRESETS.keys()),
                            help='Preset scenario')
    run_parser.add_argument('--bodies', type=int, default=None,
                            help='Number of bodies')
    run_parser.add_argument('--steps', type=int, default=None,
                            help='Number of simulation steps')
    run_parser.add_argument('--dt', type=float, default=None,
                            help='Duration of each step')
    run_parser.add_argument('--workers', type=int, default=None,
                            help='Number of parallel workers')
    run_parser.add_argument('--seed', type=int, default=None,
                            help='Random seed for the scene')
    run_parser.add_argument('--output', type=str, default=None,
                            help='Output directory')
    run_parser.add_argument('--format', type=str, default=None, choices=['bin', 'json'],
                            help='Snapshot encoding')
    run_parser.add_argument('--render', action='store_true',
                            help='Render frames after the simulation')

    render_parser = subparsers.add_parser('render', help='Render existing snapshots')
    render_parser.add_argument('--config', type=str, default=None,
                               help='Config file (.json or .yaml)')
    render_parser.add_argument('--output', type=str, default=None,
                               help='Output directory of the run')
    render_parser.add_argument('--workers', type=int, default=None,
                               help='Number of render threads')

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.list_presets:
        print("Available presets:")
        for name in PRESETS:
            print(f"  - {name}")
        return 0

    try:
        if args.command == 'run':
            run_simulation(args)
        elif args.command == 'render':
            config = load_config(args.config) if args.config else Config()
            if args.output is not None:
                config.output_dir = args.output
            render_frames(validate_config(config), args.workers)
        else:
            parser.print_help()
            return 1
    except NBodySimError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
