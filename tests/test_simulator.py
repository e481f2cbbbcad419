"""Tests for the simulation loop."""

import time

import numpy as np
import pytest
import nbody_sim.io.snapshot_writer as snapshot_writer
from nbody_sim.errors import SnapshotError, StepError
from nbody_sim.io.snapshot_format import list_snapshots, read_snapshot
from nbody_sim.io.snapshot_writer import SnapshotWriter
from nbody_sim.physics.body import Body
from nbody_sim.physics.simulator import Simulator
from nbody_sim.presets import generate_rotating_disc
from nbody_sim.utils.config import Config


def _disc(n=100, seed=42):
    return generate_rotating_disc(5.0, 400.0, 1500.0, 0.0, 0.0, 0.015 * np.pi, n, seed)


def test_simulator_basic():
    """Basic simulator operation."""
    sim = Simulator(_disc(50), n_workers=4)
    for _ in range(3):
        sim.step()

    assert sim.step_count == 3
    assert sim.time == pytest.approx(0.6)
    assert sim.store.swaps == 3
    sim.close()


def test_snapshot_completeness(tmp_path):
    """A run of k steps leaves exactly k contiguous snapshots of N records."""
    writer = SnapshotWriter(tmp_path, fmt="bin")
    sim = Simulator(_disc(64), n_workers=4, writer=writer)
    sim.run(6)

    snapshots = list_snapshots(tmp_path)
    assert [step for step, _ in snapshots] == list(range(6))
    for _, path in snapshots:
        assert len(read_snapshot(path)) == 64


def test_snapshots_capture_start_of_step(tmp_path):
    """Snapshot k holds the state before step k was computed."""
    bodies = _disc(40)
    reference = Simulator(bodies, n_workers=2)
    states = [reference.state]
    for _ in range(3):
        reference.step()
        states.append(reference.state)
    reference.close()

    sim = Simulator(bodies, n_workers=3, writer=SnapshotWriter(tmp_path, fmt="json"))
    final = sim.run(3)

    for step, path in list_snapshots(tmp_path):
        assert np.array_equal(read_snapshot(path), states[step])
    assert np.array_equal(final, states[3])


def test_determinism_across_worker_counts():
    """Same scene and steps give identical results for any worker count."""
    results = []
    for n_workers in (1, 4, 4, 9):
        sim = Simulator(_disc(120, seed=7), G=0.001, n_workers=n_workers)
        results.append(sim.run(5))

    for other in results[1:]:
        assert np.array_equal(results[0], other)


def test_mass_invariance():
    """The kernel never changes mass."""
    bodies = [Body(x=0.0, y=0.0, mass=50.0), Body(x=3.0, y=1.0, mass=2.5), Body(x=-2.0, y=4.0, mass=0.1)]
    sim = Simulator(bodies, G=1.0, min_dist=0.01, dt=0.05, n_workers=2)
    final = sim.run(25)

    assert final["mass"].tolist() == [50.0, 2.5, 0.1]


def test_stable_disc_stays_bounded():
    """A rotating disc with the default parameters does not blow up."""
    sim = Simulator(_disc(200), n_workers=4)
    final = sim.run(20)

    r = np.hypot(final["x"] - 400.0, final["y"] - 1500.0)
    assert np.all(np.isfinite(r))
    assert r.max() < 2 * 5.0


def test_step_after_close():
    """A closed simulator refuses to step."""
    sim = Simulator(_disc(10), n_workers=2)
    sim.close()
    with pytest.raises(StepError):
        sim.step()


def test_snapshot_failure_aborts_run(tmp_path, monkeypatch):
    """A snapshot write error stops the run."""
    def broken_write(path, bodies, fmt):
        raise OSError("No space left on device")

    monkeypatch.setattr(snapshot_writer, "write_snapshot_file", broken_write)
    sim = Simulator(_disc(20), n_workers=2, writer=SnapshotWriter(tmp_path))

    with pytest.raises(SnapshotError):
        sim.run(5)


def test_on_step_callback():
    """The callback fires once per step."""
    seen = []
    sim = Simulator(_disc(10), n_workers=2)
    sim.on_step_callback = lambda s: seen.append(s.step_count)
    sim.run(3)

    assert seen == [1, 2, 3]


def test_from_config(tmp_path):
    """Simulator.from_config wires preset, writer and pool together."""
    config = Config(n_bodies=30, n_workers=3, sim_steps=4, output_dir=str(tmp_path))
    sim = Simulator.from_config(config)
    sim.run(config.sim_steps)

    assert sim.n_bodies == 30
    assert len(list_snapshots(config.steps_dir)) == 4


def test_rerun_into_same_directory(tmp_path):
    """A shorter second run leaves only its own snapshots."""
    Simulator(_disc(20), n_workers=2, writer=SnapshotWriter(tmp_path)).run(5)
    Simulator(_disc(20), n_workers=2, writer=SnapshotWriter(tmp_path)).run(2)

    assert [step for step, _ in list_snapshots(tmp_path)] == [0, 1]
    assert len(list(tmp_path.glob("*.bin"))) == 2


def test_rerun_in_another_format(tmp_path):
    """Switching from json to bin does not list a step twice."""
    Simulator(_disc(20), n_workers=2, writer=SnapshotWriter(tmp_path, fmt="json")).run(2)
    Simulator(_disc(20), n_workers=2, writer=SnapshotWriter(tmp_path, fmt="bin")).run(2)

    snapshots = list_snapshots(tmp_path)
    assert [step for step, _ in snapshots] == [0, 1]
    assert all(path.suffix == ".bin" for _, path in snapshots)


def test_slow_writes_do_not_block_steps(tmp_path, monkeypatch):
    """Steps keep going while snapshots are still being written."""
    original = snapshot_writer.write_snapshot_file

    def slow_write(path, bodies, fmt):
        time.sleep(0.3)
        original(path, bodies, fmt)

    monkeypatch.setattr(snapshot_writer, "write_snapshot_file", slow_write)
    writer = SnapshotWriter(tmp_path, max_pending=0)
    sim = Simulator(_disc(20), n_workers=2, writer=writer)

    start = time.perf_counter()
    for _ in range(3):
        sim.step()
    elapsed = time.perf_counter() - start

    assert writer.pending > 0
    assert elapsed < 3 * 0.3
    sim.close()
    assert writer.pending == 0
    assert writer.written == 3
    assert [step for step, _ in list_snapshots(tmp_path)] == [0, 1, 2]
