"""I/O utilities for snapshot files."""

from nbody_sim.io.snapshot_format import (
    read_snapshot,
    list_snapshots,
    read_manifest,
    snapshot_path
)
from nbody_sim.io.snapshot_writer import SnapshotWriter

__all__ = ["SnapshotWriter", "read_snapshot", "list_snapshots", "read_manifest", "snapshot_path"]
