"""Background snapshot writer."""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import numpy as np

from nbody_sim.errors import SnapshotError
from nbody_sim.io.snapshot_format import (
    SNAPSHOT_FORMATS,
    build_manifest,
    clear_snapshots,
    snapshot_path,
    write_manifest,
    write_snapshot_file,
)

logger = logging.getLogger(__name__)


class SnapshotWriter:
    """Writes one snapshot file per step without blocking the simulation.

    ``write_snapshot`` copies the body array before returning, so the caller is
    free to recycle its buffer immediately. The copy is encoded and written on a
    background thread. At most ``max_pending`` snapshots are in flight; beyond
    that ``write_snapshot`` waits for a slot instead of dropping data
    (``max_pending=0`` disables the bound).

    A failed write is fatal: it is re-raised as ``SnapshotError`` from the next
    call to ``write_snapshot``, ``flush`` or ``close``. ``close`` drains every
    pending write before returning.
    """

    def __init__(
        self,
        output_dir: Union[str, Path],
        fmt: str = "bin",
        max_pending: int = 8,
        writer_threads: int = 1,
        metadata: Optional[Dict[str, Any]] = None,
    ):
        """Initialize snapshot writer.

        Args:
            output_dir: Directory for the step files (created if missing)
            fmt: Snapshot encoding, ``bin`` or ``json``
            max_pending: Bound on in-flight snapshots (0 = unbounded)
            writer_threads: Number of background writer threads
            metadata: Extra run parameters stored in the manifest
        """
        if fmt not in SNAPSHOT_FORMATS:
            raise ValueError(f"Unsupported snapshot format: {fmt}. Use one of {SNAPSHOT_FORMATS}")
        if max_pending < 0:
            raise ValueError(f"max_pending must be >= 0, got {max_pending}")
        self.output_dir = Path(output_dir)
        self.fmt = fmt
        self.max_pending = max_pending
        self.metadata = metadata or {}
        self.written = 0

        self._slots = threading.BoundedSemaphore(max_pending) if max_pending else None
        self._executor = ThreadPoolExecutor(
            max_workers=writer_threads, thread_name_prefix="nbody-snapshot"
        )
        self._pending: List[Future] = []
        self._lock = threading.Lock()
        self._error: Optional[SnapshotError] = None
        self._n_bodies: Optional[int] = None
        self._closed = False

        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            self._executor.shutdown(wait=False)
            raise SnapshotError(f"Cannot create snapshot directory {self.output_dir}: {e}") from e
        try:
            removed = clear_snapshots(self.output_dir)
        except OSError as e:
            self._executor.shutdown(wait=False)
            raise SnapshotError(f"Cannot clear old snapshots in {self.output_dir}: {e}") from e
        if removed:
            logger.info("Removed %d snapshots of a previous run from %s", removed, self.output_dir)

    def write_snapshot(self, step: int, bodies: np.ndarray) -> Future:
        """Queue the snapshot of ``bodies`` for ``step``.

        Returns:
            Future that resolves to the written path
        """
        self.raise_for_errors()
        if self._closed:
            raise SnapshotError("Snapshot writer is closed", step=step)

        # Pin the data before the caller reuses the buffer.
        pinned = np.array(bodies, copy=True)
        if self._n_bodies is None:
            self._n_bodies = len(pinned)
            self._write_manifest(len(pinned))

        if self._slots is not None:
            self._slots.acquire()
        try:
            future = self._executor.submit(self._write, step, pinned)
        except BaseException:
            if self._slots is not None:
                self._slots.release()
            raise
        with self._lock:
            self._pending.append(future)
        future.add_done_callback(self._on_done)
        return future

    def _write_manifest(self, n_bodies: int, n_steps: Optional[int] = None):
        try:
            write_manifest(
                self.output_dir, build_manifest(self.fmt, n_bodies, self.metadata, n_steps)
            )
        except OSError as e:
            raise SnapshotError(f"Cannot write manifest in {self.output_dir}: {e}") from e

    def _write(self, step: int, bodies: np.ndarray) -> Path:
        path = snapshot_path(self.output_dir, step, self.fmt)
        try:
            write_snapshot_file(path, bodies, self.fmt)
        except (OSError, ValueError) as e:
            raise SnapshotError(f"Failed to write snapshot {path}: {e}", step=step) from e
        logger.debug("Wrote snapshot %s", path)
        return path

    def _settle(self, future: Future):
        # Caller holds self._lock.
        if future in self._pending:
            self._pending.remove(future)
        error = future.exception()
        if error is not None and self._error is None:
            if isinstance(error, SnapshotError):
                self._error = error
            else:
                self._error = SnapshotError(f"Snapshot writer failed: {error!r}")
                self._error.__cause__ = error

    def _on_done(self, future: Future):
        with self._lock:
            self._settle(future)
            if future.exception() is None:
                self.written += 1
        if self._slots is not None:
            self._slots.release()

    @property
    def pending(self) -> int:
        with self._lock:
            return len(self._pending)

    def raise_for_errors(self):
        """Re-raise the first failed write, if any."""
        if self._error is not None:
            raise self._error

    def flush(self):
        """Block until every queued snapshot has been written."""
        while True:
            with self._lock:
                pending = list(self._pending)
            if not pending:
                break
            wait(pending)
            with self._lock:
                for future in pending:
                    self._settle(future)
        self.raise_for_errors()

    def close(self):
        """Drain pending writes and stop the writer threads."""
        if self._closed:
            self.raise_for_errors()
            return
        self._closed = True
        self._executor.shutdown(wait=True)
        logger.info("Snapshot writer drained: %d snapshots in %s", self.written, self.output_dir)
        self.raise_for_errors()
        if self._n_bodies is not None:
            # Seal the run: readers list only steps 0..written-1.
            self._write_manifest(self._n_bodies, n_steps=self.written)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        if exc_type is None:
            self.close()
        else:
            # Original exception takes precedence.
            self._closed = True
            self._executor.shutdown(wait=True)
