"""Snapshot file encoding.

A snapshot is the ordered array of body records at the start of a step, one
record per body in index order (the index itself is not stored). Each record
holds seven float64 values in ``BODY_FIELDS`` order:

    x, y, vx, vy, ax, ay, mass

Two encodings are supported:

- ``bin``: packed little-endian float64, 56 bytes per record, no header.
- ``json``: a list of objects keyed by field name.

Files are named ``{step:09d}.{format}``. A ``manifest.json`` next to them
records the encoding so that a renderer can decode the sequence.
"""

import json
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import numpy as np

from nbody_sim.errors import SnapshotError
from nbody_sim.physics.body import BODY_DTYPE, BODY_FIELDS

SNAPSHOT_FORMATS = ("bin", "json")
MANIFEST_NAME = "manifest.json"
FILENAME_PATTERN = "{step:09d}.{ext}"

_STEP_RE = re.compile(r"^(\d{9})\.(bin|json)$")


def snapshot_path(directory: Union[str, Path], step: int, fmt: str = "bin") -> Path:
    """Path of the snapshot for ``step`` inside ``directory``."""
    if fmt not in SNAPSHOT_FORMATS:
        raise ValueError(f"Unsupported snapshot format: {fmt}. Use one of {SNAPSHOT_FORMATS}")
    return Path(directory) / FILENAME_PATTERN.format(step=step, ext=fmt)


def encode_snapshot(bodies: np.ndarray, fmt: str = "bin") -> bytes:
    """Serialize a body array.

    Args:
        bodies: ``BODY_DTYPE`` array
        fmt: ``bin`` or ``json``

    Returns:
        Encoded bytes
    """
    records = np.ascontiguousarray(bodies, dtype=BODY_DTYPE)
    if fmt == "bin":
        return records.tobytes()
    elif fmt == "json":
        rows = [dict(zip(BODY_FIELDS, (float(v) for v in row))) for row in records.tolist()]
        return json.dumps(rows).encode("utf-8")
    else:
        raise ValueError(f"Unsupported snapshot format: {fmt}. Use one of {SNAPSHOT_FORMATS}")


def decode_snapshot(data: bytes, fmt: str = "bin") -> np.ndarray:
    """Inverse of ``encode_snapshot``."""
    if fmt == "bin":
        if len(data) % BODY_DTYPE.itemsize != 0:
            raise SnapshotError(
                f"Binary snapshot size {len(data)} is not a multiple of {BODY_DTYPE.itemsize}"
            )
        return np.frombuffer(data, dtype=BODY_DTYPE).copy()
    elif fmt == "json":
        rows = json.loads(data.decode("utf-8"))
        try:
            return np.array(
                [tuple(row[name] for name in BODY_FIELDS) for row in rows],
                dtype=BODY_DTYPE,
            )
        except (KeyError, TypeError) as e:
            raise SnapshotError(f"Malformed JSON snapshot record: {e}") from e
    else:
        raise ValueError(f"Unsupported snapshot format: {fmt}. Use one of {SNAPSHOT_FORMATS}")


def write_snapshot_file(path: Union[str, Path], bodies: np.ndarray, fmt: str = "bin"):
    """Encode ``bodies`` and write them to ``path``."""
    data = encode_snapshot(bodies, fmt)
    with open(path, "wb") as f:
        f.write(data)


def read_snapshot(path: Union[str, Path]) -> np.ndarray:
    """Load a snapshot file; the encoding is taken from the file suffix."""
    path = Path(path)
    fmt = path.suffix.lstrip(".")
    if fmt not in SNAPSHOT_FORMATS:
        raise ValueError(f"Unsupported file format: {path.suffix}. Use .bin or .json")
    with open(path, "rb") as f:
        return decode_snapshot(f.read(), fmt)


def _step_files(directory: Union[str, Path]) -> List[Tuple[int, str, Path]]:
    found = []
    for path in Path(directory).iterdir():
        match = _STEP_RE.match(path.name)
        if match:
            found.append((int(match.group(1)), match.group(2), path))
    return sorted(found)


def list_snapshots(
    directory: Union[str, Path], fmt: Optional[str] = None
) -> List[Tuple[int, Path]]:
    """Return ``(step, path)`` pairs of the run stored in ``directory``, ordered by step.

    When ``directory`` holds a manifest, only files in its format are listed and,
    once the run has finished, only the steps it declares (``0..n_steps-1``).

    Args:
        directory: Snapshot directory
        fmt: Restrict to this encoding (default: the manifest's, or any)
    """
    manifest = {}
    if (Path(directory) / MANIFEST_NAME).exists():
        manifest = read_manifest(directory)
    if fmt is None:
        fmt = manifest.get("format")
    n_steps = manifest.get("n_steps")
    return [
        (step, path)
        for step, ext, path in _step_files(directory)
        if (fmt is None or ext == fmt) and (n_steps is None or step < n_steps)
    ]


def clear_snapshots(directory: Union[str, Path]) -> int:
    """Delete every step file and the manifest left in ``directory`` by an earlier run.

    Returns:
        Number of step files removed
    """
    removed = 0
    for _, _, path in _step_files(directory):
        path.unlink()
        removed += 1
    manifest = Path(directory) / MANIFEST_NAME
    if manifest.exists():
        manifest.unlink()
    return removed


def build_manifest(
    fmt: str,
    n_bodies: int,
    metadata: Dict[str, Any] = None,
    n_steps: Optional[int] = None,
) -> Dict[str, Any]:
    """Describe the snapshot encoding of a run.

    ``n_steps`` is only known once the run is complete; it stays None while
    snapshots are still being written.
    """
    return {
        "format": fmt,
        "fields": list(BODY_FIELDS),
        "dtype": "float64",
        "byte_order": "little",
        "record_size": BODY_DTYPE.itemsize,
        "n_bodies": n_bodies,
        "filename_pattern": FILENAME_PATTERN.replace("{ext}", fmt),
        "n_steps": n_steps,
        "metadata": metadata or {},
    }


def write_manifest(directory: Union[str, Path], manifest: Dict[str, Any]) -> Path:
    path = Path(directory) / MANIFEST_NAME
    with open(path, "w") as f:
        json.dump(manifest, f, indent=2)
    return path


def read_manifest(directory: Union[str, Path]) -> Dict[str, Any]:
    with open(Path(directory) / MANIFEST_NAME, "r") as f:
        return json.load(f)
