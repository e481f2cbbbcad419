"""Density frames rendered from snapshot files.

Bodies are binned into pixels. Every body landing on a pixel adds 129
intensity units, which fill the blue channel first, then green, then red,
each saturating at 255. Dense regions therefore go blue, cyan, then white.
"""

import logging
import re
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import List, Sequence, Union

import matplotlib.pyplot as plt
import numpy as np

from nbody_sim.io.snapshot_format import list_snapshots, read_snapshot
from nbody_sim.utils.config import validate_bounds

logger = logging.getLogger(__name__)

HIT_INTENSITY = 129
IMAGE_PATTERN = "{step:09d}.png"

_IMAGE_RE = re.compile(r"^\d{9}\.png$")


def render_frame(
    bodies: np.ndarray,
    bounds: Sequence[float],
    width: int = 900,
    height: int = 900,
) -> np.ndarray:
    """Render one body array to an RGB image.

    Args:
        bodies: Array with ``x`` and ``y`` fields
        bounds: (x_start, x_end, y_start, y_end); bodies outside are skipped
        width: Image width in pixels
        height: Image height in pixels

    Returns:
        (height, width, 3) uint8 array, y axis pointing up
    """
    x_start, x_end, y_start, y_end = validate_bounds(bounds)
    x = np.asarray(bodies["x"], dtype=np.float64)
    y = np.asarray(bodies["y"], dtype=np.float64)

    inside = (x >= x_start) & (x < x_end) & (y >= y_start) & (y < y_end)
    cols = (width * (x[inside] - x_start) / (x_end - x_start)).astype(np.int64)
    rows = height - (height * (y[inside] - y_start) / (y_end - y_start)).astype(np.int64)
    # Bodies on the bottom edge map to row == height, which is off the image.
    visible = (rows >= 0) & (rows < height) & (cols >= 0) & (cols < width)

    hits = np.zeros((height, width), dtype=np.int64)
    np.add.at(hits, (rows[visible], cols[visible]), 1)

    level = hits * HIT_INTENSITY
    image = np.zeros((height, width, 3), dtype=np.uint8)
    image[..., 2] = np.clip(level, 0, 255)
    image[..., 1] = np.clip(level - 255, 0, 255)
    image[..., 0] = np.clip(level - 510, 0, 255)
    return image


def render_snapshot(
    snapshot_path: Union[str, Path],
    image_path: Union[str, Path],
    bounds: Sequence[float],
    width: int = 900,
    height: int = 900,
) -> Path:
    """Render a snapshot file to a PNG image."""
    image = render_frame(read_snapshot(snapshot_path), bounds, width, height)
    plt.imsave(image_path, image)
    return Path(image_path)


def render_all(
    steps_dir: Union[str, Path],
    images_dir: Union[str, Path],
    bounds: Sequence[float],
    width: int = 900,
    height: int = 900,
    n_workers: int = 16,
    log_every: int = 20,
) -> List[Path]:
    """Render every snapshot in ``steps_dir`` to ``images_dir``.

    Returns:
        Written image paths, ordered by step
    """
    validate_bounds(bounds)
    images_dir = Path(images_dir)
    images_dir.mkdir(parents=True, exist_ok=True)
    snapshots = list_snapshots(steps_dir)
    logger.info("Rendering %d snapshots from %s", len(snapshots), steps_dir)
    # Frames of steps that are not part of this run.
    current = {IMAGE_PATTERN.format(step=step) for step, _ in snapshots}
    for stale in images_dir.iterdir():
        if _IMAGE_RE.match(stale.name) and stale.name not in current:
            stale.unlink()

    def _render(item):
        step, path = item
        if step % log_every == 0:
            logger.info("Rendering step %d", step)
        out = images_dir / IMAGE_PATTERN.format(step=step)
        return render_snapshot(path, out, bounds, width, height)

    with ThreadPoolExecutor(max_workers=n_workers, thread_name_prefix="nbody-render") as pool:
        return list(pool.map(_render, snapshots))
