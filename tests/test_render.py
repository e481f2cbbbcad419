"""Tests for the frame renderer."""

import json

import numpy as np
import pytest
from nbody_sim.errors import ConfigurationError
from nbody_sim.io.snapshot_format import snapshot_path, write_snapshot_file
from nbody_sim.physics.body import Body, make_body_array
from nbody_sim.render.frames import render_all, render_frame

BOUNDS = (0.0, 10.0, 0.0, 10.0)


def _bodies_at(points):
    return make_body_array([Body(x=x, y=y) for x, y in points])


def test_single_hit():
    """One body lights its pixel blue."""
    image = render_frame(_bodies_at([(2.5, 7.5)]), BOUNDS, width=10, height=10)

    assert image.shape == (10, 10, 3)
    assert image.dtype == np.uint8
    assert image[3, 2].tolist() == [0, 0, 129]
    assert image.sum() == 129


def test_color_accumulation():
    """Hits fill blue, then green, then red."""
    for hits, expected in [(2, [0, 3, 255]), (3, [0, 132, 255]), (5, [135, 255, 255]), (7, [255, 255, 255])]:
        image = render_frame(_bodies_at([(5.5, 5.5)] * hits), BOUNDS, width=10, height=10)
        assert image[5, 5].tolist() == expected


def test_bodies_outside_bounds_are_skipped():
    """Bodies outside [start, end) do not show up."""
    image = render_frame(_bodies_at([(10.0, 5.0), (-0.1, 5.0), (5.0, 10.0), (5.0, 0.0)]), BOUNDS, 10, 10)

    assert image.sum() == 0


def test_degenerate_bounds():
    """Empty axis ranges are a configuration error."""
    with pytest.raises(ConfigurationError):
        render_frame(_bodies_at([(1.0, 1.0)]), (1.0, 1.0, 0.0, 10.0))
    with pytest.raises(ConfigurationError):
        render_frame(_bodies_at([(1.0, 1.0)]), (0.0, 10.0, 5.0, 2.0))


def test_render_all(tmp_path):
    """Every snapshot becomes one PNG."""
    steps_dir = tmp_path / "steps"
    steps_dir.mkdir()
    for step in range(3):
        write_snapshot_file(snapshot_path(steps_dir, step), _bodies_at([(1.0 + step, 1.0)]))

    images = render_all(steps_dir, tmp_path / "imgs", BOUNDS, width=20, height=20, n_workers=2)

    assert [p.name for p in images] == ["000000000.png", "000000001.png", "000000002.png"]
    assert all(p.exists() for p in images)


def test_render_all_follows_manifest(tmp_path):
    """Only the steps of the latest run are rendered and older frames are removed."""
    steps_dir = tmp_path / "steps"
    images_dir = tmp_path / "imgs"
    steps_dir.mkdir()
    images_dir.mkdir()
    for step in range(3):
        write_snapshot_file(snapshot_path(steps_dir, step, "json"), _bodies_at([(1.0, 1.0)]), "json")
        write_snapshot_file(snapshot_path(steps_dir, step, "bin"), _bodies_at([(2.0, 1.0)]), "bin")
    (steps_dir / "manifest.json").write_text(json.dumps({"format": "bin", "n_steps": 2}))
    (images_dir / "000000005.png").write_bytes(b"")

    images = render_all(steps_dir, images_dir, BOUNDS, width=20, height=20, n_workers=2)

    assert [p.name for p in images] == ["000000000.png", "000000001.png"]
    assert sorted(p.name for p in images_dir.iterdir()) == ["000000000.png", "000000001.png"]
