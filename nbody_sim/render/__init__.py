"""Rendering of snapshot files to images."""

from nbody_sim.render.frames import render_frame, render_snapshot, render_all

__all__ = ["render_frame", "render_snapshot", "render_all"]
