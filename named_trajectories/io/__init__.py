"""Trajectory persistence."""

from named_trajectories.io.archive import save, load

__all__ = [
    "save",
    "load",
]
