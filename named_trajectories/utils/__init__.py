"""Numeric helpers for trajectory matrices."""

from named_trajectories.utils.finite_difference import (
    derivative,
    integral,
    times_from_steps,
)

__all__ = [
    "derivative",
    "integral",
    "times_from_steps",
]
