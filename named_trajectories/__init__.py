"""
named_trajectories: named, block-partitioned trajectory storage.

A trajectory is a (dim, T) matrix of states and controls, one column per
timestep, whose rows are split into named contiguous blocks. It provides:
- Construction from named blocks or a flat vector plus a row partition
- Validation of bounds and initial/final/goal values against block sizes
- Zero-copy block and knot point views over a single flat buffer
- Rebuilding over a new flat vector (e.g. an optimizer solution)
- Persistence to .npz archives
"""

__version__ = "0.1.0"

from named_trajectories.core.errors import ConfigurationError
from named_trajectories.core.knot_point import KnotPoint
from named_trajectories.core.trajectory import NamedTrajectory
from named_trajectories.io.archive import save, load
from named_trajectories.utils.finite_difference import derivative, integral

__all__ = [
    "ConfigurationError",
    "KnotPoint",
    "NamedTrajectory",
    "save",
    "load",
    "derivative",
    "integral",
]
