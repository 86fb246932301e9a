"""Core trajectory data model."""

from named_trajectories.core.errors import ConfigurationError
from named_trajectories.core.layout import (
    BlockLayout,
    resolve_layout,
    validate_components,
)
from named_trajectories.core.metadata import (
    TrajectoryMetadata,
    normalize_bound,
    normalize_metadata,
)
from named_trajectories.core.knot_point import KnotPoint
from named_trajectories.core.trajectory import NamedTrajectory

__all__ = [
    "ConfigurationError",
    "BlockLayout",
    "resolve_layout",
    "validate_components",
    "TrajectoryMetadata",
    "normalize_bound",
    "normalize_metadata",
    "KnotPoint",
    "NamedTrajectory",
]
