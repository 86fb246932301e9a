"""Exceptions raised while building named trajectories."""


class ConfigurationError(ValueError):
    """Inconsistent construction input (layout, metadata, timestep or path)."""
