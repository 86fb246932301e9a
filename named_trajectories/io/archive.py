"""Save and load named trajectories as NumPy .npz archives."""

import logging
import os
from pathlib import Path
from typing import Union
import numpy as np

from named_trajectories.core.errors import ConfigurationError
from named_trajectories.core.trajectory import NamedTrajectory

logger = logging.getLogger(__name__)

SUFFIX = ".npz"
FORMAT_VERSION = 1

PathLike = Union[str, os.PathLike]


def save(path: PathLike, traj: NamedTrajectory) -> Path:
    """
    Write a trajectory to an .npz archive.

    Per-block entries are keyed by the block's position in `traj.names`,
    so block names never have to be valid archive member names.

    Args:
        path: Target file, must end in .npz
        traj: Trajectory to save

    Returns:
        Path written
    """
    path = _check_path(path)

    index = {k: i for i, k in enumerate(traj.names)}
    payload = {
        "format_version": np.array(FORMAT_VERSION),
        "datavec": traj.datavec,
        "T": np.array(traj.T),
        "timestep": np.array(traj.timestep),
        "dynamical_timesteps": np.array(traj.dynamical_timesteps),
        "names": np.array(traj.names, dtype=str),
        "controls_names": np.array(traj.controls_names, dtype=str),
    }
    for k, i in index.items():
        payload[f"component__{i}"] = traj.components[k]
    for k, (lower, upper) in traj.bounds.items():
        payload[f"bounds_lower__{index[k]}"] = lower
        payload[f"bounds_upper__{index[k]}"] = upper
    for label in ("initial", "final", "goal"):
        for k, v in getattr(traj, label).items():
            payload[f"{label}__{index[k]}"] = v

    np.savez(path, **payload)
    logger.info("Saved trajectory dim=%d T=%d to %s", traj.dim, traj.T, path)
    return path


def load(path: PathLike) -> NamedTrajectory:
    """
    Read a trajectory written by `save`.

    The archive goes through the validating constructor, so an inconsistent
    archive raises ConfigurationError.

    Args:
        path: Source file, must end in .npz

    Returns:
        Loaded trajectory
    """
    path = _check_path(path)

    with np.load(path, allow_pickle=False) as archive:
        try:
            version = int(archive["format_version"])
            if version != FORMAT_VERSION:
                raise ConfigurationError(
                    f"Unsupported archive format version {version} in {path}"
                )

            names = [str(k) for k in archive["names"]]
            dynamical = bool(archive["dynamical_timesteps"])
            timestep = archive["timestep"].item()
            timestep = str(timestep) if dynamical else float(timestep)

            components = {k: archive[f"component__{i}"] for i, k in enumerate(names)}
            bounds = {}
            tables = {"initial": {}, "final": {}, "goal": {}}
            for i, k in enumerate(names):
                if f"bounds_lower__{i}" in archive:
                    bounds[k] = (archive[f"bounds_lower__{i}"], archive[f"bounds_upper__{i}"])
                for label, table in tables.items():
                    if f"{label}__{i}" in archive:
                        table[k] = archive[f"{label}__{i}"]

            traj = NamedTrajectory.from_datavec(
                archive["datavec"],
                int(archive["T"]),
                components,
                controls=tuple(str(k) for k in archive["controls_names"]),
                timestep=timestep,
                dynamical_timesteps=dynamical,
                bounds=bounds,
                **tables,
            )
        except KeyError as exc:
            raise ConfigurationError(f"Incomplete trajectory archive {path}: {exc}") from exc

    logger.info("Loaded trajectory dim=%d T=%d from %s", traj.dim, traj.T, path)
    return traj


def _check_path(path: PathLike) -> Path:
    path = Path(path)
    if path.suffix != SUFFIX:
        raise ConfigurationError(
            f"Trajectory archives must use the {SUFFIX} suffix, got '{path.name}'"
        )
    return path
