"""Named trajectory container over a single flat buffer."""

import logging
import math
from numbers import Integral, Real
from typing import Any, Iterator, Mapping, Optional, Union
import numpy as np
from numpy.typing import ArrayLike, NDArray

from named_trajectories.core.errors import ConfigurationError
from named_trajectories.core.knot_point import KnotPoint
from named_trajectories.core.layout import (
    STATES,
    CONTROLS,
    BlockLayout,
    ControlsSpec,
    resolve_layout,
    validate_components,
)
from named_trajectories.core.metadata import (
    BoundPair,
    TrajectoryMetadata,
    normalize_metadata,
)
from named_trajectories.utils.finite_difference import (
    derivative,
    integral,
    times_from_steps,
)

logger = logging.getLogger(__name__)

Timestep = Union[float, str]


class NamedTrajectory:
    """
    Time-indexed matrix whose rows are partitioned into named blocks.

    The trajectory owns one flat column-major buffer `datavec` of length
    dim * T. `data` is a (dim, T) view of it, and every block returned by
    `get` for a contiguous component is a view as well, so writes through
    any of them mutate the same memory.

    Metadata (layout, bounds, boundary values, timestep policy) is fixed at
    construction; numeric data may be modified in place but never resized.
    """

    def __init__(
        self,
        blocks: Mapping[str, ArrayLike],
        *,
        controls: ControlsSpec = None,
        timestep: Optional[Timestep] = None,
        dynamical_timesteps: bool = False,
        bounds: Optional[Mapping[str, Any]] = None,
        initial: Optional[Mapping[str, Any]] = None,
        final: Optional[Mapping[str, Any]] = None,
        goal: Optional[Mapping[str, Any]] = None,
    ):
        """
        Build a trajectory from named blocks.

        Args:
            blocks: Ordered mapping name -> (T,) or (k, T) array. Rows are
                stacked in mapping order.
            controls: Name or names of the control blocks (at least one)
            timestep: Fixed positive step size, or with dynamical_timesteps
                the name of a single-row block holding per-column increments
            dynamical_timesteps: Select per-column timesteps
            bounds: name -> vector v (symmetric), (lo, hi) scalars, or
                (lower, upper) vectors
            initial: name -> initial value
            final: name -> final value
            goal: name -> goal value
        """
        layout, rows = resolve_layout(blocks, controls)
        metadata = normalize_metadata(layout, bounds, initial, final, goal)
        _check_timestep(timestep, dynamical_timesteps, layout)

        datavec = np.vstack(rows).ravel(order="F")
        self._assign(datavec, layout, metadata, timestep, dynamical_timesteps)

        logger.debug(
            "Built trajectory dim=%d T=%d names=%s controls=%s",
            layout.dim, layout.T, layout.names, layout.controls_names,
        )

    @classmethod
    def from_datavec(
        cls,
        datavec: ArrayLike,
        T: int,
        components: Mapping[str, ArrayLike],
        *,
        controls: ControlsSpec = None,
        timestep: Optional[Timestep] = None,
        dynamical_timesteps: bool = False,
        bounds: Optional[Mapping[str, Any]] = None,
        initial: Optional[Mapping[str, Any]] = None,
        final: Optional[Mapping[str, Any]] = None,
        goal: Optional[Mapping[str, Any]] = None,
    ) -> "NamedTrajectory":
        """
        Wrap a flat column-major buffer with a precomputed row partition.

        A contiguous float64 1-D buffer is used as-is (no copy).

        Args:
            datavec: Flat buffer of length dim * T
            T: Number of timesteps
            components: Ordered mapping name -> row indices; concatenated
                they must equal 0..dim-1
            controls, timestep, ...: Same as the block constructor

        Returns:
            Trajectory backed by datavec
        """
        if isinstance(T, bool) or not isinstance(T, Integral) or T < 1:
            raise ConfigurationError(f"T must be a positive integer, got {T!r}")

        datavec = _as_datavec(datavec)
        if len(datavec) % T != 0:
            raise ConfigurationError(
                f"Buffer length {len(datavec)} is not a multiple of T={T}"
            )

        layout = validate_components(components, len(datavec) // T, int(T), controls)
        metadata = normalize_metadata(layout, bounds, initial, final, goal)
        _check_timestep(timestep, dynamical_timesteps, layout)

        return cls._create(datavec, layout, metadata, timestep, dynamical_timesteps)

    @classmethod
    def from_data(
        cls,
        data: ArrayLike,
        components: Mapping[str, ArrayLike],
        **kwargs: Any,
    ) -> "NamedTrajectory":
        """
        Build from a (dim, T) matrix and a precomputed row partition.

        The matrix is flattened column-major, which avoids a copy when it is
        Fortran-contiguous float64.
        """
        data = np.asarray(data, dtype=np.float64)
        if data.ndim != 2:
            raise ConfigurationError(f"Data must be 2-D (dim, T), got shape {data.shape}")
        return cls.from_datavec(
            data.ravel(order="F"), data.shape[1], components, **kwargs
        )

    @classmethod
    def from_vector(cls, traj: "NamedTrajectory", datavec: ArrayLike) -> "NamedTrajectory":
        """New trajectory over `datavec` sharing all metadata of `traj`."""
        return traj.with_datavec(datavec)

    @classmethod
    def _create(
        cls,
        datavec: NDArray,
        layout: BlockLayout,
        metadata: TrajectoryMetadata,
        timestep: Timestep,
        dynamical_timesteps: bool,
    ) -> "NamedTrajectory":
        self = cls.__new__(cls)
        self._assign(datavec, layout, metadata, timestep, dynamical_timesteps)
        return self

    def _assign(
        self,
        datavec: NDArray,
        layout: BlockLayout,
        metadata: TrajectoryMetadata,
        timestep: Timestep,
        dynamical_timesteps: bool,
    ) -> None:
        self._datavec = datavec
        self._data = datavec.reshape((layout.dim, layout.T), order="F")
        self._layout = layout
        self._metadata = metadata
        self._timestep = timestep if dynamical_timesteps else float(timestep)
        self._dynamical_timesteps = bool(dynamical_timesteps)

    def with_datavec(self, datavec: ArrayLike) -> "NamedTrajectory":
        """
        Rebuild over a new flat buffer, e.g. an optimizer's solution vector.

        Layout, metadata and timestep policy are shared by reference.

        Args:
            datavec: Flat buffer with the same length as self.datavec

        Returns:
            New trajectory backed by datavec
        """
        datavec = _as_datavec(datavec)
        if len(datavec) != len(self._datavec):
            raise ConfigurationError(
                f"Buffer length {len(datavec)} does not match trajectory "
                f"length {len(self._datavec)}"
            )
        logger.debug("Rebuilding trajectory over new buffer of length %d", len(datavec))
        return self._create(
            datavec,
            self._layout,
            self._metadata,
            self._timestep,
            self._dynamical_timesteps,
        )

    def copy(self) -> "NamedTrajectory":
        """Trajectory over a copy of the buffer, metadata shared."""
        return self.with_datavec(self._datavec.copy())

    # -- storage -----------------------------------------------------------

    @property
    def datavec(self) -> NDArray:
        """Flat column-major buffer (dim * T,)."""
        return self._datavec

    @property
    def data(self) -> NDArray:
        """(dim, T) view of datavec."""
        return self._data

    @property
    def T(self) -> int:
        """Number of timesteps."""
        return self._layout.T

    @property
    def dim(self) -> int:
        """Total row count."""
        return self._layout.dim

    # -- layout ------------------------------------------------------------

    @property
    def layout(self) -> BlockLayout:
        return self._layout

    @property
    def dims(self) -> Mapping[str, int]:
        return self._layout.dims

    @property
    def components(self) -> Mapping[str, NDArray]:
        return self._layout.components

    @property
    def names(self) -> tuple[str, ...]:
        return self._layout.names

    @property
    def controls_names(self) -> tuple[str, ...]:
        return self._layout.controls_names

    # -- metadata ----------------------------------------------------------

    @property
    def metadata(self) -> TrajectoryMetadata:
        return self._metadata

    @property
    def bounds(self) -> Mapping[str, BoundPair]:
        return self._metadata.bounds

    @property
    def initial(self) -> Mapping[str, NDArray]:
        return self._metadata.initial

    @property
    def final(self) -> Mapping[str, NDArray]:
        return self._metadata.final

    @property
    def goal(self) -> Mapping[str, NDArray]:
        return self._metadata.goal

    # -- time --------------------------------------------------------------

    @property
    def timestep(self) -> Timestep:
        """Fixed step size, or the name of the timestep block."""
        return self._timestep

    @property
    def dynamical_timesteps(self) -> bool:
        return self._dynamical_timesteps

    @property
    def timesteps(self) -> NDArray:
        """
        Per-column time increments (T,).

        With dynamical timesteps this is a view of the timestep block row.
        """
        if self._dynamical_timesteps:
            return self.get(self._timestep)[0]
        return np.full(self.T, self._timestep)

    @property
    def times(self) -> NDArray:
        """Start time of every column, times[0] == 0."""
        return times_from_steps(self.timesteps, self.T)

    # -- access ------------------------------------------------------------

    @property
    def states(self) -> NDArray:
        """All non-control rows (dims['states'], T)."""
        return self.get(STATES)

    @property
    def controls(self) -> NDArray:
        """All control rows (dims['controls'], T)."""
        return self.get(CONTROLS)

    def get(self, name: str) -> NDArray:
        """
        Rows of block `name` across all timesteps, shape (dims[name], T).

        Declared blocks are contiguous, so the result is a view into the
        buffer. Aggregates (`states`, `controls`) are views when their rows
        happen to be contiguous and gathered copies otherwise; use `set` to
        write them.
        """
        return self._data[self._layout.index_of(name)]

    def set(self, name: str, value: Union[ArrayLike, float]) -> None:
        """Write block `name` in place; any name, aggregates included."""
        self._data[self._layout.index_of(name)] = value

    def knot_point(self, t: int) -> KnotPoint:
        """View of column `t`, 0 <= t < T."""
        return KnotPoint.from_trajectory(self, t)

    def derivative(self, name: str) -> NDArray:
        """Backward difference of block `name` using the trajectory timesteps."""
        return derivative(self.get(name), self.timesteps)

    def integral(self, name: str, method: str = "rectangle") -> NDArray:
        """Cumulative integral of block `name` using the trajectory timesteps."""
        return integral(self.get(name), self.timesteps, method=method)

    def __getitem__(self, key: Union[str, int]) -> Union[NDArray, KnotPoint]:
        if isinstance(key, str):
            return self.get(key)
        if isinstance(key, Integral) and not isinstance(key, bool):
            return self.knot_point(key)
        raise TypeError(
            f"Index with a block name or a timestep, got {type(key).__name__}"
        )

    def __setitem__(self, name: str, value: Union[ArrayLike, float]) -> None:
        if not isinstance(name, str):
            raise TypeError(f"Assign by block name, got {type(name).__name__}")
        self.set(name, value)

    def __iter__(self) -> Iterator[KnotPoint]:
        for t in range(self.T):
            yield self.knot_point(t)

    def __len__(self) -> int:
        return self.T

    def __repr__(self) -> str:
        return (
            f"NamedTrajectory(T={self.T}, dim={self.dim}, names={self.names}, "
            f"controls={self.controls_names})"
        )


def _as_datavec(datavec: ArrayLike) -> NDArray:
    """Flat float64 buffer; contiguous float64 input is returned as-is."""
    datavec = np.asarray(datavec, dtype=np.float64)
    if datavec.ndim != 1:
        raise ConfigurationError(f"Buffer must be 1-D, got shape {datavec.shape}")
    if not datavec.flags.c_contiguous:
        logger.debug("Copying non-contiguous buffer")
        datavec = np.ascontiguousarray(datavec)
    return datavec


def _check_timestep(
    timestep: Optional[Timestep],
    dynamical_timesteps: bool,
    layout: BlockLayout,
) -> None:
    """Validate the timestep policy against the layout."""
    if timestep is None:
        raise ConfigurationError("A timestep must be specified")

    if dynamical_timesteps:
        if not isinstance(timestep, str):
            raise ConfigurationError(
                "With dynamical timesteps, timestep must name a block, "
                f"got {timestep!r}"
            )
        if timestep not in layout.names:
            raise ConfigurationError(
                f"Timestep block '{timestep}' is not a declared block"
            )
        if layout.dims[timestep] != 1:
            raise ConfigurationError(
                f"Timestep block '{timestep}' must have one row, "
                f"has {layout.dims[timestep]}"
            )
        return

    if (
        isinstance(timestep, bool)
        or not isinstance(timestep, Real)
        or not math.isfinite(timestep)
        or timestep <= 0
    ):
        raise ConfigurationError(
            f"Timestep must be a positive finite number, got {timestep!r}"
        )
