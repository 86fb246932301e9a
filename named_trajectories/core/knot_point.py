"""Single-timestep views of a named trajectory."""

from dataclasses import dataclass
from numbers import Integral
from typing import TYPE_CHECKING, Mapping, Union
from numpy.typing import ArrayLike, NDArray

from named_trajectories.core.layout import STATES, CONTROLS, BlockLayout

if TYPE_CHECKING:
    from named_trajectories.core.trajectory import NamedTrajectory


@dataclass(frozen=True, eq=False)
class KnotPoint:
    """
    Column `t` of a trajectory with the same named-component layout.

    `data` is a view into the trajectory buffer, so reads and writes go
    straight through to the trajectory. The view keeps the buffer alive.
    """

    t: int
    data: NDArray        # (dim,) view of trajectory.data[:, t]
    layout: BlockLayout
    timestep_policy: Union[float, str]  # fixed step, or name of the timestep block
    dynamical_timesteps: bool

    @classmethod
    def from_trajectory(cls, traj: "NamedTrajectory", t: int) -> "KnotPoint":
        """
        Build the knot point at column `t`.

        Args:
            traj: Source trajectory
            t: Timestep index, 0 <= t < traj.T (negative indices are not wrapped)

        Returns:
            Knot point aliasing traj.data[:, t]
        """
        if isinstance(t, bool) or not isinstance(t, Integral):
            raise TypeError(f"Knot point index must be an integer, got {type(t).__name__}")
        if not 0 <= t < traj.T:
            raise IndexError(f"Knot point index {t} out of range for T={traj.T}")

        t = int(t)
        return cls(
            t=t,
            data=traj.data[:, t],
            layout=traj.layout,
            timestep_policy=traj.timestep,
            dynamical_timesteps=traj.dynamical_timesteps,
        )

    @property
    def timestep(self) -> float:
        """Time increment of this column, read from the buffer when dynamical."""
        if self.dynamical_timesteps:
            return float(self.get(self.timestep_policy)[0])
        return self.timestep_policy

    @property
    def components(self) -> Mapping[str, NDArray]:
        return self.layout.components

    @property
    def names(self) -> tuple[str, ...]:
        return self.layout.names

    @property
    def controls_names(self) -> tuple[str, ...]:
        return self.layout.controls_names

    @property
    def states(self) -> NDArray:
        """All non-control values at this timestep."""
        return self.get(STATES)

    @property
    def controls(self) -> NDArray:
        """All control values at this timestep."""
        return self.get(CONTROLS)

    def get(self, name: str) -> NDArray:
        """Values of block `name` at this timestep, shape (dims[name],)."""
        return self.data[self.layout.index_of(name)]

    def set(self, name: str, value: Union[ArrayLike, float]) -> None:
        """Write block `name` at this timestep into the trajectory."""
        self.data[self.layout.index_of(name)] = value

    def __getitem__(self, name: str) -> NDArray:
        return self.get(name)

    def __setitem__(self, name: str, value: Union[ArrayLike, float]) -> None:
        self.set(name, value)

    def __repr__(self) -> str:
        return f"KnotPoint(t={self.t}, dim={len(self.data)}, names={self.names})"

