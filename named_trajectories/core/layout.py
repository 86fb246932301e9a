"""Block layout resolution: named row blocks -> contiguous index ranges."""

from dataclasses import dataclass
from functools import cached_property
from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Union
import numpy as np
from numpy.typing import ArrayLike, NDArray

from named_trajectories.core.errors import ConfigurationError


STATES = "states"
CONTROLS = "controls"
AGGREGATE_NAMES = (STATES, CONTROLS)

ControlsSpec = Union[str, Iterable[str], None]


@dataclass(frozen=True, eq=False)
class BlockLayout:
    """Row partition of a trajectory matrix into named blocks."""

    names: tuple[str, ...]            # declared blocks, declaration order
    controls_names: tuple[str, ...]   # subset of names
    dims: Mapping[str, int]           # declared blocks + states/controls
    components: Mapping[str, NDArray] # 0-based row indices, read-only
    dim: int                          # total row count
    T: int                            # column count

    @cached_property
    def slices(self) -> Mapping[str, Optional[slice]]:
        """Slice for every contiguous component, None for gathered ones."""
        return MappingProxyType(
            {k: _contiguous_slice(idx) for k, idx in self.components.items()}
        )

    def is_contiguous(self, name: str) -> bool:
        """True if `name` addresses a contiguous run of rows."""
        return self.slices[name] is not None

    def index_of(self, name: str) -> Union[slice, NDArray]:
        """Row selector for `name`: a slice when contiguous, else an index array."""
        if name not in self.components:
            raise KeyError(f"Unknown component '{name}'; known: {list(self.components)}")
        s = self.slices[name]
        return s if s is not None else self.components[name]


def normalize_controls(controls: ControlsSpec) -> tuple[str, ...]:
    """Accept a single name or an iterable of names."""
    if controls is None:
        return ()
    if isinstance(controls, str):
        return (controls,)
    controls = tuple(controls)
    for k in controls:
        if not isinstance(k, str):
            raise ConfigurationError(f"Control names must be strings, got {k!r}")
    return controls


def as_block(name: str, value: ArrayLike) -> NDArray:
    """Coerce block data to a float (k, T) array; 1-D input is a single row."""
    try:
        block = np.asarray(value, dtype=np.float64)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Block '{name}' is not numeric: {exc}") from exc

    if block.ndim == 1:
        block = block.reshape(1, -1)
    elif block.ndim != 2:
        raise ConfigurationError(
            f"Block '{name}' must be 1-D or 2-D, got shape {block.shape}"
        )

    if block.shape[0] == 0 or block.shape[1] == 0:
        raise ConfigurationError(f"Block '{name}' is empty, shape {block.shape}")
    return block


def resolve_layout(
    blocks: Mapping[str, ArrayLike],
    controls: ControlsSpec,
) -> tuple[BlockLayout, list[NDArray]]:
    """
    Resolve contiguous row ranges for named blocks.

    Ranges are assigned in mapping order: the first block gets rows
    [0, k1), the second [k1, k1 + k2), and so on.

    Args:
        blocks: Ordered mapping name -> (T,) or (k, T) array
        controls: Name or names of the control blocks

    Returns:
        layout: Resolved block layout
        rows: Blocks as (k, T) float arrays, in declaration order
    """
    if not blocks:
        raise ConfigurationError("At least one named block is required")

    controls = normalize_controls(controls)
    names = tuple(blocks.keys())
    _check_names(names, controls)

    rows = [as_block(k, blocks[k]) for k in names]

    T = rows[0].shape[1]
    for k, block in zip(names, rows):
        if block.shape[1] != T:
            raise ConfigurationError(
                f"Block '{k}' has {block.shape[1]} columns, expected {T} "
                f"(from block '{names[0]}')"
            )

    components = {}
    offset = 0
    for k, block in zip(names, rows):
        components[k] = np.arange(offset, offset + block.shape[0])
        offset += block.shape[0]

    return _build_layout(names, controls, components, offset, T), rows


def validate_components(
    components: Mapping[str, ArrayLike],
    dim: int,
    T: int,
    controls: ControlsSpec,
) -> BlockLayout:
    """
    Validate a precomputed row partition against a matrix with `dim` rows.

    The ranges, concatenated in mapping order, must equal 0..dim-1 exactly.

    Args:
        components: Ordered mapping name -> integer row indices
        dim: Row count derived from the flat buffer
        T: Column count
        controls: Name or names of the control blocks

    Returns:
        Validated block layout
    """
    if not components:
        raise ConfigurationError("At least one named component is required")

    controls = normalize_controls(controls)
    names = tuple(components.keys())
    _check_names(names, controls)

    resolved = {}
    for k in names:
        idx = np.asarray(components[k])
        if idx.ndim != 1 or idx.size == 0:
            raise ConfigurationError(
                f"Component '{k}' must be a non-empty 1-D index range"
            )
        if not np.issubdtype(idx.dtype, np.integer):
            raise ConfigurationError(
                f"Component '{k}' must hold integer indices, got {idx.dtype}"
            )
        resolved[k] = idx.astype(np.intp)

    flat = np.concatenate([resolved[k] for k in names])
    if len(np.unique(flat)) != len(flat):
        raise ConfigurationError("Component ranges overlap")
    if not np.array_equal(flat, np.arange(dim)):
        raise ConfigurationError(
            f"Component ranges must cover rows 0..{dim - 1} contiguously "
            f"in declaration order"
        )

    return _build_layout(names, controls, resolved, dim, T)


def _check_names(names: tuple[str, ...], controls: tuple[str, ...]) -> None:
    """Shared checks on declared and control names."""
    for k in names:
        if k in AGGREGATE_NAMES:
            raise ConfigurationError(f"'{k}' is reserved for the aggregate block")

    if not controls:
        raise ConfigurationError("At least one control block must be specified")

    for k in controls:
        if k not in names:
            raise ConfigurationError(
                f"Control '{k}' is not a declared block; declared: {list(names)}"
            )


def _build_layout(
    names: tuple[str, ...],
    controls: tuple[str, ...],
    components: dict[str, NDArray],
    dim: int,
    T: int,
) -> BlockLayout:
    """Attach the states/controls aggregates and freeze the layout."""
    dims = {k: len(components[k]) for k in names}

    states = [k for k in names if k not in controls]
    ctrls = [k for k in names if k in controls]

    dims[STATES] = sum(dims[k] for k in states)
    dims[CONTROLS] = sum(dims[k] for k in ctrls)

    components = dict(components)
    components[STATES] = _concat([components[k] for k in states])
    components[CONTROLS] = _concat([components[k] for k in ctrls])

    for idx in components.values():
        idx.flags.writeable = False

    # Keep control order as declared, not as passed
    controls = tuple(ctrls)

    return BlockLayout(
        names=names,
        controls_names=controls,
        dims=MappingProxyType(dims),
        components=MappingProxyType(components),
        dim=dim,
        T=T,
    )


def _concat(ranges: list[NDArray]) -> NDArray:
    if not ranges:
        return np.zeros(0, dtype=np.intp)
    return np.concatenate(ranges).astype(np.intp)


def _contiguous_slice(idx: NDArray) -> Optional[slice]:
    """Slice equivalent of a strictly consecutive index array, else None."""
    if idx.size == 0:
        return slice(0, 0)
    if idx.size > 1 and not np.all(np.diff(idx) == 1):
        return None
    return slice(int(idx[0]), int(idx[-1]) + 1)
