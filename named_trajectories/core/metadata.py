"""Normalization and validation of per-block trajectory metadata."""

from dataclasses import dataclass
from numbers import Real
from types import MappingProxyType
from typing import Any, Mapping, Optional
import numpy as np
from numpy.typing import NDArray

from named_trajectories.core.errors import ConfigurationError
from named_trajectories.core.layout import BlockLayout


BoundPair = tuple[NDArray, NDArray]


@dataclass(frozen=True, eq=False)
class TrajectoryMetadata:
    """Validated bounds and boundary values, keyed by declared block name."""

    bounds: Mapping[str, BoundPair]
    initial: Mapping[str, NDArray]
    final: Mapping[str, NDArray]
    goal: Mapping[str, NDArray]


def normalize_bound(name: str, bound: Any) -> BoundPair:
    """
    Canonicalize one bound specification to a (lower, upper) pair.

    Accepted forms:
        [v1, ..., vn] or 1-D array v  -> (-v, v)
        (lo, hi) with real scalars    -> ([lo], [hi])
        (lower, upper) with vectors   -> (lower, upper)

    Args:
        name: Block name, used in error messages
        bound: Raw bound specification

    Returns:
        (lower, upper) float arrays
    """
    if isinstance(bound, tuple):
        if len(bound) != 2:
            raise ConfigurationError(
                f"Bound for '{name}' must be a (lower, upper) pair, got {len(bound)} entries"
            )
        lo, hi = bound
        if _is_scalar(lo) and _is_scalar(hi):
            return (
                np.array([lo], dtype=np.float64),
                np.array([hi], dtype=np.float64),
            )
        if _is_scalar(lo) or _is_scalar(hi):
            raise ConfigurationError(
                f"Bound for '{name}' mixes a scalar and a vector"
            )
        return _as_vector(name, lo), _as_vector(name, hi)

    if isinstance(bound, (list, np.ndarray)):
        v = _as_vector(name, bound)
        return -v, v

    raise ConfigurationError(
        f"Bound for '{name}' must be a vector, a scalar pair or a vector pair, "
        f"got {type(bound).__name__}"
    )


def normalize_bounds(
    bounds: Optional[Mapping[str, Any]],
    layout: BlockLayout,
) -> Mapping[str, BoundPair]:
    """Normalize every bound and check it against the block dimension."""
    bounds = bounds or {}
    _check_keys("bounds", bounds, layout)

    normalized = {}
    for k, bound in bounds.items():
        lower, upper = normalize_bound(k, bound)
        n = layout.dims[k]
        if len(lower) != n or len(upper) != n:
            raise ConfigurationError(
                f"Bound for '{k}' has lengths ({len(lower)}, {len(upper)}), "
                f"expected {n}"
            )
        normalized[k] = (_freeze(lower), _freeze(upper))
    return MappingProxyType(normalized)


def normalize_values(
    label: str,
    values: Optional[Mapping[str, Any]],
    layout: BlockLayout,
) -> Mapping[str, NDArray]:
    """Validate an initial/final/goal table against block dimensions."""
    values = values or {}
    _check_keys(label, values, layout)

    normalized = {}
    for k, value in values.items():
        v = _as_vector(k, value, allow_scalar=True)
        if len(v) != layout.dims[k]:
            raise ConfigurationError(
                f"{label.capitalize()} value for '{k}' has length {len(v)}, "
                f"expected {layout.dims[k]}"
            )
        normalized[k] = _freeze(v)
    return MappingProxyType(normalized)


def normalize_metadata(
    layout: BlockLayout,
    bounds: Optional[Mapping[str, Any]] = None,
    initial: Optional[Mapping[str, Any]] = None,
    final: Optional[Mapping[str, Any]] = None,
    goal: Optional[Mapping[str, Any]] = None,
) -> TrajectoryMetadata:
    """Run all metadata checks against a resolved layout."""
    return TrajectoryMetadata(
        bounds=normalize_bounds(bounds, layout),
        initial=normalize_values("initial", initial, layout),
        final=normalize_values("final", final, layout),
        goal=normalize_values("goal", goal, layout),
    )


def _check_keys(label: str, table: Mapping[str, Any], layout: BlockLayout) -> None:
    for k in table:
        if k not in layout.names:
            raise ConfigurationError(
                f"{label.capitalize()} refers to unknown block '{k}'; "
                f"declared: {list(layout.names)}"
            )


def _is_scalar(x: Any) -> bool:
    return isinstance(x, Real) or (isinstance(x, np.ndarray) and x.ndim == 0)


def _as_vector(name: str, value: Any, allow_scalar: bool = False) -> NDArray:
    try:
        v = np.asarray(value, dtype=np.float64)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Value for '{name}' is not numeric: {exc}") from exc

    if v.ndim == 0 and allow_scalar:
        v = np.atleast_1d(v)
    if v.ndim != 1:
        raise ConfigurationError(
            f"Value for '{name}' must be a 1-D vector, got shape {v.shape}"
        )
    return v


def _freeze(v: NDArray) -> NDArray:
    # Owned read-only copy
    v = np.array(v, dtype=np.float64)
    v.flags.writeable = False
    return v
