"""Column-wise finite differences over trajectory matrices.

dt[t] is the time step from column t to column t+1, so column t sits at
time sum(dt[:t]). The last increment dt[T-1] reaches past the final
column and is never used.
"""

from typing import Union
import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy.integrate import cumulative_trapezoid


def times_from_steps(dt: Union[float, ArrayLike], T: int) -> NDArray:
    """Column times (T,) with times[0] == 0."""
    dt = _as_steps(dt, T)
    return np.concatenate([[0.0], np.cumsum(dt[:-1])])


def derivative(X: ArrayLike, dt: Union[float, ArrayLike]) -> NDArray:
    """
    Backward difference along columns.

    dX[:, 0] = 0
    dX[:, t] = (X[:, t] - X[:, t-1]) / dt[t-1]

    Args:
        X: Matrix (n, T), one column per timestep
        dt: Scalar step or per-column increments (T,)

    Returns:
        dX of shape (n, T)
    """
    X = _as_matrix(X)
    dt = _as_steps(dt, X.shape[1])

    dX = np.zeros_like(X)
    dX[:, 1:] = np.diff(X, axis=1) / dt[:-1]
    return dX


def integral(
    X: ArrayLike,
    dt: Union[float, ArrayLike],
    method: str = "rectangle",
) -> NDArray:
    """
    Cumulative integral along columns, zero at column 0.

    rectangle:
        I[:, t] = I[:, t-1] + X[:, t] * dt[t-1]
    trapezoid:
        I[:, t] = I[:, t-1] + (X[:, t-1] + X[:, t]) / 2 * dt[t-1]

    The rectangle rule is the exact inverse of `derivative` on columns t >= 1.

    Args:
        X: Matrix (n, T)
        dt: Scalar step or per-column increments (T,)
        method: "rectangle" or "trapezoid"

    Returns:
        Cumulative integral of shape (n, T)
    """
    X = _as_matrix(X)
    dt = _as_steps(dt, X.shape[1])

    if method == "rectangle":
        I = np.zeros_like(X)
        I[:, 1:] = np.cumsum(X[:, 1:] * dt[:-1], axis=1)
        return I

    if method == "trapezoid":
        x = times_from_steps(dt, X.shape[1])
        return cumulative_trapezoid(X, x=x, axis=1, initial=0.0)

    raise ValueError(f"Unknown integration method '{method}'")


def _as_matrix(X: ArrayLike) -> NDArray:
    X = np.asarray(X, dtype=np.float64)
    if X.ndim != 2:
        raise ValueError(f"Expected a 2-D (n, T) matrix, got shape {X.shape}")
    return X


def _as_steps(dt: Union[float, ArrayLike], T: int) -> NDArray:
    dt = np.asarray(dt, dtype=np.float64)
    if dt.ndim == 0:
        return np.full(T, float(dt))
    if dt.shape != (T,):
        raise ValueError(f"Expected {T} timesteps, got shape {dt.shape}")
    return dt
