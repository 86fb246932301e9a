"""Tests for column-wise finite differences."""

import numpy as np
import pytest

from named_trajectories.utils.finite_difference import (
    derivative,
    integral,
    times_from_steps,
)


def test_derivative_first_column_zero():
    """Column 0 has no predecessor and is zero."""
    X = np.array([[1.0, 2.0, 4.0], [0.0, -1.0, -3.0]])

    dX = derivative(X, 0.5)

    assert np.allclose(dX[:, 0], 0.0)
    assert np.allclose(dX[:, 1], [2.0, -2.0])
    assert np.allclose(dX[:, 2], [4.0, -4.0])


def test_derivative_per_column_steps():
    """Column t is divided by the step dt[t-1] that reaches it."""
    X = np.array([[0.0, 1.0, 3.0, 6.0]])
    dt = np.array([1.0, 2.0, 3.0, 9.0])

    dX = derivative(X, dt)

    assert np.allclose(dX, [[0.0, 1.0, 1.0, 1.0]])


def test_times_from_steps():
    assert np.allclose(times_from_steps([0.1, 0.2, 0.4, 0.8], 4), [0.0, 0.1, 0.3, 0.7])
    assert np.allclose(times_from_steps(0.5, 3), [0.0, 0.5, 1.0])


def test_uneven_steps_share_one_time_grid():
    """Derivative of time is 1 and the integral of 1 is time, for both rules."""
    dt = np.array([0.1, 0.2, 0.4, 0.8])
    t = times_from_steps(dt, 4)
    ones = np.ones((1, 4))

    assert np.allclose(derivative(t[None, :], dt)[0, 1:], 1.0)
    assert np.allclose(integral(ones, dt, method="trapezoid")[0], t)
    assert np.allclose(integral(ones, dt)[0], t)


def test_integral_rectangle():
    X = np.array([[1.0, 2.0, 3.0]])
    dt = np.array([0.5, 1.0, 2.0])

    I = integral(X, dt)

    assert np.allclose(I, [[0.0, 1.0, 4.0]])


def test_integral_inverts_derivative():
    """Rectangle rule undoes the backward difference after column 0."""
    X = np.random.randn(3, 6)
    dt = np.random.uniform(0.1, 1.0, 6)

    I = integral(X, dt)
    dI = derivative(I, dt)

    assert np.allclose(dI[:, 1:], X[:, 1:])


def test_integral_trapezoid():
    """Trapezoid rule is exact for linear data."""
    dt = np.array([0.5, 0.5, 1.0, 0.0])
    t = times_from_steps(dt, 4)
    X = np.vstack([t, 2.0 * t + 1.0])

    I = integral(X, dt, method="trapezoid")

    assert np.allclose(t, [0.0, 0.5, 1.0, 2.0])
    assert np.allclose(I[:, 0], 0.0)
    assert np.allclose(I[0], 0.5 * t ** 2)
    assert np.allclose(I[1], t ** 2 + t)


def test_integral_unknown_method():
    with pytest.raises(ValueError):
        integral(np.zeros((1, 3)), 1.0, method="simpson")


@pytest.mark.parametrize("func", [derivative, integral])
def test_rejects_bad_shapes(func):
    with pytest.raises(ValueError):
        func(np.zeros(3), 1.0)
    with pytest.raises(ValueError):
        func(np.zeros((2, 3)), np.ones(4))
