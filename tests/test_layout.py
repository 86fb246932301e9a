"""Tests for block layout resolution and validation."""

import itertools

import numpy as np
import pytest

from named_trajectories.core.errors import ConfigurationError
from named_trajectories.core.layout import resolve_layout, validate_components


def test_resolve_layout_state_and_control():
    """Two blocks with the second marked as control."""
    blocks = {"x": np.zeros((3, 5)), "u": np.zeros((2, 5))}

    layout, rows = resolve_layout(blocks, "u")

    assert layout.dim == 5
    assert layout.T == 5
    assert layout.names == ("x", "u")
    assert layout.controls_names == ("u",)
    assert dict(layout.dims) == {"x": 3, "u": 2, "states": 3, "controls": 2}
    assert list(layout.components["x"]) == [0, 1, 2]
    assert list(layout.components["u"]) == [3, 4]
    assert list(layout.components["states"]) == [0, 1, 2]
    assert list(layout.components["controls"]) == [3, 4]
    assert [r.shape for r in rows] == [(3, 5), (2, 5)]


def test_resolve_layout_vector_is_single_row():
    """1-D blocks become one row."""
    layout, rows = resolve_layout({"x": np.ones((2, 4)), "dt": np.ones(4)}, "dt")

    assert layout.dims["dt"] == 1
    assert list(layout.components["dt"]) == [2]
    assert rows[1].shape == (1, 4)


def test_resolve_layout_follows_declaration_order():
    """Ranges depend on mapping order, not on names."""
    layout, _ = resolve_layout({"u": np.zeros((2, 3)), "x": np.zeros((3, 3))}, "u")

    assert list(layout.components["u"]) == [0, 1]
    assert list(layout.components["x"]) == [2, 3, 4]
    assert list(layout.components["controls"]) == [0, 1]
    assert list(layout.components["states"]) == [2, 3, 4]


def test_interleaved_controls_aggregate():
    """Aggregates gather non-adjacent blocks in declaration order."""
    blocks = {
        "x": np.zeros((2, 3)),
        "u": np.zeros((1, 3)),
        "y": np.zeros((2, 3)),
        "du": np.zeros((1, 3)),
    }

    layout, _ = resolve_layout(blocks, ("u", "du"))

    assert list(layout.components["states"]) == [0, 1, 3, 4]
    assert list(layout.components["controls"]) == [2, 5]
    assert not layout.is_contiguous("states")
    assert layout.is_contiguous("x")
    assert layout.index_of("y") == slice(3, 5)


@pytest.mark.parametrize("sizes", [(1,), (1, 1), (4, 2, 3), (2, 5, 1, 1)])
def test_components_partition_rows(sizes):
    """Declared ranges cover 0..dim-1 exactly once."""
    names = [f"b{i}" for i in range(len(sizes))]
    blocks = {k: np.zeros((n, 6)) for k, n in zip(names, sizes)}

    layout, _ = resolve_layout(blocks, names[-1])

    flat = np.concatenate([layout.components[k] for k in layout.names])
    assert layout.dim == sum(sizes)
    assert np.array_equal(flat, np.arange(layout.dim))


@pytest.mark.parametrize("controls", [("b0",), ("b1", "b2"), ("b0", "b2")])
def test_states_and_controls_partition_rows(controls):
    """states and controls are disjoint and cover every row."""
    blocks = {"b0": np.zeros((2, 3)), "b1": np.zeros((3, 3)), "b2": np.zeros((1, 3))}

    layout, _ = resolve_layout(blocks, controls)

    states = set(layout.components["states"])
    ctrls = set(layout.components["controls"])
    assert layout.dims["states"] + layout.dims["controls"] == layout.dim
    assert states.isdisjoint(ctrls)
    assert states | ctrls == set(range(layout.dim))


def test_resolve_layout_rejects_empty_blocks():
    with pytest.raises(ConfigurationError):
        resolve_layout({}, "u")


@pytest.mark.parametrize("controls", [None, (), []])
def test_resolve_layout_requires_controls(controls):
    with pytest.raises(ConfigurationError):
        resolve_layout({"x": np.zeros((2, 3))}, controls)


def test_resolve_layout_rejects_unknown_control():
    with pytest.raises(ConfigurationError):
        resolve_layout({"x": np.zeros((2, 3)), "u": np.zeros((1, 3))}, "v")


def test_resolve_layout_rejects_column_mismatch():
    with pytest.raises(ConfigurationError):
        resolve_layout({"x": np.zeros((2, 3)), "u": np.zeros((1, 4))}, "u")


@pytest.mark.parametrize("name", ["states", "controls"])
def test_resolve_layout_rejects_reserved_names(name):
    with pytest.raises(ConfigurationError):
        resolve_layout({name: np.zeros((2, 3)), "u": np.zeros((1, 3))}, "u")


@pytest.mark.parametrize(
    "bad",
    [np.zeros((2, 0)), np.zeros((0, 3)), np.zeros((1, 2, 3)), np.array(1.0)],
)
def test_resolve_layout_rejects_malformed_block(bad):
    with pytest.raises(ConfigurationError):
        resolve_layout({"x": bad, "u": np.zeros((1, 3))}, "u")


def test_validate_components_accepts_ranges_and_lists():
    """Precomputed ranges in several forms."""
    layout = validate_components(
        {"x": range(0, 3), "u": [3, 4], "dt": np.array([5])}, dim=6, T=2, controls=("u", "dt")
    )

    assert layout.dims["x"] == 3
    assert layout.dims["controls"] == 3
    assert list(layout.components["controls"]) == [3, 4, 5]


def test_validate_components_does_not_touch_input():
    """Input index arrays stay writable."""
    idx = np.array([0, 1])
    validate_components({"x": idx, "u": np.array([2])}, dim=3, T=1, controls="u")

    assert idx.flags.writeable


def test_validate_components_rejects_overlap():
    with pytest.raises(ConfigurationError, match="overlap"):
        validate_components({"x": [0, 1, 2], "u": [2, 3]}, dim=4, T=1, controls="u")


@pytest.mark.parametrize(
    "components",
    [
        {"x": [0, 1], "u": [3]},        # gap
        {"x": [0, 1], "u": [2]},        # short of dim
        {"x": [1, 2, 3], "u": [0]},     # out of declaration order
        {"x": [0, 2, 1], "u": [3]},     # not increasing
        {"x": [0, 1, 2], "u": [3, 4]},  # past dim
    ],
)
def test_validate_components_rejects_non_partition(components):
    with pytest.raises(ConfigurationError):
        validate_components(components, dim=4, T=1, controls="u")


def test_validate_components_rejects_non_integer():
    with pytest.raises(ConfigurationError):
        validate_components({"x": [0.0, 1.0], "u": [2]}, dim=3, T=1, controls="u")


def test_layout_metadata_is_read_only():
    """Resolved mappings and index arrays cannot be modified."""
    layout, _ = resolve_layout({"x": np.zeros((2, 3)), "u": np.zeros((1, 3))}, "u")

    with pytest.raises(TypeError):
        layout.dims["x"] = 5
    with pytest.raises(ValueError):
        layout.components["x"][0] = 7


def test_every_block_permutation_partitions():
    """Partition holds for every declaration order of mixed block sizes."""
    sizes = {"a": 1, "b": 3, "c": 2}
    for order in itertools.permutations(sizes):
        blocks = {k: np.zeros((sizes[k], 2)) for k in order}
        layout, _ = resolve_layout(blocks, order[0])

        flat = np.concatenate([layout.components[k] for k in order])
        assert np.array_equal(flat, np.arange(6))
        assert layout.dims["controls"] == sizes[order[0]]
