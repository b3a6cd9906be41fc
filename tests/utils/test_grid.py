"""Tests for the rectilinear voxel grid."""

from contextlib import nullcontext as does_not_raise

import numpy as np
import pytest
from pyphysicochem.utils import RectilinearGrid, indices_to_node_number


@pytest.mark.parametrize(
    "ix, iy, iz, expected", [(0, 0, 0, 0), (2, 0, 0, 2), (1, 2, 0, 9), (3, 2, 1, 23)]
)
def test_indices_to_node_number(ix, iy, iz, expected) -> None:
    assert indices_to_node_number(ix, nx=4, iy=iy, ny=3, iz=iz) == expected


@pytest.mark.parametrize(
    "kwargs, expected_exception",
    [
        ({}, does_not_raise()),
        ({"dx": 0.5, "dy": 2.0, "dz": 0.1, "nx": 3}, does_not_raise()),
        ({"dx": 0.0}, pytest.raises(ValueError, match="dx should be > 0!")),
        ({"dz": -1.0}, pytest.raises(ValueError, match="dz should be > 0!")),
        ({"nx": 0}, pytest.raises(ValueError, match="nx should be >= 1!")),
        ({"ny": -2}, pytest.raises(ValueError, match="ny should be >= 1!")),
    ],
)
def test_grid_init(kwargs, expected_exception) -> None:
    with expected_exception:
        RectilinearGrid(**kwargs)


def test_grid_properties() -> None:
    grid = RectilinearGrid(dx=0.5, dy=2.0, dz=0.1, nx=4, ny=3, nz=2)
    assert grid.shape == (4, 3, 2)
    assert grid.spacing == (0.5, 2.0, 0.1)
    assert grid.n_grid_cells == 24
    np.testing.assert_allclose(grid.grid_cell_volume, 0.1)
    assert grid.pipj(1) == 2.0
    assert not grid.has_interior

    with pytest.raises(ValueError, match=r"`axis` should be among \[0, 1, 2\]"):
        grid.pipj(3)


def test_interior_slicers() -> None:
    grid = RectilinearGrid(nx=5, ny=4, nz=3)
    assert grid.has_interior
    arr = np.arange(grid.n_grid_cells).reshape(grid.shape)

    assert arr[grid.interior].shape == (3, 2, 1)
    np.testing.assert_array_equal(
        arr[grid.get_shifted_interior(0, 1)], arr[2:5, 1:3, 1:2]
    )
    np.testing.assert_array_equal(
        arr[grid.get_shifted_interior(2, -1)], arr[1:4, 1:3, 0:1]
    )
    with pytest.raises(ValueError, match=r"axis should be in \[0, 1, 2\]"):
        grid.get_shifted_interior(4, 1)


def test_forward_backward_slicers() -> None:
    grid = RectilinearGrid(nx=5, ny=4, nz=3)
    arr = np.arange(grid.n_grid_cells).reshape(grid.shape)

    np.testing.assert_array_equal(arr[grid.get_slicer_forward(0)], arr[:4])
    np.testing.assert_array_equal(arr[grid.get_slicer_backward(0)], arr[1:])
    np.testing.assert_array_equal(
        arr[grid.get_slicer_backward(1, shift=-1)], arr[:, 1:3]
    )
    np.testing.assert_array_equal(arr[grid.get_slicer_forward(2)], arr[:, :, :2])


@pytest.mark.parametrize(
    "axis, is_max, layer, expected_slicer",
    [
        (0, False, 0, np.s_[0:1, :, :]),
        (0, True, 0, np.s_[4:5, :, :]),
        (0, True, 1, np.s_[3:4, :, :]),
        (1, False, 1, np.s_[:, 1:2, :]),
        (2, True, 0, np.s_[:, :, 2:3]),
    ],
)
def test_get_face_slicer(axis, is_max, layer, expected_slicer) -> None:
    grid = RectilinearGrid(nx=5, ny=4, nz=3)
    arr = np.arange(grid.n_grid_cells).reshape(grid.shape)
    np.testing.assert_array_equal(
        arr[grid.get_face_slicer(axis, is_max, layer)], arr[expected_slicer]
    )


def test_indices() -> None:
    grid = RectilinearGrid(nx=4, ny=3, nz=2)
    indices = grid.indices
    assert indices.shape == (3, 4, 3, 2)
    assert indices[0][2, 1, 0] == 2
    assert indices[1][2, 1, 0] == 1
    assert indices[2][3, 2, 1] == 1


@pytest.mark.parametrize(
    "position, expected",
    [
        ((0.0, 0.0, 0.0), (0, 0, 0)),
        ((2.5, 1.2, 4.99), (2, 1, 4)),
        # outside of the grid: clamped
        ((-3.0, 100.0, 5.0), (0, 4, 4)),
        ((11.0, 11.0, -11.0), (4, 4, 0)),
    ],
)
def test_get_nearest_cell_indices(position, expected) -> None:
    grid = RectilinearGrid(dx=1.0, dy=1.0, dz=1.0, nx=5, ny=5, nz=5)
    assert grid.get_nearest_cell_indices(position) == expected


def test_get_nearest_cell_indices_with_origin() -> None:
    grid = RectilinearGrid(
        x0=10.0, y0=-5.0, z0=2.0, dx=0.5, dy=1.0, dz=2.0, nx=4, ny=6, nz=3
    )
    assert grid.get_nearest_cell_indices((11.2, -0.5, 5.0)) == (2, 4, 1)
