# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2024-2026 Antoine COLLET

"""Provide the finite difference operators used by the solvers."""

# pylint: disable=C0103 # doesn't conform to snake_case naming style
from typing import Optional, Tuple, Union

import numpy as np
from scipy.sparse import csc_array, csc_matrix
from scipy.sparse.linalg import LinearOperator, SuperLU, spilu

from pyphysicochem.utils.grid import RectilinearGrid
from pyphysicochem.utils.types import NDArrayFloat


def gradient_cfd(param: NDArrayFloat, grid: RectilinearGrid, axis: int) -> NDArrayFloat:
    """
    Compute the gradient using second order centered differences.

    The gradient is only evaluated on the interior voxels of the grid.

    Parameters
    ----------
    param : NDArrayFloat
        Array of values with the shape of the grid (nx, ny, nz).
    grid : RectilinearGrid
        The grid on which the values are defined.
    axis: int
        Axis on which to compute the gradient (0=x, 1=y, 2=z).

    Returns
    -------
    grad : NDArrayFloat
        The gradient with shape (nx - 2, ny - 2, nz - 2).
    """
    return (
        param[grid.get_shifted_interior(axis, 1)]
        - param[grid.get_shifted_interior(axis, -1)]
    ) / (2.0 * grid.pipj(axis))


def gradient_upwind(
    param: NDArrayFloat, velocity: NDArrayFloat, grid: RectilinearGrid, axis: int
) -> NDArrayFloat:
    """
    Compute the gradient using first order upwind differences.

    A backward difference is used where the velocity is positive, a forward
    difference otherwise.

    Parameters
    ----------
    param : NDArrayFloat
        Array of values with the shape of the grid (nx, ny, nz).
    velocity : NDArrayFloat
        Velocity along the axis for the interior voxels, i.e. with shape
        (nx - 2, ny - 2, nz - 2).
    grid : RectilinearGrid
        The grid on which the values are defined.
    axis: int
        Axis on which to compute the gradient (0=x, 1=y, 2=z).

    Returns
    -------
    grad : NDArrayFloat
        The gradient with shape (nx - 2, ny - 2, nz - 2).
    """
    center = param[grid.interior]
    backward = (center - param[grid.get_shifted_interior(axis, -1)]) / grid.pipj(axis)
    forward = (param[grid.get_shifted_interior(axis, 1)] - center) / grid.pipj(axis)
    return np.where(velocity > 0.0, backward, forward)


def get_super_ilu_preconditioner(
    mat: Union[csc_array, csc_matrix], **kwargs
) -> Tuple[Optional[SuperLU], Optional[LinearOperator]]:
    """
    Get an incomplete LU preconditioner for the given sparse matrix.

    Returns (None, None) if the factor is exactly singular.
    """
    try:
        op = spilu(mat, **kwargs)
    except RuntimeError:  # The Factor is exactly singular
        return None, None

    def super_ilu(_x: NDArrayFloat) -> NDArrayFloat:
        return op.solve(_x)

    return op, LinearOperator(mat.shape, super_ilu)
