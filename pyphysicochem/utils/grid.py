# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2024-2026 Antoine COLLET

"""
Provide functions to work with regular voxel grids.

All fields of a simulation share the shape (nx, ny, nz) of a
:class:`RectilinearGrid`. The solvers only update the interior voxels, the
outermost layer of voxels on each face (the halo) holding the boundary values.
"""

# pylint: disable=C0103  # Do not conform to snake-case naming style
from typing import List, Tuple

import numpy as np

from pyphysicochem.utils.types import Int, NDArrayInt, Point3D

Slicer = Tuple[slice, slice, slice]


def indices_to_node_number(
    ix: Int,
    nx: int = 1,
    iy: Int = 0,
    ny: int = 1,
    iz: Int = 0,
) -> Int:
    """
    Convert indices (ix, iy, iz) to a node-number.

    Note
    ----
    Node numbering start at zero and follows the fortran order (x first).

    Parameters
    ----------
    ix : int
        Index on the x-axis.
    nx : int, optional
        Number of grid cells on the x-axis. The default is 1.
    iy : int, optional
        Index on the y-axis. The default is 0.
    ny : int, optional
        Number of grid cells on the y-axis. The default is 1.
    iz : int, optional
        Index on the z-axis. The default is 0.

    Returns
    -------
    int
        The node number.

    """
    return np.array(ix) + (np.array(iy) * nx) + (np.array(iz) * ny * nx)


class RectilinearGrid:
    """
    Represent a rectilinear 3D voxel grid.

    Attributes
    ----------
    x0 : float
        Grid origin x coordinate (smallest value, not centroid) in meters.
    y0 : float
        Grid origin y coordinate (smallest value, not centroid) in meters.
    z0 : float
        Grid origin z coordinate (smallest value, not centroid) in meters.
    dx : float
        Mesh size along the x axis in meters.
    dy : float
        Mesh size along the y axis in meters.
    dz : float
        Mesh size along the z axis in meters. The z axis points upward.
    """

    def __init__(
        self,
        x0: float = 0.0,
        y0: float = 0.0,
        z0: float = 0.0,
        dx: float = 0.01,
        dy: float = 0.01,
        dz: float = 0.01,
        nx: int = 1,
        ny: int = 1,
        nz: int = 1,
    ) -> None:
        """Initialize the instance."""
        self.x0: float = x0
        self.y0: float = y0
        self.z0: float = z0
        for name, value in zip(("dx", "dy", "dz"), (dx, dy, dz)):
            if value <= 0.0:
                raise ValueError(f"{name} should be > 0!")
        self.dx: float = dx
        self.dy: float = dy
        self.dz: float = dz
        self._nx = 1
        self._ny = 1
        self._nz = 1
        self.nx = int(nx)
        self.ny = int(ny)
        self.nz = int(nz)

    @property
    def shape(self) -> Tuple[int, int, int]:
        """Return the shape of the grid."""
        return (self.nx, self.ny, self.nz)

    @property
    def nx(self) -> int:
        """Return the number of grid cells along the x axis."""
        return self._nx

    @nx.setter
    def nx(self, value: int) -> None:
        if value < 1:
            raise (ValueError("nx should be >= 1!"))
        self._nx = value

    @property
    def ny(self) -> int:
        """Return the number of grid cells along the y axis."""
        return self._ny

    @ny.setter
    def ny(self, value: int) -> None:
        if value < 1:
            raise (ValueError("ny should be >= 1!"))
        self._ny = value

    @property
    def nz(self) -> int:
        """Return the number of grid cells along the z axis."""
        return self._nz

    @nz.setter
    def nz(self, value: int) -> None:
        if value < 1:
            raise (ValueError("nz should be >= 1!"))
        self._nz = value

    @property
    def spacing(self) -> Tuple[float, float, float]:
        """Return the mesh sizes (dx, dy, dz) in meters."""
        return (self.dx, self.dy, self.dz)

    def pipj(self, axis: int) -> float:
        """Return the distance between two neighbouring voxel centers along axis."""
        if axis == 0:
            return self.dx
        if axis == 1:
            return self.dy
        if axis == 2:
            return self.dz
        raise ValueError("`axis` should be among [0, 1, 2]")

    @property
    def n_grid_cells(self) -> int:
        """Return the number of grid cells."""
        return self.nx * self.ny * self.nz

    @property
    def grid_cell_volume(self) -> float:
        """Return the volume of a voxel in m3."""
        return self.dx * self.dy * self.dz

    @property
    def has_interior(self) -> bool:
        """Whether at least one voxel is not on the domain boundaries."""
        return min(self.shape) >= 3

    @property
    def interior(self) -> Slicer:
        """Return the slicer of the voxels excluding a one-cell halo on each face."""
        return (slice(1, self.nx - 1), slice(1, self.ny - 1), slice(1, self.nz - 1))

    def get_shifted_interior(self, axis: int, shift: int) -> Slicer:
        """
        Return the interior slicer shifted by `shift` voxels along `axis`.

        With shift=1 (resp. -1), the slicer selects the forward (resp. backward)
        neighbour of each interior voxel.
        """
        if axis not in (0, 1, 2):
            raise ValueError("axis should be in [0, 1, 2]")
        _slicer = list(self.interior)
        _slicer[axis] = slice(1 + shift, self.shape[axis] - 1 + shift)
        return tuple(_slicer)  # type: ignore

    def get_slicer_forward(self, axis: int, shift: int = 0) -> Slicer:
        if axis == 0:
            return (slice(0, self.nx - 1 + shift), slice(None), slice(None))
        if axis == 1:
            return (slice(None), slice(0, self.ny - 1 + shift), slice(None))
        if axis == 2:
            return (slice(None), slice(None), slice(0, self.nz - 1 + shift))
        raise ValueError("axis should be in [0, 1, 2]")

    def get_slicer_backward(self, axis: int, shift: int = 0) -> Slicer:
        if axis == 0:
            return (slice(1, self.nx + shift), slice(None), slice(None))
        if axis == 1:
            return (slice(None), slice(1, self.ny + shift), slice(None))
        if axis == 2:
            return (slice(None), slice(None), slice(1, self.nz + shift))
        raise ValueError("axis should be in [0, 1, 2]")

    def get_face_slicer(self, axis: int, is_max: bool, layer: int = 0) -> Slicer:
        """
        Return the slicer of one layer of voxels parallel to a domain face.

        Parameters
        ----------
        axis: int
            Axis normal to the face (0=x, 1=y, 2=z).
        is_max: bool
            Whether the face is on the max side of the axis.
        layer: int
            Distance (in voxels) of the layer from the face. 0 is the face itself.
        """
        if axis not in (0, 1, 2):
            raise ValueError("axis should be in [0, 1, 2]")
        index = self.shape[axis] - 1 - layer if is_max else layer
        _slicer: List[slice] = [slice(None), slice(None), slice(None)]
        _slicer[axis] = slice(index, index + 1)
        return tuple(_slicer)  # type: ignore

    @property
    def indices(self) -> NDArrayInt:
        """Return the grid indices with shape (3, nx, ny, nz)."""
        return np.asarray(
            np.meshgrid(range(self.nx), range(self.ny), range(self.nz), indexing="ij"),
            dtype=np.int64,
        )

    def get_nearest_cell_indices(self, position: Point3D) -> Tuple[int, int, int]:
        """
        Return the indices of the voxel containing the given position.

        The coordinates are simply scaled by the mesh size and truncated, then
        clamped into the grid so that points outside the domain are mapped to the
        closest border voxel.
        """
        indices = []
        for coord, origin, step, n in zip(
            position, (self.x0, self.y0, self.z0), self.spacing, self.shape
        ):
            indices.append(int(np.clip(np.floor((coord - origin) / step), 0, n - 1)))
        return indices[0], indices[1], indices[2]
