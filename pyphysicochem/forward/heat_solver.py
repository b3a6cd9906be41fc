# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2024-2026 Antoine COLLET

"""Provide the explicit heat transfer solver (conduction + convection + sources)."""

from __future__ import annotations

import logging
from typing import Iterable, Optional, Sequence, Union

import numpy as np

from pyphysicochem.forward.models import (
    BoundaryCondition,
    BoundaryType,
    BoundaryVariable,
    GridState,
    HeatParameters,
)
from pyphysicochem.utils import (
    HARMONIC_EPSILON,
    NDArrayFloat,
    NDArrayInt,
    RectilinearGrid,
    gradient_upwind,
    harmonic_mean,
    object_or_object_sequence_to_list,
)


def get_conductivity_field(
    grid: RectilinearGrid,
    heat_params: HeatParameters,
    conductivity: Optional[NDArrayFloat] = None,
) -> NDArrayFloat:
    """
    Return the thermal conductivity of each voxel in W/(m.K).

    The heterogeneous field is returned if given, otherwise the default
    conductivity of the parameters is applied uniformly.
    """
    if conductivity is None:
        return np.full(grid.shape, heat_params.conductivity, dtype=np.float64)
    return conductivity


def get_stable_timestep(
    grid: RectilinearGrid,
    heat_params: HeatParameters,
    conductivity: Optional[NDArrayFloat] = None,
    velocities: Optional[Sequence[NDArrayFloat]] = None,
) -> float:
    r"""
    Return the largest stable timestep of the explicit conduction-convection scheme.

    .. math::
        \Delta t_{stable} = \dfrac{f}{\alpha_{max} \displaystyle\sum_{d}
        \dfrac{1}{\Delta d^{2}} + \displaystyle\sum_{d}
        \dfrac{\max |v_{d}|}{\Delta d}}
        \quad \text{with} \quad \alpha_{max} = \dfrac{k_{max}}{\rho C_{p}}

    with :math:`f` the stability factor (0.5 at most). :math:`k_{max}` is the
    largest of the default conductivity and of the heterogeneous field. With
    :math:`f \leq 0.5`, the new temperature is a convex combination of its
    neighbours, so no new extremum can appear.

    Parameters
    ----------
    grid : RectilinearGrid
        The voxel grid.
    heat_params : HeatParameters
        Material properties.
    conductivity : Optional[NDArrayFloat]
        Heterogeneous thermal conductivity field in W/(m.K). The default is None.
    velocities : Optional[Sequence[NDArrayFloat]]
        Velocity fields (m/s) along x, y and z. None for a pure conduction
        limit. The default is None.
    """
    k_max = heat_params.conductivity
    if conductivity is not None and conductivity.size != 0:
        k_max = max(k_max, float(np.max(conductivity)))
    alpha_max = k_max / heat_params.volumetric_heat_capacity
    rate = alpha_max * sum(1.0 / grid.pipj(axis) ** 2 for axis in range(3))
    if velocities is not None:
        rate += sum(
            float(np.max(np.abs(velocity), initial=0.0)) / grid.pipj(axis)
            for axis, velocity in enumerate(velocities)
        )
    if rate <= 0.0:
        return np.inf
    return heat_params.stability_factor / rate


def apply_heat_boundary_conditions(
    grid: RectilinearGrid,
    temperature: NDArrayFloat,
    conductivity: NDArrayFloat,
    boundary_conditions: Iterable[BoundaryCondition],
    time: float,
) -> None:
    """
    Update the temperature of the domain faces in place.

    The faces first receive the temperature of the first interior layer (zero
    gradient). Then the active temperature conditions are applied in order, so
    that the last condition given for a face wins.

    Parameters
    ----------
    grid : RectilinearGrid
        The voxel grid.
    temperature : NDArrayFloat
        The temperature field (K) to update.
    conductivity : NDArrayFloat
        The conductivity field (W/(m.K)), required for the imposed fluxes.
    boundary_conditions : Iterable[BoundaryCondition]
        The boundary conditions. Conditions on other variables are ignored.
    time : float
        The time (s) at which the conditions are evaluated.
    """
    for axis in range(3):
        # no interior layer to copy from
        if grid.shape[axis] < 3:
            continue
        for is_max in (False, True):
            temperature[grid.get_face_slicer(axis, is_max)] = temperature[
                grid.get_face_slicer(axis, is_max, layer=1)
            ]

    for condition in boundary_conditions:
        if not condition.is_active:
            continue
        if (
            condition.kind == BoundaryType.FIXED_VALUE
            and condition.variable == BoundaryVariable.TEMPERATURE
        ):
            for axis, is_max in condition.get_faces():
                temperature[grid.get_face_slicer(axis, is_max)] = (
                    condition.evaluate_at_time(time)
                )
        elif condition.kind == BoundaryType.FIXED_FLUX and condition.variable in (
            BoundaryVariable.TEMPERATURE,
            BoundaryVariable.HEAT_FLUX,
        ):
            for axis, is_max in condition.get_faces():
                if grid.shape[axis] < 2:
                    continue
                face = grid.get_face_slicer(axis, is_max)
                inner = grid.get_face_slicer(axis, is_max, layer=1)
                k_face = harmonic_mean(conductivity[face], conductivity[inner])
                # inward flux q = k (T_face - T_inner) / d
                temperature[face] = temperature[inner] + condition.flux * grid.pipj(
                    axis
                ) / (k_face + HARMONIC_EPSILON)


def get_temperature_rate(
    state: GridState,
    heat_params: HeatParameters,
    conductivity: NDArrayFloat,
    time: float,
) -> NDArrayFloat:
    r"""
    Return the temperature rate of change of the interior voxels in K/s.

    The equation reads:

    .. math::
        \dfrac{\partial T}{\partial t} = \dfrac{1}{\rho C_{p}} \nabla \cdot
        (\overline{k} \nabla T) - \mathbf{v} \cdot \nabla T
        + \dfrac{Q}{\rho C_{p}}

    with :math:`\overline{k}` the harmonic mean of the conductivities at the
    voxel faces and an upwind discretization of the convective term.
    """
    grid = state.grid
    temp = state.temperature
    interior = grid.interior
    t_center = temp[interior]
    k_center = conductivity[interior]

    conduction = np.zeros(t_center.shape, dtype=np.float64)
    convection = np.zeros(t_center.shape, dtype=np.float64)
    for axis, velocity in enumerate(
        (state.velocity_x, state.velocity_y, state.velocity_z)
    ):
        fwd = grid.get_shifted_interior(axis, 1)
        bwd = grid.get_shifted_interior(axis, -1)
        k_fwd = harmonic_mean(k_center, conductivity[fwd])
        k_bwd = harmonic_mean(k_center, conductivity[bwd])
        conduction += (
            k_fwd * (temp[fwd] - t_center) - k_bwd * (t_center - temp[bwd])
        ) / grid.pipj(axis) ** 2

        v_center = velocity[interior]
        convection -= v_center * gradient_upwind(temp, v_center, grid, axis)

    rate = conduction / heat_params.volumetric_heat_capacity + convection

    if heat_params.heat_source is not None:
        ix, iy, iz = grid.indices[(slice(None),) + interior]
        rate += get_heat_source(heat_params, ix, iy, iz, time) / (
            heat_params.volumetric_heat_capacity
        )
    return rate


def get_heat_source(
    heat_params: HeatParameters,
    ix: NDArrayInt,
    iy: NDArrayInt,
    iz: NDArrayInt,
    time: float,
) -> NDArrayFloat:
    """
    Return the volumetric heat source (W/m3) at the given voxel indices.

    A vectorized source is called once with the index arrays, otherwise the
    source is evaluated voxel by voxel with scalar indices.
    """
    if heat_params.is_vectorized_source:
        source = heat_params.heat_source(ix, iy, iz, time)
    else:
        source = np.vectorize(
            lambda i, j, k: heat_params.heat_source(int(i), int(j), int(k), time),
            otypes=[np.float64],
        )(ix, iy, iz)
    return np.broadcast_to(np.asarray(source, dtype=np.float64), ix.shape)


class HeatTransferSolver:
    """
    Class advancing the temperature field of a :class:`GridState`.

    Attributes
    ----------
    heat_params: HeatParameters
        Material properties and heat source.
    conductivity: Optional[NDArrayFloat]
        Heterogeneous thermal conductivity field in W/(m.K). If None, the default
        conductivity of `heat_params` applies everywhere.
    logger: Optional[logging.Logger]
        Logger used to report the timestep reductions. None to disable.
    """

    def __init__(
        self,
        heat_params: Optional[HeatParameters] = None,
        conductivity: Optional[NDArrayFloat] = None,
        logger: Optional[logging.Logger] = logging.getLogger("HeatTransferSolver"),
    ) -> None:
        """Initialize the instance."""
        self.heat_params: HeatParameters = (
            heat_params if heat_params is not None else HeatParameters()
        )
        self.conductivity: Optional[NDArrayFloat] = (
            None if conductivity is None else np.asarray(conductivity, dtype=np.float64)
        )
        self.logger: Optional[logging.Logger] = logger
        # scratch buffer for the new temperature, reused between calls
        self._buffer: Optional[NDArrayFloat] = None

    def loginfo(self, msg: str) -> None:
        if self.logger is not None:
            self.logger.info(msg)

    def _get_buffer(self, state: GridState) -> NDArrayFloat:
        if self._buffer is None or self._buffer.shape != state.shape:
            self._buffer = np.empty(state.shape, dtype=np.float64)
        return self._buffer

    def solve_heat(
        self,
        state: GridState,
        dt: float,
        boundary_conditions: Union[
            BoundaryCondition, Iterable[BoundaryCondition]
        ] = (),
    ) -> float:
        """
        Advance the temperature of the state in place.

        The timestep is clamped to the stable timestep of the explicit scheme:
        a single sub-step is performed per call and the timestep actually used is
        returned. Callers needing an exact time accounting must call again.

        Parameters
        ----------
        state : GridState
            The state to update.
        dt : float
            The desired timestep in seconds.
        boundary_conditions : Union[BoundaryCondition, Iterable[BoundaryCondition]]
            The boundary conditions, evaluated at `state.current_time`.

        Returns
        -------
        float
            The timestep used in seconds.
        """
        grid = state.grid
        _bcs = object_or_object_sequence_to_list(boundary_conditions)
        conductivity = get_conductivity_field(
            grid, self.heat_params, self.conductivity
        )

        dt_stable = get_stable_timestep(
            grid,
            self.heat_params,
            self.conductivity,
            (state.velocity_x, state.velocity_y, state.velocity_z),
        )
        dt_actual = min(dt, dt_stable)
        if dt_actual < dt:
            self.loginfo(f"dt = {dt} s reduced to the stable sub-step {dt_actual} s")

        # The boundary values must be seen by the first interior layer
        apply_heat_boundary_conditions(
            grid, state.temperature, conductivity, _bcs, state.current_time
        )

        if grid.has_interior:
            buffer = self._get_buffer(state)
            buffer[:] = state.temperature
            buffer[grid.interior] += dt_actual * get_temperature_rate(
                state, self.heat_params, conductivity, state.current_time
            )
            state.temperature[:] = buffer

        apply_heat_boundary_conditions(
            grid, state.temperature, conductivity, _bcs, state.current_time
        )
        return dt_actual
