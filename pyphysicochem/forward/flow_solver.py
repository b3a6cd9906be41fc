# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2024-2026 Antoine COLLET

"""
Provide the multiphase (water / gas / vapor) Darcy flow solver.

Two paths are available:

- a single-phase Darcy path, used when the domain holds no gas nor vapor,
- a TOUGH-like multiphase path with van Genuchten-Mualem relative
  permeabilities, capillary pressure, gas buoyancy and an explicit upwind
  transport of the gas saturation.
"""

from __future__ import annotations

import logging
import warnings
from typing import Iterable, List, Optional, Tuple, Union

import numpy as np
from scipy.sparse import lil_array
from scipy.sparse.linalg import gmres

from pyphysicochem.forward.flow_utils import (
    get_capillary_pressure,
    get_gas_relative_permeability,
    get_mobility,
    get_water_relative_permeability,
)
from pyphysicochem.forward.models import (
    SMALL_NUMBER,
    BoundaryCondition,
    BoundaryType,
    BoundaryVariable,
    FlowParameters,
    FlowResults,
    GridState,
    PressureSolver,
)
from pyphysicochem.utils import (
    NDArrayBool,
    NDArrayFloat,
    RectilinearGrid,
    arithmetic_mean,
    get_super_ilu_preconditioner,
    gradient_cfd,
    indices_to_node_number,
    object_or_object_sequence_to_list,
)

# Pressure drop rate scale of the compressibility adjustment (Pa/s)
PRESSURE_FEEDBACK_SCALE = 1000.0
# Minimum total saturation for the bulk velocity to be updated
MIN_MOBILE_SATURATION = 0.01


def _along_axis(axis: int, _slice: slice) -> Tuple[slice, slice, slice]:
    """Return a slicer applying `_slice` along `axis` only."""
    _slicer: List[slice] = [slice(None), slice(None), slice(None)]
    _slicer[axis] = _slice
    return tuple(_slicer)  # type: ignore


def impose_pressure_boundary_conditions(
    state: GridState, boundary_conditions: Iterable[BoundaryCondition], time: float
) -> None:
    """Set the pressure of the faces with an active fixed value condition."""
    for condition in boundary_conditions:
        if (
            condition.is_active
            and condition.variable == BoundaryVariable.PRESSURE
            and condition.kind == BoundaryType.FIXED_VALUE
        ):
            for axis, is_max in condition.get_faces():
                state.pressure[state.grid.get_face_slicer(axis, is_max)] = (
                    condition.evaluate_at_time(time)
                )


def get_flowing_mask(state: GridState, fl_params: FlowParameters) -> NDArrayBool:
    """Return the interior voxels porous enough to let the fluids flow."""
    return state.porosity[state.grid.interior] >= fl_params.min_porosity


def solve_single_phase_darcy(state: GridState, fl_params: FlowParameters) -> None:
    r"""
    Update the velocities of the interior voxels with the Darcy law.

    The equation reads:

    .. math::
        \mathbf{v} = - \dfrac{k}{\mu_{w}} \left( \nabla P - \mathbf{F}
        - \rho_{w} \mathbf{g} \right)

    with :math:`\mathbf{g} = (0, 0, -g)`. Voxels with a porosity below the
    minimum porosity are left untouched.
    """
    grid = state.grid
    if not grid.has_interior:
        return
    interior = grid.interior
    mask = get_flowing_mask(state, fl_params)
    mobility = state.permeability[interior] / fl_params.water_viscosity
    weight = fl_params.water_density * fl_params.gravity

    for axis, (velocity, force) in enumerate(
        zip(
            (state.velocity_x, state.velocity_y, state.velocity_z),
            (state.force_x, state.force_y, state.force_z),
        )
    ):
        driving = gradient_cfd(state.pressure, grid, axis) - force[interior]
        if axis == 2:
            driving += weight
        velocity[interior] = np.where(mask, -mobility * driving, velocity[interior])


def get_multiphase_velocities(
    state: GridState, fl_params: FlowParameters
) -> FlowResults:
    r"""
    Compute the water and gas phase Darcy velocities of the interior voxels.

    The phase velocities read:

    .. math::
        \mathbf{v}_{w} = - \lambda_{w} \left( \nabla P - \mathbf{F}
        - \rho_{w} \mathbf{g} \right)

        \mathbf{v}_{g} = - \lambda_{g} \left( \nabla (P + P_{c}) - \mathbf{F}
        \right) + \lambda_{g} (\rho_{w} - \rho_{g}) g \mathbf{e}_{z}

    with :math:`\lambda = k k_{r} / \mu` the phase mobility. The last term is
    the buoyancy of the gas in water. Vapor moves with the gas phase, and the
    gas component flux is the gas phase flux weighted by the fraction of gas in
    the non-wetting phase.

    Returned arrays have the grid shape and are null outside the interior
    voxels and in the voxels below the minimum porosity.
    """
    grid = state.grid
    interior = grid.interior
    mask = get_flowing_mask(state, fl_params)

    s_w = state.liquid_saturation[interior]
    s_g = state.gas_saturation[interior]
    s_nw = s_g + state.vapor_saturation[interior]
    permeability = state.permeability[interior]

    lambda_w = get_mobility(
        permeability,
        get_water_relative_permeability(
            s_w, fl_params.residual_liquid_saturation, fl_params.vg_m
        ),
        fl_params.water_viscosity,
    )
    lambda_g = get_mobility(
        permeability,
        get_gas_relative_permeability(
            s_nw, fl_params.residual_gas_saturation, fl_params.vg_m
        ),
        fl_params.gas_viscosity,
    )
    capillary_pressure = get_capillary_pressure(
        state.liquid_saturation,
        fl_params.residual_liquid_saturation,
        fl_params.vg_alpha,
        fl_params.vg_m,
    )
    gas_fraction = np.where(
        s_nw > SMALL_NUMBER, s_g / np.maximum(s_nw, SMALL_NUMBER), 0.0
    )

    results = FlowResults(is_multiphase=True)
    for axis, force in enumerate((state.force_x, state.force_y, state.force_z)):
        grad_p = gradient_cfd(state.pressure, grid, axis) - force[interior]
        grad_pc = gradient_cfd(capillary_pressure, grid, axis)

        v_w = -lambda_w * grad_p
        v_g = -lambda_g * (grad_p + grad_pc)
        if axis == 2:
            v_w -= lambda_w * fl_params.water_density * fl_params.gravity
            v_g += (
                lambda_g
                * (fl_params.water_density - fl_params.gas_density)
                * fl_params.gravity
            )

        water_velocity = np.zeros(grid.shape, dtype=np.float64)
        gas_velocity = np.zeros(grid.shape, dtype=np.float64)
        gas_flux = np.zeros(grid.shape, dtype=np.float64)
        water_velocity[interior] = np.where(mask, v_w, 0.0)
        gas_velocity[interior] = np.where(mask, v_g, 0.0)
        gas_flux[interior] = np.where(mask, v_g * gas_fraction, 0.0)
        results.water_velocity.append(water_velocity)
        results.gas_velocity.append(gas_velocity)
        results.gas_flux.append(gas_flux)
    return results


def update_bulk_velocity(
    state: GridState, results: FlowResults, fl_params: FlowParameters
) -> None:
    """
    Set the velocities to the saturation weighted mean of the phase velocities.

    Voxels whose total mobile saturation is below 0.01, or whose porosity is
    below the minimum porosity, are left unchanged.
    """
    grid = state.grid
    interior = grid.interior
    s_w = state.liquid_saturation[interior]
    s_nw = state.gas_saturation[interior] + state.vapor_saturation[interior]
    s_tot = s_w + s_nw
    is_updated = np.logical_and(
        s_tot > MIN_MOBILE_SATURATION, get_flowing_mask(state, fl_params)
    )
    _s_tot = np.where(is_updated, s_tot, 1.0)
    for velocity, v_w, v_g in zip(
        (state.velocity_x, state.velocity_y, state.velocity_z),
        results.water_velocity,
        results.gas_velocity,
    ):
        velocity[interior] = np.where(
            is_updated,
            (s_w * v_w[interior] + s_nw * v_g[interior]) / _s_tot,
            velocity[interior],
        )


def get_upwind_flux_divergence(
    grid: RectilinearGrid, flux: List[NDArrayFloat]
) -> NDArrayFloat:
    """
    Return the divergence of the cell centered fluxes on the interior voxels.

    The flux at a face between two voxels is the flux of the upstream voxel,
    the flow direction at the face being given by the mean of the two fluxes.

    Parameters
    ----------
    grid : RectilinearGrid
        The voxel grid.
    flux : List[NDArrayFloat]
        Cell centered fluxes (x, y, z) with the grid shape, in m/s.

    Returns
    -------
    NDArrayFloat
        The divergence (1/s) with shape (nx - 2, ny - 2, nz - 2).
    """
    div = np.zeros(grid.shape, dtype=np.float64)
    for axis, _flux in enumerate(flux):
        q_owner = _flux[grid.get_slicer_forward(axis)]
        q_neigh = _flux[grid.get_slicer_backward(axis)]
        # face i holds the flux between voxels i and i + 1
        face_flux = np.where(
            arithmetic_mean(q_owner, q_neigh) > 0.0, q_owner, q_neigh
        )
        div[grid.get_slicer_backward(axis, shift=-1)] += (
            face_flux[_along_axis(axis, slice(1, None))]
            - face_flux[_along_axis(axis, slice(None, -1))]
        ) / grid.pipj(axis)
    return div[grid.interior]


def transport_gas(
    state: GridState, gas_flux: List[NDArrayFloat], dt: float, fl_params: FlowParameters
) -> None:
    r"""
    Update the gas saturation of the interior voxels with an upwind scheme.

    The equation reads:

    .. math::
        S_{g}^{n+1} = S_{g}^{n} - \dfrac{\Delta t}{\phi} \nabla \cdot
        \mathbf{q}_{g}

    and the result is clamped to [0, 1]. Voxels below the minimum porosity are
    not updated.
    """
    grid = state.grid
    interior = grid.interior
    mask = get_flowing_mask(state, fl_params)
    s_g = state.gas_saturation[interior]
    porosity = np.where(mask, state.porosity[interior], 1.0)
    s_g_new = np.clip(
        s_g - dt * get_upwind_flux_divergence(grid, gas_flux) / porosity, 0.0, 1.0
    )
    state.gas_saturation[interior] = np.where(mask, s_g_new, s_g)


def apply_gas_boundary_conditions(
    state: GridState, boundary_conditions: Iterable[BoundaryCondition], time: float
) -> None:
    """
    Update the gas saturation of the domain faces in place.

    Lateral and bottom faces have a null gradient while the gas freely escapes
    at the top of the domain (null saturation). Active concentration conditions
    of a gas-like species (Gas, NCG, Methane) then override the bottom and top
    faces. These conditions only set face values: the gas flux through the
    faces is null, so they do not inject gas into the domain.
    """
    grid = state.grid
    s_g = state.gas_saturation
    for axis, is_max in ((0, False), (0, True), (1, False), (1, True), (2, False)):
        if grid.shape[axis] < 3:
            continue
        s_g[grid.get_face_slicer(axis, is_max)] = s_g[
            grid.get_face_slicer(axis, is_max, layer=1)
        ]
    if grid.nz > 1:
        s_g[grid.get_face_slicer(2, True)] = 0.0

    for condition in boundary_conditions:
        if not condition.is_active or not condition.is_gas_species():
            continue
        for axis, is_max in condition.get_faces():
            if axis != 2:
                continue
            s_g[grid.get_face_slicer(axis, is_max)] = condition.evaluate_at_time(time)


def close_saturations(state: GridState) -> None:
    """
    Enforce the sum of the liquid, gas and vapor saturations to be one.

    Over-saturated voxels are rescaled proportionally while the deficit of
    under-saturated voxels is given to the liquid phase. Only the sum is
    guaranteed: the mass of each phase is not conserved.
    """
    np.maximum(state.liquid_saturation, 0.0, out=state.liquid_saturation)
    np.maximum(state.gas_saturation, 0.0, out=state.gas_saturation)
    np.maximum(state.vapor_saturation, 0.0, out=state.vapor_saturation)

    total = state.get_saturation_sum()
    is_over = total > 1.0
    _total = np.where(is_over, total, 1.0)
    for saturation in (
        state.liquid_saturation,
        state.gas_saturation,
        state.vapor_saturation,
    ):
        saturation /= _total
    state.liquid_saturation += np.where(total < 1.0, 1.0 - total, 0.0)


def apply_gas_compressibility(
    state: GridState, dt: float, fl_params: FlowParameters
) -> None:
    r"""
    Lower the pressure of the gas-rich interior voxels.

    This is a simplified isothermal compressibility adjustment, not a solved
    pressure equation:

    .. math::
        \Delta P = - S_{g} \times 1000 \times \Delta t \times c_{g}
    """
    interior = state.grid.interior
    s_g = state.gas_saturation[interior]
    state.pressure[interior] -= np.where(
        s_g > SMALL_NUMBER,
        s_g * PRESSURE_FEEDBACK_SCALE * dt * fl_params.gas_compressibility,
        0.0,
    )


def solve_pressure_poisson(state: GridState, fl_params: FlowParameters) -> int:
    r"""
    Solve the pressure Laplace equation on the interior voxels.

    .. math::
        \nabla^{2} P = 0

    The face values of the pressure are used as Dirichlet conditions. The
    system is solved with GMRES and an incomplete LU preconditioner.

    Returns
    -------
    int
        The GMRES exit code (0 on success).
    """
    grid = state.grid
    if not grid.has_interior:
        return 0
    interior = grid.interior
    nix, niy, niz = state.pressure[interior].shape
    n_unknowns = nix * niy * niz

    ix, iy, iz = np.meshgrid(range(nix), range(niy), range(niz), indexing="ij")
    node_ids = np.asarray(
        indices_to_node_number(ix, nx=nix, iy=iy, ny=niy, iz=iz), dtype=np.int64
    )

    q_next = lil_array((n_unknowns, n_unknowns), dtype=np.float64)
    rhs = np.zeros((nix, niy, niz), dtype=np.float64)
    diag = np.zeros((nix, niy, niz), dtype=np.float64)
    for axis in range(3):
        inv_d2 = 1.0 / grid.pipj(axis) ** 2
        diag += 2.0 * inv_d2
        n_axis = (nix, niy, niz)[axis]
        if n_axis > 1:
            idc_owner = node_ids[_along_axis(axis, slice(0, n_axis - 1))].ravel()
            idc_neigh = node_ids[_along_axis(axis, slice(1, n_axis))].ravel()
            q_next[idc_owner, idc_neigh] = -inv_d2
            q_next[idc_neigh, idc_owner] = -inv_d2
        # Dirichlet contributions of the faces
        other = list(interior)
        other[axis] = slice(0, 1)
        rhs[_along_axis(axis, slice(0, 1))] += state.pressure[tuple(other)] * inv_d2
        other[axis] = slice(grid.shape[axis] - 1, grid.shape[axis])
        rhs[_along_axis(axis, slice(n_axis - 1, n_axis))] += (
            state.pressure[tuple(other)] * inv_d2
        )
    q_next[node_ids.ravel(), node_ids.ravel()] = diag.ravel()

    _rhs = np.zeros(n_unknowns, dtype=np.float64)
    _rhs[node_ids.ravel()] = rhs.ravel()
    x0 = np.zeros(n_unknowns, dtype=np.float64)
    x0[node_ids.ravel()] = state.pressure[interior].ravel()

    mat = q_next.tocsc()
    super_ilu, preconditioner = get_super_ilu_preconditioner(
        mat, drop_tol=1e-10, fill_factor=100
    )
    if super_ilu is None:
        warnings.warn("SuperILU: the pressure matrix is singular!")
    res, exit_code = gmres(
        mat,
        _rhs,
        x0=x0,
        M=preconditioner,
        rtol=fl_params.rtol,
        maxiter=1000,
        restart=20,
    )
    if exit_code != 0:
        warnings.warn(
            f"The pressure solve did not converge (gmres exit code = {exit_code})!"
        )
    state.pressure[interior] = res[node_ids]
    return exit_code


class MultiphaseFlowSolver:
    """
    Class advancing the velocities and phase saturations of a :class:`GridState`.

    Attributes
    ----------
    fl_params: FlowParameters
        Fluid properties and constitutive law parameters.
    logger: Optional[logging.Logger]
        Logger used to report the selected flow path. None to disable.
    last_results: Optional[FlowResults]
        Phase velocities and gas fluxes of the last call.
    """

    def __init__(
        self,
        fl_params: Optional[FlowParameters] = None,
        logger: Optional[logging.Logger] = logging.getLogger("MultiphaseFlowSolver"),
    ) -> None:
        """Initialize the instance."""
        self.fl_params: FlowParameters = (
            fl_params if fl_params is not None else FlowParameters()
        )
        self.logger: Optional[logging.Logger] = logger
        self.last_results: Optional[FlowResults] = None

    def loginfo(self, msg: str) -> None:
        if self.logger is not None:
            self.logger.info(msg)

    def solve_flow(
        self,
        state: GridState,
        dt: float,
        boundary_conditions: Union[
            BoundaryCondition, Iterable[BoundaryCondition]
        ] = (),
    ) -> FlowResults:
        """
        Advance the velocities and the saturations of the state in place.

        The multiphase path is used as soon as one voxel holds some gas or vapor,
        the single-phase Darcy path otherwise. In both cases, the saturations sum
        to one on return.

        Parameters
        ----------
        state : GridState
            The state to update.
        dt : float
            The timestep in seconds.
        boundary_conditions : Union[BoundaryCondition, Iterable[BoundaryCondition]]
            The boundary conditions, evaluated at `state.current_time`.

        Returns
        -------
        FlowResults
            The phase velocities and gas fluxes (empty for the single-phase path).
        """
        _bcs = object_or_object_sequence_to_list(boundary_conditions)
        time = state.current_time
        impose_pressure_boundary_conditions(state, _bcs, time)

        if not state.has_gas_phase():
            self.loginfo("No gas phase: single-phase Darcy flow.")
            solve_single_phase_darcy(state, self.fl_params)
            close_saturations(state)
            self.last_results = FlowResults(is_multiphase=False)
            return self.last_results

        self.loginfo("Gas phase detected: multiphase flow.")
        if state.grid.has_interior:
            results = get_multiphase_velocities(state, self.fl_params)
            update_bulk_velocity(state, results, self.fl_params)
            transport_gas(state, results.gas_flux, dt, self.fl_params)
        else:
            results = FlowResults(is_multiphase=True)
        apply_gas_boundary_conditions(state, _bcs, time)
        close_saturations(state)

        if self.fl_params.pressure_solver == PressureSolver.POISSON:
            solve_pressure_poisson(state, self.fl_params)
        else:
            apply_gas_compressibility(state, dt, self.fl_params)

        self.last_results = results
        return results
