# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2024-2026 Antoine COLLET

"""Provide the data model shared by the multiphysics solvers.

Note :
- The grid is composed of regular voxels (see :class:`RectilinearGrid`).
- All fields are float64 arrays with the grid shape (nx, ny, nz).
- The z axis points upward: ZMIN is the bottom of the domain and ZMAX its top.
"""

from __future__ import annotations

import copy
import math
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

import numpy as np

from pyphysicochem.utils import (
    FieldLike,
    NDArrayFloat,
    NDArrayInt,
    Point3D,
    RectilinearGrid,
    StrEnum,
)

GRAVITY = 9.81  # m/s2
GAS_CONSTANT = 8.314  # J/(mol.K)
SMALL_NUMBER = 1e-10
MIN_POROSITY = 0.01
# Large but finite capillary pressure of a fully dry medium (Pa)
DRY_CAPILLARY_PRESSURE = 1e8
# Species names whose concentration boundary conditions drive the gas saturation
GAS_SPECIES_NAMES = ("gas", "ncg", "methane")

# Signature of the heat sources: (ix, iy, iz, time) -> W/m3, with scalar indices
# or, for the vectorized sources, index arrays
HeatSource = Callable[[NDArrayInt, NDArrayInt, NDArrayInt, float], FieldLike]


class BoundaryLocation(StrEnum):
    XMIN = "XMin"
    XMAX = "XMax"
    YMIN = "YMin"
    YMAX = "YMax"
    ZMIN = "ZMin"
    ZMAX = "ZMax"
    ALL_FACES = "AllFaces"


class BoundaryVariable(StrEnum):
    TEMPERATURE = "Temperature"
    PRESSURE = "Pressure"
    VELOCITY = "Velocity"
    CONCENTRATION = "Concentration"
    HEAT_FLUX = "HeatFlux"
    MASS_FLUX = "MassFlux"


class BoundaryType(StrEnum):
    FIXED_VALUE = "FixedValue"
    FIXED_FLUX = "FixedFlux"
    ZERO_FLUX = "ZeroFlux"
    OUTLET = "Outlet"


class PressureSolver(StrEnum):
    """How the pressure is updated at the end of a multiphase flow step."""

    COMPRESSIBILITY = "compressibility"
    POISSON = "poisson"


# (axis, is_max) of each face
FACE_AXIS: Dict[BoundaryLocation, Tuple[int, bool]] = {
    BoundaryLocation.XMIN: (0, False),
    BoundaryLocation.XMAX: (0, True),
    BoundaryLocation.YMIN: (1, False),
    BoundaryLocation.YMAX: (1, True),
    BoundaryLocation.ZMIN: (2, False),
    BoundaryLocation.ZMAX: (2, True),
}


@dataclass
class BoundaryCondition:
    """
    Represent a boundary condition applied on a face of the domain.

    Parameters
    ----------
    location: BoundaryLocation
        The face(s) over which the condition applies.
    variable: BoundaryVariable
        The physical variable constrained by the condition.
    kind: BoundaryType
        The type of condition. The default is FIXED_VALUE (Dirichlet).
    value: float
        The value imposed for a fixed value condition.
    flux: float
        The flux imposed for a fixed flux condition (positive when entering the
        domain).
    species: Optional[str]
        Name of the species for a concentration condition.
    is_active: bool
        Only active conditions are applied. The default is True.
    time_function: Optional[Callable[[float], float]]
        If given, the imposed value is `time_function(t)` instead of `value`.
    name: str
        Name of the condition.
    """

    location: BoundaryLocation
    variable: BoundaryVariable
    kind: BoundaryType = BoundaryType.FIXED_VALUE
    value: float = 0.0
    flux: float = 0.0
    species: Optional[str] = None
    is_active: bool = True
    time_function: Optional[Callable[[float], float]] = None
    name: str = ""

    def __post_init__(self) -> None:
        self.location = BoundaryLocation(self.location)
        self.variable = BoundaryVariable(self.variable)
        self.kind = BoundaryType(self.kind)
        if self.variable == BoundaryVariable.CONCENTRATION and not self.species:
            raise ValueError("A concentration boundary condition requires a species!")

    @property
    def is_time_dependent(self) -> bool:
        """Whether the imposed value varies with time."""
        return self.time_function is not None

    def evaluate_at_time(self, time: float) -> float:
        """Return the value imposed at the given time (s)."""
        if self.time_function is None:
            return self.value
        return float(self.time_function(time))

    def get_faces(self) -> List[Tuple[int, bool]]:
        """Return the (axis, is_max) of the face(s) covered by the condition."""
        if self.location == BoundaryLocation.ALL_FACES:
            return list(FACE_AXIS.values())
        return [FACE_AXIS[self.location]]

    def is_gas_species(self) -> bool:
        """Whether the condition constrains a gas-like species."""
        return (
            self.variable == BoundaryVariable.CONCENTRATION
            and self.species is not None
            and self.species.lower() in GAS_SPECIES_NAMES
        )


@dataclass
class Nucleus:
    """
    Represent a mineral nucleus growing in the grid.

    Parameters
    ----------
    id: int
        Identifier of the nucleus (its rank of creation).
    position: Point3D
        Coordinates (x, y, z) of the nucleus in meters.
    radius: float
        Radius of the nucleus in meters.
    mineral_type: str
        Name of the mineral.
    growth_rate: float
        Linear growth rate of the radius in m/s.
    birth_time: float
        Simulation time at which the nucleus appeared, in seconds.
    """

    id: int
    position: Point3D
    radius: float
    mineral_type: str
    growth_rate: float
    birth_time: float

    @property
    def volume(self) -> float:
        """Return the volume of the nucleus in m3."""
        return 4.0 / 3.0 * math.pi * self.radius**3


class NucleationSite:
    """
    Define a location where a mineral can nucleate.

    Sites are static inputs of the nucleation solver: they are never modified by
    the solvers.

    Attributes
    ----------
    name: str
        Name of the instance.
    position: Point3D
        Coordinates (x, y, z) of the site in meters.
    mineral_type: str
        Name of the mineral nucleating at the site.
    nucleation_rate: float
        Pre-exponential nucleation rate in nuclei/s.
    initial_radius: float
        Radius of the nuclei at birth in meters. The default is 1e-6 m.
    activation_energy: float
        Activation energy in J/mol. The default is 5e4 J/mol.
    critical_supersaturation: float
        Supersaturation below which no nucleation occurs. The default is 1.5.
    is_active: bool
        Inactive sites are skipped by the solver. The default is True.
    """

    __slots__ = [
        "name",
        "position",
        "mineral_type",
        "nucleation_rate",
        "initial_radius",
        "activation_energy",
        "critical_supersaturation",
        "is_active",
    ]

    def __init__(
        self,
        name: str,
        position: Point3D,
        mineral_type: str,
        nucleation_rate: float = 1.0,
        initial_radius: float = 1e-6,
        activation_energy: float = 5e4,
        critical_supersaturation: float = 1.5,
        is_active: bool = True,
    ) -> None:
        """Initialize the instance."""
        self.name = name
        if len(position) != 3:
            raise ValueError("The position must have three coordinates (x, y, z)!")
        self.position: Point3D = (
            float(position[0]),
            float(position[1]),
            float(position[2]),
        )
        self.mineral_type = mineral_type
        if nucleation_rate < 0.0:
            raise ValueError("The nucleation rate must be positive!")
        self.nucleation_rate: float = nucleation_rate
        if initial_radius <= 0.0:
            raise ValueError("The initial radius must be strictly positive!")
        self.initial_radius: float = initial_radius
        self.activation_energy: float = activation_energy
        self.critical_supersaturation: float = critical_supersaturation
        self.is_active: bool = is_active

    def get_nucleation_rate(self, supersaturation: float, temperature: float) -> float:
        r"""
        Return the nucleation rate (nuclei/s) from the classical nucleation theory.

        The simplified law reads:

        .. math::
            J = J_{0} \exp \left( - \dfrac{E_{a}}{(\ln S)^{2} R T} \right)

        and is null below the critical supersaturation.

        Parameters
        ----------
        supersaturation: float
            Ratio of the actual concentration to the equilibrium concentration.
        temperature: float
            Temperature in Kelvins.
        """
        if supersaturation < self.critical_supersaturation or supersaturation <= 0.0:
            return 0.0
        ln_s = math.log(supersaturation)
        if ln_s <= 0.0 or temperature <= 0.0:
            return 0.0
        delta_g_star = self.activation_energy / (ln_s * ln_s)
        return self.nucleation_rate * math.exp(
            -delta_g_star / (GAS_CONSTANT * temperature)
        )


class HeatParameters:
    """
    Class defining the heat transfer parameters used in the simulation.

    Attributes
    ----------
    conductivity: float, optional
        Default thermal conductivity in W/(m.K), used where no heterogeneous
        conductivity field is given. The default is 2.0 W/(m.K).
    density: float, optional
        Bulk density in kg/m3. The default is 2500 kg/m3.
    heat_capacity: float, optional
        Specific heat capacity in J/(kg.K). The default is 1000 J/(kg.K).
    heat_source: Optional[HeatSource]
        Function of the voxel indices (ix, iy, iz) and of the simulation time
        returning a volumetric heat source in W/m3. It is evaluated on each
        interior voxel with scalar indices. The default is None (no source).
    is_vectorized_source: bool, optional
        Whether the heat source accepts index arrays. If True, it is called once
        per step with the index arrays of the interior voxels and must return a
        scalar or an array broadcastable to them. The default is False.
    stability_factor: float, optional
        Fraction of the explicit diffusion stability limit used as the maximum
        sub-step. Must be in ]0, 0.5]. The default is 0.5.
    """

    def __init__(
        self,
        conductivity: float = 2.0,
        density: float = 2500.0,
        heat_capacity: float = 1000.0,
        heat_source: Optional[HeatSource] = None,
        stability_factor: float = 0.5,
        is_vectorized_source: bool = False,
    ) -> None:
        """Initialize the instance."""
        if conductivity < 0.0:
            raise ValueError("The thermal conductivity must be positive!")
        if density <= 0.0 or heat_capacity <= 0.0:
            raise ValueError("The density and the heat capacity must be > 0!")
        if not 0.0 < stability_factor <= 0.5:
            raise ValueError("The stability factor must be in ]0, 0.5]!")
        self.conductivity: float = conductivity
        self.density: float = density
        self.heat_capacity: float = heat_capacity
        self.heat_source: Optional[HeatSource] = heat_source
        self.stability_factor: float = stability_factor
        self.is_vectorized_source: bool = is_vectorized_source

    @property
    def volumetric_heat_capacity(self) -> float:
        """Return rho * Cp in J/(m3.K)."""
        return self.density * self.heat_capacity

    @property
    def diffusivity(self) -> float:
        """Return the thermal diffusivity in m2/s."""
        return self.conductivity / self.volumetric_heat_capacity


class FlowParameters:
    """
    Class defining the multiphase flow parameters used in the simulation.

    Attributes
    ----------
    water_density: float, optional
        Liquid water density in kg/m3. The default is 1000 kg/m3.
    gas_density: float, optional
        Gas density in kg/m3. The default is 1.2 kg/m3.
    water_viscosity: float, optional
        Liquid water dynamic viscosity in Pa.s. The default is 1e-3 Pa.s.
    gas_viscosity: float, optional
        Gas dynamic viscosity in Pa.s. The default is 1.8e-5 Pa.s.
    residual_liquid_saturation: float, optional
        Residual liquid saturation. The default is 0.05.
    residual_gas_saturation: float, optional
        Residual gas saturation. The default is 0.01.
    vg_m: float, optional
        van Genuchten m parameter (m = 1 - 1/n), in ]0, 1[. The default is 0.5.
    vg_alpha: float, optional
        van Genuchten alpha parameter in 1/Pa. The default is 1e-4 1/Pa.
    gas_compressibility: float, optional
        Coefficient of the pressure drop applied in gas-rich cells.
        The default is 0.01.
    gravity: float, optional
        Gravity acceleration in m/s2, oriented toward -z. The default is 9.81.
    min_porosity: float, optional
        No flow is computed in voxels with a porosity lower than this value.
        The default is 0.01.
    pressure_solver: PressureSolver
        How the pressure is updated after a multiphase step. The default is the
        compressibility adjustment.
    rtol: float, optional
        Relative tolerance of the iterative pressure solver. The default is 1e-8.
    """

    def __init__(
        self,
        water_density: float = 1000.0,
        gas_density: float = 1.2,
        water_viscosity: float = 1e-3,
        gas_viscosity: float = 1.8e-5,
        residual_liquid_saturation: float = 0.05,
        residual_gas_saturation: float = 0.01,
        vg_m: float = 0.5,
        vg_alpha: float = 1e-4,
        gas_compressibility: float = 0.01,
        gravity: float = GRAVITY,
        min_porosity: float = MIN_POROSITY,
        pressure_solver: PressureSolver = PressureSolver.COMPRESSIBILITY,
        rtol: float = 1e-8,
    ) -> None:
        """Initialize the instance."""
        if water_density <= 0.0 or gas_density <= 0.0:
            raise ValueError("The phase densities must be > 0!")
        if water_viscosity <= 0.0 or gas_viscosity <= 0.0:
            raise ValueError("The phase viscosities must be > 0!")
        for name, value in (
            ("residual_liquid_saturation", residual_liquid_saturation),
            ("residual_gas_saturation", residual_gas_saturation),
        ):
            if not 0.0 <= value < 1.0:
                raise ValueError(f"{name} must be in [0, 1[!")
        if not 0.0 < vg_m < 1.0:
            raise ValueError("The van Genuchten m parameter must be in ]0, 1[!")
        if vg_alpha <= 0.0:
            raise ValueError("The van Genuchten alpha parameter must be > 0!")
        self.water_density: float = water_density
        self.gas_density: float = gas_density
        self.water_viscosity: float = water_viscosity
        self.gas_viscosity: float = gas_viscosity
        self.residual_liquid_saturation: float = residual_liquid_saturation
        self.residual_gas_saturation: float = residual_gas_saturation
        self.vg_m: float = vg_m
        self.vg_alpha: float = vg_alpha
        self.gas_compressibility: float = gas_compressibility
        self.gravity: float = gravity
        self.min_porosity: float = min_porosity
        self.pressure_solver: PressureSolver = PressureSolver(pressure_solver)
        self.rtol: float = rtol


class NucleationParameters:
    """
    Class defining the nucleation and crystal growth parameters.

    Attributes
    ----------
    equilibrium_concentration: float, optional
        Equilibrium concentration used to compute the supersaturation in mol/L.
        The default is 0.01 mol/L.
    growth_rate: float, optional
        Linear growth rate given to new nuclei in m/s. The default is 1e-9 m/s.
    min_porosity: float, optional
        Porosity below which growing crystals cannot seal a voxel.
        The default is 0.01.
    """

    def __init__(
        self,
        equilibrium_concentration: float = 0.01,
        growth_rate: float = 1e-9,
        min_porosity: float = MIN_POROSITY,
    ) -> None:
        """Initialize the instance."""
        if equilibrium_concentration <= 0.0:
            raise ValueError("The equilibrium concentration must be > 0!")
        if growth_rate < 0.0:
            raise ValueError("The growth rate must be positive!")
        self.equilibrium_concentration: float = equilibrium_concentration
        self.growth_rate: float = growth_rate
        self.min_porosity: float = min_porosity


def _as_field(values: FieldLike, shape: Tuple[int, int, int], name: str) -> NDArrayFloat:
    """Broadcast a scalar or check an array against the grid shape."""
    _values = np.asarray(values, dtype=np.float64)
    if _values.ndim == 0:
        return np.full(shape, float(_values), dtype=np.float64)
    if _values.shape != shape:
        raise ValueError(
            f"{name} has shape {_values.shape} while the grid has shape {shape}!"
        )
    return _values.copy()


class GridState:
    """
    Represent the fields of the simulation at one time.

    The state is created once per simulation run, advanced in place by the
    solvers and copied (:meth:`copy`) when a snapshot must be kept.

    Attributes
    ----------
    grid: RectilinearGrid
        The voxel grid on which all the fields are defined.
    temperature: NDArrayFloat
        Temperature in K.
    pressure: NDArrayFloat
        Pressure in Pa.
    porosity: NDArrayFloat
        Porosity (volume fraction).
    permeability: NDArrayFloat
        Intrinsic permeability in m2.
    velocity_x, velocity_y, velocity_z: NDArrayFloat
        Darcy velocities in m/s.
    liquid_saturation, gas_saturation, vapor_saturation: NDArrayFloat
        Phase saturations. Their sum is one after each flow step.
    force_x, force_y, force_z: NDArrayFloat
        Body forces in N/m3.
    concentrations: Dict[str, NDArrayFloat]
        Concentration field (mol/L) of each tracked species.
    minerals: Dict[str, NDArrayFloat]
        Volume fraction field of each mineral.
    active_nuclei: List[Nucleus]
        The nuclei created by the nucleation solver.
    current_time: float
        Simulation time in seconds.
    """

    __slots__ = [
        "grid",
        "temperature",
        "pressure",
        "porosity",
        "permeability",
        "velocity_x",
        "velocity_y",
        "velocity_z",
        "liquid_saturation",
        "gas_saturation",
        "vapor_saturation",
        "force_x",
        "force_y",
        "force_z",
        "concentrations",
        "minerals",
        "active_nuclei",
        "current_time",
    ]

    def __init__(
        self,
        grid: RectilinearGrid,
        temperature: FieldLike = 293.15,
        pressure: FieldLike = 1.01325e5,
        porosity: FieldLike = 0.3,
        permeability: FieldLike = 1e-12,
        liquid_saturation: FieldLike = 1.0,
        gas_saturation: FieldLike = 0.0,
        vapor_saturation: FieldLike = 0.0,
        current_time: float = 0.0,
    ) -> None:
        """Initialize the instance."""
        self.grid: RectilinearGrid = grid
        shape = grid.shape
        self.temperature: NDArrayFloat = _as_field(temperature, shape, "temperature")
        self.pressure: NDArrayFloat = _as_field(pressure, shape, "pressure")
        self.porosity: NDArrayFloat = _as_field(porosity, shape, "porosity")
        self.permeability: NDArrayFloat = _as_field(
            permeability, shape, "permeability"
        )
        self.velocity_x: NDArrayFloat = np.zeros(shape, dtype=np.float64)
        self.velocity_y: NDArrayFloat = np.zeros(shape, dtype=np.float64)
        self.velocity_z: NDArrayFloat = np.zeros(shape, dtype=np.float64)
        self.liquid_saturation: NDArrayFloat = _as_field(
            liquid_saturation, shape, "liquid_saturation"
        )
        self.gas_saturation: NDArrayFloat = _as_field(
            gas_saturation, shape, "gas_saturation"
        )
        self.vapor_saturation: NDArrayFloat = _as_field(
            vapor_saturation, shape, "vapor_saturation"
        )
        self.force_x: NDArrayFloat = np.zeros(shape, dtype=np.float64)
        self.force_y: NDArrayFloat = np.zeros(shape, dtype=np.float64)
        self.force_z: NDArrayFloat = np.zeros(shape, dtype=np.float64)
        self.concentrations: Dict[str, NDArrayFloat] = {}
        self.minerals: Dict[str, NDArrayFloat] = {}
        self.active_nuclei: List[Nucleus] = []
        self.current_time: float = current_time

    @property
    def shape(self) -> Tuple[int, int, int]:
        """Return the shape of the fields."""
        return self.grid.shape

    def add_species(self, name: str, values: FieldLike = 0.0) -> NDArrayFloat:
        """Add (or replace) the concentration field of a species and return it."""
        self.concentrations[name] = _as_field(values, self.shape, name)
        return self.concentrations[name]

    def add_mineral(self, name: str, values: FieldLike = 0.0) -> NDArrayFloat:
        """Add (or replace) the volume fraction field of a mineral and return it."""
        self.minerals[name] = _as_field(values, self.shape, name)
        return self.minerals[name]

    def get_saturation_sum(self) -> NDArrayFloat:
        """Return the sum of the liquid, gas and vapor saturations."""
        return self.liquid_saturation + self.gas_saturation + self.vapor_saturation

    def has_gas_phase(self, threshold: float = SMALL_NUMBER) -> bool:
        """Whether any voxel holds some gas or vapor."""
        return bool(
            np.any(self.gas_saturation > threshold)
            or np.any(self.vapor_saturation > threshold)
        )

    def check_shapes(self) -> None:
        """Raise a ValueError if a field does not match the grid shape."""
        fields: Dict[str, NDArrayFloat] = {
            name: getattr(self, name)
            for name in (
                "temperature",
                "pressure",
                "porosity",
                "permeability",
                "velocity_x",
                "velocity_y",
                "velocity_z",
                "liquid_saturation",
                "gas_saturation",
                "vapor_saturation",
                "force_x",
                "force_y",
                "force_z",
            )
        }
        fields.update(self.concentrations)
        fields.update(self.minerals)
        for name, values in fields.items():
            if np.shape(values) != self.shape:
                raise ValueError(
                    f"{name} has shape {np.shape(values)} while the grid has shape"
                    f" {self.shape}!"
                )

    def copy(self) -> GridState:
        """Return a deep copy of the state, including the species and nuclei."""
        return copy.deepcopy(self)


@dataclass
class FlowResults:
    """
    Phase velocities computed during the last multiphase flow step.

    Parameters
    ----------
    water_velocity: List[NDArrayFloat]
        Water Darcy velocities (x, y, z) in m/s.
    gas_velocity: List[NDArrayFloat]
        Gas phase Darcy velocities (x, y, z) in m/s.
    gas_flux: List[NDArrayFloat]
        Volumetric flux of the gas component (x, y, z) in m/s, used by the
        transport step.
    is_multiphase: bool
        Whether the multiphase path was used.
    """

    water_velocity: List[NDArrayFloat] = field(default_factory=list)
    gas_velocity: List[NDArrayFloat] = field(default_factory=list)
    gas_flux: List[NDArrayFloat] = field(default_factory=list)
    is_multiphase: bool = False
