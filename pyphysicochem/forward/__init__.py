# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2024-2026 Antoine COLLET

"""
Provide the coupled heat, multiphase flow and nucleation solvers.

Grid State
^^^^^^^^^^

Class storing the fields advanced in place by the solvers.

.. currentmodule:: pyphysicochem.forward.models

.. autosummary::
   :toctree: _autosummary

    GridState
    Nucleus
    FlowResults


Parameters
^^^^^^^^^^

Classes configuring the solvers.

.. currentmodule:: pyphysicochem.forward.models

.. autosummary::
   :toctree: _autosummary

    HeatParameters
    FlowParameters
    NucleationParameters
    NucleationSite
    PressureSolver

Boundary Conditions
^^^^^^^^^^^^^^^^^^^

Boundary conditions applied on the faces of the domain.

.. currentmodule:: pyphysicochem.forward.models

.. autosummary::
   :toctree: _autosummary

    BoundaryCondition
    BoundaryLocation
    BoundaryVariable
    BoundaryType


Solvers
^^^^^^^

Classes advancing a :class:`GridState` over one timestep. They do not hold any
field data: the caller is responsible for the sequence of the calls.

.. currentmodule:: pyphysicochem.forward

.. autosummary::
   :toctree: _autosummary

    HeatTransferSolver
    MultiphaseFlowSolver
    NucleationSolver

Constitutive laws
^^^^^^^^^^^^^^^^^

van Genuchten-Mualem relations of the multiphase flow.

.. currentmodule:: pyphysicochem.forward.flow_utils

.. autosummary::
   :toctree: _autosummary

    get_effective_saturation
    get_water_relative_permeability
    get_gas_relative_permeability
    get_capillary_pressure
    get_mobility

"""

from .flow_solver import MultiphaseFlowSolver
from .flow_utils import (
    get_capillary_pressure,
    get_effective_saturation,
    get_gas_relative_permeability,
    get_mobility,
    get_water_relative_permeability,
)
from .heat_solver import HeatTransferSolver, get_stable_timestep
from .models import (
    GRAVITY,
    BoundaryCondition,
    BoundaryLocation,
    BoundaryType,
    BoundaryVariable,
    FlowParameters,
    FlowResults,
    GridState,
    HeatParameters,
    NucleationParameters,
    NucleationSite,
    Nucleus,
    PressureSolver,
)
from .nucleation_solver import NucleationSolver

__all__ = [
    "GRAVITY",
    "GridState",
    "Nucleus",
    "FlowResults",
    "HeatParameters",
    "FlowParameters",
    "NucleationParameters",
    "NucleationSite",
    "PressureSolver",
    "BoundaryCondition",
    "BoundaryLocation",
    "BoundaryVariable",
    "BoundaryType",
    "HeatTransferSolver",
    "MultiphaseFlowSolver",
    "NucleationSolver",
    "get_stable_timestep",
    "get_effective_saturation",
    "get_water_relative_permeability",
    "get_gas_relative_permeability",
    "get_capillary_pressure",
    "get_mobility",
]
