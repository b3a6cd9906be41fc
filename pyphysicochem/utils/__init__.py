"""
pyphysicochem submodule providing tools and utilities for other submodules.

.. currentmodule:: pyphysicochem.utils.grid

Regular grids
^^^^^^^^^^^^^

Provide utilities to work with regular voxel grids.

.. autosummary::
   :toctree: _autosummary

    indices_to_node_number
    RectilinearGrid


.. currentmodule:: pyphysicochem.utils.enum

Working string enums
^^^^^^^^^^^^^^^^^^^^

Provide a str enum class.

.. autosummary::
   :toctree: _autosummary

    StrEnum


.. currentmodule:: pyphysicochem.utils.operators

Spatial differential operators
^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^
Provide functions for spatial differentiation.

.. autosummary::
   :toctree: _autosummary

   gradient_cfd
   gradient_upwind
   get_super_ilu_preconditioner

.. currentmodule:: pyphysicochem.utils.means

Mean operators
^^^^^^^^^^^^^^
Provide functions to average properties at the grid cell faces.

.. autosummary::
   :toctree: _autosummary

   arithmetic_mean
   harmonic_mean

.. currentmodule:: pyphysicochem.utils.types

Types
^^^^^

.. autosummary::
   :toctree: _autosummary

   object_or_object_sequence_to_list

"""

from pyphysicochem.utils.enum import StrEnum
from pyphysicochem.utils.grid import RectilinearGrid, indices_to_node_number
from pyphysicochem.utils.means import HARMONIC_EPSILON, arithmetic_mean, harmonic_mean
from pyphysicochem.utils.operators import (
    get_super_ilu_preconditioner,
    gradient_cfd,
    gradient_upwind,
)
from pyphysicochem.utils.types import (
    FieldLike,
    NDArrayBool,
    NDArrayFloat,
    NDArrayInt,
    Point3D,
    object_or_object_sequence_to_list,
)

__all__ = [
    "StrEnum",
    "RectilinearGrid",
    "indices_to_node_number",
    "HARMONIC_EPSILON",
    "arithmetic_mean",
    "harmonic_mean",
    "get_super_ilu_preconditioner",
    "gradient_cfd",
    "gradient_upwind",
    "FieldLike",
    "NDArrayBool",
    "NDArrayFloat",
    "NDArrayInt",
    "Point3D",
    "object_or_object_sequence_to_list",
]
