"""
Purpose
=======

**pyphysicochem** is an open-source, pure python, and object-oriented library that
provides the coupled heat transfer, multiphase flow and mineral nucleation solvers
of a physico-chemical reactor simulation on a 3D voxel grid.

Submodules
==========

.. autosummary::
    forward
    utils

"""

from pyphysicochem import forward, utils
from pyphysicochem.__about__ import __author__, __version__

__all__ = [
    "__version__",
    "__author__",
    "forward",
    "utils",
]
