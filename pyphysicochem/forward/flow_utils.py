# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2024-2026 Antoine COLLET

"""
Provide the van Genuchten-Mualem constitutive laws of the multiphase flow.

All functions are vectorized: they accept scalars or arrays of saturations and
return arrays (or numpy scalars) of the same shape.
"""

from __future__ import annotations

from typing import Union

import numpy as np

from pyphysicochem.forward.models import DRY_CAPILLARY_PRESSURE
from pyphysicochem.utils import NDArrayFloat

ArrayLike = Union[float, NDArrayFloat]


def get_effective_saturation(saturation: ArrayLike, residual: float) -> NDArrayFloat:
    r"""
    Return the effective saturation clamped to [0, 1].

    .. math::
        S_{e} = \dfrac{S - S_{r}}{1 - S_{r}}
    """
    return np.clip(
        (np.asarray(saturation, dtype=np.float64) - residual) / (1.0 - residual),
        0.0,
        1.0,
    )


def _mualem(s_eff: NDArrayFloat, m: float, outer_exponent: float) -> NDArrayFloat:
    """Return sqrt(Se) * (1 - (1 - Se^(1/m))^outer_exponent)^2."""
    return np.sqrt(s_eff) * (1.0 - (1.0 - s_eff ** (1.0 / m)) ** outer_exponent) ** 2


def get_water_relative_permeability(
    water_saturation: ArrayLike, residual_liquid_saturation: float, m: float
) -> NDArrayFloat:
    r"""
    Return the van Genuchten-Mualem relative permeability of water.

    .. math::
        k_{rw} = \sqrt{S_{e}} \left(1 - \left(1 - S_{e}^{1/m}\right)^{m}\right)^{2}

    It is null below the residual liquid saturation and equal to one for a
    fully saturated medium.
    """
    _sw = np.asarray(water_saturation, dtype=np.float64)
    kr = _mualem(get_effective_saturation(_sw, residual_liquid_saturation), m, m)
    kr = np.where(_sw <= residual_liquid_saturation, 0.0, kr)
    return np.where(_sw >= 1.0, 1.0, kr)


def get_gas_relative_permeability(
    gas_saturation: ArrayLike, residual_gas_saturation: float, m: float
) -> NDArrayFloat:
    r"""
    Return the relative permeability of the gas phase.

    Same family as the water relative permeability with the residual gas
    saturation and an exponent 2m:

    .. math::
        k_{rg} = \sqrt{S_{e}} \left(1 - \left(1 - S_{e}^{1/m}\right)^{2m}\right)^{2}
    """
    _sg = np.asarray(gas_saturation, dtype=np.float64)
    kr = _mualem(get_effective_saturation(_sg, residual_gas_saturation), m, 2.0 * m)
    kr = np.where(_sg <= residual_gas_saturation, 0.0, kr)
    return np.where(_sg >= 1.0, 1.0, kr)


def get_capillary_pressure(
    water_saturation: ArrayLike,
    residual_liquid_saturation: float,
    alpha: float,
    m: float,
) -> NDArrayFloat:
    r"""
    Return the van Genuchten capillary pressure in Pa.

    .. math::
        P_{c} = \dfrac{1}{\alpha} \left(S_{e}^{-1/m} - 1\right)^{1/n}
        \quad \text{with} \quad n = \dfrac{1}{1 - m}

    The effective saturation is clamped to [0.01, 0.99] to avoid the
    singularities. A fully dry medium returns a large but finite value.
    """
    _sw = np.asarray(water_saturation, dtype=np.float64)
    n = 1.0 / (1.0 - m)
    s_eff = np.clip(
        (_sw - residual_liquid_saturation) / (1.0 - residual_liquid_saturation),
        0.01,
        0.99,
    )
    pc = (1.0 / alpha) * (s_eff ** (-1.0 / m) - 1.0) ** (1.0 / n)
    return np.where(_sw <= 0.0, DRY_CAPILLARY_PRESSURE, pc)


def get_mobility(
    permeability: ArrayLike, relative_permeability: ArrayLike, viscosity: float
) -> NDArrayFloat:
    """Return the phase mobility k * kr / mu in m2/(Pa.s)."""
    return np.asarray(permeability) * np.asarray(relative_permeability) / viscosity
