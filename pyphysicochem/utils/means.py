# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2024-2026 Antoine COLLET

"""Provide the means used to average properties at the grid cell faces."""

# pylint: disable=C0103 # doesn't conform to snake_case naming style
from pyphysicochem.utils.types import NDArrayFloat

# Guard against a null denominator when both conductivities vanish.
HARMONIC_EPSILON = 1e-20


def arithmetic_mean(xi: NDArrayFloat, xj) -> NDArrayFloat:
    """Return the arithmetic mean of xi and xj."""
    return (xi + xj) / 2.0


def harmonic_mean(xi: NDArrayFloat, xj, eps: float = HARMONIC_EPSILON) -> NDArrayFloat:
    r"""
    Return the harmonic mean of xi and xj.

    .. math::
        \overline{k} = \dfrac{2 k_{i} k_{j}}{k_{i} + k_{j} + \epsilon}

    The :math:`\epsilon` term makes the mean go smoothly to zero when one of the
    values is null instead of raising a division by zero.
    """
    return 2.0 * xi * xj / (xi + xj + eps)
