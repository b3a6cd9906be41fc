# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2024-2026 Antoine COLLET

"""Provide the stochastic mineral nucleation and crystal growth solver."""

from __future__ import annotations

import logging
import math
from typing import Iterable, Optional, Tuple

import numpy as np

from pyphysicochem.forward.models import (
    GridState,
    NucleationParameters,
    NucleationSite,
    Nucleus,
)


def get_supersaturation(
    state: GridState, indices: Tuple[int, int, int], equilibrium_concentration: float
) -> float:
    """
    Return the supersaturation of a voxel.

    The concentration of the first tracked species is divided by the equilibrium
    concentration. A state without species has a supersaturation of 1.0.
    """
    if len(state.concentrations) == 0:
        return 1.0
    concentration = next(iter(state.concentrations.values()))
    return float(concentration[indices]) / equilibrium_concentration


def grow_nucleus(
    state: GridState, nucleus: Nucleus, dt: float, min_porosity: float
) -> float:
    r"""
    Grow the nucleus and update the mineral and porosity fields of its voxel.

    The radius grows linearly and the added volume is obtained from the
    derivative of the sphere volume:

    .. math::
        \Delta V = 4 \pi r^{2} g \Delta t

    with :math:`r` the radius after growth. The porosity of the host voxel is
    decreased by :math:`\Delta V / V_{cell}` but never below `min_porosity`.

    Returns
    -------
    float
        The added volume in m3.
    """
    nucleus.radius += nucleus.growth_rate * dt
    volume_change = 4.0 * math.pi * nucleus.radius**2 * nucleus.growth_rate * dt

    indices = state.grid.get_nearest_cell_indices(nucleus.position)
    fraction_change = volume_change / state.grid.grid_cell_volume
    if nucleus.mineral_type not in state.minerals:
        state.add_mineral(nucleus.mineral_type, 0.0)
    state.minerals[nucleus.mineral_type][indices] += fraction_change
    state.porosity[indices] = max(
        min_porosity, state.porosity[indices] - fraction_change
    )
    return volume_change


class NucleationSolver:
    """
    Class spawning and growing mineral nuclei in a :class:`GridState`.

    Attributes
    ----------
    nucleation_params: NucleationParameters
        Equilibrium concentration, growth rate and porosity floor.
    rng: np.random.Generator
        The random generator used for the nucleation draws. It is owned by the
        caller, so that sequences of calls can be reproduced.
    logger: Optional[logging.Logger]
        Logger used to report the new nuclei. None to disable.
    """

    def __init__(
        self,
        nucleation_params: Optional[NucleationParameters] = None,
        rng: Optional[np.random.Generator] = None,
        seed: Optional[int] = None,
        logger: Optional[logging.Logger] = logging.getLogger("NucleationSolver"),
    ) -> None:
        """
        Initialize the instance.

        Parameters
        ----------
        nucleation_params : Optional[NucleationParameters]
            The parameters. The default parameters are used if None.
        rng : Optional[np.random.Generator]
            The random generator. If None, one is created from `seed`.
        seed : Optional[int]
            Seed of the generator created when `rng` is None.
        logger : Optional[logging.Logger]
            The logger. None to disable the logging.
        """
        self.nucleation_params: NucleationParameters = (
            nucleation_params
            if nucleation_params is not None
            else NucleationParameters()
        )
        self.rng: np.random.Generator = (
            rng if rng is not None else np.random.default_rng(seed)
        )
        self.logger: Optional[logging.Logger] = logger

    def loginfo(self, msg: str) -> None:
        if self.logger is not None:
            self.logger.info(msg)

    def update_nucleation(
        self,
        state: GridState,
        sites: Iterable[NucleationSite],
        dt: float,
        rng: Optional[np.random.Generator] = None,
        time: Optional[float] = None,
    ) -> int:
        """
        Spawn new nuclei at the active sites and grow all the nuclei of the state.

        A nucleus appears at a site when a uniform draw is lower than the
        nucleation rate times the timestep (Poisson process approximation for
        small rate x dt). The growth runs every call, whether or not a nucleus
        appeared.

        Parameters
        ----------
        state : GridState
            The state to update. New nuclei are appended to `active_nuclei`.
        sites : Iterable[NucleationSite]
            The nucleation sites. Positions outside the grid are clamped into it.
        dt : float
            The timestep in seconds.
        rng : Optional[np.random.Generator]
            Generator overriding the one of the solver for this call.
        time : Optional[float]
            Birth time given to the new nuclei. The default is `state.current_time`.

        Returns
        -------
        int
            The number of nuclei created during the call.
        """
        _rng = rng if rng is not None else self.rng
        _time = state.current_time if time is None else time
        params = self.nucleation_params

        n_created = 0
        for site in sites:
            if not site.is_active:
                continue
            indices = state.grid.get_nearest_cell_indices(site.position)
            supersaturation = get_supersaturation(
                state, indices, params.equilibrium_concentration
            )
            rate = site.get_nucleation_rate(
                supersaturation, float(state.temperature[indices])
            )
            if rate <= 0.0:
                continue
            if _rng.random() < rate * dt:
                nucleus = Nucleus(
                    id=len(state.active_nuclei),
                    position=site.position,
                    radius=site.initial_radius,
                    mineral_type=site.mineral_type,
                    growth_rate=params.growth_rate,
                    birth_time=_time,
                )
                state.active_nuclei.append(nucleus)
                n_created += 1
                self.loginfo(
                    f"New {site.mineral_type} nucleus #{nucleus.id} at site"
                    f" {site.name} (S = {supersaturation:.3f}, t = {_time} s)"
                )

        for nucleus in state.active_nuclei:
            grow_nucleus(state, nucleus, dt, params.min_porosity)
        return n_created
