"""Some basic tests for the data model of the solvers."""

import math
from contextlib import nullcontext as does_not_raise

import numpy as np
import pytest
from pyphysicochem.forward.models import (
    GAS_CONSTANT,
    BoundaryCondition,
    BoundaryLocation,
    BoundaryType,
    BoundaryVariable,
    FlowParameters,
    GridState,
    HeatParameters,
    NucleationParameters,
    NucleationSite,
    Nucleus,
    PressureSolver,
)
from pyphysicochem.utils import RectilinearGrid

grid = RectilinearGrid(nx=4, ny=3, nz=5)


def test_boundary_condition_from_strings() -> None:
    condition = BoundaryCondition("ZMax", "Temperature", "FixedFlux", flux=10.0)
    assert condition.location == BoundaryLocation.ZMAX
    assert condition.variable == BoundaryVariable.TEMPERATURE
    assert condition.kind == BoundaryType.FIXED_FLUX
    assert condition.get_faces() == [(2, True)]


@pytest.mark.parametrize(
    "kwargs, expected_exception",
    [
        ({"location": "XMin", "variable": "Pressure"}, does_not_raise()),
        (
            {"location": "XMin", "variable": "Concentration", "species": "Ca"},
            does_not_raise(),
        ),
        (
            {"location": "XMin", "variable": "Concentration"},
            pytest.raises(
                ValueError,
                match="A concentration boundary condition requires a species!",
            ),
        ),
        ({"location": "Top", "variable": "Pressure"}, pytest.raises(ValueError)),
        (
            {"location": "XMin", "variable": "Pressure", "kind": "Robin"},
            pytest.raises(ValueError),
        ),
    ],
)
def test_boundary_condition_init(kwargs, expected_exception) -> None:
    with expected_exception:
        BoundaryCondition(**kwargs)


def test_boundary_condition_time_function() -> None:
    condition = BoundaryCondition(
        BoundaryLocation.ZMIN, BoundaryVariable.TEMPERATURE, value=350.0
    )
    assert not condition.is_time_dependent
    assert condition.evaluate_at_time(100.0) == 350.0

    condition.time_function = lambda t: 300.0 + 0.5 * t
    assert condition.is_time_dependent
    assert condition.evaluate_at_time(100.0) == 350.0
    assert condition.evaluate_at_time(0.0) == 300.0


def test_boundary_condition_all_faces() -> None:
    condition = BoundaryCondition(
        BoundaryLocation.ALL_FACES, BoundaryVariable.TEMPERATURE
    )
    assert len(condition.get_faces()) == 6
    assert set(condition.get_faces()) == {
        (0, False),
        (0, True),
        (1, False),
        (1, True),
        (2, False),
        (2, True),
    }


@pytest.mark.parametrize(
    "species, expected",
    [("Gas", True), ("NCG", True), ("methane", True), ("Ca", False), ("H2O", False)],
)
def test_is_gas_species(species, expected) -> None:
    condition = BoundaryCondition(
        "ZMin", BoundaryVariable.CONCENTRATION, value=0.2, species=species
    )
    assert condition.is_gas_species() == expected


def test_nucleus_volume() -> None:
    nucleus = Nucleus(0, (0.0, 0.0, 0.0), 2e-6, "Calcite", 1e-9, 0.0)
    np.testing.assert_allclose(nucleus.volume, 4.0 / 3.0 * math.pi * 8e-18)


@pytest.mark.parametrize(
    "kwargs, expected_exception",
    [
        ({}, does_not_raise()),
        (
            {"position": (0.0, 1.0)},
            pytest.raises(
                ValueError,
                match=r"The position must have three coordinates \(x, y, z\)!",
            ),
        ),
        (
            {"nucleation_rate": -1.0},
            pytest.raises(ValueError, match="The nucleation rate must be positive!"),
        ),
        (
            {"initial_radius": 0.0},
            pytest.raises(
                ValueError, match="The initial radius must be strictly positive!"
            ),
        ),
    ],
)
def test_nucleation_site_init(kwargs, expected_exception) -> None:
    _kwargs = {"name": "site", "position": (1, 2, 3), "mineral_type": "Calcite"}
    _kwargs.update(kwargs)
    with expected_exception:
        site = NucleationSite(**_kwargs)
        assert site.position == (1.0, 2.0, 3.0)
        assert site.is_active


@pytest.mark.parametrize(
    "supersaturation, temperature, is_null",
    [
        (1.0, 300.0, True),
        (1.49, 300.0, True),
        (0.0, 300.0, True),
        (3.0, 0.0, True),
        (3.0, 300.0, False),
        (10.0, 350.0, False),
    ],
)
def test_nucleation_rate(supersaturation, temperature, is_null) -> None:
    site = NucleationSite("site", (0.0, 0.0, 0.0), "Calcite", nucleation_rate=1e3)
    rate = site.get_nucleation_rate(supersaturation, temperature)
    if is_null:
        assert rate == 0.0
    else:
        ln_s = math.log(supersaturation)
        expected = 1e3 * math.exp(
            -5e4 / ln_s**2 / (GAS_CONSTANT * temperature)
        )
        np.testing.assert_allclose(rate, expected)
        assert 0.0 < rate < 1e3


def test_nucleation_rate_increases_with_supersaturation() -> None:
    site = NucleationSite("site", (0.0, 0.0, 0.0), "Calcite")
    rates = [site.get_nucleation_rate(s, 300.0) for s in np.linspace(1.6, 20.0, 10)]
    assert np.all(np.diff(rates) > 0.0)


@pytest.mark.parametrize(
    "kwargs, expected_exception",
    [
        ({}, does_not_raise()),
        ({"stability_factor": 0.25}, does_not_raise()),
        (
            {"stability_factor": 0.6},
            pytest.raises(
                ValueError, match=r"The stability factor must be in \]0, 0.5\]!"
            ),
        ),
        (
            {"conductivity": -1.0},
            pytest.raises(
                ValueError, match="The thermal conductivity must be positive!"
            ),
        ),
        (
            {"density": 0.0},
            pytest.raises(
                ValueError, match="The density and the heat capacity must be > 0!"
            ),
        ),
    ],
)
def test_heat_parameters(kwargs, expected_exception) -> None:
    with expected_exception:
        HeatParameters(**kwargs)


def test_heat_parameters_properties() -> None:
    params = HeatParameters()
    assert params.volumetric_heat_capacity == 2.5e6
    np.testing.assert_allclose(params.diffusivity, 8e-7)


@pytest.mark.parametrize(
    "kwargs, expected_exception",
    [
        ({}, does_not_raise()),
        ({"pressure_solver": "poisson"}, does_not_raise()),
        ({"vg_m": 1.0}, pytest.raises(ValueError, match="m parameter")),
        ({"vg_alpha": 0.0}, pytest.raises(ValueError, match="alpha parameter")),
        (
            {"residual_liquid_saturation": 1.0},
            pytest.raises(
                ValueError, match=r"residual_liquid_saturation must be in \[0, 1\[!"
            ),
        ),
        (
            {"gas_viscosity": 0.0},
            pytest.raises(ValueError, match="The phase viscosities must be > 0!"),
        ),
        (
            {"water_density": -1.0},
            pytest.raises(ValueError, match="The phase densities must be > 0!"),
        ),
        ({"pressure_solver": "jacobi"}, pytest.raises(ValueError)),
    ],
)
def test_flow_parameters(kwargs, expected_exception) -> None:
    with expected_exception:
        FlowParameters(**kwargs)


def test_flow_parameters_defaults() -> None:
    params = FlowParameters()
    assert params.residual_liquid_saturation == 0.05
    assert params.residual_gas_saturation == 0.01
    assert params.vg_m == 0.5
    assert params.vg_alpha == 1e-4
    assert params.pressure_solver == PressureSolver.COMPRESSIBILITY


@pytest.mark.parametrize(
    "kwargs, expected_exception",
    [
        ({}, does_not_raise()),
        (
            {"equilibrium_concentration": 0.0},
            pytest.raises(
                ValueError, match="The equilibrium concentration must be > 0!"
            ),
        ),
        (
            {"growth_rate": -1e-9},
            pytest.raises(ValueError, match="The growth rate must be positive!"),
        ),
    ],
)
def test_nucleation_parameters(kwargs, expected_exception) -> None:
    with expected_exception:
        NucleationParameters(**kwargs)


def test_grid_state_init() -> None:
    state = GridState(grid, temperature=np.full(grid.shape, 310.0), porosity=0.2)
    assert state.shape == (4, 3, 5)
    for name in GridState.__slots__:
        values = getattr(state, name)
        if isinstance(values, np.ndarray):
            assert values.shape == grid.shape
            assert values.dtype == np.float64
    np.testing.assert_allclose(state.temperature, 310.0)
    np.testing.assert_allclose(state.porosity, 0.2)
    np.testing.assert_allclose(state.get_saturation_sum(), 1.0)
    assert not state.has_gas_phase()
    assert state.active_nuclei == []
    assert state.current_time == 0.0
    state.check_shapes()


def test_grid_state_wrong_shape() -> None:
    with pytest.raises(
        ValueError,
        match=r"pressure has shape \(4, 3\) while the grid has shape \(4, 3, 5\)!",
    ):
        GridState(grid, pressure=np.ones((4, 3)))

    state = GridState(grid)
    state.concentrations["Ca"] = np.ones((2, 2, 2))
    with pytest.raises(ValueError, match="Ca has shape"):
        state.check_shapes()


def test_grid_state_species_and_minerals() -> None:
    state = GridState(grid)
    values = np.arange(grid.n_grid_cells, dtype=np.float64).reshape(grid.shape)
    ca = state.add_species("Ca", values)
    # the field is copied
    values[0, 0, 0] = -1.0
    assert ca[0, 0, 0] == 0.0
    assert state.add_mineral("Calcite")[1, 1, 1] == 0.0
    assert list(state.concentrations.keys()) == ["Ca"]
    assert list(state.minerals.keys()) == ["Calcite"]


@pytest.mark.parametrize(
    "gas, vapor, expected", [(0.0, 0.0, False), (0.1, 0.0, True), (0.0, 0.1, True)]
)
def test_has_gas_phase(gas, vapor, expected) -> None:
    state = GridState(grid)
    state.gas_saturation[1, 1, 1] = gas
    state.vapor_saturation[2, 1, 3] = vapor
    assert state.has_gas_phase() == expected


def test_grid_state_copy_is_deep() -> None:
    state = GridState(grid, current_time=12.0)
    state.add_species("Ca", 0.1)
    state.add_mineral("Calcite", 0.0)
    state.active_nuclei.append(Nucleus(0, (0.0, 0.0, 0.0), 1e-6, "Calcite", 1e-9, 0.0))

    clone = state.copy()
    clone.temperature[0, 0, 0] = 1000.0
    clone.concentrations["Ca"][0, 0, 0] = 5.0
    clone.minerals["Calcite"][0, 0, 0] = 0.5
    clone.active_nuclei[0].radius = 1.0
    clone.active_nuclei.append(Nucleus(1, (0.0, 0.0, 0.0), 1e-6, "Calcite", 1e-9, 0.0))

    assert clone.current_time == 12.0
    assert state.temperature[0, 0, 0] == 293.15
    assert state.concentrations["Ca"][0, 0, 0] == 0.1
    assert state.minerals["Calcite"][0, 0, 0] == 0.0
    assert state.active_nuclei[0].radius == 1e-6
    assert len(state.active_nuclei) == 1
    assert clone.grid.shape == state.grid.shape
