import numpy as np
import pytest

from fv import CGPressureSolver, DirectPressureSolver, MomentumAssembler, get_pressure_solver, project
from fv.core.corrections import pressure_additional_solve
from fv.core.helpers import max_divergence
from fv.core.initial_conditions import create_initial_conditions
from fv.setup import SolverSettings


def test_solver_selection(ldc_setup, cg_setup):
    assert isinstance(get_pressure_solver(ldc_setup), DirectPressureSolver)
    assert isinstance(get_pressure_solver(cg_setup), CGPressureSolver)


def test_unknown_solver_raises():
    with pytest.raises(ValueError):
        SolverSettings(pressure_solver="multigrid")


@pytest.mark.parametrize("setup_name, tol", [("ldc_setup", 1e-11), ("cg_setup", 1e-8)])
def test_projection_is_divergence_free(setup_name, tol, request, rng):
    setup = request.getfixturevalue(setup_name)
    V_star = rng.standard_normal(setup.grid.NV)
    solver = get_pressure_solver(setup)

    V, phi = project(V_star, 0.1, setup, solver)

    assert max_divergence(V_star, setup.operators) > 1e-3
    assert max_divergence(V, setup.operators) < tol
    assert phi.shape == (setup.grid.Np,)


def test_projection_keeps_divergence_free_field(box_setup, rng):
    solver = get_pressure_solver(box_setup)
    V0, _ = project(rng.standard_normal(box_setup.grid.NV), 1.0, box_setup, solver)
    V1, phi = project(V0, 1.0, box_setup, solver)

    np.testing.assert_allclose(V1, V0, atol=1e-10)
    assert np.max(np.abs(phi - phi[0])) < 1e-10


def test_cg_result_is_mean_free(cg_setup, rng):
    solver = get_pressure_solver(cg_setup)
    _, phi = project(rng.standard_normal(cg_setup.grid.NV), 1.0, cg_setup, solver)
    assert abs(phi.mean()) < 1e-12


def test_additional_solve_for_rest_state(box_setup):
    grid = box_setup.grid
    V = np.zeros(grid.NV)
    p = pressure_additional_solve(
        V, np.zeros(grid.Np), 0.0, box_setup, MomentumAssembler(box_setup), get_pressure_solver(box_setup)
    )
    np.testing.assert_allclose(p, 0.0, atol=1e-14)


def test_initial_conditions(ldc_setup):
    V, p = create_initial_conditions(ldc_setup)

    assert V.shape == (ldc_setup.grid.NV,)
    assert p.shape == (ldc_setup.grid.Np,)
    np.testing.assert_allclose(V, 0.0)
    assert np.all(np.isfinite(p))


def test_initial_conditions_from_functions(box_setup):
    box_setup.solver_settings.p_initial = False
    V, p = create_initial_conditions(
        box_setup,
        initial_velocity_w=lambda x, y, z: 0.0,
        initial_pressure=lambda x, y, z: x + y,
    )
    x, y, _ = box_setup.grid.pressure_points()
    np.testing.assert_allclose(p, x + y)
