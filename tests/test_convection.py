import numpy as np
import pytest

from fv import build_setup, get_convection_model
from fv.discretization.convection.convection import LerayConvection, NoRegConvection
from fv.discretization.convection.filter import filter_convection
from meshing.boundary_conditions import BoundaryConditions, lid_driven_cavity_bc
from meshing.staggered_grid import create_grid


def _setup(grid, model, alpha=0.0):
    return build_setup(grid, lid_driven_cavity_bc(grid), Re=100.0, convection_model=model, filter_alpha=alpha)


def test_strategy_selection(grid):
    assert isinstance(get_convection_model(_setup(grid, "NoReg")), NoRegConvection)
    assert isinstance(get_convection_model(_setup(grid, "Leray")), LerayConvection)


def test_unknown_model_raises(grid):
    with pytest.raises(ValueError):
        _setup(grid, "Smagorinsky")


def test_filter_with_zero_strength_is_identity(ldc_setup, rng):
    ops = ldc_setup.operators
    u = rng.standard_normal(ops.NV)
    np.testing.assert_array_equal(filter_convection(u, ops.D_f, ops.yD_f, 0.0), u)


def test_uniform_flow_has_no_convection(uniform_flow_setup):
    grid = uniform_flow_setup.grid
    V = np.zeros(grid.NV)
    V[grid.indu] = 1.0
    c, _ = get_convection_model(uniform_flow_setup).evaluate(V, V, 0.0)
    assert np.max(np.abs(c)) < 1e-12


@pytest.mark.parametrize("model", ["C2", "Leray"])
def test_unfiltered_models_match_noreg(grid, rng, model):
    V = rng.standard_normal(grid.NV)
    c_ref = get_convection_model(_setup(grid, "NoReg")).evaluate(V, V, 0.0)[0].copy()
    strategy = get_convection_model(_setup(grid, model, alpha=0.0))
    c = strategy.evaluate(V, V, 0.0)[0]

    np.testing.assert_allclose(c, c_ref, atol=1e-12)
    assert strategy.max_div_filtered == pytest.approx(np.max(np.abs(strategy.operators.divergence(V))))


@pytest.mark.parametrize("make_bc", [lid_driven_cavity_bc, lambda grid: BoundaryConditions(u_bc=lambda x, y, z, t: 1.0)])
def test_unfiltered_c4_matches_noreg(grid, rng, make_bc):
    V = rng.standard_normal(grid.NV)
    bc = make_bc(grid)
    c_ref = get_convection_model(build_setup(grid, bc, Re=100.0)).evaluate(V, V, 0.0)[0].copy()
    strategy = get_convection_model(build_setup(grid, bc, Re=100.0, convection_model="C4", filter_alpha=0.0))
    c = strategy.evaluate(V, V, 0.0)[0]

    np.testing.assert_allclose(c, c_ref, atol=1e-12)

@pytest.mark.parametrize("model", ["C2", "C4", "Leray"])
def test_filtered_models_record_divergence(grid, rng, model):
    strategy = get_convection_model(_setup(grid, model, alpha=1e-3))
    V = rng.standard_normal(grid.NV)
    c, jac = strategy.evaluate(V, V, 0.0, get_jacobian=True)

    assert np.all(np.isfinite(c))
    assert jac.shape == (grid.NV, grid.NV)
    assert strategy.max_div_filtered > 0.0


@pytest.mark.parametrize("newton_factor", [1.0, 0.0])
def test_jacobian_matches_finite_differences(ldc_setup, rng, newton_factor):
    ldc_setup.solver_settings.newton_factor = newton_factor
    strategy = get_convection_model(ldc_setup)
    V = rng.standard_normal(ldc_setup.grid.NV)
    dV = rng.standard_normal(ldc_setup.grid.NV)
    h = 1e-4

    _, jac = strategy.evaluate(V, V, 0.0, get_jacobian=True)
    if newton_factor == 1.0:
        # c(V, V) is quadratic, so the central difference is exact
        c_plus = strategy.evaluate(V + h * dV, V + h * dV, 0.0)[0].copy()
        c_minus = strategy.evaluate(V - h * dV, V - h * dV, 0.0)[0].copy()
    else:
        # Picard: only the convected field is differentiated
        c_plus = strategy.evaluate(V + h * dV, V, 0.0)[0].copy()
        c_minus = strategy.evaluate(V - h * dV, V, 0.0)[0].copy()
    fd = (c_plus - c_minus) / (2 * h)

    np.testing.assert_allclose(jac @ dV, fd, rtol=1e-6, atol=1e-8)


def test_order4_jacobian_matches_finite_differences(rng):
    grid = create_grid(4, 4, 3)
    setup = build_setup(grid, lid_driven_cavity_bc(grid), Re=100.0, order4=True)
    strategy = get_convection_model(setup)
    V = rng.standard_normal(grid.NV)
    dV = rng.standard_normal(grid.NV)
    h = 1e-4

    _, jac = strategy.evaluate(V, V, 0.0, get_jacobian=True)
    c_plus = strategy.evaluate(V + h * dV, V + h * dV, 0.0)[0].copy()
    c_minus = strategy.evaluate(V - h * dV, V - h * dV, 0.0)[0].copy()

    np.testing.assert_allclose(jac @ dV, (c_plus - c_minus) / (2 * h), rtol=1e-6, atol=1e-7)


def test_evaluate_reuses_its_buffer(ldc_setup, rng):
    strategy = get_convection_model(ldc_setup)
    V = rng.standard_normal(ldc_setup.grid.NV)
    c1, _ = strategy.evaluate(V, V, 0.0)
    c2, _ = strategy.evaluate(2 * V, 2 * V, 0.0)
    assert c1 is c2
