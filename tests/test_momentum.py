import numpy as np
import pytest

from fv import MomentumAssembler, SteadyBodyForce, UnsteadyBodyForce, build_setup, momentum
from fv.discretization.diffusion.viscosity import LaminarModel, get_viscosity_model
from meshing.boundary_conditions import BoundaryConditions


def test_pressure_term(ldc_setup, rng):
    grid = ldc_setup.grid
    ops = ldc_setup.operators
    V = rng.standard_normal(grid.NV)
    p = rng.standard_normal(grid.Np)
    assembler = MomentumAssembler(ldc_setup)

    F, _ = assembler.momentum(V, V, p, 0.0)
    F_np, _ = assembler.momentum(V, V, p, 0.0, nopressure=True)

    np.testing.assert_allclose(F_np - F, ops.G @ p + ops.y_p, atol=1e-12)


def test_output_buffer_is_filled(ldc_setup, rng):
    grid = ldc_setup.grid
    V = rng.standard_normal(grid.NV)
    p = np.zeros(grid.Np)
    F = np.full(grid.NV, np.nan)

    out, jac = MomentumAssembler(ldc_setup).momentum(V, V, p, 0.0, F=F)

    assert out is F
    assert jac is None
    np.testing.assert_allclose(F, momentum(V, V, p, 0.0, ldc_setup)[0])


def test_jacobian_is_diffusion_minus_convection(ldc_setup, rng):
    grid = ldc_setup.grid
    V = rng.standard_normal(grid.NV)
    assembler = MomentumAssembler(ldc_setup)

    _, jac = assembler.momentum(V, V, np.zeros(grid.Np), 0.0, get_jacobian=True)
    _, jac_c = assembler.convection.evaluate(V, V, 0.0, get_jacobian=True)
    _, jac_d = assembler.diffusion(V, 0.0, get_jacobian=True)

    assert abs(jac - (jac_d - jac_c)).max() < 1e-12


def test_uniform_flow_is_steady(uniform_flow_setup):
    grid = uniform_flow_setup.grid
    V = np.zeros(grid.NV)
    V[grid.indu] = 1.0
    F, _ = momentum(V, V, np.zeros(grid.Np), 0.0, uniform_flow_setup)
    assert np.max(np.abs(F)) < 1e-10


def test_body_force(grid):
    force = SteadyBodyForce(bodyforce_v=lambda x, y, z: -9.81)
    setup = build_setup(grid, BoundaryConditions(), Re=10.0, force=force)
    F, _ = momentum(np.zeros(grid.NV), np.zeros(grid.NV), np.zeros(grid.Np), 0.0, setup, nopressure=True)

    np.testing.assert_allclose(F[grid.indu], 0.0)
    np.testing.assert_allclose(F[grid.indv], -9.81 * setup.operators.omega[grid.indv])


def test_unsteady_body_force_follows_time(grid):
    force = UnsteadyBodyForce(bodyforce_u=lambda x, y, z, t: t)
    setup = build_setup(grid, BoundaryConditions(), Re=10.0, force=force)
    b1 = force.evaluate(grid, setup.operators, 1.0)
    b2 = force.evaluate(grid, setup.operators, 2.0)
    np.testing.assert_allclose(b2[grid.indu], 2 * b1[grid.indu])


def test_unsteady_boundary_conditions_are_refreshed(grid):
    bc = BoundaryConditions(u_bc=lambda x, y, z, t: t, unsteady=True)
    setup = build_setup(grid, bc, Re=10.0)
    assembler = MomentumAssembler(setup)
    V = np.zeros(grid.NV)

    assembler.momentum(V, V, np.zeros(grid.Np), 2.0)
    assert np.max(setup.operators.ub[0]) == pytest.approx(2.0)


def test_viscosity_model():
    model = get_viscosity_model("laminar", 200.0)
    assert isinstance(model, LaminarModel)
    assert model.nu == pytest.approx(5e-3)
    with pytest.raises(ValueError):
        get_viscosity_model("smagorinsky", 200.0)
    with pytest.raises(ValueError):
        LaminarModel(Re=0.0)
