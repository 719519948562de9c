import numpy as np

from fv.assembly.momentum import MomentumAssembler
from fv.core.corrections import pressure_additional_solve
from fv.core.helpers import max_divergence
from fv.linear_solvers.scipy_solver import get_pressure_solver
from meshing.boundary_conditions import set_bc_vectors


def _zero(x, y, z):
    return 0.0


def create_initial_conditions(setup, t=0.0, initial_velocity_u=_zero, initial_velocity_v=_zero,
                              initial_velocity_w=_zero, initial_pressure=_zero, pressure_solver=None):
    """
    Velocity and pressure from functions f(x, y, z) at the unknowns' positions.
    With ``solver_settings.p_initial`` the pressure is replaced by the one
    compatible with the initial velocity.
    """
    grid = setup.grid
    set_bc_vectors(setup, t)

    V = np.zeros(grid.NV)
    for a, f in enumerate((initial_velocity_u, initial_velocity_v, initial_velocity_w)):
        x, y, z = grid.velocity_points(a)
        V[grid.component_slices[a]] = np.broadcast_to(f(x, y, z), x.shape)

    x, y, z = grid.pressure_points()
    p = np.array(np.broadcast_to(initial_pressure(x, y, z), x.shape), dtype=np.float64)

    div = max_divergence(V, setup.operators)
    if div > 1e-12:
        print(f"Initial velocity field is not divergence free: max|div| = {div:.3e}")

    if setup.solver_settings.p_initial:
        if pressure_solver is None:
            pressure_solver = get_pressure_solver(setup)
        p = pressure_additional_solve(V, p, t, setup, MomentumAssembler(setup), pressure_solver)

    return V, p
