"""Pressure projection onto discretely divergence-free velocity fields."""

import numpy as np


def velocity_correction(V_star, phi, dt, operators, out=None):
    """
    Apply velocity correction: V = V* - dt Ω⁻¹ G phi.
    """
    if out is None:
        out = np.empty_like(V_star)
    np.subtract(V_star, dt * operators.omega_inv * (operators.G @ phi), out=out)
    return out


def project(V_star, dt, setup, pressure_solver):
    """Project ``V_star`` so that ``M V + yM = 0``.

    Solves ``L phi = (M V* + yM) / dt`` and corrects the velocity.

    Returns
    -------
    V : np.ndarray
        Projected velocity.
    phi : np.ndarray
        Pressure potential; the pressure increment over ``dt``.
    """
    ops = setup.operators
    f = ops.divergence(V_star) / dt
    phi = pressure_solver.solve(f)
    return velocity_correction(V_star, phi, dt, ops), phi


def boundary_divergence_rate(setup, t):
    """``d yM / dt`` at time ``t``; zero for steady boundary conditions."""
    ops = setup.operators
    if not setup.bc.unsteady:
        return np.zeros(ops.M.shape[0])
    h = np.sqrt(np.finfo(np.float64).eps) * max(1.0, abs(t))
    return (ops.boundary_divergence(setup.bc, t + h) - ops.boundary_divergence(setup.bc, t - h)) / (2 * h)


def pressure_additional_solve(V, p, t, setup, assembler, pressure_solver):
    """Pressure consistent with ``V`` at time ``t``.

    Solves ``L p = M Ω⁻¹ F + dyM/dt`` with ``F`` the momentum right-hand side
    without pressure, so that the time derivative of the divergence vanishes.
    """
    ops = setup.operators
    F, _ = assembler.momentum(V, V, p, t, nopressure=True)
    f = ops.M @ (ops.omega_inv * F) + boundary_divergence_rate(setup, t)
    return pressure_solver.solve(f)
