"""Two-level multistep methods: IMEX Adams-Bashforth/Crank-Nicolson and one-leg beta."""

import numpy as np
from scipy.sparse import diags
from scipy.sparse.linalg import splu

from fv.core.corrections import project
from meshing.boundary_conditions import set_bc_vectors
from time_steppers.methods import AdamsBashforthCrankNicolsonMethod, OneLegMethod
from time_steppers.step import step_method


def _diffusion_factorization(stepper, dt, theta, nu):
    """LU of ``Ω/dt - theta nu D``, recomputed only when dt changes."""
    if stepper.diffusion_lu is None or stepper.diffusion_lu_dt != dt:
        ops = stepper.setup.operators
        lhs = diags(ops.omega / dt) - theta * nu * ops.D
        stepper.diffusion_lu = splu(lhs.tocsc())
        stepper.diffusion_lu_dt = dt
    return stepper.diffusion_lu


@step_method.register
def _(method: AdamsBashforthCrankNicolsonMethod, stepper, dt):
    """Convection extrapolated with Adams-Bashforth, diffusion with the theta-method.

    ``(Ω/dt - θνD) V* = Ω/dt Vn + (1-θ)ν(D Vn + yD_n) + θν yD_{n+1}
    - (α1 c_n + α2 c_{n-1}) + b - (G pn + y_p)``, then ``V*`` is projected and
    the potential is added to the pressure.
    """
    setup = stepper.setup
    ops = setup.operators
    assembler = stepper.assembler
    nu = setup.viscosity_model.nu
    theta = method.theta
    Vn, pn, tn = stepper.V, stepper.p, stepper.t

    if setup.bc.unsteady:
        set_bc_vectors(setup, tn)
    c_n = assembler.convection.evaluate(Vn, Vn, tn)[0].copy()
    c_prev = stepper.c_prev if stepper.c_prev is not None else c_n
    yD_n = ops.yD.copy()
    b_n = assembler.body_force(tn).copy()

    if setup.bc.unsteady:
        set_bc_vectors(setup, tn + dt)
    yD_np1 = ops.yD.copy()
    b_np1 = assembler.body_force(tn + dt).copy()

    rhs = (
        ops.omega / dt * Vn
        + (1 - theta) * nu * (ops.D @ Vn + yD_n)
        + theta * nu * yD_np1
        - (method.alpha1 * c_n + method.alpha2 * c_prev)
        + (1 - theta) * b_n + theta * b_np1
        - (ops.G @ pn + ops.y_p)
    )
    V_star = _diffusion_factorization(stepper, dt, theta, nu).solve(rhs)

    V, dp = project(V_star, dt, setup, stepper.pressure_solver)
    stepper.c_prev = c_n
    return V, pn + dp


@step_method.register
def _(method: OneLegMethod, stepper, dt):
    """One-leg beta-method.

    Extrapolate ``Ṽ = (1+β)Vn - βV_{n-1}`` (and ``p̃``) to ``t + βdt``, evaluate
    the full right-hand side there and combine
    ``V* = (2βVn - (β-½)V_{n-1} + dt Ω⁻¹ F(Ṽ, p̃)) / (β+½)``.
    """
    setup = stepper.setup
    ops = setup.operators
    beta = method.beta
    Vn, pn, tn = stepper.V, stepper.p, stepper.t
    V_prev = stepper.V_prev if stepper.V_prev is not None else Vn
    p_prev = stepper.p_prev if stepper.p_prev is not None else pn

    V_tilde = (1 + beta) * Vn - beta * V_prev
    p_tilde = (1 + beta) * pn - beta * p_prev
    F, _ = stepper.assembler.momentum(V_tilde, V_tilde, p_tilde, tn + beta * dt)

    V_star = (2 * beta * Vn - (beta - 0.5) * V_prev + dt * ops.omega_inv * F) / (beta + 0.5)
    if setup.bc.unsteady:
        set_bc_vectors(setup, tn + dt)
    V, dp = project(V_star, dt / (beta + 0.5), setup, stepper.pressure_solver)

    stepper.V_prev = Vn
    stepper.p_prev = pn
    return V, p_tilde + dp
