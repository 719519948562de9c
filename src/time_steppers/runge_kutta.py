"""Explicit and implicit Runge-Kutta steps for the incompressible equations."""

import numpy as np
from scipy.sparse import bmat, diags, eye, kron

from fv.assembly.pressure_correction_eq_assembly import pin_rows
from fv.core.corrections import pressure_additional_solve, project
from meshing.boundary_conditions import set_bc_vectors
from time_steppers.methods import ExplicitRungeKuttaMethod, ImplicitRungeKuttaMethod
from time_steppers.newton import newton_raphson
from time_steppers.step import step_method


@step_method.register
def _(method: ExplicitRungeKuttaMethod, stepper, dt):
    """Explicit stages, each followed by a projection.

    Stage i+1 starts from ``V* = Vn + dt Ω⁻¹ sum_j a_ij F_j`` (``b`` for the
    final stage), which is projected with the effective step ``c_{i+1} dt``;
    the projection potential is the stage pressure.
    """
    setup = stepper.setup
    ops = setup.operators
    assembler = stepper.assembler
    A, b, c = method.A, method.b, method.c
    s = method.nstage

    Vn, tn = stepper.V, stepper.t
    V = Vn.copy()
    p = stepper.p.copy()
    kV = np.zeros((s, Vn.shape[0]))
    F = np.zeros(Vn.shape[0])

    t_i = tn
    for i in range(s):
        assembler.momentum(V, V, p, t_i, F=F, nopressure=True)
        kV[i] = ops.omega_inv * F

        if i < s - 1:
            weights, c_next = A[i + 1, : i + 1], c[i + 1]
        else:
            weights, c_next = b, 1.0
        t_i = tn + c_next * dt

        if setup.bc.unsteady:
            set_bc_vectors(setup, t_i)

        V = Vn + dt * (weights @ kV[: i + 1])
        if c_next != 0:
            V, p = project(V, c_next * dt, setup, stepper.pressure_solver)

    if setup.solver_settings.p_add_solve:
        p = pressure_additional_solve(V, p, tn + dt, setup, assembler, stepper.pressure_solver)

    return V, p


def _stage_residual(method, stepper, dt, NV, Np, get_jacobian):
    """Residual of the coupled stage system and a record of the last evaluation.

    Unknowns are ``[V_1 .. V_s, P_1 .. P_s]``. The momentum rows are
    ``Ω (V_i - Vn) / dt - sum_j a_ij F(V_j, P_j, t_j)`` and the continuity rows
    are ``M V_i + yM(t_i)``, with the first continuity row of every stage
    replaced by a pin on that stage's first pressure dof.
    """
    setup = stepper.setup
    ops = setup.operators
    A, c = method.A, method.c
    s = method.nstage
    Vn, tn = stepper.V, stepper.t
    times = tn + c * dt

    if setup.bc.unsteady:
        yM = [ops.boundary_divergence(setup.bc, t_i) for t_i in times]
    else:
        yM = [ops.yM] * s

    last = {"F": np.zeros((s, NV)), "jac": [None] * s}

    def residual(x):
        Vs = x[: s * NV].reshape(s, NV)
        Ps = x[s * NV:].reshape(s, Np)
        for i in range(s):
            _, last["jac"][i] = stepper.assembler.momentum(
                Vs[i], Vs[i], Ps[i], times[i], F=last["F"][i], get_jacobian=get_jacobian
            )
        R_V = (ops.omega * (Vs - Vn)) / dt - A @ last["F"]
        R_P = np.stack([ops.M @ Vs[i] + yM[i] for i in range(s)])
        R_P[:, 0] = 0.0
        return np.concatenate([R_V.ravel(), R_P.ravel()])

    return residual, last


def _stage_matrix(method, dt, ops, jacs, NV, Np):
    """Iteration matrix ``[[Ω/dt - A ⊗ dF/dV, A ⊗ G], [I ⊗ M, 0]]`` with pinned pressure rows."""
    A = method.A
    s = method.nstage
    Om = diags(np.tile(ops.omega, s) / dt)
    if jacs is None:
        ZV = Om
    else:
        ZV = Om - bmat([[A[i, j] * jacs[j] for j in range(s)] for i in range(s)])
    Z = bmat([[ZV, kron(A, ops.G)], [kron(eye(s), ops.M), None]], format="csr")
    return pin_rows(Z, [s * NV + i * Np for i in range(s)])


@step_method.register
def _(method: ImplicitRungeKuttaMethod, stepper, dt):
    """Newton-Raphson on all stages at once, then a projection at the new time.

    A Newton solve that reaches ``maxiter`` is not an error: the best iterate
    is used, the failure is counted on the stepper and reported.
    """
    setup = stepper.setup
    ops = setup.operators
    grid = setup.grid
    NV, Np = grid.NV, grid.Np
    s = method.nstage
    Vn, pn, tn = stepper.V, stepper.p, stepper.t

    full = method.newton_type == "full"
    residual, last = _stage_residual(method, stepper, dt, NV, Np, get_jacobian=full)

    def jacobian(x):
        if method.newton_type == "no":
            return _stage_matrix(method, dt, ops, None, NV, Np)
        if not full:
            # The residual does not carry Jacobians in this mode
            Vs = x[: s * NV].reshape(s, NV)
            Ps = x[s * NV:].reshape(s, Np)
            jacs = [
                stepper.assembler.momentum(Vs[i], Vs[i], Ps[i], tn + method.c[i] * dt, get_jacobian=True)[1]
                for i in range(s)
            ]
            return _stage_matrix(method, dt, ops, jacs, NV, Np)
        return _stage_matrix(method, dt, ops, last["jac"], NV, Np)

    x0 = np.concatenate([np.tile(Vn, s), np.tile(pn, s)])
    x, result = newton_raphson(
        residual, jacobian, x0,
        newton_type=method.newton_type,
        maxiter=method.maxiter,
        abstol=method.abstol,
        reltol=method.reltol,
    )
    stepper.newton = result
    if not result.converged:
        stepper.newton_failures += 1
        print(
            f"n = {stepper.n}: Newton stopped after {result.iterations} iterations, "
            f"residual {result.residual_norm:.3e}"
        )

    # last["F"] holds the stage right-hand sides at the returned iterate
    V = Vn + dt * ops.omega_inv * (method.b @ last["F"])
    if setup.bc.unsteady:
        set_bc_vectors(setup, tn + dt)
    V, _ = project(V, dt, setup, stepper.pressure_solver)

    if setup.solver_settings.p_add_solve:
        p = pressure_additional_solve(V, pn, tn + dt, setup, stepper.assembler, stepper.pressure_solver)
    else:
        p = x[s * NV:].reshape(s, Np)[-1].copy()

    return V, p
