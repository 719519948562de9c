"""Time stepper state and the transitions between its states.

A stepper goes ``UNINITIALIZED -> RUNNING -> FINISHED``. A multistep method
is started with a one-step method; at the switch the startup stepper is
marked ``SWITCHING`` and :func:`change_time_stepper` hands its state to a
fresh stepper running the primary method.
"""

from enum import Enum

import numpy as np
from scipy.sparse import diags

from fv.assembly.momentum import MomentumAssembler
from fv.discretization.diffusion.viscosity import LaminarModel
from fv.linear_solvers.scipy_solver import get_pressure_solver
from time_steppers.methods import AdamsBashforthCrankNicolsonMethod


class StepperStatus(Enum):
    UNINITIALIZED = "uninitialized"
    RUNNING = "running"
    SWITCHING = "switching"
    FINISHED = "finished"


class TimeStepper:
    """Solution state advanced by :func:`time_steppers.step.step`.

    Parameters
    ----------
    method : method record
        One of the variants of :mod:`time_steppers.methods`.
    setup : Setup
    V, p : np.ndarray
        Initial velocity (length NV) and pressure (length Np); copied.
    t : float, optional
        Initial time.
    dt : float, optional
        Time step, updated by every step.
    n : int, optional
        Step index.
    pressure_solver : PressureSolver, optional
        Reused when given, otherwise built from ``setup``.
    """

    def __init__(self, method, setup, V, p, t=0.0, dt=0.0, n=0, pressure_solver=None):
        grid = setup.grid
        V = np.array(V, dtype=np.float64)
        p = np.array(p, dtype=np.float64)
        if V.shape != (grid.NV,):
            raise ValueError(f"Velocity must have length NV = {grid.NV}, got shape {V.shape}")
        if p.shape != (grid.Np,):
            raise ValueError(f"Pressure must have length Np = {grid.Np}, got shape {p.shape}")
        if isinstance(method, AdamsBashforthCrankNicolsonMethod) and not isinstance(
            setup.viscosity_model, LaminarModel
        ):
            raise ValueError("AB-CN requires the laminar viscosity model")

        self.method = method
        self.setup = setup
        self.V = V
        self.p = p
        self.t = float(t)
        self.dt = dt
        self.n = n

        self.assembler = MomentumAssembler(setup)
        self.pressure_solver = pressure_solver if pressure_solver is not None else get_pressure_solver(setup)

        # Multistep history
        self.V_prev = None
        self.p_prev = None
        self.c_prev = None
        # Implicit diffusion factorization of AB-CN, keyed on dt
        self.diffusion_lu = None
        self.diffusion_lu_dt = None

        self.newton = None
        self.newton_failures = 0
        self.status = StepperStatus.UNINITIALIZED

    def finished(self, t_end):
        """Mark the stepper FINISHED once ``t`` has reached ``t_end``."""
        eps = 1e-12 * max(1.0, abs(t_end))
        if self.t >= t_end - eps:
            self.status = StepperStatus.FINISHED
            return True
        return False


def change_time_stepper(stepper, method):
    """New stepper running ``method`` from the current state of ``stepper``.

    V, p, t, n and dt are copied; multistep history starts empty. The old
    stepper keeps its state and is marked SWITCHING.
    """
    stepper.status = StepperStatus.SWITCHING
    new = TimeStepper(
        method,
        stepper.setup,
        stepper.V.copy(),
        stepper.p.copy(),
        t=stepper.t,
        dt=stepper.dt,
        n=stepper.n,
        pressure_solver=stepper.pressure_solver,
    )
    new.newton_failures = stepper.newton_failures
    new.status = StepperStatus.RUNNING
    return new


def _row_sum_bound(jac, omega_inv):
    if jac is None or jac.nnz == 0:
        return 0.0
    return float(np.asarray(abs(diags(omega_inv) @ jac).sum(axis=1)).max())


def get_timestep(stepper, cfl=1.0):
    """Stable time step estimate from Gershgorin bounds of the operators.

    ``dt = cfl / (lambda_conv + lambda_diff)`` with the bounds the maximum
    absolute row sums of ``Ω⁻¹ dc/dV`` and ``Ω⁻¹ dd/dV`` at the current state.
    """
    ops = stepper.setup.operators
    V, t = stepper.V, stepper.t
    _, jac_c = stepper.assembler.convection.evaluate(V, V, t, get_jacobian=True)
    _, jac_d = stepper.assembler.diffusion(V, t, get_jacobian=True)
    lam = _row_sum_bound(jac_c, ops.omega_inv) + _row_sum_bound(jac_d, ops.omega_inv)
    if lam == 0.0:
        return np.inf
    return cfl / lam
