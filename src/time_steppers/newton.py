"""Newton-Raphson iteration with optional Jacobian reuse."""

from dataclasses import dataclass, asdict

import numpy as np
import pandas as pd
from scipy.sparse.linalg import splu

from fv.linear_solvers.scipy_solver import scipy_solver


@dataclass
class NewtonResult:
    """Outcome of one Newton solve.

    Parameters
    ----------
    converged : bool
        Whether the residual tolerance was met.
    iterations : int
        Number of Newton updates performed.
    linear_solves : int
        Number of linear systems solved.
    residual_norm : float
        Max-norm of the final residual.
    initial_residual_norm : float
        Max-norm of the residual at the initial guess.
    """
    converged: bool
    iterations: int
    linear_solves: int
    residual_norm: float
    initial_residual_norm: float

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame([asdict(self)])


def _norm(r):
    return float(np.max(np.abs(r))) if r.size else 0.0


def newton_raphson(residual, jacobian, x0, newton_type="full", maxiter=10, abstol=1e-14, reltol=1e-14):
    """Solve ``residual(x) = 0`` starting from ``x0``.

    Parameters
    ----------
    residual : callable
        ``residual(x) -> np.ndarray``.
    jacobian : callable
        ``jacobian(x) -> sparse matrix``, the derivative of ``residual`` (or an
        approximation of it) at ``x``.
    x0 : np.ndarray
        Initial guess; not modified.
    newton_type : str, optional
        ``"full"`` rebuilds the Jacobian every iteration; ``"approximate"`` and
        ``"no"`` build and factorize it once at ``x0``.
    maxiter : int, optional
    abstol, reltol : float, optional
        Converged when ``|R|_inf <= max(abstol, reltol * |R0|_inf)``.

    Returns
    -------
    x : np.ndarray
        Best iterate; ``x0`` itself when it already satisfies the tolerance.
    result : NewtonResult
    """
    r = residual(x0)
    r0 = _norm(r)
    tol = max(abstol, reltol * r0)
    if r0 <= tol:
        return x0, NewtonResult(True, 0, 0, r0, r0)

    x = np.array(x0, dtype=np.float64)
    lu = None
    if newton_type != "full":
        lu = splu(jacobian(x).tocsc())

    rn = r0
    solves = 0
    iterations = 0
    converged = False
    while iterations < maxiter:
        if lu is None:
            dx = scipy_solver(jacobian(x), -r)
        else:
            dx = lu.solve(-r)
        solves += 1
        iterations += 1
        x += dx

        r = residual(x)
        rn = _norm(r)
        if rn <= tol:
            converged = True
            break

    return x, NewtonResult(converged, iterations, solves, rn, r0)
