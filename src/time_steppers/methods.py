"""Time integration methods as immutable parameter records.

The four variants are plain frozen dataclasses; the step for each is
selected by :func:`time_steppers.step.step_method` dispatching on the type.
"""

from dataclasses import dataclass

import numpy as np

NEWTON_TYPES = ("no", "approximate", "full")


def _freeze(obj, name, value):
    arr = np.array(value, dtype=np.float64)
    arr.setflags(write=False)
    object.__setattr__(obj, name, arr)


@dataclass(frozen=True, eq=False)
class ExplicitRungeKuttaMethod:
    """Explicit Runge-Kutta method with strictly lower-triangular ``A``.

    Parameters
    ----------
    A : np.ndarray
        Butcher matrix, shape (s, s).
    b : np.ndarray
        Quadrature weights, shape (s,).
    c : np.ndarray
        Stage times, shape (s,).
    r : float
        Order indicator of the embedded error estimate.
    name : str, optional
    """
    A: np.ndarray
    b: np.ndarray
    c: np.ndarray
    r: float
    name: str = "ERK"

    def __post_init__(self):
        for key in ("A", "b", "c"):
            _freeze(self, key, getattr(self, key))

    @property
    def nstage(self):
        return self.b.shape[0]


@dataclass(frozen=True, eq=False)
class ImplicitRungeKuttaMethod:
    """Implicit Runge-Kutta method solved with Newton-Raphson.

    Parameters
    ----------
    A, b, c, r, name
        As for :class:`ExplicitRungeKuttaMethod`.
    newton_type : str, optional
        ``"no"``: iteration matrix without the momentum Jacobian,
        ``"approximate"``: Jacobian built and factorized once per step,
        ``"full"``: Jacobian rebuilt every iteration. Default is ``"full"``.
    maxiter : int, optional
        Newton iteration limit. Default is 10.
    abstol, reltol : float, optional
        Stop when the max-norm of the residual is below
        ``max(abstol, reltol * |R0|)``. Default is 1e-14 for both.
    """
    A: np.ndarray
    b: np.ndarray
    c: np.ndarray
    r: float
    name: str = "IRK"
    newton_type: str = "full"
    maxiter: int = 10
    abstol: float = 1e-14
    reltol: float = 1e-14

    def __post_init__(self):
        for key in ("A", "b", "c"):
            _freeze(self, key, getattr(self, key))
        if self.newton_type not in NEWTON_TYPES:
            raise ValueError(f"Unknown newton_type {self.newton_type!r}, expected one of {NEWTON_TYPES}")
        if self.maxiter < 0:
            raise ValueError("maxiter must be non-negative")

    @property
    def nstage(self):
        return self.b.shape[0]


@dataclass(frozen=True, eq=False)
class AdamsBashforthCrankNicolsonMethod:
    """IMEX AB-CN: Adams-Bashforth for convection (``alpha1``, ``alpha2``),
    Crank-Nicolson for diffusion (implicitness ``theta``).
    Second order for ``theta = 1/2``.
    """
    alpha1: float = 3 / 2
    alpha2: float = -1 / 2
    theta: float = 1 / 2
    name: str = "ABCN"


@dataclass(frozen=True, eq=False)
class OneLegMethod:
    """Explicit one-leg beta-method."""
    beta: float = 1 / 2
    name: str = "OneLeg"


def runge_kutta_method(A, b, c, r, **kwargs):
    """Build an explicit or implicit Runge-Kutta method from its tableau.

    The method is explicit when the upper triangle of ``A``, diagonal
    included, is zero to floating point tolerance.

    Raises
    ------
    ValueError
        If ``A`` is not square or ``b`` and ``c`` do not match its size.
    """
    A = np.atleast_2d(np.asarray(A, dtype=np.float64))
    b = np.atleast_1d(np.asarray(b, dtype=np.float64))
    c = np.atleast_1d(np.asarray(c, dtype=np.float64))
    s = A.shape[0]
    if not (A.ndim == 2 and A.shape == (s, s) and b.shape == (s,) and c.shape == (s,)):
        raise ValueError(
            f"A, b, and c must have the same sizes, got A{A.shape}, b{b.shape}, c{c.shape}"
        )
    if np.allclose(np.triu(A), 0.0):
        # Newton settings have no meaning for explicit methods
        name = kwargs.get("name", "ERK")
        return ExplicitRungeKuttaMethod(A, b, c, float(r), name=name)
    return ImplicitRungeKuttaMethod(A, b, c, float(r), **kwargs)


def needs_startup_method(method):
    """Whether ``method`` needs history that is not available at the initial time."""
    return isinstance(method, (AdamsBashforthCrankNicolsonMethod, OneLegMethod))
