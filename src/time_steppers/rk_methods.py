"""Catalogue of Runge-Kutta tableaux and multistep methods.

Names follow the convention ``<family><stages><order>`` where applicable.
Keyword arguments are forwarded to :func:`runge_kutta_method`, so the Newton
settings of the implicit methods can be chosen per instance.
"""

import numpy as np

from time_steppers.methods import AdamsBashforthCrankNicolsonMethod, OneLegMethod, runge_kutta_method


def _tableau(A, b, c, r, name, kwargs):
    """Catalogue entry; a ``name`` keyword overrides the catalogue name."""
    kwargs.setdefault("name", name)
    return runge_kutta_method(A, b, c, r, **kwargs)

# ---------------------------------------------------------------------------
# Explicit
# ---------------------------------------------------------------------------


def FE11(**kwargs):
    """Forward Euler."""
    return _tableau([[0.0]], [1.0], [0.0], 1, "FE11", kwargs)


def SSP22(**kwargs):
    """Strong-stability-preserving Heun method."""
    A = [[0, 0], [1, 0]]
    return _tableau(A, [1 / 2, 1 / 2], [0, 1], 2, "SSP22", kwargs)


def SSP33(**kwargs):
    """Shu-Osher third order SSP method."""
    A = [[0, 0, 0], [1, 0, 0], [1 / 4, 1 / 4, 0]]
    return _tableau(A, [1 / 6, 1 / 6, 2 / 3], [0, 1, 1 / 2], 3, "SSP33", kwargs)


def RK33(**kwargs):
    """Kutta's third order method."""
    A = [[0, 0, 0], [1 / 2, 0, 0], [-1, 2, 0]]
    return _tableau(A, [1 / 6, 2 / 3, 1 / 6], [0, 1 / 2, 1], 3, "RK33", kwargs)


def Wray3(**kwargs):
    """Wray's low-storage third order method."""
    A = [[0, 0, 0], [8 / 15, 0, 0], [1 / 4, 5 / 12, 0]]
    return _tableau(A, [1 / 4, 0, 3 / 4], [0, 8 / 15, 2 / 3], 3, "Wray3", kwargs)


def RK44(**kwargs):
    """Classical fourth order Runge-Kutta."""
    A = [[0, 0, 0, 0], [1 / 2, 0, 0, 0], [0, 1 / 2, 0, 0], [0, 0, 1, 0]]
    b = [1 / 6, 1 / 3, 1 / 3, 1 / 6]
    return _tableau(A, b, [0, 1 / 2, 1 / 2, 1], 4, "RK44", kwargs)


def RK38(**kwargs):
    """Kutta's 3/8 rule."""
    A = [[0, 0, 0, 0], [1 / 3, 0, 0, 0], [-1 / 3, 1, 0, 0], [1, -1, 1, 0]]
    b = [1 / 8, 3 / 8, 3 / 8, 1 / 8]
    return _tableau(A, b, [0, 1 / 3, 2 / 3, 1], 4, "RK38", kwargs)


# ---------------------------------------------------------------------------
# Implicit
# ---------------------------------------------------------------------------


def BE11(**kwargs):
    """Backward Euler."""
    return _tableau([[1.0]], [1.0], [1.0], 1, "BE11", kwargs)


def GL1(**kwargs):
    """Implicit midpoint (Gauss-Legendre, one stage)."""
    return _tableau([[1 / 2]], [1.0], [1 / 2], 2, "GL1", kwargs)


def LIIIC2(**kwargs):
    """Lobatto IIIC, two stages."""
    A = [[1 / 2, -1 / 2], [1 / 2, 1 / 2]]
    return _tableau(A, [1 / 2, 1 / 2], [0, 1], 2, "LIIIC2", kwargs)


def RIA2(**kwargs):
    """Radau IIA, two stages, third order."""
    A = [[5 / 12, -1 / 12], [3 / 4, 1 / 4]]
    return _tableau(A, [3 / 4, 1 / 4], [1 / 3, 1], 3, "RIA2", kwargs)


def GL2(**kwargs):
    """Gauss-Legendre, two stages, fourth order."""
    s3 = np.sqrt(3.0)
    A = [[1 / 4, 1 / 4 - s3 / 6], [1 / 4 + s3 / 6, 1 / 4]]
    c = [1 / 2 - s3 / 6, 1 / 2 + s3 / 6]
    return _tableau(A, [1 / 2, 1 / 2], c, 4, "GL2", kwargs)


# ---------------------------------------------------------------------------
# Multistep
# ---------------------------------------------------------------------------


def ABCN(**kwargs):
    return AdamsBashforthCrankNicolsonMethod(**kwargs)


def OneLeg(**kwargs):
    return OneLegMethod(**kwargs)


EXPLICIT_METHODS = {m.__name__: m for m in (FE11, SSP22, SSP33, RK33, Wray3, RK44, RK38)}
IMPLICIT_METHODS = {m.__name__: m for m in (BE11, GL1, LIIIC2, RIA2, GL2)}
MULTISTEP_METHODS = {m.__name__: m for m in (ABCN, OneLeg)}
METHODS = {**EXPLICIT_METHODS, **IMPLICIT_METHODS, **MULTISTEP_METHODS}


def get_method(method, /, **kwargs):
    """Look up a method by name, e.g. ``get_method("GL2", newton_type="approximate")``.

    Newton keyword arguments are ignored by explicit methods. A ``name``
    keyword relabels the returned Runge-Kutta method.
    """
    try:
        factory = METHODS[method]
    except KeyError:
        raise ValueError(f"Unknown time integration method {method!r}, expected one of {sorted(METHODS)}") from None
    if method in MULTISTEP_METHODS:
        return factory()
    return factory(**kwargs)
