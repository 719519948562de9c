"""Body forces integrated over the velocity control volumes."""

from dataclasses import dataclass, field
from typing import Callable

import numpy as np


def _zero(x, y, z):
    return 0.0


def _zero_t(x, y, z, t):
    return 0.0


def _integrate(grid, operators, functions, out):
    for a, f in enumerate(functions):
        x, y, z = grid.velocity_points(a)
        vals = np.broadcast_to(np.asarray(f(x, y, z), dtype=np.float64), x.shape)
        out[grid.component_slices[a]] = operators.omega[grid.component_slices[a]] * vals
    return out


@dataclass
class SteadyBodyForce:
    """Time-independent force ``f(x, y, z)`` per component, evaluated once."""
    bodyforce_u: Callable = _zero
    bodyforce_v: Callable = _zero
    bodyforce_w: Callable = _zero
    _b: np.ndarray = field(default=None, init=False, repr=False)

    def evaluate(self, grid, operators, t, out=None):
        if self._b is None or self._b.shape[0] != grid.NV:
            self._b = _integrate(
                grid, operators,
                (self.bodyforce_u, self.bodyforce_v, self.bodyforce_w),
                np.zeros(grid.NV),
            )
        if out is None:
            return self._b.copy()
        out[:] = self._b
        return out


@dataclass
class UnsteadyBodyForce:
    """Force ``f(x, y, z, t)`` per component, re-evaluated at every call."""
    bodyforce_u: Callable = _zero_t
    bodyforce_v: Callable = _zero_t
    bodyforce_w: Callable = _zero_t

    def evaluate(self, grid, operators, t, out=None):
        if out is None:
            out = np.zeros(grid.NV)
        functions = [
            (lambda x, y, z, f=f: f(x, y, z, t))
            for f in (self.bodyforce_u, self.bodyforce_v, self.bodyforce_w)
        ]
        return _integrate(grid, operators, functions, out)
