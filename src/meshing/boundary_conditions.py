"""Dirichlet velocity boundary conditions and the boundary-vector refresh hook."""

from dataclasses import dataclass
from typing import Callable

import numpy as np


def _zero(x, y, z, t):
    return 0.0


@dataclass
class BoundaryConditions:
    """Prescribed wall velocities.

    Parameters
    ----------
    u_bc, v_bc, w_bc : callable
        Vectorized functions ``f(x, y, z, t)`` returning the velocity
        component on the walls. Scalars are broadcast.
    unsteady : bool, optional
        If True, boundary vectors are refreshed before every residual
        evaluation. Default is False.
    """

    u_bc: Callable = _zero
    v_bc: Callable = _zero
    w_bc: Callable = _zero
    unsteady: bool = False

    def values(self, a, x, y, z, t):
        """Evaluate component ``a`` (0, 1, 2) of the wall velocity at points (x, y, z)."""
        f = (self.u_bc, self.v_bc, self.w_bc)[a]
        return np.array(np.broadcast_to(np.asarray(f(x, y, z, t), dtype=np.float64), x.shape))


def lid_driven_cavity_bc(grid, lid_velocity=1.0, lid_velocity_w=0.0):
    """Walls at rest except the top (y = ymax) lid moving with (lid_velocity, 0, lid_velocity_w)."""
    y_top = grid.axes[1].faces[-1]

    def u_bc(x, y, z, t):
        return np.where(np.isclose(y, y_top), lid_velocity, 0.0)

    def w_bc(x, y, z, t):
        return np.where(np.isclose(y, y_top), lid_velocity_w, 0.0)

    return BoundaryConditions(u_bc=u_bc, w_bc=w_bc)


def set_bc_vectors(setup, t):
    """Recompute every boundary vector of ``setup.operators`` for time ``t``."""
    setup.operators.update_boundary_vectors(setup.bc, t)
