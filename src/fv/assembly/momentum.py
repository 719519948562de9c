"""Momentum right-hand side F(V, p, t) and its velocity Jacobian.

Finite-volume form::

    F = -c(V, phi) + d(V) + b - (G p + y_p)
    dF/dV = -dc/dV + dd/dV

The body force does not depend on V and the pressure term has no velocity
derivative; ``dF/dp = -G`` is used directly by the implicit solvers.
"""

import numpy as np

from meshing.boundary_conditions import set_bc_vectors

from fv.discretization.convection.convection import get_convection_model


class MomentumCache:
    """Scratch vectors of one assembler, allocated once from the grid."""

    def __init__(self, grid):
        NV = grid.NV
        self.d = np.zeros(NV)
        self.b = np.zeros(NV)
        self.Gp = np.zeros(NV)


class MomentumAssembler:
    """Residual evaluation for one time stepper.

    Owns the convection strategy and a :class:`MomentumCache`, so two
    assemblers built from the same setup never share buffers.
    """

    def __init__(self, setup):
        self.setup = setup
        self.cache = MomentumCache(setup.grid)
        self.convection = get_convection_model(setup)

    def diffusion(self, V, t, get_jacobian=False):
        return self.setup.viscosity_model.diffusion(
            V, t, self.setup.operators, out=self.cache.d, get_jacobian=get_jacobian
        )

    def body_force(self, t):
        setup = self.setup
        return setup.force.evaluate(setup.grid, setup.operators, t, out=self.cache.b)

    def momentum(self, V, phi, p, t, F=None, get_jacobian=False, nopressure=False):
        """Evaluate the momentum right-hand side.

        Parameters
        ----------
        V : np.ndarray
            Velocity field (convected quantity).
        phi : np.ndarray
            Convecting field, usually ``V``.
        p : np.ndarray
            Pressure; ignored when ``nopressure``.
        t : float
            Time, used for unsteady boundary conditions and forces.
        F : np.ndarray, optional
            Output buffer of length NV, overwritten. A new array is
            allocated when omitted.
        get_jacobian : bool, optional
            Also return ``dF/dV``.
        nopressure : bool, optional
            Leave out the pressure gradient.

        Returns
        -------
        F : np.ndarray
        jac : scipy.sparse.csr_matrix or None
        """
        setup = self.setup
        ops = setup.operators

        if setup.bc.unsteady:
            set_bc_vectors(setup, t)

        if F is None:
            F = np.empty(setup.grid.NV)

        c, jac_c = self.convection.evaluate(V, phi, t, get_jacobian=get_jacobian)
        d, jac_d = self.diffusion(V, t, get_jacobian=get_jacobian)
        b = self.body_force(t)

        np.subtract(d, c, out=F)
        F += b

        if not nopressure:
            np.add(ops.G @ p, ops.y_p, out=self.cache.Gp)
            F -= self.cache.Gp

        jac = (jac_d - jac_c).tocsr() if get_jacobian else None
        return F, jac


def momentum(V, phi, p, t, setup, get_jacobian=False, nopressure=False):
    """Evaluate the momentum right-hand side with a freshly built assembler."""
    return MomentumAssembler(setup).momentum(
        V, phi, p, t, get_jacobian=get_jacobian, nopressure=nopressure
    )
