"""Operator pre-assembly on a staggered grid.

All operators are assembled once as Kronecker products of 1D stencils acting on
boundary-extended component vectors, then split column-wise into the part that
acts on the unknowns and the part that acts on the prescribed wall values.
The second part, applied to the wall values at time t, gives the boundary
vectors (``yA``, ``yI``, ``yD``, ``yM``, ...) that are refreshed by
:func:`meshing.boundary_conditions.set_bc_vectors`.

Operators are written in integrated finite-volume form:
``Ω dV/dt = -c + d + b - (G p + y_p)`` and ``M V + yM = 0``.
"""

from dataclasses import dataclass, field
from typing import Optional

import numpy as np
from scipy.sparse import block_diag, csr_matrix, diags, hstack, kron

from meshing.staggered_grid import _meshgrid3
from meshing.stencils import difference_operator, linear_operator, wide_operator

WIDE_PAIRS = {("F", "c"), ("C", "f"), ("C", "fi")}

# Richardson factor of the fourth-order combination alpha * narrow - wide
ORDER4_ALPHA = 27.0


def _kron3(ops):
    ox, oy, oz = ops
    return csr_matrix(kron(oz, kron(oy, ox)))


def _axis_operator(ax, src_kind, tgt_kind, gradient=False, wide=False):
    if wide and (src_kind, tgt_kind) in WIDE_PAIRS:
        return wide_operator(src_kind, tgt_kind, ax.n, ax.widths[0], gradient)
    return linear_operator(ax.ext(src_kind), ax.points(tgt_kind), gradient)


def _flux_kinds(a, b):
    """Point kinds where the flux of component ``a`` in direction ``b`` is evaluated."""
    kinds = []
    for d in range(3):
        if d == b:
            kinds.append("c" if d == a else "f")
        else:
            kinds.append("fi" if d == a else "c")
    return tuple(kinds)


class ComponentBoundary:
    """Interior/boundary split of the boundary-extended vector of one velocity component."""

    def __init__(self, grid, a):
        kinds = grid.source_kinds(a)
        mx, my, mz = (ax.interior_mask(k) for ax, k in zip(grid.axes, kinds))
        mask = np.kron(mz, np.kron(my, mx)).astype(bool)
        self.interior = np.flatnonzero(mask)
        self.boundary = np.flatnonzero(~mask)

        x, y, z = _meshgrid3(*(ax.ext(k) for ax, k in zip(grid.axes, kinds)))
        self.points = (x[self.boundary], y[self.boundary], z[self.boundary])

    def split(self, op):
        op = op.tocsc()
        return op[:, self.interior].tocsr(), op[:, self.boundary].tocsr()


@dataclass
class ConvectionOperators:
    """Averaging ``A``, interpolation ``I`` and differencing ``C`` per (component, direction)."""

    A: dict
    A_bnd: dict
    I: dict
    I_bnd: dict
    C: dict
    yA: dict = field(default_factory=dict)
    yI: dict = field(default_factory=dict)

    def __post_init__(self):
        for key, op in self.A.items():
            self.yA[key] = np.zeros(op.shape[0])
            self.yI[key] = np.zeros(op.shape[0])

    def update(self, ub):
        for (a, b) in self.A:
            self.yA[(a, b)] = self.A_bnd[(a, b)] @ ub[a]
            self.yI[(a, b)] = self.I_bnd[(a, b)] @ ub[b]


def _volume_difference(grid, a, b, wide=False):
    """Difference of (a, b) fluxes over the control volumes of component ``a``."""
    cv = grid.point_kinds(a)
    ops = []
    for d, ax in enumerate(grid.axes):
        if d == b:
            ops.append(difference_operator(ax.n if a == b else ax.n + 1, wide=wide))
        else:
            ops.append(diags(ax.volume_widths(cv[d])))
    return _kron3(ops)


def _pair_operator(grid, src, pts, b, gradient=False, wide=False):
    return _kron3([
        _axis_operator(ax, s, p, gradient=gradient and d == b, wide=wide and d == b)
        for d, (ax, s, p) in enumerate(zip(grid.axes, src, pts))
    ])


def build_convection_operators(grid, boundaries, wide=False):
    A, A_bnd, I, I_bnd, C = {}, {}, {}, {}, {}
    for a in range(3):
        for b in range(3):
            key = (a, b)
            pts = _flux_kinds(a, b)
            A[key], A_bnd[key] = boundaries[a].split(
                _pair_operator(grid, grid.source_kinds(a), pts, b, wide=wide)
            )
            I[key], I_bnd[key] = boundaries[b].split(
                _pair_operator(grid, grid.source_kinds(b), pts, b, wide=wide)
            )
            C[key] = _volume_difference(grid, a, b, wide=wide)
    return ConvectionOperators(A=A, A_bnd=A_bnd, I=I, I_bnd=I_bnd, C=C)


def _diffusion_operator(grid, a, wide=False):
    """Unscaled integrated Laplacian of component ``a`` on its extended vector."""
    D = None
    for b in range(3):
        pts = _flux_kinds(a, b)
        grad = _pair_operator(grid, grid.source_kinds(a), pts, b, gradient=True, wide=wide)
        term = _volume_difference(grid, a, b, wide=wide) @ grad
        D = term if D is None else D + term
    return D.tocsr()


def _divergence_operator(grid, a):
    ops = []
    for d, (ax, s) in enumerate(zip(grid.axes, grid.source_kinds(a))):
        if d == a:
            ops.append(difference_operator(ax.n + 1))
        else:
            ops.append(diags(ax.widths) @ linear_operator(ax.ext(s), ax.centres))
    return _kron3(ops)


def _centre_operator(grid, a):
    return _kron3([
        linear_operator(ax.ext(s), ax.centres)
        for ax, s in zip(grid.axes, grid.source_kinds(a))
    ])


@dataclass
class Operators:
    """Operator set shared read-only by all components of a simulation.

    Only the boundary vectors change, through :meth:`update_boundary_vectors`.
    """

    slices: tuple
    boundaries: list
    conv: ConvectionOperators
    D: csr_matrix
    D_bnd: list
    M: csr_matrix
    M_bnd: list
    G: csr_matrix
    centres: list
    centres_bnd: list
    omega: np.ndarray
    conv3: Optional[ConvectionOperators] = None
    alpha: float = 1.0
    order4: bool = False

    def __post_init__(self):
        NV = self.omega.shape[0]
        self.NV = NV
        self.omega_inv = 1.0 / self.omega
        # Filter diffusion: pointwise Laplacian, u_f = u + alpha * (D_f u + yD_f)
        self.D_f = csr_matrix(diags(self.omega_inv) @ self.D)
        self.y_p = np.zeros(NV)
        self.yD = np.zeros(NV)
        self.yD_f = np.zeros(NV)
        self.yM = np.zeros(self.M.shape[0])
        self.ub = [np.zeros(b.boundary.shape[0]) for b in self.boundaries]

    def boundary_values(self, bc, t):
        return [bc.values(a, *self.boundaries[a].points, t) for a in range(3)]

    def update_boundary_vectors(self, bc, t):
        ub = self.boundary_values(bc, t)
        self.ub = ub
        self.conv.update(ub)
        if self.conv3 is not None:
            self.conv3.update(ub)
        self.yD = np.concatenate([self.D_bnd[a] @ ub[a] for a in range(3)])
        self.yD_f = self.omega_inv * self.yD
        self.yM = sum(self.M_bnd[a] @ ub[a] for a in range(3))

    def boundary_divergence(self, bc, t):
        """``yM`` at time ``t`` without touching the stored boundary vectors."""
        ub = self.boundary_values(bc, t)
        return sum(self.M_bnd[a] @ ub[a] for a in range(3))

    def divergence(self, V):
        return self.M @ V + self.yM

    def cell_centre_velocity(self, V):
        """Velocity components averaged to the pressure points."""
        return tuple(
            self.centres[a] @ V[self.slices[a]] + self.centres_bnd[a] @ self.ub[a]
            for a in range(3)
        )


def build_operators(grid, bc=None, t=0.0, order4=False):
    """Assemble the full operator set of a staggered grid.

    Parameters
    ----------
    grid : StaggeredGrid
        Grid to assemble on.
    bc : BoundaryConditions, optional
        If given, boundary vectors are evaluated at time ``t``.
    t : float, optional
        Time for the initial boundary vectors. Default is 0.
    order4 : bool, optional
        Also assemble the three-cell-wide operator set and combine the
        diffusion, mass and pressure-gradient operators into their
        fourth-order form ``alpha * narrow - wide``. Requires uniform axes.

    Returns
    -------
    Operators
    """
    boundaries = [ComponentBoundary(grid, a) for a in range(3)]
    conv = build_convection_operators(grid, boundaries)

    D_blocks, D_bnd = [], []
    M_blocks, M_bnd = [], []
    centres, centres_bnd = [], []
    for a in range(3):
        D_int, D_b = boundaries[a].split(_diffusion_operator(grid, a))
        D_blocks.append(D_int)
        D_bnd.append(D_b)
        M_int, M_b = boundaries[a].split(_divergence_operator(grid, a))
        M_blocks.append(M_int)
        M_bnd.append(M_b)
        C_int, C_b = boundaries[a].split(_centre_operator(grid, a))
        centres.append(C_int)
        centres_bnd.append(C_b)

    M = csr_matrix(hstack(M_blocks))
    G = csr_matrix(-M.T)
    omega = grid.omega.copy()
    conv3 = None
    alpha = 1.0

    if order4:
        if not all(ax.is_uniform for ax in grid.axes):
            raise ValueError("Fourth-order operators require a uniform grid")
        if min(grid.nx, grid.ny, grid.nz) < 3:
            raise ValueError("Fourth-order operators require at least 3 cells per direction")
        alpha = ORDER4_ALPHA
        conv3 = build_convection_operators(grid, boundaries, wide=True)
        for a in range(3):
            D3_int, D3_b = boundaries[a].split(_diffusion_operator(grid, a, wide=True))
            D_blocks[a] = alpha * D_blocks[a] - D3_int
            D_bnd[a] = alpha * D_bnd[a] - D3_b
        # Wide volumes are three times the narrow ones
        omega = (alpha - 3.0) * omega
        G = (alpha - 3.0) * G

    ops = Operators(
        slices=grid.component_slices,
        boundaries=boundaries,
        conv=conv,
        D=csr_matrix(block_diag(D_blocks)),
        D_bnd=D_bnd,
        M=M,
        M_bnd=M_bnd,
        G=csr_matrix(G),
        centres=centres,
        centres_bnd=centres_bnd,
        omega=omega,
        conv3=conv3,
        alpha=alpha,
        order4=order4,
    )
    if bc is not None:
        ops.update_boundary_vectors(bc, t)
    return ops
