"""Scipy-based linear solvers: direct sparse solves and the pressure Poisson solvers."""

import numpy as np
from scipy.sparse import csr_matrix
from scipy.sparse.linalg import cg, spsolve, splu

from fv.assembly.pressure_correction_eq_assembly import assemble_pressure_poisson_matrix, pin_rows


def scipy_solver(A_csr: csr_matrix, b_np: np.ndarray):
    """Solve A x = b using SciPy sparse direct solver (spsolve)."""
    return spsolve(A_csr.tocsc(), b_np)


class PressureSolver:
    """Solve ``L phi = f`` with ``L = M Ω⁻¹ G``, up to an additive constant."""

    def __init__(self, setup):
        self.L = assemble_pressure_poisson_matrix(setup.operators)

    def solve(self, f):
        raise NotImplementedError


class DirectPressureSolver(PressureSolver):
    """LU factorization of L with the first pressure dof pinned to zero.

    The factorization is computed once and reused for every solve.
    """

    def __init__(self, setup):
        super().__init__(setup)
        # Pin node 0 to remove nullspace: set row 0 to identity
        self.A = pin_rows(self.L, [0])
        self._lu = splu(self.A.tocsc())

    def solve(self, f):
        rhs = np.array(f, dtype=np.float64)
        rhs[0] = 0.0
        return self._lu.solve(rhs)


class CGPressureSolver(PressureSolver):
    """Conjugate gradients on the positive semi-definite ``-L``; mean-free result."""

    def __init__(self, setup):
        super().__init__(setup)
        settings = setup.solver_settings
        self.A = csr_matrix(-self.L)
        self.tol = settings.cg_tol
        self.maxiter = settings.cg_maxiter
        self._phi = None

    def solve(self, f):
        f = np.asarray(f, dtype=np.float64)
        phi, info = cg(self.A, -f, x0=self._phi, rtol=self.tol, atol=0.0, maxiter=self.maxiter)
        if info > 0:
            print(f"CG pressure solver stopped after {info} iterations without reaching rtol={self.tol:.1e}")
        phi -= phi.mean()
        self._phi = phi.copy()
        return phi


def get_pressure_solver(setup):
    name = setup.solver_settings.pressure_solver
    if name == "direct":
        return DirectPressureSolver(setup)
    if name == "cg":
        return CGPressureSolver(setup)
    raise ValueError(f"Unknown pressure solver {name!r}")
