from scipy.sparse import csr_matrix, diags


def assemble_pressure_poisson_matrix(operators):
    """
    Pressure Poisson matrix L = M Ω⁻¹ G.
    Singular with the constant pressure as null space.
    """
    return csr_matrix(operators.M @ diags(operators.omega_inv) @ operators.G)


def pin_rows(A, rows):
    """Replace the given rows by identity rows to remove a null space."""
    A = A.tolil()
    for r in rows:
        A[r, :] = 0.0
        A[r, r] = 1.0
    return A.tocsr()
