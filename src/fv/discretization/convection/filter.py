def filter_convection(u, diff_matrix, bc, alpha):
    """Diffusive filter ``u + alpha * (diff_matrix @ u + bc)``.

    ``alpha = 0`` returns ``u`` unchanged (as a new array).
    """
    return u + alpha * (diff_matrix @ u + bc)
