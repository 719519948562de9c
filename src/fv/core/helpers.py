import numpy as np


def kinetic_energy(V, grid):
    """Discrete kinetic energy 0.5 * sum(Ω V²) over the velocity unknowns."""
    return 0.5 * float(np.dot(grid.omega, V * V))


def max_divergence(V, operators):
    return float(np.max(np.abs(operators.divergence(V))))


def max_velocity(V):
    return float(np.max(np.abs(V))) if V.size else 0.0


def check_finite(V, p, t):
    """Raise FloatingPointError if the solution contains NaN or Inf."""
    if not (np.all(np.isfinite(V)) and np.all(np.isfinite(p))):
        raise FloatingPointError(f"Non-finite velocity or pressure at t = {t:.6g}")
