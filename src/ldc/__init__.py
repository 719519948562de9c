"""Unsteady lid-driven cavity solver framework.

Solver Hierarchy:
-----------------
UnsteadySolver (abstract base - config, time stepping loop, results)
└── LidDrivenCavitySolver (staggered grid, closed cavity with moving lid)
"""

from .base_solver import UnsteadyProblem, UnsteadySolver, load_results, solve_unsteady
from .fv_solver import LidDrivenCavitySolver

__all__ = [
    # Driver
    "UnsteadyProblem",
    "solve_unsteady",
    "load_results",
    # Solvers
    "UnsteadySolver",
    "LidDrivenCavitySolver",
]
