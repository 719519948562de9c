"""Simulation setup: grid, operators, boundary conditions and model selection."""

from dataclasses import dataclass, field

from meshing.boundary_conditions import BoundaryConditions
from meshing.operators import Operators, build_operators
from meshing.staggered_grid import StaggeredGrid

from fv.discretization.body_force import SteadyBodyForce
from fv.discretization.convection.convection import CONVECTION_MODELS
from fv.discretization.diffusion.viscosity import get_viscosity_model

PRESSURE_SOLVERS = ("direct", "cg")


@dataclass
class SolverSettings:
    """Nonlinear and pressure solver settings.

    Parameters
    ----------
    pressure_solver : str, optional
        ``"direct"`` (pinned Poisson matrix, LU factorization reused) or
        ``"cg"`` (conjugate gradients). Default is ``"direct"``.
    p_initial : bool, optional
        Compute a pressure compatible with the initial velocity. Default is True.
    p_add_solve : bool, optional
        Additional pressure solve after each explicit or implicit Runge-Kutta
        step for a pressure consistent with the new velocity. Default is False.
    newton_factor : float, optional
        Weight of the convecting-field term of the convection Jacobian:
        1 gives Newton, 0 gives Picard linearization. Default is 1.
    cg_tol : float, optional
        Relative tolerance of the CG pressure solver. Default is 1e-12.
    cg_maxiter : int, optional
        Iteration limit of the CG pressure solver. Default is 1000.
    """
    pressure_solver: str = "direct"
    p_initial: bool = True
    p_add_solve: bool = False
    newton_factor: float = 1.0
    cg_tol: float = 1e-12
    cg_maxiter: int = 1000

    def __post_init__(self):
        if self.pressure_solver not in PRESSURE_SOLVERS:
            raise ValueError(
                f"Unknown pressure solver {self.pressure_solver!r}, expected one of {PRESSURE_SOLVERS}"
            )


@dataclass
class Setup:
    """Everything the residual evaluation and the time steppers read.

    Parameters
    ----------
    grid : StaggeredGrid
    operators : Operators
        Pre-assembled operator set of ``grid``.
    bc : BoundaryConditions
    viscosity_model : LaminarModel
    convection_model : str, optional
        One of ``"NoReg"``, ``"C2"``, ``"C4"``, ``"Leray"``. Default is ``"NoReg"``.
    filter_alpha : float, optional
        Filter strength of the regularized convection models. Default is 0.
    force : SteadyBodyForce or UnsteadyBodyForce, optional
        Body force. Default is a zero steady force.
    solver_settings : SolverSettings, optional
    """
    grid: StaggeredGrid
    operators: Operators
    bc: BoundaryConditions
    viscosity_model: object
    convection_model: str = "NoReg"
    filter_alpha: float = 0.0
    force: object = field(default_factory=SteadyBodyForce)
    solver_settings: SolverSettings = field(default_factory=SolverSettings)

    def __post_init__(self):
        if self.convection_model not in CONVECTION_MODELS:
            raise ValueError(
                f"Unknown convection model {self.convection_model!r}, expected one of {CONVECTION_MODELS}"
            )
        if self.operators.order4 and self.convection_model != "NoReg":
            raise ValueError(
                f"Fourth-order operators are only supported with NoReg convection, got {self.convection_model!r}"
            )


def build_setup(grid, bc, Re, convection_model="NoReg", viscosity_model="laminar",
                filter_alpha=0.0, order4=False, force=None, solver_settings=None, t=0.0):
    """Assemble the operators of ``grid`` and bundle them into a :class:`Setup`."""
    operators = build_operators(grid, bc=bc, t=t, order4=order4)
    return Setup(
        grid=grid,
        operators=operators,
        bc=bc,
        viscosity_model=get_viscosity_model(viscosity_model, Re),
        convection_model=convection_model,
        filter_alpha=filter_alpha,
        force=force if force is not None else SteadyBodyForce(),
        solver_settings=solver_settings if solver_settings is not None else SolverSettings(),
    )
