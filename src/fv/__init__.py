"""Finite volume residual package.

This package contains the staggered-grid momentum right-hand side
(convection, diffusion, body force, pressure gradient), its Jacobian,
and the pressure projection used by the time steppers.
"""

from .setup import Setup, SolverSettings, build_setup
from .assembly.momentum import MomentumAssembler, MomentumCache, momentum
from .discretization.body_force import SteadyBodyForce, UnsteadyBodyForce
from .discretization.convection.convection import (
    C2Convection,
    C4Convection,
    LerayConvection,
    NoRegConvection,
    convection_components,
    get_convection_model,
)
from .discretization.convection.filter import filter_convection
from .discretization.diffusion.viscosity import LaminarModel, get_viscosity_model
from .linear_solvers.scipy_solver import CGPressureSolver, DirectPressureSolver, get_pressure_solver
from .core.corrections import pressure_additional_solve, project

__all__ = [
    # Setup
    "Setup",
    "SolverSettings",
    "build_setup",
    # Momentum
    "MomentumAssembler",
    "MomentumCache",
    "momentum",
    # Models
    "NoRegConvection",
    "C2Convection",
    "C4Convection",
    "LerayConvection",
    "convection_components",
    "get_convection_model",
    "filter_convection",
    "LaminarModel",
    "get_viscosity_model",
    "SteadyBodyForce",
    "UnsteadyBodyForce",
    # Pressure
    "DirectPressureSolver",
    "CGPressureSolver",
    "get_pressure_solver",
    "project",
    "pressure_additional_solve",
]
