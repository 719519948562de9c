"""Time integration of the semi-discrete incompressible Navier-Stokes equations.

Method Hierarchy:
-----------------
ExplicitRungeKuttaMethod          (stage-wise projection)
ImplicitRungeKuttaMethod          (Newton-Raphson on the coupled stage system)
AdamsBashforthCrankNicolsonMethod (IMEX, needs a startup method)
OneLegMethod                      (needs a startup method)

``step`` dispatches on the method type; the step implementations register
themselves on import of this package.
"""

from .methods import (
    AdamsBashforthCrankNicolsonMethod,
    ExplicitRungeKuttaMethod,
    ImplicitRungeKuttaMethod,
    OneLegMethod,
    needs_startup_method,
    runge_kutta_method,
)
from .newton import NewtonResult, newton_raphson
from .rk_methods import get_method
from .step import step, step_method
from .time_stepper import StepperStatus, TimeStepper, change_time_stepper, get_timestep

# Register the step implementations
from . import multistep, runge_kutta  # noqa: F401

__all__ = [
    # Methods
    "ExplicitRungeKuttaMethod",
    "ImplicitRungeKuttaMethod",
    "AdamsBashforthCrankNicolsonMethod",
    "OneLegMethod",
    "runge_kutta_method",
    "needs_startup_method",
    "get_method",
    # Newton
    "NewtonResult",
    "newton_raphson",
    # Stepping
    "TimeStepper",
    "StepperStatus",
    "change_time_stepper",
    "get_timestep",
    "step",
    "step_method",
]
