"""Single time step, dispatched on the method variant."""

from functools import singledispatch

from fv.core.helpers import check_finite
from time_steppers.time_stepper import StepperStatus


@singledispatch
def step_method(method, stepper, dt):
    """Advance ``stepper`` by ``dt`` with ``method``; returns the new (V, p).

    Implementations may update the multistep history of ``stepper`` but not
    its V, p, t or n.
    """
    raise TypeError(f"No time step implemented for method type {type(method).__name__}")


def step(stepper, dt):
    """Advance ``stepper`` by one time step of size ``dt``.

    Raises
    ------
    FloatingPointError
        If the new velocity or pressure contains non-finite values.
    """
    V, p = step_method(stepper.method, stepper, dt)
    t = stepper.t + dt
    check_finite(V, p, t)

    stepper.V = V
    stepper.p = p
    stepper.t = t
    stepper.dt = dt
    stepper.n += 1
    stepper.status = StepperStatus.RUNNING
    return stepper
