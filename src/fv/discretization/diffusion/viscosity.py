"""Viscosity models: the diffusive term d(V) and its Jacobian."""

from dataclasses import dataclass

import numpy as np

VISCOSITY_MODELS = ("laminar",)


@dataclass
class LaminarModel:
    """Constant kinematic viscosity ``nu = 1 / Re``.

    ``d = nu * (D V + yD)`` and ``dd/dV = nu * D``.
    """
    Re: float

    def __post_init__(self):
        if not self.Re > 0:
            raise ValueError(f"Reynolds number must be positive, got {self.Re}")

    @property
    def nu(self):
        return 1.0 / self.Re

    def diffusion(self, V, t, operators, out=None, get_jacobian=False):
        if out is None:
            out = np.empty_like(V)
        np.add(operators.D @ V, operators.yD, out=out)
        out *= self.nu
        jac = self.nu * operators.D if get_jacobian else None
        return out, jac


def get_viscosity_model(name, Re):
    if name == "laminar":
        return LaminarModel(Re=Re)
    raise ValueError(f"Unknown viscosity model {name!r}, expected one of {VISCOSITY_MODELS}")
