"""Staggered-grid solver for the three-dimensional lid-driven cavity.

The cavity is closed on all six walls; the top wall (y = Ly) moves with
velocity (lid_velocity, 0, lid_velocity_w). The flow starts from rest.
"""

from .base_solver import UnsteadyProblem, UnsteadySolver

from datastructures import UnsteadyInfo
from fv.core.initial_conditions import create_initial_conditions
from fv.setup import SolverSettings, build_setup
from meshing.boundary_conditions import lid_driven_cavity_bc
from meshing.staggered_grid import create_grid


class LidDrivenCavitySolver(UnsteadySolver):
    """Unsteady lid-driven cavity on a uniform staggered grid.

    Parameters
    ----------
    config : UnsteadyInfo
        Physics (Re, lid velocity, domain size), grid size and time
        integration settings.
    """

    Config = UnsteadyInfo

    def __init__(self, config=None, **kwargs):
        super().__init__(config, **kwargs)
        cfg = self.config

        self.grid = create_grid(
            cfg.nx, cfg.ny, cfg.nz,
            xlims=(0.0, cfg.Lx),
            ylims=(0.0, cfg.Ly),
            zlims=(0.0, cfg.Lz),
        )
        self.bc = lid_driven_cavity_bc(self.grid, cfg.lid_velocity, cfg.lid_velocity_w)

        settings = SolverSettings(
            pressure_solver=cfg.pressure_solver,
            p_initial=cfg.p_initial,
            p_add_solve=cfg.p_add_solve,
            newton_factor=cfg.newton_factor,
        )
        self.setup = build_setup(
            self.grid,
            self.bc,
            cfg.Re,
            convection_model=cfg.convection_model,
            viscosity_model=cfg.viscosity_model,
            filter_alpha=cfg.filter_alpha,
            order4=cfg.order4,
            solver_settings=settings,
            t=cfg.t_start,
        )

    def create_problem(self):
        V0, p0 = create_initial_conditions(self.setup, self.config.t_start)
        return UnsteadyProblem(
            setup=self.setup,
            V0=V0,
            p0=p0,
            tlims=(self.config.t_start, self.config.t_end),
        )
