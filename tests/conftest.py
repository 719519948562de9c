# conftest.py

import numpy as np
import pytest

from fv.setup import SolverSettings, build_setup
from meshing.boundary_conditions import BoundaryConditions, lid_driven_cavity_bc
from meshing.staggered_grid import create_grid


@pytest.fixture
def grid():
    """Small non-cubic grid so that component sizes differ."""
    return create_grid(6, 5, 3, zlims=(0.0, 0.5))


@pytest.fixture
def stretched_grid():
    return create_grid(6, 5, 4, stretch=(1.1, 0.9, 1.0))


@pytest.fixture
def ldc_setup(grid):
    bc = lid_driven_cavity_bc(grid, lid_velocity=1.0, lid_velocity_w=0.5)
    return build_setup(grid, bc, Re=100.0)


@pytest.fixture
def box_setup(grid):
    """Closed box with walls at rest."""
    return build_setup(grid, BoundaryConditions(), Re=100.0)


@pytest.fixture
def uniform_flow_setup(grid):
    """Walls moving with u = 1: the uniform field u = 1 is an exact steady state."""
    bc = BoundaryConditions(u_bc=lambda x, y, z, t: 1.0)
    return build_setup(grid, bc, Re=50.0)


@pytest.fixture
def inviscid_uniform_flow_setup(grid):
    """Same walls with zero viscosity."""
    bc = BoundaryConditions(u_bc=lambda x, y, z, t: 1.0)
    return build_setup(grid, bc, Re=np.inf)


@pytest.fixture
def cg_setup(grid):
    bc = lid_driven_cavity_bc(grid)
    return build_setup(grid, bc, Re=100.0, solver_settings=SolverSettings(pressure_solver="cg"))


@pytest.fixture
def rng():
    return np.random.default_rng(1234)
