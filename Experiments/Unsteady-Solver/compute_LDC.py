"""
Unsteady Lid-Driven Cavity Computation
======================================

This script integrates the three-dimensional lid-driven cavity flow in time
on a staggered grid, starting from rest, with an explicit Runge-Kutta method
and an adaptive time step.
"""

# %%
# Problem Setup
# -------------
# Configure the solver with Reynolds number Re=100 and a 16x16x4 grid.

from pathlib import Path

from ldc import LidDrivenCavitySolver

project_root = Path(__file__).resolve().parents[2]
data_dir = project_root / "data" / "Unsteady-Solver"
data_dir.mkdir(parents=True, exist_ok=True)

solver = LidDrivenCavitySolver(
    Re=100.0,       # Reynolds number
    nx=16,          # Grid cells in x-direction
    ny=16,          # Grid cells in y-direction
    nz=4,           # Grid cells in z-direction
    t_end=2.0,      # Final time
    method="RK44",  # Time integration method
    cfl=0.8,        # Safety factor of the adaptive time step
    log_every=50,
)

print(
    f"Solver configured: Re={solver.config.Re}, "
    f"Grid={solver.config.nx}x{solver.config.ny}x{solver.config.nz}"
)

# %%
# Time Integration
# ----------------
# Integrate the incompressible Navier-Stokes equations up to t_end.

solver.solve()

# %%
# Run Results
# -----------
# Display statistics of the run.

print("\nSolution Status:")
print(f"  Finished: {solver.metadata.finished}")
print(f"  Steps: {solver.metadata.n_steps}")
print(f"  Final time: {solver.metadata.final_time:.4f}")
print(f"  Max divergence: {solver.metadata.max_divergence:.3e}")
print(f"  Final kinetic energy: {solver.time_series.kinetic_energy[-1]:.6e}")

# %%
# Save Solution
# -------------
# Export the solution (velocity, pressure fields, time series and metadata) to HDF5.

output_file = data_dir / "LDC_unsteady_Re100.h5"
solver.save(output_file)

print(f"\nResults saved to: {output_file}")
