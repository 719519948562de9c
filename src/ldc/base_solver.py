"""Unsteady driver loop and the abstract configuration-driven solver."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
import time

import numpy as np

from datastructures import StaggeredFields, TimeSeries, UnsteadyInfo
from fv.core.helpers import max_divergence
from meshing.boundary_conditions import set_bc_vectors
from processors import Logger, QuantityTracer
from time_steppers import (
    StepperStatus,
    TimeStepper,
    change_time_stepper,
    get_method,
    get_timestep,
    needs_startup_method,
    step,
)


@dataclass
class UnsteadyProblem:
    """Initial value problem on ``tlims = (t_start, t_end)``."""
    setup: object
    V0: np.ndarray
    p0: np.ndarray
    tlims: tuple


def solve_unsteady(problem, method, dt=None, n_adapt_dt=1, cfl=1.0, processors=(),
                   method_startup=None, nstartup=1):
    """Integrate ``problem`` from ``t_start`` to ``t_end``.

    Parameters
    ----------
    problem : UnsteadyProblem
    method : method record
        Primary time integration method.
    dt : float, optional
        Fixed time step. When None, the step is recomputed with
        :func:`get_timestep` every ``n_adapt_dt`` steps.
    n_adapt_dt : int, optional
    cfl : float, optional
        Safety factor of the adaptive time step.
    processors : sequence of Processor, optional
        Initialized and notified once before the first step, then every
        ``nupdate`` steps; finalized exactly once however the loop ends.
    method_startup : method record, optional
        One-step method used for the first ``nstartup`` steps when
        ``method`` needs history.
    nstartup : int, optional

    Returns
    -------
    V, p : np.ndarray
        Final velocity and pressure.
    stepper : TimeStepper
        Final stepper, for run metadata.

    Raises
    ------
    ValueError
        On a non-positive ``dt`` or ``cfl``, ``n_adapt_dt < 1``, or a
        multistep ``method`` without a one-step ``method_startup``.
    """
    setup = problem.setup
    t_start, t_end = problem.tlims

    if dt is not None and not dt > 0:
        raise ValueError(f"Time step must be positive, got dt = {dt}")
    if not cfl > 0:
        raise ValueError(f"cfl must be positive, got {cfl}")
    if n_adapt_dt < 1:
        raise ValueError(f"n_adapt_dt must be at least 1, got {n_adapt_dt}")

    startup = needs_startup_method(method)
    if startup:
        if method_startup is None or needs_startup_method(method_startup):
            raise ValueError(f"Method {method.name} needs a one-step startup method")
        print(f"Starting up with method {method_startup.name}")
        method_use = method_startup
    else:
        method_use = method

    adaptive = dt is None
    stepper = TimeStepper(method_use, setup, problem.V0, problem.p0, t_start, 0.0 if adaptive else dt)

    # Initialize BC arrays
    set_bc_vectors(setup, stepper.t)

    try:
        for ps in processors:
            ps.initialize(stepper)
            ps.process(stepper)
        stepper.status = StepperStatus.RUNNING

        while not stepper.finished(t_end):
            if startup and stepper.n == nstartup and stepper.method is not method:
                print(f"n = {stepper.n}: switching to primary ODE method ({method.name})")
                stepper = change_time_stepper(stepper, method)

            # Change timestep based on operators
            if adaptive and stepper.n % n_adapt_dt == 0:
                dt = get_timestep(stepper, cfl)

            step(stepper, min(dt, t_end - stepper.t))

            for ps in processors:
                # Only update each nupdate-th step
                if stepper.n % ps.nupdate == 0:
                    ps.process(stepper)
    finally:
        for ps in processors:
            ps.finalize()

    return stepper.V, stepper.p, stepper


class UnsteadySolver(ABC):
    """Abstract configuration-driven unsteady solver.

    Handles:
    - Configuration management
    - Method lookup and the time stepping loop
    - Result storage and HDF5 export

    Subclasses must:
    - Implement create_problem() - build the setup and initial state
    """

    Config = UnsteadyInfo

    def __init__(self, config=None, **kwargs):
        """Initialize solver with configuration.

        Parameters
        ----------
        config : Config, optional
            Configuration object. If not provided, kwargs are used to create config.
        **kwargs
            Configuration parameters passed to Config class if config is None.
        """
        # Create config from kwargs if not provided
        if config is None:
            if self.Config is None:
                raise ValueError("Subclass must define Config class attribute")
            config = self.Config(**kwargs)

        self.config = config
        self.fields = None
        self.time_series = None
        self.metadata = None

    @abstractmethod
    def create_problem(self):
        """Build the :class:`UnsteadyProblem` to integrate.

        Returns
        -------
        UnsteadyProblem
        """

    def _methods(self):
        cfg = self.config
        newton = dict(
            newton_type=cfg.newton_type,
            maxiter=cfg.newton_maxiter,
            abstol=cfg.newton_abstol,
            reltol=cfg.newton_reltol,
        )
        method = get_method(cfg.method, **newton)
        method_startup = get_method(cfg.method_startup, **newton) if cfg.method_startup else None
        return method, method_startup

    def solve(self, processors=()):
        """Integrate from t_start to t_end.

        Stores results in solver attributes:
        - self.fields : StaggeredFields dataclass with solution fields
        - self.time_series : TimeSeries dataclass with time series data
        - self.metadata : Config dataclass with run metadata

        Parameters
        ----------
        processors : sequence of Processor, optional
            Extra processors next to the built-in tracer and logger.
        """
        cfg = self.config
        problem = self.create_problem()
        method, method_startup = self._methods()

        tracer = QuantityTracer(nupdate=1)
        processors = [tracer, *processors]
        if cfg.log_every:
            processors.append(Logger(nupdate=cfg.log_every))

        time_start = time.time()
        V, p, stepper = solve_unsteady(
            problem,
            method,
            dt=cfg.dt,
            n_adapt_dt=cfg.n_adapt_dt,
            cfl=cfg.cfl,
            processors=processors,
            method_startup=method_startup,
            nstartup=cfg.nstartup,
        )
        time_end = time.time()
        print(f"Solver finished in {time_end - time_start:.2f} seconds.")

        self._store_results(stepper, tracer.time_series())
        return V, p

    def _store_results(self, stepper, time_series):
        """Store solve results in self.fields, self.time_series, and self.metadata."""
        setup = stepper.setup
        grid = setup.grid
        u, v, w = setup.operators.cell_centre_velocity(stepper.V)
        x, y, z = grid.pressure_points()

        self.fields = StaggeredFields(
            u=u, v=v, w=w, p=stepper.p.copy(),
            x=x, y=y, z=z,
            grid_points=np.column_stack([x, y, z]),
            V=stepper.V.copy(),
        )
        self.time_series = time_series
        self.metadata = replace(
            self.config,
            n_steps=stepper.n,
            final_time=stepper.t,
            finished=stepper.status is StepperStatus.FINISHED,
            max_divergence=max_divergence(stepper.V, setup.operators),
            newton_failures=stepper.newton_failures,
        )

    def save(self, filepath):
        """Save results to HDF5 file.

        Parameters
        ----------
        filepath : str or Path
            Output file path.
        """
        from dataclasses import asdict
        import h5py
        from pathlib import Path

        filepath = Path(filepath)
        filepath.parent.mkdir(parents=True, exist_ok=True)

        # Convert dataclasses to dicts
        fields_dict = asdict(self.fields)
        time_series_dict = asdict(self.time_series)
        metadata_dict = asdict(self.metadata)

        with h5py.File(filepath, "w") as f:
            # Save metadata as root-level attributes, skipping unset values
            for key, val in metadata_dict.items():
                if val is None:
                    continue
                f.attrs[key] = val

            # Save fields in a fields group
            fields_grp = f.create_group("fields")
            for key, val in fields_dict.items():
                if val is not None:
                    fields_grp.create_dataset(key, data=val)

            vel_mag = np.sqrt(fields_dict["u"] ** 2 + fields_dict["v"] ** 2 + fields_dict["w"] ** 2)
            fields_grp.create_dataset("velocity_magnitude", data=vel_mag)

            # Save grid_points at root level for compatibility
            f.create_dataset("grid_points", data=fields_dict["grid_points"])

            # Save time series in a group
            ts_grp = f.create_group("time_series")
            for key, val in time_series_dict.items():
                if val is not None:
                    ts_grp.create_dataset(key, data=val)


def load_results(filepath):
    """Read a file written by :meth:`UnsteadySolver.save`.

    Returns
    -------
    metadata : dict
    fields : StaggeredFields
    time_series : TimeSeries
    """
    import h5py

    with h5py.File(filepath, "r") as f:
        metadata = dict(f.attrs)
        grp = f["fields"]
        fields = StaggeredFields(
            **{key: grp[key][()] for key in ("u", "v", "w", "p", "x", "y", "z", "grid_points", "V") if key in grp}
        )
        ts = f["time_series"]
        time_series = TimeSeries(**{key: list(ts[key][()]) for key in ts})
    return metadata, fields, time_series
