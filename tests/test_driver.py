import h5py
import numpy as np
import pytest

from fv.core.initial_conditions import create_initial_conditions
from ldc import LidDrivenCavitySolver, UnsteadyProblem, load_results, solve_unsteady
from processors import Logger, Processor, QuantityTracer, SnapshotWriter
from time_steppers import StepperStatus, get_method


class RecordingProcessor(Processor):
    def __init__(self, nupdate=1, fail_at=None):
        super().__init__(nupdate)
        self.fail_at = fail_at
        self.initialized = 0
        self.finalized = 0
        self.steps = []
        self.methods = []

    def initialize(self, stepper):
        self.initialized += 1

    def process(self, stepper):
        if stepper.n == self.fail_at:
            raise RuntimeError("processor failure")
        self.steps.append(stepper.n)
        self.methods.append(stepper.method.name)

    def finalize(self):
        self.finalized += 1


def _problem(setup, t_end):
    V0, p0 = create_initial_conditions(setup)
    return UnsteadyProblem(setup=setup, V0=V0, p0=p0, tlims=(0.0, t_end))


def test_processor_cadence(box_setup):
    every = RecordingProcessor(nupdate=1)
    second = RecordingProcessor(nupdate=2)
    V, p, stepper = solve_unsteady(
        _problem(box_setup, 1.25), get_method("FE11"), dt=0.25, processors=[every, second]
    )

    assert stepper.n == 5
    assert stepper.status is StepperStatus.FINISHED
    assert every.steps == [0, 1, 2, 3, 4, 5]
    assert second.steps == [0, 2, 4]
    assert (every.initialized, every.finalized) == (1, 1)
    assert (second.initialized, second.finalized) == (1, 1)
    assert V.shape == (box_setup.grid.NV,)


def test_last_step_is_clipped_to_end_time(box_setup):
    _, _, stepper = solve_unsteady(_problem(box_setup, 0.6), get_method("FE11"), dt=0.25)
    assert stepper.n == 3
    assert stepper.t == pytest.approx(0.6)
    assert stepper.dt == pytest.approx(0.1)


def test_finalize_runs_once_on_failure(box_setup):
    failing = RecordingProcessor(fail_at=2)
    with pytest.raises(RuntimeError):
        solve_unsteady(_problem(box_setup, 1.0), get_method("FE11"), dt=0.25, processors=[failing])

    assert failing.steps == [0, 1]
    assert failing.finalized == 1


def test_startup_method_switch(ldc_setup, capsys):
    proc = RecordingProcessor()
    _, _, stepper = solve_unsteady(
        _problem(ldc_setup, 0.05),
        get_method("ABCN"),
        dt=0.01,
        processors=[proc],
        method_startup=get_method("RK44"),
        nstartup=2,
    )

    assert proc.methods == ["RK44", "RK44", "RK44", "ABCN", "ABCN", "ABCN"]
    assert stepper.method.name == "ABCN"
    assert stepper.n == 5
    out = capsys.readouterr().out
    assert "Starting up with method RK44" in out
    assert "n = 2: switching to primary ODE method (ABCN)" in out


def test_missing_startup_method_raises(ldc_setup):
    problem = _problem(ldc_setup, 0.05)
    with pytest.raises(ValueError):
        solve_unsteady(problem, get_method("OneLeg"), dt=0.01)
    with pytest.raises(ValueError):
        solve_unsteady(problem, get_method("OneLeg"), dt=0.01, method_startup=get_method("ABCN"))


@pytest.mark.parametrize(
    "kwargs",
    [dict(dt=-0.01), dict(dt=0.0), dict(dt=None, cfl=0.0), dict(dt=None, cfl=-1.0), dict(dt=None, n_adapt_dt=0)],
)
def test_invalid_step_settings_raise(box_setup, kwargs):
    processor = RecordingProcessor()
    with pytest.raises(ValueError):
        solve_unsteady(_problem(box_setup, 0.1), get_method("FE11"), processors=[processor], **kwargs)
    assert processor.initialized == 0

def test_adaptive_time_step(ldc_setup):
    tracer = QuantityTracer()
    _, _, stepper = solve_unsteady(
        _problem(ldc_setup, 0.1), get_method("RK44"), cfl=0.5, n_adapt_dt=2, processors=[tracer]
    )

    assert stepper.t == pytest.approx(0.1)
    dts = np.diff(tracer.t)
    assert np.all(dts > 0.0)
    assert max(tracer.max_divergence) < 1e-10


def test_lid_driven_cavity_solver(tmp_path):
    solver = LidDrivenCavitySolver(Re=100.0, nx=8, ny=8, nz=4, dt=0.01, t_end=0.5, method="RK44", log_every=25)
    V, p = solver.solve()
    cfg = solver.config

    assert np.all(np.isfinite(V)) and np.all(np.isfinite(p))
    assert solver.metadata.finished
    assert solver.metadata.n_steps == 50
    assert solver.metadata.final_time == pytest.approx(0.5)
    assert solver.metadata.max_divergence < 1e-10

    ke = np.array(solver.time_series.kinetic_energy)
    assert ke[0] == 0.0
    assert 0.0 < ke[-1] < 0.5 * cfg.lid_velocity ** 2 * cfg.Lx * cfg.Ly * cfg.Lz
    assert len(solver.time_series.t) == 51

    df = solver.fields.to_dataframe()
    assert list(df.columns) == ["u", "v", "w", "p", "x", "y", "z"]
    assert len(df) == 8 * 8 * 4
    # The lid drags the fluid below it along
    top = df["y"] == df["y"].max()
    assert df.loc[top, "u"].mean() > 0.0

    filepath = tmp_path / "ldc.h5"
    solver.save(filepath)
    metadata, fields, time_series = load_results(filepath)
    assert metadata["n_steps"] == 50
    assert metadata["method"] == "RK44"
    np.testing.assert_allclose(fields.V, V)
    np.testing.assert_allclose(time_series.kinetic_energy, ke)
    with h5py.File(filepath, "r") as f:
        assert f["fields/velocity_magnitude"].shape == (8 * 8 * 4,)


def test_solver_with_implicit_method():
    solver = LidDrivenCavitySolver(
        Re=100.0, nx=6, ny=6, nz=3, dt=0.02, t_end=0.06, method="RIA2",
        newton_type="full", newton_maxiter=20, log_every=0,
    )
    solver.solve()
    assert solver.metadata.n_steps == 3
    assert solver.metadata.newton_failures == 0


def test_solver_with_multistep_method_needs_startup():
    solver = LidDrivenCavitySolver(Re=100.0, nx=6, ny=6, nz=3, dt=0.01, t_end=0.03, method="ABCN")
    with pytest.raises(ValueError):
        solver.solve()

    solver = LidDrivenCavitySolver(
        Re=100.0, nx=6, ny=6, nz=3, dt=0.01, t_end=0.03, method="ABCN", method_startup="RK44", log_every=0,
    )
    solver.solve()
    assert solver.metadata.n_steps == 3
    assert solver.metadata.max_divergence < 1e-10


def test_solver_to_dataframe():
    solver = LidDrivenCavitySolver(Re=400.0, convection_model="Leray", filter_alpha=1e-4)
    df = solver.config.to_dataframe()
    assert df["Re"].iloc[0] == 400.0
    assert df["convection_model"].iloc[0] == "Leray"
    assert solver.setup.filter_alpha == 1e-4


def test_snapshot_writer(box_setup, tmp_path):
    filepath = tmp_path / "out" / "snapshots.h5"
    writer = SnapshotWriter(filepath, nupdate=2)
    solve_unsteady(_problem(box_setup, 1.0), get_method("FE11"), dt=0.25, processors=[writer])

    with h5py.File(filepath, "r") as f:
        assert sorted(f["snapshots"]) == ["000000", "000001", "000002"]
        assert f["snapshots/000002"].attrs["n"] == 4
        assert f["snapshots/000002"].attrs["t"] == pytest.approx(1.0)
        assert f["snapshots/000000/V"].shape == (box_setup.grid.NV,)
        assert f.attrs["nx"] == 6


def test_logger_output(box_setup, capsys):
    solve_unsteady(_problem(box_setup, 0.5), get_method("FE11"), dt=0.25, processors=[Logger(nupdate=2)])
    out = capsys.readouterr().out
    assert "n = 0: t = 0" in out
    assert "n = 2: t = 0.5" in out
    assert "Time stepping finished in" in out


@pytest.mark.parametrize("nupdate", [0, -1, 1.5, True])
def test_processor_rejects_bad_cadence(nupdate):
    with pytest.raises(ValueError):
        Processor(nupdate=nupdate)


def test_tracer_dataframe(box_setup):
    tracer = QuantityTracer(nupdate=1)
    solve_unsteady(_problem(box_setup, 0.5), get_method("FE11"), dt=0.25, processors=[tracer])
    df = tracer.to_dataframe()
    assert list(df.columns) == ["t", "max_divergence", "max_velocity", "kinetic_energy"]
    assert len(df) == 3
