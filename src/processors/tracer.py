from datastructures.time_series import TimeSeries
from fv.core.helpers import kinetic_energy, max_divergence, max_velocity
from processors.base import Processor


class QuantityTracer(Processor):
    """Record time, divergence, peak velocity and kinetic energy.

    Parameters
    ----------
    nupdate : int, optional
        Update cadence in steps. Default is 1.
    """

    def __init__(self, nupdate=1):
        super().__init__(nupdate)
        self.t = []
        self.max_divergence = []
        self.max_velocity = []
        self.kinetic_energy = []

    def initialize(self, stepper):
        self.t.clear()
        self.max_divergence.clear()
        self.max_velocity.clear()
        self.kinetic_energy.clear()

    def process(self, stepper):
        setup = stepper.setup
        self.t.append(stepper.t)
        self.max_divergence.append(max_divergence(stepper.V, setup.operators))
        self.max_velocity.append(max_velocity(stepper.V))
        self.kinetic_energy.append(kinetic_energy(stepper.V, setup.grid))

    def time_series(self):
        return TimeSeries(
            t=list(self.t),
            max_divergence=list(self.max_divergence),
            max_velocity=list(self.max_velocity),
            kinetic_energy=list(self.kinetic_energy),
        )

    def to_dataframe(self):
        return self.time_series().to_dataframe()
