import time

from fv.core.helpers import max_divergence
from processors.base import Processor


class Logger(Processor):
    """Print step index, time, time step and divergence."""

    _time_start = None

    def initialize(self, stepper):
        self._time_start = time.time()

    def process(self, stepper):
        div = max_divergence(stepper.V, stepper.setup.operators)
        print(f"n = {stepper.n}: t = {stepper.t:.6g}, dt = {stepper.dt:.3e}, max|div| = {div:.3e}")

    def finalize(self):
        if self._time_start is None:
            return
        print(f"Time stepping finished in {time.time() - self._time_start:.2f} seconds.")
