"""Observers of the unsteady driver loop."""

import numbers


class Processor:
    """Base processor, notified every ``nupdate`` steps.

    The driver calls ``initialize`` and ``process`` once before the first
    step, ``process`` after every step with ``n % nupdate == 0`` and
    ``finalize`` exactly once when the loop ends. The stepper passed in must
    be treated as read-only.

    Parameters
    ----------
    nupdate : int, optional
        Update cadence in steps. Default is 1.
    """

    def __init__(self, nupdate=1):
        if not isinstance(nupdate, numbers.Integral) or isinstance(nupdate, bool) or nupdate < 1:
            raise ValueError(f"nupdate must be a positive integer, got {nupdate!r}")
        self.nupdate = int(nupdate)

    def initialize(self, stepper):
        pass

    def process(self, stepper):
        pass

    def finalize(self):
        pass
