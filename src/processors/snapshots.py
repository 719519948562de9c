from pathlib import Path

import h5py

from processors.base import Processor


class SnapshotWriter(Processor):
    """Write (V, p) snapshots to an HDF5 file.

    Each snapshot is a group ``snapshots/<index>`` holding datasets ``V``
    and ``p`` with attributes ``t`` and ``n``.

    Parameters
    ----------
    filepath : str or Path
        Output file path; parent directories are created.
    nupdate : int, optional
        Update cadence in steps. Default is 10.
    """

    def __init__(self, filepath, nupdate=10):
        super().__init__(nupdate)
        self.filepath = Path(filepath)
        self._file = None
        self.count = 0

    def initialize(self, stepper):
        self.filepath.parent.mkdir(parents=True, exist_ok=True)
        self._file = h5py.File(self.filepath, "w")
        grid = stepper.setup.grid
        self._file.attrs["nx"] = grid.nx
        self._file.attrs["ny"] = grid.ny
        self._file.attrs["nz"] = grid.nz
        self._file.create_group("snapshots")
        self.count = 0

    def process(self, stepper):
        grp = self._file["snapshots"].create_group(f"{self.count:06d}")
        grp.create_dataset("V", data=stepper.V)
        grp.create_dataset("p", data=stepper.p)
        grp.attrs["t"] = stepper.t
        grp.attrs["n"] = stepper.n
        self.count += 1

    def finalize(self):
        if self._file is not None:
            self._file.close()
            self._file = None
