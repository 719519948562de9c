"""Field data structures for solver results."""
from dataclasses import dataclass, asdict
import numpy as np
import pandas as pd


@dataclass
class Fields:
    """Solution fields at the cell centres.

    Parameters
    ----------
    u : np.ndarray
        x-velocity component averaged to the cell centres.
    v : np.ndarray
        y-velocity component averaged to the cell centres.
    w : np.ndarray
        z-velocity component averaged to the cell centres.
    p : np.ndarray
        Pressure field.
    x : np.ndarray
        x-coordinates of cell centres.
    y : np.ndarray
        y-coordinates of cell centres.
    z : np.ndarray
        z-coordinates of cell centres.
    grid_points : np.ndarray
        Cell centre coordinates, shape (N, 3).
    """
    u: np.ndarray
    v: np.ndarray
    w: np.ndarray
    p: np.ndarray
    x: np.ndarray
    y: np.ndarray
    z: np.ndarray
    grid_points: np.ndarray

    def to_dataframe(self) -> pd.DataFrame:
        """Convert fields to DataFrame for analysis and plotting.

        Returns
        -------
        pd.DataFrame
            Wide-format DataFrame with columns: x, y, z, u, v, w, p.
            Each row represents one cell.
        """
        data = asdict(self)
        # Remove grid_points since we have x, y and z separately
        data.pop('grid_points')
        return pd.DataFrame(data)


@dataclass
class StaggeredFields(Fields):
    """Fields together with the raw staggered unknowns.

    Parameters
    ----------
    V : np.ndarray, optional
        Velocity unknowns [u; v; w] at the interior faces. Default is None.
    """
    V: np.ndarray = None

    def to_dataframe(self) -> pd.DataFrame:
        data = asdict(self)
        data.pop('grid_points')
        data.pop('V')
        return pd.DataFrame(data)
