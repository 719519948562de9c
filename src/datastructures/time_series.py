"""Time series data structures."""
from dataclasses import dataclass, asdict
from typing import List
import pandas as pd


@dataclass
class TimeSeries:
    """Time series of an unsteady run.

    Parameters
    ----------
    t : List[float]
        Times at which the quantities were recorded.
    max_divergence : List[float], optional
        Max-norm of the discrete divergence. Default is None.
    max_velocity : List[float], optional
        Max-norm of the velocity unknowns. Default is None.
    kinetic_energy : List[float], optional
        Discrete kinetic energy. Default is None.
    """
    t: List[float]
    max_divergence: List[float] = None
    max_velocity: List[float] = None
    kinetic_energy: List[float] = None

    def to_dataframe(self) -> pd.DataFrame:
        """Convert time series to DataFrame for analysis and plotting.

        Returns
        -------
        pd.DataFrame
            DataFrame with one column per recorded quantity.
            Index represents the recording number.
        """
        return pd.DataFrame(asdict(self))
