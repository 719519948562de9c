"""Data structures for solver configuration and results.

This module defines the configuration and result data structures
for the unsteady staggered-grid solvers.
"""

from .config import Info, UnsteadyInfo
from .fields import Fields, StaggeredFields
from .time_series import TimeSeries

__all__ = [
    # Configuration and metadata
    "Info",
    "UnsteadyInfo",
    # Fields
    "Fields",
    "StaggeredFields",
    # Time series
    "TimeSeries",
]
