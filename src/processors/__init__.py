"""Processors: observers attached to the unsteady driver loop."""

from .base import Processor
from .logger import Logger
from .snapshots import SnapshotWriter
from .tracer import QuantityTracer

__all__ = [
    "Processor",
    "Logger",
    "QuantityTracer",
    "SnapshotWriter",
]
