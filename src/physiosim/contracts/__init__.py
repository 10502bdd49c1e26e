"""Core contracts and interfaces."""

from .errors import (
    PhysioSimError,
    ConfigurationError,
    ValidationError,
    SimulationError,
    ScenarioError,
)
from .types import (
    MINUTES_PER_DAY,
    SimulationGrid,
    TimelineItem,
    ComputeRequest,
    ComputeResponse,
    freeze_series,
)

__all__ = [
    "PhysioSimError",
    "ConfigurationError",
    "ValidationError",
    "SimulationError",
    "ScenarioError",
    "MINUTES_PER_DAY",
    "SimulationGrid",
    "TimelineItem",
    "ComputeRequest",
    "ComputeResponse",
    "freeze_series",
]
