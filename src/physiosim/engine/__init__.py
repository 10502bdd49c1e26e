"""Simulation engine."""

from .context import RunContext
from .forcing import Forcing, PharmacodynamicModel, signal_sensitivity
from .integrator import ExponentialIntegrator, exponential_update
from .session import SimulationSession
from .simulation import (
    SimulationEngine,
    SimulationResult,
    expand_daily,
    grid_from_config,
    run_request,
    sleep_windows,
    wake_minute,
)

__all__ = [
    "RunContext",
    "Forcing",
    "PharmacodynamicModel",
    "signal_sensitivity",
    "ExponentialIntegrator",
    "exponential_update",
    "SimulationSession",
    "SimulationEngine",
    "SimulationResult",
    "expand_daily",
    "grid_from_config",
    "run_request",
    "sleep_windows",
    "wake_minute",
]
