"""Error definitions for the physiosim package."""

from __future__ import annotations
from typing import Dict, Optional


class PhysioSimError(Exception):
    """Base exception for all physiosim errors."""

    def __init__(self, message: str, details: Optional[Dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(PhysioSimError):
    """Registry, catalog or configuration data is malformed.

    Raised at load time: unknown PD targets, malformed PK models, missing
    PK fields, invalid weight maps.
    """
    pass


class ValidationError(ConfigurationError):
    """Input validation errors (configuration values, timeline items)."""
    pass


class SimulationError(PhysioSimError):
    """Engine-level execution errors."""
    pass


class ScenarioError(PhysioSimError):
    """Scenario snapshot decoding errors."""
    pass
