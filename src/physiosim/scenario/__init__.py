"""Scenario snapshot codec."""

from .serialization import (
    DEFAULT_ORIGIN,
    Scenario,
    dumps,
    load_scenario,
    loads,
    save_scenario,
    scenario_from_dict,
    scenario_to_dict,
)

__all__ = [
    "DEFAULT_ORIGIN",
    "Scenario",
    "dumps",
    "load_scenario",
    "loads",
    "save_scenario",
    "scenario_from_dict",
    "scenario_to_dict",
]
