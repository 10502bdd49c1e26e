"""Signal and auxiliary registry."""

from .dynamics import (
    AuxiliaryDefinition,
    ClearanceTerm,
    Coupling,
    DefinitionSet,
    Dynamics,
    DynamicsContext,
    ProductionTerm,
    SignalDefinition,
    StateView,
    fallback_definition,
)
from .keys import SIGNAL_GROUPS, SIGNALS_ALL, is_signal, signal_group
from .registry import SignalRegistry, get_all_definitions, get_auxiliary_definitions, get_registry

__all__ = [
    "AuxiliaryDefinition",
    "ClearanceTerm",
    "Coupling",
    "DefinitionSet",
    "Dynamics",
    "DynamicsContext",
    "ProductionTerm",
    "SignalDefinition",
    "StateView",
    "fallback_definition",
    "SIGNAL_GROUPS",
    "SIGNALS_ALL",
    "is_signal",
    "signal_group",
    "SignalRegistry",
    "get_all_definitions",
    "get_auxiliary_definitions",
    "get_registry",
]
