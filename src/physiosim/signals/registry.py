"""Signal and auxiliary registry.

Every key of ``SIGNALS_ALL`` resolves to exactly one definition: explicit
definitions where they exist, the neutral fallback otherwise.
"""

from __future__ import annotations
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional

import structlog

from ..contracts.errors import ConfigurationError
from .definitions import EXPLICIT_SIGNALS, POOLS, activity_pools
from .dynamics import AuxiliaryDefinition, DefinitionSet, SignalDefinition, fallback_definition
from .keys import SIGNALS_ALL, is_signal

logger = structlog.get_logger()


class SignalRegistry:
    """Registry of signal and auxiliary definitions."""

    def __init__(
        self,
        signals: Optional[Iterable[SignalDefinition]] = None,
        auxiliary: Optional[Iterable[AuxiliaryDefinition]] = None,
    ):
        self._signals: Dict[str, SignalDefinition] = {}
        self._auxiliary: Dict[str, AuxiliaryDefinition] = {}

        for definition in (EXPLICIT_SIGNALS if signals is None else signals):
            self.register_signal(definition)
        for definition in (POOLS + activity_pools() if auxiliary is None else auxiliary):
            self.register_auxiliary(definition)

        self._fill_fallbacks()
        self.validate()

    def register_signal(self, definition: SignalDefinition) -> None:
        """Register an explicit signal definition.

        Raises:
            ConfigurationError: If the key is not enumerated or already registered
        """
        if not is_signal(definition.key):
            raise ConfigurationError(
                f"Unknown signal key: {definition.key}",
                {"known": len(SIGNALS_ALL)},
            )
        existing = self._signals.get(definition.key)
        if existing is not None and not existing.is_fallback:
            raise ConfigurationError(f"Duplicate signal definition: {definition.key}")
        self._signals[definition.key] = definition

    def register_auxiliary(self, definition: AuxiliaryDefinition) -> None:
        if definition.key in self._auxiliary or is_signal(definition.key):
            raise ConfigurationError(f"Duplicate auxiliary definition: {definition.key}")
        self._auxiliary[definition.key] = definition

    def _fill_fallbacks(self) -> None:
        missing = [key for key in SIGNALS_ALL if key not in self._signals]
        for key in missing:
            self._signals[key] = fallback_definition(key)
        if missing:
            logger.debug("Signals using fallback dynamics", signals=missing)

    def validate(self) -> None:
        """Check taus and that every term references something that exists.

        Raises:
            ConfigurationError: On the first batch of problems found
        """
        errors: List[str] = []
        all_defs = list(self._signals.values()) + list(self._auxiliary.values())

        for definition in all_defs:
            dyn = definition.dynamics
            if not dyn.tau > 0:
                errors.append(f"{definition.key}: tau must be positive (got {dyn.tau})")
            for term in dyn.production:
                if term.source != "constant" and term.source not in self._signals:
                    errors.append(f"{definition.key}: unknown production source '{term.source}'")
            for coupling in dyn.couplings:
                if coupling.source not in self._signals:
                    errors.append(f"{definition.key}: unknown coupling source '{coupling.source}'")
                if coupling.effect not in ("stimulate", "inhibit"):
                    errors.append(f"{definition.key}: invalid coupling effect '{coupling.effect}'")
            for term in dyn.clearance:
                if term.kind not in ("linear", "saturable", "enzyme-dependent"):
                    errors.append(f"{definition.key}: invalid clearance kind '{term.kind}'")
                elif term.kind == "enzyme-dependent" and term.enzyme not in self._auxiliary:
                    errors.append(f"{definition.key}: unknown clearance enzyme '{term.enzyme}'")

        if errors:
            raise ConfigurationError(
                "Invalid signal registry: " + "; ".join(errors[:5]),
                {"errors": errors},
            )

    def get(self, key: str) -> SignalDefinition:
        """Definition for ``key``; unknown keys get a fresh fallback."""
        definition = self._signals.get(key)
        if definition is None:
            return fallback_definition(key)
        return definition

    def get_auxiliary(self, key: str) -> AuxiliaryDefinition:
        if key not in self._auxiliary:
            raise KeyError(f"Auxiliary not found: {key}")
        return self._auxiliary[key]

    @property
    def signals(self) -> Mapping[str, SignalDefinition]:
        return MappingProxyType(self._signals)

    @property
    def auxiliary(self) -> Mapping[str, AuxiliaryDefinition]:
        return MappingProxyType(self._auxiliary)

    def auxiliary_of_kind(self, kind: str) -> List[str]:
        return [key for key, d in self._auxiliary.items() if d.kind == kind]

    def substrates_of(self, enzyme: str) -> List[str]:
        """Signals whose clearance depends on the given transporter/enzyme."""
        return [
            key
            for key, definition in self._signals.items()
            if any(t.kind == "enzyme-dependent" and t.enzyme == enzyme for t in definition.dynamics.clearance)
        ]

    def definition_set(self) -> DefinitionSet:
        return DefinitionSet(signals=self.signals, auxiliary=self.auxiliary)


# Global registry instance
_registry: Optional[SignalRegistry] = None


def get_registry() -> SignalRegistry:
    """Get the global signal registry, building it on first use."""
    global _registry
    if _registry is None:
        _registry = SignalRegistry()
    return _registry


def get_all_definitions() -> Mapping[str, SignalDefinition]:
    """Every enumerated signal mapped to its definition."""
    return get_registry().signals


def get_auxiliary_definitions() -> Mapping[str, AuxiliaryDefinition]:
    return get_registry().auxiliary
