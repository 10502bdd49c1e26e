"""Pharmacological target catalog.

PD target strings resolve once, at catalog load, into one of five target
kinds:

- ``Receptor``: forces one or more signals with a fixed polarity
- ``Transporter``: reuptake transporter; PD acts on its activity pool, which
  scales the clearance of its primary signal
- ``Enzyme``: degrading enzyme; PD acts on its activity pool, which scales the
  clearance of every substrate signal uniformly
- ``AuxiliaryTarget``: a non-observable pool (vesicles, adenosine pressure)
- ``SignalTarget``: a signal forced directly (glucose from food, ethanol)
"""

from __future__ import annotations
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple, Union

from ..contracts.errors import ConfigurationError
from ..signals import SignalRegistry, get_registry
from ..signals.definitions import ENZYMES, TRANSPORTERS

DEFAULT_K_UP = 0.0005
DEFAULT_K_DOWN = 0.002


@dataclass(frozen=True)
class Adaptation:
    """Density kinetics ``dD/dt = k_up·(D0 - D) - k_down·occupancy·D``."""

    k_up: float = DEFAULT_K_UP
    k_down: float = DEFAULT_K_DOWN


@dataclass(frozen=True)
class Receptor:
    key: str
    couplings: Tuple[Tuple[str, int], ...]
    """(signal, sign) pairs; +1 excitatory, -1 inhibitory"""
    adaptation: Adaptation = Adaptation()
    kind: str = "receptor"

    @property
    def density_key(self) -> str:
        return f"density:{self.key}"


@dataclass(frozen=True)
class Transporter:
    key: str
    primary_signal: str
    adaptation: Adaptation = Adaptation()
    kind: str = "transporter"

    @property
    def density_key(self) -> str:
        return f"density:{self.key}"


@dataclass(frozen=True)
class Enzyme:
    key: str
    substrates: Tuple[str, ...]
    kind: str = "enzyme"


@dataclass(frozen=True)
class AuxiliaryTarget:
    key: str
    kind: str = "auxiliary"


@dataclass(frozen=True)
class SignalTarget:
    key: str
    kind: str = "signal"


PharmacologicalTarget = Union[Receptor, Transporter, Enzyme, AuxiliaryTarget, SignalTarget]

_ADRENERGIC = (("norepi", 1), ("adrenaline", 1))

RECEPTORS: Tuple[Receptor, ...] = (
    # Dopamine
    Receptor("D1", (("dopamine", 1),), Adaptation(0.0008, 0.0015)),
    Receptor("D2", (("dopamine", 1),), Adaptation(0.001, 0.002)),
    Receptor("D3", (("dopamine", 1),)),
    Receptor("D4", (("dopamine", 1),)),
    Receptor("D5", (("dopamine", 1),)),
    # Serotonin
    Receptor("5HT1A", (("serotonin", 1),)),
    Receptor("5HT1B", (("serotonin", 1),)),
    Receptor("5HT2A", (("serotonin", 1),)),
    Receptor("5HT2C", (("serotonin", 1),)),
    Receptor("5HT3", (("serotonin", 1),)),
    # GABA and glutamate
    Receptor("GABA_A", (("gaba", 1),)),
    Receptor("GABA_B", (("gaba", 1),)),
    Receptor("NMDA", (("glutamate", 1),)),
    Receptor("AMPA", (("glutamate", 1),)),
    Receptor("mGluR", (("glutamate", 1),)),
    # Adrenergic
    Receptor("Alpha1", _ADRENERGIC),
    Receptor("Alpha2", _ADRENERGIC),
    Receptor("Beta1", _ADRENERGIC),
    Receptor("Beta2", _ADRENERGIC),
    Receptor("Beta_Adrenergic", _ADRENERGIC),
    # Histamine, orexin, melatonin, oxytocin
    Receptor("H1", (("histamine", 1),)),
    Receptor("H2", (("histamine", 1),)),
    Receptor("H3", (("histamine", 1),)),
    Receptor("OX1R", (("orexin", 1),)),
    Receptor("OX2R", (("orexin", 1),)),
    Receptor("MT1", (("melatonin", 1),)),
    Receptor("MT2", (("melatonin", 1),)),
    Receptor("OXTR", (("oxytocin", 1),)),
    # Adenosine
    Receptor("Adenosine_A1", (("dopamine", -1), ("acetylcholine", -1))),
    Receptor("Adenosine_A2a", (("dopamine", -1),)),
    Receptor("Adenosine_A2b", ()),
    Receptor("Adenosine_A3", ()),
    # Cholinergic
    Receptor("nAChR", (("acetylcholine", 1),)),
    Receptor("mAChR_M1", (("acetylcholine", 1),)),
    Receptor("mAChR_M2", (("acetylcholine", 1),)),
)

_TRANSPORTER_SIGNALS: Dict[str, str] = {
    "DAT": "dopamine",
    "NET": "norepi",
    "SERT": "serotonin",
    "GAT1": "gaba",
    "GLT1": "glutamate",
}

_TRANSPORTER_ADAPTATION: Dict[str, Adaptation] = {
    "DAT": Adaptation(0.001, 0.002),
    "NET": Adaptation(0.001, 0.002),
    "SERT": Adaptation(0.0008, 0.0015),
}


class TargetCatalog:
    """O(1) lookup of every pharmacological target by key."""

    def __init__(self, registry: Optional[SignalRegistry] = None):
        self._registry = registry or get_registry()
        self._targets: Dict[str, PharmacologicalTarget] = {}

        for receptor in RECEPTORS:
            self._add(receptor)
        for key in TRANSPORTERS:
            self._add(Transporter(
                key,
                _TRANSPORTER_SIGNALS[key],
                _TRANSPORTER_ADAPTATION.get(key, Adaptation()),
            ))
        for key in ENZYMES:
            self._add(Enzyme(key, tuple(self._registry.substrates_of(key))))
        for key in self._registry.auxiliary_of_kind("pool"):
            self._add(AuxiliaryTarget(key))
        for key in self._registry.signals:
            self._add(SignalTarget(key))

        self._check_couplings()

    def _add(self, target: PharmacologicalTarget) -> None:
        if target.key in self._targets:
            raise ConfigurationError(f"Duplicate pharmacological target: {target.key}")
        self._targets[target.key] = target

    def _check_couplings(self) -> None:
        signals = self._registry.signals
        for target in self._targets.values():
            if isinstance(target, Receptor):
                unknown = [s for s, _ in target.couplings if s not in signals]
            elif isinstance(target, Transporter):
                unknown = [] if target.primary_signal in signals else [target.primary_signal]
            else:
                continue
            if unknown:
                raise ConfigurationError(
                    f"Target {target.key} references unknown signals",
                    {"signals": unknown},
                )

    def resolve(self, key: str) -> PharmacologicalTarget:
        """Resolve a PD target string.

        Raises:
            ConfigurationError: If the target is unknown
        """
        target = self._targets.get(key)
        if target is None:
            raise ConfigurationError(f"Unknown pharmacological target: {key}", {"target": key})
        return target

    def __contains__(self, key: str) -> bool:
        return key in self._targets

    def of_kind(self, kind: str) -> Mapping[str, PharmacologicalTarget]:
        return MappingProxyType({k: t for k, t in self._targets.items() if t.kind == kind})

    def signal_unit(self, signal: str) -> str:
        return self._registry.get(signal).unit

    def label(self, key: str) -> str:
        """Human readable label for a target key."""
        target = self.resolve(key)
        if isinstance(target, (Receptor, Transporter, Enzyme)):
            return f"{key} {target.kind.title()}"
        if isinstance(target, SignalTarget):
            return self._registry.get(key).label
        spaced = "".join(f" {c}" if c.isupper() else c for c in key)
        return spaced[0].upper() + spaced[1:]


_catalog: Optional[TargetCatalog] = None


def get_target_catalog() -> TargetCatalog:
    """Get the global target catalog, building it on first use."""
    global _catalog
    if _catalog is None:
        _catalog = TargetCatalog()
    return _catalog


def resolve_target(key: str) -> PharmacologicalTarget:
    return get_target_catalog().resolve(key)
