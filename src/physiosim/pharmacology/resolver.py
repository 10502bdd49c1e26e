"""Resolve pharmacology blocks and timeline items into concrete agents.

Target strings are resolved when a block is validated (catalog load), so a
typo in a target is a :class:`ConfigurationError` before any simulation
runs. At simulation time each timeline item becomes one
:class:`ResolvedAgent` per pharmacology block.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, List, Mapping, Optional, Tuple

from ..contracts.errors import ConfigurationError
from ..contracts.types import TimelineItem
from ..domain.subject import Physiology, Subject
from .kinetics import ActivityEnvelope, MichaelisMentenCurve, OneCompartmentCurve, volume_of_distribution
from .models import Pharmacology, PDEffect
from .targets import (
    PharmacologicalTarget,
    Receptor,
    SignalTarget,
    TargetCatalog,
    get_target_catalog,
)

DEFAULT_DOSE_MG = 100.0
DOSE_PARAM_KEYS = ("mg", "dose", "units")

_DIMENSIONLESS_UNITS = ("fold-change", "index")


@dataclass(frozen=True)
class ResolvedEffect:
    """A PD effect bound to its target and to the dose that produced it."""

    effect: PDEffect
    target: PharmacologicalTarget
    gain: float
    """effect_gain plus gain_per_dose times dose"""

    @property
    def mechanism(self) -> str:
        return self.effect.mechanism


@dataclass(frozen=True)
class ResolvedAgent:
    """One dosed agent of a timeline item."""

    item_id: str
    intervention: str
    start_min: float
    dose_mg: float
    is_activity: bool
    curve: Callable[[float], float]
    effects: Tuple[ResolvedEffect, ...]
    molar_mass: Optional[float] = None

    def exposure(self, minute: float) -> float:
        """Concentration (mg/L) or activation level at an absolute minute."""
        return self.curve(minute - self.start_min)


def validate_pharmacology(
    key: str,
    pharmacology: Pharmacology,
    catalog: Optional[TargetCatalog] = None,
) -> List[PharmacologicalTarget]:
    """Resolve every PD target of a block and check declared units.

    Returns:
        Resolved targets in PD order

    Raises:
        ConfigurationError: Unknown target or unit mismatch
    """
    catalog = catalog or get_target_catalog()
    resolved = []
    for index, effect in enumerate(pharmacology.pd):
        try:
            target = catalog.resolve(effect.target)
        except ConfigurationError as e:
            raise ConfigurationError(
                f"Intervention '{key}': unknown pharmacological target '{effect.target}'",
                {"intervention": key, "index": index, "target": effect.target},
            ) from e

        if effect.is_modulator and not isinstance(target, Receptor):
            raise ConfigurationError(
                f"Intervention '{key}': {effect.mechanism} only applies to receptors, got '{effect.target}'",
                {"intervention": key, "index": index},
            )

        if effect.unit is not None and not (effect.is_modulator and effect.unit in _DIMENSIONLESS_UNITS):
            if isinstance(target, Receptor):
                signals = [signal for signal, _ in target.couplings]
            elif isinstance(target, SignalTarget):
                signals = [target.key]
            else:
                signals = []
            for signal in signals:
                expected = catalog.signal_unit(signal)
                if effect.unit != expected:
                    raise ConfigurationError(
                        f"Intervention '{key}': unit mismatch on '{effect.target}' "
                        f"(has '{effect.unit}', '{signal}' requires '{expected}')",
                        {"intervention": key, "index": index},
                    )
        resolved.append(target)
    return resolved


def dose_from_params(params: Mapping[str, object], intensity: float = 1.0) -> float:
    """Dose in mg from item parameters (``mg``, then ``dose``, then ``units``)."""
    for name in DOSE_PARAM_KEYS:
        value = params.get(name)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value) * intensity
    return DEFAULT_DOSE_MG * intensity


def resolve_agent(
    key: str,
    pharmacology: Pharmacology,
    item: TimelineItem,
    subject: Subject,
    physiology: Physiology,
    mm_method: str = "LSODA",
    mm_rtol: float = 1e-6,
    mm_atol: float = 1e-9,
    catalog: Optional[TargetCatalog] = None,
) -> ResolvedAgent:
    """Bind one pharmacology block to a scheduled item.

    Args:
        key: Intervention key (for error messages)
        pharmacology: PK model and PD effects
        item: Scheduled timeline item
        subject: Subject profile
        physiology: Derived physiology
        mm_method: solve_ivp method for michaelis-menten agents
        mm_rtol: Relative tolerance for michaelis-menten agents
        mm_atol: Absolute tolerance for michaelis-menten agents
        catalog: Target catalog; the global one by default

    Returns:
        Resolved agent
    """
    targets = validate_pharmacology(key, pharmacology, catalog)
    pk = pharmacology.pk

    if pk.dose_mg is not None:
        dose = pk.dose_mg * item.intensity
    else:
        dose = dose_from_params(item.params, item.intensity)

    if pk.model == "activity-dependent":
        curve = ActivityEnvelope(pk, item.duration_min, item.intensity)
    else:
        volume = volume_of_distribution(pk.volume, subject, physiology)
        if pk.model == "one-compartment":
            curve = OneCompartmentCurve(pk, dose, volume)
        else:
            curve = MichaelisMentenCurve(
                pk, dose, volume,
                method=mm_method,
                rtol=mm_rtol,
                atol=mm_atol,
                clearance_factor=physiology.metabolic_capacity,
            )

    effects = tuple(
        ResolvedEffect(
            effect=effect,
            target=target,
            gain=effect.effect_gain + (effect.gain_per_dose or 0.0) * dose,
        )
        for effect, target in zip(pharmacology.pd, targets)
    )

    return ResolvedAgent(
        item_id=item.id,
        intervention=key,
        start_min=item.start_min,
        dose_mg=dose,
        is_activity=pk.is_activity,
        curve=curve,
        effects=effects,
        molar_mass=pharmacology.molecule.molar_mass if pharmacology.molecule else None,
    )