"""Neurophysiological condition profiles.

A condition is described mechanistically at the receptor, transporter and
enzyme level. Enabling one with an intensity in ``[0, 1]`` produces
:class:`ConditionAdjustments` that the engine applies on top of the normal
dynamics:

- receptor density deltas shift adaptation baselines and, through
  ``RECEPTOR_DENSITY_GAIN``, the setpoint amplitude of the coupled signal
- receptor sensitivity deltas scale couplings read from the coupled
  signal and, through ``RECEPTOR_SENSITIVITY_GAIN``, its setpoint amplitude
- transporter and enzyme deltas offset the resting activity pools
- signal modifiers add circadian phase shifts and extra couplings, and
  amplitude changes for conditions with no mechanistic modifiers
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Tuple

from pydantic import BaseModel, Field


class ReceptorModifier(BaseModel):
    receptor: str
    density: float = 0.0
    """Delta relative to density 1.0"""
    sensitivity: float = 0.0
    """Delta relative to sensitivity 1.0"""


class ActivityModifier(BaseModel):
    target: str
    """Transporter or enzyme key"""
    activity: float
    """Delta relative to activity 1.0"""


class SignalAdjustment(BaseModel):
    """Setpoint and coupling adjustment of one signal."""

    amplitude: float = Field(0.0, ge=-0.95, le=5.0, description="Relative change of the setpoint")
    phase_shift_min: float = Field(0.0, ge=-720, le=720, description="Circadian delay of the setpoint")
    couplings: Dict[str, float] = Field(default_factory=dict, description="Extra coupling gains by source")


class SignalModifier(SignalAdjustment):
    signal: str


class ConditionDef(BaseModel):
    """A condition profile scaled by a single intensity parameter."""

    key: str
    label: str
    param: str = "severity"
    default_intensity: float = Field(0.5, ge=0, le=1)
    description: str = ""
    receptors: List[ReceptorModifier] = Field(default_factory=list)
    transporters: List[ActivityModifier] = Field(default_factory=list)
    enzymes: List[ActivityModifier] = Field(default_factory=list)
    signals: List[SignalModifier] = Field(default_factory=list)

    @property
    def is_mechanistic(self) -> bool:
        return bool(self.receptors or self.transporters or self.enzymes)


# Baseline amplitude change per unit of receptor density change
RECEPTOR_DENSITY_GAIN: Dict[str, Tuple[Tuple[str, float], ...]] = {
    "D1": (("dopamine", 0.15),),
    "D2": (("dopamine", 0.25),),
    "D3": (("dopamine", 0.05),),
    "D4": (("dopamine", 0.03),),
    "D5": (("dopamine", 0.02),),
    "5HT1A": (("serotonin", 0.2), ("gaba", 0.1)),
    "5HT2A": (("serotonin", 0.15), ("glutamate", 0.1)),
    "5HT2C": (("serotonin", 0.1),),
    "5HT3": (("serotonin", 0.05),),
    "GABA_A": (("gaba", 0.35),),
    "GABA_B": (("gaba", 0.15),),
    "NMDA": (("glutamate", 0.3),),
    "AMPA": (("glutamate", 0.25),),
    "mGluR": (("glutamate", 0.1),),
    "Alpha1": (("norepi", 0.15),),
    "Alpha2": (("norepi", -0.1),),
    "Beta1": (("norepi", 0.1), ("adrenaline", 0.15)),
    "Beta2": (("adrenaline", 0.1),),
    "mAChR_M1": (("acetylcholine", 0.2),),
    "mAChR_M2": (("acetylcholine", -0.1),),
    "H1": (("histamine", 0.25),),
    "H3": (("histamine", -0.15),),
    "OX1R": (("orexin", 0.2),),
    "OX2R": (("orexin", 0.3),),
    "OXTR": (("oxytocin", 0.4),),
    "MT1": (("melatonin", 0.3),),
    "MT2": (("melatonin", 0.2),),
}

# Baseline amplitude change per unit of receptor sensitivity change
RECEPTOR_SENSITIVITY_GAIN: Dict[str, Tuple[Tuple[str, float], ...]] = {
    "D1": (("dopamine", 0.12),),
    "D2": (("dopamine", 0.20),),
    "5HT1A": (("serotonin", 0.15),),
    "5HT2A": (("serotonin", 0.12),),
    "GABA_A": (("gaba", 0.25),),
    "GABA_B": (("gaba", 0.12),),
    "NMDA": (("glutamate", 0.25),),
    "AMPA": (("glutamate", 0.20),),
    "Alpha1": (("norepi", 0.12), ("adrenaline", 0.08)),
    "Alpha2": (("norepi", -0.08),),
    "Beta1": (("norepi", 0.08), ("adrenaline", 0.12)),
    "Beta2": (("adrenaline", 0.08),),
    "H1": (("histamine", 0.20),),
    "H3": (("histamine", -0.12),),
    "OX1R": (("orexin", 0.15),),
    "OX2R": (("orexin", 0.25),),
    "OXTR": (("oxytocin", 0.30),),
    "MT1": (("melatonin", 0.25),),
    "MT2": (("melatonin", 0.15),),
}


def _r(receptor: str, density: float = 0.0, sensitivity: float = 0.0) -> ReceptorModifier:
    return ReceptorModifier(receptor=receptor, density=density, sensitivity=sensitivity)


def _a(target: str, activity: float) -> ActivityModifier:
    return ActivityModifier(target=target, activity=activity)


def _s(signal: str, amplitude: float = 0.0, phase_shift_min: float = 0.0, **couplings: float) -> SignalModifier:
    return SignalModifier(signal=signal, amplitude=amplitude, phase_shift_min=phase_shift_min, couplings=couplings)


CONDITION_LIBRARY: Tuple[ConditionDef, ...] = (
    ConditionDef(
        key="adhd",
        label="ADHD",
        default_intensity=0.6,
        description="Transporter hyperfunction: faster DAT/NET clearance lowers tonic dopamine and norepinephrine.",
        receptors=[_r("D2", density=-0.15), _r("Alpha2", sensitivity=-0.2)],
        transporters=[_a("DAT", 0.4), _a("NET", 0.25)],
        signals=[
            _s("melatonin", phase_shift_min=30),
            _s("cortisol", orexin=0.15, gaba=-0.1),
            _s("orexin", ghrelin=0.1, dopamine=0.08),
        ],
    ),
    ConditionDef(
        key="autism",
        label="Autism Spectrum",
        param="eibalance",
        description="Excitation/inhibition imbalance with reduced GABA-A and oxytocin receptor density.",
        receptors=[
            _r("GABA_A", density=-0.25),
            _r("GABA_B", density=-0.1),
            _r("NMDA", sensitivity=0.15),
            _r("OXTR", density=-0.3),
            _r("5HT2A", density=0.1),
        ],
        transporters=[_a("SERT", -0.2), _a("GAT1", 0.15)],
        signals=[_s("vagal", oxytocin=-0.2)],
    ),
    ConditionDef(
        key="depression",
        label="Major Depression",
        description="Monoamine deficiency with faster serotonin clearance and HPA hyperactivity.",
        receptors=[
            _r("5HT1A", sensitivity=0.3),
            _r("5HT2A", density=0.15),
            _r("D2", density=-0.1),
            _r("Beta1", density=0.1),
        ],
        transporters=[_a("SERT", 0.2), _a("NET", 0.15)],
        signals=[_s("melatonin", phase_shift_min=45)],
    ),
    ConditionDef(
        key="anxiety",
        label="Generalized Anxiety",
        param="reactivity",
        description="Reduced GABAergic tone and heightened adrenergic sensitivity.",
        receptors=[
            _r("GABA_A", density=-0.2),
            _r("5HT1A", density=-0.15),
            _r("Alpha1", sensitivity=0.2),
            _r("Beta1", sensitivity=0.15),
        ],
        enzymes=[_a("MAO_A", -0.1)],
        signals=[_s("cortisol", norepi=0.2, adrenaline=0.15)],
    ),
    ConditionDef(
        key="pots",
        label="POTS",
        description="Adrenergic supersensitivity and NET dysfunction.",
        receptors=[
            _r("Alpha1", sensitivity=0.25),
            _r("Beta1", sensitivity=0.2),
            _r("Alpha2", density=-0.15),
        ],
        transporters=[_a("NET", -0.3)],
        signals=[
            _s("cortisol", norepi=0.15),
            _s("energy", bloodPressure=0.15, vagal=0.1),
        ],
    ),
    ConditionDef(
        key="mcas",
        label="MCAS",
        param="activation",
        description="Mast cell activation: impaired DAO and enhanced H1 response.",
        receptors=[_r("H1", sensitivity=0.3), _r("H3", density=-0.2)],
        enzymes=[_a("DAO", -0.35)],
        signals=[
            _s("gaba", histamine=-0.15),
            _s("energy", inflammation=-0.2, histamine=-0.1),
        ],
    ),
    ConditionDef(
        key="insomnia",
        label="Primary Insomnia",
        description="Orexin hyperactivity with blunted GABA-A and melatonin receptors.",
        receptors=[
            _r("OX2R", sensitivity=0.25),
            _r("OX1R", sensitivity=0.15),
            _r("GABA_A", density=-0.15),
            _r("MT1", density=-0.2),
            _r("MT2", density=-0.15),
        ],
        transporters=[_a("GAT1", 0.15)],
        signals=[
            _s("melatonin", phase_shift_min=45),
            _s("cortisol", phase_shift_min=-30),
            _s("histamine", orexin=0.15),
            _s("glutamate", gaba=-0.1),
        ],
    ),
    ConditionDef(
        key="pcos",
        label="PCOS",
        description="Insulin resistance and androgen excess.",
        receptors=[_r("D2", density=-0.1)],
        signals=[
            _s("insulin", 0.25),
            _s("testosterone", 0.3),
            _s("dheas", 0.2),
            _s("shbg", -0.25),
            _s("lh", 0.2),
            _s("fsh", -0.1),
            _s("estrogen", -0.1),
            _s("progesterone", -0.2),
            _s("cortisol", 0.1),
            _s("inflammation", 0.15),
            _s("glucose", 0.1, insulin=-0.2),
            _s("energy", glucose=0.15, insulin=-0.1),
        ],
    ),
)

_CONDITIONS: Dict[str, ConditionDef] = {c.key: c for c in CONDITION_LIBRARY}


def get_condition(key: str) -> Optional[ConditionDef]:
    return _CONDITIONS.get(key)


def list_conditions() -> List[str]:
    return list(_CONDITIONS)


@dataclass(frozen=True)
class BaselineAdjustment:
    amplitude: float = 0.0
    phase_shift_min: float = 0.0


@dataclass
class ConditionAdjustments:
    """Summed adjustments of every enabled condition plus explicit offsets."""

    baselines: Dict[str, BaselineAdjustment] = field(default_factory=dict)
    couplings: Dict[str, List[Tuple[str, float]]] = field(default_factory=dict)
    """Extra (source, relative gain) couplings by target signal"""
    receptor_density: Dict[str, float] = field(default_factory=dict)
    receptor_sensitivity: Dict[str, float] = field(default_factory=dict)
    transporter_activity: Dict[str, float] = field(default_factory=dict)
    enzyme_activity: Dict[str, float] = field(default_factory=dict)

    def add_baseline(self, signal: str, amplitude: float = 0.0, phase_shift_min: float = 0.0) -> None:
        current = self.baselines.get(signal, BaselineAdjustment())
        self.baselines[signal] = BaselineAdjustment(
            amplitude=current.amplitude + amplitude,
            phase_shift_min=current.phase_shift_min + phase_shift_min,
        )

    def add_coupling(self, target: str, source: str, gain: float) -> None:
        if gain:
            self.couplings.setdefault(target, []).append((source, gain))


def _accumulate(target: Dict[str, float], key: str, delta: float) -> None:
    if delta:
        target[key] = target.get(key, 0.0) + delta


def apply_condition(adjustments: ConditionAdjustments, condition: ConditionDef, intensity: float) -> None:
    """Add one condition at ``intensity`` to ``adjustments`` in place."""
    for mod in condition.receptors:
        density = mod.density * intensity
        if density:
            _accumulate(adjustments.receptor_density, mod.receptor, density)
            for signal, gain in RECEPTOR_DENSITY_GAIN.get(mod.receptor, ()):
                adjustments.add_baseline(signal, amplitude=density * gain)
        sensitivity = mod.sensitivity * intensity
        if sensitivity:
            _accumulate(adjustments.receptor_sensitivity, mod.receptor, sensitivity)
            for signal, gain in RECEPTOR_SENSITIVITY_GAIN.get(mod.receptor, ()):
                adjustments.add_baseline(signal, amplitude=sensitivity * gain)

    for mod in condition.transporters:
        _accumulate(adjustments.transporter_activity, mod.target, mod.activity * intensity)
    for mod in condition.enzymes:
        _accumulate(adjustments.enzyme_activity, mod.target, mod.activity * intensity)

    for mod in condition.signals:
        # Mechanistic conditions derive amplitude from receptor changes
        amplitude = 0.0 if condition.is_mechanistic else mod.amplitude * intensity
        adjustments.add_baseline(mod.signal, amplitude=amplitude, phase_shift_min=mod.phase_shift_min * intensity)
        for source, gain in mod.couplings.items():
            adjustments.add_coupling(mod.signal, source, gain * intensity)


def build_adjustments(
    active: Mapping[str, float],
    signals: Optional[Mapping[str, SignalAdjustment]] = None,
    receptor_density: Optional[Mapping[str, float]] = None,
    receptor_sensitivity: Optional[Mapping[str, float]] = None,
    transporter_activity: Optional[Mapping[str, float]] = None,
    enzyme_activity: Optional[Mapping[str, float]] = None,
) -> ConditionAdjustments:
    """Combine enabled library conditions with explicit offsets.

    Args:
        active: Condition key to intensity in ``[0, 1]``
        signals: Explicit per-signal modifiers
        receptor_density: Explicit receptor density deltas
        receptor_sensitivity: Explicit receptor sensitivity deltas
        transporter_activity: Explicit transporter activity deltas
        enzyme_activity: Explicit enzyme activity deltas

    Raises:
        KeyError: If ``active`` names an unknown condition
    """
    adjustments = ConditionAdjustments()
    for key, intensity in active.items():
        condition = _CONDITIONS.get(key)
        if condition is None:
            raise KeyError(f"Unknown condition: {key}")
        apply_condition(adjustments, condition, intensity)

    for key, mod in (signals or {}).items():
        adjustments.add_baseline(key, amplitude=mod.amplitude, phase_shift_min=mod.phase_shift_min)
        for source, gain in mod.couplings.items():
            adjustments.add_coupling(key, source, gain)
    for key, delta in (receptor_density or {}).items():
        _accumulate(adjustments.receptor_density, key, delta)
    for key, delta in (receptor_sensitivity or {}).items():
        _accumulate(adjustments.receptor_sensitivity, key, delta)
    for key, delta in (transporter_activity or {}).items():
        _accumulate(adjustments.transporter_activity, key, delta)
    for key, delta in (enzyme_activity or {}).items():
        _accumulate(adjustments.enzyme_activity, key, delta)
    return adjustments
