"""Neurotransmitters.

Monoamine release is fed from vesicle reserves and cleared by their reuptake
transporter and degrading enzymes, so drugs acting on DAT, SERT, NET or MAO
change steady state through clearance rather than through the setpoint.
"""

from __future__ import annotations
import math

from ..dynamics import (
    ClearanceTerm,
    Coupling,
    Dynamics,
    DynamicsContext,
    ProductionTerm,
    SignalDefinition,
)
from ..phase import (
    gaussian_phase,
    hour_to_phase,
    minute_to_phase,
    minutes_to_phase_width,
    width_to_concentration,
    window_phase,
)


def _awake_window(ctx: DynamicsContext, start: float = 7.0, end: float = 22.0, fade: float = 90.0) -> float:
    p = minute_to_phase(ctx.circadian_minute_of_day)
    return window_phase(p, hour_to_phase(start), hour_to_phase(end), minutes_to_phase_width(fade))


def _pool(key: str, scale: float):
    def _transform(_, state, ctx) -> float:
        return scale * state.aux(key)
    return _transform


def _dopamine_setpoint(ctx: DynamicsContext) -> float:
    return 30.0 + 15.0 * _awake_window(ctx, 8.0, 20.0)


def _serotonin_setpoint(ctx: DynamicsContext) -> float:
    return 90.0 + 40.0 * _awake_window(ctx, 7.0, 21.0)


def _norepi_setpoint(ctx: DynamicsContext) -> float:
    return 200.0 + 200.0 * _awake_window(ctx)


def _gaba_setpoint(ctx: DynamicsContext) -> float:
    return 180.0 + 120.0 * _awake_window(ctx, 22.0, 7.0, 60.0)


def _glutamate_setpoint(ctx: DynamicsContext) -> float:
    return 8.0 + 4.0 * _awake_window(ctx)


def _acetylcholine_setpoint(ctx: DynamicsContext) -> float:
    level = 4.0 + 6.0 * _awake_window(ctx)
    if ctx.is_asleep:
        # REM bursts on a ~90 minute ultradian cycle
        level += 5.0 * (0.5 + 0.5 * math.cos(2 * math.pi * ctx.minute / 90.0))
    return level


def _endocannabinoid_setpoint(ctx: DynamicsContext) -> float:
    p = minute_to_phase(ctx.circadian_minute_of_day)
    return 1.0 + 0.8 * gaussian_phase(p, hour_to_phase(12.0), width_to_concentration(480))


dopamine = SignalDefinition(
    key="dopamine",
    label="Dopamine",
    unit="nM",
    description="Motivation and reward signalling.",
    ideal_tendency="higher",
    reference_range=(20.0, 60.0),
    dynamics=Dynamics(
        setpoint=_dopamine_setpoint,
        tau=120.0,
        production=(
            ProductionTerm("constant", 0.002, transform=_pool("dopamineVesicles", 10.0)),
        ),
        clearance=(
            ClearanceTerm("enzyme-dependent", rate=0.002, enzyme="DAT"),
            ClearanceTerm("enzyme-dependent", rate=0.001, enzyme="MAO_B"),
            ClearanceTerm("enzyme-dependent", rate=0.0005, enzyme="COMT"),
        ),
        couplings=(Coupling("cortisol", "stimulate", 0.05),),
    ),
    initial_value=30.0,
    min=0.0,
    max=500.0,
)

serotonin = SignalDefinition(
    key="serotonin",
    label="Serotonin",
    unit="ng/mL",
    description="Mood and satiety signalling.",
    ideal_tendency="higher",
    reference_range=(50.0, 200.0),
    dynamics=Dynamics(
        setpoint=_serotonin_setpoint,
        tau=180.0,
        production=(
            ProductionTerm("constant", 0.002, transform=_pool("serotoninPrecursor", 4.0)),
        ),
        clearance=(
            ClearanceTerm("enzyme-dependent", rate=0.002, enzyme="SERT"),
            ClearanceTerm("enzyme-dependent", rate=0.001, enzyme="MAO_A"),
        ),
        couplings=(
            Coupling("vip", "stimulate", 0.005),
            Coupling("cortisol", "inhibit", 0.05),
        ),
    ),
    initial_value=80.0,
    min=0.0,
    max=1000.0,
)

norepi = SignalDefinition(
    key="norepi",
    label="Norepinephrine",
    unit="pg/mL",
    description="Alertness and sympathetic tone.",
    ideal_tendency="mid",
    reference_range=(100.0, 500.0),
    dynamics=Dynamics(
        setpoint=_norepi_setpoint,
        tau=90.0,
        production=(
            ProductionTerm("constant", 0.002, transform=_pool("norepinephrineVesicles", 281.0)),
        ),
        clearance=(
            ClearanceTerm("enzyme-dependent", rate=0.002, enzyme="NET"),
            ClearanceTerm("enzyme-dependent", rate=0.0005, enzyme="MAO_A"),
            ClearanceTerm("enzyme-dependent", rate=0.0005, enzyme="COMT"),
        ),
        couplings=(
            Coupling("cortisol", "stimulate", 3.0),
            Coupling("orexin", "stimulate", 0.2),
        ),
    ),
    initial_value=250.0,
    min=0.0,
    max=2000.0,
)

gaba = SignalDefinition(
    key="gaba",
    label="GABA",
    unit="nM",
    description="Main inhibitory neurotransmitter.",
    ideal_tendency="mid",
    reference_range=(150.0, 350.0),
    dynamics=Dynamics(
        setpoint=_gaba_setpoint,
        tau=120.0,
        production=(
            ProductionTerm("constant", 0.0015, transform=_pool("gabaPool", 300.0)),
        ),
        clearance=(ClearanceTerm("enzyme-dependent", rate=0.002, enzyme="GAT1"),),
        couplings=(
            Coupling("melatonin", "stimulate", 0.6),
            Coupling("glutamate", "inhibit", 3.6),
        ),
    ),
    initial_value=180.0,
    min=0.0,
    max=1000.0,
)

glutamate = SignalDefinition(
    key="glutamate",
    label="Glutamate",
    unit="µM",
    description="Main excitatory neurotransmitter.",
    ideal_tendency="mid",
    reference_range=(5.0, 15.0),
    dynamics=Dynamics(
        setpoint=_glutamate_setpoint,
        tau=60.0,
        production=(
            ProductionTerm("constant", 0.002, transform=_pool("glutamatePool", 1.0)),
        ),
        clearance=(ClearanceTerm("enzyme-dependent", rate=0.004, enzyme="GLT1"),),
        couplings=(
            Coupling("gaba", "inhibit", 0.02),
            Coupling("norepi", "stimulate", 0.005),
        ),
    ),
    initial_value=8.0,
    min=0.0,
    max=100.0,
)

acetylcholine = SignalDefinition(
    key="acetylcholine",
    label="Acetylcholine",
    unit="nM",
    description="Attention and REM sleep signalling.",
    ideal_tendency="mid",
    reference_range=(2.0, 15.0),
    dynamics=Dynamics(
        setpoint=_acetylcholine_setpoint,
        tau=15.0,
        clearance=(ClearanceTerm("enzyme-dependent", rate=0.005, enzyme="AChE"),),
        couplings=(Coupling("orexin", "stimulate", 0.005),),
    ),
    initial_value=8.0,
    min=0.0,
    max=100.0,
)

endocannabinoid = SignalDefinition(
    key="endocannabinoid",
    label="Endocannabinoids",
    unit="nM",
    description="Anandamide and 2-AG tone.",
    ideal_tendency="higher",
    reference_range=(0.5, 3.0),
    dynamics=Dynamics(
        setpoint=_endocannabinoid_setpoint,
        tau=60.0,
        couplings=(Coupling("cortisol", "inhibit", 0.02),),
    ),
    initial_value=1.5,
    min=0.0,
    max=20.0,
)

SIGNALS = (dopamine, serotonin, norepi, gaba, glutamate, acetylcholine, endocannabinoid)
