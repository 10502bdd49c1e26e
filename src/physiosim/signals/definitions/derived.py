"""Derived physiological indices.

These are not single molecules but summary quantities (energy, HRV, blood
pressure, inflammation) or substances that are only present when an
intervention introduces them (ethanol, acetaldehyde).
"""

from __future__ import annotations

from ..dynamics import (
    ClearanceTerm,
    Coupling,
    Dynamics,
    DynamicsContext,
    ProductionTerm,
    SignalDefinition,
    constant,
)
from ..phase import (
    gaussian_phase,
    hour_to_phase,
    minute_to_phase,
    minutes_to_phase_width,
    width_to_concentration,
    window_phase,
)


def _window(ctx: DynamicsContext, start: float, end: float, fade_min: float = 60.0) -> float:
    p = minute_to_phase(ctx.circadian_minute_of_day)
    return window_phase(p, hour_to_phase(start), hour_to_phase(end), minutes_to_phase_width(fade_min))


def _energy_setpoint(ctx: DynamicsContext) -> float:
    return 40.0 + 40.0 * _window(ctx, 7.0, 22.0, 120.0)


def _hrv_setpoint(ctx: DynamicsContext) -> float:
    return 50.0 + 20.0 * _window(ctx, 22.0, 7.0)


def _blood_pressure_setpoint(ctx: DynamicsContext) -> float:
    return 110.0 + 10.0 * _window(ctx, 7.0, 22.0)


def _vagal_setpoint(ctx: DynamicsContext) -> float:
    return 0.5 + 0.2 * _window(ctx, 22.0, 7.0)


def _ketone_setpoint(ctx: DynamicsContext) -> float:
    p = minute_to_phase(ctx.circadian_minute_of_day)
    return 0.1 + 0.2 * gaussian_phase(p, hour_to_phase(5.0), width_to_concentration(240))


def _sensory_setpoint(ctx: DynamicsContext) -> float:
    return 20.0 + 30.0 * _window(ctx, 8.0, 20.0)


def _adenosine(_, state, ctx) -> float:
    return state.aux("adenosinePressure")


energy = SignalDefinition(
    key="energy",
    label="Energy",
    unit="score",
    description="Subjective energy level.",
    ideal_tendency="higher",
    reference_range=(30.0, 80.0),
    dynamics=Dynamics(
        setpoint=_energy_setpoint,
        tau=60.0,
        production=(ProductionTerm("constant", -0.2, transform=_adenosine),),
        couplings=(
            Coupling("glucose", "stimulate", 0.1),
            Coupling("cortisol", "stimulate", 0.5),
            Coupling("adrenaline", "stimulate", 0.05),
            Coupling("melatonin", "inhibit", 0.3),
        ),
    ),
    initial_value=40.0,
    min=0.0,
    max=100.0,
)

hrv = SignalDefinition(
    key="hrv",
    label="HRV",
    unit="ms",
    description="Heart rate variability (RMSSD).",
    ideal_tendency="higher",
    reference_range=(20.0, 100.0),
    dynamics=Dynamics(
        setpoint=_hrv_setpoint,
        tau=30.0,
        couplings=(
            Coupling("adrenaline", "inhibit", 0.1),
            Coupling("norepi", "inhibit", 0.02),
            Coupling("cortisol", "inhibit", 0.5),
            Coupling("vagal", "stimulate", 20.0),
        ),
    ),
    initial_value=60.0,
    min=5.0,
    max=200.0,
)

blood_pressure = SignalDefinition(
    key="bloodPressure",
    label="Blood Pressure",
    unit="mmHg",
    description="Systolic blood pressure.",
    ideal_tendency="mid",
    reference_range=(100.0, 130.0),
    dynamics=Dynamics(
        setpoint=_blood_pressure_setpoint,
        tau=20.0,
        couplings=(
            Coupling("adrenaline", "stimulate", 0.05),
            Coupling("norepi", "stimulate", 0.02),
            Coupling("vagal", "inhibit", 10.0),
        ),
    ),
    initial_value=110.0,
    min=60.0,
    max=220.0,
)

inflammation = SignalDefinition(
    key="inflammation",
    label="Inflammation",
    unit="score",
    description="Systemic inflammatory tone.",
    ideal_tendency="lower",
    reference_range=(0.0, 3.0),
    dynamics=Dynamics(
        setpoint=constant(1.0),
        tau=720.0,
        couplings=(
            Coupling("cortisol", "inhibit", 0.02),
            Coupling("glucose", "stimulate", 0.01),
            Coupling("acetaldehyde", "stimulate", 0.05),
        ),
    ),
    initial_value=1.0,
    min=0.0,
    max=10.0,
)

bdnf = SignalDefinition(
    key="bdnf",
    label="BDNF",
    unit="ng/mL",
    description="Brain-derived neurotrophic factor.",
    ideal_tendency="higher",
    reference_range=(10.0, 35.0),
    dynamics=Dynamics(
        setpoint=constant(18.0),
        tau=240.0,
        production=(
            ProductionTerm("constant", 0.005, transform=lambda _, state, ctx: state.aux("bdnfExpression", 0.6)),
        ),
        couplings=(Coupling("cortisol", "inhibit", 0.05),),
    ),
    initial_value=19.0,
    min=0.0,
    max=100.0,
)

vagal = SignalDefinition(
    key="vagal",
    label="Vagal Tone",
    unit="index",
    description="Parasympathetic outflow.",
    ideal_tendency="higher",
    reference_range=(0.3, 0.8),
    dynamics=Dynamics(
        setpoint=_vagal_setpoint,
        tau=20.0,
        couplings=(
            Coupling("adrenaline", "inhibit", 0.002),
            Coupling("oxytocin", "stimulate", 0.01),
        ),
    ),
    initial_value=0.5,
    min=0.0,
    max=1.0,
)

ketone = SignalDefinition(
    key="ketone",
    label="Ketones",
    unit="mmol/L",
    description="Beta-hydroxybutyrate.",
    ideal_tendency="none",
    reference_range=(0.1, 0.5),
    dynamics=Dynamics(
        setpoint=_ketone_setpoint,
        tau=240.0,
        couplings=(
            Coupling("insulin", "inhibit", 0.005),
            Coupling("glucagon", "stimulate", 0.001),
        ),
    ),
    initial_value=0.15,
    min=0.0,
    max=8.0,
)

ethanol = SignalDefinition(
    key="ethanol",
    label="Blood Alcohol",
    unit="mg/dL",
    description="Blood ethanol, driven by alcohol intake.",
    ideal_tendency="lower",
    reference_range=(0.0, 80.0),
    dynamics=Dynamics(setpoint=constant(0.0), tau=5.0),
    initial_value=0.0,
    min=0.0,
    max=500.0,
)

acetaldehyde = SignalDefinition(
    key="acetaldehyde",
    label="Acetaldehyde",
    unit="µM",
    description="Toxic ethanol metabolite.",
    ideal_tendency="lower",
    reference_range=(0.0, 20.0),
    dynamics=Dynamics(
        setpoint=constant(0.0),
        tau=30.0,
        clearance=(ClearanceTerm("linear", rate=0.02),),
        couplings=(Coupling("ethanol", "stimulate", 0.05),),
    ),
    initial_value=0.0,
    min=0.0,
    max=200.0,
)

magnesium = SignalDefinition(
    key="magnesium",
    label="Magnesium",
    unit="mg/dL",
    ideal_tendency="mid",
    reference_range=(1.7, 2.3),
    dynamics=Dynamics(setpoint=constant(2.0), tau=1440.0),
    initial_value=2.0,
    min=0.5,
    max=5.0,
)

sensory_load = SignalDefinition(
    key="sensoryLoad",
    label="Sensory Load",
    unit="score",
    description="Accumulated sensory and cognitive input.",
    ideal_tendency="lower",
    reference_range=(10.0, 60.0),
    dynamics=Dynamics(
        setpoint=_sensory_setpoint,
        tau=30.0,
        couplings=(Coupling("acetylcholine", "stimulate", 0.5),),
    ),
    initial_value=20.0,
    min=0.0,
    max=100.0,
)

mtor = SignalDefinition(
    key="mtor",
    label="mTOR",
    unit="index",
    description="Anabolic growth signalling.",
    ideal_tendency="mid",
    reference_range=(0.5, 1.5),
    dynamics=Dynamics(
        setpoint=constant(1.0),
        tau=120.0,
        couplings=(
            Coupling("insulin", "stimulate", 0.01),
            Coupling("ampk", "inhibit", 0.5),
        ),
    ),
    initial_value=1.0,
    min=0.0,
    max=5.0,
)

ampk = SignalDefinition(
    key="ampk",
    label="AMPK",
    unit="index",
    description="Cellular energy sensor.",
    ideal_tendency="mid",
    reference_range=(0.5, 1.5),
    dynamics=Dynamics(
        setpoint=constant(1.0),
        tau=240.0,
        couplings=(
            Coupling("glucose", "inhibit", 0.005),
            Coupling("insulin", "inhibit", 0.01),
        ),
    ),
    initial_value=1.0,
    min=0.0,
    max=5.0,
)

oxygen = SignalDefinition(
    key="oxygen",
    label="SpO2",
    unit="%",
    ideal_tendency="higher",
    reference_range=(95.0, 100.0),
    dynamics=Dynamics(setpoint=constant(97.0), tau=5.0),
    initial_value=97.0,
    min=80.0,
    max=100.0,
)

SIGNALS = (
    energy, hrv, blood_pressure, inflammation, bdnf, vagal, ketone, ethanol,
    acetaldehyde, magnesium, sensory_load, mtor, ampk, oxygen,
)
