"""Glucose, insulin and glucagon."""

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
from ..phase import gaussian_phase, hour_to_phase, minute_to_phase


def _glucose_setpoint(ctx: DynamicsContext) -> float:
    p = minute_to_phase(ctx.circadian_minute_of_day)
    dawn = gaussian_phase(p, hour_to_phase(6.0), 2.0)
    return 88.0 + 6.0 * dawn


def _glucagon_setpoint(ctx: DynamicsContext) -> float:
    p = minute_to_phase(ctx.circadian_minute_of_day)
    overnight = gaussian_phase(p, hour_to_phase(3.5), 1.5)
    return 55.0 + 20.0 * overnight


glucose = SignalDefinition(
    key="glucose",
    label="Glucose",
    unit="mg/dL",
    description="Blood glucose, the body's primary circulating fuel.",
    ideal_tendency="mid",
    reference_range=(70.0, 140.0),
    dynamics=Dynamics(
        setpoint=_glucose_setpoint,
        tau=35.7,
        production=(
            ProductionTerm("constant", 0.1),
        ),
        clearance=(
            # Insulin-mediated uptake
            ClearanceTerm("enzyme-dependent", rate=0.01, enzyme="insulinAction"),
        ),
        couplings=(
            Coupling("cortisol", "stimulate", 0.3),
            Coupling("adrenaline", "stimulate", 0.05),
            Coupling("glucagon", "stimulate", 0.1),
        ),
    ),
    initial_value=90.0,
    min=40.0,
    max=400.0,
)

insulin = SignalDefinition(
    key="insulin",
    label="Insulin",
    unit="µIU/mL",
    description="Pancreatic hormone that moves glucose into tissues.",
    ideal_tendency="lower",
    reference_range=(2.0, 20.0),
    dynamics=Dynamics(
        setpoint=constant(8.0),
        tau=4.35,
        production=(
            ProductionTerm("glucose", 0.05, transform=lambda g, state, ctx: max(0.0, g - 80.0)),
        ),
        couplings=(
            Coupling("glucagon", "inhibit", 0.011),
        ),
    ),
    initial_value=8.0,
    min=0.0,
    max=200.0,
)

glucagon = SignalDefinition(
    key="glucagon",
    label="Glucagon",
    unit="pg/mL",
    description="Counter-regulatory hormone that releases stored glucose.",
    ideal_tendency="mid",
    reference_range=(50.0, 100.0),
    dynamics=Dynamics(
        setpoint=_glucagon_setpoint,
        tau=60.0,
        couplings=(
            Coupling("insulin", "inhibit", 1.0),
            Coupling("glucose", "inhibit", 0.3),
        ),
    ),
    initial_value=60.0,
    min=0.0,
    max=400.0,
)

SIGNALS = (glucose, insulin, glucagon)
