"""Clock-driven signals: melatonin, orexin and histamine."""

from __future__ import annotations

from ..dynamics import ClearanceTerm, Coupling, Dynamics, DynamicsContext, SignalDefinition
from ..phase import hour_to_phase, minute_to_phase, minutes_to_phase_width, window_phase


def _window(ctx: DynamicsContext, start: float, end: float, fade_min: float) -> float:
    p = minute_to_phase(ctx.circadian_minute_of_day)
    return window_phase(p, hour_to_phase(start), hour_to_phase(end), minutes_to_phase_width(fade_min))


def _melatonin_setpoint(ctx: DynamicsContext) -> float:
    return 5.0 + 75.0 * _window(ctx, 21.0, 7.5, 60.0)


def _orexin_setpoint(ctx: DynamicsContext) -> float:
    return 150.0 + 250.0 * _window(ctx, 7.0, 22.0, 90.0)


def _histamine_setpoint(ctx: DynamicsContext) -> float:
    return 1.0 + 4.0 * _window(ctx, 7.0, 22.0, 60.0)


melatonin = SignalDefinition(
    key="melatonin",
    label="Melatonin",
    unit="pg/mL",
    description="Darkness hormone that opens the sleep window.",
    ideal_tendency="none",
    reference_range=(5.0, 80.0),
    dynamics=Dynamics(setpoint=_melatonin_setpoint, tau=30.0),
    initial_value=5.0,
    min=0.0,
    max=500.0,
)

orexin = SignalDefinition(
    key="orexin",
    label="Orexin",
    unit="pg/mL",
    description="Wake-stabilising hypothalamic peptide.",
    ideal_tendency="mid",
    reference_range=(150.0, 400.0),
    dynamics=Dynamics(
        setpoint=_orexin_setpoint,
        tau=30.0,
        couplings=(
            Coupling("melatonin", "inhibit", 1.0),
            Coupling("glucose", "inhibit", 0.3),
        ),
    ),
    initial_value=150.0,
    min=0.0,
    max=1000.0,
)

histamine = SignalDefinition(
    key="histamine",
    label="Histamine",
    unit="nM",
    description="Wake-promoting amine.",
    ideal_tendency="mid",
    reference_range=(1.0, 5.0),
    dynamics=Dynamics(
        setpoint=_histamine_setpoint,
        tau=30.0,
        clearance=(ClearanceTerm("enzyme-dependent", rate=0.005, enzyme="DAO"),),
        couplings=(Coupling("orexin", "stimulate", 0.005),),
    ),
    initial_value=1.0,
    min=0.0,
    max=50.0,
)

SIGNALS = (melatonin, orexin, histamine)
