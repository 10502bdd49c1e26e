"""Endocrine signals: stress axis, appetite, pituitary and reproductive hormones."""

from __future__ import annotations
import math

from ...domain.subject import menstrual_hormones
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
    sigmoid_phase,
    width_to_concentration,
    window_phase,
)


def _phase(ctx: DynamicsContext) -> float:
    return minute_to_phase(ctx.circadian_minute_of_day)


def _cortisol_setpoint(ctx: DynamicsContext) -> float:
    p = _phase(ctx)
    awakening = gaussian_phase(p, hour_to_phase(8.75), 1.5)
    day = window_phase(p, hour_to_phase(8), hour_to_phase(20), 0.5)
    return 2.0 + 18.0 * awakening + 4.0 * day


def _adrenaline_setpoint(ctx: DynamicsContext) -> float:
    return 30.0 + 80.0 * gaussian_phase(_phase(ctx), hour_to_phase(10), 2.0)


def _leptin_setpoint(ctx: DynamicsContext) -> float:
    hour = ctx.circadian_minute_of_day / 60
    return 15.0 + 5.0 * math.cos((hour - 24) * math.pi / 12)


def _ghrelin_setpoint(ctx: DynamicsContext) -> float:
    p = _phase(ctx)
    pre_meal = sum(gaussian_phase(p, hour_to_phase(h), 1.0) for h in (8.5, 13.0, 19.0))
    return 400.0 + 600.0 * pre_meal


def _thyroid_setpoint(ctx: DynamicsContext) -> float:
    p = _phase(ctx)
    active = window_phase(p, hour_to_phase(8), hour_to_phase(23), minutes_to_phase_width(80))
    midday = gaussian_phase(p, hour_to_phase(12), width_to_concentration(360))
    night_dip = gaussian_phase(p, hour_to_phase(2.0), width_to_concentration(300))
    return 1.0 + 2.0 * active + 1.5 * midday - 1.2 * night_dip


def _growth_hormone_setpoint(ctx: DynamicsContext) -> float:
    p = _phase(ctx)
    onset = gaussian_phase(p, hour_to_phase(23.5), width_to_concentration(120))
    rebound = gaussian_phase(p, hour_to_phase(3.0), width_to_concentration(90))
    return 0.5 + 8.0 * (onset + 0.6 * rebound)


def _oxytocin_setpoint(ctx: DynamicsContext) -> float:
    p = _phase(ctx)
    social = gaussian_phase(p, hour_to_phase(11), width_to_concentration(260))
    evening = sigmoid_phase(p, hour_to_phase(19), minutes_to_phase_width(160))
    return 1.5 + 4.0 * social + 5.0 * evening


def _prolactin_setpoint(ctx: DynamicsContext) -> float:
    p = _phase(ctx)
    prep = sigmoid_phase(p, hour_to_phase(19), minutes_to_phase_width(200))
    sleep_pulse = (
        gaussian_phase(p, hour_to_phase(2.0), width_to_concentration(120))
        + 0.8 * gaussian_phase(p, hour_to_phase(4.0), width_to_concentration(200))
    )
    return 4.0 + 8.0 * prep + 12.0 * sleep_pulse


def _vasopressin_setpoint(ctx: DynamicsContext) -> float:
    p = _phase(ctx)
    morning = gaussian_phase(p, hour_to_phase(8.5), width_to_concentration(260))
    night = window_phase(p, hour_to_phase(23), hour_to_phase(7), minutes_to_phase_width(45))
    return 1.8 + 3.5 * morning + 3.5 * night


def _vip_setpoint(ctx: DynamicsContext) -> float:
    p = _phase(ctx)
    day = gaussian_phase(p, hour_to_phase(12), width_to_concentration(300))
    evening = window_phase(p, hour_to_phase(20), hour_to_phase(8), minutes_to_phase_width(35))
    return 20.0 + 50.0 * day - 25.0 * evening


def _age_factor(ctx: DynamicsContext) -> float:
    return max(0.5, 1 - max(0.0, ctx.subject.age - 30) * 0.01)


def _testosterone_setpoint(ctx: DynamicsContext) -> float:
    if not ctx.subject.is_male:
        return 40.0 * _age_factor(ctx)
    morning = gaussian_phase(_phase(ctx), hour_to_phase(8), width_to_concentration(240))
    return (400.0 + 300.0 * morning) * _age_factor(ctx)


def _cycle_levels(ctx: DynamicsContext):
    subject = ctx.subject
    day = (subject.cycle_day + ctx.day_index) % subject.cycle_length_days
    return menstrual_hormones(day, subject.cycle_length_days)


def _estrogen_setpoint(ctx: DynamicsContext) -> float:
    if ctx.subject.is_male:
        return 30.0
    return 20.0 + 250.0 * _cycle_levels(ctx).estrogen


def _progesterone_setpoint(ctx: DynamicsContext) -> float:
    if ctx.subject.is_male:
        return 0.2
    return 0.2 + 18.0 * _cycle_levels(ctx).progesterone


def _lh_setpoint(ctx: DynamicsContext) -> float:
    if ctx.subject.is_male:
        return 5.0
    return 2.0 + 30.0 * _cycle_levels(ctx).lh


def _fsh_setpoint(ctx: DynamicsContext) -> float:
    if ctx.subject.is_male:
        return 5.0
    return 3.0 + 12.0 * _cycle_levels(ctx).fsh


def _glp1_setpoint(ctx: DynamicsContext) -> float:
    p = _phase(ctx)
    breakfast = gaussian_phase(p, hour_to_phase(8.5), width_to_concentration(70))
    lunch = gaussian_phase(p, hour_to_phase(13.0), width_to_concentration(80))
    dinner = gaussian_phase(p, hour_to_phase(19.0), width_to_concentration(90))
    return min(25.0, 2.0 + 12.0 * (breakfast + 0.9 * lunch + 0.8 * dinner))


cortisol = SignalDefinition(
    key="cortisol",
    label="Cortisol",
    unit="µg/dL",
    description="Primary stress hormone with a strong awakening response.",
    ideal_tendency="mid",
    reference_range=(5.0, 23.0),
    dynamics=Dynamics(
        setpoint=_cortisol_setpoint,
        tau=20.0,
        production=(
            ProductionTerm("constant", 0.15, transform=lambda _, state, ctx: state.aux("crhPool")),
        ),
        couplings=(
            Coupling("orexin", "stimulate", 0.01),
            Coupling("melatonin", "inhibit", 0.05),
            Coupling("gaba", "inhibit", 0.01),
        ),
    ),
    initial_value=lambda ctx: 5.0 if ctx.is_asleep else 12.0,
    min=0.0,
    max=50.0,
)

adrenaline = SignalDefinition(
    key="adrenaline",
    label="Adrenaline",
    unit="pg/mL",
    description="Fast sympathetic hormone driving acute arousal.",
    ideal_tendency="mid",
    reference_range=(10.0, 100.0),
    dynamics=Dynamics(
        setpoint=_adrenaline_setpoint,
        tau=5.0,
        clearance=(ClearanceTerm("linear", rate=0.05),),
        couplings=(
            Coupling("orexin", "stimulate", 0.1),
            Coupling("dopamine", "stimulate", 1.0),
            Coupling("gaba", "inhibit", 0.1),
        ),
    ),
    initial_value=30.0,
    min=0.0,
    max=1000.0,
)

leptin = SignalDefinition(
    key="leptin",
    label="Leptin",
    unit="ng/mL",
    description="Satiety hormone released by fat tissue.",
    ideal_tendency="mid",
    reference_range=(5.0, 25.0),
    dynamics=Dynamics(
        setpoint=_leptin_setpoint,
        tau=1440.0,
        couplings=(Coupling("insulin", "stimulate", 0.05),),
    ),
    initial_value=15.0,
    min=0.0,
    max=100.0,
)

ghrelin = SignalDefinition(
    key="ghrelin",
    label="Ghrelin",
    unit="pg/mL",
    description="Hunger hormone that rises before habitual meal times.",
    ideal_tendency="mid",
    reference_range=(300.0, 1200.0),
    dynamics=Dynamics(
        setpoint=_ghrelin_setpoint,
        tau=60.0,
        clearance=(
            ClearanceTerm(
                "linear",
                rate=0.002,
                transform=lambda x, state, ctx: 2.0 if state.signal("glucose") > 120 else 1.0,
            ),
        ),
        couplings=(
            Coupling("leptin", "inhibit", 5.0),
            Coupling("insulin", "inhibit", 5.0),
            Coupling("progesterone", "stimulate", 10.0),
        ),
    ),
    initial_value=500.0,
    min=0.0,
    max=3000.0,
)

thyroid = SignalDefinition(
    key="thyroid",
    label="Thyroid (T3)",
    unit="pmol/L",
    description="Metabolic rate regulator.",
    ideal_tendency="mid",
    reference_range=(1.0, 5.0),
    dynamics=Dynamics(
        setpoint=_thyroid_setpoint,
        tau=720.0,
        couplings=(
            Coupling("cortisol", "inhibit", 0.005),
            Coupling("leptin", "stimulate", 0.01),
        ),
    ),
    initial_value=2.0,
    min=0.0,
    max=10.0,
)

growth_hormone = SignalDefinition(
    key="growthHormone",
    label="Growth Hormone",
    unit="ng/mL",
    description="Repair and growth signal released mostly in early sleep.",
    ideal_tendency="higher",
    reference_range=(0.5, 10.0),
    dynamics=Dynamics(
        setpoint=_growth_hormone_setpoint,
        tau=20.0,
        production=(
            ProductionTerm("constant", 0.02, transform=lambda _, state, ctx: state.aux("ghReserve", 0.8)),
        ),
        couplings=(
            Coupling("gaba", "stimulate", 0.005),
            Coupling("ghrelin", "stimulate", 0.002),
            Coupling("cortisol", "inhibit", 0.05),
        ),
    ),
    initial_value=0.5,
    min=0.0,
    max=50.0,
)

oxytocin = SignalDefinition(
    key="oxytocin",
    label="Oxytocin",
    unit="pg/mL",
    description="Bonding hormone supporting trust and calm.",
    ideal_tendency="higher",
    reference_range=(1.0, 10.0),
    dynamics=Dynamics(
        setpoint=_oxytocin_setpoint,
        tau=20.0,
        clearance=(ClearanceTerm("linear", rate=0.01),),
        couplings=(
            Coupling("endocannabinoid", "stimulate", 0.2),
            Coupling("serotonin", "stimulate", 0.3),
        ),
    ),
    initial_value=5.0,
    min=0.0,
    max=100.0,
)

prolactin = SignalDefinition(
    key="prolactin",
    label="Prolactin",
    unit="ng/mL",
    description="Pituitary hormone that rises overnight.",
    ideal_tendency="mid",
    reference_range=(4.0, 23.0),
    dynamics=Dynamics(
        setpoint=_prolactin_setpoint,
        tau=45.0,
        clearance=(ClearanceTerm("linear", rate=0.005),),
        couplings=(
            Coupling("gaba", "stimulate", 0.005),
            Coupling("dopamine", "inhibit", 0.3),
        ),
    ),
    initial_value=10.0,
    min=0.0,
    max=200.0,
)

vasopressin = SignalDefinition(
    key="vasopressin",
    label="Vasopressin",
    unit="pg/mL",
    description="Water-retention hormone.",
    ideal_tendency="mid",
    reference_range=(1.0, 10.0),
    dynamics=Dynamics(
        setpoint=_vasopressin_setpoint,
        tau=20.0,
        clearance=(ClearanceTerm("linear", rate=0.01),),
    ),
    initial_value=5.0,
    min=0.0,
    max=50.0,
)

vip = SignalDefinition(
    key="vip",
    label="VIP",
    unit="pg/mL",
    description="Vasoactive intestinal peptide, a gut and clock peptide.",
    ideal_tendency="mid",
    reference_range=(10.0, 70.0),
    dynamics=Dynamics(
        setpoint=_vip_setpoint,
        tau=30.0,
        clearance=(ClearanceTerm("linear", rate=0.005),),
    ),
    initial_value=20.0,
    min=0.0,
    max=200.0,
)

testosterone = SignalDefinition(
    key="testosterone",
    label="Testosterone",
    unit="ng/dL",
    description="Androgen with a morning peak in men.",
    ideal_tendency="mid",
    reference_range=(300.0, 1000.0),
    dynamics=Dynamics(
        setpoint=_testosterone_setpoint,
        tau=60.0,
        clearance=(ClearanceTerm("linear", rate=0.002),),
    ),
    initial_value=_testosterone_setpoint,
    min=0.0,
    max=1500.0,
)

estrogen = SignalDefinition(
    key="estrogen",
    label="Estrogen",
    unit="pg/mL",
    ideal_tendency="mid",
    reference_range=(20.0, 300.0),
    dynamics=Dynamics(setpoint=_estrogen_setpoint, tau=120.0),
    initial_value=_estrogen_setpoint,
    min=0.0,
    max=1000.0,
)

progesterone = SignalDefinition(
    key="progesterone",
    label="Progesterone",
    unit="ng/mL",
    ideal_tendency="mid",
    reference_range=(0.1, 20.0),
    dynamics=Dynamics(setpoint=_progesterone_setpoint, tau=120.0),
    initial_value=_progesterone_setpoint,
    min=0.0,
    max=50.0,
)

lh = SignalDefinition(
    key="lh",
    label="LH",
    unit="IU/L",
    ideal_tendency="mid",
    reference_range=(2.0, 15.0),
    dynamics=Dynamics(setpoint=_lh_setpoint, tau=60.0),
    initial_value=_lh_setpoint,
    min=0.0,
    max=100.0,
)

fsh = SignalDefinition(
    key="fsh",
    label="FSH",
    unit="IU/L",
    ideal_tendency="mid",
    reference_range=(3.0, 12.0),
    dynamics=Dynamics(setpoint=_fsh_setpoint, tau=60.0),
    initial_value=_fsh_setpoint,
    min=0.0,
    max=100.0,
)

glp1 = SignalDefinition(
    key="glp1",
    label="GLP-1",
    unit="pmol/L",
    description="Incretin released after meals.",
    ideal_tendency="higher",
    reference_range=(2.0, 20.0),
    dynamics=Dynamics(
        setpoint=_glp1_setpoint,
        tau=30.0,
        clearance=(ClearanceTerm("linear", rate=0.005),),
        couplings=(Coupling("insulin", "stimulate", 0.05),),
    ),
    initial_value=5.0,
    min=0.0,
    max=100.0,
)

SIGNALS = (
    cortisol, adrenaline, leptin, ghrelin, thyroid, growth_hormone, oxytocin,
    prolactin, vasopressin, vip, testosterone, estrogen, progesterone, lh, fsh,
    glp1,
)
