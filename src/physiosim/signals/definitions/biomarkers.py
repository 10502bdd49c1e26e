"""Slow lab biomarkers.

These barely move within a day; they are pinned to subject-dependent levels
so the panels have sensible values. ``alt`` and ``ast`` have no dynamics and
resolve to the neutral fallback.
"""

from __future__ import annotations

from ..dynamics import Dynamics, DynamicsContext, SignalDefinition

_WEEK_MIN = 7 * 1440.0


def _ferritin(ctx: DynamicsContext) -> float:
    return 150.0 if ctx.subject.is_male else 60.0


def _shbg(ctx: DynamicsContext) -> float:
    return 40.0 if ctx.subject.is_male else 70.0


def _dheas(ctx: DynamicsContext) -> float:
    return max(50.0, 350.0 - 5.0 * (ctx.subject.age - 25.0))


def _egfr(ctx: DynamicsContext) -> float:
    return ctx.physiology.estimated_gfr


def _vitamin_d(ctx: DynamicsContext) -> float:
    return 30.0


def _slow(key: str, label: str, unit: str, setpoint, reference_range, tendency: str = "mid") -> SignalDefinition:
    return SignalDefinition(
        key=key,
        label=label,
        unit=unit,
        ideal_tendency=tendency,
        reference_range=reference_range,
        dynamics=Dynamics(setpoint=setpoint, tau=_WEEK_MIN),
        initial_value=setpoint,
        min=0.0,
    )


ferritin = _slow("ferritin", "Ferritin", "ng/mL", _ferritin, (30.0, 300.0))
shbg = _slow("shbg", "SHBG", "nmol/L", _shbg, (20.0, 100.0))
dheas = _slow("dheas", "DHEA-S", "µg/dL", _dheas, (80.0, 500.0))
egfr = _slow("egfr", "eGFR", "mL/min", _egfr, (90.0, 120.0), tendency="higher")
vitamin_d3 = _slow("vitaminD3", "Vitamin D3", "ng/mL", _vitamin_d, (30.0, 100.0), tendency="higher")

SIGNALS = (ferritin, shbg, dheas, egfr, vitamin_d3)
