"""Auxiliary pools integrated alongside the signals.

Pools (vesicle reserves, precursors, adenosine pressure) have homeostatic
dynamics of their own. Transporter and enzyme activity pools sit at 1.0
(full activity) and are pushed away from it by drugs acting on them.
"""

from __future__ import annotations
import math
from typing import Dict, Tuple

from ..dynamics import (
    AuxiliaryDefinition,
    ClearanceTerm,
    Dynamics,
    DynamicsContext,
    ProductionTerm,
    constant,
)

TRANSPORTERS: Tuple[str, ...] = ("DAT", "NET", "SERT", "GAT1", "GLT1")
ENZYMES: Tuple[str, ...] = ("MAO_A", "MAO_B", "COMT", "AChE", "DAO")

ACTIVITY_TAU_MIN = 30.0


def _release(signal: str, nominal: float):
    def _transform(_, state, ctx) -> float:
        return max(0.0, state.signal(signal)) / nominal
    return _transform


def _excess(threshold: float):
    def _transform(value, state, ctx) -> float:
        return max(0.0, value - threshold)
    return _transform


def _crh_setpoint(ctx: DynamicsContext) -> float:
    hour = ctx.circadian_minute_of_day / 60
    return 0.5 + 0.5 * math.cos((hour - 8.0) * math.pi / 12)


def _adenosine_setpoint(ctx: DynamicsContext) -> float:
    return 0.1 if ctx.is_asleep else 1.0


def _pool(key: str, dynamics: Dynamics, initial: float) -> AuxiliaryDefinition:
    return AuxiliaryDefinition(key=key, dynamics=dynamics, initial_value=initial, kind="pool")


POOLS: Tuple[AuxiliaryDefinition, ...] = (
    _pool(
        "dopamineVesicles",
        Dynamics(
            setpoint=constant(0.8),
            tau=120.0,
            clearance=(ClearanceTerm("linear", rate=0.001, transform=_release("dopamine", 40.0)),),
        ),
        0.8,
    ),
    _pool(
        "norepinephrineVesicles",
        Dynamics(
            setpoint=constant(0.8),
            tau=120.0,
            clearance=(ClearanceTerm("linear", rate=0.001, transform=_release("norepi", 250.0)),),
        ),
        0.8,
    ),
    _pool(
        "serotoninPrecursor",
        Dynamics(
            setpoint=constant(1.0),
            tau=240.0,
            production=(ProductionTerm("insulin", 0.00005, transform=_excess(15.0)),),
        ),
        1.0,
    ),
    _pool("gabaPool", Dynamics(setpoint=constant(0.7), tau=240.0), 0.7),
    _pool("glutamatePool", Dynamics(setpoint=constant(0.7), tau=240.0), 0.7),
    _pool(
        "hepaticGlycogen",
        Dynamics(
            setpoint=constant(0.6),
            tau=720.0,
            production=(ProductionTerm("insulin", 0.0002, transform=_excess(10.0)),),
            clearance=(ClearanceTerm("linear", rate=0.0005, transform=_release("glucagon", 60.0)),),
        ),
        0.6,
    ),
    _pool(
        "insulinAction",
        Dynamics(
            setpoint=constant(0.2),
            tau=40.0,
            production=(ProductionTerm("insulin", 0.0005, transform=_excess(8.0)),),
        ),
        0.2,
    ),
    _pool(
        "cortisolIntegral",
        Dynamics(
            setpoint=constant(0.0),
            tau=1440.0,
            # Tracks the running daily mean of cortisol scaled by 15 µg/dL
            production=(ProductionTerm("cortisol", 1.0 / (1440.0 * 15.0)),),
        ),
        0.6,
    ),
    _pool(
        "crhPool",
        Dynamics(
            setpoint=_crh_setpoint,
            tau=10.0,
            clearance=(
                ClearanceTerm(
                    "linear",
                    rate=0.02,
                    transform=lambda x, state, ctx: 1.0 + max(0.0, state.signal("cortisol") - 15.0) / 15.0,
                ),
            ),
        ),
        0.5,
    ),
    _pool(
        "ghReserve",
        Dynamics(
            setpoint=constant(0.8),
            tau=720.0,
            clearance=(ClearanceTerm("linear", rate=0.0005, transform=_release("growthHormone", 5.0)),),
        ),
        0.8,
    ),
    _pool("bdnfExpression", Dynamics(setpoint=constant(0.6), tau=720.0), 0.6),
    _pool("adenosinePressure", Dynamics(setpoint=_adenosine_setpoint, tau=600.0), 0.5),
)


def activity_pools() -> Tuple[AuxiliaryDefinition, ...]:
    """One full-activity pool per transporter and enzyme."""
    kinds: Dict[str, str] = {key: "transporter" for key in TRANSPORTERS}
    kinds.update({key: "enzyme" for key in ENZYMES})
    return tuple(
        AuxiliaryDefinition(
            key=key,
            dynamics=Dynamics(setpoint=constant(1.0), tau=ACTIVITY_TAU_MIN),
            initial_value=1.0,
            kind=kind,
        )
        for key, kind in kinds.items()
    )
