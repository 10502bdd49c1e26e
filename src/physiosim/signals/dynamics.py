"""Dynamics building blocks shared by signal and auxiliary definitions.

Every state variable ``x`` relaxes toward a time-varying setpoint ``s(t)``
with time constant ``tau`` while production, clearance and coupling terms
push it around::

    dx/dt = (s - x) / tau + Σ production - Σ clearance·x + Σ couplings
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Callable, Mapping, Optional, Tuple, Union

from ..domain.subject import Physiology, Subject


@dataclass(frozen=True)
class DynamicsContext:
    """Time and subject context passed to every dynamics function."""

    minute: float
    """Absolute simulation minute"""

    minute_of_day: float
    """Wall-clock minute of day (0-1439)"""

    circadian_minute_of_day: float
    """Minute of day on the subject's internal clock (wake aligned to 08:00)"""

    day_index: int
    is_asleep: bool
    subject: Subject
    physiology: Physiology


class StateView:
    """Read-only view of the current state given to term transforms."""

    __slots__ = ("signals", "auxiliary")

    def __init__(self, signals: Mapping[str, float], auxiliary: Mapping[str, float]):
        self.signals = signals
        self.auxiliary = auxiliary

    def signal(self, key: str, default: float = 0.0) -> float:
        return self.signals.get(key, default)

    def aux(self, key: str, default: float = 0.0) -> float:
        return self.auxiliary.get(key, default)


Transform = Callable[[float, StateView, DynamicsContext], float]
Setpoint = Callable[[DynamicsContext], float]
InitialValue = Union[float, Callable[[DynamicsContext], float]]


@dataclass(frozen=True)
class ProductionTerm:
    """Additive production ``coefficient · transform(source)`` (units/min)."""

    source: str = "constant"
    coefficient: float = 1.0
    transform: Optional[Transform] = None

    def evaluate(self, state: StateView, ctx: DynamicsContext) -> float:
        if self.source == "constant":
            value = 1.0
        else:
            value = max(0.0, state.signals.get(self.source, 0.0))
        if self.transform is not None:
            value = self.transform(value, state, ctx)
        return self.coefficient * value


@dataclass(frozen=True)
class ClearanceTerm:
    """First-order clearance rate (1/min) applied to the variable itself.

    ``kind`` is one of ``linear``, ``saturable`` (``rate / (km + x)``) or
    ``enzyme-dependent`` (``rate`` times the activity of ``enzyme``, a
    transporter or enzyme auxiliary).
    """

    kind: str = "linear"
    rate: float = 0.0
    enzyme: Optional[str] = None
    km: float = 100.0
    transform: Optional[Transform] = None


@dataclass(frozen=True)
class Coupling:
    """Cross-signal term ``±strength · (source - reference) / tau``.

    ``reference`` defaults to the source signal's initial value.
    """

    source: str
    effect: str = "stimulate"
    strength: float = 0.0
    reference: Optional[float] = None

    @property
    def sign(self) -> float:
        return 1.0 if self.effect == "stimulate" else -1.0


@dataclass(frozen=True)
class Dynamics:
    setpoint: Setpoint
    tau: float
    production: Tuple[ProductionTerm, ...] = ()
    clearance: Tuple[ClearanceTerm, ...] = ()
    couplings: Tuple[Coupling, ...] = ()


def constant(value: float) -> Setpoint:
    """Setpoint function returning a fixed value."""
    def _setpoint(ctx: DynamicsContext) -> float:
        return value
    return _setpoint


@dataclass(frozen=True)
class SignalDefinition:
    """An observable simulated quantity."""

    key: str
    label: str
    unit: str
    dynamics: Dynamics
    initial_value: InitialValue = 0.0
    min: float = 0.0
    max: float = float("inf")
    ideal_tendency: str = "none"
    reference_range: Optional[Tuple[float, float]] = None
    description: str = ""
    is_fallback: bool = False

    def initial(self, ctx: DynamicsContext) -> float:
        if callable(self.initial_value):
            return float(self.initial_value(ctx))
        return float(self.initial_value)

    @property
    def nominal(self) -> float:
        """Reference level used by couplings reading this signal."""
        if callable(self.initial_value):
            if self.reference_range is not None:
                return 0.5 * (self.reference_range[0] + self.reference_range[1])
            return 0.0
        return float(self.initial_value)


@dataclass(frozen=True)
class AuxiliaryDefinition:
    """A non-observable pool integrated alongside the signals."""

    key: str
    dynamics: Dynamics
    initial_value: float = 1.0
    kind: str = "pool"
    """One of ``pool``, ``transporter`` or ``enzyme``"""

    def initial(self, ctx: DynamicsContext) -> float:
        return float(self.initial_value)


def fallback_definition(key: str) -> SignalDefinition:
    """Neutral definition for signals without explicit dynamics."""
    return SignalDefinition(
        key=key,
        label=key,
        unit="units",
        dynamics=Dynamics(setpoint=constant(0.0), tau=60.0),
        initial_value=0.0,
        min=float("-inf"),
        max=float("inf"),
        is_fallback=True,
    )


@dataclass(frozen=True)
class DefinitionSet:
    """Signal and auxiliary definitions bundled for the integrator."""

    signals: Mapping[str, SignalDefinition]
    auxiliary: Mapping[str, AuxiliaryDefinition] = field(default_factory=dict)
