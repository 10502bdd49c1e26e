"""Exponential-update integrator for signals and auxiliary pools.

Within one step every term is frozen at the state of the start of the step
(Jacobi update), which turns each variable's equation into the linear form::

    dx/dt = (s - x)/tau + D - k·x,    D = production + couplings + forcing

whose exact solution over ``dt`` is::

    1/tau_eff = 1/tau + k
    target    = tau_eff·(s/tau + D)
    x        <- target + (x - target)·exp(-dt/tau_eff)

The update never overshoots its target, so it stays stable for time
constants well below the step size.
"""

from __future__ import annotations
import math
from dataclasses import replace
from typing import Dict, List, Mapping, Optional, Tuple

import structlog

from ..config.constants import AUX_MAX, AUX_MIN, MINUTES_PER_DAY, TAU_FLOOR_MIN
from ..config.model import DebugToggles
from ..domain.conditions import BaselineAdjustment, ConditionAdjustments
from ..signals import (
    AuxiliaryDefinition,
    ClearanceTerm,
    DefinitionSet,
    DynamicsContext,
    SignalDefinition,
    StateView,
)
from .context import RunContext
from .forcing import Forcing

logger = structlog.get_logger()

FALLBACK_TAU_MIN = 60.0


State = Dict[str, float]


def exponential_update(
    x: float,
    setpoint: float,
    tau: float,
    drive: float,
    clearance: float,
    dt: float,
) -> float:
    """Advance ``dx/dt = (s - x)/tau + drive - clearance·x`` exactly over ``dt``.

    Args:
        x: Current value
        setpoint: Relaxation setpoint
        tau: Relaxation time constant (minutes, positive)
        drive: Sum of additive rates (units/min)
        clearance: First-order clearance rate (1/min, non-negative)
        dt: Step length in minutes

    Returns:
        Value after ``dt``
    """
    tau_eff = 1.0 / (1.0 / tau + clearance)
    target = tau_eff * (setpoint / tau + drive)
    return target + (x - target) * math.exp(-dt / tau_eff)


class ExponentialIntegrator:
    """Advances every signal and auxiliary pool by one step.

    Debug toggles and condition adjustments are resolved once at
    construction; :meth:`step` only evaluates dynamics.
    """

    def __init__(
        self,
        definitions: DefinitionSet,
        toggles: Optional[DebugToggles] = None,
        tau_floor: float = TAU_FLOOR_MIN,
        adjustments: Optional[ConditionAdjustments] = None,
        sensitivity: Optional[Mapping[str, float]] = None,
        run: Optional[RunContext] = None,
    ):
        """Initialize integrator.

        Args:
            definitions: Signal and auxiliary definitions
            toggles: Debug toggles; everything enabled by default
            tau_floor: Smallest time constant used
            adjustments: Condition adjustments (``None`` when conditions are off)
            sensitivity: Coupling sensitivity per source signal
            run: Run context receiving per-signal failure reports
        """
        self.definitions = definitions
        self.toggles = toggles or DebugToggles()
        self.tau_floor = tau_floor
        self.run = run or RunContext()
        adjustments = adjustments or ConditionAdjustments()
        sensitivity = sensitivity or {}

        self._signals: List[Tuple[str, SignalDefinition, float]] = [
            (key, d, max(tau_floor, d.dynamics.tau)) for key, d in definitions.signals.items()
        ]
        self._auxiliary: List[Tuple[str, AuxiliaryDefinition, float]] = [
            (key, d, max(tau_floor, d.dynamics.tau)) for key, d in definitions.auxiliary.items()
        ]
        self._aux_kind = {key: d.kind for key, d in definitions.auxiliary.items()}
        self._baselines: Dict[str, BaselineAdjustment] = dict(adjustments.baselines)

        self._couplings: Dict[str, List[Tuple[str, float, float]]] = {}
        for key, definition, tau in self._signals:
            terms = []
            for coupling in definition.dynamics.couplings:
                reference = coupling.reference
                if reference is None:
                    reference = self._nominal(coupling.source)
                coefficient = coupling.sign * coupling.strength / tau * sensitivity.get(coupling.source, 1.0)
                terms.append((coupling.source, coefficient, reference))
            for source, gain in adjustments.couplings.get(key, ()):
                if source not in definitions.signals:
                    continue
                strength = abs(gain) * self._relative_scale(key, source)
                coefficient = math.copysign(strength, gain) / tau * sensitivity.get(source, 1.0)
                terms.append((source, coefficient, self._nominal(source)))
            if terms:
                self._couplings[key] = terms

        # Resting activity of transporter and enzyme pools
        self._aux_setpoints: Dict[str, float] = {}
        for offsets in (adjustments.transporter_activity, adjustments.enzyme_activity):
            for key, delta in offsets.items():
                if key in self._aux_kind:
                    self._aux_setpoints[key] = min(AUX_MAX, max(AUX_MIN, 1.0 + delta))

    def _nominal(self, key: str) -> float:
        definition = self.definitions.signals.get(key)
        return definition.nominal if definition is not None else 0.0

    def _relative_scale(self, target: str, source: str) -> float:
        """Convert a relative coupling gain into target units per source unit."""
        target_nominal = self._nominal(target)
        source_nominal = self._nominal(source)
        if target_nominal and source_nominal:
            return abs(target_nominal / source_nominal)
        return 1.0

    def initial_state(self, ctx: DynamicsContext) -> Tuple[State, State]:
        """Initial values of every signal and auxiliary pool."""
        signals = {
            key: min(max(definition.initial(ctx), definition.min), definition.max)
            for key, definition, _ in self._signals
        }
        auxiliary = {
            key: min(max(definition.initial(ctx), AUX_MIN), AUX_MAX)
            for key, definition, _ in self._auxiliary
        }
        return signals, auxiliary

    def step(
        self,
        signals: Mapping[str, float],
        auxiliary: Mapping[str, float],
        ctx: DynamicsContext,
        dt: float,
        forcing: Optional[Forcing] = None,
    ) -> Tuple[State, State]:
        """Advance the whole state by ``dt`` minutes.

        Args:
            signals: Signal values at the start of the step
            auxiliary: Auxiliary values at the start of the step
            ctx: Dynamics context at the start of the step
            dt: Step length in minutes
            forcing: Pharmacodynamic forcing rates

        Returns:
            New signal and auxiliary states
        """
        view = StateView(signals, auxiliary)
        signal_forcing = forcing.signals if forcing is not None else {}
        aux_forcing = forcing.auxiliary if forcing is not None else {}

        new_signals: State = {}
        for key, definition, tau in self._signals:
            x = signals[key]
            try:
                value = self._advance_signal(key, definition, tau, x, view, ctx, dt, signal_forcing.get(key, 0.0))
                if not math.isfinite(value):
                    raise FloatingPointError(f"non-finite value {value}")
            except Exception as e:
                self.run.report_failure(key, e)
                value = self._fallback(x, dt)
            new_signals[key] = min(max(value, definition.min), definition.max)

        new_aux: State = {}
        for key, definition, tau in self._auxiliary:
            x = auxiliary[key]
            if definition.kind == "pool" and not self.toggles.enable_auxiliary:
                new_aux[key] = x
                continue
            try:
                value = self._advance_auxiliary(key, definition, tau, x, view, ctx, dt, aux_forcing.get(key, 0.0))
                if not math.isfinite(value):
                    raise FloatingPointError(f"non-finite value {value}")
            except Exception as e:
                self.run.report_failure(key, e)
                value = self._fallback(x, dt)
            new_aux[key] = min(max(value, AUX_MIN), AUX_MAX)

        return new_signals, new_aux

    def _advance_signal(
        self,
        key: str,
        definition: SignalDefinition,
        tau: float,
        x: float,
        view: StateView,
        ctx: DynamicsContext,
        dt: float,
        forcing: float,
    ) -> float:
        dynamics = definition.dynamics
        if self.toggles.enable_baselines:
            setpoint = self._setpoint(key, definition, ctx)
            drive = sum(term.evaluate(view, ctx) for term in dynamics.production)
        else:
            setpoint = 0.0
            drive = 0.0

        if self.toggles.enable_couplings:
            for source, coefficient, reference in self._couplings.get(key, ()):
                drive += coefficient * (view.signals.get(source, 0.0) - reference)

        clearance = self._clearance(dynamics.clearance, x, view, ctx)
        return exponential_update(x, setpoint, tau, drive + forcing, clearance, dt)

    def _advance_auxiliary(
        self,
        key: str,
        definition: AuxiliaryDefinition,
        tau: float,
        x: float,
        view: StateView,
        ctx: DynamicsContext,
        dt: float,
        forcing: float,
    ) -> float:
        dynamics = definition.dynamics
        setpoint = self._aux_setpoints.get(key)
        if setpoint is None:
            setpoint = dynamics.setpoint(ctx)
        drive = sum(term.evaluate(view, ctx) for term in dynamics.production)
        clearance = self._clearance(dynamics.clearance, x, view, ctx)
        return exponential_update(x, setpoint, tau, drive + forcing, clearance, dt)

    def _setpoint(self, key: str, definition: SignalDefinition, ctx: DynamicsContext) -> float:
        adjustment = self._baselines.get(key)
        if adjustment is None:
            return definition.dynamics.setpoint(ctx)
        if adjustment.phase_shift_min:
            shifted = (ctx.circadian_minute_of_day - adjustment.phase_shift_min) % MINUTES_PER_DAY
            ctx = replace(ctx, circadian_minute_of_day=shifted)
        return definition.dynamics.setpoint(ctx) * (1.0 + adjustment.amplitude)

    def _clearance(
        self,
        terms: Tuple[ClearanceTerm, ...],
        x: float,
        view: StateView,
        ctx: DynamicsContext,
    ) -> float:
        total = 0.0
        for term in terms:
            rate = term.rate
            if term.kind == "saturable":
                rate = rate / (term.km + max(0.0, x))
            elif term.kind == "enzyme-dependent":
                rate *= self.activity(term.enzyme, view.auxiliary)
            if term.transform is not None:
                rate *= term.transform(x, view, ctx)
            total += rate
        return max(0.0, total)

    def activity(self, key: str, auxiliary: Mapping[str, float]) -> float:
        """Activity of a clearance auxiliary; 1 when its class is switched off."""
        kind = self._aux_kind.get(key)
        if kind == "transporter" and not self.toggles.enable_transporters:
            return 1.0
        if kind == "enzyme" and not self.toggles.enable_enzymes:
            return 1.0
        return auxiliary.get(key, 1.0)

    def _fallback(self, x: float, dt: float) -> float:
        """Neutral dynamics: relax toward 0 with a 60 minute time constant."""
        if not math.isfinite(x):
            return 0.0
        return x * math.exp(-dt / FALLBACK_TAU_MIN)
