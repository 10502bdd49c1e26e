"""Simulation engine: one request in, one immutable response out."""

from __future__ import annotations
import math
from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
import structlog

from ..catalog import InterventionCatalog, get_catalog
from ..config.constants import (
    MINUTES_PER_DAY,
    REFERENCE_WAKE_MIN,
    SLEEP_KEYS,
    WAKE_KEY,
)
from ..config.model import AppConfig
from ..contracts.errors import SimulationError, ValidationError
from ..contracts.types import (
    ComputeRequest,
    ComputeResponse,
    SimulationGrid,
    TimelineItem,
    freeze_series,
)
from ..domain.conditions import ConditionAdjustments, build_adjustments
from ..domain.subject import Physiology, Subject, derive_physiology
from ..pharmacology.resolver import ResolvedAgent, resolve_agent
from ..pharmacology.targets import TargetCatalog, get_target_catalog
from ..signals import DynamicsContext, SignalRegistry, get_registry
from .context import RunContext
from .forcing import PharmacodynamicModel, signal_sensitivity
from .integrator import ExponentialIntegrator

logger = structlog.get_logger()


def grid_from_config(config: AppConfig) -> SimulationGrid:
    """Grid described by the engine section of a configuration."""
    return SimulationGrid(step_min=config.engine.grid_step_min, days=config.engine.days)


def expand_daily(items: Iterable[TimelineItem], grid: SimulationGrid) -> List[TimelineItem]:
    """Repeat every item once per simulated day after the first."""
    items = list(items)
    n_days = int(math.ceil(grid.end_min / MINUTES_PER_DAY))
    expanded = list(items)
    for day in range(1, n_days):
        expanded.extend(item.shifted(day * MINUTES_PER_DAY, f"@d{day}") for item in items)
    return expanded


def wake_minute(items: Iterable[TimelineItem]) -> float:
    """Minute of day the subject wakes up.

    The first ``wake`` item sets it; without one the end of the first
    ``sleep`` item does; otherwise 08:00.
    """
    ordered = sorted(items, key=lambda item: item.start_min)
    for item in ordered:
        if item.key == WAKE_KEY:
            return item.start_min % MINUTES_PER_DAY
    for item in ordered:
        if item.key == "sleep":
            return item.end_min % MINUTES_PER_DAY
    return REFERENCE_WAKE_MIN


def sleep_windows(items: Iterable[TimelineItem]) -> Tuple[Tuple[float, float], ...]:
    """(minute of day, duration) of every sleep or nap item."""
    return tuple(
        (item.start_min % MINUTES_PER_DAY, item.duration_min)
        for item in items
        if item.key in SLEEP_KEYS
    )


class ContextFactory:
    """Builds the dynamics context of any simulation minute."""

    def __init__(
        self,
        subject: Subject,
        physiology: Physiology,
        circadian_shift_min: float = 0.0,
        windows: Sequence[Tuple[float, float]] = (),
    ):
        self.subject = subject
        self.physiology = physiology
        self.circadian_shift_min = circadian_shift_min
        self.windows = tuple(windows)

    def is_asleep(self, minute_of_day: float) -> bool:
        # Sleep windows recur daily and may wrap midnight
        return any((minute_of_day - start) % MINUTES_PER_DAY <= duration for start, duration in self.windows)

    def __call__(self, minute: float) -> DynamicsContext:
        minute_of_day = minute % MINUTES_PER_DAY
        return DynamicsContext(
            minute=minute,
            minute_of_day=minute_of_day,
            circadian_minute_of_day=(minute_of_day + self.circadian_shift_min) % MINUTES_PER_DAY,
            day_index=int(math.floor(minute / MINUTES_PER_DAY)),
            is_asleep=self.is_asleep(minute_of_day),
            subject=self.subject,
            physiology=self.physiology,
        )


class SimulationEngine:
    """Computes per-signal series for a timeline.

    The engine is stateless between calls: every :meth:`compute` is one
    complete, deterministic pass over the request.
    """

    def __init__(
        self,
        catalog: Optional[InterventionCatalog] = None,
        registry: Optional[SignalRegistry] = None,
        targets: Optional[TargetCatalog] = None,
    ):
        self.catalog = catalog or get_catalog()
        self.registry = registry or get_registry()
        self.targets = targets or get_target_catalog()

    def resolve_timeline(
        self,
        items: Iterable[TimelineItem],
        config: AppConfig,
        physiology: Optional[Physiology] = None,
    ) -> List[ResolvedAgent]:
        """Resolve timeline items into dosed agents.

        Parameter values are clamped to each intervention's schema first.

        Raises:
            ValidationError: If an item names an unknown intervention
        """
        subject = config.subject
        physiology = physiology or derive_physiology(subject)
        engine = config.engine
        agents: List[ResolvedAgent] = []

        for item in items:
            definition = self.catalog.get(item.key)
            params = definition.clamp_params(item.params)
            item = replace(item, params=params)
            for block in definition.build_pharmacology(params, subject):
                agents.append(resolve_agent(
                    item.key,
                    block,
                    item,
                    subject,
                    physiology,
                    mm_method=engine.mm_method,
                    mm_rtol=engine.mm_rtol,
                    mm_atol=engine.mm_atol,
                    catalog=self.targets,
                ))
        return agents

    def build_adjustments(self, config: AppConfig) -> Optional[ConditionAdjustments]:
        """Condition adjustments of a configuration; ``None`` when switched off.

        Raises:
            ValidationError: If an unknown condition is enabled
        """
        if not config.debug.enable_conditions:
            return None
        conditions = config.conditions
        try:
            return build_adjustments(
                conditions.active,
                signals=conditions.signals,
                receptor_density=conditions.receptor_density,
                receptor_sensitivity=conditions.receptor_sensitivity,
                transporter_activity=conditions.transporter_activity,
                enzyme_activity=conditions.enzyme_activity,
            )
        except KeyError as e:
            raise ValidationError(str(e.args[0]), {"active": sorted(conditions.active)}) from e

    def compute(self, request: ComputeRequest, run_id: Optional[str] = None) -> ComputeResponse:
        """Run one simulation.

        Args:
            request: Grid, timeline and configuration snapshot
            run_id: Optional run identifier for logging

        Returns:
            Read-only series aligned to the request grid

        Raises:
            ValidationError: Unknown intervention or condition
            SimulationError: If the grid is empty
        """
        config: AppConfig = request.options
        engine = config.engine
        toggles = config.debug
        grid = request.grid
        minutes = grid.minutes
        if len(minutes) == 0:
            raise SimulationError("Simulation grid has no points", {"step_min": grid.step_min, "days": grid.days})

        run = RunContext(run_id, generation=request.generation)
        run.start_run()

        subject = config.subject
        physiology = derive_physiology(subject)

        # Every item is checked, even with interventions switched off
        for item in request.items:
            self.catalog.get(item.key)

        items: List[TimelineItem] = list(request.items)
        if engine.repeat_daily:
            items = expand_daily(items, grid)

        agents: List[ResolvedAgent] = []
        if toggles.enable_interventions:
            with run.time_stage("resolve"):
                agents = self.resolve_timeline(items, config, physiology)
            wake = wake_minute(request.items)
            windows = sleep_windows(request.items)
        else:
            wake = REFERENCE_WAKE_MIN
            windows = ()

        shift = REFERENCE_WAKE_MIN - wake
        make_ctx = ContextFactory(subject, physiology, shift, windows)

        adjustments = self.build_adjustments(config)
        sensitivity: Dict[str, float] = {}
        if adjustments is not None:
            sensitivity = signal_sensitivity(adjustments.receptor_sensitivity, self.targets)

        definitions = self.registry.definition_set()
        integrator = ExponentialIntegrator(
            definitions,
            toggles=toggles,
            tau_floor=engine.tau_floor_min,
            adjustments=adjustments,
            sensitivity=sensitivity,
            run=run,
        )
        pd_model = PharmacodynamicModel(
            agents,
            definitions,
            tau_floor=engine.tau_floor_min,
            receptor_density=adjustments.receptor_density if adjustments else None,
            receptor_sensitivity=adjustments.receptor_sensitivity if adjustments else None,
            enable_receptors=toggles.enable_receptors,
            enable_transporters=toggles.enable_transporters,
            enable_enzymes=toggles.enable_enzymes,
        )

        start = float(minutes[0])
        with run.time_stage("warmup"):
            t = start - engine.warmup_min
            signals, auxiliary = integrator.initial_state(make_ctx(t))
            n_warm = int(math.ceil(engine.warmup_min / engine.max_substep_min)) if engine.warmup_min > 0 else 0
            for i in range(n_warm):
                dt = engine.warmup_min / n_warm
                signals, auxiliary = integrator.step(signals, auxiliary, make_ctx(t), dt)
                t = start - engine.warmup_min + (i + 1) * dt

        signal_rows: Dict[str, List[float]] = {key: [] for key in signals}
        aux_rows: Dict[str, List[float]] = {key: [] for key in auxiliary}
        aux_rows.update({key: [] for key in pd_model.density_state()})

        with run.time_stage("integrate"):
            previous = start
            for idx, minute in enumerate(minutes):
                minute = float(minute)
                if idx > 0:
                    span = minute - previous
                    n_sub = max(1, int(math.ceil(span / engine.max_substep_min - 1e-9)))
                    dt = span / n_sub
                    for s in range(n_sub):
                        t = previous + s * dt
                        forcing = pd_model.advance(t, dt, signals, auxiliary)
                        signals, auxiliary = integrator.step(signals, auxiliary, make_ctx(t), dt, forcing)
                    previous = minute

                for key, value in signals.items():
                    signal_rows[key].append(value)
                for key, value in auxiliary.items():
                    aux_rows[key].append(value)
                for key, value in pd_model.density_state().items():
                    aux_rows[key].append(value)

        run.metadata.update({
            "agents": len(agents),
            "items": len(items),
            "circadian_shift_min": shift,
            "wake_min": wake,
        })
        runtime = run.end_run()
        metadata = run.get_runtime_metadata()
        metadata["runtime_s"] = runtime

        return ComputeResponse(
            grid=grid,
            series=freeze_series({key: np.asarray(values) for key, values in signal_rows.items()}),
            auxiliary=freeze_series({key: np.asarray(values) for key, values in aux_rows.items()}),
            generation=request.generation,
            failed_signals=run.failed_keys,
            metadata=metadata,
        )


@dataclass(frozen=True)
class SimulationResult:
    """Engine response together with the inputs that produced it."""

    response: ComputeResponse
    config: AppConfig
    items: Tuple[TimelineItem, ...] = ()

    @property
    def minutes(self) -> np.ndarray:
        return self.response.minutes

    @property
    def series(self):
        return self.response.series

    @property
    def auxiliary(self):
        return self.response.auxiliary

    @property
    def generation(self) -> int:
        return self.response.generation

    @property
    def failed_signals(self) -> Tuple[str, ...]:
        return self.response.failed_signals

    @property
    def run_id(self) -> str:
        return self.response.metadata.get("run_id", "")

    @property
    def runtime_seconds(self) -> float:
        return float(self.response.metadata.get("runtime_s", 0.0))

    def get(self, key: str) -> np.ndarray:
        return self.response.get(key)

    def to_dataframe(
        self,
        signals: Optional[Sequence[str]] = None,
        include_auxiliary: bool = False,
    ) -> pd.DataFrame:
        """Series as a DataFrame indexed by simulation minute.

        Args:
            signals: Signal keys to include (all by default)
            include_auxiliary: Also include auxiliary pools and densities

        Returns:
            One column per series
        """
        keys = list(signals) if signals is not None else list(self.series)
        data = {key: np.asarray(self.get(key)) for key in keys}
        if include_auxiliary:
            data.update({key: np.asarray(values) for key, values in self.auxiliary.items()})
        frame = pd.DataFrame(data, index=pd.Index(self.minutes, name="minute"))
        return frame


def run_request(
    request: ComputeRequest,
    engine: Optional[SimulationEngine] = None,
    run_id: Optional[str] = None,
) -> SimulationResult:
    """Compute a request and wrap the response with its inputs."""
    engine = engine or SimulationEngine()
    response = engine.compute(request, run_id=run_id)
    return SimulationResult(response=response, config=request.options, items=request.items)
