"""Main API facade for the physiosim package.

This module is the primary interface used by the CLI and by notebooks or
services embedding the engine. All high-level operations flow through these
functions.
"""

from __future__ import annotations
import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

import numpy as np
import pydantic
import structlog

from .catalog import InterventionDef, get_catalog
from .config import AppConfig, default_config, load_config, validate_config
from .contracts.errors import ValidationError
from .contracts.types import ComputeRequest, SimulationGrid, TimelineItem
from .engine import SimulationEngine, SimulationResult, grid_from_config, run_request
from .projections import (
    ArousalSeries,
    build_meter_definitions,
    compute_arousal as _compute_arousal,
    compute_meters as _compute_meters,
    compute_organs as _compute_organs,
    explain,
)
from .projections.composite import CompositeDefinition
from .scenario import Scenario, load_scenario as _load_scenario, save_scenario as _save_scenario
from .signals import SIGNALS_ALL, get_registry, signal_group

logger = structlog.get_logger()

TimelineInput = Iterable[Union[TimelineItem, Mapping[str, Any]]]
SeriesInput = Union[SimulationResult, Mapping[str, np.ndarray]]


def get_default_config() -> AppConfig:
    """Get default configuration.

    Returns:
        Default configuration with sensible defaults
    """
    return default_config()


def load_config_from_file(path: Union[str, Path]) -> AppConfig:
    """Load and validate configuration from file.

    Args:
        path: Path to configuration file

    Returns:
        Loaded and validated configuration

    Raises:
        ConfigurationError: If configuration cannot be loaded or is invalid
    """
    config = load_config(path)
    validate_config(config)
    return config


def validate_configuration(config: AppConfig) -> List[str]:
    """Validate configuration for common issues.

    Args:
        config: Configuration to validate

    Returns:
        Warnings that do not prevent a run

    Raises:
        ValidationError: If configuration has errors
    """
    return validate_config(config)


def apply_config_overrides(config: AppConfig, overrides: Mapping[str, Any]) -> AppConfig:
    """Copy of ``config`` with dotted-key overrides applied and re-validated.

    Example:
        apply_config_overrides(cfg, {"engine.days": 2, "debug.enable_couplings": False})

    Raises:
        ValidationError: If a key does not exist or a value is invalid
    """
    if not overrides:
        return config

    data = config.model_dump(exclude={"subject": {"bmi"}})
    for dotted_key, value in overrides.items():
        parts = dotted_key.split(".")
        current = data
        for key in parts[:-1]:
            current = current.get(key) if isinstance(current, dict) else None
        if not isinstance(current, dict) or (len(parts) > 1 and parts[-1] not in current):
            raise ValidationError(f"Cannot set override at {dotted_key}", {"key": dotted_key})
        current[parts[-1]] = value

    try:
        return AppConfig.model_validate(data)
    except pydantic.ValidationError as e:
        raise ValidationError("Invalid configuration override", {"overrides": dict(overrides), "errors": e.errors()})


def list_interventions(group: Optional[str] = None) -> Dict[str, List[str]]:
    """List intervention keys grouped by palette group.

    Example:
        {
            "Food": ["food"],
            "Supplements": ["ltheanine", "ltyrosine", ...],
        }
    """
    catalog = get_catalog()
    groups = [group] if group is not None else catalog.list_groups()
    return {name: catalog.list_interventions(name) for name in groups}


def get_intervention(key: str) -> InterventionDef:
    """Catalog entry for an intervention key.

    Raises:
        ValidationError: If the key is unknown
    """
    return get_catalog().get(key)


def list_signals(group: Optional[str] = None) -> List[Dict[str, Any]]:
    """Describe every simulated signal.

    Args:
        group: Restrict to one signal group

    Returns:
        One record per signal with key, label, unit, group and whether it
        uses the neutral fallback dynamics
    """
    registry = get_registry()
    records = []
    for key in SIGNALS_ALL:
        if group is not None and signal_group(key) != group:
            continue
        definition = registry.get(key)
        records.append({
            "key": key,
            "label": definition.label,
            "unit": definition.unit,
            "group": signal_group(key),
            "tau_min": definition.dynamics.tau,
            "fallback": definition.is_fallback,
        })
    return records


def parse_timeline(records: TimelineInput) -> List[TimelineItem]:
    """Build timeline items from items or plain mappings.

    Mappings use ``id``, ``key``, ``start_min``, ``duration_min`` (or
    ``end_min``), ``params`` and ``intensity``.

    Raises:
        ValidationError: If a mapping is missing fields or has bad values
    """
    items: List[TimelineItem] = []
    for index, record in enumerate(records):
        if isinstance(record, TimelineItem):
            items.append(record)
            continue
        try:
            start = float(record["start_min"])
            if "duration_min" in record:
                duration = float(record["duration_min"])
            else:
                duration = float(record["end_min"]) - start
            items.append(TimelineItem(
                id=str(record.get("id", f"item-{index}")),
                key=str(record["key"]),
                start_min=start,
                duration_min=duration,
                params=dict(record.get("params") or {}),
                intensity=float(record.get("intensity", 1.0)),
            ))
        except (KeyError, TypeError, ValueError, ValidationError) as e:
            raise ValidationError(f"Invalid timeline item at position {index}: {e}", {"item": dict(record)})
    return items


def load_timeline(path: Union[str, Path]) -> Union[Scenario, List[TimelineItem]]:
    """Load a JSON timeline file.

    A JSON object is read as a scenario snapshot, a JSON list as plain item
    records.

    Raises:
        ValidationError: If the file is neither
        ScenarioError: If a snapshot cannot be decoded
    """
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ValidationError(f"Cannot read timeline file: {path}", {"error": str(e)})
    if isinstance(data, dict):
        return _load_scenario(path)
    if isinstance(data, list):
        return parse_timeline(data)
    raise ValidationError("Timeline file must hold a JSON object or list", {"file": str(path)})


def run_simulation(
    timeline: Optional[TimelineInput] = None,
    config: Optional[AppConfig] = None,
    grid: Optional[SimulationGrid] = None,
    run_id: Optional[str] = None,
    engine: Optional[SimulationEngine] = None,
) -> SimulationResult:
    """Run one simulation.

    Args:
        timeline: Scheduled items (items or plain mappings)
        config: Configuration (defaults when omitted)
        grid: Time grid (derived from ``config.engine`` when omitted)
        run_id: Run identifier (generated when omitted)
        engine: Engine to use (a new default engine when omitted)

    Returns:
        Simulation result with one series per signal

    Raises:
        ValidationError: If the configuration or timeline is invalid
        SimulationError: If the engine cannot run the request
    """
    config = config or get_default_config()
    validate_config(config)
    items = parse_timeline(timeline or [])
    grid = grid or grid_from_config(config)
    request = ComputeRequest.build(grid, items, config)

    logger.info("Running simulation", items=len(items), step_min=grid.step_min, days=grid.days)
    result = run_request(request, engine=engine, run_id=run_id)
    if result.failed_signals:
        logger.warning("Signals used fallback dynamics", signals=list(result.failed_signals))
    return result


def _series_of(source: SeriesInput) -> Mapping[str, np.ndarray]:
    if isinstance(source, SimulationResult):
        return source.series
    return source


def compute_meters(
    source: SeriesInput,
    overrides: Optional[Mapping[str, Mapping[str, float]]] = None,
) -> Dict[str, np.ndarray]:
    """Meter series from a result or raw series.

    Meter overrides default to ``config.projections.meters`` of a result.
    """
    if overrides is None and isinstance(source, SimulationResult):
        overrides = source.config.projections.meters
    return _compute_meters(_series_of(source), build_meter_definitions(overrides))


def compute_organs(
    source: SeriesInput,
    organs: Optional[Mapping[str, Union[CompositeDefinition, Mapping[str, float]]]] = None,
) -> Dict[str, np.ndarray]:
    """Organ score series from a result or raw series."""
    return _compute_organs(_series_of(source), organs)


def compute_arousal(source: SeriesInput) -> ArousalSeries:
    """Sympathetic, parasympathetic and overall arousal series."""
    return _compute_arousal(_series_of(source))


def explain_meter(key: str, config: Optional[AppConfig] = None, top_n: Optional[int] = None):
    """Top contributing signals of a meter.

    Raises:
        ValidationError: If the meter is unknown
    """
    config = config or get_default_config()
    definitions = build_meter_definitions(config.projections.meters)
    definition = definitions.get(key)
    if definition is None:
        raise ValidationError(f"Unknown meter: {key}", {"available": sorted(definitions)})
    return explain(definition, top_n if top_n is not None else config.projections.top_n)


def load_scenario(path: Union[str, Path]) -> Scenario:
    """Load a scenario snapshot.

    Raises:
        ScenarioError: If the file cannot be read or decoded
    """
    return _load_scenario(path)


def save_scenario(scenario: Scenario, path: Union[str, Path]) -> Path:
    """Save a scenario snapshot."""
    return _save_scenario(scenario, path)


def run_scenario(
    scenario: Scenario,
    config: Optional[AppConfig] = None,
    run_id: Optional[str] = None,
) -> SimulationResult:
    """Run a scenario with its own grid step and subject profile."""
    config = scenario.apply_to(config or get_default_config())
    logger.info("Running scenario", name=scenario.name)
    return run_simulation(scenario.items, config, run_id=run_id)
