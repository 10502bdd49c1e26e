"""Scenario snapshots.

A snapshot is a JSON document::

    {
        "name": "Morning coffee",
        "gridStepMin": 5,
        "items": [
            {"id": "c1", "start": "2000-01-01T08:00:00", "end": "2000-01-01T08:15:00",
             "meta": {"key": "caffeine", "params": {"mg": 100}, "intensity": 1.0}}
        ],
        "personal": {"age": 30, "weight_kg": 70, ...},
        "notes": "..."
    }

Item times are ISO timestamps; minutes are measured from ``origin``
(midnight of the earliest item when absent).
"""

from __future__ import annotations
import json
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import pydantic
import structlog
from pydantic import BaseModel, ConfigDict, Field

from ..config.constants import DEFAULT_GRID_STEP_MIN
from ..config.model import AppConfig
from ..contracts.errors import ScenarioError, ValidationError
from ..contracts.types import ParamValue, TimelineItem
from ..domain.subject import Subject

logger = structlog.get_logger()

DEFAULT_ORIGIN = datetime(2000, 1, 1)


class _ItemMeta(BaseModel):
    key: str
    params: Dict[str, ParamValue] = Field(default_factory=dict)
    intensity: float = 1.0


class _ItemRecord(BaseModel):
    id: str
    start: str
    end: str
    meta: _ItemMeta


class _ScenarioRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = "Untitled scenario"
    grid_step_min: float = Field(DEFAULT_GRID_STEP_MIN, gt=0, alias="gridStepMin")
    items: List[_ItemRecord] = Field(default_factory=list)
    personal: Optional[Dict[str, Any]] = None
    notes: Optional[str] = None
    origin: Optional[str] = None


@dataclass(frozen=True)
class Scenario:
    """A named timeline with its grid step and optional subject profile."""

    name: str
    grid_step_min: float = DEFAULT_GRID_STEP_MIN
    items: Tuple[TimelineItem, ...] = ()
    subject: Optional[Subject] = None
    notes: Optional[str] = None
    origin: datetime = field(default=DEFAULT_ORIGIN)

    def apply_to(self, config: AppConfig) -> AppConfig:
        """Copy of ``config`` with this scenario's grid step and subject."""
        update: Dict[str, Any] = {
            "engine": config.engine.model_copy(update={"grid_step_min": self.grid_step_min}),
        }
        if self.subject is not None:
            update["subject"] = self.subject
        return config.model_copy(update=update, deep=True)


def scenario_to_dict(scenario: Scenario) -> Dict[str, Any]:
    """Plain JSON-compatible representation of a scenario."""
    items = []
    for item in scenario.items:
        start, end = item.to_timestamps(scenario.origin)
        items.append({
            "id": item.id,
            "start": start,
            "end": end,
            "meta": {"key": item.key, "params": dict(item.params), "intensity": item.intensity},
        })
    data: Dict[str, Any] = {
        "name": scenario.name,
        "gridStepMin": scenario.grid_step_min,
        "items": items,
        "personal": scenario.subject.model_dump(exclude={"bmi"}) if scenario.subject is not None else None,
        "notes": scenario.notes,
        "origin": scenario.origin.isoformat(),
    }
    return data


def scenario_from_dict(data: Dict[str, Any]) -> Scenario:
    """Decode a scenario mapping.

    Raises:
        ScenarioError: If the mapping is not a valid snapshot
    """
    try:
        record = _ScenarioRecord.model_validate(data)
        subject = Subject.model_validate(record.personal) if record.personal is not None else None
    except pydantic.ValidationError as e:
        raise ScenarioError("Invalid scenario snapshot", {"errors": e.errors()})

    try:
        if record.origin is not None:
            origin = datetime.fromisoformat(record.origin).replace(tzinfo=None)
        elif record.items:
            earliest = min(datetime.fromisoformat(item.start.replace("Z", "+00:00")).replace(tzinfo=None)
                           for item in record.items)
            origin = earliest.replace(hour=0, minute=0, second=0, microsecond=0)
        else:
            origin = DEFAULT_ORIGIN
        items = tuple(
            TimelineItem.from_timestamps(
                id=item.id,
                key=item.meta.key,
                start=item.start,
                end=item.end,
                params=item.meta.params,
                intensity=item.meta.intensity,
                origin=origin,
            )
            for item in record.items
        )
    except (ValueError, ValidationError) as e:
        raise ScenarioError(f"Invalid scenario item: {e}", {"name": record.name})

    return Scenario(
        name=record.name,
        grid_step_min=record.grid_step_min,
        items=items,
        subject=subject,
        notes=record.notes,
        origin=origin,
    )


def dumps(scenario: Scenario, indent: Optional[int] = 2) -> str:
    return json.dumps(scenario_to_dict(scenario), indent=indent)


def loads(text: str) -> Scenario:
    """Decode a scenario from JSON text.

    Raises:
        ScenarioError: If the text is not valid JSON or not a snapshot
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ScenarioError(f"Scenario is not valid JSON: {e}")
    if not isinstance(data, dict):
        raise ScenarioError("Scenario must be a JSON object", {"type": type(data).__name__})
    return scenario_from_dict(data)


def save_scenario(scenario: Scenario, path: Union[str, Path]) -> Path:
    """Write a scenario snapshot to ``path``."""
    path = Path(path)
    path.write_text(dumps(scenario), encoding="utf-8")
    logger.info("Saved scenario", name=scenario.name, path=str(path), items=len(scenario.items))
    return path


def load_scenario(path: Union[str, Path]) -> Scenario:
    """Read a scenario snapshot from ``path``.

    Raises:
        ScenarioError: If the file cannot be read or decoded
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ScenarioError(f"Cannot read scenario file: {path}", {"error": str(e)})
    scenario = loads(text)
    logger.debug("Loaded scenario", name=scenario.name, path=str(path), items=len(scenario.items))
    return scenario
