"""Type definitions for engine requests and responses."""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from types import MappingProxyType
from typing import Any, Mapping, Optional, Tuple, Union
import numpy as np

from ..config.constants import MINUTES_PER_DAY
from .errors import ValidationError


ParamValue = Union[float, int, str, bool]


def _freeze_array(values: np.ndarray) -> np.ndarray:
    array = np.array(values, dtype=np.float64, copy=True)
    array.flags.writeable = False
    return array


def freeze_series(series: Mapping[str, np.ndarray]) -> Mapping[str, np.ndarray]:
    """Copy a series mapping into read-only arrays behind a read-only mapping."""
    return MappingProxyType({key: _freeze_array(values) for key, values in series.items()})


@dataclass(frozen=True)
class SimulationGrid:
    """Discretised time axis shared by every signal in one run."""

    step_min: float = 5.0
    """Grid resolution in minutes"""

    days: float = 1.0
    """Number of simulated days"""

    start_min: float = 0.0
    """Minute of the first grid point relative to simulation midnight"""

    def __post_init__(self):
        if not self.step_min > 0:
            raise ValidationError("Grid step must be positive", {"step_min": self.step_min})
        if not self.days > 0:
            raise ValidationError("Grid must span a positive number of days", {"days": self.days})

    @property
    def minutes(self) -> np.ndarray:
        """Grid minutes as a float array."""
        end = self.start_min + self.days * MINUTES_PER_DAY
        n_points = int(round((end - self.start_min) / self.step_min))
        return self.start_min + self.step_min * np.arange(n_points, dtype=np.float64)

    @property
    def end_min(self) -> float:
        return float(self.start_min + self.days * MINUTES_PER_DAY)

    def __len__(self) -> int:
        return len(self.minutes)


@dataclass(frozen=True)
class TimelineItem:
    """A scheduled instance of an intervention."""

    id: str
    key: str
    start_min: float
    duration_min: float
    params: Mapping[str, ParamValue] = field(default_factory=dict)
    intensity: float = 1.0

    def __post_init__(self):
        if not float(self.duration_min) >= 0:
            raise ValidationError(
                f"Timeline item '{self.id}' has a negative duration",
                {"duration_min": self.duration_min},
            )
        object.__setattr__(self, "params", MappingProxyType(dict(self.params)))
        object.__setattr__(self, "start_min", float(self.start_min))
        object.__setattr__(self, "duration_min", float(self.duration_min))
        object.__setattr__(self, "intensity", float(self.intensity))

    @property
    def end_min(self) -> float:
        return self.start_min + self.duration_min

    def shifted(self, offset_min: float, suffix: str) -> "TimelineItem":
        """Copy of this item moved by ``offset_min`` with an id suffix."""
        return TimelineItem(
            id=f"{self.id}{suffix}",
            key=self.key,
            start_min=self.start_min + offset_min,
            duration_min=self.duration_min,
            params=dict(self.params),
            intensity=self.intensity,
        )

    @classmethod
    def from_timestamps(
        cls,
        id: str,
        key: str,
        start: Union[str, datetime],
        end: Union[str, datetime],
        params: Optional[Mapping[str, ParamValue]] = None,
        intensity: float = 1.0,
        origin: Optional[datetime] = None,
    ) -> "TimelineItem":
        """Build an item from ISO timestamps.

        Args:
            id: Item identifier
            key: Intervention key
            start: Start timestamp (ISO string or datetime)
            end: End timestamp (ISO string or datetime)
            params: Parameter values
            intensity: Intensity scalar
            origin: Simulation midnight. Defaults to midnight of ``start``.

        Returns:
            Timeline item with minutes relative to ``origin``

        Raises:
            ValidationError: If a timestamp cannot be parsed
        """
        start_dt = _parse_timestamp(start, "start")
        end_dt = _parse_timestamp(end, "end")
        if origin is None:
            origin = start_dt.replace(hour=0, minute=0, second=0, microsecond=0)

        start_min = (start_dt - origin) / timedelta(minutes=1)
        duration = (end_dt - start_dt) / timedelta(minutes=1)
        if duration < 0:
            duration += MINUTES_PER_DAY

        return cls(
            id=id,
            key=key,
            start_min=start_min,
            duration_min=duration,
            params=dict(params or {}),
            intensity=intensity,
        )

    def to_timestamps(self, origin: datetime) -> Tuple[str, str]:
        """Return ISO start/end timestamps relative to ``origin``."""
        start = origin + timedelta(minutes=self.start_min)
        end = start + timedelta(minutes=self.duration_min)
        return start.isoformat(), end.isoformat()


def _parse_timestamp(value: Union[str, datetime], name: str) -> datetime:
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    try:
        text = value.replace("Z", "+00:00") if isinstance(value, str) else value
        return datetime.fromisoformat(text).replace(tzinfo=None)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid {name} timestamp: {value!r}", {"error": str(e)})


@dataclass(frozen=True)
class ComputeRequest:
    """One self-contained engine request.

    Every field is copied by value when the request is built, so later
    changes made by the caller never leak into a running computation.
    """

    grid: SimulationGrid
    """Time grid"""

    items: Tuple[TimelineItem, ...]
    """Scheduled interventions"""

    options: Any
    """Application configuration (``AppConfig``) snapshot"""

    generation: int = 0
    """Input generation that produced this request"""

    @classmethod
    def build(cls, grid: SimulationGrid, items, options, generation: int = 0) -> "ComputeRequest":
        return cls(
            grid=grid,
            items=tuple(items),
            options=options.model_copy(deep=True),
            generation=generation,
        )


@dataclass(frozen=True)
class ComputeResponse:
    """Per-signal series aligned to the request grid."""

    grid: SimulationGrid
    """Grid the series are aligned to"""

    series: Mapping[str, np.ndarray]
    """Read-only signal series"""

    auxiliary: Mapping[str, np.ndarray]
    """Read-only auxiliary pool series"""

    generation: int = 0
    """Input generation of the originating request"""

    failed_signals: Tuple[str, ...] = ()
    """Signals that fell back to neutral dynamics at least once"""

    metadata: Mapping[str, Any] = field(default_factory=dict)
    """Runtime metadata (run id, timings)"""

    @property
    def minutes(self) -> np.ndarray:
        return self.grid.minutes

    def get(self, key: str) -> np.ndarray:
        """Series for ``key``; an empty array when absent."""
        values = self.series.get(key)
        if values is None:
            values = self.auxiliary.get(key)
        if values is None:
            return np.zeros(0)
        return values
