"""Autonomic arousal: sympathetic and parasympathetic branches."""

from __future__ import annotations
from dataclasses import dataclass
from typing import Mapping, Optional

import numpy as np

from ..config.constants import DORSAL_THRESHOLD, MOBILIZED_THRESHOLD
from .composite import CompositeDefinition, series_length, sigmoid
from .playhead import index_at, sample
from .weights import AROUSAL_DEFINITIONS


@dataclass(frozen=True)
class ArousalSeries:
    sympathetic: np.ndarray
    parasympathetic: np.ndarray
    overall: np.ndarray

    def __len__(self) -> int:
        return len(self.overall)


@dataclass(frozen=True)
class ArousalComponents:
    """Arousal at one point in time."""

    sympathetic: float
    parasympathetic: float
    overall: float
    state: str


def arousal_state(overall: float) -> str:
    """``mobilized`` above 0.7, ``dorsal`` below 0.3, ``ventral`` otherwise."""
    if overall > MOBILIZED_THRESHOLD:
        return "mobilized"
    if overall < DORSAL_THRESHOLD:
        return "dorsal"
    return "ventral"


def compute_arousal(
    series: Optional[Mapping[str, np.ndarray]],
    definitions: Optional[Mapping[str, CompositeDefinition]] = None,
) -> ArousalSeries:
    """Branch composites and ``overall = sigmoid(sympathetic - parasympathetic)``."""
    definitions = definitions if definitions is not None else AROUSAL_DEFINITIONS
    series = series or {}
    length = series_length(series)
    sympathetic = definitions["sympathetic"].compute(series, length)
    parasympathetic = definitions["parasympathetic"].compute(series, length)
    return ArousalSeries(
        sympathetic=sympathetic,
        parasympathetic=parasympathetic,
        overall=sigmoid(sympathetic - parasympathetic),
    )


def arousal_at(arousal: Optional[ArousalSeries], playhead_min: float, step_min: float) -> ArousalComponents:
    """Arousal components at a playhead; neutral zeros when there is no data."""
    if arousal is None or len(arousal) == 0:
        sympathetic = parasympathetic = 0.0
        overall = float(sigmoid(0.0))
    else:
        idx = index_at(playhead_min, step_min, len(arousal))
        sympathetic = sample(arousal.sympathetic, idx)
        parasympathetic = sample(arousal.parasympathetic, idx)
        overall = sample(arousal.overall, idx)
    return ArousalComponents(
        sympathetic=sympathetic,
        parasympathetic=parasympathetic,
        overall=overall,
        state=arousal_state(overall),
    )
