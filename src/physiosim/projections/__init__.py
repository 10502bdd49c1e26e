"""Derived metric projections: meters, organ scores and arousal."""

from .arousal import ArousalComponents, ArousalSeries, arousal_at, arousal_state, compute_arousal
from .composite import (
    METER_RANGE,
    NONLINEARITIES,
    ORGAN_RANGE,
    CompositeDefinition,
    build_definitions,
    compute_composites,
    weighted_sum,
)
from .explain import explain
from .meters import build_meter_definitions, compute_meters, meter_values
from .organs import compute_organs, organ_scores
from .playhead import index_at, sample, value_at, values_at
from .weights import AROUSAL_DEFINITIONS, METER_DEFINITIONS, ORGAN_DEFINITIONS

__all__ = [
    "ArousalComponents",
    "ArousalSeries",
    "arousal_at",
    "arousal_state",
    "compute_arousal",
    "METER_RANGE",
    "NONLINEARITIES",
    "ORGAN_RANGE",
    "CompositeDefinition",
    "build_definitions",
    "compute_composites",
    "weighted_sum",
    "explain",
    "build_meter_definitions",
    "compute_meters",
    "meter_values",
    "compute_organs",
    "organ_scores",
    "index_at",
    "sample",
    "value_at",
    "values_at",
    "AROUSAL_DEFINITIONS",
    "METER_DEFINITIONS",
    "ORGAN_DEFINITIONS",
]
