"""Organ heatmap scores in ``[-1, 1.2]``."""

from __future__ import annotations
from typing import Dict, Mapping, Optional, Union

import numpy as np

from .composite import ORGAN_RANGE, CompositeDefinition, build_definitions, compute_composites
from .playhead import values_at
from .weights import ORGAN_DEFINITIONS

OrganWeights = Union[Mapping[str, CompositeDefinition], Mapping[str, Mapping[str, float]]]


def _as_definitions(organs: Optional[OrganWeights]) -> Mapping[str, CompositeDefinition]:
    if organs is None:
        return ORGAN_DEFINITIONS
    plain = {key: value for key, value in organs.items() if not isinstance(value, CompositeDefinition)}
    definitions = {key: value for key, value in organs.items() if isinstance(value, CompositeDefinition)}
    definitions.update(build_definitions(plain, clamp=ORGAN_RANGE))
    return definitions


def compute_organs(
    series: Optional[Mapping[str, np.ndarray]],
    organs: Optional[OrganWeights] = None,
) -> Dict[str, np.ndarray]:
    """Organ score series.

    Args:
        series: Raw signal series
        organs: Organ definitions or plain weight maps; the defaults when omitted
    """
    return compute_composites(_as_definitions(organs), series)


def organ_scores(
    series: Optional[Mapping[str, np.ndarray]],
    playhead_min: float,
    step_min: float,
    organs: Optional[OrganWeights] = None,
) -> Dict[str, float]:
    """Organ scores at a playhead."""
    return values_at(compute_organs(series, organs), playhead_min, step_min)
