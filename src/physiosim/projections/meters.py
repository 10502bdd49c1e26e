"""Meters: bounded summaries such as focus, calm and sleep pressure."""

from __future__ import annotations
from typing import Dict, Mapping, Optional

import numpy as np

from ..signals import SIGNALS_ALL
from .composite import CompositeDefinition, compute_composites
from .playhead import values_at
from .weights import METER_DEFINITIONS


def build_meter_definitions(
    overrides: Optional[Mapping[str, Mapping[str, float]]] = None,
) -> Dict[str, CompositeDefinition]:
    """Default meters with weight overrides applied.

    An override for an existing meter replaces its weights and keeps its
    label, group and nonlinearity; any other key adds a new linear meter.

    Raises:
        ConfigurationError: If an override weights an unknown signal
    """
    definitions = dict(METER_DEFINITIONS)
    for key, weights in (overrides or {}).items():
        base = definitions.get(key)
        if base is None:
            definition = CompositeDefinition(key=key, weights=weights)
        else:
            definition = CompositeDefinition(
                key=key,
                weights=weights,
                label=base.label,
                nonlinearity=base.nonlinearity,
                clamp=base.clamp,
                group=base.group,
            )
        definition.validate(SIGNALS_ALL)
        definitions[key] = definition
    return definitions


def compute_meters(
    series: Optional[Mapping[str, np.ndarray]],
    definitions: Optional[Mapping[str, CompositeDefinition]] = None,
) -> Dict[str, np.ndarray]:
    """Meter series in ``[0, 1.2]``, one per definition."""
    return compute_composites(definitions if definitions is not None else METER_DEFINITIONS, series)


def meter_values(
    series: Optional[Mapping[str, np.ndarray]],
    playhead_min: float,
    step_min: float,
    definitions: Optional[Mapping[str, CompositeDefinition]] = None,
) -> Dict[str, float]:
    """Meter values at a playhead."""
    return values_at(compute_meters(series, definitions), playhead_min, step_min)
