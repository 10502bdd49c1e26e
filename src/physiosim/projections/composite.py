"""Weighted composites of signal series.

A composite is ``shape(Σ weight[s]·series[s])`` clamped to a display range.
Missing series count as zero, so a composite can always be computed, even
from an empty or partial response.
"""

from __future__ import annotations
from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Dict, Iterable, Mapping, Optional, Tuple

import numpy as np

from ..contracts.errors import ConfigurationError

METER_RANGE = (0.0, 1.2)
ORGAN_RANGE = (-1.0, 1.2)


def sigmoid(x):
    return 1.0 / (1.0 + np.exp(-x))


def softplus(x):
    # log(1 + e^x) without overflow for large x
    return np.logaddexp(0.0, x)


def relu(x):
    return np.maximum(0.0, x)


def tanh(x):
    return np.tanh(x)


NONLINEARITIES: Dict[str, Callable] = {
    "sigmoid": sigmoid,
    "softplus": softplus,
    "relu": relu,
    "tanh": tanh,
}


@dataclass(frozen=True)
class CompositeDefinition:
    """Weight map plus optional shaping of one derived series."""

    key: str
    weights: Mapping[str, float]
    label: str = ""
    nonlinearity: Optional[str] = None
    clamp: Tuple[float, float] = METER_RANGE
    group: str = ""

    def __post_init__(self):
        object.__setattr__(self, "weights", MappingProxyType(dict(self.weights)))
        if not self.label:
            object.__setattr__(self, "label", self.key)
        if self.nonlinearity is not None and self.nonlinearity not in NONLINEARITIES:
            raise ConfigurationError(
                f"Composite '{self.key}' has unknown nonlinearity '{self.nonlinearity}'",
                {"known": sorted(NONLINEARITIES)},
            )
        if self.clamp[0] > self.clamp[1]:
            raise ConfigurationError(f"Composite '{self.key}' has an empty clamp range", {"clamp": self.clamp})

    def validate(self, known_signals: Iterable[str]) -> None:
        """Check every weighted key is a known signal.

        Raises:
            ConfigurationError: If the weight map names unknown signals
        """
        known = set(known_signals)
        unknown = sorted(key for key in self.weights if key not in known)
        if unknown:
            raise ConfigurationError(
                f"Composite '{self.key}' weights unknown signals: {', '.join(unknown)}",
                {"composite": self.key, "unknown": unknown},
            )

    def compute(self, series: Mapping[str, np.ndarray], length: Optional[int] = None) -> np.ndarray:
        """Derived series from raw signal series."""
        raw = weighted_sum(series, self.weights, length)
        if self.nonlinearity is not None:
            raw = NONLINEARITIES[self.nonlinearity](raw)
        return np.clip(raw, self.clamp[0], self.clamp[1])


def series_length(series: Optional[Mapping[str, np.ndarray]]) -> int:
    """Common length of a series mapping (the longest series, 0 when empty)."""
    if not series:
        return 0
    return max((len(values) for values in series.values()), default=0)


def weighted_sum(
    series: Optional[Mapping[str, np.ndarray]],
    weights: Mapping[str, float],
    length: Optional[int] = None,
) -> np.ndarray:
    """``Σ weight[s]·series[s]`` with missing or short series padded by zeros."""
    series = series or {}
    if length is None:
        length = series_length(series)
    total = np.zeros(length, dtype=np.float64)
    for key, weight in weights.items():
        values = series.get(key)
        if values is None or not weight:
            continue
        values = np.asarray(values, dtype=np.float64)[:length]
        total[:len(values)] += weight * values
    return total


def compute_composites(
    definitions: Mapping[str, CompositeDefinition],
    series: Optional[Mapping[str, np.ndarray]],
) -> Dict[str, np.ndarray]:
    """Every composite of ``definitions`` computed from ``series``."""
    length = series_length(series)
    return {key: definition.compute(series or {}, length) for key, definition in definitions.items()}


def build_definitions(
    weight_maps: Mapping[str, Mapping[str, float]],
    clamp: Tuple[float, float] = METER_RANGE,
    known_signals: Optional[Iterable[str]] = None,
) -> Dict[str, CompositeDefinition]:
    """Composite definitions from plain weight maps.

    Raises:
        ConfigurationError: If ``known_signals`` is given and a map names an unknown signal
    """
    definitions = {key: CompositeDefinition(key=key, weights=weights, clamp=clamp) for key, weights in weight_maps.items()}
    if known_signals is not None:
        known = list(known_signals)
        for definition in definitions.values():
            definition.validate(known)
    return definitions
