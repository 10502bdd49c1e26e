"""Sampling series at a playhead position.

Both helpers tolerate stale, empty or missing series and never raise.
"""

from __future__ import annotations
import math
from typing import Dict, Mapping, Optional, Sequence

import numpy as np


def index_at(playhead_min: float, step_min: float, length: int) -> int:
    """Grid index nearest to ``playhead_min``, clamped to ``[0, length - 1]``."""
    if length <= 0:
        return 0
    step = step_min if step_min and step_min > 0 else 1.0
    try:
        idx = int(round(playhead_min / step))
    except (TypeError, ValueError, OverflowError):
        return 0
    return min(max(idx, 0), length - 1)


def sample(series: Optional[Sequence[float]], index: int) -> float:
    """Value at ``index``; 0 for missing series or out-of-range indices."""
    if series is None or index < 0 or index >= len(series):
        return 0.0
    value = float(series[index])
    return value if math.isfinite(value) else 0.0


def value_at(series: Optional[Sequence[float]], playhead_min: float, step_min: float) -> float:
    """Value of ``series`` at the grid point nearest to the playhead."""
    if series is None or len(series) == 0:
        return 0.0
    return sample(series, index_at(playhead_min, step_min, len(series)))


def values_at(
    series: Optional[Mapping[str, np.ndarray]],
    playhead_min: float,
    step_min: float,
) -> Dict[str, float]:
    """:func:`value_at` for every series of a mapping."""
    return {key: value_at(values, playhead_min, step_min) for key, values in (series or {}).items()}
