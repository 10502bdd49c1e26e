"""Top contributors of a composite."""

from __future__ import annotations
from typing import List, Mapping, Tuple, Union

from ..config.constants import DEFAULT_TOP_N
from .composite import CompositeDefinition


def explain(
    definition: Union[CompositeDefinition, Mapping[str, float]],
    top_n: int = DEFAULT_TOP_N,
) -> List[Tuple[str, float]]:
    """Top ``top_n`` ``(signal, weight)`` pairs ranked by ``|weight|``.

    Ties keep the order of the weight map.
    """
    weights = definition.weights if isinstance(definition, CompositeDefinition) else definition
    ranked = sorted(weights.items(), key=lambda item: abs(item[1]), reverse=True)
    return ranked[:max(0, top_n)]
