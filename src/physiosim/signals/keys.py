"""Closed set of simulated signal keys."""

from __future__ import annotations
from typing import Dict, Tuple

SIGNAL_GROUPS: Dict[str, Tuple[str, ...]] = {
    "metabolic": ("glucose", "insulin", "glucagon"),
    "hormones": (
        "cortisol", "adrenaline", "leptin", "ghrelin", "oxytocin", "prolactin",
        "vasopressin", "vip", "testosterone", "estrogen", "progesterone", "lh",
        "fsh", "thyroid", "growthHormone", "glp1",
    ),
    "neurotransmitters": (
        "dopamine", "serotonin", "norepi", "gaba", "glutamate",
        "acetylcholine", "endocannabinoid",
    ),
    "circadian": ("melatonin", "orexin", "histamine"),
    "derived": (
        "energy", "hrv", "bloodPressure", "inflammation", "bdnf", "vagal",
        "ketone", "ethanol", "acetaldehyde", "magnesium", "sensoryLoad",
        "mtor", "ampk", "oxygen",
    ),
    "biomarkers": ("ferritin", "shbg", "dheas", "alt", "ast", "egfr", "vitaminD3"),
}

SIGNALS_ALL: Tuple[str, ...] = tuple(key for group in SIGNAL_GROUPS.values() for key in group)

_SIGNAL_SET = frozenset(SIGNALS_ALL)


def is_signal(key: str) -> bool:
    return key in _SIGNAL_SET


def signal_group(key: str) -> str:
    """Group name for a signal key."""
    for group, keys in SIGNAL_GROUPS.items():
        if key in keys:
            return group
    raise KeyError(f"Unknown signal: {key}")
