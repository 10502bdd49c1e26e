"""Explicit signal and auxiliary definitions grouped by physiology."""

from . import biomarkers, circadian, derived, hormones, metabolic, neurotransmitters
from .auxiliary import ENZYMES, POOLS, TRANSPORTERS, activity_pools

EXPLICIT_SIGNALS = (
    metabolic.SIGNALS
    + hormones.SIGNALS
    + neurotransmitters.SIGNALS
    + circadian.SIGNALS
    + derived.SIGNALS
    + biomarkers.SIGNALS
)

__all__ = ["EXPLICIT_SIGNALS", "POOLS", "TRANSPORTERS", "ENZYMES", "activity_pools"]
