"""Domain models."""

from .conditions import (
    CONDITION_LIBRARY,
    ConditionAdjustments,
    ConditionDef,
    SignalAdjustment,
    build_adjustments,
    get_condition,
    list_conditions,
)
from .subject import Subject, Physiology, MenstrualHormones, derive_physiology, menstrual_hormones

__all__ = [
    "CONDITION_LIBRARY",
    "ConditionAdjustments",
    "ConditionDef",
    "SignalAdjustment",
    "build_adjustments",
    "get_condition",
    "list_conditions",
    "Subject",
    "Physiology",
    "MenstrualHormones",
    "derive_physiology",
    "menstrual_hormones",
]
