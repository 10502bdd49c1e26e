"""Configuration validation utilities."""

from typing import List

import structlog

from ..contracts.errors import ValidationError
from .model import AppConfig

logger = structlog.get_logger()


def validate_config(config: AppConfig) -> List[str]:
    """Validate configuration for unknown keys and questionable settings.

    Args:
        config: Configuration to validate

    Returns:
        Warnings (already logged)

    Raises:
        ValidationError: If configuration is invalid
    """
    errors: List[str] = []
    warnings: List[str] = []

    _validate_conditions(config, errors)
    _validate_meters(config, errors)
    _validate_engine(config, warnings)

    for warning in warnings:
        logger.warning(warning)

    if errors:
        raise ValidationError(
            f"Configuration validation failed: {'; '.join(errors)}",
            {"errors": errors},
        )
    return warnings


def _validate_conditions(config: AppConfig, errors: List[str]) -> None:
    """Check that every condition adjustment names something that exists."""
    from ..domain.conditions import list_conditions
    from ..pharmacology.targets import Receptor, get_target_catalog
    from ..signals import SIGNALS_ALL
    from ..signals.definitions import ENZYMES, TRANSPORTERS

    conditions = config.conditions
    known_conditions = set(list_conditions())
    signals = set(SIGNALS_ALL)
    receptors = set(get_target_catalog().of_kind(Receptor.kind))

    for key in conditions.active:
        if key not in known_conditions:
            errors.append(f"Unknown condition: {key}")
    for key, adjustment in conditions.signals.items():
        if key not in signals:
            errors.append(f"Unknown signal in conditions: {key}")
        for source in adjustment.couplings:
            if source not in signals:
                errors.append(f"Unknown coupling source for {key}: {source}")
    for key in list(conditions.receptor_density) + list(conditions.receptor_sensitivity):
        if key not in receptors:
            errors.append(f"Unknown receptor in conditions: {key}")
    for key in conditions.transporter_activity:
        if key not in TRANSPORTERS:
            errors.append(f"Unknown transporter in conditions: {key}")
    for key in conditions.enzyme_activity:
        if key not in ENZYMES:
            errors.append(f"Unknown enzyme in conditions: {key}")


def _validate_meters(config: AppConfig, errors: List[str]) -> None:
    from ..signals import SIGNALS_ALL

    signals = set(SIGNALS_ALL)
    for meter, weights in config.projections.meters.items():
        unknown = [key for key in weights if key not in signals]
        if unknown:
            errors.append(f"Meter '{meter}' weights unknown signals: {', '.join(unknown)}")


def _validate_engine(config: AppConfig, warnings: List[str]) -> None:
    engine = config.engine

    if engine.max_substep_min > engine.grid_step_min:
        warnings.append(
            f"max_substep_min={engine.max_substep_min} exceeds grid_step_min={engine.grid_step_min}; "
            "each grid step is integrated in one sub-step"
        )
    if engine.warmup_min < 720:
        warnings.append(f"warmup_min={engine.warmup_min} may not settle slow signals before day 0")
    if engine.days > 1 and not engine.repeat_daily:
        warnings.append("Multi-day grid without repeat_daily: timeline items only occur on day 0")
    if engine.mm_atol > engine.mm_rtol:
        warnings.append("mm_atol should typically be smaller than mm_rtol")
