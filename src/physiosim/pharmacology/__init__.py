"""Pharmacology registry: targets, PK/PD models and the agent resolver."""

from .models import MoleculeProfile, PDEffect, Pharmacology, PKModel, VolumeSpec
from .resolver import ResolvedAgent, ResolvedEffect, dose_from_params, resolve_agent, validate_pharmacology
from .targets import (
    Adaptation,
    AuxiliaryTarget,
    Enzyme,
    PharmacologicalTarget,
    Receptor,
    SignalTarget,
    TargetCatalog,
    Transporter,
    get_target_catalog,
    resolve_target,
)

__all__ = [
    "MoleculeProfile",
    "PDEffect",
    "Pharmacology",
    "PKModel",
    "VolumeSpec",
    "ResolvedAgent",
    "ResolvedEffect",
    "dose_from_params",
    "resolve_agent",
    "validate_pharmacology",
    "Adaptation",
    "AuxiliaryTarget",
    "Enzyme",
    "PharmacologicalTarget",
    "Receptor",
    "SignalTarget",
    "TargetCatalog",
    "Transporter",
    "get_target_catalog",
    "resolve_target",
]
