"""Intervention catalog: user-facing actions mapped to pharmacology."""

from .base import (
    CatalogReader,
    InterventionCatalog,
    InterventionDef,
    ParamSpec,
    get_catalog,
    get_default_catalog,
)
from .factories import get_factory, list_factories, register_factory
from .loaders import JsonReader, TomlReader, YamlReader

__all__ = [
    "CatalogReader",
    "InterventionCatalog",
    "InterventionDef",
    "ParamSpec",
    "get_catalog",
    "get_default_catalog",
    "get_factory",
    "list_factories",
    "register_factory",
    "JsonReader",
    "TomlReader",
    "YamlReader",
]
