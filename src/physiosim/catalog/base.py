"""Intervention definitions and the read-only intervention catalog."""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Literal, Mapping, Optional, Union
from pathlib import Path

import pydantic
import yaml
import structlog
from pydantic import BaseModel, Field, model_validator

from ..contracts.errors import ConfigurationError, ValidationError
from ..domain.subject import Subject
from ..pharmacology.models import Pharmacology
from ..pharmacology.resolver import validate_pharmacology
from ..pharmacology.targets import TargetCatalog

logger = structlog.get_logger()

ParamValue = Union[float, str]


class ParamSpec(BaseModel):
    """Schema of one user-adjustable intervention parameter."""

    key: str = Field(..., description="Parameter name")
    label: str = Field("", description="Display label")
    type: Literal["slider", "select"] = Field("slider", description="Widget type")
    min: Optional[float] = Field(None, description="Slider minimum")
    max: Optional[float] = Field(None, description="Slider maximum")
    step: Optional[float] = Field(None, gt=0, description="Slider step")
    options: List[str] = Field(default_factory=list, description="Select options")
    default: ParamValue = Field(..., description="Default value")
    hint: str = ""

    @model_validator(mode="after")
    def check_schema(self) -> "ParamSpec":
        if self.type == "slider":
            if self.min is None or self.max is None:
                raise ValueError(f"Slider '{self.key}' requires min and max")
            if self.min > self.max:
                raise ValueError(f"Slider '{self.key}' has min > max")
            if not isinstance(self.default, (int, float)):
                raise ValueError(f"Slider '{self.key}' needs a numeric default")
        else:
            if not self.options:
                raise ValueError(f"Select '{self.key}' requires options")
            if str(self.default) not in self.options:
                raise ValueError(f"Select '{self.key}' default must be one of its options")
        return self

    def clamp(self, value: Any) -> ParamValue:
        """Coerce a value into this parameter's bounds or options.

        Out-of-range slider values are clamped and logged; unknown select
        values fall back to the default.
        """
        if self.type == "select":
            text = str(value)
            if text not in self.options:
                logger.warning("Unknown option, using default", param=self.key, value=value, default=self.default)
                return self.default
            return text

        try:
            number = float(value)
        except (TypeError, ValueError):
            logger.warning("Non-numeric parameter, using default", param=self.key, value=value)
            return float(self.default)
        clamped = min(max(number, self.min), self.max)
        if clamped != number:
            logger.warning("Parameter clamped to bounds", param=self.key, value=number, clamped=clamped)
        return clamped


class InterventionDef(BaseModel):
    """A user-facing action mapped to pharmacology.

    Pharmacology is either a static list of blocks or the name of a factory
    registered in :mod:`physiosim.catalog.factories` that builds blocks from
    the item's parameters.
    """

    key: str = Field(..., description="Unique intervention key")
    label: str = Field(..., description="Display label")
    icon: str = ""
    group: str = Field("Other", description="Palette group")
    description: str = ""
    default_duration_min: float = Field(60.0, gt=0, description="Default item duration")
    params: List[ParamSpec] = Field(default_factory=list)
    pharmacology: List[Pharmacology] = Field(default_factory=list)
    factory: Optional[str] = Field(None, description="Name of a pharmacology factory")

    @model_validator(mode="after")
    def check_pharmacology_source(self) -> "InterventionDef":
        if self.factory is not None and self.pharmacology:
            raise ValueError("Use either static pharmacology or a factory, not both")
        keys = [p.key for p in self.params]
        if len(keys) != len(set(keys)):
            raise ValueError("Duplicate parameter keys")
        return self

    def param(self, key: str) -> Optional[ParamSpec]:
        for spec in self.params:
            if spec.key == key:
                return spec
        return None

    def clamp_params(self, params: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        """Fill defaults and clamp values to the parameter schema.

        Parameters without a schema entry pass through unchanged.
        """
        params = dict(params or {})
        resolved: Dict[str, Any] = {}
        for spec in self.params:
            resolved[spec.key] = spec.clamp(params.pop(spec.key)) if spec.key in params else spec.default
        resolved.update(params)
        return resolved

    def build_pharmacology(
        self,
        params: Optional[Mapping[str, Any]] = None,
        subject: Optional[Subject] = None,
    ) -> List[Pharmacology]:
        """Pharmacology blocks for one scheduled item."""
        if self.factory is None:
            return list(self.pharmacology)

        from .factories import get_factory
        values = self.clamp_params(params)
        return get_factory(self.factory)(values, subject or Subject())


class CatalogReader(ABC):
    """Abstract base for catalog data readers."""

    @abstractmethod
    def can_read(self, path: Path) -> bool:
        """Check if this reader can handle the given file."""
        pass

    @abstractmethod
    def read(self, path: Path) -> Dict[str, Any]:
        """Read catalog data from file."""
        pass


class InterventionCatalog:
    """Read-only catalog of interventions.

    Loads every data file found in the search paths. Files hold either a
    collection ``{"entries": {key: {...}}}`` or a single intervention named
    after the file. Later search paths override earlier ones, so a user
    catalog can replace a built-in entry.

    Every entry is validated on load: the pydantic schema, PD target
    resolution for static blocks, and a default-parameter build for
    factories.
    """

    def __init__(
        self,
        search_paths: List[Union[str, Path]],
        readers: Optional[List[CatalogReader]] = None,
        targets: Optional[TargetCatalog] = None,
    ):
        """Initialize catalog with search paths.

        Args:
            search_paths: Directories to search for catalog files
            readers: Optional list of file readers (defaults to TOML, YAML and JSON)
            targets: Target catalog used to resolve PD targets

        Raises:
            ConfigurationError: If any catalog file is malformed
        """
        from .loaders import JsonReader, TomlReader, YamlReader
        self.search_paths = [Path(p) for p in search_paths]
        self.readers = readers or [TomlReader(), YamlReader(), JsonReader()]
        self._targets = targets
        self._entries: Dict[str, InterventionDef] = {}
        self._sources: Dict[str, Path] = {}

        self._load_all()

    def _load_all(self) -> None:
        for search_path in self.search_paths:
            if not search_path.is_dir():
                continue
            for file_path in sorted(search_path.iterdir()):
                if file_path.is_file():
                    self._load_file(file_path)
        logger.debug("Intervention catalog loaded", entries=len(self._entries))

    def _load_file(self, file_path: Path) -> None:
        reader = self._find_reader(file_path)
        if reader is None:
            return

        try:
            data = reader.read(file_path)
        except (OSError, ValueError, yaml.YAMLError) as e:
            raise ConfigurationError(
                f"Failed to read catalog file {file_path.name}",
                {"file": str(file_path), "error": str(e)},
            ) from e

        if isinstance(data, dict) and "entries" in data:
            items = data["entries"].items()
        else:
            items = [(file_path.stem, data)]

        for name, entry_data in items:
            if not isinstance(entry_data, dict):
                raise ConfigurationError(
                    f"Catalog entry '{name}' must be a table",
                    {"file": str(file_path), "entry": name},
                )
            entry = self._validate_entry(name, {"key": name, **entry_data}, file_path)
            if entry.key in self._entries:
                logger.debug("Catalog entry overridden", key=entry.key, file=str(file_path))
            self._entries[entry.key] = entry
            self._sources[entry.key] = file_path

    def _validate_entry(self, name: str, data: Dict[str, Any], file_path: Path) -> InterventionDef:
        try:
            entry = InterventionDef.model_validate(data)
        except pydantic.ValidationError as e:
            raise ConfigurationError(
                f"Invalid intervention '{name}' in {file_path.name}",
                {"file": str(file_path), "entry": name, "errors": e.errors()},
            ) from e

        try:
            self._check_pharmacology(entry)
        except ConfigurationError as e:
            raise ConfigurationError(e.message, {**e.details, "file": str(file_path)}) from e
        return entry

    def _check_pharmacology(self, entry: InterventionDef) -> None:
        if entry.factory is None:
            blocks = entry.pharmacology
        else:
            try:
                blocks = entry.build_pharmacology()
            except pydantic.ValidationError as e:
                raise ConfigurationError(
                    f"Factory '{entry.factory}' of '{entry.key}' built invalid pharmacology",
                    {"intervention": entry.key, "errors": e.errors()},
                ) from e
        for block in blocks:
            validate_pharmacology(entry.key, block, self._targets)

    def _find_reader(self, path: Path) -> Optional[CatalogReader]:
        for reader in self.readers:
            if reader.can_read(path):
                return reader
        return None

    def list_interventions(self, group: Optional[str] = None) -> List[str]:
        """List intervention keys, optionally restricted to one group."""
        return [key for key, entry in self._entries.items() if group is None or entry.group == group]

    def list_groups(self) -> List[str]:
        groups: List[str] = []
        for entry in self._entries.values():
            if entry.group not in groups:
                groups.append(entry.group)
        return groups

    def get(self, key: str) -> InterventionDef:
        """Get an intervention definition.

        Raises:
            ValidationError: If the key is not in the catalog
        """
        entry = self._entries.get(key)
        if entry is None:
            raise ValidationError(
                f"Unknown intervention: {key}",
                {"key": key, "available": sorted(self._entries)},
            )
        return entry

    def has(self, key: str) -> bool:
        return key in self._entries

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def source_of(self, key: str) -> Path:
        """File the entry was loaded from."""
        self.get(key)
        return self._sources[key]

    def get_stats(self) -> Dict[str, int]:
        """Number of entries per group."""
        stats: Dict[str, int] = {}
        for entry in self._entries.values():
            stats[entry.group] = stats.get(entry.group, 0) + 1
        return stats

    def validate_all(self) -> Dict[str, List[str]]:
        """Re-validate every entry.

        Returns:
            Mapping of intervention key to validation errors (empty when valid)
        """
        errors: Dict[str, List[str]] = {}
        for key, entry in self._entries.items():
            try:
                InterventionDef.model_validate(entry.model_dump())
                self._check_pharmacology(entry)
            except (pydantic.ValidationError, ConfigurationError) as e:
                errors.setdefault(key, []).append(str(e))
        return errors


def builtin_catalog_path() -> Path:
    return Path(__file__).parent / "builtin"


def user_catalog_path() -> Path:
    return Path.home() / ".physiosim" / "catalog"


def get_default_catalog() -> InterventionCatalog:
    """Get default catalog with built-in and user search paths."""
    search_paths = [builtin_catalog_path()]

    user_catalog = user_catalog_path()
    if user_catalog.exists():
        search_paths.append(user_catalog)

    return InterventionCatalog(search_paths)


_catalog: Optional[InterventionCatalog] = None


def get_catalog() -> InterventionCatalog:
    """Get the shared default catalog, loading it on first use."""
    global _catalog
    if _catalog is None:
        _catalog = get_default_catalog()
    return _catalog
