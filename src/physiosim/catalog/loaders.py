"""Catalog file loaders for different formats."""

from __future__ import annotations
import json
from typing import Dict, Any
from pathlib import Path

import yaml

from .base import CatalogReader

try:
    import tomllib
except ImportError:
    import tomli as tomllib


class TomlReader(CatalogReader):
    """Reader for TOML catalog files."""

    def can_read(self, path: Path) -> bool:
        """Check if file has .toml extension."""
        return path.suffix.lower() == ".toml"

    def read(self, path: Path) -> Dict[str, Any]:
        with open(path, "rb") as f:
            return tomllib.load(f)


class YamlReader(CatalogReader):
    """Reader for YAML catalog files."""

    def can_read(self, path: Path) -> bool:
        """Check if file has .yml or .yaml extension."""
        return path.suffix.lower() in {".yml", ".yaml"}

    def read(self, path: Path) -> Dict[str, Any]:
        with open(path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}


class JsonReader(CatalogReader):
    """Reader for JSON catalog files."""

    def can_read(self, path: Path) -> bool:
        return path.suffix.lower() == ".json"

    def read(self, path: Path) -> Dict[str, Any]:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
