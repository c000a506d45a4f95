"""
Configuration Loader (``pos_config.loader``).

Responsibility
--------------
Loads a YAML configuration document and parses it into the typed
``pos_config.schema`` dataclasses.  Runtime callers go through
``pos_config.get_active_config()``; this module is its implementation.

Invariants enforced
-------------------
* Parse errors raise ``ValueError`` or ``KeyError`` with descriptive
  messages; no silent defaults for required fields.
* Every parsed object is a frozen dataclass from ``schema.py``.
* ``compute_checksum`` produces a deterministic SHA-256 hash of the parsed
  document for change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from pos_config.schema import AppConfig, DatabaseSettings, LoggingSettings


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 over the canonical JSON form of a parsed document."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def parse_database(data: dict[str, Any]) -> DatabaseSettings:
    """Parse the ``database`` section.  ``url`` is required."""
    return DatabaseSettings(
        url=data["url"],
        echo=bool(data.get("echo", False)),
        pool_size=int(data.get("pool_size", 20)),
        max_overflow=int(data.get("max_overflow", 10)),
        pool_timeout=int(data.get("pool_timeout", 30)),
        pool_recycle=int(data.get("pool_recycle", 1800)),
    )


def parse_logging(data: dict[str, Any]) -> LoggingSettings:
    return LoggingSettings(level=str(data.get("level", "INFO")).upper())


def parse_config(data: dict[str, Any]) -> AppConfig:
    """
    Parse a whole configuration document.

    Raises:
        KeyError: if ``name``, ``version`` or ``database`` is missing.
        ValueError: if a section fails validation.
    """
    modules = data.get("modules") or {}
    if not isinstance(modules, dict):
        raise ValueError("modules must be a mapping of module name to settings")

    return AppConfig(
        name=data["name"],
        version=str(data["version"]),
        database=parse_database(data["database"]),
        logging=parse_logging(data.get("logging") or {}),
        modules={name: dict(settings or {}) for name, settings in modules.items()},
        checksum=compute_checksum(data),
    )


def load_config(path: Path) -> AppConfig:
    """Load and parse one configuration file."""
    return parse_config(load_yaml_file(path))
