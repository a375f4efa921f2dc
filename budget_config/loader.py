"""
Settings Loader (``budget_config.loader``).

Responsibility
--------------
Reads a YAML settings file and parses it into the frozen ``Settings``
container.  Callers go through ``budget_config.load_settings`` or
``budget_config.get_active_settings``.

Invariants enforced
-------------------
* Unknown sections and unknown keys raise ``ValueError``; a typo never
  silently falls back to a default.
* Missing sections and keys use the dataclass defaults.
* ``compute_checksum`` is deterministic for identical data.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Out-of-range values -> ``ValueError`` from the module config's
  ``__post_init__``.
"""

from __future__ import annotations

import dataclasses
import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from budget_config.schema import DatabaseSettings, LoggingSettings, Settings
from budget_modules.building.config import BuildingConfig
from budget_modules.milestone.config import MilestoneConfig
from budget_modules.payment.config import PaymentConfig
from budget_modules.risk.config import RiskConfig

_SECTIONS: dict[str, type] = {
    "database": DatabaseSettings,
    "logging": LoggingSettings,
    "milestone": MilestoneConfig,
    "building": BuildingConfig,
    "payment": PaymentConfig,
    "risk": RiskConfig,
}


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the top level is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Settings file {path} must contain a mapping at the top level")
    return data


def _parse_section(name: str, cls: type, data: Any) -> Any:
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError(f"Settings section '{name}' must be a mapping")
    known = {f.name for f in dataclasses.fields(cls)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Unknown keys in settings section '{name}': {unknown}")
    values = {k: tuple(v) if isinstance(v, list) else v for k, v in data.items()}
    return cls(**values)


def parse_settings(data: dict[str, Any], source: str | None = None) -> Settings:
    """Build ``Settings`` from already-loaded data."""
    unknown = sorted(set(data) - set(_SECTIONS))
    if unknown:
        raise ValueError(f"Unknown settings sections: {unknown}")
    sections = {
        name: _parse_section(name, cls, data.get(name))
        for name, cls in _SECTIONS.items()
    }
    return Settings(**sections, checksum=compute_checksum(data), source=source)


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
