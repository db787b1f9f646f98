"""
Settings loader (``inventauri_config.loader``).

Responsibility
--------------
Loads the YAML settings file, parses each section into the frozen
dataclasses of ``inventauri_config.schema`` and applies environment
overrides.  Callers use ``inventauri_config.get_settings()``; this module
is its implementation.

Invariants enforced
-------------------
* Every parsed object is a frozen dataclass from ``schema.py``.
* Unknown keys are rejected so a typo never silently falls back to a
  default.
* Environment overrides are applied after parsing and validated the same
  way as file values.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Unknown keys or invalid values  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from inventauri_config.schema import (
    NEGATIVE_QUANTITY_POLICIES,
    DatabaseSettings,
    InventauriSettings,
    LoggingSettings,
    SalesSettings,
)

ENV_DATABASE_URL = "INVENTAURI_DATABASE_URL"
ENV_LOG_LEVEL = "INVENTAURI_LOG_LEVEL"

_SECTIONS = ("database", "logging", "sales")


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
        raise ValueError(f"{path}: top level must be a mapping, got {type(data).__name__}")
    return data


def _section(data: Mapping[str, Any], name: str, allowed: tuple[str, ...]) -> dict[str, Any]:
    raw = data.get(name) or {}
    if not isinstance(raw, Mapping):
        raise ValueError(f"Section {name!r} must be a mapping")
    unknown = sorted(set(raw) - set(allowed))
    if unknown:
        raise ValueError(f"Unknown keys in section {name!r}: {', '.join(unknown)}")
    return dict(raw)


def _int(value: Any, key: str, minimum: int = 0) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
        raise ValueError(f"{key} must be an integer >= {minimum}, got {value!r}")
    return value


def _bool(value: Any, key: str) -> bool:
    if not isinstance(value, bool):
        raise ValueError(f"{key} must be true or false, got {value!r}")
    return value


def parse_database(data: Mapping[str, Any]) -> DatabaseSettings:
    """Parse the ``database`` section."""
    raw = _section(data, "database", (
        "url", "echo", "pool_size", "max_overflow", "pool_timeout", "pool_recycle",
    ))
    defaults = DatabaseSettings()
    url = raw.get("url", defaults.url)
    if not isinstance(url, str) or not url:
        raise ValueError(f"database.url must be a non-empty string, got {url!r}")
    return DatabaseSettings(
        url=url,
        echo=_bool(raw.get("echo", defaults.echo), "database.echo"),
        pool_size=_int(raw.get("pool_size", defaults.pool_size), "database.pool_size", 1),
        max_overflow=_int(raw.get("max_overflow", defaults.max_overflow), "database.max_overflow"),
        pool_timeout=_int(raw.get("pool_timeout", defaults.pool_timeout), "database.pool_timeout"),
        pool_recycle=_int(raw.get("pool_recycle", defaults.pool_recycle), "database.pool_recycle"),
    )


def parse_logging(data: Mapping[str, Any]) -> LoggingSettings:
    """Parse the ``logging`` section."""
    raw = _section(data, "logging", ("level",))
    level = raw.get("level", LoggingSettings().level)
    return LoggingSettings(level=_level(level))


def _level(value: Any) -> str:
    if not isinstance(value, str) or not isinstance(
        logging.getLevelName(value.upper()), int
    ):
        raise ValueError(f"logging.level must be a logging level name, got {value!r}")
    return value.upper()


def parse_sales(data: Mapping[str, Any]) -> SalesSettings:
    """Parse the ``sales`` section."""
    raw = _section(data, "sales", ("max_lines_per_sale", "negative_quantity_policy"))
    defaults = SalesSettings()
    policy = raw.get("negative_quantity_policy", defaults.negative_quantity_policy)
    if policy not in NEGATIVE_QUANTITY_POLICIES:
        raise ValueError(
            "sales.negative_quantity_policy must be one of "
            f"{', '.join(NEGATIVE_QUANTITY_POLICIES)}, got {policy!r}"
        )
    return SalesSettings(
        max_lines_per_sale=_int(
            raw.get("max_lines_per_sale", defaults.max_lines_per_sale),
            "sales.max_lines_per_sale",
            1,
        ),
        negative_quantity_policy=policy,
    )


def apply_env_overrides(data: dict[str, Any], environ: Mapping[str, str]) -> dict[str, Any]:
    """Return a copy of ``data`` with environment overrides applied."""
    merged = {name: dict(data.get(name) or {}) for name in _SECTIONS}
    for name, value in data.items():
        if name not in _SECTIONS:
            merged[name] = value
    if environ.get(ENV_DATABASE_URL):
        merged["database"]["url"] = environ[ENV_DATABASE_URL]
    if environ.get(ENV_LOG_LEVEL):
        merged["logging"]["level"] = environ[ENV_LOG_LEVEL]
    return merged


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def parse_settings(data: Mapping[str, Any]) -> InventauriSettings:
    """Parse a complete settings mapping."""
    unknown = sorted(set(data) - set(_SECTIONS))
    if unknown:
        raise ValueError(f"Unknown settings sections: {', '.join(unknown)}")
    return InventauriSettings(
        database=parse_database(data),
        logging=parse_logging(data),
        sales=parse_sales(data),
        checksum=compute_checksum(dict(data)),
    )


def load_settings(path: Path, environ: Mapping[str, str] | None = None) -> InventauriSettings:
    """Load ``path``, apply overrides from ``environ`` (os.environ by default), parse."""
    data = load_yaml_file(path)
    data = apply_env_overrides(data, os.environ if environ is None else environ)
    return parse_settings(data)
