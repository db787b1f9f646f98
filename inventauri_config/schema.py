"""
Settings schema.

Frozen dataclasses the YAML settings file is parsed into.  Defaults here
mirror ``defaults.yaml`` so a partial file still yields complete settings.
"""

from __future__ import annotations

from dataclasses import dataclass, field

NEGATIVE_QUANTITY_POLICIES = ("reject", "magnitude")


@dataclass(frozen=True)
class DatabaseSettings:
    """Engine and connection pool options (see inventauri.db.engine)."""

    url: str = "sqlite:///inventauri.db"
    echo: bool = False
    pool_size: int = 20
    max_overflow: int = 10
    pool_timeout: int = 30
    pool_recycle: int = 1800


@dataclass(frozen=True)
class LoggingSettings:
    level: str = "INFO"


@dataclass(frozen=True)
class SalesSettings:
    """Sale recording rules.

    negative_quantity_policy:
        "reject"    -- a negative line quantity is a validation error.
        "magnitude" -- the absolute value is recorded.
    """

    max_lines_per_sale: int = 500
    negative_quantity_policy: str = "reject"


@dataclass(frozen=True)
class InventauriSettings:
    """Complete runtime settings, identified by the checksum of their source."""

    database: DatabaseSettings = field(default_factory=DatabaseSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)
    sales: SalesSettings = field(default_factory=SalesSettings)
    checksum: str = ""
