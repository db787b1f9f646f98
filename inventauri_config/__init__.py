"""
inventauri_config -- single public entrypoint for runtime settings.

Responsibility:
    ``get_settings()`` is the only way application code obtains settings.
    No other component reads the settings file or the INVENTAURI_*
    environment variables.

Architecture position:
    Configuration.  Sits beside ``inventauri``; the core package never
    imports from here.  Wiring code passes the parsed sections into
    ``init_engine_from_settings``, ``SaleRecorder.from_settings`` and
    ``configure_logging_from_settings``.

Failure modes:
    - ``FileNotFoundError`` -- the settings file does not exist.
    - ``yaml.YAMLError`` -- the file is not valid YAML.
    - ``ValueError`` -- unknown keys or invalid values.
"""

from __future__ import annotations

import logging
from pathlib import Path

from inventauri_config.loader import load_settings
from inventauri_config.schema import (
    DatabaseSettings,
    InventauriSettings,
    LoggingSettings,
    SalesSettings,
)

_logger = logging.getLogger("inventauri.config")

DEFAULT_SETTINGS_PATH = Path(__file__).parent / "defaults.yaml"


def get_settings(path: Path | str | None = None) -> InventauriSettings:
    """The ONLY public settings entrypoint.

    Args:
        path: Settings file to load.  Defaults to the packaged
            ``defaults.yaml``.

    Returns:
        Frozen InventauriSettings with environment overrides applied.
    """
    settings_path = Path(path) if path is not None else DEFAULT_SETTINGS_PATH
    settings = load_settings(settings_path)

    _logger.info(
        "settings_loaded",
        extra={
            "settings_path": str(settings_path),
            "checksum": settings.checksum,
            "max_lines_per_sale": settings.sales.max_lines_per_sale,
            "negative_quantity_policy": settings.sales.negative_quantity_policy,
        },
    )
    return settings


__all__ = [
    "DEFAULT_SETTINGS_PATH",
    "DatabaseSettings",
    "InventauriSettings",
    "LoggingSettings",
    "SalesSettings",
    "get_settings",
]
