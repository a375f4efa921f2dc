"""
budget_config -- single public entrypoint for runtime settings.

Responsibility:
    Provides ``load_settings(path)`` and ``get_active_settings()``; nothing
    else in the engine reads settings files or environment variables.
    ``apply_settings`` wires the loaded values into logging and the
    database engine.

Architecture position:
    Configuration -- sits above ``budget_kernel`` and ``budget_modules``.
    The kernel MUST NEVER import from ``budget_config``.

Failure modes:
    - ``FileNotFoundError`` -- the configured settings file is missing.
    - ``ValueError`` -- unknown section/key or out-of-range value.

Audit relevance:
    Every successful load emits a ``budget_settings_loaded`` log entry with
    the source path and checksum.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping

from budget_config.loader import compute_checksum, load_yaml_file, parse_settings
from budget_config.schema import DatabaseSettings, LoggingSettings, Settings
from budget_kernel.db.engine import init_engine_from_url
from budget_kernel.logging_config import configure_logging, get_logger

logger = get_logger("config")

SETTINGS_ENV_VAR = "BUDGET_TRACKER_CONFIG"


def load_settings(path: str | Path) -> Settings:
    """Load and validate settings from a YAML file."""
    path = Path(path)
    settings = parse_settings(load_yaml_file(path), source=str(path))
    logger.info("budget_settings_loaded", extra={
        "source": settings.source,
        "checksum": settings.checksum,
    })
    return settings


def get_active_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """
    Settings from the file named by ``BUDGET_TRACKER_CONFIG``, or defaults.

    Args:
        environ: Mapping to read the variable from.  Defaults to
            ``os.environ``.
    """
    env = os.environ if environ is None else environ
    path = env.get(SETTINGS_ENV_VAR)
    if not path:
        logger.info("budget_settings_defaults")
        return Settings()
    return load_settings(path)


def apply_settings(settings: Settings) -> None:
    """Configure logging and initialize the database engine."""
    configure_logging(level=settings.logging.level.upper())
    db = settings.database
    init_engine_from_url(
        db.url,
        echo=db.echo,
        pool_size=db.pool_size,
        max_overflow=db.max_overflow,
        pool_pre_ping=db.pool_pre_ping,
        pool_recycle=db.pool_recycle,
    )


__all__ = [
    "DatabaseSettings",
    "LoggingSettings",
    "SETTINGS_ENV_VAR",
    "Settings",
    "apply_settings",
    "compute_checksum",
    "get_active_settings",
    "load_settings",
]
