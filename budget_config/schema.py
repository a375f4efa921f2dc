"""
Settings schema (``budget_config.schema``).

Frozen containers for everything the tracking engine reads at start-up.
Module thresholds reuse each module's own config dataclass so that their
``__post_init__`` validation runs on loaded values too.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from budget_modules.building.config import BuildingConfig
from budget_modules.milestone.config import MilestoneConfig
from budget_modules.payment.config import PaymentConfig
from budget_modules.risk.config import RiskConfig


@dataclass(frozen=True)
class DatabaseSettings:
    url: str = "sqlite://"
    echo: bool = False
    pool_size: int = 10
    max_overflow: int = 5
    pool_pre_ping: bool = True
    pool_recycle: int = 1800


@dataclass(frozen=True)
class LoggingSettings:
    level: str = "INFO"


@dataclass(frozen=True)
class Settings:
    """
    Complete runtime settings.

    ``checksum`` is the SHA-256 of the canonical JSON of the source data
    (empty for pure defaults) and identifies the settings in audit logs.
    """
    database: DatabaseSettings = field(default_factory=DatabaseSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)
    milestone: MilestoneConfig = field(default_factory=MilestoneConfig.with_defaults)
    building: BuildingConfig = field(default_factory=BuildingConfig.with_defaults)
    payment: PaymentConfig = field(default_factory=PaymentConfig.with_defaults)
    risk: RiskConfig = field(default_factory=RiskConfig.with_defaults)
    checksum: str = ""
    source: str | None = None
