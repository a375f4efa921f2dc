"""
Risk Configuration Schema.
"""

from dataclasses import dataclass
from typing import Self

from budget_kernel.logging_config import get_logger

logger = get_logger("modules.risk.config")


@dataclass
class RiskConfig:
    """Configuration schema for the risk register."""

    # findings beyond this count in an analysis envelope are rejected
    max_findings: int = 50

    def __post_init__(self):
        if self.max_findings < 1:
            raise ValueError("max_findings must be at least 1")
        logger.info("risk_config_initialized", extra={
            "max_findings": self.max_findings,
        })

    @classmethod
    def with_defaults(cls) -> Self:
        return cls()
