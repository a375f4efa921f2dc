"""
Building Budget Configuration Schema.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Self

from budget_kernel.logging_config import get_logger

logger = get_logger("modules.building.config")


@dataclass
class BuildingConfig:
    """Configuration schema for building budgets and the portfolio rollup."""

    # utilization percentage above which a budget is NEAR_LIMIT
    near_limit_utilization: Decimal = Decimal("90")

    def __post_init__(self):
        self.near_limit_utilization = Decimal(str(self.near_limit_utilization))
        if not Decimal("0") <= self.near_limit_utilization <= Decimal("100"):
            raise ValueError("near_limit_utilization must be between 0 and 100")
        logger.info("building_config_initialized", extra={
            "near_limit_utilization": str(self.near_limit_utilization),
        })

    @classmethod
    def with_defaults(cls) -> Self:
        return cls()
