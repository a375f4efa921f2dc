"""
Milestone Configuration Schema.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Self

from budget_kernel.logging_config import get_logger
from budget_modules.milestone.models import MilestoneStatus

logger = get_logger("modules.milestone.config")


@dataclass
class MilestoneConfig:
    """Configuration schema for milestone budgeting."""

    # variance / allocated above this ratio is OVER_BUDGET
    over_budget_tolerance: Decimal = Decimal("0.10")
    flagged_statuses: tuple[str, ...] = ("completed", "cancelled")
    default_currency: str = "ZAR"

    def __post_init__(self):
        self.over_budget_tolerance = Decimal(str(self.over_budget_tolerance))
        if self.over_budget_tolerance < 0:
            raise ValueError("over_budget_tolerance cannot be negative")
        self.flagged_statuses = tuple(s.lower() for s in self.flagged_statuses)
        known = {s.value for s in MilestoneStatus}
        unknown = [s for s in self.flagged_statuses if s not in known]
        if unknown:
            raise ValueError(f"Unknown milestone statuses in flagged_statuses: {unknown}")
        logger.info("milestone_config_initialized", extra={
            "over_budget_tolerance": str(self.over_budget_tolerance),
            "flagged_statuses": list(self.flagged_statuses),
        })

    def is_flagged(self, status: MilestoneStatus) -> bool:
        return status.value in self.flagged_statuses

    @classmethod
    def with_defaults(cls) -> Self:
        return cls()
