"""
Payment Configuration Schema.
"""

from dataclasses import dataclass
from typing import Self

from budget_kernel.domain.identity import Role
from budget_kernel.logging_config import get_logger

logger = get_logger("modules.payment.config")


@dataclass
class PaymentConfig:
    """Configuration schema for payment requests."""

    request_number_prefix: str = "PAY-MS-"
    request_number_width: int = 5
    reviewer_roles: tuple[str, ...] = ("PROPERTY_MANAGER", "JUNIOR_ADMIN", "SENIOR_ADMIN")

    def __post_init__(self):
        if self.request_number_width < 1:
            raise ValueError("request_number_width must be at least 1")
        if not self.reviewer_roles:
            raise ValueError("reviewer_roles cannot be empty")
        self.reviewer_roles = tuple(r.upper() for r in self.reviewer_roles)
        known = {r.value for r in Role}
        unknown = [r for r in self.reviewer_roles if r not in known]
        if unknown:
            raise ValueError(f"Unknown roles in reviewer_roles: {unknown}")
        logger.info("payment_config_initialized", extra={
            "request_number_prefix": self.request_number_prefix,
            "reviewer_roles": list(self.reviewer_roles),
        })

    def can_review(self, role: Role) -> bool:
        return role.value in self.reviewer_roles

    def format_request_number(self, sequence: int) -> str:
        return f"{self.request_number_prefix}{sequence:0{self.request_number_width}d}"

    @classmethod
    def with_defaults(cls) -> Self:
        return cls()
