"""
Caller identity (``budget_kernel.domain.identity``).

The engine never authenticates anyone.  Every mutating call receives an
already-verified ``Actor`` (id + role) from the transport layer and trusts
it; the only role check the engine applies itself is reviewer-only
payment approval (see ``budget_modules.payment.service``).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from uuid import UUID


class Role(str, Enum):
    """Roles a caller can hold."""

    SENIOR_ADMIN = "SENIOR_ADMIN"
    JUNIOR_ADMIN = "JUNIOR_ADMIN"
    PROPERTY_MANAGER = "PROPERTY_MANAGER"
    CONTRACTOR = "CONTRACTOR"
    CONTRACTOR_SENIOR_MANAGER = "CONTRACTOR_SENIOR_MANAGER"
    CONTRACTOR_JUNIOR_MANAGER = "CONTRACTOR_JUNIOR_MANAGER"
    ARTISAN = "ARTISAN"
    CUSTOMER = "CUSTOMER"


@dataclass(frozen=True)
class Actor:
    """An authenticated caller."""
    actor_id: UUID
    role: Role

    def log_fields(self) -> dict[str, str]:
        return {"actor_id": str(self.actor_id), "actor_role": self.role.value}
