"""
Payment Request Models (``budget_modules.payment.models``).

Responsibility
--------------
Frozen value objects for contractor payment claims against a milestone.

Invariants enforced
-------------------
* ``status`` is one of PENDING, APPROVED, REJECTED; the last two are final.
* All monetary fields use ``Decimal``.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID


class PaymentStatus(Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ReviewDecision(Enum):
    """What a reviewer may decide.  Maps onto the final statuses."""
    APPROVED = "approved"
    REJECTED = "rejected"

    @property
    def status(self) -> PaymentStatus:
        return PaymentStatus(self.value)


@dataclass(frozen=True)
class PaymentRequest:
    """A contractor's claim for payment on a milestone."""
    id: UUID
    request_number: str
    milestone_id: UUID
    contractor_id: UUID
    calculated_amount: Decimal
    status: PaymentStatus
    submitted_at: datetime
    is_partial_payment: bool = False
    hours_worked: Decimal | None = None
    days_worked: Decimal | None = None
    hourly_rate: Decimal | None = None
    daily_rate: Decimal | None = None
    notes: str | None = None
    rejection_reason: str | None = None
    reviewer_notes: str | None = None
    reviewed_by_id: UUID | None = None
    decided_at: datetime | None = None
    approved_at: datetime | None = None

    @property
    def is_decided(self) -> bool:
        return self.status is not PaymentStatus.PENDING


@dataclass(frozen=True)
class PaymentTotals:
    """Amounts and counts of payment requests by status."""
    pending_amount: Decimal = Decimal("0")
    approved_amount: Decimal = Decimal("0")
    rejected_amount: Decimal = Decimal("0")
    pending_count: int = 0
    approved_count: int = 0
    rejected_count: int = 0
