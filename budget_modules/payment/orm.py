"""
SQLAlchemy ORM persistence model for payment requests.

Invariants enforced
-------------------
* ``request_number`` is unique.
* ``status`` only ever leaves ``pending`` through the conditional UPDATE in
  ``PaymentRequestService.review_payment_request``.

Audit relevance
---------------
* ``reviewed_by_id``, ``decided_at`` and ``approved_at`` record who decided
  and when.
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from budget_kernel.db.base import TrackedBase


class PaymentRequestModel(TrackedBase):
    """
    A contractor payment request.

    Maps to the ``PaymentRequest`` DTO in ``budget_modules.payment.models``.
    """

    __tablename__ = "payment_requests"

    __table_args__ = (
        UniqueConstraint("request_number", name="uq_payment_request_number"),
        Index("idx_payment_request_milestone", "milestone_id"),
        Index("idx_payment_request_status", "status"),
    )

    request_number: Mapped[str] = mapped_column(String(50), nullable=False)
    milestone_id: Mapped[UUID] = mapped_column(ForeignKey("milestones.id"), nullable=False)
    contractor_id: Mapped[UUID] = mapped_column(nullable=False)
    calculated_amount: Mapped[Decimal] = mapped_column(nullable=False)
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="pending")
    submitted_at: Mapped[datetime] = mapped_column(nullable=False)
    is_partial_payment: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    hours_worked: Mapped[Decimal | None] = mapped_column(nullable=True)
    days_worked: Mapped[Decimal | None] = mapped_column(nullable=True)
    hourly_rate: Mapped[Decimal | None] = mapped_column(nullable=True)
    daily_rate: Mapped[Decimal | None] = mapped_column(nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    reviewer_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    reviewed_by_id: Mapped[UUID | None] = mapped_column(nullable=True)
    decided_at: Mapped[datetime | None] = mapped_column(nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(nullable=True)

    def to_dto(self):
        from budget_modules.payment.models import PaymentRequest, PaymentStatus

        return PaymentRequest(
            id=self.id,
            request_number=self.request_number,
            milestone_id=self.milestone_id,
            contractor_id=self.contractor_id,
            calculated_amount=self.calculated_amount,
            status=PaymentStatus(self.status),
            submitted_at=self.submitted_at,
            is_partial_payment=self.is_partial_payment,
            hours_worked=self.hours_worked,
            days_worked=self.days_worked,
            hourly_rate=self.hourly_rate,
            daily_rate=self.daily_rate,
            notes=self.notes,
            rejection_reason=self.rejection_reason,
            reviewer_notes=self.reviewer_notes,
            reviewed_by_id=self.reviewed_by_id,
            decided_at=self.decided_at,
            approved_at=self.approved_at,
        )

    def __repr__(self) -> str:
        return f"<PaymentRequestModel {self.request_number} [{self.status}]>"
