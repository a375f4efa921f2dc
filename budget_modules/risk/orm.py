"""
SQLAlchemy ORM persistence model for the Risk register.

Invariants enforced
-------------------
* Enum fields stored as String(50).
* No severity column: severity is derived from probability and impact.
"""

from uuid import UUID

from sqlalchemy import ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from budget_kernel.db.base import TrackedBase


class RiskModel(TrackedBase):
    """
    A risk entry on a milestone.

    Maps to the ``Risk`` DTO in ``budget_modules.risk.models``.
    """

    __tablename__ = "milestone_risks"

    __table_args__ = (
        Index("idx_risk_milestone", "milestone_id"),
        Index("idx_risk_status", "status"),
    )

    milestone_id: Mapped[UUID] = mapped_column(
        ForeignKey("milestones.id", ondelete="CASCADE"), nullable=False,
    )
    description: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(String(50), nullable=False)
    probability: Mapped[str] = mapped_column(String(50), nullable=False)
    impact: Mapped[str] = mapped_column(String(50), nullable=False)
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="open")
    mitigation_strategy: Mapped[str | None] = mapped_column(Text, nullable=True)

    def to_dto(self):
        from budget_modules.risk.models import Risk, RiskCategory, RiskLevel, RiskStatus

        return Risk(
            id=self.id,
            milestone_id=self.milestone_id,
            description=self.description,
            category=RiskCategory(self.category),
            probability=RiskLevel(self.probability),
            impact=RiskLevel(self.impact),
            status=RiskStatus(self.status),
            mitigation_strategy=self.mitigation_strategy,
            raised_by_id=self.created_by_id,
        )

    def __repr__(self) -> str:
        return f"<RiskModel {self.category} {self.probability}/{self.impact} [{self.status}]>"
