"""
SQLAlchemy ORM persistence model for itemized expenses.

Architecture position
---------------------
**Modules layer** -- owned by the weekly update aggregate.  Rows are
written and deleted only through ``WeeklyUpdateModel.items``
(``cascade="all, delete-orphan"``).

Invariants enforced
-------------------
* ``position`` preserves submission order within an update.
* Variance and justification state are not stored.
"""

from decimal import Decimal
from uuid import UUID

from sqlalchemy import ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from budget_kernel.db.base import TrackedBase


class ItemizedExpenseModel(TrackedBase):
    """One line item of a weekly update."""

    __tablename__ = "itemized_expenses"

    __table_args__ = (
        Index("idx_itemized_expense_update", "weekly_update_id", "position"),
    )

    weekly_update_id: Mapped[UUID] = mapped_column(
        ForeignKey("weekly_updates.id", ondelete="CASCADE"), nullable=False,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    description: Mapped[str] = mapped_column(String(500), nullable=False)
    quoted_amount: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    actual_spent: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    supplier_invoice_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    reason_for_overspend: Mapped[str | None] = mapped_column(Text, nullable=True)

    def to_dto(self):
        from budget_modules.expense.models import ItemizedExpense

        return ItemizedExpense(
            id=self.id,
            description=self.description,
            quoted_amount=self.quoted_amount,
            actual_spent=self.actual_spent,
            supplier_invoice_url=self.supplier_invoice_url,
            reason_for_overspend=self.reason_for_overspend,
        )

    @classmethod
    def from_dto(cls, dto, position: int, created_by_id: UUID) -> "ItemizedExpenseModel":
        return cls(
            position=position,
            description=dto.description,
            quoted_amount=dto.quoted_amount,
            actual_spent=dto.actual_spent,
            supplier_invoice_url=dto.supplier_invoice_url,
            reason_for_overspend=dto.reason_for_overspend,
            created_by_id=created_by_id,
        )

    def __repr__(self) -> str:
        return f"<ItemizedExpenseModel {self.description} {self.actual_spent}/{self.quoted_amount}>"
