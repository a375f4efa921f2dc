"""
SQLAlchemy ORM persistence model for weekly updates.

Architecture position
---------------------
**Modules layer** -- consumed by ``WeeklyUpdateService``.  Owns its
itemized expenses (``budget_modules.expense.orm``) through a
delete-orphan relationship, so deleting an update deletes its items.

Invariants enforced
-------------------
* ``week_end_date >= week_start_date`` (checked by the service).
* ``sequence_number`` increases per milestone in submission order and
  breaks ties between updates ending on the same day.
* No total-expenditure or cumulative column; both are derived on read.
* ``photos`` holds a JSON array of opaque URLs, stored verbatim.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import JSON, Date, ForeignKey, Index, Integer, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from budget_kernel.db.base import TrackedBase
from budget_modules.expense.orm import ItemizedExpenseModel


class WeeklyUpdateModel(TrackedBase):
    """
    One week's report for a milestone.

    Maps to the ``WeeklyUpdate`` DTO in ``budget_modules.weekly.models``.
    """

    __tablename__ = "weekly_updates"

    __table_args__ = (
        UniqueConstraint("milestone_id", "sequence_number", name="uq_weekly_update_sequence"),
        Index("idx_weekly_update_milestone", "milestone_id", "week_end_date"),
    )

    milestone_id: Mapped[UUID] = mapped_column(ForeignKey("milestones.id"), nullable=False)
    sequence_number: Mapped[int] = mapped_column(Integer, nullable=False)
    week_start_date: Mapped[date] = mapped_column(Date, nullable=False)
    week_end_date: Mapped[date] = mapped_column(Date, nullable=False)
    labour_expenditure: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    material_expenditure: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    other_expenditure: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    progress_percentage: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    work_done: Mapped[str | None] = mapped_column(Text, nullable=True)
    challenges: Mapped[str | None] = mapped_column(Text, nullable=True)
    successes: Mapped[str | None] = mapped_column(Text, nullable=True)
    next_week_plan: Mapped[str | None] = mapped_column(Text, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    photos: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)

    items: Mapped[list[ItemizedExpenseModel]] = relationship(
        ItemizedExpenseModel,
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by=ItemizedExpenseModel.position,
    )

    def to_dto(self):
        from budget_modules.weekly.models import (
            CategoryTotals,
            WeeklyNarrative,
            WeeklyUpdate,
            WeekRange,
        )

        return WeeklyUpdate(
            id=self.id,
            milestone_id=self.milestone_id,
            sequence_number=self.sequence_number,
            week=WeekRange(start=self.week_start_date, end=self.week_end_date),
            totals=CategoryTotals(
                labour_expenditure=self.labour_expenditure,
                material_expenditure=self.material_expenditure,
                other_expenditure=self.other_expenditure,
            ),
            progress_percentage=self.progress_percentage,
            submitted_by_id=self.created_by_id,
            narrative=WeeklyNarrative(
                work_done=self.work_done,
                challenges=self.challenges,
                successes=self.successes,
                next_week_plan=self.next_week_plan,
                notes=self.notes,
            ),
            photos=tuple(self.photos or ()),
            items=tuple(i.to_dto() for i in self.items),
        )

    def __repr__(self) -> str:
        return (
            f"<WeeklyUpdateModel #{self.sequence_number} "
            f"{self.week_start_date}..{self.week_end_date}>"
        )
