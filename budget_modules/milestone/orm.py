"""
SQLAlchemy ORM persistence models for the Milestone module.

Responsibility
--------------
Persistence for projects, milestones, material line items, supplier
quotation documents and the milestone status audit trail.

Architecture position
---------------------
**Modules layer** -- ORM models consumed by ``MilestoneService``.  Inherits
from ``TrackedBase`` (kernel db layer).

Invariants enforced
-------------------
* All monetary fields use ``Decimal`` (Numeric(38,9)) -- NEVER float.
* Enum fields stored as String(50).
* ``material_cost`` and ``expected_profit`` are written only by
  ``MilestoneService._recompute_costs`` in the same flush as the change
  that affects them.
* No actual-cost, utilization or progress column exists on a milestone.

Audit relevance
---------------
* ``MilestoneStatusChangeModel`` keeps every status move, with moves into
  COMPLETED/CANCELLED flagged.
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, Date, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from budget_kernel.db.base import TrackedBase


# ---------------------------------------------------------------------------
# ProjectModel
# ---------------------------------------------------------------------------


class ProjectModel(TrackedBase):
    """
    A project grouping milestones, optionally linked to a building.

    Maps to the ``Project`` DTO in ``budget_modules.milestone.models``.
    """

    __tablename__ = "projects"

    __table_args__ = (
        UniqueConstraint("project_number", name="uq_project_number"),
        Index("idx_project_building", "building_id"),
        Index("idx_project_status", "status"),
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    project_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="planning")
    estimated_budget: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    building_id: Mapped[UUID | None] = mapped_column(nullable=True)
    customer_name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    milestones: Mapped[list["MilestoneModel"]] = relationship(
        "MilestoneModel",
        back_populates="project",
        order_by="MilestoneModel.sequence_order",
    )

    def to_dto(self):
        from budget_modules.milestone.models import Project, ProjectStatus

        return Project(
            id=self.id,
            name=self.name,
            status=ProjectStatus(self.status),
            project_number=self.project_number,
            description=self.description,
            estimated_budget=self.estimated_budget,
            start_date=self.start_date,
            end_date=self.end_date,
            building_id=self.building_id,
            customer_name=self.customer_name,
        )

    def __repr__(self) -> str:
        return f"<ProjectModel {self.name} [{self.status}]>"


# ---------------------------------------------------------------------------
# MilestoneModel
# ---------------------------------------------------------------------------


class MilestoneModel(TrackedBase):
    """
    A budgeted work package within a project.

    Maps to the ``Milestone`` DTO in ``budget_modules.milestone.models``.

    Guarantees:
        - ``expected_profit`` equals ``budget_allocated`` minus the six cost
          columns after every service call.
        - When ``materials`` is non-empty, ``material_cost`` equals the sum of
          their quantity x unit price.
    """

    __tablename__ = "milestones"

    __table_args__ = (
        Index("idx_milestone_project", "project_id", "sequence_order"),
        Index("idx_milestone_status", "status"),
        Index("idx_milestone_assignee", "assignee_id"),
    )

    project_id: Mapped[UUID] = mapped_column(ForeignKey("projects.id"), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    sequence_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="planning")
    labour_cost: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    material_cost: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    diesel_cost: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    rent_cost: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    admin_cost: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    other_operational_cost: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    budget_allocated: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    expected_profit: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    assignee_id: Mapped[UUID | None] = mapped_column(nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Relationships
    project: Mapped["ProjectModel"] = relationship(
        "ProjectModel", back_populates="milestones",
    )
    materials: Mapped[list["MaterialItemModel"]] = relationship(
        "MaterialItemModel",
        back_populates="milestone",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="MaterialItemModel.created_at",
    )
    quotations: Mapped[list["SupplierQuotationModel"]] = relationship(
        "SupplierQuotationModel",
        back_populates="milestone",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="SupplierQuotationModel.created_at",
    )

    def to_dto(self):
        from budget_modules.milestone.models import CostBreakdown, Milestone, MilestoneStatus

        return Milestone(
            id=self.id,
            project_id=self.project_id,
            name=self.name,
            status=MilestoneStatus(self.status),
            budget_allocated=self.budget_allocated,
            costs=CostBreakdown(
                labour_cost=self.labour_cost,
                material_cost=self.material_cost,
                diesel_cost=self.diesel_cost,
                rent_cost=self.rent_cost,
                admin_cost=self.admin_cost,
                other_operational_cost=self.other_operational_cost,
            ),
            expected_profit=self.expected_profit,
            sequence_order=self.sequence_order,
            description=self.description,
            start_date=self.start_date,
            end_date=self.end_date,
            assignee_id=self.assignee_id,
            notes=self.notes,
            materials=tuple(m.to_dto() for m in self.materials),
            quotations=tuple(q.to_dto() for q in self.quotations),
        )

    def __repr__(self) -> str:
        return f"<MilestoneModel {self.name} [{self.status}]>"


# ---------------------------------------------------------------------------
# MaterialItemModel
# ---------------------------------------------------------------------------


class MaterialItemModel(TrackedBase):
    """A material line item priced as quantity x unit price."""

    __tablename__ = "milestone_materials"

    __table_args__ = (
        Index("idx_material_milestone", "milestone_id"),
    )

    milestone_id: Mapped[UUID] = mapped_column(
        ForeignKey("milestones.id", ondelete="CASCADE"), nullable=False,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    quantity: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    unit_price: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    supplier: Mapped[str | None] = mapped_column(String(255), nullable=True)
    supplier_quotation_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    supplier_quotation_amount: Mapped[Decimal | None] = mapped_column(nullable=True)

    milestone: Mapped["MilestoneModel"] = relationship(
        "MilestoneModel", back_populates="materials",
    )

    def to_dto(self):
        from budget_modules.milestone.models import MaterialItem

        return MaterialItem(
            id=self.id,
            milestone_id=self.milestone_id,
            name=self.name,
            quantity=self.quantity,
            unit_price=self.unit_price,
            description=self.description,
            supplier=self.supplier,
            supplier_quotation_url=self.supplier_quotation_url,
            supplier_quotation_amount=self.supplier_quotation_amount,
        )

    @classmethod
    def from_input(cls, dto, created_by_id: UUID) -> "MaterialItemModel":
        return cls(
            name=dto.name,
            description=dto.description,
            quantity=dto.quantity,
            unit_price=dto.unit_price,
            supplier=dto.supplier,
            supplier_quotation_url=dto.supplier_quotation_url,
            supplier_quotation_amount=dto.supplier_quotation_amount,
            created_by_id=created_by_id,
        )

    def __repr__(self) -> str:
        return f"<MaterialItemModel {self.name} {self.quantity} x {self.unit_price}>"


# ---------------------------------------------------------------------------
# SupplierQuotationModel
# ---------------------------------------------------------------------------


class SupplierQuotationModel(TrackedBase):
    """An uploaded supplier quotation document reference."""

    __tablename__ = "milestone_quotations"

    __table_args__ = (
        Index("idx_quotation_milestone", "milestone_id"),
    )

    milestone_id: Mapped[UUID] = mapped_column(
        ForeignKey("milestones.id", ondelete="CASCADE"), nullable=False,
    )
    supplier_name: Mapped[str] = mapped_column(String(255), nullable=False)
    document_url: Mapped[str] = mapped_column(String(1000), nullable=False)
    amount: Mapped[Decimal | None] = mapped_column(nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    milestone: Mapped["MilestoneModel"] = relationship(
        "MilestoneModel", back_populates="quotations",
    )

    def to_dto(self):
        from budget_modules.milestone.models import SupplierQuotation

        return SupplierQuotation(
            id=self.id,
            milestone_id=self.milestone_id,
            supplier_name=self.supplier_name,
            document_url=self.document_url,
            amount=self.amount,
            notes=self.notes,
            uploaded_at=self.created_at,
        )

    def __repr__(self) -> str:
        return f"<SupplierQuotationModel {self.supplier_name}>"


# ---------------------------------------------------------------------------
# MilestoneStatusChangeModel
# ---------------------------------------------------------------------------


class MilestoneStatusChangeModel(TrackedBase):
    """One milestone status move.  ``flagged`` marks audit-relevant targets."""

    __tablename__ = "milestone_status_changes"

    __table_args__ = (
        Index("idx_status_change_milestone", "milestone_id"),
        Index("idx_status_change_flagged", "flagged"),
    )

    milestone_id: Mapped[UUID] = mapped_column(
        ForeignKey("milestones.id", ondelete="CASCADE"), nullable=False,
    )
    from_status: Mapped[str] = mapped_column(String(50), nullable=False)
    to_status: Mapped[str] = mapped_column(String(50), nullable=False)
    flagged: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    changed_at: Mapped[datetime] = mapped_column(nullable=False)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)

    def to_dto(self):
        from budget_modules.milestone.models import MilestoneStatus, MilestoneStatusChange

        return MilestoneStatusChange(
            id=self.id,
            milestone_id=self.milestone_id,
            from_status=MilestoneStatus(self.from_status),
            to_status=MilestoneStatus(self.to_status),
            flagged=self.flagged,
            changed_by_id=self.created_by_id,
            changed_at=self.changed_at,
            note=self.note,
        )

    def __repr__(self) -> str:
        return f"<MilestoneStatusChangeModel {self.from_status}->{self.to_status}>"
