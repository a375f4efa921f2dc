"""
SQLAlchemy ORM persistence models for the Building module.

Responsibility
--------------
Persistence for buildings, tenants, rent schedule rows, other income,
property orders, building budgets and budget expenses.

Architecture position
---------------------
**Modules layer** -- ORM models consumed by ``BuildingBudgetService``.
Inherits from ``TrackedBase`` (kernel db layer).

Invariants enforced
-------------------
* All monetary fields use ``Decimal`` (Numeric(38,9)) -- NEVER float.
* ``building_budgets`` has one column per category allocation and no
  total, spent or remaining column.
* Deleting a budget deletes its expenses (delete-orphan).
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Date, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from budget_kernel.db.base import TrackedBase


# ---------------------------------------------------------------------------
# BuildingModel
# ---------------------------------------------------------------------------


class BuildingModel(TrackedBase):
    """A managed building.  Maps to ``Building``."""

    __tablename__ = "buildings"

    __table_args__ = (
        Index("idx_building_manager", "property_manager_id"),
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    number_of_units: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    property_manager_id: Mapped[UUID | None] = mapped_column(nullable=True)

    tenants: Mapped[list["TenantModel"]] = relationship(
        "TenantModel",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="TenantModel.created_at",
    )

    def to_dto(self):
        from budget_modules.building.models import Building

        return Building(
            id=self.id,
            name=self.name,
            address=self.address,
            number_of_units=self.number_of_units,
            property_manager_id=self.property_manager_id,
        )

    def __repr__(self) -> str:
        return f"<BuildingModel {self.name}>"


class TenantModel(TrackedBase):
    __tablename__ = "tenants"

    __table_args__ = (
        Index("idx_tenant_building", "building_id", "status"),
    )

    building_id: Mapped[UUID] = mapped_column(
        ForeignKey("buildings.id", ondelete="CASCADE"), nullable=False,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    unit_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="active")

    def to_dto(self):
        from budget_modules.building.models import Tenant, TenantStatus

        return Tenant(
            id=self.id,
            building_id=self.building_id,
            name=self.name,
            unit_number=self.unit_number,
            status=TenantStatus(self.status),
        )

    def __repr__(self) -> str:
        return f"<TenantModel {self.name} [{self.status}]>"


# ---------------------------------------------------------------------------
# Income and order records
# ---------------------------------------------------------------------------


class RentPaymentModel(TrackedBase):
    """A scheduled rent amount and what was actually paid against it."""

    __tablename__ = "rent_payments"

    __table_args__ = (
        Index("idx_rent_building_due", "building_id", "due_date"),
    )

    building_id: Mapped[UUID] = mapped_column(ForeignKey("buildings.id"), nullable=False)
    tenant_id: Mapped[UUID | None] = mapped_column(ForeignKey("tenants.id"), nullable=True)
    due_date: Mapped[date] = mapped_column(Date, nullable=False)
    amount: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    amount_paid: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="pending")

    def to_dto(self):
        from budget_modules.building.models import RentPayment, RentPaymentStatus

        return RentPayment(
            id=self.id,
            building_id=self.building_id,
            tenant_id=self.tenant_id,
            due_date=self.due_date,
            amount=self.amount,
            amount_paid=self.amount_paid,
            status=RentPaymentStatus(self.status),
        )


class OtherIncomeModel(TrackedBase):
    __tablename__ = "building_income"

    __table_args__ = (
        Index("idx_income_building_date", "building_id", "received_date"),
    )

    building_id: Mapped[UUID] = mapped_column(ForeignKey("buildings.id"), nullable=False)
    received_date: Mapped[date] = mapped_column(Date, nullable=False)
    amount: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    def to_dto(self):
        from budget_modules.building.models import OtherIncome

        return OtherIncome(
            id=self.id,
            building_id=self.building_id,
            received_date=self.received_date,
            amount=self.amount,
            description=self.description,
        )


class PropertyOrderModel(TrackedBase):
    __tablename__ = "property_orders"

    __table_args__ = (
        Index("idx_order_building_date", "building_id", "order_date"),
    )

    building_id: Mapped[UUID] = mapped_column(ForeignKey("buildings.id"), nullable=False)
    order_date: Mapped[date] = mapped_column(Date, nullable=False)
    material_cost: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    labour_cost: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    def to_dto(self):
        from budget_modules.building.models import PropertyOrder

        return PropertyOrder(
            id=self.id,
            building_id=self.building_id,
            order_date=self.order_date,
            material_cost=self.material_cost,
            labour_cost=self.labour_cost,
            description=self.description,
        )


# ---------------------------------------------------------------------------
# BuildingBudgetModel
# ---------------------------------------------------------------------------


class BuildingBudgetModel(TrackedBase):
    """
    A building's period budget with eight category allocations.

    Maps to the ``BuildingBudget`` DTO in ``budget_modules.building.models``.
    """

    __tablename__ = "building_budgets"

    __table_args__ = (
        Index("idx_budget_building_period", "building_id", "start_date", "end_date"),
        Index("idx_budget_fiscal_year", "fiscal_year", "quarter"),
    )

    building_id: Mapped[UUID] = mapped_column(ForeignKey("buildings.id"), nullable=False)
    fiscal_year: Mapped[int] = mapped_column(Integer, nullable=False)
    quarter: Mapped[int | None] = mapped_column(Integer, nullable=True)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="draft")
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    preventative_maintenance: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    reactive_maintenance: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    corrective_maintenance: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    capital_expenditures: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    utilities: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    insurance: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    property_tax: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    other: Mapped[Decimal] = mapped_column(default=Decimal("0"))

    expenses: Mapped[list["BudgetExpenseModel"]] = relationship(
        "BudgetExpenseModel",
        back_populates="budget",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="BudgetExpenseModel.expense_date",
    )

    def to_dto(self):
        from budget_modules.building.models import (
            BudgetCategory,
            BuildingBudget,
            BuildingBudgetStatus,
            CategoryAllocations,
        )

        allocations = CategoryAllocations(**{c.value: getattr(self, c.value) for c in BudgetCategory})
        return BuildingBudget(
            id=self.id,
            building_id=self.building_id,
            fiscal_year=self.fiscal_year,
            quarter=self.quarter,
            start_date=self.start_date,
            end_date=self.end_date,
            allocations=allocations,
            status=BuildingBudgetStatus(self.status),
            notes=self.notes,
            expenses=tuple(e.to_dto() for e in self.expenses),
        )

    def __repr__(self) -> str:
        return f"<BuildingBudgetModel FY{self.fiscal_year} Q{self.quarter} [{self.status}]>"


class BudgetExpenseModel(TrackedBase):
    """One expense booked against a budget category."""

    __tablename__ = "budget_expenses"

    __table_args__ = (
        Index("idx_budget_expense_budget", "budget_id", "category"),
    )

    budget_id: Mapped[UUID] = mapped_column(
        ForeignKey("building_budgets.id", ondelete="CASCADE"), nullable=False,
    )
    category: Mapped[str] = mapped_column(String(50), nullable=False)
    amount: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    expense_date: Mapped[date] = mapped_column(Date, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    receipt_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    invoice_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    reference_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    reference_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    budget: Mapped["BuildingBudgetModel"] = relationship(
        "BuildingBudgetModel", back_populates="expenses",
    )

    def to_dto(self):
        from budget_modules.building.models import BudgetCategory, BudgetExpense

        return BudgetExpense(
            id=self.id,
            budget_id=self.budget_id,
            category=BudgetCategory(self.category),
            amount=self.amount,
            expense_date=self.expense_date,
            description=self.description,
            receipt_url=self.receipt_url,
            invoice_url=self.invoice_url,
            reference_type=self.reference_type,
            reference_id=self.reference_id,
            notes=self.notes,
        )

    def __repr__(self) -> str:
        return f"<BudgetExpenseModel {self.category} {self.amount}>"
