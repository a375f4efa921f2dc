"""
Building Budget Domain Models (``budget_modules.building.models``).

Responsibility
--------------
Frozen value objects for buildings and their period budgets, the expense
entries booked against those budgets, and the income/occupancy records
that feed the portfolio rollup.

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.

Invariants enforced
-------------------
* A budget's total is the sum of its eight category allocations, and its
  spent/remaining figures are sums over its expenses.  All three are
  properties, never stored fields.
* All monetary fields use ``Decimal`` -- NEVER ``float``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID

from budget_kernel.domain.values import decimal_sum


class BudgetCategory(Enum):
    PREVENTATIVE_MAINTENANCE = "preventative_maintenance"
    REACTIVE_MAINTENANCE = "reactive_maintenance"
    CORRECTIVE_MAINTENANCE = "corrective_maintenance"
    CAPITAL_EXPENDITURES = "capital_expenditures"
    UTILITIES = "utilities"
    INSURANCE = "insurance"
    PROPERTY_TAX = "property_tax"
    OTHER = "other"


class BuildingBudgetStatus(Enum):
    DRAFT = "draft"
    APPROVED = "approved"
    ACTIVE = "active"
    CLOSED = "closed"


class BudgetHealth(Enum):
    OVER_BUDGET = "over_budget"
    NEAR_LIMIT = "near_limit"
    WITHIN_BUDGET = "within_budget"


class TenantStatus(Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class RentPaymentStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    PARTIAL = "partial"
    OVERDUE = "overdue"


@dataclass(frozen=True)
class CategoryAllocations:
    """The eight fixed category allocations of a building budget."""
    preventative_maintenance: Decimal = Decimal("0")
    reactive_maintenance: Decimal = Decimal("0")
    corrective_maintenance: Decimal = Decimal("0")
    capital_expenditures: Decimal = Decimal("0")
    utilities: Decimal = Decimal("0")
    insurance: Decimal = Decimal("0")
    property_tax: Decimal = Decimal("0")
    other: Decimal = Decimal("0")

    @property
    def total(self) -> Decimal:
        return decimal_sum(self.get(c) for c in BudgetCategory)

    def get(self, category: BudgetCategory) -> Decimal:
        return getattr(self, category.value)

    def as_dict(self) -> dict[str, Decimal]:
        return {c.value: self.get(c) for c in BudgetCategory}


@dataclass(frozen=True)
class Building:
    id: UUID
    name: str
    address: str | None = None
    number_of_units: int = 0
    property_manager_id: UUID | None = None


@dataclass(frozen=True)
class Tenant:
    id: UUID
    building_id: UUID
    name: str
    unit_number: str | None = None
    status: TenantStatus = TenantStatus.ACTIVE


@dataclass(frozen=True)
class RentPayment:
    id: UUID
    building_id: UUID
    due_date: date
    amount: Decimal
    amount_paid: Decimal
    status: RentPaymentStatus
    tenant_id: UUID | None = None


@dataclass(frozen=True)
class OtherIncome:
    id: UUID
    building_id: UUID
    received_date: date
    amount: Decimal
    description: str | None = None


@dataclass(frozen=True)
class PropertyOrder:
    """A material/labour order raised for a building."""
    id: UUID
    building_id: UUID
    order_date: date
    material_cost: Decimal
    labour_cost: Decimal
    description: str | None = None

    @property
    def total_cost(self) -> Decimal:
        return self.material_cost + self.labour_cost


@dataclass(frozen=True)
class BudgetExpense:
    """An expense booked against one category of a building budget."""
    id: UUID
    budget_id: UUID
    category: BudgetCategory
    amount: Decimal
    expense_date: date
    description: str
    receipt_url: str | None = None
    invoice_url: str | None = None
    reference_type: str | None = None
    reference_id: str | None = None
    notes: str | None = None


@dataclass(frozen=True)
class BuildingBudget:
    """A building's budget for a fiscal year (and optionally a quarter)."""
    id: UUID
    building_id: UUID
    fiscal_year: int
    start_date: date
    end_date: date
    allocations: CategoryAllocations
    status: BuildingBudgetStatus = BuildingBudgetStatus.DRAFT
    quarter: int | None = None
    notes: str | None = None
    expenses: tuple[BudgetExpense, ...] = ()

    @property
    def total_budget(self) -> Decimal:
        return self.allocations.total

    @property
    def total_spent(self) -> Decimal:
        return decimal_sum(e.amount for e in self.expenses)

    @property
    def total_remaining(self) -> Decimal:
        return self.total_budget - self.total_spent

    def overlaps(self, start: date, end: date) -> bool:
        return self.start_date <= end and self.end_date >= start


@dataclass(frozen=True)
class CategorySpend:
    category: BudgetCategory
    allocated: Decimal
    spent: Decimal
    remaining: Decimal
    utilization: Decimal
    is_over: bool


@dataclass(frozen=True)
class BudgetSummary:
    """Read-time view of one building budget."""
    budget_id: UUID
    building_id: UUID
    total_budget: Decimal
    total_spent: Decimal
    total_remaining: Decimal
    utilization: Decimal
    health: BudgetHealth
    expense_count: int
    categories: tuple[CategorySpend, ...] = ()


@dataclass(frozen=True)
class BuildingFinancials:
    """One building's figures for a reporting period."""
    building_id: UUID
    building_name: str
    rental_income: Decimal
    expected_rental_income: Decimal
    rent_collection_rate: Decimal
    other_income: Decimal
    total_revenue: Decimal
    budget_expenses: Decimal
    order_costs: Decimal
    total_expenses: Decimal
    net_operating_income: Decimal
    profit_margin: Decimal
    budget_total: Decimal
    budget_spent: Decimal
    budget_remaining: Decimal
    budget_utilization: Decimal
    total_units: int
    occupied_units: int
    vacant_units: int
    occupancy_rate: Decimal
    overdue_rent_count: int
    partial_rent_count: int


@dataclass(frozen=True)
class PortfolioFinancials:
    """Portfolio rollup over a reporting period."""
    period_start: date
    period_end: date
    building_count: int
    rental_income: Decimal
    other_income: Decimal
    total_revenue: Decimal
    budget_expenses: Decimal
    contractor_payments: Decimal
    order_costs: Decimal
    total_expenses: Decimal
    net_operating_income: Decimal
    profit_margin: Decimal
    total_units: int
    occupied_units: int
    vacant_units: int
    occupancy_rate: Decimal
    revenue_per_unit: Decimal
    expense_per_unit: Decimal
    net_income_per_unit: Decimal
    rent_collection_rate: Decimal
    budget_total: Decimal
    budget_spent: Decimal
    budget_remaining: Decimal
    budget_utilization: Decimal
    contractor_payment_count: int
    average_contractor_payment: Decimal
    # rent collected in the same window one month earlier
    previous_period_revenue: Decimal = Decimal("0")
    revenue_trend: Decimal = Decimal("0")
    buildings: tuple[BuildingFinancials, ...] = field(default=())

