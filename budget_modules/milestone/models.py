"""
Milestone Domain Models (``budget_modules.milestone.models``).

Responsibility
--------------
Frozen dataclass value objects for projects, milestones, the planned cost
breakdown, material line items and supplier quotation documents.

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.  Returned by
``MilestoneService`` and consumed by the weekly, risk and payment modules.

Invariants enforced
-------------------
* All models are ``frozen=True``.
* All monetary fields use ``Decimal`` -- NEVER ``float``.
* ``MaterialItem.total_cost`` is derived (quantity x unit price).
* A ``Milestone`` carries no actual cost or progress; those come from its
  weekly updates (see ``budget_modules.weekly``).
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from budget_kernel.logging_config import get_logger

logger = get_logger("modules.milestone.models")


class ProjectStatus(Enum):
    """Project states."""
    PLANNING = "planning"
    IN_PROGRESS = "in_progress"
    ON_HOLD = "on_hold"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class MilestoneStatus(Enum):
    """Milestone states.  Any state may move to any other."""
    PLANNING = "planning"
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    ON_HOLD = "on_hold"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class CostBreakdown:
    """Planned cost components of a milestone."""
    labour_cost: Decimal = Decimal("0")
    material_cost: Decimal = Decimal("0")
    diesel_cost: Decimal = Decimal("0")
    rent_cost: Decimal = Decimal("0")
    admin_cost: Decimal = Decimal("0")
    other_operational_cost: Decimal = Decimal("0")

    @property
    def total(self) -> Decimal:
        return (
            self.material_cost
            + self.labour_cost
            + self.diesel_cost
            + self.rent_cost
            + self.admin_cost
            + self.other_operational_cost
        )


COST_FIELDS: tuple[str, ...] = (
    "labour_cost",
    "material_cost",
    "diesel_cost",
    "rent_cost",
    "admin_cost",
    "other_operational_cost",
)


@dataclass(frozen=True)
class Project:
    """A construction or maintenance project."""
    id: UUID
    name: str
    status: ProjectStatus = ProjectStatus.PLANNING
    project_number: str | None = None
    description: str | None = None
    estimated_budget: Decimal = Decimal("0")
    start_date: date | None = None
    end_date: date | None = None
    building_id: UUID | None = None
    customer_name: str | None = None


@dataclass(frozen=True)
class MaterialInput:
    """Caller-supplied material line before it is persisted."""
    name: str
    quantity: Decimal
    unit_price: Decimal
    description: str | None = None
    supplier: str | None = None
    supplier_quotation_url: str | None = None
    supplier_quotation_amount: Decimal | None = None


@dataclass(frozen=True)
class MaterialItem:
    """A persisted material line item."""
    id: UUID
    milestone_id: UUID
    name: str
    quantity: Decimal
    unit_price: Decimal
    description: str | None = None
    supplier: str | None = None
    supplier_quotation_url: str | None = None
    supplier_quotation_amount: Decimal | None = None

    @property
    def total_cost(self) -> Decimal:
        return self.quantity * self.unit_price


@dataclass(frozen=True)
class SupplierQuotation:
    """An uploaded supplier quotation document (opaque URL)."""
    id: UUID
    milestone_id: UUID
    supplier_name: str
    document_url: str
    amount: Decimal | None = None
    notes: str | None = None
    uploaded_at: datetime | None = None


@dataclass(frozen=True)
class Milestone:
    """A budgeted work package within a project."""
    id: UUID
    project_id: UUID
    name: str
    status: MilestoneStatus
    budget_allocated: Decimal
    costs: CostBreakdown
    expected_profit: Decimal
    sequence_order: int = 0
    description: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    assignee_id: UUID | None = None
    notes: str | None = None
    materials: tuple[MaterialItem, ...] = field(default=())
    quotations: tuple[SupplierQuotation, ...] = field(default=())

    @property
    def has_material_items(self) -> bool:
        return len(self.materials) > 0


@dataclass(frozen=True)
class MilestoneStatusChange:
    """Audit row for a milestone status move."""
    id: UUID
    milestone_id: UUID
    from_status: MilestoneStatus
    to_status: MilestoneStatus
    flagged: bool
    changed_by_id: UUID
    changed_at: datetime
    note: str | None = None
