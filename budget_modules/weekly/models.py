"""
Weekly Update Domain Models (``budget_modules.weekly.models``).

Responsibility
--------------
Frozen value objects for a week's progress report on a milestone and for
the milestone-level financial rollup computed from all of its reports.

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.

Invariants enforced
-------------------
* ``total_expenditure`` is labour + material + other.  Itemized expenses
  are detail on top of the category totals and are not added to it.
* ``MilestoneFinancials`` is a read-time snapshot; nothing in it is stored.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID

from budget_modules.expense.helpers import itemized_totals
from budget_modules.expense.models import ItemizedExpense, ItemizedTotals


class BudgetStatus(Enum):
    """Actual-vs-allocated classification of a milestone."""
    OVER_BUDGET = "over_budget"
    AT_BUDGET = "at_budget"
    UNDER_BUDGET = "under_budget"


@dataclass(frozen=True)
class WeekRange:
    start: date
    end: date


@dataclass(frozen=True)
class CategoryTotals:
    """Labour / material / other spend for a period."""
    labour_expenditure: Decimal = Decimal("0")
    material_expenditure: Decimal = Decimal("0")
    other_expenditure: Decimal = Decimal("0")

    @property
    def total(self) -> Decimal:
        return self.labour_expenditure + self.material_expenditure + self.other_expenditure


@dataclass(frozen=True)
class WeeklyNarrative:
    """Free-text sections of a weekly report."""
    work_done: str | None = None
    challenges: str | None = None
    successes: str | None = None
    next_week_plan: str | None = None
    notes: str | None = None


@dataclass(frozen=True)
class WeeklyUpdate:
    """A submitted weekly report."""
    id: UUID
    milestone_id: UUID
    sequence_number: int
    week: WeekRange
    totals: CategoryTotals
    progress_percentage: Decimal
    submitted_by_id: UUID
    narrative: WeeklyNarrative = field(default_factory=WeeklyNarrative)
    photos: tuple[str, ...] = ()
    items: tuple[ItemizedExpense, ...] = ()

    @property
    def total_expenditure(self) -> Decimal:
        return self.totals.total

    @property
    def itemized(self) -> ItemizedTotals:
        return itemized_totals(self.items)

    @property
    def material_reconciliation_gap(self) -> Decimal:
        """Itemized actual spend minus reported material spend.  Informational."""
        return self.itemized.actual - self.totals.material_expenditure


@dataclass(frozen=True)
class MilestoneFinancials:
    """Milestone actuals, recomputed from its weekly updates on every read."""
    milestone_id: UUID
    budget_allocated: Decimal
    cumulative_expenditure: Decimal
    budget_remaining: Decimal
    budget_utilization: Decimal
    latest_progress_percentage: Decimal
    variance: Decimal
    variance_ratio: Decimal
    budget_status: BudgetStatus
    update_count: int
    by_category: CategoryTotals = field(default_factory=CategoryTotals)
