"""
Read views returned by the aggregation facade (``budget_services.views``).

Responsibility
--------------
Frozen, fully-resolved views of a milestone, a project and the portfolio,
plus ``render_to_dict`` for callers that need plain JSON-ready data (report
renderers, HTTP handlers).

Architecture position
---------------------
**Services layer** -- pure data.  Built fresh by ``AggregationService`` on
every call; nothing here is persisted or cached.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID

from budget_modules.building.models import PortfolioFinancials
from budget_modules.milestone.models import Milestone, Project
from budget_modules.payment.models import PaymentRequest, PaymentTotals
from budget_modules.risk.models import Risk, RiskCounts
from budget_modules.weekly.models import BudgetStatus, MilestoneFinancials, WeeklyUpdate


def render_to_dict(obj: object) -> dict | list | str | int | float | bool | None:
    """
    Convert any view dataclass to plain data for JSON serialization.

    Handles:
    - Decimal -> str (preserving precision)
    - UUID -> str
    - date/datetime -> ISO format string
    - Enum -> .value
    - Nested frozen dataclasses -> nested dicts
    - Tuples -> lists
    - None preserved
    """
    if obj is None:
        return None
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, UUID):
        return str(obj)
    if isinstance(obj, date):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (list, tuple)):
        return [render_to_dict(item) for item in obj]
    if isinstance(obj, dict):
        return {str(k): render_to_dict(v) for k, v in obj.items()}
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {
            f.name: render_to_dict(getattr(obj, f.name))
            for f in dataclasses.fields(obj)
        }
    if isinstance(obj, (str, int, float, bool)):
        return obj
    return str(obj)


@dataclass(frozen=True)
class MilestoneView:
    """
    Everything known about one milestone.

    ``milestone.costs`` / ``milestone.expected_profit`` are the planned cost
    side; ``financials`` is the recorded weekly expenditure.  The two are
    separate streams and both are exposed.
    """
    milestone: Milestone
    financials: MilestoneFinancials
    weekly_updates: tuple[WeeklyUpdate, ...] = ()
    risks: tuple[Risk, ...] = ()
    risk_counts: RiskCounts = field(default_factory=RiskCounts)
    payment_requests: tuple[PaymentRequest, ...] = ()
    payment_totals: PaymentTotals = field(default_factory=PaymentTotals)

    def to_dict(self) -> dict:
        return render_to_dict(self)


@dataclass(frozen=True)
class ProjectView:
    project: Project
    budget_allocated: Decimal
    cumulative_expenditure: Decimal
    budget_remaining: Decimal
    budget_utilization: Decimal
    budget_status: BudgetStatus
    overall_progress: Decimal
    milestone_status_counts: dict[str, int]
    risk_counts: RiskCounts
    payment_totals: PaymentTotals
    milestones: tuple[MilestoneView, ...] = ()

    def to_dict(self) -> dict:
        return render_to_dict(self)


@dataclass(frozen=True)
class PortfolioView:
    financials: PortfolioFinancials
    contractor_payments: tuple[PaymentRequest, ...] = ()

    def to_dict(self) -> dict:
        return render_to_dict(self)
