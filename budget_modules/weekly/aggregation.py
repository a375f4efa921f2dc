"""
Milestone rollup (``budget_modules.weekly.aggregation``).

Responsibility
--------------
Pure functions turning a milestone's weekly updates into cumulative
actuals, utilization, latest progress and a budget-status classification.

Architecture position
---------------------
**Modules layer** -- pure calculation, like ``MilestoneService``'s cost
helpers.  No session, no clock.

Invariants enforced
-------------------
* Cumulative figures are sums over the updates passed in; there is no
  running counter anywhere.
* Division by a zero allocation yields 0, not an error.
* Classification boundaries: ratio > tolerance is OVER_BUDGET,
  0 < ratio <= tolerance is AT_BUDGET, otherwise UNDER_BUDGET.  With the
  default tolerance a ratio of exactly 0.10 is AT_BUDGET.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Sequence
from uuid import UUID

from budget_kernel.domain.values import ZERO, decimal_sum, safe_percentage, safe_ratio
from budget_modules.weekly.models import (
    BudgetStatus,
    CategoryTotals,
    MilestoneFinancials,
    WeeklyUpdate,
)

DEFAULT_TOLERANCE = Decimal("0.10")


def cumulative_expenditure(updates: Sequence[WeeklyUpdate]) -> Decimal:
    return decimal_sum(u.total_expenditure for u in updates)


def cumulative_by_category(updates: Sequence[WeeklyUpdate]) -> CategoryTotals:
    return CategoryTotals(
        labour_expenditure=decimal_sum(u.totals.labour_expenditure for u in updates),
        material_expenditure=decimal_sum(u.totals.material_expenditure for u in updates),
        other_expenditure=decimal_sum(u.totals.other_expenditure for u in updates),
    )


def budget_utilization(spent: Decimal, allocated: Decimal) -> Decimal:
    """Spent as a percentage of allocated; 0 when nothing is allocated."""
    return safe_percentage(spent, allocated)


def latest_progress_percentage(updates: Sequence[WeeklyUpdate]) -> Decimal:
    """
    Progress of the update with the latest week end date.

    Ties go to the later submission.  Progress may go down week to week;
    whatever the latest week says wins.
    """
    if not updates:
        return ZERO
    latest = max(updates, key=lambda u: (u.week.end, u.sequence_number))
    return latest.progress_percentage


def variance_ratio(actual: Decimal, allocated: Decimal) -> Decimal:
    return safe_ratio(actual - allocated, allocated)


def classify_budget_status(
    actual: Decimal,
    allocated: Decimal,
    tolerance: Decimal = DEFAULT_TOLERANCE,
) -> BudgetStatus:
    ratio = variance_ratio(actual, allocated)
    if ratio > tolerance:
        return BudgetStatus.OVER_BUDGET
    if ratio > 0:
        return BudgetStatus.AT_BUDGET
    return BudgetStatus.UNDER_BUDGET


def compute_milestone_financials(
    milestone_id: UUID,
    budget_allocated: Decimal,
    updates: Sequence[WeeklyUpdate],
    tolerance: Decimal = DEFAULT_TOLERANCE,
) -> MilestoneFinancials:
    spent = cumulative_expenditure(updates)
    return MilestoneFinancials(
        milestone_id=milestone_id,
        budget_allocated=budget_allocated,
        cumulative_expenditure=spent,
        budget_remaining=budget_allocated - spent,
        budget_utilization=budget_utilization(spent, budget_allocated),
        latest_progress_percentage=latest_progress_percentage(updates),
        variance=spent - budget_allocated,
        variance_ratio=variance_ratio(spent, budget_allocated),
        budget_status=classify_budget_status(spent, budget_allocated, tolerance),
        update_count=len(updates),
        by_category=cumulative_by_category(updates),
    )
