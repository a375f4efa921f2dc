"""
Weekly Module.

Weekly progress reports per milestone and the milestone financial rollup
(cumulative expenditure, remaining budget, utilization, latest progress,
budget-status classification).
"""

from budget_modules.weekly.aggregation import (
    budget_utilization,
    classify_budget_status,
    compute_milestone_financials,
    cumulative_expenditure,
    latest_progress_percentage,
)
from budget_modules.weekly.models import (
    BudgetStatus,
    CategoryTotals,
    MilestoneFinancials,
    WeeklyNarrative,
    WeeklyUpdate,
    WeekRange,
)

__all__ = [
    "BudgetStatus",
    "CategoryTotals",
    "MilestoneFinancials",
    "WeeklyNarrative",
    "WeeklyUpdate",
    "WeekRange",
    "budget_utilization",
    "classify_budget_status",
    "compute_milestone_financials",
    "cumulative_expenditure",
    "latest_progress_percentage",
]
