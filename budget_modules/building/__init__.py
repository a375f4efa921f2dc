"""
Building Module.

Building budgets with eight fixed category allocations, expenses booked
against them, and the period portfolio rollup (revenue, expenses, NOI,
occupancy, budget position).
"""

from budget_modules.building.calculations import (
    budget_health,
    building_financials,
    category_spend,
    month_bounds,
    portfolio_financials,
    previous_period,
    summarize_budget,
)
from budget_modules.building.config import BuildingConfig
from budget_modules.building.models import (
    BudgetCategory,
    BudgetExpense,
    BudgetHealth,
    BudgetSummary,
    Building,
    BuildingBudget,
    BuildingBudgetStatus,
    BuildingFinancials,
    CategoryAllocations,
    CategorySpend,
    OtherIncome,
    PortfolioFinancials,
    PropertyOrder,
    RentPayment,
    RentPaymentStatus,
    Tenant,
    TenantStatus,
)
from budget_modules.building.workflows import BUILDING_BUDGET_WORKFLOW

__all__ = [
    "budget_health",
    "building_financials",
    "category_spend",
    "month_bounds",
    "portfolio_financials",
    "previous_period",
    "summarize_budget",
    "BuildingConfig",
    "BudgetCategory",
    "BudgetExpense",
    "BudgetHealth",
    "BudgetSummary",
    "Building",
    "BuildingBudget",
    "BuildingBudgetStatus",
    "BuildingFinancials",
    "CategoryAllocations",
    "CategorySpend",
    "OtherIncome",
    "PortfolioFinancials",
    "PropertyOrder",
    "RentPayment",
    "RentPaymentStatus",
    "Tenant",
    "TenantStatus",
    "BUILDING_BUDGET_WORKFLOW",
]
