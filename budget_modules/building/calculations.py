"""
Building budget and portfolio calculations (``budget_modules.building.calculations``).

Responsibility
--------------
Pure functions that turn persisted building records into budget summaries,
per-building period figures and the portfolio rollup.

Architecture position
---------------------
**Modules layer** -- pure calculation.  ``BuildingBudgetService`` loads the
records and calls in here; nothing in this file touches a session.

Invariants enforced
-------------------
* Health: spent > total is OVER_BUDGET; otherwise utilization above the
  near-limit percentage is NEAR_LIMIT; otherwise WITHIN_BUDGET.
* Period filters are inclusive on both ends: rent by due date, other
  income by received date, orders by order date, budgets by overlap.
* A budget overlapping the period contributes all of its expenses.
* Every ratio divides through ``safe_ratio``; an empty denominator gives 0.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Iterable, Sequence

from budget_kernel.domain.values import decimal_sum, safe_percentage, safe_ratio
from budget_modules.building.models import (
    BudgetCategory,
    BudgetHealth,
    BudgetSummary,
    Building,
    BuildingBudget,
    BuildingFinancials,
    CategorySpend,
    OtherIncome,
    PortfolioFinancials,
    PropertyOrder,
    RentPayment,
    RentPaymentStatus,
    Tenant,
    TenantStatus,
)

DEFAULT_NEAR_LIMIT = Decimal("90")


def _in_period(day: date, start: date, end: date) -> bool:
    return start <= day <= end


def budget_health(
    spent: Decimal,
    total: Decimal,
    near_limit: Decimal = DEFAULT_NEAR_LIMIT,
) -> BudgetHealth:
    if spent > total:
        return BudgetHealth.OVER_BUDGET
    if safe_percentage(spent, total) > near_limit:
        return BudgetHealth.NEAR_LIMIT
    return BudgetHealth.WITHIN_BUDGET


def category_spend(budget: BuildingBudget) -> tuple[CategorySpend, ...]:
    """Allocated vs. spent for each of the eight categories, in enum order."""
    rows = []
    for category in BudgetCategory:
        allocated = budget.allocations.get(category)
        spent = decimal_sum(e.amount for e in budget.expenses if e.category == category)
        rows.append(CategorySpend(
            category=category,
            allocated=allocated,
            spent=spent,
            remaining=allocated - spent,
            utilization=safe_percentage(spent, allocated),
            is_over=spent > allocated,
        ))
    return tuple(rows)


def summarize_budget(
    budget: BuildingBudget,
    near_limit: Decimal = DEFAULT_NEAR_LIMIT,
) -> BudgetSummary:
    total = budget.total_budget
    spent = budget.total_spent
    return BudgetSummary(
        budget_id=budget.id,
        building_id=budget.building_id,
        total_budget=total,
        total_spent=spent,
        total_remaining=total - spent,
        utilization=safe_percentage(spent, total),
        health=budget_health(spent, total, near_limit),
        expense_count=len(budget.expenses),
        categories=category_spend(budget),
    )


def building_financials(
    building: Building,
    period_start: date,
    period_end: date,
    *,
    tenants: Iterable[Tenant] = (),
    rent_payments: Iterable[RentPayment] = (),
    other_income: Iterable[OtherIncome] = (),
    orders: Iterable[PropertyOrder] = (),
    budgets: Iterable[BuildingBudget] = (),
) -> BuildingFinancials:
    """
    One building's revenue, expenses, budget position and occupancy for a period.

    Records outside the period are ignored here, so callers may pass a
    building's full history.
    """
    rent = [r for r in rent_payments if _in_period(r.due_date, period_start, period_end)]
    income = [i for i in other_income if _in_period(i.received_date, period_start, period_end)]
    period_orders = [o for o in orders if _in_period(o.order_date, period_start, period_end)]
    period_budgets = [b for b in budgets if b.overlaps(period_start, period_end)]

    rental_income = decimal_sum(r.amount_paid for r in rent)
    expected_rent = decimal_sum(r.amount for r in rent)
    other = decimal_sum(i.amount for i in income)
    revenue = rental_income + other

    budget_total = decimal_sum(b.total_budget for b in period_budgets)
    budget_spent = decimal_sum(b.total_spent for b in period_budgets)
    order_costs = decimal_sum(o.total_cost for o in period_orders)
    expenses = budget_spent + order_costs
    noi = revenue - expenses

    occupied = sum(1 for t in tenants if t.status == TenantStatus.ACTIVE)
    total_units = building.number_of_units or occupied

    return BuildingFinancials(
        building_id=building.id,
        building_name=building.name,
        rental_income=rental_income,
        expected_rental_income=expected_rent,
        rent_collection_rate=safe_percentage(rental_income, expected_rent),
        other_income=other,
        total_revenue=revenue,
        budget_expenses=budget_spent,
        order_costs=order_costs,
        total_expenses=expenses,
        net_operating_income=noi,
        profit_margin=safe_percentage(noi, revenue),
        budget_total=budget_total,
        budget_spent=budget_spent,
        budget_remaining=budget_total - budget_spent,
        budget_utilization=safe_percentage(budget_spent, budget_total),
        total_units=total_units,
        occupied_units=occupied,
        vacant_units=max(total_units - occupied, 0),
        occupancy_rate=safe_percentage(Decimal(occupied), Decimal(total_units)),
        overdue_rent_count=sum(1 for r in rent if r.status == RentPaymentStatus.OVERDUE),
        partial_rent_count=sum(1 for r in rent if r.status == RentPaymentStatus.PARTIAL),
    )


def portfolio_financials(
    period_start: date,
    period_end: date,
    buildings: Sequence[BuildingFinancials],
    contractor_payments: Sequence[Decimal] = (),
    previous_period_revenue: Decimal = Decimal("0"),
) -> PortfolioFinancials:
    """
    Roll per-building figures up to the portfolio.

    Contractor payments are counted only at this level; they are not
    attributed to individual buildings.  The collection rate is the plain
    mean of the building rates, buildings with no rent due counting as 0.

    ``revenue_trend`` compares this period's total revenue with
    ``previous_period_revenue`` (rent collected in the window returned by
    ``previous_period``) as a percentage change; 0 when nothing was
    collected before.
    """
    rental_income = decimal_sum(b.rental_income for b in buildings)
    other = decimal_sum(b.other_income for b in buildings)
    revenue = rental_income + other

    budget_expenses = decimal_sum(b.budget_expenses for b in buildings)
    order_costs = decimal_sum(b.order_costs for b in buildings)
    contractor_total = decimal_sum(contractor_payments)
    expenses = budget_expenses + order_costs + contractor_total
    noi = revenue - expenses

    total_units = sum(b.total_units for b in buildings)
    occupied = sum(b.occupied_units for b in buildings)
    units = Decimal(total_units)

    budget_total = decimal_sum(b.budget_total for b in buildings)
    budget_spent = decimal_sum(b.budget_spent for b in buildings)

    collection_rate = safe_ratio(
        decimal_sum(b.rent_collection_rate for b in buildings), Decimal(len(buildings)),
    )
    revenue_per_unit = safe_ratio(revenue, units)
    expense_per_unit = safe_ratio(expenses, units)

    return PortfolioFinancials(
        period_start=period_start,
        period_end=period_end,
        building_count=len(buildings),
        rental_income=rental_income,
        other_income=other,
        total_revenue=revenue,
        budget_expenses=budget_expenses,
        contractor_payments=contractor_total,
        order_costs=order_costs,
        total_expenses=expenses,
        net_operating_income=noi,
        profit_margin=safe_percentage(noi, revenue),
        total_units=total_units,
        occupied_units=occupied,
        vacant_units=sum(b.vacant_units for b in buildings),
        occupancy_rate=safe_percentage(Decimal(occupied), units),
        revenue_per_unit=revenue_per_unit,
        expense_per_unit=expense_per_unit,
        net_income_per_unit=revenue_per_unit - expense_per_unit,
        rent_collection_rate=collection_rate,
        budget_total=budget_total,
        budget_spent=budget_spent,
        budget_remaining=budget_total - budget_spent,
        budget_utilization=safe_percentage(budget_spent, budget_total),
        contractor_payment_count=len(contractor_payments),
        average_contractor_payment=safe_ratio(contractor_total, Decimal(len(contractor_payments))),
        previous_period_revenue=previous_period_revenue,
        revenue_trend=safe_percentage(revenue - previous_period_revenue, previous_period_revenue),
        buildings=tuple(buildings),
    )


def month_bounds(day: date) -> tuple[date, date]:
    """First and last day of ``day``'s calendar month."""
    start = day.replace(day=1)
    if start.month == 12:
        following = start.replace(year=start.year + 1, month=1)
    else:
        following = start.replace(month=start.month + 1)
    return start, date.fromordinal(following.toordinal() - 1)



def _one_month_earlier(day: date) -> date:
    first, _ = month_bounds(day)
    prior_start, prior_end = month_bounds(date.fromordinal(first.toordinal() - 1))
    return prior_start.replace(day=min(day.day, prior_end.day))


def previous_period(period_start: date, period_end: date) -> tuple[date, date]:
    """
    Both ends moved back one calendar month, clamped to month end.

    ``(2025-03-01, 2025-03-31)`` gives ``(2025-02-01, 2025-02-28)``.
    """
    return _one_month_earlier(period_start), _one_month_earlier(period_end)
