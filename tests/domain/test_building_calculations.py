"""
Building budget and portfolio calculations.

Validates:
- Budget totals are derived from allocations and expenses (50000 vs 55000 scenario)
- budget_health: OVER_BUDGET / NEAR_LIMIT / WITHIN_BUDGET thresholds
- Per-category spend
- building_financials: inclusive period filters, occupancy, collection rate
- portfolio_financials: NOI, margin, per-unit figures, zero guards
- revenue trend against the previous period
- month_bounds, previous_period
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from budget_modules.building.calculations import (
    budget_health,
    building_financials,
    category_spend,
    month_bounds,
    portfolio_financials,
    previous_period,
    summarize_budget,
)
from budget_modules.building.models import (
    BudgetCategory,
    BudgetExpense,
    BudgetHealth,
    Building,
    BuildingBudget,
    CategoryAllocations,
    OtherIncome,
    PropertyOrder,
    RentPayment,
    RentPaymentStatus,
    Tenant,
    TenantStatus,
)

MARCH = (date(2025, 3, 1), date(2025, 3, 31))

ALLOCATIONS = CategoryAllocations(
    preventative_maintenance=Decimal("10000"),
    reactive_maintenance=Decimal("8000"),
    corrective_maintenance=Decimal("5000"),
    capital_expenditures=Decimal("12000"),
    utilities=Decimal("6000"),
    insurance=Decimal("4000"),
    property_tax=Decimal("3000"),
    other=Decimal("2000"),
)


def _expense(budget_id, category, amount, day=date(2025, 3, 10)) -> BudgetExpense:
    return BudgetExpense(
        id=uuid4(),
        budget_id=budget_id,
        category=category,
        amount=Decimal(amount),
        expense_date=day,
        description=f"{category.value} work",
    )


def _budget(building_id, expenses=(), start=date(2025, 1, 1), end=date(2025, 12, 31), allocations=ALLOCATIONS):
    budget_id = uuid4()
    return BuildingBudget(
        id=budget_id,
        building_id=building_id,
        fiscal_year=2025,
        start_date=start,
        end_date=end,
        allocations=allocations,
        expenses=tuple(_expense(budget_id, c, a) for c, a in expenses),
    )


def _rent(building_id, due, amount, paid, status=RentPaymentStatus.PAID) -> RentPayment:
    return RentPayment(
        id=uuid4(),
        building_id=building_id,
        due_date=due,
        amount=Decimal(amount),
        amount_paid=Decimal(paid),
        status=status,
    )


def _tenant(building_id, status=TenantStatus.ACTIVE) -> Tenant:
    return Tenant(id=uuid4(), building_id=building_id, name="Tenant", status=status)


# =============================================================================
# Budget totals and health
# =============================================================================


class TestBudgetTotals:

    def test_overspent_budget_scenario(self):
        """Allocations of 50000 against expenses of 10000 + 20000 + 25000."""
        budget = _budget(uuid4(), [
            (BudgetCategory.CAPITAL_EXPENDITURES, "10000"),
            (BudgetCategory.PREVENTATIVE_MAINTENANCE, "20000"),
            (BudgetCategory.REACTIVE_MAINTENANCE, "25000"),
        ])
        assert budget.total_budget == Decimal("50000")
        assert budget.total_spent == Decimal("55000")
        assert budget.total_remaining == Decimal("-5000")

        summary = summarize_budget(budget)
        assert summary.utilization == Decimal("110")
        assert summary.health is BudgetHealth.OVER_BUDGET
        assert summary.expense_count == 3

    def test_empty_budget(self):
        budget = _budget(uuid4(), allocations=CategoryAllocations())
        summary = summarize_budget(budget)
        assert summary.total_budget == Decimal("0")
        assert summary.utilization == Decimal("0")
        assert summary.health is BudgetHealth.WITHIN_BUDGET


class TestBudgetHealth:

    @pytest.mark.parametrize(
        "spent, total, expected",
        [
            ("55000", "50000", BudgetHealth.OVER_BUDGET),
            ("50000", "50000", BudgetHealth.NEAR_LIMIT),
            ("45001", "50000", BudgetHealth.NEAR_LIMIT),
            ("45000", "50000", BudgetHealth.WITHIN_BUDGET),
            ("0", "50000", BudgetHealth.WITHIN_BUDGET),
            ("1", "0", BudgetHealth.OVER_BUDGET),
        ],
    )
    def test_thresholds(self, spent, total, expected):
        assert budget_health(Decimal(spent), Decimal(total)) is expected

    def test_custom_near_limit(self):
        assert budget_health(Decimal("80"), Decimal("100"), Decimal("75")) is BudgetHealth.NEAR_LIMIT


class TestCategorySpend:

    def test_per_category(self):
        budget = _budget(uuid4(), [
            (BudgetCategory.UTILITIES, "4000"),
            (BudgetCategory.UTILITIES, "2500"),
            (BudgetCategory.INSURANCE, "1000"),
        ])
        rows = {r.category: r for r in category_spend(budget)}
        assert len(rows) == 8

        utilities = rows[BudgetCategory.UTILITIES]
        assert utilities.allocated == Decimal("6000")
        assert utilities.spent == Decimal("6500")
        assert utilities.remaining == Decimal("-500")
        assert utilities.is_over

        insurance = rows[BudgetCategory.INSURANCE]
        assert insurance.utilization == Decimal("25")
        assert not insurance.is_over

        assert rows[BudgetCategory.OTHER].spent == Decimal("0")


# =============================================================================
# Per-building figures
# =============================================================================


class TestBuildingFinancials:

    def test_period_filters_are_inclusive(self):
        building = Building(id=uuid4(), name="Oak Court", number_of_units=4)
        bid = building.id
        result = building_financials(
            building, *MARCH,
            rent_payments=[
                _rent(bid, date(2025, 3, 1), "1000", "1000"),
                _rent(bid, date(2025, 3, 31), "1000", "500", RentPaymentStatus.PARTIAL),
                _rent(bid, date(2025, 4, 1), "1000", "1000"),
            ],
            other_income=[
                OtherIncome(uuid4(), bid, date(2025, 3, 15), Decimal("200")),
                OtherIncome(uuid4(), bid, date(2025, 2, 28), Decimal("999")),
            ],
            orders=[
                PropertyOrder(uuid4(), bid, date(2025, 3, 20), Decimal("300"), Decimal("150")),
                PropertyOrder(uuid4(), bid, date(2025, 5, 1), Decimal("999"), Decimal("0")),
            ],
        )
        assert result.rental_income == Decimal("1500")
        assert result.expected_rental_income == Decimal("2000")
        assert result.rent_collection_rate == Decimal("75")
        assert result.other_income == Decimal("200")
        assert result.total_revenue == Decimal("1700")
        assert result.order_costs == Decimal("450")
        assert result.total_expenses == Decimal("450")
        assert result.net_operating_income == Decimal("1250")
        assert result.partial_rent_count == 1

    def test_overlapping_budget_contributes_all_expenses(self):
        building = Building(id=uuid4(), name="Oak Court")
        budget = _budget(building.id, [(BudgetCategory.UTILITIES, "1200")])
        outside = _budget(
            building.id, [(BudgetCategory.UTILITIES, "5000")],
            start=date(2024, 1, 1), end=date(2024, 12, 31),
        )
        result = building_financials(building, *MARCH, budgets=[budget, outside])
        assert result.budget_expenses == Decimal("1200")
        assert result.budget_total == Decimal("50000")
        assert result.budget_remaining == Decimal("48800")

    def test_occupancy(self):
        building = Building(id=uuid4(), name="Oak Court", number_of_units=5)
        tenants = [
            _tenant(building.id),
            _tenant(building.id),
            _tenant(building.id, TenantStatus.INACTIVE),
        ]
        result = building_financials(building, *MARCH, tenants=tenants)
        assert result.total_units == 5
        assert result.occupied_units == 2
        assert result.vacant_units == 3
        assert result.occupancy_rate == Decimal("40")

    def test_units_default_to_tenant_count(self):
        building = Building(id=uuid4(), name="Oak Court")
        result = building_financials(building, *MARCH, tenants=[_tenant(building.id)])
        assert result.total_units == 1
        assert result.occupancy_rate == Decimal("100")

    def test_no_records(self):
        building = Building(id=uuid4(), name="Empty")
        result = building_financials(building, *MARCH)
        assert result.total_revenue == Decimal("0")
        assert result.profit_margin == Decimal("0")
        assert result.rent_collection_rate == Decimal("0")
        assert result.occupancy_rate == Decimal("0")


# =============================================================================
# Portfolio rollup
# =============================================================================


class TestPortfolioFinancials:

    def _two_buildings(self):
        a = Building(id=uuid4(), name="A", number_of_units=4)
        b = Building(id=uuid4(), name="B", number_of_units=6)
        fa = building_financials(
            a, *MARCH,
            tenants=[_tenant(a.id) for _ in range(3)],
            rent_payments=[_rent(a.id, date(2025, 3, 1), "4000", "4000")],
            budgets=[_budget(a.id, [(BudgetCategory.UTILITIES, "1000")])],
        )
        fb = building_financials(
            b, *MARCH,
            tenants=[_tenant(b.id) for _ in range(6)],
            rent_payments=[_rent(b.id, date(2025, 3, 1), "6000", "3000", RentPaymentStatus.PARTIAL)],
            other_income=[OtherIncome(uuid4(), b.id, date(2025, 3, 5), Decimal("1000"))],
            orders=[PropertyOrder(uuid4(), b.id, date(2025, 3, 9), Decimal("400"), Decimal("600"))],
        )
        return fa, fb

    def test_rollup(self):
        fa, fb = self._two_buildings()
        result = portfolio_financials(*MARCH, [fa, fb], [Decimal("1500"), Decimal("500")])

        assert result.building_count == 2
        assert result.rental_income == Decimal("7000")
        assert result.other_income == Decimal("1000")
        assert result.total_revenue == Decimal("8000")
        assert result.budget_expenses == Decimal("1000")
        assert result.order_costs == Decimal("1000")
        assert result.contractor_payments == Decimal("2000")
        assert result.total_expenses == Decimal("4000")
        assert result.net_operating_income == Decimal("4000")
        assert result.profit_margin == Decimal("50")
        assert result.total_units == 10
        assert result.occupied_units == 9
        assert result.vacant_units == 1
        assert result.occupancy_rate == Decimal("90")
        assert result.revenue_per_unit == Decimal("800")
        assert result.expense_per_unit == Decimal("400")
        assert result.net_income_per_unit == Decimal("400")
        # mean of 100% and 50%
        assert result.rent_collection_rate == Decimal("75")
        assert result.contractor_payment_count == 2
        assert result.average_contractor_payment == Decimal("1000")

    def test_contractor_payments_only_at_portfolio_level(self):
        fa, fb = self._two_buildings()
        result = portfolio_financials(*MARCH, [fa, fb], [Decimal("2000")])
        assert sum(b.total_expenses for b in result.buildings) == Decimal("2000")
        assert result.total_expenses == Decimal("4000")

    def test_empty_portfolio(self):
        result = portfolio_financials(*MARCH, [])
        assert result.building_count == 0
        assert result.profit_margin == Decimal("0")
        assert result.revenue_per_unit == Decimal("0")
        assert result.occupancy_rate == Decimal("0")
        assert result.rent_collection_rate == Decimal("0")
        assert result.average_contractor_payment == Decimal("0")

    def test_negative_noi_margin(self):
        building = Building(id=uuid4(), name="A", number_of_units=1)
        fin = building_financials(
            building, *MARCH,
            other_income=[OtherIncome(uuid4(), building.id, date(2025, 3, 5), Decimal("100"))],
        )
        result = portfolio_financials(*MARCH, [fin], [Decimal("300")])
        assert result.net_operating_income == Decimal("-200")
        assert result.profit_margin == Decimal("-200")

    def test_revenue_trend(self):
        fa, fb = self._two_buildings()
        result = portfolio_financials(*MARCH, [fa, fb], previous_period_revenue=Decimal("6400"))
        assert result.previous_period_revenue == Decimal("6400")
        # (8000 - 6400) / 6400
        assert result.revenue_trend == Decimal("25")

    def test_revenue_trend_without_previous_revenue(self):
        fa, fb = self._two_buildings()
        result = portfolio_financials(*MARCH, [fa, fb])
        assert result.previous_period_revenue == Decimal("0")
        assert result.revenue_trend == Decimal("0")


class TestMonthBounds:

    @pytest.mark.parametrize(
        "day, expected",
        [
            (date(2025, 3, 15), (date(2025, 3, 1), date(2025, 3, 31))),
            (date(2025, 2, 1), (date(2025, 2, 1), date(2025, 2, 28))),
            (date(2024, 2, 29), (date(2024, 2, 1), date(2024, 2, 29))),
            (date(2025, 12, 31), (date(2025, 12, 1), date(2025, 12, 31))),
        ],
    )
    def test_bounds(self, day, expected):
        assert month_bounds(day) == expected


class TestPreviousPeriod:

    @pytest.mark.parametrize(
        "period, expected",
        [
            (MARCH, (date(2025, 2, 1), date(2025, 2, 28))),
            ((date(2024, 3, 1), date(2024, 3, 31)), (date(2024, 2, 1), date(2024, 2, 29))),
            ((date(2025, 1, 1), date(2025, 1, 31)), (date(2024, 12, 1), date(2024, 12, 31))),
            ((date(2025, 5, 10), date(2025, 7, 31)), (date(2025, 4, 10), date(2025, 6, 30))),
        ],
    )
    def test_shifted_back_one_month(self, period, expected):
        assert previous_period(*period) == expected
