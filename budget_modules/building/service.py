"""
Building Budget Service (``budget_modules.building.service``).

Responsibility
--------------
Register buildings and the records that feed their financials (tenants,
rent schedule, other income, property orders), manage building budgets
and their expenses, and compute budget summaries and the portfolio
rollup for a reporting period.

Architecture position
---------------------
**Modules layer** -- sole writer of the building tables.  Contractor
payments come from ``PaymentRequestService`` and are passed in by the
aggregation facade; this module never imports the payment module.

Invariants enforced
-------------------
* Each public method owns the transaction boundary.
* Budget total, spent and remaining are never stored; every read derives
  them from the allocation columns and the expense rows.
* Expense amounts and allocations are non-negative.
* Budget status moves go through ``BUILDING_BUDGET_WORKFLOW``.

Failure modes
-------------
* Unknown building/tenant/budget/expense -> ``*NotFoundError``.
* Unknown category or status, quarter outside 1..4 -> ``InvalidCategoryError``.
* End before start -> ``InvalidDateRangeError``.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Mapping, Sequence
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from budget_kernel.domain.clock import Clock, SystemClock
from budget_kernel.domain.identity import Actor
from budget_kernel.domain.values import (
    decimal_sum,
    optional_text,
    require_non_negative,
    require_text,
    to_decimal,
)
from budget_kernel.exceptions import (
    BudgetExpenseNotFoundError,
    BudgetNotFoundError,
    BuildingNotFoundError,
    InvalidCategoryError,
    TenantNotFoundError,
)
from budget_kernel.logging_config import LogContext, get_logger
from budget_modules._helpers import check_date_range, coerce_enum
from budget_modules.building.calculations import (
    building_financials,
    month_bounds,
    portfolio_financials,
    previous_period,
    summarize_budget,
)
from budget_modules.building.config import BuildingConfig
from budget_modules.building.models import (
    BudgetCategory,
    BudgetExpense,
    BudgetSummary,
    Building,
    BuildingBudget,
    BuildingBudgetStatus,
    CategoryAllocations,
    OtherIncome,
    PortfolioFinancials,
    PropertyOrder,
    RentPayment,
    RentPaymentStatus,
    Tenant,
    TenantStatus,
)
from budget_modules.building.orm import (
    BudgetExpenseModel,
    BuildingBudgetModel,
    BuildingModel,
    OtherIncomeModel,
    PropertyOrderModel,
    RentPaymentModel,
    TenantModel,
)
from budget_modules.building.workflows import BUILDING_BUDGET_WORKFLOW

logger = get_logger("modules.building.service")

AllocationInput = CategoryAllocations | Mapping[BudgetCategory | str, Decimal | int | str]

_QUARTERS = ("1", "2", "3", "4")


def _allocation_values(allocations: AllocationInput | None) -> dict[str, Decimal]:
    """Validated ``{category_value: amount}`` for the categories supplied."""
    if allocations is None:
        return {}
    if isinstance(allocations, CategoryAllocations):
        raw = allocations.as_dict()
    else:
        raw = {
            coerce_enum(BudgetCategory, key, "category").value: amount
            for key, amount in allocations.items()
        }
    return {name: require_non_negative(name, amount) for name, amount in raw.items()}


def _check_quarter(quarter: int | None) -> int | None:
    if quarter is not None and str(quarter) not in _QUARTERS:
        raise InvalidCategoryError("quarter", quarter, _QUARTERS)
    return quarter


class BuildingBudgetService:
    """
    Building budgets and the portfolio financial rollup.

    Contract
    --------
    * Mutating methods take the acting ``Actor`` and return frozen DTOs.
    * ``get_portfolio_financials`` defaults to the clock's current
      calendar month when no period is given.

    Non-goals
    ---------
    * Does NOT reconcile rent schedules with bank data.
    * Does NOT enforce that an expense date lies inside its budget period.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        config: BuildingConfig | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._config = config or BuildingConfig.with_defaults()

    # =========================================================================
    # Buildings and occupancy
    # =========================================================================

    def register_building(
        self,
        name: str,
        actor: Actor,
        *,
        address: str | None = None,
        number_of_units: int = 0,
        property_manager_id: UUID | None = None,
    ) -> Building:
        try:
            model = BuildingModel(
                name=require_text("name", name),
                address=optional_text(address),
                number_of_units=int(require_non_negative("number_of_units", number_of_units)),
                property_manager_id=property_manager_id,
                created_by_id=actor.actor_id,
            )
            self._session.add(model)
            self._session.flush()
            with LogContext.bind(entity_id=model.id, **actor.log_fields()):
                logger.info("building_registered", extra={
                    "building_name": model.name,
                    "number_of_units": number_of_units,
                })
            self._session.commit()
            return model.to_dto()
        except Exception:
            self._session.rollback()
            raise

    def get_building(self, building_id: UUID) -> Building:
        return self._load_building(building_id).to_dto()

    def list_buildings(
        self,
        building_ids: Sequence[UUID] | None = None,
        property_manager_id: UUID | None = None,
    ) -> list[Building]:
        return [m.to_dto() for m in self._building_models(building_ids, property_manager_id)]

    def add_tenant(
        self,
        building_id: UUID,
        name: str,
        actor: Actor,
        unit_number: str | None = None,
        status: TenantStatus | str = TenantStatus.ACTIVE,
    ) -> Tenant:
        try:
            building = self._load_building(building_id)
            model = TenantModel(
                building_id=building_id,
                name=require_text("name", name),
                unit_number=optional_text(unit_number),
                status=coerce_enum(TenantStatus, status, "status").value,
                created_by_id=actor.actor_id,
            )
            building.tenants.append(model)
            self._session.flush()
            with LogContext.bind(entity_id=model.id, **actor.log_fields()):
                logger.info("tenant_added", extra={
                    "building_id": str(building_id),
                    "status": model.status,
                })
            self._session.commit()
            return model.to_dto()
        except Exception:
            self._session.rollback()
            raise

    def set_tenant_status(
        self, tenant_id: UUID, status: TenantStatus | str, actor: Actor,
    ) -> Tenant:
        try:
            model = self._session.get(TenantModel, tenant_id)
            if model is None:
                raise TenantNotFoundError(str(tenant_id))
            target = coerce_enum(TenantStatus, status, "status")
            if model.status != target.value:
                previous = model.status
                model.status = target.value
                model.updated_by_id = actor.actor_id
                self._session.flush()
                with LogContext.bind(entity_id=tenant_id, **actor.log_fields()):
                    logger.info("tenant_status_changed", extra={
                        "from_status": previous,
                        "to_status": target.value,
                    })
            self._session.commit()
            return model.to_dto()
        except Exception:
            self._session.rollback()
            raise

    def record_rent_payment(
        self,
        building_id: UUID,
        due_date: date,
        amount: Decimal | int | str,
        actor: Actor,
        *,
        amount_paid: Decimal | int | str = Decimal("0"),
        status: RentPaymentStatus | str = RentPaymentStatus.PENDING,
        tenant_id: UUID | None = None,
    ) -> RentPayment:
        """Record a rent amount due and what has been paid against it."""
        try:
            self._load_building(building_id)
            if tenant_id is not None:
                tenant = self._session.get(TenantModel, tenant_id)
                if tenant is None or tenant.building_id != building_id:
                    raise TenantNotFoundError(str(tenant_id))
            model = RentPaymentModel(
                building_id=building_id,
                tenant_id=tenant_id,
                due_date=due_date,
                amount=require_non_negative("amount", amount),
                amount_paid=require_non_negative("amount_paid", amount_paid),
                status=coerce_enum(RentPaymentStatus, status, "status").value,
                created_by_id=actor.actor_id,
            )
            self._session.add(model)
            self._session.flush()
            with LogContext.bind(entity_id=model.id, **actor.log_fields()):
                logger.info("rent_payment_recorded", extra={
                    "building_id": str(building_id),
                    "amount": str(model.amount),
                    "amount_paid": str(model.amount_paid),
                    "status": model.status,
                })
            self._session.commit()
            return model.to_dto()
        except Exception:
            self._session.rollback()
            raise

    def record_other_income(
        self,
        building_id: UUID,
        received_date: date,
        amount: Decimal | int | str,
        actor: Actor,
        description: str | None = None,
    ) -> OtherIncome:
        try:
            self._load_building(building_id)
            model = OtherIncomeModel(
                building_id=building_id,
                received_date=received_date,
                amount=require_non_negative("amount", amount),
                description=optional_text(description),
                created_by_id=actor.actor_id,
            )
            self._session.add(model)
            self._session.flush()
            with LogContext.bind(entity_id=model.id, **actor.log_fields()):
                logger.info("other_income_recorded", extra={
                    "building_id": str(building_id),
                    "amount": str(model.amount),
                })
            self._session.commit()
            return model.to_dto()
        except Exception:
            self._session.rollback()
            raise

    def record_order(
        self,
        building_id: UUID,
        order_date: date,
        actor: Actor,
        *,
        material_cost: Decimal | int | str = Decimal("0"),
        labour_cost: Decimal | int | str = Decimal("0"),
        description: str | None = None,
    ) -> PropertyOrder:
        try:
            self._load_building(building_id)
            model = PropertyOrderModel(
                building_id=building_id,
                order_date=order_date,
                material_cost=require_non_negative("material_cost", material_cost),
                labour_cost=require_non_negative("labour_cost", labour_cost),
                description=optional_text(description),
                created_by_id=actor.actor_id,
            )
            self._session.add(model)
            self._session.flush()
            order = model.to_dto()
            with LogContext.bind(entity_id=model.id, **actor.log_fields()):
                logger.info("property_order_recorded", extra={
                    "building_id": str(building_id),
                    "total_cost": str(order.total_cost),
                })
            self._session.commit()
            return order
        except Exception:
            self._session.rollback()
            raise

    # =========================================================================
    # Budgets
    # =========================================================================

    def create_budget(
        self,
        building_id: UUID,
        fiscal_year: int,
        start_date: date,
        end_date: date,
        actor: Actor,
        *,
        allocations: AllocationInput | None = None,
        quarter: int | None = None,
        status: BuildingBudgetStatus | str = BuildingBudgetStatus.DRAFT,
        notes: str | None = None,
    ) -> BuildingBudget:
        """
        Create a budget with per-category allocations.

        Categories not supplied are allocated 0.  The total is the sum of
        the allocations and is derived on every read.
        """
        try:
            self._load_building(building_id)
            check_date_range(start_date, end_date, "budget_period")
            model = BuildingBudgetModel(
                building_id=building_id,
                fiscal_year=fiscal_year,
                quarter=_check_quarter(quarter),
                start_date=start_date,
                end_date=end_date,
                status=coerce_enum(BuildingBudgetStatus, status, "status").value,
                notes=optional_text(notes),
                created_by_id=actor.actor_id,
                **_allocation_values(allocations),
            )
            self._session.add(model)
            self._session.flush()
            budget = model.to_dto()
            with LogContext.bind(entity_id=model.id, **actor.log_fields()):
                logger.info("building_budget_created", extra={
                    "building_id": str(building_id),
                    "fiscal_year": fiscal_year,
                    "quarter": quarter,
                    "total_budget": str(budget.total_budget),
                })
            self._session.commit()
            return budget
        except Exception:
            self._session.rollback()
            raise

    def update_budget(
        self,
        budget_id: UUID,
        actor: Actor,
        *,
        allocations: AllocationInput | None = None,
        status: BuildingBudgetStatus | str | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
        notes: str | None = None,
    ) -> BuildingBudget:
        """
        Change allocations, period, status or notes.

        ``allocations`` given as a mapping replaces only the categories it
        names; a ``CategoryAllocations`` replaces all eight.
        """
        try:
            model = self._load_budget(budget_id, for_update=True)
            for name, amount in _allocation_values(allocations).items():
                setattr(model, name, amount)
            new_start = start_date or model.start_date
            new_end = end_date or model.end_date
            check_date_range(new_start, new_end, "budget_period")
            model.start_date, model.end_date = new_start, new_end
            if status is not None:
                target = coerce_enum(BuildingBudgetStatus, status, "status")
                if target.value != model.status:
                    BUILDING_BUDGET_WORKFLOW.require_transition(model.status, target.value)
                    model.status = target.value
            if notes is not None:
                model.notes = optional_text(notes)
            model.updated_by_id = actor.actor_id
            self._session.flush()
            budget = model.to_dto()
            with LogContext.bind(entity_id=budget_id, **actor.log_fields()):
                logger.info("building_budget_updated", extra={
                    "status": model.status,
                    "total_budget": str(budget.total_budget),
                    "total_spent": str(budget.total_spent),
                })
            self._session.commit()
            return budget
        except Exception:
            self._session.rollback()
            raise

    def add_expense(
        self,
        budget_id: UUID,
        category: BudgetCategory | str,
        amount: Decimal | int | str,
        expense_date: date,
        description: str,
        actor: Actor,
        *,
        receipt_url: str | None = None,
        invoice_url: str | None = None,
        reference_type: str | None = None,
        reference_id: str | None = None,
        notes: str | None = None,
    ) -> BudgetExpense:
        """Book an expense against one category of a budget."""
        try:
            budget = self._load_budget(budget_id, for_update=True)
            model = BudgetExpenseModel(
                budget_id=budget_id,
                category=coerce_enum(BudgetCategory, category, "category").value,
                amount=require_non_negative("amount", amount),
                expense_date=expense_date,
                description=require_text("description", description),
                receipt_url=optional_text(receipt_url),
                invoice_url=optional_text(invoice_url),
                reference_type=optional_text(reference_type),
                reference_id=optional_text(reference_id),
                notes=optional_text(notes),
                created_by_id=actor.actor_id,
            )
            budget.expenses.append(model)
            self._session.flush()
            summary = summarize_budget(budget.to_dto(), self._config.near_limit_utilization)
            with LogContext.bind(entity_id=model.id, **actor.log_fields()):
                logger.info("budget_expense_added", extra={
                    "budget_id": str(budget_id),
                    "category": model.category,
                    "amount": str(model.amount),
                    "total_spent": str(summary.total_spent),
                    "health": summary.health.value,
                })
            self._session.commit()
            return model.to_dto()
        except Exception:
            self._session.rollback()
            raise

    def delete_budget_expense(self, expense_id: UUID, actor: Actor) -> BuildingBudget:
        """Remove an expense; the budget's spent figure drops with it."""
        try:
            expense = self._session.get(BudgetExpenseModel, expense_id)
            if expense is None:
                raise BudgetExpenseNotFoundError(str(expense_id))
            budget = self._load_budget(expense.budget_id, for_update=True)
            budget.expenses.remove(expense)
            self._session.flush()
            with LogContext.bind(entity_id=expense_id, **actor.log_fields()):
                logger.info("budget_expense_deleted", extra={
                    "budget_id": str(budget.id),
                    "amount": str(expense.amount),
                })
            self._session.commit()
            return budget.to_dto()
        except Exception:
            self._session.rollback()
            raise

    def get_budget(self, budget_id: UUID) -> BuildingBudget:
        return self._load_budget(budget_id).to_dto()

    def list_budgets(self, building_id: UUID) -> list[BuildingBudget]:
        stmt = (
            select(BuildingBudgetModel)
            .where(BuildingBudgetModel.building_id == building_id)
            .order_by(BuildingBudgetModel.start_date)
        )
        return [m.to_dto() for m in self._session.scalars(stmt)]

    def get_budget_summary(self, budget_id: UUID) -> BudgetSummary:
        return summarize_budget(self.get_budget(budget_id), self._config.near_limit_utilization)

    # =========================================================================
    # Portfolio
    # =========================================================================

    def get_portfolio_financials(
        self,
        period_start: date | None = None,
        period_end: date | None = None,
        *,
        building_ids: Sequence[UUID] | None = None,
        property_manager_id: UUID | None = None,
        contractor_payments: Sequence[Decimal | int | str] = (),
    ) -> PortfolioFinancials:
        """
        Revenue, expenses, NOI, occupancy and budget position across buildings,
        with the revenue trend against the same window one month earlier.

        Args:
            period_start: Inclusive; defaults to the first of the current month.
            period_end: Inclusive; defaults to the last of the current month.
            building_ids: Restrict to these buildings.
            property_manager_id: Restrict to buildings this manager runs.
            contractor_payments: Approved contractor payment amounts decided
                in the period, supplied by the caller.
        """
        default_start, default_end = month_bounds(self._clock.today())
        start = period_start or default_start
        end = period_end or default_end
        check_date_range(start, end, "period")

        buildings = self._building_models(building_ids, property_manager_id)
        ids = [b.id for b in buildings]

        rent = self._by_building(RentPaymentModel, ids, RentPaymentModel.due_date, start, end)
        income = self._by_building(OtherIncomeModel, ids, OtherIncomeModel.received_date, start, end)
        orders = self._by_building(PropertyOrderModel, ids, PropertyOrderModel.order_date, start, end)
        budgets: dict[UUID, list[BuildingBudget]] = defaultdict(list)
        if ids:
            stmt = select(BuildingBudgetModel).where(
                BuildingBudgetModel.building_id.in_(ids),
                BuildingBudgetModel.start_date <= end,
                BuildingBudgetModel.end_date >= start,
            )
            for model in self._session.scalars(stmt):
                budgets[model.building_id].append(model.to_dto())

        per_building = [
            building_financials(
                b.to_dto(), start, end,
                tenants=[t.to_dto() for t in b.tenants],
                rent_payments=rent[b.id],
                other_income=income[b.id],
                orders=orders[b.id],
                budgets=budgets[b.id],
            )
            for b in buildings
        ]
        prior_start, prior_end = previous_period(start, end)
        prior_rent = self._by_building(RentPaymentModel, ids, RentPaymentModel.due_date, prior_start, prior_end)
        result = portfolio_financials(
            start, end, per_building,
            [to_decimal(p, "contractor_payments") for p in contractor_payments],
            previous_period_revenue=decimal_sum(
                r.amount_paid for rows in prior_rent.values() for r in rows
            ),
        )
        logger.info("portfolio_financials_computed", extra={
            "period_start": start.isoformat(),
            "period_end": end.isoformat(),
            "building_count": result.building_count,
            "total_revenue": str(result.total_revenue),
            "total_expenses": str(result.total_expenses),
            "revenue_trend": str(result.revenue_trend),
        })
        return result

    # =========================================================================
    # Internals
    # =========================================================================

    def _building_models(
        self,
        building_ids: Sequence[UUID] | None,
        property_manager_id: UUID | None,
    ) -> list[BuildingModel]:
        stmt = select(BuildingModel).order_by(BuildingModel.name)
        if building_ids is not None:
            stmt = stmt.where(BuildingModel.id.in_(list(building_ids)))
        if property_manager_id is not None:
            stmt = stmt.where(BuildingModel.property_manager_id == property_manager_id)
        return list(self._session.scalars(stmt))

    def _by_building(self, orm_cls, ids: list[UUID], date_column, start: date, end: date) -> dict:
        grouped: dict[UUID, list] = defaultdict(list)
        if not ids:
            return grouped
        stmt = select(orm_cls).where(
            orm_cls.building_id.in_(ids),
            date_column >= start,
            date_column <= end,
        )
        for model in self._session.scalars(stmt):
            grouped[model.building_id].append(model.to_dto())
        return grouped

    def _load_building(self, building_id: UUID) -> BuildingModel:
        model = self._session.get(BuildingModel, building_id)
        if model is None:
            raise BuildingNotFoundError(str(building_id))
        return model

    def _load_budget(self, budget_id: UUID, for_update: bool = False) -> BuildingBudgetModel:
        stmt = select(BuildingBudgetModel).where(BuildingBudgetModel.id == budget_id)
        if for_update:
            stmt = stmt.with_for_update()
        model = self._session.scalars(stmt).one_or_none()
        if model is None:
            raise BudgetNotFoundError(str(budget_id))
        return model
