"""
Milestone Module Service (``budget_modules.milestone.service``).

Responsibility
--------------
Projects and milestones: creation, the planned cost breakdown, material
line items, supplier quotation documents, assignment and status moves.

Architecture position
---------------------
**Modules layer** -- ``MilestoneService`` is the sole public entry point
for milestone writes.  Weekly updates, risks and payment requests live in
their own modules and reference milestones by id.

Invariants enforced
-------------------
* Each public method owns the transaction boundary (``commit`` on
  success, ``rollback`` and re-raise on any exception).
* ``expected_profit`` is recomputed on every cost or material change.
* While a milestone has material line items its ``material_cost`` is the
  sum of their quantity x unit price and cannot be set directly.
* Material mutations lock the milestone row (``SELECT ... FOR UPDATE`` on
  PostgreSQL) and recompute costs before the single commit.

Failure modes
-------------
* Unknown project/milestone/item/quotation -> ``*NotFoundError``.
* Negative amount, blank name, end before start -> ``ValidationError``.
* Setting ``material_cost`` while items exist -> ``MaterialCostLockedError``.

Audit relevance
---------------
Every status move is stored in ``milestone_status_changes``; moves into a
flagged status (COMPLETED/CANCELLED by default) are also logged at WARNING
as ``milestone_status_flagged``.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from budget_kernel.domain.clock import Clock, SystemClock
from budget_kernel.domain.identity import Actor
from budget_kernel.domain.values import optional_text, require_non_negative, require_text
from budget_kernel.exceptions import (
    InvalidCategoryError,
    MaterialCostLockedError,
    MaterialItemNotFoundError,
    MilestoneNotFoundError,
    ProjectNotFoundError,
    QuotationNotFoundError,
)
from budget_kernel.logging_config import LogContext, get_logger
from budget_modules._helpers import check_date_range, coerce_enum
from budget_modules.milestone.calculations import (
    expected_profit,
    initial_milestone_status,
    material_cost,
)
from budget_modules.milestone.config import MilestoneConfig
from budget_modules.milestone.models import (
    COST_FIELDS,
    CostBreakdown,
    MaterialInput,
    Milestone,
    MilestoneStatus,
    MilestoneStatusChange,
    Project,
    ProjectStatus,
    SupplierQuotation,
)
from budget_modules.milestone.orm import (
    MaterialItemModel,
    MilestoneModel,
    MilestoneStatusChangeModel,
    ProjectModel,
    SupplierQuotationModel,
)
from budget_modules.milestone.workflows import MILESTONE_STATUS_WORKFLOW

logger = get_logger("modules.milestone.service")

_MATERIAL_FIELDS = (
    "name",
    "description",
    "quantity",
    "unit_price",
    "supplier",
    "supplier_quotation_url",
    "supplier_quotation_amount",
)


def _check_material(item: MaterialInput) -> MaterialInput:
    quotation_amount = item.supplier_quotation_amount
    if quotation_amount is not None:
        quotation_amount = require_non_negative("supplier_quotation_amount", quotation_amount)
    return replace(
        item,
        name=require_text("name", item.name),
        quantity=require_non_negative("quantity", item.quantity),
        unit_price=require_non_negative("unit_price", item.unit_price),
        description=optional_text(item.description),
        supplier=optional_text(item.supplier),
        supplier_quotation_url=optional_text(item.supplier_quotation_url),
        supplier_quotation_amount=quotation_amount,
    )


def _costs_of(model: MilestoneModel) -> CostBreakdown:
    return CostBreakdown(**{name: getattr(model, name) for name in COST_FIELDS})


class MilestoneService:
    """
    Writes and reads for projects and milestones.

    Contract
    --------
    * Every mutating method takes the acting ``Actor`` and returns a fresh
      frozen DTO read back from the session after the change.
    * ``get_*`` / ``list_*`` methods never write.

    Guarantees
    ----------
    * A material change and the resulting ``material_cost`` /
      ``expected_profit`` are committed together or not at all.
    * Clock is injectable for deterministic testing.

    Non-goals
    ---------
    * Does NOT compute actual cost or progress (see ``WeeklyUpdateService``).
    * Does NOT open or validate quotation documents; URLs are stored verbatim.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        config: MilestoneConfig | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._config = config or MilestoneConfig.with_defaults()

    # =========================================================================
    # Projects
    # =========================================================================

    def create_project(
        self,
        name: str,
        actor: Actor,
        *,
        status: ProjectStatus | str = ProjectStatus.PLANNING,
        project_number: str | None = None,
        description: str | None = None,
        estimated_budget: Decimal | int | str = Decimal("0"),
        start_date: date | None = None,
        end_date: date | None = None,
        building_id: UUID | None = None,
        customer_name: str | None = None,
    ) -> Project:
        """Create a project, optionally linked to a building."""
        try:
            check_date_range(start_date, end_date, "project_dates")
            model = ProjectModel(
                name=require_text("name", name),
                status=coerce_enum(ProjectStatus, status, "status").value,
                project_number=optional_text(project_number),
                description=optional_text(description),
                estimated_budget=require_non_negative("estimated_budget", estimated_budget),
                start_date=start_date,
                end_date=end_date,
                building_id=building_id,
                customer_name=optional_text(customer_name),
                created_by_id=actor.actor_id,
            )
            self._session.add(model)
            self._session.flush()
            with LogContext.bind(project_id=model.id, **actor.log_fields()):
                logger.info("project_created", extra={
                    "project_name": model.name,
                    "status": model.status,
                    "building_id": str(building_id) if building_id else None,
                })
            self._session.commit()
            return model.to_dto()
        except Exception:
            self._session.rollback()
            raise

    def get_project(self, project_id: UUID) -> Project:
        return self._load_project(project_id).to_dto()

    def list_projects(self, building_id: UUID | None = None) -> list[Project]:
        stmt = select(ProjectModel).order_by(ProjectModel.name)
        if building_id is not None:
            stmt = stmt.where(ProjectModel.building_id == building_id)
        return [m.to_dto() for m in self._session.scalars(stmt)]

    def set_project_status(
        self, project_id: UUID, status: ProjectStatus | str, actor: Actor,
    ) -> Project:
        try:
            target = coerce_enum(ProjectStatus, status, "status")
            model = self._load_project(project_id)
            previous = model.status
            model.status = target.value
            model.updated_by_id = actor.actor_id
            self._session.flush()
            with LogContext.bind(project_id=project_id, **actor.log_fields()):
                logger.info("project_status_changed", extra={
                    "from_status": previous,
                    "to_status": target.value,
                })
            self._session.commit()
            return model.to_dto()
        except Exception:
            self._session.rollback()
            raise

    # =========================================================================
    # Milestones
    # =========================================================================

    def create_milestone(
        self,
        project_id: UUID,
        name: str,
        actor: Actor,
        *,
        budget_allocated: Decimal | int | str = Decimal("0"),
        costs: CostBreakdown | None = None,
        materials: Sequence[MaterialInput] = (),
        description: str | None = None,
        sequence_order: int | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
        assignee_id: UUID | None = None,
        notes: str | None = None,
    ) -> Milestone:
        """
        Create a milestone under ``project_id``.

        The initial status follows the project: NOT_STARTED on an
        IN_PROGRESS project, PLANNING otherwise.  When ``materials`` is
        given, ``costs.material_cost`` is ignored and derived from them.
        """
        try:
            project = self._load_project(project_id)
            check_date_range(start_date, end_date, "milestone_dates")
            costs = costs or CostBreakdown()
            checked_materials = [_check_material(m) for m in materials]

            if sequence_order is None:
                existing = self._session.scalar(
                    select(func.count(MilestoneModel.id)).where(
                        MilestoneModel.project_id == project_id,
                    )
                )
                sequence_order = (existing or 0) + 1

            model = MilestoneModel(
                project_id=project_id,
                name=require_text("name", name),
                description=optional_text(description),
                sequence_order=sequence_order,
                status=initial_milestone_status(ProjectStatus(project.status)).value,
                budget_allocated=require_non_negative("budget_allocated", budget_allocated),
                start_date=start_date,
                end_date=end_date,
                assignee_id=assignee_id,
                notes=optional_text(notes),
                created_by_id=actor.actor_id,
            )
            for field_name in COST_FIELDS:
                setattr(model, field_name, require_non_negative(field_name, getattr(costs, field_name)))
            for item in checked_materials:
                model.materials.append(MaterialItemModel.from_input(item, created_by_id=actor.actor_id))

            self._recompute_costs(model, from_items=bool(checked_materials))
            self._session.add(model)
            self._session.flush()

            with LogContext.bind(
                project_id=project_id, milestone_id=model.id, **actor.log_fields(),
            ):
                logger.info("milestone_created", extra={
                    "milestone_name": model.name,
                    "status": model.status,
                    "budget_allocated": str(model.budget_allocated),
                    "material_count": len(checked_materials),
                    "expected_profit": str(model.expected_profit),
                })
            self._session.commit()
            return model.to_dto()
        except Exception:
            self._session.rollback()
            raise

    def get_milestone(self, milestone_id: UUID) -> Milestone:
        return self._load_milestone(milestone_id).to_dto()

    def list_milestones(self, project_id: UUID) -> list[Milestone]:
        self._load_project(project_id)
        stmt = (
            select(MilestoneModel)
            .where(MilestoneModel.project_id == project_id)
            .order_by(MilestoneModel.sequence_order, MilestoneModel.created_at)
        )
        return [m.to_dto() for m in self._session.scalars(stmt)]

    def update_milestone_costs(
        self,
        milestone_id: UUID,
        actor: Actor,
        *,
        budget_allocated: Decimal | int | str | None = None,
        labour_cost: Decimal | int | str | None = None,
        material_cost: Decimal | int | str | None = None,
        diesel_cost: Decimal | int | str | None = None,
        rent_cost: Decimal | int | str | None = None,
        admin_cost: Decimal | int | str | None = None,
        other_operational_cost: Decimal | int | str | None = None,
    ) -> Milestone:
        """Partial update of the planned costs; ``expected_profit`` follows."""
        changes = {
            "budget_allocated": budget_allocated,
            "labour_cost": labour_cost,
            "material_cost": material_cost,
            "diesel_cost": diesel_cost,
            "rent_cost": rent_cost,
            "admin_cost": admin_cost,
            "other_operational_cost": other_operational_cost,
        }
        changes = {k: v for k, v in changes.items() if v is not None}
        try:
            model = self._load_milestone(milestone_id, for_update=True)
            if "material_cost" in changes and model.materials:
                raise MaterialCostLockedError(str(milestone_id))
            for field_name, value in changes.items():
                setattr(model, field_name, require_non_negative(field_name, value))
            model.updated_by_id = actor.actor_id
            self._recompute_costs(model, from_items=bool(model.materials))
            self._session.flush()

            with LogContext.bind(milestone_id=milestone_id, **actor.log_fields()):
                logger.info("milestone_costs_updated", extra={
                    "fields": sorted(changes),
                    "expected_profit": str(model.expected_profit),
                })
            self._session.commit()
            return model.to_dto()
        except Exception:
            self._session.rollback()
            raise

    def assign_milestone(
        self, milestone_id: UUID, assignee_id: UUID | None, actor: Actor,
    ) -> Milestone:
        """Set (or clear, with None) the milestone's artisan."""
        try:
            model = self._load_milestone(milestone_id)
            model.assignee_id = assignee_id
            model.updated_by_id = actor.actor_id
            self._session.flush()
            with LogContext.bind(milestone_id=milestone_id, **actor.log_fields()):
                logger.info("milestone_assigned", extra={
                    "assignee_id": str(assignee_id) if assignee_id else None,
                })
            self._session.commit()
            return model.to_dto()
        except Exception:
            self._session.rollback()
            raise

    def set_milestone_status(
        self,
        milestone_id: UUID,
        status: MilestoneStatus | str,
        actor: Actor,
        note: str | None = None,
    ) -> Milestone:
        """
        Move a milestone to ``status``.

        Any move is allowed.  Setting the current status again is a no-op
        and records nothing.
        """
        try:
            target = coerce_enum(MilestoneStatus, status, "status")
            model = self._load_milestone(milestone_id)
            current = MilestoneStatus(model.status)
            if current is target:
                return model.to_dto()

            MILESTONE_STATUS_WORKFLOW.require_transition(current.value, target.value)
            flagged = self._config.is_flagged(target)
            model.status = target.value
            model.updated_by_id = actor.actor_id
            self._session.add(MilestoneStatusChangeModel(
                milestone_id=milestone_id,
                from_status=current.value,
                to_status=target.value,
                flagged=flagged,
                changed_at=self._clock.now(),
                note=optional_text(note),
                created_by_id=actor.actor_id,
            ))
            self._session.flush()

            with LogContext.bind(milestone_id=milestone_id, **actor.log_fields()):
                extra = {"from_status": current.value, "to_status": target.value}
                if flagged:
                    logger.warning("milestone_status_flagged", extra=extra)
                else:
                    logger.info("milestone_status_changed", extra=extra)
            self._session.commit()
            return model.to_dto()
        except Exception:
            self._session.rollback()
            raise

    def list_status_changes(
        self, milestone_id: UUID, flagged_only: bool = False,
    ) -> list[MilestoneStatusChange]:
        self._load_milestone(milestone_id)
        stmt = (
            select(MilestoneStatusChangeModel)
            .where(MilestoneStatusChangeModel.milestone_id == milestone_id)
            .order_by(MilestoneStatusChangeModel.changed_at)
        )
        if flagged_only:
            stmt = stmt.where(MilestoneStatusChangeModel.flagged.is_(True))
        return [m.to_dto() for m in self._session.scalars(stmt)]

    # =========================================================================
    # Material line items
    # =========================================================================

    def add_material_item(
        self, milestone_id: UUID, item: MaterialInput, actor: Actor,
    ) -> Milestone:
        try:
            checked = _check_material(item)
            model = self._load_milestone(milestone_id, for_update=True)
            model.materials.append(
                MaterialItemModel.from_input(checked, created_by_id=actor.actor_id)
            )
            model.updated_by_id = actor.actor_id
            self._recompute_costs(model, from_items=True)
            self._session.flush()
            self._log_material_change("material_item_added", model, actor)
            self._session.commit()
            return model.to_dto()
        except Exception:
            self._session.rollback()
            raise

    def update_material_item(self, item_id: UUID, actor: Actor, **fields) -> Milestone:
        """Edit fields of a material line item; the milestone's costs follow."""
        unknown = set(fields) - set(_MATERIAL_FIELDS)
        if unknown:
            raise InvalidCategoryError("field", sorted(unknown)[0], _MATERIAL_FIELDS)
        try:
            item = self._load_material(item_id)
            model = self._load_milestone(item.milestone_id, for_update=True)
            merged = _check_material(MaterialInput(**{
                name: fields.get(name, getattr(item, name)) for name in _MATERIAL_FIELDS
            }))
            for name in _MATERIAL_FIELDS:
                setattr(item, name, getattr(merged, name))
            item.updated_by_id = actor.actor_id
            model.updated_by_id = actor.actor_id
            self._recompute_costs(model, from_items=True)
            self._session.flush()
            self._log_material_change("material_item_updated", model, actor)
            self._session.commit()
            return model.to_dto()
        except Exception:
            self._session.rollback()
            raise

    def remove_material_item(self, item_id: UUID, actor: Actor) -> Milestone:
        """
        Delete one line item and re-derive ``material_cost`` from the rest.

        Removing the last item leaves ``material_cost`` at 0, not at the
        figure the items used to sum to, and unlocks it for
        ``update_milestone_costs``.  ``expected_profit`` follows.
        """
        try:
            item = self._load_material(item_id)
            model = self._load_milestone(item.milestone_id, for_update=True)
            model.materials.remove(item)
            model.updated_by_id = actor.actor_id
            self._recompute_costs(model, from_items=True)
            self._session.flush()
            self._log_material_change("material_item_removed", model, actor)
            self._session.commit()
            return model.to_dto()
        except Exception:
            self._session.rollback()
            raise

    # =========================================================================
    # Supplier quotations
    # =========================================================================

    def add_supplier_quotation(
        self,
        milestone_id: UUID,
        supplier_name: str,
        document_url: str,
        actor: Actor,
        amount: Decimal | int | str | None = None,
        notes: str | None = None,
    ) -> SupplierQuotation:
        try:
            model = self._load_milestone(milestone_id)
            quotation = SupplierQuotationModel(
                supplier_name=require_text("supplier_name", supplier_name),
                document_url=require_text("document_url", document_url),
                amount=require_non_negative("amount", amount) if amount is not None else None,
                notes=optional_text(notes),
                created_by_id=actor.actor_id,
            )
            model.quotations.append(quotation)
            self._session.flush()
            with LogContext.bind(milestone_id=milestone_id, **actor.log_fields()):
                logger.info("supplier_quotation_added", extra={
                    "quotation_id": str(quotation.id),
                    "supplier_name": quotation.supplier_name,
                })
            self._session.commit()
            return quotation.to_dto()
        except Exception:
            self._session.rollback()
            raise

    def remove_supplier_quotation(self, quotation_id: UUID, actor: Actor) -> None:
        try:
            quotation = self._session.get(SupplierQuotationModel, quotation_id)
            if quotation is None:
                raise QuotationNotFoundError(str(quotation_id))
            milestone_id = quotation.milestone_id
            self._load_milestone(milestone_id).quotations.remove(quotation)
            self._session.flush()
            with LogContext.bind(milestone_id=milestone_id, **actor.log_fields()):
                logger.info("supplier_quotation_removed", extra={
                    "quotation_id": str(quotation_id),
                })
            self._session.commit()
        except Exception:
            self._session.rollback()
            raise

    # =========================================================================
    # Internals
    # =========================================================================

    def _recompute_costs(self, model: MilestoneModel, from_items: bool) -> None:
        if from_items:
            model.material_cost = material_cost(model.materials)
        model.expected_profit = expected_profit(model.budget_allocated, _costs_of(model))

    def _log_material_change(self, event: str, model: MilestoneModel, actor: Actor) -> None:
        with LogContext.bind(milestone_id=model.id, **actor.log_fields()):
            logger.info(event, extra={
                "material_count": len(model.materials),
                "material_cost": str(model.material_cost),
                "expected_profit": str(model.expected_profit),
            })

    def _load_project(self, project_id: UUID) -> ProjectModel:
        model = self._session.get(ProjectModel, project_id)
        if model is None:
            raise ProjectNotFoundError(str(project_id))
        return model

    def _load_milestone(self, milestone_id: UUID, for_update: bool = False) -> MilestoneModel:
        stmt = select(MilestoneModel).where(MilestoneModel.id == milestone_id)
        if for_update:
            stmt = stmt.with_for_update()
        model = self._session.scalars(stmt).one_or_none()
        if model is None:
            raise MilestoneNotFoundError(str(milestone_id))
        return model

    def _load_material(self, item_id: UUID) -> MaterialItemModel:
        item = self._session.get(MaterialItemModel, item_id)
        if item is None:
            raise MaterialItemNotFoundError(str(item_id))
        return item
