"""
Weekly Update Service (``budget_modules.weekly.service``).

Responsibility
--------------
Records, edits and deletes a milestone's weekly progress reports together
with their itemized expenses, and answers the milestone's financial
rollup from whatever reports exist at the time of the call.

Architecture position
---------------------
**Modules layer** -- ``WeeklyUpdateService`` is the only writer of
``weekly_updates`` and ``itemized_expenses``.  Reads milestones through
``budget_modules.milestone.orm``; never writes them.

Invariants enforced
-------------------
* Each public method owns the transaction boundary.
* A report is only stored if every overspent item carries a reason.
* ``sequence_number`` comes from the milestone's counter row and is
  never reused, even after the report holding it is deleted.
* Week end is on or after week start; progress is within 0..100; all
  amounts are non-negative.
* The rollup is recomputed on every call (``aggregation``); nothing
  cumulative is stored.

Failure modes
-------------
* Unknown milestone/update -> ``MilestoneNotFoundError`` /
  ``WeeklyUpdateNotFoundError``.
* Bad range/progress/amount -> ``ValidationError`` subclasses.
* Unjustified overspend -> ``OverspendJustificationError``; nothing stored.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from budget_kernel.domain.clock import Clock, SystemClock
from budget_kernel.domain.identity import Actor
from budget_kernel.domain.values import optional_text, require_non_negative, to_decimal
from budget_kernel.exceptions import (
    InvalidDateRangeError,
    InvalidProgressError,
    MilestoneNotFoundError,
    WeeklyUpdateNotFoundError,
)
from budget_kernel.logging_config import LogContext, get_logger
from budget_kernel.services.sequence_service import SequenceService
from budget_modules.expense.helpers import validate_items
from budget_modules.expense.models import ItemizedExpense
from budget_modules.expense.orm import ItemizedExpenseModel
from budget_modules.milestone.config import MilestoneConfig
from budget_modules.milestone.orm import MilestoneModel
from budget_modules.weekly.aggregation import compute_milestone_financials
from budget_modules.weekly.models import (
    CategoryTotals,
    MilestoneFinancials,
    WeeklyNarrative,
    WeeklyUpdate,
    WeekRange,
)
from budget_modules.weekly.orm import WeeklyUpdateModel

logger = get_logger("modules.weekly.service")


def _check_week(week: WeekRange) -> None:
    if week.end < week.start:
        raise InvalidDateRangeError(week.start, week.end, field="week")


def _check_progress(value: Decimal | int | str) -> Decimal:
    progress = to_decimal(value, "progress_percentage")
    if progress < 0 or progress > 100:
        raise InvalidProgressError(progress)
    return progress


def _check_totals(totals: CategoryTotals) -> CategoryTotals:
    return CategoryTotals(
        labour_expenditure=require_non_negative("labour_expenditure", totals.labour_expenditure),
        material_expenditure=require_non_negative("material_expenditure", totals.material_expenditure),
        other_expenditure=require_non_negative("other_expenditure", totals.other_expenditure),
    )


class WeeklyUpdateService:
    """
    Weekly reports and the milestone rollup built from them.

    Contract
    --------
    * ``record_weekly_update`` / ``edit_weekly_update`` return the stored
      report and the milestone's new rollup.
    * ``get_milestone_financials`` never writes.

    Non-goals
    ---------
    * Does NOT enforce a minimum photo count or monotonic progress.
    * Does NOT tie itemized sums to ``material_expenditure``; the gap is
      reported as ``WeeklyUpdate.material_reconciliation_gap`` only.
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
    # Writes
    # =========================================================================

    def record_weekly_update(
        self,
        milestone_id: UUID,
        week: WeekRange,
        totals: CategoryTotals,
        progress_percentage: Decimal | int | str,
        actor: Actor,
        narrative: WeeklyNarrative | None = None,
        items: Iterable[ItemizedExpense] = (),
        photos: Sequence[str] = (),
    ) -> tuple[WeeklyUpdate, MilestoneFinancials]:
        """Validate and store one week's report; return it with the new rollup."""
        try:
            milestone = self._load_milestone(milestone_id)
            _check_week(week)
            progress = _check_progress(progress_percentage)
            checked_totals = _check_totals(totals)
            checked_items = validate_items(items)
            narrative = narrative or WeeklyNarrative()

            sequences = SequenceService(self._session)
            model = WeeklyUpdateModel(
                milestone_id=milestone_id,
                sequence_number=sequences.next_value(
                    SequenceService.weekly_update_sequence(milestone_id)
                ),
                week_start_date=week.start,
                week_end_date=week.end,
                progress_percentage=progress,
                created_by_id=actor.actor_id,
            )
            self._apply_totals(model, checked_totals)
            self._apply_narrative(model, narrative)
            model.photos = [p for p in photos if p] or None
            self._replace_items(model, checked_items, actor)
            self._session.add(model)
            self._session.flush()

            update = model.to_dto()
            financials = self._financials(milestone)
            with LogContext.bind(milestone_id=milestone_id, entity_id=model.id, **actor.log_fields()):
                logger.info("weekly_update_recorded", extra={
                    "sequence_number": model.sequence_number,
                    "week_start": week.start,
                    "week_end": week.end,
                    "total_expenditure": str(update.total_expenditure),
                    "item_count": len(checked_items),
                    "cumulative_expenditure": str(financials.cumulative_expenditure),
                    "budget_status": financials.budget_status.value,
                })
            self._session.commit()
            return update, financials
        except Exception:
            self._session.rollback()
            raise

    def edit_weekly_update(
        self,
        update_id: UUID,
        actor: Actor,
        *,
        week: WeekRange | None = None,
        totals: CategoryTotals | None = None,
        progress_percentage: Decimal | int | str | None = None,
        narrative: WeeklyNarrative | None = None,
        items: Iterable[ItemizedExpense] | None = None,
        photos: Sequence[str] | None = None,
    ) -> tuple[WeeklyUpdate, MilestoneFinancials]:
        """
        Explicit edit path.  Only the arguments given change; ``items``,
        when given, replaces the whole item list and is re-validated.
        """
        try:
            model = self._load_update(update_id)
            if week is not None:
                _check_week(week)
                model.week_start_date = week.start
                model.week_end_date = week.end
            if totals is not None:
                self._apply_totals(model, _check_totals(totals))
            if progress_percentage is not None:
                model.progress_percentage = _check_progress(progress_percentage)
            if narrative is not None:
                self._apply_narrative(model, narrative)
            if photos is not None:
                model.photos = [p for p in photos if p] or None
            if items is not None:
                self._replace_items(model, validate_items(items), actor)
            model.updated_by_id = actor.actor_id
            self._session.flush()

            milestone = self._load_milestone(model.milestone_id)
            update = model.to_dto()
            financials = self._financials(milestone)
            with LogContext.bind(
                milestone_id=model.milestone_id, entity_id=update_id, **actor.log_fields(),
            ):
                logger.info("weekly_update_edited", extra={
                    "total_expenditure": str(update.total_expenditure),
                    "cumulative_expenditure": str(financials.cumulative_expenditure),
                })
            self._session.commit()
            return update, financials
        except Exception:
            self._session.rollback()
            raise

    def delete_weekly_update(self, update_id: UUID, actor: Actor) -> MilestoneFinancials:
        """Delete a report and its items; return the milestone's new rollup."""
        try:
            model = self._load_update(update_id)
            milestone = self._load_milestone(model.milestone_id)
            self._session.delete(model)
            self._session.flush()
            financials = self._financials(milestone)
            with LogContext.bind(
                milestone_id=milestone.id, entity_id=update_id, **actor.log_fields(),
            ):
                logger.info("weekly_update_deleted", extra={
                    "cumulative_expenditure": str(financials.cumulative_expenditure),
                })
            self._session.commit()
            return financials
        except Exception:
            self._session.rollback()
            raise

    # =========================================================================
    # Reads
    # =========================================================================

    def get_weekly_update(self, update_id: UUID) -> WeeklyUpdate:
        return self._load_update(update_id).to_dto()

    def list_weekly_updates(self, milestone_id: UUID) -> list[WeeklyUpdate]:
        self._load_milestone(milestone_id)
        return self._updates_for(milestone_id)

    def get_milestone_financials(self, milestone_id: UUID) -> MilestoneFinancials:
        """Recompute the milestone's actuals from its current reports."""
        return self._financials(self._load_milestone(milestone_id))

    # =========================================================================
    # Internals
    # =========================================================================

    def _financials(self, milestone: MilestoneModel) -> MilestoneFinancials:
        return compute_milestone_financials(
            milestone_id=milestone.id,
            budget_allocated=milestone.budget_allocated,
            updates=self._updates_for(milestone.id),
            tolerance=self._config.over_budget_tolerance,
        )

    def _updates_for(self, milestone_id: UUID) -> list[WeeklyUpdate]:
        stmt = (
            select(WeeklyUpdateModel)
            .where(WeeklyUpdateModel.milestone_id == milestone_id)
            .order_by(WeeklyUpdateModel.week_end_date, WeeklyUpdateModel.sequence_number)
        )
        return [m.to_dto() for m in self._session.scalars(stmt)]

    @staticmethod
    def _apply_totals(model: WeeklyUpdateModel, totals: CategoryTotals) -> None:
        model.labour_expenditure = totals.labour_expenditure
        model.material_expenditure = totals.material_expenditure
        model.other_expenditure = totals.other_expenditure

    @staticmethod
    def _apply_narrative(model: WeeklyUpdateModel, narrative: WeeklyNarrative) -> None:
        model.work_done = optional_text(narrative.work_done)
        model.challenges = optional_text(narrative.challenges)
        model.successes = optional_text(narrative.successes)
        model.next_week_plan = optional_text(narrative.next_week_plan)
        model.notes = optional_text(narrative.notes)

    @staticmethod
    def _replace_items(
        model: WeeklyUpdateModel,
        items: Sequence[ItemizedExpense],
        actor: Actor,
    ) -> None:
        model.items = [
            ItemizedExpenseModel.from_dto(item, position=index, created_by_id=actor.actor_id)
            for index, item in enumerate(items)
        ]

    def _load_milestone(self, milestone_id: UUID) -> MilestoneModel:
        model = self._session.get(MilestoneModel, milestone_id)
        if model is None:
            raise MilestoneNotFoundError(str(milestone_id))
        return model

    def _load_update(self, update_id: UUID) -> WeeklyUpdateModel:
        model = self._session.get(WeeklyUpdateModel, update_id)
        if model is None:
            raise WeeklyUpdateNotFoundError(str(update_id))
        return model
