"""
Payment Request Service (``budget_modules.payment.service``).

Responsibility
--------------
Contractors submit payment requests against a milestone; reviewers approve
or reject each request exactly once.

Architecture position
---------------------
**Modules layer** -- sole writer of ``payment_requests``.  Reads milestones
and projects to validate references and to filter by building.

Invariants enforced
-------------------
* Each public method owns the transaction boundary.
* Only roles listed in ``PaymentConfig.reviewer_roles`` may review.
* A request leaves PENDING through a single conditional
  ``UPDATE ... WHERE status = 'pending'``.  When two reviewers race, the
  database lets exactly one UPDATE match; the other sees zero rows and
  gets ``PaymentRequestAlreadyDecidedError``.  Whatever the caller's role,
  an APPROVED or REJECTED request is never changed again.
* A rejection must carry a non-blank reason, stored verbatim.
* Request numbers come from the ``payment_request`` counter row; two
  concurrent submissions never share a number.

Failure modes
-------------
* Unknown milestone/request -> ``MilestoneNotFoundError`` /
  ``PaymentRequestNotFoundError``.
* Caller role cannot review -> ``ReviewerRoleRequiredError``.
* Request already decided -> ``PaymentRequestAlreadyDecidedError``.
* Reject without reason -> ``RejectionReasonRequiredError``.

Audit relevance
---------------
``payment_request_submitted`` and ``payment_request_reviewed`` are logged
with request number, amount and decision; a lost race is logged at
WARNING as ``payment_review_conflict``.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from budget_kernel.domain.clock import Clock, SystemClock
from budget_kernel.domain.identity import Actor
from budget_kernel.domain.values import decimal_sum, optional_text, require_non_negative
from budget_kernel.exceptions import (
    MilestoneNotFoundError,
    PaymentRequestAlreadyDecidedError,
    PaymentRequestNotFoundError,
    RejectionReasonRequiredError,
    ReviewerRoleRequiredError,
)
from budget_kernel.logging_config import LogContext, get_logger
from budget_kernel.services.sequence_service import SequenceService
from budget_modules._helpers import coerce_enum
from budget_modules.milestone.orm import MilestoneModel, ProjectModel
from budget_modules.payment.config import PaymentConfig
from budget_modules.payment.models import (
    PaymentRequest,
    PaymentStatus,
    PaymentTotals,
    ReviewDecision,
)
from budget_modules.payment.orm import PaymentRequestModel
from budget_modules.payment.workflows import PAYMENT_REQUEST_WORKFLOW

logger = get_logger("modules.payment.service")

REVIEW_CAPABILITY = "review_payment_request"

_DEFAULT_NOTES = "Payment for milestone completion"
_DEFAULT_PARTIAL_NOTES = "PARTIAL PAYMENT for milestone completion"
_PARTIAL_PREFIX = "PARTIAL PAYMENT - "


def _submission_notes(notes: str | None, is_partial: bool) -> str:
    notes = optional_text(notes)
    if notes:
        return f"{_PARTIAL_PREFIX}{notes}" if is_partial else notes
    return _DEFAULT_PARTIAL_NOTES if is_partial else _DEFAULT_NOTES


def _optional_amount(field: str, value: Decimal | int | str | None) -> Decimal | None:
    if value is None:
        return None
    return require_non_negative(field, value)


def _day_bounds(start: date, end: date) -> tuple[datetime, datetime]:
    """[start 00:00, end+1 00:00) in UTC."""
    return (
        datetime.combine(start, time.min, tzinfo=timezone.utc),
        datetime.combine(end + timedelta(days=1), time.min, tzinfo=timezone.utc),
    )


class PaymentRequestService:
    """
    Submission and single-shot review of contractor payment requests.

    Contract
    --------
    * ``submit_payment_request`` creates a PENDING request with the next
      ``PAY-MS-#####`` number.
    * ``review_payment_request`` moves PENDING to APPROVED or REJECTED or
      raises; it never overwrites a decision.

    Non-goals
    ---------
    * Does NOT pay anyone.  There is no PAID status.
    * Does NOT authenticate callers; ``Actor`` is trusted as given.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        config: PaymentConfig | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._config = config or PaymentConfig.with_defaults()

    # =========================================================================
    # Submission
    # =========================================================================

    def submit_payment_request(
        self,
        milestone_id: UUID,
        contractor_id: UUID,
        calculated_amount: Decimal | int | str,
        actor: Actor,
        *,
        hours_worked: Decimal | int | str | None = None,
        days_worked: Decimal | int | str | None = None,
        hourly_rate: Decimal | int | str | None = None,
        daily_rate: Decimal | int | str | None = None,
        is_partial_payment: bool = False,
        notes: str | None = None,
    ) -> PaymentRequest:
        try:
            if self._session.get(MilestoneModel, milestone_id) is None:
                raise MilestoneNotFoundError(str(milestone_id))
            amount = require_non_negative("calculated_amount", calculated_amount)
            work = {
                "hours_worked": _optional_amount("hours_worked", hours_worked),
                "days_worked": _optional_amount("days_worked", days_worked),
                "hourly_rate": _optional_amount("hourly_rate", hourly_rate),
                "daily_rate": _optional_amount("daily_rate", daily_rate),
            }
            number = SequenceService(self._session).next_value(SequenceService.PAYMENT_REQUEST)

            model = PaymentRequestModel(
                request_number=self._config.format_request_number(number),
                milestone_id=milestone_id,
                contractor_id=contractor_id,
                calculated_amount=amount,
                status=PAYMENT_REQUEST_WORKFLOW.initial_state,
                submitted_at=self._clock.now(),
                is_partial_payment=is_partial_payment,
                **work,
                notes=_submission_notes(notes, is_partial_payment),
                created_by_id=actor.actor_id,
            )
            self._session.add(model)
            self._session.flush()

            with LogContext.bind(milestone_id=milestone_id, entity_id=model.id, **actor.log_fields()):
                logger.info("payment_request_submitted", extra={
                    "request_number": model.request_number,
                    "contractor_id": str(contractor_id),
                    "calculated_amount": str(amount),
                    "is_partial_payment": is_partial_payment,
                })
            self._session.commit()
            return model.to_dto()
        except Exception:
            self._session.rollback()
            raise

    # =========================================================================
    # Review
    # =========================================================================

    def review_payment_request(
        self,
        request_id: UUID,
        actor: Actor,
        decision: ReviewDecision | str,
        reason: str | None = None,
        reviewer_notes: str | None = None,
    ) -> PaymentRequest:
        """
        Approve or reject a PENDING request.

        Raises:
            ReviewerRoleRequiredError: Caller's role is not a reviewer role.
            PaymentRequestNotFoundError: No such request.
            PaymentRequestAlreadyDecidedError: Request is not PENDING, or
                another reviewer decided it first.
            RejectionReasonRequiredError: Rejecting with a blank reason.
        """
        try:
            decision = coerce_enum(ReviewDecision, decision, "decision")
            if not self._config.can_review(actor.role):
                raise ReviewerRoleRequiredError(
                    str(actor.actor_id), actor.role.value, REVIEW_CAPABILITY,
                )
            model = self._load(request_id)
            if model.status != PaymentStatus.PENDING.value:
                raise PaymentRequestAlreadyDecidedError(str(request_id), model.status)
            if decision is ReviewDecision.REJECTED and (reason is None or not reason.strip()):
                raise RejectionReasonRequiredError(str(request_id))

            target = decision.status.value
            PAYMENT_REQUEST_WORKFLOW.require_transition(PaymentStatus.PENDING.value, target)

            now = self._clock.now()
            values = {
                "status": target,
                "reviewer_notes": optional_text(reviewer_notes),
                "reviewed_by_id": actor.actor_id,
                "decided_at": now,
                "updated_by_id": actor.actor_id,
            }
            if decision is ReviewDecision.APPROVED:
                values["approved_at"] = now
            else:
                values["rejection_reason"] = reason

            result = self._session.execute(
                update(PaymentRequestModel)
                .where(
                    PaymentRequestModel.id == request_id,
                    PaymentRequestModel.status == PaymentStatus.PENDING.value,
                )
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                self._session.rollback()
                self._session.refresh(model)
                with LogContext.bind(entity_id=request_id, **actor.log_fields()):
                    logger.warning("payment_review_conflict", extra={
                        "request_number": model.request_number,
                        "attempted": target,
                        "current_status": model.status,
                    })
                raise PaymentRequestAlreadyDecidedError(str(request_id), model.status)

            self._session.commit()
            self._session.refresh(model)
            with LogContext.bind(
                milestone_id=model.milestone_id, entity_id=request_id, **actor.log_fields(),
            ):
                logger.info("payment_request_reviewed", extra={
                    "request_number": model.request_number,
                    "decision": target,
                    "calculated_amount": str(model.calculated_amount),
                })
            return model.to_dto()
        except Exception:
            self._session.rollback()
            raise

    # =========================================================================
    # Reads
    # =========================================================================

    def get_payment_request(self, request_id: UUID) -> PaymentRequest:
        return self._load(request_id).to_dto()

    def list_payment_requests(
        self,
        milestone_id: UUID | None = None,
        status: PaymentStatus | str | None = None,
        contractor_id: UUID | None = None,
    ) -> list[PaymentRequest]:
        stmt = select(PaymentRequestModel).order_by(
            PaymentRequestModel.submitted_at, PaymentRequestModel.request_number,
        )
        if milestone_id is not None:
            stmt = stmt.where(PaymentRequestModel.milestone_id == milestone_id)
        if status is not None:
            stmt = stmt.where(
                PaymentRequestModel.status == coerce_enum(PaymentStatus, status, "status").value
            )
        if contractor_id is not None:
            stmt = stmt.where(PaymentRequestModel.contractor_id == contractor_id)
        return [m.to_dto() for m in self._session.scalars(stmt)]

    def payment_totals(self, milestone_ids: Sequence[UUID]) -> PaymentTotals:
        if not milestone_ids:
            return PaymentTotals()
        stmt = select(PaymentRequestModel).where(
            PaymentRequestModel.milestone_id.in_(list(milestone_ids))
        )
        requests = [m.to_dto() for m in self._session.scalars(stmt)]

        def _of(status: PaymentStatus) -> list[PaymentRequest]:
            return [r for r in requests if r.status is status]

        pending = _of(PaymentStatus.PENDING)
        approved = _of(PaymentStatus.APPROVED)
        rejected = _of(PaymentStatus.REJECTED)
        return PaymentTotals(
            pending_amount=decimal_sum(r.calculated_amount for r in pending),
            approved_amount=decimal_sum(r.calculated_amount for r in approved),
            rejected_amount=decimal_sum(r.calculated_amount for r in rejected),
            pending_count=len(pending),
            approved_count=len(approved),
            rejected_count=len(rejected),
        )

    def approved_payments_between(
        self,
        period_start: date,
        period_end: date,
        building_ids: Sequence[UUID] | None = None,
    ) -> list[PaymentRequest]:
        """
        APPROVED requests decided within [period_start, period_end].

        With ``building_ids``, only requests on milestones of projects linked
        to those buildings are returned.
        """
        lower, upper = _day_bounds(period_start, period_end)
        stmt = (
            select(PaymentRequestModel)
            .where(
                PaymentRequestModel.status == PaymentStatus.APPROVED.value,
                PaymentRequestModel.decided_at >= lower,
                PaymentRequestModel.decided_at < upper,
            )
            .order_by(PaymentRequestModel.decided_at)
        )
        if building_ids is not None:
            stmt = (
                stmt.join(MilestoneModel, MilestoneModel.id == PaymentRequestModel.milestone_id)
                .join(ProjectModel, ProjectModel.id == MilestoneModel.project_id)
                .where(ProjectModel.building_id.in_(list(building_ids)))
            )
        return [m.to_dto() for m in self._session.scalars(stmt)]

    def _load(self, request_id: UUID) -> PaymentRequestModel:
        model = self._session.get(PaymentRequestModel, request_id)
        if model is None:
            raise PaymentRequestNotFoundError(str(request_id))
        return model

