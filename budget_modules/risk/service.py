"""
Risk Register Service (``budget_modules.risk.service``).

Responsibility
--------------
Create, edit, move and delete risks on a milestone.  None of these
operations touches the milestone's budget state.

Architecture position
---------------------
**Modules layer** -- sole writer of ``milestone_risks``.

Invariants enforced
-------------------
* Each public method owns the transaction boundary.
* Status moves go through ``RISK_STATUS_WORKFLOW`` (every edge allowed);
  setting the current status again is a no-op.
* Severity is never written; ``Risk.severity`` derives it.

Failure modes
-------------
* Unknown milestone/risk -> ``MilestoneNotFoundError`` / ``RiskNotFoundError``.
* Unknown category/level/status -> ``InvalidCategoryError``.
* Blank description -> ``MissingFieldError``.
"""

from __future__ import annotations

from collections.abc import Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from budget_kernel.domain.identity import Actor
from budget_kernel.domain.values import optional_text, require_text
from budget_kernel.exceptions import InvalidCategoryError, MilestoneNotFoundError, RiskNotFoundError
from budget_kernel.logging_config import LogContext, get_logger
from budget_modules._helpers import coerce_enum
from budget_modules.milestone.orm import MilestoneModel
from budget_modules.risk.models import Risk, RiskCategory, RiskCounts, RiskLevel, RiskStatus
from budget_modules.risk.orm import RiskModel
from budget_modules.risk.severity import count_risks
from budget_modules.risk.workflows import RISK_STATUS_WORKFLOW

logger = get_logger("modules.risk.service")

_EDITABLE_FIELDS = ("description", "category", "probability", "impact", "mitigation_strategy")


class RiskService:
    """Risk register operations for milestones."""

    def __init__(self, session: Session):
        self._session = session

    def create_risk(
        self,
        milestone_id: UUID,
        description: str,
        category: RiskCategory | str,
        probability: RiskLevel | str,
        impact: RiskLevel | str,
        actor: Actor,
        mitigation_strategy: str | None = None,
        status: RiskStatus | str = RiskStatus.OPEN,
    ) -> Risk:
        try:
            if self._session.get(MilestoneModel, milestone_id) is None:
                raise MilestoneNotFoundError(str(milestone_id))
            model = RiskModel(
                milestone_id=milestone_id,
                description=require_text("description", description),
                category=coerce_enum(RiskCategory, category, "category").value,
                probability=coerce_enum(RiskLevel, probability, "probability").value,
                impact=coerce_enum(RiskLevel, impact, "impact").value,
                status=coerce_enum(RiskStatus, status, "status").value,
                mitigation_strategy=optional_text(mitigation_strategy),
                created_by_id=actor.actor_id,
            )
            self._session.add(model)
            self._session.flush()
            risk = model.to_dto()
            with LogContext.bind(milestone_id=milestone_id, entity_id=model.id, **actor.log_fields()):
                logger.info("risk_created", extra={
                    "category": model.category,
                    "probability": model.probability,
                    "impact": model.impact,
                    "severity": risk.severity.value,
                })
            self._session.commit()
            return risk
        except Exception:
            self._session.rollback()
            raise

    def update_risk(self, risk_id: UUID, actor: Actor, **fields) -> Risk:
        """Edit any of description, category, probability, impact, mitigation_strategy."""
        unknown = set(fields) - set(_EDITABLE_FIELDS)
        if unknown:
            raise InvalidCategoryError("field", sorted(unknown)[0], _EDITABLE_FIELDS)
        try:
            model = self._load(risk_id)
            if "description" in fields:
                model.description = require_text("description", fields["description"])
            if "category" in fields:
                model.category = coerce_enum(RiskCategory, fields["category"], "category").value
            for axis in ("probability", "impact"):
                if axis in fields:
                    setattr(model, axis, coerce_enum(RiskLevel, fields[axis], axis).value)
            if "mitigation_strategy" in fields:
                model.mitigation_strategy = optional_text(fields["mitigation_strategy"])
            model.updated_by_id = actor.actor_id
            self._session.flush()
            risk = model.to_dto()
            with LogContext.bind(milestone_id=model.milestone_id, entity_id=risk_id, **actor.log_fields()):
                logger.info("risk_updated", extra={
                    "fields": sorted(fields),
                    "severity": risk.severity.value,
                })
            self._session.commit()
            return risk
        except Exception:
            self._session.rollback()
            raise

    def update_risk_status(
        self, risk_id: UUID, status: RiskStatus | str, actor: Actor,
    ) -> Risk:
        try:
            target = coerce_enum(RiskStatus, status, "status")
            model = self._load(risk_id)
            if model.status == target.value:
                return model.to_dto()
            RISK_STATUS_WORKFLOW.require_transition(model.status, target.value)
            previous = model.status
            model.status = target.value
            model.updated_by_id = actor.actor_id
            self._session.flush()
            with LogContext.bind(milestone_id=model.milestone_id, entity_id=risk_id, **actor.log_fields()):
                logger.info("risk_status_changed", extra={
                    "from_status": previous,
                    "to_status": target.value,
                })
            self._session.commit()
            return model.to_dto()
        except Exception:
            self._session.rollback()
            raise

    def delete_risk(self, risk_id: UUID, actor: Actor) -> None:
        try:
            model = self._load(risk_id)
            milestone_id = model.milestone_id
            self._session.delete(model)
            self._session.flush()
            with LogContext.bind(milestone_id=milestone_id, entity_id=risk_id, **actor.log_fields()):
                logger.info("risk_deleted")
            self._session.commit()
        except Exception:
            self._session.rollback()
            raise

    # -- reads ----------------------------------------------------------------

    def get_risk(self, risk_id: UUID) -> Risk:
        return self._load(risk_id).to_dto()

    def list_risks(self, milestone_ids: Sequence[UUID]) -> list[Risk]:
        if not milestone_ids:
            return []
        stmt = (
            select(RiskModel)
            .where(RiskModel.milestone_id.in_(list(milestone_ids)))
            .order_by(RiskModel.created_at)
        )
        return [m.to_dto() for m in self._session.scalars(stmt)]

    def risk_counts(self, milestone_ids: Sequence[UUID]) -> RiskCounts:
        return count_risks(self.list_risks(milestone_ids))

    def _load(self, risk_id: UUID) -> RiskModel:
        model = self._session.get(RiskModel, risk_id)
        if model is None:
            raise RiskNotFoundError(str(risk_id))
        return model
