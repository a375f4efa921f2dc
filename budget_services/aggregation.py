"""
Aggregation Facade (``budget_services.aggregation``).

Responsibility
--------------
The single read surface for rolled-up views: one milestone, one project,
or the building portfolio.  Also builds the risk-analysis snapshot for a
project and runs an injected analyzer over it.

Architecture position
---------------------
**Services layer** -- composes the module services over one session.
Module services never import each other across this boundary; contractor
payments reach the portfolio rollup only through this facade.

Invariants enforced
-------------------
* Nothing is cached.  Every call walks the current ledger state, so a
  view is always consistent with the latest committed writes.
* The facade never writes.  A failing analyzer leaves no state behind.

Failure modes
-------------
* Unknown milestone/project -> ``MilestoneNotFoundError`` /
  ``ProjectNotFoundError`` from the module services.
* Analyzer output of the wrong shape -> ``AnalysisEnvelopeError``.
* Analyzer exceptions propagate unchanged.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from budget_kernel.domain.clock import Clock, SystemClock
from budget_kernel.domain.values import decimal_sum, safe_percentage, safe_ratio
from budget_kernel.logging_config import LogContext, get_logger
from budget_modules.building.calculations import month_bounds
from budget_modules.building.config import BuildingConfig
from budget_modules.building.service import BuildingBudgetService
from budget_modules.milestone.config import MilestoneConfig
from budget_modules.milestone.models import Milestone, MilestoneStatus
from budget_modules.milestone.service import MilestoneService
from budget_modules.payment.config import PaymentConfig
from budget_modules.payment.service import PaymentRequestService
from budget_modules.risk.analysis import (
    MilestoneSnapshot,
    RiskAnalysisEnvelope,
    RiskAnalyzer,
    RiskSnapshot,
    parse_analysis_envelope,
)
from budget_modules.risk.config import RiskConfig
from budget_modules.risk.service import RiskService
from budget_modules.risk.severity import count_risks
from budget_modules.weekly.aggregation import budget_utilization, classify_budget_status
from budget_modules.weekly.service import WeeklyUpdateService
from budget_services.views import MilestoneView, PortfolioView, ProjectView

logger = get_logger("services.aggregation")


class AggregationService:
    """
    Read-only composition of the module services.

    Contract
    --------
    * ``get_*_view`` methods return frozen views recomputed on each call.
    * ``analyze_project_risks`` hands the snapshot to ``analyzer`` and
      checks only the shape of what comes back.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        milestone_config: MilestoneConfig | None = None,
        building_config: BuildingConfig | None = None,
        payment_config: PaymentConfig | None = None,
        risk_config: RiskConfig | None = None,
    ):
        self._clock = clock or SystemClock()
        self._milestone_config = milestone_config or MilestoneConfig.with_defaults()
        self._risk_config = risk_config or RiskConfig.with_defaults()
        self._milestones = MilestoneService(session, self._clock, self._milestone_config)
        self._weekly = WeeklyUpdateService(session, self._clock, self._milestone_config)
        self._buildings = BuildingBudgetService(session, self._clock, building_config)
        self._payments = PaymentRequestService(session, self._clock, payment_config)
        self._risks = RiskService(session)

    # =========================================================================
    # Views
    # =========================================================================

    def get_milestone_view(self, milestone_id: UUID) -> MilestoneView:
        return self._milestone_view(self._milestones.get_milestone(milestone_id))

    def get_project_view(self, project_id: UUID) -> ProjectView:
        """Project totals across its milestones, plus each milestone's view."""
        project = self._milestones.get_project(project_id)
        views = tuple(
            self._milestone_view(m) for m in self._milestones.list_milestones(project_id)
        )
        milestone_ids = [v.milestone.id for v in views]

        allocated = decimal_sum(v.milestone.budget_allocated for v in views)
        spent = decimal_sum(v.financials.cumulative_expenditure for v in views)
        statuses = Counter(v.milestone.status.value for v in views)

        return ProjectView(
            project=project,
            budget_allocated=allocated,
            cumulative_expenditure=spent,
            budget_remaining=allocated - spent,
            budget_utilization=budget_utilization(spent, allocated),
            budget_status=classify_budget_status(
                spent, allocated, self._milestone_config.over_budget_tolerance,
            ),
            overall_progress=self._overall_progress(views),
            milestone_status_counts={s.value: statuses.get(s.value, 0) for s in MilestoneStatus},
            risk_counts=count_risks(r for v in views for r in v.risks),
            payment_totals=self._payments.payment_totals(milestone_ids),
            milestones=views,
        )

    def get_portfolio_view(
        self,
        period_start: date | None = None,
        period_end: date | None = None,
        *,
        building_ids: Sequence[UUID] | None = None,
        property_manager_id: UUID | None = None,
    ) -> PortfolioView:
        """
        Portfolio financials for a period (default: the current month).

        Contractor payments are APPROVED requests decided in the period.
        When the portfolio is filtered, only requests on projects linked to
        the selected buildings count.
        """
        default_start, default_end = month_bounds(self._clock.today())
        start = period_start or default_start
        end = period_end or default_end

        scope = None
        if building_ids is not None or property_manager_id is not None:
            scope = [
                b.id for b in self._buildings.list_buildings(building_ids, property_manager_id)
            ]
        payments = self._payments.approved_payments_between(start, end, scope)
        financials = self._buildings.get_portfolio_financials(
            start, end,
            building_ids=building_ids,
            property_manager_id=property_manager_id,
            contractor_payments=[p.calculated_amount for p in payments],
        )
        return PortfolioView(financials=financials, contractor_payments=tuple(payments))

    # =========================================================================
    # Risk analysis
    # =========================================================================

    def build_risk_snapshot(self, project_id: UUID) -> RiskSnapshot:
        """Indicators an analyzer needs, computed from current state."""
        project = self._milestones.get_project(project_id)
        views = [self._milestone_view(m) for m in self._milestones.list_milestones(project_id)]
        today = self._clock.today()

        allocated = decimal_sum(v.milestone.budget_allocated for v in views)
        spent = decimal_sum(v.financials.cumulative_expenditure for v in views)
        risks = [r for v in views for r in v.risks]

        timeline = Decimal("0")
        if project.start_date and project.end_date:
            total_days = (project.end_date - project.start_date).days
            elapsed_days = (today - project.start_date).days
            timeline = safe_percentage(Decimal(elapsed_days), Decimal(total_days))

        overdue = sum(
            1 for v in views
            if v.milestone.end_date is not None
            and v.milestone.end_date < today
            and v.milestone.status is not MilestoneStatus.COMPLETED
        )
        over_budget = sum(
            1 for v in views
            if v.milestone.budget_allocated > 0
            and v.financials.cumulative_expenditure > v.milestone.budget_allocated
        )

        return RiskSnapshot(
            project_id=project.id,
            project_name=project.name,
            budget_utilization=budget_utilization(spent, allocated),
            overall_progress=self._overall_progress(views),
            timeline_progress=timeline,
            overdue_milestones=overdue,
            over_budget_milestones=over_budget,
            existing_risks=len(risks),
            high_severity_risks=count_risks(risks).high,
            milestones=tuple(
                MilestoneSnapshot(
                    name=v.milestone.name,
                    status=v.milestone.status.value,
                    budget_allocated=v.milestone.budget_allocated,
                    cumulative_expenditure=v.financials.cumulative_expenditure,
                    progress_percentage=v.financials.latest_progress_percentage,
                    end_date=v.milestone.end_date,
                    risk_count=len(v.risks),
                )
                for v in views
            ),
        )

    def analyze_project_risks(
        self, project_id: UUID, analyzer: RiskAnalyzer,
    ) -> RiskAnalysisEnvelope:
        """
        Run ``analyzer`` over the project's snapshot and type its output.

        The content of the findings is not interpreted; only the envelope
        shape is checked.
        """
        snapshot = self.build_risk_snapshot(project_id)
        with LogContext.bind(project_id=project_id):
            logger.info("risk_analysis_requested", extra={
                "existing_risks": snapshot.existing_risks,
                "overdue_milestones": snapshot.overdue_milestones,
            })
            envelope = parse_analysis_envelope(
                analyzer(snapshot), max_findings=self._risk_config.max_findings,
            )
            logger.info("risk_analysis_completed", extra={
                "findings": len(envelope.risks),
                "high_risks": envelope.summary.high_risks,
                "critical_risks": envelope.summary.critical_risks,
            })
        return envelope

    # =========================================================================
    # Internals
    # =========================================================================

    def _milestone_view(self, milestone: Milestone) -> MilestoneView:
        risks = self._risks.list_risks([milestone.id])
        return MilestoneView(
            milestone=milestone,
            financials=self._weekly.get_milestone_financials(milestone.id),
            weekly_updates=tuple(self._weekly.list_weekly_updates(milestone.id)),
            risks=tuple(risks),
            risk_counts=count_risks(risks),
            payment_requests=tuple(self._payments.list_payment_requests(milestone_id=milestone.id)),
            payment_totals=self._payments.payment_totals([milestone.id]),
        )

    @staticmethod
    def _overall_progress(views: Sequence[MilestoneView]) -> Decimal:
        """Mean of each milestone's latest reported progress."""
        return safe_ratio(
            decimal_sum(v.financials.latest_progress_percentage for v in views),
            Decimal(len(views)),
        )
