"""
AggregationService read views and risk analysis.

Validates:
- Milestone and project views combine planned costs, weekly spend, risks
  and payments, and are recomputed on every call
- Portfolio view counts approved contractor payments for the period,
  scoped to the selected buildings when filtered
- build_risk_snapshot indicators (timeline, overdue, over budget)
- analyze_project_risks types well-formed analyzer output and rejects
  malformed output without side effects
"""

import json
from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from budget_kernel.exceptions import AnalysisEnvelopeError, ProjectNotFoundError
from budget_modules.weekly.models import BudgetStatus, CategoryTotals, WeekRange

WEEK_1 = WeekRange(date(2025, 3, 3), date(2025, 3, 9))
WEEK_2 = WeekRange(date(2025, 3, 10), date(2025, 3, 16))


def _spend(weekly_service, milestone_id, actor, week, labour, progress):
    weekly_service.record_weekly_update(
        milestone_id, week, CategoryTotals(Decimal(labour), Decimal("0"), Decimal("0")), progress, actor,
    )


def _good_analyzer(snapshot):
    return {
        "projectName": snapshot.project_name,
        "summary": {
            "totalRisksIdentified": 1,
            "criticalRisks": 0,
            "highRisks": 1,
            "mediumRisks": 0,
            "lowRisks": 0,
        },
        "projectMetrics": {"budgetUtilization": float(snapshot.budget_utilization)},
        "risks": [{"riskTitle": "Spend ahead of progress", "severity": "high"}],
    }


# =============================================================================
# Milestone and project views
# =============================================================================


class TestMilestoneAndProjectViews:

    def test_milestone_view(
        self, aggregation_service, weekly_service, risk_service, payment_service,
        milestone, contractor_actor, manager_actor,
    ):
        _spend(weekly_service, milestone.id, contractor_actor, WEEK_1, "1500", 20)
        _spend(weekly_service, milestone.id, contractor_actor, WEEK_2, "2500", 40)
        risk_service.create_risk(milestone.id, "Rain", "external", "high", "low", manager_actor)
        payment_service.submit_payment_request(
            milestone.id, contractor_actor.actor_id, "3000", contractor_actor,
        )

        view = aggregation_service.get_milestone_view(milestone.id)
        assert view.milestone.expected_profit == Decimal("5000")
        assert view.financials.cumulative_expenditure == Decimal("4000")
        assert view.financials.budget_status is BudgetStatus.UNDER_BUDGET
        assert len(view.weekly_updates) == 2
        assert view.risk_counts.high == 1
        assert view.payment_totals.pending_amount == Decimal("3000")
        assert len(view.payment_requests) == 1

    def test_views_are_not_cached(self, aggregation_service, weekly_service, milestone, contractor_actor):
        before = aggregation_service.get_milestone_view(milestone.id)
        _spend(weekly_service, milestone.id, contractor_actor, WEEK_1, "700", 10)
        after = aggregation_service.get_milestone_view(milestone.id)
        assert before.financials.cumulative_expenditure == Decimal("0")
        assert after.financials.cumulative_expenditure == Decimal("700")

    def test_project_view(
        self, aggregation_service, milestone_service, weekly_service,
        project, milestone, admin_actor, contractor_actor,
    ):
        second = milestone_service.create_milestone(
            project.id, "Framing", admin_actor, budget_allocated=Decimal("5000"),
        )
        _spend(weekly_service, milestone.id, contractor_actor, WEEK_1, "4000", 40)
        _spend(weekly_service, second.id, contractor_actor, WEEK_1, "2000", 60)
        milestone_service.set_milestone_status(second.id, "in_progress", admin_actor)

        view = aggregation_service.get_project_view(project.id)
        assert view.budget_allocated == Decimal("15000")
        assert view.cumulative_expenditure == Decimal("6000")
        assert view.budget_remaining == Decimal("9000")
        assert view.budget_utilization == Decimal("40")
        assert view.budget_status is BudgetStatus.UNDER_BUDGET
        assert view.overall_progress == Decimal("50")
        assert view.milestone_status_counts["not_started"] == 1
        assert view.milestone_status_counts["in_progress"] == 1
        assert len(view.milestones) == 2

    def test_project_view_to_dict(self, aggregation_service, project, milestone):
        data = aggregation_service.get_project_view(project.id).to_dict()
        assert data["project"]["id"] == str(project.id)
        assert data["budget_status"] == "under_budget"
        assert data["milestones"][0]["milestone"]["name"] == "Foundation"
        json.dumps(data)

    def test_unknown_project(self, aggregation_service):
        with pytest.raises(ProjectNotFoundError):
            aggregation_service.get_project_view(uuid4())


# =============================================================================
# Portfolio view
# =============================================================================


class TestPortfolioView:

    def test_contractor_payments_scoped_to_buildings(
        self, aggregation_service, building_service, milestone_service, payment_service,
        milestone, admin_actor, manager_actor, contractor_actor,
    ):
        building = building_service.register_building(
            "Harbour View", manager_actor, number_of_units=4, property_manager_id=manager_actor.actor_id,
        )
        linked = milestone_service.create_project("Harbour Refit", admin_actor, building_id=building.id)
        linked_ms = milestone_service.create_milestone(linked.id, "Lobby", admin_actor)

        for milestone_id, amount in ((linked_ms.id, "1200"), (milestone.id, "800")):
            req = payment_service.submit_payment_request(
                milestone_id, contractor_actor.actor_id, amount, contractor_actor,
            )
            payment_service.review_payment_request(req.id, manager_actor, "approved")
        payment_service.submit_payment_request(
            linked_ms.id, contractor_actor.actor_id, "5000", contractor_actor,
        )

        everything = aggregation_service.get_portfolio_view()
        assert everything.financials.period_start == date(2025, 3, 1)
        assert everything.financials.contractor_payments == Decimal("2000")
        assert len(everything.contractor_payments) == 2

        managed = aggregation_service.get_portfolio_view(property_manager_id=manager_actor.actor_id)
        assert managed.financials.contractor_payments == Decimal("1200")
        assert managed.financials.building_count == 1

        data = managed.to_dict()
        assert data["financials"]["contractor_payment_count"] == 1
        json.dumps(data)

    def test_empty_period(self, aggregation_service):
        view = aggregation_service.get_portfolio_view(date(2024, 1, 1), date(2024, 1, 31))
        assert view.financials.total_expenses == Decimal("0")
        assert view.contractor_payments == ()


# =============================================================================
# Risk snapshot and analysis
# =============================================================================


class TestRiskAnalysis:

    def test_snapshot_indicators(
        self, aggregation_service, milestone_service, weekly_service, risk_service,
        project, milestone, admin_actor, contractor_actor, manager_actor,
    ):
        late = milestone_service.create_milestone(
            project.id, "Site clearance", admin_actor,
            budget_allocated=Decimal("1000"), end_date=date(2025, 3, 1),
        )
        _spend(weekly_service, late.id, contractor_actor, WEEK_1, "1200", 90)
        risk_service.create_risk(late.id, "Overrun", "financial", "high", "high", manager_actor)

        snapshot = aggregation_service.build_risk_snapshot(project.id)
        assert snapshot.project_name == "Riverside Renovation"
        assert snapshot.timeline_progress == Decimal(73) / Decimal(364) * 100
        assert snapshot.overdue_milestones == 1
        assert snapshot.over_budget_milestones == 1
        assert snapshot.existing_risks == 1
        assert snapshot.high_severity_risks == 1
        assert {m.name for m in snapshot.milestones} == {"Foundation", "Site clearance"}

    def test_completed_milestone_not_overdue(
        self, aggregation_service, milestone_service, project, admin_actor,
    ):
        done = milestone_service.create_milestone(
            project.id, "Survey", admin_actor, end_date=date(2025, 2, 1),
        )
        milestone_service.set_milestone_status(done.id, "completed", admin_actor)
        assert aggregation_service.build_risk_snapshot(project.id).overdue_milestones == 0

    def test_analyze_well_formed(self, aggregation_service, project, milestone, captured_logs):
        seen = []

        def analyzer(snapshot):
            seen.append(snapshot)
            return _good_analyzer(snapshot)

        envelope = aggregation_service.analyze_project_risks(project.id, analyzer)
        assert seen[0].project_id == project.id
        assert envelope.summary.high_risks == 1
        assert envelope.risks[0].title == "Spend ahead of progress"

        completed = next(r for r in captured_logs() if r["message"] == "risk_analysis_completed")
        assert completed["project_id"] == str(project.id)
        assert completed["findings"] == 1

    def test_malformed_output_rejected(
        self, aggregation_service, risk_service, project, milestone,
    ):
        with pytest.raises(AnalysisEnvelopeError):
            aggregation_service.analyze_project_risks(project.id, lambda snapshot: {"risks": "none"})
        assert risk_service.list_risks([milestone.id]) == []

    def test_analyzer_errors_propagate(self, aggregation_service, project):
        def failing(snapshot):
            raise TimeoutError("analysis backend unavailable")

        with pytest.raises(TimeoutError):
            aggregation_service.analyze_project_risks(project.id, failing)
