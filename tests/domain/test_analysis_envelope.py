"""
Risk-analysis envelope parsing.

Validates:
- A well-formed envelope converts to typed objects
- Only the shape is checked: unknown finding keys are kept, severity text is opaque
- Each malformed shape raises AnalysisEnvelopeError naming the failing path
- RiskSnapshot.to_payload produces JSON-ready camelCase data
"""

import json
from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from budget_kernel.exceptions import AnalysisEnvelopeError
from budget_modules.risk.analysis import (
    MilestoneSnapshot,
    RiskSnapshot,
    parse_analysis_envelope,
)


def _envelope(**overrides) -> dict:
    data = {
        "projectName": "Riverside Renovation",
        "summary": {
            "totalRisksIdentified": 2,
            "criticalRisks": 0,
            "highRisks": 1,
            "mediumRisks": 1,
            "lowRisks": 0,
        },
        "projectMetrics": {"budgetUtilization": 85.5, "overdueMilestones": 1},
        "risks": [
            {
                "riskTitle": "Budget pressure",
                "description": "Spend is running ahead of progress",
                "category": "financial",
                "severity": "high",
                "likelihood": "likely",
                "impact": "Overrun of roughly 10%",
                "indicators": ["Utilization 85%", "Progress 60%"],
                "mitigationStrategies": ["Re-quote materials"],
                "immediateActions": ["Freeze discretionary spend"],
                "estimatedImpactCost": 12500.5,
            },
            {"riskTitle": "Weather", "confidence": 0.4},
        ],
    }
    data.update(overrides)
    return data


# =============================================================================
# Accepted shapes
# =============================================================================


class TestParseEnvelope:

    def test_well_formed(self):
        envelope = parse_analysis_envelope(_envelope())
        assert envelope.project_name == "Riverside Renovation"
        assert envelope.summary.total_risks_identified == 2
        assert envelope.summary.high_risks == 1
        assert envelope.project_metrics["overdueMilestones"] == 1
        assert len(envelope.risks) == 2

        finding = envelope.risks[0]
        assert finding.title == "Budget pressure"
        assert finding.severity == "high"
        assert finding.indicators == ("Utilization 85%", "Progress 60%")
        assert finding.mitigation_strategies == ("Re-quote materials",)
        assert finding.estimated_impact_cost == Decimal("12500.5")

    def test_content_is_not_interpreted(self):
        """Severity words outside any vocabulary pass through."""
        data = _envelope(risks=[{"severity": "catastrophic-ish", "category": "vibes"}])
        envelope = parse_analysis_envelope(data)
        assert envelope.risks[0].severity == "catastrophic-ish"

    def test_unknown_finding_keys_kept_in_extra(self):
        envelope = parse_analysis_envelope(_envelope())
        assert envelope.risks[1].extra == {"confidence": 0.4}

    def test_empty_findings(self):
        envelope = parse_analysis_envelope(_envelope(risks=[]))
        assert envelope.risks == ()

    def test_string_cost_accepted(self):
        envelope = parse_analysis_envelope(_envelope(risks=[{"estimatedImpactCost": "1500.00"}]))
        assert envelope.risks[0].estimated_impact_cost == Decimal("1500.00")


# =============================================================================
# Rejected shapes
# =============================================================================


class TestRejectedEnvelopes:

    def test_not_a_mapping(self):
        with pytest.raises(AnalysisEnvelopeError) as exc_info:
            parse_analysis_envelope(["not", "an", "object"])
        assert exc_info.value.path == "$"

    def test_missing_project_name(self):
        data = _envelope()
        del data["projectName"]
        with pytest.raises(AnalysisEnvelopeError) as exc_info:
            parse_analysis_envelope(data)
        assert exc_info.value.path == "$.projectName"

    def test_missing_summary_count(self):
        data = _envelope()
        del data["summary"]["criticalRisks"]
        with pytest.raises(AnalysisEnvelopeError) as exc_info:
            parse_analysis_envelope(data)
        assert exc_info.value.path == "$.summary.criticalRisks"

    @pytest.mark.parametrize("bad", ["2", 2.0, True, None])
    def test_summary_count_must_be_integer(self, bad):
        data = _envelope()
        data["summary"]["highRisks"] = bad
        with pytest.raises(AnalysisEnvelopeError):
            parse_analysis_envelope(data)

    def test_metrics_must_be_object(self):
        with pytest.raises(AnalysisEnvelopeError) as exc_info:
            parse_analysis_envelope(_envelope(projectMetrics=[1, 2]))
        assert exc_info.value.path == "$.projectMetrics"

    def test_risks_must_be_list(self):
        with pytest.raises(AnalysisEnvelopeError) as exc_info:
            parse_analysis_envelope(_envelope(risks={"a": 1}))
        assert exc_info.value.path == "$.risks"

    def test_finding_must_be_object(self):
        with pytest.raises(AnalysisEnvelopeError) as exc_info:
            parse_analysis_envelope(_envelope(risks=["text"]))
        assert exc_info.value.path == "$.risks[0]"

    def test_finding_text_field_type(self):
        with pytest.raises(AnalysisEnvelopeError) as exc_info:
            parse_analysis_envelope(_envelope(risks=[{"severity": 3}]))
        assert exc_info.value.path == "$.risks[0].severity"

    def test_finding_list_of_strings(self):
        with pytest.raises(AnalysisEnvelopeError) as exc_info:
            parse_analysis_envelope(_envelope(risks=[{"indicators": ["ok", 5]}]))
        assert exc_info.value.path == "$.risks[0].indicators"

    def test_finding_cost_not_a_number(self):
        with pytest.raises(AnalysisEnvelopeError):
            parse_analysis_envelope(_envelope(risks=[{"estimatedImpactCost": "lots"}]))

    def test_too_many_findings(self):
        with pytest.raises(AnalysisEnvelopeError):
            parse_analysis_envelope(_envelope(risks=[{}] * 4), max_findings=3)


# =============================================================================
# Snapshot payload
# =============================================================================


class TestSnapshotPayload:

    def test_payload_is_json_ready(self):
        snapshot = RiskSnapshot(
            project_id=uuid4(),
            project_name="Riverside Renovation",
            budget_utilization=Decimal("40"),
            overall_progress=Decimal("55.5"),
            timeline_progress=Decimal("20"),
            overdue_milestones=1,
            over_budget_milestones=0,
            existing_risks=3,
            high_severity_risks=1,
            milestones=(
                MilestoneSnapshot(
                    name="Foundation",
                    status="in_progress",
                    budget_allocated=Decimal("10000"),
                    cumulative_expenditure=Decimal("4000"),
                    progress_percentage=Decimal("40"),
                    end_date=date(2025, 4, 30),
                    risk_count=2,
                ),
            ),
        )
        payload = snapshot.to_payload()
        json.dumps(payload)
        assert payload["budgetUtilization"] == "40"
        assert payload["overdueMilestones"] == 1
        assert payload["milestones"][0]["actualCost"] == "4000"
        assert payload["milestones"][0]["endDate"] == "2025-04-30"
