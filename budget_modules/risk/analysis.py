"""
Risk-analysis collaborator contract (``budget_modules.risk.analysis``).

Responsibility
--------------
Defines the structured snapshot handed to an external risk analyzer and
the typed envelope accepted back from it.  The analyzer itself (an HTTP
call, a model, a local heuristic, a test stub) is injected by the caller
as any callable matching ``RiskAnalyzer``.

Architecture position
---------------------
**Modules layer** -- pure.  The snapshot is built by
``budget_services.aggregation``; this module only shapes and checks data.

Invariants enforced
-------------------
* Only the envelope's SHAPE is checked: required keys present, values of
  the expected JSON type, list lengths bounded.  Severity labels, category
  names and narrative text are accepted as given.

Failure modes
-------------
* Anything else -> ``AnalysisEnvelopeError`` naming the offending path.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Mapping, Protocol
from uuid import UUID

from budget_kernel.exceptions import AnalysisEnvelopeError


# ---------------------------------------------------------------------------
# Input: snapshot
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MilestoneSnapshot:
    name: str
    status: str
    budget_allocated: Decimal
    cumulative_expenditure: Decimal
    progress_percentage: Decimal
    end_date: date | None = None
    risk_count: int = 0


@dataclass(frozen=True)
class RiskSnapshot:
    """Project indicators handed to a risk analyzer."""
    project_id: UUID
    project_name: str
    budget_utilization: Decimal
    overall_progress: Decimal
    timeline_progress: Decimal
    overdue_milestones: int
    over_budget_milestones: int
    existing_risks: int
    high_severity_risks: int
    milestones: tuple[MilestoneSnapshot, ...] = ()

    def to_payload(self) -> dict[str, Any]:
        """JSON-ready form for analyzers that cross a process boundary."""
        return {
            "projectId": str(self.project_id),
            "projectName": self.project_name,
            "budgetUtilization": str(self.budget_utilization),
            "overallProgress": str(self.overall_progress),
            "timelineProgress": str(self.timeline_progress),
            "overdueMilestones": self.overdue_milestones,
            "overBudgetMilestones": self.over_budget_milestones,
            "existingRisks": self.existing_risks,
            "highSeverityRisks": self.high_severity_risks,
            "milestones": [
                {
                    "name": m.name,
                    "status": m.status,
                    "budgetAllocated": str(m.budget_allocated),
                    "actualCost": str(m.cumulative_expenditure),
                    "progressPercentage": str(m.progress_percentage),
                    "endDate": m.end_date.isoformat() if m.end_date else None,
                    "riskCount": m.risk_count,
                }
                for m in self.milestones
            ],
        }


class RiskAnalyzer(Protocol):
    """Snapshot in, raw envelope mapping out."""

    def __call__(self, snapshot: RiskSnapshot) -> Mapping[str, Any]: ...


# ---------------------------------------------------------------------------
# Output: envelope
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AnalysisSummary:
    total_risks_identified: int
    critical_risks: int
    high_risks: int
    medium_risks: int
    low_risks: int


@dataclass(frozen=True)
class RiskFinding:
    """One narrative finding.  Content is opaque to the engine."""
    title: str | None = None
    description: str | None = None
    category: str | None = None
    severity: str | None = None
    likelihood: str | None = None
    impact: str | None = None
    indicators: tuple[str, ...] = ()
    mitigation_strategies: tuple[str, ...] = ()
    immediate_actions: tuple[str, ...] = ()
    estimated_impact_cost: Decimal | None = None
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class RiskAnalysisEnvelope:
    project_name: str
    summary: AnalysisSummary
    project_metrics: dict[str, Any]
    risks: tuple[RiskFinding, ...]


_SUMMARY_KEYS = {
    "totalRisksIdentified": "total_risks_identified",
    "criticalRisks": "critical_risks",
    "highRisks": "high_risks",
    "mediumRisks": "medium_risks",
    "lowRisks": "low_risks",
}

_TEXT_KEYS = {
    "riskTitle": "title",
    "description": "description",
    "category": "category",
    "severity": "severity",
    "likelihood": "likelihood",
    "impact": "impact",
}

_LIST_KEYS = {
    "indicators": "indicators",
    "mitigationStrategies": "mitigation_strategies",
    "immediateActions": "immediate_actions",
}


def _require(raw: Mapping[str, Any], key: str, path: str) -> Any:
    if key not in raw:
        raise AnalysisEnvelopeError(f"{path}.{key}", "missing")
    return raw[key]


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _parse_finding(raw: Any, path: str) -> RiskFinding:
    if not isinstance(raw, Mapping):
        raise AnalysisEnvelopeError(path, "expected an object")
    values: dict[str, Any] = {}
    for key, attr in _TEXT_KEYS.items():
        value = raw.get(key)
        if value is not None and not isinstance(value, str):
            raise AnalysisEnvelopeError(f"{path}.{key}", "expected a string")
        values[attr] = value
    for key, attr in _LIST_KEYS.items():
        value = raw.get(key)
        if value is None:
            continue
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            raise AnalysisEnvelopeError(f"{path}.{key}", "expected a list of strings")
        values[attr] = tuple(value)
    cost = raw.get("estimatedImpactCost")
    if cost is not None:
        if isinstance(cost, bool) or not isinstance(cost, (int, float, str, Decimal)):
            raise AnalysisEnvelopeError(f"{path}.estimatedImpactCost", "expected a number")
        try:
            values["estimated_impact_cost"] = Decimal(str(cost))
        except ArithmeticError:
            raise AnalysisEnvelopeError(f"{path}.estimatedImpactCost", "expected a number") from None
    known = set(_TEXT_KEYS) | set(_LIST_KEYS) | {"estimatedImpactCost"}
    values["extra"] = {k: v for k, v in raw.items() if k not in known}
    return RiskFinding(**values)


def parse_analysis_envelope(raw: Any, max_findings: int = 50) -> RiskAnalysisEnvelope:
    """Check the envelope's shape and convert it to typed objects."""
    if not isinstance(raw, Mapping):
        raise AnalysisEnvelopeError("$", "expected an object")

    project_name = _require(raw, "projectName", "$")
    if not isinstance(project_name, str):
        raise AnalysisEnvelopeError("$.projectName", "expected a string")

    summary_raw = _require(raw, "summary", "$")
    if not isinstance(summary_raw, Mapping):
        raise AnalysisEnvelopeError("$.summary", "expected an object")
    counts: dict[str, int] = {}
    for key, attr in _SUMMARY_KEYS.items():
        value = _require(summary_raw, key, "$.summary")
        if not _is_int(value):
            raise AnalysisEnvelopeError(f"$.summary.{key}", "expected an integer")
        counts[attr] = value

    metrics = _require(raw, "projectMetrics", "$")
    if not isinstance(metrics, Mapping):
        raise AnalysisEnvelopeError("$.projectMetrics", "expected an object")

    risks_raw = _require(raw, "risks", "$")
    if not isinstance(risks_raw, list):
        raise AnalysisEnvelopeError("$.risks", "expected a list")
    if len(risks_raw) > max_findings:
        raise AnalysisEnvelopeError("$.risks", f"more than {max_findings} findings")

    return RiskAnalysisEnvelope(
        project_name=project_name,
        summary=AnalysisSummary(**counts),
        project_metrics=dict(metrics),
        risks=tuple(_parse_finding(r, f"$.risks[{i}]") for i, r in enumerate(risks_raw)),
    )
