"""
Risk Module.

Per-milestone risk register with a probability x impact severity matrix,
an any-to-any status lifecycle, and the contract for an injected external
risk analyzer.
"""

from budget_modules.risk.analysis import (
    AnalysisSummary,
    MilestoneSnapshot,
    RiskAnalysisEnvelope,
    RiskAnalyzer,
    RiskFinding,
    RiskSnapshot,
    parse_analysis_envelope,
)
from budget_modules.risk.config import RiskConfig
from budget_modules.risk.models import Risk, RiskCategory, RiskCounts, RiskLevel, RiskStatus
from budget_modules.risk.severity import classify_severity, count_risks
from budget_modules.risk.workflows import RISK_STATUS_WORKFLOW

__all__ = [
    "AnalysisSummary",
    "MilestoneSnapshot",
    "RiskAnalysisEnvelope",
    "RiskAnalyzer",
    "RiskFinding",
    "RiskSnapshot",
    "parse_analysis_envelope",
    "RiskConfig",
    "Risk",
    "RiskCategory",
    "RiskCounts",
    "RiskLevel",
    "RiskStatus",
    "classify_severity",
    "count_risks",
    "RISK_STATUS_WORKFLOW",
]
