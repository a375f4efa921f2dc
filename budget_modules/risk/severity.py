"""
Severity matrix (``budget_modules.risk.severity``).

A single HIGH on either axis makes the risk HIGH; otherwise a single
MEDIUM makes it MEDIUM.  The two axes are never averaged.
"""

from __future__ import annotations

from collections import Counter
from typing import Iterable

from budget_modules.risk.models import Risk, RiskCounts, RiskLevel, RiskStatus


def classify_severity(probability: RiskLevel, impact: RiskLevel) -> RiskLevel:
    if RiskLevel.HIGH in (probability, impact):
        return RiskLevel.HIGH
    if RiskLevel.MEDIUM in (probability, impact):
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def count_risks(risks: Iterable[Risk]) -> RiskCounts:
    risks = list(risks)
    severity = Counter(r.severity.value for r in risks)
    status = Counter(r.status.value for r in risks)
    return RiskCounts(
        total=len(risks),
        by_severity={level.value: severity.get(level.value, 0) for level in RiskLevel},
        by_status={s.value: status.get(s.value, 0) for s in RiskStatus},
    )
