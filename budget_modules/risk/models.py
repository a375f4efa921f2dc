"""
Risk Register Models (``budget_modules.risk.models``).

Responsibility
--------------
Frozen value objects for risks attached to a milestone.

Invariants enforced
-------------------
* ``Risk.severity`` is derived from probability and impact on every read
  (see ``budget_modules.risk.severity``); it is never stored.
"""

from dataclasses import dataclass, field
from enum import Enum
from uuid import UUID


class RiskCategory(Enum):
    TECHNICAL = "technical"
    FINANCIAL = "financial"
    SCHEDULE = "schedule"
    RESOURCE = "resource"
    EXTERNAL = "external"


class RiskLevel(Enum):
    """Used for probability, impact and the derived severity."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class RiskStatus(Enum):
    OPEN = "open"
    MITIGATED = "mitigated"
    CLOSED = "closed"


@dataclass(frozen=True)
class Risk:
    """A risk entry on a milestone."""
    id: UUID
    milestone_id: UUID
    description: str
    category: RiskCategory
    probability: RiskLevel
    impact: RiskLevel
    status: RiskStatus = RiskStatus.OPEN
    mitigation_strategy: str | None = None
    raised_by_id: UUID | None = None

    @property
    def severity(self) -> RiskLevel:
        from budget_modules.risk.severity import classify_severity

        return classify_severity(self.probability, self.impact)


@dataclass(frozen=True)
class RiskCounts:
    """Risk tallies by severity and by status."""
    total: int = 0
    by_severity: dict[str, int] = field(default_factory=dict)
    by_status: dict[str, int] = field(default_factory=dict)

    @property
    def high(self) -> int:
        return self.by_severity.get(RiskLevel.HIGH.value, 0)
