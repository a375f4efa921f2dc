"""
Milestone cost calculations (``budget_modules.milestone.calculations``).

Pure functions.  After every change to a cost field or a material line item
the milestone service recomputes ``material_cost`` and ``expected_profit``
with these and writes them in the same flush as the change.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Iterable, Protocol

from budget_kernel.domain.values import decimal_sum
from budget_modules.milestone.models import CostBreakdown, MilestoneStatus, ProjectStatus


class _PricedLine(Protocol):
    quantity: Decimal
    unit_price: Decimal


def material_cost(items: Iterable[_PricedLine]) -> Decimal:
    """Sum of quantity x unit price."""
    return decimal_sum(item.quantity * item.unit_price for item in items)


def expected_profit(budget_allocated: Decimal, costs: CostBreakdown) -> Decimal:
    """budget_allocated minus every planned cost component."""
    return budget_allocated - costs.total


def initial_milestone_status(project_status: ProjectStatus) -> MilestoneStatus:
    """New milestones on a running project start NOT_STARTED, otherwise PLANNING."""
    if project_status is ProjectStatus.IN_PROGRESS:
        return MilestoneStatus.NOT_STARTED
    return MilestoneStatus.PLANNING
