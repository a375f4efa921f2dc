"""
Milestone Module.

Projects and their budgeted milestones: planned cost breakdown and
expected profit, material line items, supplier quotations and status.
"""

from budget_modules.milestone.calculations import (
    expected_profit,
    initial_milestone_status,
    material_cost,
)
from budget_modules.milestone.config import MilestoneConfig
from budget_modules.milestone.models import (
    CostBreakdown,
    MaterialInput,
    MaterialItem,
    Milestone,
    MilestoneStatus,
    MilestoneStatusChange,
    Project,
    ProjectStatus,
    SupplierQuotation,
)
from budget_modules.milestone.workflows import MILESTONE_STATUS_WORKFLOW

__all__ = [
    "CostBreakdown",
    "MaterialInput",
    "MaterialItem",
    "Milestone",
    "MilestoneConfig",
    "MilestoneStatus",
    "MilestoneStatusChange",
    "Project",
    "ProjectStatus",
    "SupplierQuotation",
    "MILESTONE_STATUS_WORKFLOW",
    "expected_profit",
    "initial_milestone_status",
    "material_cost",
]
