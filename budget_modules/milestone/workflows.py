"""Milestone Workflows.

Milestone status has no enforced graph: every status may move to every
other.  Moves into a flagged status (see ``MilestoneConfig``) are recorded
for audit by the service, not blocked here.
"""

from budget_kernel.domain.workflow import fully_connected
from budget_kernel.logging_config import get_logger
from budget_modules.milestone.models import MilestoneStatus

logger = get_logger("modules.milestone.workflows")


MILESTONE_STATUS_WORKFLOW = fully_connected(
    name="milestone_status",
    description="Milestone lifecycle (any-to-any)",
    states=tuple(s.value for s in MilestoneStatus),
    initial_state=MilestoneStatus.PLANNING.value,
)

logger.info("milestone_status_workflow_registered", extra={
    "workflow_name": MILESTONE_STATUS_WORKFLOW.name,
    "state_count": len(MILESTONE_STATUS_WORKFLOW.states),
})
