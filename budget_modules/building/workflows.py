"""Building Budget Workflows.

DRAFT, APPROVED, ACTIVE and CLOSED are mutually reachable; a closed
budget can be reopened.
"""

from budget_kernel.domain.workflow import fully_connected
from budget_kernel.logging_config import get_logger
from budget_modules.building.models import BuildingBudgetStatus

logger = get_logger("modules.building.workflows")


BUILDING_BUDGET_WORKFLOW = fully_connected(
    name="building_budget",
    description="Building budget lifecycle (any-to-any)",
    states=tuple(s.value for s in BuildingBudgetStatus),
    initial_state=BuildingBudgetStatus.DRAFT.value,
)

logger.info("building_budget_workflow_registered", extra={
    "workflow_name": BUILDING_BUDGET_WORKFLOW.name,
    "state_count": len(BUILDING_BUDGET_WORKFLOW.states),
})
