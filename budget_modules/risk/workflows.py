"""Risk Workflows.

OPEN, MITIGATED and CLOSED are mutually reachable.  CLOSED is the usual
end of a risk's life but is not enforced as terminal.
"""

from budget_kernel.domain.workflow import fully_connected
from budget_kernel.logging_config import get_logger
from budget_modules.risk.models import RiskStatus

logger = get_logger("modules.risk.workflows")


RISK_STATUS_WORKFLOW = fully_connected(
    name="risk_status",
    description="Risk lifecycle (any-to-any)",
    states=tuple(s.value for s in RiskStatus),
    initial_state=RiskStatus.OPEN.value,
)

logger.info("risk_status_workflow_registered", extra={
    "workflow_name": RISK_STATUS_WORKFLOW.name,
    "state_count": len(RISK_STATUS_WORKFLOW.states),
})
