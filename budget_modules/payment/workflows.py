"""Payment Request Workflows.

PENDING may move to APPROVED or REJECTED, once.  Both are terminal.  Kept
apart from the permissive milestone and risk workflows.
"""

from budget_kernel.domain.workflow import Transition, Workflow
from budget_kernel.logging_config import get_logger

logger = get_logger("modules.payment.workflows")


PAYMENT_REQUEST_WORKFLOW = Workflow(
    name="payment_request",
    description="Contractor payment request review",
    initial_state="pending",
    states=("pending", "approved", "rejected"),
    transitions=(
        Transition("pending", "approved", action="approve"),
        Transition("pending", "rejected", action="reject"),
    ),
    terminal_states=("approved", "rejected"),
)

logger.info("payment_request_workflow_registered", extra={
    "workflow_name": PAYMENT_REQUEST_WORKFLOW.name,
    "state_count": len(PAYMENT_REQUEST_WORKFLOW.states),
})
