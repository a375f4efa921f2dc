"""
Status workflow tests.

Validates:
- Risk, milestone and building budget workflows permit every edge
- The payment request workflow permits only PENDING -> APPROVED / REJECTED
- Terminal states have no outgoing edges
- Workflow definitions reject edges to unknown states
"""

from itertools import permutations

import pytest

from budget_kernel.domain.workflow import Transition, Workflow, fully_connected
from budget_kernel.exceptions import InvalidTransitionError
from budget_modules.building.workflows import BUILDING_BUDGET_WORKFLOW
from budget_modules.milestone.workflows import MILESTONE_STATUS_WORKFLOW
from budget_modules.payment.workflows import PAYMENT_REQUEST_WORKFLOW
from budget_modules.risk.workflows import RISK_STATUS_WORKFLOW

UNRESTRICTED_WORKFLOWS = [
    ("Risk", RISK_STATUS_WORKFLOW),
    ("Milestone", MILESTONE_STATUS_WORKFLOW),
    ("Building Budget", BUILDING_BUDGET_WORKFLOW),
]


# =============================================================================
# Unrestricted workflows
# =============================================================================


class TestUnrestrictedWorkflows:

    @pytest.mark.parametrize("name,workflow", UNRESTRICTED_WORKFLOWS)
    def test_every_edge_allowed(self, name, workflow):
        for a, b in permutations(workflow.states, 2):
            assert workflow.allows(a, b), f"{name}: {a} -> {b} should be allowed"

    @pytest.mark.parametrize("name,workflow", UNRESTRICTED_WORKFLOWS)
    def test_no_terminal_states(self, name, workflow):
        assert workflow.terminal_states == ()

    def test_risk_six_directed_edges(self):
        assert len(RISK_STATUS_WORKFLOW.transitions) == 6
        assert RISK_STATUS_WORKFLOW.allows("closed", "open")
        assert RISK_STATUS_WORKFLOW.allows("open", "closed")

    def test_self_transition_is_not_an_edge(self):
        assert not RISK_STATUS_WORKFLOW.allows("open", "open")


# =============================================================================
# Payment request workflow
# =============================================================================


class TestPaymentRequestWorkflow:

    def test_initial_state_pending(self):
        assert PAYMENT_REQUEST_WORKFLOW.initial_state == "pending"

    def test_only_pending_moves(self):
        assert PAYMENT_REQUEST_WORKFLOW.targets("pending") == frozenset({"approved", "rejected"})
        assert PAYMENT_REQUEST_WORKFLOW.targets("approved") == frozenset()
        assert PAYMENT_REQUEST_WORKFLOW.targets("rejected") == frozenset()

    @pytest.mark.parametrize(
        "from_state,to_state",
        [
            ("approved", "rejected"),
            ("rejected", "approved"),
            ("approved", "pending"),
            ("rejected", "pending"),
        ],
    )
    def test_terminal_states_locked(self, from_state, to_state):
        with pytest.raises(InvalidTransitionError) as exc_info:
            PAYMENT_REQUEST_WORKFLOW.require_transition(from_state, to_state)
        assert exc_info.value.workflow == "payment_request"

    def test_terminal_flags(self):
        assert PAYMENT_REQUEST_WORKFLOW.is_terminal("approved")
        assert PAYMENT_REQUEST_WORKFLOW.is_terminal("rejected")
        assert not PAYMENT_REQUEST_WORKFLOW.is_terminal("pending")


# =============================================================================
# Definition checks
# =============================================================================


class TestWorkflowDefinition:

    def test_unknown_state_in_transition(self):
        with pytest.raises(ValueError):
            Workflow(
                name="bad",
                description="",
                initial_state="a",
                states=("a", "b"),
                transitions=(Transition("a", "c", action="go"),),
            )

    def test_terminal_state_with_outgoing_edge(self):
        with pytest.raises(ValueError):
            Workflow(
                name="bad",
                description="",
                initial_state="a",
                states=("a", "b"),
                transitions=(Transition("b", "a", action="reopen"),),
                terminal_states=("b",),
            )

    def test_initial_state_must_exist(self):
        with pytest.raises(ValueError):
            fully_connected("bad", "", ("a", "b"), initial_state="z")
