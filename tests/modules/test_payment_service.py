"""
PaymentRequestService integration tests.

Validates:
- submit_payment_request: PENDING, sequential request numbers, default notes
- review_payment_request: reviewer roles only, PENDING only, reason on reject
- Decided requests are terminal; a second review fails and changes nothing
- payment_totals and approved_payments_between for rollups
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from budget_kernel.domain.identity import Actor, Role
from budget_kernel.exceptions import (
    InvalidCategoryError,
    InvalidNumberError,
    MilestoneNotFoundError,
    NegativeAmountError,
    PaymentRequestAlreadyDecidedError,
    PaymentRequestNotFoundError,
    RejectionReasonRequiredError,
    ReviewerRoleRequiredError,
)
from budget_modules.payment.config import PaymentConfig
from budget_modules.payment.models import PaymentStatus, ReviewDecision
from budget_modules.payment.service import PaymentRequestService


@pytest.fixture
def request_(payment_service, milestone, contractor_actor):
    return payment_service.submit_payment_request(
        milestone.id, contractor_actor.actor_id, "3500", contractor_actor,
    )


# =============================================================================
# Submission
# =============================================================================


class TestSubmit:

    def test_submit_creates_pending(self, request_, milestone, contractor_actor):
        assert request_.status is PaymentStatus.PENDING
        assert request_.request_number == "PAY-MS-00001"
        assert request_.calculated_amount == Decimal("3500")
        assert request_.milestone_id == milestone.id
        assert request_.contractor_id == contractor_actor.actor_id
        assert request_.notes == "Payment for milestone completion"
        assert not request_.is_decided

    def test_request_numbers_are_sequential(self, payment_service, request_, milestone, contractor_actor):
        second = payment_service.submit_payment_request(
            milestone.id, contractor_actor.actor_id, "100", contractor_actor,
        )
        assert second.request_number == "PAY-MS-00002"

    def test_partial_payment_notes(self, payment_service, milestone, contractor_actor):
        req = payment_service.submit_payment_request(
            milestone.id, contractor_actor.actor_id, "1200", contractor_actor,
            is_partial_payment=True, notes="First half", days_worked="4", daily_rate="300",
        )
        assert req.is_partial_payment
        assert req.notes == "PARTIAL PAYMENT - First half"
        assert req.days_worked == Decimal("4")
        assert req.daily_rate == Decimal("300")

    def test_partial_payment_default_notes(self, payment_service, milestone, contractor_actor):
        req = payment_service.submit_payment_request(
            milestone.id, contractor_actor.actor_id, "1200", contractor_actor, is_partial_payment=True,
        )
        assert req.notes == "PARTIAL PAYMENT for milestone completion"

    def test_negative_amount(self, payment_service, milestone, contractor_actor):
        with pytest.raises(NegativeAmountError):
            payment_service.submit_payment_request(
                milestone.id, contractor_actor.actor_id, "-1", contractor_actor,
            )

    @pytest.mark.parametrize("amount", ["abc", "NaN", "Infinity", "-Infinity"])
    def test_amount_not_a_number(self, payment_service, milestone, contractor_actor, amount):
        with pytest.raises(InvalidNumberError) as exc_info:
            payment_service.submit_payment_request(
                milestone.id, contractor_actor.actor_id, amount, contractor_actor,
            )
        assert exc_info.value.field == "calculated_amount"
        assert payment_service.list_payment_requests(milestone.id) == []

    def test_rate_not_a_number(self, payment_service, milestone, contractor_actor):
        with pytest.raises(InvalidNumberError) as exc_info:
            payment_service.submit_payment_request(
                milestone.id, contractor_actor.actor_id, "100", contractor_actor, hourly_rate="fast",
            )
        assert exc_info.value.field == "hourly_rate"

    def test_rejected_submission_does_not_consume_number(self, payment_service, milestone, contractor_actor):
        with pytest.raises(NegativeAmountError):
            payment_service.submit_payment_request(
                milestone.id, contractor_actor.actor_id, "100", contractor_actor, days_worked="-2",
            )
        created = payment_service.submit_payment_request(
            milestone.id, contractor_actor.actor_id, "100", contractor_actor,
        )
        assert created.request_number == "PAY-MS-00001"

    def test_unknown_milestone(self, payment_service, contractor_actor):
        with pytest.raises(MilestoneNotFoundError):
            payment_service.submit_payment_request(
                uuid4(), contractor_actor.actor_id, "10", contractor_actor,
            )

    def test_custom_number_format(self, session, deterministic_clock, milestone, contractor_actor):
        service = PaymentRequestService(
            session, deterministic_clock,
            PaymentConfig(request_number_prefix="PR-", request_number_width=3),
        )
        req = service.submit_payment_request(milestone.id, contractor_actor.actor_id, "1", contractor_actor)
        assert req.request_number == "PR-001"


# =============================================================================
# Review
# =============================================================================


class TestReview:

    def test_approve(self, payment_service, request_, manager_actor, captured_logs):
        approved = payment_service.review_payment_request(
            request_.id, manager_actor, ReviewDecision.APPROVED, reviewer_notes="Checked on site",
        )
        assert approved.status is PaymentStatus.APPROVED
        assert approved.reviewed_by_id == manager_actor.actor_id
        assert approved.reviewer_notes == "Checked on site"
        assert approved.decided_at is not None
        assert approved.approved_at is not None
        assert approved.rejection_reason is None
        assert approved.is_decided
        assert any(r["message"] == "payment_request_reviewed" for r in captured_logs())

    def test_reject_with_empty_reason_fails(self, payment_service, request_, manager_actor):
        for reason in (None, "", "   "):
            with pytest.raises(RejectionReasonRequiredError):
                payment_service.review_payment_request(
                    request_.id, manager_actor, ReviewDecision.REJECTED, reason=reason,
                )
        assert payment_service.get_payment_request(request_.id).status is PaymentStatus.PENDING

    def test_reject_stores_reason_verbatim(self, payment_service, request_, manager_actor):
        rejected = payment_service.review_payment_request(
            request_.id, manager_actor, "rejected", reason="insufficient documentation",
        )
        assert rejected.status is PaymentStatus.REJECTED
        assert rejected.rejection_reason == "insufficient documentation"
        assert rejected.approved_at is None

    @pytest.mark.parametrize("role", [Role.SENIOR_ADMIN, Role.JUNIOR_ADMIN, Role.PROPERTY_MANAGER])
    def test_reviewer_roles(self, payment_service, request_, role):
        reviewer = Actor(actor_id=uuid4(), role=role)
        result = payment_service.review_payment_request(request_.id, reviewer, "APPROVED")
        assert result.status is PaymentStatus.APPROVED

    @pytest.mark.parametrize(
        "role",
        [
            Role.CONTRACTOR,
            Role.CONTRACTOR_SENIOR_MANAGER,
            Role.CONTRACTOR_JUNIOR_MANAGER,
            Role.ARTISAN,
            Role.CUSTOMER,
        ],
    )
    def test_non_reviewer_forbidden(self, payment_service, request_, role):
        caller = Actor(actor_id=uuid4(), role=role)
        with pytest.raises(ReviewerRoleRequiredError) as exc_info:
            payment_service.review_payment_request(request_.id, caller, ReviewDecision.APPROVED)
        assert exc_info.value.role == role.value
        assert payment_service.get_payment_request(request_.id).status is PaymentStatus.PENDING

    def test_unknown_decision(self, payment_service, request_, manager_actor):
        with pytest.raises(InvalidCategoryError):
            payment_service.review_payment_request(request_.id, manager_actor, "pending")

    def test_unknown_request(self, payment_service, manager_actor):
        with pytest.raises(PaymentRequestNotFoundError):
            payment_service.review_payment_request(uuid4(), manager_actor, ReviewDecision.APPROVED)


# =============================================================================
# Terminal states
# =============================================================================


class TestTerminalStates:

    def test_approved_cannot_be_rejected(self, payment_service, request_, manager_actor, admin_actor):
        payment_service.review_payment_request(request_.id, manager_actor, ReviewDecision.APPROVED)
        with pytest.raises(PaymentRequestAlreadyDecidedError) as exc_info:
            payment_service.review_payment_request(
                request_.id, admin_actor, ReviewDecision.REJECTED, reason="Changed my mind",
            )
        assert exc_info.value.current_status == "approved"
        current = payment_service.get_payment_request(request_.id)
        assert current.status is PaymentStatus.APPROVED
        assert current.rejection_reason is None
        assert current.reviewed_by_id == manager_actor.actor_id

    def test_rejected_cannot_be_approved(self, payment_service, request_, manager_actor):
        payment_service.review_payment_request(
            request_.id, manager_actor, ReviewDecision.REJECTED, reason="insufficient documentation",
        )
        with pytest.raises(PaymentRequestAlreadyDecidedError):
            payment_service.review_payment_request(request_.id, manager_actor, ReviewDecision.APPROVED)
        current = payment_service.get_payment_request(request_.id)
        assert current.status is PaymentStatus.REJECTED
        assert current.rejection_reason == "insufficient documentation"

    def test_decided_request_reports_state_before_reason(self, payment_service, request_, manager_actor):
        """A blank-reason rejection of a decided request is an InvalidState, not a ValidationError."""
        payment_service.review_payment_request(request_.id, manager_actor, ReviewDecision.APPROVED)
        with pytest.raises(PaymentRequestAlreadyDecidedError):
            payment_service.review_payment_request(request_.id, manager_actor, ReviewDecision.REJECTED)


# =============================================================================
# Reads and rollups
# =============================================================================


class TestPaymentReads:

    def test_totals_by_status(self, payment_service, milestone, contractor_actor, manager_actor):
        ids = [
            payment_service.submit_payment_request(
                milestone.id, contractor_actor.actor_id, amount, contractor_actor,
            ).id
            for amount in ("1000", "2000", "3000", "400")
        ]
        payment_service.review_payment_request(ids[0], manager_actor, "approved")
        payment_service.review_payment_request(ids[1], manager_actor, "approved")
        payment_service.review_payment_request(ids[2], manager_actor, "rejected", reason="Duplicate")

        totals = payment_service.payment_totals([milestone.id])
        assert totals.approved_amount == Decimal("3000")
        assert totals.approved_count == 2
        assert totals.rejected_amount == Decimal("3000")
        assert totals.rejected_count == 1
        assert totals.pending_amount == Decimal("400")
        assert totals.pending_count == 1

        pending = payment_service.list_payment_requests(milestone_id=milestone.id, status="pending")
        assert [p.id for p in pending] == [ids[3]]

    def test_totals_for_no_milestones(self, payment_service):
        totals = payment_service.payment_totals([])
        assert totals.approved_count == 0

    def test_approved_between_uses_decision_date(
        self, payment_service, milestone, contractor_actor, manager_actor, deterministic_clock,
    ):
        march = payment_service.submit_payment_request(
            milestone.id, contractor_actor.actor_id, "1000", contractor_actor,
        )
        april = payment_service.submit_payment_request(
            milestone.id, contractor_actor.actor_id, "2000", contractor_actor,
        )
        payment_service.review_payment_request(march.id, manager_actor, "approved")
        deterministic_clock.set_time(datetime(2025, 4, 2, 12, 0, tzinfo=timezone.utc))
        payment_service.review_payment_request(april.id, manager_actor, "approved")

        in_march = payment_service.approved_payments_between(date(2025, 3, 1), date(2025, 3, 31))
        assert [p.id for p in in_march] == [march.id]
        in_april = payment_service.approved_payments_between(date(2025, 4, 1), date(2025, 4, 30))
        assert [p.id for p in in_april] == [april.id]

    def test_approved_between_scoped_to_buildings(
        self, payment_service, milestone_service, milestone, contractor_actor, manager_actor, admin_actor,
    ):
        building_id = uuid4()
        linked = milestone_service.create_project("Linked", admin_actor, building_id=building_id)
        linked_ms = milestone_service.create_milestone(linked.id, "Roof", admin_actor)

        on_linked = payment_service.submit_payment_request(
            linked_ms.id, contractor_actor.actor_id, "700", contractor_actor,
        )
        unlinked = payment_service.submit_payment_request(
            milestone.id, contractor_actor.actor_id, "900", contractor_actor,
        )
        payment_service.review_payment_request(on_linked.id, manager_actor, "approved")
        payment_service.review_payment_request(unlinked.id, manager_actor, "approved")

        scoped = payment_service.approved_payments_between(
            date(2025, 3, 1), date(2025, 3, 31), [building_id],
        )
        assert [p.id for p in scoped] == [on_linked.id]
        assert payment_service.approved_payments_between(
            date(2025, 3, 1), date(2025, 3, 31), [],
        ) == []
