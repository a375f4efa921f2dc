"""
Typed Exception Hierarchy for the budget tracking kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers of the tracking engine (HTTP handlers, CLI tools, report jobs) need
to tell a malformed request apart from a missing record or an illegal
lifecycle move without parsing message strings.  Every error therefore:

  1. Has its own class (catch by type, not by message)
  2. Has a ``code`` class attribute (machine-readable, API-safe)
  3. Carries the failing field/entity as attributes

Example:
    try:
        payments.review_payment_request(request_id, actor, decision)
    except PaymentRequestAlreadyDecidedError as e:
        respond(409, code=e.code, status=e.current_status)
    except ValidationError as e:
        respond(422, code=e.code, detail=str(e))

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    BudgetKernelError (base)
    |
    +-- ValidationError
    |   +-- OverspendJustificationError
    |   +-- InvalidNumberError
    |   +-- NegativeAmountError
    |   +-- InvalidDateRangeError
    |   +-- InvalidProgressError
    |   +-- RejectionReasonRequiredError
    |   +-- MissingFieldError
    |   +-- InvalidCategoryError
    |   +-- MaterialCostLockedError
    |   +-- AnalysisEnvelopeError
    |
    +-- NotFoundError
    |   +-- ProjectNotFoundError
    |   +-- MilestoneNotFoundError
    |   +-- WeeklyUpdateNotFoundError
    |   +-- MaterialItemNotFoundError
    |   +-- QuotationNotFoundError
    |   +-- RiskNotFoundError
    |   +-- PaymentRequestNotFoundError
    |   +-- BuildingNotFoundError
    |   +-- BudgetNotFoundError
    |   +-- BudgetExpenseNotFoundError
    |   +-- TenantNotFoundError
    |
    +-- InvalidStateError
    |   +-- PaymentRequestAlreadyDecidedError
    |   +-- InvalidTransitionError
    |
    +-- ForbiddenError
        +-- ReviewerRoleRequiredError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category     | Code                          | When Raised
-------------|-------------------------------|-----------------------------------------
Validation   | OVERSPEND_JUSTIFICATION       | actual > quoted and no reason supplied
             | INVALID_NUMBER                | Numeric field unparseable, NaN or infinite
             | NEGATIVE_AMOUNT               | Money/quantity field below zero
             | INVALID_DATE_RANGE            | End date before start date
             | INVALID_PROGRESS              | Progress outside 0..100
             | REJECTION_REASON_REQUIRED     | Rejecting without a reason
             | MISSING_FIELD                 | Required text field empty
             | INVALID_CATEGORY              | Value outside a closed set
             | MATERIAL_COST_LOCKED          | materialCost edited while items exist
             | ANALYSIS_ENVELOPE_INVALID     | Risk-analysis output has wrong shape
-------------|-------------------------------|-----------------------------------------
NotFound     | <ENTITY>_NOT_FOUND            | Referenced record does not exist
-------------|-------------------------------|-----------------------------------------
State        | PAYMENT_REQUEST_DECIDED       | Reviewing a non-PENDING request
             | INVALID_TRANSITION            | Workflow forbids from -> to
-------------|-------------------------------|-----------------------------------------
Forbidden    | REVIEWER_ROLE_REQUIRED        | Caller role cannot review payments
"""

from __future__ import annotations

from decimal import Decimal


class BudgetKernelError(Exception):
    """
    Base exception for all tracking-engine errors.

    All subclasses must have a ``code`` class attribute.
    """

    code: str = "BUDGET_KERNEL_ERROR"


# Validation errors


class ValidationError(BudgetKernelError):
    """Malformed input rejected before any state changed."""

    code: str = "VALIDATION_ERROR"


class OverspendJustificationError(ValidationError):
    """An itemized expense is over its quote and carries no reason."""

    code: str = "OVERSPEND_JUSTIFICATION"

    def __init__(
        self,
        item_index: int,
        description: str,
        quoted_amount: Decimal,
        actual_spent: Decimal,
    ):
        self.item_index = item_index
        self.description = description
        self.quoted_amount = quoted_amount
        self.actual_spent = actual_spent
        super().__init__(
            f"Item {item_index} ({description!r}) spent {actual_spent} against "
            f"a quote of {quoted_amount}; a reason for overspend is required"
        )


class InvalidNumberError(ValidationError):
    """A numeric field is not a finite number."""

    code: str = "INVALID_NUMBER"

    def __init__(self, field: str, value: object):
        self.field = field
        self.value = value
        super().__init__(f"{field} must be a finite number, got {value!r}")


class NegativeAmountError(ValidationError):
    """A monetary or quantity field is below zero."""

    code: str = "NEGATIVE_AMOUNT"

    def __init__(self, field: str, value: Decimal):
        self.field = field
        self.value = value
        super().__init__(f"{field} must be non-negative, got {value}")


class InvalidDateRangeError(ValidationError):
    """End date precedes start date."""

    code: str = "INVALID_DATE_RANGE"

    def __init__(self, start: object, end: object, field: str = "date_range"):
        self.field = field
        self.start = start
        self.end = end
        super().__init__(f"{field}: end {end} is before start {start}")


class InvalidProgressError(ValidationError):
    """Progress percentage outside 0..100."""

    code: str = "INVALID_PROGRESS"

    def __init__(self, value: Decimal):
        self.value = value
        super().__init__(f"progress_percentage must be between 0 and 100, got {value}")


class RejectionReasonRequiredError(ValidationError):
    """A payment request cannot be rejected without a reason."""

    code: str = "REJECTION_REASON_REQUIRED"

    def __init__(self, request_id: str):
        self.request_id = request_id
        super().__init__(f"Rejecting payment request {request_id} requires a reason")


class MissingFieldError(ValidationError):
    """A required text field is empty or whitespace."""

    code: str = "MISSING_FIELD"

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"{field} is required")


class InvalidCategoryError(ValidationError):
    """A value is not a member of its closed set."""

    code: str = "INVALID_CATEGORY"

    def __init__(self, field: str, value: object, allowed: tuple[str, ...] = ()):
        self.field = field
        self.value = value
        self.allowed = allowed
        super().__init__(f"Invalid {field} {value!r}; expected one of {', '.join(allowed)}")


class MaterialCostLockedError(ValidationError):
    """materialCost is derived from line items and cannot be set directly."""

    code: str = "MATERIAL_COST_LOCKED"

    def __init__(self, milestone_id: str):
        self.milestone_id = milestone_id
        super().__init__(
            f"Milestone {milestone_id} has material line items; "
            f"material_cost is derived from them"
        )


class AnalysisEnvelopeError(ValidationError):
    """The risk-analysis collaborator returned a malformed envelope."""

    code: str = "ANALYSIS_ENVELOPE_INVALID"

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Invalid analysis envelope at {path}: {reason}")


# Not-found errors


class NotFoundError(BudgetKernelError):
    """A referenced record does not exist."""

    code: str = "NOT_FOUND"
    entity_type: str = "Entity"

    def __init__(self, entity_id: str):
        self.entity_id = entity_id
        super().__init__(f"{self.entity_type} not found: {entity_id}")


class ProjectNotFoundError(NotFoundError):
    code: str = "PROJECT_NOT_FOUND"
    entity_type: str = "Project"


class MilestoneNotFoundError(NotFoundError):
    code: str = "MILESTONE_NOT_FOUND"
    entity_type: str = "Milestone"


class WeeklyUpdateNotFoundError(NotFoundError):
    code: str = "WEEKLY_UPDATE_NOT_FOUND"
    entity_type: str = "WeeklyUpdate"


class MaterialItemNotFoundError(NotFoundError):
    code: str = "MATERIAL_ITEM_NOT_FOUND"
    entity_type: str = "MaterialItem"


class QuotationNotFoundError(NotFoundError):
    code: str = "QUOTATION_NOT_FOUND"
    entity_type: str = "SupplierQuotation"


class RiskNotFoundError(NotFoundError):
    code: str = "RISK_NOT_FOUND"
    entity_type: str = "Risk"


class PaymentRequestNotFoundError(NotFoundError):
    code: str = "PAYMENT_REQUEST_NOT_FOUND"
    entity_type: str = "PaymentRequest"


class BuildingNotFoundError(NotFoundError):
    code: str = "BUILDING_NOT_FOUND"
    entity_type: str = "Building"


class BudgetNotFoundError(NotFoundError):
    code: str = "BUDGET_NOT_FOUND"
    entity_type: str = "BuildingBudget"


class BudgetExpenseNotFoundError(NotFoundError):
    code: str = "BUDGET_EXPENSE_NOT_FOUND"
    entity_type: str = "BudgetExpense"


class TenantNotFoundError(NotFoundError):
    code: str = "TENANT_NOT_FOUND"
    entity_type: str = "Tenant"


# Lifecycle-state errors


class InvalidStateError(BudgetKernelError):
    """Operation is not legal in the entity's current lifecycle state."""

    code: str = "INVALID_STATE"


class PaymentRequestAlreadyDecidedError(InvalidStateError):
    """
    The payment request is APPROVED or REJECTED and can no longer change.

    Also raised to the losing side of two concurrent reviews.
    """

    code: str = "PAYMENT_REQUEST_DECIDED"

    def __init__(self, request_id: str, current_status: str):
        self.request_id = request_id
        self.current_status = current_status
        super().__init__(
            f"Payment request {request_id} is already {current_status}"
        )


class InvalidTransitionError(InvalidStateError):
    """The workflow has no edge from the current state to the target."""

    code: str = "INVALID_TRANSITION"

    def __init__(self, workflow: str, from_state: str, to_state: str):
        self.workflow = workflow
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(
            f"{workflow}: transition {from_state} -> {to_state} is not allowed"
        )


# Authorization errors


class ForbiddenError(BudgetKernelError):
    """The caller's role lacks the capability for this operation."""

    code: str = "FORBIDDEN"


class ReviewerRoleRequiredError(ForbiddenError):
    """Only reviewer roles may decide payment requests."""

    code: str = "REVIEWER_ROLE_REQUIRED"

    def __init__(self, actor_id: str, role: str, capability: str):
        self.actor_id = actor_id
        self.role = role
        self.capability = capability
        super().__init__(
            f"Actor {actor_id} with role {role} cannot perform {capability}"
        )
