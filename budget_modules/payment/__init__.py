"""
Payment Module.

Contractor payment requests per milestone with a strict, single-shot
PENDING -> APPROVED | REJECTED review.
"""

from budget_modules.payment.config import PaymentConfig
from budget_modules.payment.models import (
    PaymentRequest,
    PaymentStatus,
    PaymentTotals,
    ReviewDecision,
)
from budget_modules.payment.workflows import PAYMENT_REQUEST_WORKFLOW

__all__ = [
    "PaymentConfig",
    "PaymentRequest",
    "PaymentStatus",
    "PaymentTotals",
    "ReviewDecision",
    "PAYMENT_REQUEST_WORKFLOW",
]
