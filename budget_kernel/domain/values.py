"""
Money and ratio helpers (``budget_kernel.domain.values``).

All monetary arithmetic in the engine goes through ``Decimal``.  Inputs
arriving as ``int``/``str``/``float`` are converted via ``str()`` so that
``0.1`` becomes ``Decimal("0.1")`` rather than its binary expansion.

Unparseable, NaN and infinite inputs raise ``InvalidNumberError`` naming the
field.  Divisions that would divide by zero return ``Decimal("0")``.  That is a
reporting policy (an empty budget is 0% utilized), not an error.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Iterable

from budget_kernel.exceptions import InvalidNumberError, MissingFieldError, NegativeAmountError

ZERO = Decimal("0")
HUNDRED = Decimal("100")


def to_decimal(value: Decimal | int | float | str | None, field: str = "value") -> Decimal:
    """Convert to a finite Decimal; None is zero.  Raises InvalidNumberError."""
    if value is None:
        return ZERO
    if isinstance(value, bool):
        raise InvalidNumberError(field, value)
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except InvalidOperation:
        raise InvalidNumberError(field, value) from None
    if not amount.is_finite():
        raise InvalidNumberError(field, value)
    return amount


def require_non_negative(field: str, value: Decimal | int | float | str | None) -> Decimal:
    """Convert to Decimal, raising NegativeAmountError below zero."""
    amount = to_decimal(value, field)
    if amount < 0:
        raise NegativeAmountError(field, amount)
    return amount


def require_text(field: str, value: str | None) -> str:
    """Return ``value`` stripped, raising MissingFieldError when blank."""
    if value is None or not value.strip():
        raise MissingFieldError(field)
    return value.strip()


def optional_text(value: str | None) -> str | None:
    """Blank strings collapse to None."""
    if value is None or not value.strip():
        return None
    return value


def safe_ratio(numerator: Decimal, denominator: Decimal) -> Decimal:
    if denominator == 0:
        return ZERO
    return numerator / denominator


def safe_percentage(numerator: Decimal, denominator: Decimal) -> Decimal:
    return safe_ratio(numerator, denominator) * HUNDRED


def decimal_sum(values: Iterable[Decimal]) -> Decimal:
    return sum(values, ZERO)
