"""
Expense Helpers (``budget_modules.expense.helpers``).

Responsibility
--------------
Pure functions for building, normalizing and validating itemized expenses.

Architecture position
---------------------
**Modules layer** -- pure helper functions.  No I/O, no session, no
clock.  Called by ``ExpenseLedger`` and ``WeeklyUpdateService``.

Invariants enforced
-------------------
* A reason for overspend only survives on an item whose actual exceeds
  its quote; on any other item it is cleared.
* Quoted and actual amounts are non-negative.

Failure modes
-------------
* Blank description -> ``MissingFieldError``.
* Negative amount -> ``NegativeAmountError``.
* Overspent item without a reason at validation time ->
  ``OverspendJustificationError`` naming the first offending index.
"""

from __future__ import annotations

from dataclasses import replace
from decimal import Decimal
from typing import Iterable, Sequence

from budget_kernel.domain.values import (
    decimal_sum,
    optional_text,
    require_non_negative,
    require_text,
)
from budget_kernel.exceptions import OverspendJustificationError
from budget_modules.expense.models import ItemizedExpense, ItemizedTotals, ItemStatus


def build_item(
    description: str,
    quoted_amount: Decimal | int | str,
    actual_spent: Decimal | int | str,
    supplier_invoice_url: str | None = None,
    reason_for_overspend: str | None = None,
) -> ItemizedExpense:
    """Construct a checked, normalized line item."""
    item = ItemizedExpense(
        description=require_text("description", description),
        quoted_amount=require_non_negative("quoted_amount", quoted_amount),
        actual_spent=require_non_negative("actual_spent", actual_spent),
        supplier_invoice_url=optional_text(supplier_invoice_url),
        reason_for_overspend=optional_text(reason_for_overspend),
    )
    return normalize_item(item)


def normalize_item(item: ItemizedExpense) -> ItemizedExpense:
    """Drop the overspend reason from an item that is not overspent."""
    reason = optional_text(item.reason_for_overspend)
    if not item.is_overspent:
        reason = None
    if reason == item.reason_for_overspend:
        return item
    return replace(item, reason_for_overspend=reason)


def check_item(item: ItemizedExpense) -> ItemizedExpense:
    """Re-run field checks on an item built elsewhere (e.g. by a caller)."""
    return replace(
        build_item(
            item.description,
            item.quoted_amount,
            item.actual_spent,
            item.supplier_invoice_url,
            item.reason_for_overspend,
        ),
        id=item.id,
    )


def first_unjustified(items: Sequence[ItemizedExpense]) -> int | None:
    for index, item in enumerate(items):
        if item.status is ItemStatus.INVALID:
            return index
    return None


def validate_items(items: Iterable[ItemizedExpense]) -> tuple[ItemizedExpense, ...]:
    """
    Check and normalize every item for submission.

    Raises:
        OverspendJustificationError: For the first overspent item without
            a reason.  Nothing is returned in that case.
    """
    checked = tuple(check_item(item) for item in items)
    index = first_unjustified(checked)
    if index is not None:
        bad = checked[index]
        raise OverspendJustificationError(
            item_index=index,
            description=bad.description,
            quoted_amount=bad.quoted_amount,
            actual_spent=bad.actual_spent,
        )
    return checked


def itemized_totals(items: Sequence[ItemizedExpense]) -> ItemizedTotals:
    return ItemizedTotals(
        quoted=decimal_sum(i.quoted_amount for i in items),
        actual=decimal_sum(i.actual_spent for i in items),
        item_count=len(items),
    )
