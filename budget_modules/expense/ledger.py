"""
ExpenseLedger -- editable working copy of a weekly update's line items.

Responsibility
--------------
Holds the items a contractor is composing before submission.  Edits never
raise for a missing overspend reason; items in that state are reported as
``INVALID`` and only ``validate()`` (called at submission)
refuses them.

Architecture position
---------------------
**Modules layer** -- in-memory helper, no session.  The weekly update
service accepts either a ledger or a plain sequence of items.
"""

from __future__ import annotations

from dataclasses import replace
from decimal import Decimal
from typing import Any, Iterable, Iterator

from budget_kernel.domain.values import optional_text, require_non_negative, require_text
from budget_kernel.exceptions import InvalidCategoryError
from budget_modules.expense.helpers import (
    build_item,
    itemized_totals,
    normalize_item,
    validate_items,
)
from budget_modules.expense.models import ItemizedExpense, ItemizedTotals, ItemStatus

EDITABLE_FIELDS: tuple[str, ...] = (
    "description",
    "quoted_amount",
    "actual_spent",
    "supplier_invoice_url",
    "reason_for_overspend",
)


class ExpenseLedger:
    """Ordered, mutable list of itemized expenses."""

    def __init__(self, items: Iterable[ItemizedExpense] = ()):
        self._items: list[ItemizedExpense] = [normalize_item(i) for i in items]

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[ItemizedExpense]:
        return iter(self._items)

    @property
    def items(self) -> tuple[ItemizedExpense, ...]:
        return tuple(self._items)

    def add_item(
        self,
        description: str,
        quoted_amount: Decimal | int | str,
        actual_spent: Decimal | int | str,
        supplier_invoice_url: str | None = None,
        reason_for_overspend: str | None = None,
    ) -> int:
        """Append an item and return its index."""
        self._items.append(
            build_item(
                description,
                quoted_amount,
                actual_spent,
                supplier_invoice_url,
                reason_for_overspend,
            )
        )
        return len(self._items) - 1

    def remove_item(self, index: int) -> ItemizedExpense:
        return self._items.pop(index)

    def update_item(self, index: int, field: str, value: Any) -> ItemizedExpense:
        """
        Change one field of the item at ``index``.

        After a change to either amount the overspend state is re-evaluated:
        an item that is no longer overspent loses its reason.
        """
        if field not in EDITABLE_FIELDS:
            raise InvalidCategoryError("field", field, EDITABLE_FIELDS)
        current = self._items[index]
        if field == "description":
            value = require_text("description", value)
        elif field in ("quoted_amount", "actual_spent"):
            value = require_non_negative(field, value)
        else:
            value = optional_text(value)
        updated = normalize_item(replace(current, **{field: value}))
        self._items[index] = updated
        return updated

    def status_of(self, index: int) -> ItemStatus:
        return self._items[index].status

    def unjustified_indexes(self) -> tuple[int, ...]:
        return tuple(
            i for i, item in enumerate(self._items)
            if item.status is ItemStatus.INVALID
        )

    def totals(self) -> ItemizedTotals:
        return itemized_totals(self._items)

    def validate(self) -> tuple[ItemizedExpense, ...]:
        """Submission check; raises OverspendJustificationError."""
        return validate_items(self._items)
