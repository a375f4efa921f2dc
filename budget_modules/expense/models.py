"""
Itemized Expense Models (``budget_modules.expense.models``).

Responsibility
--------------
Frozen value objects for the line items a contractor attaches to a weekly
update: what was quoted, what was actually spent, and (when the second
exceeds the first) why.

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.  Consumed by
``ExpenseLedger`` and by the weekly update service.

Invariants enforced
-------------------
* All models are ``frozen=True``.
* All monetary fields use ``Decimal`` -- NEVER ``float``.
* ``variance`` and ``status`` are derived properties, never stored.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from uuid import UUID


class ItemStatus(Enum):
    """Justification state of a single line item."""
    VALID = "valid"
    INVALID = "invalid"


@dataclass(frozen=True)
class ItemizedExpense:
    """One line item: quote vs actual, optionally justified."""
    description: str
    quoted_amount: Decimal
    actual_spent: Decimal
    supplier_invoice_url: str | None = None
    reason_for_overspend: str | None = None
    id: UUID | None = None

    @property
    def variance(self) -> Decimal:
        return self.actual_spent - self.quoted_amount

    @property
    def is_overspent(self) -> bool:
        return self.actual_spent > self.quoted_amount

    @property
    def status(self) -> ItemStatus:
        if self.is_overspent and not self.reason_for_overspend:
            return ItemStatus.INVALID
        return ItemStatus.VALID


@dataclass(frozen=True)
class ItemizedTotals:
    """Sums across a set of line items."""
    quoted: Decimal
    actual: Decimal
    item_count: int

    @property
    def variance(self) -> Decimal:
        return self.actual - self.quoted
