"""
Expense Module.

Itemized expenses attached to weekly updates: quote vs actual per line,
with a mandatory reason whenever actual exceeds quote.
"""

from budget_modules.expense.helpers import build_item, itemized_totals, validate_items
from budget_modules.expense.ledger import ExpenseLedger
from budget_modules.expense.models import ItemizedExpense, ItemizedTotals, ItemStatus

__all__ = [
    "ExpenseLedger",
    "ItemizedExpense",
    "ItemizedTotals",
    "ItemStatus",
    "build_item",
    "itemized_totals",
    "validate_items",
]
