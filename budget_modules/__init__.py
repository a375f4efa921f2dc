"""
Budget Modules.

Thin orchestration layers over the Budget Kernel.  Each module contains:
- Domain models (frozen DTOs, the nouns)
- ORM models (persistence)
- Workflows (status state machines)
- Configuration (thresholds and policy)
- A service owning the module's transactions

Modules:
- Expense: Itemized expense ledger and overspend justification
- Milestone: Projects, milestones, planned costs, materials, quotations
- Weekly: Weekly progress updates and milestone financial rollups
- Building: Building budgets, budget expenses, portfolio financials
- Risk: Risk register, severity, external analysis envelope
- Payment: Contractor payment requests and single-shot review
"""

from budget_modules import building, expense, milestone, payment, risk, weekly

__all__ = [
    "expense",
    "milestone",
    "weekly",
    "building",
    "risk",
    "payment",
]
