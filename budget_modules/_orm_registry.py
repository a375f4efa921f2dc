"""
Module ORM Registry (``budget_modules._orm_registry``).

Responsibility
--------------
Ensure every SQLAlchemy ORM model (each module plus the kernel's
``sequence_counters``) is imported so that
``Base.metadata`` holds their table definitions before tables are created.

Architecture position
---------------------
**Modules layer** -- utility.  Called lazily by
``budget_kernel.db.engine.create_tables`` and directly by ``tests/conftest.py``.
"""


def import_all_orm_models() -> None:
    """Import every ORM module.  Idempotent."""
    # fmt: off
    import budget_kernel.services.sequence_service  # noqa: F401
    import budget_modules.building.orm  # noqa: F401
    import budget_modules.expense.orm  # noqa: F401
    import budget_modules.milestone.orm  # noqa: F401
    import budget_modules.payment.orm  # noqa: F401
    import budget_modules.risk.orm  # noqa: F401
    import budget_modules.weekly.orm  # noqa: F401
    # fmt: on
