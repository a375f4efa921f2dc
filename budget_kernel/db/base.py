"""
Module: budget_kernel.db.base
Responsibility: Declarative base classes for every SQLAlchemy ORM model in the
    tracking engine.  Provides the UUID primary key convention, the type
    annotation map for money and timestamps, and the TrackedBase audit mixin.
Architecture position: Kernel > DB.  Lowest-level import target; MUST NOT
    import from domain/, budget_modules, or budget_services.

Invariants enforced:
    - UUID primary keys on every table.
    - Decimal maps to Numeric(38, 9).  Monetary amounts are NEVER float.
    - TrackedBase records who created and last touched each row.

Derived figures (utilization, cumulative expenditure, severity, budget totals)
have no columns here or anywhere else; they are recomputed on read.
"""

from datetime import datetime
from decimal import Decimal
from typing import ClassVar
from uuid import UUID as PyUUID, uuid4

from sqlalchemy import DateTime, Numeric, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class UUIDString(TypeDecorator):
    """UUID column kept as 36-character text; loads back as ``uuid.UUID``."""

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return None if value is None else str(value)

    def process_result_value(self, value, dialect):
        return None if value is None else PyUUID(value)


class Base(DeclarativeBase):
    """Root of the model registry; every table gets a uuid4 ``id``."""

    type_annotation_map: ClassVar[dict] = {
        Decimal: Numeric(38, 9),
        datetime: DateTime(timezone=True),
        PyUUID: UUIDString(),
    }

    id: Mapped[PyUUID] = mapped_column(UUIDString(), primary_key=True, default=uuid4)


class TrackedBase(Base):
    """
    Abstract parent of every persisted record.

    ``created_at``/``updated_at`` come from the database clock.
    ``created_by_id`` names the actor who inserted the row;
    ``updated_by_id`` stays NULL until an edit path stamps it.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(server_default=func.now(), onupdate=func.now())
    created_by_id: Mapped[PyUUID] = mapped_column()
    updated_by_id: Mapped[PyUUID | None] = mapped_column()


UUID = PyUUID
