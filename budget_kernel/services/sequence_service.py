"""
SequenceService -- numbering from locked counter rows.

Responsibility:
    Hands out payment request numbers and per-milestone weekly update
    sequence numbers.  Each named sequence is one row in
    ``sequence_counters``; allocating a value increments that row.

Architecture position:
    Kernel > Services.  Called by ``PaymentRequestService`` and
    ``WeeklyUpdateService`` inside their own transactions.

Invariants enforced:
    - Values come only from the counter row, never from ``count(*)`` or
      ``max(...) + 1`` over the numbered table.
    - The increment is a single ``UPDATE ... SET current_value =
      current_value + 1``.  The writer holds the row (PostgreSQL) or the
      database write lock (SQLite) until it commits, so a concurrent
      allocation waits and then reads the committed value.
    - Values are never reused, including after the numbered row is
      deleted.  A rolled-back transaction returns its value.

Failure modes:
    - IntegrityError when two transactions create the same counter row;
      handled with a savepoint and a retry of the increment.
"""

from sqlalchemy import BigInteger, String, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Mapped, Session, mapped_column

from budget_kernel.db.base import Base
from budget_kernel.logging_config import get_logger

logger = get_logger("services.sequence")


class SequenceCounter(Base):
    """Current value of one named sequence."""

    __tablename__ = "sequence_counters"

    name: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    current_value: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)


class SequenceService:
    """
    Allocates strictly increasing integers per sequence name.

    Does NOT commit; the caller's transaction decides whether the value
    is consumed.
    """

    PAYMENT_REQUEST = "payment_request"

    def __init__(self, session: Session):
        self._session = session

    @staticmethod
    def weekly_update_sequence(milestone_id) -> str:
        return f"weekly_update:{milestone_id}"

    def next_value(self, sequence_name: str) -> int:
        """Increment ``sequence_name`` and return the new value (first value is 1)."""
        if not self._increment(sequence_name):
            savepoint = self._session.begin_nested()
            try:
                self._session.add(SequenceCounter(name=sequence_name, current_value=1))
                self._session.flush()
                savepoint.commit()
                logger.debug("sequence_allocated", extra={"sequence_name": sequence_name, "value": 1})
                return 1
            except IntegrityError:
                logger.debug("sequence_counter_race_retry", extra={"sequence_name": sequence_name})
                savepoint.rollback()
                if not self._increment(sequence_name):
                    raise

        value = self._session.scalar(
            select(SequenceCounter.current_value).where(SequenceCounter.name == sequence_name)
        )
        logger.debug("sequence_allocated", extra={"sequence_name": sequence_name, "value": value})
        return value

    def current_value(self, sequence_name: str) -> int | None:
        return self._session.scalar(
            select(SequenceCounter.current_value).where(SequenceCounter.name == sequence_name)
        )

    def _increment(self, sequence_name: str) -> bool:
        result = self._session.execute(
            update(SequenceCounter)
            .where(SequenceCounter.name == sequence_name)
            .values(current_value=SequenceCounter.current_value + 1)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1
