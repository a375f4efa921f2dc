"""
SequenceService counter rows.

Validates:
- First allocation of a name is 1; each later one is one higher
- Names are independent
- A rolled-back allocation is handed out again
- Weekly update sequences are named per milestone
"""

from uuid import uuid4

from sqlalchemy import func, select

from budget_kernel.services.sequence_service import SequenceCounter, SequenceService


class TestSequenceService:

    def test_first_value_then_increments(self, session):
        sequences = SequenceService(session)
        assert sequences.current_value(SequenceService.PAYMENT_REQUEST) is None
        assert [sequences.next_value(SequenceService.PAYMENT_REQUEST) for _ in range(3)] == [1, 2, 3]
        assert sequences.current_value(SequenceService.PAYMENT_REQUEST) == 3

    def test_names_are_independent(self, session):
        sequences = SequenceService(session)
        sequences.next_value("a")
        sequences.next_value("a")
        assert sequences.next_value("b") == 1
        assert session.scalar(select(func.count(SequenceCounter.id))) == 2

    def test_rollback_returns_value(self, session):
        sequences = SequenceService(session)
        sequences.next_value("a")
        session.commit()
        assert sequences.next_value("a") == 2
        session.rollback()
        assert sequences.next_value("a") == 2

    def test_weekly_sequence_name(self):
        milestone_id = uuid4()
        name = SequenceService.weekly_update_sequence(milestone_id)
        assert name == f"weekly_update:{milestone_id}"
        assert len(name) <= 64
