"""
Clock -- injectable time source.

Responsibility:
    Services receive a Clock instead of calling ``datetime.now()`` or
    ``date.today()``.  Payment decisions, status-change audit rows, the
    default portfolio period and the overdue-milestone count all read
    time through it, so tests can pin "now".

Architecture position:
    Kernel > Domain.  SystemClock is the only place real time enters.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, timezone


class Clock(ABC):
    """
    Abstract clock interface.

    Guarantees:
        - ``now()`` returns a timezone-aware UTC ``datetime``.
        - ``today()`` is the calendar date of ``now()``.
    """

    @abstractmethod
    def now(self) -> datetime:
        """Get the current time."""
        ...

    def today(self) -> date:
        """Get the current calendar date."""
        return self.now().date()


class SystemClock(Clock):
    """Production clock backed by the system time."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    Test clock pinned to one instant until moved with ``set_time()``.
    """

    def __init__(self, fixed_time: datetime | None = None):
        self._current = fixed_time or datetime(2025, 3, 15, 9, 0, 0, tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self._current

    def set_time(self, time: datetime) -> None:
        self._current = time
