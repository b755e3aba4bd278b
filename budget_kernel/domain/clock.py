"""
Clock -- injectable time source.

Responsibility:
    Services receive a Clock instead of calling ``datetime.now()``, so that
    request numbers (which embed the year), ``decided_at``/``completed_at``
    stamps and FIFO ordering are reproducible in tests.

Architecture position:
    Kernel > Domain -- pure, except SystemClock which is the single
    sanctioned read of wall time.
"""

from abc import ABC, abstractmethod
from datetime import UTC, datetime, timedelta


class Clock(ABC):
    """Abstract time source returning timezone-aware UTC datetimes."""

    @abstractmethod
    def now(self) -> datetime:
        ...


class SystemClock(Clock):
    """Production clock."""

    def now(self) -> datetime:
        return datetime.now(UTC)


class DeterministicClock(Clock):
    """
    Test clock with controlled time.

    ``now()`` is stable until ``advance()``, ``tick()`` or ``set_time()``.
    """

    def __init__(self, fixed_time: datetime | None = None):
        self._base = fixed_time or datetime(2025, 3, 1, 9, 0, 0, tzinfo=UTC)
        self._offset = timedelta()

    def now(self) -> datetime:
        return self._base + self._offset

    def set_time(self, time: datetime) -> None:
        self._base = time
        self._offset = timedelta()

    def advance(self, seconds: int = 1) -> None:
        self._offset += timedelta(seconds=seconds)

    def tick(self) -> datetime:
        """Advance by one second and return the new time."""
        self.advance(1)
        return self.now()
