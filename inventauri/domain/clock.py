"""
Clock -- injectable time abstraction.

Responsibility:
    Services never call ``datetime.now()`` directly; they receive a Clock so
    that "processing time" defaults (sale occurred_at, created_at) are
    deterministic under test.

Architecture position:
    Domain -- pure, zero I/O (except SystemClock, the one sanctioned
    boundary for time).
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone


class Clock(ABC):
    """
    Abstract clock interface.

    Guarantees:
        - ``now_utc()`` returns a timezone-aware UTC ``datetime``.
    """

    @abstractmethod
    def now_utc(self) -> datetime:
        """Get the current UTC time."""
        ...


class SystemClock(Clock):
    """Production clock that returns actual system time."""

    def now_utc(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    Test clock with controlled time.

    ``now_utc()`` returns the same value on repeated calls until
    ``advance()`` or ``set_time()`` is called.
    """

    def __init__(self, fixed_time: datetime | None = None):
        self._fixed_time = fixed_time or datetime(
            2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc
        )
        self._advance_seconds = 0

    def now_utc(self) -> datetime:
        current = self._fixed_time + timedelta(seconds=self._advance_seconds)
        return current.astimezone(timezone.utc)

    def set_time(self, time: datetime) -> None:
        """Set the clock to a specific time."""
        self._fixed_time = time
        self._advance_seconds = 0

    def advance(self, seconds: int = 1) -> None:
        """Advance the clock by the specified seconds."""
        self._advance_seconds += seconds

    def tick(self) -> datetime:
        """Advance by 1 second and return new time."""
        self.advance(1)
        return self.now_utc()
