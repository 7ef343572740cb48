"""
Clock -- injectable time source.

Responsibility:
    The repository stamps every appended transaction with an ``as_of``
    timestamp. Taking the time from an injected Clock instead of calling
    ``datetime.now()`` keeps tests and replays deterministic.

Architecture position:
    Kernel > Domain -- pure, zero I/O (SystemClock is the one sanctioned
    boundary for wall-clock time).
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone


class Clock(ABC):
    """
    Abstract clock interface.

    Guarantees:
        ``now()`` returns a timezone-aware UTC ``datetime``.
    """

    @abstractmethod
    def now(self) -> datetime:
        """Get the current time."""
        ...


class SystemClock(Clock):
    """Production clock returning the actual system time in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    Test clock with controlled time.

    ``now()`` returns the same value on repeated calls until ``advance()``
    or ``set_time()`` is called. ``tick()`` advances one second.
    """

    DEFAULT_TIME = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __init__(self, fixed_time: datetime | None = None):
        self._current = fixed_time or self.DEFAULT_TIME

    def now(self) -> datetime:
        return self._current

    def set_time(self, time: datetime) -> None:
        self._current = time

    def advance(self, seconds: int = 1) -> None:
        self._current = self._current + timedelta(seconds=seconds)

    def tick(self) -> datetime:
        self.advance(1)
        return self._current
