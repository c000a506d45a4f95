"""
Clock -- injectable time source for stock-take timestamps.

Responsibility:
    Every timestamp a stock take records (session start, snapshot capture,
    completion, cancellation) is read from a ``Clock`` handed to the service.
    Nothing below the service layer asks the operating system for the time.

Architecture position:
    Kernel > Domain.  ``SystemClock`` is the only place the wall clock is
    read; engines never import this module.

Audit relevance:
    Tests pin the clock, so ``completed_at`` and ``cancelled_at`` can be
    asserted exactly and ordering between sessions is reproducible.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone

DEFAULT_TEST_TIME = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class Clock(ABC):
    """
    Source of the current instant.

    Contract:
        ``now()`` returns a timezone-aware ``datetime`` in UTC.
    """

    @abstractmethod
    def now(self) -> datetime:
        ...


class SystemClock(Clock):
    """Wall-clock time in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    Clock that only moves when told to.

    Starts at ``DEFAULT_TEST_TIME`` unless given a start instant; naive
    start values are taken to be UTC.
    """

    def __init__(self, start: datetime | None = None):
        start = start or DEFAULT_TEST_TIME
        if start.tzinfo is None:
            start = start.replace(tzinfo=timezone.utc)
        self._current = start.astimezone(timezone.utc)

    def now(self) -> datetime:
        return self._current

    def advance(self, seconds: int = 1) -> datetime:
        """Move forward by ``seconds`` and return the new instant."""
        if seconds < 0:
            raise ValueError(f"clock cannot move backwards (got {seconds}s)")
        self._current += timedelta(seconds=seconds)
        return self._current
