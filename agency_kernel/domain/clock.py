"""
Clock -- the ledger's only source of "now".

Services default a missing ``occurred_at`` and the scheduler's run date to
``clock.now()``; tests pin it with ``DeterministicClock``.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone


class Clock(ABC):
    """``now()`` returns a timezone-aware datetime."""

    @abstractmethod
    def now(self) -> datetime:
        ...


class SystemClock(Clock):

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """Fixed instant that only moves when ``advance()`` is called."""

    def __init__(self, fixed_time: datetime):
        self._current = fixed_time

    def now(self) -> datetime:
        return self._current

    def advance(self, **delta) -> datetime:
        """Move forward by ``timedelta(**delta)`` and return the new instant."""
        self._current += timedelta(**delta)
        return self._current
