"""
Pure period arithmetic for recurring payments.

Contract:
    ``period_start()``, ``due_periods()`` and ``next_due_date()`` are PURE:
    no I/O, no clock.  The scheduler passes ``today`` in.

Architecture: agency_batch/domain.  ZERO I/O.

Invariants enforced:
    - Period n is computed from the start date (start + n * step), never by
      chaining from period n-1.  Month-end clamping therefore does not
      drift: a definition starting on Jan 31 falls due on Feb 29 (or 28),
      Mar 31, Apr 30, ...
    - No period after ``end_date`` and no period after ``today`` is due.
"""

from __future__ import annotations

from collections.abc import Iterator
from datetime import date, timedelta

from agency_kernel.domain.calendar import add_months

from agency_batch.domain.types import Frequency, RecurringDefinition

_DAY_STEPS = {
    Frequency.WEEKLY: 7,
    Frequency.BIWEEKLY: 14,
}

_MONTH_STEPS = {
    Frequency.MONTHLY: 1,
    Frequency.QUARTERLY: 3,
    Frequency.YEARLY: 12,
}


def period_start(start: date, frequency: Frequency, index: int) -> date:
    """Start date of period ``index`` (0-based) of a schedule.

    Raises:
        ValueError: index is negative.
    """
    if index < 0:
        raise ValueError(f"period index must be >= 0, got {index}")
    frequency = Frequency(frequency)
    if frequency in _DAY_STEPS:
        return start + timedelta(days=_DAY_STEPS[frequency] * index)
    return add_months(start, _MONTH_STEPS[frequency] * index)


def iter_period_starts(
    start: date,
    frequency: Frequency,
    until: date,
    end_date: date | None = None,
) -> Iterator[date]:
    """Yield period starts from ``start`` up to min(until, end_date), inclusive."""
    limit = until if end_date is None else min(until, end_date)
    index = 0
    while True:
        current = period_start(start, frequency, index)
        if current > limit:
            return
        yield current
        index += 1


def due_periods(definition: RecurringDefinition, today: date) -> tuple[date, ...]:
    """Every period of ``definition`` due on or before ``today``.

    Inactive definitions have no due periods.
    """
    if not definition.is_active:
        return ()
    return tuple(
        iter_period_starts(
            definition.start_date,
            definition.frequency,
            today,
            definition.end_date,
        )
    )


def next_due_date(definition: RecurringDefinition, today: date) -> date | None:
    """First period start on or after ``today``, or None if the schedule has ended."""
    if not definition.is_active:
        return None
    if today <= definition.start_date:
        return definition.start_date
    index = 0
    while True:
        current = period_start(definition.start_date, definition.frequency, index)
        if definition.end_date is not None and current > definition.end_date:
            return None
        if current >= today:
            return current
        index += 1
