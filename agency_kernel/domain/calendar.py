"""
Calendar helpers -- pure date arithmetic in the ledger's canonical time zone.

Responsibility:
    Day and month boundaries used by the balance calculator, the tax
    aggregator and the recurring scheduler.  ZERO I/O.

Invariants enforced:
    - A day's boundary is the end of that calendar day in the canonical
      zone, inclusive.  Movements are bucketed by ``local_date``.
    - Month arithmetic clamps to the last day of the target month
      (Jan 31 + 1 month = Feb 29 in a leap year, Feb 28 otherwise).
"""

import calendar as _calendar
from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo

DEFAULT_TIMEZONE = "America/Argentina/Buenos_Aires"


def localize(moment: datetime, zone: ZoneInfo) -> datetime:
    """Attach ``zone`` to a naive datetime; convert an aware one into it."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=zone)
    return moment.astimezone(zone)


def local_date(moment: datetime, zone: ZoneInfo) -> date:
    """Calendar date of ``moment`` as seen in ``zone``."""
    return localize(moment, zone).date()


def midday(day: date, zone: ZoneInfo) -> datetime:
    """Noon of ``day`` in ``zone``; used to timestamp generated payments."""
    return datetime.combine(day, time(12, 0), tzinfo=zone)


def last_day_of_month(year: int, month: int) -> int:
    return _calendar.monthrange(year, month)[1]


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """First and last calendar day of the month, both inclusive.

    Raises:
        ValueError: If month is outside 1..12.
    """
    if not 1 <= month <= 12:
        raise ValueError(f"month must be 1..12, got {month}")
    return date(year, month, 1), date(year, month, last_day_of_month(year, month))


def add_months(anchor: date, months: int) -> date:
    """Shift ``anchor`` by whole months, clamping the day to the month end."""
    total = anchor.year * 12 + (anchor.month - 1) + months
    year, month_index = divmod(total, 12)
    month = month_index + 1
    day = min(anchor.day, last_day_of_month(year, month))
    return date(year, month, day)


def iter_days(date_from: date, date_to: date):
    """Yield every calendar day from date_from to date_to inclusive."""
    current = date_from
    while current <= date_to:
        yield current
        current += timedelta(days=1)
