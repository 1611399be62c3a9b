"""
LedgerPolicy -- the handful of settings the ledger core needs at runtime.

The kernel never reads configuration files.  agency_config builds a
LedgerPolicy from YAML and callers pass it into services and selectors.
"""

from dataclasses import dataclass
from functools import cached_property
from zoneinfo import ZoneInfo

from agency_kernel.domain.calendar import DEFAULT_TIMEZONE


@dataclass(frozen=True)
class LedgerPolicy:
    """
    Reporting currency, default foreign currency and canonical time zone.

    Guarantees:
        - reporting_currency != foreign_currency.
        - money_places is the rounding precision for reporting equivalents.
    """

    reporting_currency: str = "ARS"
    foreign_currency: str = "USD"
    timezone: str = DEFAULT_TIMEZONE
    money_places: int = 2

    def __post_init__(self) -> None:
        if self.reporting_currency == self.foreign_currency:
            raise ValueError(
                "reporting_currency and foreign_currency must differ, "
                f"both are {self.reporting_currency}"
            )

    @cached_property
    def zone(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)
