"""
Configuration schema (``agency_config.schema``).

Frozen dataclasses produced by the loader.  Pure data: no I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from uuid import UUID

from agency_kernel.domain.policy import LedgerPolicy
from agency_kernel.domain.types import AccountKind


@dataclass(frozen=True)
class SchedulerSettings:
    budget_seconds: float | None = 50.0
    default_account_kinds: tuple[AccountKind, ...] = ()
    system_actor_id: UUID = UUID("00000000-0000-0000-0000-000000000001")


@dataclass(frozen=True)
class TaxSettings:
    iva_rate: Decimal = Decimal("0.21")


@dataclass(frozen=True)
class CronSettings:
    # Name of the environment variable holding the bearer secret.
    secret_env: str = "CRON_SECRET"


@dataclass(frozen=True)
class LedgerSettings:
    """Complete runtime configuration of the ledger."""

    reporting_currency: str = "ARS"
    foreign_currency: str = "USD"
    timezone: str = "America/Argentina/Buenos_Aires"
    money_places: int = 2
    database_url: str = "sqlite:///agency_ledger.db"
    scheduler: SchedulerSettings = field(default_factory=SchedulerSettings)
    tax: TaxSettings = field(default_factory=TaxSettings)
    cron: CronSettings = field(default_factory=CronSettings)

    def ledger_policy(self) -> LedgerPolicy:
        """Kernel-facing subset of the settings."""
        return LedgerPolicy(
            reporting_currency=self.reporting_currency,
            foreign_currency=self.foreign_currency,
            timezone=self.timezone,
            money_places=self.money_places,
        )
