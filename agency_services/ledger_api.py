"""
agency_services.ledger_api -- the public operations of the agency ledger.

Responsibility:
    Builds every service and selector once per session, from one
    ``LedgerSettings`` and one ``Clock``, and exposes the operations that
    callers (HTTP handlers, scripts, the cron trigger) use.

Architecture position:
    Services -- composition layer above agency_kernel, agency_batch and
    agency_modules.  The only place where configuration is translated into
    a ``LedgerPolicy`` and handed to the kernel.

Invariants enforced:
    - One policy, one clock and one session are shared by every component
      built here.
    - No commit: the caller's ``session_scope()`` owns the transaction.

Usage:
    with session_scope() as session:
        api = LedgerApi(session, get_settings())
        api.record_movement(account_id, "INCOME", Decimal("100"), "ARS",
                            occurred_at, actor_id)
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from agency_config import LedgerSettings
from agency_kernel.domain.clock import Clock, SystemClock
from agency_kernel.domain.types import (
    AccountInfo,
    AccountKind,
    BalancePoint,
    DailyRate,
    MonthlyRate,
    MovementFilter,
    MovementKind,
    MovementPage,
    MovementRecord,
    TransferResult,
)
from agency_kernel.selectors.account_selector import AccountSelector
from agency_kernel.selectors.balance_selector import BalanceSelector
from agency_kernel.selectors.movement_selector import MovementSelector
from agency_kernel.services.exchange_rate_service import ExchangeRateService
from agency_kernel.services.ledger_service import LedgerService

from agency_batch.domain.types import GenerationReport
from agency_batch.services.definition_service import RecurringDefinitionService
from agency_batch.services.scheduler import DEFAULT_ACCOUNT_KINDS, RecurringObligationScheduler
from agency_modules.tax.models import MonthlyTaxSummary
from agency_modules.tax.service import IvaService


class LedgerApi:
    """Facade over the ledger, rates, balances, scheduler and IVA books.

    Contract:
        Receives a Session, the settings and an optional Clock.  Every
        component is constructed in ``__init__`` and exposed as a public
        attribute for callers that need the full service surface.

    Non-goals:
        - Does NOT commit or roll back.
        - Does NOT read configuration itself; settings are passed in.
    """

    def __init__(
        self,
        session: Session,
        settings: LedgerSettings | None = None,
        clock: Clock | None = None,
    ):
        self.session = session
        self.settings = settings or LedgerSettings()
        self.clock = clock or SystemClock()
        self.policy = self.settings.ledger_policy()

        self.rates = ExchangeRateService(session, self.policy)
        self.ledger = LedgerService(session, self.clock, self.policy, self.rates)
        self.accounts = AccountSelector(session)
        self.balances = BalanceSelector(session, self.policy)
        self.movements = MovementSelector(session)
        self.definitions = RecurringDefinitionService(
            session, self.clock, self.policy, self.ledger
        )
        scheduler_settings = self.settings.scheduler
        self.scheduler = RecurringObligationScheduler(
            session,
            clock=self.clock,
            policy=self.policy,
            ledger=self.ledger,
            actor_id=scheduler_settings.system_actor_id,
            budget_seconds=scheduler_settings.budget_seconds,
            default_account_kinds=scheduler_settings.default_account_kinds or DEFAULT_ACCOUNT_KINDS,
        )
        self.iva = IvaService(session, self.settings.tax.iva_rate, self.policy.money_places)

    # -------------------------------------------------------------------------
    # Accounts and movements
    # -------------------------------------------------------------------------

    def create_account(
        self,
        name: str,
        kind: AccountKind | str,
        currency: str,
        actor_id: UUID,
        initial_balance=Decimal("0"),
        agency_id: UUID | None = None,
    ) -> AccountInfo:
        return self.ledger.create_account(
            name, kind, currency, actor_id,
            initial_balance=initial_balance, agency_id=agency_id,
        )

    def record_movement(
        self,
        account_id,
        kind: MovementKind | str,
        amount,
        currency: str,
        occurred_at: datetime,
        actor_id: UUID,
        **details,
    ) -> MovementRecord:
        """
        Append one movement.  ``details`` are the optional movement fields
        (concept, method, operation_id, lead_id, operator_id,
        payment_reference, notes).

        Raises:
            InvalidAmountError, AccountNotFoundError, AccountInactiveError,
            CurrencyMismatchError, ExchangeRateNotFoundError.
        """
        return self.ledger.record(
            account_id, kind, amount, currency, occurred_at, actor_id, **details
        )

    def transfer(
        self,
        from_account_id,
        to_account_id,
        amount,
        currency: str,
        occurred_at: datetime,
        actor_id: UUID,
        notes: str | None = None,
    ) -> TransferResult:
        return self.ledger.transfer(
            from_account_id, to_account_id, amount, currency, occurred_at, actor_id,
            notes=notes,
        )

    def list_movements(
        self,
        filters: MovementFilter | None = None,
        limit: int = 1000,
        offset: int = 0,
    ) -> MovementPage:
        return self.movements.list(filters, limit=limit, offset=offset)

    # -------------------------------------------------------------------------
    # Balances
    # -------------------------------------------------------------------------

    def get_balance(self, account_ids: Iterable, as_of: date) -> Decimal:
        """Combined end-of-day balance.  Raises AccountNotFoundError."""
        return self.balances.balance_as_of(account_ids, as_of)

    def get_daily_balance_series(
        self, account_ids: Iterable, date_from: date, date_to: date
    ) -> Iterator[BalancePoint]:
        return self.balances.daily_series(account_ids, date_from, date_to)

    # -------------------------------------------------------------------------
    # Exchange rates
    # -------------------------------------------------------------------------

    def resolve_exchange_rate(self, on: date, currency: str | None = None) -> Decimal:
        return self.rates.resolve(on, currency)

    def upsert_monthly_rate(
        self, year: int, month: int, rate, actor_id: UUID, currency: str | None = None
    ) -> MonthlyRate:
        return self.rates.upsert_monthly_rate(year, month, rate, actor_id, currency)

    def record_daily_rate(
        self, on: date, rate, actor_id: UUID, currency: str | None = None,
        source: str = "manual",
    ) -> DailyRate:
        return self.rates.record_daily_rate(on, rate, actor_id, currency, source)

    def latest_exchange_rate(self, currency: str | None = None) -> Decimal:
        return self.rates.latest_rate(currency)

    # -------------------------------------------------------------------------
    # Recurring payments and tax
    # -------------------------------------------------------------------------

    def run_recurring_scheduler(
        self, today: date | None = None, actor_id: UUID | None = None
    ) -> GenerationReport:
        return self.scheduler.run_for_date(today, actor_id)

    def get_monthly_tax_summary(
        self, year: int, month: int, currency: str | None = None
    ) -> MonthlyTaxSummary:
        return self.iva.monthly_summary(year, month, currency)
