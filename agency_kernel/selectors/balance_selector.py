"""
Module: agency_kernel.selectors.balance_selector
Responsibility: Historical account balances derived from ledger movements:
    a single balance as of a date, per-account balances, daily balance
    series and sufficiency checks.
Architecture position: Kernel > Selectors.  Read-only.

Invariants enforced:
    - Balance fold: balance(D) = initial_balance + sum(sign(kind) * amount)
      over movements whose canonical-zone date is on or before D (the end of
      day D, inclusive).
    - Currency isolation: a movement in the account's own currency counts
      with its native amount; any other movement counts with its
      reporting-currency snapshot.  Native and reporting amounts are never
      mixed for the same movement.
    - Order independence: balances are sums, so out-of-order occurred_at
      values written by concurrent writers do not matter.
    - Unknown account ids fail with AccountNotFoundError; "no movements"
      is never an error.

Failure modes:
    - AccountNotFoundError for any unknown id.
    - InvalidDateRangeError when a series starts after it ends.

Performance:
    balances_as_of() aggregates in the database (one grouped query).
    daily_series() computes the opening balance once, then streams only the
    movements inside the range in bounded pages and carries the running
    balance forward day by day.  Memory does not grow with the range length.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from datetime import date, timedelta
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from agency_kernel.db.types import to_decimal
from agency_kernel.domain.calendar import iter_days
from agency_kernel.domain.policy import LedgerPolicy
from agency_kernel.domain.types import (
    AccountInfo,
    BalancePoint,
    MovementKind,
    SufficiencyCheck,
)
from agency_kernel.exceptions import InvalidDateRangeError
from agency_kernel.logging_config import get_logger
from agency_kernel.models.movement import LedgerMovement
from agency_kernel.selectors.account_selector import AccountSelector, as_uuid
from agency_kernel.selectors.base import BaseSelector

logger = get_logger("selectors.balance")

SERIES_PAGE_SIZE = 500


def movement_effect(
    account: AccountInfo,
    kind: str,
    currency: str,
    amount_original,
    amount_reporting,
) -> Decimal:
    """Signed contribution of one movement (or one grouped sum) to a balance."""
    amount = amount_original if currency == account.currency else amount_reporting
    return MovementKind(kind).signed(to_decimal(amount or 0))


class BalanceSelector(BaseSelector[LedgerMovement]):
    """
    Balance calculator.

    Contract:
        Every method validates the requested account ids first; a query for
        zero accounts is valid and returns the empty / zero result.
    """

    def __init__(self, session: Session, policy: LedgerPolicy | None = None):
        super().__init__(session)
        self._policy = policy or LedgerPolicy()
        self._accounts = AccountSelector(session)

    def balance_as_of(self, account_ids: Iterable, as_of: date) -> Decimal:
        """
        Combined balance of the accounts at the end of ``as_of``.

        Summing accounts held in different currencies is the caller's choice.
        """
        return sum(self.balances_as_of(account_ids, as_of).values(), Decimal("0"))

    def balances_as_of(
        self, account_ids: Iterable, as_of: date | None = None
    ) -> dict[UUID, Decimal]:
        """
        Per-account balances at the end of ``as_of`` (all movements if None).

        Raises:
            AccountNotFoundError: Any id does not exist.
        """
        accounts = self._accounts.get_many(account_ids)
        if not accounts:
            return {}

        balances = {
            account_id: to_decimal(info.initial_balance)
            for account_id, info in accounts.items()
        }

        stmt = (
            select(
                LedgerMovement.account_id,
                LedgerMovement.kind,
                LedgerMovement.currency,
                func.sum(LedgerMovement.amount_original),
                func.sum(LedgerMovement.amount_reporting),
            )
            .where(LedgerMovement.account_id.in_(list(accounts)))
            .group_by(
                LedgerMovement.account_id,
                LedgerMovement.kind,
                LedgerMovement.currency,
            )
        )
        if as_of is not None:
            stmt = stmt.where(LedgerMovement.occurred_on <= as_of)

        for account_id, kind, currency, sum_original, sum_reporting in self.session.execute(stmt):
            account_id = as_uuid(account_id)
            balances[account_id] += movement_effect(
                accounts[account_id], kind, currency, sum_original, sum_reporting
            )
        return balances

    def daily_series(
        self,
        account_ids: Iterable,
        date_from: date,
        date_to: date,
        page_size: int = SERIES_PAGE_SIZE,
    ) -> Iterator[BalancePoint]:
        """
        Lazily yield the combined end-of-day balance for each day in
        [date_from, date_to].

        Account ids and the range are validated immediately; rows are read
        as the iterator is consumed, so the session must stay open until
        iteration finishes.

        Raises:
            AccountNotFoundError: Any id does not exist.
            InvalidDateRangeError: date_from is after date_to.
        """
        if date_from > date_to:
            raise InvalidDateRangeError(date_from.isoformat(), date_to.isoformat())
        accounts = self._accounts.get_many(account_ids)
        if not accounts:
            return iter(())

        opening = sum(
            self.balances_as_of(list(accounts), date_from - timedelta(days=1)).values(),
            Decimal("0"),
        )
        logger.debug(
            "daily_series_started",
            extra={
                "account_count": len(accounts),
                "date_from": date_from.isoformat(),
                "date_to": date_to.isoformat(),
            },
        )
        return self._iter_series(accounts, opening, date_from, date_to, page_size)

    def has_sufficient_balance(self, account_id, amount) -> SufficiencyCheck:
        """
        Whether the account's current balance (all movements) covers ``amount``.

        Raises:
            AccountNotFoundError: Unknown id.
        """
        account = self._accounts.get(account_id)
        required = to_decimal(amount)
        balance = self.balances_as_of([account.account_id])[account.account_id]
        return SufficiencyCheck(
            account_id=account.account_id,
            is_sufficient=balance >= required,
            current_balance=balance,
            required=required,
            currency=account.currency,
        )

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _iter_series(
        self,
        accounts: dict[UUID, AccountInfo],
        opening: Decimal,
        date_from: date,
        date_to: date,
        page_size: int,
    ) -> Iterator[BalancePoint]:
        stmt = (
            select(
                LedgerMovement.occurred_on,
                LedgerMovement.account_id,
                LedgerMovement.kind,
                LedgerMovement.currency,
                LedgerMovement.amount_original,
                LedgerMovement.amount_reporting,
            )
            .where(
                LedgerMovement.account_id.in_(list(accounts)),
                LedgerMovement.occurred_on >= date_from,
                LedgerMovement.occurred_on <= date_to,
            )
            .order_by(LedgerMovement.occurred_on)
            .execution_options(yield_per=page_size)
        )
        rows = iter(self.session.execute(stmt))
        pending = next(rows, None)
        running = opening

        for day in iter_days(date_from, date_to):
            while pending is not None and pending.occurred_on <= day:
                running += movement_effect(
                    accounts[as_uuid(pending.account_id)],
                    pending.kind,
                    pending.currency,
                    pending.amount_original,
                    pending.amount_reporting,
                )
                pending = next(rows, None)
            yield BalancePoint(on=day, balance=running)
