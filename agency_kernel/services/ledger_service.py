"""
LedgerService -- append-only movement store and account administration.

Responsibility:
    Records every inflow/outflow against a financial account in the
    movement's native currency together with a reporting-currency snapshot,
    and offers the composite operations built on it: reversal and
    account-to-account transfer.

Architecture position:
    Kernel > Services.  Depends on ExchangeRateService (rate stamping) and
    the account/balance selectors.  Never commits.

Invariants enforced:
    - All-or-nothing write: amount, kind, currency, account state and the
      exchange rate are all checked before the movement row is added.  A
      missing rate raises ExchangeRateNotFoundError and nothing is written.
    - Amounts are unsigned magnitudes; the sign comes from the kind.
    - Reporting equivalent: equal to the amount for reporting-currency
      movements, otherwise amount * rate(occurred_on) rounded HALF_UP to
      the policy's money places.  The rate is stored with the movement.
    - A movement is in the account's currency, or the account is held in
      the reporting currency and carries the foreign movement at its
      reporting equivalent.  Anything else is a CurrencyMismatchError.
    - No update or delete operation exists.  reverse() appends an offsetting
      movement.

Failure modes:
    - InvalidAmountError, InvalidMovementKindError, InvalidCurrencyError.
    - AccountNotFoundError, AccountInactiveError, CurrencyMismatchError.
    - ExchangeRateNotFoundError (names the account and the missing date).
    - InsufficientBalanceError, SameAccountTransferError (transfer only).
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from agency_kernel.db.types import round_money, to_decimal, validate_amount, validate_currency
from agency_kernel.domain.calendar import localize
from agency_kernel.domain.clock import Clock, SystemClock
from agency_kernel.domain.policy import LedgerPolicy
from agency_kernel.domain.types import (
    AccountInfo,
    AccountKind,
    MovementKind,
    MovementRecord,
    PaymentMethod,
    TransferResult,
)
from agency_kernel.exceptions import (
    AccountInactiveError,
    AccountNotFoundError,
    CurrencyMismatchError,
    ExchangeRateNotFoundError,
    InsufficientBalanceError,
    InvalidMovementKindError,
    MovementNotFoundError,
    SameAccountTransferError,
)
from agency_kernel.logging_config import LogContext, get_logger
from agency_kernel.models.account import FinancialAccount
from agency_kernel.models.movement import LedgerMovement
from agency_kernel.selectors.account_selector import as_uuid
from agency_kernel.selectors.balance_selector import BalanceSelector
from agency_kernel.services.base import BaseService
from agency_kernel.services.exchange_rate_service import ExchangeRateService

logger = get_logger("services.ledger")

# Account kinds whose currency is implied by the kind itself
_KIND_CURRENCY = {
    AccountKind.CASH_ARS: "ARS",
    AccountKind.SAVINGS_ARS: "ARS",
    AccountKind.CHECKING_ARS: "ARS",
    AccountKind.CASH_USD: "USD",
    AccountKind.SAVINGS_USD: "USD",
    AccountKind.CHECKING_USD: "USD",
}


class LedgerService(BaseService[LedgerMovement]):
    """
    Write side of the ledger.

    Contract:
        ``occurred_at`` may be naive (read as canonical-zone wall time) or
        aware.  ``occurred_on`` is derived from it in the canonical zone and
        is what day-boundary queries use.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        policy: LedgerPolicy | None = None,
        rates: ExchangeRateService | None = None,
    ):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._policy = policy or LedgerPolicy()
        self._rates = rates or ExchangeRateService(session, self._policy)
        self._balances = BalanceSelector(session, self._policy)

    # =========================================================================
    # Accounts
    # =========================================================================

    def create_account(
        self,
        name: str,
        kind: AccountKind | str,
        currency: str,
        actor_id: UUID,
        initial_balance=Decimal("0"),
        agency_id: UUID | None = None,
    ) -> AccountInfo:
        """
        Create a financial account.

        Raises:
            InvalidCurrencyError: Bad currency code.
            CurrencyMismatchError: Kind implies another currency (CASH_USD in ARS).
        """
        kind = AccountKind(kind)
        currency = validate_currency(currency)
        implied = _KIND_CURRENCY.get(kind)
        if implied is not None and implied != currency:
            raise CurrencyMismatchError(implied, currency)

        account = FinancialAccount(
            name=name,
            kind=kind.value,
            currency=currency,
            initial_balance=to_decimal(initial_balance),
            agency_id=agency_id,
            is_active=True,
            created_by_id=actor_id,
        )
        self.session.add(account)
        self.session.flush()
        logger.info(
            "account_created",
            extra={
                "account_id": str(account.id),
                "kind": kind.value,
                "currency": currency,
                "initial_balance": str(account.initial_balance),
            },
        )
        return account.to_dto()

    def deactivate_account(self, account_id, actor_id: UUID) -> AccountInfo:
        """
        Soft-deactivate an account.  Its movements and balance remain readable.

        Raises:
            AccountNotFoundError: Unknown id.
        """
        account = self._get_account(account_id)
        if account.is_active:
            account.is_active = False
            account.updated_by_id = actor_id
            self.session.flush()
            logger.info("account_deactivated", extra={"account_id": str(account.id)})
        return account.to_dto()

    # =========================================================================
    # Movements
    # =========================================================================

    def record(
        self,
        account_id,
        kind: MovementKind | str,
        amount,
        currency: str,
        occurred_at: datetime,
        actor_id: UUID,
        *,
        concept: str = "",
        method: PaymentMethod | str = PaymentMethod.OTHER,
        operation_id: UUID | None = None,
        lead_id: UUID | None = None,
        operator_id: UUID | None = None,
        payment_reference: str | None = None,
        notes: str | None = None,
    ) -> MovementRecord:
        """
        Append one movement.

        Preconditions: ``amount`` is an unsigned magnitude.
        Postconditions: The movement is flushed with its reporting snapshot;
            on any failure nothing has been added to the session.
        """
        kind = self._coerce_kind(kind)
        amount = validate_amount(amount)
        currency = validate_currency(currency)
        method = PaymentMethod(method)
        account = self._get_active_account(account_id)
        self._check_currency(account, currency)

        with LogContext.bind(account_id=str(account.id), actor_id=str(actor_id)):
            when = localize(occurred_at, self._policy.zone)
            occurred_on = when.date()
            rate, reporting_amount = self._stamp(account, amount, currency, occurred_on)

            row = LedgerMovement(
                account_id=account.id,
                kind=kind.value,
                currency=currency,
                amount_original=amount,
                exchange_rate=rate,
                amount_reporting=reporting_amount,
                occurred_at=when,
                occurred_on=occurred_on,
                concept=concept,
                method=method.value,
                operation_id=operation_id,
                lead_id=lead_id,
                operator_id=operator_id,
                payment_reference=payment_reference,
                notes=notes,
                created_by_id=actor_id,
            )
            self.session.add(row)
            self.session.flush()

            logger.info(
                "movement_recorded",
                extra={
                    "movement_id": str(row.id),
                    "kind": kind.value,
                    "currency": currency,
                    "amount": str(amount),
                    "amount_reporting": str(reporting_amount),
                    "exchange_rate": str(rate) if rate is not None else None,
                    "occurred_on": occurred_on.isoformat(),
                },
            )
        return row.to_dto()

    def reverse(
        self,
        movement_id,
        actor_id: UUID,
        occurred_at: datetime | None = None,
        notes: str | None = None,
    ) -> MovementRecord:
        """
        Append a movement that cancels ``movement_id``'s effect on balance.

        The offsetting movement reuses the original amounts and stamped rate
        so the reporting equivalent cancels exactly.

        Raises:
            MovementNotFoundError: Unknown id.
            AccountInactiveError: The account has since been deactivated.
        """
        original = self.session.get(LedgerMovement, as_uuid(movement_id))
        if original is None:
            raise MovementNotFoundError(str(movement_id))
        account = self._get_active_account(original.account_id)

        when = localize(occurred_at or self._clock.now(), self._policy.zone)
        kind = MovementKind(original.kind).offsetting_kind
        row = LedgerMovement(
            account_id=account.id,
            kind=kind.value,
            currency=original.currency,
            amount_original=original.amount_original,
            exchange_rate=original.exchange_rate,
            amount_reporting=original.amount_reporting,
            occurred_at=when,
            occurred_on=when.date(),
            concept=f"Reversal of movement {original.id}",
            method=original.method,
            operation_id=original.operation_id,
            lead_id=original.lead_id,
            operator_id=original.operator_id,
            payment_reference=original.payment_reference,
            notes=notes,
            created_by_id=actor_id,
        )
        self.session.add(row)
        self.session.flush()
        logger.info(
            "movement_reversed",
            extra={
                "movement_id": str(row.id),
                "reversed_movement_id": str(original.id),
                "kind": kind.value,
            },
        )
        return row.to_dto()

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
        """
        Move money between two accounts of the same currency.

        Writes an EXPENSE on the source and an INCOME on the destination
        inside one SAVEPOINT: both legs or neither.

        Raises:
            SameAccountTransferError: Source and destination are equal.
            CurrencyMismatchError: Either account is in another currency.
            InsufficientBalanceError: Source balance does not cover amount.
            ExchangeRateNotFoundError: Foreign currency with no rate.
        """
        amount = validate_amount(amount)
        currency = validate_currency(currency)
        source = self._get_active_account(from_account_id)
        target = self._get_active_account(to_account_id)
        if source.id == target.id:
            raise SameAccountTransferError(str(source.id))
        for account in (source, target):
            if account.currency != currency:
                raise CurrencyMismatchError(account.currency, currency, str(account.id))

        check = self._balances.has_sufficient_balance(source.id, amount)
        if not check.is_sufficient:
            raise InsufficientBalanceError(
                account_id=str(source.id),
                available=str(check.current_balance),
                required=str(amount),
                currency=currency,
            )

        with self.session.begin_nested():
            outgoing = self.record(
                source.id,
                MovementKind.EXPENSE,
                amount,
                currency,
                occurred_at,
                actor_id,
                concept=f"Transfer to {target.name}",
                method=PaymentMethod.BANK,
                notes=notes,
            )
            incoming = self.record(
                target.id,
                MovementKind.INCOME,
                amount,
                currency,
                occurred_at,
                actor_id,
                concept=f"Transfer from {source.name}",
                method=PaymentMethod.BANK,
                notes=notes,
            )

        logger.info(
            "transfer_completed",
            extra={
                "from_account_id": str(source.id),
                "to_account_id": str(target.id),
                "amount": str(amount),
                "currency": currency,
            },
        )
        return TransferResult(outgoing=outgoing, incoming=incoming)

    # =========================================================================
    # Internals
    # =========================================================================

    @staticmethod
    def _coerce_kind(kind) -> MovementKind:
        try:
            return MovementKind(kind)
        except ValueError:
            raise InvalidMovementKindError(str(kind))

    def _get_account(self, account_id) -> FinancialAccount:
        account = self.session.get(FinancialAccount, as_uuid(account_id))
        if account is None:
            raise AccountNotFoundError(str(account_id))
        return account

    def _get_active_account(self, account_id) -> FinancialAccount:
        account = self._get_account(account_id)
        if not account.is_active:
            raise AccountInactiveError(str(account.id))
        return account

    def _check_currency(self, account: FinancialAccount, currency: str) -> None:
        if currency == account.currency:
            return
        if account.currency == self._policy.reporting_currency:
            return
        raise CurrencyMismatchError(account.currency, currency, str(account.id))

    def _stamp(
        self,
        account: FinancialAccount,
        amount: Decimal,
        currency: str,
        occurred_on,
    ) -> tuple[Decimal | None, Decimal]:
        """Rate and reporting equivalent for a movement (rate None when unconverted)."""
        if currency == self._policy.reporting_currency:
            return None, amount
        try:
            rate = self._rates.resolve(occurred_on, currency)
        except ExchangeRateNotFoundError as exc:
            logger.warning(
                "movement_rejected_missing_rate",
                extra={"currency": currency, "as_of": exc.as_of},
            )
            raise ExchangeRateNotFoundError(
                from_currency=exc.from_currency,
                to_currency=exc.to_currency,
                as_of=exc.as_of,
                account_id=str(account.id),
            ) from exc
        return rate, round_money(amount * rate, self._policy.money_places)
