"""
RecurringDefinitionService -- lifecycle of recurring payment definitions and
manual payment of a definition from a chosen account.

Architecture: agency_batch/services.  Flushes only.

Invariants enforced:
    - amount > 0, frequency in the closed set, end_date >= start_date.
    - Definitions are deactivated, never deleted; generated periods stay.
    - A manual payment converts the definition amount into the paying
      account's currency with an explicit rate, checks the account can
      cover it, and posts one EXPENSE movement.
"""

from __future__ import annotations

from datetime import date
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.orm import Session

from agency_kernel.db.types import round_money, validate_amount, validate_currency, validate_rate
from agency_kernel.domain.calendar import midday
from agency_kernel.domain.clock import Clock, SystemClock
from agency_kernel.domain.policy import LedgerPolicy
from agency_kernel.domain.types import MovementKind, MovementRecord, PaymentMethod
from agency_kernel.exceptions import (
    CurrencyMismatchError,
    DefinitionNotFoundError,
    InsufficientBalanceError,
    InvalidDefinitionError,
    InvalidExchangeRateError,
)
from agency_kernel.logging_config import get_logger
from agency_kernel.selectors.account_selector import AccountSelector, as_uuid
from agency_kernel.selectors.balance_selector import BalanceSelector
from agency_kernel.services.ledger_service import LedgerService

from agency_batch.domain.types import Frequency, ObligationRecord, RecurringDefinition
from agency_batch.models.recurring import (
    GeneratedObligationModel,
    RecurringPaymentDefinitionModel,
)

logger = get_logger("batch.definitions")


class RecurringDefinitionService:
    """Create, deactivate, list and manually pay recurring definitions."""

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        policy: LedgerPolicy | None = None,
        ledger: LedgerService | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._policy = policy or LedgerPolicy()
        self._ledger = ledger or LedgerService(session, self._clock, self._policy)
        self._accounts = AccountSelector(session)
        self._balances = BalanceSelector(session, self._policy)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def create_definition(
        self,
        operator_id: UUID,
        amount,
        currency: str,
        frequency: Frequency | str,
        start_date: date,
        actor_id: UUID,
        description: str = "",
        end_date: date | None = None,
        account_id: UUID | None = None,
        notes: str | None = None,
        invoice_number: str | None = None,
        reference: str | None = None,
    ) -> RecurringDefinition:
        """
        Raises:
            InvalidAmountError: amount not > 0.
            InvalidCurrencyError: bad currency code.
            InvalidDefinitionError: unknown frequency or end before start.
            AccountNotFoundError: account_id given but unknown.
        """
        amount = validate_amount(amount)
        currency = validate_currency(currency)
        try:
            frequency = Frequency(frequency)
        except ValueError:
            raise InvalidDefinitionError("frequency", f"unknown frequency {frequency!r}")
        if end_date is not None and end_date < start_date:
            raise InvalidDefinitionError(
                "end_date", f"{end_date.isoformat()} is before start {start_date.isoformat()}"
            )
        if account_id is not None:
            self._accounts.get(account_id)

        dto = RecurringDefinition(
            definition_id=uuid4(),
            operator_id=operator_id,
            amount=amount,
            currency=currency,
            frequency=frequency,
            start_date=start_date,
            end_date=end_date,
            description=description,
            is_active=True,
            account_id=account_id,
            notes=notes,
            invoice_number=invoice_number,
            reference=reference,
        )
        self._session.add(RecurringPaymentDefinitionModel.from_dto(dto, created_by_id=actor_id))
        self._session.flush()

        logger.info(
            "recurring_definition_created",
            extra={
                "definition_id": str(dto.definition_id),
                "operator_id": str(operator_id),
                "amount": str(amount),
                "currency": currency,
                "frequency": frequency.value,
                "start_date": start_date.isoformat(),
            },
        )
        return dto

    def deactivate_definition(self, definition_id, actor_id: UUID) -> RecurringDefinition:
        model = self._get_model(definition_id)
        if model.is_active:
            model.is_active = False
            model.updated_by_id = actor_id
            self._session.flush()
            logger.info(
                "recurring_definition_deactivated",
                extra={"definition_id": str(model.id)},
            )
        return model.to_dto()

    def get_definition(self, definition_id) -> RecurringDefinition:
        return self._get_model(definition_id).to_dto()

    def list_definitions(
        self,
        operator_id: UUID | None = None,
        is_active: bool | None = None,
    ) -> list[RecurringDefinition]:
        stmt = select(RecurringPaymentDefinitionModel)
        if operator_id is not None:
            stmt = stmt.where(RecurringPaymentDefinitionModel.operator_id == operator_id)
        if is_active is not None:
            stmt = stmt.where(RecurringPaymentDefinitionModel.is_active == is_active)
        stmt = stmt.order_by(
            RecurringPaymentDefinitionModel.start_date.desc(),
            RecurringPaymentDefinitionModel.id,
        )
        return [m.to_dto() for m in self._session.scalars(stmt)]

    def obligations_for(self, definition_id) -> list[ObligationRecord]:
        """Generated periods of a definition, oldest first."""
        model = self._get_model(definition_id)
        rows = self._session.scalars(
            select(GeneratedObligationModel)
            .where(GeneratedObligationModel.definition_id == model.id)
            .order_by(GeneratedObligationModel.period_start)
        )
        return [row.to_dto() for row in rows]

    # -------------------------------------------------------------------------
    # Manual payment
    # -------------------------------------------------------------------------

    def pay_manually(
        self,
        definition_id,
        account_id,
        payment_date: date,
        actor_id: UUID,
        exchange_rate=None,
        reference: str | None = None,
    ) -> MovementRecord:
        """
        Pay one installment of a definition from ``account_id``.

        When the account currency differs from the definition currency,
        ``exchange_rate`` (reporting units per foreign unit) is required:
        a foreign definition paid from a reporting-currency account is
        multiplied by it, a reporting-currency definition paid from a
        foreign account is divided by it.

        Raises:
            DefinitionNotFoundError, AccountNotFoundError, AccountInactiveError.
            InvalidExchangeRateError: rate missing or not > 0 for a conversion.
            CurrencyMismatchError: neither side is in the reporting currency.
            InsufficientBalanceError: the account cannot cover the payment.
        """
        definition = self.get_definition(definition_id)
        account = self._accounts.get(account_id)

        amount = definition.amount
        if definition.currency != account.currency:
            if exchange_rate is None:
                raise InvalidExchangeRateError(
                    "None",
                    f"exchange rate required to pay {definition.currency} from a "
                    f"{account.currency} account",
                )
            rate = validate_rate(exchange_rate)
            reporting = self._policy.reporting_currency
            if account.currency == reporting:
                amount = round_money(amount * rate, self._policy.money_places)
            elif definition.currency == reporting:
                amount = round_money(amount / rate, self._policy.money_places)
            else:
                raise CurrencyMismatchError(
                    definition.currency, account.currency, str(account.account_id)
                )

        check = self._balances.has_sufficient_balance(account.account_id, amount)
        if not check.is_sufficient:
            raise InsufficientBalanceError(
                account_id=str(account.account_id),
                available=str(check.current_balance),
                required=str(amount),
                currency=account.currency,
            )

        movement = self._ledger.record(
            account.account_id,
            MovementKind.EXPENSE,
            amount,
            account.currency,
            midday(payment_date, self._policy.zone),
            actor_id,
            concept=f"Recurring payment: {definition.description}",
            method=PaymentMethod.BANK,
            operator_id=definition.operator_id,
            payment_reference=reference or definition.invoice_number,
            notes=definition.notes,
        )
        logger.info(
            "recurring_definition_paid",
            extra={
                "definition_id": str(definition.definition_id),
                "movement_id": str(movement.movement_id),
                "amount": str(amount),
                "currency": account.currency,
            },
        )
        return movement

    # -------------------------------------------------------------------------
    # Internal
    # -------------------------------------------------------------------------

    def _get_model(self, definition_id) -> RecurringPaymentDefinitionModel:
        model = self._session.get(RecurringPaymentDefinitionModel, as_uuid(definition_id))
        if model is None:
            raise DefinitionNotFoundError(str(definition_id))
        return model
