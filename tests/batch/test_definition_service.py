"""
RecurringDefinitionService: lifecycle and manual payment.
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from agency_batch.domain.types import Frequency
from agency_kernel.domain.types import AccountKind, MovementKind
from agency_kernel.exceptions import (
    AccountNotFoundError,
    DefinitionNotFoundError,
    InsufficientBalanceError,
    InvalidAmountError,
    InvalidDefinitionError,
    InvalidExchangeRateError,
)


class TestLifecycle:

    def test_create_and_get(self, definitions, create_definition):
        created = create_definition(amount="1500", frequency=Frequency.QUARTERLY, description="Bus")

        fetched = definitions.get_definition(created.definition_id)

        assert fetched == created
        assert fetched.frequency == Frequency.QUARTERLY
        assert fetched.is_active is True

    def test_rejects_end_before_start(self, create_definition):
        with pytest.raises(InvalidDefinitionError) as exc_info:
            create_definition(start_date=date(2024, 3, 1), end_date=date(2024, 2, 1))
        assert exc_info.value.code == "INVALID_DEFINITION"

    def test_rejects_unknown_frequency(self, create_definition):
        with pytest.raises(InvalidDefinitionError):
            create_definition(frequency="DAILY")

    def test_rejects_non_positive_amount(self, create_definition):
        with pytest.raises(InvalidAmountError):
            create_definition(amount="0")

    def test_rejects_unknown_account(self, create_definition):
        with pytest.raises(AccountNotFoundError):
            create_definition(account_id=uuid4())

    def test_list_filters(self, definitions, create_definition, test_actor_id):
        operator = uuid4()
        keep = create_definition(operator_id=operator, start_date=date(2024, 2, 1))
        stopped = create_definition(operator_id=operator, start_date=date(2024, 1, 1))
        create_definition()
        definitions.deactivate_definition(stopped.definition_id, test_actor_id)

        assert [d.definition_id for d in definitions.list_definitions(operator_id=operator)] == [
            keep.definition_id, stopped.definition_id,
        ]
        assert [d.definition_id for d in definitions.list_definitions(operator_id=operator, is_active=True)] == [
            keep.definition_id,
        ]

    def test_unknown_definition(self, definitions):
        with pytest.raises(DefinitionNotFoundError):
            definitions.get_definition(uuid4())

    def test_obligations_for(self, definitions, scheduler, ars_account, create_definition):
        definition = create_definition(frequency="BIWEEKLY", start_date=date(2024, 3, 1))
        scheduler.run_for_date(date(2024, 3, 29))

        obligations = definitions.obligations_for(definition.definition_id)

        assert [o.period_start for o in obligations] == [
            date(2024, 3, 1), date(2024, 3, 15), date(2024, 3, 29),
        ]
        assert all(o.movement_id is not None for o in obligations)


class TestManualPayment:

    def test_same_currency(self, definitions, balances, create_account, create_definition, test_actor_id):
        account = create_account(AccountKind.CASH_ARS, initial_balance=Decimal("5000"))
        definition = create_definition(amount="1200", description="Guide")

        movement = definitions.pay_manually(
            definition.definition_id, account.account_id, date(2024, 3, 5), test_actor_id,
        )

        assert movement.kind == MovementKind.EXPENSE
        assert movement.concept == "Recurring payment: Guide"
        assert balances.balance_as_of([account.account_id], date(2024, 3, 5)) == Decimal("3800")

    def test_foreign_definition_from_reporting_account(
        self, definitions, create_account, create_definition, test_actor_id
    ):
        account = create_account(AccountKind.CASH_ARS, initial_balance=Decimal("500000"))
        definition = create_definition(amount="100", currency="USD")

        movement = definitions.pay_manually(
            definition.definition_id, account.account_id, date(2024, 3, 5), test_actor_id,
            exchange_rate=Decimal("1050.5"),
        )

        assert movement.currency == "ARS"
        assert movement.amount_original == Decimal("105050.00")

    def test_reporting_definition_from_foreign_account(
        self, definitions, create_account, create_definition, daily_rate, test_actor_id
    ):
        daily_rate(date(2024, 3, 1), "1000")
        account = create_account(AccountKind.CASH_USD, initial_balance=Decimal("100"))
        definition = create_definition(amount="25000", currency="ARS")

        movement = definitions.pay_manually(
            definition.definition_id, account.account_id, date(2024, 3, 5), test_actor_id,
            exchange_rate=Decimal("1000"),
        )

        assert movement.currency == "USD"
        assert movement.amount_original == Decimal("25.00")

    def test_conversion_requires_rate(self, definitions, create_account, create_definition, test_actor_id):
        account = create_account(AccountKind.CASH_ARS, initial_balance=Decimal("500000"))
        definition = create_definition(amount="100", currency="USD")

        with pytest.raises(InvalidExchangeRateError):
            definitions.pay_manually(
                definition.definition_id, account.account_id, date(2024, 3, 5), test_actor_id,
            )

    def test_insufficient_balance(self, definitions, create_account, create_definition, test_actor_id):
        account = create_account(AccountKind.CASH_ARS, initial_balance=Decimal("100"))
        definition = create_definition(amount="1200")

        with pytest.raises(InsufficientBalanceError) as exc_info:
            definitions.pay_manually(
                definition.definition_id, account.account_id, date(2024, 3, 5), test_actor_id,
            )

        assert exc_info.value.code == "INSUFFICIENT_BALANCE"
