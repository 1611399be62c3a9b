"""
LedgerService.record(): validation, currency rule and reporting snapshot.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from agency_kernel.domain.types import AccountKind, MovementKind, PaymentMethod
from agency_kernel.exceptions import (
    AccountInactiveError,
    AccountNotFoundError,
    CurrencyMismatchError,
    ExchangeRateNotFoundError,
    InvalidAmountError,
    InvalidMovementKindError,
)
from agency_kernel.models.movement import LedgerMovement

NOON_UTC = datetime(2024, 3, 10, 15, 0, tzinfo=timezone.utc)


class TestRecord:

    def test_reporting_currency_movement_has_no_rate(self, ledger, ars_account, test_actor_id):
        movement = ledger.record(
            ars_account.account_id, MovementKind.INCOME, Decimal("1500"), "ARS",
            NOON_UTC, test_actor_id, concept="Sale", method=PaymentMethod.CASH,
        )

        assert movement.exchange_rate is None
        assert movement.amount_reporting == Decimal("1500")
        assert movement.signed_amount == Decimal("1500")
        assert movement.method == PaymentMethod.CASH
        assert movement.created_by_id == test_actor_id

    def test_foreign_movement_is_stamped_with_rate(
        self, ledger, usd_account, daily_rate, test_actor_id
    ):
        daily_rate(date(2024, 3, 1), "1050.5")

        movement = ledger.record(
            usd_account.account_id, "EXPENSE", Decimal("100"), "USD", NOON_UTC, test_actor_id,
        )

        assert movement.kind == MovementKind.EXPENSE
        assert movement.exchange_rate == Decimal("1050.5")
        assert movement.amount_reporting == Decimal("105050.00")
        assert movement.signed_amount == Decimal("-100")

    def test_reporting_equivalent_rounds_half_up(
        self, ledger, usd_account, daily_rate, test_actor_id
    ):
        daily_rate(date(2024, 3, 1), "1000.125")

        movement = ledger.record(
            usd_account.account_id, "INCOME", Decimal("1"), "USD", NOON_UTC, test_actor_id,
        )

        assert movement.amount_reporting == Decimal("1000.13")

    def test_foreign_movement_on_reporting_account(
        self, ledger, ars_account, daily_rate, test_actor_id
    ):
        daily_rate(date(2024, 3, 1), "1000")

        movement = ledger.record(
            ars_account.account_id, "INCOME", Decimal("10"), "USD", NOON_UTC, test_actor_id,
        )

        assert movement.currency == "USD"
        assert movement.amount_reporting == Decimal("10000")

    def test_missing_rate_rejects_and_names_account(
        self, session, ledger, usd_account, test_actor_id
    ):
        with pytest.raises(ExchangeRateNotFoundError) as exc_info:
            ledger.record(
                usd_account.account_id, "INCOME", Decimal("10"), "USD", NOON_UTC, test_actor_id,
            )

        assert exc_info.value.account_id == str(usd_account.account_id)
        assert exc_info.value.as_of == "2024-03-10"
        assert session.query(LedgerMovement).count() == 0

    def test_reporting_movement_on_foreign_account_is_rejected(
        self, ledger, usd_account, test_actor_id
    ):
        with pytest.raises(CurrencyMismatchError):
            ledger.record(
                usd_account.account_id, "INCOME", Decimal("10"), "ARS", NOON_UTC, test_actor_id,
            )

    @pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-1"), "NaN", "nope"])
    def test_rejects_non_positive_amounts(self, ledger, ars_account, test_actor_id, amount):
        with pytest.raises(InvalidAmountError):
            ledger.record(
                ars_account.account_id, "INCOME", amount, "ARS", NOON_UTC, test_actor_id,
            )

    def test_rejects_unknown_kind(self, ledger, ars_account, test_actor_id):
        with pytest.raises(InvalidMovementKindError):
            ledger.record(
                ars_account.account_id, "REFUND", Decimal("1"), "ARS", NOON_UTC, test_actor_id,
            )

    def test_rejects_unknown_account(self, ledger, test_actor_id):
        with pytest.raises(AccountNotFoundError):
            ledger.record(uuid4(), "INCOME", Decimal("1"), "ARS", NOON_UTC, test_actor_id)

    def test_rejects_inactive_account(self, ledger, ars_account, test_actor_id):
        ledger.deactivate_account(ars_account.account_id, test_actor_id)

        with pytest.raises(AccountInactiveError):
            ledger.record(
                ars_account.account_id, "INCOME", Decimal("1"), "ARS", NOON_UTC, test_actor_id,
            )

    def test_occurred_on_is_the_local_calendar_day(self, ledger, ars_account, test_actor_id):
        # 01:30 UTC on Mar 11 is still Mar 10 in Buenos Aires (UTC-3).
        late = datetime(2024, 3, 11, 1, 30, tzinfo=timezone.utc)

        movement = ledger.record(
            ars_account.account_id, "INCOME", Decimal("1"), "ARS", late, test_actor_id,
        )

        assert movement.occurred_on == date(2024, 3, 10)

    def test_naive_timestamp_is_read_as_local_time(self, ledger, ars_account, test_actor_id):
        movement = ledger.record(
            ars_account.account_id, "INCOME", Decimal("1"), "ARS",
            datetime(2024, 3, 10, 23, 0), test_actor_id,
        )

        assert movement.occurred_on == date(2024, 3, 10)
        assert movement.occurred_at == datetime(2024, 3, 11, 2, 0, tzinfo=timezone.utc)

    def test_record_is_logged_with_account_context(
        self, ledger, ars_account, test_actor_id, captured_logs
    ):
        ledger.record(ars_account.account_id, "INCOME", Decimal("5"), "ARS", NOON_UTC, test_actor_id)

        records = [r for r in captured_logs() if r["message"] == "movement_recorded"]
        assert len(records) == 1
        assert records[0]["account_id"] == str(ars_account.account_id)
        assert records[0]["actor_id"] == str(test_actor_id)
        assert records[0]["amount_reporting"] == "5"


class TestAccounts:

    def test_kind_implies_currency(self, ledger, test_actor_id):
        with pytest.raises(CurrencyMismatchError):
            ledger.create_account("Caja", AccountKind.CASH_USD, "ARS", test_actor_id)

    def test_wallet_may_hold_either_currency(self, ledger, test_actor_id):
        account = ledger.create_account("MP", AccountKind.DIGITAL_WALLET, "usd", test_actor_id)
        assert account.currency == "USD"
        assert account.kind == AccountKind.DIGITAL_WALLET

    def test_deactivate_keeps_account_readable(self, ledger, balances, create_account, test_actor_id):
        account = create_account(initial_balance=Decimal("250"))

        info = ledger.deactivate_account(account.account_id, test_actor_id)

        assert info.is_active is False
        assert balances.balance_as_of([account.account_id], date(2024, 12, 31)) == Decimal("250")


class TestReverse:

    def test_reversal_cancels_effect(self, ledger, balances, ars_account, test_actor_id):
        original = ledger.record(
            ars_account.account_id, "COMMISSION", Decimal("300"), "ARS", NOON_UTC, test_actor_id,
        )

        reversal = ledger.reverse(original.movement_id, test_actor_id, occurred_at=NOON_UTC)

        assert reversal.kind == MovementKind.INCOME
        assert reversal.amount_original == original.amount_original
        assert balances.balance_as_of([ars_account.account_id], date(2024, 3, 10)) == Decimal("0")

    def test_reversal_defaults_to_clock_time(
        self, ledger, ars_account, deterministic_clock, test_actor_id
    ):
        original = ledger.record(
            ars_account.account_id, "EXPENSE", Decimal("300"), "ARS",
            deterministic_clock.now(), test_actor_id,
        )
        later = deterministic_clock.advance(days=2)

        reversal = ledger.reverse(original.movement_id, test_actor_id)

        assert reversal.occurred_at == later
        assert reversal.occurred_on == date(2024, 1, 17)

    def test_fx_kinds_reverse_into_each_other(self):
        assert MovementKind.FX_GAIN.offsetting_kind == MovementKind.FX_LOSS
        assert MovementKind.FX_LOSS.offsetting_kind == MovementKind.FX_GAIN
        assert MovementKind.OPERATOR_PAYMENT.offsetting_kind == MovementKind.INCOME
