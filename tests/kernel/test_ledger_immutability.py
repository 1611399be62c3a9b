"""
ORM-level guards: movements are append-only, accounts with movements are
never deleted nor re-denominated, rates are positive.
"""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from agency_kernel.exceptions import (
    AccountReferencedError,
    ImmutabilityViolationError,
    InvalidExchangeRateError,
)
from agency_kernel.models.account import FinancialAccount
from agency_kernel.models.exchange_rate import DailyExchangeRate
from agency_kernel.models.movement import LedgerMovement

WHEN = datetime(2024, 3, 10, 15, 0, tzinfo=timezone.utc)


@pytest.fixture
def movement(session, ledger, ars_account, test_actor_id):
    record = ledger.record(ars_account.account_id, "INCOME", Decimal("100"), "ARS", WHEN, test_actor_id)
    return session.get(LedgerMovement, record.movement_id)


class TestMovementImmutability:

    def test_update_is_rejected(self, session, movement):
        movement.amount_original = Decimal("999")

        with pytest.raises(ImmutabilityViolationError) as exc_info:
            session.flush()

        assert exc_info.value.code == "IMMUTABILITY_VIOLATION"
        assert exc_info.value.entity_type == "LedgerMovement"

    def test_delete_is_rejected(self, session, movement):
        session.delete(movement)

        with pytest.raises(ImmutabilityViolationError):
            session.flush()

    def test_violation_is_logged(self, session, movement, captured_logs):
        movement.concept = "edited"

        with pytest.raises(ImmutabilityViolationError):
            session.flush()

        assert any(r["message"] == "immutability_violation_blocked" for r in captured_logs())


class TestAccountGuards:

    def test_account_with_movements_cannot_be_deleted(self, session, movement, ars_account):
        session.delete(session.get(FinancialAccount, ars_account.account_id))

        with pytest.raises(AccountReferencedError):
            session.flush()

    def test_currency_is_fixed_once_movements_exist(self, session, movement, ars_account):
        account = session.get(FinancialAccount, ars_account.account_id)
        account.currency = "USD"

        with pytest.raises(AccountReferencedError):
            session.flush()

    def test_unused_account_can_be_deleted(self, session, create_account):
        info = create_account()
        session.delete(session.get(FinancialAccount, info.account_id))
        session.flush()

        assert session.get(FinancialAccount, info.account_id) is None

    def test_rename_is_allowed(self, session, movement, ars_account):
        account = session.get(FinancialAccount, ars_account.account_id)
        account.name = "Caja principal"
        session.flush()


class TestRateGuard:

    def test_direct_insert_of_non_positive_rate_is_rejected(self, session, test_actor_id):
        session.add(
            DailyExchangeRate(
                currency="USD",
                rate_date=date(2024, 3, 1),
                rate=Decimal("0"),
                source="manual",
                created_by_id=test_actor_id,
            )
        )

        with pytest.raises(InvalidExchangeRateError):
            session.flush()
