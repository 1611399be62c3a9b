"""
BalanceSelector: end-of-day balances, daily series and currency isolation.

Balance(A, t) = initial_balance + sum(sign(kind) * amount) over movements
of A dated on or before t.
"""

from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from agency_kernel.domain.calendar import localize
from agency_kernel.domain.types import AccountKind, MovementKind
from agency_kernel.exceptions import AccountNotFoundError, InvalidDateRangeError


def at(day: date, policy) -> datetime:
    return localize(datetime.combine(day, time(12, 0)), policy.zone)


class TestBalanceAsOf:

    def test_initial_balance_plus_signed_movements(
        self, ledger, balances, create_account, policy, test_actor_id
    ):
        account = create_account(initial_balance=Decimal("1000"))
        ledger.record(account.account_id, "INCOME", Decimal("500"), "ARS", at(date(2024, 3, 1), policy), test_actor_id)
        ledger.record(account.account_id, "OPERATOR_PAYMENT", Decimal("200"), "ARS", at(date(2024, 3, 2), policy), test_actor_id)
        ledger.record(account.account_id, "COMMISSION", Decimal("50"), "ARS", at(date(2024, 3, 3), policy), test_actor_id)

        ids = [account.account_id]
        assert balances.balance_as_of(ids, date(2024, 2, 29)) == Decimal("1000")
        assert balances.balance_as_of(ids, date(2024, 3, 1)) == Decimal("1500")
        assert balances.balance_as_of(ids, date(2024, 3, 2)) == Decimal("1300")
        assert balances.balance_as_of(ids, date(2024, 3, 3)) == Decimal("1250")

    def test_movement_late_in_the_local_day_counts_for_that_day(
        self, ledger, balances, ars_account, test_actor_id
    ):
        # 23:59 in Buenos Aires is already the next day in UTC.
        late = datetime(2024, 3, 2, 2, 59, tzinfo=timezone.utc)
        ledger.record(ars_account.account_id, "INCOME", Decimal("10"), "ARS", late, test_actor_id)

        assert balances.balance_as_of([ars_account.account_id], date(2024, 3, 1)) == Decimal("10")

    def test_combined_balance_of_several_accounts(
        self, ledger, balances, create_account, policy, test_actor_id
    ):
        first = create_account(initial_balance=Decimal("100"))
        second = create_account(AccountKind.SAVINGS_ARS, initial_balance=Decimal("40"))
        ledger.record(second.account_id, "INCOME", Decimal("60"), "ARS", at(date(2024, 3, 1), policy), test_actor_id)

        total = balances.balance_as_of([first.account_id, second.account_id], date(2024, 3, 1))
        assert total == Decimal("200")

    def test_unknown_account_raises(self, balances):
        with pytest.raises(AccountNotFoundError):
            balances.balance_as_of([uuid4()], date(2024, 3, 1))

    def test_account_without_movements_is_its_initial_balance(self, balances, create_account):
        account = create_account(initial_balance=Decimal("75.5"))
        assert balances.balance_as_of([account.account_id], date(2024, 1, 1)) == Decimal("75.5")

    def test_no_accounts_is_zero(self, balances, ars_account):
        assert balances.balance_as_of([], date(2024, 3, 1)) == Decimal("0")
        assert balances.balances_as_of([]) == {}


class TestCurrencyIsolation:

    def test_usd_balance_is_in_usd(
        self, ledger, balances, usd_account, daily_rate, policy, test_actor_id
    ):
        daily_rate(date(2024, 3, 1), "1000")
        ledger.record(usd_account.account_id, "INCOME", Decimal("100"), "USD", at(date(2024, 3, 1), policy), test_actor_id)
        ledger.record(usd_account.account_id, "EXPENSE", Decimal("30"), "USD", at(date(2024, 3, 2), policy), test_actor_id)

        assert balances.balance_as_of([usd_account.account_id], date(2024, 3, 2)) == Decimal("70")

    def test_usd_movements_never_touch_ars_accounts(
        self, ledger, balances, ars_account, usd_account, daily_rate, policy, test_actor_id
    ):
        daily_rate(date(2024, 3, 1), "1000")
        ledger.record(usd_account.account_id, "INCOME", Decimal("100"), "USD", at(date(2024, 3, 1), policy), test_actor_id)

        assert balances.balance_as_of([ars_account.account_id], date(2024, 3, 1)) == Decimal("0")

    def test_foreign_movement_on_reporting_account_counts_its_equivalent(
        self, ledger, balances, ars_account, daily_rate, policy, test_actor_id
    ):
        daily_rate(date(2024, 3, 1), "1000")
        ledger.record(ars_account.account_id, "INCOME", Decimal("2"), "USD", at(date(2024, 3, 1), policy), test_actor_id)

        assert balances.balance_as_of([ars_account.account_id], date(2024, 3, 1)) == Decimal("2000")

    def test_stamped_equivalent_survives_rate_changes(
        self, ledger, balances, rates, ars_account, daily_rate, policy, test_actor_id
    ):
        daily_rate(date(2024, 3, 1), "1000")
        ledger.record(ars_account.account_id, "INCOME", Decimal("2"), "USD", at(date(2024, 3, 5), policy), test_actor_id)

        rates.upsert_monthly_rate(2024, 3, Decimal("1500"), test_actor_id)

        assert balances.balance_as_of([ars_account.account_id], date(2024, 3, 31)) == Decimal("2000")


class TestDailySeries:

    def test_one_point_per_day_carrying_forward(
        self, ledger, balances, create_account, policy, test_actor_id
    ):
        account = create_account(initial_balance=Decimal("100"))
        ledger.record(account.account_id, "INCOME", Decimal("50"), "ARS", at(date(2024, 2, 28), policy), test_actor_id)
        ledger.record(account.account_id, "EXPENSE", Decimal("20"), "ARS", at(date(2024, 3, 1), policy), test_actor_id)
        ledger.record(account.account_id, "EXPENSE", Decimal("5"), "ARS", at(date(2024, 3, 1), policy), test_actor_id)

        series = list(balances.daily_series([account.account_id], date(2024, 2, 27), date(2024, 3, 2)))

        assert [p.on for p in series] == [
            date(2024, 2, 27), date(2024, 2, 28), date(2024, 2, 29),
            date(2024, 3, 1), date(2024, 3, 2),
        ]
        assert [p.balance for p in series] == [
            Decimal("100"), Decimal("150"), Decimal("150"), Decimal("125"), Decimal("125"),
        ]

    def test_series_agrees_with_balance_as_of(
        self, ledger, balances, create_account, policy, test_actor_id
    ):
        account = create_account()
        for offset in range(0, 30, 3):
            ledger.record(
                account.account_id, "INCOME", Decimal(offset + 1), "ARS",
                at(date(2024, 1, 1) + timedelta(days=offset), policy), test_actor_id,
            )

        series = list(balances.daily_series([account.account_id], date(2024, 1, 5), date(2024, 1, 25), page_size=2))

        for point in series:
            assert point.balance == balances.balance_as_of([account.account_id], point.on)

    def test_inverted_range_raises_immediately(self, balances, ars_account):
        with pytest.raises(InvalidDateRangeError):
            balances.daily_series([ars_account.account_id], date(2024, 3, 2), date(2024, 3, 1))

    def test_single_day_range(self, balances, create_account):
        account = create_account(initial_balance=Decimal("9"))
        series = list(balances.daily_series([account.account_id], date(2024, 3, 1), date(2024, 3, 1)))
        assert [(p.on, p.balance) for p in series] == [(date(2024, 3, 1), Decimal("9"))]

    def test_no_accounts_yields_empty_series(self, balances, ars_account):
        assert list(balances.daily_series([], date(2024, 3, 1), date(2024, 3, 31))) == []


class TestSufficiency:

    def test_reports_shortfall(self, ledger, balances, create_account):
        account = create_account(initial_balance=Decimal("100"))

        check = balances.has_sufficient_balance(account.account_id, Decimal("150"))

        assert check.is_sufficient is False
        assert check.current_balance == Decimal("100")
        assert check.shortfall == Decimal("50")
        assert balances.has_sufficient_balance(account.account_id, Decimal("100")).is_sufficient


_KINDS = st.sampled_from(list(MovementKind))
_CENTS = st.integers(min_value=1, max_value=1_000_000)
_OFFSETS = st.integers(min_value=0, max_value=60)


class TestBalanceFoldProperty:

    @settings(max_examples=25, deadline=None, suppress_health_check=[HealthCheck.function_scoped_fixture])
    @given(
        movements=st.lists(st.tuples(_KINDS, _CENTS, _OFFSETS), min_size=0, max_size=15),
        as_of_offset=_OFFSETS,
    )
    def test_balance_is_fold_of_signed_movements(
        self, ledger, balances, create_account, policy, test_actor_id, movements, as_of_offset
    ):
        start = date(2024, 1, 1)
        account = create_account(initial_balance=Decimal("1000"))
        for kind, cents, offset in movements:
            ledger.record(
                account.account_id, kind, Decimal(cents) / 100, "ARS",
                at(start + timedelta(days=offset), policy), test_actor_id,
            )

        as_of = start + timedelta(days=as_of_offset)
        expected = Decimal("1000") + sum(
            (kind.signed(Decimal(cents) / 100) for kind, cents, offset in movements if offset <= as_of_offset),
            Decimal("0"),
        )

        assert balances.balance_as_of([account.account_id], as_of) == expected
