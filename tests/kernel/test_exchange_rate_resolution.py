"""
Exchange rate resolution and administration.

Resolution order: monthly override, then the latest daily rate on or
before the date, then ExchangeRateNotFoundError.  Never forward-looking.
"""

from datetime import date
from decimal import Decimal

import pytest

from agency_kernel.exceptions import (
    ExchangeRateNotFoundError,
    InvalidCurrencyError,
    InvalidExchangeRateError,
    InvalidPeriodError,
)
from agency_kernel.models.exchange_rate import MonthlyExchangeRate


class TestResolve:

    def test_latest_daily_rate_on_or_before_date(self, rates, daily_rate):
        daily_rate(date(2024, 3, 1), "1000")
        daily_rate(date(2024, 3, 5), "1050.5")

        assert rates.resolve(date(2024, 3, 4)) == Decimal("1000")
        assert rates.resolve(date(2024, 3, 5)) == Decimal("1050.5")
        assert rates.resolve(date(2024, 3, 20)) == Decimal("1050.5")

    def test_never_uses_a_later_rate(self, rates, daily_rate):
        daily_rate(date(2024, 3, 10), "1000")

        with pytest.raises(ExchangeRateNotFoundError) as exc_info:
            rates.resolve(date(2024, 3, 9))

        assert exc_info.value.code == "EXCHANGE_RATE_NOT_FOUND"
        assert exc_info.value.from_currency == "USD"
        assert exc_info.value.as_of == "2024-03-09"

    def test_monthly_override_wins_over_daily(self, rates, daily_rate, test_actor_id):
        daily_rate(date(2024, 3, 1), "1000")
        rates.upsert_monthly_rate(2024, 3, Decimal("1200.25"), test_actor_id)

        assert rates.resolve(date(2024, 3, 1)) == Decimal("1200.25")
        assert rates.resolve(date(2024, 3, 31)) == Decimal("1200.25")
        # April has no override; falls back to the last daily rate.
        assert rates.resolve(date(2024, 4, 2)) == Decimal("1000")

    def test_override_alone_is_enough(self, rates, test_actor_id):
        rates.upsert_monthly_rate(2024, 2, Decimal("900"), test_actor_id)

        assert rates.resolve(date(2024, 2, 29)) == Decimal("900")
        with pytest.raises(ExchangeRateNotFoundError):
            rates.resolve(date(2024, 3, 1))

    def test_currencies_are_resolved_independently(self, rates, daily_rate):
        daily_rate(date(2024, 3, 1), "1000", currency="USD")
        daily_rate(date(2024, 3, 1), "1100", currency="EUR")

        assert rates.resolve(date(2024, 3, 2), "EUR") == Decimal("1100")
        assert rates.resolve(date(2024, 3, 2), "usd") == Decimal("1000")

    def test_resolve_for_period_uses_month_end(self, rates, daily_rate):
        daily_rate(date(2024, 2, 10), "980")
        daily_rate(date(2024, 2, 29), "1000")
        daily_rate(date(2024, 3, 1), "1020")

        assert rates.resolve_for_period(2024, 2) == Decimal("1000")

    def test_latest_rate(self, rates, daily_rate):
        with pytest.raises(ExchangeRateNotFoundError):
            rates.latest_rate()

        daily_rate(date(2024, 3, 1), "1000")
        daily_rate(date(2024, 5, 1), "1100")
        assert rates.latest_rate() == Decimal("1100")


class TestAdministration:

    def test_upsert_replaces_only_the_rate(self, session, rates, test_actor_id):
        rates.upsert_monthly_rate(2024, 3, Decimal("1000"), test_actor_id)
        updated = rates.upsert_monthly_rate(2024, 3, Decimal("1100"), test_actor_id)

        assert updated.rate == Decimal("1100")
        rows = session.query(MonthlyExchangeRate).all()
        assert len(rows) == 1
        assert rows[0].rate == Decimal("1100")

    @pytest.mark.parametrize("bad", ["0", "-5", "NaN", "Infinity", "abc"])
    def test_rejects_invalid_rates_before_writing(self, session, rates, test_actor_id, bad):
        with pytest.raises(InvalidExchangeRateError):
            rates.upsert_monthly_rate(2024, 3, bad, test_actor_id)
        assert session.query(MonthlyExchangeRate).count() == 0

    @pytest.mark.parametrize("month", [0, 13])
    def test_rejects_month_outside_range(self, rates, test_actor_id, month):
        with pytest.raises(InvalidPeriodError):
            rates.upsert_monthly_rate(2024, month, Decimal("1000"), test_actor_id)

    def test_rejects_bad_currency_code(self, rates, test_actor_id):
        with pytest.raises(InvalidCurrencyError):
            rates.record_daily_rate(date(2024, 3, 1), Decimal("1000"), test_actor_id, "DOLLAR")

    def test_daily_rate_upsert_by_date(self, rates, test_actor_id):
        rates.record_daily_rate(date(2024, 3, 1), Decimal("1000"), test_actor_id)
        rates.record_daily_rate(date(2024, 3, 1), Decimal("1010"), test_actor_id, source="bna")

        assert rates.resolve(date(2024, 3, 1)) == Decimal("1010")

    def test_list_monthly_rates_newest_first(self, rates, test_actor_id):
        rates.upsert_monthly_rate(2024, 1, Decimal("900"), test_actor_id)
        rates.upsert_monthly_rate(2024, 3, Decimal("1000"), test_actor_id)
        rates.upsert_monthly_rate(2023, 12, Decimal("800"), test_actor_id)

        listed = rates.list_monthly_rates()
        assert [(r.year, r.month) for r in listed] == [(2024, 3), (2024, 1), (2023, 12)]
        assert [r.month for r in rates.list_monthly_rates(year=2024)] == [3, 1]
        assert rates.get_monthly_rate(2024, 2) is None
        assert rates.get_monthly_rate(2024, 1).rate == Decimal("900")

    def test_upsert_is_logged(self, rates, test_actor_id, captured_logs):
        rates.upsert_monthly_rate(2024, 3, Decimal("1000"), test_actor_id)

        records = [r for r in captured_logs() if r["message"] == "monthly_rate_upserted"]
        assert len(records) == 1
        assert records[0]["was_created"] is True
        assert records[0]["rate"] == "1000"
