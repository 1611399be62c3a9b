"""
ExchangeRateService -- foreign -> reporting currency rate resolution and
administration.

Responsibility:
    Answers "which rate applies on this date / in this month" and maintains
    the daily-rate and monthly-override tables.

Architecture position:
    Kernel > Services.  Leaf service: depends on models only.  LedgerService
    calls ``resolve()`` to stamp reporting equivalents at write time.

Invariants enforced:
    - Resolution order for a date: the monthly override for that date's
      (year, month), else the most recent daily rate dated on or before the
      date, else ExchangeRateNotFoundError.  Never a rate from the future,
      never a silent 1:1 default.
    - A rate is validated (finite, > 0) and a month checked (1..12) before
      anything is written.
    - Upserting an override replaces only its rate value; movements already
      stamped keep the rate they were written with.

Failure modes:
    - ExchangeRateNotFoundError when no override or earlier daily rate exists.
    - InvalidExchangeRateError / InvalidPeriodError on bad administrative input.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from agency_kernel.db.types import validate_currency, validate_rate
from agency_kernel.domain.calendar import month_bounds
from agency_kernel.domain.policy import LedgerPolicy
from agency_kernel.domain.types import DailyRate, MonthlyRate
from agency_kernel.exceptions import ExchangeRateNotFoundError, InvalidPeriodError
from agency_kernel.logging_config import get_logger
from agency_kernel.models.exchange_rate import DailyExchangeRate, MonthlyExchangeRate
from agency_kernel.services.base import BaseService

logger = get_logger("services.exchange_rate")


class ExchangeRateService(BaseService[DailyExchangeRate]):
    """
    Rate resolver and rate administration.

    Contract:
        ``currency`` arguments name the foreign currency being converted into
        the reporting currency; omitted, they default to the policy's
        foreign currency.  Returned rates are reporting units per foreign
        unit.
    """

    def __init__(self, session: Session, policy: LedgerPolicy | None = None):
        super().__init__(session)
        self._policy = policy or LedgerPolicy()

    # =========================================================================
    # Resolution
    # =========================================================================

    def resolve(self, on: date, currency: str | None = None) -> Decimal:
        """
        Rate applicable to a transaction dated ``on``.

        Raises:
            ExchangeRateNotFoundError: No override for the month and no daily
                rate on or before ``on``.
        """
        currency = self._currency(currency)

        override = self._monthly_row(currency, on.year, on.month)
        if override is not None:
            return override.rate

        daily = self._latest_daily_row(currency, on)
        if daily is not None:
            return daily.rate

        logger.warning(
            "exchange_rate_not_found",
            extra={"currency": currency, "as_of": on.isoformat()},
        )
        raise ExchangeRateNotFoundError(
            from_currency=currency,
            to_currency=self._policy.reporting_currency,
            as_of=on.isoformat(),
        )

    def resolve_for_period(
        self, year: int, month: int, currency: str | None = None
    ) -> Decimal:
        """
        Rate applicable to a whole accounting month.

        The monthly override if present, else the latest daily rate on or
        before the month's last day.

        Raises:
            InvalidPeriodError: month outside 1..12.
            ExchangeRateNotFoundError: Nothing applies.
        """
        self._check_period(year, month)
        return self.resolve(month_bounds(year, month)[1], currency)

    def latest_rate(self, currency: str | None = None) -> Decimal:
        """
        Most recently dated daily rate, regardless of today's date.

        Raises:
            ExchangeRateNotFoundError: No daily rate has ever been recorded.
        """
        currency = self._currency(currency)
        row = self.session.execute(
            select(DailyExchangeRate)
            .where(DailyExchangeRate.currency == currency)
            .order_by(DailyExchangeRate.rate_date.desc())
            .limit(1)
        ).scalar_one_or_none()
        if row is None:
            raise ExchangeRateNotFoundError(
                from_currency=currency,
                to_currency=self._policy.reporting_currency,
                as_of="latest",
            )
        return row.rate

    def get_monthly_rate(
        self, year: int, month: int, currency: str | None = None
    ) -> MonthlyRate | None:
        self._check_period(year, month)
        row = self._monthly_row(self._currency(currency), year, month)
        return row.to_dto() if row is not None else None

    def list_monthly_rates(
        self, year: int | None = None, currency: str | None = None
    ) -> list[MonthlyRate]:
        """Overrides ordered by period, newest first."""
        stmt = select(MonthlyExchangeRate).where(
            MonthlyExchangeRate.currency == self._currency(currency)
        )
        if year is not None:
            stmt = stmt.where(MonthlyExchangeRate.year == year)
        stmt = stmt.order_by(
            MonthlyExchangeRate.year.desc(), MonthlyExchangeRate.month.desc()
        )
        return [row.to_dto() for row in self.session.scalars(stmt)]

    # =========================================================================
    # Administration
    # =========================================================================

    def upsert_monthly_rate(
        self,
        year: int,
        month: int,
        rate,
        actor_id: UUID,
        currency: str | None = None,
    ) -> MonthlyRate:
        """
        Create or replace the override for (currency, year, month).

        Validation happens before any row is touched.

        Raises:
            InvalidExchangeRateError: rate is not a finite number > 0.
            InvalidPeriodError: month outside 1..12.
        """
        value = validate_rate(rate)
        self._check_period(year, month)
        currency = self._currency(currency)

        row = self._monthly_row(currency, year, month)
        created = row is None
        if created:
            row = MonthlyExchangeRate(
                currency=currency,
                year=year,
                month=month,
                rate=value,
                created_by_id=actor_id,
            )
            self.session.add(row)
        else:
            row.rate = value
            row.updated_by_id = actor_id
        self.session.flush()

        logger.info(
            "monthly_rate_upserted",
            extra={
                "currency": currency,
                "year": year,
                "month": month,
                "rate": str(value),
                "was_created": created,
            },
        )
        return MonthlyRate(currency=currency, year=year, month=month, rate=value)

    def record_daily_rate(
        self,
        on: date,
        rate,
        actor_id: UUID,
        currency: str | None = None,
        source: str = "manual",
    ) -> DailyRate:
        """
        Create or replace the rate for (currency, on).

        Raises:
            InvalidExchangeRateError: rate is not a finite number > 0.
        """
        value = validate_rate(rate)
        currency = self._currency(currency)

        row = self.session.execute(
            select(DailyExchangeRate).where(
                DailyExchangeRate.currency == currency,
                DailyExchangeRate.rate_date == on,
            )
        ).scalar_one_or_none()
        if row is None:
            row = DailyExchangeRate(
                currency=currency,
                rate_date=on,
                rate=value,
                source=source,
                created_by_id=actor_id,
            )
            self.session.add(row)
        else:
            row.rate = value
            row.source = source
            row.updated_by_id = actor_id
        self.session.flush()

        logger.info(
            "daily_rate_recorded",
            extra={"currency": currency, "rate_date": on.isoformat(), "rate": str(value)},
        )
        return DailyRate(currency=currency, rate_date=on, rate=value, source=source)

    # =========================================================================
    # Internals
    # =========================================================================

    def _currency(self, currency: str | None) -> str:
        if currency is None:
            return self._policy.foreign_currency
        return validate_currency(currency)

    @staticmethod
    def _check_period(year: int, month: int) -> None:
        if not 1 <= month <= 12:
            raise InvalidPeriodError(year, month)

    def _monthly_row(self, currency: str, year: int, month: int) -> MonthlyExchangeRate | None:
        return self.session.execute(
            select(MonthlyExchangeRate).where(
                MonthlyExchangeRate.currency == currency,
                MonthlyExchangeRate.year == year,
                MonthlyExchangeRate.month == month,
            )
        ).scalar_one_or_none()

    def _latest_daily_row(self, currency: str, on: date) -> DailyExchangeRate | None:
        return self.session.execute(
            select(DailyExchangeRate)
            .where(
                DailyExchangeRate.currency == currency,
                DailyExchangeRate.rate_date <= on,
            )
            .order_by(DailyExchangeRate.rate_date.desc())
            .limit(1)
        ).scalar_one_or_none()
