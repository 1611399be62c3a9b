"""
Module: agency_kernel.models.exchange_rate
Responsibility: ORM persistence for foreign -> reporting currency rates:
    per-date rates and per-(year, month) overrides.
Architecture position: Kernel > Models.  May import from db/ and domain/types.

Invariants enforced:
    - rate > 0, validated by the service before the write and again by an
      ORM before_insert/before_update listener.
    - At most one daily rate per (currency, rate_date) and one override per
      (currency, year, month) (UNIQUE constraints).
    - Movements copy the rate value at write time; rows here may be updated
      (upsert) without touching already-stamped movements.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from sqlalchemy import CheckConstraint, Date, Index, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from agency_kernel.db.base import TrackedBase
from agency_kernel.domain.types import DailyRate, MonthlyRate


class DailyExchangeRate(TrackedBase):
    """Rate published for one calendar day (reporting units per foreign unit)."""

    __tablename__ = "daily_exchange_rates"
    __table_args__ = (
        UniqueConstraint("currency", "rate_date", name="uq_daily_rate_currency_date"),
        Index("idx_daily_rate_date", "rate_date"),
    )

    currency: Mapped[str] = mapped_column(String(3), nullable=False)

    rate_date: Mapped[date] = mapped_column(Date, nullable=False)

    rate: Mapped[Decimal] = mapped_column(Numeric(38, 18), nullable=False)

    # e.g. "manual", "bna", "blue"
    source: Mapped[str] = mapped_column(String(50), nullable=False, default="manual")

    def __repr__(self) -> str:
        return f"<DailyExchangeRate {self.currency} {self.rate_date} = {self.rate}>"

    def to_dto(self) -> DailyRate:
        return DailyRate(
            currency=self.currency,
            rate_date=self.rate_date,
            rate=self.rate,
            source=self.source,
        )


class MonthlyExchangeRate(TrackedBase):
    """Override rate for a whole calendar month.  Wins over daily rates."""

    __tablename__ = "monthly_exchange_rates"
    __table_args__ = (
        UniqueConstraint(
            "currency", "year", "month", name="uq_monthly_rate_currency_period"
        ),
        CheckConstraint("month >= 1 AND month <= 12", name="ck_monthly_rate_month"),
    )

    currency: Mapped[str] = mapped_column(String(3), nullable=False)

    year: Mapped[int] = mapped_column(Integer, nullable=False)

    month: Mapped[int] = mapped_column(Integer, nullable=False)

    rate: Mapped[Decimal] = mapped_column(Numeric(38, 18), nullable=False)

    def __repr__(self) -> str:
        return f"<MonthlyExchangeRate {self.currency} {self.year}-{self.month:02d} = {self.rate}>"

    def to_dto(self) -> MonthlyRate:
        return MonthlyRate(
            currency=self.currency,
            year=self.year,
            month=self.month,
            rate=self.rate,
        )
