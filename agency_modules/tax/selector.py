"""
IvaSelector -- read side of the IVA books.

Monthly totals are SQL sums over the calendar month's first to last day
(real month length, leap years included).  Read-only.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from sqlalchemy import func, select

from agency_kernel.db.types import round_money, validate_currency
from agency_kernel.domain.calendar import month_bounds
from agency_kernel.exceptions import InvalidPeriodError
from agency_kernel.selectors.account_selector import as_uuid
from agency_kernel.selectors.base import BaseSelector

from agency_modules.tax.helpers import net_payable
from agency_modules.tax.models import (
    IvaPurchaseRecord,
    IvaSaleRecord,
    MonthlyTaxDetail,
    MonthlyTaxSummary,
    OperationTaxRecords,
)
from agency_modules.tax.orm import IvaPurchaseModel, IvaSaleModel


class IvaSelector(BaseSelector[IvaSaleModel]):

    def monthly_summary(
        self, year: int, month: int, currency: str | None = None
    ) -> MonthlyTaxSummary:
        """
        Sales tax, purchases tax and net payable for (year, month).

        Months without records yield zeros.

        Raises:
            InvalidPeriodError: month outside 1..12.
        """
        first, last = self._bounds(year, month)
        if currency is not None:
            currency = validate_currency(currency)

        sales = self._sum(
            IvaSaleModel.iva_amount, IvaSaleModel.sale_date,
            IvaSaleModel.currency, first, last, currency,
        )
        purchases = self._sum(
            IvaPurchaseModel.iva_amount, IvaPurchaseModel.purchase_date,
            IvaPurchaseModel.currency, first, last, currency,
        )
        return MonthlyTaxSummary(
            year=year,
            month=month,
            sales_tax=sales,
            purchases_tax=purchases,
            net_payable=net_payable(sales, purchases),
            currency=currency,
        )

    def month_detail(self, year: int, month: int) -> MonthlyTaxDetail:
        first, last = self._bounds(year, month)
        sales = self.session.scalars(
            select(IvaSaleModel)
            .where(IvaSaleModel.sale_date >= first, IvaSaleModel.sale_date <= last)
            .order_by(IvaSaleModel.sale_date.desc(), IvaSaleModel.id)
        )
        purchases = self.session.scalars(
            select(IvaPurchaseModel)
            .where(
                IvaPurchaseModel.purchase_date >= first,
                IvaPurchaseModel.purchase_date <= last,
            )
            .order_by(IvaPurchaseModel.purchase_date.desc(), IvaPurchaseModel.id)
        )
        return MonthlyTaxDetail(
            summary=self.monthly_summary(year, month),
            sales=tuple(row.to_dto() for row in sales),
            purchases=tuple(row.to_dto() for row in purchases),
        )

    def records_for_operation(self, operation_id) -> OperationTaxRecords:
        operation_id = as_uuid(operation_id)
        sales: list[IvaSaleRecord] = [
            row.to_dto()
            for row in self.session.scalars(
                select(IvaSaleModel)
                .where(IvaSaleModel.operation_id == operation_id)
                .order_by(IvaSaleModel.sale_date.desc())
            )
        ]
        purchases: list[IvaPurchaseRecord] = [
            row.to_dto()
            for row in self.session.scalars(
                select(IvaPurchaseModel)
                .where(IvaPurchaseModel.operation_id == operation_id)
                .order_by(IvaPurchaseModel.purchase_date.desc())
            )
        ]
        return OperationTaxRecords(
            operation_id=operation_id,
            sales=tuple(sales),
            purchases=tuple(purchases),
        )

    @staticmethod
    def _bounds(year: int, month: int) -> tuple[date, date]:
        if not 1 <= month <= 12:
            raise InvalidPeriodError(year, month)
        return month_bounds(year, month)

    def _sum(self, amount_col, date_col, currency_col, first, last, currency) -> Decimal:
        stmt = select(func.coalesce(func.sum(amount_col), 0)).where(
            date_col >= first, date_col <= last
        )
        if currency is not None:
            stmt = stmt.where(currency_col == currency)
        return round_money(Decimal(str(self.session.scalar(stmt))))
