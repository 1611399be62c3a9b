"""
IvaService -- records the IVA carried by sales and operator purchases.

Responsibility:
    Splits each tax-inclusive total into net and IVA with the configured
    rate and persists one row per sale or purchase.  Reads delegate to
    ``IvaSelector``.

Architecture:
    agency_modules -- imports from agency_kernel only.  Flushes; the caller
    commits.

Invariants:
    - Stored ``net_amount + iva_amount == total`` to the cent.
    - The monthly net payable is additive: recording one more sale of IVA
      ``x`` in a month raises that month's net payable by exactly ``x``.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from agency_kernel.db.types import to_decimal, validate_amount, validate_currency
from agency_kernel.logging_config import get_logger
from agency_kernel.selectors.account_selector import as_uuid

from agency_modules.tax.helpers import DEFAULT_IVA_RATE, split_gross_amount
from agency_modules.tax.models import (
    IvaPurchaseRecord,
    IvaSaleRecord,
    MonthlyTaxDetail,
    MonthlyTaxSummary,
    OperationTaxRecords,
)
from agency_modules.tax.orm import IvaPurchaseModel, IvaSaleModel
from agency_modules.tax.selector import IvaSelector

logger = get_logger("modules.tax.service")


class IvaService:
    """Write and summarise IVA sale/purchase records."""

    def __init__(self, session: Session, iva_rate=DEFAULT_IVA_RATE, money_places: int = 2):
        self._session = session
        self._rate = to_decimal(iva_rate)
        self._places = money_places
        self._selector = IvaSelector(session)

    @property
    def iva_rate(self) -> Decimal:
        return self._rate

    def record_sale(
        self,
        operation_id,
        sale_amount_total,
        currency: str,
        sale_date: date,
        actor_id: UUID,
    ) -> IvaSaleRecord:
        """
        Raises:
            InvalidAmountError: total not > 0.
            InvalidCurrencyError: bad currency code.
        """
        total = validate_amount(sale_amount_total)
        currency = validate_currency(currency)
        net, iva = split_gross_amount(total, self._rate, self._places)

        row = IvaSaleModel(
            operation_id=as_uuid(operation_id),
            sale_amount_total=total,
            net_amount=net,
            iva_amount=iva,
            currency=currency,
            sale_date=sale_date,
            created_by_id=actor_id,
        )
        self._session.add(row)
        self._session.flush()

        logger.info(
            "iva_sale_recorded",
            extra={
                "operation_id": str(row.operation_id),
                "iva_amount": str(iva),
                "currency": currency,
                "sale_date": sale_date.isoformat(),
            },
        )
        return row.to_dto()

    def record_purchase(
        self,
        operation_id,
        operator_id,
        operator_cost_total,
        currency: str,
        purchase_date: date,
        actor_id: UUID,
    ) -> IvaPurchaseRecord:
        """
        Raises:
            InvalidAmountError: total not > 0.
            InvalidCurrencyError: bad currency code.
        """
        total = validate_amount(operator_cost_total)
        currency = validate_currency(currency)
        net, iva = split_gross_amount(total, self._rate, self._places)

        row = IvaPurchaseModel(
            operation_id=as_uuid(operation_id),
            operator_id=as_uuid(operator_id) if operator_id is not None else None,
            operator_cost_total=total,
            net_amount=net,
            iva_amount=iva,
            currency=currency,
            purchase_date=purchase_date,
            created_by_id=actor_id,
        )
        self._session.add(row)
        self._session.flush()

        logger.info(
            "iva_purchase_recorded",
            extra={
                "operation_id": str(row.operation_id),
                "iva_amount": str(iva),
                "currency": currency,
                "purchase_date": purchase_date.isoformat(),
            },
        )
        return row.to_dto()

    def monthly_summary(
        self, year: int, month: int, currency: str | None = None
    ) -> MonthlyTaxSummary:
        summary = self._selector.monthly_summary(year, month, currency)
        logger.info(
            "iva_monthly_summary",
            extra={
                "year": year,
                "month": month,
                "currency": currency,
                "net_payable": str(summary.net_payable),
            },
        )
        return summary

    def month_detail(self, year: int, month: int) -> MonthlyTaxDetail:
        return self._selector.month_detail(year, month)

    def records_for_operation(self, operation_id) -> OperationTaxRecords:
        return self._selector.records_for_operation(operation_id)
