"""
IVA domain models.

Frozen dataclass DTOs returned by the IVA service and selector.  No ORM
coupling; monetary fields are ``Decimal``.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID


@dataclass(frozen=True)
class IvaSaleRecord:
    """Output tax carried by one sale."""
    record_id: UUID
    operation_id: UUID
    sale_amount_total: Decimal
    net_amount: Decimal
    iva_amount: Decimal
    currency: str
    sale_date: date


@dataclass(frozen=True)
class IvaPurchaseRecord:
    """Input tax carried by one purchase from an operator."""
    record_id: UUID
    operation_id: UUID
    operator_id: UUID | None
    operator_cost_total: Decimal
    net_amount: Decimal
    iva_amount: Decimal
    currency: str
    purchase_date: date


@dataclass(frozen=True)
class MonthlyTaxSummary:
    """Tax totals for one calendar month.

    ``currency`` is None when records of every currency were summed.
    """
    year: int
    month: int
    sales_tax: Decimal
    purchases_tax: Decimal
    net_payable: Decimal
    currency: str | None = None


@dataclass(frozen=True)
class MonthlyTaxDetail:
    """Summary plus the individual records of the month, newest first."""
    summary: MonthlyTaxSummary
    sales: tuple[IvaSaleRecord, ...] = ()
    purchases: tuple[IvaPurchaseRecord, ...] = ()


@dataclass(frozen=True)
class OperationTaxRecords:
    """Every tax record attached to one operation."""
    operation_id: UUID
    sales: tuple[IvaSaleRecord, ...] = ()
    purchases: tuple[IvaPurchaseRecord, ...] = ()
