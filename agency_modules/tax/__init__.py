"""
IVA module.

Records the value-added tax embedded in sale and operator-purchase totals
and summarises it per calendar month (sales tax, purchases tax, net
payable).  Arithmetic lives in ``helpers``; persistence in ``orm``; reads
in ``selector``; writes in ``service``.
"""

from agency_modules.tax.helpers import DEFAULT_IVA_RATE, split_gross_amount
from agency_modules.tax.models import (
    IvaPurchaseRecord,
    IvaSaleRecord,
    MonthlyTaxDetail,
    MonthlyTaxSummary,
    OperationTaxRecords,
)
from agency_modules.tax.selector import IvaSelector
from agency_modules.tax.service import IvaService

__all__ = [
    "DEFAULT_IVA_RATE",
    "IvaPurchaseRecord",
    "IvaSaleRecord",
    "IvaSelector",
    "IvaService",
    "MonthlyTaxDetail",
    "MonthlyTaxSummary",
    "OperationTaxRecords",
    "split_gross_amount",
]
