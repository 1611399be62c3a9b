"""Services for the ledger core (write side)."""

from agency_kernel.services.exchange_rate_service import ExchangeRateService
from agency_kernel.services.ledger_service import LedgerService

__all__ = [
    "ExchangeRateService",
    "LedgerService",
]
