"""ORM models for the ledger core."""

from agency_kernel.models.account import FinancialAccount
from agency_kernel.models.exchange_rate import DailyExchangeRate, MonthlyExchangeRate
from agency_kernel.models.movement import LedgerMovement

__all__ = [
    "DailyExchangeRate",
    "FinancialAccount",
    "LedgerMovement",
    "MonthlyExchangeRate",
]
