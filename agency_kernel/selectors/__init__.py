"""Selectors for the ledger core (read side)."""

from agency_kernel.selectors.account_selector import AccountSelector
from agency_kernel.selectors.balance_selector import BalanceSelector
from agency_kernel.selectors.movement_selector import MovementSelector

__all__ = [
    "AccountSelector",
    "BalanceSelector",
    "MovementSelector",
]
