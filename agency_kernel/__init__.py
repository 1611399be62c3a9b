"""
Agency Kernel - multi-currency ledger core

An append-only movement ledger for a travel agency's cash boxes, bank
accounts and wallets, with:
- Native-currency amounts plus a reporting-currency snapshot per movement
- Exchange rate resolution (monthly override, then latest daily rate)
- Historical balances and daily balance series as of any date
"""

__version__ = "0.1.0"
