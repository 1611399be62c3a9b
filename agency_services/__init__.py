"""
agency_services -- composition layer: the ``LedgerApi`` facade and the
authenticated daily cron trigger.
"""

from agency_services.cron import check_authorization, run_daily_trigger
from agency_services.ledger_api import LedgerApi

__all__ = [
    "LedgerApi",
    "check_authorization",
    "run_daily_trigger",
]
