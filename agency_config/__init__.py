"""
agency_config -- single public entrypoint for ledger configuration.

Responsibility:
    ``get_settings()`` is the only way services, the cron trigger and the
    scripts obtain configuration.  The kernel never imports this package;
    callers translate settings into a ``LedgerPolicy`` with
    ``LedgerSettings.ledger_policy()`` and pass it down.

Resolution order for the override file:
    1. the ``path`` argument,
    2. the ``AGENCY_LEDGER_CONFIG`` environment variable,
    3. none (bundled defaults only).
"""

from __future__ import annotations

import os
from pathlib import Path

from agency_config.loader import ConfigError, load_settings
from agency_config.schema import (
    CronSettings,
    LedgerSettings,
    SchedulerSettings,
    TaxSettings,
)

CONFIG_ENV_VAR = "AGENCY_LEDGER_CONFIG"


def get_settings(path: Path | str | None = None) -> LedgerSettings:
    """
    Load and validate configuration.

    Raises:
        ConfigError: override file missing or any value invalid.
    """
    if path is None:
        path = os.environ.get(CONFIG_ENV_VAR) or None
    return load_settings(path)


__all__ = [
    "CONFIG_ENV_VAR",
    "ConfigError",
    "CronSettings",
    "LedgerSettings",
    "SchedulerSettings",
    "TaxSettings",
    "get_settings",
]
