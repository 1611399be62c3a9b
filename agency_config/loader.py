"""
Configuration loader (``agency_config.loader``).

Responsibility
--------------
Reads the bundled ``defaults.yaml`` and an optional override file, merges
them, validates every key and returns a frozen ``LedgerSettings``.

Failure modes
-------------
* Missing override file  -> ``ConfigError``.
* Malformed YAML  -> ``ConfigError`` wrapping ``yaml.YAMLError``.
* Unknown or invalid values  -> ``ConfigError`` naming the key.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any
from uuid import UUID
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml

from agency_kernel.domain.types import AccountKind
from agency_kernel.logging_config import get_logger

from agency_config.schema import (
    CronSettings,
    LedgerSettings,
    SchedulerSettings,
    TaxSettings,
)

logger = get_logger("config.loader")

DEFAULTS_PATH = Path(__file__).parent / "defaults.yaml"

_TOP_LEVEL_KEYS = frozenset({
    "reporting_currency",
    "foreign_currency",
    "timezone",
    "money_places",
    "database",
    "scheduler",
    "tax",
    "cron",
})


class ConfigError(ValueError):
    """Configuration file missing, malformed or invalid."""

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Invalid configuration at {key!r}: {reason}")


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load one YAML mapping.

    Raises:
        ConfigError: file missing, not valid YAML, or not a mapping.
    """
    path = Path(path)
    if not path.is_file():
        raise ConfigError(str(path), "file not found")
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise ConfigError(str(path), f"malformed YAML: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(str(path), "top level must be a mapping")
    return data


def merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursive dict merge; values from ``override`` win."""
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_settings(path: Path | str | None = None) -> LedgerSettings:
    """Defaults merged with the file at ``path`` (if any), validated."""
    raw = load_yaml_file(DEFAULTS_PATH)
    if path is not None:
        raw = merge(raw, load_yaml_file(Path(path)))
    settings = parse_settings(raw)
    logger.info(
        "settings_loaded",
        extra={
            "config_path": str(path) if path is not None else None,
            "reporting_currency": settings.reporting_currency,
            "timezone": settings.timezone,
        },
    )
    return settings


def parse_settings(raw: dict[str, Any]) -> LedgerSettings:
    """Validate a merged mapping into ``LedgerSettings``."""
    unknown = set(raw) - _TOP_LEVEL_KEYS
    if unknown:
        raise ConfigError(sorted(unknown)[0], "unknown key")

    reporting = _currency(raw, "reporting_currency")
    foreign = _currency(raw, "foreign_currency")
    if reporting == foreign:
        raise ConfigError("foreign_currency", "must differ from reporting_currency")

    timezone = str(raw.get("timezone", ""))
    try:
        ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ConfigError("timezone", f"unknown time zone {timezone!r}") from exc

    money_places = raw.get("money_places")
    if not isinstance(money_places, int) or isinstance(money_places, bool) or not 0 <= money_places <= 9:
        raise ConfigError("money_places", "must be an integer between 0 and 9")

    database = _section(raw, "database")
    url = database.get("url")
    if not isinstance(url, str) or not url:
        raise ConfigError("database.url", "must be a non-empty string")

    return LedgerSettings(
        reporting_currency=reporting,
        foreign_currency=foreign,
        timezone=timezone,
        money_places=money_places,
        database_url=url,
        scheduler=_scheduler(_section(raw, "scheduler")),
        tax=_tax(_section(raw, "tax")),
        cron=_cron(_section(raw, "cron")),
    )


# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------

def _scheduler(data: dict[str, Any]) -> SchedulerSettings:
    budget = data.get("budget_seconds")
    if budget is not None:
        if isinstance(budget, bool) or not isinstance(budget, (int, float)) or budget <= 0:
            raise ConfigError("scheduler.budget_seconds", "must be a positive number or null")
        budget = float(budget)

    kinds = data.get("default_account_kinds") or []
    if not isinstance(kinds, list):
        raise ConfigError("scheduler.default_account_kinds", "must be a list")
    try:
        parsed_kinds = tuple(AccountKind(k) for k in kinds)
    except ValueError as exc:
        raise ConfigError("scheduler.default_account_kinds", str(exc)) from exc

    try:
        actor = UUID(str(data.get("system_actor_id")))
    except ValueError as exc:
        raise ConfigError("scheduler.system_actor_id", "must be a UUID") from exc

    return SchedulerSettings(
        budget_seconds=budget,
        default_account_kinds=parsed_kinds,
        system_actor_id=actor,
    )


def _tax(data: dict[str, Any]) -> TaxSettings:
    try:
        rate = Decimal(str(data.get("iva_rate")))
    except InvalidOperation as exc:
        raise ConfigError("tax.iva_rate", "must be a decimal number") from exc
    if not rate.is_finite() or not Decimal("0") <= rate < Decimal("1"):
        raise ConfigError("tax.iva_rate", "must be in [0, 1)")
    return TaxSettings(iva_rate=rate)


def _cron(data: dict[str, Any]) -> CronSettings:
    name = data.get("secret_env")
    if not isinstance(name, str) or not name:
        raise ConfigError("cron.secret_env", "must name an environment variable")
    return CronSettings(secret_env=name)


def _section(raw: dict[str, Any], key: str) -> dict[str, Any]:
    value = raw.get(key) or {}
    if not isinstance(value, dict):
        raise ConfigError(key, "must be a mapping")
    return value


def _currency(raw: dict[str, Any], key: str) -> str:
    value = raw.get(key)
    if not isinstance(value, str) or len(value) != 3 or not value.isalpha():
        raise ConfigError(key, "must be a 3-letter currency code")
    return value.upper()
