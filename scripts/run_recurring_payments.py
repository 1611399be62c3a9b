#!/usr/bin/env python3
"""
Run the recurring-payment scheduler once and print the report as JSON.

Operator-side equivalent of the authenticated daily cron trigger: it runs
against the configured database directly and commits on success.

Usage:
    python3 scripts/run_recurring_payments.py [--date YYYY-MM-DD]
        [--config path.yaml] [--database-url URL] [--create-tables]

Exit status:
    0  every due period was generated or already present
    1  at least one definition recorded an error
    2  configuration or database setup failed
"""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import asdict
from datetime import date
from pathlib import Path

# Project root on sys.path
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

from agency_config import ConfigError, get_settings  # noqa: E402
from agency_kernel.db.engine import create_tables, init_engine_from_url, session_scope  # noqa: E402
from agency_kernel.logging_config import configure_logging  # noqa: E402
from agency_services.ledger_api import LedgerApi  # noqa: E402


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Generate due recurring payments.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--date",
        type=date.fromisoformat,
        default=None,
        help="Run date (YYYY-MM-DD). Default: today in the ledger time zone.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="YAML override file (default: $AGENCY_LEDGER_CONFIG or bundled defaults).",
    )
    parser.add_argument(
        "--database-url",
        default=None,
        help="Database URL (default: database.url from configuration).",
    )
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="Create missing tables before running.",
    )
    return parser.parse_args(argv)


def _report_json(report) -> str:
    data = asdict(report)
    data["error_count"] = report.error_count
    return json.dumps(data, default=str, indent=2)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    configure_logging()

    try:
        settings = get_settings(args.config)
    except ConfigError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2

    init_engine_from_url(args.database_url or settings.database_url)
    if args.create_tables:
        create_tables()

    with session_scope() as session:
        report = LedgerApi(session, settings).run_recurring_scheduler(args.date)

    print(_report_json(report))
    return 1 if report.has_errors else 0


if __name__ == "__main__":
    sys.exit(main())
