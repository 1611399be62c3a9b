"""
agency_services.cron -- authenticated entry point for the daily run.

An external scheduler calls ``run_daily_trigger`` once a day with an
``Authorization: Bearer <secret>`` header value.  The secret is read from
the environment variable named by ``cron.secret_env``; when that variable
is unset or empty every call is rejected.

Each accepted call opens its own ``session_scope()``: the report's
obligations and movements are committed together when the run returns.
"""

from __future__ import annotations

import hmac
import os
from datetime import date

from agency_config import LedgerSettings, get_settings
from agency_kernel.db.engine import session_scope
from agency_kernel.domain.clock import Clock
from agency_kernel.exceptions import CronUnauthorizedError
from agency_kernel.logging_config import LogContext, get_logger

from agency_batch.domain.types import GenerationReport
from agency_services.ledger_api import LedgerApi

logger = get_logger("services.cron")

BEARER_PREFIX = "Bearer "


def check_authorization(authorization: str | None, settings: LedgerSettings) -> None:
    """
    Raises:
        CronUnauthorizedError: secret unset, header missing or wrong.
    """
    secret = os.environ.get(settings.cron.secret_env, "")
    if not secret:
        raise CronUnauthorizedError(reason=f"{settings.cron.secret_env} is not set")
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        raise CronUnauthorizedError(reason="missing bearer token")
    token = authorization[len(BEARER_PREFIX):]
    if not hmac.compare_digest(token.encode(), secret.encode()):
        raise CronUnauthorizedError(reason="invalid bearer token")


def run_daily_trigger(
    authorization: str | None,
    today: date | None = None,
    settings: LedgerSettings | None = None,
    clock: Clock | None = None,
) -> GenerationReport:
    """
    Authenticate, then run the recurring-payment scheduler and commit.

    Requires an initialized engine (``init_engine_from_url``).

    Raises:
        CronUnauthorizedError: authentication failed; nothing is written.
    """
    settings = settings or get_settings()
    try:
        check_authorization(authorization, settings)
    except CronUnauthorizedError as exc:
        logger.warning("cron_unauthorized", extra={"reason": exc.reason})
        raise

    with LogContext.bind(actor_id=str(settings.scheduler.system_actor_id)):
        with session_scope() as session:
            report = LedgerApi(session, settings, clock).run_recurring_scheduler(today)
        logger.info(
            "cron_run_committed",
            extra={
                "run_id": str(report.run_id),
                "generated_count": report.generated_count,
                "error_count": report.error_count,
            },
        )
    return report
