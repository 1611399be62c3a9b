"""
RecurringObligationScheduler -- daily generation of recurring payments.

Contract:
    ``run_for_date(today)`` walks every active definition, computes its due
    periods (pure, agency_batch.domain.schedule) and materializes each
    missing period as a GeneratedObligation plus an OPERATOR_PAYMENT ledger
    movement.  Safe to invoke any number of times per day.

Architecture: agency_batch/services.  Uses agency_batch.domain for period
    arithmetic and agency_kernel's LedgerService for the movement write.
    Flushes only; the caller (cron trigger, facade, test) commits.

Invariants enforced:
    - Idempotent generation: a period already generated is skipped; a
      concurrent run that wins the race is detected through the UNIQUE
      (definition_id, period_start) key and also counted as skipped.
    - SAVEPOINT per period: a failing period rolls back its own obligation
      and movement and nothing else.
    - Per-definition isolation: the first failure of a definition is
      recorded in the report and the run moves on to the next definition.
    - Wall-clock budget: when exceeded, remaining definitions are left for
      the next run (budget_exhausted=True in the report).
"""

from __future__ import annotations

import time
from collections.abc import Callable, Sequence
from datetime import date
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from agency_kernel.domain.calendar import midday
from agency_kernel.domain.clock import Clock, SystemClock
from agency_kernel.domain.policy import LedgerPolicy
from agency_kernel.domain.types import AccountInfo, AccountKind, MovementKind, PaymentMethod
from agency_kernel.exceptions import AccountInactiveError, AgencyLedgerError
from agency_kernel.logging_config import LogContext, get_logger
from agency_kernel.selectors.account_selector import AccountSelector
from agency_kernel.services.ledger_service import LedgerService

from agency_batch.domain.schedule import due_periods
from agency_batch.domain.types import (
    GenerationError,
    GenerationReport,
    PeriodOutcome,
    RecurringDefinition,
)
from agency_batch.models.recurring import (
    GeneratedObligationModel,
    RecurringPaymentDefinitionModel,
)

logger = get_logger("batch.scheduler")

DEFAULT_ACCOUNT_KINDS: tuple[AccountKind, ...] = (
    AccountKind.CASH_ARS,
    AccountKind.CASH_USD,
    AccountKind.CHECKING_ARS,
    AccountKind.CHECKING_USD,
    AccountKind.SAVINGS_ARS,
    AccountKind.SAVINGS_USD,
)


class RecurringObligationScheduler:
    """Materializes due periods of recurring payment definitions.

    Contract:
        - ``run_for_date()`` returns a GenerationReport; it raises only for
          infrastructure failures outside any single definition.
        - Generated movements are timestamped at noon of the period start
          in the ledger's canonical zone.

    Non-goals:
        - Does NOT commit.
        - Does NOT run a background loop; a daily external trigger calls it.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        policy: LedgerPolicy | None = None,
        ledger: LedgerService | None = None,
        actor_id: UUID | None = None,
        budget_seconds: float | None = None,
        default_account_kinds: Sequence[AccountKind | str] = DEFAULT_ACCOUNT_KINDS,
        monotonic: Callable[[], float] = time.monotonic,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._policy = policy or LedgerPolicy()
        self._ledger = ledger or LedgerService(session, self._clock, self._policy)
        self._accounts = AccountSelector(session)
        self._actor_id = actor_id or uuid4()
        self._budget_seconds = budget_seconds
        self._default_kinds = tuple(AccountKind(k) for k in default_account_kinds)
        self._monotonic = monotonic

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def run_for_date(self, today: date | None = None, actor_id: UUID | None = None) -> GenerationReport:
        """Generate every missing period due on or before ``today``.

        ``today`` defaults to the clock's current date in the canonical zone.
        """
        today = today or self._clock.now().astimezone(self._policy.zone).date()
        actor = actor_id or self._actor_id
        run_id = uuid4()
        started = self._monotonic()

        definitions = self._session.execute(
            select(RecurringPaymentDefinitionModel)
            .where(RecurringPaymentDefinitionModel.is_active == True)  # noqa: E712
            .order_by(
                RecurringPaymentDefinitionModel.start_date,
                RecurringPaymentDefinitionModel.id,
            )
        ).scalars().all()

        generated = 0
        skipped = 0
        processed = 0
        budget_exhausted = False
        errors: list[GenerationError] = []

        with LogContext.bind(run_id=str(run_id), actor_id=str(actor)):
            logger.info(
                "scheduler_run_started",
                extra={"run_date": today.isoformat(), "definition_count": len(definitions)},
            )

            for model in definitions:
                if self._budget_exceeded(started):
                    budget_exhausted = True
                    logger.warning(
                        "scheduler_budget_exhausted",
                        extra={
                            "budget_seconds": self._budget_seconds,
                            "definitions_processed": processed,
                            "definitions_remaining": len(definitions) - processed,
                        },
                    )
                    break

                definition = model.to_dto()
                with LogContext.bind(definition_id=str(definition.definition_id)):
                    g, s, error = self._process_definition(definition, today, actor)
                generated += g
                skipped += s
                if error is not None:
                    errors.append(error)
                processed += 1

            duration_ms = int((self._monotonic() - started) * 1000)
            logger.info(
                "scheduler_run_completed",
                extra={
                    "run_date": today.isoformat(),
                    "generated_count": generated,
                    "skipped_count": skipped,
                    "error_count": len(errors),
                    "definitions_processed": processed,
                    "budget_exhausted": budget_exhausted,
                    "duration_ms": duration_ms,
                },
            )

        return GenerationReport(
            run_id=run_id,
            run_date=today,
            generated_count=generated,
            skipped_count=skipped,
            errors=tuple(errors),
            definitions_processed=processed,
            definitions_total=len(definitions),
            budget_exhausted=budget_exhausted,
            duration_ms=duration_ms,
        )

    # -------------------------------------------------------------------------
    # Internal
    # -------------------------------------------------------------------------

    def _budget_exceeded(self, started: float) -> bool:
        if self._budget_seconds is None:
            return False
        return self._monotonic() - started >= self._budget_seconds

    def _process_definition(
        self,
        definition: RecurringDefinition,
        today: date,
        actor_id: UUID,
    ) -> tuple[int, int, GenerationError | None]:
        """Generate the missing periods of one definition.

        Returns (generated, skipped, first error or None).
        """
        due = due_periods(definition, today)
        if not due:
            return 0, 0, None

        existing = set(
            self._session.execute(
                select(GeneratedObligationModel.period_start).where(
                    GeneratedObligationModel.definition_id == definition.definition_id,
                    GeneratedObligationModel.period_start <= today,
                )
            ).scalars()
        )

        generated = 0
        skipped = 0
        account: AccountInfo | None = None

        for period in due:
            if period in existing:
                skipped += 1
                continue
            try:
                if account is None:
                    account = self._resolve_account(definition)
                outcome = self._generate_period(definition, period, account, actor_id)
            except AgencyLedgerError as exc:
                logger.warning(
                    "obligation_generation_failed",
                    extra={
                        "period_start": period.isoformat(),
                        "error_code": exc.code,
                        "error": str(exc),
                    },
                )
                return generated, skipped, GenerationError(
                    definition_id=definition.definition_id,
                    period_start=period,
                    error_code=exc.code,
                    message=str(exc),
                )
            except Exception as exc:
                logger.exception(
                    "obligation_generation_crashed",
                    extra={"period_start": period.isoformat()},
                )
                return generated, skipped, GenerationError(
                    definition_id=definition.definition_id,
                    period_start=period,
                    error_code="UNHANDLED_EXCEPTION",
                    message=str(exc),
                )

            if outcome == PeriodOutcome.GENERATED:
                generated += 1
            else:
                skipped += 1

        return generated, skipped, None

    def _resolve_account(self, definition: RecurringDefinition) -> AccountInfo:
        """Account charged for a definition: its own, or the currency default."""
        if definition.account_id is not None:
            account = self._accounts.get(definition.account_id)
            if not account.is_active:
                raise AccountInactiveError(str(account.account_id))
            return account
        return self._accounts.default_account(definition.currency, self._default_kinds)

    def _generate_period(
        self,
        definition: RecurringDefinition,
        period: date,
        account: AccountInfo,
        actor_id: UUID,
    ) -> PeriodOutcome:
        """Write one obligation and its movement inside a SAVEPOINT."""
        savepoint = self._session.begin_nested()
        try:
            movement = self._ledger.record(
                account.account_id,
                MovementKind.OPERATOR_PAYMENT,
                definition.amount,
                definition.currency,
                midday(period, self._policy.zone),
                actor_id,
                concept=f"Recurring payment: {definition.description}",
                method=PaymentMethod.BANK,
                operator_id=definition.operator_id,
                payment_reference=definition.invoice_number or definition.reference,
                notes=definition.notes,
            )
            self._session.add(
                GeneratedObligationModel(
                    definition_id=definition.definition_id,
                    period_start=period,
                    amount=definition.amount,
                    currency=definition.currency,
                    movement_id=movement.movement_id,
                    created_by_id=actor_id,
                )
            )
            self._session.flush()
            savepoint.commit()
        except IntegrityError:
            # A concurrent run claimed this period first.
            savepoint.rollback()
            logger.info(
                "obligation_already_generated",
                extra={"period_start": period.isoformat()},
            )
            return PeriodOutcome.SKIPPED
        except Exception:
            savepoint.rollback()
            raise

        logger.info(
            "obligation_generated",
            extra={
                "period_start": period.isoformat(),
                "amount": str(definition.amount),
                "currency": definition.currency,
                "account_id": str(account.account_id),
                "movement_id": str(movement.movement_id),
            },
        )
        return PeriodOutcome.GENERATED
