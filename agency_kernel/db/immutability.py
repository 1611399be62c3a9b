"""
ORM-level integrity enforcement for the ledger.

===============================================================================
WHY THIS EXISTS
===============================================================================

Balances are a fold over ledger movements.  If a movement could be edited or
deleted, every historical balance and daily series computed from it would
silently change.  Services never expose update/delete, and these listeners
catch anything that tries anyway through the ORM:

    session.flush()
         |
         v
    [before_update / before_delete] --> _check_*() --> ImmutabilityViolationError
         |
         v
    SQL sent to database (only if checks pass)

===============================================================================
PROTECTED ENTITIES
===============================================================================

Entity                | Rule
----------------------|-----------------------------------------------------
LedgerMovement        | Never updated, never deleted
FinancialAccount      | Not deleted and currency not changed once referenced
DailyExchangeRate     | rate > 0 on insert and update
MonthlyExchangeRate   | rate > 0 on insert and update, month in 1..12

Bulk ``session.execute(update(...))`` bypasses mapper events; no service
issues bulk writes against these tables.
"""

from sqlalchemy import event, select
from sqlalchemy.orm.attributes import get_history

from agency_kernel.db.types import validate_rate
from agency_kernel.exceptions import (
    AccountReferencedError,
    ImmutabilityViolationError,
    InvalidPeriodError,
)
from agency_kernel.logging_config import get_logger

logger = get_logger("db.immutability")


# =============================================================================
# Ledger movements
# =============================================================================


def _check_movement_update(mapper, connection, target):
    """Reject any UPDATE of a ledger movement."""
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": "LedgerMovement",
            "entity_id": str(target.id),
            "operation": "UPDATE",
        },
    )
    raise ImmutabilityViolationError(
        entity_type="LedgerMovement",
        entity_id=str(target.id),
        reason="Ledger movements are append-only; record an offsetting movement instead",
    )


def _check_movement_delete(mapper, connection, target):
    """Reject any DELETE of a ledger movement."""
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": "LedgerMovement",
            "entity_id": str(target.id),
            "operation": "DELETE",
        },
    )
    raise ImmutabilityViolationError(
        entity_type="LedgerMovement",
        entity_id=str(target.id),
        reason="Ledger movements cannot be deleted",
    )


# =============================================================================
# Financial accounts
# =============================================================================


def _account_has_movements(connection, account_id) -> bool:
    from agency_kernel.models.movement import LedgerMovement

    stmt = (
        select(LedgerMovement.id)
        .where(LedgerMovement.account_id == account_id)
        .limit(1)
    )
    return connection.execute(stmt).first() is not None


def _check_account_update(mapper, connection, target):
    """Currency is fixed once the account carries movements."""
    history = get_history(target, "currency")
    if not history.has_changes():
        return
    if _account_has_movements(connection, target.id):
        logger.error(
            "immutability_violation_blocked",
            extra={
                "entity_type": "FinancialAccount",
                "entity_id": str(target.id),
                "operation": "UPDATE",
                "field": "currency",
            },
        )
        raise AccountReferencedError(
            account_id=str(target.id),
            reason="referenced by ledger movements; its currency cannot change",
        )


def _check_account_delete(mapper, connection, target):
    """Accounts with movements are deactivated, never deleted."""
    if _account_has_movements(connection, target.id):
        logger.error(
            "immutability_violation_blocked",
            extra={
                "entity_type": "FinancialAccount",
                "entity_id": str(target.id),
                "operation": "DELETE",
            },
        )
        raise AccountReferencedError(account_id=str(target.id))


# =============================================================================
# Exchange rates
# =============================================================================


def _check_rate_value(mapper, connection, target):
    """Second-layer guard: a non-positive rate never reaches the table."""
    validate_rate(target.rate)
    month = getattr(target, "month", None)
    if month is not None and not 1 <= month <= 12:
        raise InvalidPeriodError(target.year, month)


# =============================================================================
# Registration
# =============================================================================


def _listeners() -> tuple:
    from agency_kernel.models.account import FinancialAccount
    from agency_kernel.models.exchange_rate import DailyExchangeRate, MonthlyExchangeRate
    from agency_kernel.models.movement import LedgerMovement

    return (
        (LedgerMovement, "before_update", _check_movement_update),
        (LedgerMovement, "before_delete", _check_movement_delete),
        (FinancialAccount, "before_update", _check_account_update),
        (FinancialAccount, "before_delete", _check_account_delete),
        (DailyExchangeRate, "before_insert", _check_rate_value),
        (DailyExchangeRate, "before_update", _check_rate_value),
        (MonthlyExchangeRate, "before_insert", _check_rate_value),
        (MonthlyExchangeRate, "before_update", _check_rate_value),
    )


def register_immutability_listeners() -> None:
    """
    Register all integrity listeners.  Safe to call more than once.

    ``init_engine_from_url`` calls this, so every process that opens the
    module-level engine is guarded.
    """
    for target, identifier, fn in _listeners():
        if not event.contains(target, identifier, fn):
            event.listen(target, identifier, fn)


def unregister_immutability_listeners() -> None:
    """Remove the integrity listeners.  Tests only."""
    for target, identifier, fn in _listeners():
        if event.contains(target, identifier, fn):
            event.remove(target, identifier, fn)
