"""
Pytest fixtures for the agency ledger test suite.

Provides:
- In-memory SQLite sessions with SAVEPOINT support (fresh schema per test)
- A deterministic clock and a fixed test actor
- Factories for accounts, rates and recurring definitions
- Structured-log capture

Every service flushes only; tests read back through the same session.
"""

import json
import logging
from collections.abc import Generator
from datetime import date, datetime, timezone
from decimal import Decimal
from io import StringIO
from uuid import UUID, uuid4

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from agency_batch.services.definition_service import RecurringDefinitionService
from agency_batch.services.scheduler import RecurringObligationScheduler
from agency_kernel.db.base import Base
from agency_kernel.db.engine import enable_sqlite_savepoints
from agency_kernel.db.immutability import register_immutability_listeners
from agency_kernel.domain.clock import DeterministicClock
from agency_kernel.domain.policy import LedgerPolicy
from agency_kernel.domain.types import AccountKind
from agency_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from agency_kernel.selectors.balance_selector import BalanceSelector
from agency_kernel.services.exchange_rate_service import ExchangeRateService
from agency_kernel.services.ledger_service import LedgerService
from agency_modules._orm_registry import import_all_orm_models

# Test actor ID for all test operations
TEST_ACTOR_ID = UUID("11111111-1111-1111-1111-111111111111")


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture agency_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, ledger):
            ledger.record(...)
            logs = captured_logs()
            assert any(r["message"] == "movement_recorded" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("agency_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Database fixtures
# =============================================================================


def make_sqlite_engine():
    """Shared-connection in-memory engine with working SAVEPOINTs."""
    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    return enable_sqlite_savepoints(engine)


@pytest.fixture
def engine():
    import_all_orm_models()
    engine = make_sqlite_engine()
    Base.metadata.create_all(engine)
    register_immutability_listeners()
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine) -> Generator[Session, None, None]:
    factory = sessionmaker(bind=engine, expire_on_commit=False)
    session = factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


# =============================================================================
# Core objects
# =============================================================================


@pytest.fixture
def test_actor_id() -> UUID:
    return TEST_ACTOR_ID


@pytest.fixture
def deterministic_clock():
    return DeterministicClock(datetime(2024, 1, 15, 15, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def policy() -> LedgerPolicy:
    return LedgerPolicy()


@pytest.fixture
def rates(session, policy) -> ExchangeRateService:
    return ExchangeRateService(session, policy)


@pytest.fixture
def ledger(session, deterministic_clock, policy, rates) -> LedgerService:
    return LedgerService(session, deterministic_clock, policy, rates)


@pytest.fixture
def balances(session, policy) -> BalanceSelector:
    return BalanceSelector(session, policy)


@pytest.fixture
def definitions(session, deterministic_clock, policy, ledger) -> RecurringDefinitionService:
    return RecurringDefinitionService(session, deterministic_clock, policy, ledger)


@pytest.fixture
def scheduler(session, deterministic_clock, policy, ledger, test_actor_id):
    return RecurringObligationScheduler(
        session,
        clock=deterministic_clock,
        policy=policy,
        ledger=ledger,
        actor_id=test_actor_id,
    )


# =============================================================================
# Factories
# =============================================================================


@pytest.fixture
def create_account(ledger, test_actor_id):
    """Factory for financial accounts."""

    def _create_account(
        kind: AccountKind = AccountKind.CASH_ARS,
        currency: str | None = None,
        name: str | None = None,
        initial_balance=Decimal("0"),
    ):
        if currency is None:
            currency = "USD" if kind.value.endswith("USD") else "ARS"
        return ledger.create_account(
            name or f"{kind.value} {uuid4().hex[:6]}",
            kind,
            currency,
            test_actor_id,
            initial_balance=initial_balance,
        )

    return _create_account


@pytest.fixture
def ars_account(create_account):
    return create_account(AccountKind.CASH_ARS, name="Caja ARS")


@pytest.fixture
def usd_account(create_account):
    return create_account(AccountKind.CASH_USD, name="Caja USD")


@pytest.fixture
def daily_rate(rates, test_actor_id):
    """Factory for daily USD rates."""

    def _daily_rate(on: date, rate, currency: str = "USD"):
        return rates.record_daily_rate(on, Decimal(str(rate)), test_actor_id, currency)

    return _daily_rate


@pytest.fixture
def create_definition(definitions, test_actor_id):
    """Factory for recurring payment definitions."""

    def _create_definition(
        amount=Decimal("1000"),
        currency: str = "ARS",
        frequency: str = "MONTHLY",
        start_date: date = date(2024, 1, 1),
        **kwargs,
    ):
        return definitions.create_definition(
            operator_id=kwargs.pop("operator_id", uuid4()),
            amount=Decimal(str(amount)),
            currency=currency,
            frequency=frequency,
            start_date=start_date,
            actor_id=test_actor_id,
            **kwargs,
        )

    return _create_definition
