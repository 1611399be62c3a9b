"""
agency_batch.domain.types -- Pure frozen dataclasses for recurring payments.

ZERO I/O.  Frozen dataclasses with enum fields and tuples for collections.

Invariants enforced:
    - (definition_id, period_start) identifies one ObligationRecord; the
      database enforces the same key.
    - GenerationReport is built once at the end of a run and never mutated.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID


# =============================================================================
# Enums
# =============================================================================


class Frequency(str, Enum):
    """How often a recurring payment falls due."""

    WEEKLY = "WEEKLY"  # +7 days
    BIWEEKLY = "BIWEEKLY"  # +14 days
    MONTHLY = "MONTHLY"  # +1 calendar month, clamped to month end
    QUARTERLY = "QUARTERLY"  # +3 calendar months
    YEARLY = "YEARLY"  # +1 year (Feb 29 -> Feb 28)


class PeriodOutcome(str, Enum):
    """What the scheduler did with one due period."""

    GENERATED = "generated"
    SKIPPED = "skipped"  # Already generated (by this or a concurrent run)
    FAILED = "failed"


# =============================================================================
# Definition / obligation DTOs
# =============================================================================


@dataclass(frozen=True)
class RecurringDefinition:
    """Immutable snapshot of a recurring payment definition.

    ``account_id`` None means "charge the default account for the currency".
    """

    definition_id: UUID
    operator_id: UUID
    amount: Decimal
    currency: str
    frequency: Frequency
    start_date: date
    end_date: date | None = None
    description: str = ""
    is_active: bool = True
    account_id: UUID | None = None
    notes: str | None = None
    invoice_number: str | None = None
    reference: str | None = None


@dataclass(frozen=True)
class ObligationRecord:
    """One materialized period of a recurring definition."""

    obligation_id: UUID
    definition_id: UUID
    period_start: date
    amount: Decimal
    currency: str
    movement_id: UUID | None = None


# =============================================================================
# Run report DTOs
# =============================================================================


@dataclass(frozen=True)
class GenerationError:
    """A definition that could not be processed in this run."""

    definition_id: UUID
    period_start: date | None
    error_code: str
    message: str


@dataclass(frozen=True)
class GenerationReport:
    """Outcome of one scheduler run.

    Partial success is normal: ``errors`` lists the definitions that failed
    while every other definition was still processed.
    """

    run_id: UUID
    run_date: date
    generated_count: int
    skipped_count: int
    errors: tuple[GenerationError, ...] = ()
    definitions_processed: int = 0
    definitions_total: int = 0
    budget_exhausted: bool = False
    duration_ms: int = 0

    @property
    def error_count(self) -> int:
        return len(self.errors)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)
