"""
agency_batch.domain -- Pure types and schedule arithmetic for recurring payments.

ZERO I/O.  All types are frozen dataclasses.
"""

from agency_batch.domain.schedule import (
    due_periods,
    iter_period_starts,
    next_due_date,
    period_start,
)
from agency_batch.domain.types import (
    Frequency,
    GenerationError,
    GenerationReport,
    ObligationRecord,
    PeriodOutcome,
    RecurringDefinition,
)

__all__ = [
    "Frequency",
    "GenerationError",
    "GenerationReport",
    "ObligationRecord",
    "PeriodOutcome",
    "RecurringDefinition",
    "due_periods",
    "iter_period_starts",
    "next_due_date",
    "period_start",
]
