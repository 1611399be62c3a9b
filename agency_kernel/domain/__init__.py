"""
agency_kernel.domain -- Pure types, clock and calendar helpers.

ZERO I/O (SystemClock excepted).
"""

from agency_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from agency_kernel.domain.policy import LedgerPolicy
from agency_kernel.domain.types import (
    AccountInfo,
    AccountKind,
    BalancePoint,
    DailyRate,
    MonthlyRate,
    MovementFilter,
    MovementKind,
    MovementPage,
    MovementRecord,
    PaymentMethod,
    SufficiencyCheck,
    TransferResult,
)

__all__ = [
    "AccountInfo",
    "AccountKind",
    "BalancePoint",
    "Clock",
    "DailyRate",
    "DeterministicClock",
    "LedgerPolicy",
    "MonthlyRate",
    "MovementFilter",
    "MovementKind",
    "MovementPage",
    "MovementRecord",
    "PaymentMethod",
    "SufficiencyCheck",
    "SystemClock",
    "TransferResult",
]
