"""
agency_kernel.domain.types -- Enums and frozen DTOs for the ledger core.

ZERO I/O.  Services and selectors return these instead of ORM objects so
callers never hold a live session reference.

Invariants enforced:
    - Movement amounts are unsigned magnitudes; the sign of a movement's
      effect on balance comes only from MovementKind.sign.
    - All DTOs are frozen dataclasses with tuples for collections.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID


# =============================================================================
# Enums
# =============================================================================


class AccountKind(str, Enum):
    """Closed set of cash/bank/wallet holdings."""

    CASH_ARS = "CASH_ARS"
    CASH_USD = "CASH_USD"
    SAVINGS_ARS = "SAVINGS_ARS"
    SAVINGS_USD = "SAVINGS_USD"
    CHECKING_ARS = "CHECKING_ARS"
    CHECKING_USD = "CHECKING_USD"
    DIGITAL_WALLET = "DIGITAL_WALLET"  # Mercado Pago and similar


class MovementKind(str, Enum):
    """Closed set of ledger movement kinds, each with a fixed signed effect."""

    INCOME = "INCOME"
    EXPENSE = "EXPENSE"
    COMMISSION = "COMMISSION"
    OPERATOR_PAYMENT = "OPERATOR_PAYMENT"
    FX_GAIN = "FX_GAIN"
    FX_LOSS = "FX_LOSS"

    @property
    def sign(self) -> int:
        """+1 when the kind increases the balance, -1 when it decreases it."""
        return 1 if self in _INFLOW_KINDS else -1

    @property
    def offsetting_kind(self) -> MovementKind:
        """Kind used to reverse a movement of this kind."""
        if self is MovementKind.FX_GAIN:
            return MovementKind.FX_LOSS
        if self is MovementKind.FX_LOSS:
            return MovementKind.FX_GAIN
        if self is MovementKind.INCOME:
            return MovementKind.EXPENSE
        return MovementKind.INCOME

    def signed(self, amount: Decimal) -> Decimal:
        return amount if self.sign > 0 else -amount


_INFLOW_KINDS = frozenset({MovementKind.INCOME, MovementKind.FX_GAIN})


class PaymentMethod(str, Enum):
    """How the money moved."""

    CASH = "CASH"
    BANK = "BANK"
    MP = "MP"
    USD = "USD"
    OTHER = "OTHER"


# =============================================================================
# Account DTOs
# =============================================================================


@dataclass(frozen=True)
class AccountInfo:
    """Immutable snapshot of a financial account."""

    account_id: UUID
    name: str
    kind: AccountKind
    currency: str
    initial_balance: Decimal
    is_active: bool
    agency_id: UUID | None = None
    created_at: datetime | None = None


# =============================================================================
# Movement DTOs
# =============================================================================


@dataclass(frozen=True)
class MovementRecord:
    """Immutable snapshot of a posted ledger movement.

    ``amount_reporting`` is the reporting-currency snapshot taken at write
    time; ``exchange_rate`` is None when no conversion was needed.
    """

    movement_id: UUID
    account_id: UUID
    kind: MovementKind
    currency: str
    amount_original: Decimal
    amount_reporting: Decimal
    exchange_rate: Decimal | None
    occurred_at: datetime
    occurred_on: date
    concept: str = ""
    method: PaymentMethod = PaymentMethod.OTHER
    operation_id: UUID | None = None
    lead_id: UUID | None = None
    operator_id: UUID | None = None
    payment_reference: str | None = None
    notes: str | None = None
    created_by_id: UUID | None = None

    @property
    def signed_amount(self) -> Decimal:
        return self.kind.signed(self.amount_original)


@dataclass(frozen=True)
class TransferResult:
    """Both legs of an account-to-account transfer."""

    outgoing: MovementRecord
    incoming: MovementRecord


@dataclass(frozen=True)
class MovementFilter:
    """Typed filter for listing movements.  None means "any"."""

    date_from: date | None = None
    date_to: date | None = None
    kind: MovementKind | None = None
    currency: str | None = None
    account_id: UUID | None = None
    operator_id: UUID | None = None
    operation_id: UUID | None = None
    lead_id: UUID | None = None


@dataclass(frozen=True)
class MovementPage:
    """One page of movements, newest first."""

    items: tuple[MovementRecord, ...]
    total: int
    limit: int
    offset: int

    @property
    def has_more(self) -> bool:
        return self.offset + len(self.items) < self.total


# =============================================================================
# Balance DTOs
# =============================================================================


@dataclass(frozen=True)
class BalancePoint:
    """Balance at the end of one calendar day."""

    on: date
    balance: Decimal


@dataclass(frozen=True)
class SufficiencyCheck:
    """Result of checking whether an account can cover an outflow."""

    account_id: UUID
    is_sufficient: bool
    current_balance: Decimal
    required: Decimal
    currency: str

    @property
    def shortfall(self) -> Decimal:
        if self.is_sufficient:
            return Decimal("0")
        return self.required - self.current_balance


# =============================================================================
# Exchange rate DTOs
# =============================================================================


@dataclass(frozen=True)
class MonthlyRate:
    """Per-(year, month) override rate."""

    currency: str
    year: int
    month: int
    rate: Decimal


@dataclass(frozen=True)
class DailyRate:
    """Per-date rate."""

    currency: str
    rate_date: date
    rate: Decimal
    source: str = "manual"
