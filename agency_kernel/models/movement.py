"""
Module: agency_kernel.models.movement
Responsibility: ORM persistence for ledger movements -- the append-only
    record of every inflow and outflow on a financial account.
Architecture position: Kernel > Models.  May import from db/ and domain/types.

Invariants enforced:
    - Append-only: UPDATE and DELETE are rejected by ORM listeners
      (db/immutability.py).  Corrections are new, offsetting movements.
    - amount_original is an unsigned magnitude; MovementKind carries the sign.
    - amount_reporting and exchange_rate are the snapshot taken when the
      movement was written and are never recomputed.
    - occurred_on is the canonical-zone calendar date of occurred_at, so
      day-boundary queries do not depend on the database's time zone.

Audit relevance:
    The movement table is the only source of balances.  Every balance, daily
    series and sufficiency check is a fold over these rows.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Date, ForeignKey, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from agency_kernel.db.base import TrackedBase, UUIDString
from agency_kernel.domain.types import MovementKind, MovementRecord, PaymentMethod


class LedgerMovement(TrackedBase):
    """
    Immutable financial fact posted against exactly one account.

    Guarantees:
        - account_id references an existing financial account.
        - kind is one of MovementKind; currency is a 3-letter code.
        - exchange_rate is None iff currency equals the reporting currency.
    """

    __tablename__ = "ledger_movements"
    __table_args__ = (
        Index("idx_movement_account_occurred_at", "account_id", "occurred_at"),
        Index("idx_movement_account_occurred_on", "account_id", "occurred_on"),
        Index("idx_movement_occurred_on", "occurred_on"),
        Index("idx_movement_operation", "operation_id"),
        Index("idx_movement_operator", "operator_id"),
    )

    account_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("financial_accounts.id"),
        nullable=False,
    )

    kind: Mapped[MovementKind] = mapped_column(String(30), nullable=False)

    currency: Mapped[str] = mapped_column(String(3), nullable=False)

    amount_original: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)

    # Rate applied at write time (foreign -> reporting)
    exchange_rate: Mapped[Decimal | None] = mapped_column(
        Numeric(38, 18),
        nullable=True,
    )

    amount_reporting: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)

    occurred_at: Mapped[datetime] = mapped_column(nullable=False)

    occurred_on: Mapped[date] = mapped_column(Date, nullable=False)

    concept: Mapped[str] = mapped_column(String(500), nullable=False, default="")

    method: Mapped[PaymentMethod] = mapped_column(
        String(10),
        nullable=False,
        default=PaymentMethod.OTHER.value,
    )

    operation_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    lead_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    operator_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    # Receipt number or bank reference
    payment_reference: Mapped[str | None] = mapped_column(String(100), nullable=True)

    notes: Mapped[str | None] = mapped_column(String(4000), nullable=True)

    def __repr__(self) -> str:
        return (
            f"<LedgerMovement {self.kind} {self.amount_original} {self.currency} "
            f"on {self.occurred_on}>"
        )

    @property
    def signed_amount(self) -> Decimal:
        return MovementKind(self.kind).signed(self.amount_original)

    def to_dto(self) -> MovementRecord:
        return MovementRecord(
            movement_id=self.id,
            account_id=self.account_id,
            kind=MovementKind(self.kind),
            currency=self.currency,
            amount_original=self.amount_original,
            amount_reporting=self.amount_reporting,
            exchange_rate=self.exchange_rate,
            occurred_at=self.occurred_at,
            occurred_on=self.occurred_on,
            concept=self.concept,
            method=PaymentMethod(self.method),
            operation_id=self.operation_id,
            lead_id=self.lead_id,
            operator_id=self.operator_id,
            payment_reference=self.payment_reference,
            notes=self.notes,
            created_by_id=self.created_by_id,
        )
