"""
ORM models for recurring payment definitions and their generated periods.

Contract:
    RecurringPaymentDefinitionModel and GeneratedObligationModel persist the
    templates and the materialized periods.  Each has ``to_dto()``; the
    definition also has ``from_dto()``.

Architecture: agency_batch/models.  Imports from agency_kernel.db.base and
    agency_batch.domain only.

Invariants enforced:
    - UNIQUE (definition_id, period_start) on generated_obligations.  This
      constraint, not an in-process lock, is what makes overlapping
      scheduler runs safe.
    - Definitions are deactivated, never deleted.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, Date, ForeignKey, Index, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from agency_kernel.db.base import TrackedBase, UUIDString

from agency_batch.domain.types import Frequency, ObligationRecord, RecurringDefinition


class RecurringPaymentDefinitionModel(TrackedBase):
    """Template for a periodically due payment to an operator."""

    __tablename__ = "recurring_payment_definitions"

    __table_args__ = (
        Index("ix_recurring_definitions_active", "is_active"),
        Index("ix_recurring_definitions_operator", "operator_id"),
    )

    operator_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    frequency: Mapped[str] = mapped_column(String(20), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    description: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    account_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("financial_accounts.id"), nullable=True,
    )
    notes: Mapped[str | None] = mapped_column(String(4000), nullable=True)
    invoice_number: Mapped[str | None] = mapped_column(String(100), nullable=True)
    reference: Mapped[str | None] = mapped_column(String(200), nullable=True)

    def to_dto(self) -> RecurringDefinition:
        return RecurringDefinition(
            definition_id=self.id,
            operator_id=self.operator_id,
            amount=self.amount,
            currency=self.currency,
            frequency=Frequency(self.frequency),
            start_date=self.start_date,
            end_date=self.end_date,
            description=self.description,
            is_active=self.is_active,
            account_id=self.account_id,
            notes=self.notes,
            invoice_number=self.invoice_number,
            reference=self.reference,
        )

    @classmethod
    def from_dto(
        cls, dto: RecurringDefinition, created_by_id: UUID,
    ) -> RecurringPaymentDefinitionModel:
        return cls(
            id=dto.definition_id,
            operator_id=dto.operator_id,
            amount=dto.amount,
            currency=dto.currency,
            frequency=dto.frequency.value,
            start_date=dto.start_date,
            end_date=dto.end_date,
            description=dto.description,
            is_active=dto.is_active,
            account_id=dto.account_id,
            notes=dto.notes,
            invoice_number=dto.invoice_number,
            reference=dto.reference,
            created_by_id=created_by_id,
            updated_by_id=None,
        )


class GeneratedObligationModel(TrackedBase):
    """One materialized period of a definition, linked to its ledger movement."""

    __tablename__ = "generated_obligations"

    __table_args__ = (
        UniqueConstraint(
            "definition_id", "period_start", name="uq_obligation_definition_period",
        ),
        Index("ix_generated_obligations_period", "period_start"),
    )

    definition_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("recurring_payment_definitions.id"),
        nullable=False,
    )
    period_start: Mapped[date] = mapped_column(Date, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    movement_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("ledger_movements.id"), nullable=True,
    )

    def to_dto(self) -> ObligationRecord:
        return ObligationRecord(
            obligation_id=self.id,
            definition_id=self.definition_id,
            period_start=self.period_start,
            amount=self.amount,
            currency=self.currency,
            movement_id=self.movement_id,
        )
