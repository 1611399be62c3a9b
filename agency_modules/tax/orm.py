"""
IVA ORM persistence models (``agency_modules.tax.orm``).

Inherits ``TrackedBase`` for id and audit columns.  Monetary fields map to
Numeric(38, 9).  Rows are written once by ``IvaService`` and read by
``IvaSelector``; the monthly summary filters on the date index.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Date, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from agency_kernel.db.base import TrackedBase, UUIDString


class IvaSaleModel(TrackedBase):
    """Output tax of one sale."""

    __tablename__ = "iva_sales"

    operation_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    sale_amount_total: Mapped[Decimal] = mapped_column(nullable=False)
    net_amount: Mapped[Decimal] = mapped_column(nullable=False)
    iva_amount: Mapped[Decimal] = mapped_column(nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    sale_date: Mapped[date] = mapped_column(Date, nullable=False)

    __table_args__ = (
        Index("idx_iva_sale_date", "sale_date"),
        Index("idx_iva_sale_operation", "operation_id"),
    )

    def to_dto(self):
        from agency_modules.tax.models import IvaSaleRecord

        return IvaSaleRecord(
            record_id=self.id,
            operation_id=self.operation_id,
            sale_amount_total=self.sale_amount_total,
            net_amount=self.net_amount,
            iva_amount=self.iva_amount,
            currency=self.currency,
            sale_date=self.sale_date,
        )

    def __repr__(self) -> str:
        return f"<IvaSaleModel {self.operation_id} {self.iva_amount} {self.currency}>"


class IvaPurchaseModel(TrackedBase):
    """Input tax of one purchase from an operator."""

    __tablename__ = "iva_purchases"

    operation_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    operator_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    operator_cost_total: Mapped[Decimal] = mapped_column(nullable=False)
    net_amount: Mapped[Decimal] = mapped_column(nullable=False)
    iva_amount: Mapped[Decimal] = mapped_column(nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    purchase_date: Mapped[date] = mapped_column(Date, nullable=False)

    __table_args__ = (
        Index("idx_iva_purchase_date", "purchase_date"),
        Index("idx_iva_purchase_operation", "operation_id"),
    )

    def to_dto(self):
        from agency_modules.tax.models import IvaPurchaseRecord

        return IvaPurchaseRecord(
            record_id=self.id,
            operation_id=self.operation_id,
            operator_id=self.operator_id,
            operator_cost_total=self.operator_cost_total,
            net_amount=self.net_amount,
            iva_amount=self.iva_amount,
            currency=self.currency,
            purchase_date=self.purchase_date,
        )

    def __repr__(self) -> str:
        return f"<IvaPurchaseModel {self.operation_id} {self.iva_amount} {self.currency}>"
