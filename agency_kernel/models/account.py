"""
Module: agency_kernel.models.account
Responsibility: ORM persistence for financial accounts -- the cash boxes,
    bank accounts and wallets every ledger movement is posted against.
Architecture position: Kernel > Models.  May import from db/ and domain/types.

Invariants enforced:
    - currency is fixed for the account's lifetime once movements exist
      (ORM listener in db/immutability.py).
    - Accounts with movements are never deleted; they are deactivated
      (is_active = False) instead.

Failure modes:
    - AccountNotFoundError when a movement references a missing account.
    - AccountInactiveError when a movement targets an inactive account.
    - AccountReferencedError on delete or currency change with movements.
"""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from agency_kernel.db.base import TrackedBase, UUIDString
from agency_kernel.domain.types import AccountInfo, AccountKind


class FinancialAccount(TrackedBase):
    """
    One cash/bank/wallet holding denominated in a single currency.

    Guarantees:
        - kind is one of AccountKind.
        - initial_balance is signed (an overdrawn opening balance is allowed).
        - agency_id None means the account is shared by all agencies.
    """

    __tablename__ = "financial_accounts"
    __table_args__ = (
        Index("idx_financial_account_kind_currency", "kind", "currency"),
        Index("idx_financial_account_active", "is_active"),
        Index("idx_financial_account_agency", "agency_id"),
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    agency_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    kind: Mapped[AccountKind] = mapped_column(String(30), nullable=False)

    currency: Mapped[str] = mapped_column(String(3), nullable=False)

    initial_balance: Mapped[Decimal] = mapped_column(
        Numeric(38, 9),
        nullable=False,
        default=Decimal("0"),
    )

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def __repr__(self) -> str:
        return f"<FinancialAccount {self.name} ({self.kind} {self.currency})>"

    def to_dto(self) -> AccountInfo:
        return AccountInfo(
            account_id=self.id,
            name=self.name,
            kind=AccountKind(self.kind),
            currency=self.currency,
            initial_balance=self.initial_balance,
            is_active=self.is_active,
            agency_id=self.agency_id,
            created_at=self.created_at,
        )
