"""
AccountSelector -- read-only access to financial accounts.

Includes the default-account lookup used when a payment does not name the
account to charge: the oldest active account of the currency, preferring
kinds in the order given.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from uuid import UUID

from sqlalchemy import select

from agency_kernel.domain.types import AccountInfo, AccountKind
from agency_kernel.exceptions import AccountNotFoundError, DefaultAccountNotFoundError
from agency_kernel.models.account import FinancialAccount
from agency_kernel.selectors.base import BaseSelector


def as_uuid(value) -> UUID:
    return value if isinstance(value, UUID) else UUID(str(value))


class AccountSelector(BaseSelector[FinancialAccount]):
    """Account lookups.  Returns AccountInfo DTOs."""

    def get(self, account_id) -> AccountInfo:
        """
        Raises:
            AccountNotFoundError: Unknown id.
        """
        row = self.session.get(FinancialAccount, as_uuid(account_id))
        if row is None:
            raise AccountNotFoundError(str(account_id))
        return row.to_dto()

    def get_many(self, account_ids: Iterable) -> dict[UUID, AccountInfo]:
        """
        Load several accounts at once, failing on the first unknown id.

        Raises:
            AccountNotFoundError: Any id does not exist.
        """
        ids = list(dict.fromkeys(as_uuid(a) for a in account_ids))
        if not ids:
            return {}
        rows = self.session.scalars(
            select(FinancialAccount).where(FinancialAccount.id.in_(ids))
        ).all()
        found = {row.id: row.to_dto() for row in rows}
        for account_id in ids:
            if account_id not in found:
                raise AccountNotFoundError(str(account_id))
        return {account_id: found[account_id] for account_id in ids}

    def list_accounts(
        self,
        active_only: bool = True,
        currency: str | None = None,
        agency_id: UUID | None = None,
    ) -> list[AccountInfo]:
        """Accounts ordered by creation, oldest first.

        An agency sees its own accounts plus the global (agency-less) ones.
        """
        stmt = select(FinancialAccount)
        if active_only:
            stmt = stmt.where(FinancialAccount.is_active.is_(True))
        if currency is not None:
            stmt = stmt.where(FinancialAccount.currency == currency)
        if agency_id is not None:
            stmt = stmt.where(
                (FinancialAccount.agency_id == agency_id)
                | FinancialAccount.agency_id.is_(None)
            )
        stmt = stmt.order_by(FinancialAccount.created_at, FinancialAccount.name)
        return [row.to_dto() for row in self.session.scalars(stmt)]

    def default_account(
        self,
        currency: str,
        kinds: Sequence[AccountKind | str],
    ) -> AccountInfo:
        """
        Oldest active account in ``currency`` of the first kind that has one.

        Raises:
            DefaultAccountNotFoundError: No active account of any listed kind.
        """
        kind_values = tuple(AccountKind(k).value for k in kinds)
        for kind in kind_values:
            row = self.session.scalars(
                select(FinancialAccount)
                .where(
                    FinancialAccount.kind == kind,
                    FinancialAccount.currency == currency,
                    FinancialAccount.is_active.is_(True),
                )
                .order_by(FinancialAccount.created_at, FinancialAccount.name)
                .limit(1)
            ).first()
            if row is not None:
                return row.to_dto()
        raise DefaultAccountNotFoundError(currency, kind_values)
