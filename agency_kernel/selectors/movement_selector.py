"""
MovementSelector -- filtered, paginated listing of ledger movements.

Filters come from a typed MovementFilter; every condition is a bound
parameter, never interpolated text.
"""

from __future__ import annotations

from sqlalchemy import func, select

from agency_kernel.domain.types import MovementFilter, MovementPage, MovementRecord
from agency_kernel.exceptions import InvalidDateRangeError, MovementNotFoundError
from agency_kernel.models.movement import LedgerMovement
from agency_kernel.selectors.account_selector import as_uuid
from agency_kernel.selectors.base import BaseSelector

MAX_PAGE_SIZE = 1000


class MovementSelector(BaseSelector[LedgerMovement]):

    def get(self, movement_id) -> MovementRecord:
        row = self.session.get(LedgerMovement, as_uuid(movement_id))
        if row is None:
            raise MovementNotFoundError(str(movement_id))
        return row.to_dto()

    def list(
        self,
        filters: MovementFilter | None = None,
        limit: int = MAX_PAGE_SIZE,
        offset: int = 0,
    ) -> MovementPage:
        """
        One page of movements matching ``filters``, newest first.

        ``limit`` is clamped to 1..1000 and ``offset`` to >= 0.

        Raises:
            InvalidDateRangeError: date_from is after date_to.
        """
        filters = filters or MovementFilter()
        if (
            filters.date_from is not None
            and filters.date_to is not None
            and filters.date_from > filters.date_to
        ):
            raise InvalidDateRangeError(
                filters.date_from.isoformat(), filters.date_to.isoformat()
            )
        limit = max(1, min(limit, MAX_PAGE_SIZE))
        offset = max(0, offset)

        conditions = []
        if filters.date_from is not None:
            conditions.append(LedgerMovement.occurred_on >= filters.date_from)
        if filters.date_to is not None:
            conditions.append(LedgerMovement.occurred_on <= filters.date_to)
        if filters.kind is not None:
            conditions.append(LedgerMovement.kind == filters.kind.value)
        if filters.currency is not None:
            conditions.append(LedgerMovement.currency == filters.currency)
        if filters.account_id is not None:
            conditions.append(LedgerMovement.account_id == filters.account_id)
        if filters.operator_id is not None:
            conditions.append(LedgerMovement.operator_id == filters.operator_id)
        if filters.operation_id is not None:
            conditions.append(LedgerMovement.operation_id == filters.operation_id)
        if filters.lead_id is not None:
            conditions.append(LedgerMovement.lead_id == filters.lead_id)

        total = self.session.scalar(
            select(func.count()).select_from(LedgerMovement).where(*conditions)
        ) or 0

        rows = self.session.scalars(
            select(LedgerMovement)
            .where(*conditions)
            .order_by(LedgerMovement.occurred_at.desc(), LedgerMovement.id)
            .limit(limit)
            .offset(offset)
        )
        return MovementPage(
            items=tuple(row.to_dto() for row in rows),
            total=total,
            limit=limit,
            offset=offset,
        )
