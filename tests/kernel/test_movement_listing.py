"""
MovementSelector.list(): filters and pagination.
"""

from datetime import date, datetime, time, timedelta
from decimal import Decimal
from uuid import uuid4

import pytest

from agency_kernel.domain.calendar import localize
from agency_kernel.domain.types import MovementFilter, MovementKind
from agency_kernel.exceptions import InvalidDateRangeError, MovementNotFoundError
from agency_kernel.selectors.movement_selector import MovementSelector


@pytest.fixture
def movements(session):
    return MovementSelector(session)


@pytest.fixture
def seeded(ledger, ars_account, policy, test_actor_id):
    operator = uuid4()
    records = []
    for day in range(1, 11):
        when = localize(datetime.combine(date(2024, 3, day), time(10, 0)), policy.zone)
        kind = MovementKind.INCOME if day % 2 else MovementKind.OPERATOR_PAYMENT
        records.append(
            ledger.record(
                ars_account.account_id, kind, Decimal(day), "ARS", when, test_actor_id,
                operator_id=operator if kind is MovementKind.OPERATOR_PAYMENT else None,
            )
        )
    return operator, records


class TestMovementListing:

    def test_newest_first_with_total(self, movements, seeded):
        page = movements.list(limit=3)

        assert page.total == 10
        assert [m.occurred_on.day for m in page.items] == [10, 9, 8]
        assert page.has_more is True

    def test_offset_pages_through_everything(self, movements, seeded):
        seen = []
        offset = 0
        while True:
            page = movements.list(limit=4, offset=offset)
            seen.extend(m.movement_id for m in page.items)
            if not page.has_more:
                break
            offset += page.limit

        assert len(seen) == len(set(seen)) == 10

    def test_filters_combine(self, movements, seeded):
        operator, _ = seeded

        page = movements.list(
            MovementFilter(
                date_from=date(2024, 3, 3),
                date_to=date(2024, 3, 8),
                kind=MovementKind.OPERATOR_PAYMENT,
                operator_id=operator,
            )
        )

        assert [m.occurred_on.day for m in page.items] == [8, 6, 4]

    def test_limit_is_clamped(self, movements, seeded):
        assert movements.list(limit=0).limit == 1
        assert movements.list(limit=50_000).limit == 1000

    def test_inverted_range_raises(self, movements):
        with pytest.raises(InvalidDateRangeError):
            movements.list(MovementFilter(date_from=date(2024, 3, 2), date_to=date(2024, 3, 1)))

    def test_get_unknown_movement(self, movements):
        with pytest.raises(MovementNotFoundError):
            movements.get(uuid4())

    def test_empty_result_is_not_an_error(self, movements):
        page = movements.list(MovementFilter(date_from=date(2030, 1, 1)))
        assert page.total == 0
        assert page.items == ()
        assert page.has_more is False
