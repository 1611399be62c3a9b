"""Database layer - engine, base classes, types and integrity listeners."""

from agency_kernel.db.base import UUID, Base, TrackedBase, UTCDateTime, UUIDString
from agency_kernel.db.engine import (
    create_tables,
    get_engine,
    get_session,
    init_engine_from_url,
    session_scope,
)
from agency_kernel.db.types import Currency, Money, Rate, round_money

__all__ = [
    "get_engine",
    "get_session",
    "init_engine_from_url",
    "session_scope",
    "create_tables",
    "Base",
    "TrackedBase",
    "UTCDateTime",
    "UUIDString",
    "UUID",
    "Money",
    "Rate",
    "Currency",
    "round_money",
]
