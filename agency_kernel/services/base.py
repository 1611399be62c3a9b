"""
BaseService -- abstract base for all write-side services.

Responsibility:
    Common constructor and session contract.  Services receive a SQLAlchemy
    ``Session`` and persist with ``session.flush()``, never
    ``session.commit()``.

Invariants enforced:
    - The caller (session_scope(), the cron trigger, a test) owns commit and
      rollback, so a multi-step operation such as a transfer or a scheduler
      run is atomic from the caller's point of view.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from agency_kernel.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseService(ABC, Generic[ModelType]):
    """
    Abstract base class for services.

    Non-goals:
        - Does NOT manage transaction lifecycle (commit/rollback).
        - Does NOT provide read-only queries; those live in selectors/.
    """

    def __init__(self, session: Session):
        self.session = session
