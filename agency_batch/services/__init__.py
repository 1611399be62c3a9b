"""agency_batch.services -- scheduler and definition management."""

from agency_batch.services.definition_service import RecurringDefinitionService
from agency_batch.services.scheduler import RecurringObligationScheduler

__all__ = [
    "RecurringDefinitionService",
    "RecurringObligationScheduler",
]
