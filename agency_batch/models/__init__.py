"""
agency_batch.models -- ORM models for recurring payment persistence.

Architecture: agency_batch/models. Imports from agency_kernel.db.base only.
"""

from agency_batch.models.recurring import (
    GeneratedObligationModel,
    RecurringPaymentDefinitionModel,
)

__all__ = [
    "GeneratedObligationModel",
    "RecurringPaymentDefinitionModel",
]
