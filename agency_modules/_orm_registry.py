"""
ORM registry (``agency_modules._orm_registry``).

Imports every package that declares SQLAlchemy models so that
``Base.metadata`` holds the complete schema before ``create_all()`` runs.
``agency_kernel.db.engine.create_tables()``, scripts and the test
conftest all go through ``import_all_orm_models()``.
"""


def import_all_orm_models() -> None:
    """Import kernel, batch and module ORM models.  Idempotent."""
    # Kernel tables first; batch tables reference accounts and movements.
    import agency_kernel.models  # noqa: F401
    import agency_batch.models  # noqa: F401
    import agency_modules.tax.orm  # noqa: F401
