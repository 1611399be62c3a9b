"""
agency_batch -- Recurring provider payments and the daily generation run.

Turns recurring payment definitions into one ledger movement per due
period, exactly once, no matter how many times the daily run is triggered.

Architecture:
    agency_batch/ is a top-level package.  It imports from agency_kernel;
    nothing in agency_kernel imports from agency_batch.

Invariants:
    - UNIQUE (definition, period_start) enforced by the database
    - SAVEPOINT per period (one failure rolls back only that period)
    - Clock injection (no datetime.now() calls)
    - Period arithmetic is pure
    - Wall-clock budget per run; unfinished definitions wait for the next run
"""
