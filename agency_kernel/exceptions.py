"""
Typed exception hierarchy for the agency ledger.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers (the HTTP layer, the cron trigger, the scheduler report) must be able
to react to a failure without parsing its message. Every exception here:
  1. Has its own class (catch by type, not message)
  2. Carries a CODE class attribute (machine-readable, API-safe)
  3. Stores the values that caused it as attributes (not only in the message)

Example:
    try:
        ledger.record(account_id, MovementKind.EXPENSE, amount, "USD", at, actor)
    except ExchangeRateNotFoundError as e:
        # Tell the administrator which rate to add before retrying
        respond(code=e.code, currency=e.from_currency, date=e.as_of)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    AgencyLedgerError (base)
    |
    +-- AccountError
    |   +-- AccountNotFoundError
    |   +-- AccountInactiveError
    |   +-- AccountReferencedError
    |   +-- InsufficientBalanceError
    |   +-- SameAccountTransferError
    |   +-- DefaultAccountNotFoundError
    |
    +-- MovementError
    |   +-- InvalidAmountError
    |   +-- InvalidMovementKindError
    |   +-- MovementNotFoundError
    |
    +-- CurrencyError
    |   +-- InvalidCurrencyError
    |   +-- CurrencyMismatchError
    |   +-- ExchangeRateNotFoundError
    |
    +-- ExchangeRateError
    |   +-- InvalidExchangeRateError
    |   +-- InvalidPeriodError
    |
    +-- RecurringError
    |   +-- DefinitionNotFoundError
    |   +-- InvalidDefinitionError
    |
    +-- ImmutabilityError
    |   +-- ImmutabilityViolationError
    |
    +-- QueryError
    |   +-- InvalidDateRangeError
    |
    +-- CronError
        +-- CronUnauthorizedError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Account         | ACCOUNT_NOT_FOUND           | Account ID doesn't exist
                | ACCOUNT_INACTIVE            | Account is deactivated
                | ACCOUNT_REFERENCED          | Delete/currency change with movements
                | INSUFFICIENT_BALANCE        | Outflow larger than available balance
                | SAME_ACCOUNT_TRANSFER       | Transfer source equals destination
                | DEFAULT_ACCOUNT_NOT_FOUND   | No active account to charge
----------------|-----------------------------|-----------------------------------------
Movement        | INVALID_AMOUNT              | Amount not finite or not > 0
                | INVALID_MOVEMENT_KIND       | Kind outside the closed set
                | MOVEMENT_NOT_FOUND          | Movement ID doesn't exist
----------------|-----------------------------|-----------------------------------------
Currency        | INVALID_CURRENCY            | Not a 3-letter currency code
                | CURRENCY_MISMATCH           | Movement currency incompatible
                | EXCHANGE_RATE_NOT_FOUND     | No rate on or before the date
----------------|-----------------------------|-----------------------------------------
Exchange Rate   | INVALID_EXCHANGE_RATE       | Rate is zero/negative/invalid
                | INVALID_PERIOD              | Month outside 1..12
----------------|-----------------------------|-----------------------------------------
Recurring       | DEFINITION_NOT_FOUND        | Definition ID doesn't exist
                | INVALID_DEFINITION          | Definition fields inconsistent
----------------|-----------------------------|-----------------------------------------
Immutability    | IMMUTABILITY_VIOLATION      | Update/delete of a ledger movement
----------------|-----------------------------|-----------------------------------------
Query           | INVALID_DATE_RANGE          | date_from after date_to
----------------|-----------------------------|-----------------------------------------
Cron            | CRON_UNAUTHORIZED           | Missing or wrong shared secret

Conflicts on (definition, period) are NOT errors: the scheduler counts them
as skipped. Partial scheduler failures are reported, not raised.
"""


class AgencyLedgerError(Exception):
    """
    Base exception for all agency ledger errors.

    All subclasses must define a `code` class attribute.
    """

    code: str = "AGENCY_LEDGER_ERROR"


# Account-related exceptions


class AccountError(AgencyLedgerError):
    """Base exception for account-related errors."""

    code: str = "ACCOUNT_ERROR"


class AccountNotFoundError(AccountError):
    """Account with given ID was not found."""

    code: str = "ACCOUNT_NOT_FOUND"

    def __init__(self, account_id: str):
        self.account_id = account_id
        super().__init__(f"Account not found: {account_id}")


class AccountInactiveError(AccountError):
    """Attempted to post a movement to a deactivated account."""

    code: str = "ACCOUNT_INACTIVE"

    def __init__(self, account_id: str):
        self.account_id = account_id
        super().__init__(f"Account is inactive: {account_id}")


class AccountReferencedError(AccountError):
    """Account has movements and cannot be deleted or re-denominated."""

    code: str = "ACCOUNT_REFERENCED"

    def __init__(self, account_id: str, reason: str = "referenced by ledger movements"):
        self.account_id = account_id
        self.reason = reason
        super().__init__(f"Account {account_id} is {reason}")


class InsufficientBalanceError(AccountError):
    """Outflow exceeds the account's available balance."""

    code: str = "INSUFFICIENT_BALANCE"

    def __init__(self, account_id: str, available: str, required: str, currency: str):
        self.account_id = account_id
        self.available = available
        self.required = required
        self.currency = currency
        super().__init__(
            f"Insufficient balance in account {account_id}: "
            f"available {available} {currency}, required {required} {currency}"
        )


class SameAccountTransferError(AccountError):
    """Transfer source and destination are the same account."""

    code: str = "SAME_ACCOUNT_TRANSFER"

    def __init__(self, account_id: str):
        self.account_id = account_id
        super().__init__(f"Cannot transfer from account {account_id} to itself")


class DefaultAccountNotFoundError(AccountError):
    """No active account exists to charge a payment in the given currency."""

    code: str = "DEFAULT_ACCOUNT_NOT_FOUND"

    def __init__(self, currency: str, kinds: tuple[str, ...] = ()):
        self.currency = currency
        self.kinds = kinds
        detail = f" among kinds {', '.join(kinds)}" if kinds else ""
        super().__init__(f"No active {currency} account found{detail}")


# Movement-related exceptions


class MovementError(AgencyLedgerError):
    """Base exception for ledger movement errors."""

    code: str = "MOVEMENT_ERROR"


class InvalidAmountError(MovementError):
    """Amount is not a finite, strictly positive decimal."""

    code: str = "INVALID_AMOUNT"

    def __init__(self, amount: str, reason: str):
        self.amount = amount
        self.reason = reason
        super().__init__(f"Invalid amount {amount}: {reason}")


class InvalidMovementKindError(MovementError):
    """Movement kind is not one of the supported kinds."""

    code: str = "INVALID_MOVEMENT_KIND"

    def __init__(self, kind: str):
        self.kind = kind
        super().__init__(f"Invalid movement kind: {kind}")


class MovementNotFoundError(MovementError):
    """Movement with given ID was not found."""

    code: str = "MOVEMENT_NOT_FOUND"

    def __init__(self, movement_id: str):
        self.movement_id = movement_id
        super().__init__(f"Ledger movement not found: {movement_id}")


# Currency-related exceptions


class CurrencyError(AgencyLedgerError):
    """Base exception for currency-related errors."""

    code: str = "CURRENCY_ERROR"


class InvalidCurrencyError(CurrencyError):
    """Currency code is not a 3-letter alphabetic code."""

    code: str = "INVALID_CURRENCY"

    def __init__(self, currency: str):
        self.currency = currency
        super().__init__(f"Invalid currency code: '{currency}'")


class CurrencyMismatchError(CurrencyError):
    """Movement currency cannot be posted to the account's currency."""

    code: str = "CURRENCY_MISMATCH"

    def __init__(self, currency1: str, currency2: str, account_id: str | None = None):
        self.currency1 = currency1
        self.currency2 = currency2
        self.account_id = account_id
        where = f" on account {account_id}" if account_id else ""
        super().__init__(f"Currency mismatch{where}: {currency1} vs {currency2}")


class ExchangeRateNotFoundError(CurrencyError):
    """
    No exchange rate applies on or before the requested date.

    When raised while recording a movement, account_id names the account
    whose write was refused so an administrator can add the rate and retry.
    """

    code: str = "EXCHANGE_RATE_NOT_FOUND"

    def __init__(
        self,
        from_currency: str,
        to_currency: str,
        as_of: str,
        account_id: str | None = None,
    ):
        self.from_currency = from_currency
        self.to_currency = to_currency
        self.as_of = as_of
        self.account_id = account_id
        where = f" (movement on account {account_id})" if account_id else ""
        super().__init__(
            f"No exchange rate found for {from_currency}/{to_currency} "
            f"as of {as_of}{where}"
        )


# Exchange rate administration exceptions


class ExchangeRateError(AgencyLedgerError):
    """Base exception for exchange rate administration errors."""

    code: str = "EXCHANGE_RATE_ERROR"


class InvalidExchangeRateError(ExchangeRateError):
    """Exchange rate value is zero, negative or not a number."""

    code: str = "INVALID_EXCHANGE_RATE"

    def __init__(self, rate_value: str, reason: str):
        self.rate_value = rate_value
        self.reason = reason
        super().__init__(f"Invalid exchange rate {rate_value}: {reason}")


class InvalidPeriodError(ExchangeRateError):
    """Year/month pair does not name a calendar month."""

    code: str = "INVALID_PERIOD"

    def __init__(self, year: int, month: int):
        self.year = year
        self.month = month
        super().__init__(f"Invalid period {year}-{month}: month must be 1..12")


# Recurring payment exceptions


class RecurringError(AgencyLedgerError):
    """Base exception for recurring payment definitions."""

    code: str = "RECURRING_ERROR"


class DefinitionNotFoundError(RecurringError):
    """Recurring payment definition with given ID was not found."""

    code: str = "DEFINITION_NOT_FOUND"

    def __init__(self, definition_id: str):
        self.definition_id = definition_id
        super().__init__(f"Recurring payment definition not found: {definition_id}")


class InvalidDefinitionError(RecurringError):
    """Definition fields are inconsistent (dates, amount, frequency)."""

    code: str = "INVALID_DEFINITION"

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid recurring definition ({field}): {reason}")


# Immutability exceptions


class ImmutabilityError(AgencyLedgerError):
    """Base exception for immutability errors."""

    code: str = "IMMUTABILITY_ERROR"


class ImmutabilityViolationError(ImmutabilityError):
    """
    Attempted to modify or delete an immutable record.

    Ledger movements are append-only; corrections are new movements.
    """

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Immutability violation on {entity_type} {entity_id}: {reason}"
        )


# Query exceptions


class QueryError(AgencyLedgerError):
    """Base exception for read-side query errors."""

    code: str = "QUERY_ERROR"


class InvalidDateRangeError(QueryError):
    """Start of a date range falls after its end."""

    code: str = "INVALID_DATE_RANGE"

    def __init__(self, date_from: str, date_to: str):
        self.date_from = date_from
        self.date_to = date_to
        super().__init__(f"Invalid date range: {date_from} is after {date_to}")


# Cron trigger exceptions


class CronError(AgencyLedgerError):
    """Base exception for the scheduled trigger."""

    code: str = "CRON_ERROR"


class CronUnauthorizedError(CronError):
    """Trigger request did not present the configured shared secret."""

    code: str = "CRON_UNAUTHORIZED"

    def __init__(self, reason: str = "invalid or missing bearer secret"):
        self.reason = reason
        super().__init__(f"Cron trigger unauthorized: {reason}")
