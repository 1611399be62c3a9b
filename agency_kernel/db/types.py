"""
Module: agency_kernel.db.types
Responsibility: Annotated column aliases and the money/rate/currency helpers
    that every model and service share.
Architecture position: Kernel > DB.  May be imported by models/, domain/,
    services/ and selectors/.

Invariants enforced:
    - round_money() is the only rounding function used for ledger amounts
      (HALF_UP, 2 places by default: both ARS and USD carry cents).
    - validate_amount() rejects non-finite and non-positive amounts before
      any persistence.
    - No floats: every amount is a Decimal.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Annotated

from sqlalchemy import Numeric, String

from agency_kernel.exceptions import (
    InvalidAmountError,
    InvalidCurrencyError,
    InvalidExchangeRateError,
)

# Monetary amount: 38 digits total, 9 decimal places
Money = Annotated[Decimal, Numeric(38, 9)]

# Exchange rate: 18 decimal places for rate arithmetic
Rate = Annotated[Decimal, Numeric(38, 18)]

# 3-letter currency code (ARS, USD, ...)
Currency = Annotated[str, String(3)]

ShortCode = Annotated[str, String(50)]

LongText = Annotated[str, String(4000)]


MONEY_DECIMAL_PLACES = 2
DEFAULT_ROUNDING = ROUND_HALF_UP


def to_decimal(value) -> Decimal:
    """
    Coerce an int/str/Decimal into a Decimal.

    Floats are converted through str() so that 0.1 stays 0.1.

    Raises:
        InvalidOperation: If the value is not numeric.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def round_money(
    value: Decimal,
    decimal_places: int = MONEY_DECIMAL_PLACES,
    rounding: str = DEFAULT_ROUNDING,
) -> Decimal:
    """
    Round a monetary value to the given number of decimal places.

    Example:
        round_money(Decimal("10.125")) -> Decimal("10.13")
    """
    quantizer = Decimal(10) ** -decimal_places
    return value.quantize(quantizer, rounding=rounding)


def validate_amount(value) -> Decimal:
    """
    Return value as a finite Decimal strictly greater than zero.

    Raises:
        InvalidAmountError: If the value is not numeric, not finite, or <= 0.
    """
    try:
        amount = to_decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidAmountError(str(value), "amount must be a number")
    if not amount.is_finite():
        raise InvalidAmountError(str(value), "amount must be finite")
    if amount <= 0:
        raise InvalidAmountError(
            str(value), "amount must be greater than zero (sign comes from the kind)"
        )
    return amount


def validate_rate(value) -> Decimal:
    """
    Return value as a finite Decimal strictly greater than zero.

    Raises:
        InvalidExchangeRateError: If the rate is missing, not finite, or <= 0.
    """
    if value is None:
        raise InvalidExchangeRateError("None", "exchange rate cannot be null")
    try:
        rate = to_decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidExchangeRateError(str(value), "exchange rate must be a valid number")
    if not rate.is_finite():
        raise InvalidExchangeRateError(str(value), "exchange rate must be finite")
    if rate <= 0:
        raise InvalidExchangeRateError(
            str(value), "exchange rate must be positive (greater than zero)"
        )
    return rate


def validate_currency(code: str) -> str:
    """
    Normalize and validate a 3-letter currency code.

    Returns:
        The upper-cased code.

    Raises:
        InvalidCurrencyError: If the code is not 3 alphabetic characters.
    """
    if not isinstance(code, str):
        raise InvalidCurrencyError(str(code))
    normalized = code.strip().upper()
    if len(normalized) != 3 or not normalized.isalpha():
        raise InvalidCurrencyError(code)
    return normalized
