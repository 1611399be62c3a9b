"""
IVA helpers -- pure arithmetic for value-added tax on gross amounts.

Every function is pure: no I/O, no database.

Invariants:
    - All inputs and outputs are ``Decimal``, never ``float``.
    - ``net + iva == total`` exactly after rounding; the rounding remainder
      lands on the tax portion.
"""

from __future__ import annotations

from decimal import Decimal

from agency_kernel.db.types import round_money, to_decimal

DEFAULT_IVA_RATE = Decimal("0.21")


def split_gross_amount(
    total,
    rate=DEFAULT_IVA_RATE,
    decimal_places: int = 2,
) -> tuple[Decimal, Decimal]:
    """
    Split a tax-inclusive amount into (net, iva).

    net = total / (1 + rate), iva = total - net, both to cents.

    Raises:
        ValueError: ``rate`` is negative.
    """
    total = round_money(to_decimal(total), decimal_places)
    rate = to_decimal(rate)
    if rate < 0:
        raise ValueError(f"IVA rate must be >= 0, got {rate}")
    net = round_money(total / (Decimal("1") + rate), decimal_places)
    return net, total - net


def net_payable(sales_tax: Decimal, purchases_tax: Decimal) -> Decimal:
    """Output tax minus input tax.  Negative means a credit balance."""
    return sales_tax - purchases_tax
