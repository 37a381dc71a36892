"""Conversion between platform minor-unit integers and decimal amounts."""
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

# https://docs.stripe.com/currencies#zero-decimal
ZERO_DECIMAL_CURRENCIES: frozenset[str] = frozenset({
    "BIF", "CLF", "DJF", "GNF", "JPY", "KMF", "KRW", "MGA",
    "PYG", "RWF", "VND", "VUV", "XAF", "XOF", "XPF",
})

DEFAULT_SCALE = 2


def from_currency(code: str | None) -> str:
    """Normalise a platform currency code ("eur") to ISO form ("EUR")."""
    return (code or "").strip().upper()


def currency_scale(currency: str) -> int:
    """Number of fractional digits used for amounts in *currency*."""
    return 0 if from_currency(currency) in ZERO_DECIMAL_CURRENCIES else DEFAULT_SCALE


def to_decimal(minor_units: int, currency: str) -> Decimal:
    """Convert an integer minor-unit amount into a decimal at the currency's scale.

    Exact: -11000 EUR -> Decimal("-110.00"), 11000 JPY -> Decimal("11000").
    """
    return Decimal(int(minor_units)).scaleb(-currency_scale(currency))


def rescale(amount: Decimal, scale: int) -> Decimal:
    """Round *amount* to *scale* fractional digits, half away from zero."""
    return amount.quantize(Decimal(1).scaleb(-scale), rounding=ROUND_HALF_UP)


def to_minor_units(amount: Decimal, currency: str) -> int:
    """Convert a decimal amount back into integer minor units.

    Values with more fractional digits than the currency allows are rounded,
    never truncated: 123.4567 EUR -> 12346.
    """
    scale = currency_scale(currency)
    return int(rescale(amount, scale).scaleb(scale))


def scale_of(amount: Decimal) -> int:
    exponent = amount.as_tuple().exponent
    return -exponent if isinstance(exponent, int) and exponent < 0 else 0


def divide_amount(amount: Decimal, quantity: int | Decimal) -> Decimal:
    """Divide a total by a quantity keeping at least the dividend's scale."""
    return rescale(amount / Decimal(quantity), scale_of(amount))
