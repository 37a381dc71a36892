"""Static fallback exchange rates.

The billing platform does not report exchange rates, so documents whose
currency differs from the regime's get a placeholder rate from this table.
Rates are expected to be corrected downstream.
"""
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from types import MappingProxyType

from .currency import from_currency, scale_of
from ..models.document import ExchangeRate

# Units of each currency per 1 USD.
DEFAULT_RATES = MappingProxyType({
    "USD": Decimal("1"),
    "EUR": Decimal("0.935"),
    "GBP": Decimal("0.788"),
    "BRL": Decimal("5.379"),
    "MXN": Decimal("18.467"),
    "COP": Decimal("4132.934"),
})

RATE_UNKNOWN = Decimal("0")


def cross_rate(from_curr: str, to_curr: str, rates=DEFAULT_RATES) -> Decimal:
    """Return how many units of *to_curr* one unit of *from_curr* buys.

    Returns zero when either currency is missing from the table. The result
    keeps the precision of the more precise of the two table entries.
    """
    from_rate = rates.get(from_currency(from_curr))
    to_rate = rates.get(from_currency(to_curr))
    if from_rate is None or to_rate is None:
        return RATE_UNKNOWN

    scale = max(scale_of(to_rate), scale_of(from_rate))
    exp = Decimal(1).scaleb(-scale)
    to_rate = to_rate.quantize(exp)
    return (to_rate / from_rate).quantize(exp, rounding=ROUND_HALF_UP)


def needs_exchange_rate(document_currency: str, regime_currency: str) -> bool:
    return from_currency(document_currency) != from_currency(regime_currency)


def new_exchange_rates(document_currency: str, regime_currency: str, rates=DEFAULT_RATES) -> list[ExchangeRate] | None:
    """Build the exchange rate annotation for a document, or None if not needed."""
    if not needs_exchange_rate(document_currency, regime_currency):
        return None

    from_curr = from_currency(document_currency)
    to_curr = from_currency(regime_currency)
    return [ExchangeRate(from_=from_curr, to=to_curr, amount=cross_rate(from_curr, to_curr, rates))]
