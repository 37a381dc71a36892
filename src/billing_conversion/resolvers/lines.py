"""Invoice and credit note lines.

A line is priced either per unit or as a whole. Whole-priced lines (tiered
prices, prorations and any line without a quantity) become a single unit
priced at the line total.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

import structlog

from ..international.currency import divide_amount, from_currency, to_decimal
from ..international.regimes import RegimeCatalog
from ..models import source
from ..models.document import Item, Line, LineDiscount, Period
from ..models.regime import RegimeDef
from .party import extension_map
from .tax import percent_from_float, resolve_tax_set
from ..utils.dates import date_from_ts

logger = structlog.get_logger(__name__)

TIERED_SCHEME = "tiered"

META_DATE_FROM = "date-from"
META_DATE_TO = "date-to"


@dataclass(frozen=True)
class LineContext:
    """Everything a line needs from its document."""

    currency: str
    regime: RegimeDef
    catalog: RegimeCatalog
    issue_date: date
    item_extension_prefix: str = "bill-item-"
    line_tax_extension_prefix: str = "bill-line-vat-"


def is_whole_priced(quantity: int | None, billing_scheme: str | None = None, proration: bool = False) -> bool:
    return not quantity or billing_scheme == TIERED_SCHEME or proration


def resolve_quantity_and_price(
    amount: int,
    quantity: int | None,
    unit_amount: int | None,
    currency: str,
    *,
    billing_scheme: str | None = None,
    proration: bool = False,
    line_id: str | None = None,
) -> tuple[Decimal, Decimal]:
    """Return the (quantity, unit price) pair for a line.

    When the unit amount is zero but a quantity is present the price is the
    total divided by the quantity. Under inclusive taxation this can differ
    from the platform's true pre-tax unit price.
    """
    if is_whole_priced(quantity, billing_scheme, proration):
        return Decimal(1), to_decimal(amount, currency)

    if unit_amount:
        return Decimal(quantity), to_decimal(unit_amount, currency)

    price = divide_amount(to_decimal(amount, currency), quantity)
    logger.debug("line_unit_price_derived", line_id=line_id, amount=amount, quantity=quantity, price=str(price))
    return Decimal(quantity), price


def new_period(period: source.Period | None) -> Period | None:
    if period is None:
        return None
    start, end = date_from_ts(period.start), date_from_ts(period.end)
    if start is None or end is None:
        return None
    return Period(start=start, end=end)


def new_discount(da: source.DiscountAmount, currency: str) -> LineDiscount | None:
    """Prefer the computed amount; fall back to the coupon terms when it is missing."""
    discount = da.discount if isinstance(da.discount, source.Discount) else None
    coupon = discount.coupon if discount is not None else None
    reason = coupon.name if coupon is not None and coupon.name else None

    if da.amount is not None:
        return LineDiscount(amount=to_decimal(da.amount, currency), reason=reason)

    if coupon is None or not coupon.valid:
        return None
    if coupon.percent_off:
        return LineDiscount(percent=percent_from_float(coupon.percent_off), reason=reason)
    if coupon.amount_off:
        return LineDiscount(amount=to_decimal(coupon.amount_off, coupon.currency or currency), reason=reason)
    return None


def new_discounts(discount_amounts: list[source.DiscountAmount], currency: str) -> list[LineDiscount] | None:
    discounts = [d for d in (new_discount(da, currency) for da in discount_amounts) if d is not None]
    return discounts or None


def item_name(line: source.InvoiceLineItem) -> str:
    if line.description:
        return line.description
    if line.price is not None and isinstance(line.price.product, source.Product):
        return line.price.product.name
    return ""


def _item_meta(period: Period | None) -> dict[str, str] | None:
    if period is None:
        return None
    return {META_DATE_FROM: period.start.isoformat(), META_DATE_TO: period.end.isoformat()}


def from_invoice_line(i: int, line: source.InvoiceLineItem, ctx: LineContext) -> Line:
    price = line.price
    quantity, unit_price = resolve_quantity_and_price(
        line.amount,
        line.quantity,
        price.unit_amount if price is not None else None,
        ctx.currency,
        billing_scheme=price.billing_scheme if price is not None else None,
        proration=line.proration,
        line_id=line.id,
    )
    period = new_period(line.period)
    item = Item(
        name=item_name(line),
        currency=from_currency(line.currency or ctx.currency),
        price=unit_price,
        ext=extension_map(line.metadata, ctx.item_extension_prefix),
        meta=_item_meta(period),
    )
    return Line(
        i=i,
        quantity=quantity,
        item=item,
        discounts=new_discounts(line.discount_amounts, ctx.currency),
        taxes=resolve_tax_set(
            line.tax_amounts, ctx.regime, ctx.catalog, ctx.issue_date,
            ext=extension_map(line.metadata, ctx.line_tax_extension_prefix),
        ),
        period=period,
    )


def from_credit_note_line(i: int, line: source.CreditNoteLineItem, ctx: LineContext) -> Line:
    quantity, unit_price = resolve_quantity_and_price(
        line.amount, line.quantity, line.unit_amount, ctx.currency, line_id=line.id,
    )
    item = Item(
        name=line.description or "",
        currency=from_currency(ctx.currency),
        price=unit_price,
        ext=extension_map(line.metadata, ctx.item_extension_prefix),
    )
    return Line(
        i=i,
        quantity=quantity,
        item=item,
        discounts=new_discounts(line.discount_amounts, ctx.currency),
        taxes=resolve_tax_set(
            line.tax_amounts, ctx.regime, ctx.catalog, ctx.issue_date,
            ext=extension_map(line.metadata, ctx.line_tax_extension_prefix),
        ),
    )


def from_invoice_lines(lines: list[source.InvoiceLineItem], ctx: LineContext) -> list[Line]:
    return [from_invoice_line(i, line, ctx) for i, line in enumerate(lines, start=1)]


def from_credit_note_lines(lines: list[source.CreditNoteLineItem], ctx: LineContext) -> list[Line]:
    return [from_credit_note_line(i, line, ctx) for i, line in enumerate(lines, start=1)]
