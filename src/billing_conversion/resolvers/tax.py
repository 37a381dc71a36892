"""Tax classification: source tax records to tax combos.

Ambiguity never raises. A percentage that matches more than one catalog
value, or a record whose category cannot be determined, is resolved by
falling back to the raw percentage or by dropping the combo.
"""
from __future__ import annotations

from datetime import date
from decimal import ROUND_HALF_UP, Decimal

import structlog

from ..international.regimes import RegimeCatalog
from ..models.document import RateKey, Tag, TaxCategory, TaxCombo, TaxInfo
from ..models.regime import RateDef, RateValueDef, RegimeDef
from ..models.source import TaxAmount

logger = structlog.get_logger(__name__)

TAX_TYPE_CATEGORIES: dict[str, str] = {
    "vat": TaxCategory.VAT,
    "sales_tax": TaxCategory.ST,
    "gst": TaxCategory.GST,
}

DISPLAY_NAME_ALIASES: dict[str, str] = {
    "vat": TaxCategory.VAT,
    "iva": TaxCategory.VAT,
    "sales tax": TaxCategory.ST,
    "gst": TaxCategory.GST,
}

REVERSE_CHARGE_REASON = "reverse_charge"
ZERO_RATED_REASONS = frozenset({"zero_rated"})
EXEMPT_REASONS = frozenset({"customer_exempt", "product_exempt", "product_exempt_holiday", "not_subject_to_tax"})

# Catalog percentages are compared at 3-decimal precision of the fraction,
# i.e. one decimal place in percent units.
PERCENT_EXP = Decimal("0.1")


def classify(tax_type: str | None, display_name: str | None = None) -> str:
    """Map a source tax type to a category code.

    Unknown or blank types fall back to the display name: known aliases map to
    their category, anything else is returned verbatim as an opaque code.
    """
    if tax_type and tax_type in TAX_TYPE_CATEGORIES:
        return str(TAX_TYPE_CATEGORIES[tax_type])

    name = (display_name or "").strip()
    alias = DISPLAY_NAME_ALIASES.get(name.lower())
    if alias is not None:
        return str(alias)
    return name


def default_category(regime: RegimeDef) -> str:
    """Category assumed when the platform did not expand the tax rate."""
    if regime.categories:
        return regime.categories[0].code
    return str(TaxCategory.VAT)


def category_of(tax_amount: TaxAmount, regime: RegimeDef) -> str:
    rate = tax_amount.rate
    if rate is None:
        return default_category(regime)
    return classify(rate.tax_type, rate.display_name)


def percent_from_float(value: float) -> Decimal:
    """Turn a platform float percentage into a Decimal with at least one decimal."""
    pct = Decimal(repr(float(value)))
    if pct.as_tuple().exponent > -1:
        pct = pct.quantize(PERCENT_EXP)
    return pct


def percent_for(tax_amount: TaxAmount) -> Decimal | None:
    """Resolve the percentage applied by a tax record.

    Prefers the expanded rate's effective percentage, then its nominal
    percentage, then the ratio of tax to taxable amount.
    """
    rate = tax_amount.rate
    if rate is not None:
        if rate.effective_percentage is not None:
            return percent_from_float(rate.effective_percentage)
        if rate.percentage is not None:
            return percent_from_float(rate.percentage)

    if tax_amount.taxable_amount:
        ratio = Decimal(tax_amount.amount) / Decimal(tax_amount.taxable_amount) * 100
        return ratio.quantize(PERCENT_EXP, rounding=ROUND_HALF_UP)
    return None


def match_catalog_rate(
    percent: Decimal,
    country: str,
    category: str,
    on: date,
    catalog: RegimeCatalog,
) -> tuple[RateDef | None, RateValueDef | None]:
    """Find the single catalog rate whose value on *on* equals *percent*.

    Values with a surcharge are skipped. If more than one value matches the
    lookup is ambiguous and nothing is returned.
    """
    cat_def = catalog.category_def(country, category)
    if cat_def is None:
        return None, None

    wanted = percent.quantize(PERCENT_EXP, rounding=ROUND_HALF_UP)
    if wanted != percent:
        # More precision than any catalog value can express.
        return None, None

    rate: RateDef | None = None
    val: RateValueDef | None = None
    for r in cat_def.rates:
        for v in r.values:
            if v.percent.quantize(PERCENT_EXP, rounding=ROUND_HALF_UP) != wanted:
                continue
            if v.surcharge is not None:
                continue
            if r.value_on(on) is not v:
                continue
            if val is not None:
                logger.debug(
                    "catalog_rate_ambiguous",
                    country=country, category=category, percent=str(percent),
                    rates=[rate.key, r.key],
                )
                return None, None
            rate, val = r, v

    return rate, val


def resolve_combo(
    tax_amount: TaxAmount,
    regime: RegimeDef,
    catalog: RegimeCatalog,
    on: date,
    ext: dict[str, str] | None = None,
) -> TaxCombo | None:
    """Convert one source tax record into a tax combo for the given regime.

    Returns None when the record's category cannot be determined.
    """
    category = category_of(tax_amount, regime)
    reason = tax_amount.taxability_reason

    if reason == REVERSE_CHARGE_REASON:
        return TaxCombo(
            category=category or default_category(regime),
            country=regime.country,
            rate=str(RateKey.REVERSE_CHARGE),
        )

    if not category:
        logger.debug("tax_category_unknown", tax_rate=tax_amount.tax_rate if isinstance(tax_amount.tax_rate, str) else None)
        return None

    ext = ext if category == TaxCategory.VAT and ext else None

    if reason in ZERO_RATED_REASONS:
        return TaxCombo(category=category, country=regime.country, rate=str(RateKey.ZERO), ext=ext)
    if reason in EXEMPT_REASONS:
        return TaxCombo(category=category, country=regime.country, rate=str(RateKey.EXEMPT), ext=ext)

    tc = TaxCombo(category=category, country=regime.country, ext=ext)
    percent = percent_for(tax_amount)
    if percent is None:
        return tc

    rate, val = match_catalog_rate(percent, regime.country, category, on, catalog)
    if val is None:
        tc.percent = percent
        return tc

    tc.rate = rate.key
    if val.ext:
        tc.ext = {**val.ext, **(ext or {})}
    return tc


def resolve_tax_set(
    tax_amounts: list[TaxAmount],
    regime: RegimeDef,
    catalog: RegimeCatalog,
    on: date,
    ext: dict[str, str] | None = None,
) -> list[TaxCombo] | None:
    """Resolve every tax record on a line; None when the line carries no taxes."""
    combos = [
        tc for tc in (resolve_combo(ta, regime, catalog, on, ext) for ta in tax_amounts)
        if tc is not None
    ]
    return combos or None


def tax_info(total_tax_amounts: list[TaxAmount], regime: RegimeDef) -> TaxInfo | None:
    """Invoice-level tax-inclusivity flag.

    One entry: mirrors that entry when it is inclusive. Several entries: VAT
    inclusive when any VAT entry is inclusive. Otherwise absent.
    """
    if not total_tax_amounts:
        return None

    if len(total_tax_amounts) == 1:
        entry = total_tax_amounts[0]
        if not entry.inclusive:
            return None
        category = category_of(entry, regime)
        return TaxInfo(prices_include=category) if category else None

    for entry in total_tax_amounts:
        if entry.inclusive and category_of(entry, regime) == TaxCategory.VAT:
            return TaxInfo(prices_include=str(TaxCategory.VAT))
    return None


def document_tags(
    total_tax_amounts: list[TaxAmount],
    customer_tax_exempt: str | None,
    customer_has_tax_id: bool,
) -> list[str] | None:
    tags: set[str] = set()
    if customer_tax_exempt == "reverse" or any(
        ta.taxability_reason == REVERSE_CHARGE_REASON for ta in total_tax_amounts
    ):
        tags.add(Tag.REVERSE_CHARGE)
    if not customer_has_tax_id:
        tags.add(Tag.SIMPLIFIED)
    return sorted(str(t) for t in tags) or None
