"""Document assembly: one typed source object in, one canonical document out."""
from __future__ import annotations

import uuid
from uuid import UUID

import structlog

from .config import Settings
from .errors import ConversionError, ErrorKind, missing_field
from .international.currency import from_currency
from .international.exchange_rates import new_exchange_rates
from .international.regimes import DEFAULT_CATALOG, RegimeCatalog
from .models import source
from .models.document import Document, DocumentReference, DocumentType, Party
from .models.regime import RegimeDef
from .resolvers.delivery import new_delivery
from .resolvers.lines import LineContext, from_credit_note_lines, from_invoice_lines
from .resolvers.ordering import new_ordering
from .resolvers.party import new_customer, new_supplier
from .resolvers.payment import new_payment
from .resolvers.tax import document_tags, tax_info
from .utils.dates import date_from_ts

logger = structlog.get_logger(__name__)

SOURCE_NUMBER_META = "source-number"


def document_uuid(namespace: UUID | None, account_name: str | None, source_id: str) -> UUID | None:
    """Name-based identifier over ``<account name>:<source id>``; None without a namespace."""
    if namespace is None or not account_name:
        return None
    return uuid.uuid3(namespace, f"{account_name}:{source_id}")


def resolve_regime(country: str | None, catalog: RegimeCatalog, source_id: str) -> RegimeDef:
    if not country:
        raise missing_field("account_country", source_id)
    regime = catalog.regime_def(country.upper())
    if regime is None:
        raise ConversionError(
            ErrorKind.UNSUPPORTED_REGIME,
            f"no regime definition for {country.upper()}",
            source_id=source_id,
            field="account_country",
            code=country.upper(),
        )
    return regime


def _issue_date(created: int, source_id: str):
    issue_date = date_from_ts(created)
    if issue_date is None:
        raise missing_field("created", source_id)
    return issue_date


def _meta(number: str | None) -> dict[str, str] | None:
    return {SOURCE_NUMBER_META: number} if number else None


def _has_tax_id(party: Party | None) -> bool:
    return party is not None and party.tax_id is not None


def from_invoice(
    invoice: source.Invoice,
    settings: Settings,
    catalog: RegimeCatalog = DEFAULT_CATALOG,
    account: source.Account | None = None,
) -> Document:
    regime = resolve_regime(invoice.account_country, catalog, invoice.id)
    if not invoice.account_name:
        raise missing_field("account_name", invoice.id)

    issue_date = _issue_date(invoice.created, invoice.id)
    currency = from_currency(invoice.currency)

    ctx = LineContext(
        currency=currency,
        regime=regime,
        catalog=catalog,
        issue_date=issue_date,
        item_extension_prefix=settings.item_extension_prefix,
        line_tax_extension_prefix=settings.line_tax_extension_prefix,
    )
    lines = from_invoice_lines(invoice.lines.data, ctx)
    customer = new_customer(invoice, ext_prefix=settings.customer_extension_prefix)

    return Document(
        uuid=document_uuid(settings.namespace, invoice.account_name, invoice.id),
        type=DocumentType.STANDARD,
        regime=regime.country,
        code=invoice.id,
        issue_date=issue_date,
        operation_date=date_from_ts(invoice.effective_at),
        currency=currency,
        exchange_rates=new_exchange_rates(currency, regime.currency),
        tags=document_tags(invoice.total_tax_amounts, invoice.customer_tax_exempt, _has_tax_id(customer)),
        supplier=new_supplier(invoice, account),
        customer=customer,
        lines=lines,
        tax=tax_info(invoice.total_tax_amounts, regime),
        delivery=new_delivery(invoice),
        payment=new_payment(invoice),
        ordering=new_ordering(lines, invoice.custom_fields, settings.purchase_order_field),
        meta=_meta(invoice.number),
    )


def _preceding(credit_note: source.CreditNote) -> list[DocumentReference] | None:
    invoice = credit_note.expanded_invoice
    code = invoice.id if invoice is not None else credit_note.invoice
    if not code:
        return None
    return [DocumentReference(
        code=code,
        issue_date=date_from_ts(invoice.created) if invoice is not None else None,
        reason=credit_note.memo or credit_note.reason or None,
    )]


def from_credit_note(
    credit_note: source.CreditNote,
    settings: Settings,
    catalog: RegimeCatalog = DEFAULT_CATALOG,
    account: source.Account | None = None,
) -> Document:
    """Convert a credit note.

    Header data the credit note does not carry is taken from the account and,
    when expanded, from the credited invoice.
    """
    invoice = credit_note.expanded_invoice
    country = account.country if account is not None and account.country else None
    if country is None and invoice is not None:
        country = invoice.account_country
    regime = resolve_regime(country, catalog, credit_note.id)

    issue_date = _issue_date(credit_note.created, credit_note.id)
    currency = from_currency(credit_note.currency)

    account_name = invoice.account_name if invoice is not None else None
    if not account_name and account is not None and account.business_profile is not None:
        account_name = account.business_profile.name

    ctx = LineContext(
        currency=currency,
        regime=regime,
        catalog=catalog,
        issue_date=issue_date,
        item_extension_prefix=settings.item_extension_prefix,
        line_tax_extension_prefix=settings.line_tax_extension_prefix,
    )
    lines = from_credit_note_lines(credit_note.lines.data, ctx)
    customer = new_customer(invoice, credit_note.expanded_customer, ext_prefix=settings.customer_extension_prefix)

    return Document(
        uuid=document_uuid(settings.namespace, account_name, credit_note.id),
        type=DocumentType.CREDIT_NOTE,
        regime=regime.country,
        code=credit_note.id,
        issue_date=issue_date,
        operation_date=date_from_ts(credit_note.effective_at),
        currency=currency,
        exchange_rates=new_exchange_rates(currency, regime.currency),
        tags=document_tags(
            credit_note.tax_amounts,
            invoice.customer_tax_exempt if invoice is not None else None,
            _has_tax_id(customer),
        ),
        preceding=_preceding(credit_note),
        supplier=new_supplier(invoice, account),
        customer=customer,
        lines=lines,
        tax=tax_info(credit_note.tax_amounts, regime),
        delivery=new_delivery(invoice),
        ordering=new_ordering(lines),
        meta=_meta(credit_note.number),
    )


def assemble(
    doc: source.Invoice | source.CreditNote,
    settings: Settings,
    catalog: RegimeCatalog = DEFAULT_CATALOG,
    account: source.Account | None = None,
) -> Document:
    """Dispatch on the parsed source type."""
    if isinstance(doc, source.Invoice):
        return from_invoice(doc, settings, catalog, account)
    if isinstance(doc, source.CreditNote):
        return from_credit_note(doc, settings, catalog, account)
    raise ConversionError(
        ErrorKind.UNSUPPORTED_DOCUMENT,
        f"unsupported source type {type(doc).__name__}",
        field="object",
    )
