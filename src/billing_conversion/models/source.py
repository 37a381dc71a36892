"""Input schema: the documented subset of the billing platform's object graph.

Amounts are integers in the currency's minor unit, timestamps are seconds
since the epoch and currency codes are lower-case. Expandable references are
either the object ID or the expanded object. Unknown keys are ignored.
"""

from __future__ import annotations

from typing import Annotated, Literal, TypeVar, Union

from pydantic import BaseModel, BeforeValidator, Field, TypeAdapter, ValidationError

from ..errors import ConversionError, ErrorKind, FieldError

T = TypeVar("T")

# The platform sends null instead of an empty list for several collections.
NullableList = Annotated[list[T], BeforeValidator(lambda v: [] if v is None else v)]
Metadata = Annotated[dict[str, str], BeforeValidator(lambda v: {} if v is None else v)]


# ---------------------------------------------------------------------------
# Shared building blocks
# ---------------------------------------------------------------------------


class Address(BaseModel):
    line1: str | None = None
    line2: str | None = None
    city: str | None = None
    postal_code: str | None = None
    state: str | None = None
    country: str | None = None


class ShippingDetails(BaseModel):
    name: str | None = None
    phone: str | None = None
    address: Address | None = None


class TaxID(BaseModel):
    """A tax identifier as attached to accounts, customers and invoices."""

    type: str | None = None
    value: str = ""
    country: str | None = None


class Period(BaseModel):
    start: int = 0
    end: int = 0


class CustomField(BaseModel):
    name: str = ""
    value: str = ""


class Product(BaseModel):
    id: str = ""
    name: str = ""
    metadata: Metadata = Field(default_factory=dict)


class Price(BaseModel):
    id: str = ""
    billing_scheme: str | None = None
    unit_amount: int | None = None
    product: str | Product | None = None


class Coupon(BaseModel):
    id: str = ""
    name: str | None = None
    percent_off: float | None = None
    amount_off: int | None = None
    currency: str | None = None
    valid: bool = True


class Discount(BaseModel):
    id: str = ""
    coupon: Coupon | None = None


class DiscountAmount(BaseModel):
    amount: int | None = None
    discount: str | Discount | None = None


class TaxRate(BaseModel):
    id: str = ""
    tax_type: str | None = None
    display_name: str | None = None
    country: str | None = None
    percentage: float | None = None
    effective_percentage: float | None = None
    created: int = 0


class TaxAmount(BaseModel):
    """A tax amount entry, used both per line and as a document total."""

    amount: int = 0
    inclusive: bool = False
    taxable_amount: int | None = None
    taxability_reason: str | None = None
    tax_rate: str | TaxRate | None = None

    @property
    def rate(self) -> TaxRate | None:
        return self.tax_rate if isinstance(self.tax_rate, TaxRate) else None


# ---------------------------------------------------------------------------
# Payment details
# ---------------------------------------------------------------------------


class SEPADebitDetails(BaseModel):
    mandate: str | None = None


class PaymentMethodDetails(BaseModel):
    type: str = ""
    sepa_debit: SEPADebitDetails | None = None


class Charge(BaseModel):
    id: str = ""
    created: int = 0
    description: str | None = None
    payment_method_details: PaymentMethodDetails | None = None


class PaymentMethod(BaseModel):
    id: str = ""
    type: str = ""


class PaymentIntent(BaseModel):
    id: str = ""
    payment_method_types: NullableList[str] = Field(default_factory=list)


class CustomerInvoiceSettings(BaseModel):
    default_payment_method: str | PaymentMethod | None = None


class Customer(BaseModel):
    id: str = ""
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    address: Address | None = None
    shipping: ShippingDetails | None = None
    tax_ids: NullableList[TaxID] = Field(default_factory=list)
    metadata: Metadata = Field(default_factory=dict)
    invoice_settings: CustomerInvoiceSettings | None = None


# ---------------------------------------------------------------------------
# Account
# ---------------------------------------------------------------------------


class BusinessProfile(BaseModel):
    name: str | None = None
    support_address: Address | None = None
    support_email: str | None = None
    support_phone: str | None = None


class AccountInvoiceSettings(BaseModel):
    default_account_tax_ids: NullableList[TaxID] = Field(default_factory=list)


class AccountSettings(BaseModel):
    invoices: AccountInvoiceSettings | None = None


class Account(BaseModel):
    """The connected account issuing the documents, fetched separately."""

    id: str = ""
    country: str | None = None
    business_profile: BusinessProfile | None = None
    settings: AccountSettings | None = None

    @property
    def tax_ids(self) -> list[TaxID]:
        if self.settings and self.settings.invoices:
            return self.settings.invoices.default_account_tax_ids
        return []


# ---------------------------------------------------------------------------
# Invoice
# ---------------------------------------------------------------------------


class InvoiceLineItem(BaseModel):
    id: str = ""
    amount: int = 0
    currency: str | None = None
    description: str | None = None
    quantity: int | None = None
    proration: bool = False
    period: Period | None = None
    price: Price | None = None
    discount_amounts: NullableList[DiscountAmount] = Field(default_factory=list)
    tax_amounts: NullableList[TaxAmount] = Field(default_factory=list)
    metadata: Metadata = Field(default_factory=dict)


class InvoiceLineItemList(BaseModel):
    data: NullableList[InvoiceLineItem] = Field(default_factory=list)


class Invoice(BaseModel):
    object: Literal["invoice"] = "invoice"
    id: str
    number: str | None = None
    account_country: str | None = None
    account_name: str | None = None
    account_tax_ids: NullableList[TaxID] = Field(default_factory=list)
    created: int = 0
    effective_at: int | None = None
    currency: str
    customer: str | Customer | None = None
    customer_name: str | None = None
    customer_email: str | None = None
    customer_phone: str | None = None
    customer_address: Address | None = None
    customer_shipping: ShippingDetails | None = None
    customer_tax_ids: NullableList[TaxID] = Field(default_factory=list)
    customer_tax_exempt: str | None = None
    shipping_details: ShippingDetails | None = None
    lines: InvoiceLineItemList = Field(default_factory=InvoiceLineItemList)
    total_tax_amounts: NullableList[TaxAmount] = Field(default_factory=list)
    custom_fields: list[CustomField] | None = None
    paid: bool = False
    status: str | None = None
    due_date: int | None = None
    amount_paid: int = 0
    charge: str | Charge | None = None
    payment_intent: str | PaymentIntent | None = None
    default_payment_method: str | PaymentMethod | None = None
    metadata: Metadata = Field(default_factory=dict)

    @property
    def is_paid(self) -> bool:
        return self.paid or self.status == "paid"

    @property
    def expanded_customer(self) -> Customer | None:
        return self.customer if isinstance(self.customer, Customer) else None

    @property
    def expanded_charge(self) -> Charge | None:
        return self.charge if isinstance(self.charge, Charge) else None


# ---------------------------------------------------------------------------
# Credit note
# ---------------------------------------------------------------------------


class CreditNoteLineItem(BaseModel):
    id: str = ""
    amount: int = 0
    description: str | None = None
    quantity: int | None = None
    unit_amount: int | None = None
    discount_amounts: NullableList[DiscountAmount] = Field(default_factory=list)
    tax_amounts: NullableList[TaxAmount] = Field(default_factory=list)
    metadata: Metadata = Field(default_factory=dict)


class CreditNoteLineItemList(BaseModel):
    data: NullableList[CreditNoteLineItem] = Field(default_factory=list)


class CreditNote(BaseModel):
    object: Literal["credit_note"] = "credit_note"
    id: str
    number: str | None = None
    created: int = 0
    effective_at: int | None = None
    currency: str
    customer: str | Customer | None = None
    invoice: str | Invoice | None = None
    lines: CreditNoteLineItemList = Field(default_factory=CreditNoteLineItemList)
    tax_amounts: NullableList[TaxAmount] = Field(default_factory=list)
    reason: str | None = None
    memo: str | None = None
    metadata: Metadata = Field(default_factory=dict)

    @property
    def expanded_invoice(self) -> Invoice | None:
        return self.invoice if isinstance(self.invoice, Invoice) else None

    @property
    def expanded_customer(self) -> Customer | None:
        if isinstance(self.customer, Customer):
            return self.customer
        if self.expanded_invoice is not None:
            return self.expanded_invoice.expanded_customer
        return None


# ---------------------------------------------------------------------------
# Boundary parse
# ---------------------------------------------------------------------------

SourceDocument = Annotated[Union[Invoice, CreditNote], Field(discriminator="object")]

_source_adapter: TypeAdapter[Invoice | CreditNote] = TypeAdapter(SourceDocument)

SUPPORTED_OBJECTS = ("invoice", "credit_note")


def parse_source(payload: dict) -> Invoice | CreditNote:
    """Parse a raw payload into a typed invoice or credit note.

    The ``object`` discriminator is inspected once, here. Anything else is a
    hard error carrying the source ID and the offending field.
    """
    source_id = payload.get("id") if isinstance(payload, dict) else None
    kind = payload.get("object") if isinstance(payload, dict) else None
    if kind not in SUPPORTED_OBJECTS:
        raise ConversionError(
            ErrorKind.UNSUPPORTED_DOCUMENT,
            f"unsupported document kind {kind!r}",
            source_id=source_id,
            field="object",
        )

    try:
        return _source_adapter.validate_python(payload)
    except ValidationError as e:
        fields = [
            FieldError(field=".".join(str(p) for p in err["loc"]), message=err["msg"])
            for err in e.errors()
        ]
        raise ConversionError(
            ErrorKind.MALFORMED_INPUT,
            f"invalid {kind} payload",
            source_id=source_id,
            field=fields[0].field if fields else None,
            fields=fields,
        ) from e


def parse_account(payload: dict | Account | None) -> Account | None:
    """Parse the optional account object passed alongside a document."""
    if payload is None or isinstance(payload, Account):
        return payload
    try:
        return Account.model_validate(payload)
    except ValidationError as e:
        fields = [
            FieldError(field=".".join(str(p) for p in err["loc"]), message=err["msg"])
            for err in e.errors()
        ]
        raise ConversionError(
            ErrorKind.MALFORMED_INPUT,
            "invalid account payload",
            source_id=payload.get("id"),
            fields=fields,
        ) from e
