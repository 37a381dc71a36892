"""Canonical billing document produced by the conversion.

Amounts are ``Decimal`` values whose exponent is the scale, so ``-110.00``
and ``11000`` keep their precision through ``model_dump(mode="json")``.
Percentages are expressed in percent units with one decimal place
(``Decimal("19.0")``), the same precision used when matching a regime's
rate catalog.

Computed totals are left to the external calculation engine.
"""

from __future__ import annotations

import datetime as dt
from decimal import Decimal
from enum import StrEnum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class DocumentType(StrEnum):
    STANDARD = "standard"
    CREDIT_NOTE = "credit-note"


class TaxCategory(StrEnum):
    VAT = "VAT"
    ST = "ST"
    GST = "GST"


class RateKey(StrEnum):
    ZERO = "zero"
    STANDARD = "standard"
    REDUCED = "reduced"
    SUPER_REDUCED = "super-reduced"
    EXEMPT = "exempt"
    REVERSE_CHARGE = "reverse-charge"


class MeansKey(StrEnum):
    CARD = "card"
    CREDIT_TRANSFER = "credit-transfer"
    DIRECT_DEBIT = "direct-debit"
    ONLINE = "online"


class Tag(StrEnum):
    REVERSE_CHARGE = "reverse-charge"
    SIMPLIFIED = "simplified"


# ---------------------------------------------------------------------------
# Parties
# ---------------------------------------------------------------------------


class Address(BaseModel):
    street: str | None = None
    street_extra: str | None = None
    locality: str | None = None
    code: str | None = None
    state: str | None = None
    country: str | None = None

    def is_complete(self) -> bool:
        """An address is usable when it can be located: street, locality and country."""
        return bool(self.street and self.locality and self.country)


class Email(BaseModel):
    address: str


class Telephone(BaseModel):
    number: str


class TaxIdentity(BaseModel):
    country: str
    code: str = ""


class OrgIdentity(BaseModel):
    key: str
    code: str


class Party(BaseModel):
    """A supplier, customer or delivery receiver.

    Holds a tax identity or an organization identity, never both.
    """

    name: str = ""
    addresses: list[Address] | None = None
    emails: list[Email] | None = None
    telephones: list[Telephone] | None = None
    tax_id: TaxIdentity | None = None
    identities: list[OrgIdentity] | None = None
    ext: dict[str, str] | None = None

    @model_validator(mode="after")
    def _single_identity(self) -> Party:
        if self.tax_id is not None and self.identities:
            raise ValueError("party cannot carry both a tax identity and an organization identity")
        if self.identities and len(self.identities) > 1:
            raise ValueError("party carries at most one organization identity")
        return self


# ---------------------------------------------------------------------------
# Lines
# ---------------------------------------------------------------------------


class Period(BaseModel):
    start: dt.date
    end: dt.date


class Item(BaseModel):
    name: str = ""
    currency: str | None = None
    price: Decimal
    ext: dict[str, str] | None = None
    meta: dict[str, str] | None = None


class LineDiscount(BaseModel):
    """Either an absolute amount or a percentage, with an optional reason."""

    amount: Decimal | None = None
    percent: Decimal | None = None
    reason: str | None = None

    @model_validator(mode="after")
    def _amount_or_percent(self) -> LineDiscount:
        if (self.amount is None) == (self.percent is None):
            raise ValueError("discount needs exactly one of amount or percent")
        return self


class TaxCombo(BaseModel):
    """A tax applied to a line: a category plus a percentage or a named rate."""

    category: str
    country: str | None = None
    rate: str | None = None
    percent: Decimal | None = None
    ext: dict[str, str] | None = None

    @model_validator(mode="after")
    def _rate_or_percent(self) -> TaxCombo:
        if self.rate is not None and self.percent is not None:
            raise ValueError("tax combo cannot carry both a rate key and a percentage")
        return self


class Line(BaseModel):
    i: int
    quantity: Decimal
    item: Item
    discounts: list[LineDiscount] | None = None
    taxes: list[TaxCombo] | None = None
    period: Period | None = None


# ---------------------------------------------------------------------------
# Header blocks
# ---------------------------------------------------------------------------


class ExchangeRate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_: str = Field(alias="from")
    to: str
    amount: Decimal


class TaxInfo(BaseModel):
    """Invoice-level tax flags."""

    prices_include: str | None = None


class Delivery(BaseModel):
    receiver: Party


class DueDate(BaseModel):
    date: dt.date | None = None
    percent: Decimal


class Terms(BaseModel):
    due_dates: list[DueDate] = Field(default_factory=list)


class DirectDebit(BaseModel):
    ref: str


class Instructions(BaseModel):
    key: str
    detail: str | None = None
    direct_debit: DirectDebit | None = None


class Advance(BaseModel):
    amount: Decimal
    description: str
    date: dt.date | None = None
    key: str | None = None


class Payment(BaseModel):
    terms: Terms | None = None
    instructions: Instructions | None = None
    advances: list[Advance] | None = None


class Ordering(BaseModel):
    code: str | None = None
    period: Period | None = None


class DocumentReference(BaseModel):
    code: str
    issue_date: dt.date | None = None
    reason: str | None = None


# ---------------------------------------------------------------------------
# Top-level document
# ---------------------------------------------------------------------------


class Document(BaseModel):
    """A complete canonical invoice or credit note."""

    uuid: UUID | None = None
    type: DocumentType = DocumentType.STANDARD
    regime: str
    code: str
    issue_date: dt.date
    operation_date: dt.date | None = None
    currency: str
    exchange_rates: list[ExchangeRate] | None = None
    tags: list[str] | None = None
    preceding: list[DocumentReference] | None = None
    supplier: Party | None = None
    customer: Party | None = None
    lines: list[Line] = Field(default_factory=list)
    tax: TaxInfo | None = None
    delivery: Delivery | None = None
    payment: Payment | None = None
    ordering: Ordering | None = None
    meta: dict[str, str] | None = None
    # Filled in by the external calculation engine.
    totals: dict[str, Any] | None = None
