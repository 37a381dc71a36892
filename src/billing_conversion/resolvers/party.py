"""Supplier and customer parties.

Snapshot fields frozen on the invoice win over the live customer object,
which may have drifted since the document was finalized.
"""
from __future__ import annotations

import re

import structlog

from ..international.countries import is_tax_country
from ..models import source
from ..models.document import (
    Address,
    Email,
    OrgIdentity,
    Party,
    TaxIdentity,
    Telephone,
)

logger = structlog.get_logger(__name__)

# Identifier types that identify an organization rather than a VAT registration.
ORG_IDENTITY_TYPES: dict[str, str] = {
    "de_stn": "de-tax-number",
}

EU_VAT_TYPES = frozenset({"eu_vat", "eu_oss_vat"})

_NON_ALNUM = re.compile(r"[^0-9A-Za-z]")


def extension_map(metadata: dict[str, str] | None, prefix: str) -> dict[str, str] | None:
    """Copy metadata keys starting with *prefix* into a map, prefix stripped."""
    if not metadata or not prefix:
        return None
    ext = {k[len(prefix):]: v for k, v in metadata.items() if k.startswith(prefix) and len(k) > len(prefix)}
    return ext or None


def new_address(addr: source.Address | None) -> Address | None:
    if addr is None:
        return None
    out = Address(
        street=addr.line1 or None,
        street_extra=addr.line2 or None,
        locality=addr.city or None,
        code=addr.postal_code or None,
        state=addr.state or None,
        country=addr.country.upper() if addr.country else None,
    )
    if not any(out.model_dump().values()):
        return None
    return out


def normalize_tax_code(country: str, value: str) -> str:
    code = _NON_ALNUM.sub("", value or "").upper()
    if code.startswith(country):
        code = code[len(country):]
    return code


def tax_identity(tax_id: source.TaxID) -> TaxIdentity | None:
    """Derive a tax identity from a platform tax ID.

    An explicit country is used as-is. EU VAT numbers carry their country in
    the first two characters of the value. Otherwise the type prefix
    (``us_ein`` -> ``US``) is tried. Anything else is dropped.
    """
    if tax_id.country:
        country = tax_id.country.upper()
    elif tax_id.type in EU_VAT_TYPES:
        country = (tax_id.value or "")[:2].upper()
    else:
        country = (tax_id.type or "").split("_", 1)[0].upper()

    if not is_tax_country(country):
        logger.debug("tax_id_unsupported", tax_id_type=tax_id.type, country=country or None)
        return None
    return TaxIdentity(country=country, code=normalize_tax_code(country, tax_id.value))


def org_identity(tax_id: source.TaxID) -> OrgIdentity | None:
    key = ORG_IDENTITY_TYPES.get(tax_id.type or "")
    if key is None:
        return None
    return OrgIdentity(key=key, code=tax_id.value)


class PartyBuilder:
    """Accumulates optional party fields; ``build`` returns None if none were set."""

    def __init__(self):
        self._name: str | None = None
        self._addresses: list[Address] = []
        self._emails: list[Email] = []
        self._telephones: list[Telephone] = []
        self._tax_id: TaxIdentity | None = None
        self._identity: OrgIdentity | None = None
        self._ext: dict[str, str] | None = None

    def name(self, name: str | None) -> PartyBuilder:
        if name:
            self._name = name
        return self

    def address(self, addr: source.Address | None) -> PartyBuilder:
        a = new_address(addr)
        if a is not None:
            self._addresses.append(a)
        return self

    def email(self, email: str | None) -> PartyBuilder:
        if email:
            self._emails.append(Email(address=email))
        return self

    def telephone(self, phone: str | None) -> PartyBuilder:
        if phone:
            self._telephones.append(Telephone(number=phone))
        return self

    def tax_ids(self, tax_ids: list[source.TaxID] | None) -> PartyBuilder:
        """Attach the first identifier only; the rest are ignored."""
        if not tax_ids:
            return self
        first = tax_ids[0]
        identity = org_identity(first)
        if identity is not None:
            self._identity, self._tax_id = identity, None
        else:
            self._tax_id = tax_identity(first)
            if self._tax_id is not None:
                self._identity = None
        return self

    def ext(self, ext: dict[str, str] | None) -> PartyBuilder:
        if ext:
            self._ext = {**(self._ext or {}), **ext}
        return self

    @property
    def has_name(self) -> bool:
        return self._name is not None

    @property
    def has_identity(self) -> bool:
        return self._tax_id is not None or self._identity is not None

    def build(self) -> Party | None:
        if not any((self._name, self._addresses, self._emails, self._telephones,
                    self._tax_id, self._identity, self._ext)):
            return None
        return Party(
            name=self._name or "",
            addresses=self._addresses or None,
            emails=self._emails or None,
            telephones=self._telephones or None,
            tax_id=self._tax_id,
            identities=[self._identity] if self._identity else None,
            ext=self._ext,
        )


def new_supplier(invoice: source.Invoice | None, account: source.Account | None = None) -> Party | None:
    """Supplier from the account object when available, else the invoice's account fields."""
    b = PartyBuilder()
    if account is not None:
        profile = account.business_profile
        if profile is not None:
            b.name(profile.name).address(profile.support_address)
            b.email(profile.support_email).telephone(profile.support_phone)
        b.tax_ids(account.tax_ids)

    if invoice is not None:
        if not b.has_name:
            b.name(invoice.account_name)
        if not b.has_identity:
            b.tax_ids(invoice.account_tax_ids)
    return b.build()


def customer_from_object(customer: source.Customer, ext_prefix: str) -> Party | None:
    b = (
        PartyBuilder()
        .name(customer.name)
        .address(customer.address)
        .email(customer.email)
        .telephone(customer.phone)
        .tax_ids(customer.tax_ids)
        .ext(extension_map(customer.metadata, ext_prefix))
    )
    return b.build()


def _has_snapshot(invoice: source.Invoice) -> bool:
    return any((
        invoice.customer_name,
        invoice.customer_email,
        invoice.customer_phone,
        invoice.customer_address,
        invoice.customer_tax_ids,
    ))


def new_customer(
    invoice: source.Invoice | None,
    customer: source.Customer | None = None,
    ext_prefix: str = "bill-customer-",
) -> Party | None:
    """Resolve the customer party.

    The invoice snapshot is frozen at finalization, so it wins over the live
    customer object whenever any snapshot field is present. The live object
    still contributes its prefixed extension metadata, and stands in for the
    snapshot entirely when the invoice carries none.
    """
    if customer is None and invoice is not None:
        customer = invoice.expanded_customer

    if invoice is not None and _has_snapshot(invoice):
        ext = extension_map(customer.metadata, ext_prefix) if customer is not None else None
        return (
            PartyBuilder()
            .name(invoice.customer_name)
            .address(invoice.customer_address)
            .email(invoice.customer_email)
            .telephone(invoice.customer_phone)
            .tax_ids(invoice.customer_tax_ids)
            .ext(ext)
            .build()
        )

    if customer is not None:
        return customer_from_object(customer, ext_prefix)
    return None
