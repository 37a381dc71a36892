"""Payment block: terms, instructions and advances."""
from __future__ import annotations

from decimal import Decimal
from types import MappingProxyType
from typing import NamedTuple

from ..international.currency import to_decimal
from ..models import source
from ..models.document import (
    Advance,
    DirectDebit,
    DueDate,
    Instructions,
    MeansKey,
    Payment,
    Terms,
)
from ..utils.dates import date_from_ts

ADVANCE_DESCRIPTION = "Advance payment"
FULL_PERCENT = Decimal("100")


class PaymentMethodDef(NamedTuple):
    description: str
    means: MeansKey


PAYMENT_METHODS = MappingProxyType({
    "ach_debit": PaymentMethodDef("ACH", MeansKey.DIRECT_DEBIT),
    "acss_debit": PaymentMethodDef("Canadian pre-authorized debit", MeansKey.DIRECT_DEBIT),
    "amazon_pay": PaymentMethodDef("Amazon Pay", MeansKey.ONLINE),
    "bacs_debit": PaymentMethodDef("Bacs Direct Debit", MeansKey.DIRECT_DEBIT),
    "au_becs_debit": PaymentMethodDef("BECS Direct Debit", MeansKey.DIRECT_DEBIT),
    "bancontact": PaymentMethodDef("Bancontact", MeansKey.ONLINE),
    "boleto": PaymentMethodDef("boleto", MeansKey.ONLINE),
    "card": PaymentMethodDef("Card", MeansKey.CARD),
    "cashapp": PaymentMethodDef("Cash App Pay", MeansKey.ONLINE),
    "customer_balance": PaymentMethodDef("Bank Transfer", MeansKey.CREDIT_TRANSFER),
    "eps": PaymentMethodDef("EPS", MeansKey.ONLINE),
    "fpx": PaymentMethodDef("FPX", MeansKey.ONLINE),
    "giropay": PaymentMethodDef("giropay", MeansKey.ONLINE),
    "grabpay": PaymentMethodDef("GrabPay", MeansKey.ONLINE),
    "ideal": PaymentMethodDef("iDEAL", MeansKey.ONLINE),
    "kakao_pay": PaymentMethodDef("Kakao Pay", MeansKey.ONLINE),
    "konbini": PaymentMethodDef("Konbini", MeansKey.ONLINE),
    "kr_card": PaymentMethodDef("Korean Credit Card", MeansKey.CARD),
    "link": PaymentMethodDef("Link", MeansKey.ONLINE),
    "multibanco": PaymentMethodDef("Multibanco", MeansKey.ONLINE),
    "naver_pay": PaymentMethodDef("Naver Pay", MeansKey.ONLINE),
    "p24": PaymentMethodDef("Przelewy24", MeansKey.ONLINE),
    "payco": PaymentMethodDef("PAYCO", MeansKey.ONLINE),
    "paynow": PaymentMethodDef("PayNow", MeansKey.ONLINE),
    "paypal": PaymentMethodDef("PayPal", MeansKey.ONLINE),
    "promptpay": PaymentMethodDef("PromptPay", MeansKey.ONLINE),
    "revolut_pay": PaymentMethodDef("Revolut Pay", MeansKey.ONLINE),
    "sepa_debit": PaymentMethodDef("SEPA Direct Debit", MeansKey.DIRECT_DEBIT),
    "sofort": PaymentMethodDef("Sofort", MeansKey.ONLINE),
    "us_bank_account": PaymentMethodDef("ACH direct debit", MeansKey.DIRECT_DEBIT),
    "wechat_pay": PaymentMethodDef("WeChat Pay", MeansKey.ONLINE),
})


def _instructions_for(method_type: str | None) -> Instructions | None:
    pm = PAYMENT_METHODS.get(method_type or "")
    if pm is None:
        return None
    return Instructions(key=str(pm.means), detail=pm.description)


def _method_type(pm: str | source.PaymentMethod | None) -> str | None:
    return pm.type if isinstance(pm, source.PaymentMethod) else None


def new_terms(invoice: source.Invoice) -> Terms | None:
    if invoice.is_paid or not invoice.due_date:
        return None
    return Terms(due_dates=[DueDate(date=date_from_ts(invoice.due_date), percent=FULL_PERCENT)])


def new_instructions(invoice: source.Invoice) -> Instructions | None:
    """Payment instructions for an unpaid invoice; the first usable source wins.

    A charge on an unpaid invoice means a pending direct debit, so it is
    checked before the configured defaults.
    """
    if invoice.is_paid:
        return None

    charge = invoice.expanded_charge
    if charge is not None and charge.payment_method_details is not None:
        details = charge.payment_method_details
        instructions = _instructions_for(details.type)
        if instructions is not None:
            if details.type == "sepa_debit" and details.sepa_debit is not None and details.sepa_debit.mandate:
                instructions.direct_debit = DirectDebit(ref=details.sepa_debit.mandate)
            return instructions

    instructions = _instructions_for(_method_type(invoice.default_payment_method))
    if instructions is not None:
        return instructions

    customer = invoice.expanded_customer
    if customer is not None and customer.invoice_settings is not None:
        instructions = _instructions_for(_method_type(customer.invoice_settings.default_payment_method))
        if instructions is not None:
            return instructions

    intent = invoice.payment_intent
    if not isinstance(intent, source.PaymentIntent):
        return None

    keys: list[str] = []
    details: list[str] = []
    for method in intent.payment_method_types:
        pm = PAYMENT_METHODS.get(method)
        if pm is None:
            continue
        if str(pm.means) not in keys:
            keys.append(str(pm.means))
        details.append(pm.description)
    if not keys:
        return None
    return Instructions(key="+".join(keys), detail=", ".join(details))


def new_advances(invoice: source.Invoice) -> list[Advance] | None:
    if not invoice.amount_paid:
        return None

    advance = Advance(
        amount=to_decimal(invoice.amount_paid, invoice.currency),
        description=ADVANCE_DESCRIPTION,
    )
    charge = invoice.expanded_charge
    if charge is not None:
        advance.date = date_from_ts(charge.created)
        if charge.description:
            advance.description = charge.description
        if charge.payment_method_details is not None:
            pm = PAYMENT_METHODS.get(charge.payment_method_details.type)
            if pm is not None:
                advance.key = str(pm.means)
    return [advance]


def new_payment(invoice: source.Invoice | None) -> Payment | None:
    if invoice is None:
        return None
    terms = new_terms(invoice)
    instructions = new_instructions(invoice)
    advances = new_advances(invoice)
    if terms is None and instructions is None and advances is None:
        return None
    return Payment(terms=terms, instructions=instructions, advances=advances)
